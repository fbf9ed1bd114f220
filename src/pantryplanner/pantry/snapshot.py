"""Point-in-time view of pantry inventory and incoming shipments."""

from dataclasses import dataclass, field
from datetime import date

from pantryplanner.pantry.matching import normalize_name
from pantryplanner.schemas import InventoryEntry, ShipmentEntry


@dataclass
class PantrySnapshot:
    """Inventory and shipments as seen on a given day."""

    today: date
    in_stock: list[InventoryEntry] = field(default_factory=list)
    arriving_soon: list[InventoryEntry] = field(default_factory=list)
    shipments: list[ShipmentEntry] = field(default_factory=list)

    @classmethod
    def from_entries(
        cls,
        inventory: list[InventoryEntry],
        shipments: list[ShipmentEntry],
        today: date,
    ) -> "PantrySnapshot":
        """
        Split raw inventory and shipment rows by availability.

        Items without a date (or dated today or earlier) with a positive
        quantity are in stock; future-dated items are arriving soon; shipments
        dated before today are ignored.
        """
        in_stock = [
            item
            for item in inventory
            if (item.date_available is None or item.date_available <= today) and item.quantity > 0
        ]
        arriving = [
            item
            for item in inventory
            if item.date_available is not None and item.date_available > today
        ]
        upcoming = [s for s in shipments if s.expected_date >= today]
        return cls(today=today, in_stock=in_stock, arriving_soon=arriving, shipments=upcoming)

    def in_stock_names(self) -> list[str]:
        """Lower-cased names of everything currently in stock."""
        return [normalize_name(item.name) for item in self.in_stock]

    def upcoming_dates(self) -> dict[str, date]:
        """
        Lower-cased name -> expected availability date for future supply.

        Future-dated inventory wins over a shipment of the same name.
        """
        dates: dict[str, date] = {}
        for shipment in self.shipments:
            dates[normalize_name(shipment.item_name)] = shipment.expected_date
        for item in self.arriving_soon:
            if item.date_available is not None:
                dates[normalize_name(item.name)] = item.date_available
        return dates

    def known_names(self) -> list[str]:
        """Names that are either in stock or arriving."""
        return [*self.in_stock_names(), *self.upcoming_dates()]
