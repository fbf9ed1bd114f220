"""Read-only queries against pantry inventory and shipments."""

from datetime import date

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from pantryplanner.logging_config import get_logger
from pantryplanner.models import InventoryItem, Shipment
from pantryplanner.pantry.snapshot import PantrySnapshot
from pantryplanner.schemas import InventoryEntry, ShipmentEntry

logger = get_logger(__name__)


class PantryRepository:
    """Repository for inventory and shipment snapshots."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def in_stock(self, today: date) -> list[InventoryEntry]:
        """Items available now with a positive quantity."""
        result = await self.session.execute(
            select(InventoryItem)
            .where(
                or_(InventoryItem.date_available.is_(None), InventoryItem.date_available <= today),
                InventoryItem.quantity > 0,
            )
            .order_by(InventoryItem.name)
        )
        return [InventoryEntry.model_validate(row) for row in result.scalars()]

    async def arriving_soon(self, today: date) -> list[InventoryEntry]:
        """Items with an availability date after today."""
        result = await self.session.execute(
            select(InventoryItem)
            .where(InventoryItem.date_available > today)
            .order_by(InventoryItem.date_available, InventoryItem.name)
        )
        return [InventoryEntry.model_validate(row) for row in result.scalars()]

    async def upcoming_shipments(self, today: date) -> list[ShipmentEntry]:
        """Shipments expected today or later."""
        result = await self.session.execute(
            select(Shipment)
            .where(Shipment.expected_date >= today)
            .order_by(Shipment.expected_date, Shipment.item_name)
        )
        return [ShipmentEntry.model_validate(row) for row in result.scalars()]

    async def snapshot(self, today: date | None = None) -> PantrySnapshot:
        """Load everything the engine needs to know about supply for a day."""
        today = today or date.today()
        snapshot = PantrySnapshot(
            today=today,
            in_stock=await self.in_stock(today),
            arriving_soon=await self.arriving_soon(today),
            shipments=await self.upcoming_shipments(today),
        )
        logger.debug(
            f"Pantry snapshot for {today}: {len(snapshot.in_stock)} in stock, "
            f"{len(snapshot.arriving_soon)} arriving, {len(snapshot.shipments)} shipments"
        )
        return snapshot
