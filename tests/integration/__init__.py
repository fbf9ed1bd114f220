"""Integration tests for pantryplanner.

These tests require a PostgreSQL database (see TEST_DATABASE_URL in conftest.py).

Run with: pytest tests/integration/ -v
Skip with: pytest -m "not integration"
"""
