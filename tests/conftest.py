"""Shared pytest fixtures for TripLedger tests."""

import pytest

from models import Category, Expense, Group, Ledger


def make_expense(amount, payer_id, category=Category.OTHER, date=1_700_000_000_000, description="item", id=None):
    """Expense with sensible defaults for tests."""
    return Expense(
        id=id or f"e-{payer_id}-{amount}-{date}",
        date=date,
        description=description,
        amount=float(amount),
        category=category,
        payer_id=payer_id,
    )


@pytest.fixture
def two_families():
    return [Group("f1", "Family 1", 4), Group("f2", "Family 2", 2)]


@pytest.fixture
def bali_ledger(two_families):
    """4 + 2 people, Family 1 paid everything."""
    return Ledger(
        name="Bali Trip",
        groups=two_families,
        expenses=[
            make_expense(400, "f1", Category.ACCOMMODATION, date=1_700_100_000_000, description="Villa", id="e1"),
            make_expense(200, "f1", Category.FOOD, date=1_700_000_000_000, description="Dinner", id="e2"),
        ],
        exchange_rate=2000.0,
        destination_currency="IDR",
        base_currency="CNY",
        destination="Indonesia",
        last_updated=1,
    )
