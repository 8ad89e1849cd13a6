"""
Validated edits to a Ledger: expenses, groups and trip settings.
Every successful edit bumps ledger.last_updated.
"""
from __future__ import annotations
import logging
import math
from typing import Optional

from config import DEFAULT_DESTINATION_CURRENCY, DEFAULT_LEDGER_NAME, DESTINATIONS, MAX_GROUPS, MIN_GROUPS
from models import Category, Expense, Group, Ledger
from utils import new_id, now_millis, safe_float

logger = logging.getLogger(__name__)


class LedgerValidationError(ValueError):
    """Raised when user input cannot be applied to a ledger"""


def _touch(ledger: Ledger) -> None:
    ledger.last_updated = now_millis()


def _positive(x, message: str) -> float:
    value = safe_float(x, None)
    if value is None or not math.isfinite(value) or value <= 0:
        raise LedgerValidationError(message)
    return value


def find_group(ledger: Ledger, group_id: str) -> Optional[Group]:
    return next((g for g in ledger.groups if g.id == group_id), None)


# ---------- Expenses ----------
def add_expense(
    ledger: Ledger,
    description: str,
    amount,
    payer_id: str,
    date: Optional[int],
    category: Category = Category.OTHER,
) -> Expense:
    """Validate input and append a new expense"""
    description = (description or "").strip()
    if not description:
        raise LedgerValidationError("Description is required.")
    if date is None:
        raise LedgerValidationError("Date is required.")
    value = _positive(amount, "Amount must be a positive number.")
    if find_group(ledger, payer_id) is None:
        raise LedgerValidationError(f"Unknown payer: {payer_id!r}")

    expense = Expense(
        id=new_id(),
        date=int(date),
        description=description,
        amount=value,
        category=category,
        payer_id=payer_id,
    )
    ledger.expenses.append(expense)
    _touch(ledger)
    logger.debug("Added expense %s (%s) to %r", expense.id, value, ledger.name)
    return expense


def delete_expense(ledger: Ledger, expense_id: str) -> bool:
    """Remove an expense by id; returns False when no such expense exists"""
    before = len(ledger.expenses)
    ledger.expenses = [e for e in ledger.expenses if e.id != expense_id]
    if len(ledger.expenses) == before:
        return False
    _touch(ledger)
    return True


def clear_expenses(ledger: Ledger) -> int:
    n = len(ledger.expenses)
    ledger.expenses = []
    _touch(ledger)
    return n


# ---------- Groups ----------
def add_group(ledger: Ledger, name: Optional[str] = None, count: int = 2) -> Group:
    if len(ledger.groups) >= MAX_GROUPS:
        raise LedgerValidationError(f"A ledger holds at most {MAX_GROUPS} groups.")
    if count < 1:
        raise LedgerValidationError("Headcount must be at least 1.")
    gid = f"f{now_millis()}"
    while find_group(ledger, gid) is not None:
        gid = f"f{new_id()[:8]}"
    group = Group(id=gid, name=(name or "").strip() or f"Family {len(ledger.groups) + 1}", count=int(count))
    ledger.groups.append(group)
    _touch(ledger)
    return group


def remove_group(ledger: Ledger, group_id: str) -> Group:
    """
    Remove a group. Expenses it paid are kept; they show up with an
    unknown payer and are no longer credited to anyone.
    """
    group = find_group(ledger, group_id)
    if group is None:
        raise LedgerValidationError(f"Unknown group: {group_id!r}")
    if len(ledger.groups) <= MIN_GROUPS:
        raise LedgerValidationError(f"A ledger needs at least {MIN_GROUPS} groups.")
    ledger.groups = [g for g in ledger.groups if g.id != group_id]
    orphaned = sum(1 for e in ledger.expenses if e.payer_id == group_id)
    if orphaned:
        logger.warning("Removed group %r still paid %d expense(s)", group.name, orphaned)
    _touch(ledger)
    return group


def update_group(ledger: Ledger, group_id: str, name: Optional[str] = None, count: Optional[int] = None) -> Group:
    """Rename and/or recount a group"""
    group = find_group(ledger, group_id)
    if group is None:
        raise LedgerValidationError(f"Unknown group: {group_id!r}")
    if name is not None:
        if not name.strip():
            raise LedgerValidationError("Group name is required.")
        group.name = name.strip()
    if count is not None:
        if int(count) < 1:
            raise LedgerValidationError("Headcount must be at least 1.")
        group.count = int(count)
    _touch(ledger)
    return group


# ---------- Trip settings ----------
def rename_ledger(ledger: Ledger, name: str) -> None:
    if not (name or "").strip():
        raise LedgerValidationError("Ledger name is required.")
    ledger.name = name.strip()
    _touch(ledger)


def set_destination(ledger: Ledger, destination: str, currency: Optional[str] = None) -> None:
    """
    Set the trip destination and its currency. Default-looking ledger
    names follow the destination ("<destination> Trip Ledger").
    """
    destination = (destination or "").strip()
    ledger.destination = destination
    ledger.destination_currency = (currency or DESTINATIONS.get(destination, DEFAULT_DESTINATION_CURRENCY)).upper()
    if ledger.name == DEFAULT_LEDGER_NAME or ledger.name.endswith("Trip Ledger"):
        ledger.name = f"{destination} Trip Ledger" if destination else DEFAULT_LEDGER_NAME
    _touch(ledger)


def set_exchange_rate(ledger: Ledger, rate) -> None:
    value = _positive(rate, "Exchange rate must be a positive number.")
    ledger.exchange_rate = value
    _touch(ledger)
