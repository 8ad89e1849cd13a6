"""
Data models for TripLedger application
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import List


class Category(str, Enum):
    """Expense category"""
    ACCOMMODATION = "Accommodation"
    TRANSPORT = "Transport"
    FOOD = "Food"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    OTHER = "Other"


@dataclass
class Group:
    """Participant group (a family) sharing costs by headcount"""
    id: str
    name: str
    count: int = 1


@dataclass(frozen=True)
class Expense:
    """Single expense, recorded in the ledger's destination currency"""
    id: str
    date: int  # epoch millis
    description: str
    amount: float
    category: Category
    payer_id: str


@dataclass
class Ledger:
    """Complete ledger for one trip"""
    name: str
    groups: List[Group]
    expenses: List[Expense] = field(default_factory=list)
    exchange_rate: float = 2200.0  # destination units per base unit
    destination_currency: str = "IDR"
    base_currency: str = "CNY"
    destination: str = ""
    last_updated: int = 0
    version: int = 2


@dataclass(frozen=True)
class GroupStat:
    """Allocation result for one group"""
    group_id: str
    paid: float
    share: float
    balance: float  # positive -> should receive; negative -> should pay


@dataclass(frozen=True)
class Transfer:
    """Suggested payment from a debtor group to a creditor group"""
    from_group_id: str
    to_group_id: str
    amount: float


@dataclass(frozen=True)
class CategoryTotal:
    category: Category
    amount: float
