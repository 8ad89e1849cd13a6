"""
Business logic and computations for TripLedger
"""
from __future__ import annotations
from typing import Dict, List, Sequence

from config import DEFAULT_EPSILON
from models import Category, CategoryTotal, Expense, Group, GroupStat, Ledger, Transfer
from utils import is_negligible


def total_amount(expenses: Sequence[Expense]) -> float:
    return sum(float(e.amount) for e in expenses)


def total_headcount(groups: Sequence[Group]) -> int:
    return sum(g.count for g in groups)


def compute_group_stats(expenses: Sequence[Expense], groups: Sequence[Group]) -> List[GroupStat]:
    """
    Compute paid, fair share and balance for each group, in group order.

    Every expense counts toward the total, even when its payer is not one of
    the groups; such an expense is credited to nobody. With no headcount at
    all every share is 0.
    """
    total = total_amount(expenses)
    people = total_headcount(groups)

    paid: Dict[str, float] = {g.id: 0.0 for g in groups}
    for e in expenses:
        if e.payer_id in paid:
            paid[e.payer_id] += float(e.amount)

    stats = []
    for g in groups:
        ratio = g.count / people if people > 0 else 0.0
        share = total * ratio
        stats.append(GroupStat(group_id=g.id, paid=paid[g.id], share=share, balance=paid[g.id] - share))
    return stats


def compute_settlements(stats: Sequence[GroupStat], eps: float = DEFAULT_EPSILON) -> List[Transfer]:
    """
    Compute transfers to settle debts.
    Greedy settlement: debtors pay creditors. balance>0 creditor; balance<0 debtor.
    Both lists keep the original group order, so earlier groups settle first.
    """
    debtors = [[s.group_id, s.balance] for s in stats if s.balance < -eps]
    creditors = [[s.group_id, s.balance] for s in stats if s.balance > eps]

    transfers = []
    d = c = 0
    while d < len(debtors) and c < len(creditors):
        debtor = debtors[d]
        creditor = creditors[c]
        amount = min(abs(debtor[1]), creditor[1])
        transfers.append(Transfer(from_group_id=debtor[0], to_group_id=creditor[0], amount=amount))
        debtor[1] += amount
        creditor[1] -= amount
        if is_negligible(debtor[1], eps):
            d += 1
        if is_negligible(creditor[1], eps):
            c += 1

    return transfers


def apply_transfers(stats: Sequence[GroupStat], transfers: Sequence[Transfer]) -> Dict[str, float]:
    """Balances per group id after every transfer has been paid"""
    balances = {s.group_id: s.balance for s in stats}
    for t in transfers:
        balances[t.from_group_id] = balances.get(t.from_group_id, 0.0) + t.amount
        balances[t.to_group_id] = balances.get(t.to_group_id, 0.0) - t.amount
    return balances


def unsettled_balances(
    stats: Sequence[GroupStat],
    transfers: Sequence[Transfer],
    eps: float = DEFAULT_EPSILON,
) -> Dict[str, float]:
    """
    Balances the transfers leave open (|balance| >= eps), in group order.
    Non-empty only when the balances do not sum to zero, e.g. when some
    expenses were paid by a group that no longer exists.
    """
    after = apply_transfers(stats, transfers)
    return {s.group_id: after[s.group_id] for s in stats if not is_negligible(after[s.group_id], eps)}


def compute_category_totals(expenses: Sequence[Expense]) -> List[CategoryTotal]:
    """Sum amounts per category, in order of first appearance"""
    totals: Dict[Category, float] = {}
    for e in expenses:
        totals[e.category] = totals.get(e.category, 0.0) + float(e.amount)
    return [CategoryTotal(category=k, amount=v) for k, v in totals.items()]


def compute_settlement_result(ledger: Ledger, eps: float = DEFAULT_EPSILON) -> dict:
    """
    Full computation over one ledger snapshot:
    {group_stats, settlements, category_totals}
    """
    stats = compute_group_stats(ledger.expenses, ledger.groups)
    return {
        "group_stats": stats,
        "settlements": compute_settlements(stats, eps),
        "category_totals": compute_category_totals(ledger.expenses),
    }
