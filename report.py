"""
Report projection and Markdown rendering for TripLedger
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from computations import (
    compute_category_totals,
    compute_group_stats,
    compute_settlements,
    total_amount,
    total_headcount,
    unsettled_balances,
)
from config import DEFAULT_EPSILON
from models import Ledger
from utils import format_date, format_money, to_base

UNKNOWN_GROUP = "Unknown"


@dataclass
class GroupRow:
    group_id: str
    name: str
    count: int
    paid: float
    share: float
    balance: float


@dataclass
class TransferRow:
    from_group_id: str
    from_name: str
    to_group_id: str
    to_name: str
    amount: float
    amount_base: Optional[float]


@dataclass
class CategoryRow:
    category: str
    amount: float
    amount_base: Optional[float]


@dataclass
class ExpenseRow:
    id: str
    date: int
    description: str
    category: str
    payer_id: str
    payer_name: str
    amount: float
    amount_base: Optional[float]


@dataclass
class LedgerReport:
    """Everything a renderer needs; no renderer computes money on its own"""
    name: str
    destination: str
    destination_currency: str
    base_currency: str
    exchange_rate: float
    headcount: int
    total: float
    total_base: Optional[float]
    groups: List[GroupRow] = field(default_factory=list)
    settlements: List[TransferRow] = field(default_factory=list)
    categories: List[CategoryRow] = field(default_factory=list)
    expenses: List[ExpenseRow] = field(default_factory=list)
    unsettled: Dict[str, float] = field(default_factory=dict)

    @property
    def is_settled(self) -> bool:
        return not self.settlements and not self.unsettled


def build_report(ledger: Ledger, eps: float = DEFAULT_EPSILON) -> LedgerReport:
    """Project a ledger snapshot into a LedgerReport"""
    rate = ledger.exchange_rate
    names = {g.id: g.name for g in ledger.groups}
    stats = compute_group_stats(ledger.expenses, ledger.groups)
    transfers = compute_settlements(stats, eps)
    total = total_amount(ledger.expenses)

    report = LedgerReport(
        name=ledger.name,
        destination=ledger.destination,
        destination_currency=ledger.destination_currency,
        base_currency=ledger.base_currency,
        exchange_rate=rate,
        headcount=total_headcount(ledger.groups),
        total=total,
        total_base=to_base(total, rate),
    )
    for g, s in zip(ledger.groups, stats):
        report.groups.append(GroupRow(g.id, g.name, g.count, s.paid, s.share, s.balance))
    for t in transfers:
        report.settlements.append(TransferRow(
            from_group_id=t.from_group_id,
            from_name=names.get(t.from_group_id, UNKNOWN_GROUP),
            to_group_id=t.to_group_id,
            to_name=names.get(t.to_group_id, UNKNOWN_GROUP),
            amount=t.amount,
            amount_base=to_base(t.amount, rate),
        ))
    for c in compute_category_totals(ledger.expenses):
        report.categories.append(CategoryRow(c.category.value, c.amount, to_base(c.amount, rate)))

    # stable sort: same-date expenses keep insertion order
    for e in sorted(ledger.expenses, key=lambda x: x.date):
        report.expenses.append(ExpenseRow(
            id=e.id,
            date=e.date,
            description=e.description,
            category=e.category.value,
            payer_id=e.payer_id,
            payer_name=names.get(e.payer_id, UNKNOWN_GROUP),
            amount=float(e.amount),
            amount_base=to_base(float(e.amount), rate),
        ))
    report.unsettled = unsettled_balances(stats, transfers, eps)
    return report


def _approx(value: Optional[float], code: str) -> str:
    return f" (≈ {format_money(value, code)})" if value is not None else ""


def _balance_text(balance: float, code: str) -> str:
    if balance >= 0:
        return f"overpaid {format_money(balance, code)}"
    return f"underpaid {format_money(abs(balance), code)}"


def render_markdown(report: LedgerReport, exported_at: Optional[datetime] = None) -> str:
    """Render the report as a Markdown document"""
    dest = report.destination_currency
    base = report.base_currency
    exported_at = exported_at or datetime.now()

    lines = [f"# {report.name} - Expense Report", ""]
    lines.append(f"**Exported**: {exported_at.strftime('%Y-%m-%d %H:%M')}  ")
    if report.destination:
        lines.append(f"**Destination**: {report.destination}  ")
    lines.append(f"**Exchange rate**: 1 {base} = {report.exchange_rate:g} {dest}  ")
    groups = ", ".join(f"{g.name} ({g.count} people)" for g in report.groups)
    lines.append(f"**Groups**: {groups}")
    lines.append("")

    lines.append("## Overview")
    lines.append(f"- Total spent: {format_money(report.total, dest)}{_approx(report.total_base, base)}")
    lines.append("")

    lines.append("### Balances")
    for g in report.groups:
        lines.append(
            f"- **{g.name}**: paid {format_money(g.paid, dest)} | share {format_money(g.share, dest)} | "
            f"{_balance_text(g.balance, dest)}"
        )
    lines.append("")

    lines.append("## Settlement")
    if report.settlements:
        for t in report.settlements:
            lines.append(
                f"- **{t.from_name}** pays **{t.to_name}**: "
                f"{format_money(t.amount, dest)}{_approx(t.amount_base, base)}"
            )
    elif report.is_settled:
        lines.append("All settled, no transfers needed.")
    else:
        lines.append("No transfers possible.")
    if report.unsettled:
        names = {g.group_id: g.name for g in report.groups}
        lines.append("")
        lines.append("Unresolved balances (expenses paid by unknown groups):")
        for gid, bal in report.unsettled.items():
            lines.append(f"- {names.get(gid, UNKNOWN_GROUP)}: {format_money(bal, dest)}")
    lines.append("")

    if report.categories:
        lines.append("## Categories")
        for c in report.categories:
            lines.append(f"- {c.category}: {format_money(c.amount, dest)}")
        lines.append("")

    lines.append("## Expenses")
    lines.append("")
    lines.append(f"| Date | Description | Category | Payer | Amount ({dest}) | Amount ({base}, approx.) |")
    lines.append("|---|---|---|---|---|---|")
    for e in report.expenses:
        base_txt = format_money(e.amount_base, base) if e.amount_base is not None else "-"
        desc = e.description.replace("|", "\\|")
        lines.append(
            f"| {format_date(e.date)} | {desc} | {e.category} | {e.payer_name} | "
            f"{format_money(e.amount, dest)} | {base_txt} |"
        )
    return "\n".join(lines) + "\n"


def render_summary(report: LedgerReport) -> str:
    """Plain text summary for the terminal"""
    dest = report.destination_currency
    base = report.base_currency
    out = [f"{report.name}" + (f" ({report.destination})" if report.destination else "")]
    out.append(f"Total: {format_money(report.total, dest)}{_approx(report.total_base, base)}"
               f"  |  {len(report.expenses)} expenses, {report.headcount} people")
    out.append("")
    out.append(f"{'Group':<16}{'People':>7}{'Paid':>20}{'Share':>20}{'Balance':>20}")
    for g in report.groups:
        out.append(
            f"{g.name[:15]:<16}{g.count:>7}{format_money(g.paid, dest):>20}"
            f"{format_money(g.share, dest):>20}{format_money(g.balance, dest):>20}"
        )
    out.append("")
    if report.settlements:
        out.append("Settlement:")
        for t in report.settlements:
            out.append(f"  {t.from_name} -> {t.to_name}: {format_money(t.amount, dest)}{_approx(t.amount_base, base)}")
    elif report.is_settled:
        out.append("All settled, no transfers needed.")
    else:
        out.append("No transfers possible.")
    names = {g.group_id: g.name for g in report.groups}
    for gid, bal in report.unsettled.items():
        out.append(f"  unresolved: {names.get(gid, UNKNOWN_GROUP)} {format_money(bal, dest)}")
    return "\n".join(out) + "\n"
