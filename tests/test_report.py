from datetime import datetime

import pytest

from conftest import make_expense
from models import Category, Ledger
from report import UNKNOWN_GROUP, build_report, render_markdown, render_summary


def test_build_report_numbers(bali_ledger):
    report = build_report(bali_ledger)

    assert report.name == "Bali Trip"
    assert report.headcount == 6
    assert report.total == pytest.approx(600)
    assert report.total_base == pytest.approx(0.3)
    assert [(g.name, g.count) for g in report.groups] == [("Family 1", 4), ("Family 2", 2)]
    assert [g.balance for g in report.groups] == pytest.approx([200, -200])

    assert len(report.settlements) == 1
    t = report.settlements[0]
    assert (t.from_name, t.to_name) == ("Family 2", "Family 1")
    assert t.amount == pytest.approx(200)
    assert t.amount_base == pytest.approx(0.1)
    assert not report.is_settled
    assert report.unsettled == {}


def test_expenses_sorted_by_date_with_payer_names(bali_ledger):
    bali_ledger.expenses.append(make_expense(50, "ghost", Category.OTHER, date=1_600_000_000_000, id="e3"))
    report = build_report(bali_ledger)

    assert [e.id for e in report.expenses] == ["e3", "e2", "e1"]
    assert [e.payer_name for e in report.expenses] == [UNKNOWN_GROUP, "Family 1", "Family 1"]


def test_unattributed_expense_shows_as_unsettled(two_families):
    ledger = Ledger(name="Odd", groups=two_families, expenses=[make_expense(60, "ghost")])
    report = build_report(ledger)

    assert report.settlements == []
    assert report.unsettled == pytest.approx({"f1": -40, "f2": -20})
    assert not report.is_settled
    md = render_markdown(report)
    assert "Unresolved balances" in md
    assert "No transfers possible." in md
    assert "All settled" not in md
    text = render_summary(report)
    assert "No transfers possible." in text
    assert "All settled" not in text


def test_zero_rate_omits_base_amounts(bali_ledger):
    bali_ledger.exchange_rate = 0
    report = build_report(bali_ledger)
    assert report.total_base is None
    assert all(e.amount_base is None for e in report.expenses)
    assert "≈" not in render_markdown(report)


def test_markdown_document(bali_ledger):
    md = render_markdown(build_report(bali_ledger), exported_at=datetime(2024, 5, 1, 9, 30))

    assert md.startswith("# Bali Trip - Expense Report\n")
    assert "**Exported**: 2024-05-01 09:30" in md
    assert "**Destination**: Indonesia" in md
    assert "1 CNY = 2000 IDR" in md
    assert "Family 1 (4 people), Family 2 (2 people)" in md
    assert "- Total spent: IDR 600 (≈ CNY 0.30)" in md
    assert "- **Family 1**: paid IDR 600 | share IDR 400 | overpaid IDR 200" in md
    assert "- **Family 2**: paid IDR 0 | share IDR 200 | underpaid IDR 200" in md
    assert "- **Family 2** pays **Family 1**: IDR 200 (≈ CNY 0.10)" in md
    assert "| 2023-11-14 | Dinner | Food | Family 1 | IDR 200 | CNY 0.10 |" in md
    assert md.index("Dinner") < md.index("Villa")


def test_markdown_all_settled(two_families):
    ledger = Ledger(name="Even", groups=two_families,
                    expenses=[make_expense(40, "f1"), make_expense(20, "f2", date=2)])
    md = render_markdown(build_report(ledger))
    assert "All settled, no transfers needed." in md


def test_summary_text(bali_ledger):
    text = render_summary(build_report(bali_ledger))
    assert text.splitlines()[0] == "Bali Trip (Indonesia)"
    assert "Family 2 -> Family 1: IDR 200" in text
    assert "2 expenses, 6 people" in text
