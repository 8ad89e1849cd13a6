"""
CSV export and import functionality for TripLedger
"""
from __future__ import annotations
import csv
from typing import List

from config import parse_category
from models import Expense
from utils import format_date, new_id, parse_date, safe_float

COLUMNS = ['id', 'date', 'description', 'amount', 'category', 'payer_id']


def export_expenses_to_csv(expenses: List[Expense], filepath: str) -> None:
    """
    Export expenses list to CSV file
    CSV columns: id, date (YYYY-MM-DD), description, amount, category, payer_id
    """
    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(COLUMNS)
        for e in expenses:
            writer.writerow([
                e.id,
                format_date(e.date),
                e.description,
                e.amount,
                e.category.value,
                e.payer_id,
            ])


def _parse_csv_date(s: str) -> int:
    """Accept YYYY-MM-DD or raw epoch millis"""
    s = (s or "").strip()
    if s.isdigit():
        return int(s)
    return parse_date(s)


def import_expenses_from_csv(filepath: str) -> List[Expense]:
    """
    Import expenses list from CSV file
    Returns list of Expense objects; rows with a missing or negative amount are rejected.
    """
    expenses = []

    with open(filepath, 'r', encoding='utf-8') as f:
        reader = csv.DictReader(f)
        missing = [c for c in ('date', 'description', 'amount', 'payer_id') if c not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"CSV is missing columns: {', '.join(missing)}")

        for line_no, row in enumerate(reader, start=2):
            amount = safe_float(row['amount'], None)
            if amount is None or amount < 0:
                raise ValueError(f"Line {line_no}: invalid amount {row['amount']!r}")
            try:
                date = _parse_csv_date(row['date'])
            except ValueError as ex:
                raise ValueError(f"Line {line_no}: invalid date {row['date']!r}") from ex

            expenses.append(Expense(
                id=(row.get('id') or '').strip() or new_id(),
                date=date,
                description=row['description'],
                amount=amount,
                category=parse_category(row.get('category')),
                payer_id=row['payer_id'].strip(),
            ))

    return expenses
