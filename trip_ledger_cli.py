"""
TripLedger command line
- Record shared trip expenses paid by groups (families) of different sizes.
- Show who owes whom, split by headcount, and export Markdown / Excel / CSV / JSON.

Run:
  python trip_ledger_cli.py --help

Dependencies:
  pip install openpyxl requests loguru
"""
from __future__ import annotations
import argparse
import logging
import sys
from typing import Optional, Sequence

from config import CATEGORY_CHOICES, load_ledger_file, load_settings, parse_category, save_ledger_file
from csv_handler import export_expenses_to_csv, import_expenses_from_csv
from excel_export import export_excel
from ledger_actions import (
    add_expense,
    add_group,
    clear_expenses,
    delete_expense,
    remove_group,
    rename_ledger,
    set_destination,
    set_exchange_rate,
    update_group,
)
from logging_config import setup_logging
from models import Ledger
from rates import fetch_rate
from report import build_report, render_markdown, render_summary
from storage import LedgerNotFoundError, LedgerStore
from utils import parse_date, today_millis

logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="trip-ledger", description="Split shared trip expenses between families.")
    parser.add_argument("--home", default=None, help="Data directory (default: $TRIP_LEDGER_HOME or ~/.trip_ledger).")
    parser.add_argument("--ledger", "-l", default=None, help="Ledger id (default: most recently used).")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("new", help="Create a ledger.")
    p.add_argument("name")
    p.add_argument("--destination", default=None)
    p.add_argument("--currency", default=None, help="Destination currency code (e.g., IDR).")
    p.add_argument("--fetch-rate", action="store_true", help="Fetch the current exchange rate.")

    sub.add_parser("list", help="List ledgers.")
    p = sub.add_parser("delete-ledger", help="Delete a ledger.")
    p.add_argument("ledger_id")

    p = sub.add_parser("show", help="Print balances and the settlement plan.")
    p.add_argument("--markdown", action="store_true")

    p = sub.add_parser("add", help="Add an expense.")
    p.add_argument("description")
    p.add_argument("amount")
    p.add_argument("--payer", required=True, help="Group id or name.")
    p.add_argument("--date", default=None, help="YYYY-MM-DD (default: today).")
    p.add_argument("--category", default="Other", choices=CATEGORY_CHOICES)

    p = sub.add_parser("delete", help="Delete an expense.")
    p.add_argument("expense_id")
    sub.add_parser("clear", help="Delete all expenses.")

    p = sub.add_parser("group-add", help="Add a group.")
    p.add_argument("--name", default=None)
    p.add_argument("--count", type=int, default=2)
    p = sub.add_parser("group-remove", help="Remove a group.")
    p.add_argument("group")
    p = sub.add_parser("group-update", help="Rename or recount a group.")
    p.add_argument("group")
    p.add_argument("--name", default=None)
    p.add_argument("--count", type=int, default=None)

    p = sub.add_parser("settings", help="Change ledger name or destination.")
    p.add_argument("--name", default=None)
    p.add_argument("--destination", default=None)
    p.add_argument("--currency", default=None)

    p = sub.add_parser("rate", help="Show, set or fetch the exchange rate.")
    p.add_argument("value", nargs="?", default=None)
    p.add_argument("--fetch", action="store_true")

    p = sub.add_parser("export", help="Export the ledger.")
    p.add_argument("--format", "-f", choices=["json", "markdown", "excel", "csv"], default="markdown")
    p.add_argument("--out", "-o", required=True)

    p = sub.add_parser("import", help="Import a JSON backup (new ledger) or CSV expenses.")
    p.add_argument("path")
    p.add_argument("--format", "-f", choices=["json", "csv"], default="json")
    p.add_argument("--replace", action="store_true", help="CSV: replace current expenses instead of appending.")
    return parser.parse_args(argv)


def _resolve_group(ledger: Ledger, key: str) -> str:
    """Group id from an id or a (case-insensitive) name"""
    for g in ledger.groups:
        if g.id == key:
            return g.id
    for g in ledger.groups:
        if g.name.lower() == key.lower():
            return g.id
    return key


def _active_id(store: LedgerStore, args: argparse.Namespace) -> str:
    ledger_id = args.ledger or store.most_recent()
    if not ledger_id:
        raise LedgerNotFoundError("No ledger yet, create one with 'new'.")
    return ledger_id


def _refresh_rate(ledger: Ledger, url: str) -> bool:
    rate = fetch_rate(ledger.base_currency, ledger.destination_currency, url=url)
    if rate is None:
        return False
    set_exchange_rate(ledger, rate)
    return True


def run(args: argparse.Namespace) -> int:
    settings = load_settings()
    if args.home:
        settings.home = args.home
    store = LedgerStore(settings.data_dir())
    eps = settings.settlement_epsilon
    cmd = args.command

    if cmd == "new":
        ledger_id = store.create(args.name)
        ledger = store.get(ledger_id)
        if args.destination or args.currency:
            set_destination(ledger, args.destination or "", args.currency)
            ledger.name = args.name
        if args.fetch_rate and not _refresh_rate(ledger, settings.rate_url):
            print("Could not fetch exchange rate, keeping default.", file=sys.stderr)
        store.save(ledger_id, ledger)
        print(ledger_id)
        return 0

    if cmd == "list":
        for m in store.list():
            print(f"{m.id}  {m.name}")
        return 0

    if cmd == "delete-ledger":
        if not store.delete(args.ledger_id):
            raise LedgerNotFoundError(args.ledger_id)
        return 0

    if cmd == "import" and args.format == "json":
        ledger = load_ledger_file(args.path)
        print(store.create(ledger.name, ledger))
        return 0

    ledger_id = _active_id(store, args)
    ledger = store.get(ledger_id)
    changed = True

    if cmd == "show":
        report = build_report(ledger, eps)
        sys.stdout.write(render_markdown(report) if args.markdown else render_summary(report))
        changed = False
    elif cmd == "add":
        date = parse_date(args.date) if args.date else today_millis()
        e = add_expense(ledger, args.description, args.amount, _resolve_group(ledger, args.payer), date,
                        parse_category(args.category))
        print(e.id)
    elif cmd == "delete":
        if not delete_expense(ledger, args.expense_id):
            raise LedgerNotFoundError(args.expense_id)
    elif cmd == "clear":
        print(f"Removed {clear_expenses(ledger)} expenses.")
    elif cmd == "group-add":
        print(add_group(ledger, args.name, args.count).id)
    elif cmd == "group-remove":
        remove_group(ledger, _resolve_group(ledger, args.group))
    elif cmd == "group-update":
        update_group(ledger, _resolve_group(ledger, args.group), args.name, args.count)
    elif cmd == "settings":
        if args.destination is not None or args.currency is not None:
            set_destination(ledger, args.destination if args.destination is not None else ledger.destination,
                            args.currency)
        if args.name is not None:
            rename_ledger(ledger, args.name)
    elif cmd == "rate":
        if args.fetch:
            if not _refresh_rate(ledger, settings.rate_url):
                print("Could not fetch exchange rate.", file=sys.stderr)
                return 1
        elif args.value is not None:
            set_exchange_rate(ledger, args.value)
        else:
            changed = False
        print(f"1 {ledger.base_currency} = {ledger.exchange_rate:g} {ledger.destination_currency}")
    elif cmd == "export":
        changed = False
        if args.format == "json":
            save_ledger_file(ledger, args.out)
        elif args.format == "csv":
            export_expenses_to_csv(ledger.expenses, args.out)
        else:
            report = build_report(ledger, eps)
            if args.format == "excel":
                export_excel(report, args.out)
            else:
                with open(args.out, "w", encoding="utf-8") as f:
                    f.write(render_markdown(report))
        logger.info("Exported %r to %s", ledger.name, args.out)
    elif cmd == "import":
        imported = import_expenses_from_csv(args.path)
        if args.replace:
            ledger.expenses = imported
        else:
            ledger.expenses.extend(imported)
        known = {g.id for g in ledger.groups}
        unknown = sum(1 for e in imported if e.payer_id not in known)
        if unknown:
            logger.warning("%d imported expense(s) reference unknown groups", unknown)
        print(f"Imported {len(imported)} expenses.")

    if changed:
        store.save(ledger_id, ledger)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    setup_logging(args.log_level or load_settings().log_level)
    try:
        return run(args)
    except (ValueError, KeyError, OSError) as ex:
        logger.debug("Command %s failed", args.command, exc_info=True)
        msg = ex.args[0] if isinstance(ex, KeyError) and ex.args else ex
        print(f"error: {msg}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
