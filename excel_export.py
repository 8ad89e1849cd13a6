"""
Excel export functionality for TripLedger
"""
from __future__ import annotations

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from report import LedgerReport
from utils import currency_decimals, format_date


def _style_header(ws, row=1):
    """Apply header styling to worksheet row"""
    header_font = Font(bold=True, color="FFFFFF")
    fill = PatternFill("solid", fgColor="2C7A7B")
    align = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin", color="A0A0A0")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    for cell in ws[row]:
        cell.font = header_font
        cell.fill = fill
        cell.alignment = align
        cell.border = border


def _autosize_columns(ws, min_width=10, max_width=45):
    """Auto-size columns based on content"""
    for col in range(1, ws.max_column + 1):
        letter = get_column_letter(col)
        max_len = 0
        for cell in ws[letter]:
            v = cell.value
            if v is None:
                continue
            max_len = max(max_len, len(str(v)))
        ws.column_dimensions[letter].width = max(min_width, min(max_width, max_len + 2))


def _number_format(code: str) -> str:
    decimals = currency_decimals(code)
    return "#,##0" if decimals == 0 else "#,##0." + "0" * decimals


def _format_columns(ws, columns, fmt):
    for r in range(2, ws.max_row + 1):
        for c in columns:
            ws.cell(r, c).number_format = fmt


def export_excel(report: LedgerReport, filepath: str) -> None:
    """
    Export a ledger report to an Excel file with sheets:
    - Summary (per group paid / share / balance)
    - Transfers
    - Categories
    - Expenses (date ascending)
    """
    dest = report.destination_currency
    base = report.base_currency
    dest_fmt = _number_format(dest)
    base_fmt = _number_format(base)

    wb = Workbook()
    # remove default sheet
    wb.remove(wb.active)

    # Summary sheet
    ws = wb.create_sheet("Summary")
    ws.append(["Group", "People", f"Paid ({dest})", f"Share ({dest})", f"Balance ({dest})"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for g in report.groups:
        ws.append([g.name, g.count, g.paid, g.share, g.balance])
    last = ws.max_row
    if last >= 2:
        ws.append(["TOTAL", f"=SUM(B2:B{last})"] + [f"=SUM({c}2:{c}{last})" for c in "CDE"])
    else:
        ws.append(["TOTAL", 0, 0, 0, 0])
    trow = ws.max_row
    ws.cell(trow, 1).font = Font(bold=True)
    _format_columns(ws, range(3, 6), dest_fmt)
    ws.append([])
    # differs from the paid column when some expenses have no known payer
    ws.append([f"Total spent ({dest})", report.total])
    ws.cell(ws.max_row, 2).number_format = dest_fmt
    ws.append(["Ledger", report.name])
    ws.append(["Destination", report.destination])
    ws.append(["Exchange rate", f"1 {base} = {report.exchange_rate:g} {dest}"])
    if report.total_base is not None:
        ws.append([f"Total ({base}, approx.)", report.total_base])
        ws.cell(ws.max_row, 2).number_format = base_fmt
    _autosize_columns(ws)

    # Transfers sheet
    ws = wb.create_sheet("Transfers")
    ws.append(["From (Debtor)", "To (Creditor)", f"Amount ({dest})", f"Amount ({base}, approx.)"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for t in report.settlements:
        ws.append([t.from_name, t.to_name, t.amount, t.amount_base])
    _format_columns(ws, [3], dest_fmt)
    _format_columns(ws, [4], base_fmt)
    _autosize_columns(ws)

    # Categories sheet
    ws = wb.create_sheet("Categories")
    ws.append(["Category", f"Amount ({dest})", "Percent"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for c in report.categories:
        ws.append([c.category, c.amount, c.amount / report.total if report.total else 0.0])
    _format_columns(ws, [2], dest_fmt)
    _format_columns(ws, [3], "0.0%")
    _autosize_columns(ws)

    # Expenses sheet
    ws = wb.create_sheet("Expenses")
    ws.append(["Date", "Description", "Category", "Payer", f"Amount ({dest})", f"Amount ({base}, approx.)"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for e in report.expenses:
        ws.append([format_date(e.date), e.description, e.category, e.payer_name, e.amount, e.amount_base])
    if report.expenses:
        last = ws.max_row
        ws.append(["TOTAL", "", "", "", f"=SUM(E2:E{last})", ""])
        ws.cell(ws.max_row, 1).font = Font(bold=True)
    _format_columns(ws, [5], dest_fmt)
    _format_columns(ws, [6], base_fmt)
    _autosize_columns(ws)

    wb.save(filepath)
