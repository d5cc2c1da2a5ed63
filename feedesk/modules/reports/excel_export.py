"""Export report data to Excel (XLSX)."""

from io import BytesIO
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Font

from feedesk.modules.reports.schemas import DefaulterRow


def _write_table(ws: Any, rows: list[list[Any]], start_row: int = 1) -> None:
    """Write list of rows to sheet starting at start_row."""
    for i, row in enumerate(rows, start=start_row):
        for j, val in enumerate(row, start=1):
            ws.cell(row=i, column=j, value=val)


def export_defaulters(rows: list[DefaulterRow], generated_on: str) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Defaulters"
    ws.cell(1, 1, f"Fee Defaulters as on {generated_on}")
    ws.cell(1, 1).font = Font(bold=True, size=12)
    headers = [
        "Student ID", "Student Name", "Mobile", "Parent Mobile", "Course", "Batch",
        "Total Fee", "Paid", "Pending", "Status",
    ]
    _write_table(ws, [headers], 3)
    for c in range(1, len(headers) + 1):
        ws.cell(3, c).font = Font(bold=True)
    row = 4
    for r in rows:
        _write_table(ws, [[
            r.student_id, r.student_name, r.student_mobile, r.parent_mobile,
            r.course_name, r.batch, r.total_fee_committed, r.total_paid,
            r.pending_amount, r.status,
        ]], row)
        row += 1
    _write_table(ws, [["TOTAL", "", "", "", "", "",
                      sum(r.total_fee_committed for r in rows),
                      sum(r.total_paid for r in rows),
                      sum(r.pending_amount for r in rows), ""]], row)
    for c in range(1, 10):
        ws.cell(row, c).font = Font(bold=True)
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()
