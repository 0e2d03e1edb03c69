"""
PDF report for a stored upload, drawn with ReportLab.

The report is built in memory and streamed straight back to the client, so
nothing is written under MEDIA_ROOT.
"""
from __future__ import annotations

from datetime import datetime
from io import BytesIO
from typing import Sequence

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

TABLE_COLUMNS = [
    ("Equipment Name", 40),
    ("Type", 190),
    ("Flowrate", 310),
    ("Pressure", 390),
    ("Temperature", 470),
]


def _fmt(value: float | None) -> str:
    return "-" if value is None else f"{value:.2f}"


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def build_upload_report(upload, rows: Sequence, max_rows: int = 50) -> bytes:
    """
    Render the summary of `upload` plus the first `max_rows` rows.

    `rows` only needs `equipment_name`, `equipment_type`, `flowrate`,
    `pressure` and `temperature` attributes, so model instances and
    `NormalizedRow` objects both work.
    """
    summary = upload.summary or {}

    buffer = BytesIO()
    pdf_canvas = canvas.Canvas(buffer, pagesize=A4)
    _, height = A4

    y = height - 50

    def next_line(step: int, font: str = "Helvetica", size: int = 10) -> None:
        nonlocal y
        y -= step
        if y < 60:
            pdf_canvas.showPage()
            y = height - 50
            pdf_canvas.setFont(font, size)

    pdf_canvas.setFont("Helvetica-Bold", 16)
    pdf_canvas.drawString(40, y, "Chemical Equipment Report")
    next_line(25)

    pdf_canvas.setFont("Helvetica", 10)
    pdf_canvas.drawString(40, y, f"Generated: {datetime.now():%Y-%m-%d %H:%M:%S}")
    next_line(15)
    pdf_canvas.drawString(40, y, f"File: {upload.filename}")
    next_line(30)

    pdf_canvas.setFont("Helvetica-Bold", 12)
    pdf_canvas.drawString(40, y, "Summary Statistics")
    next_line(20)

    pdf_canvas.setFont("Helvetica", 10)
    stats_lines = [
        f"Total Equipment: {upload.record_count}",
        f"Avg Flowrate: {summary.get('avgFlowrate', 0):.2f}",
        f"Avg Pressure: {summary.get('avgPressure', 0):.2f}",
        f"Avg Temperature: {summary.get('avgTemperature', 0):.2f}",
    ]
    for line in stats_lines:
        pdf_canvas.drawString(60, y, line)
        next_line(15)
    next_line(10)

    pdf_canvas.setFont("Helvetica-Bold", 12)
    pdf_canvas.drawString(40, y, "Equipment Type Distribution")
    next_line(20)

    pdf_canvas.setFont("Helvetica", 10)
    for equipment_type, count in summary.get("typeDistribution", {}).items():
        pdf_canvas.drawString(60, y, f"{equipment_type}: {count}")
        next_line(15)
    next_line(10)

    pdf_canvas.setFont("Helvetica-Bold", 12)
    pdf_canvas.drawString(40, y, f"Equipment Data (first {max_rows} rows)")
    next_line(20)

    pdf_canvas.setFont("Helvetica-Bold", 9)
    for title, x in TABLE_COLUMNS:
        pdf_canvas.drawString(x, y, title)
    next_line(14, size=9)

    pdf_canvas.setFont("Helvetica", 9)
    for row in list(rows)[:max_rows]:
        cells = [
            _truncate(row.equipment_name, 28),
            _truncate(row.equipment_type, 22),
            _fmt(row.flowrate),
            _fmt(row.pressure),
            _fmt(row.temperature),
        ]
        for (_, x), cell in zip(TABLE_COLUMNS, cells):
            pdf_canvas.drawString(x, y, cell)
        next_line(13, size=9)

    pdf_canvas.showPage()
    pdf_canvas.save()
    return buffer.getvalue()
