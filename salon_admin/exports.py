"""Downloadable sales reports (CSV and Excel)."""
from __future__ import annotations

import csv
import io
from datetime import date, datetime

import pandas as pd

from .analytics import SUNDAY, filter_sales_for_period

EXPORT_PERIODS = ("weekly", "monthly")
EXPORT_FORMATS = {
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}
COLUMNS = ["id", "customer_name", "service", "amount", "date", "staff", "created_at"]


def export_rows(sales) -> list[dict[str, object]]:
    rows = []
    for sale in sales:
        record = sale.to_dict()
        rows.append({column: record.get(column) for column in COLUMNS})
    return rows


def sales_to_csv(sales) -> bytes:
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=COLUMNS)
    writer.writeheader()
    writer.writerows(export_rows(sales))
    content = output.getvalue()
    output.close()
    return content.encode("utf-8")


def sales_to_xlsx(sales) -> bytes:
    frame = pd.DataFrame(export_rows(sales), columns=COLUMNS)
    buffer = io.BytesIO()
    frame.to_excel(buffer, index=False, sheet_name="Sales", engine="openpyxl")
    return buffer.getvalue()


def export_filename(period: str, day: date, fmt: str) -> str:
    return f"sales-report-{period}-{day.isoformat()}.{fmt}"


def build_sales_export(
    sales,
    period: str,
    reference: date | datetime,
    fmt: str = "csv",
    week_start: int = SUNDAY,
) -> tuple[str, bytes, str]:
    """Filter ``sales`` to the current week or month and serialize them.

    Returns ``(filename, content, mimetype)``. Uses the same period
    boundaries as the analytics totals.
    """
    if period not in EXPORT_PERIODS:
        raise ValueError(f"period must be one of {EXPORT_PERIODS}")
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"format must be one of {tuple(EXPORT_FORMATS)}")

    selected = filter_sales_for_period(sales, period, reference, week_start)
    content = sales_to_csv(selected) if fmt == "csv" else sales_to_xlsx(selected)
    day = reference.date() if isinstance(reference, datetime) else reference
    return export_filename(period, day, fmt), content, EXPORT_FORMATS[fmt]
