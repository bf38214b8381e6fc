"""Row sources: spreadsheet and CSV ingestion."""

import csv
import logging
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Sequence

from openpyxl import load_workbook

from autodraw.types import CellValue, Row

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = (".xlsx", ".xlsm")


def _cell(value: Any) -> CellValue:
    """Normalize a spreadsheet cell; empty cells become ""."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat() if value.time() == time(0) else value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def read_excel(path: Path, sheet: str | None = None) -> list[dict[str, CellValue]]:
    """
    Read rows from a workbook.

    The first row holds column names; each following non-empty row becomes
    one record. Columns without a header are ignored.

    Args:
        path: Path to an .xlsx/.xlsm file.
        sheet: Worksheet name (defaults to the first sheet).

    Returns:
        Records in sheet order.

    Raises:
        ValueError: If the named worksheet doesn't exist.
    """
    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        if sheet and sheet not in workbook.sheetnames:
            raise ValueError(f"Worksheet '{sheet}' not found in {path.name}")
        worksheet = workbook[sheet] if sheet else workbook.worksheets[0]
        rows = worksheet.iter_rows(values_only=True)

        header = next(rows, None)
        if header is None:
            return []
        columns = [(i, str(name).strip()) for i, name in enumerate(header) if name is not None and str(name).strip()]

        records: list[dict[str, CellValue]] = []
        for values in rows:
            if all(v is None or v == "" for v in values):
                continue
            records.append({
                name: _cell(values[i]) if i < len(values) else ""
                for i, name in columns
            })
        return records
    finally:
        workbook.close()


def read_csv(path: Path) -> list[dict[str, CellValue]]:
    """
    Read rows from a CSV file (UTF-8, BOM tolerated).

    Args:
        path: Path to a .csv file.

    Returns:
        Records in file order; all values are strings.
    """
    with open(path, newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        return [
            {key: value if value is not None else "" for key, value in record.items() if key}
            for record in reader
            if any(value for value in record.values())
        ]


def read_rows(path: Path, sheet: str | None = None) -> list[dict[str, CellValue]]:
    """
    Read rows from a spreadsheet or CSV file, chosen by extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the extension isn't supported.
    """
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    suffix = path.suffix.lower()
    if suffix in EXCEL_SUFFIXES:
        records = read_excel(path, sheet)
    elif suffix == ".csv":
        records = read_csv(path)
    else:
        raise ValueError(f"Unsupported data file type '{suffix}'. Use .xlsx, .xlsm or .csv")

    logger.info(f"Read {len(records)} row(s) from {path.name}")
    return records


def get_field_names(rows: Sequence[Row]) -> list[str]:
    """Column names of a row source (taken from the first row)."""
    if not rows:
        return []
    return list(rows[0].keys())
