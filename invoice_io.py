"""
invoice_io.py - Decode invoice CSVs and encode consolidated output.

Reading:
    load_invoice_csv(source)            -> list of records (all cells as text)

Writing:
    export_csv(rows, columns)           -> CSV text in schema order
    export_xlsx(rows, columns)          -> XLSX workbook bytes
    export_removed_csv(removed_rows)    -> removed charge lines, original columns

Naming:
    consolidated_filename(name, ext)    -> 'consolidated_<name><ext>'
"""

from __future__ import annotations

import io
import os
import re
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Union

import pandas as pd

from logging_config import get_logger

logger = get_logger(__name__)

CsvSource = Union[str, os.PathLike, bytes]

_CSV_SUFFIX_RE = re.compile(r"\.csv$", re.IGNORECASE)
DEFAULT_SHEET_NAME = "Consolidated"


def _read_csv_text(buffer: Any) -> pd.DataFrame:
    return pd.read_csv(
        buffer,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
    )


def _decode_frame(source: CsvSource, label: str) -> pd.DataFrame:
    """Read a CSV as text cells, trying UTF-8 (with BOM) then latin-1."""
    for encoding in ("utf-8-sig", "latin-1"):
        try:
            if isinstance(source, bytes):
                return _read_csv_text(io.StringIO(source.decode(encoding)))
            with open(source, "r", encoding=encoding, newline="") as handle:
                return _read_csv_text(handle)
        except UnicodeDecodeError:
            logger.warning(
                "csv_encoding_warning | source=%s | reason='%s decode failed' | fallback=latin-1",
                label,
                encoding,
            )
            continue
        except pd.errors.EmptyDataError:
            return pd.DataFrame()
        except (pd.errors.ParserError, ValueError) as exc:
            raise ValueError(f"Failed to parse CSV: {exc}") from exc
    raise ValueError(f"Failed to decode CSV '{label}' as UTF-8 or latin-1")


def load_invoice_csv(source: CsvSource) -> list[dict[str, str]]:
    """Load an invoice export into plain records.

    Every cell is kept as text, exactly as written; empty cells are ''.
    Column names are stripped of surrounding whitespace. A file holding only
    a header decodes to an empty list.
    """
    if source is None:
        raise ValueError("CSV source cannot be None")

    if isinstance(source, bytes):
        label = "<upload>"
    else:
        label = str(source).strip()
        if not label:
            raise ValueError("CSV path cannot be empty")
        if not Path(label).exists():
            raise FileNotFoundError(f"Invoice CSV not found: {label}")

    df = _decode_frame(source, label)
    df.columns = [str(column).strip() for column in df.columns]
    # Short rows leave NaN in trailing cells even with keep_default_na=False.
    records = df.fillna("").to_dict(orient="records")

    logger.info(
        "csv_loaded | source=%s | rows=%s | columns=%s",
        label,
        len(records),
        len(df.columns),
    )
    return records


def records_frame(rows: Sequence[Mapping[str, Any]], columns: Sequence[str]) -> pd.DataFrame:
    """DataFrame of rows in exactly the given column order, blanks as ''."""
    df = pd.DataFrame(list(rows), columns=list(columns))
    return df.fillna("")


def export_csv(rows: Sequence[Mapping[str, Any]], columns: Sequence[str]) -> str:
    """Render rows as CSV text with `columns` as the header."""
    return records_frame(rows, columns).to_csv(index=False, lineterminator="\n")


def export_xlsx(
    rows: Sequence[Mapping[str, Any]],
    columns: Sequence[str],
    sheet_name: str = DEFAULT_SHEET_NAME,
) -> bytes:
    """Render rows as an XLSX workbook with `columns` as the header row."""
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        records_frame(rows, columns).to_excel(writer, index=False, sheet_name=sheet_name)
    return output.getvalue()


def removed_columns(removed_rows: Sequence[Mapping[str, Any]]) -> list[str]:
    """Union of the removed records' columns, in first-seen order."""
    columns: list[str] = []
    seen: set[str] = set()
    for row in removed_rows:
        for column in row.keys():
            if column not in seen:
                seen.add(column)
                columns.append(column)
    return columns


def export_removed_csv(removed_rows: Sequence[Mapping[str, Any]]) -> str:
    """Render the removed charge lines with their original columns."""
    return export_csv(removed_rows, removed_columns(removed_rows))


def consolidated_filename(original_filename: str, extension: str = ".csv") -> str:
    """'invoice.CSV' -> 'consolidated_invoice.csv' (or '.xlsx')."""
    name = Path(str(original_filename or "")).name
    stem = _CSV_SUFFIX_RE.sub("", name) or "invoice"
    return f"consolidated_{stem}{extension}"
