"""
validation.py - Pre-processing checks for decoded invoice records.

Errors (block processing):
    - empty input
    - required columns missing from the first record
    - no record carries a tracking or lead shipment number

Warnings (processing continues):
    - more records than the large-file threshold
    - more than one column that looks like a tracking column
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Optional

from columns import CHARGE_DESCRIPTION, LEAD_SHIPMENT_NUMBER, NET_AMOUNT, TRACKING_NUMBER
from config import DEFAULT_LARGE_FILE_THRESHOLD
from logging_config import get_logger
from models import ValidationResult
from normalize import cell_text

logger = get_logger(__name__)

REQUIRED_COLUMNS = [
    TRACKING_NUMBER,
    LEAD_SHIPMENT_NUMBER,
    NET_AMOUNT,
    CHARGE_DESCRIPTION,
]

LARGE_FILE_THRESHOLD = DEFAULT_LARGE_FILE_THRESHOLD


def _has_identifier(record: Mapping[str, Any]) -> bool:
    return bool(
        cell_text(record, TRACKING_NUMBER).strip()
        or cell_text(record, LEAD_SHIPMENT_NUMBER).strip()
    )


def validate_records(
    records: Sequence[Mapping[str, Any]] | None,
    large_file_threshold: Optional[int] = None,
) -> ValidationResult:
    """Validate decoded records before consolidation."""
    errors: list[str] = []
    warnings: list[str] = []
    threshold = large_file_threshold or LARGE_FILE_THRESHOLD

    if not records:
        errors.append("CSV file is empty. Please upload a file with data.")
        logger.warning("validation_error | reason='empty input'")
        return ValidationResult(valid=False, errors=errors, warnings=warnings)

    present_columns = [str(column) for column in records[0].keys()]

    missing = [column for column in REQUIRED_COLUMNS if column not in present_columns]
    if missing:
        errors.append(
            f"Missing required columns: {', '.join(missing)}. "
            "Please ensure your CSV has the correct UPS invoice format."
        )

    if not any(_has_identifier(record) for record in records):
        errors.append("No tracking numbers found in the CSV. Please check your data.")

    if len(records) > threshold:
        warnings.append(
            f"Large file detected ({len(records):,} rows). "
            "Processing may take longer than usual."
        )

    tracking_variants = [column for column in present_columns if "tracking" in column.lower()]
    if len(tracking_variants) > 1:
        warnings.append(
            f"Multiple tracking-related columns found: {', '.join(tracking_variants)}. "
            f'Using "{TRACKING_NUMBER}" column.'
        )

    for error in errors:
        logger.warning("validation_error | message=%r", error)
    for warning in warnings:
        logger.warning("validation_warning | message=%r", warning)

    logger.info(
        "validation_complete | rows=%s | valid=%s | errors=%s | warnings=%s",
        len(records),
        not errors,
        len(errors),
        len(warnings),
    )
    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)
