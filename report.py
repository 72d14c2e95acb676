"""
report.py - Human-readable and JSON-ready run summaries.

This module converts ProcessingStats into:
- terminal-friendly text output for CLI usage
- machine-friendly dictionary output for the API and --json
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from logging_config import get_logger
from models import ConsolidationResult, ProcessingStats

logger = get_logger(__name__)

OUTPUT_WIDTH = 56
SEPARATOR = "=" * OUTPUT_WIDTH


def format_currency(amount: float) -> str:
    """Format a number as '$1,234.56' ('-$12.00' for credits)."""
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return "$0.00"
    sign = "-" if value < 0 and round(value, 2) != 0 else ""
    return f"{sign}${abs(value):,.2f}"


def summary_items(stats: ProcessingStats) -> list[tuple[str, str]]:
    """Label/value pairs shown in the processing summary."""
    return [
        ("Original Rows", f"{stats.total_rows:,}"),
        ("Consolidated", f"{stats.shipment_groups:,}"),
        ("Charges Kept", f"{stats.kept_charges:,}"),
        ("Rows Removed", f"{stats.removed_charges:,}"),
        ("Max / Tracking", str(stats.max_charges_per_tracking)),
        ("Total Amount", format_currency(stats.total_net_amount)),
    ]


def format_summary(stats: ProcessingStats | None, warnings: Optional[Sequence[str]] = None) -> str:
    """Format run statistics into a text block."""
    if stats is None:
        logger.error("report_input_error | stats_none=True | fallback=error_block")
        return "\n" + SEPARATOR + "\n  ERROR: No processing data available\n" + SEPARATOR + "\n"

    lines: list[str] = ["", SEPARATOR]

    if stats.status == "error":
        lines.append("  Processing Failed")
        lines.append(SEPARATOR)
        lines.append("")
        lines.append(f"  Error: {stats.error_message or 'An error occurred during processing'}")
    else:
        lines.append(f"  Processing Summary - {stats.row_reduction_pct}% row reduction")
        lines.append(SEPARATOR)
        lines.append("")
        for label, value in summary_items(stats):
            lines.append(f"  {label + ':':<16} {value}")

        if stats.shipment_groups > stats.unique_trackings:
            missing = stats.shipment_groups - stats.unique_trackings
            lines.append("")
            lines.append(f"  NOTE: {missing} row(s) had no tracking or lead shipment number")

    if warnings:
        lines.append("")
        lines.append("  Warnings:")
        for warning in warnings:
            lines.append(f"    • {warning}")

    lines.append("")
    lines.append(SEPARATOR)
    lines.append("")
    return "\n".join(lines)


def format_summary_json(
    result: ConsolidationResult | None,
    warnings: Optional[Sequence[str]] = None,
) -> dict[str, Any]:
    """Format a consolidation result as a JSON-compatible summary dict."""
    if result is None:
        logger.error("report_json_input_error | result_none=True | fallback=error_payload")
        return {
            "status": "error",
            "error_message": "No processing data available",
            "stats": ProcessingStats(status="error").model_dump(),
            "row_reduction_pct": 0,
            "column_count": 0,
            "warnings": list(warnings or []),
        }

    stats = result.stats
    stats_section = stats.model_dump()
    stats_section["total_net_amount"] = round(stats.total_net_amount, 2)

    return {
        "status": stats.status,
        "error_message": stats.error_message,
        "stats": stats_section,
        "row_reduction_pct": stats.row_reduction_pct,
        "column_count": len(result.columns),
        "warnings": list(warnings or []),
    }
