"""
main.py - CLI orchestration for the invoice consolidator.

This module is orchestration-only:
1. load
2. validate
3. consolidate
4. export + report
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Optional

from config import load_settings
from consolidate import consolidate_rows
from invoice_io import (
    consolidated_filename,
    export_csv,
    export_removed_csv,
    export_xlsx,
    load_invoice_csv,
)
from logging_config import get_logger, level_from_name, setup_logging
from models import ConsolidationResult
from report import format_summary, format_summary_json
from validation import validate_records

logger = get_logger("invoice-consolidator")


class ValidationFailed(ValueError):
    """Raised when decoded input fails the blocking validation checks."""

    def __init__(self, errors: list[str], warnings: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors
        self.warnings = warnings


def _configure_output_symbols() -> tuple[str, str]:
    """Configure stdout encoding and return safe line/fail symbols."""
    try:
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    except Exception:
        pass

    try:
        "═✗".encode(sys.stdout.encoding or "utf-8")
        return "═", "✗"
    except Exception:
        return "=", "X"


BOX_CHAR, FAIL_CHAR = _configure_output_symbols()


def run_pipeline(
    csv_path: str,
    large_file_threshold: Optional[int] = None,
) -> tuple[ConsolidationResult, list[str]]:
    """Load, validate and consolidate one invoice CSV.

    Returns the result and the validation warnings. Raises ValidationFailed
    when the input is rejected and RuntimeError when the engine fails.
    """
    pipeline_start = time.time()
    logger.info("pipeline_start | csv=%s", Path(csv_path).name)

    stage_start = time.time()
    records = load_invoice_csv(csv_path)
    load_time = time.time() - stage_start

    validation = validate_records(records, large_file_threshold=large_file_threshold)
    if not validation.valid:
        raise ValidationFailed(validation.errors, validation.warnings)

    stage_start = time.time()
    result = consolidate_rows(records)
    consolidate_time = time.time() - stage_start

    if result.stats.status == "error":
        raise RuntimeError(result.stats.error_message or "An error occurred during processing")

    logger.info(
        "pipeline_complete | total_duration_s=%.2f | load_s=%.2f | consolidate_s=%.2f",
        time.time() - pipeline_start,
        load_time,
        consolidate_time,
    )
    return result, validation.warnings


def write_outputs(
    result: ConsolidationResult,
    csv_path: str,
    out_path: Optional[str] = None,
    xlsx: bool = False,
    removed_path: Optional[str] = None,
) -> list[Path]:
    """Write the consolidated CSV (and optional XLSX / removed rows). Returns paths written."""
    source = Path(csv_path)
    target = Path(out_path) if out_path else source.with_name(consolidated_filename(source.name))
    target.parent.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    target.write_text(export_csv(result.consolidated, result.columns), encoding="utf-8")
    written.append(target)

    if xlsx:
        xlsx_target = target.with_suffix(".xlsx")
        xlsx_target.write_bytes(export_xlsx(result.consolidated, result.columns))
        written.append(xlsx_target)

    if removed_path:
        removed_target = Path(removed_path)
        removed_target.parent.mkdir(parents=True, exist_ok=True)
        removed_target.write_text(export_removed_csv(result.removed_rows), encoding="utf-8")
        written.append(removed_target)

    for path in written:
        logger.info("output_written | path=%s", path)
    return written


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for the invoice consolidator."""
    settings = load_settings()

    parser = argparse.ArgumentParser(
        prog="invoice-consolidator",
        description=(
            "Shipping Invoice Consolidator\n"
            "Collapses one-row-per-charge invoice exports into one row per "
            "shipment with numbered charge columns."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s --csv invoice.csv\n"
            "  %(prog)s --csv invoice.csv --out out/shipments.csv --xlsx\n"
            "  %(prog)s --csv invoice.csv --removed removed.csv --json\n"
        ),
    )
    parser.add_argument(
        "--csv",
        "-c",
        type=str,
        required=True,
        help="Path to the invoice CSV export (required)",
    )
    parser.add_argument(
        "--out",
        "-o",
        type=str,
        help="Output CSV path (default: consolidated_<name>.csv next to the input)",
    )
    parser.add_argument(
        "--xlsx",
        action="store_true",
        help="Also write an .xlsx workbook next to the output CSV",
    )
    parser.add_argument(
        "--removed",
        type=str,
        help="Write the removed (zero-amount) charge lines to this CSV path",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose (DEBUG-level) logging",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the run summary as JSON instead of formatted text",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs as JSON lines (for production/log aggregation)",
    )

    args = parser.parse_args(argv)
    setup_logging(
        level=logging.DEBUG if args.verbose else level_from_name(settings.log_level),
        json_format=args.log_json or settings.log_json,
    )

    try:
        result, warnings = run_pipeline(args.csv, settings.large_file_threshold)
        written = write_outputs(
            result,
            args.csv,
            out_path=args.out,
            xlsx=args.xlsx,
            removed_path=args.removed,
        )

        if args.json:
            payload = format_summary_json(result, warnings)
            payload["outputs"] = [str(path) for path in written]
            print(json.dumps(payload, indent=2))
        else:
            print(format_summary(result.stats, warnings))
            for path in written:
                print(f"  Wrote {path}")
    except ValidationFailed as exc:
        logger.error("cli_error | type=ValidationFailed | errors=%s", len(exc.errors))
        print(f"\n{BOX_CHAR * 56}")
        for error in exc.errors:
            print(f"  {FAIL_CHAR} {error}")
        for warning in exc.warnings:
            print(f"  ! {warning}")
        print(f"{BOX_CHAR * 56}")
        raise SystemExit(1) from exc
    except FileNotFoundError as exc:
        logger.error("cli_error | type=FileNotFoundError | error=%s", exc)
        print(f"\nError: {exc}")
        raise SystemExit(1) from exc
    except ValueError as exc:
        logger.error("cli_error | type=ValueError | error=%s", exc)
        print(f"\nError: {exc}")
        raise SystemExit(1) from exc
    except RuntimeError as exc:
        logger.error("cli_error | type=RuntimeError | error=%s", exc)
        print(f"\nProcessing failed: {exc}")
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        print("\nInterrupted.")
        raise SystemExit(130)
    except Exception as exc:
        logger.error(
            "cli_error | type=%s | error=%s",
            type(exc).__name__,
            exc,
            exc_info=True,
        )
        print(f"\nUnexpected error: {exc}")
        print("Run with --verbose for full traceback.")
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
