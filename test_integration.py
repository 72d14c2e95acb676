"""
test_integration.py - End-to-end CLI tests

Runs main.main() against the sample invoice in a temp directory and checks
the files it writes, the JSON summary and the exit codes.

Usage: python test_integration.py   (or: pytest test_integration.py)
"""

from __future__ import annotations

import contextlib
import io
import json
import os
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Optional

import pandas as pd

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from columns import build_column_schema
from invoice_io import load_invoice_csv
from main import ValidationFailed, main as cli_main, run_pipeline


def _symbols() -> tuple[str, str, str]:
    try:
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    except Exception:
        pass

    try:
        "✓✗═".encode(sys.stdout.encoding or "utf-8")
        return "✓", "✗", "═"
    except Exception:
        return "[OK]", "[FAIL]", "="


PASS, FAIL, LINE = _symbols()

SAMPLE_CSV = Path(__file__).resolve().parent / "test_data" / "sample_invoice.csv"


def _run_cli(argv: list[str]) -> tuple[Optional[int], str]:
    """Run the CLI, returning (exit code or None, captured stdout)."""
    buffer = io.StringIO()
    code: Optional[int] = None
    with contextlib.redirect_stdout(buffer):
        try:
            cli_main(argv)
        except SystemExit as exc:
            code = exc.code if isinstance(exc.code, int) else 1
    return code, buffer.getvalue()


def main() -> int:
    passed = 0
    failed = 0

    def check(name: str, condition: bool) -> None:
        nonlocal passed, failed
        if condition:
            passed += 1
            print(f"    {PASS} {name}")
        else:
            failed += 1
            print(f"    {FAIL} {name}")

    print(LINE * 56)
    print("  CLI Integration Tests")
    print(LINE * 56)

    with tempfile.TemporaryDirectory(prefix="consolidate-cli-") as tmp:
        tmp_dir = Path(tmp)
        invoice = tmp_dir / "ups_march.csv"
        shutil.copy(SAMPLE_CSV, invoice)

        print("\n  run_pipeline:")
        result, warnings = run_pipeline(str(invoice))
        check("pipeline succeeds", result.stats.is_success)
        check("five shipments", len(result.consolidated) == 5)
        check("no warnings", warnings == [])

        _, pipeline_warnings = run_pipeline(str(invoice), large_file_threshold=2)
        check("threshold override produces warning", len(pipeline_warnings) == 1)

        print("\n  Default output:")
        code, output = _run_cli(["--csv", str(invoice)])
        default_target = tmp_dir / "consolidated_ups_march.csv"
        check("exit code 0 (no SystemExit)", code is None)
        check("default output written next to input", default_target.exists())
        check("text summary printed", "Processing Summary - 38% row reduction" in output)
        check("output path printed", str(default_target) in output)
        if default_target.exists():
            rows = load_invoice_csv(str(default_target))
            header = default_target.read_text(encoding="utf-8").splitlines()[0]
            check("header is the run schema", header.split(",") == build_column_schema(3))
            check("five data rows", len(rows) == 5)
            check("blank-id rows kept", sum(1 for r in rows if r["Tracking Number"] == "") == 2)

        print("\n  All outputs + JSON:")
        out_path = tmp_dir / "out" / "shipments.csv"
        removed_path = tmp_dir / "out" / "removed.csv"
        code, output = _run_cli(
            ["--csv", str(invoice), "--out", str(out_path), "--xlsx", "--removed", str(removed_path), "--json"]
        )
        check("exit code 0", code is None)
        check("custom output written", out_path.exists())
        check("xlsx written beside output", out_path.with_suffix(".xlsx").exists())
        check("removed rows written", removed_path.exists())
        payload: dict = {}
        try:
            payload = json.loads(output)
        except ValueError:
            pass
        check("stdout is JSON", bool(payload))
        check("JSON status", payload.get("status") == "success")
        check("JSON lists three outputs", len(payload.get("outputs", [])) == 3)
        check("JSON stats", payload.get("stats", {}).get("removed_charges") == 2)
        if out_path.with_suffix(".xlsx").exists():
            sheet = pd.read_excel(out_path.with_suffix(".xlsx"), dtype=str, keep_default_na=False)
            check("xlsx matches csv row count", len(sheet) == 5)
        if removed_path.exists():
            removed = load_invoice_csv(str(removed_path))
            check(
                "removed file holds the zero lines",
                [r["Charge Description"] for r in removed] == ["Adj", "Misc"],
            )

        print("\n  Failures:")
        code, output = _run_cli(["--csv", str(tmp_dir / "missing.csv")])
        check("missing file exits 1", code == 1)
        check("missing file message", "Invoice CSV not found" in output)

        no_ids = tmp_dir / "no_ids.csv"
        no_ids.write_text(
            "Tracking Number,Lead Shipment Number,Net Amount,Charge Description\n,,1.00,Fuel\n",
            encoding="utf-8",
        )
        code, output = _run_cli(["--csv", str(no_ids)])
        check("validation error exits 1", code == 1)
        check("validation message printed", "No tracking numbers found" in output)
        check("no output written on validation error", not (tmp_dir / "consolidated_no_ids.csv").exists())

        try:
            run_pipeline(str(no_ids))
            check("run_pipeline raises ValidationFailed", False)
        except ValidationFailed as exc:
            check("run_pipeline raises ValidationFailed", exc.errors == ["No tracking numbers found in the CSV. Please check your data."])

        empty = tmp_dir / "empty.csv"
        empty.write_text("", encoding="utf-8")
        code, output = _run_cli(["--csv", str(empty)])
        check("empty file exits 1", code == 1)
        check("empty file message", "CSV file is empty" in output)

        code, _ = _run_cli([])
        check("missing --csv is a usage error", code == 2)

    total = passed + failed
    print(f"\n{LINE * 56}")
    print(f"  Results: {passed}/{total} passed")
    if failed == 0:
        print(f"  CLI integration complete {PASS}")
    print(f"{LINE * 56}")
    return failed


def test_integration_checks() -> None:
    assert main() == 0, "CLI integration checks failed (see captured output)"


if __name__ == "__main__":
    raise SystemExit(1 if main() else 0)
