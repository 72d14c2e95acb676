"""
test_columns.py - Column schema synthesis tests

Usage: python test_columns.py   (or: pytest test_columns.py)
"""

from __future__ import annotations

import os
import random
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from columns import (
    BASE_COLUMNS,
    build_column_schema,
    charge_column_sort_key,
    charge_columns,
    charge_suffix,
    consolidated_headers,
    is_charge_column,
)


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

    print(LINE * 46)
    print("  Column Schema Tests")
    print(LINE * 46)

    print("\n  Suffixes:")
    check("index 1 is unsuffixed", charge_suffix(1) == "")
    check("index 2 -> '.2'", charge_suffix(2) == ".2")
    check("index 12 -> '.12'", charge_suffix(12) == ".12")
    try:
        charge_suffix(0)
        check("index 0 rejected", False)
    except ValueError:
        check("index 0 rejected", True)
    check(
        "charge_columns(3) triple",
        charge_columns(3) == ["Charge Description.3", "Incentive Amount.3", "Net Amount.3"],
    )

    print("\n  Classification:")
    check("'Net Amount' is a charge column", is_charge_column("Net Amount"))
    check("'Incentive Amount.10' is a charge column", is_charge_column("Incentive Amount.10"))
    check("'Total Shipment Cost' is not", not is_charge_column("Total Shipment Cost"))
    check("'Tracking Number' is not", not is_charge_column("Tracking Number"))
    check("unsuffixed sorts before '.2'", charge_column_sort_key("Net Amount") < charge_column_sort_key("Charge Description.2"))
    check(
        "'.2' sorts before '.10' (numeric, not lexical)",
        charge_column_sort_key("Net Amount.2") < charge_column_sort_key("Charge Description.10"),
    )

    print("\n  build_column_schema:")
    check("0 charges -> base columns only", build_column_schema(0) == BASE_COLUMNS)
    check("12 base columns", len(BASE_COLUMNS) == 12)
    check("base starts with Account Number", BASE_COLUMNS[0] == "Account Number")
    check("base ends with Total Shipment Cost", BASE_COLUMNS[-1] == "Total Shipment Cost")

    schema = build_column_schema(3)
    check("3 charges -> 12 + 9 columns", len(schema) == 21)
    check(
        "charge columns follow base in order",
        schema[12:]
        == [
            "Charge Description", "Incentive Amount", "Net Amount",
            "Charge Description.2", "Incentive Amount.2", "Net Amount.2",
            "Charge Description.3", "Incentive Amount.3", "Net Amount.3",
        ],
    )
    check("no duplicate columns", len(set(schema)) == len(schema))
    check("negative max treated as 0", build_column_schema(-1) == BASE_COLUMNS)

    wide = build_column_schema(11)
    suffixes = [charge_column_sort_key(c)[0] for c in wide if is_charge_column(c)]
    distinct = sorted(set(suffixes))
    check("suffixes contiguous (0 then 2..11)", distinct == [0] + list(range(2, 12)))
    check("each suffix has exactly one triple", all(suffixes.count(s) == 3 for s in distinct))

    print("\n  consolidated_headers:")
    rows: list[dict[str, str]] = [dict.fromkeys(build_column_schema(n), "") for n in (1, 11, 4)]
    rng = random.Random(7)
    for row in rows:
        items = list(row.items())
        rng.shuffle(items)
        row.clear()
        row.update(items)
    check("headers from shuffled rows == schema(max)", consolidated_headers(rows) == build_column_schema(11))
    check("empty rows -> base columns", consolidated_headers([]) == BASE_COLUMNS)
    check(
        "non-charge extras are ignored",
        consolidated_headers([{"Extra": "", "Net Amount": ""}]) == BASE_COLUMNS + ["Net Amount"],
    )

    total = passed + failed
    print(f"\n{LINE * 46}")
    print(f"  Results: {passed}/{total} passed")
    print(f"{LINE * 46}")
    return failed


def test_columns_checks() -> None:
    assert main() == 0, "column schema checks failed (see captured output)"


if __name__ == "__main__":
    raise SystemExit(1 if main() else 0)
