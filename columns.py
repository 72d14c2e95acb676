"""
columns.py - Column names and charge-column schema synthesis.

Input columns come straight from the carrier invoice export. Output columns
are the fixed base columns followed by one numbered triple per kept charge:

    Charge Description,   Incentive Amount,   Net Amount      (charge 1)
    Charge Description.2, Incentive Amount.2, Net Amount.2    (charge 2)
    ...

The schema for a run is base + triples 1..N, where N is the largest kept
charge count of any shipment in the run. Ordering is by suffix number
(unsuffixed = 0), then by role.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

# =============================================================================
# INPUT COLUMNS
# =============================================================================

ACCOUNT_NUMBER = "Account Number"
INVOICE_DATE = "Invoice Date"
INVOICE_NUMBER = "Invoice Number"
TRACKING_NUMBER = "Tracking Number"
LEAD_SHIPMENT_NUMBER = "Lead Shipment Number"
SENDER_POSTAL = "Sender Postal"
RECEIVER_POSTAL = "Receiver Postal"
BILLED_WEIGHT = "Billed Weight"
ENTERED_WEIGHT = "Entered Weight"
DETAIL_KEYED_DIM = "Detail Keyed Dim"
CHARGE_DESCRIPTION = "Charge Description"
INCENTIVE_AMOUNT = "Incentive Amount"
NET_AMOUNT = "Net Amount"

INPUT_COLUMNS = [
    ACCOUNT_NUMBER,
    INVOICE_DATE,
    INVOICE_NUMBER,
    TRACKING_NUMBER,
    LEAD_SHIPMENT_NUMBER,
    SENDER_POSTAL,
    RECEIVER_POSTAL,
    BILLED_WEIGHT,
    ENTERED_WEIGHT,
    DETAIL_KEYED_DIM,
    CHARGE_DESCRIPTION,
    INCENTIVE_AMOUNT,
    NET_AMOUNT,
]

# =============================================================================
# OUTPUT COLUMNS
# =============================================================================

LENGTH = "Length"
WIDTH = "Width"
HEIGHT = "Height"
TOTAL_SHIPMENT_COST = "Total Shipment Cost"

BASE_COLUMNS = [
    ACCOUNT_NUMBER,
    INVOICE_DATE,
    INVOICE_NUMBER,
    TRACKING_NUMBER,
    SENDER_POSTAL,
    RECEIVER_POSTAL,
    BILLED_WEIGHT,
    ENTERED_WEIGHT,
    LENGTH,
    WIDTH,
    HEIGHT,
    TOTAL_SHIPMENT_COST,
]

# Role order inside each numbered triple.
CHARGE_FIELDS = (CHARGE_DESCRIPTION, INCENTIVE_AMOUNT, NET_AMOUNT)

_SUFFIX_RE = re.compile(r"\.(\d+)$")


def charge_suffix(index: int) -> str:
    """Column suffix for the 1-based charge index (first charge is unsuffixed)."""
    if index < 1:
        raise ValueError(f"charge index must be >= 1, got {index}")
    return "" if index == 1 else f".{index}"


def charge_columns(index: int) -> list[str]:
    """The (description, incentive, net) column names for one charge index."""
    suffix = charge_suffix(index)
    return [f"{field}{suffix}" for field in CHARGE_FIELDS]


def charge_role(column: str) -> int | None:
    """Index of the charge role a column belongs to, or None for other columns."""
    base = _SUFFIX_RE.sub("", column)
    try:
        return CHARGE_FIELDS.index(base)
    except ValueError:
        return None


def is_charge_column(column: str) -> bool:
    return charge_role(column) is not None


def charge_column_sort_key(column: str) -> tuple[int, int]:
    """Sort key: (suffix number, role). Unsuffixed columns sort as suffix 0."""
    match = _SUFFIX_RE.search(column)
    suffix = int(match.group(1)) if match else 0
    role = charge_role(column)
    return suffix, len(CHARGE_FIELDS) if role is None else role


def build_column_schema(max_charges: int) -> list[str]:
    """Base columns followed by charge triples 1..max_charges."""
    columns = list(BASE_COLUMNS)
    for index in range(1, max(0, max_charges) + 1):
        columns.extend(charge_columns(index))
    return columns


def consolidated_headers(rows: Iterable[Mapping[str, object]]) -> list[str]:
    """Derive the ordered column list from the keys present in consolidated rows.

    Every charge column seen in any row is included once, sorted with
    `charge_column_sort_key`, after the base columns. An empty input yields
    the base columns alone.
    """
    seen: set[str] = set()
    for row in rows:
        for column in row.keys():
            if is_charge_column(column):
                seen.add(column)
    # Name breaks ties such as "Net Amount.2" vs "Net Amount.02".
    ordered = sorted(seen, key=lambda column: (charge_column_sort_key(column), column))
    return list(BASE_COLUMNS) + ordered
