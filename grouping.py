"""
grouping.py - Shipment grouping and charge filtering.

Two steps of the pipeline live here:
- resolve each charge line's shipment key and partition the input into
  shipment groups (first-seen group order, input order within a group)
- decide per charge line whether it is a real charge worth keeping

Neither step drops records: every input record lands in exactly one group,
and every group member is either kept or removed.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterator, Mapping, Sequence
from typing import Any

from columns import INCENTIVE_AMOUNT, LEAD_SHIPMENT_NUMBER, NET_AMOUNT, TRACKING_NUMBER
from logging_config import get_logger
from models import ShipmentKey
from normalize import cell_text, parse_amount

logger = get_logger(__name__)

Record = Mapping[str, Any]


def resolve_shipment_key(record: Record, sequence: Iterator[int]) -> ShipmentKey:
    """Resolve the shipment key for one record.

    Tracking Number wins when non-blank, then Lead Shipment Number. A record
    with neither draws the next number from `sequence` for a synthetic key.
    """
    tracking = cell_text(record, TRACKING_NUMBER)
    if tracking.strip():
        return ShipmentKey(value=tracking)

    lead = cell_text(record, LEAD_SHIPMENT_NUMBER)
    if lead.strip():
        return ShipmentKey(value=lead)

    return ShipmentKey.for_missing(next(sequence))


def group_by_shipment(records: Sequence[Record]) -> dict[ShipmentKey, list[Record]]:
    """Partition records into shipment groups.

    The synthetic-key sequence is created per call, so concurrent or repeated
    calls never share numbering state.
    """
    sequence = itertools.count()
    groups: dict[ShipmentKey, list[Record]] = {}

    for record in records:
        key = resolve_shipment_key(record, sequence)
        groups.setdefault(key, []).append(record)

    synthetic = sum(1 for key in groups if key.synthetic)
    logger.debug(
        "group_by_shipment | records=%s | groups=%s | synthetic_groups=%s",
        len(records),
        len(groups),
        synthetic,
    )
    return groups


def should_include_charge(record: Record) -> bool:
    """Keep a charge line unless both incentive and net amount are zero."""
    incentive = parse_amount(cell_text(record, INCENTIVE_AMOUNT))
    net = parse_amount(cell_text(record, NET_AMOUNT))
    return incentive != 0 or net != 0


def split_charges(
    records: Sequence[Record],
    predicate: Callable[[Record], bool] = should_include_charge,
) -> tuple[list[Record], list[Record]]:
    """Split a group's records into (kept, removed), preserving order."""
    kept: list[Record] = []
    removed: list[Record] = []
    for record in records:
        if predicate(record):
            kept.append(record)
        else:
            removed.append(record)
    return kept, removed
