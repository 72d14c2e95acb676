"""
consolidate.py - Charge-line to shipment consolidation engine.

Turns N charge-line records into one row per shipment:

    pass 1  group records, split kept/removed charges, resolve base fields,
            total the net amount over the whole group
    pass 2  derive the column schema from the widest group in the run
    pass 3  serialize every shipment against that schema ('' for cells a
            shipment does not use)

Any failure inside the run is returned as a status='error' result with
empty collections; no partial output is ever produced.

Total Shipment Cost is summed over every record of a group, including the
charge lines that were removed from the charge columns.
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from typing import Any

from columns import (
    ACCOUNT_NUMBER,
    BILLED_WEIGHT,
    CHARGE_DESCRIPTION,
    DETAIL_KEYED_DIM,
    ENTERED_WEIGHT,
    HEIGHT,
    INCENTIVE_AMOUNT,
    INVOICE_DATE,
    INVOICE_NUMBER,
    LENGTH,
    NET_AMOUNT,
    RECEIVER_POSTAL,
    SENDER_POSTAL,
    TOTAL_SHIPMENT_COST,
    TRACKING_NUMBER,
    WIDTH,
    build_column_schema,
    charge_columns,
)
from grouping import group_by_shipment, should_include_charge, split_charges
from logging_config import get_logger
from models import ChargeLine, ConsolidationResult, ShipmentKey
from normalize import cell_text, first_non_empty, format_amount, parse_amount, parse_dimensions
from stats import StatsCollector

logger = get_logger(__name__)

Record = Mapping[str, Any]

POSTAL_CODE_LENGTH = 5


def shipment_total(records: Sequence[Record]) -> float:
    """Sum Net Amount over every record given (unparseable cells count as 0)."""
    return sum((parse_amount(cell_text(record, NET_AMOUNT)) for record in records), 0.0)


def charge_line(record: Record) -> ChargeLine:
    """Format one kept record's charge fields for output."""
    return ChargeLine(
        description=cell_text(record, CHARGE_DESCRIPTION),
        incentive_amount=format_amount(cell_text(record, INCENTIVE_AMOUNT)),
        net_amount=format_amount(cell_text(record, NET_AMOUNT)),
    )


def base_fields(key: ShipmentKey, records: Sequence[Record], total: float) -> dict[str, str]:
    """Resolve the shared shipment fields from whichever records carry them."""
    dimensions = parse_dimensions(first_non_empty(records, DETAIL_KEYED_DIM))
    return {
        ACCOUNT_NUMBER: first_non_empty(records, ACCOUNT_NUMBER),
        INVOICE_DATE: first_non_empty(records, INVOICE_DATE),
        INVOICE_NUMBER: first_non_empty(records, INVOICE_NUMBER),
        TRACKING_NUMBER: key.display_value,
        SENDER_POSTAL: first_non_empty(records, SENDER_POSTAL),
        RECEIVER_POSTAL: first_non_empty(records, RECEIVER_POSTAL, truncate=POSTAL_CODE_LENGTH),
        BILLED_WEIGHT: first_non_empty(records, BILLED_WEIGHT),
        ENTERED_WEIGHT: first_non_empty(records, ENTERED_WEIGHT, skip_zero=True),
        LENGTH: dimensions.length,
        WIDTH: dimensions.width,
        HEIGHT: dimensions.height,
        TOTAL_SHIPMENT_COST: format_amount(total),
    }


def layout_charges(charges: Sequence[ChargeLine]) -> dict[str, str]:
    """Assign numbered column triples to a shipment's kept charges, in order."""
    cells: dict[str, str] = {}
    for index, charge in enumerate(charges, start=1):
        cells.update(zip(charge_columns(index), charge.as_cells()))
    return cells


def serialize_row(fields: Mapping[str, str], columns: Sequence[str]) -> dict[str, str]:
    """Project a shipment onto the run schema, filling unused cells with ''."""
    return {column: fields.get(column, "") for column in columns}


def consolidate_rows(records: Sequence[Record]) -> ConsolidationResult:
    """Consolidate charge-line records into one row per shipment.

    Args:
        records: Decoded invoice records in file order.

    Returns:
        ConsolidationResult with schema-complete rows, the removed charge
        lines, the column schema and the run statistics.
    """
    start = time.time()
    records = list(records or [])
    collector = StatsCollector(total_rows=len(records))

    try:
        groups = group_by_shipment(records)

        shipments: list[dict[str, str]] = []
        removed_rows: list[dict[str, Any]] = []

        for key, members in groups.items():
            kept, removed = split_charges(members, should_include_charge)
            total = shipment_total(members)

            fields = base_fields(key, members, total)
            fields.update(layout_charges([charge_line(record) for record in kept]))
            shipments.append(fields)
            removed_rows.extend(dict(record) for record in removed)

            collector.add_group(key, kept=len(kept), removed=len(removed), total=total)
            logger.debug(
                "consolidate_group | key=%r | synthetic=%s | members=%s | kept=%s | removed=%s | total=%.2f",
                key.value,
                key.synthetic,
                len(members),
                len(kept),
                len(removed),
                total,
            )

        columns = build_column_schema(collector.max_charges_per_tracking)
        consolidated = [serialize_row(fields, columns) for fields in shipments]
        stats = collector.finalize()
    except Exception as exc:
        logger.error(
            "consolidate_error | rows=%s | error_type=%s | error=%s",
            len(records),
            type(exc).__name__,
            exc,
            exc_info=True,
        )
        return ConsolidationResult(stats=collector.fail(exc))

    logger.info(
        "consolidate_complete | rows=%s | shipments=%s | unique_trackings=%s | kept=%s | removed=%s | max_charges=%s | total=%.2f | duration_s=%.2f",
        stats.total_rows,
        stats.shipment_groups,
        stats.unique_trackings,
        stats.kept_charges,
        stats.removed_charges,
        stats.max_charges_per_tracking,
        stats.total_net_amount,
        time.time() - start,
    )
    return ConsolidationResult(
        consolidated=consolidated,
        removed_rows=removed_rows,
        columns=columns,
        stats=stats,
    )
