"""
stats.py - Run-wide statistics for a consolidation.

The collector is fed one shipment group at a time and produces the final
ProcessingStats once the run finishes, or a zeroed error result if it fails.
"""

from __future__ import annotations

from models import ProcessingStats, ShipmentKey


class StatsCollector:
    """Accumulates counts and totals while shipment groups are processed."""

    def __init__(self, total_rows: int) -> None:
        self.total_rows = total_rows
        self.unique_trackings = 0
        self.shipment_groups = 0
        self.original_charges = 0
        self.kept_charges = 0
        self.removed_charges = 0
        self.max_charges_per_tracking = 0
        self.total_net_amount = 0.0
        self.status = "processing"

    def add_group(self, key: ShipmentKey, kept: int, removed: int, total: float) -> None:
        """Record one processed shipment group."""
        self.shipment_groups += 1
        if not key.synthetic:
            self.unique_trackings += 1
        self.original_charges += kept + removed
        self.kept_charges += kept
        self.removed_charges += removed
        self.max_charges_per_tracking = max(self.max_charges_per_tracking, kept)
        self.total_net_amount += total

    def snapshot(self) -> ProcessingStats:
        """Current counts with the collector's status (for progress logging)."""
        return ProcessingStats(
            total_rows=self.total_rows,
            unique_trackings=self.unique_trackings,
            shipment_groups=self.shipment_groups,
            original_charges=self.original_charges,
            kept_charges=self.kept_charges,
            removed_charges=self.removed_charges,
            max_charges_per_tracking=self.max_charges_per_tracking,
            total_net_amount=self.total_net_amount,
            status=self.status,
        )

    def finalize(self) -> ProcessingStats:
        self.status = "success"
        return self.snapshot()

    def fail(self, exc: BaseException) -> ProcessingStats:
        """Zeroed stats carrying the failure message."""
        self.status = "error"
        return ProcessingStats(
            status="error",
            error_message=str(exc) or "Unknown error occurred",
        )
