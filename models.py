"""
models.py - Data Models for the invoice consolidation pipeline

Every stage of the pipeline communicates through these models:

    validation.py   ->  ValidationResult
    grouping.py     ->  dict[ShipmentKey, list[record]]
    normalize.py    ->  Dimensions
    consolidate.py  ->  ConsolidationResult (ChargeLine, ProcessingStats)
    report.py       ->  str / dict (uses ProcessingStats as input)

Input records themselves stay plain mappings (column name -> raw cell
text) because invoice exports carry dozens of columns the pipeline never
reads. Output rows are plain dicts keyed by the run's column schema.

Schema relationships:
    ShipmentKey     --keys-->      shipment groups
    ChargeLine      --laid out as-> numbered charge columns
    ProcessingStats --used by-->   ConsolidationResult.stats
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

SYNTHETIC_KEY_PREFIX = "__notracking_"

ProcessingStatus = Literal["idle", "processing", "success", "error"]


class ShipmentKey(BaseModel):
    """Identifier a charge line is grouped under.

    Resolved per record from the Tracking Number, then the Lead Shipment
    Number. Records carrying neither get a synthetic key that is unique
    within the run. `synthetic` takes part in equality and hashing, so a
    synthetic key never equals a real identifier even when the text is the
    same.
    """

    model_config = ConfigDict(frozen=True)

    value: str = Field(
        ...,
        description=(
            "Identifier text exactly as it appeared in the record, or "
            "'__notracking_<n>' for synthetic keys."
        ),
    )
    synthetic: bool = Field(
        default=False,
        description="True when the record carried no tracking or lead shipment number.",
    )

    @classmethod
    def for_missing(cls, sequence_number: int) -> "ShipmentKey":
        """Build the synthetic key for the n-th identifier-less record of a run."""
        return cls(value=f"{SYNTHETIC_KEY_PREFIX}{sequence_number}", synthetic=True)

    @property
    def display_value(self) -> str:
        """Value written to the Tracking Number column ('' for synthetic keys)."""
        return "" if self.synthetic else self.value


class Dimensions(BaseModel):
    """Package dimensions decoded from a 'L x W x H' string.

    Parts are kept as the exact text found in the export; no numeric
    re-formatting happens here. Malformed input yields three empty strings.
    """

    length: str = ""
    width: str = ""
    height: str = ""


class ChargeLine(BaseModel):
    """One kept charge, already formatted for output."""

    description: str = Field(default="", description="Charge Description text, unchanged.")
    incentive_amount: str = Field(
        default="",
        description="Incentive Amount with two decimals, or '' when blank/unparseable.",
    )
    net_amount: str = Field(
        default="",
        description="Net Amount with two decimals, or '' when blank/unparseable.",
    )

    def as_cells(self) -> list[str]:
        """Values in role order: description, incentive, net."""
        return [self.description, self.incentive_amount, self.net_amount]


class ValidationResult(BaseModel):
    """Outcome of the pre-processing checks.

    Errors block processing; warnings are surfaced to the user and
    processing continues.
    """

    valid: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ProcessingStats(BaseModel):
    """Run-wide summary of a consolidation.

    Counts are reset to zero when the run fails; `error_message` then
    carries the reason.
    """

    total_rows: int = Field(default=0, ge=0, description="Charge-line records in the input.")
    unique_trackings: int = Field(
        default=0,
        ge=0,
        description=(
            "Shipment groups keyed by a real tracking or lead shipment number. "
            "Groups with a synthetic key are not counted here."
        ),
    )
    shipment_groups: int = Field(
        default=0,
        ge=0,
        description="All shipment groups, synthetic ones included (= output rows).",
    )
    original_charges: int = Field(default=0, ge=0, description="Charge lines seen across all groups.")
    kept_charges: int = Field(default=0, ge=0, description="Charge lines written to charge columns.")
    removed_charges: int = Field(
        default=0,
        ge=0,
        description="Charge lines with zero incentive and zero net amount.",
    )
    max_charges_per_tracking: int = Field(
        default=0,
        ge=0,
        description="Largest kept-charge count in any single group; sets the schema width.",
    )
    total_net_amount: float = Field(
        default=0.0,
        description=(
            "Sum of every group's Total Shipment Cost. Includes net amounts of "
            "removed lines, matching how the per-shipment total is computed."
        ),
    )
    status: ProcessingStatus = "idle"
    error_message: Optional[str] = None

    @property
    def row_reduction_pct(self) -> int:
        """Percent fewer rows in the output than in the input."""
        if self.total_rows <= 0:
            return 0
        return round((1 - self.shipment_groups / self.total_rows) * 100)

    @property
    def is_success(self) -> bool:
        return self.status == "success"

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "total_rows": 12,
                    "unique_trackings": 3,
                    "shipment_groups": 4,
                    "original_charges": 12,
                    "kept_charges": 9,
                    "removed_charges": 3,
                    "max_charges_per_tracking": 4,
                    "total_net_amount": 187.42,
                    "status": "success",
                    "error_message": None,
                }
            ]
        }
    )


class ConsolidationResult(BaseModel):
    """Everything a consolidation run produces.

    `consolidated` rows all carry every column in `columns`; `removed_rows`
    are the untouched input records of the charge lines that were filtered
    out, kept for audit.
    """

    consolidated: list[dict[str, str]] = Field(default_factory=list)
    removed_rows: list[dict[str, Any]] = Field(default_factory=list)
    columns: list[str] = Field(default_factory=list)
    stats: ProcessingStats = Field(default_factory=ProcessingStats)
