"""Pydantic schemas for the per-user transfer record.

The free-transfer bank is a tagged variant: ``Limited(count)`` or
``Unlimited``.  Historical records stored "unlimited" as an integer
sentinel (999 / 9999) in a ``savedFreeTransfers`` field; those are
healed into the variant on load instead of being rejected.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fantasy_core.schemas.fpl_rules import (
    FREE_TRANSFERS_PER_GAMEWEEK,
    HIT_COST,
    LEGACY_UNLIMITED_THRESHOLD,
    MAX_BANKED_FREE_TRANSFERS,
)


# ---------------------------------------------------------------------------
# Entitlement
# ---------------------------------------------------------------------------

class Limited(BaseModel):
    """A finite bank of free transfers (0..2)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["limited"] = "limited"
    count: int = Field(..., ge=0, le=MAX_BANKED_FREE_TRANSFERS)

    def consume(self) -> "Limited":
        """Bank after spending one free transfer."""
        return Limited(count=self.count - 1)

    def accrue(self) -> "Limited":
        """Bank after one gameweek rollover (+1, capped)."""
        return Limited(count=min(MAX_BANKED_FREE_TRANSFERS, self.count + FREE_TRANSFERS_PER_GAMEWEEK))


class Unlimited(BaseModel):
    """Unlimited free transfers for a user building their very first squad."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unlimited"] = "unlimited"


Entitlement = Annotated[Union[Limited, Unlimited], Field(discriminator="kind")]


def coerce_entitlement(value: Any) -> Limited | Unlimited:
    """Turn any stored bank representation into an Entitlement.

    Accepts the variant itself, its dict form, a legacy integer (with the
    999/9999 sentinels), a numeric string, or None.  Never raises.
    """
    if isinstance(value, (Limited, Unlimited)):
        return value
    if isinstance(value, dict):
        if value.get("kind") == "unlimited":
            return Unlimited()
        return coerce_entitlement(value.get("count"))
    if isinstance(value, str):
        if value.strip().lower() == "unlimited":
            return Unlimited()
        try:
            value = int(float(value))
        except (ValueError, OverflowError):
            return Limited(count=1)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return Limited(count=1)
    # NaN fails both comparisons and falls through to the default.
    if value >= LEGACY_UNLIMITED_THRESHOLD:
        return Unlimited()
    if not 0 <= value:
        return Limited(count=1)
    return Limited(count=min(MAX_BANKED_FREE_TRANSFERS, int(value)))


def _non_negative_int(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if number >= 0 else None


# Legacy document key -> current field name
_LEGACY_FIELDS = {
    "savedFreeTransfers": "free_transfer_bank",
    "freeTransferBank": "free_transfer_bank",
    "paidTransfersThisWeek": "paid_transfers_this_week",
    "pointsDeductedThisWeek": "points_deducted_this_week",
    "lastGameweekProcessed": "last_gameweek_processed",
    "wildcardActive": "wildcard_active_this_week",
    "wildcardActiveThisWeek": "wildcard_active_this_week",
    "freeHitActive": "free_hit_active_this_week",
    "freeHitActiveThisWeek": "free_hit_active_this_week",
}


# ---------------------------------------------------------------------------
# TransferState
# ---------------------------------------------------------------------------

class TransferState(BaseModel):
    """Weekly transfer counters for one user.

    ``wildcard_active_this_week`` / ``free_hit_active_this_week`` mirror the
    chip board's effective status and are refreshed from it; they are never
    read to decide transfer cost.
    """

    free_transfer_bank: Entitlement = Field(default_factory=lambda: Limited(count=1))
    paid_transfers_this_week: int = Field(0, ge=0)
    points_deducted_this_week: int = Field(0, ge=0)
    last_gameweek_processed: int = Field(1, ge=0)
    wildcard_active_this_week: bool = False
    free_hit_active_this_week: bool = False

    @model_validator(mode="before")
    @classmethod
    def heal_legacy_record(cls, data: Any) -> Any:
        """Fill defaults and repair out-of-range values from old records."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for legacy, current in _LEGACY_FIELDS.items():
            if legacy in data:
                value = data.pop(legacy)
                data.setdefault(current, value)

        # transfersMadeThisWeek counted free transfers too; only the
        # points tell us how many were paid.
        data.pop("transfersMadeThisWeek", None)

        data["free_transfer_bank"] = coerce_entitlement(data.get("free_transfer_bank"))

        paid = _non_negative_int(data.get("paid_transfers_this_week"))
        if paid is None:
            points = _non_negative_int(data.get("points_deducted_this_week")) or 0
            paid = points // HIT_COST
        data["paid_transfers_this_week"] = paid
        data["points_deducted_this_week"] = paid * HIT_COST

        last_gw = _non_negative_int(data.get("last_gameweek_processed"))
        data["last_gameweek_processed"] = last_gw if last_gw else 1

        for flag in ("wildcard_active_this_week", "free_hit_active_this_week"):
            data[flag] = bool(data.get(flag) or False)
        return data

    @property
    def is_unlimited(self) -> bool:
        return isinstance(self.free_transfer_bank, Unlimited)

    @property
    def free_transfers_label(self) -> str:
        """Human-readable bank, e.g. ``"2"`` or ``"unlimited"``."""
        if self.is_unlimited:
            return "unlimited"
        return str(self.free_transfer_bank.count)

    def to_api(self) -> dict:
        data = self.model_dump(mode="json")
        data["free_transfers_label"] = self.free_transfers_label
        return data


class TransferSummary(BaseModel):
    """Outcome of a single transfer, used to build the user-facing message."""

    paid_transfers: int = 0  # Delta for this call (0 or 1)
    points_deducted: int = 0  # Week total after this call
    wildcard_used: bool = False
    free_hit_used: bool = False
    free_transfer_used: bool = False
    unlimited: bool = False
