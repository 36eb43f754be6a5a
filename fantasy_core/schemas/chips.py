"""Pydantic schemas for the per-user chip board."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fantasy_core.schemas.fpl_rules import ChipSlot


class ChipUsage(BaseModel):
    """One chip slot: ``Unused -> Active(pinned gw) -> Used & inactive``."""

    used: bool = False
    pinned_gameweek: int | None = None
    is_active: bool = False

    @model_validator(mode="before")
    @classmethod
    def heal_legacy_slot(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "gameweek" in data:
            data.setdefault("pinned_gameweek", data.pop("gameweek"))
        if "isActive" in data:
            data.setdefault("is_active", data.pop("isActive"))
        data["used"] = bool(data.get("used") or False)
        data["is_active"] = bool(data.get("is_active") or False)
        pinned = data.get("pinned_gameweek")
        if isinstance(pinned, bool) or not isinstance(pinned, int) or pinned < 1:
            data["pinned_gameweek"] = None
        # An active chip is a played chip; one without a gameweek can't be active.
        if data["is_active"]:
            if data["pinned_gameweek"] is None:
                data["is_active"] = False
            else:
                data["used"] = True
        return data

    def is_active_in(self, gameweek: int) -> bool:
        """Re-derived "active now": the stored bit only counts for its own GW."""
        return self.is_active and self.pinned_gameweek == gameweek


# Slot -> model field name
_SLOT_FIELDS: dict[ChipSlot, str] = {
    ChipSlot.WILDCARD_1: "wildcard1",
    ChipSlot.WILDCARD_2: "wildcard2",
    ChipSlot.BENCH_BOOST: "bench_boost",
    ChipSlot.TRIPLE_CAPTAIN: "triple_captain",
    ChipSlot.FREE_HIT: "free_hit",
}


def _convert_legacy_board(data: dict) -> dict:
    """Old boards: ``{wildcard: 0|1|2, benchBoost: bool, ...}``."""
    wildcards = data.get("wildcard") or 0
    return {
        "wildcard1": {"used": wildcards >= 1, "gameweek": None},
        "wildcard2": {"used": wildcards >= 2, "gameweek": None},
        "benchBoost": {"used": bool(data.get("benchBoost"))},
        "tripleCaptain": {"used": bool(data.get("tripleCaptain"))},
        "freeHit": {"used": bool(data.get("freeHit"))},
    }


class ChipBoard(BaseModel):
    """The five one-time chips of a season, serialised under their slot names."""

    model_config = ConfigDict(populate_by_name=True)

    wildcard1: ChipUsage = Field(default_factory=ChipUsage, alias="wildcard1")
    wildcard2: ChipUsage = Field(default_factory=ChipUsage, alias="wildcard2")
    bench_boost: ChipUsage = Field(default_factory=ChipUsage, alias="benchBoost")
    triple_captain: ChipUsage = Field(default_factory=ChipUsage, alias="tripleCaptain")
    free_hit: ChipUsage = Field(default_factory=ChipUsage, alias="freeHit")

    @model_validator(mode="before")
    @classmethod
    def heal_legacy_board(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if isinstance(data.get("wildcard"), int):
            data = _convert_legacy_board(data)
        # Missing or null slots fall back to the default (unused) slot.
        return {k: v for k, v in data.items() if v is not None}

    def get(self, slot: ChipSlot) -> ChipUsage:
        return getattr(self, _SLOT_FIELDS[slot])

    def with_slot(self, slot: ChipSlot, usage: ChipUsage) -> "ChipBoard":
        return self.model_copy(update={_SLOT_FIELDS[slot]: usage})

    def items(self) -> list[tuple[ChipSlot, ChipUsage]]:
        return [(slot, self.get(slot)) for slot in ChipSlot]

    def active_slots(self, gameweek: int) -> list[ChipSlot]:
        """Slots that are active *now*, i.e. pinned to *gameweek*."""
        return [slot for slot, usage in self.items() if usage.is_active_in(gameweek)]

    def to_api(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
