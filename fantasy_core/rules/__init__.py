"""Transfer-entitlement and chip-activation rules (pure functions)."""

from fantasy_core.rules.chips import (
    ChipRejection,
    activate_chip,
    can_activate,
    effective_free_hit,
    effective_wildcard,
    expire_stale_chips,
    sync_chip_cache,
)
from fantasy_core.rules.reconcile import reconcile
from fantasy_core.rules.transfers import (
    StaleTransferStateError,
    apply_transfer,
    default_transfer_state,
    record_squad_save,
    transfer_message,
)
from fantasy_core.rules.transition import advance, needs_transition

__all__ = [
    "ChipRejection",
    "StaleTransferStateError",
    "activate_chip",
    "advance",
    "apply_transfer",
    "can_activate",
    "default_transfer_state",
    "effective_free_hit",
    "effective_wildcard",
    "expire_stale_chips",
    "needs_transition",
    "reconcile",
    "record_squad_save",
    "sync_chip_cache",
    "transfer_message",
]
