"""Transfer-entitlement and chip-activation rules for a gameweek fantasy league."""

__version__ = "0.3.0"
