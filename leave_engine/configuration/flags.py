"""Category-driven flag derivation.

A category forces some gates open or shut and leaves the rest to the
administrator. Only the gate flips: policy values entered earlier are kept,
so switching category back and forth during editing never loses input.
"""

from __future__ import annotations

from typing import Iterable

from leave_engine.common.constants import LeaveCategory, LeaveUnit
from leave_engine.configuration.schemas import ConfigurationFlags

FORCED_FLAGS: dict[LeaveCategory, dict[str, bool]] = {
    LeaveCategory.accrued: {
        "allow_credit_policy": True,
        "allow_expire_policy": True,
    },
    LeaveCategory.flexible: {
        "allow_credit_policy": False,
        "allow_expire_policy": False,
    },
    LeaveCategory.special: {
        "allow_credit_policy": False,
    },
    LeaveCategory.monetization: {
        "allow_credit_policy": True,
        "allow_expire_policy": True,
        "allow_monetization": True,
    },
}

# Categories that cannot be taken by the hour
NO_PARTIAL_TIMINGS: frozenset[LeaveCategory] = frozenset({
    LeaveCategory.accrued,
    LeaveCategory.special,
    LeaveCategory.monetization,
})


def derive_flags(
    category: LeaveCategory,
    previous: ConfigurationFlags,
) -> ConfigurationFlags:
    """Return *previous* with the gates *category* dictates forced."""
    return previous.model_copy(update=FORCED_FLAGS[LeaveCategory(category)])


def is_forced(category: LeaveCategory, flag: str) -> bool:
    return flag in FORCED_FLAGS[LeaveCategory(category)]


def allowed_units_for(
    category: LeaveCategory,
    units: Iterable[LeaveUnit],
) -> list[LeaveUnit]:
    """Strip unit types the category does not support; never returns empty."""
    kept = list(dict.fromkeys(LeaveUnit(u) for u in units))
    if LeaveCategory(category) in NO_PARTIAL_TIMINGS:
        kept = [u for u in kept if u != LeaveUnit.partial_timings]
    return kept or [LeaveUnit.full_day]
