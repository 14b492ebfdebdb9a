"""Enums and constants for the leave policy engine — matching the wire values
exchanged with the leave-configuration backend."""

from __future__ import annotations

import enum


# ── Leave configuration ─────────────────────────────────────────────

class LeaveCategory(str, enum.Enum):
    flexible = "flexible"
    accrued = "accrued"
    special = "special"
    monetization = "monetization"


class LeaveUnit(str, enum.Enum):
    """Leave-unit types a configuration may allow."""

    full_day = "fullDay"
    partial_day = "partialDay"
    partial_timings = "partialTimings"


class CreditFrequency(str, enum.Enum):
    monthly = "monthly"
    yearly = "yearly"
    quarterly = "quarterly"
    custom = "custom"


class ExpireFrequency(str, enum.Enum):
    monthly = "monthly"
    after_credit = "afterCredit"
    yearly = "yearly"
    custom = "custom"


class PeriodType(str, enum.Enum):
    """Month / year type of a calendar configuration."""

    standard = "standard"
    custom = "custom"


# ── Applicability ───────────────────────────────────────────────────

class GenderOption(str, enum.Enum):
    male = "male"
    female = "female"
    other = "other"
    all = "all"


class MarriageStatus(str, enum.Enum):
    married = "married"
    single = "single"
    all = "all"


class EmployeeType(str, enum.Enum):
    full_time = "fullTime"
    part_time = "partTime"
    intern = "intern"
    contract = "contract"
    all = "all"


# ── Requests ────────────────────────────────────────────────────────

class RequestCategory(str, enum.Enum):
    """Shape of a leave request as submitted by the employee."""

    full_day = "fullDay"
    partial_day = "partialDay"
    partial_timing = "partialTiming"


class PartialDaySelection(str, enum.Enum):
    first_half = "firstHalf"
    second_half = "secondHalf"


# Request category → leave unit that must be allowed by the configuration
REQUEST_UNIT: dict[RequestCategory, LeaveUnit] = {
    RequestCategory.full_day: LeaveUnit.full_day,
    RequestCategory.partial_day: LeaveUnit.partial_day,
    RequestCategory.partial_timing: LeaveUnit.partial_timings,
}

# Display order of balance cards
CATEGORY_ORDER: dict[LeaveCategory, int] = {
    LeaveCategory.accrued: 0,
    LeaveCategory.flexible: 1,
    LeaveCategory.special: 2,
    LeaveCategory.monetization: 3,
}

CODE_MAX_LENGTH = 10
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
