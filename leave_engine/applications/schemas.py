"""Leave and credit application schemas.

Candidates are deliberately loose: every field the employee may leave out
is optional so the validator can report all structural problems at once
instead of failing on the first missing value.
"""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator

from leave_engine.balance.schemas import LeaveBalanceModel
from leave_engine.common.constants import (
    EmployeeType,
    GenderOption,
    MarriageStatus,
    PartialDaySelection,
    RequestCategory,
)
from leave_engine.common.schemas import CamelModel
from leave_engine.config import settings


def _clean_ids(v: object) -> object:
    if v is None:
        return []
    if isinstance(v, (list, tuple, set, frozenset)):
        return list(dict.fromkeys(str(i).strip() for i in v if str(i).strip()))
    return v


# ═════════════════════════════════════════════════════════════════════
# Candidates
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCandidate(CamelModel):
    leave_type_code: str
    category: RequestCategory = RequestCategory.full_day
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    partial_day_selection: Optional[PartialDaySelection] = None
    from_time: Optional[time] = None
    to_time: Optional[time] = None
    reason: str = ""
    inform_to: list[str] = Field(default_factory=list)
    untracked: bool = Field(False, description="Retroactive leave; past dates allowed")

    @field_validator("inform_to", mode="before")
    @classmethod
    def clean_inform_to(cls, v: object) -> object:
        return _clean_ids(v)


class CreditRequestCandidate(CamelModel):
    credit_type: str
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    reason: str = ""
    inform_to: list[str] = Field(default_factory=list)
    untracked: bool = False

    @field_validator("inform_to", mode="before")
    @classmethod
    def clean_inform_to(cls, v: object) -> object:
        return _clean_ids(v)


class ApplicantContext(CamelModel):
    """Facts about the applicant; any left unset skips the matching check."""

    gender: Optional[GenderOption] = None
    marital_status: Optional[MarriageStatus] = None
    employee_type: Optional[EmployeeType] = None
    on_probation: bool = False
    last_leave_end: Optional[date] = None
    requests_this_year: Optional[int] = Field(None, ge=0)


class RequestRules(CamelModel):
    """Organisation-wide request constants handed to the validator."""

    partial_day_unit: Decimal = Field(Decimal("0.5"), gt=0)
    partial_timing_unit: Decimal = Field(Decimal("0.5"), gt=0)
    reason_min_length: int = Field(10, ge=0)
    reason_max_length: int = Field(500, ge=1)
    weekend_days: frozenset[int] = frozenset({5, 6})

    @classmethod
    def from_settings(cls) -> RequestRules:
        return cls(
            partial_day_unit=settings.PARTIAL_DAY_UNIT,
            partial_timing_unit=settings.PARTIAL_TIMING_UNIT,
            reason_min_length=settings.REASON_MIN_LENGTH,
            reason_max_length=settings.REASON_MAX_LENGTH,
            weekend_days=frozenset(settings.weekend_days_set),
        )


# ═════════════════════════════════════════════════════════════════════
# Accepted payloads
# ═════════════════════════════════════════════════════════════════════


class LeaveApplicationPayload(CamelModel):
    leave_type_code: str
    category: RequestCategory
    from_date: date
    to_date: date
    partial_day_selection: Optional[PartialDaySelection] = None
    from_time: Optional[time] = None
    to_time: Optional[time] = None
    reason: str
    inform_to: list[str] = Field(default_factory=list)
    untracked: bool = False
    total_days: Decimal
    required_balance: Decimal
    requires_approval: bool = True


class CreditApplicationPayload(CamelModel):
    credit_type: str
    from_date: date
    to_date: date
    reason: str
    inform_to: list[str] = Field(default_factory=list)
    untracked: bool = False
    total_days: int


# ═════════════════════════════════════════════════════════════════════
# Request bodies
# ═════════════════════════════════════════════════════════════════════


class ValidateLeaveRequest(CamelModel):
    scope_id: Optional[str] = None
    request: LeaveRequestCandidate
    balance: LeaveBalanceModel = Field(default_factory=LeaveBalanceModel)
    applicant: Optional[ApplicantContext] = None
    holidays: list[date] = Field(default_factory=list)
    today: Optional[date] = None


class ValidateCreditRequest(CamelModel):
    scope_id: Optional[str] = None
    request: CreditRequestCandidate
    today: Optional[date] = None
