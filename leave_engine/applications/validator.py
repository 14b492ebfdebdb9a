"""Leave and credit request validation — pure, staged, non-raising.

Stages for a leave request:
  1. structural     — required fields and shapes; any failure stops here
  2. temporal       — no past dates unless untracked
  3. duration       — working days or the fixed partial unit
  4. affordability  — required balance within ``available`` (not flexible)
  5. policy         — allowed unit, restrictions, applicability

Stages 2-5 collect every failure so the caller can show them together.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Union

from leave_engine.applications.schemas import (
    ApplicantContext,
    CreditApplicationPayload,
    CreditRequestCandidate,
    LeaveApplicationPayload,
    LeaveRequestCandidate,
    RequestRules,
)
from leave_engine.balance.schemas import (
    AccruedBalance,
    FlexibleBalance,
    LeaveBalanceModel,
    MonetizationBalance,
    SpecialBalance,
)
from leave_engine.common.constants import LeaveCategory, REQUEST_UNIT, RequestCategory
from leave_engine.common.exceptions import ProgrammerContractError
from leave_engine.common.results import Accepted, ErrorKind, FieldError, Rejected
from leave_engine.configuration.schemas import LeaveConfiguration
from leave_engine.policies.schemas import Restrictions

CategoryBalance = Union[AccruedBalance, FlexibleBalance, SpecialBalance, MonetizationBalance]

CREDIT_TYPE_MESSAGE = "creditType must reference a special-category configuration"


# ── Helpers ─────────────────────────────────────────────────────────

def _structural(field: str, message: str) -> FieldError:
    return FieldError(field=field, kind=ErrorKind.structural, message=message)


def _violation(field: str, message: str) -> FieldError:
    return FieldError(field=field, kind=ErrorKind.policy_violation, message=message)


def format_days(value: Decimal) -> str:
    """``Decimal('10.0')`` → ``'10'``, ``Decimal('2.50')`` → ``'2.5'``."""
    return format(Decimal(value).normalize(), "f")


def count_leave_days(
    from_date: date,
    to_date: date,
    *,
    weekend_days: Iterable[int] = (5, 6),
    holidays: Iterable[date] = (),
    include_non_working: bool = False,
) -> int:
    """Inclusive day count, skipping weekends and holidays unless told not to."""
    if to_date < from_date:
        return 0
    span = (to_date - from_date).days + 1
    if include_non_working:
        return span
    weekend = set(weekend_days)
    closed = set(holidays)
    return sum(
        1
        for offset in range(span)
        if (day := from_date + timedelta(days=offset)).weekday() not in weekend
        and day not in closed
    )


def _narrow(
    config: LeaveConfiguration,
    balance: Union[LeaveBalanceModel, CategoryBalance, None],
) -> CategoryBalance:
    if balance is None:
        balance = LeaveBalanceModel()
    if isinstance(balance, LeaveBalanceModel):
        return balance.for_category(config.category)
    if balance.category != config.category:
        raise ProgrammerContractError(
            f"{type(balance).__name__} supplied for {config.category.value} "
            f"configuration {config.code}."
        )
    return balance


def _check_reason(reason: str, rules: RequestRules) -> list[FieldError]:
    text = reason.strip()
    if len(text) < rules.reason_min_length:
        return [_structural(
            "reason", f"Reason must be at least {rules.reason_min_length} characters.",
        )]
    if len(text) > rules.reason_max_length:
        return [_structural(
            "reason", f"Reason cannot exceed {rules.reason_max_length} characters.",
        )]
    return []


# ── Leave request stages ────────────────────────────────────────────

def _structural_errors(
    request: LeaveRequestCandidate, rules: RequestRules,
) -> list[FieldError]:
    errors: list[FieldError] = []
    if request.from_date is None:
        errors.append(_structural("from_date", "Start date is required."))

    if request.category == RequestCategory.full_day:
        if request.to_date is None:
            errors.append(_structural("to_date", "End date is required for full day leave."))
        elif request.from_date is not None and request.to_date < request.from_date:
            errors.append(_structural("to_date", "End date cannot be before the start date."))
    elif request.category == RequestCategory.partial_day:
        if request.partial_day_selection is None:
            errors.append(_structural(
                "partial_day_selection", "Select first half or second half for partial day leave.",
            ))
    else:
        if request.from_time is None:
            errors.append(_structural("from_time", "Start time is required for partial timing leave."))
        if request.to_time is None:
            errors.append(_structural("to_time", "End time is required for partial timing leave."))
        if (
            request.from_time is not None
            and request.to_time is not None
            and request.to_time <= request.from_time
        ):
            errors.append(_structural("to_time", "End time must be after the start time."))

    errors.extend(_check_reason(request.reason, rules))
    return errors


def _applicant_errors(
    config: LeaveConfiguration,
    restrictions: Optional[Restrictions],
    applicant: ApplicantContext,
    from_date: date,
) -> list[FieldError]:
    errors: list[FieldError] = []
    categories = config.applicable_categories
    if not categories.covers_gender(applicant.gender):
        errors.append(_violation(
            "applicant.gender", f"{config.name} is only available to {categories.gender.value} employees.",
        ))
    if not categories.covers_marital_status(applicant.marital_status):
        errors.append(_violation(
            "applicant.marital_status",
            f"{config.name} is only available to {categories.married_status.value} employees.",
        ))
    if not categories.covers_employee_type(applicant.employee_type):
        errors.append(_violation(
            "applicant.employee_type",
            f"{config.name} is not available to {applicant.employee_type.value} employees.",
        ))

    if restrictions is None:
        return errors

    if applicant.on_probation and not restrictions.probation_restrictions.allowed:
        errors.append(_violation(
            "applicant.on_probation", f"{config.name} cannot be taken during probation.",
        ))
    limit = restrictions.yearly_request_limit
    if limit is not None and applicant.requests_this_year is not None:
        if applicant.requests_this_year >= limit:
            errors.append(_violation(
                "applicant.requests_this_year",
                f"yearly limit of {limit} requests reached",
            ))
    gap = restrictions.min_gap_between_leaves
    if gap and applicant.last_leave_end is not None:
        if (from_date - applicant.last_leave_end).days <= gap:
            errors.append(_violation(
                "from_date",
                f"at least {gap} day(s) must separate leaves; last leave ended "
                f"{applicant.last_leave_end.isoformat()}",
            ))
    return errors


def validate_leave_request(
    request: LeaveRequestCandidate,
    config: LeaveConfiguration,
    balance: Union[LeaveBalanceModel, CategoryBalance, None],
    *,
    today: Optional[date] = None,
    holidays: Iterable[date] = (),
    applicant: Optional[ApplicantContext] = None,
    rules: Optional[RequestRules] = None,
) -> Union[Accepted[LeaveApplicationPayload], Rejected]:
    """Check a leave request against its configuration and ledger row."""
    if request.leave_type_code.strip().casefold() != config.code.casefold():
        raise ProgrammerContractError(
            f"Request for {request.leave_type_code!r} validated against "
            f"configuration {config.code!r}."
        )
    current = _narrow(config, balance)
    rules = rules or RequestRules.from_settings()
    today = today or date.today()

    # 1. Structural
    errors = _structural_errors(request, rules)
    if errors:
        return Rejected(errors=errors)

    from_date = request.from_date
    to_date = request.to_date if request.category == RequestCategory.full_day else from_date
    restrictions = config.active_restrictions

    # 2. Temporal
    if from_date < today and not request.untracked:
        errors.append(_violation(
            "from_date", "Leave dates cannot be in the past unless marked untracked.",
        ))

    # 3. Duration
    if request.category == RequestCategory.full_day:
        duration = Decimal(count_leave_days(
            from_date,
            to_date,
            weekend_days=rules.weekend_days,
            holidays=holidays,
            include_non_working=bool(restrictions and restrictions.include_holidays_weekends),
        ))
        if duration == 0:
            errors.append(_violation(
                "to_date", "The selected dates contain no working days.",
            ))
    elif request.category == RequestCategory.partial_day:
        duration = rules.partial_day_unit
    else:
        duration = rules.partial_timing_unit
    required = duration * config.leave_properties.number_of_days_per_one_leave

    # 4. Affordability
    if config.category != LeaveCategory.flexible and required > current.available:
        errors.append(_violation(
            "balance", f"insufficient balance, {format_days(current.available)} available",
        ))

    # 5. Policy
    unit = REQUEST_UNIT[request.category]
    if unit not in config.leave_properties.allowed_types:
        errors.append(_violation(
            "category", f"{unit.value} leave is not allowed for {config.name}.",
        ))
    if restrictions is not None:
        limit = restrictions.consecutive_limit
        if limit is not None and duration > limit:
            errors.append(_violation(
                "to_date",
                f"{format_days(duration)} days exceeds the maximum of {limit} consecutive days",
            ))
    if applicant is not None:
        errors.extend(_applicant_errors(config, restrictions, applicant, from_date))

    if errors:
        return Rejected(errors=errors)

    return Accepted[LeaveApplicationPayload](payload=LeaveApplicationPayload(
        leave_type_code=config.code,
        category=request.category,
        from_date=from_date,
        to_date=to_date,
        partial_day_selection=(
            request.partial_day_selection
            if request.category == RequestCategory.partial_day
            else None
        ),
        from_time=request.from_time if request.category == RequestCategory.partial_timing else None,
        to_time=request.to_time if request.category == RequestCategory.partial_timing else None,
        reason=request.reason.strip(),
        inform_to=request.inform_to,
        untracked=request.untracked,
        total_days=duration,
        required_balance=required,
        requires_approval=restrictions.approval_required if restrictions else True,
    ))


# ── Credit request ──────────────────────────────────────────────────

def validate_credit_request(
    request: CreditRequestCandidate,
    config: Optional[LeaveConfiguration],
    *,
    today: Optional[date] = None,
    rules: Optional[RequestRules] = None,
) -> Union[Accepted[CreditApplicationPayload], Rejected]:
    """Check a credit request; only special-category leave can be credited."""
    if config is not None and request.credit_type.strip().casefold() != config.code.casefold():
        raise ProgrammerContractError(
            f"Credit request for {request.credit_type!r} validated against "
            f"configuration {config.code!r}."
        )
    rules = rules or RequestRules.from_settings()
    today = today or date.today()

    errors: list[FieldError] = []
    if config is None or config.category != LeaveCategory.special:
        errors.append(_structural("credit_type", CREDIT_TYPE_MESSAGE))
    if request.from_date is None:
        errors.append(_structural("from_date", "Start date is required."))
    if request.to_date is None:
        errors.append(_structural("to_date", "End date is required."))
    elif request.from_date is not None and request.to_date < request.from_date:
        errors.append(_structural("to_date", "End date cannot be before the start date."))
    errors.extend(_check_reason(request.reason, rules))
    if errors:
        return Rejected(errors=errors)

    if request.from_date < today and not request.untracked:
        return Rejected(errors=[_violation(
            "from_date", "Credit dates cannot be in the past unless marked untracked.",
        )])

    return Accepted[CreditApplicationPayload](payload=CreditApplicationPayload(
        credit_type=config.code,
        from_date=request.from_date,
        to_date=request.to_date,
        reason=request.reason.strip(),
        inform_to=request.inform_to,
        untracked=request.untracked,
        total_days=(request.to_date - request.from_date).days + 1,
    ))
