"""Policy value objects — one immutable facet of a leave type each.

Naming conventions:
  - Python attributes are snake_case; JSON uses the camelCase aliases
    exchanged with the leave-configuration backend (``onDemandCredit``).
  - ``check(data)``  → list of FieldError, empty when valid
  - ``build(data)``  → (model | None, errors)
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, ClassVar, Mapping, Optional, TypeVar

from pydantic import (
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from leave_engine.common.constants import CreditFrequency, ExpireFrequency, PeriodType
from leave_engine.common.exceptions import ProgrammerContractError
from leave_engine.common.results import ErrorKind, FieldError, errors_from_validation
from leave_engine.common.schemas import CamelModel

P = TypeVar("P", bound="PolicyModel")


def lookup(data: Mapping[str, Any], name: str, default: Any = None) -> Any:
    """Read *name* from a raw payload keyed either snake_case or camelCase."""
    if name in data:
        return data[name]
    return data.get(to_camel(name), default)


def _has_key(data: Mapping[str, Any], name: str) -> bool:
    return name in data or to_camel(name) in data


# ═════════════════════════════════════════════════════════════════════
# Base
# ═════════════════════════════════════════════════════════════════════


class PolicyModel(CamelModel):
    """Base for every policy value object: camelCase wire names, immutable."""

    @classmethod
    def assert_contract(cls, data: Any) -> None:
        """Raise ProgrammerContractError for payloads no caller should build."""

    @classmethod
    def build(
        cls: type[P],
        data: Any,
        *,
        prefix: Optional[str] = None,
    ) -> tuple[Optional[P], list[FieldError]]:
        if isinstance(data, cls):
            return data, []
        if isinstance(data, Mapping):
            cls.assert_contract(data)
        try:
            return cls.model_validate(data), []
        except ValidationError as exc:
            return None, errors_from_validation(
                exc, ErrorKind.configuration_invariant, prefix=prefix,
            )

    @classmethod
    def check(cls, data: Any) -> list[FieldError]:
        return cls.build(data)[1]


class _CustomDatesContract:
    """Shared guard for policies whose ``custom`` frequency needs dates."""

    frequency_field: ClassVar[str] = "frequency"

    @classmethod
    def assert_contract(cls, data: Mapping[str, Any]) -> None:
        frequency = lookup(data, cls.frequency_field)
        if frequency == "custom" and _has_key(data, "custom_dates"):
            if lookup(data, "custom_dates") is None:
                raise ProgrammerContractError(
                    f"{cls.__name__}: custom_dates must be a list when "
                    f"{cls.frequency_field} is 'custom', got None."
                )


def _require_dates_for_custom(
    value: list[date],
    info: ValidationInfo,
    frequency_field: str,
) -> list[date]:
    if info.data.get(frequency_field) == "custom" and not value:
        raise ValueError(
            f"At least one custom date is required when {to_camel(frequency_field)} is 'custom'."
        )
    return sorted(set(value))


# ═════════════════════════════════════════════════════════════════════
# Credit / Expiry / Monetization
# ═════════════════════════════════════════════════════════════════════


class CreditPolicy(_CustomDatesContract, PolicyModel):
    """How and when leave days are credited to an employee."""

    on_demand_credit: bool = False
    value: Decimal = Field(default=Decimal("0"), ge=0, description="Days credited per cycle")
    frequency: CreditFrequency = CreditFrequency.yearly
    custom_dates: list[date] = Field(default_factory=list, validate_default=True)
    max_limit: Decimal = Field(
        default=Decimal("0"), ge=0, description="Credit ceiling; 0 = unlimited",
    )

    @field_validator("custom_dates")
    @classmethod
    def dates_for_custom_frequency(cls, v: list[date], info: ValidationInfo) -> list[date]:
        return _require_dates_for_custom(v, info, "frequency")

    @property
    def unlimited(self) -> bool:
        return self.max_limit == 0


class ExpirePolicy(_CustomDatesContract, PolicyModel):
    """When unused balance lapses. Carry-forward balances never expire."""

    frequency_field: ClassVar[str] = "expire_frequency"

    carry_forward: bool = True
    expire_frequency: ExpireFrequency = ExpireFrequency.yearly
    after_credit_expiry_days: int = Field(default=0, ge=0)
    custom_dates: list[date] = Field(default_factory=list, validate_default=True)

    @field_validator("custom_dates")
    @classmethod
    def dates_for_custom_frequency(cls, v: list[date], info: ValidationInfo) -> list[date]:
        return _require_dates_for_custom(v, info, "expire_frequency")

    @property
    def expires(self) -> bool:
        return not self.carry_forward


class MonetizationPolicy(PolicyModel):
    encashable_count: Decimal = Field(default=Decimal("0"), ge=0)
    encashable_limit: Decimal = Field(
        default=Decimal("0"), ge=0, description="Ceiling on days that can be cashed out",
    )


# ═════════════════════════════════════════════════════════════════════
# Restrictions
# ═════════════════════════════════════════════════════════════════════


class ProbationRestrictions(PolicyModel):
    allowed: bool = False


class Restrictions(PolicyModel):
    """Request-time limits. Zero means unbounded for the numeric limits."""

    approval_required: bool = True
    max_consecutive_days: int = Field(default=0, ge=0)
    min_gap_between_leaves: int = Field(default=0, ge=0)
    max_requests_per_year: int = Field(default=0, ge=0)
    include_holidays_weekends: bool = False
    probation_restrictions: ProbationRestrictions = Field(
        default_factory=ProbationRestrictions,
    )

    @property
    def consecutive_limit(self) -> Optional[int]:
        return self.max_consecutive_days or None

    @property
    def yearly_request_limit(self) -> Optional[int]:
        return self.max_requests_per_year or None


# ═════════════════════════════════════════════════════════════════════
# Calendar
# ═════════════════════════════════════════════════════════════════════


class CalendarConfiguration(PolicyModel):
    """Month / year boundaries used for crediting and expiry cycles.

    A ``standard`` month starts on day 1 and a ``standard`` year in January;
    the start value is locked to 1 whatever the payload says.
    """

    month_type: PeriodType = PeriodType.standard
    start_day: int = Field(default=1, ge=1, le=31)
    year_type: PeriodType = PeriodType.standard
    start_month: int = Field(default=1, ge=1, le=12)

    @model_validator(mode="before")
    @classmethod
    def lock_standard_periods(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        for type_field, start_field in (
            ("month_type", "start_day"),
            ("year_type", "start_month"),
        ):
            if lookup(data, type_field, PeriodType.standard) == PeriodType.standard:
                data.pop(to_camel(start_field), None)
                data[start_field] = 1
        return data
