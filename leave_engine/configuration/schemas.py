"""Leave configuration Pydantic v2 schemas — the aggregate root and its carriers.

Naming conventions:
  - *Create → full carrier for a new configuration (write)
  - *Update → patch carrier; only fields present in the payload apply
  - LeaveConfiguration → persisted aggregate (read)
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_serializer, field_validator

from leave_engine.common.constants import (
    CODE_MAX_LENGTH,
    EmployeeType,
    GenderOption,
    LeaveCategory,
    LeaveUnit,
    MarriageStatus,
)
from leave_engine.common.schemas import CamelModel
from leave_engine.policies.schemas import (
    CalendarConfiguration,
    CreditPolicy,
    ExpirePolicy,
    MonetizationPolicy,
    PolicyModel,
    Restrictions,
)

EmployeeId = str

# policy attribute → flag that gates it
POLICY_FLAGS: dict[str, str] = {
    "credit_policy": "allow_credit_policy",
    "expire_policy": "allow_expire_policy",
    "monetization_policy": "allow_monetization",
    "restrictions": "allow_restrictions",
}


# ═════════════════════════════════════════════════════════════════════
# Embedded
# ═════════════════════════════════════════════════════════════════════


class LeaveProperties(PolicyModel):
    """Leave-unit types a configuration accepts."""

    allowed_types: list[LeaveUnit] = Field(
        default_factory=lambda: [LeaveUnit.full_day], min_length=1,
    )
    number_of_days_per_one_leave: Decimal = Field(
        default=Decimal("1"), gt=0, description="Balance days charged per leave day",
    )

    @field_validator("allowed_types")
    @classmethod
    def unique_types(cls, v: list[LeaveUnit]) -> list[LeaveUnit]:
        return list(dict.fromkeys(v))


class ApplicableCategories(PolicyModel):
    """Which employees a configuration applies to."""

    is_for_all_employee_types: bool = True
    gender: GenderOption = GenderOption.all
    married_status: MarriageStatus = MarriageStatus.all
    employee_types: list[EmployeeType] = Field(
        default_factory=lambda: [EmployeeType.all],
    )

    def covers_gender(self, gender: Optional[str]) -> bool:
        return self.gender == GenderOption.all or gender is None or gender == self.gender

    def covers_marital_status(self, status: Optional[str]) -> bool:
        return (
            self.married_status == MarriageStatus.all
            or status is None
            or status == self.married_status
        )

    def covers_employee_type(self, employee_type: Optional[str]) -> bool:
        if self.is_for_all_employee_types or employee_type is None:
            return True
        if EmployeeType.all in self.employee_types:
            return True
        return employee_type in self.employee_types


class ConfigurationFlags(PolicyModel):
    """The four gates that switch a policy facet on or off."""

    allow_credit_policy: bool = False
    allow_expire_policy: bool = False
    allow_monetization: bool = False
    allow_restrictions: bool = False


# ═════════════════════════════════════════════════════════════════════
# Configuration — shared body
# ═════════════════════════════════════════════════════════════════════


class LeaveConfigurationBase(PolicyModel):
    # Basic information
    name: str = Field(..., min_length=2, max_length=100)
    code: str = Field(..., min_length=2, max_length=CODE_MAX_LENGTH)
    tagline: str = ""
    description: str = ""
    category: LeaveCategory

    # Timeline
    start_date: Optional[date] = None

    leave_properties: LeaveProperties = Field(default_factory=LeaveProperties)

    # Policies, each gated by its allow* flag. A policy stays stored while
    # its flag is off so re-enabling restores it.
    allow_credit_policy: bool = False
    credit_policy: Optional[CreditPolicy] = None
    allow_monetization: bool = False
    monetization_policy: Optional[MonetizationPolicy] = None
    allow_expire_policy: bool = False
    expire_policy: Optional[ExpirePolicy] = None
    allow_restrictions: bool = False
    restrictions: Optional[Restrictions] = None

    calendar_configuration: CalendarConfiguration = Field(
        default_factory=CalendarConfiguration,
    )
    applicable_categories: ApplicableCategories = Field(
        default_factory=ApplicableCategories,
    )
    employee_ids: frozenset[EmployeeId] = Field(default_factory=frozenset)

    @field_validator("name", "code", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("employee_ids", mode="before")
    @classmethod
    def clean_employee_ids(cls, v: object) -> object:
        if v is None:
            return frozenset()
        if isinstance(v, (list, tuple, set, frozenset)):
            return frozenset(str(i).strip() for i in v if str(i).strip())
        return v

    @field_serializer("employee_ids")
    def sorted_employee_ids(self, v: frozenset[EmployeeId]) -> list[EmployeeId]:
        return sorted(v)

    @property
    def flags(self) -> ConfigurationFlags:
        return ConfigurationFlags(
            allow_credit_policy=self.allow_credit_policy,
            allow_expire_policy=self.allow_expire_policy,
            allow_monetization=self.allow_monetization,
            allow_restrictions=self.allow_restrictions,
        )

    # Policies as they take effect: None while the gate is closed

    @property
    def active_credit_policy(self) -> Optional[CreditPolicy]:
        return self.credit_policy if self.allow_credit_policy else None

    @property
    def active_expire_policy(self) -> Optional[ExpirePolicy]:
        return self.expire_policy if self.allow_expire_policy else None

    @property
    def active_monetization_policy(self) -> Optional[MonetizationPolicy]:
        return self.monetization_policy if self.allow_monetization else None

    @property
    def active_restrictions(self) -> Optional[Restrictions]:
        return self.restrictions if self.allow_restrictions else None

    def body(self) -> dict:
        """Authorable fields only (no identity or timestamps)."""
        return self.model_dump(include=set(LeaveConfigurationBase.model_fields))


class LeaveConfigurationCreate(LeaveConfigurationBase):
    """Carrier for a new configuration."""


class LeaveConfigurationUpdate(PolicyModel):
    """Patch carrier; every field optional, only fields sent are applied."""

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    code: Optional[str] = Field(None, min_length=2, max_length=CODE_MAX_LENGTH)
    tagline: Optional[str] = None
    description: Optional[str] = None
    category: Optional[LeaveCategory] = None
    start_date: Optional[date] = None
    leave_properties: Optional[LeaveProperties] = None
    allow_credit_policy: Optional[bool] = None
    credit_policy: Optional[CreditPolicy] = None
    allow_monetization: Optional[bool] = None
    monetization_policy: Optional[MonetizationPolicy] = None
    allow_expire_policy: Optional[bool] = None
    expire_policy: Optional[ExpirePolicy] = None
    allow_restrictions: Optional[bool] = None
    restrictions: Optional[Restrictions] = None
    calendar_configuration: Optional[CalendarConfiguration] = None
    applicable_categories: Optional[ApplicableCategories] = None
    employee_ids: Optional[frozenset[EmployeeId]] = None

    @field_validator("name", "code", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v


class LeaveConfiguration(LeaveConfigurationBase):
    """Persisted aggregate root."""

    id: uuid.UUID
    scope_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Operation bodies
# ═════════════════════════════════════════════════════════════════════


class AssignEmployeesRequest(CamelModel):
    employee_ids: list[EmployeeId] = Field(default_factory=list)


class CopyConfigurationRequest(CamelModel):
    target_scope_ids: list[str] = Field(..., min_length=1)


class LeaveConfigurationFilters(CamelModel):
    """Query filters for listing configurations."""

    scope_id: Optional[str] = None
    category: Optional[LeaveCategory] = None
    search: Optional[str] = Field(None, description="Matches name or code")
