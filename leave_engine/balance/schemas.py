"""Balance schemas — the backend ledger, its per-category variants and cards.

Naming conventions:
  - LeaveBalanceModel → wide ledger record as the backend sends it
  - *Balance          → category-specific variant (tagged union on ``category``)
  - *Card             → presentation values, rounded for display
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Annotated, Literal, Optional, Union

from pydantic import Field, model_validator

from leave_engine.common.constants import LeaveCategory
from leave_engine.common.exceptions import ProgrammerContractError
from leave_engine.common.schemas import CamelModel

ZERO = Decimal("0")


def _require_non_negative(model: CamelModel, *names: str) -> None:
    for name in names:
        if getattr(model, name) < 0:
            raise ProgrammerContractError(
                f"{type(model).__name__}.{name} cannot be negative "
                f"(got {getattr(model, name)})."
            )


# ═════════════════════════════════════════════════════════════════════
# Ledger variants
# ═════════════════════════════════════════════════════════════════════


class AccruedBalance(CamelModel):
    category: Literal[LeaveCategory.accrued] = LeaveCategory.accrued
    available: Decimal = ZERO
    consumed: Decimal = ZERO

    @model_validator(mode="after")
    def non_negative(self):
        _require_non_negative(self, "available", "consumed")
        return self

    @property
    def accrued(self) -> Decimal:
        return self.available + self.consumed


class FlexibleBalance(CamelModel):
    """Consumption only; flexible leave has no ceiling."""

    category: Literal[LeaveCategory.flexible] = LeaveCategory.flexible
    consumed: Decimal = ZERO

    @model_validator(mode="after")
    def non_negative(self):
        _require_non_negative(self, "consumed")
        return self

    @property
    def available(self) -> Decimal:
        return ZERO


class SpecialBalance(CamelModel):
    """Available, consumed and expired together make the lifetime total."""

    category: Literal[LeaveCategory.special] = LeaveCategory.special
    available: Decimal = ZERO
    consumed: Decimal = ZERO
    expired: Decimal = ZERO

    @model_validator(mode="after")
    def non_negative(self):
        _require_non_negative(self, "available", "consumed", "expired")
        return self

    @property
    def total(self) -> Decimal:
        return self.available + self.consumed + self.expired


class MonetizationBalance(CamelModel):
    category: Literal[LeaveCategory.monetization] = LeaveCategory.monetization
    available: Decimal = ZERO
    encashable: Decimal = ZERO
    monetizable: Decimal = ZERO

    @model_validator(mode="after")
    def non_negative(self):
        _require_non_negative(self, "available", "encashable", "monetizable")
        if self.encashable + self.monetizable > self.available:
            raise ProgrammerContractError(
                f"encashable ({self.encashable}) + monetizable ({self.monetizable}) "
                f"exceeds available ({self.available})."
            )
        return self

    @property
    def convertible(self) -> Decimal:
        return self.encashable + self.monetizable


CategoryBalance = Annotated[
    Union[AccruedBalance, FlexibleBalance, SpecialBalance, MonetizationBalance],
    Field(discriminator="category"),
]


class LeaveBalanceModel(CamelModel):
    """One ledger row per leave code, exactly as the backend reports it."""

    available: Optional[Decimal] = None
    consumed: Optional[Decimal] = None
    accrued: Optional[Decimal] = None
    expired: Optional[Decimal] = None
    encashable: Optional[Decimal] = None
    monetizable: Optional[Decimal] = None

    def _counter(self, name: str) -> Decimal:
        value = getattr(self, name)
        return ZERO if value is None else value

    def for_category(
        self, category: LeaveCategory,
    ) -> Union[AccruedBalance, FlexibleBalance, SpecialBalance, MonetizationBalance]:
        """Narrow to the variant *category* uses. Missing counters read as 0."""
        c = self._counter
        if category == LeaveCategory.accrued:
            balance = AccruedBalance(available=c("available"), consumed=c("consumed"))
            if self.accrued is not None and self.accrued != balance.accrued:
                raise ProgrammerContractError(
                    f"Ledger accrued ({self.accrued}) differs from "
                    f"available + consumed ({balance.accrued})."
                )
            return balance
        if category == LeaveCategory.flexible:
            return FlexibleBalance(consumed=c("consumed"))
        if category == LeaveCategory.special:
            return SpecialBalance(
                available=c("available"), consumed=c("consumed"), expired=c("expired"),
            )
        return MonetizationBalance(
            available=c("available"),
            encashable=c("encashable"),
            monetizable=c("monetizable"),
        )


# ═════════════════════════════════════════════════════════════════════
# Presentation
# ═════════════════════════════════════════════════════════════════════


class _CardBase(CamelModel):
    config_id: uuid.UUID
    code: str
    name: str
    can_apply: bool


class AccruedCard(_CardBase):
    category: Literal[LeaveCategory.accrued] = LeaveCategory.accrued
    available: Decimal
    consumed: Decimal
    accrued: Decimal
    percent_used: Decimal


class FlexibleCard(_CardBase):
    category: Literal[LeaveCategory.flexible] = LeaveCategory.flexible
    consumed: Decimal


class SpecialCard(_CardBase):
    category: Literal[LeaveCategory.special] = LeaveCategory.special
    available: Decimal
    consumed: Decimal
    expired: Decimal
    total: Decimal
    percent_available: Decimal
    percent_consumed: Decimal
    percent_expired: Decimal


class MonetizationCard(_CardBase):
    category: Literal[LeaveCategory.monetization] = LeaveCategory.monetization
    available: Decimal
    encashable: Decimal
    monetizable: Decimal
    percent_convertible: Decimal


PresentationBalance = Annotated[
    Union[AccruedCard, FlexibleCard, SpecialCard, MonetizationCard],
    Field(discriminator="category"),
]


class BalanceSummary(CamelModel):
    total_available: Decimal = ZERO
    total_encashable: Decimal = ZERO
    total_monetizable: Decimal = ZERO


class EmployeeBalanceSheet(CamelModel):
    cards: list[PresentationBalance] = Field(default_factory=list)
    summary: BalanceSummary = Field(default_factory=BalanceSummary)


# ═════════════════════════════════════════════════════════════════════
# Request bodies
# ═════════════════════════════════════════════════════════════════════


class DeriveBalancesRequest(CamelModel):
    scope_id: Optional[str] = None
    ledger: dict[str, LeaveBalanceModel] = Field(
        default_factory=dict, description="Ledger rows keyed by leave code",
    )
