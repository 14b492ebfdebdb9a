"""Balance derivation — ledger rows in, display-ready balance cards out.

The derivation functions are pure: the ledger is read, never mutated, and
rounding applies only to the values put on a card.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from leave_engine.balance.schemas import (
    ZERO,
    AccruedBalance,
    AccruedCard,
    BalanceSummary,
    EmployeeBalanceSheet,
    FlexibleBalance,
    FlexibleCard,
    LeaveBalanceModel,
    MonetizationBalance,
    MonetizationCard,
    SpecialBalance,
    SpecialCard,
)
from leave_engine.common.constants import CATEGORY_ORDER, LeaveCategory
from leave_engine.common.exceptions import ProgrammerContractError
from leave_engine.configuration.schemas import LeaveConfiguration
from leave_engine.configuration.service import LeaveConfigurationService

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
_DISPLAY_STEP = Decimal("0.1")

Card = Union[AccruedCard, FlexibleCard, SpecialCard, MonetizationCard]
CategoryBalance = Union[AccruedBalance, FlexibleBalance, SpecialBalance, MonetizationBalance]


def round_display(value: Decimal) -> Decimal:
    """One decimal place, halves rounded away from zero (2.25 → 2.3)."""
    return Decimal(value).quantize(_DISPLAY_STEP, rounding=ROUND_HALF_UP)


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    if whole == 0:
        return round_display(ZERO)
    return round_display(part / whole * HUNDRED)


def _narrow(
    config: LeaveConfiguration,
    ledger: Union[LeaveBalanceModel, CategoryBalance],
) -> CategoryBalance:
    if isinstance(ledger, LeaveBalanceModel):
        return ledger.for_category(config.category)
    if ledger.category != config.category:
        raise ProgrammerContractError(
            f"{type(ledger).__name__} cannot describe {config.category.value} "
            f"configuration {config.code}."
        )
    return ledger


def derive_balance(
    config: LeaveConfiguration,
    ledger: Union[LeaveBalanceModel, CategoryBalance],
) -> Card:
    """Build the card for one configuration from its ledger row."""
    balance = _narrow(config, ledger)

    identity = {"config_id": config.id, "code": config.code, "name": config.name}

    if isinstance(balance, AccruedBalance):
        return AccruedCard(
            **identity,
            can_apply=balance.available > 0,
            available=round_display(balance.available),
            consumed=round_display(balance.consumed),
            accrued=round_display(balance.accrued),
            percent_used=_percent(balance.consumed, balance.accrued),
        )
    if isinstance(balance, FlexibleBalance):
        return FlexibleCard(
            **identity,
            can_apply=True,
            consumed=round_display(balance.consumed),
        )
    if isinstance(balance, SpecialBalance):
        total = balance.total
        return SpecialCard(
            **identity,
            can_apply=balance.available > 0,
            available=round_display(balance.available),
            consumed=round_display(balance.consumed),
            expired=round_display(balance.expired),
            total=round_display(total),
            percent_available=_percent(balance.available, total),
            percent_consumed=_percent(balance.consumed, total),
            percent_expired=_percent(balance.expired, total),
        )
    return MonetizationCard(
        **identity,
        can_apply=balance.convertible > 0,
        available=round_display(balance.available),
        encashable=round_display(balance.encashable),
        monetizable=round_display(balance.monetizable),
        percent_convertible=_percent(balance.convertible, balance.available),
    )


def summarize_balances(
    entries: Iterable[tuple[LeaveConfiguration, Union[LeaveBalanceModel, CategoryBalance]]],
) -> BalanceSummary:
    """Header totals across every configuration an employee holds.

    Flexible leave has no ``available`` and stays out of the total;
    encashable and monetizable days only count for monetization leave.
    """
    available = encashable = monetizable = ZERO
    for config, ledger in entries:
        balance = _narrow(config, ledger)
        if config.category == LeaveCategory.flexible:
            continue
        available += balance.available
        if isinstance(balance, MonetizationBalance):
            encashable += balance.encashable
            monetizable += balance.monetizable
    return BalanceSummary(
        total_available=round_display(available),
        total_encashable=round_display(encashable),
        total_monetizable=round_display(monetizable),
    )


def derive_employee_balances(
    configs: Iterable[LeaveConfiguration],
    ledger: Mapping[str, LeaveBalanceModel],
) -> EmployeeBalanceSheet:
    """Cards for every ledger row that has a configuration, plus the summary.

    Codes match case-insensitively; two ledger rows resolving to the same
    configuration raise ``ProgrammerContractError``.
    """
    by_code = {c.code.casefold(): c for c in configs}
    matched: dict[str, str] = {}
    entries: list[tuple[LeaveConfiguration, CategoryBalance]] = []
    for code, row in ledger.items():
        key = code.strip().casefold()
        config = by_code.get(key)
        if config is None:
            logger.warning("Ledger row %s has no leave configuration; skipped", code)
            continue
        if key in matched:
            raise ProgrammerContractError(
                f"Ledger rows {matched[key]!r} and {code!r} both describe "
                f"configuration {config.code}."
            )
        matched[key] = code
        entries.append((config, row.for_category(config.category)))

    entries.sort(key=lambda e: (CATEGORY_ORDER[e[0].category], e[0].code))
    return EmployeeBalanceSheet(
        cards=[derive_balance(config, balance) for config, balance in entries],
        summary=summarize_balances(entries),
    )


class BalanceService:
    """Balance sheet for one scope's configurations."""

    @staticmethod
    async def derive_for_scope(
        db: AsyncSession,
        scope_id: Optional[str],
        ledger: Mapping[str, LeaveBalanceModel],
    ) -> EmployeeBalanceSheet:
        configs = await LeaveConfigurationService.fetch_configurations(db, scope_id)
        sheet = derive_employee_balances(configs, ledger)
        logger.debug(
            "Derived %d balance card(s) for scope %s", len(sheet.cards), scope_id,
        )
        return sheet
