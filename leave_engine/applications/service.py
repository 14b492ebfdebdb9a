"""Application service layer — load the configuration, run the validator.

Nothing is stored: an accepted request comes back as the normalised payload
the caller submits to the leave backend.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from leave_engine.applications.schemas import (
    ApplicantContext,
    CreditApplicationPayload,
    CreditRequestCandidate,
    LeaveApplicationPayload,
    LeaveRequestCandidate,
    RequestRules,
)
from leave_engine.applications.validator import (
    validate_credit_request,
    validate_leave_request,
)
from leave_engine.balance.schemas import LeaveBalanceModel
from leave_engine.common.exceptions import NotFoundException
from leave_engine.common.results import Accepted, Rejected
from leave_engine.configuration.service import LeaveConfigurationService

logger = logging.getLogger(__name__)


class ApplicationService:
    """Validate leave and credit requests against stored configurations."""

    @staticmethod
    async def validate_leave(
        db: AsyncSession,
        request: LeaveRequestCandidate,
        *,
        scope_id: Optional[str] = None,
        balance: Optional[LeaveBalanceModel] = None,
        applicant: Optional[ApplicantContext] = None,
        holidays: Iterable[date] = (),
        today: Optional[date] = None,
        rules: Optional[RequestRules] = None,
    ) -> Accepted[LeaveApplicationPayload]:
        config = await LeaveConfigurationService.get_by_code(
            db, request.leave_type_code, scope_id,
        )
        if config is None:
            raise NotFoundException("LeaveConfiguration", request.leave_type_code)

        result = validate_leave_request(
            request,
            config,
            balance,
            today=today,
            holidays=holidays,
            applicant=applicant,
            rules=rules,
        )
        if isinstance(result, Rejected):
            logger.info(
                "Leave request for %s rejected: %s", config.code, sorted(result.fields),
            )
            raise result.to_exception()
        return result

    @staticmethod
    async def validate_credit(
        db: AsyncSession,
        request: CreditRequestCandidate,
        *,
        scope_id: Optional[str] = None,
        today: Optional[date] = None,
        rules: Optional[RequestRules] = None,
    ) -> Accepted[CreditApplicationPayload]:
        config = await LeaveConfigurationService.get_by_code(
            db, request.credit_type, scope_id,
        )
        result = validate_credit_request(request, config, today=today, rules=rules)
        if isinstance(result, Rejected):
            logger.info(
                "Credit request for %s rejected: %s",
                request.credit_type, sorted(result.fields),
            )
            raise result.to_exception()
        return result
