"""Application router — validate leave and credit requests before submission."""


from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leave_engine.applications.schemas import (
    CreditApplicationPayload,
    LeaveApplicationPayload,
    ValidateCreditRequest,
    ValidateLeaveRequest,
)
from leave_engine.applications.service import ApplicationService
from leave_engine.common.results import Accepted
from leave_engine.database import get_db

router = APIRouter(prefix="", tags=["applications"])


# ── POST /leave/validate ────────────────────────────────────────────

@router.post("/leave/validate", response_model=Accepted[LeaveApplicationPayload])
async def validate_leave(
    body: ValidateLeaveRequest,
    db: AsyncSession = Depends(get_db),
):
    """Validate a leave request; failures come back as a 422 with every field."""
    return await ApplicationService.validate_leave(
        db,
        body.request,
        scope_id=body.scope_id,
        balance=body.balance,
        applicant=body.applicant,
        holidays=body.holidays,
        today=body.today,
    )


# ── POST /credit/validate ───────────────────────────────────────────

@router.post("/credit/validate", response_model=Accepted[CreditApplicationPayload])
async def validate_credit(
    body: ValidateCreditRequest,
    db: AsyncSession = Depends(get_db),
):
    """Validate a credit request against a special-category configuration."""
    return await ApplicationService.validate_credit(
        db, body.request, scope_id=body.scope_id, today=body.today,
    )
