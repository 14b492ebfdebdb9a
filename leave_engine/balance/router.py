"""Balance router — derive an employee's balance cards from ledger rows."""


from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leave_engine.balance.schemas import DeriveBalancesRequest, EmployeeBalanceSheet
from leave_engine.balance.service import BalanceService
from leave_engine.database import get_db

router = APIRouter(prefix="", tags=["balances"])


# ── POST /derive ────────────────────────────────────────────────────

@router.post("/derive", response_model=EmployeeBalanceSheet)
async def derive_balances(
    body: DeriveBalancesRequest,
    db: AsyncSession = Depends(get_db),
):
    """Cards and header totals for the ledger rows the caller sends."""
    return await BalanceService.derive_for_scope(db, body.scope_id, body.ledger)
