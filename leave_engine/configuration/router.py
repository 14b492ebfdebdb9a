"""Leave configuration router — list, create, patch, assign employees, copy, delete.

Authentication happens upstream; the gateway forwards the acting
administrator in ``X-Actor-Id`` for the audit trail.
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from leave_engine.common.constants import LeaveCategory
from leave_engine.common.pagination import PaginatedResponse, PaginationParams
from leave_engine.configuration.schemas import (
    AssignEmployeesRequest,
    CopyConfigurationRequest,
    LeaveConfiguration,
    LeaveConfigurationCreate,
    LeaveConfigurationFilters,
    LeaveConfigurationUpdate,
)
from leave_engine.configuration.service import LeaveConfigurationService
from leave_engine.database import get_db

router = APIRouter(prefix="", tags=["leave-configurations"])


# ── GET / ───────────────────────────────────────────────────────────

@router.get("", response_model=PaginatedResponse[LeaveConfiguration])
async def list_configurations(
    scope_id: Optional[str] = Query(None),
    category: Optional[LeaveCategory] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    params: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """List leave configurations with pagination."""
    filters = LeaveConfigurationFilters(scope_id=scope_id, category=category, search=search)
    return await LeaveConfigurationService.list_configurations(db, filters, params)


# ── POST / ──────────────────────────────────────────────────────────

@router.post("", response_model=LeaveConfiguration, status_code=status.HTTP_201_CREATED)
async def create_configuration(
    body: LeaveConfigurationCreate,
    scope_id: Optional[str] = Query(None, description="Organisational scope (company)"),
    actor_id: Optional[str] = Header(None, alias="X-Actor-Id"),
    db: AsyncSession = Depends(get_db),
):
    """Create a leave configuration. Category-forced policies must be supplied."""
    return await LeaveConfigurationService.create(
        db, body, scope_id=scope_id, actor_id=actor_id,
    )


# ── GET /{id} ───────────────────────────────────────────────────────

@router.get("/{config_id}", response_model=LeaveConfiguration)
async def get_configuration(
    config_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    return await LeaveConfigurationService.get(db, config_id)


# ── PATCH /{id} ─────────────────────────────────────────────────────

@router.patch("/{config_id}", response_model=LeaveConfiguration)
async def update_configuration(
    config_id: uuid.UUID,
    body: LeaveConfigurationUpdate,
    actor_id: Optional[str] = Header(None, alias="X-Actor-Id"),
    db: AsyncSession = Depends(get_db),
):
    """Patch a configuration. The code cannot change."""
    return await LeaveConfigurationService.update(db, config_id, body, actor_id=actor_id)


# ── PUT /{id}/employees ─────────────────────────────────────────────

@router.put("/{config_id}/employees", response_model=LeaveConfiguration)
async def assign_employees(
    config_id: uuid.UUID,
    body: AssignEmployeesRequest,
    actor_id: Optional[str] = Header(None, alias="X-Actor-Id"),
    db: AsyncSession = Depends(get_db),
):
    """Replace the set of employees the configuration applies to."""
    return await LeaveConfigurationService.assign_employees(
        db, config_id, body.employee_ids, actor_id=actor_id,
    )


# ── POST /{id}/copy ─────────────────────────────────────────────────

@router.post(
    "/{config_id}/copy",
    response_model=list[LeaveConfiguration],
    status_code=status.HTTP_201_CREATED,
)
async def copy_configuration(
    config_id: uuid.UUID,
    body: CopyConfigurationRequest,
    actor_id: Optional[str] = Header(None, alias="X-Actor-Id"),
    db: AsyncSession = Depends(get_db),
):
    """Clone the configuration into other scopes (employees are not copied)."""
    return await LeaveConfigurationService.copy_to(
        db, config_id, body.target_scope_ids, actor_id=actor_id,
    )


# ── DELETE /{id} ────────────────────────────────────────────────────

@router.delete("/{config_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_configuration(
    config_id: uuid.UUID,
    actor_id: Optional[str] = Header(None, alias="X-Actor-Id"),
    db: AsyncSession = Depends(get_db),
):
    """Delete a configuration that no employee is assigned to."""
    await LeaveConfigurationService.delete(db, config_id, actor_id=actor_id)
