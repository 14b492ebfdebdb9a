"""Leave configuration service layer — persistence around the pure rules.

Business logic lives in ``configuration.rules``; this layer:
  - loads the configurations a rule needs (same-scope codes, targets)
  - turns ``Rejected`` results into ``ValidationException``
  - persists the returned configuration and records an audit entry
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Iterable, Optional, Union

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_engine.common.audit import create_audit_entry
from leave_engine.common.exceptions import (
    ConflictError,
    NotFoundException,
    ResourceInUseException,
)
from leave_engine.common.pagination import PaginatedResponse, PaginationParams, paginate
from leave_engine.common.results import Rejected
from leave_engine.configuration import rules
from leave_engine.configuration.models import LeaveConfigurationRecord
from leave_engine.configuration.schemas import (
    LeaveConfiguration,
    LeaveConfigurationCreate,
    LeaveConfigurationFilters,
    LeaveConfigurationUpdate,
)

logger = logging.getLogger(__name__)

ENTITY_TYPE = "leave_configuration"


def _snapshot(config: LeaveConfiguration) -> dict[str, Any]:
    return config.model_dump(mode="json", by_alias=True)


def _raise_if_rejected(result: Any, action: str) -> None:
    if isinstance(result, Rejected):
        logger.info(
            "Leave configuration %s rejected: %s", action, sorted(result.fields),
        )
        raise result.to_exception()


class LeaveConfigurationService:
    """Async configuration operations: list, fetch, create, update, assign, copy, delete."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _get_record(
        db: AsyncSession,
        config_id: uuid.UUID,
    ) -> LeaveConfigurationRecord:
        record = await db.get(LeaveConfigurationRecord, config_id)
        if record is None:
            raise NotFoundException("LeaveConfiguration", str(config_id))
        return record

    @staticmethod
    async def _in_scopes(
        db: AsyncSession,
        scope_ids: Iterable[Optional[str]],
    ) -> list[LeaveConfiguration]:
        """Load every configuration living in one of *scope_ids*."""
        scopes = list(dict.fromkeys(scope_ids))
        named = [s for s in scopes if s is not None]
        clauses = []
        if named:
            clauses.append(LeaveConfigurationRecord.scope_id.in_(named))
        if None in scopes:
            clauses.append(LeaveConfigurationRecord.scope_id.is_(None))
        if not clauses:
            return []
        result = await db.execute(
            select(LeaveConfigurationRecord).where(or_(*clauses))
        )
        return [r.to_domain() for r in result.scalars().all()]

    # ─────────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_configurations(
        db: AsyncSession,
        filters: LeaveConfigurationFilters,
        params: PaginationParams,
    ) -> PaginatedResponse:
        """Paginated listing filtered by scope, category and name/code search."""

        query = select(LeaveConfigurationRecord).order_by(LeaveConfigurationRecord.name)
        if filters.scope_id is not None:
            query = query.where(LeaveConfigurationRecord.scope_id == filters.scope_id)
        if filters.category is not None:
            query = query.where(LeaveConfigurationRecord.category == filters.category.value)
        if filters.search:
            term = f"%{filters.search.strip().lower()}%"
            query = query.where(
                or_(
                    func.lower(LeaveConfigurationRecord.name).like(term),
                    func.lower(LeaveConfigurationRecord.code).like(term),
                )
            )

        return await paginate(
            db,
            query,
            params,
            model=LeaveConfigurationRecord,
            transform=LeaveConfigurationRecord.to_domain,
        )

    @staticmethod
    async def fetch_configurations(
        db: AsyncSession,
        scope_id: Optional[str],
    ) -> list[LeaveConfiguration]:
        """All configurations of one scope, ordered by code."""
        configs = await LeaveConfigurationService._in_scopes(db, [scope_id])
        return sorted(configs, key=lambda c: c.code)

    @staticmethod
    async def get(
        db: AsyncSession,
        config_id: uuid.UUID,
    ) -> LeaveConfiguration:
        record = await LeaveConfigurationService._get_record(db, config_id)
        return record.to_domain()

    @staticmethod
    async def get_by_code(
        db: AsyncSession,
        code: str,
        scope_id: Optional[str],
    ) -> Optional[LeaveConfiguration]:
        query = select(LeaveConfigurationRecord).where(
            func.lower(LeaveConfigurationRecord.code) == code.strip().lower()
        )
        if scope_id is None:
            query = query.where(LeaveConfigurationRecord.scope_id.is_(None))
        else:
            query = query.where(LeaveConfigurationRecord.scope_id == scope_id)
        record = (await db.execute(query)).scalars().first()
        return record.to_domain() if record else None

    # ─────────────────────────────────────────────────────────────────
    # Writes
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def create(
        db: AsyncSession,
        carrier: LeaveConfigurationCreate,
        *,
        scope_id: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> LeaveConfiguration:
        existing = await LeaveConfigurationService._in_scopes(db, [scope_id])
        result = rules.create(carrier, existing=existing, scope_id=scope_id)
        _raise_if_rejected(result, "create")

        db.add(LeaveConfigurationRecord.from_domain(result))
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("code", result.code)
        await create_audit_entry(
            db,
            action="create",
            entity_type=ENTITY_TYPE,
            entity_id=result.id,
            actor_id=actor_id,
            new_values=_snapshot(result),
        )
        logger.info(
            "Created leave configuration %s (%s) in scope %s",
            result.code, result.category.value, scope_id,
        )
        return result

    @staticmethod
    async def update(
        db: AsyncSession,
        config_id: uuid.UUID,
        patch: LeaveConfigurationUpdate,
        *,
        actor_id: Optional[str] = None,
    ) -> LeaveConfiguration:
        record = await LeaveConfigurationService._get_record(db, config_id)
        current = record.to_domain()
        result = rules.update(current, patch)
        _raise_if_rejected(result, "update")

        record.apply(result)
        await db.flush()
        await create_audit_entry(
            db,
            action="update",
            entity_type=ENTITY_TYPE,
            entity_id=result.id,
            actor_id=actor_id,
            old_values=_snapshot(current),
            new_values=_snapshot(result),
        )
        logger.info("Updated leave configuration %s (%s)", result.code, result.id)
        return result

    @staticmethod
    async def assign_employees(
        db: AsyncSession,
        config_id: uuid.UUID,
        employee_ids: Iterable[str],
        *,
        actor_id: Optional[str] = None,
    ) -> LeaveConfiguration:
        record = await LeaveConfigurationService._get_record(db, config_id)
        current = record.to_domain()
        result = rules.assign_employees(current, employee_ids)
        if result is current:
            return current

        record.apply(result)
        await db.flush()
        await create_audit_entry(
            db,
            action="assign_employees",
            entity_type=ENTITY_TYPE,
            entity_id=result.id,
            actor_id=actor_id,
            old_values={"employeeIds": sorted(current.employee_ids)},
            new_values={"employeeIds": sorted(result.employee_ids)},
        )
        logger.info(
            "Assigned %d employee(s) to leave configuration %s",
            len(result.employee_ids), result.code,
        )
        return result

    @staticmethod
    async def copy_to(
        db: AsyncSession,
        config_id: uuid.UUID,
        target_scope_ids: list[str],
        *,
        actor_id: Optional[str] = None,
    ) -> list[LeaveConfiguration]:
        record = await LeaveConfigurationService._get_record(db, config_id)
        current = record.to_domain()
        targets = rules.clean_scope_ids(target_scope_ids)
        existing = await LeaveConfigurationService._in_scopes(db, targets)
        result: Union[list[LeaveConfiguration], Rejected] = rules.copy_to(
            current, targets, existing=existing,
        )
        _raise_if_rejected(result, "copy")

        for clone in result:
            db.add(LeaveConfigurationRecord.from_domain(clone))
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("code", current.code)
        for clone in result:
            await create_audit_entry(
                db,
                action="copy",
                entity_type=ENTITY_TYPE,
                entity_id=clone.id,
                actor_id=actor_id,
                old_values={"sourceId": str(current.id)},
                new_values=_snapshot(clone),
            )
        logger.info(
            "Copied leave configuration %s to %d scope(s)", current.code, len(result),
        )
        return result

    @staticmethod
    async def delete(
        db: AsyncSession,
        config_id: uuid.UUID,
        *,
        actor_id: Optional[str] = None,
    ) -> None:
        record = await LeaveConfigurationService._get_record(db, config_id)
        current = record.to_domain()
        problems = rules.check_deletable(current)
        if problems:
            raise ResourceInUseException(
                "LeaveConfiguration", str(config_id), problems[0].message,
            )

        await db.delete(record)
        await db.flush()
        await create_audit_entry(
            db,
            action="delete",
            entity_type=ENTITY_TYPE,
            entity_id=current.id,
            actor_id=actor_id,
            old_values=_snapshot(current),
        )
        logger.info("Deleted leave configuration %s (%s)", current.code, current.id)
