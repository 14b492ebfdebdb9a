"""Leave configuration ORM model."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from leave_engine.common.models import JSONDocument, as_utc, utcnow
from leave_engine.configuration.schemas import LeaveConfiguration
from leave_engine.database import Base

# Stored in their own columns rather than inside the document
_COLUMN_FIELDS = {"id", "scope_id", "employee_ids", "created_at", "updated_at"}


class LeaveConfigurationRecord(Base):
    __tablename__ = "leave_configurations"
    __table_args__ = (
        sa.UniqueConstraint("scope_id", "code", name="uq_leave_configuration_scope_code"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    scope_id: Mapped[Optional[str]] = mapped_column(sa.String(64), index=True)
    code: Mapped[str] = mapped_column(sa.String(10), nullable=False, index=True)
    name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    category: Mapped[str] = mapped_column(sa.String(20), nullable=False, index=True)
    # Authorable body (policies, calendar, applicability) in wire format
    document: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False)
    employee_ids: Mapped[list[str]] = mapped_column(JSONDocument, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utcnow,
    )

    @classmethod
    def from_domain(cls, config: LeaveConfiguration) -> LeaveConfigurationRecord:
        record = cls(id=config.id)
        record.apply(config)
        return record

    def apply(self, config: LeaveConfiguration) -> None:
        """Overwrite every column from *config* (whole-object replace)."""
        self.scope_id = config.scope_id
        self.code = config.code
        self.name = config.name
        self.category = config.category.value
        self.document = config.model_dump(mode="json", exclude=_COLUMN_FIELDS)
        self.employee_ids = sorted(config.employee_ids)
        self.created_at = config.created_at
        self.updated_at = config.updated_at

    def to_domain(self) -> LeaveConfiguration:
        return LeaveConfiguration.model_validate({
            **self.document,
            "id": self.id,
            "scope_id": self.scope_id,
            "employee_ids": self.employee_ids or [],
            "created_at": as_utc(self.created_at),
            "updated_at": as_utc(self.updated_at),
        })

    def __repr__(self) -> str:
        return f"<LeaveConfiguration {self.code} ({self.category}) scope={self.scope_id}>"
