"""001 – Leave configurations and audit trail.

Revision ID: 001_leave_configurations
Revises:
Create Date: 2026-10-18 10:00:00.000000+05:30
"""

import re

from alembic import op
import sqlalchemy as sa

# Revision identifiers
revision = "001_leave_configurations"
down_revision = None
branch_labels = None
depends_on = None

_SAFE_IDENT_RE = re.compile(r'^[a-z_][a-z0-9_]*$')


def _validate_identifier(name: str) -> str:
    if not _SAFE_IDENT_RE.match(name):
        raise ValueError(f"Unsafe SQL identifier: {name!r}")
    return name


def _safe_drop_table(name: str) -> None:
    _validate_identifier(name)
    op.execute(sa.text(f'DROP TABLE IF EXISTS "{name}" CASCADE'))


def upgrade() -> None:
    # ══════════════════════════════════════════════════════════════════
    # 1. leave_configurations
    # ══════════════════════════════════════════════════════════════════
    op.execute("""
        CREATE TABLE IF NOT EXISTS leave_configurations (
            id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            scope_id        VARCHAR(64),
            code            VARCHAR(10) NOT NULL,
            name            VARCHAR(100) NOT NULL,
            category        VARCHAR(20) NOT NULL,
            document        JSONB NOT NULL DEFAULT '{}',
            employee_ids    JSONB NOT NULL DEFAULT '[]',
            created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_leave_configuration_scope_code UNIQUE (scope_id, code)
        )
    """)
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_leave_configurations_scope_id "
        "ON leave_configurations(scope_id)"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_leave_configurations_code "
        "ON leave_configurations(code)"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_leave_configurations_category "
        "ON leave_configurations(category)"
    )

    # ══════════════════════════════════════════════════════════════════
    # 2. audit_trail
    # ══════════════════════════════════════════════════════════════════
    op.execute("""
        CREATE TABLE IF NOT EXISTS audit_trail (
            id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            actor_id        VARCHAR(64),
            action          VARCHAR(50) NOT NULL,
            entity_type     VARCHAR(50) NOT NULL,
            entity_id       UUID NOT NULL,
            old_values      JSONB,
            new_values      JSONB,
            created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_audit_trail_entity "
        "ON audit_trail(entity_type, entity_id)"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_audit_trail_created_at ON audit_trail(created_at)"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_audit_trail_action ON audit_trail(action)"
    )


def downgrade() -> None:
    _safe_drop_table("audit_trail")
    _safe_drop_table("leave_configurations")
