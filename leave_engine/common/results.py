"""Typed outcomes returned by the engine instead of raised errors.

The pure modules (policies, configuration rules, validator) never raise for
expected business outcomes; they return ``Rejected`` with one ``FieldError``
per failed check so the caller can highlight every offending input at once.
"""

from __future__ import annotations

import enum
from typing import Any, Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_snake

from leave_engine.common.exceptions import ValidationException

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    structural = "structural"
    policy_violation = "policy_violation"
    configuration_invariant = "configuration_invariant"


class FieldError(BaseModel):
    """One failed check, tagged with the field it concerns."""

    field: str
    kind: ErrorKind
    message: str


class Accepted(BaseModel, Generic[T]):
    accepted: Literal[True] = True
    payload: T


class Rejected(BaseModel):
    accepted: Literal[False] = False
    errors: list[FieldError]

    @property
    def fields(self) -> set[str]:
        return {e.field for e in self.errors}

    def messages_for(self, field: str) -> list[str]:
        return [e.message for e in self.errors if e.field == field]

    def to_exception(self) -> ValidationException:
        """Group messages per field into the 422 problem-detail shape."""
        grouped: dict[str, list[str]] = {}
        for err in self.errors:
            grouped.setdefault(err.field, []).append(err.message)
        return ValidationException(grouped)


def field_path(loc: tuple[Any, ...], prefix: Optional[str] = None) -> str:
    """Render a pydantic error location as a dotted snake_case path."""
    parts = [to_snake(p) if isinstance(p, str) else str(p) for p in loc]
    if prefix:
        parts.insert(0, prefix)
    return ".".join(parts) or "__root__"


def errors_from_validation(
    exc: ValidationError,
    kind: ErrorKind,
    *,
    prefix: Optional[str] = None,
) -> list[FieldError]:
    """Convert a pydantic ``ValidationError`` into one FieldError per failure."""
    return [
        FieldError(
            field=field_path(tuple(err.get("loc", ())), prefix),
            kind=kind,
            message=err.get("msg", "Invalid value"),
        )
        for err in exc.errors()
    ]
