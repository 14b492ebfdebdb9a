"""Pure configuration operations: create, update, assign employees, copy.

Nothing here touches the database. Each operation returns the new
``LeaveConfiguration`` (or a list of them) for the caller to persist, or a
``Rejected`` listing every invariant the input breaks.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from leave_engine.common.models import utcnow
from leave_engine.common.results import (
    ErrorKind,
    FieldError,
    Rejected,
    errors_from_validation,
)
from leave_engine.configuration.flags import allowed_units_for, derive_flags
from leave_engine.configuration.schemas import (
    POLICY_FLAGS,
    LeaveConfiguration,
    LeaveConfigurationCreate,
    LeaveConfigurationUpdate,
    LeaveProperties,
)
from leave_engine.policies.schemas import (
    CreditPolicy,
    ExpirePolicy,
    PolicyModel,
    lookup,
)

ConfigurationResult = Union[LeaveConfiguration, Rejected]

# Fields a patch may explicitly clear
NULLABLE_FIELDS = frozenset({"start_date", *POLICY_FLAGS})

_CONTRACT_CHECKED: dict[str, type[PolicyModel]] = {
    "credit_policy": CreditPolicy,
    "expire_policy": ExpirePolicy,
}


# ── Helpers ─────────────────────────────────────────────────────────

def _invariant(field: str, message: str) -> FieldError:
    return FieldError(field=field, kind=ErrorKind.configuration_invariant, message=message)


def _assert_nested_contracts(data: Mapping[str, Any]) -> None:
    for field, policy_cls in _CONTRACT_CHECKED.items():
        nested = lookup(data, field)
        if isinstance(nested, Mapping):
            policy_cls.assert_contract(nested)


def _parse(model: type[PolicyModel], data: Any) -> tuple[Optional[Any], list[FieldError]]:
    if isinstance(data, model):
        return data, []
    if isinstance(data, Mapping):
        _assert_nested_contracts(data)
    try:
        return model.model_validate(data), []
    except ValidationError as exc:
        return None, errors_from_validation(exc, ErrorKind.configuration_invariant)


def apply_category(carrier: LeaveConfigurationCreate) -> LeaveConfigurationCreate:
    """Force the gates and unit types the category dictates."""
    flags = derive_flags(carrier.category, carrier.flags)
    units = allowed_units_for(carrier.category, carrier.leave_properties.allowed_types)
    properties = carrier.leave_properties
    if units != properties.allowed_types:
        properties = LeaveProperties(
            allowed_types=units,
            number_of_days_per_one_leave=properties.number_of_days_per_one_leave,
        )
    return carrier.model_copy(
        update={**flags.model_dump(), "leave_properties": properties},
    )


def invariant_errors(carrier: LeaveConfigurationCreate) -> list[FieldError]:
    """Every open gate needs its policy."""
    errors: list[FieldError] = []
    for policy_field, flag in POLICY_FLAGS.items():
        if getattr(carrier, flag) and getattr(carrier, policy_field) is None:
            errors.append(_invariant(
                policy_field,
                f"{to_camel(policy_field)} is required when {to_camel(flag)} is enabled "
                f"for {carrier.category.value} leave.",
            ))
    return errors


def code_taken(
    code: str,
    scope_id: Optional[str],
    existing: Iterable[LeaveConfiguration],
    *,
    exclude_id: Optional[uuid.UUID] = None,
) -> bool:
    wanted = code.strip().casefold()
    return any(
        cfg.scope_id == scope_id
        and cfg.code.casefold() == wanted
        and cfg.id != exclude_id
        for cfg in existing
    )



def clean_scope_ids(scope_ids: Iterable[Any]) -> list[str]:
    """Stripped, de-duplicated scope ids in input order; blanks dropped."""
    return [t for t in dict.fromkeys(str(s).strip() for s in scope_ids) if t]


# ── Operations ──────────────────────────────────────────────────────

def create(
    carrier: Union[LeaveConfigurationCreate, Mapping[str, Any]],
    *,
    existing: Iterable[LeaveConfiguration] = (),
    scope_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ConfigurationResult:
    """Validate a carrier and mint a new configuration identity."""
    parsed, errors = _parse(LeaveConfigurationCreate, carrier)
    if parsed is None:
        return Rejected(errors=errors)

    normalized = apply_category(parsed)
    errors = invariant_errors(normalized)
    if code_taken(normalized.code, scope_id, existing):
        errors.append(_invariant(
            "code", f"Leave code '{normalized.code}' is already in use.",
        ))
    if errors:
        return Rejected(errors=errors)

    stamp = now or utcnow()
    return LeaveConfiguration.model_validate({
        **normalized.body(),
        "id": uuid.uuid4(),
        "scope_id": scope_id,
        "created_at": stamp,
        "updated_at": stamp,
    })


def update(
    current: LeaveConfiguration,
    patch: Union[LeaveConfigurationUpdate, Mapping[str, Any]],
    *,
    now: Optional[datetime] = None,
) -> ConfigurationResult:
    """Apply a patch under the same invariants as ``create``.

    The code is immutable once created; sending a different one is rejected.
    """
    parsed, errors = _parse(LeaveConfigurationUpdate, patch)
    if parsed is None:
        return Rejected(errors=errors)

    changes = {
        field: getattr(parsed, field)
        for field in parsed.model_fields_set
        if getattr(parsed, field) is not None or field in NULLABLE_FIELDS
    }
    if "code" in changes:
        if changes.pop("code").strip().casefold() != current.code.casefold():
            return Rejected(errors=[_invariant(
                "code", f"Leave code cannot be changed after creation (is '{current.code}').",
            )])

    merged = {**current.body(), **changes}
    candidate, errors = _parse(LeaveConfigurationCreate, merged)
    if candidate is None:
        return Rejected(errors=errors)

    normalized = apply_category(candidate)
    errors = invariant_errors(normalized)
    if errors:
        return Rejected(errors=errors)

    return LeaveConfiguration.model_validate({
        **normalized.body(),
        "id": current.id,
        "scope_id": current.scope_id,
        "created_at": current.created_at,
        "updated_at": now or utcnow(),
    })


def assign_employees(
    current: LeaveConfiguration,
    employee_ids: Iterable[Any],
    *,
    now: Optional[datetime] = None,
) -> LeaveConfiguration:
    """Replace the applicability set. Same set in, same configuration out."""
    ids = frozenset(str(i).strip() for i in employee_ids if str(i).strip())
    if ids == current.employee_ids:
        return current
    return current.model_copy(update={"employee_ids": ids, "updated_at": now or utcnow()})


def copy_to(
    current: LeaveConfiguration,
    target_scope_ids: Iterable[str],
    *,
    existing: Iterable[LeaveConfiguration] = (),
    now: Optional[datetime] = None,
) -> Union[list[LeaveConfiguration], Rejected]:
    """Clone policies, restrictions and calendar into other scopes.

    Clones get new ids and keep code, category and policy values; employee
    assignments stay with the source. The source scope itself is skipped.
    """
    existing = list(existing)
    targets = [t for t in clean_scope_ids(target_scope_ids) if t != current.scope_id]
    errors = [
        FieldError(
            field="target_scope_ids",
            kind=ErrorKind.configuration_invariant,
            message=f"Leave code '{current.code}' already exists in scope '{target}'.",
        )
        for target in targets
        if code_taken(current.code, target, existing)
    ]
    if errors:
        return Rejected(errors=errors)

    stamp = now or utcnow()
    return [
        current.model_copy(
            update={
                "id": uuid.uuid4(),
                "scope_id": target,
                "employee_ids": frozenset(),
                "created_at": stamp,
                "updated_at": stamp,
            },
            deep=True,
        )
        for target in targets
    ]


def check_deletable(current: LeaveConfiguration) -> list[FieldError]:
    if current.employee_ids:
        return [_invariant(
            "employee_ids",
            f"{len(current.employee_ids)} employee(s) are still assigned; "
            "unassign them before deleting.",
        )]
    return []
