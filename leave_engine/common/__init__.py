"""Common module — shared utilities for the leave policy engine."""

from leave_engine.common.audit import AuditTrail, create_audit_entry
from leave_engine.common.constants import (
    CATEGORY_ORDER,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    REQUEST_UNIT,
    CreditFrequency,
    EmployeeType,
    ExpireFrequency,
    GenderOption,
    LeaveCategory,
    LeaveUnit,
    MarriageStatus,
    PartialDaySelection,
    PeriodType,
    RequestCategory,
)
from leave_engine.common.exceptions import (
    AppException,
    ConflictError,
    NotFoundException,
    ProgrammerContractError,
    ResourceInUseException,
    ValidationException,
    register_exception_handlers,
)
from leave_engine.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)
from leave_engine.common.results import Accepted, ErrorKind, FieldError, Rejected
from leave_engine.common.schemas import CamelModel

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    # Constants / Enums
    "CreditFrequency",
    "EmployeeType",
    "ExpireFrequency",
    "GenderOption",
    "LeaveCategory",
    "LeaveUnit",
    "MarriageStatus",
    "PartialDaySelection",
    "PeriodType",
    "RequestCategory",
    "CATEGORY_ORDER",
    "REQUEST_UNIT",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "ConflictError",
    "NotFoundException",
    "ProgrammerContractError",
    "ResourceInUseException",
    "ValidationException",
    "register_exception_handlers",
    # Results
    "Accepted",
    "ErrorKind",
    "FieldError",
    "Rejected",
    # Schemas
    "CamelModel",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "paginate",
]
