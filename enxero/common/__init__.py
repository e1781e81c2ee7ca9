"""Common module — shared utilities for Enxero."""

from enxero.common.exceptions import (
    AppException,
    BadRequestException,
    ConflictError,
    ErrorKind,
    ForbiddenException,
    InternalServerException,
    NotFoundException,
    UnauthorizedException,
    register_exception_handlers,
)
from enxero.common.filters import apply_filters, apply_search, apply_sorting
from enxero.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    create_pagination_response,
    paginate,
)
from enxero.common.schemas import ApiResponse, CamelModel, MessageResponse
from enxero.common.tenancy import (
    create_tenant_where,
    execute_tenant_operation,
    get_tenant_record,
    require_company_id,
    tenant_operation,
    validate_tenant_access,
)

__all__ = [
    # Exceptions
    "AppException",
    "BadRequestException",
    "ConflictError",
    "ErrorKind",
    "ForbiddenException",
    "InternalServerException",
    "NotFoundException",
    "UnauthorizedException",
    "register_exception_handlers",
    # Filters
    "apply_filters",
    "apply_search",
    "apply_sorting",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "create_pagination_response",
    "paginate",
    # Schemas
    "ApiResponse",
    "CamelModel",
    "MessageResponse",
    # Tenancy
    "create_tenant_where",
    "execute_tenant_operation",
    "get_tenant_record",
    "require_company_id",
    "tenant_operation",
    "validate_tenant_access",
]
