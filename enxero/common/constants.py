"""Enums and constants for Enxero — matching the database ENUM types."""

from __future__ import annotations

import enum

DATE_FORMAT = "%Y-%m-%d"
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


# ── Companies ───────────────────────────────────────────────────────

class CompanyStatus(str, enum.Enum):
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    INACTIVE = "INACTIVE"


# ── Employees ───────────────────────────────────────────────────────

class EmployeeStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    ON_LEAVE = "ON_LEAVE"
    TERMINATED = "TERMINATED"
    SUSPENDED = "SUSPENDED"


# ── Forms ───────────────────────────────────────────────────────────

class FormStatus(str, enum.Enum):
    draft = "draft"
    published = "published"
    archived = "archived"


# ── Integrations ────────────────────────────────────────────────────

class IntegrationStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# ── Notifications ───────────────────────────────────────────────────

class NotificationType(str, enum.Enum):
    info = "info"
    success = "success"
    warning = "warning"
    error = "error"


# ── Payroll ─────────────────────────────────────────────────────────

class PayFrequency(str, enum.Enum):
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"


class PayrollStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PROCESSED = "PROCESSED"
    APPROVED = "APPROVED"
    PAID = "PAID"


# ── OTP ─────────────────────────────────────────────────────────────

class OtpType(str, enum.Enum):
    COMPANY_REGISTRATION = "COMPANY_REGISTRATION"
    USER_LOGIN = "USER_LOGIN"


class OtpStatus(str, enum.Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    EXPIRED = "EXPIRED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


# ── System ──────────────────────────────────────────────────────────

class LogLevel(str, enum.Enum):
    debug = "debug"
    info = "info"
    warn = "warn"
    error = "error"


# ── Permissions ─────────────────────────────────────────────────────

WILDCARD_PERMISSION = "*"

# Permission strings checked by route dependencies. A role holding "*"
# is granted every permission.
PERMISSIONS: dict[str, str] = {
    "read:all": "Read global/admin data (audit logs, system configuration)",
    "write:all": "Manage company-wide data (companies, roles, forms, payroll, files)",
    "read:users": "List and view users",
    "write:users": "Create, update and deactivate users",
    "write:employees": "Create and update employees",
    "view:leave_types": "List leave types",
    "create:leave_types": "Create leave types",
    "update:leave_types": "Update leave types",
    "view:leave_requests": "List and view leave requests",
    "create:leave_requests": "Submit leave requests",
    "update:leave_requests": "Edit pending leave requests",
    "delete:leave_requests": "Delete pending leave requests",
    "approve:leave_requests": "Approve leave requests",
    "reject:leave_requests": "Reject leave requests",
    "view:leave_balance": "View leave balances",
    "manage:leave_balance": "Allocate leave balances to employees",
    "admin": "Platform administration (OTP statistics)",
}

ADMIN_ROLE_NAME = "ADMIN"
