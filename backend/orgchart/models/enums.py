from __future__ import annotations

import enum


class JobRole(enum.StrEnum):
    """Job titles an employee can hold. Only one employee may be CEO."""

    CEO = "CEO"
    CFO = "CFO"
    COO = "COO"
    CTO = "CTO"
    HR_MANAGER = "HR Manager"
    ENGINEERING_MANAGER = "Engineering Manager"
    PRODUCT_MANAGER = "Product Manager"
    SALES_MANAGER = "Sales Manager"
    SENIOR_DEVELOPER = "Senior Developer"
    DEVELOPER = "Developer"
    JUNIOR_DEVELOPER = "Junior Developer"
    DESIGNER = "Designer"
    ACCOUNTANT = "Accountant"
    SALES_REPRESENTATIVE = "Sales Representative"
    SUPPORT_SPECIALIST = "Support Specialist"


class Operation(enum.StrEnum):
    """Operation names accepted by the RPC endpoint."""

    GET_EMPLOYEES = "getEmployees"
    GET_ROLE = "getRole"
    GET_REPORTING_LINE_MANAGER = "getReportingLineManager"
    CHECK_EMAIL_EXISTS = "checkEmailExists"
    CREATE_EMPLOYEE = "createEmployee"
    UPDATE_EMPLOYEE = "updateEmployee"
    DELETE_EMPLOYEE = "deleteEmployee"


class SearchPolicy(enum.StrEnum):
    """How a search term shapes the org chart."""

    HIGHLIGHT = "HIGHLIGHT"
    FOCUS = "FOCUS"


class MutationState(enum.StrEnum):
    """State machine for a pending directory mutation."""

    IDLE = "IDLE"
    VALIDATING = "VALIDATING"
    SUBMITTING = "SUBMITTING"
    SUCCEEDED = "SUCCEEDED"
    REJECTED = "REJECTED"
    VALIDATION_FAILED = "VALIDATION_FAILED"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    EMPLOYEE = "EMPLOYEE"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
