"""
Constants Module
Application-wide constants
"""

# Application Info
APP_NAME = "Ledgerbook"
APP_VERSION = "1.0.0"

# Database Tables - Documents (JSON body + indexed columns)
DOCUMENT_TABLES = [
    "vouchers",
    "voucher_approvals",
    "voucher_templates",
    "recurring_vouchers",
    "bank_reconciliations",
]

# Database Tables - Ledger and reference data
LEDGER_TABLES = [
    "ledger_entries",
    "accounts",
    "voucher_sequences",
    "audit_log",
]

# All Tables
ALL_TABLES = DOCUMENT_TABLES + LEDGER_TABLES

# Days either side of a bank line that a book entry may fall on
DEFAULT_MATCH_WINDOW_DAYS = 3

# Error Codes
class ErrorCode:
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNBALANCED = "UNBALANCED"
    EMPTY_VOUCHER = "EMPTY_VOUCHER"
    TEMPLATE_INACTIVE = "TEMPLATE_INACTIVE"
    STATE_CONFLICT = "STATE_CONFLICT"
    ALREADY_POSTED = "ALREADY_POSTED"
    ALREADY_CANCELLED = "ALREADY_CANCELLED"
    NOT_PROVISIONAL = "NOT_PROVISIONAL"
    INVALID_VOUCHER_STATE = "INVALID_VOUCHER_STATE"
    INVALID_APPROVAL_STATE = "INVALID_APPROVAL_STATE"
    UNAUTHORIZED = "UNAUTHORIZED"
    UNAUTHORIZED_APPROVER = "UNAUTHORIZED_APPROVER"
    NOT_FOUND = "NOT_FOUND"
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


# Health Status
class HealthStatus:
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"
