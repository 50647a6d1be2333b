"""
Typed Exceptions
================
Every error the accounting core reports to its callers.

Callers branch on the exception TYPE (or its ``code``), never on message
text. Each class carries the identifiers involved as attributes so the HTTP
layer can build a structured response.

HIERARCHY:
----------
    LedgerbookError
    +-- ValidationError              (400)
    |   +-- EmptyVoucherError
    |   +-- UnbalancedVoucherError
    |   +-- TemplateInactiveError
    +-- StateConflictError           (409)
    |   +-- AlreadyPostedError
    |   +-- AlreadyCancelledError
    |   +-- NotProvisionalError
    |   +-- InvalidVoucherStateError
    |   +-- InvalidApprovalStateError
    +-- AuthorizationError           (403)
    |   +-- UnauthorizedApproverError
    +-- NotFoundError                (404)
    |   +-- VoucherNotFoundError, TemplateNotFoundError, ApprovalNotFoundError,
    |       RecurringVoucherNotFoundError, ReconciliationNotFoundError,
    |       AccountNotFoundError, EntryNotFoundError
    +-- ConcurrencyConflictError     (409)
"""

from typing import Any, Dict, Optional

from .utils.constants import ErrorCode


class LedgerbookError(Exception):
    """Base exception for all accounting core errors"""

    code: str = ErrorCode.UNKNOWN_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


# Validation

class ValidationError(LedgerbookError):
    """Input violates a business rule"""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, field: Optional[str] = None, **details):
        self.field = field
        if field:
            details["field"] = field
        super().__init__(message, details)


class EmptyVoucherError(ValidationError):
    code = ErrorCode.EMPTY_VOUCHER

    def __init__(self):
        super().__init__("At least one voucher item is required", field="items")


class UnbalancedVoucherError(ValidationError):
    """Total debit and total credit differ by more than the money tolerance"""

    code = ErrorCode.UNBALANCED

    def __init__(self, voucher_number: str, total_debit: float, total_credit: float):
        self.voucher_number = voucher_number
        self.total_debit = total_debit
        self.total_credit = total_credit
        super().__init__(
            f"Voucher {voucher_number} is not balanced: "
            f"debit {total_debit:.2f} != credit {total_credit:.2f}",
            voucher_number=voucher_number,
            total_debit=total_debit,
            total_credit=total_credit,
        )


class TemplateInactiveError(ValidationError):
    code = ErrorCode.TEMPLATE_INACTIVE

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Template is not active: {template_id}", template_id=template_id)


# State conflicts

class StateConflictError(LedgerbookError):
    """Operation is not allowed in the aggregate's current state"""

    code = ErrorCode.STATE_CONFLICT


class AlreadyPostedError(StateConflictError):
    code = ErrorCode.ALREADY_POSTED

    def __init__(self, voucher_number: str):
        self.voucher_number = voucher_number
        super().__init__(f"Voucher is already posted: {voucher_number}", {"voucher_number": voucher_number})


class AlreadyCancelledError(StateConflictError):
    code = ErrorCode.ALREADY_CANCELLED

    def __init__(self, voucher_number: str):
        self.voucher_number = voucher_number
        super().__init__(f"Voucher is already cancelled: {voucher_number}", {"voucher_number": voucher_number})


class NotProvisionalError(StateConflictError):
    code = ErrorCode.NOT_PROVISIONAL

    def __init__(self, voucher_number: str, status: str):
        self.voucher_number = voucher_number
        self.status = status
        super().__init__(
            f"Voucher {voucher_number} is not in provisional status (status: {status})",
            {"voucher_number": voucher_number, "status": status},
        )


class InvalidVoucherStateError(StateConflictError):
    code = ErrorCode.INVALID_VOUCHER_STATE

    def __init__(self, voucher_number: str, status: str, operation: str):
        self.voucher_number = voucher_number
        self.status = status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} voucher {voucher_number} in status '{status}'",
            {"voucher_number": voucher_number, "status": status, "operation": operation},
        )


class InvalidApprovalStateError(StateConflictError):
    code = ErrorCode.INVALID_APPROVAL_STATE

    def __init__(self, approval_id: str, status: str, operation: str):
        self.approval_id = approval_id
        self.status = status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} approval {approval_id} in status '{status}'",
            {"approval_id": approval_id, "status": status, "operation": operation},
        )


# Authorization

class AuthorizationError(LedgerbookError):
    code = ErrorCode.UNAUTHORIZED


class UnauthorizedApproverError(AuthorizationError):
    code = ErrorCode.UNAUTHORIZED_APPROVER

    def __init__(self, approval_id: str, user_id: str, operation: str = "approve"):
        self.approval_id = approval_id
        self.user_id = user_id
        self.operation = operation
        super().__init__(
            f"User {user_id} is not authorized to {operation} approval {approval_id}",
            {"approval_id": approval_id, "user_id": user_id, "operation": operation},
        )


# Not found

class NotFoundError(LedgerbookError):
    code = ErrorCode.NOT_FOUND
    entity = "Record"

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"{self.entity} not found: {identifier}", {"id": identifier})


class VoucherNotFoundError(NotFoundError):
    entity = "Voucher"


class TemplateNotFoundError(NotFoundError):
    entity = "Template"


class ApprovalNotFoundError(NotFoundError):
    entity = "Approval"


class RecurringVoucherNotFoundError(NotFoundError):
    entity = "Recurring voucher"


class ReconciliationNotFoundError(NotFoundError):
    entity = "Bank reconciliation"


class AccountNotFoundError(NotFoundError):
    entity = "Account"


class EntryNotFoundError(NotFoundError):
    entity = "Statement entry"


# Concurrency

class ConcurrencyConflictError(LedgerbookError):
    """Stored version moved on since the aggregate was loaded"""

    code = ErrorCode.CONCURRENCY_CONFLICT

    def __init__(self, entity: str, identifier: str, expected_version: int):
        self.entity = entity
        self.identifier = identifier
        self.expected_version = expected_version
        super().__init__(
            f"{entity} {identifier} was modified concurrently (expected version {expected_version})",
            {"entity": entity, "id": identifier, "expected_version": expected_version},
        )
