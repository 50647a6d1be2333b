# Services Package
# Business Logic Layer

from .database_service import DatabaseService
from .numbering_service import NumberingService
from .account_service import AccountService
from .audit_service import AuditService
from .notification_service import NotificationService
from .ledger_service import LedgerService
from .voucher_service import VoucherService
from .approval_service import ApprovalService
from .template_service import TemplateService
from .recurring_service import RecurringService
from .reconciliation_service import ReconciliationService
from .scheduler_service import SchedulerService
from .health_service import HealthService

__all__ = [
    "DatabaseService",
    "NumberingService",
    "AccountService",
    "AuditService",
    "NotificationService",
    "LedgerService",
    "VoucherService",
    "ApprovalService",
    "TemplateService",
    "RecurringService",
    "ReconciliationService",
    "SchedulerService",
    "HealthService"
]
