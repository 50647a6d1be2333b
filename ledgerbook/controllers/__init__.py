# Controllers Package
# MVC Controller Layer

from .voucher_controller import router as voucher_router
from .approval_controller import router as approval_router
from .template_controller import router as template_router
from .recurring_controller import router as recurring_router
from .reconciliation_controller import router as reconciliation_router
from .report_controller import router as report_router
from .account_controller import router as account_router
from .schedule_controller import router as schedule_router
from .health_controller import router as health_router
from .audit_controller import router as audit_router
from .errors import register_error_handlers

__all__ = [
    "voucher_router",
    "approval_router",
    "template_router",
    "recurring_router",
    "reconciliation_router",
    "report_router",
    "account_router",
    "schedule_router",
    "health_router",
    "audit_router",
    "register_error_handlers"
]
