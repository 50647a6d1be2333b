# Repositories Package
# Data Access Layer

from .document_repository import (
    DocumentRepository,
    VoucherRepository,
    ApprovalRepository,
    TemplateRepository,
    RecurringVoucherRepository,
    ReconciliationRepository,
)
from .ledger_repository import LedgerRepository

__all__ = [
    "DocumentRepository",
    "VoucherRepository",
    "ApprovalRepository",
    "TemplateRepository",
    "RecurringVoucherRepository",
    "ReconciliationRepository",
    "LedgerRepository"
]
