"""
Ledgerbook - Test Configuration

Every test gets its own in-memory SQLite database and a freshly wired set of
services, so nothing leaks between tests and no global singleton is touched.
"""

from types import SimpleNamespace

import pytest
import pytest_asyncio

from ledgerbook.config import AccountingConfig, NotificationConfig, NumberingConfig, SchedulerConfig
from ledgerbook.models.account import AccountCreate, AccountKind, AccountType
from ledgerbook.services.account_service import AccountService
from ledgerbook.services.approval_service import ApprovalService
from ledgerbook.services.audit_service import AuditService
from ledgerbook.services.database_service import MEMORY_DB, DatabaseService
from ledgerbook.services.ledger_service import LedgerService
from ledgerbook.services.notification_service import NotificationService
from ledgerbook.services.numbering_service import NumberingService
from ledgerbook.services.reconciliation_service import ReconciliationService
from ledgerbook.services.recurring_service import RecurringService
from ledgerbook.services.template_service import TemplateService
from ledgerbook.services.voucher_service import VoucherService


SEED_ACCOUNTS = [
    AccountCreate(kind=AccountKind.LEDGER_ACCOUNT, name="Cash", account_type=AccountType.ASSET, category="Cash"),
    AccountCreate(kind=AccountKind.LEDGER_ACCOUNT, name="HDFC Bank", account_type=AccountType.ASSET,
                  category="Bank Accounts"),
    AccountCreate(kind=AccountKind.LEDGER_ACCOUNT, name="Sales", account_type=AccountType.INCOME),
    AccountCreate(kind=AccountKind.LEDGER_ACCOUNT, name="Rent", account_type=AccountType.EXPENSE),
    AccountCreate(kind=AccountKind.LEDGER_ACCOUNT, name="Capital", account_type=AccountType.EQUITY),
    AccountCreate(kind=AccountKind.LEDGER_ACCOUNT, name="GST Payable", account_type=AccountType.LIABILITY),
    AccountCreate(kind=AccountKind.CUSTOMER, key="C001", name="Acme Traders"),
    AccountCreate(kind=AccountKind.SUPPLIER, key="S001", name="Metro Supplies"),
]


def wire_services(db: DatabaseService, accounting: AccountingConfig = None) -> SimpleNamespace:
    accounting = accounting or AccountingConfig()
    numbering = NumberingService(db, NumberingConfig())
    accounts = AccountService(db)
    audit = AuditService(db)
    notifications = NotificationService(NotificationConfig(enabled=True, webhook_url=""))
    vouchers = VoucherService(db, numbering, accounts, audit, accounting)
    approvals = ApprovalService(db, vouchers, notifications, audit)
    templates = TemplateService(db, vouchers, approvals, numbering)
    recurring = RecurringService(db, templates, approvals, notifications, SchedulerConfig())
    return SimpleNamespace(
        db=db,
        numbering=numbering,
        accounts=accounts,
        audit=audit,
        notifications=notifications,
        vouchers=vouchers,
        approvals=approvals,
        templates=templates,
        recurring=recurring,
        reconciliations=ReconciliationService(db, accounting),
        ledger=LedgerService(db),
    )


async def seed_accounts(accounts: AccountService) -> None:
    for account in SEED_ACCOUNTS:
        await accounts.create_account(account)


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory database with the full schema"""
    database = DatabaseService(MEMORY_DB)
    await database.connect()
    await database.create_tables()
    yield database
    await database.disconnect()


@pytest_asyncio.fixture
async def books(db):
    """Services over the test database, with the seed chart of accounts"""
    services = wire_services(db)
    await seed_accounts(services.accounts)
    return services


@pytest_asyncio.fixture
async def reversing_books(db):
    """Same as ``books`` but cancelling a posted voucher books reversals"""
    services = wire_services(db, AccountingConfig(cancel_mode="reverse"))
    await seed_accounts(services.accounts)
    return services


@pytest.fixture
def approval_levels():
    from ledgerbook.models.approval import ApprovalLevel
    return [
        ApprovalLevel(level=1, approver_role="Accountant", approver_id="u-accountant", max_amount=50000),
        ApprovalLevel(level=2, approver_role="Finance Manager", approver_id="u-manager"),
    ]
