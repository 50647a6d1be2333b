"""
Account Service Module
Account directory and the per-variant account resolver
"""

from typing import Awaitable, Callable, Dict, List, Optional, Union

from ..exceptions import AccountNotFoundError, ValidationError
from ..models.account import (
    DEFAULT_ACCOUNT_TYPES,
    Account,
    AccountCreate,
    AccountKind,
    AccountType,
    CustomerRef,
    LedgerAccountRef,
    ResolvedAccount,
    SupplierRef,
)
from ..utils.helpers import new_id
from .database_service import DatabaseService, database_service

AccountRefValue = Union[CustomerRef, SupplierRef, LedgerAccountRef]


def _account_of(row: Dict) -> Account:
    return Account(
        kind=row["kind"],
        key=row["key"],
        name=row["name"],
        account_type=row["account_type"],
        category=row["category"],
        is_active=bool(row["is_active"]),
    )


class AccountService:
    """Validates account references and returns what a ledger entry needs to know"""

    def __init__(self, db: Optional[DatabaseService] = None):
        self.db = db or database_service
        self._resolvers: Dict[AccountKind, Callable[[AccountRefValue], Awaitable[ResolvedAccount]]] = {
            AccountKind.CUSTOMER: self._resolve_customer,
            AccountKind.SUPPLIER: self._resolve_supplier,
            AccountKind.LEDGER_ACCOUNT: self._resolve_ledger_account,
        }

    async def _lookup(self, kind: AccountKind, key: str) -> Account:
        row = await self.db.fetch_one(
            "SELECT * FROM accounts WHERE kind = ? AND key = ? AND is_active = 1", (kind.value, key)
        )
        if row is None:
            raise AccountNotFoundError(f"{kind.value}:{key}")
        return _account_of(row)

    async def _resolve_customer(self, ref: CustomerRef) -> ResolvedAccount:
        account = await self._lookup(AccountKind.CUSTOMER, ref.id)
        return ResolvedAccount(name=account.name, account_type=account.account_type, category=account.category)

    async def _resolve_supplier(self, ref: SupplierRef) -> ResolvedAccount:
        account = await self._lookup(AccountKind.SUPPLIER, ref.id)
        return ResolvedAccount(name=account.name, account_type=account.account_type, category=account.category)

    async def _resolve_ledger_account(self, ref: LedgerAccountRef) -> ResolvedAccount:
        account = await self._lookup(AccountKind.LEDGER_ACCOUNT, ref.name)
        return ResolvedAccount(name=account.name, account_type=account.account_type, category=account.category)

    async def resolve(self, ref: AccountRefValue) -> ResolvedAccount:
        return await self._resolvers[AccountKind(ref.kind)](ref)

    async def create_account(self, data: AccountCreate) -> Account:
        if data.kind == AccountKind.LEDGER_ACCOUNT:
            key = data.key or data.name
        else:
            key = data.key or new_id()

        account_type = data.account_type or DEFAULT_ACCOUNT_TYPES.get(data.kind)
        if account_type is None:
            raise ValidationError("Account type is required for ledger accounts", field="accountType")

        existing = await self.db.fetch_one("SELECT 1 FROM accounts WHERE kind = ? AND key = ?", (data.kind.value, key))
        if existing:
            raise ValidationError(f"Account already exists: {data.kind.value}:{key}", field="key")

        account = Account(
            kind=data.kind,
            key=key,
            name=data.name,
            account_type=account_type,
            category=data.category,
        )
        await self.db.execute(
            "INSERT INTO accounts (kind, key, name, account_type, category, is_active) VALUES (?, ?, ?, ?, ?, 1)",
            (account.kind.value, account.key, account.name, account.account_type.value, account.category),
        )
        return account

    async def get_account(self, kind: AccountKind, key: str) -> Account:
        row = await self.db.fetch_one("SELECT * FROM accounts WHERE kind = ? AND key = ?", (kind.value, key))
        if row is None:
            raise AccountNotFoundError(f"{kind.value}:{key}")
        return _account_of(row)

    async def list_accounts(
        self,
        kind: Optional[AccountKind] = None,
        account_type: Optional[AccountType] = None,
    ) -> List[Account]:
        query = "SELECT * FROM accounts WHERE 1=1"
        params = []
        if kind:
            query += " AND kind = ?"
            params.append(kind.value)
        if account_type:
            query += " AND account_type = ?"
            params.append(account_type.value)
        query += " ORDER BY kind, name"
        return [_account_of(row) for row in await self.db.fetch_all(query, tuple(params))]

    async def deactivate_account(self, kind: AccountKind, key: str) -> Account:
        account = await self.get_account(kind, key)
        await self.db.execute("UPDATE accounts SET is_active = 0 WHERE kind = ? AND key = ?", (kind.value, key))
        account.is_active = False
        return account


# Global service instance
account_service = AccountService()
