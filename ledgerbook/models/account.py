"""
Account Models
Tagged-union account references and the account directory record
"""

from enum import Enum
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import Field

from .base import CamelModel


class AccountKind(str, Enum):
    CUSTOMER = "Customer"
    SUPPLIER = "Supplier"
    LEDGER_ACCOUNT = "LedgerAccount"


class AccountType(str, Enum):
    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    INCOME = "Income"
    EXPENSE = "Expense"


class CustomerRef(CamelModel):
    kind: Literal["Customer"] = "Customer"
    id: str

    @property
    def key(self) -> str:
        return self.id


class SupplierRef(CamelModel):
    kind: Literal["Supplier"] = "Supplier"
    id: str

    @property
    def key(self) -> str:
        return self.id


class LedgerAccountRef(CamelModel):
    kind: Literal["LedgerAccount"] = "LedgerAccount"
    name: str

    @property
    def key(self) -> str:
        return self.name


AccountRef = Annotated[Union[CustomerRef, SupplierRef, LedgerAccountRef], Field(discriminator="kind")]

# accountModel values used by stored documents before the tagged union
LEGACY_ACCOUNT_MODELS = {
    "Customer": AccountKind.CUSTOMER,
    "Supplier": AccountKind.SUPPLIER,
    "LedgerEntry": AccountKind.LEDGER_ACCOUNT,
    "LedgerAccount": AccountKind.LEDGER_ACCOUNT,
}


def make_account_ref(kind: Union[AccountKind, str], key: str) -> Union[CustomerRef, SupplierRef, LedgerAccountRef]:
    """Build the reference variant for an account kind"""
    kind = AccountKind(kind)
    if kind == AccountKind.CUSTOMER:
        return CustomerRef(id=key)
    if kind == AccountKind.SUPPLIER:
        return SupplierRef(id=key)
    return LedgerAccountRef(name=key)


def upgrade_legacy_account(data: Any) -> Any:
    """Convert {account: <id>, accountModel: <model>} into {account: {kind, ...}}"""
    if not isinstance(data, dict):
        return data
    account = data.get("account")
    model = data.get("accountModel", data.get("account_model"))
    if model is None or isinstance(account, dict):
        return data

    data = dict(data)
    data.pop("accountModel", None)
    data.pop("account_model", None)
    kind = LEGACY_ACCOUNT_MODELS.get(model, model)
    if AccountKind(kind) == AccountKind.LEDGER_ACCOUNT:
        # ledger accounts are addressed by name
        key = data.get("accountName") or data.get("account_name") or account
    else:
        key = account
    data["account"] = make_account_ref(kind, str(key)).model_dump()
    return data


class Account(CamelModel):
    """Account directory record resolved by the Account Resolver"""
    kind: AccountKind
    key: str
    name: str
    account_type: AccountType
    category: str = "General"
    is_active: bool = True


class ResolvedAccount(CamelModel):
    name: str
    account_type: AccountType
    category: str = "General"


DEFAULT_ACCOUNT_TYPES: Dict[AccountKind, AccountType] = {
    AccountKind.CUSTOMER: AccountType.ASSET,
    AccountKind.SUPPLIER: AccountType.LIABILITY,
}


class AccountCreate(CamelModel):
    kind: AccountKind
    key: Optional[str] = None
    name: str
    account_type: Optional[AccountType] = None
    category: str = "General"
