"""
Account Controller
Account directory endpoints
"""

from typing import Optional

from fastapi import APIRouter, Query

from ..models.account import AccountCreate, AccountKind, AccountType
from ..services.account_service import account_service
from ..views.json_view import JsonView

router = APIRouter()


@router.get("")
async def list_accounts(
    kind: Optional[AccountKind] = Query(None),
    account_type: Optional[AccountType] = Query(None, alias="accountType")
):
    return JsonView.success(data=await account_service.list_accounts(kind, account_type))


@router.post("", status_code=201)
async def create_account(data: AccountCreate):
    account = await account_service.create_account(data)
    return JsonView.success(f"Account {account.name} created", account)


@router.get("/{kind}/{key}")
async def get_account(kind: AccountKind, key: str):
    return JsonView.success(data=await account_service.get_account(kind, key))


@router.delete("/{kind}/{key}")
async def deactivate_account(kind: AccountKind, key: str):
    account = await account_service.deactivate_account(kind, key)
    return JsonView.success(f"Account {account.name} deactivated", account)
