"""
Report Controller
Ledger queries and financial statements
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Query

from ..services.ledger_service import ledger_service
from ..views.json_view import JsonView

router = APIRouter()


@router.get("/trial-balance")
async def trial_balance(
    from_date: Optional[date] = Query(None, alias="fromDate"),
    to_date: Optional[date] = Query(None, alias="toDate")
):
    return JsonView.success(data=await ledger_service.trial_balance(from_date, to_date))


@router.get("/profit-and-loss")
async def profit_and_loss(
    from_date: Optional[date] = Query(None, alias="fromDate"),
    to_date: Optional[date] = Query(None, alias="toDate")
):
    return JsonView.success(data=await ledger_service.profit_and_loss(from_date, to_date))


@router.get("/balance-sheet")
async def balance_sheet(as_of: Optional[date] = Query(None, alias="asOf")):
    return JsonView.success(data=await ledger_service.balance_sheet(as_of))


@router.get("/day-book")
async def day_book(
    from_date: Optional[date] = Query(None, alias="fromDate"),
    to_date: Optional[date] = Query(None, alias="toDate")
):
    """Posted vouchers in date order"""
    return JsonView.success(data=await ledger_service.day_book(from_date, to_date))


@router.get("/bank-accounts")
async def bank_accounts():
    return JsonView.success(data=await ledger_service.bank_accounts())


@router.get("/ledger/{account_name}")
async def account_ledger(
    account_name: str,
    from_date: Optional[date] = Query(None, alias="fromDate"),
    to_date: Optional[date] = Query(None, alias="toDate")
):
    """Account statement with opening and running balance"""
    return JsonView.success(data=await ledger_service.account_ledger(account_name, from_date, to_date))


@router.get("/balance/{account_name}")
async def account_balance(account_name: str, as_of: Optional[date] = Query(None, alias="asOf")):
    return JsonView.success(data=await ledger_service.account_balance(account_name, as_of))
