"""
Recurring Voucher Controller
Handles recurring voucher schedule endpoints
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Query

from ..models.recurring import RecurringVoucherCreate
from ..services.recurring_service import recurring_service
from ..views.json_view import JsonView

router = APIRouter()


@router.get("")
async def list_recurring(active_only: bool = Query(False, alias="activeOnly")):
    return JsonView.success(data=await recurring_service.list_recurring(active_only))


@router.get("/due")
async def due_recurring(as_of: Optional[date] = Query(None, alias="asOf")):
    """Schedules that would run in the next batch"""
    return JsonView.success(data=await recurring_service.get_due_vouchers(as_of))


@router.post("/execute-due")
async def execute_due(as_of: Optional[date] = Query(None, alias="asOf")):
    return JsonView.batch(await recurring_service.execute_all_due(as_of))


@router.post("", status_code=201)
async def create_recurring(data: RecurringVoucherCreate):
    recurring = await recurring_service.create_recurring(data)
    return JsonView.success(f"Recurring voucher '{recurring.name}' created", recurring)


@router.get("/{recurring_id}")
async def get_recurring(recurring_id: str):
    return JsonView.success(data=await recurring_service.get_recurring(recurring_id))


@router.delete("/{recurring_id}")
async def delete_recurring(recurring_id: str):
    await recurring_service.delete_recurring(recurring_id)
    return JsonView.success("Recurring voucher deleted")


@router.post("/{recurring_id}/execute")
async def execute(recurring_id: str, as_of: Optional[date] = Query(None, alias="asOf")):
    voucher = await recurring_service.execute(recurring_id, as_of)
    return JsonView.success(f"Voucher {voucher.voucher_number} generated", voucher)


@router.post("/{recurring_id}/pause")
async def pause(recurring_id: str):
    return JsonView.success("Recurring voucher paused", await recurring_service.pause(recurring_id))


@router.post("/{recurring_id}/resume")
async def resume(recurring_id: str):
    return JsonView.success("Recurring voucher resumed", await recurring_service.resume(recurring_id))


@router.post("/{recurring_id}/deactivate")
async def deactivate(recurring_id: str):
    return JsonView.success("Recurring voucher deactivated", await recurring_service.deactivate(recurring_id))
