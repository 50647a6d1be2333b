"""
Schedule Controller
Controls the auto-post and recurring voucher jobs
"""

from fastapi import APIRouter, HTTPException

from ..models.requests import ScheduleUpdate
from ..services.scheduler_service import scheduler_service
from ..services.numbering_service import numbering_service
from ..utils.logger import logger

router = APIRouter()


@router.get("")
async def get_schedule():
    """Scheduler status and configured jobs"""
    return scheduler_service.get_status()


@router.put("")
async def update_schedule(update: ScheduleUpdate):
    changes = update.model_dump(exclude_none=True)
    if "auto_post_time" in changes:
        try:
            hour, minute = map(int, changes["auto_post_time"].split(":"))
        except ValueError:
            raise HTTPException(status_code=400, detail="autoPostTime must be HH:MM")
        if not (0 <= hour < 24 and 0 <= minute < 60):
            raise HTTPException(status_code=400, detail="autoPostTime must be HH:MM")
    logger.info(f"Updating schedule: {changes}")
    return scheduler_service.update_schedule(changes)


@router.post("/run/{job}")
async def run_job(job: str):
    """Trigger auto_post or recurring immediately"""
    result = scheduler_service.run_now(job)
    if result["status"] == "error":
        raise HTTPException(status_code=404, detail=result["message"])
    return result


@router.get("/sequences")
async def voucher_sequences():
    """Next voucher number per prefix"""
    return await numbering_service.peek()
