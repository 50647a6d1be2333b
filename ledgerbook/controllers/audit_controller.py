"""
Audit Trail Controller
=======================
API endpoints for viewing the audit trail.

ENDPOINTS:
----------
GET  /api/audit/history                      - Get audit history with filters
GET  /api/audit/record/{entity}/{entity_id}  - Get history of one voucher, template, ...
GET  /api/audit/stats                        - Get audit statistics
"""

from fastapi import APIRouter, HTTPException, Query
from typing import Optional
from ..services.audit_service import audit_service
from ..utils.logger import logger

router = APIRouter()


@router.get("/history")
async def get_audit_history(
    entity: Optional[str] = Query(None, description="Filter by entity (voucher, template, ...)"),
    entity_id: Optional[str] = Query(None, alias="entityId", description="Filter by entity id"),
    action: Optional[str] = Query(None, description="Filter by action (CREATE/POST/CANCEL/...)"),
    start_date: Optional[str] = Query(None, alias="startDate", description="Start date (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, alias="endDate", description="End date (YYYY-MM-DD)"),
    limit: int = Query(100, ge=1, le=1000, description="Max records to return"),
    offset: int = Query(0, ge=0, description="Offset for pagination")
):
    """
    Get audit history with optional filters.

    Examples:
    - /api/audit/history?action=CANCEL - All cancellations
    - /api/audit/history?entity=voucher&startDate=2026-04-01
    """
    try:
        records = await audit_service.get_audit_history(
            entity=entity,
            entity_id=entity_id,
            action=action,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
            offset=offset
        )
        return {
            "count": len(records),
            "limit": limit,
            "offset": offset,
            "records": records
        }
    except Exception as e:
        logger.error(f"Error getting audit history: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/record/{entity}/{entity_id}")
async def get_record_history(entity: str, entity_id: str):
    """Every recorded action on one aggregate, oldest first"""
    try:
        records = await audit_service.get_record_history(entity, entity_id)
        return {
            "entity": entity,
            "entity_id": entity_id,
            "history_count": len(records),
            "history": records
        }
    except Exception as e:
        logger.error(f"Error getting record history: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/stats")
async def get_audit_stats():
    """Counts by action and by entity"""
    try:
        return await audit_service.get_audit_stats()
    except Exception as e:
        logger.error(f"Error getting audit stats: {e}")
        raise HTTPException(status_code=500, detail=str(e))
