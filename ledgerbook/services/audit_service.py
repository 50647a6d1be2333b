"""
Audit Trail Service
====================
Records voucher lifecycle actions (create, post, cancel, approve, ...).

FEATURES:
---------
1. One audit_log row per lifecycle action
2. Previous and new state stored as JSON for review
3. Best-effort: a failed audit write is logged and never fails the action

USAGE:
------
from ledgerbook.services.audit_service import audit_service

await audit_service.log_action("POST", "voucher", voucher.id, voucher.voucher_number,
                               old_data={"status": "draft"}, new_data={"status": "posted"})
"""

import json
from typing import Any, Dict, List, Optional

from ..utils.helpers import get_current_timestamp
from ..utils.logger import logger
from .database_service import DatabaseService, database_service


class AuditService:
    """Service for audit trail logging"""

    def __init__(self, db: Optional[DatabaseService] = None):
        self.db = db or database_service

    async def log_action(
        self,
        action: str,
        entity: str,
        entity_id: str,
        entity_ref: Optional[str] = None,
        old_data: Optional[Dict[str, Any]] = None,
        new_data: Optional[Dict[str, Any]] = None,
        actor: Optional[str] = None
    ) -> None:
        """Append one action to audit_log"""
        try:
            query = """
                INSERT INTO audit_log
                (action, entity, entity_id, entity_ref, old_data, new_data, actor, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """
            params = (
                action.upper(),
                entity,
                entity_id,
                entity_ref,
                json.dumps(old_data, default=str) if old_data else None,
                json.dumps(new_data, default=str) if new_data else None,
                actor,
                get_current_timestamp()
            )
            await self.db.execute(query, params)
        except Exception as e:
            logger.error(f"Failed to log audit action: {e}")

    async def get_audit_history(
        self,
        entity: Optional[str] = None,
        entity_id: Optional[str] = None,
        action: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> List[Dict]:
        """Get audit history with filters"""
        query = "SELECT * FROM audit_log WHERE 1=1"
        params = []

        if entity:
            query += " AND entity = ?"
            params.append(entity)

        if entity_id:
            query += " AND entity_id = ?"
            params.append(entity_id)

        if action:
            query += " AND action = ?"
            params.append(action.upper())

        if start_date:
            query += " AND created_at >= ?"
            params.append(start_date)

        if end_date:
            query += " AND created_at <= ?"
            params.append(end_date)

        query += " ORDER BY id DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        records = await self.db.fetch_all(query, tuple(params))
        for record in records:
            for field in ("old_data", "new_data"):
                if record.get(field):
                    record[field] = json.loads(record[field])
        return records

    async def get_record_history(self, entity: str, entity_id: str) -> List[Dict]:
        """Complete history of one aggregate, oldest first"""
        records = await self.get_audit_history(entity=entity, entity_id=entity_id, limit=1000)
        return list(reversed(records))

    async def get_audit_stats(self) -> Dict[str, Any]:
        """Get audit statistics"""
        action_counts = await self.db.fetch_all(
            "SELECT action, COUNT(*) as count FROM audit_log GROUP BY action"
        )
        entity_counts = await self.db.fetch_all(
            "SELECT entity, COUNT(*) as count FROM audit_log GROUP BY entity ORDER BY count DESC"
        )
        return {
            "by_action": {row["action"]: row["count"] for row in action_counts},
            "by_entity": {row["entity"]: row["count"] for row in entity_counts},
        }


# Singleton instance
audit_service = AuditService()
