"""
Health Service Module
Handles health checks for system components
"""

from datetime import datetime
from typing import Any, Dict, Optional

from ..models.health import DatabaseHealth, SchedulerHealth
from ..utils.constants import HealthStatus
from .database_service import DatabaseService, database_service
from .scheduler_service import SchedulerService, scheduler_service


class HealthService:
    """Service for health monitoring"""

    def __init__(self, db: Optional[DatabaseService] = None, scheduler: Optional[SchedulerService] = None):
        self.db = db or database_service
        self.scheduler = scheduler or scheduler_service

    async def check_all(self) -> Dict[str, Any]:
        """Check health of all components"""
        database_health = await self.check_database()
        scheduler_health = self.check_scheduler()

        # The scheduler is optional; only the database decides UNHEALTHY
        if database_health['status'] == HealthStatus.UNHEALTHY:
            overall_status = HealthStatus.UNHEALTHY
        elif scheduler_health['status'] == HealthStatus.HEALTHY:
            overall_status = HealthStatus.HEALTHY
        else:
            overall_status = HealthStatus.DEGRADED

        return {
            'status': overall_status,
            'timestamp': datetime.now().isoformat(),
            'components': {
                'database': database_health,
                'scheduler': scheduler_health
            }
        }

    async def check_database(self) -> Dict[str, Any]:
        """Check database health"""
        try:
            counts = await self.db.get_all_table_counts()
            return DatabaseHealth(
                status=HealthStatus.HEALTHY,
                path=self.db.db_path,
                size_bytes=self.db.get_database_size(),
                total_rows=sum(counts.values()),
                message='Connected'
            ).model_dump()
        except Exception as e:
            return DatabaseHealth(
                status=HealthStatus.UNHEALTHY,
                path=self.db.db_path,
                message=str(e)
            ).model_dump()

    def check_scheduler(self) -> Dict[str, Any]:
        """Check scheduler health"""
        status = self.scheduler.get_status()
        enabled = status['schedule_config'].get('enabled')
        if not enabled:
            return SchedulerHealth(status=HealthStatus.HEALTHY, message='Disabled').model_dump()
        return SchedulerHealth(
            status=HealthStatus.HEALTHY if status['is_running'] else HealthStatus.DEGRADED,
            is_running=status['is_running'],
            jobs=[job['id'] for job in status['jobs']],
            message='Running' if status['is_running'] else 'Not running'
        ).model_dump()


# Global service instance
health_service = HealthService()
