"""
Health Models
Pydantic models for health checks
"""

from typing import List
from pydantic import BaseModel


class ComponentHealth(BaseModel):
    status: str
    message: str = ""


class DatabaseHealth(ComponentHealth):
    path: str
    size_bytes: int = 0
    total_rows: int = 0


class SchedulerHealth(ComponentHealth):
    is_running: bool = False
    jobs: List[str] = []
