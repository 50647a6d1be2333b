"""
Request Models
Bodies of the action endpoints
"""

from datetime import date
from typing import Any, Dict, List, Optional

from .approval import ApprovalLevel
from .base import CamelModel


class ReasonRequest(CamelModel):
    reason: str = ""
    user_id: Optional[str] = None


class PostDatedRequest(CamelModel):
    effective_date: date
    reason: str = ""
    auto_post: bool = True


class BulkIdsRequest(CamelModel):
    ids: List[str]


class WorkflowRequest(CamelModel):
    levels: List[ApprovalLevel]
    created_by: Optional[str] = None


class ApprovalDecision(CamelModel):
    approver_id: str
    comments: str = ""


class DelegateRequest(CamelModel):
    approver_id: str
    delegate_to_id: str
    reason: str = ""


class BulkApproveRequest(CamelModel):
    approval_ids: List[str]
    approver_id: str
    comments: str = ""


class DuplicateTemplateRequest(CamelModel):
    template_name: str
    user_id: Optional[str] = None


class BulkMaterializeRequest(CamelModel):
    template_id: str
    variable_sets: List[Dict[str, Any]]
    user_id: Optional[str] = None


class StatementImportRequest(CamelModel):
    rows: List[Dict[str, Any]]


class ApproveReconciliationRequest(CamelModel):
    approved_by: str


class ScheduleUpdate(CamelModel):
    enabled: Optional[bool] = None
    auto_post_time: Optional[str] = None
    recurring_interval_minutes: Optional[int] = None
