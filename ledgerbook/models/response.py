"""
Response Models
Per-item outcomes of batch operations
"""

from typing import Any, Dict, Optional

from .base import CamelModel


class BatchItemResult(CamelModel):
    """Outcome of one item of a batch operation"""
    success: bool
    id: str
    error: Optional[str] = None
    code: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
