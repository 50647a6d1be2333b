"""
JSON View
Formats responses as JSON
"""

from typing import Any, Dict, Iterable, List, Optional
from datetime import datetime

from pydantic import BaseModel

from ..models.base import CamelModel


class JsonView:
    """JSON response formatter"""

    @staticmethod
    def document(item: Any) -> Any:
        """Serialize a model (or list of models) for the wire"""
        if isinstance(item, CamelModel):
            return item.to_document()
        if isinstance(item, BaseModel):
            return item.model_dump(mode="json")
        if isinstance(item, (list, tuple)):
            return [JsonView.document(i) for i in item]
        return item

    @staticmethod
    def success(message: str = "", data: Any = None) -> Dict:
        """Format success response"""
        return {
            "status": "success",
            "message": message,
            "data": JsonView.document(data),
            "timestamp": datetime.now().isoformat()
        }

    @staticmethod
    def error(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict:
        """Format error response"""
        return {
            "error": True,
            "code": code,
            "message": message,
            "details": details or {},
            "timestamp": datetime.now().isoformat()
        }

    @staticmethod
    def paginated(data: List, total: int, limit: int, offset: int) -> Dict:
        """Format paginated response"""
        return {
            "total": total,
            "limit": limit,
            "offset": offset,
            "count": len(data),
            "data": JsonView.document(data)
        }

    @staticmethod
    def batch(results: Iterable[Any]) -> Dict:
        """Format a batch outcome: per-item results plus counts"""
        items = JsonView.document(list(results))
        succeeded = sum(1 for item in items if item.get("success"))
        return {
            "total": len(items),
            "succeeded": succeeded,
            "failed": len(items) - succeeded,
            "results": items
        }
