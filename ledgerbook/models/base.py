"""
Base Model
Shared pydantic configuration: snake_case attributes, camelCase wire names
"""

from typing import Any, Dict
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..exceptions import ValidationError


class CamelModel(BaseModel):
    """Model serialized with camelCase keys (voucherNumber, totalDebit, ...)"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self) -> Dict[str, Any]:
        """JSON-compatible dict using the wire field names"""
        return self.model_dump(mode="json", by_alias=True)

    def merged(self, changes: Dict[str, Any]):
        """
        Copy of this model with ``changes`` applied and every field revalidated.

        Raises:
            ValidationError: a change breaks a field rule (e.g. null for a required field)
        """
        try:
            return self.model_validate({**self.model_dump(), **changes})
        except PydanticValidationError as error:
            first = error.errors()[0]
            name = str(first["loc"][0]) if first["loc"] else None
            info = type(self).model_fields.get(name)
            field = info.alias if info and info.alias else name
            raise ValidationError(f"Invalid {field or 'value'}: {first['msg']}", field=field) from error
