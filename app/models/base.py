"""
Pydantic base models for request/response validation.

DESIGN PRINCIPLE:
- Models reflect the JSON contract (camelCase on the wire), not business logic
- Lifecycle and derived fields are never accepted from request bodies
- Unknown fields are ignored rather than rejected
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, Optional


class CamelModel(BaseModel):
    """
    Base for request bodies. Python attributes are snake_case, the JSON keys
    and the stored document fields are camelCase.
    """
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, use_enum_values=True,
        validate_default=True, extra="ignore",
    )

    def to_document(self, exclude_unset: bool = False) -> Dict[str, Any]:
        """Dump to a camelCase dict ready to be stored."""
        return self.model_dump(by_alias=True, exclude_unset=exclude_unset, mode="python")


class GeoPoint(CamelModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class MessageResponse(BaseModel):
    """Plain acknowledgement returned by delete and similar endpoints."""
    message: str
