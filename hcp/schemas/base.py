"""
Base Schema Classes for Pydantic Models

Records travel and persist as camelCase JSON (`partnerCode`, `finalGrade`) while
Python code uses snake_case attributes. Every entity schema inherits from
`RecordSchema`, which maps between the two and keeps unknown fields so that
clients can store attributes this service does not interpret.
"""

from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelSchema(BaseModel):
    """Base class for request/response bodies with camelCase wire names."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class RecordSchema(CamelSchema):
    """
    Base class for persisted collection records.

    Extra fields are kept (and stored) as-is; the gateway has already checked
    that their names are plain identifiers.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='allow',
    )

    def to_storage(self, exclude: Optional[Iterable[str]] = None) -> dict[str, Any]:
        """Serialize to the JSON-ready camelCase dict that storage holds."""
        return self.model_dump(
            by_alias=True,
            mode='json',
            exclude=set(exclude) if exclude else None,
        )

    @classmethod
    def alias_keys(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Rename snake_case field names in `data` to their camelCase aliases."""
        renamed = {}
        for key, value in data.items():
            field = cls.model_fields.get(key)
            renamed[field.alias if field and field.alias else key] = value
        return renamed
