"""
Base Schema Classes for Pydantic Models

The storefront frontend speaks camelCase JSON. Every schema generates camelCase
aliases and still accepts snake_case names on input.

RULE: All response schemas that read from ORM models MUST inherit from BaseResponseSchema.
"""

from typing import Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseResponseSchema(BaseModel):
    """
    Base class for all response schemas that read from ORM models.

    Usage:
        class CategoryResponse(BaseResponseSchema):
            id: UUID
            display_name: str   # serialized as "displayName"
    """
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class BaseCreateSchema(BaseModel):
    """
    Base class for create/input schemas.
    Unknown fields are ignored for forward compatibility.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='ignore',
    )


class BaseUpdateSchema(BaseModel):
    """
    Base class for partial updates.

    Every field is optional. Services apply only the fields the caller actually
    sent (``model_fields_set``), so an explicit ``null`` clears a value while an
    omitted field leaves it untouched.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='ignore',
    )

    def provided_fields(self) -> dict:
        """Fields present in the request body, keyed by attribute name."""
        return {name: getattr(self, name) for name in self.model_fields_set}


# Type aliases for common UUID patterns
OptionalUUID = Optional[UUID]
