"""Contact form schemas."""
from typing import Optional, Literal

from pydantic import EmailStr, Field, field_validator

from storefront.schemas.base import BaseCreateSchema, BaseResponseSchema


class ContactRequest(BaseCreateSchema):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    subject: str = Field(..., min_length=3, max_length=200)
    message: str = Field(..., min_length=10, max_length=5000)
    locale: Literal["it", "en"] = "it"

    @field_validator("name", "subject", "message", mode="before")
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class ContactResponse(BaseResponseSchema):
    success: bool
    message: str
