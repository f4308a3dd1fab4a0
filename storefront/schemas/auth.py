"""Authentication schemas."""
from datetime import datetime
from typing import Optional
import uuid

from pydantic import EmailStr, Field

from storefront.schemas.base import BaseCreateSchema, BaseResponseSchema


class RegisterRequest(BaseCreateSchema):
    """Customer sign-up."""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=8, description="User password")
    name: Optional[str] = Field(None, max_length=200)


class LoginRequest(BaseCreateSchema):
    """Login request schema."""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="User password")


class TokenResponse(BaseResponseSchema):
    """Token response schema."""
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token expiration in seconds")


class UserResponse(BaseResponseSchema):
    id: uuid.UUID
    email: str
    name: Optional[str] = None
    role: str
    created_at: datetime
