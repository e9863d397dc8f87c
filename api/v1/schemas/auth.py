"""
Pydantic schemas for auth endpoints.

Responsibility: Login and session status schemas
"""

from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from src.models.user import AuthUser


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class AuthStatusResponse(BaseModel):
    authenticated: bool
    user: Optional[AuthUser] = None
