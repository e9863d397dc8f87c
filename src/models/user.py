"""
User domain models.

Responsibility: Roles, verification states and the authenticated user view
"""

from datetime import date
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserRole(str, Enum):
    CITIZEN = "citizen"
    POLITICIAN = "politician"
    ADMIN = "admin"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class AuthUser(BaseModel):
    """The user attached to an authenticated request."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    first_name: str
    last_name: str
    role: UserRole
    verification_status: VerificationStatus
    email_verified: bool = False
    is_active: bool = True

    @property
    def is_verified(self) -> bool:
        return self.verification_status == VerificationStatus.VERIFIED

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class AddressInput(BaseModel):
    street: str
    city: str
    state: str = Field(min_length=2, max_length=2)
    zip_code: str
    congressional_district: Optional[str] = None
    state_senate_district: Optional[str] = None
    state_house_district: Optional[str] = None


class PoliticianInfo(BaseModel):
    office_level: str = Field(pattern="^(federal|state|county|city)$")
    office_title: str
    district: Optional[str] = None
    party: Optional[str] = None
    website: Optional[str] = None


class RegistrationData(BaseModel):
    email: EmailStr
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    date_of_birth: date
    phone: Optional[str] = None
    password: str
    confirm_password: str
    role: UserRole = UserRole.CITIZEN
    address: Optional[AddressInput] = None
    politician_info: Optional[PoliticianInfo] = None
    interests: List[str] = Field(default_factory=list)
