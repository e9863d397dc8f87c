"""
Repository for users, addresses, politician profiles and legislative interests.

Responsibility: Account persistence and district lookup for targeting
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.dialects.postgresql import insert as pg_insert
import logging

from ..models import (
    UserModel,
    AddressModel,
    PoliticianModel,
    UserLegislativeInterestModel,
)
from ...config import settings
from ...models.feed import DEFAULT_NOTIFICATION_TYPES
from ...models.legislative import parse_district
from ...models.user import RegistrationData, UserRole

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UserTargeting:
    """Districts and subjects used to personalize a user's feed."""

    districts: List[str] = field(default_factory=list)
    interests: List[str] = field(default_factory=list)


def address_districts(address: Optional[AddressModel], state: Optional[str] = None) -> List[str]:
    """
    Canonical district codes for an address.

    Congressional districts become ``NV-03``; state senate and assembly
    districts become ``SD-05`` / ``HD-012`` so they match legislator rows.
    """
    if address is None:
        return []

    state = state or address.state or settings.legiscan.state
    codes = [
        parse_district(None, address.congressional_district, level="federal", state=state),
        parse_district("Sen", address.state_senate_district, state=state),
        parse_district("Rep", address.state_house_district, state=state),
    ]
    return [code for code in codes if code]


class UserRepository:
    """
    Repository for user accounts.

    Example:
        repo = UserRepository(session)
        user = await repo.get_by_email("voter@example.com")
        targeting = await repo.get_targeting(user.id)
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: UUID) -> Optional[UserModel]:
        result = await self.session.execute(
            select(UserModel).where(UserModel.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[UserModel]:
        result = await self.session.execute(
            select(UserModel).where(func.lower(UserModel.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def create(self, data: RegistrationData, password_hash: str) -> UserModel:
        """
        Create a user with optional primary address and politician profile.

        Args:
            data: Validated registration payload
            password_hash: bcrypt hash of the password

        Returns:
            Created UserModel
        """
        user = UserModel(
            email=data.email.lower(),
            first_name=data.first_name,
            last_name=data.last_name,
            date_of_birth=data.date_of_birth,
            phone=data.phone,
            password_hash=password_hash,
            role=data.role.value,
            verification_status="pending",
            interests=list(data.interests),
        )
        self.session.add(user)
        await self.session.flush()

        if data.address:
            self.session.add(
                AddressModel(
                    user_id=user.id,
                    street_address=data.address.street,
                    city=data.address.city,
                    state=data.address.state.upper(),
                    zip_code=data.address.zip_code,
                    congressional_district=data.address.congressional_district,
                    state_senate_district=data.address.state_senate_district,
                    state_house_district=data.address.state_house_district,
                    is_primary=True,
                )
            )

        if data.role == UserRole.POLITICIAN and data.politician_info:
            info = data.politician_info
            state = data.address.state.upper() if data.address else settings.legiscan.state
            self.session.add(
                PoliticianModel(
                    user_id=user.id,
                    office_level=info.office_level,
                    office_title=info.office_title,
                    district=info.district,
                    state=state,
                    congressional_district=(
                        data.address.congressional_district if data.address else info.district
                    ),
                    state_code=state,
                    party=info.party,
                    website=info.website,
                    is_verified=False,
                )
            )

        await self.session.flush()
        logger.info(f"Created user {user.id} ({user.role})")
        return user

    async def update_last_login(self, user_id: UUID) -> None:
        user = await self.get_by_id(user_id)
        if user is not None:
            user.last_login = datetime.utcnow()
            await self.session.flush()

    async def get_primary_address(self, user_id: UUID) -> Optional[AddressModel]:
        result = await self.session.execute(
            select(AddressModel)
            .where(AddressModel.user_id == user_id, AddressModel.is_primary.is_(True))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_politician_by_user(self, user_id: UUID) -> Optional[PoliticianModel]:
        result = await self.session.execute(
            select(PoliticianModel).where(PoliticianModel.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def list_verified_in_district(self, congressional_district: str) -> List[UserModel]:
        """Verified, active citizens whose primary address is in a district."""
        result = await self.session.execute(
            select(UserModel)
            .join(AddressModel, AddressModel.user_id == UserModel.id)
            .where(
                AddressModel.is_primary.is_(True),
                AddressModel.congressional_district == congressional_district,
                UserModel.role == UserRole.CITIZEN.value,
                UserModel.verification_status == "verified",
                UserModel.is_active.is_(True),
            )
        )
        return list(result.scalars().all())

    async def get_interests(self, user_id: UUID) -> Optional[UserLegislativeInterestModel]:
        result = await self.session.execute(
            select(UserLegislativeInterestModel).where(
                UserLegislativeInterestModel.user_id == user_id
            )
        )
        return result.scalar_one_or_none()

    async def get_or_create_interests(self, user_id: UUID) -> UserLegislativeInterestModel:
        """Fetch the user's legislative interests, creating defaults on first access."""
        existing = await self.get_interests(user_id)
        if existing is not None:
            return existing

        stmt = pg_insert(UserLegislativeInterestModel).values(
            user_id=user_id,
            subjects=[],
            follow_districts=[],
            notification_types=list(DEFAULT_NOTIFICATION_TYPES),
        ).on_conflict_do_nothing(index_elements=[UserLegislativeInterestModel.user_id])
        await self.session.execute(stmt)

        return await self.get_interests(user_id)

    async def update_interests(
        self,
        user_id: UUID,
        updates: Dict[str, Any]
    ) -> UserLegislativeInterestModel:
        interests = await self.get_or_create_interests(user_id)
        for key, value in updates.items():
            setattr(interests, key, value)
        interests.updated_at = datetime.utcnow()
        await self.session.flush()
        return interests

    async def get_targeting(self, user_id: UUID) -> UserTargeting:
        """
        Districts and interests for the user's feed.

        Districts come from the primary address plus followed districts;
        interests merge profile interests with legislative subjects.
        """
        user = await self.get_by_id(user_id)
        if user is None:
            return UserTargeting()

        address = await self.get_primary_address(user_id)
        interests_row = await self.get_interests(user_id)

        districts = address_districts(address)
        interests = list(user.interests or [])
        if interests_row is not None:
            districts.extend(interests_row.follow_districts or [])
            interests.extend(interests_row.subjects or [])

        return UserTargeting(
            districts=list(dict.fromkeys(districts)),
            interests=list(dict.fromkeys(interests)),
        )
