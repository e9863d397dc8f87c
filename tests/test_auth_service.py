from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Dict, Optional
from uuid import UUID, uuid4

import jwt
import pytest

from src.exceptions import AuthenticationError, ConfigurationError, RateLimitExceededError, ValidationError
from src.models.user import RegistrationData, UserRole
from src.services.auth_service import (
    AuthService,
    create_session_token,
    decode_session_token,
    hash_password,
    validate_password,
    verify_password,
)
from src.utils.attempt_limiter import AttemptLimiter

PASSWORD = "S3cret!pw"


class InMemoryUsers:
    def __init__(self):
        self.by_id: Dict[UUID, SimpleNamespace] = {}
        self.logins = []

    def add(self, email: str, password: str = PASSWORD, **fields) -> SimpleNamespace:
        user = SimpleNamespace(
            id=uuid4(),
            email=email,
            first_name="Ada",
            last_name="Voter",
            role=fields.pop("role", "citizen"),
            verification_status=fields.pop("verification_status", "verified"),
            email_verified=True,
            is_active=fields.pop("is_active", True),
            password_hash=hash_password(password, rounds=4),
        )
        self.by_id[user.id] = user
        return user

    async def get_by_email(self, email: str) -> Optional[SimpleNamespace]:
        return next((u for u in self.by_id.values() if u.email == email.lower()), None)

    async def get_by_id(self, user_id: UUID) -> Optional[SimpleNamespace]:
        return self.by_id.get(user_id)

    async def update_last_login(self, user_id: UUID) -> None:
        self.logins.append(user_id)

    async def create(self, data: RegistrationData, password_hash: str) -> SimpleNamespace:
        user = self.add(data.email, role=data.role.value, verification_status="pending")
        user.password_hash = password_hash
        return user


@pytest.fixture
def users() -> InMemoryUsers:
    return InMemoryUsers()


@pytest.fixture
def service(users) -> AuthService:
    return AuthService(users, limiter=AttemptLimiter())


def _registration(**overrides) -> RegistrationData:
    payload = {
        "email": "new@example.com",
        "first_name": "New",
        "last_name": "Voter",
        "date_of_birth": date(1990, 1, 1),
        "password": PASSWORD,
        "confirm_password": PASSWORD,
    }
    payload.update(overrides)
    return RegistrationData(**payload)


def test_password_rules() -> None:
    assert validate_password(PASSWORD) == []
    assert validate_password("short")[0] == "Password must be at least 8 characters"
    assert "Password must contain an uppercase letter" in validate_password("lowercase1!")
    assert "Password must contain a number" in validate_password("NoDigits!!")
    assert any("special character" in p for p in validate_password("NoSpecial123"))


def test_bcrypt_round_trip_and_foreign_hash() -> None:
    hashed = hash_password(PASSWORD, rounds=4)

    assert hashed.startswith("$2")
    assert verify_password(PASSWORD, hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password(PASSWORD, "plaintext")


def test_session_token_claims() -> None:
    user_id = uuid4()
    token = create_session_token(user_id)

    claims = jwt.decode(token, "test-jwt-secret", algorithms=["HS256"])
    assert claims["userId"] == str(user_id)
    assert claims["type"] == "session"
    assert claims["exp"] - claims["iat"] == 7 * 24 * 3600
    assert decode_session_token(token) == user_id


def test_expired_tampered_and_foreign_tokens_are_rejected() -> None:
    user_id = uuid4()
    expired = create_session_token(user_id, now=datetime.now(timezone.utc) - timedelta(days=8))
    foreign = jwt.encode({"userId": str(user_id), "type": "reset"}, "test-jwt-secret", algorithm="HS256")
    forged = jwt.encode({"userId": str(user_id), "type": "session"}, "other-secret", algorithm="HS256")

    assert decode_session_token(expired) is None
    assert decode_session_token(foreign) is None
    assert decode_session_token(forged) is None
    assert decode_session_token("garbage") is None


def test_missing_jwt_secret_is_a_configuration_error(test_settings) -> None:
    test_settings.auth.jwt_secret = None

    with pytest.raises(ConfigurationError, match="JWT_SECRET"):
        create_session_token(uuid4())


async def test_login_success_updates_last_login(service, users) -> None:
    stored = users.add("ada@example.com")

    user, token = await service.login("Ada@Example.com", PASSWORD)

    assert user.id == stored.id
    assert users.logins == [stored.id]
    assert decode_session_token(token) == stored.id


async def test_login_wrong_password_and_unknown_email(service, users) -> None:
    users.add("ada@example.com")

    with pytest.raises(AuthenticationError, match="Invalid email or password"):
        await service.login("ada@example.com", "Wrong!pw1")
    with pytest.raises(AuthenticationError):
        await service.login("nobody@example.com", PASSWORD)


async def test_deactivated_account(service, users) -> None:
    users.add("gone@example.com", is_active=False)

    with pytest.raises(ValidationError, match="Account is deactivated. Please contact support."):
        await service.login("gone@example.com", PASSWORD)


async def test_sixth_login_attempt_is_throttled(service, users) -> None:
    users.add("ada@example.com")
    for _ in range(5):
        with pytest.raises(AuthenticationError):
            await service.login("ada@example.com", "Wrong!pw1")

    with pytest.raises(RateLimitExceededError) as exc_info:
        await service.login("ada@example.com", PASSWORD)

    assert exc_info.value.retry_after > 0


async def test_successful_login_resets_attempts(service, users) -> None:
    users.add("ada@example.com")
    for _ in range(4):
        with pytest.raises(AuthenticationError):
            await service.login("ada@example.com", "Wrong!pw1")

    await service.login("ada@example.com", PASSWORD)

    for _ in range(4):
        with pytest.raises(AuthenticationError):
            await service.login("ada@example.com", "Wrong!pw1")


async def test_register_creates_user_with_bcrypt_hash(service, users) -> None:
    user, token = await service.register(_registration())

    stored = users.by_id[user.id]
    assert user.role is UserRole.CITIZEN
    assert verify_password(PASSWORD, stored.password_hash)
    assert decode_session_token(token) == user.id


async def test_register_rejections(service, users) -> None:
    users.add("taken@example.com")

    with pytest.raises(ValidationError, match="Passwords do not match"):
        await service.register(_registration(confirm_password="Other!pw1"))
    with pytest.raises(ValidationError, match="at least 8 characters"):
        await service.register(_registration(password="S!1a", confirm_password="S!1a"))
    with pytest.raises(ValidationError, match="already exists"):
        await service.register(_registration(email="taken@example.com"))


async def test_session_user_resolution(service, users) -> None:
    active = users.add("ada@example.com")
    inactive = users.add("gone@example.com", is_active=False)

    assert (await service.get_session_user(create_session_token(active.id))).id == active.id
    assert await service.get_session_user(create_session_token(inactive.id)) is None
    assert await service.get_session_user(create_session_token(uuid4())) is None
    assert await service.get_session_user(None) is None
