"""
Account authentication service.

bcrypt password hashing, JWT session tokens (carried in the
``citizenly-session`` cookie) and per-email login throttling.

Responsibility: Register, log in and resolve session users
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple
from uuid import UUID
import logging
import re

import bcrypt
import jwt

from ..config import settings
from ..db.models import UserModel
from ..db.repositories.user_repository import UserRepository
from ..exceptions import (
    AuthenticationError,
    ConfigurationError,
    RateLimitExceededError,
    ValidationError,
)
from ..models.user import AuthUser, RegistrationData
from ..utils.attempt_limiter import AttemptLimiter, attempt_limiter

logger = logging.getLogger(__name__)

SESSION_TOKEN_TYPE = "session"
PASSWORD_SPECIAL_CHARACTERS = "@$!%*?&"


def validate_password(password: str) -> List[str]:
    """
    Check password strength.

    Returns:
        Human-readable problems; empty when the password is acceptable
    """
    errors = []
    if len(password) < 8:
        errors.append("Password must be at least 8 characters")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain a lowercase letter")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain an uppercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain a number")
    if not any(char in PASSWORD_SPECIAL_CHARACTERS for char in password):
        errors.append(f"Password must contain a special character ({PASSWORD_SPECIAL_CHARACTERS})")
    return errors


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.auth.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def _jwt_secret() -> str:
    secret = settings.auth.jwt_secret
    if not secret:
        raise ConfigurationError("JWT_SECRET environment variable is required")
    return secret


def create_session_token(user_id: UUID, now: Optional[datetime] = None) -> str:
    """Signed ``{userId, type: "session"}`` token valid for ``session_days``."""
    now = now or datetime.now(timezone.utc)
    payload = {
        "userId": str(user_id),
        "type": SESSION_TOKEN_TYPE,
        "iat": now,
        "exp": now + timedelta(days=settings.auth.session_days),
    }
    return jwt.encode(payload, _jwt_secret(), algorithm=settings.auth.jwt_algorithm)


def decode_session_token(token: str) -> Optional[UUID]:
    """
    Resolve a session token to a user id.

    Returns:
        User id, or None for expired, tampered or non-session tokens
    """
    try:
        payload = jwt.decode(token, _jwt_secret(), algorithms=[settings.auth.jwt_algorithm])
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected session token: {e}")
        return None

    if payload.get("type") != SESSION_TOKEN_TYPE:
        return None
    try:
        return UUID(str(payload.get("userId")))
    except ValueError:
        return None


def to_auth_user(user: UserModel) -> AuthUser:
    return AuthUser.model_validate(user)


class AuthService:
    """
    Login and registration against the users table.

    Example:
        service = AuthService(UserRepository(session))
        user, token = await service.login("voter@example.com", "S3cret!pw")
    """

    def __init__(self, users: UserRepository, limiter: Optional[AttemptLimiter] = None):
        self.users = users
        self.limiter = limiter or attempt_limiter

    async def login(self, email: str, password: str) -> Tuple[AuthUser, str]:
        """
        Authenticate with email and password.

        Args:
            email: Account email (case-insensitive)
            password: Plain-text password

        Returns:
            (user, session token)

        Raises:
            RateLimitExceededError: Too many attempts for this email
            AuthenticationError: Unknown email or wrong password
            ValidationError: Account is deactivated
        """
        email = email.strip().lower()
        limiter_key = f"login:{email}"

        limit = self.limiter.check_limit(
            limiter_key,
            max_attempts=settings.auth.login_max_attempts,
            window_seconds=settings.auth.login_window_seconds,
        )
        if not limit.allowed:
            raise RateLimitExceededError(
                "Too many login attempts. Please try again later.",
                retry_after=limit.retry_after,
            )

        user = await self.users.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info(f"Failed login for {email}")
            raise AuthenticationError("Invalid email or password")

        if not user.is_active:
            raise ValidationError("Account is deactivated. Please contact support.")

        self.limiter.reset(limiter_key)
        await self.users.update_last_login(user.id)

        logger.info(f"User {user.id} logged in")
        return to_auth_user(user), create_session_token(user.id)

    async def register(self, data: RegistrationData) -> Tuple[AuthUser, str]:
        """
        Create an account and start a session.

        Raises:
            ValidationError: Weak password, mismatch, or email already registered
        """
        if data.password != data.confirm_password:
            raise ValidationError("Passwords do not match", field="confirm_password")

        problems = validate_password(data.password)
        if problems:
            raise ValidationError(problems[0], field="password")

        if await self.users.get_by_email(data.email) is not None:
            raise ValidationError("An account with this email already exists", field="email")

        user = await self.users.create(data, hash_password(data.password))
        return to_auth_user(user), create_session_token(user.id)

    async def get_session_user(self, token: Optional[str]) -> Optional[AuthUser]:
        """The active user behind a session token, or None."""
        if not token:
            return None

        user_id = decode_session_token(token)
        if user_id is None:
            return None

        user = await self.users.get_by_id(user_id)
        if user is None or not user.is_active:
            return None
        return to_auth_user(user)
