"""
API endpoints for session authentication.

Endpoints:
    - POST /api/v1/auth/login - Email/password login (form or JSON)
    - POST /api/v1/auth/register - Create an account and sign in
    - POST /api/v1/auth/logout - Clear the session cookie
    - GET /api/v1/auth/status - Current session user, if any

Responsibility: Issue and clear the session cookie
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import ValidationError as PydanticValidationError

from src.config import settings
from src.exceptions import ValidationError
from src.models.user import AuthUser, RegistrationData
from src.services.auth_service import AuthService

from api.dependencies import get_auth_service, get_current_user
from api.v1.schemas.auth import AuthStatusResponse, LoginRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


# MARK: - Cookie helpers

def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.auth.cookie_name,
        value=token,
        max_age=settings.auth.session_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.app.is_production,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.auth.cookie_name,
        httponly=True,
        secure=settings.app.is_production,
        samesite="lax",
        path="/",
    )


async def _read_login(request: Request) -> LoginRequest:
    """Parse ``{email, password}`` from a form post or a JSON body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        payload = dict(await request.form())
    else:
        try:
            payload = await request.json()
        except ValueError:
            raise ValidationError("Email and password are required")

    try:
        return LoginRequest.model_validate(payload)
    except PydanticValidationError:
        raise ValidationError("Email and password are required")


# MARK: - Endpoints

@router.post("/login", response_model=AuthStatusResponse)
async def login(
    request: Request,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
) -> AuthStatusResponse:
    """
    Sign in and set the session cookie.

    Errors:
        400: Missing fields or deactivated account
        401: Invalid email or password
        429: Too many attempts for this email
    """
    credentials = await _read_login(request)
    user, token = await auth.login(credentials.email, credentials.password)

    set_session_cookie(response, token)
    return AuthStatusResponse(authenticated=True, user=user)


@router.post("/register", response_model=AuthStatusResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegistrationData,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
) -> AuthStatusResponse:
    user, token = await auth.register(data)

    logger.info(f"Registered user {user.id} ({user.role.value})")
    set_session_cookie(response, token)
    return AuthStatusResponse(authenticated=True, user=user)


@router.post("/logout")
async def logout(response: Response):
    clear_session_cookie(response)
    return {"success": True}


@router.get("/status", response_model=AuthStatusResponse)
async def auth_status(user: Optional[AuthUser] = Depends(get_current_user)) -> AuthStatusResponse:
    return AuthStatusResponse(authenticated=user is not None, user=user)
