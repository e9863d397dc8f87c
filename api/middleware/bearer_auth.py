"""
Shared-secret bearer token middleware.

Guards the legislative sync and cron endpoints, which are called by
schedulers rather than signed-in users.

Responsibility: Reject sync/cron requests without the configured bearer secret
"""

import hmac
import logging
from typing import Callable, List, Optional, Tuple

from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from src.config import settings

logger = logging.getLogger(__name__)

SYNC_PATH = "/api/v1/legislative/sync"
CRON_PREFIX = "/api/v1/cron/"


def _sync_secret() -> Optional[str]:
    return settings.sync.legislative_sync_secret


def _cron_secret() -> Optional[str]:
    return settings.sync.cron_secret or settings.sync.legislative_sync_secret


# (path matcher, secret getter, 401 message)
PROTECTED_ROUTES: List[Tuple[Callable[[str], bool], Callable[[], Optional[str]], str]] = [
    (lambda path: path.rstrip("/") == SYNC_PATH, _sync_secret, "Unauthorized - Invalid sync token"),
    (lambda path: path.startswith(CRON_PREFIX), _cron_secret, "Unauthorized"),
]


def is_valid_bearer(header: Optional[str], secret: Optional[str]) -> bool:
    """True only for exactly ``Bearer <secret>`` with a configured secret."""
    if not secret or not header:
        return False
    return hmac.compare_digest(header.encode("utf-8"), f"Bearer {secret}".encode("utf-8"))


class BearerTokenMiddleware(BaseHTTPMiddleware):
    """
    Middleware for bearer-secret authentication of scheduler endpoints.

    Secrets are read from settings on every request, so an unset secret
    locks the endpoint instead of opening it.
    """

    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        for matches, secret_getter, message in PROTECTED_ROUTES:
            if not matches(path):
                continue

            if not is_valid_bearer(request.headers.get("Authorization"), secret_getter()):
                logger.warning(f"Rejected {request.method} {path}: invalid bearer token")
                return JSONResponse(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    content={"error": message}
                )
            break

        return await call_next(request)
