# app/access_gate.py
"""Cookie-flag gate for the admin area.

The flag is set by the browser on login and cleared on logout. It is not
signed, so this only steers well-behaved clients between the login page and
the admin area.
"""
import logging
from typing import NamedTuple, Optional

from fastapi import Request
from fastapi.responses import RedirectResponse

from app.config import get_settings

logger = logging.getLogger(__name__)


class AccessVerdict(NamedTuple):
    allowed: bool
    redirect_to: Optional[str] = None


ALLOW = AccessVerdict(allowed=True)


def _matches(path: str, prefix: str) -> bool:
    prefix = prefix.rstrip("/")
    return path == prefix or path.startswith(prefix + "/")


def check_access(
    path: str,
    is_authenticated: bool,
    admin_path: str = "/admin",
    login_path: str = "/login",
) -> AccessVerdict:
    if _matches(path, admin_path) and not is_authenticated:
        return AccessVerdict(allowed=False, redirect_to=login_path)

    if path.rstrip("/") == login_path.rstrip("/") and is_authenticated:
        return AccessVerdict(allowed=False, redirect_to=admin_path)

    return ALLOW


def is_authenticated(request: Request, cookie_name: str) -> bool:
    return request.cookies.get(cookie_name) == "true"


async def access_gate_middleware(request: Request, call_next):
    settings = get_settings()
    verdict = check_access(
        request.url.path,
        is_authenticated(request, settings.AUTH_COOKIE_NAME),
        admin_path=settings.ADMIN_PATH,
        login_path=settings.LOGIN_PATH,
    )
    if not verdict.allowed:
        logger.debug("Redirecting %s to %s", request.url.path, verdict.redirect_to)
        return RedirectResponse(url=verdict.redirect_to)
    return await call_next(request)
