"""Access-control gate for the admin area."""

import logging
from typing import Callable, Optional
from urllib.parse import urlencode

from fastapi import FastAPI, Request, Response
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from dealership.auth import decode_token, extract_token

logger = logging.getLogger(__name__)

ADMIN_PREFIX = "/admin"
LOGIN_PATH = "/admin/login"


def _is_under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def is_admitted(path: str, token_payload: Optional[dict]) -> bool:
    """
    Decide whether a request may proceed.

    The login route is always admitted, every other admin path needs a
    valid session, and all remaining paths are public.
    """
    if _is_under(path, LOGIN_PATH):
        return True

    if _is_under(path, ADMIN_PREFIX):
        return token_payload is not None

    return True


def login_redirect(request: Request) -> RedirectResponse:
    """Redirect to the login page, remembering where the user wanted to go."""
    callback = request.url.path
    if request.url.query:
        callback = f"{callback}?{request.url.query}"
    return RedirectResponse(url=f"{LOGIN_PATH}?{urlencode({'callbackUrl': callback})}")


class AccessControlMiddleware(BaseHTTPMiddleware):
    """
    Redirects unauthenticated requests for admin paths to the login page.

    Only the token is checked here. Handlers still load the user through
    the get_current_user dependency.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path

        if not _is_under(path, ADMIN_PREFIX) or _is_under(path, LOGIN_PATH):
            return await call_next(request)

        token = extract_token(request)
        payload = decode_token(token) if token else None

        if not is_admitted(path, payload):
            logger.warning(f"Unauthenticated request to {path}, redirecting to login")
            return login_redirect(request)

        return await call_next(request)


def add_middleware(app: FastAPI) -> None:
    """Add all middleware to the FastAPI application."""
    app.add_middleware(AccessControlMiddleware)
