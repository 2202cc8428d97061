"""Request-scoped dependencies: the wired app, caller identity, admin guard."""

from __future__ import annotations

import hmac

from fastapi import Request

from jai_chat.app import JaiChatApp
from jai_chat.core.identity import Identity, guest_fingerprint, resolve_identity
from jai_chat.errors import AccessDeniedError, AuthenticationError

DEVICE_ID_HEADER = "X-Device-Id"
ADMIN_TOKEN_HEADER = "X-Admin-Token"
SESSION_USER_KEY = "user_id"


def get_app(request: Request) -> JaiChatApp:
    return request.app.state.jai


def client_ip(request: Request) -> str:
    """Peer address, or the first X-Forwarded-For hop behind a trusted proxy."""
    if get_app(request).config.server.trust_proxy:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def get_guest_fingerprint(request: Request) -> str:
    return guest_fingerprint(client_ip(request), request.headers.get(DEVICE_ID_HEADER))


def get_identity(request: Request) -> Identity:
    return resolve_identity(
        request.session.get(SESSION_USER_KEY),
        client_ip(request),
        request.headers.get(DEVICE_ID_HEADER),
    )


def require_user_id(request: Request) -> str:
    user_id = request.session.get(SESSION_USER_KEY)
    if not user_id:
        raise AuthenticationError("Unauthorized")
    return user_id


def require_admin(request: Request) -> None:
    """Admin routes need X-Admin-Token to match the configured token; no token disables them."""
    expected = get_app(request).config.admin.token
    provided = request.headers.get(ADMIN_TOKEN_HEADER, "")
    if not expected or not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        raise AccessDeniedError("admin", "custom-models")
