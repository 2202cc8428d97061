"""Signup, login, logout, and current-user endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from jai_chat.api.deps import SESSION_USER_KEY, get_app, get_guest_fingerprint, require_user_id
from jai_chat.api.schemas import LoginRequest, SignupRequest
from jai_chat.app import JaiChatApp
from jai_chat.errors import AuthenticationError

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/signup")
async def signup(
    body: SignupRequest,
    request: Request,
    fingerprint: str = Depends(get_guest_fingerprint),
    jai: JaiChatApp = Depends(get_app),
) -> dict:
    user = await jai.account_service.signup(
        body.username, body.password, body.name, guest_fingerprint=fingerprint
    )
    request.session[SESSION_USER_KEY] = user.id
    return user.to_public_dict()


@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    fingerprint: str = Depends(get_guest_fingerprint),
    jai: JaiChatApp = Depends(get_app),
) -> dict:
    user = await jai.account_service.login(body.username, body.password, guest_fingerprint=fingerprint)
    request.session[SESSION_USER_KEY] = user.id
    return user.to_public_dict()


@router.post("/logout")
async def logout(request: Request) -> dict:
    request.session.clear()
    return {"success": True}


@router.get("/auth/user")
async def current_user(
    user_id: str = Depends(require_user_id),
    jai: JaiChatApp = Depends(get_app),
) -> dict:
    user = await jai.account_service.get_user(user_id)
    if user is None:
        raise AuthenticationError("Unauthorized")
    return user.to_public_dict()
