"""Account signup and login, with guest chat migration on success."""

from __future__ import annotations

from typing import Optional

import bcrypt

from jai_chat.errors import AuthenticationError, ConflictError, ValidationError
from jai_chat.log import get_logger
from jai_chat.storage.chat_repo import ChatRepository
from jai_chat.storage.models import User
from jai_chat.storage.user_repo import UserRepository

logger = get_logger(__name__)

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6

BCRYPT_ROUNDS = 10
# bcrypt only reads the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("ascii")


def verify_password(password: str, stored: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), stored.encode("utf-8"))
    except ValueError:
        return False


class AccountService:
    def __init__(self, users: UserRepository, chats: ChatRepository):
        self._users = users
        self._chats = chats

    async def signup(
        self,
        username: str,
        password: str,
        name: Optional[str] = None,
        guest_fingerprint: Optional[str] = None,
    ) -> User:
        username = (username or "").strip()
        if not username or not password:
            raise ValidationError("Username and password are required")
        if len(username) < MIN_USERNAME_LENGTH:
            raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        if await self._users.get_user_by_username(username) is not None:
            raise ConflictError("Username already exists")

        user = await self._users.create_user(username, hash_password(password), (name or "").strip() or username)
        logger.info("user_signed_up", user_id=user.id)
        await self._claim(guest_fingerprint, user)
        return user

    async def login(
        self,
        username: str,
        password: str,
        guest_fingerprint: Optional[str] = None,
    ) -> User:
        if not username or not password:
            raise ValidationError("Username and password are required")
        user = await self._users.get_user_by_username(username.strip())
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid username or password")
        logger.info("user_logged_in", user_id=user.id)
        await self._claim(guest_fingerprint, user)
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self._users.get_user(user_id)

    async def _claim(self, guest_fingerprint: Optional[str], user: User) -> None:
        if guest_fingerprint:
            await self._chats.claim_guest_chats(guest_fingerprint, user.id)
