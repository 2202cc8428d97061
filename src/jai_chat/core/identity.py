"""Resolve the principal behind a request: a logged-in user or a guest fingerprint.

A guest fingerprint is the SHA-256 of the client IP concatenated with the
optional ``X-Device-Id`` value. Both inputs are client-controlled and the IP
changes for roaming clients, so the fingerprint is a convenience identity for
anonymous history only. The authenticated user id is the trust boundary.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from jai_chat.core.types import IdentityKind

if TYPE_CHECKING:
    from jai_chat.storage.models import Chat


@dataclass(frozen=True, slots=True)
class Identity:
    kind: IdentityKind
    value: str

    @property
    def is_authenticated(self) -> bool:
        return self.kind is IdentityKind.AUTHENTICATED

    @classmethod
    def user(cls, user_id: str) -> Identity:
        return cls(IdentityKind.AUTHENTICATED, user_id)

    @classmethod
    def guest(cls, fingerprint: str) -> Identity:
        return cls(IdentityKind.GUEST, fingerprint)

    def owns(self, chat: Chat) -> bool:
        if self.is_authenticated:
            return chat.user_id == self.value
        # Claimed chats never fall back to guest ownership
        return chat.user_id is None and chat.guest_id == self.value


def guest_fingerprint(ip_address: str, device_id: Optional[str] = None) -> str:
    """Hash IP (+ device id when present) into a stable hex fingerprint."""
    device = (device_id or "").strip()
    # "|" never appears in an IP address, so the split point is unambiguous
    material = f"{ip_address}|{device}" if device else ip_address
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def resolve_identity(
    user_id: Optional[str],
    ip_address: str,
    device_id: Optional[str] = None,
) -> Identity:
    """Session user id wins outright; otherwise fall back to the guest fingerprint."""
    if user_id:
        return Identity.user(user_id)
    return Identity.guest(guest_fingerprint(ip_address, device_id))
