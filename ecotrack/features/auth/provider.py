"""
ecotrack/features/auth/provider.py

Email/password auth collaborator.

Accounts live in process memory; passwords are bcrypt-hashed. Every change of
the signed-in identity is pushed to registered listeners, which is how the
session orchestrator learns about sign-in and sign-out.
"""

import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional
from uuid import uuid4

import bcrypt

from ecotrack.core.config import settings
from ecotrack.core.errors import (
    AUTH_EMAIL_IN_USE,
    AUTH_INVALID_EMAIL,
    AUTH_NOT_SIGNED_IN,
    AUTH_USER_NOT_FOUND,
    AUTH_WEAK_PASSWORD,
    AUTH_WRONG_PASSWORD,
    AuthError,
    ValidationError,
)
from ecotrack.core.logging import log_event

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
# bcrypt input limit
MAX_PASSWORD_BYTES = 72


@dataclass(frozen=True)
class AuthIdentity:
    uid: str
    email: str
    display_name: Optional[str] = None


@dataclass
class _Account:
    uid: str
    email: str
    password_hash: bytes
    display_name: Optional[str] = None

    def identity(self) -> AuthIdentity:
        return AuthIdentity(uid=self.uid, email=self.email, display_name=self.display_name)


AuthListener = Callable[[Optional[AuthIdentity]], Awaitable[None]]


class AuthProvider:
    """In-memory account registry with a single signed-in identity."""

    def __init__(self, min_password_length: Optional[int] = None, bcrypt_rounds: Optional[int] = None):
        self._accounts: Dict[str, _Account] = {}
        self._current: Optional[AuthIdentity] = None
        self._listeners: List[AuthListener] = []
        self._min_password_length = min_password_length or settings.MIN_PASSWORD_LENGTH
        self._bcrypt_rounds = bcrypt_rounds or settings.BCRYPT_ROUNDS

    @property
    def current(self) -> Optional[AuthIdentity]:
        return self._current

    def add_listener(self, listener: AuthListener) -> Callable[[], None]:
        """Register a session-changed listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    async def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> AuthIdentity:
        key = self._normalize_email(email)
        if len(password or "") < self._min_password_length:
            raise AuthError(AUTH_WEAK_PASSWORD)
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        if key in self._accounts:
            raise AuthError(AUTH_EMAIL_IN_USE)

        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self._bcrypt_rounds))
        account = _Account(uid=uuid4().hex, email=key, password_hash=hashed, display_name=display_name)
        self._accounts[key] = account
        log_event("info", "auth.signed_up", user_id=account.uid, event_type="auth.sign_up")
        await self._set_current(account.identity())
        return account.identity()

    async def sign_in(self, email: str, password: str) -> AuthIdentity:
        key = self._normalize_email(email)
        account = self._accounts.get(key)
        if account is None:
            raise AuthError(AUTH_USER_NOT_FOUND)
        if len((password or "").encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise AuthError(AUTH_WRONG_PASSWORD)
        if not bcrypt.checkpw((password or "").encode("utf-8"), account.password_hash):
            raise AuthError(AUTH_WRONG_PASSWORD)
        log_event("info", "auth.signed_in", user_id=account.uid, event_type="auth.sign_in")
        await self._set_current(account.identity())
        return account.identity()

    async def sign_out(self) -> None:
        if self._current is None:
            raise AuthError(AUTH_NOT_SIGNED_IN)
        log_event("info", "auth.signed_out", user_id=self._current.uid, event_type="auth.sign_out")
        await self._set_current(None)

    def update_display_name(self, display_name: str) -> AuthIdentity:
        if self._current is None:
            raise AuthError(AUTH_NOT_SIGNED_IN)
        account = self._accounts[self._current.email]
        account.display_name = display_name
        self._current = account.identity()
        return self._current

    @staticmethod
    def _normalize_email(email: str) -> str:
        key = (email or "").strip().lower()
        if not EMAIL_PATTERN.match(key):
            raise AuthError(AUTH_INVALID_EMAIL)
        return key

    async def _set_current(self, identity: Optional[AuthIdentity]) -> None:
        self._current = identity
        for listener in list(self._listeners):
            await listener(identity)
