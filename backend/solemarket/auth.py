import hashlib
import logging
import secrets
import threading
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Dict, Optional, Tuple
from uuid import uuid4

from fastapi import Depends, Header, HTTPException, status
from pydantic import BaseModel
from supabase import Client

from .config import get_settings
from .errors import AuthError
from .models import AuthUser
from .supabase_client import get_supabase

logger = logging.getLogger(__name__)


class Session(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    user: AuthUser


class AuthService(ABC):
    @abstractmethod
    def sign_up(self, email: str, password: str) -> Session:
        raise NotImplementedError

    @abstractmethod
    def sign_in(self, email: str, password: str) -> Session:
        raise NotImplementedError

    @abstractmethod
    def get_user(self, token: str) -> Optional[AuthUser]:
        raise NotImplementedError


class SupabaseAuthService(AuthService):
    def __init__(self, client: Client):
        self.client = client

    def sign_up(self, email: str, password: str) -> Session:
        try:
            # Admin create confirms the address immediately.
            self.client.auth.admin.create_user({"email": email, "password": password, "email_confirm": True})
        except Exception as exc:
            logger.warning("Supabase sign-up failed for %s: %s", email, exc)
            raise AuthError(f"Account creation failed: {exc}") from exc
        return self.sign_in(email, password)

    def sign_in(self, email: str, password: str) -> Session:
        try:
            resp = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as exc:
            raise AuthError("Invalid credentials") from exc
        if resp.user is None or resp.session is None:  # type: ignore[attr-defined]
            raise AuthError("Invalid credentials")
        return Session(
            access_token=resp.session.access_token,  # type: ignore[attr-defined]
            refresh_token=resp.session.refresh_token,  # type: ignore[attr-defined]
            user=AuthUser(id=str(resp.user.id), email=resp.user.email),  # type: ignore[attr-defined]
        )

    def get_user(self, token: str) -> Optional[AuthUser]:
        try:
            user = self.client.auth.get_user(token).user
        except Exception as exc:
            raise AuthError("Invalid or expired token") from exc
        if user is None:
            return None
        return AuthUser(id=str(user.id), email=user.email)


class MemoryAuthService(AuthService):
    """Process-local accounts for APP_BACKEND=memory and tests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._accounts: Dict[str, Tuple[AuthUser, bytes, bytes]] = {}
        self._tokens: Dict[str, AuthUser] = {}

    @staticmethod
    def _hash(password: str, salt: bytes) -> bytes:
        return hashlib.pbkdf2_hmac("sha256", password.encode(), salt, 100_000)

    def _issue(self, user: AuthUser) -> Session:
        token = secrets.token_urlsafe(32)
        self._tokens[token] = user
        return Session(access_token=token, refresh_token=secrets.token_urlsafe(32), user=user)

    def sign_up(self, email: str, password: str) -> Session:
        key = email.lower()
        with self._lock:
            if key in self._accounts:
                raise AuthError("Email already in use")
            salt = secrets.token_bytes(16)
            user = AuthUser(id=str(uuid4()), email=email)
            self._accounts[key] = (user, salt, self._hash(password, salt))
            return self._issue(user)

    def sign_in(self, email: str, password: str) -> Session:
        with self._lock:
            account = self._accounts.get(email.lower())
            if account is None:
                raise AuthError("Invalid credentials")
            user, salt, digest = account
            if not secrets.compare_digest(digest, self._hash(password, salt)):
                raise AuthError("Invalid credentials")
            return self._issue(user)

    def get_user(self, token: str) -> Optional[AuthUser]:
        with self._lock:
            user = self._tokens.get(token)
        if user is None:
            raise AuthError("Invalid or expired token")
        return user


@lru_cache()
def get_auth_service() -> AuthService:
    if get_settings().backend == "memory":
        return MemoryAuthService()
    try:
        return SupabaseAuthService(get_supabase())
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Supabase client initialization failed",
        ) from exc


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    auth: AuthService = Depends(get_auth_service),
) -> AuthUser:
    """
    Validate a Bearer access token and return the signed-in user.
    """
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    token = authorization.split(" ", 1)[1]
    try:
        user = auth.get_user(token)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def get_optional_user(
    authorization: Optional[str] = Header(default=None),
    auth: AuthService = Depends(get_auth_service),
) -> Optional[AuthUser]:
    if not authorization:
        return None
    try:
        return get_current_user(authorization=authorization, auth=auth)
    except HTTPException:
        return None
