import base64
import hashlib
import logging
import secrets
import time
from typing import Any, Dict, Optional, TYPE_CHECKING

from pydantic import BaseModel

from quicknotes.core.config import Settings
from quicknotes.core.security import decode_access_token, get_token_expiry, is_token_expired
from quicknotes.infrastructure.supabase.errors import ErrorKind, RemoteError
from quicknotes.storage.base import KeyValueStorage

if TYPE_CHECKING:
    from quicknotes.infrastructure.supabase.client import SupabaseClient

logger = logging.getLogger(__name__)


class AuthSession(BaseModel):
    """Сессия пользователя, выданная GoTrue"""
    access_token: str
    refresh_token: str
    expires_at: Optional[int] = None
    user_id: str
    email: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "AuthSession":
        """Создание сессии из ответа token/signup эндпоинта"""
        access_token = payload["access_token"]
        user = payload.get("user") or {}
        claims = decode_access_token(access_token) or {}

        expires_at = payload.get("expires_at")
        if expires_at is None and payload.get("expires_in"):
            expires_at = int(time.time()) + int(payload["expires_in"])
        if expires_at is None:
            expires_at = get_token_expiry(access_token)

        return cls(
            access_token=access_token,
            refresh_token=payload.get("refresh_token", ""),
            expires_at=expires_at,
            user_id=user.get("id") or claims.get("sub"),
            email=user.get("email") or claims.get("email")
        )


class SignUpResult(BaseModel):
    user_id: Optional[str] = None
    email: Optional[str] = None
    identities_count: Optional[int] = None
    session: Optional[AuthSession] = None


def _code_challenge(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


class SupabaseAuth:
    """Auth API (GoTrue) с хранением сессии в локальном хранилище"""

    def __init__(self, client: "SupabaseClient", settings: Settings, storage: KeyValueStorage):
        self.client = client
        self.settings = settings
        self.storage = storage

    @property
    def storage_key(self) -> str:
        return self.settings.auth_storage_key

    @property
    def code_verifier_key(self) -> str:
        return f"{self.storage_key}-code-verifier"

    async def _load_session(self) -> Optional[AuthSession]:
        raw = await self.storage.get(self.storage_key)
        if not raw:
            return None
        return AuthSession.model_validate_json(raw)

    async def _save_session(self, session: AuthSession) -> None:
        await self.storage.set(self.storage_key, session.model_dump_json())

    async def _remove_session(self) -> None:
        await self.storage.remove(self.storage_key)

    async def _token_request(self, grant_type: str, body: Dict[str, Any]) -> AuthSession:
        response = await self.client.request(
            "POST", "/auth/v1/token", params={"grant_type": grant_type}, json=body
        )
        session = AuthSession.from_payload(response.json())
        await self._save_session(session)
        return session

    async def get_session(self) -> Optional[AuthSession]:
        """Получение активной сессии с обновлением истекшего токена.

        Ошибки не пробрасываются: при любой проблеме сессии нет.
        """
        try:
            session = await self._load_session()
            if session is None:
                return None

            if self.settings.supabase_jwt_secret and decode_access_token(
                session.access_token,
                self.settings.supabase_jwt_secret,
                self.settings.jwt_algorithm
            ) is None:
                logger.warning("Stored access token failed signature check, discarding session")
                await self._remove_session()
                return None

            if not is_token_expired(session.expires_at):
                return session

            return await self._refresh(session)
        except Exception as e:
            logger.warning(f"Session retrieval error: {e}")
            return None

    async def _refresh(self, session: AuthSession) -> Optional[AuthSession]:
        try:
            refreshed = await self._token_request(
                "refresh_token", {"refresh_token": session.refresh_token}
            )
        except RemoteError as e:
            logger.warning(f"Session refresh failed ({e.kind.value}): {e.message}")
            await self._remove_session()
            return None

        logger.info(f"Refreshed session for user {refreshed.user_id}")
        return refreshed

    async def sign_up(self, email: str, password: str) -> SignUpResult:
        """Регистрация по email и паролю с подтверждением по ссылке (PKCE)"""
        verifier = secrets.token_urlsafe(56)
        await self.storage.set(self.code_verifier_key, verifier)

        response = await self.client.request(
            "POST",
            "/auth/v1/signup",
            params={"redirect_to": self.settings.callback_url},
            json={
                "email": email,
                "password": password,
                "data": {"email_confirm": True},
                "code_challenge": _code_challenge(verifier),
                "code_challenge_method": "s256",
            }
        )
        payload = response.json()

        session = None
        user = payload
        if payload.get("access_token"):
            session = AuthSession.from_payload(payload)
            await self._save_session(session)
            user = payload.get("user") or {}

        identities = user.get("identities")
        return SignUpResult(
            user_id=user.get("id"),
            email=user.get("email"),
            identities_count=len(identities) if identities is not None else None,
            session=session
        )

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """Вход по email и паролю"""
        return await self._token_request("password", {"email": email, "password": password})

    async def exchange_code_for_session(self, code: str) -> AuthSession:
        """Обмен одноразового кода из ссылки подтверждения на сессию"""
        verifier = await self.storage.get(self.code_verifier_key)
        if not verifier:
            raise RemoteError(ErrorKind.UNKNOWN, "No code verifier found for this sign-up")

        session = await self._token_request(
            "pkce", {"auth_code": code, "code_verifier": verifier}
        )
        await self.storage.remove(self.code_verifier_key)
        return session

    async def sign_out(self) -> None:
        """Завершение сессии на сервере; локальная сессия удаляется в любом случае"""
        try:
            session = await self._load_session()
            if session is not None:
                await self.client.request(
                    "POST", "/auth/v1/logout", access_token=session.access_token
                )
        finally:
            await self._remove_session()
