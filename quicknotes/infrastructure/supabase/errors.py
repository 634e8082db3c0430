"""
Translation of Supabase error payloads into 'RemoteError'.

GoTrue (auth) and PostgREST (rows, RPC) report failures in different shapes:

    GoTrue:     {"code": 400, "error_code": "invalid_credentials", "msg": "..."}
    GoTrue old: {"error": "invalid_grant", "error_description": "..."}
    PostgREST:  {"code": "PGRST301", "message": "JWT expired", "details": ..., "hint": ...}

Callers past this module only see an 'ErrorKind' and a message string.
"""

from enum import Enum
from typing import Any, Dict, Optional

import httpx


class ErrorKind(str, Enum):
    AUTH_REQUIRED = "auth_required"
    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    ALREADY_REGISTERED = "already_registered"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


class RemoteError(Exception):
    """Ошибка удаленного сервиса, уже классифицированная по ErrorKind"""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.code = code

    def __repr__(self) -> str:
        return f"RemoteError(kind={self.kind.value}, status={self.status_code}, code={self.code})"


AUTH_REQUIRED_CODES = {
    "PGRST300", "PGRST301", "PGRST302", "PGRST303",
    "no_authorization", "bad_jwt", "session_not_found", "session_expired",
}

CODE_KINDS = {
    "invalid_credentials": ErrorKind.INVALID_CREDENTIALS,
    "email_not_confirmed": ErrorKind.EMAIL_NOT_CONFIRMED,
    "user_already_exists": ErrorKind.ALREADY_REGISTERED,
    "email_exists": ErrorKind.ALREADY_REGISTERED,
}

# Старые версии GoTrue не возвращают error_code
LEGACY_MESSAGE_KINDS = {
    "invalid login credentials": ErrorKind.INVALID_CREDENTIALS,
    "email not confirmed": ErrorKind.EMAIL_NOT_CONFIRMED,
    "already registered": ErrorKind.ALREADY_REGISTERED,
}


def _payload(response: httpx.Response) -> Dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _extract_code(payload: Dict[str, Any]) -> Optional[str]:
    code = payload.get("error_code") or payload.get("code")
    return code if isinstance(code, str) else None


def _extract_message(payload: Dict[str, Any], response: httpx.Response) -> str:
    for field in ("message", "msg", "error_description", "error"):
        value = payload.get(field)
        if isinstance(value, str) and value:
            return value
    return response.text or response.reason_phrase or f"HTTP {response.status_code}"


def classify(status_code: Optional[int], code: Optional[str], message: str) -> ErrorKind:
    if code in CODE_KINDS:
        return CODE_KINDS[code]

    lowered = message.lower()
    for fragment, kind in LEGACY_MESSAGE_KINDS.items():
        if fragment in lowered:
            return kind

    if status_code == 401 or code in AUTH_REQUIRED_CODES or "jwt" in lowered:
        return ErrorKind.AUTH_REQUIRED

    if status_code == 404:
        return ErrorKind.NOT_FOUND

    return ErrorKind.UNKNOWN


def translate_response(response: httpx.Response) -> RemoteError:
    """Преобразование неуспешного ответа в RemoteError"""
    payload = _payload(response)
    code = _extract_code(payload)
    message = _extract_message(payload, response)
    kind = classify(response.status_code, code, message)
    return RemoteError(kind, message, status_code=response.status_code, code=code)


def translate_transport_error(exc: httpx.HTTPError) -> RemoteError:
    """Преобразование сетевой ошибки httpx в RemoteError"""
    message = str(exc) or exc.__class__.__name__
    return RemoteError(ErrorKind.UNAVAILABLE, message)
