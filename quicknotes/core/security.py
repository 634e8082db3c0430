import time
from typing import Optional, Dict, Any

from jose import JWTError, jwt

# Access токены Supabase выдаются с аудиторией "authenticated"
ACCESS_TOKEN_AUDIENCE = "authenticated"


def decode_access_token(
    token: str,
    secret: Optional[str] = None,
    algorithm: str = "HS256"
) -> Optional[Dict[str, Any]]:
    """Извлечение claims из access токена.

    Если задан секрет, подпись проверяется; срок действия не проверяется,
    им управляет get_token_expiry/is_token_expired.
    """
    try:
        if secret:
            return jwt.decode(
                token,
                secret,
                algorithms=[algorithm],
                audience=ACCESS_TOKEN_AUDIENCE,
                options={"verify_exp": False}
            )
        return jwt.get_unverified_claims(token)
    except JWTError:
        return None


def get_token_expiry(token: str) -> Optional[int]:
    """Время истечения токена (unix timestamp) из claim exp"""
    claims = decode_access_token(token)
    if not claims or "exp" not in claims:
        return None
    return int(claims["exp"])


def is_token_expired(expires_at: Optional[int], leeway: int = 10) -> bool:
    """Проверка истечения токена с запасом в leeway секунд"""
    if expires_at is None:
        return False
    return expires_at - leeway <= int(time.time())
