from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from quicknotes.domains.session.schemas import Notification


class Credentials(BaseModel):
    """Схема для входа и регистрации"""
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)


class IdentityResponse(BaseModel):
    """Схема для ответа с текущей личностью"""
    kind: str = "none"
    id: Optional[str] = None
    email: Optional[str] = None
    is_guest: bool = False

    @classmethod
    def from_identity(cls, identity) -> "IdentityResponse":
        if identity is None:
            return cls()
        return cls(
            kind=identity.kind,
            id=identity.id,
            email=identity.email,
            is_guest=identity.is_guest
        )


class SignUpResponse(BaseModel):
    """Схема для ответа на регистрацию"""
    email: str
    confirmation_required: bool


class CallbackResponse(BaseModel):
    """Схема для ответа на подтверждение email"""
    status: str
    message: str
    redirect_to: str = "/"
    redirect_after_seconds: Optional[float] = None


class AuthResponse(BaseModel):
    """Схема для ответа на вход, регистрацию гостя и выход"""
    identity: IdentityResponse
    notification: Notification
