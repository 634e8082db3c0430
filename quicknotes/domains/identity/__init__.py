from quicknotes.domains.identity.entities import AuthenticatedUser, GuestUser, Identity
from quicknotes.domains.identity.schemas import (
    Credentials, IdentityResponse, SignUpResponse, CallbackResponse, AuthResponse
)
from quicknotes.domains.identity.services import (
    GuestIdentityStore, IdentityResolver, GUEST_ID_KEY, GUEST_USER_KEY
)

__all__ = [
    "AuthenticatedUser", "GuestUser", "Identity",
    "Credentials", "IdentityResponse", "SignUpResponse", "CallbackResponse", "AuthResponse",
    "GuestIdentityStore", "IdentityResolver", "GUEST_ID_KEY", "GUEST_USER_KEY"
]
