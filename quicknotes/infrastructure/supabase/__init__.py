from quicknotes.infrastructure.supabase.auth import AuthSession, SignUpResult, SupabaseAuth
from quicknotes.infrastructure.supabase.client import SupabaseClient
from quicknotes.infrastructure.supabase.errors import ErrorKind, RemoteError

__all__ = [
    "AuthSession", "SignUpResult", "SupabaseAuth",
    "SupabaseClient",
    "ErrorKind", "RemoteError"
]
