from typing import Optional
from urllib.parse import urlparse

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Supabase project
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_jwt_secret: str = ""
    jwt_algorithm: str = "HS256"

    # Client-local storage
    storage_url: str = "sqlite+aiosqlite:///./quicknotes.db"

    base_url: str = "http://localhost:3000"
    posts_table: str = "posts"
    guest_context_rpc: str = "set_anonymous_user"
    posts_stale_seconds: float = 60.0
    callback_redirect_delay: float = 2.0

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def is_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    @property
    def project_ref(self) -> Optional[str]:
        """Идентификатор проекта Supabase из URL (первая часть хоста)"""
        host = urlparse(self.supabase_url).hostname
        if not host:
            return None
        return host.split(".")[0]

    @property
    def auth_storage_key(self) -> str:
        return f"sb-{self.project_ref or 'local'}-auth-token"

    @property
    def callback_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/auth/callback"


settings = Settings()
