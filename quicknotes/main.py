import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from quicknotes.api.http import auth_router, health_router, posts_router
from quicknotes.core.cache import QueryCache
from quicknotes.core.config import Settings, settings
from quicknotes.core.errors import ConfigurationError
from quicknotes.domains.session.entities import AccountPrompt
from quicknotes.infrastructure.supabase.client import SupabaseClient
from quicknotes.storage import KeyValueStorage, SqlStorage

logger = logging.getLogger(__name__)

NOT_CONFIGURED_TITLE = "Supabase Not Configured"
NOT_CONFIGURED_DESCRIPTION = (
    "Please connect to Supabase by setting SUPABASE_URL and SUPABASE_ANON_KEY."
)


def check_configuration(app_settings: Settings) -> None:
    """Проверка, что внешний сервис сконфигурирован"""
    if not app_settings.is_configured:
        raise ConfigurationError(NOT_CONFIGURED_DESCRIPTION)


def _mount_not_configured(app: FastAPI) -> None:
    """Блокировка всего интерфейса статическим сообщением"""

    @app.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
    async def not_configured(path: str):
        return JSONResponse(
            status_code=503,
            content={"title": NOT_CONFIGURED_TITLE, "description": NOT_CONFIGURED_DESCRIPTION}
        )


def create_app(
    app_settings: Optional[Settings] = None,
    storage: Optional[KeyValueStorage] = None,
    supabase: Optional[SupabaseClient] = None
) -> FastAPI:
    app_settings = app_settings or settings
    logging.basicConfig(
        level=app_settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_storage = getattr(app.state, "storage", None)
        if isinstance(app_storage, SqlStorage):
            await app_storage.init_schema()
        yield
        app_supabase = getattr(app.state, "supabase", None)
        if app_supabase is not None:
            await app_supabase.close()
        if isinstance(app_storage, SqlStorage):
            await app_storage.close()

    app = FastAPI(
        title="QuickNotes",
        description="Short notes owned by an account or a guest identity",
        version="1.0.0",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = app_settings

    try:
        check_configuration(app_settings)
    except ConfigurationError as e:
        logger.error(f"{NOT_CONFIGURED_TITLE}: {e.message}")
        _mount_not_configured(app)
        return app

    app.state.storage = storage or SqlStorage()
    app.state.supabase = supabase or SupabaseClient(app_settings, app.state.storage)
    app.state.cache = QueryCache(stale_time=app_settings.posts_stale_seconds)
    app.state.prompt = AccountPrompt()

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(posts_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("quicknotes.main:app", host="0.0.0.0", port=8000)
