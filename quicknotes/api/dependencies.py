from fastapi import Depends, HTTPException, Request, status

from quicknotes.domains.identity.entities import Identity
from quicknotes.domains.session.schemas import Notification
from quicknotes.domains.session.services import SessionService


def get_session_service(request: Request) -> SessionService:
    """Сервис сессии поверх общего состояния приложения"""
    state = request.app.state
    return SessionService(
        storage=state.storage,
        supabase=state.supabase,
        cache=state.cache,
        prompt=state.prompt,
        settings=state.settings
    )


async def get_current_identity(
    service: SessionService = Depends(get_session_service)
) -> Identity:
    """Зависимость для получения текущей личности (аккаунт или гость)"""
    identity = await service.current_identity()

    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=Notification.error("Sign in or continue as a guest").model_dump()
        )

    return identity
