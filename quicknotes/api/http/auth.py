import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from quicknotes.api.dependencies import get_session_service
from quicknotes.core.errors import AuthError
from quicknotes.domains.identity.schemas import (
    AuthResponse, CallbackResponse, Credentials, IdentityResponse, SignUpResponse
)
from quicknotes.domains.session.schemas import Notification
from quicknotes.domains.session.services import SessionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.get("/me", response_model=IdentityResponse)
async def get_current_identity_info(service: SessionService = Depends(get_session_service)):
    """Текущая личность: аккаунт, гость или никто"""
    identity = await service.current_identity()
    return IdentityResponse.from_identity(identity)


@router.post("/signup", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(
    credentials: Credentials,
    service: SessionService = Depends(get_session_service)
):
    """Регистрация нового пользователя"""
    try:
        confirmation_required = await service.sign_up(credentials.email, credentials.password)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=Notification.error(e.message).model_dump()
        )

    return SignUpResponse(email=credentials.email, confirmation_required=confirmation_required)


@router.post("/signin", response_model=AuthResponse)
async def sign_in(
    credentials: Credentials,
    service: SessionService = Depends(get_session_service)
):
    """Вход пользователя"""
    try:
        user = await service.sign_in(credentials.email, credentials.password)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=Notification.error(e.message).model_dump()
        )

    return AuthResponse(
        identity=IdentityResponse.from_identity(user),
        notification=Notification(
            title="Welcome back!",
            description="You have successfully signed in"
        )
    )


@router.post("/guest", response_model=AuthResponse)
async def continue_as_guest(service: SessionService = Depends(get_session_service)):
    """Продолжение без аккаунта"""
    guest = await service.start_guest()
    return AuthResponse(
        identity=IdentityResponse.from_identity(guest),
        notification=Notification(title="Guest Mode", description="You are posting as a guest")
    )


@router.post("/signout", response_model=AuthResponse)
async def sign_out(service: SessionService = Depends(get_session_service)):
    """Выход пользователя"""
    await service.sign_out()
    return AuthResponse(
        identity=IdentityResponse(),
        notification=Notification.success("You have been signed out")
    )


@router.post("/upgrade", response_model=IdentityResponse)
async def create_account_from_guest(service: SessionService = Depends(get_session_service)):
    """Переход из гостевого режима к созданию аккаунта"""
    identity = await service.upgrade_guest()
    return IdentityResponse.from_identity(identity)


@router.get("/callback", response_model=CallbackResponse)
async def email_callback(
    code: Optional[str] = None,
    service: SessionService = Depends(get_session_service)
):
    """Подтверждение email по одноразовому коду из письма"""
    result = await service.verify_email(code)

    if not result.ok:
        logger.warning(f"Email verification failed: {result.message}")

    return CallbackResponse(
        status=result.status,
        message=result.message,
        redirect_after_seconds=result.redirect_after
    )
