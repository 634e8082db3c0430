from fastapi import APIRouter, Depends, HTTPException, status

from quicknotes.api.dependencies import get_current_identity, get_session_service
from quicknotes.core.errors import (
    AuthRequiredError, FetchError, ValidationError, WriteError
)
from quicknotes.domains.identity.entities import Identity
from quicknotes.domains.posts.schemas import (
    AccountPromptResponse, PostDraft, PostListResponse, PostMutationResponse, PostResponse
)
from quicknotes.domains.session.schemas import Notification
from quicknotes.domains.session.services import SessionService

router = APIRouter(prefix="/posts", tags=["posts"])


def _error(status_code: int, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail=Notification.error(message).model_dump())


def _prompt_response(service: SessionService) -> AccountPromptResponse:
    prompt = service.prompt
    draft = prompt.pending_draft
    return AccountPromptResponse(
        active=prompt.active,
        pending_draft=PostDraft(title=draft.title, body=draft.body) if draft else None,
        raised_at=prompt.raised_at
    )


@router.get("/prompt", response_model=AccountPromptResponse)
async def get_account_prompt(service: SessionService = Depends(get_session_service)):
    """Текущее предложение создать аккаунт"""
    return _prompt_response(service)


@router.delete("/prompt", response_model=AccountPromptResponse)
async def cancel_account_prompt(service: SessionService = Depends(get_session_service)):
    """Отказ от создания аккаунта; черновик удаляется"""
    service.cancel_prompt()
    return _prompt_response(service)


@router.get("/", response_model=PostListResponse)
async def list_posts(
    identity: Identity = Depends(get_current_identity),
    service: SessionService = Depends(get_session_service)
):
    """Получение списка заметок"""
    try:
        posts = await service.list_posts(identity)
    except FetchError as e:
        raise _error(status.HTTP_502_BAD_GATEWAY, e.message)

    return PostListResponse(
        posts=[PostResponse.from_post(post, identity) for post in posts],
        total=len(posts)
    )


@router.post("/", response_model=PostMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    draft: PostDraft,
    service: SessionService = Depends(get_session_service)
):
    """Создание новой заметки.

    Без личности запрос не отклоняется сразу: отказ приходит из
    репозитория и превращается в предложение создать аккаунт.
    """
    identity = await service.current_identity()
    try:
        post = await service.create_post(draft)
    except AuthRequiredError:
        # Вместо общей ошибки записи предлагаем создать аккаунт
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=_prompt_response(service).model_dump(mode="json")
        )
    except ValidationError as e:
        raise _error(status.HTTP_422_UNPROCESSABLE_ENTITY, e.message)
    except WriteError as e:
        raise _error(status.HTTP_400_BAD_REQUEST, e.message)

    return PostMutationResponse(
        post=PostResponse.from_post(post, identity),
        notification=Notification.success("Post created successfully")
    )


@router.put("/{post_id}", response_model=PostMutationResponse)
async def update_post(
    post_id: str,
    draft: PostDraft,
    identity: Identity = Depends(get_current_identity),
    service: SessionService = Depends(get_session_service)
):
    """Обновление заметки"""
    try:
        post = await service.edit_post(post_id, draft.title, draft.body)
    except FetchError as e:
        raise _error(status.HTTP_502_BAD_GATEWAY, e.message)
    except ValidationError as e:
        raise _error(status.HTTP_422_UNPROCESSABLE_ENTITY, e.message)
    except WriteError as e:
        raise _error(status.HTTP_400_BAD_REQUEST, e.message)

    return PostMutationResponse(
        post=PostResponse.from_post(post, identity),
        notification=Notification.success("Post updated successfully")
    )


@router.delete("/{post_id}", response_model=Notification)
async def delete_post(
    post_id: str,
    identity: Identity = Depends(get_current_identity),
    service: SessionService = Depends(get_session_service)
):
    """Удаление заметки"""
    try:
        await service.delete_post(post_id)
    except WriteError as e:
        raise _error(status.HTTP_400_BAD_REQUEST, e.message)

    return Notification.success("Post deleted successfully")
