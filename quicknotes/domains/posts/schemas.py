from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import Optional, List
from datetime import datetime

from quicknotes.domains.posts.entities import TITLE_MAX_LENGTH, BODY_MAX_LENGTH
from quicknotes.domains.session.schemas import Notification


class PostDraft(BaseModel):
    """Схема для создания и редактирования заметки"""
    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    body: str = Field(..., min_length=1, max_length=BODY_MAX_LENGTH)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError('Title is required')
        return v

    @field_validator('body')
    @classmethod
    def validate_body(cls, v):
        if not v.strip():
            raise ValueError('Content is required')
        return v


class PostResponse(BaseModel):
    """Схема для ответа с данными заметки"""
    id: str
    title: str
    body: str
    owner_id: str
    is_guest_owned: bool
    created_at: Optional[datetime] = None
    can_edit: bool = False

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_post(cls, post, viewer) -> "PostResponse":
        return cls(
            id=post.id,
            title=post.title,
            body=post.body,
            owner_id=post.owner_id,
            is_guest_owned=post.is_guest_owned,
            created_at=post.created_at,
            can_edit=post.is_owned_by(viewer)
        )


class PostListResponse(BaseModel):
    """Схема для списка заметок"""
    posts: List[PostResponse]
    total: int


class PostMutationResponse(BaseModel):
    """Схема для ответа на создание или обновление заметки"""
    post: PostResponse
    notification: Notification


class AccountPromptResponse(BaseModel):
    """Схема для предложения создать аккаунт"""
    active: bool
    title: str = "Create an Account to Save Posts"
    description: str = (
        "To save and manage your posts, you'll need to create an account. "
        "Would you like to create one now?"
    )
    pending_draft: Optional[PostDraft] = None
    raised_at: Optional[datetime] = None
