from datetime import datetime
from typing import Optional

from quicknotes.core.errors import ValidationError

TITLE_MAX_LENGTH = 100
BODY_MAX_LENGTH = 500


def validate_content(title: str, body: str) -> None:
    """Проверка заголовка и текста перед записью"""
    if not title or not title.strip():
        raise ValidationError("Title is required")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title must be less than {TITLE_MAX_LENGTH} characters")
    if not body or not body.strip():
        raise ValidationError("Content is required")
    if len(body) > BODY_MAX_LENGTH:
        raise ValidationError(f"Content must be less than {BODY_MAX_LENGTH} characters")


class Post:
    """Сущность заметки"""

    def __init__(
        self,
        title: str,
        body: str,
        owner_id: str,
        is_guest_owned: bool = False,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None
    ):
        self.id = id
        self.title = title
        self.body = body
        self.owner_id = owner_id
        self.is_guest_owned = is_guest_owned
        self.created_at = created_at

    def is_owned_by(self, identity) -> bool:
        """Редактировать и удалять заметку может только ее владелец"""
        return identity is not None and identity.id == self.owner_id

    def with_content(self, title: str, body: str) -> "Post":
        """Копия заметки с новым содержимым; владелец не меняется"""
        return Post(
            id=self.id,
            title=title,
            body=body,
            owner_id=self.owner_id,
            is_guest_owned=self.is_guest_owned,
            created_at=self.created_at
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Post):
            return False
        return self.id is not None and self.id == other.id

    def __repr__(self) -> str:
        return f"Post(id={self.id}, title={self.title}, owner_id={self.owner_id})"
