import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ValidationError as SchemaValidationError

from quicknotes.core.errors import AuthRequiredError, FetchError, ValidationError, WriteError
from quicknotes.domains.identity.entities import AuthenticatedUser, Identity
from quicknotes.domains.identity.services import IdentityResolver
from quicknotes.domains.posts.entities import Post, validate_content
from quicknotes.infrastructure.supabase.client import SupabaseClient
from quicknotes.infrastructure.supabase.errors import ErrorKind, RemoteError

logger = logging.getLogger(__name__)


class PostRow(BaseModel):
    """Строка таблицы posts в формате удаленного сервиса"""
    id: str
    title: str
    body: str
    user_id: str
    created_at: Optional[datetime] = None
    is_anonymous: bool = False


class PostRepository:
    """Репозиторий для работы с заметками во внешнем сервисе"""

    def __init__(
        self,
        client: SupabaseClient,
        resolver: IdentityResolver,
        table: str = "posts",
        guest_context_rpc: str = "set_anonymous_user"
    ):
        self.client = client
        self.resolver = resolver
        self.table = table
        self.guest_context_rpc = guest_context_rpc

    async def _acting_identity(self) -> Identity:
        """Определение личности и установка гостевого контекста.

        RPC должен завершиться до основного запроса, иначе запрос
        выполнится без гостевого контекста.
        """
        identity = await self.resolver.resolve()

        if identity is not None and identity.is_guest:
            try:
                await self.client.rpc(self.guest_context_rpc, {"anonymous_user_id": identity.id})
            except RemoteError as e:
                logger.warning(f"Failed to set guest context for {identity.id}: {e.message}")

        return identity

    async def list(self) -> List[Post]:
        """Получение заметок, видимых текущей личности, от новых к старым"""
        identity = await self._acting_identity()

        try:
            rows = await self.client.select(self.table, order="created_at.desc")
            posts = [self._to_domain(row) for row in rows]
        except RemoteError as e:
            logger.error(f"Error fetching posts: {e.message}")
            raise FetchError(e.message)
        except SchemaValidationError:
            raise FetchError("Unexpected response from the posts service")

        # Гость видит только свои заметки, пользователь с аккаунтом видит все
        if identity is not None and identity.is_guest:
            posts = [post for post in posts if post.owner_id == identity.id]

        return posts

    async def create(self, draft) -> Post:
        """Создание заметки с владельцем из текущей личности"""
        validate_content(draft.title, draft.body)

        identity = await self._acting_identity()
        if identity is None:
            raise AuthRequiredError("Sign in or continue as a guest to save posts")

        row = {
            "title": draft.title,
            "body": draft.body,
            "user_id": identity.id,
            "is_anonymous": identity.is_guest,
        }

        try:
            rows = await self.client.insert(self.table, row)
        except RemoteError as e:
            logger.error(f"Error creating post: {e!r}")
            if e.kind == ErrorKind.AUTH_REQUIRED:
                raise AuthRequiredError(e.message)
            raise WriteError(e.message)

        if not rows:
            raise WriteError("No data returned from insert")

        return self._to_domain_checked(rows[0])

    async def update(self, post: Post) -> Post:
        """Обновление заметки; владелец сохраняется"""
        if not post.id:
            raise ValidationError("Post ID is required for update")

        validate_content(post.title, post.body)

        identity = await self._acting_identity()

        values = {
            "title": post.title,
            "body": post.body,
            "user_id": post.owner_id,
            "is_anonymous": not isinstance(identity, AuthenticatedUser),
        }

        try:
            rows = await self.client.update(self.table, post.id, values)
        except RemoteError as e:
            logger.error(f"Error updating post {post.id}: {e!r}")
            raise WriteError(e.message)

        if not rows:
            raise WriteError("No data returned from update")

        logger.info(f"Updated post {post.id}")
        return self._to_domain_checked(rows[0])

    async def delete(self, post_id: str) -> None:
        """Удаление заметки по id; права проверяет политика сервиса"""
        await self._acting_identity()

        try:
            await self.client.delete(self.table, post_id)
        except RemoteError as e:
            logger.error(f"Error deleting post {post_id}: {e!r}")
            raise WriteError(e.message)

    def _to_domain_checked(self, row: Dict[str, Any]) -> Post:
        try:
            return self._to_domain(row)
        except SchemaValidationError:
            raise WriteError("Unexpected response from the posts service")

    def _to_domain(self, row: Dict[str, Any]) -> Post:
        """Преобразование строки сервиса в доменную сущность"""
        post_row = PostRow.model_validate(row)

        return Post(
            id=post_row.id,
            title=post_row.title,
            body=post_row.body,
            owner_id=post_row.user_id,
            is_guest_owned=post_row.is_anonymous,
            created_at=post_row.created_at
        )
