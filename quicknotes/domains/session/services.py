"""
Session and cache reconciliation.

'SessionService' is the entry point for every user action. It resolves the
acting identity, runs post operations through 'PostRepository', and keeps the
process-wide 'QueryCache' consistent with the remote store:

    - a successful create/update/delete invalidates every cached post list;
    - sign-in, sign-out and email verification drop the whole cache;
    - a create rejected for missing credentials raises the account prompt and
      keeps the draft for a manual resubmission.

Guest-to-account upgrade forgets the guest identity without migrating the
guest's posts; they stay owned by the old guest id.
"""

import logging
from typing import List, Optional

from quicknotes.core.cache import QueryCache
from quicknotes.core.config import Settings
from quicknotes.core.errors import AuthError, AuthRequiredError, WriteError
from quicknotes.domains.identity.entities import AuthenticatedUser, GuestUser, Identity
from quicknotes.domains.identity.services import (
    GuestIdentityStore, IdentityResolver, GUEST_ID_KEY, GUEST_USER_KEY
)
from quicknotes.domains.posts.entities import Post
from quicknotes.domains.session.entities import AccountPrompt
from quicknotes.infrastructure.repositories.post_repository import PostRepository
from quicknotes.infrastructure.supabase.client import SupabaseClient
from quicknotes.infrastructure.supabase.errors import ErrorKind, RemoteError
from quicknotes.storage.base import KeyValueStorage

logger = logging.getLogger(__name__)

POSTS_KEY = ("posts",)

SIGN_IN_MESSAGES = {
    ErrorKind.INVALID_CREDENTIALS: "Invalid email or password. Please try again.",
    ErrorKind.EMAIL_NOT_CONFIRMED: "Please verify your email address before signing in.",
    ErrorKind.ALREADY_REGISTERED: "This email is already registered. Please sign in instead.",
}


class CallbackResult:
    """Результат подтверждения email по ссылке"""

    def __init__(self, status: str, message: str, redirect_after: Optional[float] = None):
        self.status = status
        self.message = message
        self.redirect_after = redirect_after

    @property
    def ok(self) -> bool:
        return self.status == "success"


class SessionService:
    """Сервис согласования личности, заметок и кэша"""

    def __init__(
        self,
        storage: KeyValueStorage,
        supabase: SupabaseClient,
        cache: QueryCache,
        prompt: AccountPrompt,
        settings: Settings
    ):
        self.storage = storage
        self.supabase = supabase
        self.cache = cache
        self.prompt = prompt
        self.settings = settings
        self.guests = GuestIdentityStore(storage)
        self.resolver = IdentityResolver(supabase.auth, self.guests)
        self.post_repository = PostRepository(
            supabase,
            self.resolver,
            table=settings.posts_table,
            guest_context_rpc=settings.guest_context_rpc
        )

    async def current_identity(self) -> Identity:
        """Текущая личность: сессия, гость или None"""
        return await self.resolver.resolve()

    # Заметки

    async def list_posts(self, viewer: Identity = None) -> List[Post]:
        """Получение заметок через кэш"""
        if viewer is None:
            viewer = await self.resolver.resolve()
        key = POSTS_KEY + (viewer.id if viewer else None,)
        return await self.cache.fetch(key, self.post_repository.list)

    async def create_post(self, draft) -> Post:
        """Создание заметки.

        При отказе из-за учетных данных черновик сохраняется в предложении
        создать аккаунт, ошибка пробрасывается дальше.
        """
        try:
            post = await self.post_repository.create(draft)
        except AuthRequiredError:
            self.prompt.hold(draft)
            logger.info("Post creation requires an account, prompting to create one")
            raise

        self.cache.invalidate(POSTS_KEY)
        return post

    async def update_post(self, post: Post) -> Post:
        """Обновление заметки"""
        updated = await self.post_repository.update(post)
        self.cache.invalidate(POSTS_KEY)
        return updated

    async def edit_post(self, post_id: str, title: str, body: str) -> Post:
        """Редактирование заметки из списка текущей личности"""
        viewer = await self.resolver.resolve()
        posts = await self.list_posts(viewer)
        post = next((p for p in posts if p.id == post_id), None)

        if post is None:
            raise WriteError("Post not found")
        if not post.is_owned_by(viewer):
            raise WriteError("You can only edit your own posts")

        return await self.update_post(post.with_content(title, body))

    async def delete_post(self, post_id: str) -> None:
        """Удаление заметки"""
        await self.post_repository.delete(post_id)
        self.cache.invalidate(POSTS_KEY)

    # Предложение создать аккаунт

    def cancel_prompt(self) -> None:
        self.prompt.dismiss()

    # Личность

    async def start_guest(self) -> GuestUser:
        """Продолжение без аккаунта"""
        guest = await self.guests.create()
        self.cache.clear()
        return guest

    async def upgrade_guest(self) -> Identity:
        """Переход от гостя к созданию аккаунта.

        Гостевые заметки не переносятся в новый аккаунт. Активная сессия
        не затрагивается и возвращается как текущая личность.
        """
        await self.guests.clear()
        self.prompt.dismiss()
        self.cache.invalidate(POSTS_KEY)
        return await self.resolver.resolve()

    async def sign_up(self, email: str, password: str) -> bool:
        """Регистрация; возвращает True, если требуется подтверждение email"""
        try:
            result = await self.supabase.auth.sign_up(email, password)
        except RemoteError as e:
            logger.error(f"Signup error: {e!r}")
            raise AuthError(SIGN_IN_MESSAGES.get(e.kind, e.message))

        if result.identities_count == 0:
            raise AuthError(SIGN_IN_MESSAGES[ErrorKind.ALREADY_REGISTERED])

        if result.session is not None:
            self.cache.clear()
            return False

        return True

    async def sign_in(self, email: str, password: str) -> AuthenticatedUser:
        """Вход по email и паролю"""
        try:
            session = await self.supabase.auth.sign_in_with_password(email, password)
        except RemoteError as e:
            logger.warning(f"Sign in failed: {e!r}")
            raise AuthError(SIGN_IN_MESSAGES.get(e.kind, e.message))

        self.prompt.dismiss()
        self.cache.clear()
        return AuthenticatedUser(id=session.user_id, email=session.email)

    async def sign_out(self) -> None:
        """Выход: сервер по возможности, локальное состояние всегда"""
        try:
            await self.supabase.auth.sign_out()
        except Exception as e:
            logger.warning(f"Supabase signOut error: {e}")

        await self._remove_keys([GUEST_ID_KEY, GUEST_USER_KEY])
        await self._remove_keys_matching(
            lambda key: key.startswith("sb-") or "supabase" in key
        )
        await self._remove_keys_matching(
            lambda key: "auth" in key or "anonymous" in key
        )

        self.prompt.dismiss()
        self.cache.clear()

    async def _remove_keys_matching(self, predicate) -> None:
        try:
            keys = await self.storage.keys()
        except Exception as e:
            logger.warning(f"Sign out cleanup error: {e}")
            return
        await self._remove_keys([key for key in keys if predicate(key)])

    async def _remove_keys(self, keys: List[str]) -> None:
        for key in keys:
            try:
                await self.storage.remove(key)
            except Exception as e:
                logger.warning(f"Failed to remove key {key}: {e}")

    async def verify_email(self, code: Optional[str]) -> CallbackResult:
        """Обмен кода подтверждения из письма на сессию"""
        if not code:
            return CallbackResult("error", "No confirmation code found")

        try:
            session = await self.supabase.auth.exchange_code_for_session(code)
        except RemoteError as e:
            logger.error(f"Auth callback error: {e!r}")
            return CallbackResult("error", e.message or "Authentication failed")

        if session is None:
            return CallbackResult("error", "No session created")

        self.cache.clear()
        return CallbackResult(
            "success",
            "Your email has been verified successfully. Redirecting you to the homepage...",
            redirect_after=self.settings.callback_redirect_delay
        )
