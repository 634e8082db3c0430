import json
import logging
from typing import Optional

from quicknotes.domains.identity.entities import AuthenticatedUser, GuestUser, Identity
from quicknotes.infrastructure.supabase.auth import SupabaseAuth
from quicknotes.storage.base import KeyValueStorage

logger = logging.getLogger(__name__)

GUEST_ID_KEY = "anonymousUserId"
GUEST_USER_KEY = "anonymousUser"


class GuestIdentityStore:
    """Хранение гостевой личности в локальном хранилище"""

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    async def create(self) -> GuestUser:
        """Создание новой гостевой личности.

        Существующая гостевая личность перезаписывается.
        """
        guest = GuestUser.create_guest()
        await self.storage.set(GUEST_ID_KEY, guest.id)
        await self.storage.set(GUEST_USER_KEY, json.dumps(guest.to_dict()))
        logger.info(f"Created guest identity {guest.id}")
        return guest

    async def get_id(self) -> Optional[str]:
        return await self.storage.get(GUEST_ID_KEY)

    async def load(self) -> Optional[GuestUser]:
        """Получение сохраненной гостевой личности"""
        guest_id = await self.get_id()
        return GuestUser(id=guest_id) if guest_id else None

    async def clear(self) -> None:
        """Удаление гостевой личности"""
        await self.storage.remove(GUEST_ID_KEY)
        await self.storage.remove(GUEST_USER_KEY)


class IdentityResolver:
    """Определение текущей действующей личности"""

    def __init__(self, auth: SupabaseAuth, guests: GuestIdentityStore):
        self.auth = auth
        self.guests = guests

    async def resolve(self) -> Identity:
        """Сессия имеет приоритет над гостем, гость над отсутствием личности"""
        session = await self.auth.get_session()
        if session is not None:
            return AuthenticatedUser(id=session.user_id, email=session.email)

        guest = await self.guests.load()
        if guest is not None:
            return guest

        return None
