import logging
from typing import Any, Dict, List, Optional

import httpx

from quicknotes.core.config import Settings
from quicknotes.infrastructure.supabase.auth import SupabaseAuth
from quicknotes.infrastructure.supabase.errors import (
    RemoteError, translate_response, translate_transport_error
)
from quicknotes.storage.base import KeyValueStorage

logger = logging.getLogger(__name__)


class SupabaseClient:
    """HTTP клиент Supabase: строки PostgREST, RPC и auth (GoTrue)"""

    def __init__(
        self,
        settings: Settings,
        storage: KeyValueStorage,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.settings = settings
        self.http = httpx.AsyncClient(base_url=settings.supabase_url, transport=transport)
        self.auth = SupabaseAuth(self, settings, storage)

    def headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        return {
            "apikey": self.settings.supabase_anon_key,
            "Authorization": f"Bearer {access_token or self.settings.supabase_anon_key}",
        }

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
        access_token: Optional[str] = None
    ) -> httpx.Response:
        """Выполнение запроса; любая ошибка поднимается как RemoteError"""
        request_headers = self.headers(access_token)
        if headers:
            request_headers.update(headers)

        try:
            response = await self.http.request(
                method, path, params=params, json=json, headers=request_headers
            )
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise translate_transport_error(e) from e

        if response.is_error:
            error = translate_response(response)
            logger.warning(f"{method} {path} returned {response.status_code}: {error.kind.value}")
            raise error

        return response

    async def _access_token(self) -> Optional[str]:
        session = await self.auth.get_session()
        return session.access_token if session else None

    async def select(self, table: str, order: Optional[str] = None) -> List[Dict[str, Any]]:
        """Выборка всех видимых строк таблицы"""
        params = {"select": "*"}
        if order:
            params["order"] = order

        response = await self.request(
            "GET", f"/rest/v1/{table}", params=params, access_token=await self._access_token()
        )
        return response.json()

    async def insert(self, table: str, row: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Вставка строки с возвратом сохраненного представления"""
        response = await self.request(
            "POST",
            f"/rest/v1/{table}",
            params={"select": "*"},
            json=[row],
            headers={"Prefer": "return=representation"},
            access_token=await self._access_token()
        )
        return response.json()

    async def update(self, table: str, row_id: str, values: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Обновление строки по id с возвратом обновленного представления"""
        response = await self.request(
            "PATCH",
            f"/rest/v1/{table}",
            params={"id": f"eq.{row_id}", "select": "*"},
            json=values,
            headers={"Prefer": "return=representation"},
            access_token=await self._access_token()
        )
        return response.json()

    async def delete(self, table: str, row_id: str) -> None:
        """Удаление строки по id"""
        await self.request(
            "DELETE",
            f"/rest/v1/{table}",
            params={"id": f"eq.{row_id}"},
            access_token=await self._access_token()
        )

    async def rpc(self, function: str, params: Dict[str, Any]) -> Any:
        """Вызов удаленной процедуры"""
        response = await self.request(
            "POST",
            f"/rest/v1/rpc/{function}",
            json=params,
            access_token=await self._access_token()
        )
        if not response.content:
            return None
        return response.json()

    async def close(self) -> None:
        await self.http.aclose()
