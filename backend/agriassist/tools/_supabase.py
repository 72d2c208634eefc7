"""Shared Supabase client: PostgREST table queries and GoTrue auth calls."""

from typing import Any

import httpx
from loguru import logger

from agriassist.errors import SupabaseError

REST_PATH = "/rest/v1"
AUTH_PATH = "/auth/v1"


def _encode(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _error_message(resp: httpx.Response) -> str:
    """Pull the human-readable message out of a PostgREST or GoTrue error body."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "message", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {resp.status_code}"


def _json(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        raise SupabaseError("Malformed response from Supabase", resp.status_code)


class SupabaseClient:
    """Thin async client over the Supabase REST and auth endpoints.

    Filters are ``(column, operator, value)`` triples using PostgREST
    operators (``eq``, ``gte``, ``lt``, ...). Every failure, including an
    unreachable host, surfaces as ``SupabaseError``.
    """

    def __init__(self, url: str, anon_key: str, client: httpx.AsyncClient):
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.client = client

    def _headers(self, access_token: str | None = None, prefer: str | None = None) -> dict:
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {access_token or self.anon_key}",
            "Accept": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            resp = await self.client.request(method, url, **kwargs)
        except httpx.TimeoutException:
            raise SupabaseError("Supabase request timed out")
        except httpx.HTTPError as e:
            raise SupabaseError(f"Supabase unreachable: {e}")
        if resp.is_error:
            raise SupabaseError(_error_message(resp), resp.status_code)
        return resp

    async def select(
        self,
        table: str,
        filters: list[tuple[str, str, Any]] | None = None,
        order: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
        columns: str = "*",
    ) -> list[dict]:
        params: list[tuple[str, str]] = [("select", columns)]
        for column, op, value in filters or []:
            params.append((column, f"{op}.{_encode(value)}"))
        if order:
            params.append(("order", f"{order}.{'asc' if ascending else 'desc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))

        logger.debug("[supabase] select {} {}", table, params[1:])
        resp = await self._send(
            "GET", f"{self.url}{REST_PATH}/{table}", params=params, headers=self._headers()
        )
        return _json(resp)

    async def insert(self, table: str, row: dict) -> list[dict]:
        logger.debug("[supabase] insert {}", table)
        resp = await self._send(
            "POST",
            f"{self.url}{REST_PATH}/{table}",
            json=row,
            headers=self._headers(prefer="return=representation"),
        )
        return _json(resp)

    async def upsert(self, table: str, row: dict, on_conflict: str) -> list[dict]:
        logger.debug("[supabase] upsert {} on {}", table, on_conflict)
        resp = await self._send(
            "POST",
            f"{self.url}{REST_PATH}/{table}",
            params={"on_conflict": on_conflict},
            json=row,
            headers=self._headers(prefer="resolution=merge-duplicates,return=representation"),
        )
        return _json(resp)

    async def auth(
        self,
        endpoint: str,
        payload: dict | None = None,
        params: dict | None = None,
        access_token: str | None = None,
    ) -> dict:
        """POST to a GoTrue endpoint (``signup``, ``token``, ``logout``)."""
        logger.debug("[supabase] auth {}", endpoint)
        resp = await self._send(
            "POST",
            f"{self.url}{AUTH_PATH}/{endpoint}",
            params=params,
            json=payload or {},
            headers=self._headers(access_token=access_token),
        )
        if resp.status_code == 204 or not resp.content:
            return {}
        body = _json(resp)
        if not isinstance(body, dict):
            raise SupabaseError(f"Unexpected response from auth/{endpoint}", resp.status_code)
        return body

    async def get_user(self, access_token: str) -> dict:
        """Resolve an access token to its user through GoTrue ``/user``."""
        logger.debug("[supabase] auth user")
        resp = await self._send(
            "GET", f"{self.url}{AUTH_PATH}/user", headers=self._headers(access_token=access_token)
        )
        body = _json(resp)
        if not isinstance(body, dict):
            raise SupabaseError("Unexpected response from auth/user", resp.status_code)
        return body
