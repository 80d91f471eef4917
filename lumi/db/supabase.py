"""
Supabase Client
Async PostgREST client for the Supabase tables used by the learning coach
FILE: lumi/db/supabase.py
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from lumi.core.config import CoachSettings

logger = logging.getLogger(__name__)


class SupabaseError(Exception):
    """Raised when the Supabase REST API returns an error response"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details


def _render_filters(filters: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Render an equality filter map as PostgREST query params"""
    params = {}
    for column, value in (filters or {}).items():
        if value is None:
            params[column] = "is.null"
        elif isinstance(value, bool):
            params[column] = f"eq.{str(value).lower()}"
        else:
            params[column] = f"eq.{value}"
    return params


class SupabaseClient:
    """
    Minimal async client for Supabase's PostgREST interface

    Only the operations the coach needs: filtered selects, inserts that
    return the stored row, filtered updates and RPC calls.
    """

    def __init__(
        self,
        url: str,
        key: str,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize Supabase client

        Args:
            url: Supabase project URL
            key: Service role key or anon key
            timeout: Request timeout in seconds
            http_client: Optional preconfigured httpx client (used by tests)
        """
        self.base_url = url.rstrip("/")
        self.rest_url = f"{self.base_url}/rest/v1"
        self.timeout = timeout
        self.client = http_client or httpx.AsyncClient(
            timeout=timeout,
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
            },
        )
        logger.info(f"🔌 Supabase client initialized: {self.rest_url}")

    async def close(self):
        """Close HTTP client"""
        await self.client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        prefer: Optional[str] = None
    ) -> Any:
        """
        Send a request to PostgREST and decode the JSON body

        Raises:
            SupabaseError: On transport failure, non-2xx response or undecodable body
        """
        headers = {"Prefer": prefer} if prefer else None
        url = f"{self.rest_url}/{path}"

        try:
            response = await self.client.request(
                method, url, params=params, json=json, headers=headers
            )
        except httpx.RequestError as e:
            logger.error(f"❌ Supabase request failed: {method} {path}: {e}")
            raise SupabaseError(f"Supabase request failed: {e}") from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {"message": response.text}
            if not isinstance(body, dict):
                body = {"message": str(body)}
            logger.warning(
                f"⚠️ Supabase {method} {path} -> {response.status_code}: "
                f"{body.get('message')}"
            )
            raise SupabaseError(
                body.get("message") or f"HTTP {response.status_code}",
                status_code=response.status_code,
                code=body.get("code"),
                details=body.get("details"),
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"❌ Supabase {method} {path} returned a non-JSON body")
            raise SupabaseError(
                f"Supabase returned an invalid JSON body: {e}",
                status_code=response.status_code,
            ) from e

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[Tuple[str, bool]] = None,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Select rows from a table

        Args:
            table: Table name
            columns: Comma-separated column list
            filters: Equality filters {column: value}
            order: Optional (column, ascending) pair
            limit: Optional row limit

        Returns:
            List of row dictionaries
        """
        params = {"select": columns, **_render_filters(filters)}
        if order:
            column, ascending = order
            params["order"] = f"{column}.{'asc' if ascending else 'desc'}"
        if limit is not None:
            params["limit"] = str(limit)

        rows = await self._request("GET", table, params=params)
        return rows or []

    async def select_one(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """Return the first matching row, or None"""
        rows = await self.select(table, columns=columns, filters=filters, limit=1)
        return rows[0] if rows else None

    async def insert(self, table: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Insert a row and return it as stored

        Returns:
            The inserted row, or None if the API returned no representation
        """
        rows = await self._request(
            "POST", table, json=payload, prefer="return=representation"
        )
        if isinstance(rows, list):
            return rows[0] if rows else None
        return rows

    async def update(
        self,
        table: str,
        values: Dict[str, Any],
        filters: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        """
        Update rows matching equality filters

        Returns:
            The updated rows (empty when nothing matched)
        """
        rows = await self._request(
            "PATCH",
            table,
            params=_render_filters(filters),
            json=values,
            prefer="return=representation",
        )
        return rows or []


class Supabase:
    client: Optional[SupabaseClient] = None


supabase = Supabase()


def create_supabase_client(settings: CoachSettings) -> SupabaseClient:
    """Build a client from validated coach settings"""
    return SupabaseClient(
        url=settings.supabase_url,
        key=settings.supabase_key,
        timeout=settings.supabase_timeout,
    )


async def connect_to_supabase(settings: CoachSettings):
    """Create the process-wide Supabase client"""
    try:
        supabase.client = create_supabase_client(settings)
        logger.info(f"✓ Supabase client ready for {settings.supabase_url}")
    except Exception as e:
        logger.error(f"✗ Failed to create Supabase client: {e}")
        raise


async def close_supabase_connection():
    """Close the process-wide Supabase client"""
    if supabase.client:
        await supabase.client.close()
        supabase.client = None
        logger.info("✓ Closed Supabase connection")


def get_supabase() -> SupabaseClient:
    """Get the process-wide Supabase client"""
    if supabase.client is None:
        raise RuntimeError("Supabase client is not connected")
    return supabase.client
