"""Supabase REST (PostgREST) client."""

from typing import List, Dict, Any, Optional
import httpx

from .base_client import BaseClient
from ..utils.config import get_config
from ..utils.exceptions import (
    SupabaseAPIError,
    AuthenticationError,
    RateLimitError,
    RecordNotFoundError,
)


class SupabaseClient(BaseClient):
    """Client for the table endpoints of a Supabase project."""

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """Initialize the client, defaulting to the environment configuration."""
        config = get_config()
        super().__init__(
            base_url=url or config.env.supabase_url,
            api_key=key or config.env.supabase_key,
            transport=transport
        )
        self.rest_path = config.supabase.rest_path.rstrip("/")

    # ------------------------------------------------------------------
    # Low-level REST helper
    # ------------------------------------------------------------------

    def _rest(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        """
        Execute a request against ``/rest/v1/<table>`` and return the parsed body.

        Raises:
            AuthenticationError: When the key is rejected (HTTP 401/403).
            RateLimitError: On HTTP 429.
            SupabaseAPIError: On any other HTTP or network failure.
        """
        endpoint = f"{self.rest_path}/{table}"

        try:
            response = self.request(method, endpoint, params=params, json=json, prefer=prefer)
        except httpx.HTTPError as e:
            raise SupabaseAPIError(
                f"Network error on {method} {table}: {str(e)}",
                details={"error": str(e)}
            )

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"Supabase rejected the API key (HTTP {response.status_code})",
                details={"response": response.text}
            )

        if response.status_code == 429:
            raise RateLimitError(
                "Supabase rate limit exceeded",
                details={"retry_after": response.headers.get("Retry-After")}
            )

        if response.status_code >= 400:
            raise SupabaseAPIError(
                f"{method} {table} failed (HTTP {response.status_code}): {self.error_message(response)}",
                details={"status_code": response.status_code, "response": response.text}
            )

        if not response.content:
            return []
        return response.json()

    # ------------------------------------------------------------------
    # Table operations
    # ------------------------------------------------------------------

    def select(
        self,
        table: str,
        columns: str = "*",
        order: Optional[str] = None,
        filters: Optional[Dict[str, str]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch every row of ``table``.

        Args:
            table: Table name.
            columns: PostgREST select expression, e.g. ``"*,inventory(*)"``.
            order: Order expression, e.g. ``"created_at.desc"``.
            filters: Column filters such as ``{"id": "eq.42"}``.
        """
        params = {"select": columns}
        if order:
            params["order"] = order
        if filters:
            params.update(filters)

        rows = self._rest("GET", table, params=params)
        self.logger.debug(f"Fetched {len(rows)} rows from {table}")
        return rows

    def insert(self, table: str, record: Dict[str, Any], columns: str = "*") -> Dict[str, Any]:
        """Insert one row and return it as stored."""
        rows = self._rest(
            "POST", table,
            params={"select": columns},
            json=record,
            prefer="return=representation",
        )
        if not rows:
            raise SupabaseAPIError(f"Insert into {table} returned no row", details={"record": record})
        return rows[0]

    def update(
        self,
        table: str,
        record_id: str,
        fields: Dict[str, Any],
        columns: str = "*",
    ) -> Dict[str, Any]:
        """Update the row with ``id = record_id`` and return it as stored."""
        rows = self._rest(
            "PATCH", table,
            params={"id": f"eq.{record_id}", "select": columns},
            json=fields,
            prefer="return=representation",
        )
        if not rows:
            raise RecordNotFoundError(f"No {table} row with id {record_id}", details={"id": record_id})
        return rows[0]

    def remove(self, table: str, record_id: str) -> Dict[str, Any]:
        """Delete the row with ``id = record_id`` and return the deleted row."""
        rows = self._rest(
            "DELETE", table,
            params={"id": f"eq.{record_id}"},
            prefer="return=representation",
        )
        if not rows:
            raise RecordNotFoundError(f"No {table} row with id {record_id}", details={"id": record_id})
        return rows[0]
