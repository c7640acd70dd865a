import os
import httpx
from typing import Dict, Any, List, Optional
from storefront.errors import RemoteCallError
from storefront.utils.logger import get_logger

logger = get_logger("utils.supabase_client")

_OPERATORS = ("eq", "neq", "gt", "lt", "gte", "lte", "like", "ilike", "in", "is")


def build_filters(filters: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """PostgREST query params: values already carrying an operator pass through, the rest become eq."""
    params = {}
    for key, val in (filters or {}).items():
        if isinstance(val, str) and "." in val and val.split(".")[0] in _OPERATORS:
            params[key] = val
        elif isinstance(val, bool):
            params[key] = f"eq.{str(val).lower()}"
        else:
            params[key] = f"eq.{val}"
    return params


class SupabaseClient:
    """
    Lightweight client for the Supabase REST API (PostgREST).

    Every call raises RemoteCallError on network or HTTP failure; nothing is
    retried.
    """
    def __init__(self, url: Optional[str] = None, key: Optional[str] = None, transport: Optional[httpx.BaseTransport] = None):
        self.url = url or os.environ.get("SUPABASE_URL", "")
        self.key = key or os.environ.get("SUPABASE_SERVICE_ROLE_KEY") or os.environ.get("SUPABASE_KEY", "")

        if not self.url or not self.key:
            logger.warning("Supabase URL or key missing; every REST call will fail")

        self.headers = {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation"
        }
        self.client = httpx.Client(base_url=self.url, headers=self.headers, timeout=30.0, transport=transport)

    def _request(self, operation: str, method: str, path: str, **kwargs) -> Any:
        try:
            response = self.client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Supabase {operation} failed: {e}")
            raise RemoteCallError(operation, str(e)) from e
        if not response.content:
            return None
        return response.json()

    def select(self, table: str, filters: Optional[Dict[str, Any]] = None, select: str = "*", limit: Optional[int] = None, order: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Query a Supabase table.
        """
        params = {"select": select, **build_filters(filters)}
        if limit:
            params["limit"] = str(limit)
        if order:
            params["order"] = order

        rows = self._request(f"select {table}", "GET", f"/rest/v1/{table}", params=params)
        logger.debug(f"Supabase select on {table}: {len(rows or [])} rows")
        return rows or []

    def select_one(self, table: str, filters: Optional[Dict[str, Any]] = None, select: str = "*") -> Optional[Dict[str, Any]]:
        rows = self.select(table, filters, select=select, limit=1)
        return rows[0] if rows else None

    def insert(self, table: str, rows: Any) -> List[Dict[str, Any]]:
        """Insert one row (dict) or many (list); returns the stored rows."""
        result = self._request(f"insert {table}", "POST", f"/rest/v1/{table}", json=rows)
        logger.debug(f"Supabase insert on {table}")
        return result or []

    def update(self, table: str, filters: Dict[str, Any], values: Dict[str, Any]) -> List[Dict[str, Any]]:
        result = self._request(f"update {table}", "PATCH", f"/rest/v1/{table}", params=build_filters(filters), json=values)
        logger.debug(f"Supabase update on {table}")
        return result or []

    def delete(self, table: str, filters: Dict[str, Any]) -> None:
        self._request(f"delete {table}", "DELETE", f"/rest/v1/{table}", params=build_filters(filters))
