"""
Generic table access on top of the Supabase query builder.
Every module reads and writes through a TableRepository so that sensitive
tables can be wrapped by EncryptedRepository without touching call sites.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from postgrest.exceptions import APIError
from supabase import Client

from scolitrack.core.exceptions import Conflict, is_foreign_key_violation, is_unique_violation

logger = logging.getLogger(__name__)

Filters = Optional[Dict[str, Any]]


class TableRepository:
    def __init__(self, supabase: Client, table: str):
        self.supabase = supabase
        self.table = table

    def _apply_filters(self, query, filters: Filters):
        for column, value in (filters or {}).items():
            if value is None:
                query = query.is_(column, "null")
            elif isinstance(value, (list, tuple, set, frozenset)):
                query = query.in_(column, list(value))
            else:
                query = query.eq(column, value)
        return query

    def _execute(self, query):
        try:
            return query.execute()
        except APIError as e:
            if is_unique_violation(e):
                logger.info(f"Unique violation on {self.table}: {e.message}")
                raise Conflict() from e
            if is_foreign_key_violation(e):
                logger.info(f"Foreign key violation on {self.table}: {e.message}")
                raise Conflict("Resource is still referenced") from e
            raise

    def find(
        self,
        filters: Filters = None,
        columns: str = "*",
        order_by: Optional[str] = None,
        desc: bool = False,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        query = self._apply_filters(self.supabase.table(self.table).select(columns), filters)
        if order_by:
            query = query.order(order_by, desc=desc)
        if limit is not None:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)
        result = self._execute(query)
        return result.data or []

    def find_one(self, filters: Filters = None, columns: str = "*") -> Optional[Dict[str, Any]]:
        rows = self.find(filters, columns=columns, limit=1)
        return rows[0] if rows else None

    def find_page(
        self,
        filters: Filters = None,
        page: int = 1,
        limit: int = 10,
        columns: str = "*",
        order_by: Optional[str] = None,
        desc: bool = False,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """Return one page of rows plus the total row count for the filters"""
        query = self._apply_filters(
            self.supabase.table(self.table).select(columns, count="exact"), filters
        )
        if order_by:
            query = query.order(order_by, desc=desc)
        query = query.limit(limit).offset((page - 1) * limit)
        result = self._execute(query)
        return result.data or [], result.count or 0

    def count(self, filters: Filters = None) -> int:
        query = self._apply_filters(
            self.supabase.table(self.table).select("id", count="exact"), filters
        )
        result = self._execute(query.limit(1))
        return result.count or 0

    def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        result = self._execute(self.supabase.table(self.table).insert(payload))
        if not result.data:
            raise RuntimeError(f"Insert into {self.table} returned no row")
        return result.data[0]

    def create_many(self, payloads: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not payloads:
            return []
        result = self._execute(self.supabase.table(self.table).insert(payloads))
        return result.data or []

    def update(self, filters: Dict[str, Any], payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        query = self._apply_filters(self.supabase.table(self.table).update(payload), filters)
        result = self._execute(query)
        return result.data or []

    def delete(self, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        query = self._apply_filters(self.supabase.table(self.table).delete(), filters)
        result = self._execute(query)
        return result.data or []

    def rpc(self, function: str, params: Dict[str, Any]) -> Any:
        result = self._execute(self.supabase.rpc(function, params))
        return result.data


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a timestamptz column; naive values are taken as UTC"""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
