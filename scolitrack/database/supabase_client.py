import logging
from typing import Optional

from fastapi import Request
from supabase import create_client, Client

logger = logging.getLogger(__name__)


class SupabaseStore:
    """
    Explicitly constructed handle around the Supabase client.
    Opened once at application startup and closed at shutdown; request
    handlers receive the client through get_supabase().
    """

    def __init__(self, url: str, key: str, service_role_key: Optional[str] = None):
        self._url = url
        self._key = key
        self._service_role_key = service_role_key
        self._client: Optional[Client] = None

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def open(self) -> Client:
        if self._client is None:
            # The service role key bypasses RLS; prefer it when configured
            self._client = create_client(self._url, self._service_role_key or self._key)
            logger.info("Supabase store handle opened")
        return self._client

    @property
    def client(self) -> Client:
        if self._client is None:
            raise RuntimeError("Supabase store handle is not open")
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client = None
            logger.info("Supabase store handle closed")


def get_supabase(request: Request) -> Client:
    return request.app.state.store.client
