import logging
from typing import Callable, Dict, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

TokenSource = Callable[[], Optional[str]]


class SupabaseHTTPClient:
    """Shared plumbing for the auth, record and storage clients."""

    def __init__(
        self,
        base_url: str = None,
        api_key: str = None,
        token_source: TokenSource = None,
        transport: httpx.AsyncBaseTransport = None,
    ):
        self.base_url = (base_url or settings.SUPABASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.SUPABASE_ANON_KEY
        self.token_source = token_source
        self.transport = transport
        self.client = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self.client is None:
            self.client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS, transport=self.transport)
        return self.client

    def _headers(self, access_token: Optional[str] = None, extra: Dict[str, str] = None) -> Dict[str, str]:
        token = access_token
        if token is None and self.token_source is not None:
            token = self.token_source()
        headers = {"apikey": self.api_key}
        # Anonymous calls fall back to the project key
        headers["Authorization"] = f"Bearer {token or self.api_key}"
        if extra:
            headers.update(extra)
        return headers

    async def close(self):
        if self.client:
            await self.client.aclose()
            self.client = None
