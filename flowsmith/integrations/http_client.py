import httpx
from flowsmith.config import settings
from flowsmith.core.logging import logger, log_fields

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": f"{settings.PROJECT_NAME.lower()}/0.1",
}

class HttpClient:
    """Process-wide pooled client for builder calls, closed on shutdown."""

    _client: httpx.AsyncClient | None = None

    @classmethod
    async def get_client(cls) -> httpx.AsyncClient:
        if cls._client is None or cls._client.is_closed:
            logger.info(
                "Opening shared builder HTTP client",
                extra=log_fields(timeout=settings.BUILDER_TIMEOUT),
            )
            cls._client = httpx.AsyncClient(
                headers=DEFAULT_HEADERS,
                timeout=httpx.Timeout(settings.BUILDER_TIMEOUT),
                limits=httpx.Limits(max_keepalive_connections=20, max_connections=100),
            )
        return cls._client

    @classmethod
    async def close_client(cls):
        if cls._client and not cls._client.is_closed:
            logger.info("Closing shared builder HTTP client")
            await cls._client.aclose()
        cls._client = None
