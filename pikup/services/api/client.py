"""HTTP client shared by the pricing, insurance, payment and store adapters."""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import aiohttp
from loguru import logger

from ...constants import Timeouts
from ...core.exceptions import NetworkError


@dataclass
class ApiResponse:
    """Decoded JSON response. ``data`` is empty when the body was not JSON."""

    status: int
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def success(self) -> bool:
        """2xx response whose body does not report ``success: false``."""
        return self.ok and self.data.get("success", True) is not False

    @property
    def error_code(self) -> Optional[str]:
        code = self.data.get("code")
        return str(code) if code else None

    @property
    def error_message(self) -> str:
        return str(self.data.get("error") or self.data.get("message") or f"HTTP {self.status}")


class PikupApiClient:
    """
    Pooled aiohttp client for the Pikup backend.

    Use as an async context manager, or call ``close()`` when done.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = Timeouts.HTTP_REQUEST_SECONDS,
        api_token: Optional[str] = None,
    ):
        """
        Initialize API client.

        Args:
            base_url: Service root, relative paths are joined onto it
            timeout: Total request timeout in seconds
            api_token: Optional bearer token
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._api_token = api_token
        self._http_session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self._init_http_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _init_http_session(self) -> None:
        """Initialize HTTP session with connection pooling."""
        if self._http_session is None:
            headers = {
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
            if self._api_token:
                headers["Authorization"] = f"Bearer {self._api_token}"

            connector = aiohttp.TCPConnector(
                limit=50,
                limit_per_host=20,
                ttl_dns_cache=120,
                keepalive_timeout=30,
                enable_cleanup_closed=True,
            )

            timeout = aiohttp.ClientTimeout(
                total=self.timeout,
                connect=Timeouts.HTTP_CONNECT_SECONDS,
                sock_read=Timeouts.HTTP_SOCK_READ_SECONDS,
            )

            self._http_session = aiohttp.ClientSession(
                connector=connector,
                headers=headers,
                timeout=timeout,
            )
            logger.debug(f"HTTP session initialized for {self.base_url}")

    async def close(self) -> None:
        """Close HTTP session."""
        if self._http_session:
            await self._http_session.close()
            self._http_session = None

    @property
    def _session(self) -> aiohttp.ClientSession:
        """Get HTTP session, raising error if not initialized."""
        if self._http_session is None:
            raise RuntimeError("HTTP session not initialized. Call _init_http_session() first.")
        return self._http_session

    def url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request_json(
        self, method: str, path: str, payload: Optional[Dict[str, Any]] = None
    ) -> ApiResponse:
        """
        Send a request and decode the JSON body.

        Args:
            method: HTTP method
            path: Path relative to the base URL, or an absolute URL
            payload: JSON body

        Returns:
            ApiResponse with the status and decoded body

        Raises:
            NetworkError: On connection failures and timeouts
        """
        await self._init_http_session()
        url = self.url(path)
        try:
            async with self._session.request(method, url, json=payload) as response:
                try:
                    data = await response.json()
                except (aiohttp.ContentTypeError, ValueError):
                    error_text = await response.text()
                    logger.warning(
                        f"Non-JSON response from {method} {path} "
                        f"(status={response.status}): {error_text[:200]}"
                    )
                    data = {}
                if not isinstance(data, dict):
                    data = {"items": data}
                return ApiResponse(status=response.status, data=data)
        except asyncio.TimeoutError as e:
            logger.warning(f"{method} {path} timed out after {self.timeout}s")
            raise NetworkError(f"Request to {path} timed out") from e
        except aiohttp.ClientError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise NetworkError(f"Request to {path} failed: {e}") from e

    async def get_json(self, path: str) -> ApiResponse:
        return await self.request_json("GET", path)

    async def post_json(self, path: str, payload: Dict[str, Any]) -> ApiResponse:
        return await self.request_json("POST", path, payload)

    async def patch_json(self, path: str, payload: Dict[str, Any]) -> ApiResponse:
        return await self.request_json("PATCH", path, payload)
