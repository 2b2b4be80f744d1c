"""
Suno API HTTP Client
Client for the music-generation vendor, holding the secret API key server-side

Single shared AsyncClient initialized at app startup; fixed per-call timeouts
and no retries.
"""

from typing import Any, Dict, Optional

import httpx
import structlog

logger = structlog.get_logger(__name__)


class SunoAPIError(Exception):
    """Vendor call failed; message is the vendor's msg when it sent one"""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class SunoClient:
    """
    HTTP client for Suno generation operations.

    Lifecycle:
        - Call start() during app startup (FastAPI lifespan)
        - Call stop() during app shutdown
    """

    MAX_CONNECTIONS = 50
    MAX_KEEPALIVE = 10
    KEEPALIVE_EXPIRY = 5.0

    GENERATE_TIMEOUT = 30.0
    STATUS_TIMEOUT = 10.0

    GENERATE_ENDPOINT = "/api/v1/generate"
    RECORD_INFO_ENDPOINT = "/api/v1/generate/record-info"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str = "V4_5",
        callback_url: str = "",
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.model = model
        self.callback_url = callback_url
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def start(self):
        """Initialize the shared HTTP client"""
        if self._client is not None:
            logger.warning("SunoClient already started")
            return

        limits = httpx.Limits(
            max_connections=self.MAX_CONNECTIONS,
            max_keepalive_connections=self.MAX_KEEPALIVE,
            keepalive_expiry=self.KEEPALIVE_EXPIRY
        )

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            limits=limits,
            headers={"Authorization": f"Bearer {self.api_key}"},
            transport=self._transport
        )

        logger.info("SunoClient started", base_url=self.base_url)

    async def stop(self):
        """Close the HTTP client and release resources"""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("SunoClient stopped")

    @staticmethod
    def _vendor_message(response: httpx.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            return body.get("msg")
        return None

    async def _make_request(self, method: str, endpoint: str, timeout: float, **kwargs) -> Dict[str, Any]:
        """Make an HTTP request to Suno and return the decoded JSON body"""
        if self._client is None:
            raise SunoAPIError("Suno client not started")

        try:
            response = await self._client.request(method, endpoint, timeout=timeout, **kwargs)
            response.raise_for_status()
            return response.json()

        except httpx.TimeoutException as e:
            logger.error("Suno request timed out", endpoint=endpoint, timeout=timeout)
            raise SunoAPIError(f"Suno API request timed out after {timeout:.0f}s") from e
        except httpx.HTTPStatusError as e:
            message = self._vendor_message(e.response) or f"Suno API error: {e.response.status_code}"
            logger.error(
                "Suno API HTTP error",
                endpoint=endpoint,
                status_code=e.response.status_code,
                body=e.response.text
            )
            raise SunoAPIError(message, status_code=e.response.status_code) from e
        except httpx.RequestError as e:
            logger.error("Suno API request error", endpoint=endpoint, error=str(e))
            raise SunoAPIError(f"Failed to connect to Suno API: {e}") from e
        except ValueError as e:
            raise SunoAPIError("Suno API returned a non-JSON response") from e

    async def create_generation(
        self,
        prompt: str,
        style: str,
        title: str,
        instrumental: bool
    ) -> str:
        """
        Start a generation task

        Returns:
            str: Suno task id

        Raises:
            SunoAPIError: on transport/HTTP failure or when no task id comes back
        """
        payload = {
            "customMode": True,
            "instrumental": instrumental,
            "model": self.model,
            "callBackUrl": self.callback_url,
            "prompt": prompt,
            "style": style,
            "title": title
        }

        body = await self._make_request("POST", self.GENERATE_ENDPOINT, self.GENERATE_TIMEOUT, json=payload)

        data = body.get("data") if isinstance(body, dict) else None
        task_id = data.get("taskId") if isinstance(data, dict) else None
        if not task_id:
            message = body.get("msg") if isinstance(body, dict) else None
            raise SunoAPIError(message or "No task ID returned from Suno API", payload=body)

        return str(task_id)

    async def get_task_record(self, task_id: str) -> Dict[str, Any]:
        """Fetch the raw record-info document for a task"""
        return await self._make_request(
            "GET",
            self.RECORD_INFO_ENDPOINT,
            self.STATUS_TIMEOUT,
            params={"taskId": task_id}
        )
