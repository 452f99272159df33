"""Single-call JSON API invoker over httpx."""

from typing import Any, Mapping, Optional
import httpx
from src.utils.errors import NetworkAccessError
from src.utils.logging import get_structured_logger, mask_payload, mask_sensitive_data

logger = get_structured_logger(__name__)


class HttpApiInvoker:
    """
    Perform one HTTP call and map the outcome to parsed JSON or NetworkAccessError.

    No retry and no schema validation happen here. POST payloads are sent as
    form fields, GET payloads as query parameters.
    """

    def __init__(
        self,
        service_name: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self.service_name = service_name
        self._client = client
        self._timeout = timeout

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _send(
        self,
        endpoint: str,
        method: str,
        payload: Optional[Mapping[str, Any]],
    ) -> httpx.Response:
        method = method.upper()
        client = self._get_client()
        try:
            if method == "GET":
                return await client.request(method, endpoint, params=payload)
            return await client.request(method, endpoint, data=payload)
        except httpx.TransportError as e:
            logger.warning(
                f"{self.service_name} transport error (DNS error, etc.)",
                endpoint=mask_sensitive_data(endpoint),
                method=method,
                status=NetworkAccessError.TRANSPORT_STATUS,
                body=str(e),
                payload=mask_payload(payload),
            )
            raise NetworkAccessError(NetworkAccessError.TRANSPORT_STATUS, str(e), transport=True) from e

    def _check_status(
        self,
        response: httpx.Response,
        endpoint: str,
        method: str,
        payload: Optional[Mapping[str, Any]],
    ) -> None:
        if response.status_code == 200:
            return
        logger.warning(
            f"{self.service_name} API error",
            endpoint=mask_sensitive_data(endpoint),
            method=method.upper(),
            status=response.status_code,
            body=response.text,
            payload=mask_payload(payload),
        )
        raise NetworkAccessError(response.status_code, response.text)

    async def invoke(
        self,
        endpoint: str,
        method: str = "POST",
        payload: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Call `endpoint` and return the parsed JSON body of a 200 response."""
        response = await self._send(endpoint, method, payload)
        self._check_status(response, endpoint, method, payload)
        return response.json()

    async def fetch_bytes(self, url: str) -> tuple[bytes, Optional[str]]:
        """GET a binary resource; returns (content, content type)."""
        response = await self._send(url, "GET", None)
        self._check_status(response, url, "GET", None)
        return response.content, response.headers.get("content-type")
