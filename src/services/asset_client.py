"""Cloudinary upload/destroy client."""

from typing import Any, Mapping, Optional
from src.models.asset import AssetRecord, DestroyResult
from src.services.http_invoker import HttpApiInvoker
from src.services.request_signer import RequestSigner
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

BASE_PATH = "https://api.cloudinary.com/v1_1/"
DELIVERY_BASE = "https://res.cloudinary.com/"
RESOURCE_TYPE = "image"


class AssetClient:
    """Cloudinary image API. All calls raise NetworkAccessError on failure."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        invoker: Optional[HttpApiInvoker] = None,
    ):
        self.cloud_name = cloud_name
        self.signer = RequestSigner(api_key, api_secret)
        self.invoker = invoker or HttpApiInvoker("Cloudinary")

    def endpoint(self, action: str) -> str:
        return f"{BASE_PATH}{self.cloud_name}/{RESOURCE_TYPE}/{action}"

    def delivery_url(self, public_id: str, fmt: str, transformation: str = "") -> str:
        """URL of an on-the-fly derived view of a stored asset."""
        path = f"{transformation}/" if transformation else ""
        return f"{DELIVERY_BASE}{self.cloud_name}/{RESOURCE_TYPE}/upload/{path}{public_id}.{fmt}"

    async def download(self, url: str) -> bytes:
        """Fetch the bytes of a delivery URL."""
        content, _ = await self.invoker.fetch_bytes(url)
        return content

    async def upload(self, source_url: str, options: Optional[Mapping[str, Any]] = None) -> AssetRecord:
        """Upload a remote FTP, HTTP or HTTPS URL with a signed request."""
        payload = {"file": source_url, **(options or {})}
        result = await self.invoker.invoke(self.endpoint("upload"), "POST", self.signer.sign(payload))
        record = AssetRecord.model_validate(result)
        logger.info("Asset uploaded", public_id=record.public_id, format=record.format)
        return record

    async def unsigned_upload(self, source_url: str, upload_preset: str) -> AssetRecord:
        """Upload through a pre-authorized unsigned preset."""
        payload = {"file": source_url, "upload_preset": upload_preset}
        result = await self.invoker.invoke(self.endpoint("upload"), "POST", payload)
        return AssetRecord.model_validate(result)

    async def destroy(self, public_id: str, options: Optional[Mapping[str, Any]] = None) -> DestroyResult:
        """Delete an uploaded asset."""
        payload = {"public_id": public_id, **(options or {})}
        result = await self.invoker.invoke(self.endpoint("destroy"), "POST", self.signer.sign(payload))
        outcome = DestroyResult.model_validate(result)
        logger.info("Asset destroyed", public_id=public_id, result=outcome.result)
        return outcome
