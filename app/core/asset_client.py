import logging
from typing import Sequence
from urllib.parse import quote, unquote

import httpx

from app.core.config import settings
from app.core.exceptions import AssetStoreError
from app.core.http_client import SupabaseHTTPClient

logger = logging.getLogger(__name__)


class AssetStoreClient(SupabaseHTTPClient):
    """Product images in a remote storage bucket."""

    def __init__(self, bucket: str = None, **kwargs):
        super().__init__(**kwargs)
        self.bucket = bucket or settings.ASSET_BUCKET

    @property
    def _public_prefix(self) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/"

    async def upload(self, path: str, content: bytes, content_type: str, overwrite: bool = True) -> None:
        try:
            client = await self._get_client()
            logger.info(f"Uploading {len(content)} bytes to {self.bucket}/{path}")
            response = await client.post(
                f"{self.base_url}/storage/v1/object/{self.bucket}/{quote(path)}",
                headers=self._headers(extra={
                    "Content-Type": content_type,
                    "x-upsert": "true" if overwrite else "false",
                }),
                content=content,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Upload failed with status {e.response.status_code}: {e.response.text}")
            raise AssetStoreError(f"Failed to upload {path}: {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"Upload failed: {str(e)}")
            raise AssetStoreError(f"Failed to upload {path}: {str(e)}")

    async def delete(self, paths: Sequence[str]) -> None:
        try:
            client = await self._get_client()
            logger.info(f"Removing {list(paths)} from {self.bucket}")
            response = await client.request(
                "DELETE",
                f"{self.base_url}/storage/v1/object/{self.bucket}",
                headers=self._headers(),
                json={"prefixes": list(paths)},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Remove failed with status {e.response.status_code}: {e.response.text}")
            raise AssetStoreError(f"Failed to remove {list(paths)}: {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"Remove failed: {str(e)}")
            raise AssetStoreError(f"Failed to remove {list(paths)}: {str(e)}")

    def resolve_public_url(self, path: str) -> str:
        return f"{self._public_prefix}{quote(path)}"

    def path_from_locator(self, locator: str) -> str:
        if locator.startswith(self._public_prefix):
            return unquote(locator[len(self._public_prefix):])
        return locator.lstrip("/")
