import logging
from pathlib import Path
from typing import Sequence

from app.core.config import settings
from app.core.exceptions import AssetStoreError

logger = logging.getLogger(__name__)


class LocalAssetStore:
    """Product images written under the upload directory and served as static files."""

    def __init__(self, root: str = None, public_url: str = None):
        self.root = Path(root or settings.UPLOAD_DIR)
        self.public_url = (public_url if public_url is not None else settings.PUBLIC_UPLOAD_URL).rstrip("/")

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise AssetStoreError(f"Path escapes upload directory: {path}")
        return target

    async def upload(self, path: str, content: bytes, content_type: str, overwrite: bool = True) -> None:
        target = self._resolve(path)
        if target.exists() and not overwrite:
            raise AssetStoreError(f"Asset already exists: {path}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "wb") as f:
                f.write(content)
        except OSError as e:
            logger.error(f"Upload failed for {path}: {str(e)}")
            raise AssetStoreError(f"Failed to upload {path}: {str(e)}")
        logger.info(f"Stored {len(content)} bytes at {target}")

    async def delete(self, paths: Sequence[str]) -> None:
        for path in paths:
            target = self._resolve(path)
            try:
                target.unlink(missing_ok=True)
            except OSError as e:
                logger.error(f"Remove failed for {path}: {str(e)}")
                raise AssetStoreError(f"Failed to remove {path}: {str(e)}")
            logger.info(f"Removed {target}")

    def resolve_public_url(self, path: str) -> str:
        return f"{self.public_url}/{path}"

    def path_from_locator(self, locator: str) -> str:
        prefix = f"{self.public_url}/"
        if locator.startswith(prefix):
            return locator[len(prefix):]
        return locator.lstrip("/")
