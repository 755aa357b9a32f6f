"""
Collaborator contracts for the catalog core.

The edit session and catalog controller only talk to these protocols, so the
remote clients, the local backends and the test fakes are interchangeable.
"""

from typing import List, Optional, Protocol, Sequence

from app.schemas.auth import AuthSession, AuthUser
from app.schemas.product import ProductId, ProductRecord, ProductWrite


class SessionProvider(Protocol):
    async def get_current_session(self) -> Optional[AuthSession]:
        ...

    async def get_current_user(self) -> Optional[AuthUser]:
        ...


class RecordStore(Protocol):
    """Product records of one collection. Failures raise ``RecordStoreError``."""

    async def list(self, owner_id: str) -> List[ProductRecord]:
        """Records owned by ``owner_id``, newest first."""
        ...

    async def create(self, fields: ProductWrite) -> ProductRecord:
        ...

    async def update(self, product_id: ProductId, fields: ProductWrite) -> ProductRecord:
        ...

    async def delete(self, product_id: ProductId) -> None:
        ...


class AssetStore(Protocol):
    """Binary storage addressed by path. Upload failures raise ``AssetStoreError``."""

    async def upload(self, path: str, content: bytes, content_type: str, overwrite: bool = True) -> None:
        ...

    async def delete(self, paths: Sequence[str]) -> None:
        ...

    def resolve_public_url(self, path: str) -> str:
        ...

    def path_from_locator(self, locator: str) -> str:
        """Inverse of ``resolve_public_url``; plain paths come back unchanged."""
        ...
