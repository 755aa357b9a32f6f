from fastapi import Depends, HTTPException, Request, status

from app.core.asset_client import AssetStoreClient
from app.core.auth_client import AuthClient, TokenSessionProvider
from app.core.config import settings
from app.core.record_client import RecordStoreClient
from app.db.session import async_session
from app.services.catalog import CatalogController
from app.services.registry import CatalogRegistry
from app.stores.local_assets import LocalAssetStore
from app.stores.sql_records import SqlRecordStore


def build_record_store(provider: TokenSessionProvider):
    if settings.RECORD_BACKEND == "sql":
        return SqlRecordStore(async_session)
    return RecordStoreClient(token_source=provider.current_token)


def build_asset_store(provider: TokenSessionProvider):
    if settings.ASSET_BACKEND == "local":
        return LocalAssetStore()
    return AssetStoreClient(token_source=provider.current_token)


catalog_registry = CatalogRegistry(AuthClient(), build_record_store, build_asset_store)


def get_registry() -> CatalogRegistry:
    return catalog_registry


def get_access_token(request: Request) -> str:
    # Session cookie first, then Bearer header
    token = request.session.get("access_token")
    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header.replace("Bearer ", "")

    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return token


async def get_catalog(
    token: str = Depends(get_access_token),
    registry: CatalogRegistry = Depends(get_registry),
) -> CatalogController:
    user = await registry.auth_client.get_user(token)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return registry.controller_for(user.id, token)
