import logging
from typing import Callable, Dict

from app.core.auth_client import AuthClient, TokenSessionProvider
from app.core.contracts import AssetStore, RecordStore
from app.services.catalog import CatalogController

logger = logging.getLogger(__name__)

RecordStoreFactory = Callable[[TokenSessionProvider], RecordStore]
AssetStoreFactory = Callable[[TokenSessionProvider], AssetStore]


class CatalogRegistry:
    """One catalog controller per seller, kept for the lifetime of the process."""

    def __init__(self, auth_client: AuthClient, record_factory: RecordStoreFactory, asset_factory: AssetStoreFactory):
        self.auth_client = auth_client
        self.record_factory = record_factory
        self.asset_factory = asset_factory
        self._controllers: Dict[str, CatalogController] = {}

    def controller_for(self, owner_id: str, access_token: str) -> CatalogController:
        controller = self._controllers.get(owner_id)
        if controller is None:
            provider = TokenSessionProvider(self.auth_client, access_token)
            controller = CatalogController(
                provider,
                self.record_factory(provider),
                self.asset_factory(provider),
            )
            self._controllers[owner_id] = controller
            logger.info(f"Created catalog for owner {owner_id}")
        else:
            controller.sessions.use_token(access_token)
        return controller

    def discard(self, owner_id: str) -> None:
        controller = self._controllers.pop(owner_id, None)
        if controller is not None:
            controller.close_session()

    async def close(self):
        for controller in self._controllers.values():
            for store in (controller.records, controller.assets):
                close = getattr(store, "close", None)
                if close is not None:
                    await close()
        self._controllers.clear()
        await self.auth_client.close()
