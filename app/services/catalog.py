import enum
import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Union

from app.core.contracts import AssetStore, RecordStore, SessionProvider
from app.core.exceptions import (
    AuthenticationMissing,
    CatalogError,
    OwnershipMismatch,
    RecordDeleteFailed,
    RecordLoadFailed,
    StoreError,
)
from app.schemas.product import ProductId, ProductRecord
from app.services.edit_session import ProductEditSession
from app.services.share import ShareLink, build_share_link

logger = logging.getLogger(__name__)

DELETE_PROMPT = "Are you sure you want to delete this product?"

Confirm = Callable[[str], Union[bool, Awaitable[bool]]]


class ViewState(str, enum.Enum):
    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    READY = "ready"


def same_id(left: ProductId, right: ProductId) -> bool:
    return str(left) == str(right)


class CatalogController:
    """Authoritative product list for the signed-in seller.

    Records enter or change only through ``load()``, a committed edit session
    (``on_session_committed``) or a confirmed delete. Every list change builds
    a new list, so a failed operation leaves the previous one untouched.
    """

    def __init__(
        self,
        sessions: SessionProvider,
        records: RecordStore,
        assets: AssetStore,
        confirm: Confirm = None,
        session: ProductEditSession = None,
    ):
        self.sessions = sessions
        self.records = records
        self.assets = assets
        self.confirm = confirm
        self.session = session or ProductEditSession(sessions, records, assets)

        self.products: List[ProductRecord] = []
        self.owner_id: Optional[str] = None
        self.loading = False
        self.loaded = False
        self.error: Optional[CatalogError] = None

    @property
    def view_state(self) -> ViewState:
        if self.loading:
            return ViewState.LOADING
        if self.error is not None and not self.products:
            return ViewState.ERROR
        if not self.products:
            return ViewState.EMPTY
        return ViewState.READY

    @property
    def error_message(self) -> Optional[str]:
        return self.error.user_message if self.error else None

    def find(self, product_id: ProductId) -> Optional[ProductRecord]:
        for product in self.products:
            if same_id(product.id, product_id):
                return product
        return None

    async def load(self) -> bool:
        self.loading = True
        self.error = None
        try:
            user = await self.sessions.get_current_user()
            if user is None:
                raise AuthenticationMissing("No authenticated user for product list")
            try:
                records = await self.records.list(user.id)
            except StoreError as e:
                raise RecordLoadFailed(str(e))
        except CatalogError as e:
            logger.error(f"Error loading products: {str(e)}")
            self.products = []
            self.error = e
            return False
        finally:
            self.loading = False
            self.loaded = True

        owned = [record for record in records if record.owner_id == user.id]
        if len(owned) != len(records):
            logger.warning(f"Dropped {len(records) - len(owned)} products not owned by {user.id}")

        self.owner_id = user.id
        self.products = owned
        logger.info(f"Loaded {len(owned)} products for owner {user.id}")
        return True

    def request_add(self) -> bool:
        opened = self.session.open(None)
        if opened:
            self.error = None
        return opened

    def request_edit(self, record: ProductRecord) -> bool:
        if not self._owns(record):
            self.error = OwnershipMismatch(f"Product {record.id} belongs to {record.owner_id}")
            logger.warning(f"Refusing to edit product {record.id}: {self.error}")
            return False
        opened = self.session.open(record)
        if opened:
            self.error = None
        return opened

    def close_session(self) -> None:
        self.session.cancel()

    async def submit(self) -> Optional[ProductRecord]:
        record = await self.session.commit()
        if record is not None:
            if self.owner_id is None:
                user = await self.sessions.get_current_user()
                self.owner_id = user.id if user is not None else None
            self.on_session_committed(record)
        return record

    def on_session_committed(self, record: ProductRecord) -> bool:
        if not self._owns(record):
            self.error = OwnershipMismatch(f"Saved product {record.id} belongs to {record.owner_id}")
            logger.warning(f"Not merging product {record.id}: {self.error}")
            return False

        for index, existing in enumerate(self.products):
            if same_id(existing.id, record.id):
                self.products = [*self.products[:index], record, *self.products[index + 1:]]
                self.error = None
                logger.debug(f"Replaced product {record.id} at position {index}")
                return True

        self.products = [record, *self.products]
        self.error = None
        logger.debug(f"Added product {record.id}")
        return True

    async def request_delete(self, product_id: ProductId, confirm: Confirm = None) -> bool:
        product = self.find(product_id)
        if product is None:
            self.error = RecordDeleteFailed(f"Product {product_id} is not in the catalog")
            logger.warning(str(self.error))
            return False

        gate = confirm or self.confirm
        if gate is None:
            logger.warning(f"No confirmation available, product {product_id} not deleted")
            return False
        answer = gate(DELETE_PROMPT)
        if inspect.isawaitable(answer):
            answer = await answer
        if not answer:
            logger.info(f"Delete of product {product_id} declined")
            return False

        auth = await self.sessions.get_current_session()
        if auth is None:
            self.error = AuthenticationMissing("No active session while deleting product")
            logger.error(f"Error deleting product {product_id}: {self.error}")
            return False
        if product.owner_id != auth.user.id:
            self.error = OwnershipMismatch(f"Product {product_id} belongs to {product.owner_id}")
            logger.error(f"Error deleting product {product_id}: {self.error}")
            return False

        try:
            await self.records.delete(product.id)
        except StoreError as e:
            self.error = RecordDeleteFailed(str(e))
            logger.error(f"Error deleting product {product_id}: {str(e)}")
            return False

        # The product image is left in the asset store
        self.products = [p for p in self.products if not same_id(p.id, product.id)]
        self.error = None
        logger.info(f"Deleted product {product_id}")
        return True

    def filter_products(self, term: str) -> List[ProductRecord]:
        if not term or not term.strip():
            return list(self.products)
        needle = term.strip().lower()
        return [
            product for product in self.products
            if needle in product.name.lower()
            or (product.description and needle in product.description.lower())
        ]

    def share(self, product_id: ProductId) -> Optional[ShareLink]:
        product = self.find(product_id)
        if product is None:
            return None
        return build_share_link(product)

    def _owns(self, record: ProductRecord) -> bool:
        # Unknown until the first load or save resolves the seller
        return self.owner_id is not None and record.owner_id == self.owner_id
