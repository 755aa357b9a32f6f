"""
Edit session for a single product.

The session owns the draft shown in the product form and performs the
two-store commit: the image goes to the asset store first, then the record is
written. States move ``CLOSED -> OPEN -> COMMITTING`` and back to ``CLOSED``
on success or ``OPEN`` on failure; ``cancel()`` closes from any state.

A commit issues at most one asset delete, one upload and one record write.
Failures are kept on ``error`` and never raised to the caller.
"""

import enum
import logging
import time
from typing import Callable, Dict, Iterable, Optional

from app.core.config import settings
from app.core.contracts import AssetStore, RecordStore, SessionProvider
from app.core.exceptions import (
    AssetDeleteFailed,
    AssetUploadFailed,
    AuthenticationMissing,
    CatalogError,
    OwnershipMismatch,
    RecordWriteFailed,
    StoreError,
    ValidationFailed,
)
from app.schemas.product import MAX_PRICE, PendingImage, ProductDraft, ProductRecord, ProductWrite
from app.services.pricing import format_amount, mask_price, to_decimal

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "description", "price")


class SessionState(str, enum.Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    COMMITTING = "COMMITTING"


class ProductEditSession:
    def __init__(
        self,
        sessions: SessionProvider,
        records: RecordStore,
        assets: AssetStore,
        clock: Callable[[], float] = time.time,
        path_prefix: str = None,
        allowed_extensions: Iterable[str] = None,
        max_image_bytes: int = None,
    ):
        self.sessions = sessions
        self.records = records
        self.assets = assets
        self.clock = clock
        self.path_prefix = path_prefix or settings.ASSET_PATH_PREFIX
        self.allowed_extensions = {
            ext.lower() for ext in (allowed_extensions or settings.ALLOWED_IMAGE_EXTENSIONS)
        }
        self.max_image_bytes = max_image_bytes or settings.MAX_IMAGE_SIZE_MB * 1024 * 1024

        self.state = SessionState.CLOSED
        self.draft: Optional[ProductDraft] = None
        self.editing: Optional[ProductRecord] = None
        self.error: Optional[CatalogError] = None
        self._generation = 0
        self._in_flight = False

    @property
    def is_open(self) -> bool:
        return self.state != SessionState.CLOSED

    @property
    def is_committing(self) -> bool:
        return self._in_flight

    @property
    def error_message(self) -> Optional[str]:
        return self.error.user_message if self.error else None

    @property
    def preview(self) -> Optional[str]:
        if self.draft is None:
            return None
        if self.draft.pending_image is not None:
            return self.draft.pending_image.preview
        return self.draft.remote_image

    def open(self, record: Optional[ProductRecord] = None) -> bool:
        if self.state == SessionState.COMMITTING:
            logger.warning("Cannot open product form while a save is in progress")
            return False

        self._generation += 1
        self.editing = record
        if record is not None:
            self.draft = ProductDraft.from_record(record, price_text=format_amount(record.price))
            logger.debug(f"Editing product {record.id}")
        else:
            self.draft = ProductDraft()
            logger.debug("Adding new product")
        self.error = None
        self.state = SessionState.OPEN
        return True

    def update_field(self, field: str, value) -> bool:
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown product field: {field}")
        if not self._accepts_edits(f"update of '{field}'"):
            return False

        if field == "price":
            self.draft.price_text = format_amount(value)
        elif value is None:
            value = ""
        setattr(self.draft, field, value)
        return True

    def enter_price(self, text: str) -> str:
        """Apply a keystroke in the masked currency field and return the new rendering."""
        if not self._accepts_edits("price entry"):
            return self.draft.price_text if self.draft else ""

        value, rendered = mask_price(text)
        self.draft.price = value
        self.draft.price_text = rendered
        return rendered

    def select_image(self, image: Optional[PendingImage]) -> bool:
        if not self._accepts_edits("image selection"):
            return False
        self.draft.pending_image = image
        return True

    def cancel(self) -> None:
        if self.state != SessionState.CLOSED:
            logger.debug(f"Closing product form from {self.state.value}")
        self._discard()

    def validate(self) -> Dict[str, str]:
        errors = {}
        draft = self.draft
        if not (draft.name or "").strip():
            errors["name"] = "Name is required"

        price = to_decimal(draft.price)
        if price is None:
            errors["price"] = "Price must be a number"
        elif price < 0:
            errors["price"] = "Price cannot be negative"
        elif price > MAX_PRICE:
            errors["price"] = f"Price cannot exceed {format_amount(MAX_PRICE)}"

        image = draft.pending_image
        if image is not None:
            if image.extension not in self.allowed_extensions:
                errors["image"] = f"File type not allowed. Allowed: {', '.join(sorted(self.allowed_extensions))}"
            elif image.size_bytes > self.max_image_bytes:
                errors["image"] = f"File too large. Maximum size: {self.max_image_bytes // (1024 * 1024)}MB"
        return errors

    async def commit(self) -> Optional[ProductRecord]:
        if self._in_flight:
            logger.warning("Rejecting save: another save is still in progress")
            return None
        if self.state != SessionState.OPEN:
            logger.warning(f"Rejecting save: product form is {self.state.value}")
            return None

        errors = self.validate()
        if errors:
            self.error = ValidationFailed(errors)
            logger.info(f"Product form invalid: {self.error}")
            return None

        generation = self._generation
        draft = self.draft
        editing = self.editing
        self.error = None
        self.state = SessionState.COMMITTING
        self._in_flight = True
        failure = None
        try:
            record = await self._write(draft, editing)
        except CatalogError as e:
            failure = e
        except Exception as e:
            logger.exception(f"Unexpected error saving product: {str(e)}")
            failure = RecordWriteFailed(str(e))
        finally:
            self._in_flight = False
            # Covers cancellation of the awaiting task as well
            if generation == self._generation and self.state == SessionState.COMMITTING:
                self.state = SessionState.OPEN

        if failure is not None:
            logger.error(f"Error saving product: {str(failure)}")
            if generation == self._generation:
                self.error = failure
            return None

        if generation == self._generation:
            self._discard()
        else:
            logger.info(f"Product {record.id} saved after its form was closed")
        return record

    def image_path_for(self, owner_id: str, image: PendingImage) -> str:
        return f"{self.path_prefix}/{owner_id}/{int(self.clock() * 1000)}{image.extension}"

    async def _write(self, draft: ProductDraft, editing: Optional[ProductRecord]) -> ProductRecord:
        auth = await self.sessions.get_current_session()
        if auth is None:
            raise AuthenticationMissing("No active session while saving product")
        owner_id = auth.user.id
        if editing is not None and editing.owner_id != owner_id:
            raise OwnershipMismatch(f"Product {editing.id} belongs to {editing.owner_id}, not {owner_id}")

        image_path = draft.remote_image
        if draft.pending_image is not None:
            image_path = await self._replace_image(owner_id, draft, editing)

        fields = ProductWrite(
            name=draft.name.strip(),
            description=(draft.description or "").strip() or None,
            price=to_decimal(draft.price),
            image_path=image_path,
            owner_id=owner_id,
        )
        try:
            if editing is not None:
                record = await self.records.update(editing.id, fields)
            else:
                record = await self.records.create(fields)
        except StoreError as e:
            # A freshly uploaded image stays in the asset store
            raise RecordWriteFailed(str(e))

        logger.info(f"Product {record.id} saved for owner {owner_id}")
        return record

    async def _replace_image(self, owner_id: str, draft: ProductDraft, editing: Optional[ProductRecord]) -> str:
        if editing is not None and draft.remote_image:
            old_path = self.assets.path_from_locator(draft.remote_image)
            try:
                await self.assets.delete([old_path])
            except StoreError as e:
                failure = AssetDeleteFailed(str(e))
                logger.warning(f"Previous image {old_path} left in place: {failure}")

        image = draft.pending_image
        path = self.image_path_for(owner_id, image)
        try:
            await self.assets.upload(path, image.content, image.content_type, overwrite=True)
        except StoreError as e:
            raise AssetUploadFailed(str(e))
        return self.assets.resolve_public_url(path)

    def _accepts_edits(self, action: str) -> bool:
        if self.state != SessionState.OPEN:
            logger.warning(f"Ignoring {action}: product form is {self.state.value}")
            return False
        return True

    def _discard(self) -> None:
        self._generation += 1
        self.state = SessionState.CLOSED
        self.draft = None
        self.editing = None
        self.error = None
