from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from app.schemas.product import ProductId, ProductRecord
from app.services.catalog import CatalogController
from app.services.edit_session import ProductEditSession
from app.services.pricing import format_currency


class ProductResponse(ProductRecord):
    price_display: str

    @classmethod
    def from_record(cls, record: ProductRecord) -> "ProductResponse":
        return cls(**record.model_dump(), price_display=format_currency(record.price))


class CatalogResponse(BaseModel):
    state: str
    error: Optional[str] = None
    items: List[ProductResponse] = []
    total: int = 0

    @classmethod
    def build(cls, controller: CatalogController, items: List[ProductRecord]) -> "CatalogResponse":
        return cls(
            state=controller.view_state.value,
            error=controller.error_message,
            items=[ProductResponse.from_record(item) for item in items],
            total=len(controller.products),
        )


class DraftResponse(BaseModel):
    name: str
    description: str
    price: Any = None
    price_text: str = ""
    image: Optional[str] = None
    pending_image: Optional[str] = None


class SessionResponse(BaseModel):
    state: str
    mode: Optional[str] = None
    product_id: Optional[ProductId] = None
    draft: Optional[DraftResponse] = None
    error: Optional[str] = None
    field_errors: Dict[str, str] = {}

    @classmethod
    def build(cls, session: ProductEditSession) -> "SessionResponse":
        draft = session.draft
        if draft is None:
            return cls(state=session.state.value, error=session.error_message)
        return cls(
            state=session.state.value,
            mode="edit" if session.editing is not None else "add",
            product_id=session.editing.id if session.editing is not None else None,
            draft=DraftResponse(
                name=draft.name,
                description=draft.description,
                price=draft.price,
                price_text=draft.price_text,
                image=draft.remote_image,
                pending_image=draft.pending_image.filename if draft.pending_image else None,
            ),
            error=session.error_message,
            field_errors=getattr(session.error, "errors", {}),
        )


class OpenSessionRequest(BaseModel):
    product_id: Optional[ProductId] = None


class DraftUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None


class PriceEntry(BaseModel):
    text: str


class AccessTokenRequest(BaseModel):
    access_token: str
