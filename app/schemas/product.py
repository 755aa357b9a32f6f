import base64
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator

CENTS = Decimal("0.01")
# Largest amount a Numeric(10, 2) column holds
MAX_PRICE = Decimal("99999999.99")

ProductId = Union[int, str]


def quantize_price(value: Decimal) -> Decimal:
    try:
        return value.quantize(CENTS)
    except InvalidOperation:
        raise ValueError("Price is out of range")


class ProductRecord(BaseModel):
    id: ProductId
    name: str
    description: Optional[str] = None
    price: Decimal = Field(ge=0)
    image_path: Optional[str] = None
    owner_id: str
    created_at: Optional[datetime] = None

    class Config:
        extra = "forbid"
        from_attributes = True

    @field_validator("price")
    @classmethod
    def normalize_price(cls, value: Decimal) -> Decimal:
        return quantize_price(value)


class ProductWrite(BaseModel):
    """Fields persisted on create and update."""

    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: Decimal = Field(ge=0, le=MAX_PRICE)
    image_path: Optional[str] = None
    owner_id: str

    class Config:
        extra = "forbid"

    @field_validator("price")
    @classmethod
    def normalize_price(cls, value: Decimal) -> Decimal:
        return quantize_price(value)


class PendingImage(BaseModel):
    filename: str
    content: bytes = Field(repr=False)
    content_type: str = "application/octet-stream"

    @property
    def extension(self) -> str:
        return Path(self.filename).suffix.lower()

    @property
    def size_bytes(self) -> int:
        return len(self.content)

    @property
    def preview(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


class ProductDraft(BaseModel):
    name: str = ""
    description: str = ""
    # Raw value until commit coerces it
    price: Any = None
    price_text: str = ""
    pending_image: Optional[PendingImage] = None
    remote_image: Optional[str] = None

    @classmethod
    def from_record(cls, record: ProductRecord, price_text: str = "") -> "ProductDraft":
        return cls(
            name=record.name or "",
            description=record.description or "",
            price=record.price,
            price_text=price_text,
            remote_image=record.image_path,
        )
