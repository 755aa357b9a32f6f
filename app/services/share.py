from urllib.parse import quote

from pydantic import BaseModel

from app.core.config import settings
from app.schemas.product import ProductRecord
from app.services.pricing import format_currency

# encodeURIComponent leaves these unescaped
_URI_COMPONENT_SAFE = "-_.!~*'()"


class ShareLink(BaseModel):
    message: str
    url: str


def product_link(product: ProductRecord, link_base: str = None) -> str:
    base = (link_base or settings.PRODUCT_LINK_BASE).rstrip("/")
    return f"{base}/{product.id}"


def build_share_message(product: ProductRecord, link_base: str = None) -> str:
    message = (
        f"🛍️ *{product.name}*\n\n"
        f"💰 *{format_currency(product.price)}*\n\n"
    )
    if product.description:
        message += f"📝 {product.description}\n\n"
    message += (
        f"🔗 *See more details:*\n{product_link(product, link_base)}\n\n"
        "✨ _Product available now!_"
    )
    return message


def build_share_link(product: ProductRecord, link_base: str = None, share_base: str = None) -> ShareLink:
    message = build_share_message(product, link_base)
    target = share_base or settings.SHARE_BASE_URL
    return ShareLink(
        message=message,
        url=f"{target}?text={quote(message, safe=_URI_COMPONENT_SAFE)}",
    )
