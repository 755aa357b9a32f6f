import logging
from datetime import datetime
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import RecordStoreError
from app.db.models import StoreProduct
from app.schemas.product import ProductId, ProductRecord, ProductWrite

logger = logging.getLogger(__name__)


def _pk(product_id: ProductId) -> int:
    try:
        return int(product_id)
    except (TypeError, ValueError):
        raise RecordStoreError(f"Invalid product id: {product_id!r}")


class SqlRecordStore:
    """Product records kept in the local database."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def list(self, owner_id: str) -> List[ProductRecord]:
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(StoreProduct)
                    .where(StoreProduct.owner_id == owner_id)
                    .order_by(StoreProduct.created_at.desc(), StoreProduct.id.desc())
                )
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Product list failed: {str(e)}")
            raise RecordStoreError(f"Failed to list products: {str(e)}")

        logger.info(f"Found {len(rows)} products for owner={owner_id}")
        return [ProductRecord.model_validate(row) for row in rows]

    async def create(self, fields: ProductWrite) -> ProductRecord:
        try:
            async with self.session_factory() as db:
                product = StoreProduct(**fields.model_dump())
                db.add(product)
                await db.commit()
                await db.refresh(product)
        except SQLAlchemyError as e:
            logger.error(f"Product create failed: {str(e)}")
            raise RecordStoreError(f"Failed to create product: {str(e)}")

        logger.info(f"Created product {product.id} for owner={fields.owner_id}")
        return ProductRecord.model_validate(product)

    async def update(self, product_id: ProductId, fields: ProductWrite) -> ProductRecord:
        try:
            async with self.session_factory() as db:
                result = await db.execute(select(StoreProduct).where(StoreProduct.id == _pk(product_id)))
                product = result.scalar_one_or_none()
                if not product:
                    raise RecordStoreError(f"Product {product_id} not found")
                if product.owner_id != fields.owner_id:
                    raise RecordStoreError(f"Product {product_id} not found or access denied")

                for field, value in fields.model_dump(exclude={"owner_id"}).items():
                    setattr(product, field, value)
                product.updated_at = datetime.utcnow()
                await db.commit()
                await db.refresh(product)
        except SQLAlchemyError as e:
            logger.error(f"Product update failed: {str(e)}")
            raise RecordStoreError(f"Failed to update product: {str(e)}")

        logger.info(f"Updated product {product_id}")
        return ProductRecord.model_validate(product)

    async def delete(self, product_id: ProductId) -> None:
        try:
            async with self.session_factory() as db:
                result = await db.execute(select(StoreProduct).where(StoreProduct.id == _pk(product_id)))
                product = result.scalar_one_or_none()
                if not product:
                    raise RecordStoreError(f"Product {product_id} not found")
                await db.delete(product)
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Product delete failed: {str(e)}")
            raise RecordStoreError(f"Failed to delete product: {str(e)}")

        logger.info(f"Deleted product {product_id}")
