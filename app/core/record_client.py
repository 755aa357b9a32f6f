import logging
from typing import List

import httpx
from pydantic import ValidationError

from app.core.config import settings
from app.core.exceptions import RecordStoreError
from app.core.http_client import SupabaseHTTPClient
from app.schemas.product import ProductId, ProductRecord, ProductWrite

logger = logging.getLogger(__name__)

# Remote column -> record field
COLUMNS = {
    "id": "id",
    "nome": "name",
    "descricao": "description",
    "preco": "price",
    "imagem": "image_path",
    "user_id": "owner_id",
    "created_at": "created_at",
}


def row_to_record(row: dict) -> ProductRecord:
    data = {field: row[column] for column, field in COLUMNS.items() if column in row}
    dropped = set(row) - set(COLUMNS)
    if dropped:
        logger.debug(f"Ignoring unknown product columns: {sorted(dropped)}")
    try:
        return ProductRecord.model_validate(data)
    except ValidationError as e:
        raise RecordStoreError(f"Malformed product row {row.get('id')}: {str(e)}")


def record_to_row(fields: ProductWrite) -> dict:
    return {
        "nome": fields.name,
        "descricao": fields.description,
        "preco": float(fields.price),
        "imagem": fields.image_path,
        "user_id": fields.owner_id,
    }


class RecordStoreClient(SupabaseHTTPClient):
    """Product records over the remote REST interface."""

    def __init__(self, table: str = None, **kwargs):
        super().__init__(**kwargs)
        self.table = table or settings.PRODUCT_TABLE

    @property
    def _url(self) -> str:
        return f"{self.base_url}/rest/v1/{self.table}"

    async def list(self, owner_id: str) -> List[ProductRecord]:
        try:
            client = await self._get_client()
            logger.info(f"Listing products for owner {owner_id}")
            response = await client.get(
                self._url,
                headers=self._headers(),
                params={"select": "*", "user_id": f"eq.{owner_id}", "order": "created_at.desc"},
            )
            response.raise_for_status()
            rows = self._json(response, "list") or []
            logger.info(f"Product list successful: {len(rows)} products")
            return [row_to_record(row) for row in rows]
        except httpx.HTTPStatusError as e:
            logger.error(f"Product list failed with status {e.response.status_code}: {e.response.text}")
            raise RecordStoreError(f"Failed to list products: {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"Product list failed: {str(e)}")
            raise RecordStoreError(f"Failed to list products: {str(e)}")

    async def create(self, fields: ProductWrite) -> ProductRecord:
        try:
            client = await self._get_client()
            logger.info(f"Creating product '{fields.name}' for owner {fields.owner_id}")
            response = await client.post(
                self._url,
                headers=self._headers(extra={"Prefer": "return=representation"}),
                json=record_to_row(fields),
            )
            response.raise_for_status()
            return self._single(self._json(response, "create"), "create")
        except httpx.HTTPStatusError as e:
            logger.error(f"Product create failed with status {e.response.status_code}: {e.response.text}")
            raise RecordStoreError(f"Failed to create product: {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"Product create failed: {str(e)}")
            raise RecordStoreError(f"Failed to create product: {str(e)}")

    async def update(self, product_id: ProductId, fields: ProductWrite) -> ProductRecord:
        try:
            client = await self._get_client()
            logger.info(f"Updating product {product_id}")
            response = await client.patch(
                self._url,
                headers=self._headers(extra={"Prefer": "return=representation"}),
                params={"id": f"eq.{product_id}"},
                json=record_to_row(fields),
            )
            response.raise_for_status()
            return self._single(self._json(response, "update"), "update")
        except httpx.HTTPStatusError as e:
            logger.error(f"Product update failed with status {e.response.status_code}: {e.response.text}")
            raise RecordStoreError(f"Failed to update product: {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"Product update failed: {str(e)}")
            raise RecordStoreError(f"Failed to update product: {str(e)}")

    async def delete(self, product_id: ProductId) -> None:
        try:
            client = await self._get_client()
            logger.info(f"Deleting product {product_id}")
            response = await client.delete(
                self._url,
                headers=self._headers(),
                params={"id": f"eq.{product_id}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Product delete failed with status {e.response.status_code}: {e.response.text}")
            raise RecordStoreError(f"Failed to delete product: {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"Product delete failed: {str(e)}")
            raise RecordStoreError(f"Failed to delete product: {str(e)}")

    @staticmethod
    def _json(response: httpx.Response, action: str):
        try:
            return response.json()
        except ValueError:
            logger.error(f"Product {action} returned a body that is not JSON: {response.text[:200]}")
            raise RecordStoreError(f"Product {action} returned an invalid body")

    @staticmethod
    def _single(payload, action: str) -> ProductRecord:
        rows = payload if isinstance(payload, list) else [payload]
        if len(rows) != 1:
            raise RecordStoreError(f"Product {action} returned {len(rows)} rows")
        return row_to_record(rows[0])
