import asyncio
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from app.core.exceptions import AssetStoreError, RecordStoreError
from app.db.base import Base
from app.schemas.auth import AuthSession, AuthUser
from app.schemas.product import PendingImage, ProductRecord, ProductWrite
from app.services.catalog import CatalogController
from app.services.edit_session import ProductEditSession


DATABASE_URL = "sqlite+aiosqlite:///:memory:"
OWNER_ID = "owner-1"
CDN = "https://cdn.test/"


class FakeSessions:
    def __init__(self, owner_id=OWNER_ID):
        self.owner_id = owner_id
        self.signed_in = True

    async def get_current_user(self):
        if not self.signed_in:
            return None
        return AuthUser(id=self.owner_id, email="seller@example.com")

    async def get_current_session(self):
        user = await self.get_current_user()
        if user is None:
            return None
        return AuthSession(access_token="token-1", user=user)


class FakeRecordStore:
    def __init__(self, calls):
        self.calls = calls
        self.rows = []
        self.next_id = 100
        self.fail_on = set()
        self.unfiltered = False

    def seed(self, record):
        self.rows.append(record)
        return record

    async def list(self, owner_id):
        self.calls.append(("record.list", owner_id))
        if "list" in self.fail_on:
            raise RecordStoreError("connection reset")
        rows = self.rows if self.unfiltered else [r for r in self.rows if r.owner_id == owner_id]
        return sorted(rows, key=lambda r: r.created_at, reverse=True)

    async def create(self, fields: ProductWrite):
        self.calls.append(("record.create", fields))
        if "create" in self.fail_on:
            raise RecordStoreError("insert rejected")
        record = ProductRecord(id=self.next_id, created_at=datetime(2026, 1, 1) + timedelta(days=self.next_id), **fields.model_dump())
        self.next_id += 1
        self.rows.append(record)
        return record

    async def update(self, product_id, fields: ProductWrite):
        self.calls.append(("record.update", product_id, fields))
        if "update" in self.fail_on:
            raise RecordStoreError("update rejected")
        for index, row in enumerate(self.rows):
            if row.id == product_id:
                record = ProductRecord(id=row.id, created_at=row.created_at, **fields.model_dump())
                self.rows[index] = record
                return record
        raise RecordStoreError(f"Product {product_id} not found")

    async def delete(self, product_id):
        self.calls.append(("record.delete", product_id))
        if "delete" in self.fail_on:
            raise RecordStoreError("delete rejected")
        self.rows = [r for r in self.rows if r.id != product_id]


class FakeAssetStore:
    def __init__(self, calls):
        self.calls = calls
        self.objects = {}
        self.fail_upload = False
        self.fail_delete = False
        self.gate = None

    async def upload(self, path, content, content_type, overwrite=True):
        self.calls.append(("asset.upload", path))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_upload:
            raise AssetStoreError("bucket unavailable")
        self.objects[path] = content

    async def delete(self, paths):
        self.calls.append(("asset.delete", list(paths)))
        if self.fail_delete:
            raise AssetStoreError("remove failed")
        for path in paths:
            self.objects.pop(path, None)

    def resolve_public_url(self, path):
        return f"{CDN}{path}"

    def path_from_locator(self, locator):
        if locator.startswith(CDN):
            return locator[len(CDN):]
        return locator


@pytest.fixture
async def engine():
    engine = create_async_engine(DATABASE_URL, echo=False, future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def calls():
    return []


@pytest.fixture
def sessions():
    return FakeSessions()


@pytest.fixture
def record_store(calls):
    return FakeRecordStore(calls)


@pytest.fixture
def asset_store(calls):
    return FakeAssetStore(calls)


@pytest.fixture
def edit_session(sessions, record_store, asset_store):
    return ProductEditSession(sessions, record_store, asset_store, clock=lambda: 1760000000.5)


@pytest.fixture
def catalog(sessions, record_store, asset_store, edit_session):
    return CatalogController(sessions, record_store, asset_store, confirm=lambda prompt: True, session=edit_session)


@pytest.fixture
def make_product():
    def factory(product_id, name, description=None, price="10.00", image_path=None, owner_id=OWNER_ID, day=1):
        return ProductRecord(
            id=product_id,
            name=name,
            description=description,
            price=Decimal(price),
            image_path=image_path,
            owner_id=owner_id,
            created_at=datetime(2025, 1, day),
        )
    return factory


@pytest.fixture
def png_image():
    return PendingImage(filename="Shirt.PNG", content=b"\x89PNG\r\n\x1a\nfake", content_type="image/png")


@pytest.fixture
def gate():
    return asyncio.Event()
