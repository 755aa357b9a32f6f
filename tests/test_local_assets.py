import pytest

from app.core.exceptions import AssetStoreError
from app.stores.local_assets import LocalAssetStore


@pytest.fixture
def local_store(tmp_path):
    return LocalAssetStore(root=str(tmp_path), public_url="/static/uploads")


@pytest.mark.asyncio
async def test_upload_overwrite_and_delete(local_store, tmp_path):
    await local_store.upload("produtos/owner-1/1.png", b"one", "image/png")
    await local_store.upload("produtos/owner-1/1.png", b"two", "image/png", overwrite=True)

    assert (tmp_path / "produtos/owner-1/1.png").read_bytes() == b"two"

    with pytest.raises(AssetStoreError, match="already exists"):
        await local_store.upload("produtos/owner-1/1.png", b"three", "image/png", overwrite=False)

    await local_store.delete(["produtos/owner-1/1.png", "produtos/owner-1/missing.png"])
    assert not (tmp_path / "produtos/owner-1/1.png").exists()


@pytest.mark.asyncio
async def test_paths_cannot_escape_upload_dir(local_store):
    with pytest.raises(AssetStoreError, match="escapes"):
        await local_store.upload("../outside.png", b"x", "image/png")


def test_public_url_round_trip(local_store):
    url = local_store.resolve_public_url("produtos/owner-1/1.png")

    assert url == "/static/uploads/produtos/owner-1/1.png"
    assert local_store.path_from_locator(url) == "produtos/owner-1/1.png"
