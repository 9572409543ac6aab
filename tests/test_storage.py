import pytest

from receiptsplit.services.storage import LocalImageStorage, make_key


def test_make_key_is_unique_and_safe():
    first = make_key("my receipt?.jpg")
    second = make_key("my receipt?.jpg")
    assert first != second
    assert first.startswith("receipts/")
    assert first.endswith("-my_receipt_.jpg")
    assert make_key("../../etc/passwd").endswith("-passwd")


@pytest.mark.asyncio
async def test_store_and_fetch_by_key_and_url(tmp_path):
    storage = LocalImageStorage(tmp_path)
    stored = await storage.store(b"\x89PNG", "image/png", "r.png")

    assert (tmp_path / stored.key).read_bytes() == b"\x89PNG"
    assert stored.url.startswith("file://")
    assert await storage.fetch(stored.key) == b"\x89PNG"
    assert await storage.fetch(stored.url) == b"\x89PNG"


@pytest.mark.asyncio
async def test_public_urls(tmp_path):
    storage = LocalImageStorage(tmp_path, public_base_url="https://img.example.com/")
    stored = await storage.store(b"data", "image/jpeg", "r.jpg")

    assert stored.url == f"https://img.example.com/{stored.key}"
    assert await storage.fetch(stored.url) == b"data"


@pytest.mark.asyncio
async def test_fetch_missing_and_escaping_keys(tmp_path):
    storage = LocalImageStorage(tmp_path / "store")
    with pytest.raises(FileNotFoundError):
        await storage.fetch("receipts/nope.jpg")
    with pytest.raises(ValueError):
        await storage.fetch("../outside.jpg")
