"""Test suite for the key-value storage backends."""

import pytest

from fittrck_chat.repositories.file import FileStorage
from fittrck_chat.repositories.memory import InMemoryStorage


@pytest.fixture(params=["memory", "file"])
def backend(request, tmp_path):
    if request.param == "memory":
        return InMemoryStorage()
    return FileStorage(tmp_path / "store")


@pytest.mark.asyncio
async def test_get_and_set(backend):
    assert await backend.get("SavedMessages") is None

    await backend.set("SavedMessages", b"[1, 2]")
    assert await backend.get("SavedMessages") == b"[1, 2]"

    await backend.set("SavedMessages", b"[]")
    assert await backend.get("SavedMessages") == b"[]"


@pytest.mark.asyncio
async def test_file_storage_rejects_path_like_keys(tmp_path):
    storage = FileStorage(tmp_path)

    with pytest.raises(ValueError):
        await storage.set("../escape", b"x")


@pytest.mark.asyncio
async def test_file_storage_leaves_no_temp_files(tmp_path):
    storage = FileStorage(tmp_path)

    await storage.set("UserProfile", b"{}")
    await storage.set("UserProfile", b'{"name": "Jo"}')

    assert sorted(p.name for p in tmp_path.iterdir()) == ["UserProfile.json"]
