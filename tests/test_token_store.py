import json

import pytest

from auth.models import Credential
from auth.token_store import FileCredentialStore, MemoryCredentialStore


@pytest.mark.asyncio
async def test_memory_store_starts_logged_out() -> None:
    store = MemoryCredentialStore()

    credential = await store.get()

    assert credential == Credential()
    assert credential.authenticated is False


@pytest.mark.asyncio
async def test_memory_store_set_get() -> None:
    store = MemoryCredentialStore()

    await store.set_tokens("access", "refresh")

    credential = await store.get()
    assert credential == Credential("access", "refresh")
    assert credential.authenticated is True


@pytest.mark.asyncio
async def test_memory_store_clear() -> None:
    store = MemoryCredentialStore()
    await store.set_tokens("access", "refresh")

    await store.clear()

    credential = await store.get()
    assert credential.access_token is None
    assert credential.refresh_token is None
    assert credential.authenticated is False


@pytest.mark.asyncio
async def test_memory_store_swaps_whole_credential() -> None:
    store = MemoryCredentialStore()
    await store.set_tokens("access-1", "refresh-1")
    before = await store.get()

    await store.set_tokens("access-2", "refresh-2")

    assert before == Credential("access-1", "refresh-1")
    assert await store.get() == Credential("access-2", "refresh-2")


@pytest.mark.asyncio
async def test_file_store_set_get(tmp_path) -> None:
    store = FileCredentialStore(tmp_path / "auth.json")

    await store.set_tokens("access", "refresh")

    assert await store.get() == Credential("access", "refresh")


@pytest.mark.asyncio
async def test_file_store_persists(tmp_path) -> None:
    path = tmp_path / "auth.json"
    first_store = FileCredentialStore(path)

    await first_store.set_tokens("access", "refresh")

    second_store = FileCredentialStore(path)
    assert await second_store.get() == Credential("access", "refresh")


@pytest.mark.asyncio
async def test_file_store_clear_removes_tokens(tmp_path) -> None:
    path = tmp_path / "auth.json"
    store = FileCredentialStore(path)
    await store.set_tokens("access", "refresh")

    await store.clear()

    assert json.loads(path.read_text(encoding="utf-8")) == {}
    assert (await FileCredentialStore(path).get()).authenticated is False


@pytest.mark.asyncio
async def test_file_store_missing_file(tmp_path) -> None:
    store = FileCredentialStore(tmp_path / "missing.json")

    assert await store.get() == Credential()


def test_file_store_rejects_non_object(tmp_path) -> None:
    path = tmp_path / "auth.json"
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(RuntimeError, match="expected top-level JSON object"):
        FileCredentialStore(path)
