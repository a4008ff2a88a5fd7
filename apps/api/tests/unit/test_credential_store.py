"""Unit tests for the encrypted credential repository"""
import pytest
from sqlalchemy.exc import OperationalError

from cloudctrl.core.exceptions import StoreUnavailable
from cloudctrl.models import UserCredential
from cloudctrl.repositories.credentials import CredentialRepository


@pytest.mark.asyncio
async def test_store_and_get(credential_store, cipher):
    """Stored blobs come back unchanged and decrypt to the original document"""
    blob = cipher.encrypt_json({"accessKeyId": "AKIA", "secretAccessKey": "s"})

    await credential_store.store("user-1", {"aws": blob})

    stored = await credential_store.get("user-1")
    assert stored == {"aws": blob}
    assert cipher.decrypt_json(stored["aws"])["accessKeyId"] == "AKIA"


@pytest.mark.asyncio
async def test_get_unknown_user_returns_none(credential_store):
    assert await credential_store.get("nobody") is None


@pytest.mark.asyncio
async def test_store_replaces_whole_record(credential_store):
    """A second store overwrites every provider column, clearing omitted ones"""
    await credential_store.store("user-1", {"aws": "blob-aws", "azure": "blob-azure"})
    await credential_store.store("user-1", {"gcp": "blob-gcp"})

    assert await credential_store.get("user-1") == {"gcp": "blob-gcp"}


@pytest.mark.asyncio
async def test_replace_stamps_updated_at_in_the_database(credential_store, session_factory):
    """The update timestamp is written by the database on replace"""
    await credential_store.store("user-1", {"aws": "blob-aws"})
    await credential_store.store("user-1", {"gcp": "blob-gcp"})

    async with session_factory() as session:
        row = await session.get(UserCredential, "user-1")

    assert row.gcp_encrypted == "blob-gcp"
    assert row.updated_at is not None
    assert row.updated_at >= row.created_at


@pytest.mark.asyncio
async def test_empty_blobs_are_stored_as_null(credential_store):
    await credential_store.store("user-1", {"aws": "blob-aws", "azure": "", "gcp": None})

    assert await credential_store.get("user-1") == {"aws": "blob-aws"}


@pytest.mark.asyncio
async def test_record_with_no_blobs_still_exists(credential_store):
    await credential_store.store("user-1", {})

    assert await credential_store.exists("user-1")
    assert await credential_store.get("user-1") == {}


@pytest.mark.asyncio
async def test_delete_is_idempotent(credential_store):
    await credential_store.store("user-1", {"aws": "blob"})

    assert await credential_store.delete("user-1") is True
    assert await credential_store.delete("user-1") is False
    assert await credential_store.get("user-1") is None


@pytest.mark.asyncio
async def test_exists(credential_store):
    assert not await credential_store.exists("user-1")

    await credential_store.store("user-1", {"aws": "blob"})

    assert await credential_store.exists("user-1")
    assert not await credential_store.exists("user-2")


@pytest.mark.asyncio
async def test_users_are_isolated(credential_store):
    await credential_store.store("user-1", {"aws": "blob-1"})
    await credential_store.store("user-2", {"aws": "blob-2"})

    await credential_store.delete("user-1")

    assert await credential_store.get("user-2") == {"aws": "blob-2"}


@pytest.mark.asyncio
async def test_list_user_ids_and_clear_all(credential_store):
    for user_id in ["carol", "alice", "bob"]:
        await credential_store.store(user_id, {"aws": f"blob-{user_id}"})

    assert await credential_store.list_user_ids() == ["alice", "bob", "carol"]
    assert await credential_store.clear_all() == 3
    assert await credential_store.list_user_ids() == []


class _BrokenSession:
    async def __aenter__(self):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    async def __aexit__(self, *exc):
        return False


def _broken_factory():
    return _BrokenSession()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "operation, args",
    [
        ("store", ("user-1", {"aws": "blob"})),
        ("get", ("user-1",)),
        ("delete", ("user-1",)),
        ("exists", ("user-1",)),
        ("list_user_ids", ()),
        ("clear_all", ()),
    ],
)
async def test_database_failures_raise_store_unavailable(operation, args):
    """Store outages surface as StoreUnavailable, never as missing data"""
    repository = CredentialRepository(_broken_factory)

    with pytest.raises(StoreUnavailable):
        await getattr(repository, operation)(*args)
