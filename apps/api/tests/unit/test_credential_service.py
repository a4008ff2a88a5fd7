"""Tests for CredentialService (encrypt, store, invalidate)."""
import pytest

from cloudctrl.core.config import Settings
from cloudctrl.core.exceptions import InvalidCredentialPayload
from cloudctrl.resolvers import build_resolvers
from cloudctrl.services.credentials import CredentialService

AWS_DOC = {"accessKeyId": "AKIAUSER", "secretAccessKey": "user-secret"}
AZURE_DOC = {"subscriptionId": "sub-1", "clientId": "client-1", "clientSecret": "shh", "tenantId": "tenant-1"}
GCP_DOC = {"projectId": "p", "serviceAccountEmail": "sa@p.iam", "privateKey": "-----KEY-----"}


@pytest.fixture
def service(credential_store, cipher, response_cache, client_cache):
    resolvers = build_resolvers(credential_store, cipher, Settings(), client_cache)
    return CredentialService(credential_store, cipher, response_cache, resolvers)


@pytest.mark.asyncio
async def test_save_encrypts_before_storing(service, credential_store, cipher):
    flags = await service.save("user-1", {"aws": AWS_DOC, "gcp": GCP_DOC})

    assert flags == {"aws": True, "azure": False, "gcp": True}
    blobs = await credential_store.get("user-1")
    assert set(blobs) == {"aws", "gcp"}
    assert "user-secret" not in blobs["aws"]
    assert cipher.decrypt_json(blobs["aws"]) == AWS_DOC


@pytest.mark.asyncio
async def test_save_replaces_previous_providers(service, credential_store):
    await service.save("user-1", {"aws": AWS_DOC, "azure": AZURE_DOC})
    await service.save("user-1", {"gcp": GCP_DOC})

    assert set(await credential_store.get("user-1")) == {"gcp"}


@pytest.mark.asyncio
async def test_save_requires_a_provider(service):
    with pytest.raises(ValueError):
        await service.save("user-1", {})
    with pytest.raises(ValueError):
        await service.save("user-1", {"aws": None})


@pytest.mark.asyncio
async def test_save_rejects_incomplete_payload(service, credential_store):
    with pytest.raises(InvalidCredentialPayload) as exc_info:
        await service.save("user-1", {"azure": {"subscriptionId": "s", "clientId": ""}})

    assert exc_info.value.provider == "azure"
    assert exc_info.value.missing == ["clientId", "clientSecret", "tenantId"]
    assert await credential_store.get("user-1") is None


@pytest.mark.asyncio
async def test_save_rejects_unknown_provider(service):
    with pytest.raises(ValueError):
        await service.save("user-1", {"oracle": {"key": "v"}})


@pytest.mark.asyncio
async def test_save_invalidates_cached_responses(service, response_cache):
    await response_cache.set("user-1", "aws", "costs", {"old": True})
    await response_cache.set("user-1", "gcp", "projects", ["old"])
    await response_cache.set("user-2", "aws", "costs", {"other": True})

    await service.save("user-1", {"aws": AWS_DOC})

    assert await response_cache.get("user-1", "aws", "costs") is None
    assert await response_cache.get("user-1", "gcp", "projects") is None
    assert await response_cache.get("user-2", "aws", "costs") == {"other": True}


@pytest.mark.asyncio
async def test_summary_and_exists(service):
    assert await service.summary("user-1") is None
    assert await service.exists("user-1") is False

    await service.save("user-1", {"azure": AZURE_DOC})

    assert await service.summary("user-1") == {"aws": False, "azure": True, "gcp": False}
    assert await service.exists("user-1") is True


@pytest.mark.asyncio
async def test_remove_provider_keeps_others(service, credential_store, response_cache):
    await service.save("user-1", {"aws": AWS_DOC, "azure": AZURE_DOC})
    await response_cache.set("user-1", "aws", "costs", 1)
    await response_cache.set("user-1", "azure", "costs", 2)

    assert await service.remove_provider("user-1", "aws") is True

    assert set(await credential_store.get("user-1")) == {"azure"}
    assert await response_cache.get("user-1", "aws", "costs") is None
    assert await response_cache.get("user-1", "azure", "costs") == 2


@pytest.mark.asyncio
async def test_remove_last_provider_deletes_record(service, credential_store):
    await service.save("user-1", {"gcp": GCP_DOC})

    assert await service.remove_provider("user-1", "gcp") is True

    assert await credential_store.exists("user-1") is False


@pytest.mark.asyncio
async def test_remove_provider_not_stored(service):
    assert await service.remove_provider("user-1", "aws") is False

    await service.save("user-1", {"gcp": GCP_DOC})
    assert await service.remove_provider("user-1", "aws") is False


@pytest.mark.asyncio
async def test_remove_all(service, response_cache):
    await service.save("user-1", {"aws": AWS_DOC})
    await response_cache.set("user-1", "aws", "costs", 1)

    assert await service.remove_all("user-1") is True
    assert await service.remove_all("user-1") is False
    assert await response_cache.get("user-1", "aws", "costs") is None


@pytest.mark.asyncio
async def test_health(service, credential_store, cipher):
    await credential_store.store("user-1", {
        "aws": cipher.encrypt_json(AWS_DOC),
        "azure": "bm90IGEgcmVhbCBibG9i",
    })

    assert await service.health("user-1") == {"aws": "valid", "azure": "invalid", "gcp": "absent"}
    assert await service.health("nobody") == {"aws": "absent", "azure": "absent", "gcp": "absent"}
