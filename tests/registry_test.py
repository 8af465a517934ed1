"""Test the registry protocol client."""

import httpx
import pytest
from pydantic import SecretStr
from support.registry import FakeRegistry, digest_of

from registry_images.exceptions import (
    CatalogUnavailableError,
    DigestMissingError,
    GarbageCollectionError,
    TagResolutionError,
)
from registry_images.models.credential import RegistryCredential
from registry_images.storage.registry import MANIFEST_ACCEPT, RegistryClient


def test_requests_carry_credential(
    client: RegistryClient,
    registry: FakeRegistry,
    credential: RegistryCredential,
) -> None:
    client.list_repositories(credential)
    client.delete_tag("demo", "a", credential)
    client.collect_garbage(credential)
    assert len(registry.requests) == 4
    for request in registry.requests:
        assert request.headers["authorization"] == registry.authorization


def test_manifest_requests_accept_both_formats(
    client: RegistryClient,
    registry: FakeRegistry,
    credential: RegistryCredential,
) -> None:
    client.delete_tag("team/app", "v1", credential)
    head, delete = registry.requests
    assert head.method == "HEAD"
    assert delete.method == "DELETE"
    assert delete.url.path == f"/v2/team/app/manifests/{digest_of('v1')}"
    for request in (head, delete):
        assert "application/vnd.oci.image.manifest.v1+json" in (
            request.headers["accept"]
        )
        assert request.headers["accept"] == MANIFEST_ACCEPT


def test_delete_removes_aliases(
    client: RegistryClient,
    registry: FakeRegistry,
    credential: RegistryCredential,
) -> None:
    """Deleting by digest takes every tag pointing at it along."""
    registry.alias("demo", "latest", "a")
    deleted = client.delete_tag("demo", "latest", credential)
    assert deleted.digest == digest_of("a")
    assert list(registry.repositories["demo"]) == ["b", "c"]


def test_resolve_digest(
    client: RegistryClient,
    registry: FakeRegistry,
    credential: RegistryCredential,
) -> None:
    assert client.resolve_digest("demo", "b", credential) == digest_of("b")

    registry.missing_digest.add("b")
    with pytest.raises(DigestMissingError):
        client.resolve_digest("demo", "b", credential)

    registry.head_status["c"] = 500
    with pytest.raises(TagResolutionError) as excinfo:
        client.resolve_digest("demo", "c", credential)
    assert excinfo.value.status == 500
    assert "demo:c" in str(excinfo.value)


def test_bad_credential(
    client: RegistryClient, registry: FakeRegistry
) -> None:
    wrong = RegistryCredential(password=SecretStr("wrong"))
    with pytest.raises(CatalogUnavailableError) as excinfo:
        client.list_repositories(wrong)
    assert excinfo.value.status == 401
    assert "401 Unauthorized" in str(excinfo.value)


def test_empty_listings(credential: RegistryCredential) -> None:
    """A registry answering with null lists yields empty lists."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v2/_catalog":
            return httpx.Response(200, json={"repositories": None})
        return httpx.Response(200, json={"name": "demo"})

    transport = httpx.MockTransport(handler)
    with httpx.Client(base_url="https://r.example", transport=transport) as h:
        client = RegistryClient(h)
        assert client.list_repositories(credential) == []
        assert client.list_tags("demo", credential) == []


def test_collect_garbage_failure(
    client: RegistryClient,
    registry: FakeRegistry,
    credential: RegistryCredential,
) -> None:
    registry.gc_status = 503
    with pytest.raises(GarbageCollectionError) as excinfo:
        client.collect_garbage(credential)
    assert excinfo.value.status == 503
