"""Test fixtures for registry images."""

from collections.abc import Iterator

import httpx
import pytest
from pydantic import HttpUrl, SecretStr
from support.registry import FakeRegistry

from registry_images.config import Config, CredentialConfig
from registry_images.factory import Factory
from registry_images.models.credential import RegistryCredential
from registry_images.storage.registry import RegistryClient

REGISTRY_URL = "https://registry.example.com"


@pytest.fixture
def registry() -> FakeRegistry:
    """Registry with a plain repository and a nested one."""
    return FakeRegistry(
        {
            "demo": ["a", "b", "c"],
            "team/app": ["v1", "sha256-abcdef"],
        }
    )


@pytest.fixture
def config() -> Config:
    """Config using a static password."""
    return Config(
        registry=HttpUrl(REGISTRY_URL),
        credentials=CredentialConfig(password=SecretStr("hunter2")),
    )


@pytest.fixture
def transport(registry: FakeRegistry) -> httpx.MockTransport:
    return httpx.MockTransport(registry.handle)


@pytest.fixture
def factory(
    config: Config, transport: httpx.MockTransport
) -> Iterator[Factory]:
    """Factory whose HTTP clients talk to the fake registry."""
    with Factory.standalone(config, transport=transport) as factory:
        yield factory


@pytest.fixture
def credential() -> RegistryCredential:
    return RegistryCredential(password=SecretStr("hunter2"))


@pytest.fixture
def client(transport: httpx.MockTransport) -> Iterator[RegistryClient]:
    """Registry client bypassing the factory."""
    with httpx.Client(base_url=REGISTRY_URL, transport=transport) as http:
        yield RegistryClient(http)
