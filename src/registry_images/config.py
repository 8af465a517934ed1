"""Configuration for the registry image tool."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Self

import yaml
from pydantic import BeforeValidator, Field, HttpUrl, SecretStr
from safir.pydantic import CamelCaseModel

from .models.credential import DEFAULT_USERNAME, RegistryPermission
from .models.image import DIGEST_PREFIXES

DEFAULT_REGISTRY = "https://registry.cloudchamber.cfdata.org"


def _empty_str_is_none(inp: Any) -> Any:
    if isinstance(inp, str) and inp == "":
        return None
    return inp


class CredentialConfig(CamelCaseModel):
    """Where registry credentials come from.

    If ``api_url`` is set, short-lived credentials are requested from that
    credential service.  Otherwise ``password`` (or the ``REGISTRY_PASSWORD``
    environment variable) is used as-is.
    """

    api_url: Annotated[
        HttpUrl | None,
        Field(
            BeforeValidator(_empty_str_is_none),
            title="Credential API URL",
            description="Base URL of the registry credential service.",
            examples=[HttpUrl("https://api.cloudflare.com/cloudchamber")],
        ),
    ] = None

    api_token: Annotated[
        SecretStr | None,
        Field(
            title="Credential API token",
            description=(
                "Bearer token for the credential service.  Falls back to "
                "REGISTRY_API_TOKEN."
            ),
        ),
    ] = None

    password: Annotated[
        SecretStr | None,
        Field(
            title="Password",
            description=(
                "Static registry password, used when no credential API is "
                "configured.  Falls back to REGISTRY_PASSWORD."
            ),
            examples=["hunter2"],
        ),
    ] = None

    username: Annotated[
        str,
        Field(
            title="Username",
            description="Username paired with the password for Basic auth.",
            examples=[DEFAULT_USERNAME],
        ),
    ] = DEFAULT_USERNAME

    expiration_minutes: Annotated[
        int,
        Field(
            title="Expiration (minutes)",
            description="Requested lifetime of issued credentials.",
            gt=0,
        ),
    ] = 5

    permissions: Annotated[
        list[RegistryPermission],
        Field(
            title="Permissions",
            description="Permissions requested for issued credentials.",
            min_length=1,
        ),
    ] = [RegistryPermission.PULL, RegistryPermission.PUSH]


class Config(CamelCaseModel):
    """Configuration to talk to one container registry."""

    registry: Annotated[
        HttpUrl,
        Field(
            title="Registry",
            description="URL of registry host",
            examples=[HttpUrl(DEFAULT_REGISTRY)],
        ),
    ] = HttpUrl(DEFAULT_REGISTRY)

    credentials: Annotated[
        CredentialConfig,
        Field(
            title="Credentials",
            description="How to obtain registry credentials.",
        ),
    ] = CredentialConfig()

    digest_prefixes: Annotated[
        list[str],
        Field(
            title="Digest prefixes",
            description=(
                "Tags starting with one of these hash-algorithm names are "
                "treated as digest-form tags and hidden from listings."
            ),
            examples=[list(DIGEST_PREFIXES)],
        ),
    ] = list(DIGEST_PREFIXES)

    timeout: Annotated[
        float,
        Field(
            title="Timeout",
            description="Timeout in seconds for each HTTP request.",
            gt=0,
        ),
    ] = 30.0

    dry_run: Annotated[
        bool,
        Field(
            title="Dry run",
            description="Do not actually delete any images from registry.",
        ),
    ] = False

    debug: Annotated[
        bool,
        Field(
            title="Debug",
            description="Much more verbose logging.",
        ),
    ] = False

    @property
    def domain(self) -> str:
        """Registry hostname, as the credential service knows it."""
        return self.registry.host or ""

    @property
    def base_url(self) -> str:
        return str(self.registry).rstrip("/")

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load configuration; a missing file means all defaults."""
        if not path.exists():
            return cls()
        return cls.model_validate(yaml.safe_load(path.read_text()) or {})
