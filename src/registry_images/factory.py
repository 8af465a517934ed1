"""Component factory."""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import closing, contextmanager
from typing import Self

import httpx
import structlog
from pydantic import SecretStr
from structlog.stdlib import BoundLogger

from .config import Config
from .services.deleter import ImageDeleter
from .services.lister import ImageLister
from .storage.credentials import (
    CredentialProvider,
    CredentialServiceProvider,
    StaticCredentialProvider,
)
from .storage.registry import RegistryClient


class Factory:
    """Build registry image components.

    One factory serves one command: the credential provider it builds is
    shared by every component it creates, and the HTTP clients are closed
    with the factory.

    Parameters
    ----------
    config
        Tool configuration.
    logger
        Logger to use for messages.
    transport
        HTTP transport override, for the test suite.
    """

    @classmethod
    @contextmanager
    def standalone(
        cls, config: Config, transport: httpx.BaseTransport | None = None
    ) -> Iterator[Self]:
        """Context manager for registry image components.

        Parameters
        ----------
        config
            Tool configuration.
        transport
            HTTP transport override.

        Yields
        ------
        Factory
            Newly-created factory.  Must be used as a context manager.
        """
        logger = structlog.get_logger(__name__)
        with closing(cls(config, logger, transport=transport)) as factory:
            yield factory

    def __init__(
        self,
        config: Config,
        logger: BoundLogger,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config
        self._logger = logger
        self._transport = transport
        self._http_clients: list[httpx.Client] = []
        self._credentials: CredentialProvider | None = None

    def close(self) -> None:
        for client in self._http_clients:
            client.close()
        self._http_clients = []

    def create_credential_provider(self) -> CredentialProvider:
        if self._credentials:
            return self._credentials
        cfg = self._config.credentials
        if cfg.api_url:
            token = cfg.api_token or SecretStr(
                os.getenv("REGISTRY_API_TOKEN", "")
            )
            self._credentials = CredentialServiceProvider(
                self._http_client(str(cfg.api_url)),
                token,
                self._config.domain,
                expiration_minutes=cfg.expiration_minutes,
                permissions=cfg.permissions,
                username=cfg.username,
                logger=self._logger,
            )
        else:
            password = cfg.password or os.getenv("REGISTRY_PASSWORD")
            if not password:
                raise ValueError(
                    "No registry credentials configured: set "
                    "credentials.apiUrl or credentials.password "
                    "(or REGISTRY_PASSWORD)"
                )
            if isinstance(password, str):
                password = SecretStr(password)
            self._credentials = StaticCredentialProvider(
                password, username=cfg.username, logger=self._logger
            )
        return self._credentials

    def create_registry_client(self) -> RegistryClient:
        return RegistryClient(
            self._http_client(self._config.base_url), logger=self._logger
        )

    def create_image_deleter(self) -> ImageDeleter:
        return ImageDeleter(
            self.create_registry_client(),
            self.create_credential_provider(),
            logger=self._logger,
            dry_run=self._config.dry_run,
        )

    def create_image_lister(self) -> ImageLister:
        return ImageLister(
            self.create_registry_client(),
            self.create_credential_provider(),
            logger=self._logger,
            digest_prefixes=self._config.digest_prefixes,
        )

    def _http_client(self, base_url: str) -> httpx.Client:
        client = httpx.Client(
            base_url=base_url,
            timeout=self._config.timeout,
            transport=self._transport,
        )
        self._http_clients.append(client)
        return client
