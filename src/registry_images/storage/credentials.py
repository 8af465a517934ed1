"""Sources of registry credentials."""

import datetime
from abc import abstractmethod
from collections.abc import Iterable

import httpx
import structlog
from pydantic import SecretStr
from safir.datetime import current_datetime
from structlog.stdlib import BoundLogger

from ..exceptions import CredentialIssuanceError
from ..models.credential import (
    DEFAULT_USERNAME,
    RegistryCredential,
    RegistryPermission,
)


class CredentialProvider:
    """Hands out a registry credential for the current command.

    A credential is issued on first use and reused until it expires, so
    every registry call made by one command carries the same credential.
    """

    @abstractmethod
    def _issue(self) -> RegistryCredential: ...

    def __init__(self, logger: BoundLogger | None = None) -> None:
        self._logger = logger or structlog.get_logger(__name__)
        self._credential: RegistryCredential | None = None

    def get_credential(self) -> RegistryCredential:
        if self._credential is None or self._credential.is_expired():
            self._credential = self._issue()
        return self._credential


class StaticCredentialProvider(CredentialProvider):
    """Credential built from a fixed password."""

    def __init__(
        self,
        password: SecretStr,
        username: str = DEFAULT_USERNAME,
        logger: BoundLogger | None = None,
    ) -> None:
        super().__init__(logger)
        self._password = password
        self._username = username

    def _issue(self) -> RegistryCredential:
        return RegistryCredential(
            password=self._password, username=self._username
        )


class CredentialServiceProvider(CredentialProvider):
    """Requests short-lived credentials from a credential-issuing API.

    Parameters
    ----------
    http_client
        Client whose ``base_url`` is the credential service.
    api_token
        Bearer token for the credential service.
    domain
        Registry hostname the credential is for.
    expiration_minutes
        Requested credential lifetime.
    permissions
        Requested permissions.
    """

    def __init__(
        self,
        http_client: httpx.Client,
        api_token: SecretStr,
        domain: str,
        *,
        expiration_minutes: int = 5,
        permissions: Iterable[RegistryPermission] = (
            RegistryPermission.PULL,
            RegistryPermission.PUSH,
        ),
        username: str = DEFAULT_USERNAME,
        logger: BoundLogger | None = None,
    ) -> None:
        super().__init__(logger)
        self._http_client = http_client
        self._api_token = api_token
        self._domain = domain
        self._expiration_minutes = expiration_minutes
        self._permissions = frozenset(permissions)
        self._username = username

    def _issue(self) -> RegistryCredential:
        # Lifetime counts from before the request, not after.
        now = current_datetime(microseconds=True)
        r = self._http_client.post(
            f"/registries/{self._domain}/credentials",
            headers={
                "authorization": (
                    f"Bearer {self._api_token.get_secret_value()}"
                )
            },
            json={
                "expiration_minutes": self._expiration_minutes,
                "permissions": sorted(str(x) for x in self._permissions),
            },
        )
        if not r.is_success:
            raise CredentialIssuanceError.from_response(r, self._domain)
        password = r.json()["password"]
        self._logger.debug(
            f"Issued {self._expiration_minutes}-minute credential for "
            f"{self._domain}",
            permissions=sorted(self._permissions),
        )
        return RegistryCredential(
            password=SecretStr(password),
            username=self._username,
            permissions=self._permissions,
            expires=now
            + datetime.timedelta(minutes=self._expiration_minutes),
        )
