"""Short-lived credentials for the image registry."""

import base64
import datetime
from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import SecretStr
from safir.datetime import current_datetime

DEFAULT_USERNAME = "v1"


class RegistryPermission(StrEnum):
    """What a registry credential allows its bearer to do."""

    PULL = "pull"
    PUSH = "push"


@dataclass
class RegistryCredential:
    """Password usable as a Basic-Auth token against the registry.

    Held only for the duration of one command and never written anywhere.
    An ``expires`` of `None` means the credential does not expire (a static
    password from configuration).
    """

    password: SecretStr
    username: str = DEFAULT_USERNAME
    permissions: frozenset[RegistryPermission] = field(
        default_factory=lambda: frozenset(RegistryPermission)
    )
    expires: datetime.datetime | None = None

    @property
    def authorization(self) -> str:
        """Value for the ``Authorization`` header of a registry request."""
        raw = f"{self.username}:{self.password.get_secret_value()}"
        return "Basic " + base64.b64encode(raw.encode()).decode()

    def is_expired(self, now: datetime.datetime | None = None) -> bool:
        if self.expires is None:
            return False
        if now is None:
            now = current_datetime(microseconds=True)
        return now >= self.expires
