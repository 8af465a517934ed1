"""Exceptions raised while talking to a container registry."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, ClassVar, Self

import httpx

if TYPE_CHECKING:
    from .models.image import DeletionFailure

__all__ = [
    "BatchDeletionError",
    "CatalogUnavailableError",
    "CredentialIssuanceError",
    "DigestMissingError",
    "GarbageCollectionError",
    "InvalidImageReferenceError",
    "RegistryError",
    "RegistryResponseError",
    "TagDeletionError",
    "TagListUnavailableError",
    "TagResolutionError",
]


class RegistryError(Exception):
    """Base exception for registry operations."""


class InvalidImageReferenceError(ValueError):
    """An image reference could not be parsed."""


class RegistryResponseError(RegistryError):
    """The registry (or credential service) answered with a non-2xx status.

    Parameters
    ----------
    target
        What the operation was aimed at (repository, tag, domain).
    status
        HTTP status code of the response.
    status_text
        HTTP reason phrase of the response.
    """

    operation: ClassVar[str] = "talk to registry"

    def __init__(
        self, target: str, status: int, status_text: str = ""
    ) -> None:
        self.target = target
        self.status = status
        self.status_text = status_text
        msg = f"Failed to {self.operation} for {target}: {status}"
        if status_text:
            msg += f" {status_text}"
        super().__init__(msg)

    @classmethod
    def from_response(cls, response: httpx.Response, target: str) -> Self:
        """Build the exception from an unsuccessful response."""
        return cls(target, response.status_code, response.reason_phrase)


class CatalogUnavailableError(RegistryResponseError):
    """The repository catalog could not be listed."""

    operation = "fetch repository catalog"


class TagListUnavailableError(RegistryResponseError):
    """The tags of a repository could not be listed."""

    operation = "fetch tags"


class TagResolutionError(RegistryResponseError):
    """The manifest HEAD request for a tag did not succeed."""

    operation = "retrieve tag info"


class GarbageCollectionError(RegistryResponseError):
    """The registry refused to start garbage collection.

    This is never fatal; callers log it as a warning.
    """

    operation = "trigger garbage collection"


class CredentialIssuanceError(RegistryResponseError):
    """The credential service did not issue a registry credential."""

    operation = "issue registry credentials"


class DigestMissingError(RegistryError):
    """A successful manifest HEAD response had no digest header."""

    def __init__(self, repository: str, tag: str) -> None:
        self.repository = repository
        self.tag = tag
        super().__init__(f'Digest not found for tag "{tag}" of {repository}')


class TagDeletionError(RegistryResponseError):
    """The manifest DELETE request for a resolved digest did not succeed."""

    operation = "delete tag"

    def __init__(
        self,
        target: str,
        status: int,
        status_text: str = "",
        *,
        tag: str = "",
        digest: str = "",
    ) -> None:
        self.tag = tag
        self.digest = digest
        super().__init__(target, status, status_text)

    def __str__(self) -> str:
        msg = (
            f'Failed to delete tag "{self.tag}" (digest: {self.digest}) '
            f"of {self.target}: {self.status}"
        )
        if self.status_text:
            msg += f" {self.status_text}"
        return msg


class BatchDeletionError(RegistryError):
    """One or more tags of a repository could not be deleted.

    Built from the structured list of per-tag failures, which stays
    available as ``failures``.
    """

    def __init__(
        self, repository: str, failures: Sequence[DeletionFailure]
    ) -> None:
        self.repository = repository
        self.failures = list(failures)
        details = "\n".join(str(x) for x in self.failures)
        super().__init__(
            f"Failed to delete some tags of {repository}:\n{details}"
        )

    @property
    def failed_tags(self) -> list[str]:
        return [x.tag for x in self.failures]

