"""Lists repositories and their tags."""

import re
from collections.abc import Iterable

import structlog
from structlog.stdlib import BoundLogger

from ..models.image import DIGEST_PREFIXES, RepositoryTags
from ..storage.credentials import CredentialProvider
from ..storage.registry import RegistryClient


class ImageLister:
    """Enumerate the images in a registry.

    Unlike deletion, listing has no partial-success mode: it is read-only,
    so any error aborts the whole listing.
    """

    def __init__(
        self,
        client: RegistryClient,
        credentials: CredentialProvider,
        logger: BoundLogger | None = None,
        *,
        digest_prefixes: Iterable[str] = DIGEST_PREFIXES,
    ) -> None:
        self._client = client
        self._credentials = credentials
        self._logger = logger or structlog.get_logger(__name__)
        self._digest_prefixes = tuple(digest_prefixes)

    def list_images(
        self, filter: str | None = None, *, include_digests: bool = False
    ) -> list[RepositoryTags]:
        """List repositories matching ``filter`` and their tags.

        Parameters
        ----------
        filter
            Regular expression searched for in each repository name, after
            leading slashes are stripped from the name.  `None` matches
            every repository.
        include_digests
            Keep tags whose name starts with a hash-algorithm prefix.

        Returns
        -------
        list of RepositoryTags
            One entry per matching repository, in catalog order.
        """
        regex = re.compile(filter) if filter else None
        credential = self._credentials.get_credential()
        results: list[RepositoryTags] = []
        for repo in self._client.list_repositories(credential):
            stripped = repo.lstrip("/")
            if regex is not None and not regex.search(stripped):
                continue
            tags = self._client.list_tags(stripped, credential)
            entry = RepositoryTags(name=stripped, tags=tags)
            if not include_digests:
                entry = entry.without_digest_tags(self._digest_prefixes)
            results.append(entry)
        self._logger.debug(
            f"Listed {len(results)} repositories",
            filter=filter,
            include_digests=include_digests,
        )
        return results
