"""Client for the OCI distribution API of a container registry."""

import httpx
import structlog
from structlog.stdlib import BoundLogger

from ..exceptions import (
    CatalogUnavailableError,
    DigestMissingError,
    GarbageCollectionError,
    TagDeletionError,
    TagListUnavailableError,
    TagResolutionError,
)
from ..models.credential import RegistryCredential
from ..models.image import DeletedTag

MANIFEST_ACCEPT = ", ".join(
    (
        "application/vnd.oci.image.manifest.v1+json",
        "application/vnd.docker.distribution.manifest.v2+json",
    )
)
DIGEST_HEADER = "Docker-Content-Digest"


class RegistryClient:
    """Lists, resolves, and deletes tags in one registry.

    Note that these are synchronous.  That's on purpose.  Each call is
    made and awaited before the next, and registries generally rate-limit
    requests in any event, so blasting out a thousand DELETE requests in
    parallel is not going to work as well as you might hope.

    The registry location is fixed by ``http_client.base_url``; the
    credential is passed to every call.

    Parameters
    ----------
    http_client
        Client whose ``base_url`` is the registry.
    logger
        Logger to use for messages.
    """

    def __init__(
        self, http_client: httpx.Client, logger: BoundLogger | None = None
    ) -> None:
        self._http_client = http_client
        self._logger = logger or structlog.get_logger(__name__)

    @property
    def base_url(self) -> str:
        return str(self._http_client.base_url).rstrip("/")

    def list_repositories(self, credential: RegistryCredential) -> list[str]:
        """List every repository in the registry catalog."""
        r = self._request("GET", "/v2/_catalog", credential)
        if not r.is_success:
            raise CatalogUnavailableError.from_response(r, self.base_url)
        repositories = r.json().get("repositories") or []
        self._logger.debug(f"Found {len(repositories)} repositories")
        return repositories

    def list_tags(
        self, repository: str, credential: RegistryCredential
    ) -> list[str]:
        """List the tags of one repository, digest-form tags included."""
        r = self._request("GET", f"/v2/{repository}/tags/list", credential)
        if not r.is_success:
            raise TagListUnavailableError.from_response(r, repository)
        tags = r.json().get("tags") or []
        self._logger.debug(f"Found {len(tags)} tags for {repository}")
        return tags

    def resolve_digest(
        self, repository: str, tag: str, credential: RegistryCredential
    ) -> str:
        """Find the digest of the manifest a tag points to.

        Only the headers are fetched.

        Raises
        ------
        TagResolutionError
            Raised if the registry does not answer with success.
        DigestMissingError
            Raised if the answer carries no digest header.
        """
        r = self._request(
            "HEAD",
            f"/v2/{repository}/manifests/{tag}",
            credential,
            accept=MANIFEST_ACCEPT,
        )
        if not r.is_success:
            raise TagResolutionError.from_response(r, f"{repository}:{tag}")
        digest = r.headers.get(DIGEST_HEADER)
        if not digest:
            raise DigestMissingError(repository, tag)
        return digest

    def delete_tag(
        self,
        repository: str,
        tag: str,
        credential: RegistryCredential,
        *,
        dry_run: bool = False,
    ) -> DeletedTag:
        """Delete a tag by deleting the manifest it resolves to.

        https://distribution.github.io/distribution/spec/api/#deleting-an-image

        The registry only accepts deletes addressed by digest, which also
        removes every other tag aliasing that digest.
        """
        digest = self.resolve_digest(repository, tag, credential)
        dry = " (not really)" if dry_run else ""
        if not dry_run:
            r = self._request(
                "DELETE",
                f"/v2/{repository}/manifests/{digest}",
                credential,
                accept=MANIFEST_ACCEPT,
            )
            if not r.is_success:
                raise TagDeletionError(
                    repository,
                    r.status_code,
                    r.reason_phrase,
                    tag=tag,
                    digest=digest,
                )
        self._logger.info(
            f'Deleted tag "{tag}" (digest: {digest}) for image '
            f"{repository}{dry}",
            repository=repository,
            tag=tag,
            digest=digest,
        )
        return DeletedTag(repository=repository, tag=tag, digest=digest)

    def collect_garbage(self, credential: RegistryCredential) -> None:
        """Ask the registry to reclaim storage of unreferenced manifests.

        Raises
        ------
        GarbageCollectionError
            Raised if the registry refuses.
        """
        r = self._request(
            "PUT",
            "/v2/gc/manifests",
            credential,
            headers={"content-type": "application/json"},
        )
        if not r.is_success:
            raise GarbageCollectionError.from_response(r, self.base_url)
        self._logger.debug("Triggered registry garbage collection")

    def _request(
        self,
        method: str,
        path: str,
        credential: RegistryCredential,
        *,
        accept: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        req_headers = {"authorization": credential.authorization}
        if accept:
            req_headers["accept"] = accept
        if headers:
            req_headers.update(headers)
        self._logger.debug(f"{method} {path}")
        return self._http_client.request(method, path, headers=req_headers)
