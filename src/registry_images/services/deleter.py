"""Deletes one tag or every tag of a repository, then collects garbage."""

import httpx
import structlog
from structlog.stdlib import BoundLogger

from ..exceptions import (
    BatchDeletionError,
    DigestMissingError,
    GarbageCollectionError,
    RegistryError,
    TagDeletionError,
    TagResolutionError,
)
from ..models.credential import RegistryCredential
from ..models.image import (
    DeletionFailure,
    DeletionOutcome,
    FailureKind,
    ImageReference,
)
from ..storage.credentials import CredentialProvider
from ..storage.registry import RegistryClient


def _failure_kind(exc: Exception) -> FailureKind:
    match exc:
        case DigestMissingError():
            return FailureKind.DIGEST_MISSING
        case TagResolutionError():
            return FailureKind.TAG_RESOLUTION_FAILED
        case TagDeletionError():
            return FailureKind.TAG_DELETION_FAILED
        case _:
            return FailureKind.TRANSPORT_ERROR


class ImageDeleter:
    """Removes images from a registry.

    A reference with a tag (``repo:tag``) deletes just that tag, and any
    failure is raised at once.  A bare repository name deletes every tag in
    it; failures are collected per tag and raised together, as a
    `BatchDeletionError`, once every tag has been tried.

    Garbage collection is requested after any delete command in which
    everything succeeded.  It is best-effort: a refusal is only logged.

    Parameters
    ----------
    client
        Registry client.
    credentials
        Source of the credential used for every call of a command.
    logger
        Logger to use for messages.
    dry_run
        Resolve digests, but delete nothing and skip garbage collection.
    """

    def __init__(
        self,
        client: RegistryClient,
        credentials: CredentialProvider,
        logger: BoundLogger | None = None,
        *,
        dry_run: bool = False,
    ) -> None:
        self._client = client
        self._credentials = credentials
        self._logger = logger or structlog.get_logger(__name__)
        self._dry_run = dry_run

    def delete(self, image: str) -> DeletionOutcome:
        """Delete ``repository:tag``, or every tag of ``repository``."""
        ref = ImageReference.parse(image)
        credential = self._credentials.get_credential()
        if ref.tag is None:
            outcome = self._delete_repository(ref.repository, credential)
        else:
            outcome = self._delete_tag(ref.repository, ref.tag, credential)
        if outcome.deleted:
            self._collect_garbage(outcome, credential)
        return outcome

    def _delete_tag(
        self, repository: str, tag: str, credential: RegistryCredential
    ) -> DeletionOutcome:
        deleted = self._client.delete_tag(
            repository, tag, credential, dry_run=self._dry_run
        )
        return DeletionOutcome(
            repository=repository, deleted=[deleted], dry_run=self._dry_run
        )

    def _delete_repository(
        self, repository: str, credential: RegistryCredential
    ) -> DeletionOutcome:
        outcome = DeletionOutcome(repository=repository, dry_run=self._dry_run)
        tags = self._client.list_tags(repository, credential)
        if not tags:
            self._logger.info(f"No tags found for image {repository}")
            return outcome
        for tag in tags:
            try:
                deleted = self._client.delete_tag(
                    repository, tag, credential, dry_run=self._dry_run
                )
            except (RegistryError, httpx.TransportError) as exc:
                self._logger.debug(
                    f"Could not delete {repository}:{tag}: {exc}"
                )
                outcome.failures.append(
                    DeletionFailure(
                        tag=tag, kind=_failure_kind(exc), detail=str(exc)
                    )
                )
                continue
            outcome.deleted.append(deleted)
        dry = " (not really)" if self._dry_run else ""
        self._logger.info(
            f"Deleted {len(outcome.deleted)} of {outcome.attempted} tags "
            f"for image {repository}{dry}"
        )
        if outcome.failures:
            raise BatchDeletionError(repository, outcome.failures)
        return outcome

    def _collect_garbage(
        self, outcome: DeletionOutcome, credential: RegistryCredential
    ) -> None:
        if self._dry_run:
            return
        self._logger.info("Finalizing the delete. This may take a few seconds")
        try:
            self._client.collect_garbage(credential)
        except (GarbageCollectionError, httpx.TransportError) as exc:
            self._logger.warning(
                f"Garbage collection after deleting {outcome.repository} "
                f"failed: {exc}"
            )
            return
        outcome.garbage_collected = True
