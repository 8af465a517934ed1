"""Models for repositories, tags, and the results of deleting them."""

from dataclasses import asdict, dataclass, field
from enum import StrEnum
from typing import Self

from ..exceptions import InvalidImageReferenceError

DIGEST_PREFIXES = ("sha256",)
TAG_SEPARATOR = ":"

type JSONRepositoryTags = dict[str, str | list[str]]


def is_digest_tag(
    tag: str, prefixes: tuple[str, ...] = DIGEST_PREFIXES
) -> bool:
    """Tags named after a content hash are already content-addressed.

    Push tooling leaves these behind (``sha256-abcdef...``); they are hidden
    from listings unless asked for.
    """
    return tag.startswith(prefixes)


@dataclass(frozen=True)
class ImageReference:
    """A user-supplied ``repository[:tag]`` reference."""

    repository: str
    tag: str | None = None

    @classmethod
    def parse(cls, image: str) -> Self:
        repository, sep, tag = image.partition(TAG_SEPARATOR)
        if not repository:
            raise InvalidImageReferenceError(
                f"No repository in image reference '{image}'"
            )
        if sep and not tag:
            raise InvalidImageReferenceError(
                f"Empty tag in image reference '{image}'"
            )
        return cls(repository=repository, tag=tag or None)

    def __str__(self) -> str:
        if self.tag is None:
            return self.repository
        return f"{self.repository}{TAG_SEPARATOR}{self.tag}"


@dataclass
class RepositoryTags:
    """A repository and the tags it holds, as handed to rendering."""

    name: str
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> JSONRepositoryTags:
        return asdict(self)

    def without_digest_tags(
        self, prefixes: tuple[str, ...] = DIGEST_PREFIXES
    ) -> Self:
        return type(self)(
            name=self.name,
            tags=[x for x in self.tags if not is_digest_tag(x, prefixes)],
        )


@dataclass(frozen=True)
class DeletedTag:
    """A tag that was deleted, and the digest it pointed to."""

    repository: str
    tag: str
    digest: str


class FailureKind(StrEnum):
    """Why deleting a single tag failed."""

    TAG_RESOLUTION_FAILED = "tag_resolution_failed"
    DIGEST_MISSING = "digest_missing"
    TAG_DELETION_FAILED = "tag_deletion_failed"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class DeletionFailure:
    """One tag that could not be deleted during a batch."""

    tag: str
    kind: FailureKind
    detail: str

    def __str__(self) -> str:
        return (
            f"Error when deleting tag {self.tag} ({self.kind}): {self.detail}"
        )


@dataclass
class DeletionOutcome:
    """What a delete command did.

    Every attempted tag shows up exactly once, either in ``deleted`` or in
    ``failures``.
    """

    repository: str
    deleted: list[DeletedTag] = field(default_factory=list)
    failures: list[DeletionFailure] = field(default_factory=list)
    garbage_collected: bool = False
    dry_run: bool = False

    @property
    def attempted(self) -> int:
        return len(self.deleted) + len(self.failures)

    @property
    def failed(self) -> bool:
        return bool(self.failures)
