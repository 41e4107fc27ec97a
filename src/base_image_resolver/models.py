"""Data models for base image candidates."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from .core.types import DEFAULT_REPOSITORY_HOST


class Badge(Enum):
    """Docker Hub content classification of a repository."""

    OPEN_SOURCE = "open_source"
    VERIFIED_PUBLISHER = "verified_publisher"

    @classmethod
    def parse(cls, value: str | None) -> "Badge | None":
        """Map a wire value to a badge; unknown values mean no badge."""
        for badge in cls:
            if badge.value == value:
                return badge
        return None


@dataclass(frozen=True)
class Repository:
    """Repository that owns a candidate image."""

    name: str
    host: str = DEFAULT_REPOSITORY_HOST
    badge: Badge | None = None
    supported_tags: tuple[str, ...] = ()

    @property
    def display_name(self) -> str:
        if self.host == DEFAULT_REPOSITORY_HOST:
            return self.name
        return f"{self.host}/{self.name}"


@dataclass(frozen=True)
class VulnerabilityReport:
    """Vulnerability counts per severity."""

    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    unspecified: int = 0


@dataclass(frozen=True)
class SourceCommit:
    """Git commit an image was built from."""

    org: str
    repo: str
    sha: str
    path: str | None = None


@dataclass(frozen=True)
class ManifestListRef:
    """Manifest list that includes a candidate image."""

    digest: str
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class CandidateImage:
    """Base image record resolved for one chain identifier."""

    digest: str
    created_at: datetime | None = None
    team_id: str | None = None
    tags: tuple[str, ...] = ()
    tag_bindings: tuple[str, ...] = ()
    manifest_lists: tuple[ManifestListRef, ...] = ()
    repository: Repository | None = None
    reports: tuple[VulnerabilityReport, ...] = ()
    commit: SourceCommit | None = None

    def bound_tags(self) -> list[str]:
        """Tag names currently pointing at this digest, directly or via a manifest list."""
        names: list[str] = []
        for name in self.tag_bindings:
            if name not in names:
                names.append(name)
        for manifest_list in self.manifest_lists:
            for name in manifest_list.tags:
                if name not in names:
                    names.append(name)
        return names


def merge_repository(
    candidate: CandidateImage, repository: Repository | None
) -> CandidateImage:
    """Substitute the candidate's repository when enrichment found one."""
    if repository is None:
        return candidate
    return replace(candidate, repository=repository)


@dataclass(frozen=True)
class Annotations:
    """Display facts derived from a candidate."""

    badge: str | None = None
    unsupported_tag: str | None = None
    tag_moved: str | None = None
    vulnerabilities: str | None = None
    commit_url: str | None = None


@dataclass(frozen=True)
class AnnotatedCandidate:
    """Candidate paired with its annotations."""

    image: CandidateImage
    annotations: Annotations = field(default_factory=Annotations)


@dataclass(frozen=True)
class LayerMatch:
    """Base images found for one layer prefix."""

    index: int
    label: str
    chain_id: str
    candidates: tuple[AnnotatedCandidate, ...]
