"""Trust and drift annotations derived from candidate images."""

from .core.types import DEFAULT_REPOSITORY_HOST
from .models import AnnotatedCandidate, Annotations, Badge, CandidateImage

SPONSORED_OSS = "Sponsored OSS"
VERIFIED_PUBLISHER = "Verified Publisher"
DOCKER_OFFICIAL_IMAGE = "Docker Official Image"
UNSUPPORTED_TAG = "unsupported tag"
TAG_MOVED = "tag moved"


def badge(image: CandidateImage) -> str | None:
    """Return the content badge of the image's repository, if any."""
    repository = image.repository
    if repository is None:
        return None
    if repository.badge is Badge.OPEN_SOURCE:
        return SPONSORED_OSS
    if repository.badge is Badge.VERIFIED_PUBLISHER:
        return VERIFIED_PUBLISHER
    if repository.host == DEFAULT_REPOSITORY_HOST and "/" not in repository.name:
        return DOCKER_OFFICIAL_IMAGE
    return None


def unsupported_tag(image: CandidateImage) -> str | None:
    """Warn when none of the image's tags is on the repository's supported list."""
    repository = image.repository
    if repository is None or not repository.supported_tags or not image.tags:
        return None
    if all(tag not in repository.supported_tags for tag in image.tags):
        return UNSUPPORTED_TAG
    return None


def tag_moved(image: CandidateImage) -> str | None:
    """Warn when the image's tags now point at a different digest."""
    bound = image.bound_tags()
    if not bound:
        return None
    if any(tag in bound for tag in image.tags):
        return None
    return TAG_MOVED


def vulnerabilities(image: CandidateImage) -> str | None:
    """Summarise the first vulnerability report, e.g. ``C2 M5``."""
    if not image.reports:
        return None
    report = image.reports[0]
    counts = [
        ("C", report.critical),
        ("H", report.high),
        ("M", report.medium),
        ("L", report.low),
    ]
    parts = [f"{letter}{count}" for letter, count in counts if count > 0]
    return " ".join(parts) or None


def commit_url(image: CandidateImage, host: str = "https://github.com") -> str | None:
    """Link to the source the image was built from."""
    commit = image.commit
    if commit is None or not commit.sha:
        return None
    url = f"{host.rstrip('/')}/{commit.org}/{commit.repo}"
    if commit.path:
        return f"{url}/blob/{commit.sha}/{commit.path.lstrip('/')}"
    return f"{url}/commit/{commit.sha}"


def annotate(image: CandidateImage, source_host: str = "https://github.com") -> AnnotatedCandidate:
    """Derive every annotation for one candidate."""
    return AnnotatedCandidate(
        image=image,
        annotations=Annotations(
            badge=badge(image),
            unsupported_tag=unsupported_tag(image),
            tag_moved=tag_moved(image),
            vulnerabilities=vulnerabilities(image),
            commit_url=commit_url(image, source_host),
        ),
    )
