"""Image reference parsing."""

from dataclasses import dataclass

DEFAULT_REGISTRY = "registry-1.docker.io"
DOCKER_HUB_ALIASES = {"docker.io", "index.docker.io", "registry-1.docker.io"}


@dataclass(frozen=True)
class ImageReference:
    """Registry, repository and tag or digest of an image."""

    registry: str
    repository: str
    reference: str

    @property
    def base_url(self) -> str:
        scheme = "http" if self.registry.startswith(("localhost", "127.0.0.1")) else "https"
        return f"{scheme}://{self.registry}"


def parse_repository_tag(repo_tag: str) -> tuple[str, str]:
    """Split ``repository:tag`` into its components.

    The tag defaults to ``latest``; a registry port such as
    ``localhost:5000/app`` is not mistaken for a tag.

    Examples:
        repo, tag = parse_repository_tag("localhost:5000/myapp:latest")
        # ("localhost:5000/myapp", "latest")
    """
    name, sep, tag = repo_tag.rpartition(":")
    if sep and "/" not in tag:
        return name, tag or "latest"
    return repo_tag, "latest"


def parse_image_reference(image: str) -> ImageReference:
    """Parse an image reference like ``nginx``, ``ghcr.io/org/app:1.0`` or
    ``alpine@sha256:...``.

    Raises:
        ValueError: If the reference is empty
    """
    if not image:
        raise ValueError("Empty image reference")

    if "@" in image:
        name, reference = image.split("@", 1)
    else:
        name, reference = parse_repository_tag(image)

    parts = name.split("/", 1)
    first = parts[0]
    if len(parts) == 2 and ("." in first or ":" in first or first == "localhost"):
        registry, repository = first, parts[1]
    else:
        registry, repository = DEFAULT_REGISTRY, name

    if registry in DOCKER_HUB_ALIASES:
        registry = DEFAULT_REGISTRY
        if "/" not in repository:
            repository = f"library/{repository}"

    return ImageReference(registry=registry, repository=repository, reference=reference)
