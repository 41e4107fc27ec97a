"""Base Image Resolver - find the base images a container image was built from."""

__version__ = "0.1.0"

from .annotate import annotate
from .api import check_auth, detect, require_auth
from .core.types import Credentials, LineageConfig, RegistryConfig
from .detect import detect_base_images, layer_label, render_candidate, render_match
from .exceptions import (
    AuthError,
    DecodeError,
    ImageNotFoundError,
    QueryError,
    RegistryError,
    ResolverError,
    TransportError,
    ValidationError,
)
from .image.source import digests_for_image
from .models import (
    AnnotatedCandidate,
    Annotations,
    Badge,
    CandidateImage,
    LayerMatch,
    ManifestListRef,
    Repository,
    SourceCommit,
    VulnerabilityReport,
)
from .query.client import LineageClient
from .reconcile import reconcile
from .utils.digest import chain_id, chain_ids

__all__ = [
    # Operations
    "annotate",
    "chain_id",
    "chain_ids",
    "check_auth",
    "detect",
    "detect_base_images",
    "digests_for_image",
    "layer_label",
    "reconcile",
    "render_candidate",
    "render_match",
    "require_auth",
    # Clients and configuration
    "Credentials",
    "LineageClient",
    "LineageConfig",
    "RegistryConfig",
    # Models
    "AnnotatedCandidate",
    "Annotations",
    "Badge",
    "CandidateImage",
    "LayerMatch",
    "ManifestListRef",
    "Repository",
    "SourceCommit",
    "VulnerabilityReport",
    # Exceptions
    "AuthError",
    "DecodeError",
    "ImageNotFoundError",
    "QueryError",
    "RegistryError",
    "ResolverError",
    "TransportError",
    "ValidationError",
]
