"""Custom exceptions for the base image resolver."""


class ResolverError(Exception):
    """Base exception for all resolver errors."""

    pass


class QueryError(ResolverError):
    """Raised when a lineage store or index query fails."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class TransportError(QueryError):
    """Raised when unable to connect to a remote service."""

    pass


class DecodeError(QueryError):
    """Raised when a response body does not match the expected schema."""

    pass


class AuthError(ResolverError):
    """Raised when workspace credentials are rejected."""

    pass


class RegistryError(ResolverError):
    """Raised when layer digests cannot be read from a registry or daemon."""

    pass


class ImageNotFoundError(RegistryError):
    """Raised when no image source knows the requested image."""

    pass


class ValidationError(ResolverError):
    """Raised when a docker save tarball is malformed."""

    pass
