"""Digest calculation, validation and chain identifier utilities."""

import hashlib
import re
from collections.abc import Iterable
from typing import Union

# Regex pattern for valid digest format (algorithm:hex)
DIGEST_PATTERN = re.compile(r"^[a-z0-9]+:[a-f0-9]+$")


def calculate_digest(data: Union[bytes, bytearray], algorithm: str = "sha256") -> str:
    """Calculate digest of data.

    Args:
        data: Data to hash
        algorithm: Hash algorithm (default: sha256)

    Returns:
        Digest string in format "algorithm:hex"

    Raises:
        ValueError: If algorithm is not supported
        ValueError: If data is not bytes-like
    """
    if not isinstance(data, (bytes, bytearray)):
        raise ValueError("Data must be bytes or bytearray")

    if algorithm not in hashlib.algorithms_available:
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    hasher = hashlib.new(algorithm)
    hasher.update(data)
    return f"{algorithm}:{hasher.hexdigest()}"


def validate_digest(digest: str) -> bool:
    """Validate digest format.

    Args:
        digest: Digest string to validate

    Returns:
        True if valid digest format
    """
    if not isinstance(digest, str):
        return False

    if not DIGEST_PATTERN.match(digest):
        return False

    # Check if algorithm is valid
    algorithm, _ = digest.split(":", 1)
    return algorithm in ["sha256", "sha512", "sha1", "md5"]


def next_chain_id(previous: str | None, digest: str) -> str:
    """Fold one more layer digest into a running chain identifier.

    Args:
        previous: Chain identifier of the preceding prefix, or None for the
            first layer
        digest: Digest of the next layer

    Returns:
        Chain identifier of the extended prefix

    Raises:
        ValueError: If digest format is invalid
    """
    if not validate_digest(digest):
        raise ValueError(f"Invalid digest format: {digest}")

    if previous is None:
        return digest

    return calculate_digest(f"{previous} {digest}".encode("utf-8"))


def chain_ids(digests: Iterable[str]) -> list[str]:
    """Derive one chain identifier per prefix of an ordered layer list.

    Element ``k`` identifies ``digests[0..k]``: the first element is the
    first digest itself and every following element is
    ``sha256(previous + " " + digest)``.

    Args:
        digests: Ordered layer digests (diff ids), base layer first

    Returns:
        Chain identifiers, one per layer, in the same order

    Raises:
        ValueError: If any digest format is invalid

    Examples:
        ids = chain_ids(["sha256:aaa...", "sha256:bbb..."])
        # ids[0] == "sha256:aaa..."
    """
    result: list[str] = []
    current: str | None = None
    for digest in digests:
        current = next_chain_id(current, digest)
        result.append(current)
    return result


def chain_id(digests: Iterable[str]) -> str:
    """Return the chain identifier of the complete layer list.

    Raises:
        ValueError: If digests is empty or contains an invalid digest
    """
    ids = chain_ids(digests)
    if not ids:
        raise ValueError("Cannot derive a chain id from an empty layer list")
    return ids[-1]
