"""Ordered layer digests for an image from a tarball, the daemon or a registry."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Optional

from ..core.types import RegistryConfig
from ..exceptions import ImageNotFoundError
from .daemon import daemon_diff_ids
from .reference import parse_image_reference
from .remote import RemoteImageClient
from .tarball import read_diff_ids

logger = logging.getLogger(__name__)

DigestStrategy = Callable[[str, RegistryConfig], Awaitable[list[str]]]


async def remote_diff_ids(image: str, config: RegistryConfig) -> list[str]:
    """Read diff ids through the registry API; empty when the image is unknown."""
    async with RemoteImageClient(parse_image_reference(image), config) as client:
        return await client.get_diff_ids()


DEFAULT_STRATEGIES: tuple[DigestStrategy, ...] = (daemon_diff_ids, remote_diff_ids)


async def digests_for_image(
    image: str,
    config: Optional[RegistryConfig] = None,
    strategies: Sequence[DigestStrategy] = DEFAULT_STRATEGIES,
) -> list[str]:
    """Return the ordered layer digests of an image.

    A path to an existing file is read as a ``docker save`` archive. Any
    other value is an image reference looked up by each strategy in turn;
    the first non-empty answer wins and errors are raised immediately.

    Raises:
        ImageNotFoundError: If no source knows the image
        ValidationError: If a tarball path is not a docker save archive
        RegistryError: If a registry answers unexpectedly
        TransportError: If a registry cannot be reached
    """
    config = config or RegistryConfig()

    path = Path(image)
    if path.is_file():
        return await asyncio.get_running_loop().run_in_executor(
            None, read_diff_ids, path
        )

    for strategy in strategies:
        digests = await strategy(image, config)
        if digests:
            logger.debug(
                "%s returned %d layers for %s",
                getattr(strategy, "__name__", strategy),
                len(digests),
                image,
            )
            return digests

    raise ImageNotFoundError(f"Image not found: {image}")
