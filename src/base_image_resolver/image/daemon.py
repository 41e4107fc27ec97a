"""Layer diff ids from the local Docker daemon."""

import asyncio
import json
import logging
import shutil

from ..core.types import RegistryConfig

logger = logging.getLogger(__name__)


async def daemon_diff_ids(image: str, config: RegistryConfig) -> list[str]:
    """Return rootfs layers of a locally present image.

    An empty list means the docker CLI is unavailable or the daemon does not
    have the image.
    """
    binary = shutil.which(config.docker_binary)
    if binary is None:
        logger.debug("%s not found on PATH", config.docker_binary)
        return []

    process = await asyncio.create_subprocess_exec(
        binary,
        "image",
        "inspect",
        "--format",
        "{{json .RootFS.Layers}}",
        image,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(
            process.communicate(), timeout=config.timeout
        )
    except TimeoutError:
        process.kill()
        await process.wait()
        logger.debug("docker image inspect %s timed out", image)
        return []

    if process.returncode != 0:
        logger.debug("Image %s not in local daemon: %s", image, stderr.decode().strip())
        return []

    try:
        layers = json.loads(stdout.decode() or "null")
    except json.JSONDecodeError:
        logger.debug("Unexpected docker inspect output for %s", image)
        return []
    return [str(layer) for layer in layers or []]
