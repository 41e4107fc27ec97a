"""Base image lookup against the public chain id index."""

import logging
from typing import TYPE_CHECKING, Any

from ..core.types import Credentials
from ..exceptions import DecodeError
from ..models import CandidateImage, Repository, merge_repository
from .edn import parse_timestamp
from .repository import find_repository

if TYPE_CHECKING:
    from .client import LineageClient

logger = logging.getLogger(__name__)


def match_index_image(
    manifest_list: dict[str, Any], chain_id: str
) -> dict[str, Any] | None:
    """Pick the platform image of a manifest list that carries ``chain_id``."""
    for image in manifest_list.get("images") or []:
        if not isinstance(image, dict):
            continue
        if chain_id in (image.get("digestChainId"), image.get("diffIdChainId")):
            return image
    return None


async def index_images(
    client: "LineageClient", chain_id: str, credentials: Credentials
) -> list[CandidateImage]:
    """Resolve a chain id through the public index, then enrich its repository.

    Raises:
        QueryError: If the index or the repository lookup fails
    """
    manifest_lists = await client.get_index(chain_id)
    if not manifest_lists:
        return []

    manifest_list = manifest_lists[0]
    if not isinstance(manifest_list, dict) or not manifest_list.get("name"):
        raise DecodeError("Index entry without a repository name")

    image = match_index_image(manifest_list, chain_id)
    if image is None or not image.get("digest"):
        logger.debug("No platform image in %s matches %s", manifest_list["name"], chain_id)
        return []

    name = manifest_list["name"]
    candidate = CandidateImage(
        digest=image["digest"],
        created_at=parse_timestamp(image.get("createdAt")),
        tags=tuple(manifest_list.get("tags") or ()),
        repository=Repository(name=name, host=client.config.default_host),
    )
    repository = await find_repository(client, name, credentials)
    return [merge_repository(candidate, repository)]
