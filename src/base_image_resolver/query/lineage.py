"""Base image lookup against the tenant or shared lineage store."""

from typing import TYPE_CHECKING

from ..core.types import Credentials
from ..models import CandidateImage
from .edn import base_image_query, decode_image

if TYPE_CHECKING:
    from .client import LineageClient


async def lineage_store_images(
    client: "LineageClient", chain_id: str, credentials: Credentials
) -> list[CandidateImage]:
    """Images whose diff or blob chain id matches, one per result row."""
    entities = await client.query(base_image_query(chain_id), credentials)
    return [decode_image(entity) for entity in entities]
