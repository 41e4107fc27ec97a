"""Repository metadata lookup used to enrich index candidates."""

from typing import TYPE_CHECKING

from ..core.types import ANONYMOUS, Credentials
from ..models import Repository
from .edn import decode_repository, repository_query

if TYPE_CHECKING:
    from .client import LineageClient


async def find_repository(
    client: "LineageClient", name: str, credentials: Credentials = ANONYMOUS
) -> Repository | None:
    """Return the first repository named exactly ``name``, or None.

    Raises:
        QueryError: If the lineage store query fails
    """
    for entity in await client.query(repository_query(name), credentials):
        repository = decode_repository(entity)
        if repository is not None:
            return repository
    return None
