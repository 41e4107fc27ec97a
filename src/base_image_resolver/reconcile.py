"""De-duplication of candidate rows returned for one chain identifier."""

import logging
from collections.abc import Iterable

from .models import CandidateImage

logger = logging.getLogger(__name__)


def reconcile(
    rows: Iterable[CandidateImage], authoritative_team: str
) -> list[CandidateImage]:
    """Collapse rows describing the same image digest into one.

    Rows are kept in order of first occurrence. When a later row repeats a
    digest it replaces the kept row in place only if it was contributed by
    ``authoritative_team``; otherwise it is dropped.

    Args:
        rows: Candidate rows in the order the store returned them
        authoritative_team: Team id whose rows win digest collisions

    Returns:
        Candidates with at most one entry per digest
    """
    images: list[CandidateImage] = []
    for row in rows:
        for index, existing in enumerate(images):
            if existing.digest == row.digest:
                if row.team_id == authoritative_team:
                    images[index] = row
                else:
                    logger.debug(
                        "Dropping %s from team %s", row.digest, row.team_id
                    )
                break
        else:
            images.append(row)
    return images
