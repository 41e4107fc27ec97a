"""Per-layer base image detection and text rendering."""

import logging
from collections.abc import AsyncIterator, Iterable
from datetime import datetime, timezone
from typing import Optional

import humanize
from rich.markup import escape

from .annotate import annotate
from .core.types import ANONYMOUS, Credentials
from .models import AnnotatedCandidate, LayerMatch
from .query.client import LineageClient
from .reconcile import reconcile
from .utils.digest import next_chain_id

logger = logging.getLogger(__name__)


def layer_label(index: int) -> str:
    """Label for the prefix ending at zero-based layer ``index``."""
    if index == 0:
        return "layer 0"
    return f"layers 0-{index}"


async def detect_base_images(
    digests: Iterable[str],
    client: LineageClient,
    credentials: Credentials = ANONYMOUS,
) -> AsyncIterator[LayerMatch]:
    """Yield base image matches for every layer prefix, shortest first.

    Prefixes without candidates are skipped. The first query error ends the
    iteration.

    Raises:
        QueryError: If the lineage store or index query fails
        ValueError: If a layer digest is malformed
    """
    chain: Optional[str] = None
    curator = client.curator(credentials)
    for index, digest in enumerate(digests):
        chain = next_chain_id(chain, digest)
        label = layer_label(index)
        logger.debug("Finding matching base images for %s (%s)", label, chain)

        images = reconcile(await client.resolve(chain, credentials), curator)
        if not images:
            continue

        yield LayerMatch(
            index=index,
            label=label,
            chain_id=chain,
            candidates=tuple(
                annotate(image, client.config.source_host) for image in images
            ),
        )


def relative_age(created_at: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Render a creation time as e.g. ``3 days ago``."""
    if created_at is None:
        return "unknown age"
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return humanize.naturaltime(now - created_at)


def _style(text: str, style: str, markup: bool) -> str:
    if not markup:
        return text
    return f"[{style}]{escape(text)}[/{style}]"


def render_candidate(
    candidate: AnnotatedCandidate,
    now: Optional[datetime] = None,
    markup: bool = False,
) -> str:
    """Render one candidate as a two or three line block.

    With ``markup`` the text carries rich console markup.
    """
    image, notes = candidate.image, candidate.annotations

    name = image.repository.display_name if image.repository else "<unknown>"
    line = "  " + _style(name, "green", markup)
    if image.tags:
        line += ":" + ", ".join(_style(tag, "cyan", markup) for tag in image.tags)
    if notes.badge:
        line += " " + _style(notes.badge, "bold white on blue", markup)
    for warning in (notes.unsupported_tag, notes.tag_moved):
        if warning:
            line += " " + _style(warning, "bold white on red", markup)

    details = "  " + image.digest
    if notes.vulnerabilities:
        details += " " + _style(notes.vulnerabilities, "bold white on red", markup)
    details += " " + relative_age(image.created_at, now)

    lines = [line, details]
    if notes.commit_url:
        lines.append("  " + notes.commit_url)
    return "\n".join(lines)


def render_match(
    match: LayerMatch, now: Optional[datetime] = None, markup: bool = False
) -> str:
    """Render every candidate of a layer prefix under its label."""
    blocks = "\n\n".join(
        render_candidate(candidate, now, markup) for candidate in match.candidates
    )
    return f"Base image for {match.label}\n{blocks}"
