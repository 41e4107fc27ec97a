"""Tests for candidate de-duplication."""

from base_image_resolver.models import CandidateImage, Repository
from base_image_resolver.reconcile import reconcile
from tests.fakes import CURATOR, make_digest

DIGEST_A = make_digest("a")
DIGEST_B = make_digest("b")


def row(digest, team, name="alpine"):
    return CandidateImage(digest=digest, team_id=team, repository=Repository(name=name))


def test_distinct_digests_are_kept_in_order():
    rows = [row(DIGEST_A, "T1"), row(DIGEST_B, "T2")]
    assert reconcile(rows, CURATOR) == rows


def test_authoritative_row_wins_when_second():
    ingested = row(DIGEST_A, "T1", name="mirror/alpine")
    curated = row(DIGEST_A, CURATOR)
    assert reconcile([ingested, curated], CURATOR) == [curated]


def test_authoritative_row_wins_when_first():
    ingested = row(DIGEST_A, "T1", name="mirror/alpine")
    curated = row(DIGEST_A, CURATOR)
    assert reconcile([curated, ingested], CURATOR) == [curated]


def test_non_authoritative_duplicates_are_dropped():
    first = row(DIGEST_A, "T1")
    second = row(DIGEST_A, "T2", name="other")
    assert reconcile([first, second], CURATOR) == [first]


def test_replacement_keeps_position():
    ingested = row(DIGEST_A, "T1")
    other = row(DIGEST_B, "T1")
    curated = row(DIGEST_A, CURATOR, name="library")
    assert reconcile([ingested, other, curated], CURATOR) == [curated, other]


def test_idempotent():
    rows = [
        row(DIGEST_A, "T1"),
        row(DIGEST_B, "T2"),
        row(DIGEST_A, CURATOR),
        row(DIGEST_B, "T3"),
    ]
    once = reconcile(rows, CURATOR)
    assert reconcile(once, CURATOR) == once


def test_curator_is_a_parameter():
    first = row(DIGEST_A, "T1")
    second = row(DIGEST_A, "SHARED")
    assert reconcile([first, second], "SHARED") == [second]
    assert reconcile([first, second], CURATOR) == [first]


def test_empty():
    assert reconcile([], CURATOR) == []
