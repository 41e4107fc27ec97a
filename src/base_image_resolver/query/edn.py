"""EDN queries and response decoding for the lineage store."""

from collections.abc import Mapping, Set
from datetime import datetime
from typing import Any

import edn_format

from ..exceptions import DecodeError
from ..models import (
    Badge,
    CandidateImage,
    ManifestListRef,
    Repository,
    SourceCommit,
    VulnerabilityReport,
)

CONTENT_TYPE = "application/edn"

IMAGE_PULL = """[:atomist/team-id
   :docker.image/digest
   :docker.image/created-at
   :docker.image/tags
   {:docker.image/tag [:docker.tag/name]}
   {:docker.image/manifest-list [:docker.manifest-list/digest
                                 {:docker.manifest-list/tag [:docker.tag/name]}]}
   {:docker.image/repository [:docker.repository/badge
                              :docker.repository/host
                              :docker.repository/name
                              :docker.repository/supported-tags]}
   {:docker.image/file [:git.file/path]}
   {:docker.image/commit [:git.commit/sha
                          {:git.commit/repo [:git.repo/name
                                             {:git.repo/org [:git.org/name]}]}]}
   {:vulnerability.report/report [:vulnerability.report/critical
                                  :vulnerability.report/high
                                  :vulnerability.report/medium
                                  :vulnerability.report/low
                                  :vulnerability.report/unspecified]}]"""

BASE_IMAGE_QUERY = (
    "[:find (pull ?image " + IMAGE_PULL + ")\n"
    " :where\n"
    " [(ground %(chain_id)s) ?chain-id]\n"
    " (or [?image :docker.image/diff-chain-id ?chain-id]\n"
    "     [?image :docker.image/blob-digest ?chain-id])]"
)

REPOSITORY_QUERY = """[:find (pull ?repository [:docker.repository/badge
                              :docker.repository/host
                              :docker.repository/name
                              :docker.repository/supported-tags])
 :where
 [?repository :docker.repository/name %(name)s]]"""

ENABLED_SKILLS_QUERY = """[:find (pull ?skill [:skill/namespace :skill/name])
 :where
 [?skill :skill.configuration/enabled? true]]"""


def base_image_query(chain_id: str) -> str:
    """Query for images whose diff or blob chain id equals ``chain_id``."""
    return BASE_IMAGE_QUERY % {"chain_id": edn_format.dumps(chain_id)}


def repository_query(name: str) -> str:
    """Query for repositories with exactly this name."""
    return REPOSITORY_QUERY % {"name": edn_format.dumps(name)}


def build_payload(query: str, shared: bool) -> str:
    """Wrap a query the way the tenant or shared endpoint expects it."""
    if shared:
        return '{:queries [{:name "query" :query ' + query + "}]}"
    return "{:query " + query + "}"


def to_python(value: Any) -> Any:
    """Convert decoded EDN into plain dicts, lists and strings."""
    if isinstance(value, edn_format.Keyword):
        return str(value).lstrip(":")
    if isinstance(value, (str, bytes)):
        return value
    if isinstance(value, Mapping):
        return {to_python(k): to_python(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, Set)) or (
        hasattr(value, "__iter__") and hasattr(value, "__getitem__")
    ):
        return [to_python(v) for v in value]
    return value


def loads(text: str) -> Any:
    """Parse an EDN document.

    Raises:
        DecodeError: If the text is not valid EDN
    """
    try:
        return to_python(edn_format.loads(text))
    except (edn_format.EDNDecodeError, ValueError, SyntaxError) as e:
        raise DecodeError(f"Failed to unmarshal response: {e}") from e


def decode_rows(text: str, shared: bool) -> list[dict[str, Any]]:
    """Return the first pulled entity of each result row.

    The tenant endpoint answers with a vector of rows; the shared endpoint
    wraps the rows of the query named ``query`` in ``{:query {:data ...}}``.

    Raises:
        DecodeError: If the body is not EDN or not of the expected shape
    """
    document = loads(text)
    if shared:
        if not isinstance(document, dict):
            raise DecodeError("Expected a map of named query results")
        result = document.get("query") or {}
        if not isinstance(result, dict):
            raise DecodeError("Expected a map for query result")
        rows = result.get("data") or []
    else:
        rows = document if document is not None else []

    if not isinstance(rows, list):
        raise DecodeError("Expected a vector of result rows")

    entities = []
    for row in rows:
        if not isinstance(row, list) or not row:
            raise DecodeError(f"Malformed result row: {row!r}")
        if not isinstance(row[0], dict):
            raise DecodeError(f"Expected a pulled entity, got: {row[0]!r}")
        entities.append(row[0])
    return entities


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _names(value: Any, key: str) -> tuple[str, ...]:
    return tuple(
        str(item[key]) for item in _as_list(value) if isinstance(item, dict) and key in item
    )


def parse_timestamp(value: Any) -> datetime | None:
    """Accept an ``#inst`` datetime or an RFC 3339 string."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def decode_repository(entity: Any) -> Repository | None:
    """Build a repository from a pulled ``docker.repository`` entity."""
    if not isinstance(entity, dict) or not entity.get("docker.repository/name"):
        return None
    badge = entity.get("docker.repository/badge")
    if isinstance(badge, str):
        badge = badge.rsplit("/", 1)[-1]
    kwargs: dict[str, Any] = {}
    if entity.get("docker.repository/host"):
        kwargs["host"] = entity["docker.repository/host"]
    return Repository(
        name=entity["docker.repository/name"],
        badge=Badge.parse(badge),
        supported_tags=tuple(_as_list(entity.get("docker.repository/supported-tags"))),
        **kwargs,
    )


def _decode_commit(entity: dict[str, Any]) -> SourceCommit | None:
    commit = entity.get("docker.image/commit")
    if not isinstance(commit, dict) or not commit.get("git.commit/sha"):
        return None
    repo = commit.get("git.commit/repo") or {}
    org = repo.get("git.repo/org") or {}
    file = entity.get("docker.image/file") or {}
    return SourceCommit(
        org=org.get("git.org/name", ""),
        repo=repo.get("git.repo/name", ""),
        sha=commit["git.commit/sha"],
        path=file.get("git.file/path") or None,
    )


def _decode_report(entity: Any) -> VulnerabilityReport:
    return VulnerabilityReport(
        critical=int(entity.get("vulnerability.report/critical") or 0),
        high=int(entity.get("vulnerability.report/high") or 0),
        medium=int(entity.get("vulnerability.report/medium") or 0),
        low=int(entity.get("vulnerability.report/low") or 0),
        unspecified=int(entity.get("vulnerability.report/unspecified") or 0),
    )


def decode_image(entity: dict[str, Any]) -> CandidateImage:
    """Build a candidate from a pulled ``docker.image`` entity.

    Raises:
        DecodeError: If the entity has no digest
    """
    digest = entity.get("docker.image/digest")
    if not digest:
        raise DecodeError("Image entity without docker.image/digest")

    manifest_lists = tuple(
        ManifestListRef(
            digest=item.get("docker.manifest-list/digest", ""),
            tags=_names(item.get("docker.manifest-list/tag"), "docker.tag/name"),
        )
        for item in _as_list(entity.get("docker.image/manifest-list"))
        if isinstance(item, dict)
    )

    return CandidateImage(
        digest=digest,
        created_at=parse_timestamp(entity.get("docker.image/created-at")),
        team_id=entity.get("atomist/team-id"),
        tags=tuple(_as_list(entity.get("docker.image/tags"))),
        tag_bindings=_names(entity.get("docker.image/tag"), "docker.tag/name"),
        manifest_lists=manifest_lists,
        repository=decode_repository(entity.get("docker.image/repository")),
        reports=tuple(
            _decode_report(item)
            for item in _as_list(entity.get("vulnerability.report/report"))
            if isinstance(item, dict)
        ),
        commit=_decode_commit(entity),
    )
