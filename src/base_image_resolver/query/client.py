"""Async client for the lineage knowledge base."""

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Optional

import aiohttp

from ..core.session import create_session, parse_json_response, send_request
from ..core.types import ANONYMOUS, Credentials, LineageConfig, RequestResult
from ..exceptions import DecodeError, QueryError, TransportError
from ..models import CandidateImage
from . import edn

logger = logging.getLogger(__name__)

Strategy = Callable[
    ["LineageClient", str, Credentials], Awaitable[list[CandidateImage]]
]


class LineageClient:
    """Lineage store and public index client sharing one HTTP session."""

    def __init__(
        self,
        config: Optional[LineageConfig] = None,
        strategies: Optional[Sequence[Strategy]] = None,
    ) -> None:
        """Initialize the lineage client.

        Args:
            config: Endpoint and precedence settings
            strategies: Ordered resolution strategies; defaults to the lineage
                store followed by the public index
        """
        self.config = config or LineageConfig()
        if strategies is None:
            from .index import index_images
            from .lineage import lineage_store_images

            strategies = (lineage_store_images, index_images)
        self.strategies = tuple(strategies)
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "LineageClient":
        """Enter async context manager."""
        if not self.session:
            self.session = await create_session(self.config.timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager."""
        await self.close()

    async def close(self) -> None:
        """Close the client session."""
        if self.session and not self.session.closed:
            await self.session.close()

    def curator(self, credentials: Credentials) -> str:
        """Team whose rows win collisions in this query mode."""
        if credentials.is_authenticated:
            return self.config.tenant_curator
        return self.config.shared_curator

    async def _post(self, query: str, credentials: Credentials) -> RequestResult:
        if self.session is None:
            raise RuntimeError("LineageClient used outside of 'async with'")

        shared = not credentials.is_authenticated
        url = (
            self.config.shared_url
            if shared
            else self.config.team_url(credentials.workspace)
        )
        headers = {"Content-Type": edn.CONTENT_TYPE}
        if credentials.api_key:
            headers["Authorization"] = f"Bearer {credentials.api_key}"

        return await send_request(
            self.session,
            "POST",
            url,
            data=edn.build_payload(query, shared).encode("utf-8"),
            headers=headers,
        )

    async def query(
        self, query: str, credentials: Credentials = ANONYMOUS
    ) -> list[dict[str, Any]]:
        """Run a datalog query and return the first entity of every row.

        Raises:
            TransportError: If the store cannot be reached
            QueryError: If the store answers with an error status
            DecodeError: If the response cannot be decoded
        """
        result = await self._post(query, credentials)
        if result.status_code == 404:
            return []
        if not result.ok:
            raise QueryError(
                f"Query failed with status {result.status_code}: {result.text[:200]}",
                status=result.status_code,
            )
        return edn.decode_rows(result.text, shared=not credentials.is_authenticated)

    async def get_index(self, chain_id: str) -> list[dict[str, Any]]:
        """Fetch the public index document for a chain identifier.

        Raises:
            TransportError: If the index cannot be reached
            QueryError: If the index answers with an error status
            DecodeError: If the document is not a JSON list
        """
        if self.session is None:
            raise RuntimeError("LineageClient used outside of 'async with'")

        result = await send_request(
            self.session, "GET", self.config.chain_id_url(chain_id)
        )
        if result.status_code == 404:
            return []
        if not result.ok:
            raise QueryError(
                f"Failed to query index: status {result.status_code}",
                status=result.status_code,
            )
        data = parse_json_response(result.text)
        if not isinstance(data, list):
            raise DecodeError("Failed to unmarshal index response body")
        return data

    async def auth_status(self, credentials: Credentials) -> int:
        """HTTP status the tenant store answers for these credentials.

        Raises:
            TransportError: If the store cannot be reached
        """
        result = await self._post(edn.ENABLED_SKILLS_QUERY, credentials)
        return result.status_code

    async def check_auth(self, credentials: Credentials) -> bool:
        """Check that a workspace accepts the API key.

        Only the HTTP status matters; the payload is ignored. An unreachable
        store counts as a failed check.
        """
        if not credentials.is_authenticated:
            return False
        try:
            return await self.auth_status(credentials) == 200
        except TransportError as e:
            logger.debug("Authentication check failed: %s", e)
            return False

    async def resolve(
        self, chain_id: str, credentials: Credentials = ANONYMOUS
    ) -> list[CandidateImage]:
        """Find base image candidates for one chain identifier.

        Strategies are tried in order; the first non-empty answer wins and
        any error aborts the lookup.

        Raises:
            QueryError: If any strategy fails
        """
        for strategy in self.strategies:
            images = await strategy(self, chain_id, credentials)
            logger.debug(
                "%s found %d candidates for %s",
                getattr(strategy, "__name__", strategy),
                len(images),
                chain_id,
            )
            if images:
                return images
        return []
