"""Registry API v2 client for reading image layer diff ids."""

import json
import logging
import re
from typing import Any, Dict, List, Optional

import aiohttp

from ..core.session import create_session, send_request
from ..core.types import RegistryConfig, RequestResult
from ..exceptions import RegistryError
from .reference import ImageReference

logger = logging.getLogger(__name__)

MANIFEST_LIST_TYPES = (
    "application/vnd.docker.distribution.manifest.list.v2+json",
    "application/vnd.oci.image.index.v1+json",
)
MANIFEST_TYPES = (
    "application/vnd.docker.distribution.manifest.v2+json",
    "application/vnd.oci.image.manifest.v1+json",
)
ACCEPT = ", ".join(MANIFEST_LIST_TYPES + MANIFEST_TYPES)

CHALLENGE_PARAM = re.compile(r'(\w+)="([^"]*)"')


def parse_bearer_challenge(header: str) -> Optional[Dict[str, str]]:
    """Parse a ``WWW-Authenticate: Bearer realm=...`` challenge."""
    scheme, _, params = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    challenge = dict(CHALLENGE_PARAM.findall(params))
    return challenge if "realm" in challenge else None


def select_platform_manifest(
    index: Dict[str, Any], os: str = "linux", architecture: str = "amd64"
) -> Optional[str]:
    """Pick the manifest digest for a platform, falling back to the first entry."""
    manifests = index.get("manifests") or []
    for manifest in manifests:
        platform = manifest.get("platform") or {}
        if platform.get("os") == os and platform.get("architecture") == architecture:
            return manifest.get("digest")
    if manifests:
        return manifests[0].get("digest")
    return None


class RemoteImageClient:
    """Docker Registry API v2 async client for anonymous pulls."""

    def __init__(self, image: ImageReference, config: Optional[RegistryConfig] = None) -> None:
        """Initialize the registry client.

        Args:
            image: Parsed image reference
            config: Request timeout and preferred platform
        """
        self.image = image
        self.config = config or RegistryConfig()
        self.session: Optional[aiohttp.ClientSession] = None
        self._token: Optional[str] = None

    async def __aenter__(self) -> "RemoteImageClient":
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

    async def _authenticate(self, challenge_header: str) -> bool:
        challenge = parse_bearer_challenge(challenge_header)
        if challenge is None:
            return False

        params = {
            key: value for key, value in challenge.items() if key in ("service", "scope")
        }
        params.setdefault("scope", f"repository:{self.image.repository}:pull")
        result = await send_request(
            self.session, "GET", challenge["realm"], params=params
        )
        if not result.ok:
            raise RegistryError(
                f"Token request to {challenge['realm']} failed with status {result.status_code}"
            )
        try:
            data = json.loads(result.text)
        except json.JSONDecodeError as e:
            raise RegistryError(f"Invalid token response: {e}") from e
        self._token = data.get("token") or data.get("access_token")
        return bool(self._token)

    async def _get(self, path: str, accept: Optional[str] = None) -> RequestResult:
        """GET a registry path, answering one bearer challenge if needed."""
        url = f"{self.image.base_url}/v2/{self.image.repository}/{path}"
        for attempt in range(2):
            headers = {}
            if accept:
                headers["Accept"] = accept
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            result = await send_request(self.session, "GET", url, headers=headers)
            if result.status_code != 401 or attempt:
                return result
            if not await self._authenticate(result.headers.get("WWW-Authenticate", "")):
                return result
        return result

    async def get_manifest(self, reference: str) -> Optional[Dict[str, Any]]:
        """Retrieve a manifest or index; None when the registry does not know it.

        Raises:
            RegistryError: If retrieval fails
        """
        result = await self._get(f"manifests/{reference}", accept=ACCEPT)
        if result.status_code == 404:
            return None
        if not result.ok:
            raise RegistryError(
                f"Failed to get manifest {reference}: status {result.status_code}"
            )
        try:
            return json.loads(result.text)
        except json.JSONDecodeError as e:
            raise RegistryError(f"Invalid manifest {reference}: {e}") from e

    async def get_config(self, digest: str) -> Dict[str, Any]:
        """Retrieve the image config blob.

        Raises:
            RegistryError: If retrieval fails
        """
        result = await self._get(f"blobs/{digest}")
        if not result.ok:
            raise RegistryError(
                f"Failed to get config blob {digest}: status {result.status_code}"
            )
        try:
            return json.loads(result.text)
        except json.JSONDecodeError as e:
            raise RegistryError(f"Invalid config blob {digest}: {e}") from e

    async def get_diff_ids(self) -> List[str]:
        """Return the layer diff ids of the image, base layer first.

        Returns an empty list when the image does not exist.

        Raises:
            RegistryError: If the registry answers unexpectedly
            TransportError: If the registry cannot be reached
        """
        manifest = await self.get_manifest(self.image.reference)
        if manifest is None:
            return []

        if manifest.get("mediaType") in MANIFEST_LIST_TYPES or "manifests" in manifest:
            digest = select_platform_manifest(
                manifest, self.config.os, self.config.architecture
            )
            if digest is None:
                return []
            logger.debug("Resolved %s to platform manifest %s", self.image.reference, digest)
            manifest = await self.get_manifest(digest)
            if manifest is None:
                return []

        config_digest = (manifest.get("config") or {}).get("digest")
        if not config_digest:
            raise RegistryError("Manifest has no config descriptor")

        config = await self.get_config(config_digest)
        return list((config.get("rootfs") or {}).get("diff_ids") or [])
