"""Core configuration and transport types."""

import os
from dataclasses import dataclass, field

DEFAULT_REPOSITORY_HOST = "hub.docker.com"


@dataclass(frozen=True)
class LineageConfig:
    """Endpoints and precedence settings for the lineage knowledge base."""

    tenant_url: str = "https://api.atomist.com/datalog/team"
    shared_url: str = "https://api.atomist.com/datalog/shared-vulnerability/queries"
    index_url: str = "https://api.dso.docker.com/docker-images/chain-ids"
    timeout: int = 30
    # Curation teams whose rows win digest collisions in each query mode
    tenant_curator: str = "A0GLG1QQA"
    shared_curator: str = "A0GLG1QQA"
    default_host: str = DEFAULT_REPOSITORY_HOST
    source_host: str = "https://github.com"

    def team_url(self, workspace: str) -> str:
        """Query endpoint of a tenant workspace."""
        return f"{self.tenant_url.rstrip('/')}/{workspace}"

    def chain_id_url(self, chain_id: str) -> str:
        """Public index document for a chain identifier."""
        return f"{self.index_url.rstrip('/')}/{chain_id}.json"


@dataclass(frozen=True)
class RegistryConfig:
    """Settings for reading layer digests from registries and the daemon."""

    timeout: int = 30
    os: str = "linux"
    architecture: str = "amd64"
    docker_binary: str = "docker"


@dataclass(frozen=True)
class Credentials:
    """Tenant workspace and API key; read once per run."""

    workspace: str = ""
    api_key: str = field(default="", repr=False)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.workspace and self.api_key)

    @classmethod
    def from_env(cls) -> "Credentials":
        """Build credentials from ATOMIST_WORKSPACE and ATOMIST_API_KEY."""
        return cls(
            workspace=os.getenv("ATOMIST_WORKSPACE", ""),
            api_key=os.getenv("ATOMIST_API_KEY", ""),
        )


ANONYMOUS = Credentials()


@dataclass
class RequestResult:
    """Raw outcome of a single HTTP request."""

    status_code: int
    headers: dict[str, str]
    data: bytes | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return (self.data or b"").decode("utf-8", errors="replace")
