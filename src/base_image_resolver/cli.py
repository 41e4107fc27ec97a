"""Command line interface: ``base-image-resolver detect IMAGE``."""

import asyncio
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from .api import check_auth, require_auth
from .core.types import Credentials, LineageConfig, RegistryConfig
from .detect import detect_base_images, render_match
from .exceptions import ResolverError
from .image.source import digests_for_image
from .query.client import LineageClient

app = typer.Typer(
    name="base-image-resolver",
    help="Identify the base images a container image was built from.",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()


def _credentials(workspace: Optional[str], api_key: Optional[str]) -> Credentials:
    env = Credentials.from_env()
    return Credentials(
        workspace=workspace or env.workspace,
        api_key=api_key or env.api_key,
    )


async def _stream_detect(
    image: str,
    credentials: Credentials,
    config: LineageConfig,
    registry_config: RegistryConfig,
) -> int:
    if credentials.is_authenticated:
        await require_auth(credentials, config)

    with console.status(f"Retrieving layer information for image {image}"):
        digests = await digests_for_image(image, registry_config)

    found = 0
    async with LineageClient(config) as client:
        with console.status("Finding matching base images") as status:
            async for match in detect_base_images(digests, client, credentials):
                status.stop()
                console.print(render_match(match, markup=True), highlight=False)
                console.print()
                found += 1
                status.start()
    return found


@app.command(name="detect", help="Detect base images for a given image.")
def detect_cmd(
    image: str = typer.Argument(..., help="Image reference or docker save tar file."),
    workspace: Optional[str] = typer.Option(
        None, "--workspace", help="Atomist workspace (default: $ATOMIST_WORKSPACE)."
    ),
    api_key: Optional[str] = typer.Option(
        None, "--api-key", help="Atomist API key (default: $ATOMIST_API_KEY)."
    ),
    timeout: int = typer.Option(30, help="Request timeout in seconds."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Detect base images for a given image."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO)

    credentials = _credentials(workspace, api_key)
    try:
        found = asyncio.run(
            _stream_detect(
                image,
                credentials,
                LineageConfig(timeout=timeout),
                RegistryConfig(timeout=timeout),
            )
        )
    except (ResolverError, ValueError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    if not found:
        console.print(f"No base image found for {escape(image)}")


@app.command(name="check-auth", help="Validate an Atomist workspace and API key.")
def check_auth_cmd(
    workspace: Optional[str] = typer.Option(None, "--workspace"),
    api_key: Optional[str] = typer.Option(None, "--api-key"),
) -> None:
    """Validate workspace credentials without running a detection."""
    credentials = _credentials(workspace, api_key)
    if not credentials.is_authenticated:
        console.print("[red]Workspace and API key are required[/red]")
        raise typer.Exit(code=2)

    if asyncio.run(check_auth(credentials)):
        console.print("[green]Authentication successful[/green]")
    else:
        console.print("[red]Authentication failed[/red]")
        raise typer.Exit(code=1)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
