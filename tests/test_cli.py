"""Tests for the command line interface."""

import pytest
from typer.testing import CliRunner

from base_image_resolver import cli
from base_image_resolver.exceptions import AuthError, ImageNotFoundError
from base_image_resolver.models import CandidateImage, Repository
from base_image_resolver.query.client import LineageClient
from base_image_resolver.utils.digest import chain_ids
from tests.fakes import CURATOR, make_digest

runner = CliRunner()

LAYERS = [make_digest(f"layer-{i}") for i in range(3)]


@pytest.fixture(autouse=True)
def no_env_credentials(monkeypatch):
    monkeypatch.delenv("ATOMIST_WORKSPACE", raising=False)
    monkeypatch.delenv("ATOMIST_API_KEY", raising=False)


@pytest.fixture
def stub_sources(monkeypatch):
    """Serve fixed layers and a single match for the second prefix."""

    async def fake_digests(image, config=None):
        return LAYERS

    async def strategy(client, chain_id, credentials):
        if chain_id == chain_ids(LAYERS)[1]:
            return [
                CandidateImage(
                    digest=make_digest("alpine"),
                    team_id=CURATOR,
                    tags=("3.19",),
                    repository=Repository(name="alpine"),
                )
            ]
        return []

    monkeypatch.setattr(cli, "digests_for_image", fake_digests)
    monkeypatch.setattr(
        cli, "LineageClient", lambda config: LineageClient(config, strategies=[strategy])
    )


def test_help_lists_commands():
    result = runner.invoke(cli.app, ["--help"])
    assert result.exit_code == 0
    assert "detect" in result.output
    assert "check-auth" in result.output


def test_detect_prints_matches(stub_sources):
    result = runner.invoke(cli.app, ["detect", "alpine:3.19"])

    assert result.exit_code == 0, result.output
    assert "Base image for layers 0-1" in result.output
    assert "alpine:3.19" in result.output
    assert "Docker Official Image" in result.output
    assert "layer 0\n" not in result.output


def test_detect_without_matches(monkeypatch):
    async def fake_digests(image, config=None):
        return LAYERS

    async def nothing(client, chain_id, credentials):
        return []

    monkeypatch.setattr(cli, "digests_for_image", fake_digests)
    monkeypatch.setattr(
        cli, "LineageClient", lambda config: LineageClient(config, strategies=[nothing])
    )

    result = runner.invoke(cli.app, ["detect", "scratch-app"])

    assert result.exit_code == 0
    assert "No base image found for scratch-app" in result.output


def test_detect_image_not_found(monkeypatch):
    async def missing(image, config=None):
        raise ImageNotFoundError(f"Image not found: {image}")

    monkeypatch.setattr(cli, "digests_for_image", missing)

    result = runner.invoke(cli.app, ["detect", "ghost:1"])

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "Image not found: ghost:1" in result.output


def test_detect_rejected_credentials(monkeypatch, stub_sources):
    async def rejected(credentials, config=None):
        raise AuthError(f"Authentication failed for workspace {credentials.workspace!r}")

    monkeypatch.setattr(cli, "require_auth", rejected)

    result = runner.invoke(
        cli.app, ["detect", "alpine", "--workspace", "AW0RKSPACE", "--api-key", "bad"]
    )

    assert result.exit_code == 1
    assert "Authentication failed" in result.output


def test_detect_malformed_layer_digest(monkeypatch):
    async def bad_digests(image, config=None):
        return ["not-a-digest"]

    monkeypatch.setattr(cli, "digests_for_image", bad_digests)

    result = runner.invoke(cli.app, ["detect", "alpine"])

    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert "Invalid digest format: not-a-digest" in result.output


def test_check_auth_requires_credentials():
    result = runner.invoke(cli.app, ["check-auth"])
    assert result.exit_code == 2
    assert "Workspace and API key are required" in result.output


def test_check_auth_success(monkeypatch):
    async def accepted(credentials, config=None):
        assert credentials.workspace == "AW0RKSPACE"
        return True

    monkeypatch.setattr(cli, "check_auth", accepted)
    monkeypatch.setenv("ATOMIST_WORKSPACE", "AW0RKSPACE")
    monkeypatch.setenv("ATOMIST_API_KEY", "key")

    result = runner.invoke(cli.app, ["check-auth"])

    assert result.exit_code == 0
    assert "Authentication successful" in result.output


def test_check_auth_failure(monkeypatch):
    async def rejected(credentials, config=None):
        return False

    monkeypatch.setattr(cli, "check_auth", rejected)

    result = runner.invoke(cli.app, ["check-auth", "--workspace", "W", "--api-key", "k"])

    assert result.exit_code == 1
    assert "Authentication failed" in result.output
