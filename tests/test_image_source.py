"""Tests for reading layer digests from tarballs, the daemon and registries."""

import os
import tarfile
import tempfile
from pathlib import Path

import pytest

from base_image_resolver.core.types import RegistryConfig
from base_image_resolver.exceptions import ImageNotFoundError, ValidationError
from base_image_resolver.image import (
    ImageReference,
    RemoteImageClient,
    digests_for_image,
    parse_image_reference,
    read_diff_ids,
)
from base_image_resolver.image.daemon import daemon_diff_ids
from base_image_resolver.image.reference import parse_repository_tag
from base_image_resolver.image.remote import parse_bearer_challenge, select_platform_manifest
from base_image_resolver.image.tarball import validate_docker_tar
from tests.fakes import create_docker_save_tar, make_digest

DIFF_IDS = [make_digest(f"diff-{i}") for i in range(3)]


@pytest.fixture
def docker_tar():
    path = create_docker_save_tar(DIFF_IDS)
    yield path
    os.unlink(path)


@pytest.fixture
def plain_tar():
    with tempfile.NamedTemporaryFile(suffix=".tar", delete=False) as handle:
        path = handle.name
    with tarfile.open(path, "w") as tar:
        info = tarfile.TarInfo("readme.txt")
        info.size = 0
        tar.addfile(info)
    yield path
    os.unlink(path)


class TestTarball:
    """Test docker save archives."""

    def test_read_diff_ids(self, docker_tar):
        assert read_diff_ids(Path(docker_tar)) == DIFF_IDS

    def test_validate(self, docker_tar, plain_tar):
        assert validate_docker_tar(Path(docker_tar)) is True
        assert validate_docker_tar(Path(plain_tar)) is False

    def test_not_a_docker_archive(self, plain_tar):
        with pytest.raises(ValidationError):
            read_diff_ids(Path(plain_tar))

    def test_missing_file(self):
        with pytest.raises(ValidationError):
            validate_docker_tar(Path("/nonexistent/image.tar"))

    def test_malformed_diff_id(self):
        path = create_docker_save_tar([DIFF_IDS[0], "sha256:not-hex"])
        try:
            with pytest.raises(ValidationError):
                read_diff_ids(Path(path))
        finally:
            os.unlink(path)

    @pytest.mark.asyncio
    async def test_path_is_read_as_tarball(self, docker_tar):
        async def never(image, config):
            raise AssertionError("strategies must not run for a file path")

        assert await digests_for_image(docker_tar, strategies=[never]) == DIFF_IDS


class TestImageReference:
    """Test reference parsing."""

    @pytest.mark.parametrize(
        "image,expected",
        [
            ("nginx", ("registry-1.docker.io", "library/nginx", "latest")),
            ("nginx:1.25", ("registry-1.docker.io", "library/nginx", "1.25")),
            ("bitnami/redis:7", ("registry-1.docker.io", "bitnami/redis", "7")),
            ("docker.io/alpine", ("registry-1.docker.io", "library/alpine", "latest")),
            ("ghcr.io/org/app:1.0", ("ghcr.io", "org/app", "1.0")),
            ("localhost:5000/app", ("localhost:5000", "app", "latest")),
            (
                "alpine@" + DIFF_IDS[0],
                ("registry-1.docker.io", "library/alpine", DIFF_IDS[0]),
            ),
        ],
    )
    def test_parse(self, image, expected):
        ref = parse_image_reference(image)
        assert (ref.registry, ref.repository, ref.reference) == expected

    def test_empty(self):
        with pytest.raises(ValueError):
            parse_image_reference("")

    def test_repository_tag(self):
        assert parse_repository_tag("localhost:5000/myapp") == ("localhost:5000/myapp", "latest")
        assert parse_repository_tag("myapp:") == ("myapp", "latest")

    def test_base_url(self):
        assert ImageReference("ghcr.io", "org/app", "1").base_url == "https://ghcr.io"
        assert ImageReference("localhost:5000", "app", "1").base_url == "http://localhost:5000"


class TestRegistryHelpers:
    """Test challenge parsing and platform selection."""

    def test_bearer_challenge(self):
        challenge = parse_bearer_challenge(
            'Bearer realm="https://auth.docker.io/token",service="registry.docker.io",'
            'scope="repository:library/alpine:pull"'
        )
        assert challenge == {
            "realm": "https://auth.docker.io/token",
            "service": "registry.docker.io",
            "scope": "repository:library/alpine:pull",
        }

    def test_basic_challenge(self):
        assert parse_bearer_challenge('Basic realm="registry"') is None

    def test_platform_selection(self):
        index = {
            "manifests": [
                {"digest": "arm", "platform": {"os": "linux", "architecture": "arm64"}},
                {"digest": "amd", "platform": {"os": "linux", "architecture": "amd64"}},
            ]
        }
        assert select_platform_manifest(index) == "amd"
        assert select_platform_manifest(index, architecture="arm64") == "arm"
        assert select_platform_manifest(index, architecture="s390x") == "arm"
        assert select_platform_manifest({"manifests": []}) is None


class TestRemoteImageClient:
    """Test registry reads against the fake registry."""

    def image(self, registry, reference="3.19"):
        return ImageReference(
            f"127.0.0.1:{registry.server.port}", "library/alpine", reference
        )

    def publish(self, registry):
        config_digest = make_digest("config")
        manifest_digest = make_digest("amd64-manifest")
        registry.manifests["3.19"] = {
            "schemaVersion": 2,
            "mediaType": "application/vnd.oci.image.index.v1+json",
            "manifests": [
                {
                    "digest": make_digest("arm64-manifest"),
                    "platform": {"os": "linux", "architecture": "arm64"},
                },
                {
                    "digest": manifest_digest,
                    "platform": {"os": "linux", "architecture": "amd64"},
                },
            ],
        }
        registry.manifests[manifest_digest] = {
            "schemaVersion": 2,
            "mediaType": "application/vnd.oci.image.manifest.v1+json",
            "config": {"digest": config_digest},
            "layers": [],
        }
        registry.blobs[config_digest] = {"rootfs": {"type": "layers", "diff_ids": DIFF_IDS}}

    @pytest.mark.asyncio
    async def test_index_to_diff_ids(self, fake_registry):
        self.publish(fake_registry)

        async with RemoteImageClient(self.image(fake_registry), RegistryConfig(timeout=5)) as client:
            assert await client.get_diff_ids() == DIFF_IDS

        assert fake_registry.token_requests == [
            {"service": "fake-registry", "scope": "repository:library/alpine:pull"}
        ]

    @pytest.mark.asyncio
    async def test_unknown_tag(self, fake_registry):
        self.publish(fake_registry)

        async with RemoteImageClient(self.image(fake_registry, "9.99")) as client:
            assert await client.get_diff_ids() == []


class TestDaemon:
    """Test the docker CLI source."""

    @pytest.mark.asyncio
    async def test_missing_binary(self):
        config = RegistryConfig(docker_binary="definitely-not-docker-binary")
        assert await daemon_diff_ids("alpine", config) == []


class TestDigestsForImage:
    """Test strategy ordering."""

    @pytest.mark.asyncio
    async def test_first_non_empty_wins(self):
        calls = []

        async def empty(image, config):
            calls.append("empty")
            return []

        async def found(image, config):
            calls.append("found")
            return DIFF_IDS

        async def unused(image, config):
            calls.append("unused")
            return ["sha256:never"]

        assert await digests_for_image("alpine", strategies=[empty, found, unused]) == DIFF_IDS
        assert calls == ["empty", "found"]

    @pytest.mark.asyncio
    async def test_nothing_found(self):
        async def empty(image, config):
            return []

        with pytest.raises(ImageNotFoundError):
            await digests_for_image("no-such-image", strategies=[empty])
