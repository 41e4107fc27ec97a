"""Layer diff ids from ``docker save`` tar files."""

import json
import tarfile
from pathlib import Path
from typing import Any

from ..exceptions import ValidationError
from ..utils.digest import validate_digest


def get_tar_members(tar: tarfile.TarFile) -> set[str]:
    """Extract member names from tar file."""
    return {member.name for member in tar.getmembers()}


def extract_json_file(tar: tarfile.TarFile, file_path: str) -> Any:
    """Extract and parse JSON file from tar."""
    try:
        member = tar.extractfile(file_path)
        if member is None:
            return None
        content = member.read().decode("utf-8")
        return json.loads(content)
    except (KeyError, json.JSONDecodeError, UnicodeDecodeError):
        return None


def validate_manifest_data(manifest_data: Any, tar_members: set[str]) -> bool:
    """Check that manifest.json lists entries whose config file exists."""
    if not isinstance(manifest_data, list) or not manifest_data:
        return False
    for entry in manifest_data:
        if not isinstance(entry, dict):
            return False
        if "Config" not in entry or "Layers" not in entry:
            return False
        if entry["Config"] not in tar_members:
            return False
        if not isinstance(entry["Layers"], list):
            return False
    return True


def validate_docker_tar(tar_path: Path) -> bool:
    """Check whether a file is a readable docker save archive.

    Raises:
        ValidationError: If the file does not exist or cannot be read
    """
    if not tar_path.exists():
        raise ValidationError(f"Tar file does not exist: {tar_path}")

    try:
        if not tarfile.is_tarfile(tar_path):
            return False

        with tarfile.open(tar_path, "r") as tar:
            tar_members = get_tar_members(tar)
            if "manifest.json" not in tar_members:
                return False
            return validate_manifest_data(
                extract_json_file(tar, "manifest.json"), tar_members
            )
    except (tarfile.TarError, OSError) as e:
        raise ValidationError(f"Error reading tar file: {e}") from e


def read_diff_ids(tar_path: Path) -> list[str]:
    """Return the rootfs diff ids of the first image in a docker save archive.

    Args:
        tar_path: Path to the tar file created by ``docker save``

    Returns:
        Layer diff ids, base layer first

    Raises:
        ValidationError: If the archive is invalid or has no rootfs
    """
    if not validate_docker_tar(tar_path):
        raise ValidationError(f"Invalid Docker tar file: {tar_path}")

    try:
        with tarfile.open(tar_path, "r") as tar:
            manifest = extract_json_file(tar, "manifest.json")[0]
            config = extract_json_file(tar, manifest["Config"])
    except (tarfile.TarError, OSError) as e:
        raise ValidationError(f"Failed to inspect tar file: {e}") from e

    if not isinstance(config, dict):
        raise ValidationError(f"Cannot read config file: {manifest['Config']}")

    diff_ids = (config.get("rootfs") or {}).get("diff_ids")
    if not isinstance(diff_ids, list):
        raise ValidationError("Image config has no rootfs.diff_ids")
    for diff_id in diff_ids:
        if not validate_digest(diff_id):
            raise ValidationError(f"Invalid diff id in image config: {diff_id!r}")
    return list(diff_ids)
