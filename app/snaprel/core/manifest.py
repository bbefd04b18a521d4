"""Manifest file I/O operations.

This module provides functions for loading and saving manifest files
in YAML format with proper validation using Pydantic models.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from snaprel.errors import (
    ManifestError,
    ManifestNotFoundError,
    ManifestParseError,
    ManifestValidationError,
)
from snaprel.models.manifest import Manifest


def parse_manifest(text: str, source: str = "<string>") -> Manifest:
    """Parse and validate manifest YAML text.

    Args:
        text: YAML document.
        source: Name used in error messages.

    Returns:
        Validated Manifest object.

    Raises:
        ManifestParseError: If the YAML syntax is invalid.
        ManifestValidationError: If the content doesn't match the schema.
    """
    # Scalars stay strings: version 1.10 must not load as 1.1
    try:
        data = yaml.load(text, Loader=yaml.BaseLoader)  # noqa: S506
    except yaml.YAMLError as e:
        raise ManifestParseError(f"Invalid YAML syntax in {source}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ManifestValidationError(f"Invalid manifest content in {source}: not a mapping")

    try:
        return Manifest.model_validate(data)
    except ValidationError as e:
        raise ManifestValidationError(f"Invalid manifest content in {source}: {e}") from e


def load_manifest(path: Path) -> Manifest:
    """Load and validate a manifest from a YAML file.

    Args:
        path: Path to the manifest file.

    Returns:
        Validated Manifest object.

    Raises:
        ManifestNotFoundError: If the manifest file doesn't exist.
        ManifestParseError: If the YAML syntax is invalid.
        ManifestValidationError: If the content doesn't match the schema.
    """
    if not path.exists():
        raise ManifestNotFoundError(f"Manifest not found: {path}")

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"Failed to read manifest: {e}") from e

    return parse_manifest(text, str(path))


def dump_manifest(manifest: Manifest) -> str:
    """Serialize a manifest to YAML text.

    Packages and files are sorted so that the same manifest always
    produces the same text, which keeps version-controlled copies
    diffable.
    """
    return yaml.safe_dump(_manifest_to_dict(manifest), sort_keys=False, default_flow_style=False)


def save_manifest(manifest: Manifest, path: Path) -> Path:
    """Save a manifest to a YAML file.

    The file is written atomically by first writing to a temporary file
    in the same directory and then using os.replace() for atomic rename.
    The temporary file is cleaned up on failure.

    Args:
        manifest: The Manifest object to save.
        path: Path to save the manifest.

    Returns:
        Path where the manifest was saved.

    Raises:
        ManifestError: If the file cannot be written.
    """
    from tempfile import NamedTemporaryFile

    path.parent.mkdir(parents=True, exist_ok=True)
    text = dump_manifest(manifest)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            f.write(text)
        os.replace(str(tmp_path), str(path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ManifestError(f"Failed to write manifest: {e}") from e

    return path


def _manifest_to_dict(manifest: Manifest) -> dict[str, Any]:
    """Convert a Manifest to a dictionary suitable for YAML serialization.

    Args:
        manifest: The Manifest object to convert.

    Returns:
        Dictionary ready for YAML serialization.
    """
    return {
        "packages": {
            name: {
                "version": entry.version,
                "files": sorted(entry.files),
            }
            for name, entry in sorted(manifest.packages.items())
        }
    }
