"""
Patch manifest: the externally supplied list of components and the version
each ESXi host is expected to run.

    - component: esx-base
      version: 7.0.3-0.105.22348816
    - component: vsan
      version: 7.0.3-0.105.22348816
"""

import logging
from pathlib import Path
from typing import List
from typing import Tuple

import yaml
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import ValidationError
from pydantic import field_validator

logger = logging.getLogger(__name__)


class ManifestError(ValueError):
    """The patch manifest exists but its content is invalid."""


class PatchManifestEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    component: str
    version: str

    @field_validator("version", mode="before")
    @classmethod
    def version_as_string(cls, value: object) -> object:
        # An unquoted `version: 8.0` is loaded by YAML as a float.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


def parse_patch_manifest(raw: object) -> Tuple[Tuple[str, str], ...]:
    """Validate a decoded manifest and return `(component, version)` pairs in file order."""
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ManifestError("Patch manifest must be a list of {component, version} entries")

    entries: List[Tuple[str, str]] = []
    seen = set()
    for index, item in enumerate(raw):
        try:
            entry = PatchManifestEntry.model_validate(item)
        except ValidationError as e:
            raise ManifestError(f"Invalid patch manifest entry #{index + 1}: {e}") from e
        if entry.component in seen:
            raise ManifestError(f"Component '{entry.component}' listed more than once")
        seen.add(entry.component)
        entries.append((entry.component, entry.version))
    return tuple(entries)


def load_patch_manifest(path: str | Path) -> Tuple[Tuple[str, str], ...]:
    """
    Load a YAML patch manifest from disk.

    :raises FileNotFoundError: if the file does not exist
    :raises ManifestError: if the content is not a valid manifest
    """
    manifest_path = Path(path)
    with manifest_path.open() as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ManifestError(f"Could not parse {manifest_path}: {e}") from e
    entries = parse_patch_manifest(raw)
    logger.info("Loaded %d components from patch manifest %s", len(entries), manifest_path)
    return entries
