"""
package.json loading and dependency section selection.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List

from .errors import ManifestError
from .models import DependencyDeclaration


logger = logging.getLogger(__name__)

PRODUCTION = "dependencies"
DEV = "devDependencies"
PEER = "peerDependencies"
OPTIONAL = "optionalDependencies"


def load_manifest(path: Path) -> Dict:
    """Read and decode a package.json file."""
    path = Path(path).resolve()
    if not path.is_file():
        raise ManifestError(f"package.json not found at: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ManifestError(f"Could not parse {path}: {e}") from e
    if not isinstance(data, dict):
        raise ManifestError(f"{path} does not contain a JSON object")
    return data


def select_dependencies(
    manifest: Dict,
    include_dev: bool = False,
    include_peer: bool = False,
    include_optional: bool = False,
) -> List[DependencyDeclaration]:
    """Declarations from the selected sections, later sections overriding earlier ones."""
    sections = [
        (PRODUCTION, True),
        (DEV, include_dev),
        (PEER, include_peer),
        (OPTIONAL, include_optional),
    ]

    merged: Dict[str, str] = {}
    for section, include in sections:
        if not include:
            continue
        entries = manifest.get(section) or {}
        if not isinstance(entries, dict):
            logger.warning("Ignoring %s: expected an object", section)
            continue
        for name, spec in entries.items():
            if not isinstance(spec, str):
                logger.debug("[skip] %s (non-string spec in %s)", name, section)
                continue
            merged[name] = spec

    return [DependencyDeclaration(name=name, declared_spec=spec) for name, spec in merged.items()]
