"""
Version information for the WebProof SDK.

Installed distributions report the version from their metadata; a source
checkout reads it from pyproject.toml next to the package.
"""
import importlib.metadata
import logging
import pathlib
from typing import Optional

import tomli

logger = logging.getLogger(__name__)

DISTRIBUTION_NAME = "webproof-sdk"
DEFAULT_VERSION = "0.1.0"
PYPROJECT_PATH = pathlib.Path(__file__).parent.parent / "pyproject.toml"


def _read_pyproject_version(path: pathlib.Path) -> Optional[str]:
    try:
        with path.open("rb") as f:
            data = tomli.load(f)
    except (OSError, tomli.TOMLDecodeError) as e:
        logger.debug(f"Cannot read version from {path}: {e}")
        return None
    version = data.get("project", {}).get("version")
    return version if isinstance(version, str) else None


def resolve_version(
    distribution: str = DISTRIBUTION_NAME,
    pyproject: Optional[pathlib.Path] = None,
) -> str:
    """
    Find the SDK version.

    Order: installed metadata for ``distribution``, then ``[project].version``
    in ``pyproject``, then DEFAULT_VERSION.
    """
    try:
        return importlib.metadata.version(distribution)
    except importlib.metadata.PackageNotFoundError:
        pass
    return _read_pyproject_version(pyproject or PYPROJECT_PATH) or DEFAULT_VERSION


__version__ = resolve_version()
