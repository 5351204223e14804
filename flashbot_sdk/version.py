"""
Version information for the Flashbot SDK.

Installed distributions report their metadata version; a source checkout
reads ``[project].version`` from the repository's pyproject.toml.
"""
import importlib.metadata
import pathlib
from typing import Optional

import tomli

DISTRIBUTION_NAME = "flashbot-sdk"
DEFAULT_VERSION = "0.1.0"

PYPROJECT_PATH = pathlib.Path(__file__).resolve().parent.parent / "pyproject.toml"


def read_pyproject_version(path: Optional[pathlib.Path] = None) -> str:
    """
    Read the project version from a pyproject.toml file.

    Args:
        path: File to read, defaults to the checkout's pyproject.toml

    Returns:
        The declared version, or DEFAULT_VERSION if the file is missing,
        unreadable or declares none
    """
    path = path or PYPROJECT_PATH
    try:
        with path.open("rb") as f:
            return tomli.load(f)["project"]["version"]
    except (FileNotFoundError, KeyError, tomli.TOMLDecodeError):
        return DEFAULT_VERSION


def get_version() -> str:
    try:
        return importlib.metadata.version(DISTRIBUTION_NAME)
    except importlib.metadata.PackageNotFoundError:
        return read_pyproject_version()


__version__ = get_version()
