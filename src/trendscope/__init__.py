# src/trendscope/__init__.py
"""trendscope – analiza techniczna i silnik rekomendacji dla pojedynczego instrumentu."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
import tomllib

try:
    __version__ = version("trendscope")
except PackageNotFoundError:
    pyproject = Path(__file__).resolve().parents[2] / "pyproject.toml"
    __version__ = tomllib.loads(pyproject.read_text())["tool"]["poetry"]["version"]

from .profiles import PROFILES, ProfileKey, get_profile

__all__ = ["__version__", "PROFILES", "ProfileKey", "get_profile"]
