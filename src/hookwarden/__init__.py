"""
Hookwarden - hook dispatch and continuation engine for coding agents.

Intercepts tool invocations, runs registered hook commands against them,
and decides whether an iterative agent session should keep going.
"""

import importlib.metadata as _metadata

# Version is defined in pyproject.toml - read it and parse into tuple (primary representation)
_raw_version = _metadata.version("hookwarden")
__version_info__: tuple[int, int, int] = tuple(int(x) for x in _raw_version.split(".")[:3])  # type: ignore[assignment]
__version__: str = ".".join(str(x) for x in __version_info__)

from hookwarden.engine import HookEngine  # noqa: E402
from hookwarden.settings import HookwardenSettings  # noqa: E402

__all__ = ["__version__", "__version_info__", "HookEngine", "HookwardenSettings"]
