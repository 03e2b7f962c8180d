"""
Hook implementations - responsible for running registered hooks.

Each implementation satisfies the Hook interface:
- CommandHook: Runs an external executable with the event on stdin
- PythonHook: Calls an in-process Python callable
"""

from __future__ import annotations

import pathlib as _pathlib
import typing as _typing

from hookwarden.hooks.executors.base import Hook, HookOutput
from hookwarden.hooks.executors.command import CommandHook
from hookwarden.hooks.executors.python import PythonHook

if _typing.TYPE_CHECKING:
    import hookwarden.hooks.config as config

__all__ = [
    "CommandHook",
    "Hook",
    "HookFactory",
    "HookOutput",
    "PythonHook",
    "create_hook",
]

HookFactory = _typing.Callable[["config.HookRegistration"], Hook]


def create_hook(
    registration: config.HookRegistration,
    *,
    project_root: _pathlib.Path | None = None,
) -> Hook:
    """
    Create the default hook for a registration.

    Registrations loaded from configuration always name a command, so
    they run as external processes.

    Args:
        registration: Registration to run.
        project_root: Project root directory.

    Returns:
        CommandHook for the registration.
    """
    return CommandHook(registration, project_root=project_root)
