"""
Hook registry - validated, indexed hook registrations.

The registry is built once at startup from one or more configuration
sources and is read-only afterwards, so it can be shared freely.
"""

from __future__ import annotations

import logging as _logging
import pathlib as _pathlib
import typing as _typing

import hookwarden.errors as errors
import hookwarden.hooks.config as config
import hookwarden.hooks.events as events
import hookwarden.hooks.executors.command as command

_logger = _logging.getLogger(__name__)

HookSource = _typing.Union[
    _pathlib.Path,
    str,
    dict[str, _typing.Any],
    config.HooksFile,
]


class HookRegistry:
    """
    Index of hook registrations by event type.

    Each event type maps to its registrations in declaration order,
    which is also execution order. Never partially built: load()
    either returns a complete registry or raises ConfigError.
    """

    def __init__(self, registrations: _typing.Iterable[config.HookRegistration] = ()) -> None:
        """
        Initialize from already-validated registrations.

        Raises:
            ConfigError: If two registrations share (event_type, matcher, command).
        """
        index: dict[events.HookEvent, list[config.HookRegistration]] = {}
        seen: set[config.RegistrationKey] = set()
        for position, hook in enumerate(registrations):
            if hook.key in seen:
                raise errors.ConfigError(
                    f"Duplicate hook registration for {hook.event_type.value} "
                    f"matcher '{hook.matcher}' command {list(hook.command)}",
                    entry=position,
                )
            seen.add(hook.key)
            index.setdefault(hook.event_type, []).append(hook)

        self._index: dict[events.HookEvent, tuple[config.HookRegistration, ...]] = {
            event: tuple(hooks) for event, hooks in index.items()
        }

    @classmethod
    def empty(cls) -> HookRegistry:
        """Create a registry with no hooks."""
        return cls()

    @classmethod
    def load(
        cls,
        sources: _typing.Iterable[HookSource],
        *,
        project_root: _pathlib.Path | None = None,
        default_timeout_ms: int | None = None,
        check_executables: bool = True,
    ) -> HookRegistry:
        """
        Load and validate hook registrations from configuration sources.

        Sources are read in order; declaration order across sources is
        preserved. No hook process is run.

        Args:
            sources: Paths to hooks files, parsed config mappings, or HooksFile objects.
            project_root: Directory relative command paths resolve against.
            default_timeout_ms: Timeout for entries that don't declare one.
            check_executables: Whether every command must resolve to an executable.

        Returns:
            Complete HookRegistry.

        Raises:
            ConfigError: Naming the offending source and entry on any failure.
        """
        root = project_root or _pathlib.Path.cwd()
        registrations: list[config.HookRegistration] = []
        seen: dict[config.RegistrationKey, str] = {}

        for source in sources:
            source_name, hooks_file = _read_source(source, default_timeout_ms)
            for position, hook in enumerate(hooks_file.hooks):
                if hook.key in seen:
                    raise errors.ConfigError(
                        f"Duplicate hook registration for {hook.event_type.value} "
                        f"matcher '{hook.matcher}' command {list(hook.command)} "
                        f"(first declared in {seen[hook.key]})",
                        source=source_name,
                        entry=position,
                    )
                if check_executables and command.resolve_executable(hook.command[0], root) is None:
                    raise errors.ConfigError(
                        f"Command '{hook.command[0]}' is not an executable",
                        source=source_name,
                        entry=position,
                    )
                seen[hook.key] = source_name
                registrations.append(hook)

        _logger.debug("Loaded %d hook registrations", len(registrations))
        return cls(registrations)

    def hooks_for(self, event_type: events.HookEvent) -> tuple[config.HookRegistration, ...]:
        """Get all registrations for an event type in declaration order."""
        return self._index.get(event_type, ())

    def has_hooks_for_event(self, event_type: events.HookEvent) -> bool:
        """Check if any hooks are registered for an event type."""
        return bool(self._index.get(event_type))

    def __iter__(self) -> _typing.Iterator[config.HookRegistration]:
        for event_type in events.HookEvent:
            yield from self._index.get(event_type, ())

    def __len__(self) -> int:
        return sum(len(hooks) for hooks in self._index.values())


def _read_source(
    source: HookSource,
    default_timeout_ms: int | None,
) -> tuple[str, config.HooksFile]:
    """Turn one source into (name for error messages, HooksFile)."""
    if isinstance(source, config.HooksFile):
        return "<inline>", source
    if isinstance(source, dict):
        return "<inline>", config.parse_hooks_config(
            source,
            default_timeout_ms=default_timeout_ms,
        )
    path = _pathlib.Path(source)
    return str(path), config.load_hooks_file(path, default_timeout_ms=default_timeout_ms)
