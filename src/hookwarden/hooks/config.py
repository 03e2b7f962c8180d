"""
Hook configuration loading.

Hooks are configured in YAML (or JSON) files:
- Global: ~/.config/hookwarden/hooks.yaml
- Project: .hookwarden/hooks.yaml

Global hooks are declared first, then project hooks. Declaration order
is execution order. Two spellings of the `hooks` section are accepted:

```yaml
version: 1
hooks:
  - event_type: PreToolUse
    matcher: shell_exec
    command: ./policy/deny-rm.sh
  - event_type: PostToolUse
    matcher: "Write|Edit"
    command: [./hooks/post-write-pytest.sh]
    timeout_ms: 120000
```

or the nested agent-settings form, where `timeout` is in seconds:

```yaml
hooks:
  PostToolUse:
    - matcher: Write
      hooks:
        - type: command
          command: .cursor/hooks/post-write-pytest.sh
```
"""

from __future__ import annotations

import pathlib as _pathlib
import shlex as _shlex
import typing as _typing

import pydantic as _pydantic
import yaml as _yaml

import hookwarden.constants as constants
import hookwarden.errors as errors
import hookwarden.hooks.events as events
import hookwarden.hooks.matching as matching

RegistrationKey = tuple[events.HookEvent, str, tuple[str, ...]]


class HookRegistration(_pydantic.BaseModel):
    """
    Declaration of a single hook.

    Immutable once loaded. Identified by (event_type, matcher, command);
    duplicates are rejected by the registry.
    """

    model_config = _pydantic.ConfigDict(extra="forbid", frozen=True)

    event_type: events.HookEvent
    """Lifecycle event the hook runs on."""

    matcher: str = "*"
    """Tool name pattern: exact name, glob, regex, or the universal '*'."""

    command: tuple[str, ...]
    """Executable and arguments. A string is split shell-style."""

    timeout_ms: int = _pydantic.Field(default=constants.DEFAULT_HOOK_TIMEOUT_MS, gt=0)
    """Deadline for the hook process in milliseconds."""

    blocking: bool
    """Whether a nonzero exit vetoes the action (PreToolUse only)."""

    on_timeout: _typing.Literal["continue", "block"] = "continue"
    """Whether a timed-out blocking hook is treated as a veto."""

    name: str | None = None
    """Label used in logs and veto messages. Defaults to the executable name."""

    message: str | None = None
    """Block reason shown to the user instead of the hook's output."""

    @_pydantic.model_validator(mode="before")
    @classmethod
    def _apply_blocking_default(cls, data: _typing.Any) -> _typing.Any:
        """Fill in `blocking` from the event type when not given."""
        if isinstance(data, dict) and data.get("blocking") is None and "event_type" in data:
            try:
                event = events.HookEvent.parse(data["event_type"])
            except (ValueError, AttributeError, TypeError):
                # Let field validation report the bad event type
                return data
            data = {**data, "blocking": event.default_blocking}
        return data

    @_pydantic.field_validator("event_type", mode="before")
    @classmethod
    def _parse_event_type(cls, value: _typing.Any) -> _typing.Any:
        if isinstance(value, str):
            return events.HookEvent.parse(value)
        return value

    @_pydantic.field_validator("matcher", mode="before")
    @classmethod
    def _normalize_matcher(cls, value: _typing.Any) -> _typing.Any:
        if value is None or value == "":
            return matching.UNIVERSAL_MATCHER
        return value

    @_pydantic.field_validator("matcher")
    @classmethod
    def _check_matcher_compiles(cls, value: str) -> str:
        matching.compile_matcher(value)
        return value

    @_pydantic.field_validator("command", mode="before")
    @classmethod
    def _split_command(cls, value: _typing.Any) -> _typing.Any:
        if isinstance(value, str):
            value = _shlex.split(value)
        if isinstance(value, (list, tuple)):
            if not value:
                raise ValueError("command must not be empty")
            return tuple(str(part) for part in value)
        return value

    @property
    def key(self) -> RegistrationKey:
        """Identity triple used for duplicate detection."""
        return (self.event_type, self.matcher, self.command)

    @property
    def timeout(self) -> float:
        """Timeout in seconds."""
        return self.timeout_ms / 1000

    @property
    def display_name(self) -> str:
        """Name used in logs and veto messages."""
        return self.name or _pathlib.PurePath(self.command[0]).name


class HooksFile(_pydantic.BaseModel):
    """Complete contents of one hooks configuration source."""

    model_config = _pydantic.ConfigDict(extra="forbid")

    version: int = 1
    """Config version (for future compatibility)."""

    hooks: list[HookRegistration] = _pydantic.Field(default_factory=list)
    """Registrations in declaration order."""

    @_pydantic.model_validator(mode="before")
    @classmethod
    def _flatten_nested_hooks(cls, data: _typing.Any) -> _typing.Any:
        """Convert the nested {EventType: [{matcher, hooks}]} form to a flat list."""
        if not isinstance(data, dict) or not isinstance(data.get("hooks"), dict):
            return data
        return {**data, "hooks": _flatten_event_map(data["hooks"])}


def _flatten_event_map(event_map: dict[str, _typing.Any]) -> list[dict[str, _typing.Any]]:
    flat: list[dict[str, _typing.Any]] = []
    for event_name, groups in event_map.items():
        if not isinstance(groups, list):
            raise ValueError(f"hooks.{event_name} must be a list of matcher groups")
        for group in groups:
            if not isinstance(group, dict):
                raise ValueError(f"hooks.{event_name} entries must be mappings")
            matcher = group.get("matcher")
            for hook in group.get("hooks") or []:
                if not isinstance(hook, dict):
                    raise ValueError(f"hooks.{event_name} hook entries must be mappings")
                entry = dict(hook)
                hook_type = entry.pop("type", "command")
                if hook_type != "command":
                    raise ValueError(
                        f"hooks.{event_name}: unsupported hook type '{hook_type}'"
                    )
                timeout_seconds = entry.pop("timeout", None)
                if timeout_seconds is not None:
                    entry["timeout_ms"] = int(float(timeout_seconds) * 1000)
                entry["event_type"] = event_name
                entry.setdefault("matcher", matcher)
                flat.append(entry)
    return flat


def _entry_index(error: _pydantic.ValidationError) -> int | None:
    """Find the hooks list index named by the first validation error."""
    for detail in error.errors():
        loc = detail.get("loc", ())
        if len(loc) >= 2 and loc[0] == "hooks" and isinstance(loc[1], int):
            return loc[1]
    return None


def parse_hooks_config(
    data: dict[str, _typing.Any],
    *,
    source: str = "<inline>",
    default_timeout_ms: int | None = None,
) -> HooksFile:
    """
    Validate an already-parsed hooks configuration.

    Args:
        data: Parsed YAML/JSON mapping.
        source: Name used in error messages.
        default_timeout_ms: Timeout for entries that don't declare one.

    Returns:
        Validated HooksFile.

    Raises:
        ConfigError: If any entry is invalid.
    """
    if not isinstance(data, dict):
        raise errors.ConfigError("hooks config must be a mapping", source=source)

    try:
        hooks_file = HooksFile.model_validate(data)
    except _pydantic.ValidationError as e:
        raise errors.ConfigError(
            f"Invalid hooks config: {e}",
            source=source,
            entry=_entry_index(e),
        ) from e
    except ValueError as e:
        raise errors.ConfigError(f"Invalid hooks config: {e}", source=source) from e

    if default_timeout_ms is not None:
        hooks_file = HooksFile(
            version=hooks_file.version,
            hooks=[
                h
                if "timeout_ms" in h.model_fields_set
                else h.model_copy(update={"timeout_ms": default_timeout_ms})
                for h in hooks_file.hooks
            ],
        )
    return hooks_file


def load_hooks_file(
    path: _pathlib.Path,
    *,
    default_timeout_ms: int | None = None,
) -> HooksFile:
    """
    Load hooks configuration from a YAML or JSON file.

    Args:
        path: Path to the hooks file.
        default_timeout_ms: Timeout for entries that don't declare one.

    Returns:
        Parsed HooksFile.

    Raises:
        ConfigError: If the file is missing, unreadable, or invalid.
    """
    if not path.exists():
        raise errors.ConfigError("Hooks config not found", source=str(path))

    try:
        content = path.read_text(encoding="utf-8")
        data = _yaml.safe_load(content) or {}
    except _yaml.YAMLError as e:
        raise errors.ConfigError(f"Invalid YAML: {e}", source=str(path)) from e
    except OSError as e:
        raise errors.ConfigError(f"Cannot read hooks config: {e}", source=str(path)) from e

    return parse_hooks_config(data, source=str(path), default_timeout_ms=default_timeout_ms)


def get_global_hooks_path() -> _pathlib.Path:
    """Get the path to global hooks config."""
    return _pathlib.Path.home() / ".config" / "hookwarden" / "hooks.yaml"


def get_project_hooks_path(project_root: _pathlib.Path) -> _pathlib.Path:
    """Get the path to project-local hooks config."""
    return project_root / ".hookwarden" / "hooks.yaml"


def default_sources(
    project_root: _pathlib.Path | None = None,
    *,
    include_global: bool = True,
) -> list[_pathlib.Path]:
    """
    List the existing default config files, global first.

    Args:
        project_root: Project root directory. If None, only the global
                      config is considered.
        include_global: Whether to consider the global config at all.
    """
    candidates: list[_pathlib.Path] = []
    if include_global:
        candidates.append(get_global_hooks_path())
    if project_root is not None:
        candidates.append(get_project_hooks_path(project_root))
    return [path for path in candidates if path.exists()]
