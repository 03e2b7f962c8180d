"""
Shared pytest fixtures for Hookwarden tests.

This file is automatically loaded by pytest. Fixtures defined here are
available to all test files without explicit imports.
"""

import pathlib as _pathlib
import stat as _stat
import typing as _typing

import pytest as _pytest

import hookwarden.hooks.events as events
import hookwarden.settings as settings_module

# Environment keys that should be cleared for isolated tests
ENV_KEYS_TO_CLEAR = [
    "HOOKWARDEN_PROJECT_ROOT",
    "HOOKWARDEN_DEFAULT_TIMEOUT_MS",
    "HOOKWARDEN_MAX_CONCURRENCY",
    "HOOKWARDEN_DEFAULT_MAX_ITERATIONS",
    "HOOKWARDEN_STALL_THRESHOLD",
    "HOOKWARDEN_RESULTS_LOG",
    "HOOKWARDEN_LOAD_GLOBAL_CONFIG",
    "HOOKWARDEN_ENV_FILE",
]


@_pytest.fixture(autouse=True)
def clean_env(monkeypatch: _pytest.MonkeyPatch) -> None:
    """Keep the developer's HOOKWARDEN_* settings out of tests."""
    for key in ENV_KEYS_TO_CLEAR:
        monkeypatch.delenv(key, raising=False)


@_pytest.fixture
def settings(tmp_path: _pathlib.Path) -> settings_module.HookwardenSettings:
    """Settings rooted at tmp_path with the global config disabled."""
    return settings_module.HookwardenSettings.construct_without_dotenv(
        project_root=tmp_path,
        load_global_config=False,
    )


ScriptWriter = _typing.Callable[[str, str], _pathlib.Path]


@_pytest.fixture
def write_script(tmp_path: _pathlib.Path) -> ScriptWriter:
    """Return a helper that writes an executable shell script under tmp_path."""

    def _write(name: str, body: str) -> _pathlib.Path:
        path = tmp_path / name
        path.write_text("#!/bin/sh\n" + body + "\n")
        path.chmod(path.stat().st_mode | _stat.S_IXUSR | _stat.S_IXGRP | _stat.S_IXOTH)
        return path

    return _write


EventFactory = _typing.Callable[..., events.ToolInvocationEvent]


@_pytest.fixture
def make_event() -> EventFactory:
    """Return a factory for events with auto-incrementing sequence numbers."""
    counters: dict[str, int] = {}

    def _make(
        event_type: str | events.HookEvent = events.HookEvent.PRE_TOOL_USE,
        *,
        tool_name: str = "shell_exec",
        tool_input: dict[str, _typing.Any] | None = None,
        session_id: str = "test-session",
        sequence_number: int | None = None,
    ) -> events.ToolInvocationEvent:
        if sequence_number is None:
            sequence_number = counters.get(session_id, 0) + 1
        counters[session_id] = max(counters.get(session_id, 0), sequence_number)
        return events.ToolInvocationEvent.create(
            event_type,
            session_id=session_id,
            sequence_number=sequence_number,
            tool_name=tool_name,
            tool_input=tool_input,
        )

    return _make

