"""
Command hooks - run external executables.

The event is written to the process's stdin as one JSON object, and
HOOKWARDEN_* environment variables carry the basics for shell hooks.
The exit code is the hook's verdict:
- Exit 0: allow / success
- Exit non-zero: veto (blocking hooks) or failure to automate

Each process runs in its own process group so a timeout or teardown
kills any children it started as well.
"""

from __future__ import annotations

import asyncio as _asyncio
import contextlib as _contextlib
import os as _os
import pathlib as _pathlib
import shutil as _shutil
import signal as _signal

import hookwarden.constants as constants
import hookwarden.errors as errors
import hookwarden.hooks.events as events
import hookwarden.hooks.executors.base as base


def resolve_executable(program: str, cwd: _pathlib.Path) -> str | None:
    """
    Resolve a command's program to an executable path.

    Paths (anything containing a separator) are taken relative to cwd;
    bare names are looked up on PATH.

    Returns:
        The executable path, or None if it doesn't resolve.
    """
    if _os.sep in program or (_os.altsep and _os.altsep in program):
        path = _pathlib.Path(program)
        if not path.is_absolute():
            path = cwd / path
        if path.is_file() and _os.access(path, _os.X_OK):
            return str(path)
        return None
    return _shutil.which(program)


def _kill_process_group(process: _asyncio.subprocess.Process) -> None:
    """
    Kill the hook process and everything in its process group.

    The group is signalled even when the hook itself has exited, since
    background children it left behind may still hold its pipes open.
    """
    with _contextlib.suppress(ProcessLookupError, PermissionError):
        _os.killpg(process.pid, _signal.SIGKILL)
    if process.returncode is None:
        with _contextlib.suppress(ProcessLookupError):
            process.kill()


class CommandHook(base.Hook):
    """
    Hook backed by an external process.

    Runs the registration's command with the project root as working
    directory.
    """

    @property
    def hook_type(self) -> str:
        return "command"

    async def _run_impl(self, event: events.ToolInvocationEvent) -> base.HookOutput:
        argv = self.registration.command
        program = resolve_executable(argv[0], self._project_root)
        if program is None:
            raise errors.SpawnError(f"Command not found or not executable: {argv[0]}")

        env = _os.environ.copy()
        env.update(event.to_env_vars())
        env[f"{constants.ENV_PREFIX}PROJECT_DIR"] = str(self._project_root)

        try:
            process = await _asyncio.create_subprocess_exec(
                program,
                *argv[1:],
                stdin=_asyncio.subprocess.PIPE,
                stdout=_asyncio.subprocess.PIPE,
                stderr=_asyncio.subprocess.PIPE,
                cwd=str(self._project_root),
                env=env,
                start_new_session=True,
            )
        except OSError as e:
            raise errors.SpawnError(f"Cannot start {argv[0]}: {e}") from e

        try:
            stdout, stderr = await process.communicate(input=event.to_json().encode("utf-8"))
        except _asyncio.CancelledError:
            # Timeout or session teardown
            _kill_process_group(process)
            with _contextlib.suppress(ProcessLookupError):
                await process.wait()
            raise

        assert process.returncode is not None
        return base.HookOutput(
            exit_code=process.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
