"""
Base class for hooks.

A Hook binds one registration to a way of running it. All hooks share
the same timeout and failure handling, so the dispatcher never has to
know whether a hook is an external process or in-process code.
"""

from __future__ import annotations

import abc as _abc
import asyncio as _asyncio
import dataclasses as _dataclasses
import logging as _logging
import pathlib as _pathlib
import time as _time

import hookwarden.constants as constants
import hookwarden.errors as errors
import hookwarden.hooks.config as config
import hookwarden.hooks.events as events
import hookwarden.hooks.results as results

_logger = _logging.getLogger(__name__)


@_dataclasses.dataclass(frozen=True)
class HookOutput:
    """What a hook implementation reports back: exit code and captured output."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""


class Hook(_abc.ABC):
    """
    Abstract base class for hooks.

    Subclasses implement _run_impl(). Timeout enforcement and conversion
    of failures into HookResults is done here; run() never raises except
    for cancellation.
    """

    def __init__(
        self,
        registration: config.HookRegistration,
        *,
        project_root: _pathlib.Path | None = None,
    ) -> None:
        """
        Initialize the hook.

        Args:
            registration: The registration this hook runs.
            project_root: Project root directory for resolving paths.
        """
        self._registration = registration
        self._project_root = project_root or _pathlib.Path.cwd()

    @property
    def registration(self) -> config.HookRegistration:
        return self._registration

    @property
    @_abc.abstractmethod
    def hook_type(self) -> str:
        """The kind of hook (e.g. "command")."""
        ...

    @_abc.abstractmethod
    async def _run_impl(self, event: events.ToolInvocationEvent) -> HookOutput:
        """
        Run the hook against an event (implementation).

        Must release any resources it holds when cancelled; the base
        class cancels it on timeout.

        Raises:
            SpawnError: If the hook cannot be started.
        """
        ...

    async def run(self, event: events.ToolInvocationEvent) -> results.HookResult:
        """
        Run the hook with timeout enforcement.

        Args:
            event: The event being dispatched.

        Returns:
            HookResult. Timeouts and spawn failures are reported as data.
        """
        hook = self._registration
        started = _time.monotonic()

        try:
            output = await self._run_with_deadline(event)
        except errors.HookTimeoutError as e:
            elapsed = _time.monotonic() - started
            _logger.warning(
                "%s on %s (session %s, event %d)",
                e,
                event.event_type.value,
                event.session_id,
                event.sequence_number,
            )
            return results.HookResult(
                hook=hook,
                exit_code=constants.INDETERMINATE_EXIT_CODE,
                stderr=str(e),
                duration=elapsed,
                timed_out=True,
            )
        except errors.SpawnError as e:
            _logger.warning("Hook %s could not be started: %s", hook.display_name, e)
            return self._spawn_failure(str(e), started)
        except Exception as e:
            # Hook implementation bugs are reported like spawn failures
            _logger.warning("Hook %s failed with error: %s", hook.display_name, e)
            return self._spawn_failure(f"{type(e).__name__}: {e}", started)

        return results.HookResult(
            hook=hook,
            exit_code=output.exit_code,
            stdout=output.stdout,
            stderr=output.stderr,
            duration=_time.monotonic() - started,
        )

    async def _run_with_deadline(self, event: events.ToolInvocationEvent) -> HookOutput:
        hook = self._registration
        try:
            return await _asyncio.wait_for(self._run_impl(event), timeout=hook.timeout)
        except TimeoutError as e:
            raise errors.HookTimeoutError(
                f"Hook '{hook.display_name}' timed out after {hook.timeout:g}s"
            ) from e

    def _spawn_failure(self, message: str, started: float) -> results.HookResult:
        return results.HookResult(
            hook=self._registration,
            exit_code=constants.SPAWN_FAILURE_EXIT_CODE,
            stderr=message,
            duration=_time.monotonic() - started,
            spawn_failed=True,
        )
