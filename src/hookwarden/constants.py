"""
Shared constants for Hookwarden.

This module provides a single source of truth for default values
that are used across multiple modules.
"""

# Hook execution defaults
DEFAULT_HOOK_TIMEOUT_MS = 60_000
"""Default timeout for a single hook process (60 seconds)."""

DEFAULT_MAX_CONCURRENCY = 8
"""Upper bound on concurrently running post-action hooks for one event."""

# Exit code conventions
INDETERMINATE_EXIT_CODE = -1
"""Exit code recorded for a hook that was killed after exceeding its timeout."""

SPAWN_FAILURE_EXIT_CODE = 127
"""Exit code recorded for a hook whose executable could not be started."""

FEEDBACK_EXIT_CODE = 2
"""Exit code hooks conventionally use to send their output back to the agent."""

# Continuation defaults
DEFAULT_MAX_ITERATIONS = 10
"""Default ceiling for the continuation loop of a session."""

# Truncation limits
BLOCK_REASON_MAX_CHARS = 2000
"""Maximum characters of hook output used as a block reason."""

RECORDER_BUFFER_SIZE = 1000
"""Number of hook results kept in memory by the recorder."""

# Protocol
ENV_PREFIX = "HOOKWARDEN_"
"""Prefix for environment variables passed to hook processes and settings."""

COMPLETION_MARKER_KEY = "completed"
"""Key in a terminal event's tool_input that marks the task as done."""
