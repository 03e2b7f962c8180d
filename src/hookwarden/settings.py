"""
Settings configuration using pydantic-settings.

Loads configuration from:
1. Constructor arguments (highest precedence)
2. Environment variables with HOOKWARDEN_ prefix
3. .env file (if HOOKWARDEN_ENV_FILE points at one)
4. Field defaults

Hook registrations themselves live in hooks.yaml files (see
hookwarden.hooks.config); these settings only tune the engine.
"""

import os as _os
import pathlib as _pathlib

import pydantic as _pydantic
import pydantic_settings as _pydantic_settings

import hookwarden.constants as constants


def _get_env_file() -> str | None:
    """Determine which .env file to load.

    Only an explicit HOOKWARDEN_ENV_FILE is honoured. If it is set but the
    file doesn't exist, no .env is loaded.
    """
    if env_file := _os.environ.get("HOOKWARDEN_ENV_FILE"):
        if _pathlib.Path(env_file).exists():
            return env_file
    return None


class HookwardenSettings(_pydantic_settings.BaseSettings):
    """
    Engine-wide Hookwarden settings.

    All settings can be overridden via environment variables with the
    HOOKWARDEN_ prefix, e.g. HOOKWARDEN_MAX_CONCURRENCY=4.
    """

    model_config = _pydantic_settings.SettingsConfigDict(
        env_prefix=constants.ENV_PREFIX,
        env_file=_get_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    project_root: _pathlib.Path | None = _pydantic.Field(
        default=None,
        description="Project root for .hookwarden/hooks.yaml and hook working directory",
    )

    default_timeout_ms: int = _pydantic.Field(
        default=constants.DEFAULT_HOOK_TIMEOUT_MS,
        gt=0,
        description="Timeout for hooks that don't declare timeout_ms",
    )

    max_concurrency: int = _pydantic.Field(
        default=constants.DEFAULT_MAX_CONCURRENCY,
        ge=1,
        description="Maximum concurrently running post-action hooks per event",
    )

    default_max_iterations: int = _pydantic.Field(
        default=constants.DEFAULT_MAX_ITERATIONS,
        ge=0,
        description="Continuation loop ceiling when a session doesn't set one",
    )

    stall_threshold: int | None = _pydantic.Field(
        default=None,
        ge=2,
        description="Identical terminal outcomes in a row that halt the loop (unset = off)",
    )

    results_log: _pathlib.Path | None = _pydantic.Field(
        default=None,
        description="Optional JSONL file that receives every hook result",
    )

    load_global_config: bool = _pydantic.Field(
        default=True,
        description="Whether ~/.config/hookwarden/hooks.yaml is loaded",
    )

    @classmethod
    def construct_without_dotenv(cls, **kwargs: object) -> "HookwardenSettings":
        """Create settings from environment variables only, without loading .env file.

        Useful for test isolation.
        """
        return cls(_env_file=None, **kwargs)  # type: ignore[call-arg]

    def resolved_project_root(self) -> _pathlib.Path:
        """Project root, falling back to the current working directory."""
        return (self.project_root or _pathlib.Path.cwd()).resolve()
