"""
Main CLI entry point for Hookwarden.

Provides the command-line interface using Click:
- check: validate hook configuration and list registrations
- dispatch: run the hooks for one event read from stdin
"""

import asyncio as _asyncio
import json as _json
import logging as _logging
import pathlib as _pathlib
import sys as _sys
import typing as _typing

import click as _click

import hookwarden
import hookwarden.constants as constants
import hookwarden.engine as engine
import hookwarden.errors as errors
import hookwarden.hooks.events as events
import hookwarden.settings as settings_module

# Custom Click context settings for better help formatting
CONTEXT_SETTINGS: dict[str, _typing.Any] = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 100,
}

BLOCKED_EXIT_CODE = constants.FEEDBACK_EXIT_CODE
"""
Exit code of `hookwarden dispatch` when the action was vetoed.

Same convention as hook scripts, so `hookwarden dispatch` can itself be
installed as a hook: the veto reason on stderr goes back to the agent.
"""


def _run_async(coro: _typing.Coroutine[_typing.Any, _typing.Any, _typing.Any]) -> _typing.Any:
    """Run an async coroutine synchronously."""
    return _asyncio.run(coro)


def _build_engine(ctx: _click.Context, config_files: tuple[_pathlib.Path, ...]) -> engine.HookEngine:
    """Load the engine from default and explicit config files, exiting 1 on bad config."""
    settings: settings_module.HookwardenSettings = ctx.obj["settings"]
    try:
        return engine.HookEngine.from_config(settings=settings, extra_sources=config_files)
    except errors.ConfigError as e:
        _click.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from None


@_click.group(context_settings=CONTEXT_SETTINGS)
@_click.version_option(hookwarden.__version__, "-v", "--version", prog_name="hookwarden")
@_click.option(
    "--project-root",
    type=_click.Path(file_okay=False, path_type=_pathlib.Path),
    default=None,
    help="Project root (default: current directory)",
)
@_click.option(
    "--no-global",
    is_flag=True,
    help="Don't load ~/.config/hookwarden/hooks.yaml",
)
@_click.option(
    "--verbose",
    is_flag=True,
    help="Enable verbose logging on stderr",
)
@_click.pass_context
def cli(
    ctx: _click.Context,
    project_root: _pathlib.Path | None,
    no_global: bool,
    verbose: bool,
) -> None:
    """
    Hookwarden - hook dispatch for coding agents.

    \b
    Examples:
        hookwarden check                          # Validate default config
        hookwarden check -c hooks.yaml --json     # Validate a specific file
        echo '{...}' | hookwarden dispatch        # Run hooks for one event
    """
    _logging.basicConfig(
        level=_logging.DEBUG if verbose else _logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=_sys.stderr,
    )

    settings = settings_module.HookwardenSettings()
    if project_root is not None:
        settings = settings.model_copy(update={"project_root": project_root})
    if no_global:
        settings = settings.model_copy(update={"load_global_config": False})

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@_click.option(
    "-c",
    "--config",
    "config_files",
    type=_click.Path(exists=True, dir_okay=False, path_type=_pathlib.Path),
    multiple=True,
    help="Additional hooks file (repeatable, loaded after defaults)",
)
@_click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@_click.pass_context
def check(
    ctx: _click.Context,
    config_files: tuple[_pathlib.Path, ...],
    json_output: bool,
) -> None:
    """Validate hook configuration and list registrations."""
    hook_engine = _build_engine(ctx, config_files)
    registrations = list(hook_engine.registry)

    if json_output:
        _click.echo(
            _json.dumps(
                [r.model_dump(mode="json") for r in registrations],
                indent=2,
            )
        )
        return

    if not registrations:
        _click.echo("No hooks registered.")
        return

    _click.echo(f"{len(registrations)} hook(s) registered:")
    for r in registrations:
        mode = "blocking" if r.blocking else "non-blocking"
        _click.echo(
            f"  {r.event_type.value:<13} {r.matcher:<20} {r.display_name} "
            f"({mode}, timeout {r.timeout:g}s)"
        )


@cli.command()
@_click.option(
    "-c",
    "--config",
    "config_files",
    type=_click.Path(exists=True, dir_okay=False, path_type=_pathlib.Path),
    multiple=True,
    help="Additional hooks file (repeatable, loaded after defaults)",
)
@_click.option(
    "-e",
    "--event",
    "event_file",
    type=_click.File("r"),
    default="-",
    help="File containing the event JSON (default: stdin)",
)
@_click.pass_context
def dispatch(
    ctx: _click.Context,
    config_files: tuple[_pathlib.Path, ...],
    event_file: _typing.TextIO,
) -> None:
    """
    Run the hooks for one event and print the decision as JSON.

    Exits 2 if a blocking hook vetoed the action, 0 otherwise.
    """
    try:
        event = events.ToolInvocationEvent.from_dict(_json.load(event_file))
    except (ValueError, TypeError) as e:
        _click.echo(f"Error: invalid event: {e}", err=True)
        raise SystemExit(1) from None

    hook_engine = _build_engine(ctx, config_files)

    async def run() -> _typing.Any:
        try:
            return await hook_engine.dispatch(event)
        finally:
            await hook_engine.close()

    decision = _run_async(run())
    _click.echo(_json.dumps(decision.to_dict(), indent=2))
    if decision.blocked:
        _click.echo(decision.describe(), err=True)
        raise SystemExit(BLOCKED_EXIT_CODE)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
