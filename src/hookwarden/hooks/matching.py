"""
Matching hooks to tool invocation events.

A registration's matcher is compared against the event's tool name:
- Universal: "*" (or empty) matches every tool
- Exact: "shell_exec" matches "shell_exec"
- Glob: "write_*" matches "write_file"
- Regex: "Write|Edit" matches "Write" and "Edit" (full match)

Matching is case-sensitive.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import fnmatch as _fnmatch
import functools as _functools
import re as _re
import typing as _typing

if _typing.TYPE_CHECKING:
    import hookwarden.hooks.config as config
    import hookwarden.hooks.events as events
    import hookwarden.hooks.registry as registry

UNIVERSAL_MATCHER = "*"


def _looks_like_regex(value: str) -> bool:
    """
    Check if a matcher looks like a regex pattern.

    Only characters that are clearly regex-specific count, so `*.py` or
    `file?` stay globs.

    Regex-specific: ^, $, +, (, ), |, \\, [, ]
    Shared with glob: *, ?
    """
    regex_only_chars = {"^", "$", "+", "(", ")", "|", "\\", "[", "]"}
    return any(c in value for c in regex_only_chars)


@_dataclasses.dataclass(frozen=True)
class CompiledMatcher:
    """A matcher pattern prepared for repeated use."""

    pattern: str
    kind: _typing.Literal["universal", "exact", "glob", "regex"]
    regex: _re.Pattern[str] | None = None

    def matches(self, tool_name: str) -> bool:
        """Check whether the tool name satisfies this matcher."""
        if self.kind == "universal":
            return True
        if self.kind == "regex":
            assert self.regex is not None
            return self.regex.fullmatch(tool_name) is not None
        if self.kind == "glob":
            return _fnmatch.fnmatchcase(tool_name, self.pattern)
        return tool_name == self.pattern


@_functools.lru_cache(maxsize=256)
def compile_matcher(pattern: str) -> CompiledMatcher:
    """
    Compile a matcher pattern.

    Args:
        pattern: Matcher string from a hook registration.

    Returns:
        CompiledMatcher for the pattern.

    Raises:
        ValueError: If the pattern looks like a regex but doesn't compile.
    """
    if pattern in ("", UNIVERSAL_MATCHER):
        return CompiledMatcher(pattern=UNIVERSAL_MATCHER, kind="universal")

    if _looks_like_regex(pattern):
        try:
            return CompiledMatcher(pattern=pattern, kind="regex", regex=_re.compile(pattern))
        except _re.error as e:
            raise ValueError(f"Invalid matcher pattern '{pattern}': {e}") from e

    if "*" in pattern or "?" in pattern:
        return CompiledMatcher(pattern=pattern, kind="glob")

    return CompiledMatcher(pattern=pattern, kind="exact")


def matches_tool(pattern: str, tool_name: str) -> bool:
    """
    Convenience function to match one pattern against a tool name.

    Args:
        pattern: Matcher string.
        tool_name: Tool name from the event.

    Returns:
        True if the pattern selects the tool.
    """
    return compile_matcher(pattern).matches(tool_name)


class HookMatcher:
    """
    Resolves which registered hooks apply to an event.

    Pure function of (registry, event): no side effects, declaration
    order preserved.
    """

    def __init__(self, hook_registry: registry.HookRegistry) -> None:
        self._registry = hook_registry

    def resolve(self, event: events.ToolInvocationEvent) -> list[config.HookRegistration]:
        """
        Get the hooks that apply to an event, in declaration order.

        Args:
            event: The event being dispatched.

        Returns:
            Matching registrations for event.event_type.
        """
        return [
            hook
            for hook in self._registry.hooks_for(event.event_type)
            if matches_tool(hook.matcher, event.tool_name)
        ]
