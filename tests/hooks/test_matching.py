"""Tests for hook matching."""

import pytest as _pytest

import hookwarden.hooks.config as config
import hookwarden.hooks.matching as matching
import hookwarden.hooks.registry as registry


class TestCompileMatcher:
    """Tests for compile_matcher and matches_tool."""

    def test_universal_matches_everything(self) -> None:
        """'*' matches any tool name, including empty."""
        assert matching.matches_tool("*", "shell_exec") is True
        assert matching.matches_tool("*", "") is True
        assert matching.compile_matcher("").kind == "universal"

    def test_exact_match_is_case_sensitive(self) -> None:
        """Exact matchers match only the identical name."""
        assert matching.matches_tool("shell_exec", "shell_exec") is True
        assert matching.matches_tool("shell_exec", "Shell_Exec") is False
        assert matching.matches_tool("shell_exec", "shell_exec2") is False

    def test_glob_match(self) -> None:
        """Glob matchers use fnmatch semantics, case-sensitively."""
        assert matching.compile_matcher("write_*").kind == "glob"
        assert matching.matches_tool("write_*", "write_file") is True
        assert matching.matches_tool("write_*", "read_file") is False
        assert matching.matches_tool("write_*", "WRITE_file") is False
        assert matching.matches_tool("tool?", "tool1") is True

    def test_regex_alternation(self) -> None:
        """Regex matchers must match the whole name."""
        assert matching.compile_matcher("Write|Edit").kind == "regex"
        assert matching.matches_tool("Write|Edit", "Write") is True
        assert matching.matches_tool("Write|Edit", "Edit") is True
        assert matching.matches_tool("Write|Edit", "MultiEdit") is False

    def test_invalid_regex_raises(self) -> None:
        """A pattern that looks like a regex but doesn't compile is an error."""
        with _pytest.raises(ValueError, match="Invalid matcher pattern"):
            matching.compile_matcher("(unclosed")


class TestHookMatcher:
    """Tests for HookMatcher.resolve."""

    @_pytest.fixture
    def hook_registry(self) -> registry.HookRegistry:
        return registry.HookRegistry(
            [
                config.HookRegistration(event_type="PreToolUse", matcher="*", command="sh -c 'exit 0'", name="all-1"),
                config.HookRegistration(event_type="PreToolUse", matcher="shell_exec", command="sh -c 'exit 0'", name="shell"),
                config.HookRegistration(event_type="PreToolUse", matcher="write_*", command="sh -c 'exit 0'", name="writes"),
                config.HookRegistration(event_type="PreToolUse", matcher="*", command="sh -c 'exit 1'", name="all-2"),
                config.HookRegistration(event_type="PostToolUse", matcher="*", command="sh -c 'exit 0'", name="post"),
            ]
        )

    def test_universal_returns_all_in_declaration_order(
        self,
        hook_registry: registry.HookRegistry,
        make_event,
    ) -> None:
        """A tool nothing names gets exactly the universal hooks, in order."""
        resolved = matching.HookMatcher(hook_registry).resolve(make_event(tool_name="read_file"))
        assert [h.name for h in resolved] == ["all-1", "all-2"]

    def test_exact_name_selects_its_hooks(
        self,
        hook_registry: registry.HookRegistry,
        make_event,
    ) -> None:
        """Exact matchers join universal ones without reordering."""
        resolved = matching.HookMatcher(hook_registry).resolve(make_event(tool_name="shell_exec"))
        assert [h.name for h in resolved] == ["all-1", "shell", "all-2"]

    def test_event_type_filters(
        self,
        hook_registry: registry.HookRegistry,
        make_event,
    ) -> None:
        """Only hooks for the event's type are considered."""
        resolved = matching.HookMatcher(hook_registry).resolve(
            make_event("PostToolUse", tool_name="write_file")
        )
        assert [h.name for h in resolved] == ["post"]

    def test_no_hooks_for_event(self, make_event) -> None:
        """Empty registry resolves to nothing."""
        resolved = matching.HookMatcher(registry.HookRegistry.empty()).resolve(make_event("Stop"))
        assert resolved == []
