"""
Tests that enforce coding standards.

- No `from X import Y` outside __init__.py re-exports
- Modules that log use a module-level `_logger = _logging.getLogger(__name__)`
"""

import pathlib as _pathlib
import re as _re

import pytest as _pytest

SRC_DIR = _pathlib.Path(__file__).parent.parent / "src" / "hookwarden"
TESTS_DIR = _pathlib.Path(__file__).parent

_FROM_IMPORT = _re.compile(r"^\s*from\s+(?!__future__\b)\S+\s+import\s")
_TYPE_CHECKING = _re.compile(r"^if (_typing\.)?TYPE_CHECKING:")


def _from_imports(content: str) -> list[tuple[int, str]]:
    """
    Find 'from X import Y' lines, skipping TYPE_CHECKING blocks.

    Returns list of (line_number, line_content) tuples.
    """
    found: list[tuple[int, str]] = []
    in_type_checking = False
    for number, line in enumerate(content.splitlines(), start=1):
        if _TYPE_CHECKING.match(line):
            in_type_checking = True
            continue
        if in_type_checking and line.strip() and not line[0].isspace():
            in_type_checking = False
        if not in_type_checking and _FROM_IMPORT.match(line):
            found.append((number, line.strip()))
    return found


def _python_files(directory: _pathlib.Path) -> list[_pathlib.Path]:
    return [p for p in directory.rglob("*.py") if p.name != "__init__.py"]


class TestImportStyle:
    """Tests for import style compliance."""

    @_pytest.mark.parametrize("directory", [SRC_DIR, TESTS_DIR], ids=["src", "tests"])
    def test_no_from_imports(self, directory: _pathlib.Path) -> None:
        violations = [
            f"{path}:{number}: {line}"
            for path in _python_files(directory)
            if path.name != "test_coding_standards.py"
            for number, line in _from_imports(path.read_text())
        ]
        if violations:
            _pytest.fail(
                "Found forbidden 'from X import Y' imports:\n"
                + "\n".join(f"  {v}" for v in violations)
                + "\n\nUse 'import X as _x' (external) or 'import X as x' (internal) instead."
            )

    def test_loggers_are_module_level(self) -> None:
        offenders = [
            str(path)
            for path in _python_files(SRC_DIR)
            if "_logger." in (text := path.read_text())
            and "_logger = _logging.getLogger(__name__)" not in text
        ]
        assert offenders == []


class TestImportExtraction:
    """Tests for the import detection itself."""

    def test_detects_from_import(self) -> None:
        assert _from_imports("from pathlib import Path") == [(1, "from pathlib import Path")]

    def test_allows_future_imports(self) -> None:
        assert _from_imports("from __future__ import annotations") == []

    def test_type_checking_block(self) -> None:
        content = (
            "import typing as _typing\n"
            "\n"
            "if _typing.TYPE_CHECKING:\n"
            "    from allowed import Type\n"
            "\n"
            "from forbidden import Other\n"
        )
        assert _from_imports(content) == [(6, "from forbidden import Other")]
