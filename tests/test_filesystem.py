from __future__ import annotations

import os
from pathlib import Path

import pytest

from sexpfmt.filesystem import (
    MAX_FILE_SIZE_ENV_VAR,
    collect_file_stat,
    ensure_file_unchanged,
    expand_paths,
    get_max_file_size,
    is_ignored,
    write_atomically,
)


def _touch(path: Path, content: str = "(foo)\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_get_max_file_size_defaults(monkeypatch):
    monkeypatch.delenv(MAX_FILE_SIZE_ENV_VAR, raising=False)

    assert get_max_file_size(default=123) == 123


def test_get_max_file_size_from_environment(monkeypatch):
    monkeypatch.setenv(MAX_FILE_SIZE_ENV_VAR, "2048")

    assert get_max_file_size(default=123) == 2048


@pytest.mark.parametrize("value", ["big", "0", "-5"])
def test_get_max_file_size_rejects_invalid_environment(monkeypatch, value: str):
    monkeypatch.setenv(MAX_FILE_SIZE_ENV_VAR, value)

    with pytest.raises(ValueError, match=MAX_FILE_SIZE_ENV_VAR):
        get_max_file_size()


@pytest.mark.parametrize(
    ("path", "patterns", "expected"),
    [
        ("src/main.scm", [], False),
        ("src/main.scm", ["*.scm"], True),
        ("src/main.scm", ["*.bak"], False),
        ("vendor/lib/a.scm", ["vendor"], True),
        ("src/vendor/a.scm", ["vendor"], True),
        ("vendor/lib/a.scm", ["vendor/**"], True),
        ("src/vendor/a.scm", ["vendor/**"], False),
        ("src/vendor/a.scm", ["src/vendor"], True),
        ("src/vendor/a.scm", ["/src/vendor/"], True),
        ("src/main.scm", ["  "], False),
    ],
)
def test_is_ignored(tmp_path: Path, path: str, patterns: list[str], expected: bool):
    assert is_ignored(Path(path), patterns, tmp_path) is expected


def test_is_ignored_with_absolute_path(tmp_path: Path):
    assert is_ignored(tmp_path / "build" / "a.scm", ["build"], tmp_path)


def test_expand_paths_with_recursive_glob(tmp_path: Path):
    first = _touch(tmp_path / "a.scm")
    second = _touch(tmp_path / "src" / "b.scm")
    _touch(tmp_path / "src" / "notes.txt")

    assert expand_paths(["**/*.scm"], [], tmp_path) == [first, second]


def test_expand_paths_applies_ignore_patterns(tmp_path: Path):
    kept = _touch(tmp_path / "src" / "a.scm")
    _touch(tmp_path / "src" / "vendor" / "b.scm")

    assert expand_paths(["src/**/*.scm"], ["vendor"], tmp_path) == [kept]


def test_expand_paths_skips_directories_and_duplicates(tmp_path: Path):
    path = _touch(tmp_path / "a.scm")
    (tmp_path / "dir.scm").mkdir()

    assert expand_paths(["*.scm", "a.scm"], [], tmp_path) == [path]


def test_expand_paths_with_absolute_pattern(tmp_path: Path):
    path = _touch(tmp_path / "a.scm")

    assert expand_paths([str(path)], [], tmp_path) == [path]


def test_expand_paths_without_matches(tmp_path: Path):
    assert expand_paths(["*.scm"], [], tmp_path) == []


def test_collect_file_stat_rejects_directory(tmp_path: Path):
    with pytest.raises(IOError, match="not a regular file"):
        collect_file_stat(tmp_path)


def test_collect_file_stat_rejects_missing_file(tmp_path: Path):
    with pytest.raises(IOError, match="Error accessing"):
        collect_file_stat(tmp_path / "missing.scm")


def test_write_atomically_replaces_content(tmp_path: Path):
    path = _touch(tmp_path / "a.scm", "(foo\nbar)")
    initial_stat = collect_file_stat(path)

    write_atomically(path, "(foo\n  bar)\n", initial_stat)

    assert path.read_text(encoding="utf-8") == "(foo\n  bar)\n"
    assert sorted(entry.name for entry in tmp_path.iterdir()) == ["a.scm"]


def test_write_atomically_refuses_modified_file(tmp_path: Path):
    path = _touch(tmp_path / "a.scm", "(foo)")
    initial_stat = collect_file_stat(path)
    path.write_text("(foo bar baz)", encoding="utf-8")

    with pytest.raises(IOError, match="changed during processing"):
        write_atomically(path, "(foo)\n", initial_stat)

    assert path.read_text(encoding="utf-8") == "(foo bar baz)"


def test_ensure_file_unchanged_accepts_same_stat(tmp_path: Path):
    path = _touch(tmp_path / "a.scm")
    stat_result = os.stat(path)

    ensure_file_unchanged(stat_result, stat_result, path)
