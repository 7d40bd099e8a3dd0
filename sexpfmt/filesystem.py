"""Filesystem helpers for sexpfmt."""

from __future__ import annotations

import glob
import os
import stat
import tempfile
from collections.abc import Iterable
from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath
from typing import TextIO

from .constants import DEFAULT_MAX_FILE_SIZE

MAX_FILE_SIZE_ENV_VAR = "SEXPFMT_MAX_FILE_SIZE"


def get_max_file_size(default: int = DEFAULT_MAX_FILE_SIZE) -> int:
    """Resolve the maximum allowed file size.

    Args:
        default: Fallback value in bytes when the environment variable is unset.

    Returns:
        int: Maximum allowed file size in bytes.

    Raises:
        ValueError: If the environment value is not a positive integer.

    Examples:
        os.environ["SEXPFMT_MAX_FILE_SIZE"] = "204800"
        limit = get_max_file_size(default=102400)
    """
    env_value = os.environ.get(MAX_FILE_SIZE_ENV_VAR)
    if env_value is None:
        return default

    try:
        max_size = int(env_value)
    except ValueError as error:
        error_message = (
            f"Invalid value for {MAX_FILE_SIZE_ENV_VAR}: {env_value} (expected positive integer)"
        )
        raise ValueError(error_message) from error

    if max_size <= 0:
        error_message = f"{MAX_FILE_SIZE_ENV_VAR} must be a positive integer, got {max_size}."
        raise ValueError(error_message)

    return max_size


def is_ignored(path: Path, patterns: Iterable[str], base_dir: Path) -> bool:
    """Check a path against gitignore-like glob patterns.

    A pattern containing ``/`` is matched against the path relative to
    `base_dir` and against each of its parents; any other pattern is matched
    against every path component, so ``build`` ignores everything below a
    ``build`` directory.

    Args:
        path: Candidate path, absolute or relative to `base_dir`.
        patterns: Glob patterns such as ``*.bak`` or ``vendor/**``.
        base_dir: Directory patterns are relative to.

    Returns:
        bool: True when any pattern matches.

    Examples:
        is_ignored(Path("vendor/lib/a.scm"), ["vendor"], Path.cwd())  # True
        is_ignored(Path("src/a.scm"), ["*.bak"], Path.cwd())  # False
    """
    absolute = path if path.is_absolute() else base_dir / path
    try:
        relative = PurePosixPath(absolute.relative_to(base_dir).as_posix())
    except ValueError:
        relative = PurePosixPath(absolute.as_posix())

    candidates = [relative, *(parent for parent in relative.parents if parent.parts)]

    for pattern in patterns:
        pattern = pattern.strip().rstrip("/")
        if not pattern:
            continue
        if "/" in pattern:
            pattern = pattern.lstrip("/")
            if any(fnmatchcase(str(candidate), pattern) for candidate in candidates):
                return True
        elif any(fnmatchcase(part, pattern) for part in relative.parts):
            return True
    return False


def expand_paths(patterns: Iterable[str], ignore_patterns: Iterable[str], base_dir: Path) -> list[Path]:
    """Expand glob patterns into the regular files to process.

    Args:
        patterns: Paths or glob patterns (``**`` is recursive), absolute or
            relative to `base_dir`.
        ignore_patterns: Patterns passed to `is_ignored`.
        base_dir: Directory relative patterns are resolved against.

    Returns:
        list[Path]: Matching regular files that are not ignored, in sorted
            order per pattern and without duplicates.

    Examples:
        expand_paths(["src/**/*.scm"], ["src/vendor"], Path.cwd())
    """
    ignore_patterns = tuple(ignore_patterns)
    seen: set[Path] = set()
    paths: list[Path] = []

    for pattern in patterns:
        root_dir = None if Path(pattern).is_absolute() else base_dir
        for match in sorted(glob.glob(pattern, root_dir=root_dir, recursive=True)):
            path = Path(match) if root_dir is None else base_dir / match
            if not path.is_file() or path in seen:
                continue
            if is_ignored(path, ignore_patterns, base_dir):
                continue
            seen.add(path)
            paths.append(path)

    return paths


def collect_file_stat(filepath: Path) -> os.stat_result:
    """Return stat information for a file while disallowing symlinks.

    Args:
        filepath: Path to the file.

    Returns:
        os.stat_result: File metadata gathered without following symlinks.

    Raises:
        IOError: If the path is inaccessible, a symlink, or not a regular file.

    Examples:
        stat_result = collect_file_stat(Path("main.scm"))
    """
    try:
        stat_result = os.stat(filepath, follow_symlinks=False)
    except OSError as error:
        error_message = f"Error accessing {filepath}: {error}"
        raise IOError(error_message) from error

    if stat.S_ISLNK(stat_result.st_mode):
        error_message = f"Symlinks are not supported: {filepath}."
        raise IOError(error_message)

    if not stat.S_ISREG(stat_result.st_mode):
        error_message = f"{filepath} is not a regular file."
        raise IOError(error_message)

    return stat_result


def enforce_file_size(stat_result: os.stat_result, max_size: int, filepath: Path):
    """Guard against files that exceed the configured maximum size.

    Raises:
        IOError: If `stat_result.st_size` exceeds `max_size`.
    """
    if stat_result.st_size > max_size:
        error_message = f"{filepath} exceeds the maximum allowed size of {max_size} bytes."
        raise IOError(error_message)


def ensure_file_unchanged(
    expected_stat: os.stat_result, current_stat: os.stat_result, filepath: Path
):
    """Detect changes between two filesystem snapshots.

    Args:
        expected_stat: Stat captured before processing.
        current_stat: Stat captured after processing.
        filepath: Path to the file being monitored.

    Raises:
        IOError: If inode, device, size, or modification time differ.
    """
    fingerprint_before = (
        getattr(expected_stat, "st_ino", None),
        getattr(expected_stat, "st_dev", None),
        expected_stat.st_size,
        expected_stat.st_mtime_ns,
    )
    fingerprint_after = (
        getattr(current_stat, "st_ino", None),
        getattr(current_stat, "st_dev", None),
        current_stat.st_size,
        current_stat.st_mtime_ns,
    )

    if fingerprint_before != fingerprint_after:
        error_message = f"{filepath} changed during processing; refusing to overwrite."
        raise IOError(error_message)


def safe_read(filepath: Path) -> TextIO:
    """Open a file for reading with consistent error handling.

    Args:
        filepath: Path to the file.

    Returns:
        TextIO: File handle opened for reading in UTF-8.

    Raises:
        IOError: If the path is missing, inaccessible, or not a file.

    Examples:
        with safe_read(Path("main.scm")) as handle:
            source = handle.read()
    """
    try:
        return open(filepath, "r", encoding="UTF-8")
    except (
        FileNotFoundError,
        PermissionError,
        IsADirectoryError,
        NotADirectoryError,
    ) as error:
        error_message = f"Error accessing {filepath}: {error}"
        raise IOError(error_message) from error


def write_atomically(filepath: Path, content: str, expected_stat: os.stat_result):
    """Replace a file's content through a temporary file in the same directory.

    Args:
        filepath: Path to the file to rewrite.
        content: New file content.
        expected_stat: File stat captured when the file was read, used to detect
            concurrent modifications and to preserve permissions.

    Raises:
        IOError: If the file changed since it was read or cannot be replaced.

    Examples:
        write_atomically(Path("main.scm"), formatted, stat_result)
    """
    current_stat = collect_file_stat(filepath)
    ensure_file_unchanged(expected_stat, current_stat, filepath)

    permissions = stat.S_IMODE(expected_stat.st_mode)

    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", encoding="UTF-8", delete=False, dir=filepath.parent
        ) as tmp_file:
            temp_path = Path(tmp_file.name)
            tmp_file.write(content)

            # Flush and sync before the rename
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
            os.chmod(tmp_file.name, permissions)

        os.replace(temp_path, filepath)
    except OSError as error:
        error_message = f"Error writing {filepath}: {error}"
        raise IOError(error_message) from error
    finally:
        if temp_path is not None:
            try:
                Path(temp_path).unlink(missing_ok=True)
            except OSError:
                pass
