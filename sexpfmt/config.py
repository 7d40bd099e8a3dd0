"""Configuration loading and management."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from pathlib import Path
import tomllib

MAX_INDENT_WIDTH = 16


@dataclass
class FormatterConfig:
    """Configuration for formatting S-expression sources.

    Attributes:
        indent_width: Number of spaces per indentation level.
        ignore: Glob patterns of paths that are never formatted.
        max_file_size: Maximum file size in bytes that will be processed.

    Examples:
        FormatterConfig(indent_width=4, ignore=("vendor/**",))
    """

    # Formatting
    indent_width: int = 2

    # Discovery
    ignore: tuple[str, ...] = ()

    # Limits
    max_file_size: int = 10 * 1024 * 1024


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Examples:
        raise ConfigError("`indent_width` must be a positive integer")
    """


def load_config(search_path: Path) -> FormatterConfig:
    """Load configuration from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.sexpfmt]`` table from `pyproject.toml` and the ``[sexpfmt]`` or
    ``[tool.sexpfmt]`` table from `.sexpfmt.toml` when present. Returns default
    values when no configuration is found. TOML files that cannot be read or
    decoded are skipped.

    Args:
        search_path: Directory used as the starting point for configuration lookup.

    Returns:
        FormatterConfig: Loaded configuration with defaults applied when necessary.

    Raises:
        ConfigError: If the table is present but not a mapping or contains
            unsupported keys.

    Examples:
        load_config(Path("src"))
    """
    current = search_path.resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", "sexpfmt")]
        )
        if pyproject_config is not None:
            return normalize_config(pyproject_config)

        dotfile_config = _load_from_file(
            current / ".sexpfmt.toml",
            table_paths=[("sexpfmt",), ("tool", "sexpfmt")],
        )
        if dotfile_config is not None:
            return normalize_config(dotfile_config)

        parent = current.parent
        if parent == current:
            break
        current = parent

    return FormatterConfig()


_MISSING = object()


def _load_from_file(
    config_file: Path, table_paths: list[tuple[str, ...]]
) -> FormatterConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        return _build_config_from_raw(raw_config, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, config_file: Path, table_path: tuple[str, ...]
) -> FormatterConfig:
    table_display = ".".join(table_path)

    if raw_config is None:
        return FormatterConfig()

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    if not raw_config:
        return FormatterConfig()

    raw_config = {key.replace("-", "_"): value for key, value in raw_config.items()}
    try:
        return FormatterConfig(**raw_config)
    except TypeError as error:
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}") from error


def normalize_config(config: FormatterConfig) -> FormatterConfig:
    ignore = config.ignore
    if isinstance(ignore, str):
        ignore = (ignore,)
    elif isinstance(ignore, Sequence):
        ignore = tuple(ignore)

    return replace(config, ignore=ignore)


def validate_config(config: FormatterConfig) -> None:
    """Validate a `FormatterConfig` instance.

    Args:
        config: Configuration to validate.

    Raises:
        ConfigError: If the indentation width or the size limit is not a
            positive integer, or if ignore patterns are not strings.

    Examples:
        validate_config(FormatterConfig(indent_width=4))
    """
    config = normalize_config(config)

    _ensure_integers(
        {
            "indent_width": config.indent_width,
            "max_file_size": config.max_file_size,
        }
    )
    _ensure_positive(
        {
            "indent_width": config.indent_width,
            "max_file_size": config.max_file_size,
        }
    )

    if config.indent_width > MAX_INDENT_WIDTH:
        raise ConfigError(f"`indent_width` must be <= {MAX_INDENT_WIDTH}")

    if not isinstance(config.ignore, tuple) or not all(
        isinstance(pattern, str) and pattern for pattern in config.ignore
    ):
        raise ConfigError("`ignore` must be a list of non-empty glob patterns")


def apply_overrides(config: FormatterConfig, **overrides: object) -> FormatterConfig:
    """Apply override values to a `FormatterConfig`.

    Ignore patterns given as overrides extend the configured ones rather than
    replacing them.

    Args:
        config: Base configuration to update.
        overrides: Override values keyed by configuration field name; values set to
            None are ignored.

    Returns:
        FormatterConfig: New configuration with the provided overrides applied.
        The original configuration is returned when no changes are supplied.

    Raises:
        TypeError: If an override name is not defined on `FormatterConfig`.

    Examples:
        updated = apply_overrides(config, indent_width=4, ignore=("build/*",))
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if "ignore" in changes:
        changes["ignore"] = (*normalize_config(config).ignore, *changes["ignore"])
    if not changes:
        return config
    return replace(config, **changes)


def build_config(search_path: Path, **overrides: object) -> FormatterConfig:
    """Load, override, and validate configuration.

    Args:
        search_path: Directory where configuration files are resolved.
        overrides: Override values keyed by configuration attributes; None values
            are ignored.

    Returns:
        FormatterConfig: Validated configuration ready for formatting.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), indent_width=4)
    """
    config = load_config(search_path)
    config = apply_overrides(config, **overrides)
    config = normalize_config(config)
    validate_config(config)
    return config


def _ensure_positive(values: dict[str, int]) -> None:
    for key, value in values.items():
        if value <= 0:
            raise ConfigError(f"`{key}` must be a positive integer")


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{key}` must be an integer")
