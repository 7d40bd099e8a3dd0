from __future__ import annotations

import textwrap
import pytest
from pathlib import Path

from sexpfmt.config import (
    ConfigError,
    FormatterConfig,
    apply_overrides,
    build_config,
    load_config,
    normalize_config,
    validate_config,
)


def _write_pyproject(base: Path, body: str) -> Path:
    path = base / "pyproject.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def _write_sexpfmt(base: Path, body: str) -> Path:
    path = base / ".sexpfmt.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def test_loads_config_from_pyproject(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.sexpfmt]
        indent_width = 4
        ignore = ["vendor/**", "*.bak"]
        max_file_size = 1024
        """,
    )

    config = load_config(tmp_path)

    assert config == FormatterConfig(
        indent_width=4,
        ignore=("vendor/**", "*.bak"),
        max_file_size=1024,
    )


def test_loads_config_from_dotfile(tmp_path: Path):
    _write_sexpfmt(
        tmp_path,
        """
        [sexpfmt]
        indent-width = 3
        """,
    )
    nested = tmp_path / "child"
    nested.mkdir()

    config = load_config(nested)

    assert config.indent_width == 3


def test_loads_tool_table_from_dotfile(tmp_path: Path):
    _write_sexpfmt(
        tmp_path,
        """
        [tool.sexpfmt]
        ignore = "build"
        """,
    )

    config = load_config(tmp_path)

    assert config.ignore == ("build",)


def test_pyproject_takes_precedence_over_dotfile(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.sexpfmt]
        indent_width = 4
        """,
    )
    _write_sexpfmt(
        tmp_path,
        """
        [sexpfmt]
        indent_width = 8
        """,
    )

    assert load_config(tmp_path).indent_width == 4


def test_pyproject_without_table_falls_back_to_dotfile(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [project]
        name = "example"
        """,
    )
    _write_sexpfmt(
        tmp_path,
        """
        [sexpfmt]
        indent_width = 8
        """,
    )

    assert load_config(tmp_path).indent_width == 8


def test_load_config_walks_up_directories(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.sexpfmt]
        indent_width = 6
        """,
    )
    nested = tmp_path / "a" / "b" / "c"
    nested.mkdir(parents=True)

    config = load_config(nested)

    assert config.indent_width == 6


def test_empty_config_table_stops_inheritance(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.sexpfmt]
        indent_width = 6
        """,
    )
    child = tmp_path / "child"
    child.mkdir()
    _write_pyproject(
        child,
        """
        [tool.sexpfmt]
        """,
    )

    config = load_config(child)

    assert config == FormatterConfig()


def test_load_config_returns_defaults_when_missing(tmp_path: Path):
    config = load_config(tmp_path)

    assert config == FormatterConfig()


def test_load_config_skips_invalid_toml(tmp_path: Path):
    invalid_dir = tmp_path / "invalid"
    invalid_dir.mkdir()
    _write_pyproject(invalid_dir, "not = {valid")
    _write_pyproject(
        tmp_path,
        """
        [tool.sexpfmt]
        indent_width = 5
        """,
    )

    nested = invalid_dir / "child"
    nested.mkdir()
    config = load_config(nested)

    assert config.indent_width == 5


def test_load_config_errors_on_unknown_key(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.sexpfmt]
        indent_width = 2
        unexpected = true
        """,
    )

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_errors_on_non_table(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool]
        sexpfmt = 4
        """,
    )

    with pytest.raises(ConfigError, match="tool.sexpfmt"):
        load_config(tmp_path)


def test_partial_config_merges_with_defaults(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.sexpfmt]
        ignore = ["third_party"]
        """,
    )

    config = load_config(tmp_path)

    assert config.ignore == ("third_party",)
    # Defaults preserved
    defaults = FormatterConfig()
    assert config.indent_width == defaults.indent_width
    assert config.max_file_size == defaults.max_file_size


def test_normalize_config_converts_ignore_to_tuple():
    assert normalize_config(FormatterConfig(ignore=["a", "b"])).ignore == ("a", "b")  # type: ignore[arg-type]
    assert normalize_config(FormatterConfig(ignore="a")).ignore == ("a",)  # type: ignore[arg-type]


def test_apply_overrides_skips_none_values():
    config = FormatterConfig(indent_width=4)

    assert apply_overrides(config, indent_width=None) is config


def test_apply_overrides_extends_ignore_patterns():
    config = FormatterConfig(ignore=("vendor",))

    updated = apply_overrides(config, ignore=("build",), indent_width=3)

    assert updated.ignore == ("vendor", "build")
    assert updated.indent_width == 3


def test_apply_overrides_rejects_unknown_fields():
    with pytest.raises(TypeError):
        apply_overrides(FormatterConfig(), line_length=80)


def test_build_config_applies_overrides(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.sexpfmt]
        indent_width = 4
        ignore = ["vendor"]
        """,
    )

    config = build_config(tmp_path, indent_width=8, ignore=("build",))

    assert config.indent_width == 8
    assert config.ignore == ("vendor", "build")


def test_build_config_validates_file_values(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.sexpfmt]
        indent_width = 0
        """,
    )

    with pytest.raises(ConfigError, match="indent_width"):
        build_config(tmp_path)


@pytest.mark.parametrize(
    "config",
    [
        FormatterConfig(indent_width=0),
        FormatterConfig(indent_width=-2),
        FormatterConfig(indent_width=17),
        FormatterConfig(max_file_size=0),
        FormatterConfig(ignore=("",)),
        FormatterConfig(ignore=(3,)),  # type: ignore[arg-type]
    ],
)
def test_validate_config_rejects_invalid_values(config: FormatterConfig):
    with pytest.raises(ConfigError):
        validate_config(config)


@pytest.mark.parametrize(
    "config",
    [
        FormatterConfig(indent_width="4"),  # type: ignore[arg-type]
        FormatterConfig(indent_width=True),  # type: ignore[arg-type]
        FormatterConfig(max_file_size="big"),  # type: ignore[arg-type]
        FormatterConfig(max_file_size=1.5),  # type: ignore[arg-type]
    ],
)
def test_validate_config_rejects_non_numeric_values(config: FormatterConfig):
    with pytest.raises(ConfigError):
        validate_config(config)


def test_validate_config_accepts_limits():
    validate_config(FormatterConfig(indent_width=16, max_file_size=1))
