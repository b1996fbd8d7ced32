"""Optional TOML settings for the command line interface."""

from pathlib import Path
from tomllib import TOMLDecodeError, load
from typing import NotRequired, TypedDict

from layout import LayoutAlgorithm, LayoutOptions, Spacing
from schema import ExportFormat, ExportOptions, Position, SQLDialect

SETTINGS_FILE = "schema-studio.toml"


class LayoutSettings(TypedDict):
    """The ``[layout]`` table."""

    algorithm: NotRequired[str]
    spacing: NotRequired[list[float]]
    center: NotRequired[list[float]]
    iterations: NotRequired[int]
    seed: NotRequired[int]


class ExportSettings(TypedDict):
    """The ``[export]`` table."""

    dialect: NotRequired[str]
    include_positions: NotRequired[bool]
    include_descriptions: NotRequired[bool]


class Settings(TypedDict):
    """Top level of the settings file."""

    layout: NotRequired[LayoutSettings]
    export: NotRequired[ExportSettings]


def default_settings_path(directory: Path | None = None) -> Path | None:
    """The settings file in ``directory`` (default: cwd), if there is one."""
    candidate = (directory or Path.cwd()) / SETTINGS_FILE
    return candidate if candidate.is_file() else None


def load_settings(path: Path | None) -> Settings:
    """Read settings from ``path``; no path means no settings."""
    if path is None:
        return {}
    try:
        with path.open("rb") as f:
            settings: Settings = load(f)  # type: ignore[assignment]
    except TOMLDecodeError as err:
        msg = f"Invalid settings file {path}: {err}"
        raise ValueError(msg) from err
    return settings


def _pair(values: list[float] | None, name: str) -> tuple[float, float] | None:
    if values is None:
        return None
    if len(values) != 2:  # noqa: PLR2004
        msg = f"Setting {name} must have two values, got {len(values)}"
        raise ValueError(msg)
    return values[0], values[1]


def layout_options(
    settings: Settings,
    algorithm: LayoutAlgorithm | str | None = None,
    seed: int | None = None,
) -> LayoutOptions:
    """Layout options from settings, with explicit arguments taking precedence."""
    section = settings.get("layout", {})
    defaults = LayoutOptions()
    spacing = _pair(section.get("spacing"), "layout.spacing")
    center = _pair(section.get("center"), "layout.center")
    return LayoutOptions(
        algorithm=algorithm or section.get("algorithm", defaults.algorithm),
        spacing=Spacing(*spacing) if spacing else defaults.spacing,
        center_offset=Position(*center) if center else defaults.center_offset,
        iterations=section.get("iterations", defaults.iterations),
        seed=seed if seed is not None else section.get("seed"),
    )


def export_options(
    settings: Settings,
    fmt: ExportFormat | str,
    dialect: SQLDialect | str | None = None,
) -> ExportOptions:
    """Export options from settings, with explicit arguments taking precedence."""
    section = settings.get("export", {})
    chosen = dialect or section.get("dialect", SQLDialect.POSTGRESQL)
    try:
        sql_dialect = SQLDialect(chosen)
    except ValueError as err:
        msg = f"Unsupported SQL dialect: {chosen}"
        raise ValueError(msg) from err
    return ExportOptions(
        format=fmt,
        sql_dialect=sql_dialect,
        include_positions=section.get("include_positions", True),
        include_descriptions=section.get("include_descriptions", True),
    )
