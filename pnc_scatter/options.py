from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import tomllib
from typing import Any, Mapping

from pnc_scatter.errors import GraphSettingError
from pnc_scatter.series import SeriesStyle


DEFAULT_ASPECT_RATIO = 2.0
AXIS_NAMES = ("x", "y")


def _optional_float(raw: Mapping[str, Any], key: str) -> float | None:
    value = raw.get(key)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise GraphSettingError(f"{key} must be numeric, got {value!r}") from exc


@dataclass(frozen=True)
class AxisSetting:
    label_string: str = ""
    min: float | None = None
    max: float | None = None
    step_size: float | None = None
    window_size: float | None = None
    mid_value: float | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "AxisSetting":
        if not raw:
            return cls()
        return cls(
            label_string=str(raw.get("labelString") or ""),
            min=_optional_float(raw, "min"),
            max=_optional_float(raw, "max"),
            step_size=_optional_float(raw, "stepSize"),
            window_size=_optional_float(raw, "windowSize"),
            mid_value=_optional_float(raw, "midValue"),
        )


@dataclass(frozen=True)
class LegendOptions:
    display: bool = True


@dataclass(frozen=True)
class GraphOptions:
    legend: LegendOptions = field(default_factory=LegendOptions)
    aspect_ratio: float = DEFAULT_ASPECT_RATIO
    axes: dict[str, AxisSetting] = field(default_factory=dict)
    sync_xy_window_size: bool = False

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "GraphOptions":
        if not raw:
            return cls()
        legend_raw = raw.get("legend") or {}
        axes: dict[str, AxisSetting] = {}
        for axis, setting in (raw.get("axes") or {}).items():
            if axis not in AXIS_NAMES:
                raise GraphSettingError(f"unsupported axis: {axis!r}")
            axes[axis] = AxisSetting.from_mapping(setting)
        aspect_ratio = _optional_float(raw, "aspectRatio")
        if aspect_ratio is not None and aspect_ratio <= 0:
            raise GraphSettingError("aspectRatio must be > 0")
        return cls(
            legend=LegendOptions(display=bool(legend_raw.get("display", True))),
            aspect_ratio=aspect_ratio if aspect_ratio is not None else DEFAULT_ASPECT_RATIO,
            axes=axes,
            sync_xy_window_size=bool(raw.get("syncXYWindowSize", False)),
        )


@dataclass(frozen=True)
class GraphProperties:
    cars: dict[str, SeriesStyle] = field(default_factory=dict)
    lines: dict[str, SeriesStyle] = field(default_factory=dict)
    polygons: dict[str, SeriesStyle] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "GraphProperties":
        if not raw:
            return cls()
        return cls(
            cars={name: SeriesStyle.from_mapping(style) for name, style in (raw.get("cars") or {}).items()},
            lines={name: SeriesStyle.from_mapping(style) for name, style in (raw.get("lines") or {}).items()},
            polygons={name: SeriesStyle.from_mapping(style) for name, style in (raw.get("polygons") or {}).items()},
        )


@dataclass(frozen=True)
class GraphSetting:
    title: str | None
    options: GraphOptions | None
    properties: GraphProperties | None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "GraphSetting":
        options = raw.get("options")
        properties = raw.get("properties")
        return cls(
            title=raw.get("title"),
            options=GraphOptions.from_mapping(options) if options is not None else None,
            properties=GraphProperties.from_mapping(properties) if properties is not None else None,
        )


def load_graph_settings(path: str | Path) -> list[GraphSetting]:
    """Read ``[[graph]]`` tables from a TOML settings file."""
    settings_path = Path(path)
    try:
        raw = tomllib.loads(settings_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise GraphSettingError(f"invalid graph settings {settings_path}: {exc}") from exc
    graphs = raw.get("graph")
    if not isinstance(graphs, list) or not graphs:
        raise GraphSettingError(f"{settings_path} must define at least one [[graph]] table")
    return [GraphSetting.from_mapping(entry) for entry in graphs]
