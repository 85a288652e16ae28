from __future__ import annotations

from dataclasses import dataclass, field, replace
import enum
import logging
import re
from typing import Any, Literal, Mapping

import numpy as np
from PIL import ImageColor


LOGGER = logging.getLogger(__name__)

RGBA = tuple[int, int, int, int]
Interpolation = Literal["default", "monotone"]

DEFAULT_SERIES_COLOR: RGBA = (62, 149, 255, 255)

_CSS_RGBA = re.compile(
    r"^rgba?\(\s*([\d.]+)\s*,\s*([\d.]+)\s*,\s*([\d.]+)\s*(?:,\s*([\d.]+)\s*)?\)$",
    re.IGNORECASE,
)

# camelCase property key -> SeriesStyle field
_STYLE_KEYS = {
    "color": "color",
    "borderWidth": "border_width",
    "pointRadius": "point_radius",
    "fill": "fill",
    "showLine": "show_line",
    "showLabel": "show_label",
    "showText": "show_label",
    "cubicInterpolationMode": "interpolation",
    "lineTension": "tension",
    "specialMarker": "special_marker",
}


class SpecialMarker(str, enum.Enum):
    CAR = "car"


def parse_color(value: Any, default: RGBA = DEFAULT_SERIES_COLOR) -> RGBA:
    """Accept CSS color strings (``rgba(255, 0, 0, 0.8)``, ``#ff0000``, ``red``) or RGB(A) tuples."""
    if value is None:
        return default
    if isinstance(value, (tuple, list)):
        if len(value) == 3:
            r, g, b = (int(v) for v in value)
            return (r, g, b, 255)
        if len(value) == 4:
            r, g, b, a = (int(v) for v in value)
            return (r, g, b, a)
        LOGGER.warning("ignoring color with %d channels: %r", len(value), value)
        return default
    text = str(value).strip()
    match = _CSS_RGBA.match(text)
    if match:
        r, g, b = (int(round(float(match.group(i)))) for i in (1, 2, 3))
        alpha = 1.0 if match.group(4) is None else float(match.group(4))
        return (r, g, b, int(round(max(0.0, min(1.0, alpha)) * 255)))
    try:
        rgb = ImageColor.getrgb(text)
    except ValueError:
        LOGGER.warning("unrecognized color %r; using default", value)
        return default
    if len(rgb) == 3:
        return (rgb[0], rgb[1], rgb[2], 255)
    return (rgb[0], rgb[1], rgb[2], rgb[3])


@dataclass(frozen=True)
class SeriesStyle:
    color: RGBA = DEFAULT_SERIES_COLOR
    border_width: int = 3
    point_radius: int = 3
    fill: bool = False
    show_line: bool = False
    show_label: bool = False
    interpolation: Interpolation = "default"
    tension: float = 0.0
    special_marker: SpecialMarker | None = None
    extras: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "SeriesStyle":
        """Build a style from inbound camelCase properties; unknown keys land in ``extras``."""
        if not raw:
            return cls()
        values: dict[str, Any] = {}
        extras: dict[str, Any] = {}
        for key, value in raw.items():
            name = _STYLE_KEYS.get(key)
            if name is None:
                extras[key] = value
                continue
            values[name] = value

        kwargs: dict[str, Any] = {"extras": extras}
        if "color" in values:
            kwargs["color"] = parse_color(values["color"])
        if "border_width" in values:
            kwargs["border_width"] = int(values["border_width"])
        if "point_radius" in values:
            kwargs["point_radius"] = int(values["point_radius"])
        for flag in ("fill", "show_line", "show_label"):
            if flag in values:
                kwargs[flag] = bool(values[flag])
        if "interpolation" in values:
            kwargs["interpolation"] = "monotone" if values["interpolation"] == "monotone" else "default"
        if "tension" in values:
            kwargs["tension"] = float(values["tension"])
        if values.get("special_marker") is not None:
            kwargs["special_marker"] = SpecialMarker(values["special_marker"])
        return cls(**kwargs)

    def replace(self, **changes: Any) -> "SeriesStyle":
        return replace(self, **changes)


DEFAULT_POLYGON_STYLE = SeriesStyle(
    color=(255, 0, 0, 204),
    border_width=2,
    point_radius=0,
    fill=False,
    show_line=True,
    show_label=True,
    interpolation="monotone",
    tension=0.0,
)


@dataclass(frozen=True)
class SeriesData:
    x: np.ndarray
    y: np.ndarray
    heading: np.ndarray
    mask: np.ndarray

    @classmethod
    def from_arrays(cls, x: Any, y: Any, heading: Any = None) -> "SeriesData":
        x_arr = np.asarray(x, dtype=np.float64).reshape(-1)
        y_arr = np.asarray(y, dtype=np.float64).reshape(-1)
        if x_arr.shape != y_arr.shape:
            raise ValueError(f"x and y length mismatch: {x_arr.size} != {y_arr.size}")
        if heading is None:
            h_arr = np.full(x_arr.shape, np.nan, dtype=np.float64)
        else:
            h_arr = np.asarray(heading, dtype=np.float64).reshape(-1)
            if h_arr.shape != x_arr.shape:
                raise ValueError("heading length must match x/y")
        mask = np.isfinite(x_arr) & np.isfinite(y_arr)
        return cls(x=x_arr, y=y_arr, heading=h_arr, mask=mask)

    @classmethod
    def empty(cls) -> "SeriesData":
        return cls.from_arrays(np.empty(0), np.empty(0))

    def __len__(self) -> int:
        return int(self.x.size)

    def finite_count(self) -> int:
        return int(np.count_nonzero(self.mask))


@dataclass
class Series:
    """One renderable data set; mutated in place across frames."""

    name: str
    label: str
    data: SeriesData
    style: SeriesStyle
    show_text: bool = False
    text: str = ""
    special_marker: SpecialMarker | None = None
    legend_exempt: bool = False
    hidden: bool = False

    @property
    def color(self) -> RGBA:
        return self.style.color
