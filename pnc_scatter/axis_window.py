from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Literal, Protocol

import numpy as np

from pnc_scatter.series import Series

if TYPE_CHECKING:
    from pnc_scatter.options import GraphOptions


AxisName = Literal["x", "y"]
DEFAULT_MIN_SPAN = 2.0


class WindowedScale(Protocol):
    axis: AxisName
    min: float
    max: float

    def visible_series(self) -> list[Series]:
        ...


@dataclass(frozen=True)
class Extents:
    xmin: float
    xmax: float
    ymin: float
    ymax: float

    @property
    def span_x(self) -> float:
        return self.xmax - self.xmin

    @property
    def span_y(self) -> float:
        return self.ymax - self.ymin

    def midpoint(self, axis: AxisName) -> float:
        if axis == "x":
            return (self.xmax + self.xmin) / 2.0
        return (self.ymax + self.ymin) / 2.0


def compute_visible_extents(series: Iterable[Series]) -> Extents | None:
    """Bounding box of every finite point of every non-hidden series."""
    xs: list[np.ndarray] = []
    ys: list[np.ndarray] = []
    for ds in series:
        if ds.hidden:
            continue
        live = np.isfinite(ds.data.x) & np.isfinite(ds.data.y)
        if not np.any(live):
            continue
        xs.append(ds.data.x[live])
        ys.append(ds.data.y[live])
    if not xs:
        return None
    x_all = np.concatenate(xs)
    y_all = np.concatenate(ys)
    return Extents(
        xmin=float(np.min(x_all)),
        xmax=float(np.max(x_all)),
        ymin=float(np.min(y_all)),
        ymax=float(np.max(y_all)),
    )


@dataclass(frozen=True)
class FixedWindow:
    window_size: float
    mid_value: float | None = None

    def __post_init__(self) -> None:
        if not np.isfinite(self.window_size) or self.window_size <= 0:
            raise ValueError("window_size must be a finite value > 0")

    def window(self, current_min: float, current_max: float) -> tuple[float, float]:
        mid = self.mid_value if self.mid_value is not None else (current_max + current_min) / 2.0
        half = self.window_size / 2.0
        return (mid - half, mid + half)


@dataclass(frozen=True)
class JointAutoFit:
    """Equal-width X/Y windows, each centered on its own data midpoint."""

    min_span: float = DEFAULT_MIN_SPAN

    def __post_init__(self) -> None:
        if self.min_span < 0:
            raise ValueError("min_span must be >= 0")

    def window(self, axis: AxisName, extents: Extents | None) -> tuple[float, float] | None:
        if extents is None:
            return None
        d = max(extents.span_x, extents.span_y)
        if d <= 0:
            d = self.min_span
        mid = extents.midpoint(axis)
        return (mid - d / 2.0, mid + d / 2.0)


WindowPolicy = FixedWindow | JointAutoFit


class AxisWindowController:
    def __init__(self, policies: dict[AxisName, WindowPolicy] | None = None) -> None:
        self._policies: dict[AxisName, WindowPolicy] = dict(policies or {})

    @classmethod
    def from_options(cls, options: "GraphOptions", *, min_span: float = DEFAULT_MIN_SPAN) -> "AxisWindowController":
        policies: dict[AxisName, WindowPolicy] = {}
        for axis, setting in options.axes.items():
            if setting.window_size:
                policies[axis] = FixedWindow(window_size=setting.window_size, mid_value=setting.mid_value)
            elif options.sync_xy_window_size:
                policies[axis] = JointAutoFit(min_span=min_span)
        return cls(policies)

    def policy_for(self, axis: AxisName) -> WindowPolicy | None:
        return self._policies.get(axis)

    def hook_for(self, axis: AxisName) -> Callable[[WindowedScale], None] | None:
        if axis not in self._policies:
            return None
        return self.after_data_limits

    def after_data_limits(self, scale: WindowedScale) -> None:
        policy = self._policies.get(scale.axis)
        if isinstance(policy, FixedWindow):
            scale.min, scale.max = policy.window(scale.min, scale.max)
        elif isinstance(policy, JointAutoFit):
            bounds = policy.window(scale.axis, compute_visible_extents(scale.visible_series()))
            if bounds is not None:
                scale.min, scale.max = bounds
