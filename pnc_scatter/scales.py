from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

import numpy as np


MAX_TICKS = 64


@dataclass(frozen=True)
class DataLimits:
    xmin: float
    xmax: float
    ymin: float
    ymax: float


@dataclass(frozen=True)
class PlotTransform:
    """Data -> plot-local pixel mapping; y grows downward in pixel space."""

    sx: float
    tx: float
    sy: float
    ty: float
    height: int

    def to_pixels(self, x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        px = np.asarray(x, dtype=np.float64) * self.sx + self.tx
        py = (self.height - 1) - (np.asarray(y, dtype=np.float64) * self.sy + self.ty)
        return px, py


def drawable_range(vmin: float, vmax: float) -> tuple[float, float]:
    """Pad a zero-width range so it can still be mapped to pixels."""
    if vmax > vmin:
        return (vmin, vmax)
    if vmax == vmin:
        return (vmin - 1.0, vmax + 1.0)
    return (vmax, vmin)


def build_transform(limits: DataLimits, width: int, height: int) -> PlotTransform:
    if width <= 1 or height <= 1:
        raise ValueError("plot viewport width/height must be > 1")
    xmin, xmax = drawable_range(limits.xmin, limits.xmax)
    ymin, ymax = drawable_range(limits.ymin, limits.ymax)
    sx = (width - 1) / (xmax - xmin)
    sy = (height - 1) / (ymax - ymin)
    return PlotTransform(sx=sx, tx=-xmin * sx, sy=sy, ty=-ymin * sy, height=height)


def generate_ticks(vmin: float, vmax: float, target: int, step_size: float | None = None) -> np.ndarray:
    """Ticks inside [vmin, vmax]; ``step_size`` forces the spacing when it keeps the count sane."""
    if target <= 0:
        raise ValueError("target must be > 0")
    if vmin == vmax:
        return np.asarray([vmin], dtype=np.float64)
    lo, hi = min(vmin, vmax), max(vmin, vmax)

    step = _nice_number(_nice_number(hi - lo, round_result=False) / max(target - 1, 1), round_result=True)
    if step_size is not None and np.isfinite(step_size) and step_size > 0:
        if (hi - lo) / step_size <= MAX_TICKS:
            step = float(step_size)
    first = np.ceil(lo / step - 1e-9) * step
    ticks = np.arange(first, hi + step * 1e-9, step, dtype=np.float64)
    ticks = np.rint(ticks / step) * step
    ticks[np.isclose(ticks, 0.0, rtol=0.0, atol=step * 1e-9)] = 0.0
    return ticks[(ticks >= lo - step * 1e-9) & (ticks <= hi + step * 1e-9)]


def format_tick(value: float, *, step: float | None = None) -> str:
    if not np.isfinite(value):
        return str(value)
    if step is not None and np.isfinite(step) and step > 0 and abs(value) <= step * 1e-9:
        value = 0.0
    abs_v = abs(value)
    if abs_v != 0 and (abs_v >= 1e6 or abs_v < 1e-6):
        return f"{value:.4e}"

    decimals = _decimals_from_step(step) if step is not None else 6
    try:
        quantized = Decimal(str(value)).quantize(Decimal("1").scaleb(-decimals))
    except InvalidOperation:
        quantized = Decimal(str(value))
    out = format(quantized, "f")
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    return "0" if out == "-0" else out


def format_ticks_for_axis(ticks: np.ndarray) -> list[str]:
    if ticks.size == 0:
        return []
    if ticks.size == 1:
        return [format_tick(float(ticks[0]))]
    step = float(abs(ticks[1] - ticks[0]))
    return [format_tick(float(v), step=step) for v in ticks]


def _nice_number(value: float, *, round_result: bool) -> float:
    exp = np.floor(np.log10(value))
    frac = value / (10**exp)
    if round_result:
        bounds = ((1.5, 1.0), (3.0, 2.0), (7.0, 5.0))
        nice_frac = next((nice for limit, nice in bounds if frac < limit), 10.0)
    else:
        bounds = ((1.0, 1.0), (2.0, 2.0), (5.0, 5.0))
        nice_frac = next((nice for limit, nice in bounds if frac <= limit), 10.0)
    return float(nice_frac * (10**exp))


def _decimals_from_step(step: float) -> int:
    if step <= 0 or not np.isfinite(step):
        return 6
    exp = Decimal(str(step)).normalize().as_tuple().exponent
    return min(12, max(0, -int(exp)))
