from __future__ import annotations

import numpy as np
from scipy.interpolate import CubicHermiteSpline, PchipInterpolator

from pnc_scatter.raster.canvas import RGBA, draw_pixel


def draw_polyline(dst: np.ndarray, xs: np.ndarray, ys: np.ndarray, color: RGBA, width: int = 1) -> None:
    if xs.size < 2 or width <= 0:
        return
    pad = float(width)
    box = (-pad, -pad, dst.shape[1] - 1 + pad, dst.shape[0] - 1 + pad)
    for i in range(xs.size - 1):
        clipped = clip_segment(float(xs[i]), float(ys[i]), float(xs[i + 1]), float(ys[i + 1]), box)
        if clipped is None:
            continue
        x0, y0, x1, y1 = (int(round(v)) for v in clipped)
        _draw_line_segment(dst, x0, y0, x1, y1, color=color, width=width)


def clip_segment(
    x0: float,
    y0: float,
    x1: float,
    y1: float,
    box: tuple[float, float, float, float],
) -> tuple[float, float, float, float] | None:
    """Liang-Barsky clip of a segment to ``(xmin, ymin, xmax, ymax)``; None when fully outside."""
    xmin, ymin, xmax, ymax = box
    dx = x1 - x0
    dy = y1 - y0
    t0, t1 = 0.0, 1.0
    for p, q in ((-dx, x0 - xmin), (dx, xmax - x0), (-dy, y0 - ymin), (dy, ymax - y0)):
        if p == 0:
            if q < 0:
                return None
            continue
        r = q / p
        if p < 0:
            if r > t1:
                return None
            t0 = max(t0, r)
        else:
            if r < t0:
                return None
            t1 = min(t1, r)
    return (x0 + t0 * dx, y0 + t0 * dy, x0 + t1 * dx, y0 + t1 * dy)


def smooth_path(
    xs: np.ndarray,
    ys: np.ndarray,
    *,
    interpolation: str = "default",
    tension: float = 0.0,
    samples_per_segment: int = 8,
) -> tuple[np.ndarray, np.ndarray]:
    """Resample a pixel-space path the way the series interpolation mode asks for.

    ``monotone`` applies only when x is strictly monotonic; any other path keeps
    straight segments. ``tension`` > 0 selects a Catmull-Rom spline.
    """
    if xs.size < 3:
        return xs, ys
    if interpolation == "monotone":
        dx = np.diff(xs)
        if np.all(dx > 0) or np.all(dx < 0):
            return _monotone_cubic(xs, ys, samples_per_segment)
        return xs, ys
    if tension > 0:
        return _catmull_rom(xs, ys, float(tension), samples_per_segment)
    return xs, ys


def _monotone_cubic(xs: np.ndarray, ys: np.ndarray, samples: int) -> tuple[np.ndarray, np.ndarray]:
    # PCHIP is the Fritsch-Carlson monotone cubic; it needs increasing x.
    order = slice(None) if xs[-1] > xs[0] else slice(None, None, -1)
    curve = PchipInterpolator(xs[order], ys[order])
    sample_x = _segment_samples(xs, samples)
    return np.append(sample_x, xs[-1]), np.append(curve(sample_x), ys[-1])


def _catmull_rom(xs: np.ndarray, ys: np.ndarray, tension: float, samples: int) -> tuple[np.ndarray, np.ndarray]:
    pts = np.column_stack((xs, ys)).astype(np.float64)
    padded = np.vstack((pts[:1], pts, pts[-1:]))
    tangents = (padded[2:] - padded[:-2]) * tension
    knots = np.arange(pts.shape[0], dtype=np.float64)
    curve = CubicHermiteSpline(knots, pts, tangents)
    out = curve(_segment_samples(knots, samples))
    return np.append(out[:, 0], xs[-1]), np.append(out[:, 1], ys[-1])


def _segment_samples(knots: np.ndarray, samples: int) -> np.ndarray:
    t = np.linspace(0.0, 1.0, samples, endpoint=False)
    return (knots[:-1, None] + t[None, :] * np.diff(knots)[:, None]).ravel()


def _draw_line_segment(dst: np.ndarray, x0: int, y0: int, x1: int, y1: int, color: RGBA, width: int) -> None:
    dx = abs(x1 - x0)
    sx = 1 if x0 < x1 else -1
    dy = -abs(y1 - y0)
    sy = 1 if y0 < y1 else -1
    err = dx + dy

    while True:
        _draw_square_brush(dst, x0, y0, color=color, width=width)
        if x0 == x1 and y0 == y1:
            break
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x0 += sx
        if e2 <= dx:
            err += dx
            y0 += sy


def _draw_square_brush(dst: np.ndarray, x: int, y: int, color: RGBA, width: int) -> None:
    radius = max(0, width // 2)
    for yy in range(y - radius, y + radius + 1):
        for xx in range(x - radius, x + radius + 1):
            draw_pixel(dst, xx, yy, color)
