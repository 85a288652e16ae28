from __future__ import annotations

import numpy as np

from pnc_scatter.raster.canvas import RGBA, draw_hline


def draw_markers(dst: np.ndarray, xs: np.ndarray, ys: np.ndarray, color: RGBA, radius: int = 3) -> None:
    """Filled round markers; a radius of 0 draws nothing."""
    if radius <= 0:
        return
    for x, y in zip(np.rint(xs).astype(np.int64).tolist(), np.rint(ys).astype(np.int64).tolist(), strict=False):
        _draw_disc(dst, int(x), int(y), color=color, radius=radius)


def _draw_disc(dst: np.ndarray, x: int, y: int, color: RGBA, radius: int) -> None:
    r2 = radius * radius
    for dy in range(-radius, radius + 1):
        half = int(np.floor(np.sqrt(max(0, r2 - dy * dy))))
        draw_hline(dst, x - half, x + half, y + dy, color)
