from __future__ import annotations

import numpy as np
from PIL import Image, ImageDraw

from pnc_scatter.raster.canvas import RGBA, fill_mask


def fill_polygon(dst: np.ndarray, xs: np.ndarray, ys: np.ndarray, color: RGBA) -> None:
    """Fill the closed path through (xs, ys); vertices are pixel centers."""
    if xs.size < 3:
        return
    keep = np.isfinite(xs) & np.isfinite(ys)
    if int(keep.sum()) < 3:
        return
    height, width = dst.shape[:2]
    image = Image.new("L", (width, height), 0)
    vertices = list(zip(np.asarray(xs, dtype=np.float64)[keep].tolist(), np.asarray(ys, dtype=np.float64)[keep].tolist()))
    ImageDraw.Draw(image).polygon(vertices, fill=255)
    fill_mask(dst, np.asarray(image) > 0, color)
