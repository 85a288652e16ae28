from __future__ import annotations

import numpy as np


RGBA = tuple[int, int, int, int]


def new_canvas(width: int, height: int, color: RGBA = (0, 0, 0, 255)) -> np.ndarray:
    if width <= 0 or height <= 0:
        raise ValueError("canvas width/height must be > 0")
    canvas = np.empty((height, width, 4), dtype=np.uint8)
    canvas[:, :] = np.asarray(color, dtype=np.uint8)
    return canvas


def region(dst: np.ndarray, x0: int, y0: int, width: int, height: int) -> np.ndarray:
    """Writable view of a sub-rectangle; drawing into it is clipped to the rectangle."""
    ya = max(0, y0)
    xa = max(0, x0)
    return dst[ya : min(dst.shape[0], y0 + height), xa : min(dst.shape[1], x0 + width)]


def draw_pixel(dst: np.ndarray, x: int, y: int, color: RGBA) -> None:
    if y < 0 or y >= dst.shape[0] or x < 0 or x >= dst.shape[1]:
        return
    _blend(dst[y : y + 1, x], color)


def draw_hline(dst: np.ndarray, x0: int, x1: int, y: int, color: RGBA) -> None:
    if y < 0 or y >= dst.shape[0]:
        return
    xa = max(0, min(x0, x1))
    xb = min(dst.shape[1] - 1, max(x0, x1))
    if xa > xb:
        return
    _blend(dst[y, xa : xb + 1], color)


def draw_vline(dst: np.ndarray, x: int, y0: int, y1: int, color: RGBA) -> None:
    if x < 0 or x >= dst.shape[1]:
        return
    ya = max(0, min(y0, y1))
    yb = min(dst.shape[0] - 1, max(y0, y1))
    if ya > yb:
        return
    _blend(dst[ya : yb + 1, x], color)


def fill_rect(dst: np.ndarray, x0: int, y0: int, x1: int, y1: int, color: RGBA) -> None:
    left = max(0, min(x0, x1))
    right = min(dst.shape[1] - 1, max(x0, x1))
    top = max(0, min(y0, y1))
    bottom = min(dst.shape[0] - 1, max(y0, y1))
    if right < left or bottom < top:
        return
    _blend(dst[top : bottom + 1, left : right + 1], color)


def fill_mask(dst: np.ndarray, mask: np.ndarray, color: RGBA) -> None:
    if not np.any(mask):
        return
    pixels = dst[mask]
    _blend(pixels, color)
    dst[mask] = pixels


def _blend(pixels: np.ndarray, color: RGBA) -> None:
    a = color[3] / 255.0
    src = np.asarray(color[0:3], dtype=np.float32) * a
    pixels[..., :3] = (src + pixels[..., :3].astype(np.float32) * (1.0 - a)).astype(np.uint8)
    pixels[..., 3] = 255
