from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from pnc_scatter.raster.canvas import RGBA


DEFAULT_FONT_FAMILY = "Helvetica Neue"
DEFAULT_FONT_SIZE_PX = 12.0
SANS_FONT_FALLBACK_PATTERNS = (
    "helveticaneue",
    "helvetica",
    "arial",
    "dejavusans",
    "dejavu sans",
    "liberationsans",
    "notosans",
)


def draw_text(
    dst: np.ndarray,
    x: int,
    y: int,
    text: str,
    color: RGBA,
    *,
    font_family: str = DEFAULT_FONT_FAMILY,
    font_size_px: float = DEFAULT_FONT_SIZE_PX,
    rotate_deg: float = 0.0,
) -> None:
    """Draw ``text`` with its (unrotated) bounding box's top-left corner at (x, y)."""
    if not text:
        return
    mask = _text_mask(text, font_family, font_size_px, rotate_deg)
    _blend_mask(dst, x, y, mask, color)


def draw_text_centered(
    dst: np.ndarray,
    cx: float,
    cy: float,
    text: str,
    color: RGBA,
    *,
    font_family: str = DEFAULT_FONT_FAMILY,
    font_size_px: float = DEFAULT_FONT_SIZE_PX,
    rotate_deg: float = 0.0,
) -> None:
    """Draw ``text`` centered on (cx, cy); rotation is counter-clockwise about the center."""
    if not text:
        return
    mask = _text_mask(text, font_family, font_size_px, rotate_deg)
    h, w = mask.shape
    _blend_mask(dst, int(round(cx - w / 2.0)), int(round(cy - h / 2.0)), mask, color)


def text_size(
    text: str,
    *,
    font_family: str = DEFAULT_FONT_FAMILY,
    font_size_px: float = DEFAULT_FONT_SIZE_PX,
) -> tuple[int, int]:
    font = _load_font(font_family=font_family, font_size_px=font_size_px)
    if not text:
        ascent, descent = font.getmetrics()
        return (0, max(1, int(ascent + descent)))
    left, top, right, bottom = font.getbbox(text)
    return (max(0, int(right - left)), max(1, int(bottom - top)))


def _text_mask(text: str, font_family: str, font_size_px: float, rotate_deg: float) -> np.ndarray:
    font = _load_font(font_family=font_family, font_size_px=font_size_px)
    mask = _render_mask(text=text, font=font)
    angle = float(rotate_deg) % 360.0
    if angle == 0.0:
        return mask
    if angle % 90.0 == 0.0:
        return np.rot90(mask, k=int(angle // 90.0))
    return _rotate_mask(mask, round(angle, 3))


def _blend_mask(dst: np.ndarray, x: int, y: int, mask: np.ndarray, color: RGBA) -> None:
    h, w = mask.shape
    if h <= 0 or w <= 0:
        return

    x0 = max(0, x)
    y0 = max(0, y)
    x1 = min(dst.shape[1], x + w)
    y1 = min(dst.shape[0], y + h)
    if x1 <= x0 or y1 <= y0:
        return

    cov = mask[y0 - y : y1 - y, x0 - x : x1 - x].astype(np.float32) / 255.0
    src_alpha = (color[3] / 255.0) * cov
    if not np.any(src_alpha > 0):
        return

    patch = dst[y0:y1, x0:x1]
    src_rgb = np.asarray(color[:3], dtype=np.float32).reshape(1, 1, 3)
    dst_rgb = patch[:, :, :3].astype(np.float32)
    out_rgb = src_rgb * src_alpha[:, :, None] + dst_rgb * (1.0 - src_alpha[:, :, None])
    patch[:, :, :3] = np.clip(out_rgb, 0, 255).astype(np.uint8)
    patch[:, :, 3] = 255


@lru_cache(maxsize=256)
def _render_mask(text: str, font: ImageFont.FreeTypeFont | ImageFont.ImageFont) -> np.ndarray:
    left, top, right, bottom = font.getbbox(text)
    width = max(1, int(right - left))
    height = max(1, int(bottom - top))
    image = Image.new("L", (width, height), 0)
    draw = ImageDraw.Draw(image)
    draw.text((-left, -top), text, fill=255, font=font)
    return np.asarray(image, dtype=np.uint8)


def _rotate_mask(mask: np.ndarray, angle_deg: float) -> np.ndarray:
    image = Image.fromarray(mask)
    rotated = image.rotate(angle_deg, resample=Image.Resampling.BICUBIC, expand=True, fillcolor=0)
    return np.asarray(rotated, dtype=np.uint8)


@lru_cache(maxsize=64)
def _load_font(font_family: str, font_size_px: float) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    size = max(1, int(round(font_size_px)))
    font_path = _resolve_font_path(font_family)
    if font_path is None:
        return ImageFont.load_default()
    try:
        return ImageFont.truetype(str(font_path), size=size)
    except OSError:
        return ImageFont.load_default()


@lru_cache(maxsize=16)
def _resolve_font_path(font_family: str) -> Path | None:
    wanted = font_family.strip().lower() if font_family.strip() else DEFAULT_FONT_FAMILY.lower()
    patterns = (wanted,) + SANS_FONT_FALLBACK_PATTERNS

    font_dirs = [
        Path.home() / "Library" / "Fonts",
        Path("/Library/Fonts"),
        Path("/System/Library/Fonts"),
        Path("/usr/share/fonts"),
        Path("/usr/local/share/fonts"),
    ]

    candidates: list[Path] = []
    for base in font_dirs:
        if not base.exists():
            continue
        for ext in ("*.ttf", "*.otf", "*.ttc"):
            candidates.extend(base.rglob(ext))

    for pattern in patterns:
        p = pattern.replace(" ", "")
        for path in candidates:
            stem = path.stem.lower().replace(" ", "")
            if p in stem:
                return path
    return None
