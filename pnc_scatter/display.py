from __future__ import annotations

import os


DEFAULT_GRAPH_WIDTH = 640
MIN_GRAPH_SIZE = 32
WIDTH_ENV = "PNC_SCATTER_WIDTH"


def resolve_graph_size(
    width: int | None = None,
    height: int | None = None,
    *,
    aspect_ratio: float,
) -> tuple[int, int]:
    """Fill in whichever canvas dimension is missing from ``aspect_ratio`` (width / height)."""
    if aspect_ratio <= 0:
        raise ValueError("aspect_ratio must be > 0")
    if width is None and height is None:
        width = _default_width()
    if width is None:
        assert height is not None
        if height <= 0:
            raise ValueError("height must be > 0")
        width = max(MIN_GRAPH_SIZE, int(round(height * aspect_ratio)))
    elif height is None:
        if width <= 0:
            raise ValueError("width must be > 0")
        height = max(MIN_GRAPH_SIZE, int(round(width / aspect_ratio)))
    if width < MIN_GRAPH_SIZE or height < MIN_GRAPH_SIZE:
        raise ValueError(f"graph must be at least {MIN_GRAPH_SIZE}x{MIN_GRAPH_SIZE} pixels")
    return (int(width), int(height))


def _default_width() -> int:
    raw = os.getenv(WIDTH_ENV, "").strip()
    if not raw:
        return DEFAULT_GRAPH_WIDTH
    try:
        return max(MIN_GRAPH_SIZE, int(raw))
    except ValueError:
        return DEFAULT_GRAPH_WIDTH
