from __future__ import annotations

from dataclasses import dataclass
import logging
import threading
import time

import numpy as np
import torch


LOGGER = logging.getLogger(__name__)
MAGENTA = torch.tensor([255, 0, 255, 255], dtype=torch.uint8)


@dataclass(frozen=True)
class CommitEvent:
    revision: int
    ts_ns: int
    offending_pixels: int = 0


class CanvasSurface:
    """RGBA255 canvas binding that a chart commits whole frames into."""

    def __init__(self, width: int, height: int, background: tuple[int, int, int, int] = (0, 0, 0, 255)) -> None:
        if height <= 0 or width <= 0:
            raise ValueError("height and width must be > 0")
        self.width = width
        self.height = height
        self._lock = threading.Lock()
        self._revision = 0
        self._released = False
        bg = torch.tensor(background, dtype=torch.uint8).view(1, 1, 4)
        self._matrix = bg.expand(height, width, 4).clone()

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def released(self) -> bool:
        return self._released

    def read_snapshot(self) -> torch.Tensor:
        with self._lock:
            return self._matrix.clone()

    def to_numpy(self) -> np.ndarray:
        return self.read_snapshot().numpy()

    def commit(self, frame_rgba: np.ndarray) -> CommitEvent:
        if self._released:
            raise RuntimeError("canvas surface has been released")
        expected = (self.height, self.width, 4)
        if tuple(frame_rgba.shape) != expected:
            raise ValueError(f"frame has invalid shape: {tuple(frame_rgba.shape)} expected {expected}")

        staged, offending = _sanitize_rgba(torch.from_numpy(np.ascontiguousarray(frame_rgba)))
        if offending > 0:
            LOGGER.warning("CanvasSurface frame sanitized invalid RGBA channels; offending_pixels=%d", offending)
        with self._lock:
            self._matrix = staged
            self._revision += 1
            event = CommitEvent(revision=self._revision, ts_ns=time.time_ns(), offending_pixels=offending)
        LOGGER.debug("committed frame revision=%d", event.revision)
        return event

    def release(self) -> None:
        with self._lock:
            self._released = True
            self._matrix = torch.zeros((0, 0, 4), dtype=torch.uint8)


def _sanitize_rgba(frame: torch.Tensor) -> tuple[torch.Tensor, int]:
    if frame.dtype == torch.uint8:
        return frame.clone(), 0
    if frame.dtype == torch.bool or not (frame.is_floating_point() or frame.dtype in (torch.int16, torch.int32, torch.int64)):
        raise ValueError(f"frame must be numeric, got {frame.dtype}")
    raw = frame.to(torch.float32)
    invalid = ~torch.isfinite(raw) | (raw < 0) | (raw > 255)
    pixel_mask = torch.any(invalid, dim=-1)
    offending = int(pixel_mask.sum().item())
    clamped = torch.clamp(torch.nan_to_num(raw, nan=0.0), 0, 255).round().to(torch.uint8)
    if offending > 0:
        clamped[pixel_mask] = MAGENTA
    return clamped, offending
