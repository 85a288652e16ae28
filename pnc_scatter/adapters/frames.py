from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any
import logging

import numpy as np
import torch

from pnc_scatter.series import SeriesData


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameData:
    """One pushed frame: car poses plus line and polygon point lists, keyed by name."""

    cars: dict[str, SeriesData] = field(default_factory=dict)
    lines: dict[str, SeriesData] = field(default_factory=dict)
    polygons: dict[str, SeriesData | None] = field(default_factory=dict)

    def car(self, name: str) -> SeriesData:
        return self.cars.get(name) or SeriesData.empty()

    def line(self, name: str) -> SeriesData:
        return self.lines.get(name) or SeriesData.empty()


def coerce_frame(raw: FrameData | Mapping[str, Any] | None) -> FrameData | None:
    if raw is None or isinstance(raw, FrameData):
        return raw
    cars_raw = raw.get("cars") or {}
    lines_raw = raw.get("lines") or {}
    polygons_raw = raw.get("polygons") or {}
    return FrameData(
        cars={name: coerce_pose(pose) for name, pose in cars_raw.items()},
        lines={name: coerce_points(points) for name, points in lines_raw.items()},
        polygons={
            name: (coerce_points(points) if points is not None else None) for name, points in polygons_raw.items()
        },
    )


def coerce_pose(raw: Any) -> SeriesData:
    """A car pose ``{x, y, heading}``; anything missing yields an empty point list."""
    if raw is None:
        return SeriesData.empty()
    if isinstance(raw, Mapping):
        if not raw or raw.get("x") is None or raw.get("y") is None:
            return SeriesData.empty()
        heading = raw.get("heading")
        return SeriesData.from_arrays(
            [_to_float(raw["x"])],
            [_to_float(raw["y"])],
            [_to_float(heading) if heading is not None else np.nan],
        )
    return coerce_points([raw])


def coerce_points(raw: Any) -> SeriesData:
    if raw is None:
        return SeriesData.empty()
    if isinstance(raw, SeriesData):
        return raw
    if isinstance(raw, torch.Tensor):
        raw = raw.detach().cpu().to(torch.float64).numpy()
    if isinstance(raw, np.ndarray):
        return _from_matrix(raw)
    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes, bytearray)):
        return _from_records(raw)
    LOGGER.warning("ignoring point list of unsupported type %s", type(raw).__name__)
    return SeriesData.empty()


def _from_matrix(arr: np.ndarray) -> SeriesData:
    if arr.size == 0:
        return SeriesData.empty()
    if arr.ndim != 2 or arr.shape[1] not in (2, 3):
        LOGGER.warning("ignoring point array with shape %s", arr.shape)
        return SeriesData.empty()
    values = arr.astype(np.float64, copy=False)
    heading = values[:, 2] if values.shape[1] == 3 else None
    return SeriesData.from_arrays(values[:, 0], values[:, 1], heading)


def _from_records(records: Sequence[Any]) -> SeriesData:
    n = len(records)
    xs = np.full(n, np.nan, dtype=np.float64)
    ys = np.full(n, np.nan, dtype=np.float64)
    hs = np.full(n, np.nan, dtype=np.float64)
    for i, point in enumerate(records):
        if isinstance(point, torch.Tensor):
            point = point.detach().cpu().to(torch.float64).numpy()
        if isinstance(point, np.ndarray):
            point = point.ravel().tolist()
        if isinstance(point, Mapping):
            xs[i] = _to_float(point.get("x"))
            ys[i] = _to_float(point.get("y"))
            hs[i] = _to_float(point.get("heading"))
        elif isinstance(point, Sequence) and len(point) in (2, 3):
            xs[i] = _to_float(point[0])
            ys[i] = _to_float(point[1])
            if len(point) == 3:
                hs[i] = _to_float(point[2])
        else:
            LOGGER.warning("dropping malformed point %d: %r", i, point)
    return SeriesData.from_arrays(xs, ys, hs)


def _to_float(value: Any) -> float:
    if value is None:
        return np.nan
    if isinstance(value, Decimal):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return np.nan
