from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Any, Mapping, Protocol

import numpy as np

from pnc_scatter.series import SeriesData


class FootprintProvider(Protocol):
    def __call__(self, x: float, y: float, heading: float) -> SeriesData:
        ...


@dataclass(frozen=True)
class VehicleParams:
    """Distances (meters) from the vehicle reference point to each body edge."""

    front_edge_to_center: float = 3.89
    back_edge_to_center: float = 1.043
    left_edge_to_center: float = 1.055
    right_edge_to_center: float = 1.055

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "VehicleParams":
        if not raw:
            return cls()
        defaults = cls()
        return cls(
            front_edge_to_center=float(raw.get("frontEdgeToCenter", defaults.front_edge_to_center)),
            back_edge_to_center=float(raw.get("backEdgeToCenter", defaults.back_edge_to_center)),
            left_edge_to_center=float(raw.get("leftEdgeToCenter", defaults.left_edge_to_center)),
            right_edge_to_center=float(raw.get("rightEdgeToCenter", defaults.right_edge_to_center)),
        )


class VehicleFootprint:
    """Closed rectangle around a pose, rotated counter-clockwise by ``heading`` radians."""

    def __init__(self, params: VehicleParams | None = None) -> None:
        self.params = params or VehicleParams()

    def __call__(self, x: float, y: float, heading: float) -> SeriesData:
        p = self.params
        # Body frame: +x forward, +y left. The first corner repeats to close the ring.
        local_x = np.asarray(
            [p.front_edge_to_center, p.front_edge_to_center, -p.back_edge_to_center, -p.back_edge_to_center, p.front_edge_to_center],
            dtype=np.float64,
        )
        local_y = np.asarray(
            [p.left_edge_to_center, -p.right_edge_to_center, -p.right_edge_to_center, p.left_edge_to_center, p.left_edge_to_center],
            dtype=np.float64,
        )
        c = math.cos(heading)
        s = math.sin(heading)
        world_x = x + local_x * c - local_y * s
        world_y = y + local_x * s + local_y * c
        return SeriesData.from_arrays(world_x, world_y)
