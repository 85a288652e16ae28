from __future__ import annotations

import math

import numpy as np

from pnc_scatter.chart import ScatterChart
from pnc_scatter.series import SpecialMarker


LABEL_FONT_FAMILY = "Helvetica Neue"
LABEL_FONT_SIZE_PX = 15.0
LABEL_PADDING_PX = 1.0
CAR_GLYPH = "➡"
CAR_GLYPH_FONT_SIZE_PX = 20.0


def heading_rotation_in_pixels(heading: float, ppu_x: float, ppu_y: float) -> float:
    """Counter-clockwise screen angle of a data-space heading once the axes' pixel scaling is applied."""
    return math.atan2(math.sin(heading) * ppu_y, math.cos(heading) * ppu_x)


class LabelOverlay:
    """Post-draw plugin painting series labels and the car heading glyph."""

    def __init__(
        self,
        *,
        font_family: str = LABEL_FONT_FAMILY,
        label_font_size_px: float = LABEL_FONT_SIZE_PX,
        glyph_font_size_px: float = CAR_GLYPH_FONT_SIZE_PX,
    ) -> None:
        self.font_family = font_family
        self.label_font_size_px = label_font_size_px
        self.glyph_font_size_px = glyph_font_size_px

    def after_datasets_draw(self, chart: ScatterChart) -> None:
        for index, ds in enumerate(chart.datasets):
            if not chart.is_dataset_visible(index) or len(ds.data) == 0:
                continue
            if ds.show_text:
                self._draw_label(chart, index)
            elif ds.special_marker is SpecialMarker.CAR:
                self._draw_car_glyph(chart, index)

    def _draw_label(self, chart: ScatterChart, index: int) -> None:
        ds = chart.datasets[index]
        if not ds.text:
            return
        px, py = chart.dataset_pixels(index)
        middle = len(ds.data) // 2
        x, y = float(px[middle]), float(py[middle])
        if not (math.isfinite(x) and math.isfinite(y)):
            return
        offset = self.label_font_size_px / 2.0 + LABEL_PADDING_PX
        chart.fill_text(
            ds.text,
            x,
            y - offset,
            ds.color,
            font_size_px=self.label_font_size_px,
            font_family=self.font_family,
        )

    def _draw_car_glyph(self, chart: ScatterChart, index: int) -> None:
        ds = chart.datasets[index]
        px, py = chart.dataset_pixels(index)
        x, y = float(px[0]), float(py[0])
        if not (math.isfinite(x) and math.isfinite(y)):
            return
        heading = float(ds.data.heading[0])
        if not np.isfinite(heading):
            heading = 0.0
        theta = heading_rotation_in_pixels(
            heading,
            chart.scales["x"].pixel_per_unit(),
            chart.scales["y"].pixel_per_unit(),
        )
        chart.fill_text(
            CAR_GLYPH,
            x,
            y,
            ds.color,
            font_size_px=self.glyph_font_size_px,
            font_family=self.font_family,
            rotation=-theta,
        )
