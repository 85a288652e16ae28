from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from typing import Callable, Iterable, Protocol

import numpy as np

from pnc_scatter.axis_window import AxisName, Extents, compute_visible_extents
from pnc_scatter.raster import (
    draw_hline,
    draw_markers,
    draw_polyline,
    draw_text,
    draw_text_centered,
    draw_vline,
    fill_polygon,
    fill_rect,
    new_canvas,
    region,
    smooth_path,
    text_size,
)
from pnc_scatter.raster.draw_text import DEFAULT_FONT_FAMILY
from pnc_scatter.scales import (
    DataLimits,
    PlotTransform,
    build_transform,
    drawable_range,
    format_ticks_for_axis,
    generate_ticks,
)
from pnc_scatter.series import RGBA, Series
from pnc_scatter.surface import CanvasSurface, CommitEvent


LOGGER = logging.getLogger(__name__)

CHART_TYPE = "scatter"
TICK_FONT_PX = 12.0
LABEL_FONT_PX = 12.0
TITLE_FONT_PX = 14.0
LEGEND_BOX_W = 24
LEGEND_BOX_H = 8
MIN_PLOT_PX = 2


class ChartPlugin(Protocol):
    def after_datasets_draw(self, chart: "ScatterChart") -> None:
        ...


def default_legend_filter(series: Series) -> bool:
    return not series.legend_exempt


@dataclass(frozen=True)
class ScaleOptions:
    label_string: str = ""
    ticks_min: float | None = None
    ticks_max: float | None = None
    step_size: float | None = None
    after_data_limits: Callable[["AxisScale"], None] | None = None


@dataclass(frozen=True)
class ChartOptions:
    title: str | None = None
    legend_display: bool = True
    legend_filter: Callable[[Series], bool] = default_legend_filter
    aspect_ratio: float = 2.0
    scales: dict[str, ScaleOptions] = field(default_factory=dict)
    background: RGBA = (12, 16, 23, 255)
    font_color: RGBA = (255, 255, 255, 255)
    grid_color: RGBA = (153, 153, 153, 128)
    zero_line_color: RGBA = (153, 153, 153, 179)
    axis_color: RGBA = (124, 138, 156, 255)


@dataclass
class AxisScale:
    chart: "ScatterChart"
    axis: AxisName
    options: ScaleOptions
    min: float = -1.0
    max: float = 1.0
    # Pixel geometry of the last layout: left/top edge and extent along this axis.
    origin: int = 0
    length: int = 0

    @property
    def id(self) -> str:
        return f"{self.axis}-axis-0"

    def is_horizontal(self) -> bool:
        return self.axis == "x"

    def visible_series(self) -> list[Series]:
        return self.chart.visible_series()

    def determine_data_limits(self, extents: Extents | None) -> None:
        if extents is not None:
            if self.axis == "x":
                self.min, self.max = extents.xmin, extents.xmax
            else:
                self.min, self.max = extents.ymin, extents.ymax
        if self.options.ticks_min is not None:
            self.min = self.options.ticks_min
        if self.options.ticks_max is not None:
            self.max = self.options.ticks_max

    def pixel_per_unit(self) -> float:
        lo, hi = drawable_range(self.min, self.max)
        return max(self.length - 1, 0) / (hi - lo)


@dataclass(frozen=True)
class _Layout:
    plot_x0: int
    plot_y0: int
    plot_w: int
    plot_h: int
    tick_x: np.ndarray
    tick_y: np.ndarray
    legend_rows: tuple[tuple[Series, ...], ...]


class ScatterChart:
    """Raster scatter chart bound to one canvas surface.

    ``update()`` runs the layout (data limits, then each scale's
    ``after_data_limits`` hook), rasterizes every visible dataset, lets the
    registered plugins paint on top and commits the frame to the surface.
    """

    chart_type = CHART_TYPE

    def __init__(
        self,
        surface: CanvasSurface,
        options: ChartOptions,
        plugins: Iterable[ChartPlugin] = (),
    ) -> None:
        self.surface = surface
        self.options = options
        self.datasets: list[Series] = []
        self.scales: dict[AxisName, AxisScale] = {
            "x": AxisScale(chart=self, axis="x", options=options.scales.get("x", ScaleOptions())),
            "y": AxisScale(chart=self, axis="y", options=options.scales.get("y", ScaleOptions())),
        }
        self._plugins: list[ChartPlugin] = list(plugins)
        self._frame: np.ndarray | None = None
        self._layout: _Layout | None = None
        self._transform: PlotTransform | None = None
        self._destroyed = False

    @property
    def width(self) -> int:
        return self.surface.width

    @property
    def height(self) -> int:
        return self.surface.height

    @property
    def plugins(self) -> tuple[ChartPlugin, ...]:
        return tuple(self._plugins)

    def register_plugin(self, plugin: ChartPlugin) -> None:
        if plugin not in self._plugins:
            self._plugins.append(plugin)

    def is_dataset_visible(self, index: int) -> bool:
        return not self.datasets[index].hidden

    def set_dataset_visibility(self, index: int, visible: bool) -> None:
        self.datasets[index].hidden = not visible

    def visible_series(self) -> list[Series]:
        return [ds for ds in self.datasets if not ds.hidden]

    def legend_items(self) -> list[Series]:
        return [ds for ds in self.datasets if self.options.legend_filter(ds)]

    def plot_rect(self) -> tuple[int, int, int, int] | None:
        if self._layout is None:
            return None
        return (self._layout.plot_x0, self._layout.plot_y0, self._layout.plot_w, self._layout.plot_h)

    def legend_rows(self) -> tuple[tuple[Series, ...], ...]:
        """Legend rows drawn in the last frame; rows that do not fit are dropped."""
        if self._layout is None:
            return ()
        return self._layout.legend_rows

    def last_frame(self) -> np.ndarray | None:
        return self._frame

    def update(self) -> CommitEvent:
        """Immediate redraw; there are no animations to wait for."""
        if self._destroyed:
            raise RuntimeError("chart has been destroyed")
        extents = compute_visible_extents(self.datasets)
        for scale in self.scales.values():
            scale.determine_data_limits(extents)
            if scale.options.after_data_limits is not None:
                scale.options.after_data_limits(scale)

        xs, ys = self.scales["x"], self.scales["y"]
        LOGGER.debug("scatter layout x=[%g, %g] y=[%g, %g] datasets=%d", xs.min, xs.max, ys.min, ys.max, len(self.datasets))
        layout = self._compute_layout()
        self._layout = layout
        xs.origin, xs.length = layout.plot_x0, layout.plot_w
        ys.origin, ys.length = layout.plot_y0, layout.plot_h
        self._transform = build_transform(
            DataLimits(xmin=xs.min, xmax=xs.max, ymin=ys.min, ymax=ys.max),
            width=layout.plot_w,
            height=layout.plot_h,
        )

        canvas = new_canvas(self.width, self.height, color=self.options.background)
        self._frame = canvas
        self._draw_grid(canvas, layout)
        self._draw_datasets(region(canvas, layout.plot_x0, layout.plot_y0, layout.plot_w, layout.plot_h))
        self._draw_axes(canvas, layout)
        self._draw_title_and_legend(canvas, layout)
        for plugin in self._plugins:
            plugin.after_datasets_draw(self)
        return self.surface.commit(canvas)

    def dataset_pixels(self, index: int) -> tuple[np.ndarray, np.ndarray]:
        """Canvas pixel positions of every point of dataset ``index`` (NaN where not finite)."""
        if self._transform is None or self._layout is None:
            raise RuntimeError("chart has not been laid out yet")
        ds = self.datasets[index]
        px, py = self._transform.to_pixels(ds.data.x, ds.data.y)
        return px + self._layout.plot_x0, py + self._layout.plot_y0

    def fill_text(
        self,
        text: str,
        x: float,
        y: float,
        color: RGBA,
        *,
        font_size_px: float = TICK_FONT_PX,
        font_family: str = DEFAULT_FONT_FAMILY,
        rotation: float = 0.0,
    ) -> None:
        """Draw ``text`` centered on (x, y); ``rotation`` is in radians, clockwise-positive."""
        if self._frame is None:
            raise RuntimeError("fill_text is only available once a frame has been drawn")
        draw_text_centered(
            self._frame,
            x,
            y,
            text,
            color,
            font_family=font_family,
            font_size_px=font_size_px,
            rotate_deg=-math.degrees(rotation),
        )

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        self.datasets.clear()
        self._plugins.clear()
        self._frame = None
        self._layout = None
        self._transform = None
        self.surface.release()

    def _compute_layout(self) -> _Layout:
        xs, ys = self.scales["x"], self.scales["y"]
        tick_x = generate_ticks(xs.min, xs.max, max(3, self.width // 100), step_size=xs.options.step_size)
        tick_y = generate_ticks(ys.min, ys.max, max(3, self.height // 60), step_size=ys.options.step_size)
        _, tick_h = text_size("0", font_size_px=TICK_FONT_PX)
        y_tick_w = max((text_size(lbl, font_size_px=TICK_FONT_PX)[0] for lbl in format_ticks_for_axis(tick_y)), default=0)
        _, label_h = text_size("Ag", font_size_px=LABEL_FONT_PX)

        top = 6
        if self.options.title:
            top += text_size(self.options.title, font_size_px=TITLE_FONT_PX)[1] + 6
        bottom = 4 + tick_h + 6 + (label_h + 6 if xs.options.label_string else 0)
        legend_rows = self._legend_rows() if self.options.legend_display else ()
        if legend_rows:
            row_h = max(LEGEND_BOX_H, label_h) + 4
            fit = max(0, (self.height - top - bottom - MIN_PLOT_PX - 2) // row_h)
            if fit < len(legend_rows):
                LOGGER.debug("legend truncated to %d of %d rows", fit, len(legend_rows))
                legend_rows = legend_rows[:fit]
        if legend_rows:
            top += len(legend_rows) * row_h + 2
        left = y_tick_w + 10 + (label_h + 8 if ys.options.label_string else 0)
        right = 12

        plot_w = self.width - left - right
        plot_h = self.height - top - bottom
        if plot_w < MIN_PLOT_PX or plot_h < MIN_PLOT_PX:
            raise ValueError("graph too small for plotting viewport")
        return _Layout(
            plot_x0=left,
            plot_y0=top,
            plot_w=plot_w,
            plot_h=plot_h,
            tick_x=tick_x,
            tick_y=tick_y,
            legend_rows=legend_rows,
        )

    def _legend_rows(self) -> tuple[tuple[Series, ...], ...]:
        rows: list[tuple[Series, ...]] = []
        current: list[Series] = []
        used = 0
        for ds in self.legend_items():
            item_w = LEGEND_BOX_W + 6 + text_size(ds.label, font_size_px=LABEL_FONT_PX)[0] + 12
            if current and used + item_w > self.width - 12:
                rows.append(tuple(current))
                current, used = [], 0
            current.append(ds)
            used += item_w
        if current:
            rows.append(tuple(current))
        return tuple(rows)

    def _draw_grid(self, canvas: np.ndarray, layout: _Layout) -> None:
        assert self._transform is not None
        x0, y0, w, h = layout.plot_x0, layout.plot_y0, layout.plot_w, layout.plot_h
        px, _ = self._transform.to_pixels(layout.tick_x, np.zeros_like(layout.tick_x))
        for value, gx in zip(layout.tick_x.tolist(), np.rint(px).astype(int).tolist(), strict=False):
            color = self.options.zero_line_color if value == 0.0 else self.options.grid_color
            draw_vline(canvas, x0 + gx, y0, y0 + h - 1, color)
        _, py = self._transform.to_pixels(np.zeros_like(layout.tick_y), layout.tick_y)
        for value, gy in zip(layout.tick_y.tolist(), np.rint(py).astype(int).tolist(), strict=False):
            color = self.options.zero_line_color if value == 0.0 else self.options.grid_color
            draw_hline(canvas, x0, x0 + w - 1, y0 + gy, color)

    def _draw_datasets(self, plot: np.ndarray) -> None:
        assert self._transform is not None
        for ds in self.datasets:
            if ds.hidden or ds.data.finite_count() == 0:
                continue
            style = ds.style
            live = ds.data.mask
            px, py = self._transform.to_pixels(ds.data.x[live], ds.data.y[live])
            if style.fill:
                fill_polygon(plot, px, py, style.color)
            if style.show_line and style.border_width > 0:
                for start, end in _contiguous_true_runs(live):
                    rx, ry = self._transform.to_pixels(ds.data.x[start:end], ds.data.y[start:end])
                    rx, ry = smooth_path(rx, ry, interpolation=style.interpolation, tension=style.tension)
                    draw_polyline(plot, rx, ry, color=style.color, width=style.border_width)
            if style.point_radius > 0:
                draw_markers(plot, px, py, color=style.color, radius=style.point_radius)

    def _draw_axes(self, canvas: np.ndarray, layout: _Layout) -> None:
        assert self._transform is not None
        x0, y0, w, h = layout.plot_x0, layout.plot_y0, layout.plot_w, layout.plot_h
        color = self.options.font_color
        draw_hline(canvas, x0, x0 + w - 1, y0 + h - 1, self.options.axis_color)
        draw_vline(canvas, x0, y0, y0 + h - 1, self.options.axis_color)

        px, _ = self._transform.to_pixels(layout.tick_x, np.zeros_like(layout.tick_x))
        for label, gx in zip(format_ticks_for_axis(layout.tick_x), px.tolist(), strict=False):
            tw, _ = text_size(label, font_size_px=TICK_FONT_PX)
            draw_vline(canvas, x0 + int(round(gx)), y0 + h - 1, y0 + h + 3, self.options.axis_color)
            draw_text(canvas, x0 + int(round(gx)) - tw // 2, y0 + h + 5, label, color, font_size_px=TICK_FONT_PX)
        _, py = self._transform.to_pixels(np.zeros_like(layout.tick_y), layout.tick_y)
        for label, gy in zip(format_ticks_for_axis(layout.tick_y), py.tolist(), strict=False):
            tw, th = text_size(label, font_size_px=TICK_FONT_PX)
            draw_text(canvas, x0 - tw - 6, y0 + int(round(gy)) - th // 2, label, color, font_size_px=TICK_FONT_PX)

        x_label = self.scales["x"].options.label_string
        if x_label:
            tw, th = text_size(x_label, font_size_px=LABEL_FONT_PX)
            draw_text(canvas, x0 + (w - tw) // 2, self.height - th - 4, x_label, color, font_size_px=LABEL_FONT_PX)
        y_label = self.scales["y"].options.label_string
        if y_label:
            draw_text_centered(canvas, 4 + LABEL_FONT_PX / 2, y0 + h / 2, y_label, color, font_size_px=LABEL_FONT_PX, rotate_deg=90)

    def _draw_title_and_legend(self, canvas: np.ndarray, layout: _Layout) -> None:
        y = 6
        color = self.options.font_color
        if self.options.title:
            tw, th = text_size(self.options.title, font_size_px=TITLE_FONT_PX)
            draw_text(canvas, (self.width - tw) // 2, y, self.options.title, color, font_size_px=TITLE_FONT_PX)
            y += th + 6
        _, label_h = text_size("Ag", font_size_px=LABEL_FONT_PX)
        row_h = max(LEGEND_BOX_H, label_h) + 4
        for row in layout.legend_rows:
            widths = [LEGEND_BOX_W + 6 + text_size(ds.label, font_size_px=LABEL_FONT_PX)[0] for ds in row]
            x = (self.width - (sum(widths) + 12 * (len(row) - 1))) // 2
            for ds, item_w in zip(row, widths, strict=False):
                box_y = y + (row_h - LEGEND_BOX_H) // 2
                fill_rect(canvas, x, box_y, x + LEGEND_BOX_W - 1, box_y + LEGEND_BOX_H - 1, ds.color)
                draw_text(canvas, x + LEGEND_BOX_W + 6, y + (row_h - label_h) // 2, ds.label, color, font_size_px=LABEL_FONT_PX)
                x += item_w + 12
            y += row_h


def _contiguous_true_runs(mask: np.ndarray) -> list[tuple[int, int]]:
    idx = np.flatnonzero(mask)
    if idx.size == 0:
        return []
    breaks = np.flatnonzero(np.diff(idx) > 1)
    starts = np.concatenate(([idx[0]], idx[breaks + 1]))
    ends = np.concatenate((idx[breaks] + 1, [idx[-1] + 1]))
    return [(int(s), int(e)) for s, e in zip(starts.tolist(), ends.tolist(), strict=False)]
