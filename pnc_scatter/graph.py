from __future__ import annotations

import logging
import math
from typing import Any, Mapping

from pnc_scatter.adapters.frames import FrameData, coerce_frame, coerce_points, coerce_pose
from pnc_scatter.axis_window import DEFAULT_MIN_SPAN, AxisWindowController
from pnc_scatter.chart import ChartOptions, ScaleOptions, ScatterChart
from pnc_scatter.display import resolve_graph_size
from pnc_scatter.footprint import FootprintProvider, VehicleFootprint
from pnc_scatter.options import GraphOptions, GraphProperties, GraphSetting
from pnc_scatter.overlay import LabelOverlay
from pnc_scatter.registry import DatasetRegistry
from pnc_scatter.series import DEFAULT_POLYGON_STYLE, SeriesData, SeriesStyle, SpecialMarker
from pnc_scatter.surface import CanvasSurface


LOGGER = logging.getLogger(__name__)

ARROW_SUFFIX = "_arrow"
BOUNDING_BOX_SUFFIX = "_car_bounding_box"


def arrow_style(style: SeriesStyle) -> SeriesStyle:
    return style.replace(special_marker=SpecialMarker.CAR, border_width=0, point_radius=0)


def bounding_box_style(style: SeriesStyle) -> SeriesStyle:
    return SeriesStyle(
        color=style.color,
        border_width=1,
        point_radius=0,
        show_line=True,
        fill=False,
        tension=0.0,
    )


class ScatterGraph:
    """Live scatter graph: one chart instance whose series are re-synced on every pushed frame.

    ``mount`` / ``receive_props`` / ``unmount`` are the host lifecycle triggers.
    The chart and its registry are created once in ``mount`` and mutated in
    place afterwards.
    """

    def __init__(
        self,
        title: str | None,
        options: GraphOptions,
        properties: GraphProperties | None = None,
        data: FrameData | Mapping[str, Any] | None = None,
        *,
        width: int | None = None,
        footprint: FootprintProvider | None = None,
        min_span: float = DEFAULT_MIN_SPAN,
    ) -> None:
        self.title = title
        self.options = options
        self.properties = properties
        self.data = coerce_frame(data)
        self.width = width
        self.footprint: FootprintProvider = footprint or VehicleFootprint()
        self.min_span = min_span
        self.chart: ScatterChart | None = None
        self.registry: DatasetRegistry | None = None
        self.windows: AxisWindowController | None = None

    @property
    def mounted(self) -> bool:
        return self.chart is not None

    def mount(self) -> ScatterChart:
        chart = self.initialize_canvas(self.title, self.options)
        self.update_chart(self.properties, self.data)
        return chart

    def receive_props(
        self,
        properties: GraphProperties | None,
        data: FrameData | Mapping[str, Any] | None,
    ) -> bool:
        self.properties = properties
        self.data = coerce_frame(data)
        return self.update_chart(self.properties, self.data)

    def unmount(self) -> None:
        if self.chart is None:
            return
        self.chart.destroy()
        self.chart = None
        self.registry = None

    def initialize_canvas(self, title: str | None, options: GraphOptions) -> ScatterChart:
        if self.chart is not None:
            raise RuntimeError("graph is already mounted")
        self.windows = AxisWindowController.from_options(options, min_span=self.min_span)
        scales: dict[str, ScaleOptions] = {}
        for axis, setting in options.axes.items():
            scales[axis] = ScaleOptions(
                label_string=setting.label_string,
                ticks_min=setting.min,
                ticks_max=setting.max,
                step_size=setting.step_size,
                after_data_limits=self.windows.hook_for(axis),
            )
        chart_options = ChartOptions(
            title=title or None,
            legend_display=options.legend.display,
            aspect_ratio=options.aspect_ratio,
            scales=scales,
        )
        width, height = resolve_graph_size(self.width, aspect_ratio=options.aspect_ratio)
        surface = CanvasSurface(width, height, background=chart_options.background)
        chart = ScatterChart(surface, chart_options)
        chart.register_plugin(LabelOverlay())
        self.chart = chart
        self.registry = DatasetRegistry(chart.datasets)
        return chart

    def update_data(
        self,
        index: int,
        name: str,
        style: SeriesStyle,
        points: SeriesData,
        *,
        legend_exempt: bool = False,
    ) -> None:
        assert self.registry is not None
        self.registry.set_series(index, name, style, points, legend_exempt=legend_exempt)

    def update_car(self, name: str, pose: SeriesData, style: SeriesStyle) -> None:
        assert self.registry is not None
        arrow_name = name + ARROW_SUFFIX
        handle = self.registry.resolve_or_create(arrow_name)
        self.registry.update(handle, arrow_style(style), pose)

        box_name = name + BOUNDING_BOX_SUFFIX
        handle = self.registry.resolve_or_create(box_name)
        if pose.finite_count() == 0:
            polygon = SeriesData.empty()
        else:
            heading = float(pose.heading[0])
            polygon = self.footprint(
                float(pose.x[0]),
                float(pose.y[0]),
                heading if math.isfinite(heading) else 0.0,
            )
        self.registry.update(handle, bounding_box_style(style), polygon, legend_exempt=True)

    def update_chart(
        self,
        properties: GraphProperties | None,
        data: FrameData | Mapping[str, Any] | None,
    ) -> bool:
        """Sync the series list with one frame and redraw; returns False when the frame is ignored."""
        frame = coerce_frame(data)
        if frame is None or properties is None:
            return False
        if self.chart is None or self.registry is None:
            raise RuntimeError("graph is not mounted")
        registry = self.registry

        for name, style in properties.cars.items():
            self.update_car(name, frame.car(name), style)

        for name, style in properties.lines.items():
            handle = registry.resolve_or_create(name)
            registry.update(handle, style, frame.line(name))

        idx = registry.named_count
        for name, points in frame.polygons.items():
            if points is None or len(points) == 0:
                continue
            style = properties.polygons.get(name, DEFAULT_POLYGON_STYLE)
            self.update_data(idx, name, style, points)
            idx += 1

        registry.truncate_from(idx)
        self.chart.update()
        return True


def generate_scatter_graph(
    setting: GraphSetting | None,
    line_datasets: Mapping[str, Any] | None,
    car_datasets: Mapping[str, Any] | None = None,
    polygon_datasets: Mapping[str, Any] | None = None,
    **graph_kwargs: Any,
) -> ScatterGraph | None:
    """Build an unmounted graph for one setting, or warn and return None when it cannot be drawn."""
    if line_datasets is None or setting is None or setting.properties is None or setting.options is None:
        LOGGER.warning("Graph setting or data not found: %s", setting.title if setting is not None else None)
        return None
    frame = FrameData(
        cars={name: coerce_pose(pose) for name, pose in (car_datasets or {}).items()},
        lines={name: coerce_points(points) for name, points in line_datasets.items()},
        polygons={
            name: (coerce_points(points) if points is not None else None)
            for name, points in (polygon_datasets or {}).items()
        },
    )
    return ScatterGraph(
        setting.title,
        setting.options,
        setting.properties,
        frame,
        **graph_kwargs,
    )
