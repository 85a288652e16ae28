from pnc_scatter.axis_window import AxisWindowController, FixedWindow, JointAutoFit, compute_visible_extents
from pnc_scatter.chart import ChartOptions, ScaleOptions, ScatterChart
from pnc_scatter.errors import GraphSettingError
from pnc_scatter.footprint import VehicleFootprint, VehicleParams
from pnc_scatter.graph import ScatterGraph, generate_scatter_graph
from pnc_scatter.options import GraphOptions, GraphProperties, GraphSetting, load_graph_settings
from pnc_scatter.overlay import LabelOverlay, heading_rotation_in_pixels
from pnc_scatter.registry import DatasetRegistry, SeriesHandle
from pnc_scatter.series import Series, SeriesData, SeriesStyle, SpecialMarker
from pnc_scatter.surface import CanvasSurface

__all__ = [
    "AxisWindowController",
    "CanvasSurface",
    "ChartOptions",
    "DatasetRegistry",
    "FixedWindow",
    "GraphOptions",
    "GraphProperties",
    "GraphSetting",
    "GraphSettingError",
    "JointAutoFit",
    "LabelOverlay",
    "ScaleOptions",
    "ScatterChart",
    "ScatterGraph",
    "Series",
    "SeriesData",
    "SeriesHandle",
    "SeriesStyle",
    "SpecialMarker",
    "VehicleFootprint",
    "VehicleParams",
    "compute_visible_extents",
    "generate_scatter_graph",
    "heading_rotation_in_pixels",
    "load_graph_settings",
]
