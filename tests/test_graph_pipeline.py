from __future__ import annotations

import math
import unittest

import numpy as np

from pnc_scatter.graph import ScatterGraph, generate_scatter_graph
from pnc_scatter.options import GraphOptions, GraphProperties, GraphSetting
from pnc_scatter.series import SeriesData, SpecialMarker


class _RecordingFootprint:
    def __init__(self) -> None:
        self.calls: list[tuple[float, float, float]] = []

    def __call__(self, x: float, y: float, heading: float) -> SeriesData:
        self.calls.append((x, y, heading))
        return SeriesData.from_arrays([x - 1, x + 1, x + 1, x - 1, x - 1], [y - 1, y - 1, y + 1, y + 1, y - 1])


def _square(x0: float) -> list[dict[str, float]]:
    return [{"x": x0, "y": 0.0}, {"x": x0 + 1, "y": 0.0}, {"x": x0 + 1, "y": 1.0}, {"x": x0, "y": 1.0}]


def _mounted(properties: dict, data: dict | None, options: dict | None = None, **kwargs) -> ScatterGraph:
    graph = ScatterGraph(
        "PNC",
        GraphOptions.from_mapping(options or {}),
        GraphProperties.from_mapping(properties),
        data,
        width=320,
        **kwargs,
    )
    graph.mount()
    return graph


class FramePipelineTests(unittest.TestCase):
    def test_single_car_produces_arrow_and_legend_exempt_bounding_box(self) -> None:
        graph = _mounted({"cars": {"ego": {"color": "red"}}}, {"cars": {"ego": {"x": 0, "y": 0, "heading": 0}}})
        self.addCleanup(graph.unmount)
        datasets = graph.chart.datasets

        self.assertEqual([ds.name for ds in datasets], ["ego_arrow", "ego_car_bounding_box"])
        arrow, box = datasets
        self.assertIs(arrow.special_marker, SpecialMarker.CAR)
        self.assertEqual((arrow.style.border_width, arrow.style.point_radius), (0, 0))
        self.assertEqual(arrow.color, (255, 0, 0, 255))
        self.assertIsNone(box.special_marker)
        self.assertTrue(box.legend_exempt)
        self.assertFalse(arrow.legend_exempt)
        self.assertEqual(box.style.border_width, 1)
        self.assertTrue(box.style.show_line)
        self.assertEqual(len(box.data), 5)
        self.assertEqual([ds.name for ds in graph.chart.legend_items()], ["ego_arrow"])

    def test_missing_car_pose_is_empty_and_skips_footprint(self) -> None:
        footprint = _RecordingFootprint()
        graph = _mounted({"cars": {"ego": {}}}, {"cars": {}}, footprint=footprint)
        self.addCleanup(graph.unmount)
        self.assertEqual(footprint.calls, [])
        self.assertEqual([len(ds.data) for ds in graph.chart.datasets], [0, 0])

    def test_missing_heading_defaults_to_zero_for_footprint(self) -> None:
        footprint = _RecordingFootprint()
        graph = _mounted({"cars": {"ego": {}}}, {"cars": {"ego": {"x": 2, "y": 3}}}, footprint=footprint)
        self.addCleanup(graph.unmount)
        self.assertEqual(footprint.calls, [(2.0, 3.0, 0.0)])

    def test_missing_line_data_becomes_empty_series(self) -> None:
        graph = _mounted({"lines": {"planned": {"showLine": True}}}, {"lines": {}})
        self.addCleanup(graph.unmount)
        self.assertEqual(len(graph.chart.datasets), 1)
        self.assertEqual(len(graph.chart.datasets[0].data), 0)

    def test_dropped_polygon_is_truncated(self) -> None:
        graph = _mounted({"lines": {"planned": {}}}, {"lines": {"planned": [[0, 0], [1, 1]]}, "polygons": {"a": _square(0), "b": _square(5)}})
        self.addCleanup(graph.unmount)
        self.assertEqual([ds.text for ds in graph.chart.datasets], ["planned", "a", "b"])

        graph.receive_props(graph.properties, {"lines": {"planned": [[0, 0], [1, 1]]}, "polygons": {"a": _square(0)}})

        self.assertEqual([ds.text for ds in graph.chart.datasets], ["planned", "a"])
        self.assertEqual(graph.registry.names(), ["planned"])

    def test_surviving_polygon_takes_over_slot_of_dropped_one(self) -> None:
        properties = {"polygons": {"a": {"color": "#0000ff"}, "b": {"color": "#00ff00"}}}
        graph = _mounted(properties, {"polygons": {"a": _square(0), "b": _square(5)}})
        self.addCleanup(graph.unmount)
        first_slot = graph.chart.datasets[0]

        graph.receive_props(graph.properties, {"polygons": {"b": _square(5)}})

        (polygon,) = graph.chart.datasets
        self.assertIs(polygon, first_slot)
        self.assertEqual(polygon.text, "b")
        self.assertEqual(polygon.data.x.tolist(), [5.0, 6.0, 6.0, 5.0])
        self.assertEqual(polygon.color, (0, 0, 255, 255))

        graph.receive_props(graph.properties, {"polygons": {"a": _square(0), "b": _square(5)}})
        self.assertEqual([ds.text for ds in graph.chart.datasets], ["a", "b"])

    def test_many_polygons_do_not_overflow_the_legend(self) -> None:
        polygons = {f"obstacle_{i}": [[i, 0], [i + 1, 0], [i, 1]] for i in range(200)}
        graph = _mounted({}, {"polygons": polygons})
        self.addCleanup(graph.unmount)
        self.assertEqual(len(graph.chart.datasets), 200)
        _, plot_y0, _, plot_h = graph.chart.plot_rect()
        self.assertGreaterEqual(plot_h, 2)
        rows = graph.chart.legend_rows()
        self.assertGreater(len(rows), 0)
        self.assertLess(sum(len(row) for row in rows), 200)
        self.assertEqual(rows[0][0].label, "obstacle_0")
        self.assertLessEqual(plot_y0 + plot_h, graph.chart.height)

    def test_polygons_without_points_are_skipped_and_default_style_applies(self) -> None:
        graph = _mounted({}, {"polygons": {"empty": [], "missing": None, "obstacle": _square(2)}})
        self.addCleanup(graph.unmount)
        (polygon,) = graph.chart.datasets
        self.assertEqual(polygon.text, "obstacle")
        self.assertEqual(polygon.color, (255, 0, 0, 204))
        self.assertEqual(polygon.style.border_width, 2)
        self.assertTrue(polygon.show_text)
        self.assertEqual(polygon.style.interpolation, "monotone")

    def test_polygon_style_from_properties(self) -> None:
        graph = _mounted({"polygons": {"obstacle": {"color": "#00ff00", "fill": True}}}, {"polygons": {"obstacle": _square(2)}})
        self.addCleanup(graph.unmount)
        (polygon,) = graph.chart.datasets
        self.assertEqual(polygon.color, (0, 255, 0, 255))
        self.assertTrue(polygon.style.fill)

    def test_series_count_matches_frame_contents(self) -> None:
        properties = {"cars": {"ego": {}, "npc": {}}, "lines": {"planned": {}, "reference": {}, "speed": {}}}
        cars = {"ego": {"x": 0, "y": 0, "heading": 0}, "npc": {"x": 5, "y": 5, "heading": 1}}
        graph = _mounted(properties, {"cars": cars})
        self.addCleanup(graph.unmount)
        for polygon_count in (3, 1, 4, 0, 2):
            polygons = {f"p{i}": _square(i) for i in range(polygon_count)}
            graph.receive_props(graph.properties, {"cars": cars, "lines": {}, "polygons": polygons})
            self.assertEqual(len(graph.chart.datasets), 2 * 2 + 3 + polygon_count)

    def test_indices_are_stable_across_frames(self) -> None:
        properties = {"cars": {"ego": {}}, "lines": {"planned": {}}}
        graph = _mounted(properties, {"cars": {"ego": {"x": 0, "y": 0}}, "lines": {"planned": [[0, 0]]}})
        self.addCleanup(graph.unmount)
        before = {name: graph.registry.index_of(name) for name in graph.registry.names()}
        for step in range(1, 4):
            graph.receive_props(
                graph.properties,
                {
                    "cars": {"ego": {"x": step, "y": step}},
                    "lines": {"planned": [[step, 0], [step + 1, 1]]},
                    "polygons": {f"p{i}": _square(i) for i in range(step)},
                },
            )
            after = {name: graph.registry.index_of(name) for name in graph.registry.names()}
            self.assertEqual(after, before)
            self.assertEqual(graph.chart.datasets[before["planned"]].data.x.tolist(), [float(step), float(step + 1)])

    def test_new_car_after_polygons_does_not_collide_with_named_series(self) -> None:
        graph = _mounted({"lines": {"planned": {}}}, {"lines": {"planned": [[0, 0], [2, 2]]}, "polygons": {"a": _square(0)}})
        self.addCleanup(graph.unmount)

        properties = GraphProperties.from_mapping({"cars": {"ego": {}}, "lines": {"planned": {}}})
        graph.receive_props(
            properties,
            {"cars": {"ego": {"x": 1, "y": 1}}, "lines": {"planned": [[0, 0], [2, 2]]}, "polygons": {"a": _square(0)}},
        )

        names = [ds.name for ds in graph.chart.datasets]
        self.assertEqual(names, ["planned", "ego_arrow", "ego_car_bounding_box", "a"])
        self.assertEqual(graph.registry.index_of("planned"), 0)
        self.assertEqual(graph.registry.index_of("ego_arrow"), 1)

    def test_same_frame_twice_is_idempotent(self) -> None:
        frame = {
            "cars": {"ego": {"x": 1, "y": 2, "heading": 0.5}},
            "lines": {"planned": [[0, 0], [10, 4]]},
            "polygons": {"a": _square(3)},
        }
        graph = _mounted({"cars": {"ego": {}}, "lines": {"planned": {}}}, frame, {"syncXYWindowSize": True, "axes": {"x": {}, "y": {}}})
        self.addCleanup(graph.unmount)

        def snapshot() -> tuple:
            series = [(ds.name, ds.text, ds.style, ds.data.x.tolist(), ds.data.y.tolist()) for ds in graph.chart.datasets]
            ranges = tuple((s.min, s.max) for s in graph.chart.scales.values())
            return series, ranges

        graph.receive_props(graph.properties, frame)
        first = snapshot()
        frame_1 = graph.chart.surface.to_numpy()
        graph.receive_props(graph.properties, frame)
        self.assertEqual(snapshot(), first)
        self.assertTrue(np.array_equal(graph.chart.surface.to_numpy(), frame_1))

    def test_missing_payload_is_a_no_op(self) -> None:
        graph = _mounted({"lines": {"planned": {}}}, {"lines": {"planned": [[0, 0]]}})
        self.addCleanup(graph.unmount)
        revision = graph.chart.surface.revision
        self.assertFalse(graph.receive_props(graph.properties, None))
        self.assertFalse(graph.update_chart(None, {"lines": {}}))
        self.assertEqual(graph.chart.surface.revision, revision)
        self.assertEqual(len(graph.chart.datasets), 1)

    def test_unmount_releases_chart_and_surface(self) -> None:
        graph = _mounted({"lines": {"planned": {}}}, {"lines": {"planned": [[0, 0]]}})
        chart = graph.chart
        graph.unmount()
        self.assertIsNone(graph.chart)
        self.assertTrue(chart.surface.released)
        self.assertEqual(chart.datasets, [])
        with self.assertRaises(RuntimeError):
            chart.update()
        graph.unmount()


class AxisWindowPipelineTests(unittest.TestCase):
    def test_auto_fit_scenario(self) -> None:
        graph = _mounted(
            {"lines": {"planned": {}}},
            {"lines": {"planned": [{"x": 0, "y": 0}, {"x": 10, "y": 4}]}},
            {"syncXYWindowSize": True, "axes": {"x": {}, "y": {}}},
        )
        self.addCleanup(graph.unmount)
        scales = graph.chart.scales
        self.assertEqual((scales["x"].min, scales["x"].max), (0.0, 10.0))
        self.assertEqual((scales["y"].min, scales["y"].max), (-3.0, 7.0))

    def test_auto_fit_keeps_last_range_without_data(self) -> None:
        graph = _mounted(
            {"lines": {"planned": {}}},
            {"lines": {"planned": [[0, 0], [10, 4]]}},
            {"syncXYWindowSize": True, "axes": {"x": {}, "y": {}}},
        )
        self.addCleanup(graph.unmount)
        graph.receive_props(graph.properties, {"lines": {"planned": []}})
        scales = graph.chart.scales
        self.assertEqual((scales["x"].min, scales["x"].max), (0.0, 10.0))
        self.assertEqual((scales["y"].min, scales["y"].max), (-3.0, 7.0))

    def test_fixed_window_width_is_constant(self) -> None:
        graph = _mounted(
            {"lines": {"planned": {}}},
            {"lines": {"planned": [[0, 0], [10, 4]]}},
            {"axes": {"x": {"windowSize": 20, "midValue": 5}, "y": {"windowSize": 10}}},
        )
        self.addCleanup(graph.unmount)
        for points in ([[0, 0], [10, 4]], [[-300, 12], [-280, 40]], [[1, 1]]):
            graph.receive_props(graph.properties, {"lines": {"planned": points}})
            x_scale, y_scale = graph.chart.scales["x"], graph.chart.scales["y"]
            self.assertEqual((x_scale.min, x_scale.max), (-5.0, 15.0))
            self.assertAlmostEqual(y_scale.max - y_scale.min, 10.0)
        self.assertTrue(math.isclose((y_scale.max + y_scale.min) / 2, 1.0))


class GenerateScatterGraphTests(unittest.TestCase):
    def test_missing_properties_logs_and_returns_none(self) -> None:
        setting = GraphSetting(title="Speed", options=GraphOptions(), properties=None)
        with self.assertLogs("pnc_scatter.graph", level="WARNING") as logs:
            self.assertIsNone(generate_scatter_graph(setting, {}, {}, {}))
        self.assertIn("Graph setting or data not found: Speed", logs.output[0])

    def test_missing_line_data_logs_and_returns_none(self) -> None:
        setting = GraphSetting(title="Path", options=GraphOptions(), properties=GraphProperties())
        with self.assertLogs("pnc_scatter.graph", level="WARNING"):
            self.assertIsNone(generate_scatter_graph(setting, None))

    def test_builds_graph_with_initial_frame(self) -> None:
        setting = GraphSetting(
            title="Path",
            options=GraphOptions(),
            properties=GraphProperties.from_mapping({"cars": {"ego": {}}, "lines": {"planned": {}}}),
        )
        graph = generate_scatter_graph(
            setting,
            {"planned": [[0, 0], [1, 2]]},
            {"ego": {"x": 0.5, "y": 1.0, "heading": 0.0}},
            {"a": _square(1)},
            width=256,
        )
        self.assertIsNotNone(graph)
        self.assertFalse(graph.mounted)
        graph.mount()
        self.addCleanup(graph.unmount)
        self.assertEqual([ds.name for ds in graph.chart.datasets], ["ego_arrow", "ego_car_bounding_box", "planned", "a"])
        self.assertEqual(graph.chart.surface.width, 256)
        self.assertEqual(graph.chart.surface.height, 128)


if __name__ == "__main__":
    unittest.main()
