from __future__ import annotations

import unittest

import numpy as np

from pnc_scatter.chart import ChartOptions, ScaleOptions, ScatterChart
from pnc_scatter.series import Series, SeriesData, SeriesStyle
from pnc_scatter.surface import CanvasSurface


RED = (255, 0, 0, 255)


def _series(name: str, x: list[float], y: list[float], style: SeriesStyle | None = None, **kwargs) -> Series:
    return Series(name=name, label=name, data=SeriesData.from_arrays(x, y), style=style or SeriesStyle(), **kwargs)


def _chart(width: int = 240, height: int = 160, **options) -> ScatterChart:
    return ScatterChart(CanvasSurface(width, height), ChartOptions(**options))


class _CountingPlugin:
    def __init__(self) -> None:
        self.calls = 0

    def after_datasets_draw(self, chart: ScatterChart) -> None:
        self.calls += 1


class ScatterChartTests(unittest.TestCase):
    def test_empty_chart_keeps_initial_range_and_commits(self) -> None:
        chart = _chart()
        event = chart.update()
        self.assertEqual(event.revision, 1)
        self.assertEqual((chart.scales["x"].min, chart.scales["x"].max), (-1.0, 1.0))
        self.assertEqual(chart.surface.to_numpy().shape, (160, 240, 4))
        self.assertEqual(chart.chart_type, "scatter")
        self.assertEqual(chart.scales["y"].id, "y-axis-0")
        self.assertTrue(chart.scales["x"].is_horizontal())

    def test_data_limits_follow_visible_data_and_tick_overrides(self) -> None:
        chart = _chart(scales={"y": ScaleOptions(ticks_min=-10.0, ticks_max=10.0)})
        chart.datasets.append(_series("a", [2.0, 8.0], [1.0, 3.0]))
        chart.datasets.append(_series("hidden", [-50.0], [0.0], hidden=True))
        chart.update()
        self.assertEqual((chart.scales["x"].min, chart.scales["x"].max), (2.0, 8.0))
        self.assertEqual((chart.scales["y"].min, chart.scales["y"].max), (-10.0, 10.0))

    def test_after_data_limits_hook_runs_per_scale(self) -> None:
        seen: list[tuple[str, float, float]] = []

        def hook(scale) -> None:
            seen.append((scale.axis, scale.min, scale.max))
            scale.min, scale.max = -100.0, 100.0

        chart = _chart(scales={"x": ScaleOptions(after_data_limits=hook)})
        chart.datasets.append(_series("a", [0.0, 1.0], [0.0, 1.0]))
        chart.update()
        self.assertEqual(seen, [("x", 0.0, 1.0)])
        self.assertEqual((chart.scales["x"].min, chart.scales["x"].max), (-100.0, 100.0))
        self.assertEqual((chart.scales["y"].min, chart.scales["y"].max), (0.0, 1.0))

    def test_line_is_rasterized_inside_plot_area(self) -> None:
        chart = _chart(legend_display=False)
        chart.datasets.append(_series("a", [0.0, 10.0], [0.0, 10.0], SeriesStyle(color=RED, show_line=True, point_radius=0)))
        chart.update()
        frame = chart.surface.to_numpy()
        red = (frame[:, :, 0] == 255) & (frame[:, :, 1] == 0) & (frame[:, :, 2] == 0)
        self.assertTrue(np.any(red))
        x0, y0, w, h = chart.plot_rect()
        ys, xs = np.nonzero(red)
        self.assertTrue(np.all((xs >= x0) & (xs < x0 + w)))
        self.assertTrue(np.all((ys >= y0) & (ys < y0 + h)))

    def test_dataset_pixels_map_corners_of_the_plot(self) -> None:
        chart = _chart(
            scales={
                "x": ScaleOptions(ticks_min=0.0, ticks_max=10.0),
                "y": ScaleOptions(ticks_min=0.0, ticks_max=10.0),
            }
        )
        chart.datasets.append(_series("a", [0.0, 10.0, np.nan], [0.0, 10.0, 1.0]))
        chart.update()
        x0, y0, w, h = chart.plot_rect()
        px, py = chart.dataset_pixels(0)
        self.assertAlmostEqual(px[0], x0)
        self.assertAlmostEqual(py[0], y0 + h - 1)
        self.assertAlmostEqual(px[1], x0 + w - 1)
        self.assertAlmostEqual(py[1], y0)
        self.assertTrue(np.isnan(px[2]))
        self.assertAlmostEqual(chart.scales["x"].pixel_per_unit(), (w - 1) / 10.0)

    def test_dataset_pixels_requires_a_layout(self) -> None:
        chart = _chart()
        chart.datasets.append(_series("a", [0.0], [0.0]))
        with self.assertRaises(RuntimeError):
            chart.dataset_pixels(0)

    def test_legend_filter_excludes_legend_exempt_series(self) -> None:
        chart = _chart()
        chart.datasets.extend(
            [
                _series("ego_arrow", [0.0], [0.0]),
                _series("ego_car_bounding_box", [0.0], [0.0], legend_exempt=True),
                _series("planned", [0.0], [0.0]),
            ]
        )
        self.assertEqual([ds.name for ds in chart.legend_items()], ["ego_arrow", "planned"])

    def test_hidden_series_is_not_drawn(self) -> None:
        chart = _chart(legend_display=False)
        chart.datasets.append(_series("a", [0.0, 10.0], [0.0, 10.0], SeriesStyle(color=RED, show_line=True)))
        chart.set_dataset_visibility(0, False)
        self.assertFalse(chart.is_dataset_visible(0))
        chart.update()
        frame = chart.surface.to_numpy()
        red = (frame[:, :, 0] == 255) & (frame[:, :, 1] == 0) & (frame[:, :, 2] == 0)
        self.assertFalse(np.any(red))

    def test_plugins_are_per_instance(self) -> None:
        plugin = _CountingPlugin()
        first = _chart()
        second = _chart()
        first.register_plugin(plugin)
        first.register_plugin(plugin)
        first.update()
        second.update()
        self.assertEqual(plugin.calls, 1)
        self.assertEqual(second.plugins, ())

    def test_fill_text_draws_on_current_frame(self) -> None:
        chart = _chart(legend_display=False)
        chart.update()
        before = chart.last_frame().copy()
        chart.fill_text("Heading", 120.0, 80.0, RED, font_size_px=20.0, rotation=0.5)
        self.assertFalse(np.array_equal(before, chart.last_frame()))

    def test_too_small_canvas_raises(self) -> None:
        chart = _chart(width=20, height=10)
        with self.assertRaises(ValueError):
            chart.update()

    def test_destroy_releases_surface(self) -> None:
        chart = _chart()
        chart.register_plugin(_CountingPlugin())
        chart.datasets.append(_series("a", [0.0], [0.0]))
        chart.update()
        chart.destroy()
        self.assertEqual(chart.datasets, [])
        self.assertEqual(chart.plugins, ())
        self.assertTrue(chart.surface.released)
        with self.assertRaises(RuntimeError):
            chart.update()


if __name__ == "__main__":
    unittest.main()
