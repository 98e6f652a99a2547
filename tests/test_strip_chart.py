"""End-to-end tests for the StripChart renderer."""

import numpy as np
import pytest

from stripchart import (
    HostRegion,
    InvalidTicCount,
    MalformedPolicy,
    MissingHostElement,
    PointerEvent,
    PointerState,
    StripChart,
)
from stripchart.chart.data import DEFAULT_VISIBLE, Extent

WIDTH = 875
HEIGHT = 400


def pointer(chart, event, x, y=0.0):
    """Send a pointer event at data coordinates ``(x, y)``."""
    p = chart.viewport.to_pixel(x, y, chart.visible)
    return chart.handle_pointer(event, p.x, p.y)


def drag(chart, x1, x2, y=0.0):
    pointer(chart, PointerEvent.PRESS, x1, y)
    pointer(chart, PointerEvent.MOVE, x2, y)
    return pointer(chart, PointerEvent.RELEASE, x2, y)


class TestConstruction:
    def test_missing_host(self):
        with pytest.raises(MissingHostElement):
            StripChart(None)

    def test_host_without_chart_region(self):
        with pytest.raises(MissingHostElement):
            StripChart(HostRegion(WIDTH, HEIGHT))

    def test_missing_host_is_a_lookup_error(self):
        with pytest.raises(LookupError):
            StripChart(HostRegion(WIDTH, HEIGHT))

    def test_surfaces_match_region(self, chart):
        assert chart.surface.size == (WIDTH, HEIGHT)
        assert chart.overlay.size == (WIDTH, HEIGHT)
        assert chart.width_in_pixels() == 760

    def test_pixel_ratio(self, host):
        chart = StripChart(host, pixel_ratio=2)
        assert chart.export_image().size == (2 * WIDTH, 2 * HEIGHT)


class TestDrawing:
    def test_draw_without_data(self, chart):
        chart.draw()
        assert chart.visible == DEFAULT_VISIBLE
        assert chart.last_view() is None
        assert chart.visible_sample_range() is None
        # The template is still drawn
        assert np.asarray(chart.export_image())[..., 3].max() > 0

    def test_draw_with_text(self, sine_chart):
        sine_chart.set("title", "Energy")
        sine_chart.set("xlabel", "Time (s)")
        sine_chart.set("ylabel", "Energy (uJ)")
        sine_chart.draw()
        alpha = np.asarray(sine_chart.export_image())[..., 3]
        # Title sits in the top margin
        assert alpha[:40].max() > 0

    def test_series_is_stroked_in_stroke_style(self, sine_chart):
        pixels = np.asarray(sine_chart.export_image())
        red = (pixels[..., 0] == 255) & (pixels[..., 1] == 0) & (pixels[..., 2] == 0)
        assert red.any()

    def test_series_stays_inside_plot(self, sine_chart):
        pixels = np.asarray(sine_chart.export_image())
        red = (pixels[..., 0] == 255) & (pixels[..., 1] == 0) & (pixels[..., 2] == 0)
        rows, cols = np.nonzero(red)
        rect = sine_chart.viewport.rect
        assert cols.min() >= rect.tx - 1
        assert cols.max() <= rect.tx + rect.w + 1

    def test_invalid_tic_policies(self, chart):
        with pytest.raises(InvalidTicCount):
            chart.set("xtics", "fixed 0")
        with pytest.raises(MalformedPolicy):
            chart.set("ytics", "sometimes")

    def test_no_tics(self, sine_chart):
        sine_chart.set("xtics", None)
        sine_chart.set("ytics", "none")
        sine_chart.draw()

    def test_fixed_tics(self, sine_chart):
        sine_chart.set("xtics", "fixed 5")
        sine_chart.set("ytics", 0.25)
        sine_chart.draw()

    def test_no_origin_or_padding(self, sine_chart):
        sine_chart.set("origin", None)
        sine_chart.set("pad", None)
        sine_chart.draw()
        assert sine_chart.width_in_pixels() == WIDTH

    def test_flat_extent_still_clips_x(self, chart):
        chart.attach(np.ones(100), 1.0)
        # Off-pixel edges pull one sample past each side of the view
        chart.zoom.visible = Extent.from_bounds(10.5, 1.0, 50.5, 1.0)
        chart.draw()
        pixels = np.asarray(chart.export_image())
        red = (pixels[..., 0] == 255) & (pixels[..., 1] == 0) & (pixels[..., 2] == 0)
        rows, cols = np.nonzero(red)
        rect = chart.viewport.rect
        assert len(cols) > 0
        assert cols.min() >= rect.tx - 1
        assert cols.max() <= rect.tx + rect.w + 1

    def test_malformed_line_width_falls_back(self, sine_chart):
        sine_chart.set("line-width", "wide")
        sine_chart.draw()

    def test_export_and_save(self, sine_chart, tmp_path):
        assert sine_chart.export_image().size == (WIDTH, HEIGHT)
        path = tmp_path / "chart.png"
        sine_chart.save(str(path))
        assert path.exists()


class TestLevelOfDetail:
    def test_spike_survives_decimation(self, chart):
        values = np.zeros(1_000_000)
        values[-1] = 5.0
        chart.attach(values, 1.0)
        chart.draw()
        view = chart.last_view()
        assert view.is_envelope
        assert view.y_max.max() == 5.0
        assert chart.data_limits.max.y == 5.0

    def test_small_buffer_drawn_raw(self, sine_chart):
        view = sine_chart.last_view()
        assert not view.is_envelope
        assert len(view.x) == len(view.y)

    def test_visible_sample_range(self, sine_chart):
        lhs, rhs = sine_chart.visible_sample_range()
        assert lhs == 0
        assert rhs in (1000, 1001)


class TestZoom:
    def test_attach_shows_all_data(self, sine_chart):
        assert sine_chart.visible.min.x == -10.0
        assert sine_chart.visible.max.x == 10.0
        assert sine_chart.zoom_depth == 0

    def test_drag_zooms(self, sine_chart):
        result = drag(sine_chart, -5.0, 2.0)
        assert result.chart
        assert sine_chart.zoom_depth == 1
        assert sine_chart.visible.min.x == pytest.approx(-5.0)
        assert sine_chart.visible.max.x == pytest.approx(2.0)

    def test_narrow_drag_is_rejected(self, sine_chart):
        result = drag(sine_chart, 0.0, 0.01)
        assert not result.chart
        assert sine_chart.zoom_depth == 0

    def test_selection_drawn_on_overlay(self, sine_chart):
        pointer(sine_chart, PointerEvent.PRESS, -5.0)
        pointer(sine_chart, PointerEvent.MOVE, 5.0)
        assert sine_chart.zoom.state is PointerState.DRAGGING
        p = sine_chart.viewport.to_pixel(0.0, 0.0, sine_chart.visible)
        alpha = sine_chart.overlay.to_image().getpixel((int(p.x), int(p.y)))[3]
        assert alpha > 0

    def test_leave_cancels_and_clears_overlay(self, sine_chart):
        pointer(sine_chart, PointerEvent.PRESS, -5.0)
        pointer(sine_chart, PointerEvent.MOVE, 5.0)
        sine_chart.handle_pointer(PointerEvent.LEAVE, 0, 0)
        assert sine_chart.zoom.state is PointerState.IDLE
        assert np.asarray(sine_chart.overlay.to_image())[..., 3].max() == 0
        assert sine_chart.zoom_depth == 0

    def test_reset_and_previous(self, sine_chart):
        drag(sine_chart, -5.0, 2.0)
        drag(sine_chart, -4.0, 0.0)
        assert sine_chart.zoom_depth == 2
        sine_chart.previous_zoom()
        assert sine_chart.zoom_depth == 1
        assert sine_chart.visible.max.x == pytest.approx(2.0)
        sine_chart.reset_zoom()
        assert sine_chart.zoom_depth == 0
        assert sine_chart.visible == sine_chart.data_limits

    def test_reset_with_empty_buffer(self, chart):
        chart.attach(np.array([]), 1.0)
        chart.reset_zoom()
        assert chart.visible == chart.data_limits
        assert chart.data_limits == DEFAULT_VISIBLE

    def test_data_limits_without_data(self, chart):
        assert chart.data_limits == DEFAULT_VISIBLE

    def test_previous_on_empty_stack(self, sine_chart):
        before = sine_chart.visible
        sine_chart.previous_zoom()
        assert sine_chart.visible == before

    def test_attach_resets_zoom(self, sine_chart, sine_samples):
        drag(sine_chart, -5.0, 2.0)
        sine_chart.attach(sine_samples.values, sine_samples.xstep, sine_samples.xstart)
        assert sine_chart.zoom_depth == 0
        assert sine_chart.visible == sine_chart.data_limits


class TestReadout:
    def test_readout_inside_plot(self, sine_chart):
        p = sine_chart.viewport.to_pixel(1.0, 0.5, sine_chart.visible)
        x, y = sine_chart.coordinate_readout(p.x, p.y)
        assert float(x) == pytest.approx(1.0, abs=0.1)
        assert float(y) == pytest.approx(0.5, abs=0.01)

    def test_readout_in_margin(self, sine_chart):
        assert sine_chart.coordinate_readout(5, 5) is None

    def test_move_updates_readout(self, sine_chart):
        pointer(sine_chart, PointerEvent.MOVE, 1.0, 0.5)
        assert sine_chart.readout is not None


class TestResize:
    def test_resize_is_debounced(self, sine_chart, host, clock):
        host.resize(1000, 500)
        host.resize(1100, 500)
        assert sine_chart.surface.size == (WIDTH, HEIGHT)
        assert not sine_chart.process_events(0.1)
        assert sine_chart.process_events(0.3)
        assert sine_chart.surface.size == (1100, 500)
        assert sine_chart.width_in_pixels() == 1100 - 80 - 35
        assert not sine_chart.process_events(1.0)
