import numpy as np
import pytest

from stripchart import HostRegion, SampleBuffer, StripChart, Viewport, ZoomController

WIDTH = 875
HEIGHT = 400
PAD = [80, 70, 40, 35]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def host():
    return HostRegion.for_chart(WIDTH, HEIGHT)


@pytest.fixture
def sine_samples():
    """1000 samples of sin(x) over x in [-10, 10)."""
    xstep = 20.0 / 1000
    x = -10.0 + np.arange(1000) * xstep
    return SampleBuffer(np.sin(x), xstep, -10.0)


@pytest.fixture
def viewport():
    return Viewport(WIDTH, HEIGHT, PAD)


@pytest.fixture
def controller(viewport, sine_samples):
    zoom = ZoomController(viewport)
    zoom.attach(sine_samples)
    viewport.update_scale(zoom.visible)
    return zoom


@pytest.fixture
def chart(host, clock):
    return StripChart(host, clock=clock)


@pytest.fixture
def sine_chart(chart, sine_samples):
    chart.attach(sine_samples.values, sine_samples.xstep, sine_samples.xstart)
    chart.draw()
    return chart
