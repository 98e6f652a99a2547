"""Tests for the host region and resize debouncing."""

from stripchart.canvas.host import Debouncer, HostRegion


class TestHostRegion:
    def test_for_chart(self):
        host = HostRegion.for_chart(300, 200)
        region = host.find("strip-chart")
        assert (region.width, region.height) == (300, 200)
        assert host.find("missing") is None

    def test_resize_scales_children_and_notifies(self):
        host = HostRegion.for_chart(300, 200)
        calls = []
        host.add_resize_listener(lambda w, h: calls.append((w, h)))
        host.resize(600, 100)
        assert calls == [(600, 100)]
        region = host.find("strip-chart")
        assert (region.width, region.height) == (600, 100)


class TestDebouncer:
    def test_burst_collapses_to_one_call(self, clock):
        calls = []
        debouncer = Debouncer(lambda: calls.append(clock.now), wait=0.25, clock=clock)
        for t in (0.0, 0.1, 0.2):
            clock.now = t
            debouncer.trigger()
        assert not debouncer.poll(0.3)
        assert debouncer.pending
        assert debouncer.poll(0.45)
        assert not debouncer.poll(1.0)
        assert len(calls) == 1

    def test_poll_uses_clock(self, clock):
        calls = []
        debouncer = Debouncer(lambda: calls.append(1), wait=0.25, clock=clock)
        debouncer.trigger(640, 480)
        clock.now = 0.2
        assert not debouncer.poll()
        clock.now = 0.3
        assert debouncer.poll()
        assert calls == [1]

    def test_cancel(self, clock):
        debouncer = Debouncer(lambda: None, clock=clock)
        debouncer.trigger()
        debouncer.cancel()
        assert not debouncer.pending
        assert not debouncer.poll(10)
