import time
from typing import Callable, Dict, List, Optional

from loguru import logger

ResizeListener = Callable[[float, float], None]


class HostRegion:
    """
    A sized layout box that hosts a chart.

    Children are named sub-regions (the chart draws into ``"strip-chart"``).
    Resizing notifies listeners synchronously; listeners are expected to
    debounce.
    """

    def __init__(
        self,
        width: float,
        height: float,
        children: Optional[Dict[str, "HostRegion"]] = None,
    ):
        self.width = float(width)
        self.height = float(height)
        self.children: Dict[str, HostRegion] = dict(children or {})
        self._listeners: List[ResizeListener] = []

    @classmethod
    def for_chart(cls, width: float, height: float, name: str = "strip-chart") -> "HostRegion":
        """Create a host whose chart region fills it entirely."""
        host = cls(width, height)
        host.children[name] = cls(width, height)
        return host

    def find(self, name: str) -> Optional["HostRegion"]:
        return self.children.get(name)

    def add_resize_listener(self, listener: ResizeListener) -> None:
        self._listeners.append(listener)

    def resize(self, width: float, height: float) -> None:
        """Resize the host and its children proportionally, then notify listeners."""
        sx = width / self.width if self.width else 1.0
        sy = height / self.height if self.height else 1.0
        self.width = float(width)
        self.height = float(height)
        for child in self.children.values():
            child.resize(child.width * sx, child.height * sy)
        for listener in self._listeners:
            listener(self.width, self.height)


class Debouncer:
    """
    Collapse bursts of calls into one, run after a quiet period.

    There is no timer thread: the host loop calls :meth:`poll`, which runs
    the callback once ``wait`` seconds have passed since the last trigger.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        wait: float = 0.25,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.callback = callback
        self.wait = wait
        self.clock = clock
        self._deadline: Optional[float] = None

    @property
    def pending(self) -> bool:
        return self._deadline is not None

    def trigger(self, *args) -> None:
        """Record a call; extra arguments (e.g. a new size) are ignored."""
        self._deadline = self.clock() + self.wait

    def poll(self, now: Optional[float] = None) -> bool:
        """
        Run the callback if the quiet period is over.

        Returns
        -------
        bool
            True if the callback ran.
        """
        if self._deadline is None:
            return False
        now = self.clock() if now is None else now
        if now < self._deadline:
            return False
        self._deadline = None
        logger.debug("Debounce period elapsed, running callback")
        self.callback()
        return True

    def cancel(self) -> None:
        self._deadline = None
