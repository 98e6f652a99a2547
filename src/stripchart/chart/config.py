from collections.abc import MutableMapping
from typing import Any, Dict, Iterator

from loguru import logger

from .tics import parse_policy

# Keys whose values are tic policies, validated when set
TIC_KEYS = ("xtics", "ytics")

DEFAULT_PROPERTIES: Dict[str, Any] = {
    "title": None,
    "xlabel": None,
    "ylabel": None,
    "xtics": "auto",
    "ytics": "auto",
    "origin": True,
    "pad": [80, 70, 40, 35],  # left, bottom, top, right
    "stroke-style": "red",
    "envelope-style": "silver",
    "line-width": 1,
    "font": None,
}


class ChartProperties(MutableMapping):
    """
    Display options of a chart.

    An open key/value store seeded with the defaults above. A value of None
    (or a deleted key) suppresses what the key controls. Tic policies are
    checked on assignment so a bad policy fails where it is set.
    """

    def __init__(self, **overrides: Any):
        self._values: Dict[str, Any] = dict(DEFAULT_PROPERTIES)
        for key, value in overrides.items():
            self[key.replace("_", "-")] = value

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if key in TIC_KEYS:
            parse_policy(value)
        if key not in DEFAULT_PROPERTIES:
            logger.debug(f"Setting non-standard chart property {key!r}")
        self._values[key] = value

    def __delitem__(self, key: str) -> None:
        del self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ChartProperties({self._values!r})"

    def line_width(self) -> float:
        """``line-width`` as a number; absent or malformed values give 1."""
        value = self.get("line-width")
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning(f"Invalid line-width {value!r}, using 1")
            return 1.0
