"""
Error types raised by the strip chart engine.

Degenerate geometry (zero-width extents, empty aggregation windows) is never
raised; it is handled by substitution where it occurs.
"""


class StripChartError(Exception):
    """Base class for all strip chart errors."""


class InvalidTicCount(StripChartError, ValueError):
    """A ``"fixed N"`` tic policy asked for fewer than two tics."""


class MalformedPolicy(StripChartError, ValueError):
    """A tic policy is neither a step, ``"auto"``, ``"none"`` nor ``"fixed N"``."""


class MissingHostElement(StripChartError, LookupError):
    """The host region, or one of its required child regions, is missing."""
