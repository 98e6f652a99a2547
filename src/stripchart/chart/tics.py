"""
Tic and gridline generation.

A tic policy is one of:

* a positive number, used directly as the step,
* ``"auto"``, a round step picked by :func:`quantize_step`,
* ``"fixed N"``, exactly N tics spanning ``[min, max]``,
* ``"none"`` or ``None``, nothing is computed and nothing is drawn.
"""

import math
import numbers
import re
from typing import List, NamedTuple, Optional, Union

from loguru import logger

from stripchart.exceptions import InvalidTicCount, MalformedPolicy

POLICY_AUTO = "auto"
POLICY_NONE = "none"
POLICY_FIXED = "fixed"

# Upper bound on the number of tics in one range
MAX_TICS = 10000

# Relative slack, in steps, when snapping tics to the ends of a range
TIC_TOLERANCE = 1e-9

_FIXED_PATTERN = re.compile(r"fixed\s+(\d+)")

PolicyLike = Union[None, int, float, str]


class TicPolicy(NamedTuple):
    """A validated tic policy."""

    kind: str
    value: Optional[float] = None

    @property
    def draws(self) -> bool:
        return self.kind != POLICY_NONE


def parse_policy(policy: PolicyLike) -> TicPolicy:
    """
    Validate a tic policy.

    Parameters
    ----------
    policy : PolicyLike
        Numeric step, ``"auto"``, ``"none"``, ``"fixed N"`` or None.

    Returns
    -------
    TicPolicy
        Parsed policy. Numeric steps have kind ``"step"``.

    Raises
    ------
    InvalidTicCount
        If a ``"fixed N"`` policy has N < 2.
    MalformedPolicy
        If the policy is of any other form.
    """
    if policy is None:
        return TicPolicy(POLICY_NONE)

    if isinstance(policy, bool):
        raise MalformedPolicy(f"Unknown tic format: {policy!r}")

    if isinstance(policy, numbers.Real):
        if not math.isfinite(policy) or policy <= 0:
            raise MalformedPolicy(f"Tic step must be positive and finite: {policy!r}")
        return TicPolicy("step", float(policy))

    if isinstance(policy, str):
        text = policy.strip()
        if text == POLICY_AUTO:
            return TicPolicy(POLICY_AUTO)
        if text == POLICY_NONE:
            return TicPolicy(POLICY_NONE)
        found = _FIXED_PATTERN.fullmatch(text)
        if found is not None:
            count = int(found.group(1))
            if count < 2:
                raise InvalidTicCount(f"Too few user tics: {policy!r} (need at least 2)")
            return TicPolicy(POLICY_FIXED, float(count))

    raise MalformedPolicy(f"Unknown tic format: {policy!r}")


def quantize_step(min_value: float, max_value: float) -> float:
    """
    Pick a round tic step for the range without knowing font dimensions.

    Favors 1/2/5 patterns (0.05, 0.1, 0.2, 0.5, 1, 2 times a power of ten)
    over exact divisors of the range.
    """
    # Gnuplot's quantize_normal_tics
    magnitude = abs(max_value - min_value)
    power = 10.0 ** math.floor(math.log10(magnitude))
    normalized = magnitude / power
    density = 20.0 / normalized

    if density > 40:
        multiplier = 0.05
    elif density > 20:
        multiplier = 0.1
    elif density > 10:
        multiplier = 0.2
    elif density > 4:
        multiplier = 0.5
    elif density > 2:
        multiplier = 1.0
    elif density > 0.5:
        multiplier = 2.0
    else:
        # Round up rather than down so the last tic is not lost to precision
        multiplier = float(math.ceil(normalized))
    return multiplier * power


def tic_step(min_value: float, max_value: float, policy: PolicyLike) -> Optional[float]:
    """
    Compute the tic step for a range under ``policy``.

    Returns None for the ``"none"`` policy and for an absent policy.
    """
    parsed = policy if isinstance(policy, TicPolicy) else parse_policy(policy)

    if parsed.kind == "step":
        return parsed.value
    if parsed.kind == POLICY_AUTO:
        return quantize_step(min_value, max_value)
    if parsed.kind == POLICY_FIXED:
        return (max_value - min_value) / (parsed.value - 1)
    return None


def tic_range(min_value: float, max_value: float, policy: PolicyLike) -> List[float]:
    """
    Create the ascending tic positions between ``min_value`` and ``max_value``.

    The first tic is the smallest multiple of the step that is ``>= min_value``;
    tics continue while they are ``<= max_value``. Both comparisons allow a
    little floating-point slack. A ``"fixed N"`` policy gives exactly N tics
    from ``min_value`` to ``max_value`` inclusive.

    Parameters
    ----------
    min_value : float
        Lower bound of the visible range.
    max_value : float
        Upper bound of the visible range.
    policy : PolicyLike
        Tic policy for the axis.

    Returns
    -------
    List[float]
        Tic positions. Empty for a degenerate range or a ``"none"`` policy.
    """
    if min_value == max_value:
        return []

    parsed = policy if isinstance(policy, TicPolicy) else parse_policy(policy)
    step = tic_step(min_value, max_value, parsed)
    if step is None or not math.isfinite(step) or step <= 0:
        return []

    count_estimate = (max_value - min_value) / step
    if count_estimate > MAX_TICS:
        logger.warning(
            f"Tic step {step:.3g} gives ~{count_estimate:.0f} tics over [{min_value:.6g}, {max_value:.6g}], not drawing tics"
        )
        return []

    if parsed.kind == POLICY_FIXED:
        count = int(parsed.value)
        tics = [min_value + k * step for k in range(count - 1)]
        tics.append(max_value)
        return tics

    slack = TIC_TOLERANCE * step
    new_min = round(min_value / step) * step
    if new_min < min_value - slack:
        new_min += step

    tics = []
    k = 0
    value = new_min
    while value <= max_value + slack:
        tics.append(value)
        k += 1
        value = new_min + k * step
    return tics


def format_tic(value: float, step: float) -> str:
    """Format a tic label with as many decimals as the step needs."""
    places = math.floor(math.log10(step))
    if places <= 0:
        return f"{value:.{-places}f}"
    return f"{value:.0f}"


def coordinate_places(ppu: float) -> int:
    """Decimal places for a pointer readout at ``ppu`` pixels per unit."""
    units_log = math.log10(1.0 / ppu)
    # Only fractional units per pixel need decimals
    return math.ceil(-units_log) if units_log < 0 else 0
