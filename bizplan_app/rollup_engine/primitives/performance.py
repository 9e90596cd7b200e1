from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from bizplan_app.metric_catalog.catalog_models import Direction, Unit


class SignalStatus(str, Enum):
    """Traffic-light classification of actual vs. plan."""
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    GRAY = "gray"


@dataclass(frozen=True)
class ToleranceConfig:
    """
    Tolerance bands on ratio = actual / plan.

    yellow_threshold : float
        Slack before a directional metric turns red; the green band for
        target_is_flat metrics.
    red_threshold : float
        Outer band for target_is_flat metrics; beyond it => red.
    """
    yellow_threshold: float
    red_threshold: float


DEFAULT_TOLERANCE = ToleranceConfig(yellow_threshold=0.05, red_threshold=0.10)
PERCENTAGE_TOLERANCE = ToleranceConfig(yellow_threshold=0.02, red_threshold=0.04)


def tolerance_for_unit(unit: Unit) -> ToleranceConfig:
    """Preset for a unit: narrower bands for percentages, wider for currency/count."""
    return PERCENTAGE_TOLERANCE if Unit(unit) == Unit.PERCENTAGE else DEFAULT_TOLERANCE


def compute_variance(
    actual: Optional[float],
    plan: Optional[float]
) -> Tuple[Optional[float], Optional[float]]:
    """
    Compute the gap between an aggregated actual and its plan.

    Parameters
    ----------
    actual : float or None
        Aggregated actual for the period.
    plan : float or None
        Aggregated plan for the period.

    Returns
    -------
    (variance, variance_pct)
        variance = actual - plan
        variance_pct = variance / plan * 100
        Both are None unless actual and plan are present and plan != 0.
    """
    if actual is None or plan is None or plan == 0:
        return None, None

    variance = actual - plan
    return variance, (variance / plan) * 100.0


def compute_signal_status(
    actual: Optional[float],
    plan: Optional[float],
    direction: Direction,
    unit: Unit = Unit.CURRENCY,
    tolerance: Optional[ToleranceConfig] = None
) -> SignalStatus:
    """
    Classify actual vs. plan as green / yellow / red, or gray when the
    comparison is not meaningful.

    Parameters
    ----------
    actual, plan : float or None
        Aggregated values for the same period.
    direction : Direction
        increase_is_good, decrease_is_good or target_is_flat.
    unit : Unit, default=Unit.CURRENCY
        Selects the tolerance preset when `tolerance` is not given.
    tolerance : ToleranceConfig, optional
        Overrides the unit preset.

    Returns
    -------
    SignalStatus

    Notes
    -----
    With ratio = actual / plan and t = tolerance:
    - increase_is_good: ratio >= 1 green; ratio >= 1 - t.yellow yellow; else red.
    - decrease_is_good: ratio <= 1 green; ratio <= 1 + t.yellow yellow; else red.
    - target_is_flat: |ratio - 1| <= t.yellow green; <= t.red yellow; else red.
    - gray whenever actual or plan is None, or plan == 0.
    """
    if actual is None or plan is None or plan == 0:
        return SignalStatus.GRAY

    effective = tolerance or tolerance_for_unit(unit)
    ratio = actual / plan
    direction = Direction(direction)

    if direction == Direction.INCREASE_IS_GOOD:
        if ratio >= 1:
            return SignalStatus.GREEN
        if ratio >= 1 - effective.yellow_threshold:
            return SignalStatus.YELLOW
        return SignalStatus.RED

    if direction == Direction.DECREASE_IS_GOOD:
        if ratio <= 1:
            return SignalStatus.GREEN
        if ratio <= 1 + effective.yellow_threshold:
            return SignalStatus.YELLOW
        return SignalStatus.RED

    deviation = abs(ratio - 1)
    if deviation <= effective.yellow_threshold:
        return SignalStatus.GREEN
    if deviation <= effective.red_threshold:
        return SignalStatus.YELLOW
    return SignalStatus.RED
