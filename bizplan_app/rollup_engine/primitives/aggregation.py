# =============================================================================
# Aggregation
#
# Reduces per-month values into one period value, honoring the metric's unit
# and aggregation rule:
# - percentage metrics always average (a ratio is never summed)
# - point_in_time metrics take the value at the period's end month
# - period_sum metrics sum the months that have data
#
# Missing months are dropped, never read as zero. Nothing left => None.
# =============================================================================


from typing import Any, Dict, List, Optional, Sequence

from bizplan_app.metric_catalog.catalog_models import Aggregation, Unit
from .periods import is_present_value

READY = "ready"
PARTIAL = "partial"
NOT_READY = "not_ready"


def present_values(months: Sequence[str], value_source: Dict[str, Any]) -> List[float]:
    """Values of `months` found in `value_source`, in month order, skipping gaps."""
    return [float(value_source[m]) for m in months if is_present_value(value_source.get(m))]


def aggregate_monthly_values(
    unit: Unit,
    aggregation: Aggregation,
    months: Sequence[str],
    value_source: Dict[str, Any],
    end_month: Optional[str] = None
) -> Optional[float]:
    """
    Reduce the values of `months` in `value_source` to a single period value.

    Parameters
    ----------
    unit : Unit
        currency / count / percentage.
    aggregation : Aggregation
        point_in_time or period_sum. Ignored for percentage metrics.
    months : Sequence[str]
        Resolved months of the period, in calendar order.
    value_source : Dict[str, Any]
        Month key -> value; either a plan `months` map or an ActualValues map.
    end_month : str, optional
        Closing month for point_in_time aggregation. Defaults to months[-1].

    Returns
    -------
    float or None
        None when no month of the period has data ("not ready"), or when a
        point_in_time metric has no value at the end month.
    """
    values = present_values(months, value_source)
    if not values:
        return None

    if Unit(unit) == Unit.PERCENTAGE:
        return sum(values) / len(values)

    if Aggregation(aggregation) == Aggregation.POINT_IN_TIME:
        closing = end_month if end_month is not None else months[-1]
        closing_value = value_source.get(closing)
        # A balance is meaningless as a partial-period figure
        return float(closing_value) if is_present_value(closing_value) else None

    return sum(values)


def period_readiness(months: Sequence[str], value_source: Dict[str, Any]) -> str:
    """
    "ready" if every month of the period has data, "partial" if only some do,
    "not_ready" if none do (or the period resolved to no months).
    """
    if not months:
        return NOT_READY
    count = len(present_values(months, value_source))
    if count == 0:
        return NOT_READY
    return READY if count == len(months) else PARTIAL
