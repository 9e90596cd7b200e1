"""
Plan vs. actual rollups.

Composes period resolution, aggregation, variance and signal status into
the results the dashboard shows. Every function is a pure transformation of
its inputs: the metric definition and actual-value map are never mutated and
nothing is cached.
"""

import logging
from typing import Any, Dict, Optional

from bizplan_app.metric_catalog.catalog_models import MetricDefinition
from bizplan_app.metric_catalog.catalog_service import CatalogService
from .data_structures import PeriodValue, RollupResult
from .primitives.aggregation import aggregate_monthly_values, period_readiness
from .primitives.performance import ToleranceConfig, compute_signal_status, compute_variance
from .primitives.periods import (
    ROLLUP_PERIODS,
    YTD,
    infer_cutoff_month,
    resolve_period_months,
)

logger = logging.getLogger(__name__)


def _effective_cutoff(
    metric: MetricDefinition,
    period: str,
    actual_values: Dict[str, Any],
    cutoff_month: Optional[str]
) -> Optional[str]:
    # Without an explicit as-of month, YTD ends at the latest month with an actual
    if cutoff_month is not None:
        return cutoff_month
    if isinstance(period, str) and period.strip().upper() == YTD:
        return infer_cutoff_month(actual_values, metric.fiscal_year)
    return None


def compute_period_value(
    metric: MetricDefinition,
    period: str,
    values: Dict[str, Any],
    source: str = "actual",
    cutoff_month: Optional[str] = None
) -> PeriodValue:
    """
    Aggregate one value map (plan months or actuals) for one period.

    `cutoff_month` only affects YTD; when omitted YTD covers the full year.
    """
    months = resolve_period_months(period, metric.fiscal_year, cutoff_month)
    if not months:
        return PeriodValue(value=None, source=source, readiness="not_ready")

    value = aggregate_monthly_values(metric.unit, metric.aggregation, months, values)
    readiness = period_readiness(months, values) if value is not None else "not_ready"
    return PeriodValue(value=value, source=source, readiness=readiness)


def compute_rollup(
    metric: Optional[MetricDefinition],
    period: str,
    actual_values: Dict[str, Any],
    cutoff_month: Optional[str] = None,
    tolerance: Optional[ToleranceConfig] = None
) -> RollupResult:
    """
    Compare plan and actual for one metric over one period.

    Parameters
    ----------
    metric : MetricDefinition or None
        The metric; None (unknown key) yields an all-None, gray result.
    period : str
        "YYYY-MM", "Q1".."Q4" or "YTD".
    actual_values : Dict[str, Any]
        Month key -> observed value, possibly sparse.
    cutoff_month : str, optional
        Explicit YTD as-of month. When omitted, YTD runs through the latest
        month present in `actual_values` (or the full year if there is none).
        Plan and actual are both aggregated over the same months.
    tolerance : ToleranceConfig, optional
        Overrides the unit's tolerance preset.

    Returns
    -------
    RollupResult
    """
    if metric is None or metric.fiscal_year is None:
        return RollupResult.empty(period)

    cutoff = _effective_cutoff(metric, period, actual_values, cutoff_month)
    months = resolve_period_months(period, metric.fiscal_year, cutoff)
    if not months:
        return RollupResult.empty(period)

    plan = aggregate_monthly_values(metric.unit, metric.aggregation, months, metric.months)
    actual = aggregate_monthly_values(metric.unit, metric.aggregation, months, actual_values)
    variance, variance_pct = compute_variance(actual, plan)
    status = compute_signal_status(actual, plan, metric.direction, metric.unit, tolerance)

    return RollupResult(
        plan=plan,
        actual=actual,
        variance=variance,
        variance_pct=variance_pct,
        status=status,
        period=period,
        months=tuple(months),
        actual_readiness=period_readiness(months, actual_values) if actual is not None else "not_ready",
    )


def compute_quarter_and_ytd_rollups(
    metric: Optional[MetricDefinition],
    actual_values: Dict[str, Any],
    cutoff_month: Optional[str] = None,
    tolerance: Optional[ToleranceConfig] = None
) -> Dict[str, RollupResult]:
    """
    Q1..Q4 and YTD rollups for one metric, keyed by period tag in that order.
    `cutoff_month` applies to YTD only.
    """
    return {
        tag: compute_rollup(
            metric,
            tag,
            actual_values,
            cutoff_month=cutoff_month if tag == YTD else None,
            tolerance=tolerance,
        )
        for tag in ROLLUP_PERIODS
    }


def compute_plan_rollups(metric: Optional[MetricDefinition]) -> Dict[str, Optional[float]]:
    """Plan-only values for Q1..Q4 and a full-year YTD."""
    if metric is None or metric.fiscal_year is None:
        return {tag: None for tag in ROLLUP_PERIODS}
    return {
        tag: compute_period_value(metric, tag, metric.months, source="plan").value
        for tag in ROLLUP_PERIODS
    }


def rollup_metric_by_key(
    catalog_service: CatalogService,
    metric_key: str,
    period: str,
    actual_values: Dict[str, Any],
    cutoff_month: Optional[str] = None,
    tolerance: Optional[ToleranceConfig] = None
) -> RollupResult:
    """
    Look `metric_key` up in the injected catalog and roll it up. Unknown keys
    return the same all-None, gray result as a metric with no data.
    """
    metric = catalog_service.get_metric_definition(metric_key)
    if metric is None:
        logger.debug("Rollup requested for unknown metric key '%s'", metric_key)
    return compute_rollup(metric, period, actual_values, cutoff_month, tolerance)
