# =============================================================================
# Frames
#
# pandas glue around the rollup engine:
# - turn a dated DataFrame of observations into an ActualValues map
# - lay out rollups for many metrics and periods as one DataFrame
#
# Dependencies:
#   - pandas as pd
#   - numpy as np
# =============================================================================

import logging
from typing import Any, Dict, Iterable, Optional

import numpy as np
import pandas as pd

from bizplan_app.metric_catalog.catalog_service import CatalogService
from .primitives.periods import ROLLUP_PERIODS, YTD, month_key, parse_month_key
from .rollup import compute_rollup
from .tolerance import select_tolerance
from .primitives.performance import ToleranceConfig

logger = logging.getLogger(__name__)

ROLLUP_TABLE_COLUMNS = [
    "metric_key", "title", "unit", "direction", "period",
    "plan", "actual", "variance", "variance_pct", "status", "readiness",
]


def _month_key_to_date(value: Any) -> Any:
    parsed = parse_month_key(value)
    if parsed is None:
        return value
    return f"{month_key(*parsed)}-01"


def parse_observation_dates(dates: pd.Series) -> pd.Series:
    """
    Parse a column of observation dates element by element.

    "YYYY-MM" month keys become the first of their month, and every other
    entry is parsed on its own format, so a column mixing month keys and full
    dates keeps all of its rows. Unparseable entries become NaT.
    """
    normalized = dates.map(_month_key_to_date)
    return pd.to_datetime(normalized, errors="coerce", format="mixed")


def monthly_values_from_frame(
    df: pd.DataFrame,
    date_col: str = "date",
    value_col: str = "value",
    how: str = "last"
) -> Dict[str, float]:
    """
    Build a month -> value map from a DataFrame of dated observations.

    Parameters
    ----------
    df : pd.DataFrame
        Must have columns [date_col, value_col]. Dates may be strings,
        datetimes, or "YYYY-MM" month keys.
    date_col, value_col : str
        Column names.
    how : {"last", "sum"}, default "last"
        How to combine several rows falling in the same month: keep the
        latest-dated one (snapshots) or add them up (flows).

    Returns
    -------
    Dict[str, float]
        Month keys "YYYY-MM" -> value. Rows with unparseable dates or
        non-numeric / NaN values are dropped, so gaps stay gaps.
    """
    missing_columns = [c for c in (date_col, value_col) if c not in df.columns]
    if missing_columns:
        raise ValueError(f"Missing required columns: {missing_columns}")
    if how not in ("last", "sum"):
        raise ValueError(f"Invalid how: {how}. Must be one of ['last', 'sum']")

    if df.empty:
        return {}

    work = pd.DataFrame({
        "date": parse_observation_dates(df[date_col]),
        "value": pd.to_numeric(df[value_col], errors="coerce"),
    })
    bad_dates = int(work["date"].isna().sum())
    if bad_dates:
        logger.warning("Dropped %d row(s) with unparseable dates in column '%s'", bad_dates, date_col)
    work = work[work["date"].notna() & np.isfinite(work["value"])]
    if work.empty:
        return {}

    work.sort_values("date", inplace=True, kind="mergesort")
    work["month"] = work["date"].dt.strftime("%Y-%m")

    grouped = work.groupby("month", sort=True)["value"]
    combined = grouped.last() if how == "last" else grouped.sum()
    return {month: float(value) for month, value in combined.items()}


def build_rollup_table(
    catalog_service: CatalogService,
    actuals_by_metric: Dict[str, Dict[str, float]],
    periods: Iterable[str] = ROLLUP_PERIODS,
    metric_keys: Optional[Iterable[str]] = None,
    cutoff_month: Optional[str] = None,
    tolerance_presets: Optional[Dict[str, ToleranceConfig]] = None
) -> pd.DataFrame:
    """
    Roll up many metrics over many periods into one DataFrame, one row per
    (metric, period), in catalog order (or the order of `metric_keys`).

    Metrics without an entry in `actuals_by_metric` get plan values and a
    gray status. Unknown keys in `metric_keys` are skipped.
    """
    if metric_keys is None:
        metrics = catalog_service.list_metric_definitions()
    else:
        metrics = [
            m for m in (catalog_service.get_metric_definition(k) for k in metric_keys)
            if m is not None
        ]

    periods = list(periods)
    rows = []
    for metric in metrics:
        actual_values = actuals_by_metric.get(metric.key, {})
        tolerance = select_tolerance(metric.unit, tolerance_presets) if tolerance_presets else None
        for period in periods:
            result = compute_rollup(
                metric,
                period,
                actual_values,
                cutoff_month=cutoff_month if period.strip().upper() == YTD else None,
                tolerance=tolerance,
            )
            rows.append({
                "metric_key": metric.key,
                "title": metric.title,
                "unit": metric.unit.value,
                "direction": metric.direction.value,
                "period": period,
                "plan": result.plan,
                "actual": result.actual,
                "variance": result.variance,
                "variance_pct": result.variance_pct,
                "status": result.status.value,
                "readiness": result.actual_readiness,
            })

    table = pd.DataFrame(rows, columns=ROLLUP_TABLE_COLUMNS)
    for col in ("plan", "actual", "variance", "variance_pct"):
        table[col] = table[col].astype(float)
    return table
