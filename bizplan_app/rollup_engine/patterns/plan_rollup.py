# rollup_engine/patterns/plan_rollup.py

"""
Plan Rollup Pattern

Runs the quarter + YTD plan vs. actual rollup for one metric from a DataFrame
of dated observations, the shape the dashboard summary view consumes.

Output Format (PatternOutput.results):
{
  "schemaVersion": "1.0.0",
  "patternName": "PlanRollup",
  "metricId": "string",
  "metricKnown": bool,
  "fiscalYear": int | null,
  "cutoffMonth": "YYYY-MM" | null,     // explicit or inferred YTD as-of month
  "evaluationTime": "YYYY-MM-DD HH:mm:ss",
  "rollups": {
    "Q1": {"plan": float|null, "actual": float|null, "variance": float|null,
           "variancePct": float|null, "status": "green"|"yellow"|"red"|"gray",
           "period": "Q1", "months": [...], "actualReadiness": str},
    ...
    "YTD": {...}
  },
  "planRollups": {"Q1": float|null, ..., "YTD": float|null}   // full-year plan view
}
"""

from datetime import datetime
from typing import Dict, Optional

import pandas as pd

from bizplan_app.metric_catalog.catalog_service import CatalogService
from bizplan_app.rollup_engine.data_structures import AnalysisWindow, PatternOutput
from bizplan_app.rollup_engine.frames import monthly_values_from_frame
from bizplan_app.rollup_engine.primitives.performance import ToleranceConfig
from bizplan_app.rollup_engine.primitives.periods import infer_cutoff_month
from bizplan_app.rollup_engine.rollup import compute_plan_rollups, compute_quarter_and_ytd_rollups
from bizplan_app.rollup_engine.tolerance import select_tolerance
from .base_pattern import Pattern


class PlanRollupPattern(Pattern):
    """
    Compares a metric's observed monthly values against its business-plan
    targets for every quarter and YTD.
    """

    PATTERN_NAME = "PlanRollup"
    PATTERN_VERSION = "1.0.0"

    def __init__(
        self,
        catalog_service: CatalogService,
        tolerance_presets: Optional[Dict[str, ToleranceConfig]] = None
    ):
        self.catalog_service = catalog_service
        self.tolerance_presets = tolerance_presets

    def run(
        self,
        metric_id: str,
        data: pd.DataFrame,
        analysis_window: AnalysisWindow,
        how: str = "last",
        **kwargs
    ) -> PatternOutput:
        """
        Parameters
        ----------
        metric_id : str
            Catalog key of the metric.
        data : pd.DataFrame
            Columns: date, value. May be empty (no actuals yet).
        analysis_window : AnalysisWindow
            {"cutoff_month": "YYYY-MM"} pins YTD. Pass {} to infer it from the
            latest month with data. The returned window holds the cutoff used.
        how : {"last", "sum"}
            How rows within one month combine (see monthly_values_from_frame).
        **kwargs
            Accepted for interface compatibility with Pattern.run; unused.

        Returns
        -------
        PatternOutput
        """
        analysis_window = dict(analysis_window or {})
        self.validate_data(data, ["date", "value"])

        actual_values = monthly_values_from_frame(data, how=how)
        metric = self.catalog_service.get_metric_definition(metric_id)

        cutoff_month = analysis_window.get("cutoff_month")
        fiscal_year = metric.fiscal_year if metric else None
        if cutoff_month is None and fiscal_year is not None:
            cutoff_month = infer_cutoff_month(actual_values, fiscal_year)

        tolerance = None
        if metric is not None and self.tolerance_presets:
            tolerance = select_tolerance(metric.unit, self.tolerance_presets)

        rollups = compute_quarter_and_ytd_rollups(
            metric, actual_values, cutoff_month=cutoff_month, tolerance=tolerance
        )

        results = {
            "schemaVersion": "1.0.0",
            "patternName": self.PATTERN_NAME,
            "metricId": metric_id,
            "metricKnown": metric is not None,
            "fiscalYear": fiscal_year,
            "cutoffMonth": cutoff_month,
            "evaluationTime": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            "rollups": {tag: r.to_dict() for tag, r in rollups.items()},
            "planRollups": compute_plan_rollups(metric),
        }

        return PatternOutput(
            pattern_name=self.PATTERN_NAME,
            pattern_version=self.PATTERN_VERSION,
            metric_id=metric_id,
            analysis_window={**analysis_window, "cutoff_month": cutoff_month},
            results=results
        )
