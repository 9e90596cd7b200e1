from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .primitives.performance import SignalStatus


@dataclass(frozen=True)
class PeriodValue:
    """
    One aggregated value for one period, with where it came from and how
    complete the underlying months were ("ready", "partial", "not_ready").
    """
    value: Optional[float]
    source: str   # "plan" | "actual" | "derived"
    readiness: str


@dataclass(frozen=True)
class RollupResult:
    """
    Plan vs. actual for one metric and one period.
    """
    plan: Optional[float]
    actual: Optional[float]
    variance: Optional[float]
    variance_pct: Optional[float]
    status: SignalStatus
    period: Optional[str] = None
    months: Tuple[str, ...] = ()
    actual_readiness: str = "not_ready"

    @classmethod
    def empty(cls, period: Optional[str] = None) -> "RollupResult":
        """All-None, gray result: unknown metric or unresolvable period."""
        return cls(
            plan=None,
            actual=None,
            variance=None,
            variance_pct=None,
            status=SignalStatus.GRAY,
            period=period,
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the dashboard API shape (camelCase keys, status as a string).
        """
        return {
            "plan": self.plan,
            "actual": self.actual,
            "variance": self.variance,
            "variancePct": self.variance_pct,
            "status": self.status.value,
            "period": self.period,
            "months": list(self.months),
            "actualReadiness": self.actual_readiness,
        }


# {"cutoff_month": "YYYY-MM"}: the as-of month the rollups run through
AnalysisWindow = Dict[str, Optional[str]]


@dataclass
class PatternOutput:
    """
    Result of running a rollup pattern for one metric.

    `analysis_window` holds the effective cutoff month (None when the metric
    has no actuals in its fiscal year). `results` is the pattern's payload;
    each pattern module documents its schema.
    """
    pattern_name: str
    pattern_version: str
    metric_id: str
    analysis_window: AnalysisWindow = field(default_factory=dict)
    results: Dict[str, Any] = field(default_factory=dict)

    @property
    def cutoff_month(self) -> Optional[str]:
        return self.analysis_window.get("cutoff_month")

    def status_by_period(self) -> Dict[str, str]:
        """Signal color per period tag, e.g. {"Q1": "green", ..., "YTD": "gray"}."""
        return {tag: r["status"] for tag, r in self.results.get("rollups", {}).items()}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the dashboard API shape, camelCase like RollupResult.to_dict.
        """
        return {
            "patternName": self.pattern_name,
            "patternVersion": self.pattern_version,
            "metricId": self.metric_id,
            "analysisWindow": {"cutoffMonth": self.cutoff_month},
            "results": self.results,
        }
