from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple


class Unit(str, Enum):
    """How a metric's monthly values are expressed."""
    CURRENCY = "currency"
    COUNT = "count"
    PERCENTAGE = "percentage"   # stored as fractions, 0.18 == 18%


class Aggregation(str, Enum):
    """How monthly values combine into a period value."""
    POINT_IN_TIME = "point_in_time"   # balance / headcount: value at period end
    PERIOD_SUM = "period_sum"         # revenue / expenses: sum over the period


class Direction(str, Enum):
    """Which way a metric should move relative to plan."""
    INCREASE_IS_GOOD = "increase_is_good"
    DECREASE_IS_GOOD = "decrease_is_good"
    TARGET_IS_FLAT = "target_is_flat"


@dataclass(frozen=True)
class FormulaDefinition:
    """
    A formula for a derived metric, e.g. "revenue_net - cogs_csv".
    Documentation only: the engine never evaluates it.
    """
    expression_str: str
    references: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "references", tuple(self.references))


@dataclass(frozen=True)
class MetricDefinition:
    """
    A single business-plan metric with its monthly plan values for one fiscal year.
    """
    key: str
    title: str
    unit: Unit
    aggregation: Aggregation
    direction: Direction
    months: Mapping[str, float]
    is_derived: bool = False

    formula: Optional[FormulaDefinition] = None
    category: Optional[str] = None

    # Totals as typed in the source plan (sum_months / dec / avg), informational
    totals: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        # months and totals are held as read-only copies
        object.__setattr__(self, "months", MappingProxyType(dict(self.months)))
        object.__setattr__(self, "totals", MappingProxyType(dict(self.totals)))

    @property
    def fiscal_year(self) -> Optional[int]:
        """The calendar year covered by `months`, taken from the first month key."""
        if not self.months:
            return None
        return int(min(self.months)[:4])

    @property
    def formula_references(self) -> List[str]:
        return list(self.formula.references) if self.formula else []


@dataclass
class MetricCatalog:
    """
    An ordered collection of metric definitions for one fiscal year.
    """
    fiscal_year: int
    metrics: List[MetricDefinition] = field(default_factory=list)
    summary_order: List[str] = field(default_factory=list)

    def get_metric_keys(self) -> List[str]:
        """Returns the list of all metric keys in catalog order."""
        return [m.key for m in self.metrics]
