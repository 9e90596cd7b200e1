import logging
import math
from typing import Dict, List, Optional

from .catalog_models import MetricCatalog, MetricDefinition
from bizplan_app.core.exceptions import CatalogValidationError, InvalidMetricReference

logger = logging.getLogger(__name__)

# Relative slack when comparing declared plan totals against the monthly values;
# the source spreadsheet rounds every month independently.
TOTALS_REL_TOLERANCE = 1e-4


class CatalogService:
    """
    Read-only accessor over one injected MetricCatalog.

    Several services (one per fiscal year or tenant) can coexist; nothing here
    is module-global.
    """

    def __init__(self, catalog: Optional[MetricCatalog] = None):
        self._catalog: Optional[MetricCatalog] = None
        self._metrics_by_key: Dict[str, MetricDefinition] = {}
        if catalog is not None:
            self.load_catalog(catalog)

    def load_catalog(self, catalog: MetricCatalog):
        self._catalog = catalog
        self._metrics_by_key.clear()
        for m in catalog.metrics:
            self._metrics_by_key.setdefault(m.key, m)

    @property
    def fiscal_year(self) -> Optional[int]:
        return self._catalog.fiscal_year if self._catalog else None

    def validate_catalog(self) -> bool:
        if self._catalog is None:
            raise CatalogValidationError("No catalog loaded.")
        self._check_duplicate_keys()
        self._check_month_coverage()
        self._check_formula_references_exist()
        self._check_summary_order()
        self._check_declared_totals()
        return True

    def _check_duplicate_keys(self):
        keys = [m.key for m in self._metrics()]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            raise CatalogValidationError(f"Duplicate metric keys found: {duplicates}")

    def _check_month_coverage(self):
        year = self._catalog.fiscal_year
        expected = [f"{year:04d}-{m:02d}" for m in range(1, 13)]
        for m in self._metrics():
            if sorted(m.months) != expected:
                missing = [k for k in expected if k not in m.months]
                extra = sorted(k for k in m.months if k not in expected)
                raise CatalogValidationError(
                    f"Metric '{m.key}' must cover the 12 months of {year}; "
                    f"missing={missing} extra={extra}"
                )
            for month, value in m.months.items():
                if not math.isfinite(value):
                    raise CatalogValidationError(
                        f"Metric '{m.key}' has a non-finite plan value for {month}: {value}"
                    )

    def _check_formula_references_exist(self):
        valid_keys = set(self._metrics_by_key.keys())
        for m in self._metrics():
            for ref in m.formula_references:
                if ref not in valid_keys:
                    raise InvalidMetricReference(
                        f"Metric '{m.key}' formula references '{ref}' not in catalog."
                    )

    def _check_summary_order(self):
        for key in self._catalog.summary_order:
            if key not in self._metrics_by_key:
                raise CatalogValidationError(f"summary_order references '{key}' not in catalog.")

    def _check_declared_totals(self):
        for m in self._metrics():
            values = [m.months[k] for k in sorted(m.months)]
            computed = {
                "sum_months": sum(values),
                "dec": values[-1] if values else None,
                "avg": sum(values) / len(values) if values else None,
            }
            for name, declared in m.totals.items():
                actual = computed.get(name)
                if actual is None:
                    continue
                if not math.isclose(actual, declared, rel_tol=TOTALS_REL_TOLERANCE, abs_tol=1e-9):
                    logger.warning(
                        "Metric '%s' declares %s=%s but monthly plan values give %s",
                        m.key, name, declared, actual
                    )

    def get_metric_definition(self, key: str) -> Optional[MetricDefinition]:
        return self._metrics_by_key.get(key)

    def list_metric_definitions(self) -> List[MetricDefinition]:
        """All metric definitions in catalog order."""
        return list(self._metrics())

    def get_metrics_by_category(self, category: str) -> List[MetricDefinition]:
        return [m for m in self._metrics() if m.category == category]

    def get_summary_metrics(self) -> List[MetricDefinition]:
        """Metrics listed in the catalog's summary_order, in that order."""
        if self._catalog is None:
            return []
        return [self._metrics_by_key[k] for k in self._catalog.summary_order if k in self._metrics_by_key]

    def get_upstream_metrics(self, key: str) -> Dict[str, bool]:
        """
        Returns a dict of {upstream_metric_key: True} for every metric reachable
        through formula references from `key`. Formulas are not evaluated.
        """
        visited: Dict[str, bool] = {}
        stack = [key]
        while stack:
            current = stack.pop()
            metric = self._metrics_by_key.get(current)
            if metric is None:
                continue
            for ref in metric.formula_references:
                if ref not in visited and ref != key:
                    visited[ref] = True
                    stack.append(ref)
        return visited

    def get_catalog(self) -> Optional[MetricCatalog]:
        return self._catalog

    def _metrics(self) -> List[MetricDefinition]:
        return self._catalog.metrics if self._catalog else []
