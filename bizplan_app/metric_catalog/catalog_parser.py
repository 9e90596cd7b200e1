import logging
import os
from typing import Any, Dict, Optional

import toml

from bizplan_app.core.exceptions import CatalogValidationError
from .catalog_models import (
    Aggregation,
    Direction,
    FormulaDefinition,
    MetricCatalog,
    MetricDefinition,
    Unit,
)
from .formula_parser import parse_formula_references

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    "config",
    "bp2026_targets.toml",
)


def parse_metric_catalog_toml(toml_str: str) -> MetricCatalog:
    data = toml.loads(toml_str)
    raw_metrics = data.get("metrics", [])

    metric_defs = [_parse_single_metric(raw_m) for raw_m in raw_metrics]

    fiscal_year = data.get("fiscal_year")
    if fiscal_year is None:
        # Fall back to the year of the first metric's months
        years = [m.fiscal_year for m in metric_defs if m.fiscal_year is not None]
        if not years:
            raise CatalogValidationError("Catalog declares no fiscal_year and has no monthly plan data.")
        fiscal_year = years[0]

    return MetricCatalog(
        fiscal_year=int(fiscal_year),
        metrics=metric_defs,
        summary_order=list(data.get("summary_order", [])),
    )


def load_metric_catalog(path: Optional[str] = None) -> MetricCatalog:
    """
    Read and parse a catalog TOML file. Defaults to the bundled 2026 business plan.
    """
    path = path or DEFAULT_CATALOG_PATH
    with open(path, "r", encoding="utf-8") as f:
        toml_str = f.read()

    catalog = parse_metric_catalog_toml(toml_str)
    logger.info(
        "Loaded metric catalog for fiscal year %s from %s (%d metrics)",
        catalog.fiscal_year, path, len(catalog.metrics)
    )
    return catalog


def _parse_single_metric(raw_m: Dict[str, Any]) -> MetricDefinition:
    if "key" not in raw_m:
        raise CatalogValidationError(f"Metric entry without a key: {raw_m.get('title', raw_m)}")
    key = raw_m["key"]
    title = raw_m.get("title", key)

    unit = _parse_enum(Unit, raw_m.get("unit", Unit.CURRENCY.value), key, "unit")
    aggregation = _parse_enum(
        Aggregation, raw_m.get("aggregation", Aggregation.PERIOD_SUM.value), key, "aggregation"
    )
    direction = _parse_enum(
        Direction, raw_m.get("direction", Direction.INCREASE_IS_GOOD.value), key, "direction"
    )

    # Formula (metadata only)
    formula = None
    expr = raw_m.get("formula")
    if expr:
        formula = FormulaDefinition(
            expression_str=expr,
            references=parse_formula_references(expr)
        )

    months = {}
    for month, value in raw_m.get("months", {}).items():
        try:
            months[str(month)] = float(value)
        except (TypeError, ValueError):
            raise CatalogValidationError(
                f"Metric '{key}' has a non-numeric plan value for {month}: {value!r}"
            )

    totals = {name: float(value) for name, value in raw_m.get("totals", {}).items()}

    return MetricDefinition(
        key=key,
        title=title,
        unit=unit,
        aggregation=aggregation,
        direction=direction,
        months=months,
        is_derived=bool(raw_m.get("is_derived", False)),
        formula=formula,
        category=raw_m.get("category"),
        totals=totals,
    )


def _parse_enum(enum_cls, raw_value: Any, key: str, field_name: str):
    try:
        return enum_cls(raw_value)
    except ValueError:
        valid = [e.value for e in enum_cls]
        raise CatalogValidationError(
            f"Metric '{key}' has invalid {field_name} {raw_value!r}. Must be one of {valid}"
        )
