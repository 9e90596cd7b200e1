import logging
import sys

import pandas as pd

from bizplan_app.metric_catalog.catalog_parser import load_metric_catalog
from bizplan_app.metric_catalog.catalog_service import CatalogService
from bizplan_app.query_manager.local_csv_query_manager import LocalCSVQueryManager
from bizplan_app.rollup_engine.frames import build_rollup_table
from bizplan_app.rollup_engine.tolerance import load_tolerance_presets


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    # usage: python -m bizplan_app.bin.run_rollup_report <actuals_folder> [cutoff YYYY-MM]
    data_folder = sys.argv[1] if len(sys.argv) > 1 else "data/actuals"
    cutoff_month = sys.argv[2] if len(sys.argv) > 2 else None

    svc = CatalogService(load_metric_catalog())
    svc.validate_catalog()
    presets = load_tolerance_presets()

    qm = LocalCSVQueryManager(data_folder)
    actuals = {}
    for metric in svc.get_summary_metrics():
        if qm.has_metric(metric.key):
            actuals[metric.key] = qm.fetch_monthly_actuals(metric.key, svc.fiscal_year)

    table = build_rollup_table(
        svc,
        actuals,
        metric_keys=[m.key for m in svc.get_summary_metrics()],
        cutoff_month=cutoff_month,
        tolerance_presets=presets,
    )
    with pd.option_context("display.max_rows", None, "display.width", 200):
        print(table.to_string(index=False))


if __name__ == "__main__":
    main()
