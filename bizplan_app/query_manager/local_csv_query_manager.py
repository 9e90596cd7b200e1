import logging
import os
from typing import Dict, Optional

import pandas as pd

from bizplan_app.rollup_engine.frames import monthly_values_from_frame, parse_observation_dates
from bizplan_app.rollup_engine.primitives.periods import parse_month_key
from .base_query_manager import BaseQueryManager

logger = logging.getLogger(__name__)


class LocalCSVQueryManager(BaseQueryManager):
    """
    Reads local CSV files, one per metric key.
    Each CSV must have at least columns: [date, value]. Dates may be full
    dates or "YYYY-MM" month keys.
    """

    def __init__(self, data_folder: str, how: str = "last"):
        """
        :param data_folder: directory that holds CSV files named {metric_key}.csv
        :param how: how several rows in one month combine ("last" or "sum")
        """
        self.data_folder = data_folder
        self.how = how

    def fetch_time_series(
        self, metric_key: str, start_date: Optional[str] = None, end_date: Optional[str] = None
    ) -> pd.DataFrame:
        df = self._read_csv(metric_key)
        # Filter by date
        if start_date:
            df = df[df["date"] >= pd.to_datetime(start_date)]
        if end_date:
            df = df[df["date"] <= pd.to_datetime(end_date)]
        return df[["date", "value"]].copy()

    def fetch_monthly_actuals(self, metric_key: str, fiscal_year: int) -> Dict[str, float]:
        values = monthly_values_from_frame(self._read_csv(metric_key), how=self.how)
        actuals = {
            month: value for month, value in values.items()
            if parse_month_key(month)[0] == fiscal_year
        }
        logger.debug(
            "Fetched %d monthly actuals for '%s' in %s", len(actuals), metric_key, fiscal_year
        )
        return actuals

    def has_metric(self, metric_key: str) -> bool:
        return os.path.exists(self._csv_path(metric_key))

    def _csv_path(self, metric_key: str) -> str:
        return os.path.join(self.data_folder, f"{metric_key}.csv")

    def _read_csv(self, metric_key: str) -> pd.DataFrame:
        csv_path = self._csv_path(metric_key)
        if not os.path.exists(csv_path):
            raise FileNotFoundError(f"No CSV found for metric_key='{metric_key}' at {csv_path}")

        df = pd.read_csv(csv_path)
        if "date" not in df.columns or "value" not in df.columns:
            raise ValueError(f"CSV for metric_key='{metric_key}' must have columns [date, value]")
        df["date"] = parse_observation_dates(df["date"])
        df.sort_values("date", inplace=True)
        return df
