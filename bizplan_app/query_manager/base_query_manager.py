from abc import ABC, abstractmethod
from typing import Dict, Optional

import pandas as pd


class BaseQueryManager(ABC):
    """
    The storage collaborator that feeds actual values into the rollup engine.
    """

    @abstractmethod
    def fetch_time_series(
        self, metric_key: str, start_date: Optional[str] = None, end_date: Optional[str] = None
    ) -> pd.DataFrame:
        """
        Return a DataFrame with columns [date, value] for one metric.
        Optionally filter by date range.
        """
        pass

    @abstractmethod
    def fetch_monthly_actuals(self, metric_key: str, fiscal_year: int) -> Dict[str, float]:
        """
        Return the ActualValues map ("YYYY-MM" -> value) for one metric and one
        fiscal year. Months without data are absent.
        """
        pass
