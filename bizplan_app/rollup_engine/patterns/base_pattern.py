"""
Base Pattern Class

This module defines the base Pattern class that rollup patterns inherit from.
It provides the standard output structure and input validation.
"""

from typing import List

import pandas as pd

from bizplan_app.rollup_engine.data_structures import AnalysisWindow, PatternOutput


class Pattern:
    """
    Base class for all rollup patterns.

    Subclasses implement `run`.
    """

    PATTERN_NAME = "base_pattern"
    PATTERN_VERSION = "1.0"

    def run(self,
            metric_id: str,
            data: pd.DataFrame,
            analysis_window: AnalysisWindow,
            **kwargs) -> PatternOutput:
        """
        Execute the pattern and return a standardized PatternOutput.

        Parameters
        ----------
        metric_id : str
            The key of the metric being analyzed
        data : pd.DataFrame
            DataFrame containing the metric's observations
        analysis_window : AnalysisWindow
            As-of window, e.g. {"cutoff_month": "2026-04"}
        **kwargs
            Additional pattern-specific parameters

        Returns
        -------
        PatternOutput
        """
        return PatternOutput(
            pattern_name=self.PATTERN_NAME,
            pattern_version=self.PATTERN_VERSION,
            metric_id=metric_id,
            analysis_window=analysis_window,
            results={}
        )

    def validate_data(self, data: pd.DataFrame, required_columns: List[str]) -> bool:
        """
        Raises ValueError if any required column is missing from `data`.
        """
        missing_columns = [col for col in required_columns if col not in data.columns]
        if missing_columns:
            raise ValueError(f"Missing required columns: {missing_columns}")
        return True
