# =============================================================================
# Periods
#
# Resolves reporting-period identifiers into the calendar months they cover:
# - Single month literal: "2026-03"
# - Fiscal quarter: "Q1".."Q4" (three fixed months each)
# - Year-to-date: "YTD", January through a cutoff month
#
# Month keys are "YYYY-MM" strings, the same keys used by plan and actual maps.
# Quarters and YTD are always relative to one fiscal year (calendar year).
# =============================================================================

import logging
import math
import re
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

YTD = "YTD"
QUARTERS = ("Q1", "Q2", "Q3", "Q4")
ROLLUP_PERIODS = QUARTERS + (YTD,)

QUARTER_MONTH_NUMBERS: Dict[str, Tuple[int, int, int]] = {
    "Q1": (1, 2, 3),
    "Q2": (4, 5, 6),
    "Q3": (7, 8, 9),
    "Q4": (10, 11, 12),
}

_MONTH_KEY = re.compile(r"^(\d{4})-(\d{2})$")

# -----------------------------------------------------------------------------
# Helper Functions
# -----------------------------------------------------------------------------

def is_present_value(value: Any) -> bool:
    """A month counts as present if it holds a real number (not None / NaN / text)."""
    if value is None:
        return False
    try:
        return not math.isnan(value)
    except TypeError:
        return False


def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def parse_month_key(value: Any) -> Optional[Tuple[int, int]]:
    """Return (year, month) for a "YYYY-MM" string, or None if it is not one."""
    if not isinstance(value, str):
        return None
    match = _MONTH_KEY.match(value.strip())
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return year, month


def fiscal_year_months(fiscal_year: int) -> List[str]:
    """The 12 month keys of a fiscal year, January first."""
    return [month_key(fiscal_year, m) for m in range(1, 13)]


def quarter_months(quarter: str, fiscal_year: int) -> List[str]:
    numbers = QUARTER_MONTH_NUMBERS.get(quarter)
    if numbers is None:
        return []
    return [month_key(fiscal_year, m) for m in numbers]


def _normalize_tag(period: Any) -> Optional[str]:
    if not isinstance(period, str):
        return None
    return period.strip().upper()

# -----------------------------------------------------------------------------
# Cutoff handling
# -----------------------------------------------------------------------------

def infer_cutoff_month(values: Dict[str, Any], fiscal_year: int) -> Optional[str]:
    """
    Latest month of `fiscal_year` for which `values` holds a value.

    This is the data-density "clock": with no explicit as-of month, YTD ends at
    the last month that has an actual. Entries without a numeric value (None,
    NaN, text), or whose key is not a month of `fiscal_year`, are ignored.

    Parameters
    ----------
    values : Dict[str, Any]
        Month key -> observed value (an ActualValues map).
    fiscal_year : int
        The year whose months are considered.

    Returns
    -------
    str or None
        The latest populated month key, or None if there is none.
    """
    months = []
    for key, value in values.items():
        parsed = parse_month_key(key)
        if parsed is None or parsed[0] != fiscal_year or not is_present_value(value):
            continue
        months.append(month_key(*parsed))
    return max(months) if months else None


def ytd_cutoff_for_quarter(quarter: str, fiscal_year: int) -> Optional[str]:
    """Cutoff month that makes YTD end with `quarter` (e.g. Q2 -> "2026-06")."""
    months = quarter_months(_normalize_tag(quarter), fiscal_year)
    return months[-1] if months else None

# -----------------------------------------------------------------------------
# Period resolution
# -----------------------------------------------------------------------------

def resolve_period_months(
    period: str,
    fiscal_year: int,
    cutoff_month: Optional[str] = None
) -> List[str]:
    """
    Convert a period identifier into the ordered month keys it covers.

    Parameters
    ----------
    period : str
        "YYYY-MM", "Q1".."Q4" or "YTD" (tags are case-insensitive).
    fiscal_year : int
        The fiscal year that quarters and YTD refer to.
    cutoff_month : str, optional
        Last month included in YTD. Ignored for other periods.

    Returns
    -------
    List[str]
        - single month of the fiscal year => [period]
        - quarter => its three months
        - YTD => January through cutoff_month, or the full year if no cutoff.
          A cutoff in a later year yields the full year; a cutoff in an
          earlier year or a malformed cutoff yields [].
        - anything else (including a month of another year) => []

    Notes
    -----
    - An empty list means "not resolvable"; downstream aggregation turns it
      into None rather than raising.
    """
    parsed = parse_month_key(period)
    if parsed is not None:
        if parsed[0] != fiscal_year:
            logger.debug("Month %s is outside fiscal year %s", period, fiscal_year)
            return []
        return [month_key(*parsed)]

    tag = _normalize_tag(period)

    if tag in QUARTER_MONTH_NUMBERS:
        return quarter_months(tag, fiscal_year)

    if tag == YTD:
        all_months = fiscal_year_months(fiscal_year)
        if cutoff_month is None:
            return all_months

        cutoff = parse_month_key(cutoff_month)
        if cutoff is None:
            logger.debug("Invalid YTD cutoff month %r", cutoff_month)
            return []
        cutoff_year, cutoff_num = cutoff
        if cutoff_year > fiscal_year:
            return all_months
        if cutoff_year < fiscal_year:
            return []
        return all_months[:cutoff_num]

    logger.debug("Unrecognized period identifier %r", period)
    return []


def end_month_of_period(
    period: str,
    fiscal_year: int,
    cutoff_month: Optional[str] = None
) -> Optional[str]:
    """
    The month whose value represents the period's closing state (used by
    point-in-time metrics): the month itself, the quarter's third month, or
    the YTD cutoff. None when the period does not resolve.
    """
    months = resolve_period_months(period, fiscal_year, cutoff_month)
    return months[-1] if months else None
