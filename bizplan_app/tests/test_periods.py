from bizplan_app.rollup_engine.primitives.periods import (
    QUARTERS,
    end_month_of_period,
    fiscal_year_months,
    infer_cutoff_month,
    parse_month_key,
    resolve_period_months,
    ytd_cutoff_for_quarter,
)


def test_single_month_resolves_to_itself():
    assert resolve_period_months("2026-05", 2026) == ["2026-05"]
    assert end_month_of_period("2026-05", 2026) == "2026-05"


def test_month_outside_fiscal_year_is_empty():
    assert resolve_period_months("2025-05", 2026) == []
    assert end_month_of_period("2025-05", 2026) is None


def test_quarters_are_fixed_and_partition_the_year():
    assert resolve_period_months("Q1", 2026) == ["2026-01", "2026-02", "2026-03"]
    assert resolve_period_months("Q4", 2026) == ["2026-10", "2026-11", "2026-12"]

    union = []
    for q in QUARTERS:
        union.extend(resolve_period_months(q, 2026))
    # no overlap, no gaps
    assert len(union) == len(set(union)) == 12
    assert sorted(union) == fiscal_year_months(2026)


def test_quarter_end_months():
    assert end_month_of_period("Q1", 2026) == "2026-03"
    assert end_month_of_period("Q2", 2026) == "2026-06"
    assert end_month_of_period("Q3", 2026) == "2026-09"
    assert end_month_of_period("Q4", 2026) == "2026-12"


def test_period_tags_are_case_insensitive():
    assert resolve_period_months("q2", 2026) == ["2026-04", "2026-05", "2026-06"]
    assert resolve_period_months(" ytd ", 2026, "2026-02") == ["2026-01", "2026-02"]


def test_ytd_without_cutoff_is_full_year():
    assert resolve_period_months("YTD", 2026) == fiscal_year_months(2026)
    assert end_month_of_period("YTD", 2026) == "2026-12"


def test_ytd_with_cutoff():
    months = resolve_period_months("YTD", 2026, cutoff_month="2026-04")
    assert months == ["2026-01", "2026-02", "2026-03", "2026-04"]
    assert end_month_of_period("YTD", 2026, cutoff_month="2026-04") == "2026-04"


def test_ytd_cutoff_outside_fiscal_year():
    # later year => the whole fiscal year has elapsed
    assert resolve_period_months("YTD", 2026, cutoff_month="2027-03") == fiscal_year_months(2026)
    # earlier year => nothing has elapsed yet
    assert resolve_period_months("YTD", 2026, cutoff_month="2025-12") == []
    assert resolve_period_months("YTD", 2026, cutoff_month="April") == []


def test_unrecognized_period_is_empty():
    assert resolve_period_months("H1", 2026) == []
    assert resolve_period_months("2026-13", 2026) == []
    assert resolve_period_months(None, 2026) == []
    assert end_month_of_period("H1", 2026) is None


def test_infer_cutoff_month_uses_latest_populated_month():
    values = {"2026-01": 10, "2026-04": 12, "2026-02": 11, "2026-06": None, "2027-01": 5, "total": 1}
    assert infer_cutoff_month(values, 2026) == "2026-04"
    assert infer_cutoff_month({}, 2026) is None
    assert infer_cutoff_month({"2025-12": 3}, 2026) is None


def test_infer_cutoff_month_skips_nan_and_text_entries():
    values = {"2026-01": 10, "2026-02": 11, "2026-06": float("nan"), "2026-07": "n/a"}
    assert infer_cutoff_month(values, 2026) == "2026-02"
    assert infer_cutoff_month({"2026-03": float("nan")}, 2026) is None


def test_ytd_cutoff_for_quarter():
    assert ytd_cutoff_for_quarter("Q2", 2026) == "2026-06"
    assert ytd_cutoff_for_quarter("Q4", 2026) == "2026-12"
    assert ytd_cutoff_for_quarter("Q5", 2026) is None


def test_parse_month_key():
    assert parse_month_key("2026-09") == (2026, 9)
    assert parse_month_key("2026-00") is None
    assert parse_month_key("2026-9") is None
    assert parse_month_key(202609) is None
