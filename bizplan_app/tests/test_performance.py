import pytest

from bizplan_app.core.exceptions import BizplanError
from bizplan_app.metric_catalog.catalog_models import Direction, Unit
from bizplan_app.rollup_engine.primitives.performance import (
    DEFAULT_TOLERANCE,
    PERCENTAGE_TOLERANCE,
    SignalStatus,
    ToleranceConfig,
    compute_signal_status,
    compute_variance,
    tolerance_for_unit,
)
from bizplan_app.rollup_engine.tolerance import (
    load_tolerance_presets,
    parse_tolerance_presets,
    select_tolerance,
)


def test_variance():
    variance, variance_pct = compute_variance(1050, 1000)
    assert variance == 50
    assert variance_pct == pytest.approx(5.0)

    variance, variance_pct = compute_variance(850, 1000)
    assert variance == -150
    assert variance_pct == pytest.approx(-15.0)


def test_variance_is_none_without_both_values_or_with_zero_plan():
    assert compute_variance(None, 1000) == (None, None)
    assert compute_variance(1000, None) == (None, None)
    assert compute_variance(None, None) == (None, None)
    assert compute_variance(10, 0) == (None, None)


def test_increase_is_good_bands():
    up = Direction.INCREASE_IS_GOOD
    assert compute_signal_status(1050, 1000, up) == SignalStatus.GREEN
    assert compute_signal_status(1000, 1000, up) == SignalStatus.GREEN
    assert compute_signal_status(960, 1000, up) == SignalStatus.YELLOW   # 4% short
    assert compute_signal_status(850, 1000, up) == SignalStatus.RED      # 15% short


def test_decrease_is_good_bands():
    down = Direction.DECREASE_IS_GOOD
    assert compute_signal_status(900, 1000, down) == SignalStatus.GREEN
    assert compute_signal_status(1030, 1000, down) == SignalStatus.YELLOW
    assert compute_signal_status(1200, 1000, down) == SignalStatus.RED


def test_target_is_flat_bands():
    flat = Direction.TARGET_IS_FLAT
    assert compute_signal_status(103, 100, flat, Unit.COUNT) == SignalStatus.GREEN
    assert compute_signal_status(97, 100, flat, Unit.COUNT) == SignalStatus.GREEN
    assert compute_signal_status(108, 100, flat, Unit.COUNT) == SignalStatus.YELLOW
    assert compute_signal_status(92, 100, flat, Unit.COUNT) == SignalStatus.YELLOW
    assert compute_signal_status(115, 100, flat, Unit.COUNT) == SignalStatus.RED


def test_percentage_metrics_use_narrower_bands():
    up = Direction.INCREASE_IS_GOOD
    # 3% short of plan: yellow for currency, red for percentages
    assert compute_signal_status(0.97, 1.0, up, Unit.CURRENCY) == SignalStatus.YELLOW
    assert compute_signal_status(0.97, 1.0, up, Unit.PERCENTAGE) == SignalStatus.RED

    flat = Direction.TARGET_IS_FLAT
    assert compute_signal_status(0.1815, 0.18, flat, Unit.PERCENTAGE) == SignalStatus.GREEN
    assert compute_signal_status(0.1860, 0.18, flat, Unit.PERCENTAGE) == SignalStatus.YELLOW
    assert compute_signal_status(0.2000, 0.18, flat, Unit.PERCENTAGE) == SignalStatus.RED


def test_gray_when_comparison_is_not_meaningful():
    for direction in Direction:
        assert compute_signal_status(None, 1000, direction) == SignalStatus.GRAY
        assert compute_signal_status(1000, None, direction) == SignalStatus.GRAY
        assert compute_signal_status(1000, 0, direction) == SignalStatus.GRAY


def test_tolerance_override():
    strict = ToleranceConfig(yellow_threshold=0.01, red_threshold=0.02)
    up = Direction.INCREASE_IS_GOOD
    assert compute_signal_status(960, 1000, up, tolerance=strict) == SignalStatus.RED

    lenient = ToleranceConfig(yellow_threshold=0.20, red_threshold=0.30)
    assert compute_signal_status(850, 1000, up, tolerance=lenient) == SignalStatus.YELLOW


def test_unit_presets():
    assert tolerance_for_unit(Unit.CURRENCY) == DEFAULT_TOLERANCE
    assert tolerance_for_unit(Unit.COUNT) == DEFAULT_TOLERANCE
    assert tolerance_for_unit(Unit.PERCENTAGE) == PERCENTAGE_TOLERANCE


def test_shipped_settings_match_builtin_presets():
    presets = load_tolerance_presets()
    assert presets["default"] == DEFAULT_TOLERANCE
    assert presets["percentage"] == PERCENTAGE_TOLERANCE


def test_parse_and_select_custom_presets():
    presets = parse_tolerance_presets("""
    [tolerance.default]
    yellow_threshold = 0.10
    red_threshold = 0.20
    """)
    assert select_tolerance(Unit.CURRENCY, presets) == ToleranceConfig(0.10, 0.20)
    # percentage preset not configured => built-in
    assert select_tolerance(Unit.PERCENTAGE, presets) == PERCENTAGE_TOLERANCE
    assert select_tolerance(Unit.COUNT, None) == DEFAULT_TOLERANCE


def test_invalid_presets_are_rejected():
    with pytest.raises(BizplanError):
        parse_tolerance_presets("""
        [tolerance.default]
        yellow_threshold = 0.10
        """)
    with pytest.raises(BizplanError):
        parse_tolerance_presets("""
        [tolerance.default]
        yellow_threshold = 0.10
        red_threshold = 0.05
        """)
