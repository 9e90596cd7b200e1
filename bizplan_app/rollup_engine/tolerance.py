import os
from typing import Dict, Optional

import toml

from bizplan_app.core.exceptions import BizplanError
from bizplan_app.metric_catalog.catalog_models import Unit
from .primitives.performance import ToleranceConfig, tolerance_for_unit

DEFAULT_SETTINGS_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    "config",
    "rollup_settings.toml",
)


def parse_tolerance_presets(toml_str: str) -> Dict[str, ToleranceConfig]:
    """
    Parse the [tolerance.<name>] tables of a settings TOML string into
    {name: ToleranceConfig}.
    """
    data = toml.loads(toml_str)
    presets = {}
    for name, raw in data.get("tolerance", {}).items():
        try:
            yellow = float(raw["yellow_threshold"])
            red = float(raw["red_threshold"])
        except (KeyError, TypeError, ValueError) as e:
            raise BizplanError(f"Invalid tolerance preset '{name}': {e}")
        if yellow < 0 or red < yellow:
            raise BizplanError(
                f"Tolerance preset '{name}' needs 0 <= yellow_threshold <= red_threshold "
                f"(got {yellow}, {red})"
            )
        presets[name] = ToleranceConfig(yellow_threshold=yellow, red_threshold=red)
    return presets


def load_tolerance_presets(path: Optional[str] = None) -> Dict[str, ToleranceConfig]:
    path = path or DEFAULT_SETTINGS_PATH
    with open(path, "r", encoding="utf-8") as f:
        return parse_tolerance_presets(f.read())


def select_tolerance(unit: Unit, presets: Optional[Dict[str, ToleranceConfig]] = None) -> ToleranceConfig:
    """
    Pick the preset for a unit from loaded settings ("percentage" for
    percentage metrics, "default" otherwise), falling back to the built-in
    presets when the settings do not define it.
    """
    if presets:
        name = "percentage" if Unit(unit) == Unit.PERCENTAGE else "default"
        if name in presets:
            return presets[name]
    return tolerance_for_unit(unit)
