import re
from typing import List

_IDENTIFIER = re.compile(r"\b[A-Za-z_][A-Za-z0-9_]*")


def parse_formula_references(expression_str: str) -> List[str]:
    """
    Parses a formula expression like "gross_margin - cac_total - sga_total"
    and returns the metric keys it mentions, in order of first appearance:
    ["gross_margin", "cac_total", "sga_total"].
    Numeric literals and operators are ignored.
    """
    references = []
    for name in _IDENTIFIER.findall(expression_str):
        if name not in references:
            references.append(name)
    return references
