"""
Ordered classification rules for yield pools.

Rules are evaluated top to bottom and the first match wins, so the order of
``DEFAULT_RULES`` is part of the behavior. A pool matching nothing is
``stable``.
"""

from dataclasses import dataclass
from typing import Sequence, Tuple

CATEGORIES = ("stable", "structured", "degen")
DEFAULT_CATEGORY = "stable"


@dataclass(frozen=True)
class ClassificationRule:
    """Matches when the project contains any of ``project_terms`` or the
    symbol contains any of ``symbol_terms`` (case-insensitive)."""

    category: str
    project_terms: Tuple[str, ...] = ()
    symbol_terms: Tuple[str, ...] = ()

    def matches(self, project: str, symbol: str) -> bool:
        project = (project or "").lower()
        symbol = (symbol or "").lower()
        return any(term in project for term in self.project_terms) or any(
            term in symbol for term in self.symbol_terms
        )


# Lending markets
STABLE_RULE = ClassificationRule(
    "stable",
    project_terms=("venus", "lista", "kinza", "radiant", "aave"),
)

# Tranche and leveraged products
STRUCTURED_RULE = ClassificationRule(
    "structured",
    project_terms=("tranchess", "alpaca"),
    symbol_terms=("bishop", "queen"),
)

# DEX liquidity
DEGEN_RULE = ClassificationRule(
    "degen",
    project_terms=("pancakeswap", "thena", "aster", "biswap"),
    symbol_terms=("lp", "-"),
)

DEFAULT_RULES: Tuple[ClassificationRule, ...] = (STABLE_RULE, STRUCTURED_RULE, DEGEN_RULE)


def classify(project: str, symbol: str, rules: Sequence[ClassificationRule] = DEFAULT_RULES) -> str:
    for rule in rules:
        if rule.matches(project, symbol):
            return rule.category
    return DEFAULT_CATEGORY
