"""Conditional-logic expressions: tree, parser and evaluator."""

from intake_flow.expressions.ast import And, Compare, Contains, Equals, Excludes, Expression, Not, Or
from intake_flow.expressions.evaluator import evaluate
from intake_flow.expressions.parser import parse_expression, parse_legacy_expression

__all__ = [
    "And",
    "Compare",
    "Contains",
    "Equals",
    "Excludes",
    "Expression",
    "Not",
    "Or",
    "evaluate",
    "parse_expression",
    "parse_legacy_expression",
]
