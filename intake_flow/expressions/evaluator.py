"""Evaluator for conditional-logic expressions.

Pure and deterministic: the result depends only on the expression and the
answers passed in. A predicate over a step that has not been answered is
false, so branches stay closed until evidence exists. A negation over a step
that has not been answered is false as well.
"""

import operator
from collections.abc import Mapping

from intake_flow.expressions.ast import And, Compare, Contains, Equals, Excludes, Expression, Not, Or
from intake_flow.registry.models import AnswerValue, as_answer_value

_COMPARATORS = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "==": operator.eq,
    "!=": operator.ne,
}


def evaluate(expression: Expression, answers: Mapping[str, AnswerValue]) -> bool:
    """Evaluate an expression against collected answers.

    Args:
        expression: A parsed expression tree.
        answers: Mapping of step ID to answer value.

    Returns:
        Whether the expression is satisfied.
    """
    if isinstance(expression, And):
        return all(evaluate(arg, answers) for arg in expression.args)
    if isinstance(expression, Or):
        return any(evaluate(arg, answers) for arg in expression.args)
    if isinstance(expression, Not):
        if not all(step in answers for step in expression.arg.referenced_steps()):
            return False
        return not evaluate(expression.arg, answers)

    if expression.step not in answers:
        return False
    answer = as_answer_value(answers[expression.step])

    if isinstance(expression, Equals):
        return _equals(answer, expression.value)
    if isinstance(expression, Contains):
        return _contains(answer, expression.value)
    if isinstance(expression, Excludes):
        return not _contains(answer, expression.value)
    if isinstance(expression, Compare):
        return _compare(answer, expression.operator, expression.value)

    raise TypeError(f"Unsupported expression node: {type(expression).__name__}")


def _as_text(value: str | int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _equals(answer: AnswerValue, value: str | int | float) -> bool:
    expected = _as_text(value)
    if isinstance(answer, tuple):
        return expected in answer
    return _as_text(answer) == expected


def _contains(answer: AnswerValue, value: str | int | float) -> bool:
    expected = _as_text(value)
    if isinstance(answer, tuple):
        return expected in answer
    if isinstance(answer, str):
        return expected.casefold() in answer.casefold()
    return _as_text(answer) == expected


def _compare(answer: AnswerValue, op: str, value: float) -> bool:
    if isinstance(answer, (tuple, bool)):
        return False
    try:
        number = float(answer)
    except (TypeError, ValueError):
        return False
    return _COMPARATORS[op](number, value)
