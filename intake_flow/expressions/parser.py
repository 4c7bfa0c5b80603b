"""Parser for stored conditional-logic payloads.

Two payload formats are accepted and both produce the same expression tree:

1. JSON tree, as a dict or a JSON string::

       {"op": "and", "args": [
           {"op": "equals", "step": "goal", "value": "weight_loss"},
           {"op": "compare", "step": "age", "operator": ">=", "value": 18}
       ]}

2. Legacy token syntax written by the form editor::

       answer_equals:goal:weight_loss AND answer_equals:age_band:adult

   Tokens are combined strictly left to right with no precedence, so
   ``a OR b AND c`` means ``(a OR b) AND c``.
"""

import json
from typing import Any

import pydantic
from pydantic import TypeAdapter

from intake_flow.core.errors import ExpressionSyntaxError
from intake_flow.expressions.ast import And, Equals, Expression, Or

LEGACY_PREDICATE_PREFIX = "answer_equals:"
LEGACY_OPERATORS = {"AND": And, "OR": Or}

_expression_adapter: TypeAdapter[Expression] = TypeAdapter(Expression)


def parse_expression(raw: dict[str, Any] | str | None, step_id: str | None = None) -> Expression | None:
    """Parse a conditional-logic payload.

    Args:
        raw: The stored payload. ``None`` or blank text means "always shown".
        step_id: The owning step, used only in error messages.

    Returns:
        The parsed expression, or None when the step has no condition.

    Raises:
        ExpressionSyntaxError: If the payload is malformed.
    """
    if raw is None:
        return None

    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        if not text.startswith("{"):
            return parse_legacy_expression(text, step_id)
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ExpressionSyntaxError(f"Invalid JSON in conditional logic: {e}", step_id) from e

    if not isinstance(raw, dict):
        raise ExpressionSyntaxError(
            f"Conditional logic must be an object, got {type(raw).__name__}", step_id
        )

    try:
        return _expression_adapter.validate_python(raw)
    except pydantic.ValidationError as e:
        raise ExpressionSyntaxError(f"Malformed conditional logic: {e}", step_id) from e


def parse_legacy_expression(text: str, step_id: str | None = None) -> Expression:
    """Parse the legacy ``answer_equals:<step>:<value>`` token syntax."""
    tokens = text.split()
    result: Expression | None = None
    pending_operator: type[And] | type[Or] | None = None

    for index, token in enumerate(tokens):
        expects_predicate = index % 2 == 0
        if not expects_predicate:
            if token not in LEGACY_OPERATORS:
                raise ExpressionSyntaxError(f"Expected AND/OR, got {token!r}", step_id)
            pending_operator = LEGACY_OPERATORS[token]
            continue

        predicate = _parse_legacy_predicate(token, step_id)
        if result is None:
            result = predicate
        else:
            result = pending_operator(args=(result, predicate))

    if len(tokens) % 2 == 0:
        raise ExpressionSyntaxError(f"Dangling operator at end of {text!r}", step_id)
    return result


def _parse_legacy_predicate(token: str, step_id: str | None) -> Equals:
    if not token.startswith(LEGACY_PREDICATE_PREFIX):
        raise ExpressionSyntaxError(f"Unknown predicate {token!r}", step_id)

    parts = token[len(LEGACY_PREDICATE_PREFIX):].split(":")
    if len(parts) != 2 or not all(parts):
        raise ExpressionSyntaxError(
            f"Predicate {token!r} must have the form answer_equals:<step>:<value>", step_id
        )
    target, value = parts
    return Equals(step=target, value=value)
