"""Structural diagnostics for step graphs.

These checks never stop a graph from building: authoring tools save
half-finished templates, so problems are reported as warnings.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel

if TYPE_CHECKING:
    from intake_flow.graph.step_graph import Step

WarningCode = Literal[
    "UNREACHABLE_REQUIRED_STEP",
    "DEPENDS_ON_DEAD_END",
    "UNKNOWN_STEP_REFERENCE",
    "FORWARD_REFERENCE",
]


class GraphWarning(BaseModel):
    """A structural problem found while building a step graph."""

    code: WarningCode
    message: str
    step_id: str
    related_step_id: str | None = None


def inspect_steps(steps: Sequence["Step"]) -> list[GraphWarning]:
    """Run every structural check over an ordered step sequence.

    Args:
        steps: Steps in flow order.

    Returns:
        Warnings in step order.
    """
    warnings: list[GraphWarning] = []
    index = {step.id: i for i, step in enumerate(steps)}

    # Nothing after an unconditional dead-end can be reached.
    blocking_dead_end: str | None = None
    for i, step in enumerate(steps):
        if blocking_dead_end and step.required:
            warnings.append(
                GraphWarning(
                    code="UNREACHABLE_REQUIRED_STEP",
                    message=(
                        f"Required step {step.id} is only reachable past "
                        f"dead-end step {blocking_dead_end}"
                    ),
                    step_id=step.id,
                    related_step_id=blocking_dead_end,
                )
            )

        if step.condition is not None:
            warnings.extend(_check_references(step, i, steps, index))

        if blocking_dead_end is None and step.is_dead_end and step.condition is None:
            blocking_dead_end = step.id

    return warnings


def _check_references(
    step: "Step",
    position: int,
    steps: Sequence["Step"],
    index: dict[str, int],
) -> list[GraphWarning]:
    warnings: list[GraphWarning] = []
    for ref in sorted(step.condition.referenced_steps()):
        if ref not in index:
            warnings.append(
                GraphWarning(
                    code="UNKNOWN_STEP_REFERENCE",
                    message=f"Step {step.id} depends on unknown step {ref}",
                    step_id=step.id,
                    related_step_id=ref,
                )
            )
        elif index[ref] >= position:
            warnings.append(
                GraphWarning(
                    code="FORWARD_REFERENCE",
                    message=f"Step {step.id} depends on step {ref}, which is not asked before it",
                    step_id=step.id,
                    related_step_id=ref,
                )
            )
        elif steps[index[ref]].is_dead_end:
            warnings.append(
                GraphWarning(
                    code="DEPENDS_ON_DEAD_END",
                    message=f"Step {step.id} depends on dead-end step {ref}, which ends the flow",
                    step_id=step.id,
                    related_step_id=ref,
                )
            )
    return warnings
