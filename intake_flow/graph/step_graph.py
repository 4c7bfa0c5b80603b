"""Step graph: the ordered, branching structure of one questionnaire."""

import logging
from collections.abc import Iterable, Iterator

from pydantic import BaseModel, ConfigDict

from intake_flow.core.errors import ConfigurationError, StepNotFoundError
from intake_flow.expressions import Expression, parse_expression
from intake_flow.graph.diagnostics import GraphWarning, inspect_steps
from intake_flow.registry.models import (
    AnswerType,
    OptionSpec,
    SectionType,
    StepCategory,
    StepSpec,
)

logger = logging.getLogger(__name__)


class Step(BaseModel):
    """A step with its conditional logic parsed."""

    model_config = ConfigDict(frozen=True)

    spec: StepSpec
    condition: Expression | None = None

    @property
    def id(self) -> str:
        return self.spec.id

    @property
    def position(self) -> int:
        return self.spec.position

    @property
    def section_type(self) -> SectionType:
        return self.spec.section_type

    @property
    def category(self) -> StepCategory:
        return self.spec.category

    @property
    def answer_type(self) -> AnswerType:
        return self.spec.answer_type

    @property
    def required(self) -> bool:
        return self.spec.required

    @property
    def is_dead_end(self) -> bool:
        return self.spec.is_dead_end

    @property
    def options(self) -> tuple[OptionSpec, ...]:
        return self.spec.options

    def get_option(self, option_id: str) -> OptionSpec | None:
        return self.spec.get_option(option_id)


class StepGraph:
    """Validated, immutable step sequence for one questionnaire.

    Built once from a flat list of step specs. Every conditional-logic
    payload is parsed at construction; a malformed payload refuses the whole
    graph so a broken expression never reaches a patient. Structural problems
    that authoring tools tolerate are collected in ``warnings``.
    """

    def __init__(self, steps: Iterable[StepSpec]) -> None:
        """Build the graph.

        Args:
            steps: Step specs. Ordered by ``position``; ties keep input order.

        Raises:
            ConfigurationError: On duplicate step IDs.
            ExpressionSyntaxError: On any malformed conditional logic.
        """
        specs = sorted(steps, key=lambda s: s.position)

        seen: set[str] = set()
        for spec in specs:
            if spec.id in seen:
                raise ConfigurationError(f"Duplicate step id: {spec.id}")
            seen.add(spec.id)

        self._steps: tuple[Step, ...] = tuple(
            Step(spec=spec, condition=parse_expression(spec.conditional_logic, spec.id))
            for spec in specs
        )
        self._index: dict[str, int] = {step.id: i for i, step in enumerate(self._steps)}
        self.warnings: list[GraphWarning] = inspect_steps(self._steps)

        for warning in self.warnings:
            logger.warning("%s: %s", warning.code, warning.message)

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self._steps)

    def __contains__(self, step_id: object) -> bool:
        return step_id in self._index

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StepGraph):
            return NotImplemented
        return self.specs() == other.specs()

    def __repr__(self) -> str:
        return f"StepGraph({len(self._steps)} steps)"

    @property
    def steps(self) -> tuple[Step, ...]:
        """Steps in flow order."""
        return self._steps

    def specs(self) -> tuple[StepSpec, ...]:
        return tuple(step.spec for step in self._steps)

    def get(self, step_id: str) -> Step:
        """Get a step by its ID.

        Raises:
            StepNotFoundError: If the step is not in this graph.
        """
        try:
            return self._steps[self._index[step_id]]
        except KeyError:
            raise StepNotFoundError(step_id) from None

    def index_of(self, step_id: str) -> int:
        """Get the flow-order index of a step."""
        if step_id not in self._index:
            raise StepNotFoundError(step_id)
        return self._index[step_id]

    def options(self, step_id: str) -> tuple[OptionSpec, ...]:
        """Get the options of a step."""
        return self.get(step_id).options
