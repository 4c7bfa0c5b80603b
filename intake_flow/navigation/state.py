"""Session state handled by the flow navigator."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from intake_flow.registry.models import Answer, AnswerValue


class FlowStatus(str, Enum):
    """Lifecycle of a questionnaire session."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"  # all reachable steps exhausted
    DISQUALIFIED = "disqualified"  # a dead-end step was reached


class FlowState(BaseModel):
    """Immutable snapshot of one patient's progress through a step graph.

    The caller owns the state: every navigator operation returns a new
    snapshot and the caller persists its answers.
    """

    model_config = ConfigDict(frozen=True)

    current_step_id: str | None = None
    answers: dict[str, AnswerValue] = Field(default_factory=dict)
    history: tuple[str, ...] = ()
    status: FlowStatus = FlowStatus.IN_PROGRESS

    @property
    def is_terminal(self) -> bool:
        return self.status != FlowStatus.IN_PROGRESS

    def answer_list(self) -> list[Answer]:
        """Answers in the order they were last recorded."""
        return [Answer(step_id=step_id, value=value) for step_id, value in self.answers.items()]


class FlowProgress(BaseModel):
    """Position of the current step among the steps the patient will see."""

    current_number: int
    total_steps: int
