"""Flow navigator: the state machine that walks a step graph.

Transition rules, applied when the patient submits an answer or asks for the
next step:

1. Record (or overwrite) the answer for the current step.
2. A dead-end step ends the session as ``disqualified``.
3. Scan later steps in order; a step is a candidate when it has no condition
   or its condition holds against the answers currently in effect.
4. The first candidate becomes current. Landing on a dead-end step
   disqualifies immediately. No candidate means ``completed``.
5. A required step cannot be left without an answer.

Answers are "in effect" only for steps on the reachable path. Editing an
earlier answer can close a branch; answers inside the closed branch stay in
the state but stop influencing conditions and risk until the branch is
re-opened.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from intake_flow.core.errors import ValidationError
from intake_flow.expressions import evaluate
from intake_flow.graph import Step, StepGraph
from intake_flow.navigation.state import FlowProgress, FlowState, FlowStatus
from intake_flow.registry.models import (
    Answer,
    AnswerType,
    AnswerValue,
    StepCategory,
    as_answer_value,
)

logger = logging.getLogger(__name__)

_UNSET: Any = object()


def normalize_answers(
    answers: Mapping[str, AnswerValue] | Iterable[Answer] | None,
) -> dict[str, AnswerValue]:
    """Collapse answers into a step ID mapping; later answers win."""
    if answers is None:
        return {}
    if isinstance(answers, Mapping):
        return {step_id: as_answer_value(value) for step_id, value in answers.items()}
    result: dict[str, AnswerValue] = {}
    for answer in answers:
        result.pop(answer.step_id, None)
        result[answer.step_id] = answer.value
    return result


def reachable_steps(
    graph: StepGraph,
    answers: Mapping[str, AnswerValue],
    signed_in: bool = False,
) -> list[Step]:
    """Steps the given answers lead to, in flow order.

    A step is reachable when its condition holds against the answers of the
    reachable steps before it. The walk stops after the first reachable
    dead-end step.

    Args:
        graph: The step graph.
        answers: All recorded answers, including stale ones.
        signed_in: Whether user-profile steps are skipped.
    """
    path: list[Step] = []
    in_effect: dict[str, AnswerValue] = {}
    for step in graph:
        if signed_in and step.category == StepCategory.USER_PROFILE:
            continue
        if step.condition is not None and not evaluate(step.condition, in_effect):
            continue
        path.append(step)
        if step.is_dead_end:
            break
        if step.id in answers:
            in_effect[step.id] = answers[step.id]
    return path


def reachable_answers(
    graph: StepGraph,
    answers: Mapping[str, AnswerValue],
    signed_in: bool = False,
) -> dict[str, AnswerValue]:
    """Recorded answers that belong to reachable steps."""
    return {
        step.id: answers[step.id]
        for step in reachable_steps(graph, answers, signed_in=signed_in)
        if step.id in answers
    }


def _is_blank(value: AnswerValue) -> bool:
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, tuple):
        return len(value) == 0
    return False


class FlowNavigator:
    """Drives one step graph for any number of independent sessions.

    The navigator holds no session data. Each operation takes a ``FlowState``
    and returns a new one; terminal states are returned unchanged.
    """

    def __init__(self, graph: StepGraph, signed_in: bool = False) -> None:
        """Initialize the navigator.

        Args:
            graph: The composed step graph.
            signed_in: Skip ``user_profile`` steps for patients who already
                have an account.
        """
        self.graph = graph
        self.signed_in = signed_in

    def start(
        self,
        answers: Mapping[str, AnswerValue] | Iterable[Answer] | None = None,
    ) -> FlowState:
        """Begin a session, optionally seeded with previously stored answers."""
        recorded = normalize_answers(answers)
        return self._land(self._next_reachable(None, recorded), recorded, history=())

    def current_step(self, state: FlowState) -> Step | None:
        if state.current_step_id is None:
            return None
        return self.graph.get(state.current_step_id)

    def record(self, state: FlowState, value: AnswerValue) -> FlowState:
        """Record an answer for the current step without moving.

        Raises:
            ValidationError: If the value does not fit the step.
        """
        if state.is_terminal or state.current_step_id is None:
            return state
        step = self.graph.get(state.current_step_id)
        answers = self._with_answer(state.answers, step, value)
        return state.model_copy(update={"answers": answers})

    def next(self, state: FlowState, value: AnswerValue = _UNSET) -> FlowState:
        """Record an optional answer and move to the next reachable step.

        Raises:
            ValidationError: If the current step is required and unanswered,
                or the value does not fit the step. The passed-in state is
                left untouched.
        """
        if state.is_terminal or state.current_step_id is None:
            return state

        step = self.graph.get(state.current_step_id)
        answers = dict(state.answers)
        if value is not _UNSET:
            answers = self._with_answer(answers, step, value)
        elif self.needs_answer(step) and step.id not in answers:
            raise ValidationError(
                "REQUIRED_STEP_UNANSWERED",
                f"Step {step.id} is required and has no answer",
                step_id=step.id,
            )
        return self._advance(state, step, answers)

    def skip(self, state: FlowState) -> FlowState:
        """Move past an optional step without answering it.

        An answer already recorded for the step is dropped, so a skipped step
        never contributes to conditions or risk.

        Raises:
            ValidationError: If the current step is required.
        """
        if state.is_terminal or state.current_step_id is None:
            return state

        step = self.graph.get(state.current_step_id)
        if self.needs_answer(step):
            raise ValidationError(
                "REQUIRED_STEP_UNANSWERED",
                f"Step {step.id} is required and cannot be skipped",
                step_id=step.id,
            )
        answers = {k: v for k, v in state.answers.items() if k != step.id}
        return self._advance(state, step, answers)

    def previous(self, state: FlowState) -> FlowState:
        """Return to the most recently visited step, keeping every answer."""
        if state.is_terminal or not state.history:
            return state
        logger.debug("Back from %s to %s", state.current_step_id, state.history[-1])
        return state.model_copy(
            update={
                "current_step_id": state.history[-1],
                "history": state.history[:-1],
            }
        )

    def reachable_answers(self, state: FlowState) -> dict[str, AnswerValue]:
        """Answers currently in effect, for display and risk assessment."""
        return reachable_answers(self.graph, state.answers, signed_in=self.signed_in)

    def progress(self, state: FlowState) -> FlowProgress:
        """Visible step number of the current step and the expected total."""
        path = reachable_steps(self.graph, state.answers, signed_in=self.signed_in)
        total = len(path)
        if state.current_step_id is None:
            return FlowProgress(current_number=total, total_steps=total)
        for number, step in enumerate(path, 1):
            if step.id == state.current_step_id:
                return FlowProgress(current_number=number, total_steps=total)
        return FlowProgress(current_number=len(state.history) + 1, total_steps=total)

    def needs_answer(self, step: Step) -> bool:
        return step.required and step.answer_type != AnswerType.INFO

    def _advance(self, state: FlowState, step: Step, answers: dict[str, AnswerValue]) -> FlowState:
        history = state.history + (step.id,)
        if step.is_dead_end:
            logger.debug("Dead-end step %s submitted, disqualifying", step.id)
            return FlowState(
                current_step_id=step.id,
                answers=answers,
                history=state.history,
                status=FlowStatus.DISQUALIFIED,
            )
        return self._land(self._next_reachable(step, answers), answers, history)

    def _land(
        self,
        step: Step | None,
        answers: dict[str, AnswerValue],
        history: tuple[str, ...],
    ) -> FlowState:
        if step is None:
            logger.debug("No further reachable steps, flow completed")
            return FlowState(
                current_step_id=None,
                answers=answers,
                history=history,
                status=FlowStatus.COMPLETED,
            )

        status = FlowStatus.DISQUALIFIED if step.is_dead_end else FlowStatus.IN_PROGRESS
        logger.debug("Moved to step %s (%s)", step.id, status.value)
        return FlowState(current_step_id=step.id, answers=answers, history=history, status=status)

    def _next_reachable(self, after: Step | None, answers: Mapping[str, AnswerValue]) -> Step | None:
        start = -1 if after is None else self.graph.index_of(after.id)
        for step in reachable_steps(self.graph, answers, signed_in=self.signed_in):
            if self.graph.index_of(step.id) > start:
                return step
        return None

    def _with_answer(
        self,
        answers: Mapping[str, AnswerValue],
        step: Step,
        value: AnswerValue,
    ) -> dict[str, AnswerValue]:
        normalized = self._normalize_value(step, value)
        updated = {k: v for k, v in answers.items() if k != step.id}
        if normalized is None or _is_blank(normalized):
            if self.needs_answer(step):
                raise ValidationError(
                    "REQUIRED_STEP_UNANSWERED",
                    f"Step {step.id} is required and the answer is empty",
                    step_id=step.id,
                )
            return updated
        updated[step.id] = normalized
        return updated

    def _normalize_value(self, step: Step, value: Any) -> AnswerValue | None:
        """Check a raw value against the step and return its stored form."""
        answer_type = step.answer_type

        if value is None:
            return None
        if isinstance(value, bool):
            raise self._invalid(step, f"Boolean is not a valid answer for step {step.id}")

        if answer_type == AnswerType.INFO:
            raise self._invalid(step, f"Step {step.id} is informational and takes no answer")

        if answer_type == AnswerType.NUMBER:
            if isinstance(value, (int, float)):
                return value
            if isinstance(value, str):
                if not value.strip():
                    return value
                try:
                    return float(value)
                except ValueError:
                    pass
            raise self._invalid(step, f"Step {step.id} expects a number, got {value!r}")

        if answer_type == AnswerType.MULTIPLE:
            if isinstance(value, str):
                selected = (value,)
            elif isinstance(value, (list, tuple, set, frozenset)):
                selected = tuple(dict.fromkeys(as_answer_value(value)))
            else:
                raise self._invalid(step, f"Step {step.id} expects option ids, got {value!r}")
            for option_id in selected:
                self._check_option(step, option_id)
            return selected

        if answer_type == AnswerType.SINGLE:
            if not isinstance(value, str):
                raise self._invalid(step, f"Step {step.id} accepts a single option, got {value!r}")
            if value.strip():
                self._check_option(step, value)
            return value

        if isinstance(value, (list, tuple, set, frozenset, dict)):
            raise self._invalid(step, f"Step {step.id} expects text, got {value!r}")
        return str(value)

    def _check_option(self, step: Step, option_id: Any) -> None:
        if not isinstance(option_id, str):
            raise self._invalid(step, f"Option ids must be strings, got {option_id!r}")
        if step.options and step.get_option(option_id) is None:
            raise ValidationError(
                "UNKNOWN_OPTION",
                f"Step {step.id} has no option {option_id!r}",
                step_id=step.id,
            )

    @staticmethod
    def _invalid(step: Step, message: str) -> ValidationError:
        return ValidationError("INVALID_ANSWER", message, step_id=step.id)
