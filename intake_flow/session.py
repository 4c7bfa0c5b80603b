"""Per-session wrapper around the navigator and risk aggregator.

A ``FlowSession`` belongs to exactly one patient session and must not be
shared between requests. It keeps the latest ``FlowState`` so the session
layer can call ``next``/``previous`` without threading state by hand; the
answers it holds are what the caller persists after each transition.
"""

from typing import Any

from pydantic import BaseModel

from intake_flow.graph import Step, StepGraph
from intake_flow.navigation import FlowNavigator, FlowProgress, FlowState, FlowStatus
from intake_flow.registry.models import AnswerValue
from intake_flow.risk import RiskAggregator, RiskAssessment


class SessionView(BaseModel):
    """What the HTTP layer needs to render the session."""

    status: FlowStatus
    step: Step | None
    progress: FlowProgress
    answers: dict[str, AnswerValue]


class FlowSession:
    """Mutable holder for one patient's flow state."""

    def __init__(
        self,
        graph: StepGraph,
        state: FlowState | None = None,
        signed_in: bool = False,
    ) -> None:
        self.navigator = FlowNavigator(graph, signed_in=signed_in)
        self.aggregator = RiskAggregator(signed_in=signed_in)
        self.state = state if state is not None else self.navigator.start()

    @property
    def graph(self) -> StepGraph:
        return self.navigator.graph

    @property
    def status(self) -> FlowStatus:
        return self.state.status

    @property
    def current_step(self) -> Step | None:
        return self.navigator.current_step(self.state)

    def view(self) -> SessionView:
        return SessionView(
            status=self.state.status,
            step=self.current_step,
            progress=self.navigator.progress(self.state),
            answers=self.navigator.reachable_answers(self.state),
        )

    def answer(self, value: AnswerValue) -> SessionView:
        """Record an answer for the current step and advance."""
        self.state = self.navigator.next(self.state, value)
        return self.view()

    def next(self) -> SessionView:
        """Advance using the answer already recorded for the current step."""
        self.state = self.navigator.next(self.state)
        return self.view()

    def skip(self) -> SessionView:
        self.state = self.navigator.skip(self.state)
        return self.view()

    def previous(self) -> SessionView:
        self.state = self.navigator.previous(self.state)
        return self.view()

    def assess(self) -> RiskAssessment:
        """Risk assessment over the answers currently in effect."""
        return self.aggregator.assess_detailed(self.state.answers, self.graph)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the state for the session store."""
        return self.state.model_dump(mode="json")
