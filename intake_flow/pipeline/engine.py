"""Flow engine: wires the store, composer, navigator and aggregator."""

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from pydantic import BaseModel

from intake_flow.composition import ComposedQuestionnaire, TemplateComposer
from intake_flow.navigation import FlowState, normalize_answers
from intake_flow.registry.models import Answer, AnswerValue
from intake_flow.registry.store import FileTemplateStore, TemplateStore
from intake_flow.risk import RiskAssessment
from intake_flow.session import FlowSession

logger = logging.getLogger(__name__)


class EngineConfig(BaseModel):
    """Configuration for the flow engine."""

    store_path: Path
    template_schema_path: Path | None = None
    assignment_schema_path: Path | None = None
    signed_in: bool = False


class FlowEngine:
    """Entry point for the HTTP layer.

    Composes a fresh questionnaire for every call; callers that want caching
    can wrap the store.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        store: TemplateStore | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Engine configuration. Required when no store is given.
            store: Optional template store. If not provided, a file store is
                created from the configuration.
        """
        if store is None:
            if config is None:
                raise ValueError("Either config or store must be provided")
            store = FileTemplateStore(
                config.store_path,
                template_schema_path=config.template_schema_path,
                assignment_schema_path=config.assignment_schema_path,
            )
        self.config = config
        self.store = store
        self.composer = TemplateComposer(store)

    @property
    def signed_in(self) -> bool:
        return self.config.signed_in if self.config else False

    def compose(self, tenant_id: str, treatment_id: str) -> ComposedQuestionnaire:
        return self.composer.compose_questionnaire(tenant_id, treatment_id)

    def start_session(
        self,
        tenant_id: str,
        treatment_id: str,
        answers: Mapping[str, AnswerValue] | Iterable[Answer] | None = None,
        signed_in: bool | None = None,
    ) -> FlowSession:
        """Compose the treatment's questionnaire and open a session on it."""
        questionnaire = self.compose(tenant_id, treatment_id)
        if signed_in is None:
            signed_in = self.signed_in
        session = FlowSession(questionnaire.graph, signed_in=signed_in)
        if answers is not None:
            session.state = session.navigator.start(answers)
        logger.debug("Started session for %s/%s", tenant_id, treatment_id)
        return session

    def resume_session(
        self,
        tenant_id: str,
        treatment_id: str,
        state: FlowState | dict,
        signed_in: bool | None = None,
    ) -> FlowSession:
        """Reopen a session from a previously serialized state."""
        questionnaire = self.compose(tenant_id, treatment_id)
        if isinstance(state, dict):
            state = FlowState.model_validate(state)
        if signed_in is None:
            signed_in = self.signed_in
        return FlowSession(questionnaire.graph, state=state, signed_in=signed_in)

    def replay(
        self,
        tenant_id: str,
        treatment_id: str,
        answers: Mapping[str, AnswerValue] | Iterable[Answer],
    ) -> tuple[FlowSession, RiskAssessment]:
        """Walk a session through recorded answers in order.

        Each answer is applied while its step is current; optional steps
        without an answer are skipped. The walk stops at the first required
        step that has no answer. Answers for steps that are never reached are
        kept but have no effect.
        """
        pending = normalize_answers(answers)

        session = self.start_session(tenant_id, treatment_id)
        while not session.state.is_terminal:
            step = session.current_step
            if step.id in pending:
                session.answer(pending[step.id])
            elif session.navigator.needs_answer(step):
                break
            else:
                session.skip()

        unreached = {k: v for k, v in pending.items() if k not in session.state.answers}
        if unreached:
            session.state = session.state.model_copy(
                update={"answers": {**session.state.answers, **unreached}}
            )
        return session, session.assess()
