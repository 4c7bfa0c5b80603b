"""intake-flow: Questionnaire flow engine for multi-tenant patient intake."""

__version__ = "0.1.0"

from intake_flow.composition import ComposedQuestionnaire, TemplateComposer
from intake_flow.core.errors import (
    ConfigurationError,
    IntakeFlowError,
    NotFoundError,
    ValidationError,
)
from intake_flow.expressions import evaluate, parse_expression
from intake_flow.graph import StepGraph
from intake_flow.navigation import FlowNavigator, FlowState, FlowStatus
from intake_flow.pipeline import EngineConfig, FlowEngine
from intake_flow.risk import Disposition, RiskAggregator
from intake_flow.session import FlowSession

__all__ = [
    "__version__",
    "ComposedQuestionnaire",
    "ConfigurationError",
    "Disposition",
    "EngineConfig",
    "FlowEngine",
    "FlowNavigator",
    "FlowSession",
    "FlowState",
    "FlowStatus",
    "IntakeFlowError",
    "NotFoundError",
    "RiskAggregator",
    "StepGraph",
    "TemplateComposer",
    "ValidationError",
    "evaluate",
    "parse_expression",
]
