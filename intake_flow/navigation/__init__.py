"""Flow navigation over step graphs."""

from intake_flow.navigation.navigator import (
    FlowNavigator,
    normalize_answers,
    reachable_answers,
    reachable_steps,
)
from intake_flow.navigation.state import FlowProgress, FlowState, FlowStatus

__all__ = [
    "FlowNavigator",
    "FlowProgress",
    "FlowState",
    "FlowStatus",
    "normalize_answers",
    "reachable_answers",
    "reachable_steps",
]
