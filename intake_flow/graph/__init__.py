"""Step graph construction and structural diagnostics."""

from intake_flow.graph.diagnostics import GraphWarning, inspect_steps
from intake_flow.graph.step_graph import Step, StepGraph

__all__ = [
    "GraphWarning",
    "Step",
    "StepGraph",
    "inspect_steps",
]
