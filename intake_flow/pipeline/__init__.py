"""Engine facade for serving questionnaire flows."""

from intake_flow.pipeline.engine import EngineConfig, FlowEngine

__all__ = [
    "EngineConfig",
    "FlowEngine",
]
