"""Core shared infrastructure for intake-flow.

Contains the error taxonomy shared by every component of the engine.
"""

from intake_flow.core.errors import (
    AssignmentNotFoundError,
    ConfigurationError,
    ExpressionSyntaxError,
    IntakeFlowError,
    NotFoundError,
    StepNotFoundError,
    TemplateNotFoundError,
    ValidationError,
)

__all__ = [
    "AssignmentNotFoundError",
    "ConfigurationError",
    "ExpressionSyntaxError",
    "IntakeFlowError",
    "NotFoundError",
    "StepNotFoundError",
    "TemplateNotFoundError",
    "ValidationError",
]
