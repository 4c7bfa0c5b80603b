"""Template and assignment models and the stores that load them."""

from intake_flow.registry.models import (
    Answer,
    AnswerType,
    AnswerValue,
    GlobalOwnership,
    LayoutVariant,
    OptionSpec,
    RiskLevel,
    SectionType,
    StepCategory,
    StepSpec,
    TemplateAssignment,
    TemplateSpec,
    TenantOwnership,
)
from intake_flow.registry.store import FileTemplateStore, InMemoryTemplateStore, TemplateStore

__all__ = [
    "Answer",
    "AnswerType",
    "AnswerValue",
    "FileTemplateStore",
    "GlobalOwnership",
    "InMemoryTemplateStore",
    "LayoutVariant",
    "OptionSpec",
    "RiskLevel",
    "SectionType",
    "StepCategory",
    "StepSpec",
    "TemplateAssignment",
    "TemplateSpec",
    "TemplateStore",
    "TenantOwnership",
]
