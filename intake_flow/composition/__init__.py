"""Composition of questionnaires from section templates."""

from intake_flow.composition.composer import (
    ComposedQuestionnaire,
    TemplateComposer,
    TemplateRef,
)
from intake_flow.composition.layouts import LAYOUT_TRANSFORMS, apply_layout, renumber

__all__ = [
    "LAYOUT_TRANSFORMS",
    "ComposedQuestionnaire",
    "TemplateComposer",
    "TemplateRef",
    "apply_layout",
    "renumber",
]
