"""Template composer.

Resolves the three section templates assigned to a tenant's treatment,
checks that the tenant may use them, concatenates their steps and applies
the assigned layout before building the step graph.
"""

import logging

from pydantic import BaseModel, ConfigDict

from intake_flow.composition.layouts import apply_layout, renumber
from intake_flow.core.errors import ConfigurationError
from intake_flow.graph import StepGraph
from intake_flow.registry.models import (
    LayoutVariant,
    SectionType,
    StepSpec,
    TemplateAssignment,
    TemplateSpec,
)
from intake_flow.registry.store import TemplateStore

logger = logging.getLogger(__name__)

SECTION_ORDER = (SectionType.PERSONALIZATION, SectionType.ACCOUNT, SectionType.DOCTOR)


class TemplateRef(BaseModel):
    """Which template version filled a section slot."""

    model_config = ConfigDict(frozen=True)

    section_type: SectionType
    template_id: str
    version: int
    is_global: bool


class ComposedQuestionnaire(BaseModel):
    """Per-session view of a treatment's questionnaire."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    tenant_id: str
    treatment_id: str
    layout: LayoutVariant
    theme_id: str | None = None
    templates: list[TemplateRef]
    graph: StepGraph


class TemplateComposer:
    """Builds step graphs from template assignments.

    The composer only reads from the store and copies steps before changing
    them, so concurrent sessions can compose from the same templates.
    """

    def __init__(self, store: TemplateStore) -> None:
        self.store = store

    def compose(self, tenant_id: str, treatment_id: str) -> StepGraph:
        """Build the step graph for a tenant's treatment.

        Raises:
            AssignmentNotFoundError: If the treatment has no assignment.
            TemplateNotFoundError: If an assigned template does not exist.
            ConfigurationError: On a cross-tenant reference, an empty slot,
                a section mismatch, an inactive template, or invalid steps.
        """
        return self.compose_questionnaire(tenant_id, treatment_id).graph

    def compose_questionnaire(self, tenant_id: str, treatment_id: str) -> ComposedQuestionnaire:
        """Build the step graph together with its provenance."""
        assignment = self.store.load_assignment(tenant_id, treatment_id)
        if assignment.tenant_id != tenant_id:
            raise ConfigurationError(
                f"Assignment for treatment {treatment_id} belongs to tenant "
                f"{assignment.tenant_id}, not {tenant_id}"
            )

        templates = [self._resolve(assignment, section) for section in SECTION_ORDER]
        graph = self.compose_templates(templates, assignment.layout)

        logger.debug(
            "Composed %s/%s with %s: %d steps",
            tenant_id,
            treatment_id,
            assignment.layout.value,
            len(graph),
        )
        return ComposedQuestionnaire(
            tenant_id=tenant_id,
            treatment_id=treatment_id,
            layout=assignment.layout,
            theme_id=assignment.theme_id,
            templates=[
                TemplateRef(
                    section_type=t.section_type,
                    template_id=t.id,
                    version=t.version,
                    is_global=t.is_global,
                )
                for t in templates
            ],
            graph=graph,
        )

    @staticmethod
    def compose_templates(templates: list[TemplateSpec], layout: LayoutVariant) -> StepGraph:
        """Concatenate resolved templates and apply a layout.

        Args:
            templates: One template per section, in canonical section order.
            layout: The layout variant to apply.
        """
        steps: list[StepSpec] = []
        for template in templates:
            ordered = sorted(template.steps, key=lambda s: s.position)
            steps.extend(
                step.model_copy(update={"section_type": template.section_type})
                for step in ordered
            )
        return StepGraph(apply_layout(layout, renumber(steps)))

    def _resolve(self, assignment: TemplateAssignment, section: SectionType) -> TemplateSpec:
        template_id = assignment.template_id_for(section)
        if not template_id:
            raise ConfigurationError(
                f"Treatment {assignment.treatment_id} has no {section.value} template assigned"
            )

        template = self.store.load_template(template_id)

        if template.section_type != section:
            raise ConfigurationError(
                f"Template {template.id} is a {template.section_type.value} template "
                f"and cannot fill the {section.value} slot"
            )
        if not template.visible_to(assignment.tenant_id):
            raise ConfigurationError(
                f"Template {template.id} belongs to another tenant and cannot be "
                f"used by tenant {assignment.tenant_id}"
            )
        if not template.is_active:
            raise ConfigurationError(f"Template {template.id} is inactive")

        return template
