"""Layout transforms applied to a composed step sequence.

Each transform takes steps in canonical order (personalization, account,
doctor) and returns a new ordering. Inputs are never modified.
"""

from collections.abc import Callable, Sequence

from intake_flow.registry.models import LayoutVariant, SectionType, StepSpec

LayoutTransform = Callable[[Sequence[StepSpec]], list[StepSpec]]


def narrative(steps: Sequence[StepSpec]) -> list[StepSpec]:
    """layout_a: personalization, account, doctor as composed."""
    return list(steps)


def express(steps: Sequence[StepSpec]) -> list[StepSpec]:
    """layout_b: account steps before personalization."""
    order = {
        SectionType.ACCOUNT: 0,
        SectionType.PERSONALIZATION: 1,
        SectionType.DOCTOR: 2,
    }
    return sorted(steps, key=lambda s: order[s.section_type])


def clinical_first(steps: Sequence[StepSpec]) -> list[StepSpec]:
    """layout_c: required doctor steps first, everything else after."""
    front = [s for s in steps if s.section_type == SectionType.DOCTOR and s.required]
    rest = [s for s in steps if not (s.section_type == SectionType.DOCTOR and s.required)]
    return front + rest


LAYOUT_TRANSFORMS: dict[LayoutVariant, LayoutTransform] = {
    LayoutVariant.LAYOUT_A: narrative,
    LayoutVariant.LAYOUT_B: express,
    LayoutVariant.LAYOUT_C: clinical_first,
}


def apply_layout(layout: LayoutVariant, steps: Sequence[StepSpec]) -> list[StepSpec]:
    """Reorder steps for a layout and renumber positions from 1."""
    ordered = LAYOUT_TRANSFORMS[layout](steps)
    return renumber(ordered)


def renumber(steps: Sequence[StepSpec]) -> list[StepSpec]:
    """Copy steps with contiguous positions starting at 1."""
    return [step.model_copy(update={"position": i}) for i, step in enumerate(steps, 1)]
