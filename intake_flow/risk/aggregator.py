"""Risk aggregator for submitted questionnaires.

Reduces the risk levels of the selected options on reachable steps to one
review disposition. Highest severity wins:

- any ``reject`` option  -> REJECT (auto-reject)
- any ``review`` option  -> REVIEW (manual clinical review)
- otherwise              -> SAFE (auto-approve), including no risk signal

The reduction is a set union followed by a max, so it does not depend on
the order answers were recorded in.
"""

from collections.abc import Iterable, Mapping
from enum import Enum

from pydantic import BaseModel, Field

from intake_flow.graph import StepGraph
from intake_flow.navigation import normalize_answers, reachable_answers
from intake_flow.registry.models import Answer, AnswerValue, RiskLevel


class Disposition(str, Enum):
    """Review routing for a submitted questionnaire."""

    SAFE = "SAFE"
    REVIEW = "REVIEW"
    REJECT = "REJECT"


_SEVERITY = {
    RiskLevel.SAFE: 0,
    RiskLevel.REVIEW: 1,
    RiskLevel.REJECT: 2,
}

_DISPOSITION = {
    RiskLevel.SAFE: Disposition.SAFE,
    RiskLevel.REVIEW: Disposition.REVIEW,
    RiskLevel.REJECT: Disposition.REJECT,
}


class RiskFlag(BaseModel):
    """A selected option that carries a risk signal."""

    step_id: str
    option_id: str
    label: str
    risk_level: RiskLevel


class RiskAssessment(BaseModel):
    """Disposition plus the answers that produced it."""

    disposition: Disposition
    levels: list[RiskLevel] = Field(default_factory=list)
    flags: list[RiskFlag] = Field(default_factory=list)

    @property
    def requires_review(self) -> bool:
        return self.disposition != Disposition.SAFE


class RiskAggregator:
    """Computes review dispositions from answers on a step graph."""

    def __init__(self, signed_in: bool = False) -> None:
        self.signed_in = signed_in

    def assess(
        self,
        answers: Mapping[str, AnswerValue] | Iterable[Answer],
        graph: StepGraph,
    ) -> Disposition:
        """Compute the disposition for an answer set.

        Args:
            answers: Recorded answers. Answers on steps that are no longer
                reachable are ignored.
            graph: The step graph the answers belong to.

        Returns:
            SAFE, REVIEW or REJECT.
        """
        return self.assess_detailed(answers, graph).disposition

    def assess_detailed(
        self,
        answers: Mapping[str, AnswerValue] | Iterable[Answer],
        graph: StepGraph,
    ) -> RiskAssessment:
        """Compute the disposition and list every flagged option."""
        in_effect = reachable_answers(graph, normalize_answers(answers), signed_in=self.signed_in)

        flags: list[RiskFlag] = []
        for step in graph:
            if step.id not in in_effect or not step.options:
                continue
            value = in_effect[step.id]
            selected = value if isinstance(value, tuple) else (value,)
            for option_id in selected:
                option = step.get_option(str(option_id))
                if option is None or option.risk_level is None:
                    continue
                flags.append(
                    RiskFlag(
                        step_id=step.id,
                        option_id=option.id,
                        label=option.label,
                        risk_level=option.risk_level,
                    )
                )

        levels = {flag.risk_level for flag in flags}
        if levels:
            worst = max(levels, key=_SEVERITY.__getitem__)
            disposition = _DISPOSITION[worst]
        else:
            disposition = Disposition.SAFE

        return RiskAssessment(
            disposition=disposition,
            levels=sorted(levels, key=_SEVERITY.__getitem__),
            flags=flags,
        )
