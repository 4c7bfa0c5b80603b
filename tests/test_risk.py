"""Tests for risk aggregation."""

import random

import pytest

from intake_flow.graph import StepGraph
from intake_flow.registry import Answer, RiskLevel, StepSpec
from intake_flow.risk import Disposition, RiskAggregator


@pytest.fixture
def graph(intake_steps: list[StepSpec]) -> StepGraph:
    return StepGraph(intake_steps)


@pytest.fixture
def aggregator() -> RiskAggregator:
    return RiskAggregator()


class TestDisposition:
    """Tests for disposition reduction."""

    def test_no_answers_is_safe(self, aggregator: RiskAggregator, graph: StepGraph) -> None:
        assert aggregator.assess({}, graph) == Disposition.SAFE

    def test_options_without_risk_are_safe(
        self, aggregator: RiskAggregator, graph: StepGraph
    ) -> None:
        answers = {"age": 30, "allergies": ("none",), "notes": "fine"}
        assert aggregator.assess(answers, graph) == Disposition.SAFE

    def test_safe_options(self, aggregator: RiskAggregator, graph: StepGraph) -> None:
        assert aggregator.assess({"smoker": "no"}, graph) == Disposition.SAFE

    def test_review_option(self, aggregator: RiskAggregator, graph: StepGraph) -> None:
        answers = {"smoker": "no", "allergies": ("latex",)}
        assert aggregator.assess(answers, graph) == Disposition.REVIEW

    def test_reject_dominates_review(self, aggregator: RiskAggregator, graph: StepGraph) -> None:
        answers = {"smoker": "yes", "packs": "many", "allergies": ("latex",)}
        assert aggregator.assess(answers, graph) == Disposition.REJECT

    def test_multi_select_uses_every_option(
        self, aggregator: RiskAggregator, graph: StepGraph
    ) -> None:
        answers = {"allergies": ("none", "latex")}
        assert aggregator.assess(answers, graph) == Disposition.REVIEW

    @pytest.mark.parametrize("selection", [["latex"], {"latex"}, frozenset({"none", "latex"})])
    def test_multi_select_collections(
        self, aggregator: RiskAggregator, graph: StepGraph, selection
    ) -> None:
        answers = {"age": 40, "smoker": "no", "allergies": selection}
        assert aggregator.assess(answers, graph) == Disposition.REVIEW

    def test_answer_with_set_value(self, aggregator: RiskAggregator, graph: StepGraph) -> None:
        answers = [Answer(step_id="smoker", value="no"), Answer(step_id="allergies", value={"latex"})]
        assert aggregator.assess(answers, graph) == Disposition.REVIEW

    def test_answer_list_input(self, aggregator: RiskAggregator, graph: StepGraph) -> None:
        answers = [
            Answer(step_id="smoker", value="yes"),
            Answer(step_id="smoker", value="no"),
        ]
        assert aggregator.assess(answers, graph) == Disposition.SAFE


class TestReachableOnly:
    """Answers on unreachable steps never count."""

    def test_closed_branch_ignored(self, aggregator: RiskAggregator, graph: StepGraph) -> None:
        answers = {"smoker": "no", "packs": "many"}
        assert aggregator.assess(answers, graph) == Disposition.SAFE

    def test_steps_past_dead_end_ignored(self) -> None:
        graph = StepGraph(
            [
                StepSpec(
                    id="q",
                    options=[{"id": "stop", "label": "Stop", "risk_level": "safe"}],
                ),
                StepSpec(
                    id="end",
                    is_dead_end=True,
                    answer_type="info",
                    conditional_logic={"op": "equals", "step": "q", "value": "stop"},
                ),
                StepSpec(
                    id="later",
                    options=[{"id": "bad", "label": "Bad", "risk_level": "reject"}],
                ),
            ]
        )
        aggregator = RiskAggregator()
        assert aggregator.assess({"q": "stop", "later": "bad"}, graph) == Disposition.SAFE

    def test_unknown_steps_ignored(self, aggregator: RiskAggregator, graph: StepGraph) -> None:
        assert aggregator.assess({"ghost": "many"}, graph) == Disposition.SAFE


class TestOrderIndependence:
    """The disposition does not depend on answer order."""

    def test_shuffled_answers_same_disposition(
        self, aggregator: RiskAggregator, graph: StepGraph
    ) -> None:
        answers = [
            Answer(step_id="age", value=55),
            Answer(step_id="smoker", value="yes"),
            Answer(step_id="packs", value="one"),
            Answer(step_id="allergies", value=("latex", "none")),
            Answer(step_id="notes", value="none"),
        ]
        expected = aggregator.assess_detailed(answers, graph)
        rng = random.Random(42)
        for _ in range(20):
            shuffled = list(answers)
            rng.shuffle(shuffled)
            result = aggregator.assess_detailed(shuffled, graph)
            assert result.disposition == expected.disposition == Disposition.REVIEW
            assert result.levels == expected.levels


class TestAssessmentDetail:
    """Tests for flagged options in the detailed assessment."""

    def test_flags_list_flagged_options(
        self, aggregator: RiskAggregator, graph: StepGraph
    ) -> None:
        result = aggregator.assess_detailed(
            {"smoker": "yes", "packs": "many", "allergies": ("latex",)}, graph
        )
        assert [(f.step_id, f.option_id) for f in result.flags] == [
            ("smoker", "yes"),
            ("packs", "many"),
            ("allergies", "latex"),
        ]
        assert result.levels == [RiskLevel.REVIEW, RiskLevel.REJECT]
        assert result.requires_review

    def test_safe_does_not_require_review(
        self, aggregator: RiskAggregator, graph: StepGraph
    ) -> None:
        result = aggregator.assess_detailed({"smoker": "no"}, graph)
        assert result.levels == [RiskLevel.SAFE]
        assert not result.requires_review

    def test_signed_in_skips_profile_answers(self) -> None:
        graph = StepGraph(
            [
                StepSpec(
                    id="profile",
                    category="user_profile",
                    options=[{"id": "x", "label": "X", "risk_level": "review"}],
                ),
            ]
        )
        assert RiskAggregator().assess({"profile": "x"}, graph) == Disposition.REVIEW
        assert RiskAggregator(signed_in=True).assess({"profile": "x"}, graph) == Disposition.SAFE
