"""Tests for the registry models and template stores."""

import json
from pathlib import Path

import pydantic
import pytest

from intake_flow.core.errors import (
    AssignmentNotFoundError,
    ConfigurationError,
    NotFoundError,
    TemplateNotFoundError,
)
from intake_flow.registry import (
    AnswerType,
    FileTemplateStore,
    GlobalOwnership,
    InMemoryTemplateStore,
    LayoutVariant,
    RiskLevel,
    SectionType,
    StepCategory,
    StepSpec,
    TemplateAssignment,
    TemplateSpec,
    TemplateStore,
    TenantOwnership,
)


class TestStepSpec:
    """Tests for StepSpec defaults and normalization."""

    def test_defaults(self) -> None:
        step = StepSpec(id="s1")
        assert step.required is True
        assert step.is_dead_end is False
        assert step.conditional_logic is None
        assert step.category == StepCategory.NORMAL
        assert step.answer_type == AnswerType.TEXT

    def test_options_default_to_single_select(self) -> None:
        step = StepSpec(id="s1", options=[{"id": "a", "label": "A"}])
        assert step.answer_type == AnswerType.SINGLE
        assert step.options[0].risk_level is None

    def test_doctor_category_collapses_to_normal(self) -> None:
        step = StepSpec(id="s1", category="doctor")
        assert step.category == StepCategory.NORMAL

    def test_unknown_category_rejected(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            StepSpec(id="s1", category="checkout")

    def test_blank_conditional_logic_is_absent(self) -> None:
        assert StepSpec(id="s1", conditional_logic="  ").conditional_logic is None

    def test_get_option(self) -> None:
        step = StepSpec(
            id="s1",
            options=[{"id": "a", "label": "A", "risk_level": "reject"}],
        )
        assert step.get_option("a").risk_level == RiskLevel.REJECT
        assert step.get_option("b") is None

    def test_frozen(self) -> None:
        step = StepSpec(id="s1")
        with pytest.raises(pydantic.ValidationError):
            step.required = False


class TestTemplateOwnership:
    """Tests for the global/tenant ownership variant."""

    def test_global_ownership(self) -> None:
        template = TemplateSpec(
            id="t1", name="T1", section_type="account", ownership={"kind": "global"}
        )
        assert isinstance(template.ownership, GlobalOwnership)
        assert template.is_global
        assert template.visible_to("any-tenant")

    def test_tenant_ownership(self) -> None:
        template = TemplateSpec(
            id="t1",
            name="T1",
            section_type="account",
            ownership={"kind": "tenant", "tenant_id": "acme"},
        )
        assert isinstance(template.ownership, TenantOwnership)
        assert not template.is_global
        assert template.visible_to("acme")
        assert not template.visible_to("globex")

    def test_legacy_flags_converted(self) -> None:
        template = TemplateSpec.model_validate(
            {"id": "t1", "name": "T1", "section_type": "doctor", "is_global": False, "tenant_id": "acme"}
        )
        assert template.ownership == TenantOwnership(tenant_id="acme")

    @pytest.mark.parametrize(
        "flags",
        [
            {"is_global": True, "tenant_id": "acme"},
            {"is_global": False, "tenant_id": None},
        ],
    )
    def test_both_or_neither_rejected(self, flags: dict) -> None:
        with pytest.raises(pydantic.ValidationError):
            TemplateSpec.model_validate(
                {"id": "t1", "name": "T1", "section_type": "doctor", **flags}
            )

    def test_ownership_required(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            TemplateSpec(id="t1", name="T1", section_type="doctor")


class TestTemplateAssignment:
    """Tests for TemplateAssignment."""

    def test_defaults_and_slots(self) -> None:
        assignment = TemplateAssignment(
            tenant_id="acme",
            treatment_id="tx",
            personalization_template_id="p",
            account_template_id="a",
            doctor_template_id="d",
        )
        assert assignment.layout == LayoutVariant.LAYOUT_A
        assert assignment.template_id_for(SectionType.ACCOUNT) == "a"
        assert assignment.template_id_for(SectionType.DOCTOR) == "d"

    def test_unknown_layout_rejected(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            TemplateAssignment(tenant_id="acme", treatment_id="tx", layout="layout_z")

    def test_layout_display_names(self) -> None:
        assert LayoutVariant.LAYOUT_B.display_name == "Express"
        assert LayoutVariant.LAYOUT_C.display_name == "Clinical First"


class TestInMemoryTemplateStore:
    """Tests for the in-memory store."""

    def test_load_and_not_found(self) -> None:
        template = TemplateSpec(
            id="t1", name="T1", section_type="account", ownership={"kind": "global"}
        )
        store = InMemoryTemplateStore(templates=[template])
        assert isinstance(store, TemplateStore)
        assert store.load_template("t1") is template
        with pytest.raises(TemplateNotFoundError):
            store.load_template("t2")
        with pytest.raises(AssignmentNotFoundError):
            store.load_assignment("acme", "tx")


class TestFileTemplateStore:
    """Tests for the directory-backed store."""

    def test_load_json_template(self, file_store: FileTemplateStore) -> None:
        template = file_store.load_template("weight-loss-personalization")
        assert template.is_global
        assert template.version == 3
        assert [s.id for s in template.steps] == ["goal", "pregnant", "bmi"]

    def test_load_yaml_template(self, file_store: FileTemplateStore) -> None:
        template = file_store.load_template("standard-account")
        assert template.section_type == SectionType.ACCOUNT
        assert template.steps[0].category == StepCategory.USER_PROFILE

    def test_template_cached(self, file_store: FileTemplateStore) -> None:
        first = file_store.load_template("weight-loss-doctor")
        assert file_store.load_template("weight-loss-doctor") is first

    def test_template_not_found(self, file_store: FileTemplateStore) -> None:
        with pytest.raises(NotFoundError):
            file_store.load_template("does-not-exist")

    def test_load_assignment(self, file_store: FileTemplateStore) -> None:
        assignment = file_store.load_assignment("tenant-acme", "semaglutide")
        assert assignment.tenant_id == "tenant-acme"
        assert assignment.treatment_id == "semaglutide"
        assert assignment.theme_id == "ocean"

    def test_load_yaml_assignment(self, file_store: FileTemplateStore) -> None:
        assignment = file_store.load_assignment("tenant-acme", "tirzepatide")
        assert assignment.layout == LayoutVariant.LAYOUT_C

    def test_assignment_not_found(self, file_store: FileTemplateStore) -> None:
        with pytest.raises(AssignmentNotFoundError):
            file_store.load_assignment("tenant-acme", "unknown")
        with pytest.raises(AssignmentNotFoundError):
            file_store.load_assignment("tenant-unknown", "semaglutide")

    def test_list_templates(self, file_store: FileTemplateStore) -> None:
        templates = file_store.list_templates()
        assert "standard-account" in templates
        assert "weight-loss-doctor" in templates

    def test_list_assignments(self, file_store: FileTemplateStore) -> None:
        assert "semaglutide" in file_store.list_assignments("tenant-acme")
        assert file_store.list_assignments("nobody") == []

    def test_schema_violation_is_configuration_error(
        self, tmp_path: Path, template_schema_path: Path
    ) -> None:
        (tmp_path / "templates").mkdir()
        (tmp_path / "templates" / "bad.json").write_text(
            json.dumps({"id": "bad", "name": "Bad", "section_type": "billing", "steps": []})
        )
        store = FileTemplateStore(tmp_path, template_schema_path=template_schema_path)
        with pytest.raises(ConfigurationError, match="schema validation"):
            store.load_template("bad")

    def test_model_violation_is_configuration_error(self, tmp_path: Path) -> None:
        (tmp_path / "templates").mkdir()
        (tmp_path / "templates" / "both.json").write_text(
            json.dumps(
                {
                    "id": "both",
                    "name": "Both",
                    "section_type": "doctor",
                    "is_global": True,
                    "tenant_id": "acme",
                }
            )
        )
        store = FileTemplateStore(tmp_path)
        with pytest.raises(ConfigurationError):
            store.load_template("both")

    def test_mismatched_template_id(self, tmp_path: Path) -> None:
        (tmp_path / "templates").mkdir()
        (tmp_path / "templates" / "file-name.json").write_text(
            json.dumps(
                {"id": "other", "name": "X", "section_type": "doctor", "ownership": {"kind": "global"}}
            )
        )
        store = FileTemplateStore(tmp_path)
        with pytest.raises(ConfigurationError, match="mismatched id"):
            store.load_template("file-name")
