"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from intake_flow.registry import FileTemplateStore, StepSpec


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def schemas_dir(project_root: Path) -> Path:
    """Return the schemas directory."""
    return project_root / "schemas"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def store_path(fixtures_dir: Path) -> Path:
    """Return the fixture template store path."""
    return fixtures_dir / "store"


@pytest.fixture
def template_schema_path(schemas_dir: Path) -> Path:
    """Return the template spec schema path."""
    return schemas_dir / "template_spec.schema.json"


@pytest.fixture
def assignment_schema_path(schemas_dir: Path) -> Path:
    """Return the template assignment schema path."""
    return schemas_dir / "template_assignment.schema.json"


@pytest.fixture
def file_store(
    store_path: Path,
    template_schema_path: Path,
    assignment_schema_path: Path,
) -> FileTemplateStore:
    """A file store over the fixture templates with schema validation."""
    return FileTemplateStore(
        store_path,
        template_schema_path=template_schema_path,
        assignment_schema_path=assignment_schema_path,
    )


@pytest.fixture
def intake_steps() -> list[StepSpec]:
    """A small branching questionnaire.

    age -> smoker -> [packs if smoker=yes] -> allergies -> [ineligible if
    allergies include penicillin] -> notes (optional)
    """
    return [
        StepSpec(id="age", title="Age", position=1, answer_type="number"),
        StepSpec(
            id="smoker",
            title="Do you smoke?",
            position=2,
            options=[
                {"id": "yes", "label": "Yes", "risk_level": "review"},
                {"id": "no", "label": "No", "risk_level": "safe"},
            ],
        ),
        StepSpec(
            id="packs",
            title="Packs per day",
            position=3,
            options=[
                {"id": "one", "label": "One or fewer", "risk_level": "review"},
                {"id": "many", "label": "More than one", "risk_level": "reject"},
            ],
            conditional_logic={"op": "equals", "step": "smoker", "value": "yes"},
        ),
        StepSpec(
            id="allergies",
            title="Allergies",
            position=4,
            answer_type="multiple",
            options=[
                {"id": "none", "label": "None"},
                {"id": "latex", "label": "Latex", "risk_level": "review"},
                {"id": "penicillin", "label": "Penicillin"},
            ],
        ),
        StepSpec(
            id="ineligible",
            title="Not eligible",
            position=5,
            answer_type="info",
            is_dead_end=True,
            conditional_logic={"op": "contains", "step": "allergies", "value": "penicillin"},
        ),
        StepSpec(id="notes", title="Anything else?", position=6, required=False),
    ]
