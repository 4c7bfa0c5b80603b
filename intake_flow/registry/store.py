"""Template stores for loading section templates and treatment assignments.

The engine only consumes ``load_template`` and ``load_assignment``; where the
records live is up to the caller. Two implementations are provided: an
in-memory store for tests and embedding, and a directory-backed store.
"""

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import jsonschema
import pydantic
import yaml

from intake_flow.core.errors import (
    AssignmentNotFoundError,
    ConfigurationError,
    TemplateNotFoundError,
)
from intake_flow.registry.models import TemplateAssignment, TemplateSpec

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIXES = (".json", ".yaml", ".yml")


@runtime_checkable
class TemplateStore(Protocol):
    """Collaborator interface the Template Composer reads from."""

    def load_template(self, template_id: str) -> TemplateSpec:
        """Load a template by ID.

        Raises:
            TemplateNotFoundError: If the template ID is unknown.
        """
        ...

    def load_assignment(self, tenant_id: str, treatment_id: str) -> TemplateAssignment:
        """Load the template assignment for a tenant's treatment.

        Raises:
            AssignmentNotFoundError: If no assignment exists.
        """
        ...


class InMemoryTemplateStore:
    """Template store backed by plain dictionaries."""

    def __init__(
        self,
        templates: Iterable[TemplateSpec] = (),
        assignments: Iterable[TemplateAssignment] = (),
    ) -> None:
        self._templates: dict[str, TemplateSpec] = {}
        self._assignments: dict[tuple[str, str], TemplateAssignment] = {}
        for template in templates:
            self.add_template(template)
        for assignment in assignments:
            self.add_assignment(assignment)

    def add_template(self, template: TemplateSpec) -> None:
        self._templates[template.id] = template

    def add_assignment(self, assignment: TemplateAssignment) -> None:
        self._assignments[(assignment.tenant_id, assignment.treatment_id)] = assignment

    def load_template(self, template_id: str) -> TemplateSpec:
        try:
            return self._templates[template_id]
        except KeyError:
            raise TemplateNotFoundError(template_id) from None

    def load_assignment(self, tenant_id: str, treatment_id: str) -> TemplateAssignment:
        try:
            return self._assignments[(tenant_id, treatment_id)]
        except KeyError:
            raise AssignmentNotFoundError(tenant_id, treatment_id) from None

    def list_templates(self) -> list[str]:
        return sorted(self._templates)


def read_document(path: Path) -> Any:
    """Read a JSON or YAML document from disk."""
    with open(path) as f:
        if path.suffix == ".json":
            return json.load(f)
        return yaml.safe_load(f)


class FileTemplateStore:
    """Loads templates and assignments from a directory tree.

    Layout::

        <store_path>/templates/<template_id>.json
        <store_path>/assignments/<tenant_id>/<treatment_id>.json

    YAML (``.yaml``/``.yml``) is accepted wherever JSON is. Parsed records
    are cached per store instance.
    """

    def __init__(
        self,
        store_path: Path | str,
        template_schema_path: Path | str | None = None,
        assignment_schema_path: Path | str | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            store_path: Root directory of the store.
            template_schema_path: Optional JSON Schema for template documents.
            assignment_schema_path: Optional JSON Schema for assignment documents.
        """
        self.store_path = Path(store_path)
        self.templates_path = self.store_path / "templates"
        self.assignments_path = self.store_path / "assignments"
        self._template_cache: dict[str, TemplateSpec] = {}
        self._assignment_cache: dict[tuple[str, str], TemplateAssignment] = {}
        self._template_schema = self._load_schema(template_schema_path)
        self._assignment_schema = self._load_schema(assignment_schema_path)

    @staticmethod
    def _load_schema(schema_path: Path | str | None) -> dict | None:
        if not schema_path:
            return None
        with open(schema_path) as f:
            return json.load(f)

    @staticmethod
    def _find_document(directory: Path, stem: str) -> Path | None:
        for suffix in DOCUMENT_SUFFIXES:
            candidate = directory / f"{stem}{suffix}"
            if candidate.exists():
                return candidate
        return None

    def _validate(self, data: Any, schema: dict | None, label: str) -> None:
        if schema is None:
            return
        try:
            jsonschema.validate(data, schema)
        except jsonschema.ValidationError as e:
            raise ConfigurationError(f"{label} failed schema validation: {e.message}") from e

    def load_template(self, template_id: str) -> TemplateSpec:
        if template_id in self._template_cache:
            return self._template_cache[template_id]

        path = self._find_document(self.templates_path, template_id)
        if path is None:
            raise TemplateNotFoundError(template_id)

        data = read_document(path)
        self._validate(data, self._template_schema, f"Template {template_id}")
        try:
            template = TemplateSpec.model_validate(data)
        except pydantic.ValidationError as e:
            raise ConfigurationError(f"Template {template_id} is invalid: {e}") from e

        if template.id != template_id:
            raise ConfigurationError(
                f"Template file {path.name} declares mismatched id {template.id!r}"
            )

        logger.debug("Loaded template %s v%s from %s", template.id, template.version, path)
        self._template_cache[template_id] = template
        return template

    def load_assignment(self, tenant_id: str, treatment_id: str) -> TemplateAssignment:
        cache_key = (tenant_id, treatment_id)
        if cache_key in self._assignment_cache:
            return self._assignment_cache[cache_key]

        path = self._find_document(self.assignments_path / tenant_id, treatment_id)
        if path is None:
            raise AssignmentNotFoundError(tenant_id, treatment_id)

        data = read_document(path)
        label = f"Assignment {tenant_id}/{treatment_id}"
        self._validate(data, self._assignment_schema, label)
        if not isinstance(data, dict):
            raise ConfigurationError(f"{label} must be a mapping")
        try:
            assignment = TemplateAssignment.model_validate(
                {"tenant_id": tenant_id, "treatment_id": treatment_id, **data}
            )
        except pydantic.ValidationError as e:
            raise ConfigurationError(f"{label} is invalid: {e}") from e

        if (assignment.tenant_id, assignment.treatment_id) != cache_key:
            raise ConfigurationError(f"{label} declares a different tenant or treatment")

        self._assignment_cache[cache_key] = assignment
        return assignment

    def list_templates(self) -> list[str]:
        """List all template IDs in the store."""
        if not self.templates_path.exists():
            return []
        return sorted(
            f.stem for f in self.templates_path.iterdir() if f.suffix in DOCUMENT_SUFFIXES
        )

    def list_assignments(self, tenant_id: str) -> list[str]:
        """List treatment IDs that have an assignment for a tenant."""
        tenant_path = self.assignments_path / tenant_id
        if not tenant_path.exists():
            return []
        return sorted(f.stem for f in tenant_path.iterdir() if f.suffix in DOCUMENT_SUFFIXES)
