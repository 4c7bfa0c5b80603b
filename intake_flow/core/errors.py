"""Error taxonomy for the questionnaire flow engine.

Three families are distinguished by how the caller must react:

- ConfigurationError: the flow cannot be built. Surface a setup failure,
  never present a broken form.
- ValidationError: the patient's last action was rejected. Session state is
  unchanged and the patient is re-prompted.
- NotFoundError: an unknown identifier. Maps to a client-facing 404.
"""


class IntakeFlowError(Exception):
    """Base class for all intake-flow errors."""

    pass


class ConfigurationError(IntakeFlowError):
    """Raised when templates, assignments or steps are misconfigured."""

    pass


class ExpressionSyntaxError(ConfigurationError):
    """Raised when a conditional-logic payload cannot be parsed."""

    def __init__(self, message: str, step_id: str | None = None) -> None:
        self.step_id = step_id
        if step_id:
            message = f"Step {step_id}: {message}"
        super().__init__(message)


class ValidationError(IntakeFlowError):
    """Raised when a navigation request is rejected for the current step."""

    def __init__(self, code: str, message: str, step_id: str | None = None) -> None:
        self.code = code
        self.step_id = step_id
        super().__init__(message)


class NotFoundError(IntakeFlowError):
    """Raised when a template, assignment or step identifier is unknown."""

    pass


class TemplateNotFoundError(NotFoundError):
    """Raised when a template ID is not present in the store."""

    def __init__(self, template_id: str) -> None:
        self.template_id = template_id
        super().__init__(f"Template not found: {template_id}")


class AssignmentNotFoundError(NotFoundError):
    """Raised when no template assignment exists for a tenant and treatment."""

    def __init__(self, tenant_id: str, treatment_id: str) -> None:
        self.tenant_id = tenant_id
        self.treatment_id = treatment_id
        super().__init__(
            f"Template assignment not found for tenant {tenant_id}, treatment {treatment_id}"
        )


class StepNotFoundError(NotFoundError):
    """Raised when a step ID is not part of a step graph."""

    def __init__(self, step_id: str) -> None:
        self.step_id = step_id
        super().__init__(f"Step not found: {step_id}")
