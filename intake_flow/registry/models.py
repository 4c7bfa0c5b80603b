"""Pydantic models for templates, steps, options and assignments."""

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

AnswerValue = str | int | float | tuple[str, ...]


def as_answer_value(value: Any) -> Any:
    """Store multi-select collections as tuples; sets are sorted."""
    if isinstance(value, (set, frozenset)):
        return tuple(sorted(value, key=str))
    if isinstance(value, list):
        return tuple(value)
    return value



class SectionType(str, Enum):
    """Section a step or template belongs to."""

    PERSONALIZATION = "personalization"
    ACCOUNT = "account"
    DOCTOR = "doctor"


class StepCategory(str, Enum):
    """Presentation category of a step, independent of its section."""

    NORMAL = "normal"
    USER_PROFILE = "user_profile"


class RiskLevel(str, Enum):
    """Risk signal carried by an option."""

    SAFE = "safe"
    REVIEW = "review"
    REJECT = "reject"


class AnswerType(str, Enum):
    """Kind of answer a step collects."""

    SINGLE = "single"
    MULTIPLE = "multiple"
    TEXT = "text"
    NUMBER = "number"
    INFO = "info"  # informational screen, nothing to answer


class LayoutVariant(str, Enum):
    """Ordering variant applied to a composed questionnaire."""

    LAYOUT_A = "layout_a"
    LAYOUT_B = "layout_b"
    LAYOUT_C = "layout_c"

    @property
    def display_name(self) -> str:
        return _LAYOUT_NAMES[self]


_LAYOUT_NAMES = {
    LayoutVariant.LAYOUT_A: "Narrative",
    LayoutVariant.LAYOUT_B: "Express",
    LayoutVariant.LAYOUT_C: "Clinical First",
}


class OptionSpec(BaseModel):
    """A selectable answer choice."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    label: str
    value: str | None = None
    risk_level: RiskLevel | None = None


class StepSpec(BaseModel):
    """A question or informational screen as authored in a template."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    title: str = ""
    description: str | None = None
    section_type: SectionType = SectionType.PERSONALIZATION
    category: StepCategory = StepCategory.NORMAL
    position: int = 0
    answer_type: AnswerType = AnswerType.TEXT
    required: bool = True
    is_dead_end: bool = False
    conditional_logic: dict[str, Any] | str | None = None
    options: tuple[OptionSpec, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def default_answer_type(cls, data: Any) -> Any:
        """Steps with options default to single-select, others to free text."""
        if isinstance(data, dict) and data.get("answer_type") is None:
            data = dict(data)
            data["answer_type"] = AnswerType.SINGLE if data.get("options") else AnswerType.TEXT
        return data

    @field_validator("category", mode="before")
    @classmethod
    def collapse_doctor_category(cls, value: Any) -> Any:
        """The retired ``doctor`` category is treated as ``normal``."""
        if value == "doctor":
            return StepCategory.NORMAL
        return value

    @field_validator("conditional_logic", mode="before")
    @classmethod
    def blank_logic_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def get_option(self, option_id: str) -> OptionSpec | None:
        """Get an option by its ID."""
        for option in self.options:
            if option.id == option_id:
                return option
        return None


class GlobalOwnership(BaseModel):
    """Template authored once and visible to every tenant."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["global"] = "global"


class TenantOwnership(BaseModel):
    """Template visible only to the owning tenant."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["tenant"] = "tenant"
    tenant_id: str = Field(min_length=1)


Ownership = Annotated[GlobalOwnership | TenantOwnership, Field(discriminator="kind")]


class TemplateSpec(BaseModel):
    """A reusable group of steps for one section type."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    description: str | None = None
    section_type: SectionType
    ownership: Ownership
    version: int = 1
    is_active: bool = True
    steps: tuple[StepSpec, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def convert_legacy_ownership(cls, data: Any) -> Any:
        """Accept the ``is_global``/``tenant_id`` pair used by stored records."""
        if not isinstance(data, dict) or "ownership" in data:
            return data
        if "is_global" not in data and "tenant_id" not in data:
            return data

        data = dict(data)
        is_global = bool(data.pop("is_global", False))
        tenant_id = data.pop("tenant_id", None)
        if is_global and tenant_id:
            raise ValueError("A template cannot be both global and tenant-owned")
        if not is_global and not tenant_id:
            raise ValueError("A template must be either global or owned by a tenant")
        if is_global:
            data["ownership"] = {"kind": "global"}
        else:
            data["ownership"] = {"kind": "tenant", "tenant_id": tenant_id}
        return data

    @property
    def is_global(self) -> bool:
        return isinstance(self.ownership, GlobalOwnership)

    def visible_to(self, tenant_id: str) -> bool:
        """Whether the given tenant may use this template."""
        if isinstance(self.ownership, GlobalOwnership):
            return True
        return self.ownership.tenant_id == tenant_id


class TemplateAssignment(BaseModel):
    """Binds the three section templates and a layout to a treatment."""

    model_config = ConfigDict(frozen=True)

    tenant_id: str = Field(min_length=1)
    treatment_id: str = Field(min_length=1)
    personalization_template_id: str | None = None
    account_template_id: str | None = None
    doctor_template_id: str | None = None
    layout: LayoutVariant = LayoutVariant.LAYOUT_A
    theme_id: str | None = None

    def template_id_for(self, section_type: SectionType) -> str | None:
        """Get the template ID assigned to a section slot."""
        return {
            SectionType.PERSONALIZATION: self.personalization_template_id,
            SectionType.ACCOUNT: self.account_template_id,
            SectionType.DOCTOR: self.doctor_template_id,
        }[section_type]


class Answer(BaseModel):
    """A recorded answer for one step."""

    model_config = ConfigDict(frozen=True)

    step_id: str
    value: AnswerValue

    @field_validator("value", mode="before")
    @classmethod
    def collect_selection(cls, v: Any) -> Any:
        return as_answer_value(v)
