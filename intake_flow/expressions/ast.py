"""Closed expression tree for step conditional logic.

Leaf predicates read one step's answer; combinators join predicates. Nodes
are discriminated by ``op`` so a stored JSON payload maps onto exactly one
node type.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def referenced_steps(self) -> frozenset[str]:
        raise NotImplementedError


class _Predicate(_Node):
    step: str = Field(min_length=1)

    def referenced_steps(self) -> frozenset[str]:
        return frozenset({self.step})


class Equals(_Predicate):
    """Single answer equals ``value``, or a multi-select includes it."""

    op: Literal["equals"] = "equals"
    value: str | int | float


class Contains(_Predicate):
    """Multi-select includes ``value``, or free text contains it."""

    op: Literal["contains"] = "contains"
    value: str | int | float


class Excludes(_Predicate):
    """Step is answered and its answer does not contain ``value``."""

    op: Literal["excludes"] = "excludes"
    value: str | int | float


class Compare(_Predicate):
    """Numeric comparison of a step's answer against ``value``."""

    op: Literal["compare"] = "compare"
    operator: Literal["<", "<=", ">", ">=", "==", "!="]
    value: float


class And(_Node):
    op: Literal["and"] = "and"
    args: tuple["Expression", ...] = Field(min_length=1)

    def referenced_steps(self) -> frozenset[str]:
        return frozenset().union(*(arg.referenced_steps() for arg in self.args))


class Or(_Node):
    op: Literal["or"] = "or"
    args: tuple["Expression", ...] = Field(min_length=1)

    def referenced_steps(self) -> frozenset[str]:
        return frozenset().union(*(arg.referenced_steps() for arg in self.args))


class Not(_Node):
    op: Literal["not"] = "not"
    arg: "Expression"

    def referenced_steps(self) -> frozenset[str]:
        return self.arg.referenced_steps()


Expression = Annotated[
    Equals | Contains | Excludes | Compare | And | Or | Not,
    Field(discriminator="op"),
]

And.model_rebuild()
Or.model_rebuild()
Not.model_rebuild()
