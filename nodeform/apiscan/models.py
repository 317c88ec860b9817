"""Declaration models for the API scanner.

The public surface of an artifact is described by a closed union of frozen
Pydantic models, discriminated by their ``kind``:

* :class:`TypeDecl` -- a module or a class, holding its members and nested types;
* :class:`FieldDecl` -- a module constant or class attribute;
* :class:`ConstructorDecl` -- a class ``__init__``;
* :class:`MethodDecl` -- a function or method.

All models carry only static shape (names, modifiers, annotations, parameter
and return types as source text), so rendering them is a pure function.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ParameterKind(str, Enum):
    """How a parameter is bound at the call site."""
    POSITIONAL_ONLY = "positional_only"
    POSITIONAL_OR_KEYWORD = "positional_or_keyword"
    VAR_POSITIONAL = "var_positional"
    KEYWORD_ONLY = "keyword_only"
    VAR_KEYWORD = "var_keyword"


class Parameter(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    kind: ParameterKind = ParameterKind.POSITIONAL_OR_KEYWORD
    annotation: Optional[str] = None
    default: Optional[str] = None


class _Declaration(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str = Field(description="Qualified name of the enclosing type or module")
    name: str
    modifiers: tuple[str, ...] = ()
    annotations: tuple[str, ...] = ()


class FieldDecl(_Declaration):
    kind: Literal["field"] = "field"
    type_name: Optional[str] = None


class ConstructorDecl(_Declaration):
    kind: Literal["constructor"] = "constructor"
    name: str = "__init__"
    parameters: tuple[Parameter, ...] = ()


class MethodDecl(_Declaration):
    kind: Literal["method"] = "method"
    parameters: tuple[Parameter, ...] = ()
    returns: Optional[str] = None


Member = Annotated[Union[FieldDecl, ConstructorDecl, MethodDecl], Field(discriminator="kind")]


class TypeDecl(_Declaration):
    """A module (``category="module"``) or a class."""

    kind: Literal["type"] = "type"
    category: Literal["module", "class"] = "class"
    bases: tuple[str, ...] = ()
    members: tuple[Member, ...] = ()
    nested: tuple["TypeDecl", ...] = ()

    @property
    def qualified_name(self) -> str:
        return f"{self.owner}.{self.name}" if self.owner else self.name


Declaration = Annotated[
    Union[TypeDecl, FieldDecl, ConstructorDecl, MethodDecl],
    Field(discriminator="kind"),
]

TypeDecl.model_rebuild()
