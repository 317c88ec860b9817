"""Static scanner for the public declarations of a Python artifact.

Sources are parsed with :mod:`ast`; nothing from the artifact is imported or
executed.  The result is a list of module-level :class:`TypeDecl` trees.

Visibility rules:

* a module is public when none of its dotted segments starts with ``_``;
* a top-level name is public when listed in a static ``__all__``, or, without
  ``__all__``, when it does not start with ``_``;
* a class member is public when it does not start with ``_``; dunder methods
  are public too (``__init__`` becomes the constructor);
* anything decorated with an excluded annotation is dropped together with
  everything declared inside it.
"""

from __future__ import annotations

import ast
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from nodeform.apiscan.loader import SourceUnit, load_sources
from nodeform.apiscan.models import (
    ConstructorDecl,
    FieldDecl,
    MethodDecl,
    Parameter,
    ParameterKind,
    TypeDecl,
)
from nodeform.config import ScannerConfig
from nodeform.errors import SourceParseError

FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]

MODIFIER_ORDER: tuple[str, ...] = (
    "abstract",
    "static",
    "classmethod",
    "final",
    "async",
    "property",
    "setter",
    "deleter",
)

_DECORATOR_MODIFIERS: dict[str, str] = {
    "staticmethod": "static",
    "classmethod": "classmethod",
    "abstractmethod": "abstract",
    "abstractproperty": "abstract",
    "property": "property",
    "cached_property": "property",
    "final": "final",
}

_ACCESSOR_MODIFIERS: dict[str, str] = {
    "getter": "property",
    "setter": "setter",
    "deleter": "deleter",
}

_LITERAL_TYPES: dict[type, str] = {
    ast.List: "list",
    ast.Dict: "dict",
    ast.Tuple: "tuple",
    ast.Set: "set",
    ast.ListComp: "list",
    ast.DictComp: "dict",
    ast.SetComp: "set",
    ast.JoinedStr: "str",
}


class ScanRules(BaseModel):
    """Inclusion/exclusion rules applied while scanning."""

    model_config = ConfigDict(frozen=True)

    excluded_annotations: frozenset[str] = Field(
        default_factory=lambda: frozenset({"internal", "do_not_include"})
    )
    hidden_annotations: frozenset[str] = Field(default_factory=lambda: frozenset({"override"}))

    @classmethod
    def from_config(cls, config: ScannerConfig) -> "ScanRules":
        return cls(
            excluded_annotations=frozenset(config.excluded_annotations),
            hidden_annotations=frozenset(config.hidden_annotations),
        )


class ApiScanner:
    """Walks the sources of an artifact and collects public declarations."""

    def __init__(self, rules: ScanRules | None = None) -> None:
        self.rules = rules or ScanRules()

    # -- Public API --------------------------------------------------------

    def scan(self, artifact: str | Path) -> list[TypeDecl]:
        """Scan every public module of *artifact*."""
        return self.scan_units(load_sources(artifact))

    def scan_units(self, units: Iterable[SourceUnit]) -> list[TypeDecl]:
        modules = (self.scan_unit(unit) for unit in units)
        return [module for module in modules if module is not None]

    def scan_unit(self, unit: SourceUnit) -> TypeDecl | None:
        """Scan one module; ``None`` when the module itself is not public."""
        if not is_public_module(unit.module):
            return None
        try:
            tree = ast.parse(unit.source, filename=unit.path)
        except SyntaxError as exc:
            raise SourceParseError(unit.path, exc.lineno, exc.msg) from exc
        exported = static_all(tree)
        members, nested = self._walk(tree.body, unit.module, in_class=False, exported=exported)
        owner, _, name = unit.module.rpartition(".")
        return TypeDecl(
            owner=owner,
            name=name,
            category="module",
            members=tuple(members),
            nested=tuple(nested),
        )

    # -- Body walking ------------------------------------------------------

    def _walk(
        self,
        body: list[ast.stmt],
        owner: str,
        *,
        in_class: bool,
        exported: set[str] | None = None,
    ) -> tuple[list[FieldDecl | ConstructorDecl | MethodDecl], list[TypeDecl]]:
        fields: dict[str, FieldDecl] = {}
        members: list[FieldDecl | ConstructorDecl | MethodDecl] = []
        nested: list[TypeDecl] = []

        def visible(name: str) -> bool:
            if exported is not None:
                return name in exported
            return not name.startswith("_")

        for stmt in iter_statements(body):
            if isinstance(stmt, ast.ClassDef):
                if visible(stmt.name) and not self._is_excluded(stmt.decorator_list):
                    nested.append(self._scan_class(stmt, owner))

            elif isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
                if self._is_excluded(stmt.decorator_list):
                    continue
                if in_class and stmt.name == "__init__":
                    members.append(self._constructor(stmt, owner))
                    for field in self._instance_fields(stmt, owner):
                        _add_field(fields, field)
                elif visible(stmt.name) or (in_class and _is_dunder(stmt.name)):
                    members.append(self._method(stmt, owner, in_class=in_class))

            elif isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
                if visible(stmt.target.id):
                    _add_field(fields, _annotated_field(stmt.target.id, stmt.annotation, stmt.value, owner))

            elif isinstance(stmt, ast.Assign):
                for target, value in unpack_targets(stmt.targets, stmt.value):
                    if isinstance(target, ast.Name) and visible(target.id):
                        _add_field(
                            fields,
                            FieldDecl(owner=owner, name=target.id, type_name=infer_type(value)),
                        )

        return list(fields.values()) + members, nested

    def _scan_class(self, node: ast.ClassDef, owner: str) -> TypeDecl:
        qualified = f"{owner}.{node.name}"
        members, nested = self._walk(node.body, qualified, in_class=True)
        modifiers, annotations = self._decorators(node.decorator_list)

        bases = [ast.unparse(base) for base in node.bases]
        bases += [f"{kw.arg}={ast.unparse(kw.value)}" for kw in node.keywords if kw.arg]

        abstract = any(_last_name(b) == "ABC" for b in node.bases) or any(
            kw.arg == "metaclass" and _last_name(kw.value) == "ABCMeta" for kw in node.keywords
        )
        if abstract or any("abstract" in m.modifiers for m in members):
            modifiers.add("abstract")

        return TypeDecl(
            owner=owner,
            name=node.name,
            category="class",
            bases=tuple(bases),
            modifiers=order_modifiers(modifiers),
            annotations=tuple(annotations),
            members=tuple(members),
            nested=tuple(nested),
        )

    # -- Members -----------------------------------------------------------

    def _constructor(self, node: FunctionNode, owner: str) -> ConstructorDecl:
        _, annotations = self._decorators(node.decorator_list)
        return ConstructorDecl(
            owner=owner,
            annotations=tuple(annotations),
            parameters=parameters(node.args, drop_receiver=True),
        )

    def _method(self, node: FunctionNode, owner: str, *, in_class: bool) -> MethodDecl:
        modifiers, annotations = self._decorators(node.decorator_list)
        if isinstance(node, ast.AsyncFunctionDef):
            modifiers.add("async")
        return MethodDecl(
            owner=owner,
            name=node.name,
            modifiers=order_modifiers(modifiers),
            annotations=tuple(annotations),
            parameters=parameters(node.args, drop_receiver=in_class and "static" not in modifiers),
            returns=ast.unparse(node.returns) if node.returns is not None else None,
        )

    def _instance_fields(self, init: FunctionNode, owner: str) -> Iterator[FieldDecl]:
        """Public ``self.<name>`` attributes assigned directly in ``__init__``."""
        positional = init.args.posonlyargs + init.args.args
        if not positional:
            return
        receiver = positional[0].arg
        for stmt in iter_statements(init.body):
            if isinstance(stmt, ast.AnnAssign):
                name = _receiver_attribute(stmt.target, receiver)
                if name is not None:
                    yield _annotated_field(name, stmt.annotation, stmt.value, owner)
            elif isinstance(stmt, ast.Assign):
                for target, value in unpack_targets(stmt.targets, stmt.value):
                    name = _receiver_attribute(target, receiver)
                    if name is not None:
                        yield FieldDecl(owner=owner, name=name, type_name=infer_type(value))

    # -- Decorators --------------------------------------------------------

    def _is_excluded(self, decorators: list[ast.expr]) -> bool:
        return any(_last_name(dec) in self.rules.excluded_annotations for dec in decorators)

    def _decorators(self, decorators: list[ast.expr]) -> tuple[set[str], list[str]]:
        """Split decorators into modifiers and rendered annotations."""
        modifiers: set[str] = set()
        annotations: list[str] = []
        for dec in decorators:
            name = _last_name(dec)
            target = dec.func if isinstance(dec, ast.Call) else dec
            if name in _ACCESSOR_MODIFIERS and isinstance(target, ast.Attribute):
                modifiers.add(_ACCESSOR_MODIFIERS[name])
            elif name in _DECORATOR_MODIFIERS and not isinstance(dec, ast.Call):
                modifiers.add(_DECORATOR_MODIFIERS[name])
            elif name not in self.rules.hidden_annotations:
                annotations.append(f"@{ast.unparse(dec)}")
        return modifiers, annotations


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def is_public_module(module: str) -> bool:
    return not any(part.startswith("_") for part in module.split("."))


def static_all(tree: ast.Module) -> set[str] | None:
    """Names listed in a literal module-level ``__all__``, if there is one."""
    for stmt in tree.body:
        value: Optional[ast.expr] = None
        if isinstance(stmt, ast.Assign) and any(
            isinstance(t, ast.Name) and t.id == "__all__" for t in stmt.targets
        ):
            value = stmt.value
        elif (
            isinstance(stmt, ast.AnnAssign)
            and isinstance(stmt.target, ast.Name)
            and stmt.target.id == "__all__"
        ):
            value = stmt.value
        if isinstance(value, (ast.List, ast.Tuple)):
            return {
                elt.value
                for elt in value.elts
                if isinstance(elt, ast.Constant) and isinstance(elt.value, str)
            }
    return None


def iter_statements(body: list[ast.stmt]) -> Iterator[ast.stmt]:
    """Yield statements of *body*, descending into ``if`` and ``try`` blocks."""
    for stmt in body:
        if isinstance(stmt, ast.If):
            yield from iter_statements(stmt.body)
            yield from iter_statements(stmt.orelse)
        elif isinstance(stmt, ast.Try) or type(stmt).__name__ == "TryStar":
            yield from iter_statements(stmt.body)
            for handler in stmt.handlers:
                yield from iter_statements(handler.body)
            yield from iter_statements(stmt.orelse)
            yield from iter_statements(stmt.finalbody)
        else:
            yield stmt


def parameters(args: ast.arguments, *, drop_receiver: bool = False) -> tuple[Parameter, ...]:
    """Convert an ``ast.arguments`` node into ordered :class:`Parameter` models."""
    positional = [(a, ParameterKind.POSITIONAL_ONLY) for a in args.posonlyargs]
    positional += [(a, ParameterKind.POSITIONAL_OR_KEYWORD) for a in args.args]
    defaults: list[Optional[ast.expr]] = [None] * (len(positional) - len(args.defaults))
    defaults += list(args.defaults)

    result: list[Parameter] = []
    for index, ((arg, kind), default) in enumerate(zip(positional, defaults)):
        if drop_receiver and index == 0:
            continue
        result.append(_parameter(arg, kind, default))
    if args.vararg is not None:
        result.append(_parameter(args.vararg, ParameterKind.VAR_POSITIONAL, None))
    for arg, default in zip(args.kwonlyargs, args.kw_defaults):
        result.append(_parameter(arg, ParameterKind.KEYWORD_ONLY, default))
    if args.kwarg is not None:
        result.append(_parameter(args.kwarg, ParameterKind.VAR_KEYWORD, None))
    return tuple(result)


def unpack_targets(
    targets: Iterable[ast.expr], value: Optional[ast.expr]
) -> Iterator[tuple[ast.expr, Optional[ast.expr]]]:
    """Pair each assignment target with its value, descending into tuple unpacking.

    ``A, B = 1, 2`` yields ``(A, 1)`` and ``(B, 2)``.  When the value cannot be
    split element-wise the targets are paired with ``None``.
    """
    for target in targets:
        if isinstance(target, (ast.Tuple, ast.List)):
            values: list[Optional[ast.expr]] = [None] * len(target.elts)
            if (
                isinstance(value, (ast.Tuple, ast.List))
                and len(value.elts) == len(target.elts)
                and not any(isinstance(e, ast.Starred) for e in (*target.elts, *value.elts))
            ):
                values = list(value.elts)
            for element, element_value in zip(target.elts, values):
                if isinstance(element, ast.Starred):
                    yield from unpack_targets([element.value], None)
                else:
                    yield from unpack_targets([element], element_value)
        else:
            yield target, value


def infer_type(value: Optional[ast.expr]) -> str | None:
    """Best-effort type of a literal assignment value."""
    if value is None:
        return None
    if isinstance(value, ast.Constant):
        return "None" if value.value is None else type(value.value).__name__
    return _LITERAL_TYPES.get(type(value))


def order_modifiers(modifiers: Iterable[str]) -> tuple[str, ...]:
    present = set(modifiers)
    return tuple(m for m in MODIFIER_ORDER if m in present)


def _parameter(arg: ast.arg, kind: ParameterKind, default: Optional[ast.expr]) -> Parameter:
    return Parameter(
        name=arg.arg,
        kind=kind,
        annotation=ast.unparse(arg.annotation) if arg.annotation is not None else None,
        default=ast.unparse(default) if default is not None else None,
    )


def _annotated_field(
    name: str, annotation: ast.expr, value: Optional[ast.expr], owner: str
) -> FieldDecl:
    modifiers: list[str] = []
    inner: Optional[ast.expr] = annotation
    wrapper = _last_name(annotation.value if isinstance(annotation, ast.Subscript) else annotation)
    if wrapper in ("ClassVar", "Final"):
        modifiers.append("static" if wrapper == "ClassVar" else "final")
        inner = annotation.slice if isinstance(annotation, ast.Subscript) else None
    type_name = ast.unparse(inner) if inner is not None else infer_type(value)
    return FieldDecl(owner=owner, name=name, modifiers=order_modifiers(modifiers), type_name=type_name)


def _add_field(fields: dict[str, FieldDecl], field: FieldDecl) -> None:
    """Keep one field per name, preferring the first typed declaration."""
    if field.name.startswith("_"):
        return
    existing = fields.get(field.name)
    if existing is None or (existing.type_name is None and field.type_name is not None):
        fields[field.name] = field


def _receiver_attribute(target: ast.expr, receiver: str) -> str | None:
    if (
        isinstance(target, ast.Attribute)
        and isinstance(target.value, ast.Name)
        and target.value.id == receiver
    ):
        return target.attr
    return None


def _last_name(node: ast.expr) -> str:
    """``functools.cached_property`` -> ``cached_property``; calls use their callee."""
    if isinstance(node, ast.Call):
        node = node.func
    if isinstance(node, ast.Attribute):
        return node.attr
    if isinstance(node, ast.Name):
        return node.id
    return ""


def _is_dunder(name: str) -> bool:
    return len(name) > 4 and name.startswith("__") and name.endswith("__")
