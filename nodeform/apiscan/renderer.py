"""Signature rendering and deterministic report ordering.

Each declaration renders to exactly one line, e.g.::

    public module shop.orders
    @dataclass(frozen=True) public class shop.orders.Order(Base)
    public static field shop.orders.Order.LIMIT: int
    public constructor shop.orders.Order(id: int, note: str = '')
    public async def shop.orders.Order.submit(*, retries: int = 3) -> bool

Types are emitted depth-first in lexical order of their qualified name; each
type line is followed by its fields, constructors and methods, every group
sorted by its rendered text.  Receiver parameters (``self`` / ``cls``) never
appear in signatures.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from nodeform.apiscan.models import (
    ConstructorDecl,
    FieldDecl,
    MethodDecl,
    Parameter,
    ParameterKind,
    TypeDecl,
)

Renderable = TypeDecl | FieldDecl | ConstructorDecl | MethodDecl


def render_declaration(decl: Renderable) -> str:
    """Render one declaration as a single signature line."""
    if not isinstance(decl, (TypeDecl, FieldDecl, ConstructorDecl, MethodDecl)):
        raise TypeError(f"Not a declaration: {decl!r}")
    prefix = _prefix(decl)
    if isinstance(decl, TypeDecl):
        if decl.category == "module":
            return f"{prefix}module {decl.qualified_name}"
        bases = f"({', '.join(decl.bases)})" if decl.bases else ""
        return f"{prefix}class {decl.qualified_name}{bases}"
    if isinstance(decl, FieldDecl):
        type_part = f": {decl.type_name}" if decl.type_name else ""
        return f"{prefix}field {decl.owner}.{decl.name}{type_part}"
    if isinstance(decl, ConstructorDecl):
        return f"{prefix}constructor {decl.owner}({render_parameters(decl.parameters)})"
    returns = f" -> {decl.returns}" if decl.returns else ""
    return f"{prefix}def {decl.owner}.{decl.name}({render_parameters(decl.parameters)}){returns}"


def render_parameters(params: Iterable[Parameter]) -> str:
    """Render a parameter list the way it is written in a ``def``."""
    rendered: list[str] = []
    params = list(params)
    has_var_positional = any(p.kind is ParameterKind.VAR_POSITIONAL for p in params)
    positional_only_open = False
    keyword_marker_done = has_var_positional

    for param in params:
        if param.kind is ParameterKind.POSITIONAL_ONLY:
            positional_only_open = True
        elif positional_only_open:
            rendered.append("/")
            positional_only_open = False
        if param.kind is ParameterKind.KEYWORD_ONLY and not keyword_marker_done:
            rendered.append("*")
            keyword_marker_done = True
        rendered.append(_render_parameter(param))

    if positional_only_open:
        rendered.append("/")
    return ", ".join(rendered)


def iter_types(modules: Iterable[TypeDecl]) -> list[TypeDecl]:
    """Flatten type trees and order them depth-first by qualified name."""
    flat: list[TypeDecl] = []

    def visit(decl: TypeDecl) -> None:
        flat.append(decl)
        for child in decl.nested:
            visit(child)

    for module in modules:
        visit(module)
    return sorted(flat, key=lambda t: (t.qualified_name.split("."), t.category))


def iter_signatures(modules: Iterable[TypeDecl]) -> Iterator[str]:
    """Yield every signature line in report order."""
    for decl in iter_types(modules):
        yield render_declaration(decl)
        for kind in (FieldDecl, ConstructorDecl, MethodDecl):
            group = [render_declaration(m) for m in decl.members if isinstance(m, kind)]
            yield from sorted(group)


def render_report(modules: Iterable[TypeDecl]) -> list[str]:
    """The full, de-duplicated report as a list of lines."""
    seen: set[str] = set()
    lines: list[str] = []
    for line in iter_signatures(modules):
        if line not in seen:
            seen.add(line)
            lines.append(line)
    return lines


def report_text(lines: Iterable[str]) -> str:
    """Join report lines into the on-disk text form (trailing newline)."""
    lines = list(lines)
    return "\n".join(lines) + "\n" if lines else ""


def _prefix(decl: Renderable) -> str:
    parts = [*decl.annotations, "public", *decl.modifiers]
    return " ".join(parts) + " "


def _render_parameter(param: Parameter) -> str:
    stars = {ParameterKind.VAR_POSITIONAL: "*", ParameterKind.VAR_KEYWORD: "**"}.get(param.kind, "")
    text = f"{stars}{param.name}"
    if param.annotation:
        text += f": {param.annotation}"
    if param.default is not None:
        text += f" = {param.default}" if param.annotation else f"={param.default}"
    return text
