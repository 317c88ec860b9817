"""Immutable layered configuration documents and their HOCON rendering.

A :class:`ConfigDocument` is built by folding an ordered list of overlays
left to right.  Later overlays win key for key; nested objects are merged
recursively.  Dotted keys such as ``"sshd.port"`` address nested paths, the
way HOCON treats them.  Every operation returns a new document.
"""

from __future__ import annotations

import copy
import json
import re
from collections.abc import Iterable, Mapping
from functools import reduce
from typing import Any

INDENT = "    "

WEB_ADDRESS = "webAddress"
USE_HTTPS = "useHTTPS"
DEV_MODE = "devMode"

# Keys copied verbatim into web-server.conf.
WEB_SERVER_KEYS: tuple[str, ...] = (
    "webAddress",
    "myLegalName",
    "security",
    "useHTTPS",
    "baseDirectory",
    "keyStorePassword",
    "trustStorePassword",
    "exportJMXto",
    "custom",
)

_UNQUOTED_KEY = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")
_MISSING = object()


class ConfigDocument:
    """An immutable nested configuration mapping."""

    __slots__ = ("_root",)

    def __init__(self, root: Mapping[str, Any] | None = None) -> None:
        self._root: dict[str, Any] = expand_paths(root or {})

    # -- Construction ------------------------------------------------------

    @classmethod
    def empty(cls) -> "ConfigDocument":
        return cls()

    @classmethod
    def from_layers(cls, layers: Iterable[Mapping[str, Any] | None]) -> "ConfigDocument":
        """Fold *layers* left to right into one document; ``None`` layers are skipped."""
        return reduce(lambda doc, layer: doc.with_overlay(layer), layers, cls.empty())

    def with_overlay(self, overlay: Mapping[str, Any] | None) -> "ConfigDocument":
        """Return a copy with *overlay* merged on top (overlay keys win)."""
        if not overlay:
            return self
        return ConfigDocument(deep_merge(self._root, expand_paths(overlay)))

    def with_value(self, path: str, value: Any) -> "ConfigDocument":
        """Return a copy with the value at dotted *path* replaced."""
        root = copy.deepcopy(self._root)
        keys = path.split(".")
        node = root
        for key in keys[:-1]:
            child = node.get(key)
            if not isinstance(child, dict):
                child = {}
                node[key] = child
            node = child
        node[keys[-1]] = copy.deepcopy(value)
        return ConfigDocument(root)

    def without_path(self, path: str) -> "ConfigDocument":
        """Return a copy with dotted *path* removed (no-op when absent)."""
        if self._lookup(path) is _MISSING:
            return self
        root = copy.deepcopy(self._root)
        keys = path.split(".")
        node = root
        for key in keys[:-1]:
            node = node[key]
        del node[keys[-1]]
        return ConfigDocument(root)

    # -- Queries -----------------------------------------------------------

    def get(self, path: str, default: Any = None) -> Any:
        value = self._lookup(path)
        if value is _MISSING:
            return default
        return copy.deepcopy(value)

    def has_path(self, path: str) -> bool:
        """``True`` when *path* exists and is not ``null``."""
        value = self._lookup(path)
        return value is not _MISSING and value is not None

    def keys(self) -> list[str]:
        return sorted(self._root)

    def as_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._root)

    def _lookup(self, path: str) -> Any:
        node: Any = self._root
        for key in path.split("."):
            if not isinstance(node, dict) or key not in node:
                return _MISSING
            node = node[key]
        return node

    # -- Views -------------------------------------------------------------

    def node_only(self) -> "ConfigDocument":
        """The document without web-server keys, defaulting ``devMode`` to true."""
        doc = self.without_path(WEB_ADDRESS).without_path(USE_HTTPS)
        if not doc.has_path(DEV_MODE):
            doc = doc.with_value(DEV_MODE, True)
        return doc

    def web_server_only(self) -> "ConfigDocument":
        """Project the allow-listed keys the web server needs."""
        view: dict[str, Any] = {}
        for key in WEB_SERVER_KEYS:
            if self.has_path(key):
                view[key] = self.get(key)
        if self.has_path("rpcSettings.address"):
            view["rpcAddress"] = self.get("rpcSettings.address")
        elif self.has_path("rpcAddress"):
            view["rpcAddress"] = self.get("rpcAddress")
        return ConfigDocument(view)

    # -- Rendering ---------------------------------------------------------

    def render(self) -> str:
        """Render as formatted, comment-free, non-JSON HOCON."""
        return render_hocon(self._root)

    # -- Dunder ------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfigDocument):
            return NotImplemented
        return self._root == other._root

    def __repr__(self) -> str:
        return f"ConfigDocument({self._root!r})"


# ---------------------------------------------------------------------------
# Merge helpers
# ---------------------------------------------------------------------------


def expand_paths(mapping: Mapping[str, Any]) -> dict[str, Any]:
    """Turn dotted keys into nested objects, recursively.

    ``{"sshd.port": 2222}`` becomes ``{"sshd": {"port": 2222}}``.  Values inside
    lists are left untouched.
    """
    expanded: dict[str, Any] = {}
    for key, value in mapping.items():
        if isinstance(value, Mapping):
            value = expand_paths(value)
        else:
            value = copy.deepcopy(value)
        parts = str(key).split(".")
        nested: Any = value
        for part in reversed(parts[1:]):
            nested = {part: nested}
        expanded = deep_merge(expanded, {parts[0]: nested})
    return expanded


def deep_merge(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    """Merge *overlay* onto *base*; objects merge recursively, anything else is replaced."""
    merged = copy.deepcopy(dict(base))
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


# ---------------------------------------------------------------------------
# HOCON rendering
# ---------------------------------------------------------------------------


def render_hocon(root: Mapping[str, Any]) -> str:
    """Render a nested mapping as HOCON text with sorted keys."""
    lines: list[str] = []
    _render_fields(root, 0, lines)
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def _render_fields(obj: Mapping[str, Any], depth: int, lines: list[str]) -> None:
    indent = INDENT * depth
    for key in sorted(obj):
        value_lines = _render_value(obj[key], depth)
        separator = " " if isinstance(obj[key], Mapping) else "="
        lines.append(f"{indent}{_render_key(key)}{separator}{value_lines[0]}")
        lines.extend(value_lines[1:])


def _render_value(value: Any, depth: int) -> list[str]:
    """Lines of *value*; the first is unindented, the rest carry full indentation."""
    indent = INDENT * depth
    if isinstance(value, Mapping):
        lines = ["{"]
        _render_fields(value, depth + 1, lines)
        lines.append(f"{indent}}}")
        return lines
    if isinstance(value, (list, tuple)):
        if not value:
            return ["[]"]
        lines = ["["]
        item_indent = INDENT * (depth + 1)
        for index, item in enumerate(value):
            item_lines = _render_value(item, depth + 1)
            item_lines[0] = item_indent + item_lines[0]
            if index < len(value) - 1:
                item_lines[-1] += ","
            lines.extend(item_lines)
        lines.append(f"{indent}]")
        return lines
    return [_render_scalar(value)]


def _render_scalar(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    return json.dumps(str(value), ensure_ascii=False)


def _render_key(key: str) -> str:
    if _UNQUOTED_KEY.match(key):
        return key
    return json.dumps(key, ensure_ascii=False)
