"""Exceptions raised by the node assembler and the API scanner.

Every error aborts only the operation that raised it.  Nothing here is
retried: re-running with the same inputs would reproduce the same failure.
File-system problems are not wrapped and surface as the built-in ``OSError``
family.
"""

from __future__ import annotations


class NodeformError(Exception):
    """Base class for every failure reported by nodeform."""


class BundleNotFoundError(NodeformError):
    """No candidate artifact matches a declared bundle."""

    def __init__(self, bundle: str) -> None:
        self.bundle = bundle
        super().__init__(f"Cordapp {bundle} not found in cordapps configuration.")


class AmbiguousBundleError(NodeformError):
    """More than one distinct candidate artifact matches a declared bundle."""

    def __init__(self, bundle: str, candidates: list[str] | None = None) -> None:
        self.bundle = bundle
        self.candidates = candidates or []
        message = f"Multiple files found for {bundle}"
        if self.candidates:
            message += ": " + ", ".join(self.candidates)
        super().__init__(message)


class MissingRequiredFieldError(NodeformError):
    """A required value (e.g. the node name) was never provided."""

    def __init__(self, field: str, context: str = "") -> None:
        self.field = field
        self.context = context
        where = f" for {context}" if context else ""
        super().__init__(f"Missing required field '{field}'{where}")


class ApiDifferenceError(NodeformError):
    """The freshly scanned API differs from the approved baseline."""

    def __init__(self, added: list[str], removed: list[str], diff: str = "") -> None:
        self.added = added
        self.removed = removed
        self.diff = diff
        super().__init__(
            f"API differs from baseline: {len(added)} added, {len(removed)} removed"
        )


class SourceParseError(NodeformError):
    """A scanned module is not valid Python source."""

    def __init__(self, path: str, line: int | None = None, reason: str = "") -> None:
        self.path = path
        self.line = line
        self.reason = reason
        where = f"{path}:{line}" if line is not None else path
        detail = f": {reason}" if reason else ""
        super().__init__(f"Cannot parse {where}{detail}")
