"""Comparison of a fresh API report with its checked-in baseline.

The baseline is plain UTF-8 text with one signature per line, meant to live
in version control and be diffed with ordinary line-oriented tools.  Any line
added to or removed from it is a reportable difference.
"""

from __future__ import annotations

import difflib
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from nodeform.apiscan.renderer import report_text
from nodeform.errors import ApiDifferenceError
from nodeform.utils import write_text


class ApiComparison(BaseModel):
    """Outcome of comparing a fresh report with a baseline."""

    model_config = ConfigDict(frozen=True)

    baseline: Path | None = None
    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    diff: str = ""
    updated: bool = False

    @property
    def ok(self) -> bool:
        return self.updated or not (self.added or self.removed)


def read_baseline(path: Path) -> list[str]:
    """Return the baseline lines; a missing baseline reads as empty."""
    if not path.is_file():
        return []
    return [line for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def compare(baseline_lines: Iterable[str], fresh_lines: Iterable[str], baseline: Path | None = None) -> ApiComparison:
    """Line-level diff of *fresh_lines* against *baseline_lines*."""
    old = list(baseline_lines)
    new = list(fresh_lines)
    name = str(baseline) if baseline is not None else "baseline"
    diff_lines = list(
        difflib.unified_diff(old, new, fromfile=name, tofile="current", lineterm="")
    )
    added = [line[1:] for line in diff_lines if line.startswith("+") and not line.startswith("+++")]
    removed = [line[1:] for line in diff_lines if line.startswith("-") and not line.startswith("---")]
    return ApiComparison(
        baseline=baseline,
        added=added,
        removed=removed,
        diff="\n".join(diff_lines),
    )


def check_baseline(fresh_lines: Iterable[str], baseline: Path, *, update: bool = False) -> ApiComparison:
    """Compare against *baseline*, or overwrite it in update mode.

    In update mode the baseline is rewritten with the fresh report and the
    comparison always succeeds.
    """
    fresh = list(fresh_lines)
    result = compare(read_baseline(baseline), fresh, baseline)
    if update:
        write_text(baseline, report_text(fresh))
        return result.model_copy(update={"updated": True})
    return result


def verify(fresh_lines: Iterable[str], baseline: Path, *, update: bool = False) -> ApiComparison:
    """Like :func:`check_baseline` but raise when the API changed.

    Raises:
        ApiDifferenceError: Differences exist and *update* is false.
    """
    result = check_baseline(fresh_lines, baseline, update=update)
    if not result.ok:
        raise ApiDifferenceError(result.added, result.removed, result.diff)
    return result
