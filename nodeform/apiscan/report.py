"""High-level API report generation.

Ties scanning, rendering and baseline handling together::

    lines = scan_artifact("dist/shop-1.0-py3-none-any.whl")
    write_report(lines, config.api_dir / "shop-1.0.txt")
    verify(lines, Path("api/shop.txt"))
"""

from __future__ import annotations

from pathlib import Path

from nodeform.apiscan.renderer import render_report, report_text
from nodeform.apiscan.scanner import ApiScanner, ScanRules
from nodeform.utils import write_text


def scan_artifact(artifact: str | Path, rules: ScanRules | None = None) -> list[str]:
    """Scan *artifact* and return its report lines in report order."""
    return render_report(ApiScanner(rules).scan(artifact))


def write_report(lines: list[str], destination: Path) -> Path:
    """Write report lines as UTF-8 text, one signature per line."""
    return write_text(destination, report_text(lines))


def report_name(artifact: str | Path) -> str:
    """Default report file name for an artifact.

    ``dist/shop-1.0-py3-none-any.whl`` -> ``shop-1.0.txt``; a directory or
    module keeps its own name.
    """
    path = Path(artifact)
    if path.suffix == ".whl":
        parts = path.stem.split("-")
        return "-".join(parts[:2]) + ".txt"
    return f"{path.stem if path.is_file() else path.name}.txt"
