"""API scanner -- a stable text summary of an artifact's public surface.

Scans a package directory, module or wheel statically, renders one signature
per public declaration in a deterministic order, and compares the result with
a checked-in baseline.

Usage::

    from nodeform.apiscan import scan_artifact, verify

    lines = scan_artifact("dist/shop-1.0-py3-none-any.whl")
    verify(lines, Path("api/shop.txt"))          # raises ApiDifferenceError
    verify(lines, Path("api/shop.txt"), update=True)
"""

from nodeform.apiscan.baseline import ApiComparison, check_baseline, compare, read_baseline, verify
from nodeform.apiscan.models import (
    ConstructorDecl,
    Declaration,
    FieldDecl,
    MethodDecl,
    Parameter,
    ParameterKind,
    TypeDecl,
)
from nodeform.apiscan.renderer import render_declaration, render_report, report_text
from nodeform.apiscan.report import report_name, scan_artifact, write_report
from nodeform.apiscan.scanner import ApiScanner, ScanRules

__all__ = [
    "ApiComparison",
    "ApiScanner",
    "ConstructorDecl",
    "Declaration",
    "FieldDecl",
    "MethodDecl",
    "Parameter",
    "ParameterKind",
    "ScanRules",
    "TypeDecl",
    "check_baseline",
    "compare",
    "read_baseline",
    "render_declaration",
    "render_report",
    "report_name",
    "report_text",
    "scan_artifact",
    "verify",
    "write_report",
]
