"""Tests for Jinja2 template rendering (nodeform.node.templates).

Covers:
- Bundled and custom template directories
- File rendering
- StrictUndefined on missing context keys
"""

from __future__ import annotations

import jinja2
import pytest

from nodeform.node.templates import TemplateRenderer

pytestmark = pytest.mark.unit


class TestTemplateRenderer:
    def test_bundled_run_script(self):
        text = TemplateRenderer().render("run-corda.sh.j2", {"node_name": "BankA", "agent_jar": None})
        assert text.startswith("#!/bin/sh")

    def test_missing_template(self, tmp_path):
        with pytest.raises(jinja2.TemplateNotFound):
            TemplateRenderer(tmp_path / "none").render("Dockerfile.j2", {})

    def test_strict_undefined(self):
        with pytest.raises(jinja2.UndefinedError):
            TemplateRenderer().render("Dockerfile.j2", {})

    def test_render_to_file(self, tmp_path):
        target = TemplateRenderer().render_to_file(
            "Dockerfile.j2",
            tmp_path / "node" / "Dockerfile",
            {"base_image": "openjdk:8", "ports": []},
        )
        text = target.read_text()
        assert text.startswith("FROM openjdk:8\n")
        assert "EXPOSE" not in text

    def test_custom_template_dir(self, tmp_path):
        (tmp_path / "hello.j2").write_text("hi {{ who }}\n")
        assert TemplateRenderer(tmp_path).render("hello.j2", {"who": "node"}) == "hi node\n"
