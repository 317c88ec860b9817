"""Unit tests for the command line entry point (nodeform.cli).

Tests cover:
- Argument parsing for ``deploy`` and ``scan``
- deploy: output directory, override file via --config-file and -P configFile
- scan: report writing, baseline match, difference, update mode
- Exit codes for failures
"""

from __future__ import annotations

import os

import pytest

from nodeform.cli import build_parser, main


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("NODEFORM_"):
            monkeypatch.delenv(key)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class TestParser:
    @pytest.mark.unit
    def test_deploy_arguments(self):
        args = build_parser().parse_args(
            ["deploy", "nodes.yml", "--docker", "-P", "configFile=a.conf", "-P", "x=1"]
        )
        assert args.command == "deploy"
        assert args.description == "nodes.yml"
        assert args.docker is True
        assert args.properties == ["configFile=a.conf", "x=1"]

    @pytest.mark.unit
    def test_scan_arguments(self):
        args = build_parser().parse_args(
            ["scan", "dist/shop.whl", "--exclude-annotation", "beta", "--update-baseline"]
        )
        assert args.command == "scan"
        assert args.exclude_annotation == ["beta"]
        assert args.update_baseline is True

    @pytest.mark.unit
    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


# ---------------------------------------------------------------------------
# deploy
# ---------------------------------------------------------------------------


class TestDeployCommand:
    @pytest.mark.unit
    def test_deploy(self, deployment_yaml, tmp_path):
        out = tmp_path / "out"
        assert main(["deploy", str(deployment_yaml), "-o", str(out)]) == 0
        assert (out / "BankA" / "node.conf").is_file()
        assert (out / "NotaryService" / "node.conf").is_file()

    @pytest.mark.unit
    def test_config_file_property(self, deployment_yaml, tmp_path):
        out = tmp_path / "out"
        override = tmp_path / "override.conf"
        override.write_text("extra = 1\n")
        argv = ["deploy", str(deployment_yaml), "-o", str(out), "-P", f"configFile={override}"]
        assert main(argv) == 0
        assert (out / "BankA" / "node.conf").read_text().endswith("extra = 1\n")

    @pytest.mark.unit
    def test_config_file_option_wins_over_property(self, deployment_yaml, tmp_path):
        out = tmp_path / "out"
        prop = tmp_path / "prop.conf"
        prop.write_text("from_property = 1\n")
        option = tmp_path / "option.conf"
        option.write_text("from_option = 1\n")
        argv = [
            "deploy",
            str(deployment_yaml),
            "-o",
            str(out),
            "-P",
            f"configFile={prop}",
            "--config-file",
            str(option),
        ]
        assert main(argv) == 0
        text = (out / "BankA" / "node.conf").read_text()
        assert text.endswith("from_option = 1\n")
        assert "from_property" not in text

    @pytest.mark.unit
    def test_docker(self, deployment_yaml, tmp_path):
        out = tmp_path / "out"
        assert main(["deploy", str(deployment_yaml), "-o", str(out), "--docker"]) == 0
        assert (out / "docker-compose.yml").is_file()

    @pytest.mark.unit
    def test_missing_description(self, tmp_path):
        assert main(["deploy", str(tmp_path / "absent.yml"), "-o", str(tmp_path / "out")]) == 1

    @pytest.mark.unit
    def test_bad_property(self, deployment_yaml, tmp_path):
        argv = ["deploy", str(deployment_yaml), "-o", str(tmp_path / "out"), "-P", "novalue"]
        assert main(argv) == 1

    @pytest.mark.unit
    def test_unknown_bundle(self, deployment_yaml, tmp_path):
        text = deployment_yaml.read_text().replace("- project: workflows", "- project: missing")
        deployment_yaml.write_text(text)
        assert main(["deploy", str(deployment_yaml), "-o", str(tmp_path / "out")]) == 1


# ---------------------------------------------------------------------------
# scan
# ---------------------------------------------------------------------------


class TestScanCommand:
    @pytest.mark.unit
    def test_report_written(self, shop_package, shop_report, tmp_path):
        build = tmp_path / "build"
        assert main(["scan", str(shop_package), "--build-dir", str(build)]) == 0
        report = build / "api" / "shop.txt"
        assert report.read_text().splitlines() == shop_report

    @pytest.mark.unit
    def test_custom_name(self, shop_package, tmp_path):
        build = tmp_path / "build"
        argv = ["scan", str(shop_package), "--build-dir", str(build), "--name", "public.txt"]
        assert main(argv) == 0
        assert (build / "api" / "public.txt").is_file()

    @pytest.mark.unit
    def test_matching_baseline(self, shop_package, shop_report, tmp_path):
        baseline = tmp_path / "shop.api"
        baseline.write_text("\n".join(shop_report) + "\n")
        argv = ["scan", str(shop_package), "--build-dir", str(tmp_path / "b"), "--baseline", str(baseline)]
        assert main(argv) == 0

    @pytest.mark.unit
    def test_difference_fails(self, shop_package, shop_report, tmp_path):
        baseline = tmp_path / "shop.api"
        baseline.write_text("\n".join(shop_report[:-1]) + "\n")
        argv = ["scan", str(shop_package), "--build-dir", str(tmp_path / "b"), "--baseline", str(baseline)]
        assert main(argv) == 1

    @pytest.mark.unit
    def test_update_baseline(self, shop_package, shop_report, tmp_path):
        baseline = tmp_path / "api" / "shop.api"
        argv = [
            "scan",
            str(shop_package),
            "--build-dir",
            str(tmp_path / "b"),
            "--baseline",
            str(baseline),
            "--update-baseline",
        ]
        assert main(argv) == 0
        assert baseline.read_text().splitlines() == shop_report

    @pytest.mark.unit
    def test_baseline_from_env(self, shop_package, tmp_path, monkeypatch):
        baseline = tmp_path / "env.api"
        baseline.write_text("public module other\n")
        monkeypatch.setenv("NODEFORM_API_BASELINE", str(baseline))
        assert main(["scan", str(shop_package), "--build-dir", str(tmp_path / "b")]) == 1

    @pytest.mark.unit
    def test_extra_exclusion(self, shop_package, tmp_path):
        build = tmp_path / "build"
        argv = ["scan", str(shop_package), "--build-dir", str(build), "--exclude-annotation", "dataclass"]
        assert main(argv) == 0
        text = (build / "api" / "shop.txt").read_text()
        assert "shop.orders.Order" not in text
        assert "shop.orders.Base" in text

    @pytest.mark.unit
    def test_missing_artifact(self, tmp_path):
        argv = ["scan", str(tmp_path / "nothing"), "--build-dir", str(tmp_path / "b")]
        assert main(argv) == 1

    @pytest.mark.unit
    def test_unparsable_module(self, tmp_path, capsys):
        package = tmp_path / "legacy"
        package.mkdir()
        (package / "__init__.py").write_text("")
        (package / "old.py").write_text("print 'hello'\n")
        argv = ["scan", str(package), "--build-dir", str(tmp_path / "b")]
        assert main(argv) == 1
        assert "Cannot parse" in capsys.readouterr().out
