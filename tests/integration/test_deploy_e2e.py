"""Integration tests for the deploy and scan workflows.

These tests run the real loader, resolver, assembler and materializer
end-to-end against the sample deployment description and verify that the
generated node directories contain well-formed files.  The API scanner is
exercised against the sample package, from fresh report to baseline check.

No external services (Docker, a JVM) are required.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from nodeform.apiscan import scan_artifact, verify, write_report
from nodeform.config import Config
from nodeform.errors import ApiDifferenceError
from nodeform.node import Deployer, load_deployment


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _tree(root: Path) -> dict[str, bytes]:
    """Relative path -> content for every file below *root*."""
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

@pytest.mark.integration
class TestDeployWorkflow:
    """Assemble a two-node deployment from YAML."""

    def test_local_deployment(self, deployment_yaml: Path, tool_config: Config) -> None:
        Deployer(tool_config).deploy(load_deployment(deployment_yaml))
        tree = _tree(tool_config.output_dir)

        assert set(tree) == {
            "NotaryService/node.conf",
            "NotaryService/drivers/jolokia-jvm-1.6.0-agent.jar",
            "NotaryService/cordapps/my-cordapp-0.1.jar",
            "BankA/node.conf",
            "BankA/web-server.conf",
            "BankA/corda-webserver.jar",
            "BankA/drivers/jolokia-jvm-1.6.0-agent.jar",
            "BankA/cordapps/app-1.0.jar",
            "BankA/cordapps/workflows-0.1.jar",
            "BankA/cordapps/my-cordapp-0.1.jar",
            "BankA/cordapps/config/app-1.0.conf",
        }, f"Unexpected layout: {sorted(tree)}"

        bank_conf = tree["BankA/node.conf"].decode("utf-8")
        assert bank_conf.startswith("database {\n    runMigration=true\n}\n"), bank_conf
        assert 'myLegalName="O=Bank A,L=London,C=GB"' in bank_conf
        assert 'type="INMEMORY"' in bank_conf

        web_conf = tree["BankA/web-server.conf"].decode("utf-8")
        assert 'rpcAddress="localhost:10006"' in web_conf
        assert "security {" in web_conf

    def test_redeploy_is_byte_identical(self, deployment_yaml: Path, tool_config: Config) -> None:
        deployment = load_deployment(deployment_yaml)
        Deployer(tool_config).deploy(deployment)
        first = _tree(tool_config.output_dir)
        Deployer(tool_config).deploy(deployment)
        assert _tree(tool_config.output_dir) == first

    def test_docker_deployment(self, deployment_yaml: Path, tool_config: Config) -> None:
        Deployer(tool_config).deploy(load_deployment(deployment_yaml), docker=True)
        root = tool_config.output_dir

        compose = yaml.safe_load((root / "docker-compose.yml").read_text())
        for service in compose["services"].values():
            node_dir = root / service["build"]
            assert (node_dir / "Dockerfile").is_file(), f"Missing Dockerfile in {node_dir}"
            assert (node_dir / "run-corda.sh").is_file(), f"Missing run-corda.sh in {node_dir}"
            conf = (node_dir / "node.conf").read_text()
            assert f'p2pAddress="{service["container_name"]}:' in conf


@pytest.mark.integration
class TestApiWorkflow:
    """Generate a report, approve it, then detect a change."""

    def test_baseline_lifecycle(self, shop_package: Path, tmp_path: Path) -> None:
        baseline = tmp_path / "api" / "shop.txt"

        # First run approves the current surface
        assert verify(scan_artifact(shop_package), baseline, update=True).updated
        assert verify(scan_artifact(shop_package), baseline).ok

        # Adding a public function is detected
        (shop_package / "extra.py").write_text("def added(x: int) -> int:\n    return x\n")
        with pytest.raises(ApiDifferenceError) as exc_info:
            verify(scan_artifact(shop_package), baseline)
        assert exc_info.value.added == [
            "public module shop.extra",
            "public def shop.extra.added(x: int) -> int",
        ]
        assert exc_info.value.removed == []

    def test_wheel_and_directory_reports_agree(
        self, shop_package: Path, shop_wheel: Path, tmp_path: Path
    ) -> None:
        from_dir = write_report(scan_artifact(shop_package), tmp_path / "dir.txt")
        from_wheel = write_report(scan_artifact(shop_wheel), tmp_path / "wheel.txt")
        assert from_dir.read_bytes() == from_wheel.read_bytes()
