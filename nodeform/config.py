"""nodeform configuration.

Centralised, typed tool configuration for both the node assembler and the API
scanner.  All settings use Pydantic v2 models so they are validated at
construction time and can be serialised to/from JSON or environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

DEFAULT_JOLOKIA_VERSION = "1.6.0"
DEFAULT_WEBSERVER_ARTIFACT = "corda-webserver"
DEFAULT_NODE_ARTIFACT = "corda"
DEFAULT_DOCKER_IMAGE = "openjdk:8u151-jre-alpine"


class ScannerConfig(BaseModel):
    """Inclusion/exclusion rules and baseline handling for the API scanner."""

    excluded_annotations: list[str] = Field(
        default_factory=lambda: ["internal", "do_not_include"],
        description="Decorators that remove a declaration (and its members) from the report",
    )
    hidden_annotations: list[str] = Field(
        default_factory=lambda: ["override"],
        description="Decorators kept out of rendered signatures",
    )
    baseline: Path | None = Field(
        default=None, description="Checked-in baseline to compare against"
    )
    update_baseline: bool = Field(
        default=False, description="Overwrite the baseline instead of failing on differences"
    )


class Config(BaseModel):
    """Global nodeform configuration.

    Instances are usually created once by the CLI entry point and passed to
    ``Deployer`` or to the API scanner helpers.
    """

    output_dir: Path = Field(default=Path("./build/nodes"))
    build_dir: Path = Field(default=Path("./build"))
    config_file: Path | None = Field(
        default=None,
        description="Override file appended to every node.conf; wins over per-node settings",
    )
    jolokia_version: str = Field(default=DEFAULT_JOLOKIA_VERSION)
    webserver_artifact: str = Field(default=DEFAULT_WEBSERVER_ARTIFACT)
    node_artifact: str = Field(
        default=DEFAULT_NODE_ARTIFACT,
        description="Runtime artifact copied to corda.jar for Docker deployments",
    )
    docker_image: str = Field(default=DEFAULT_DOCKER_IMAGE)
    agent_port: int = Field(default=7005, ge=1, le=65535)
    scanner: ScannerConfig = Field(default_factory=ScannerConfig)

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    @property
    def api_dir(self) -> Path:
        """Directory receiving freshly generated API reports."""
        return self.build_dir / "api"

    @property
    def tmp_dir(self) -> Path:
        """Scratch directory inside the build directory."""
        return self.build_dir / "tmp"

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file. Defaults to ``<build_dir>/nodeform.json``.

        Returns:
            The path where the file was written.
        """
        target = path or (self.build_dir / "nodeform.json")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            NODEFORM_OUTPUT_DIR, NODEFORM_BUILD_DIR, NODEFORM_CONFIG_FILE,
            NODEFORM_JOLOKIA_VERSION, NODEFORM_API_BASELINE,
            NODEFORM_UPDATE_API_BASELINE.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("NODEFORM_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["NODEFORM_OUTPUT_DIR"])
        if os.environ.get("NODEFORM_BUILD_DIR"):
            kwargs["build_dir"] = Path(os.environ["NODEFORM_BUILD_DIR"])
        if os.environ.get("NODEFORM_CONFIG_FILE"):
            kwargs["config_file"] = Path(os.environ["NODEFORM_CONFIG_FILE"])
        if os.environ.get("NODEFORM_JOLOKIA_VERSION"):
            kwargs["jolokia_version"] = os.environ["NODEFORM_JOLOKIA_VERSION"]

        scanner_kwargs: dict[str, Any] = {}
        if os.environ.get("NODEFORM_API_BASELINE"):
            scanner_kwargs["baseline"] = Path(os.environ["NODEFORM_API_BASELINE"])
        update = os.environ.get("NODEFORM_UPDATE_API_BASELINE", "")
        if update.strip().lower() in ("1", "true", "yes"):
            scanner_kwargs["update_baseline"] = True

        return cls(scanner=ScannerConfig(**scanner_kwargs), **kwargs)

    def ensure_directories(self) -> None:
        """Create the directories the tasks write into."""
        for directory in (self.output_dir, self.build_dir, self.api_dir):
            directory.mkdir(parents=True, exist_ok=True)
