"""Pydantic v2 models and builders for node deployments.

Defines the declarative description of a node (``NodeSpec``), the bundles
installed into it (``BundleRef`` / ``ResolvedBundle``), the candidate artifact
pool produced by dependency resolution (``Artifact``), and the whole
deployment read from YAML (``Deployment``).  ``NodeBuilder`` and
``RpcSettingsBuilder`` offer a setter-style way to assemble the same immutable
models from code.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from nodeform.errors import MissingRequiredFieldError
from nodeform.utils import container_name, organisation_name

DEFAULT_HOST = "localhost"


def _port_of(address: str | None) -> int | None:
    if not address or ":" not in address:
        return None
    try:
        return int(address.rsplit(":", 1)[1])
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# RPC settings
# ---------------------------------------------------------------------------


class RpcSettings(BaseModel):
    """RPC endpoint settings of a node.

    ``port`` / ``admin_port`` may be given instead of full addresses, in which
    case the address is bound to ``localhost``.
    """

    model_config = ConfigDict(frozen=True)

    address: Optional[str] = None
    admin_address: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _ports_to_addresses(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        port = data.pop("port", None)
        admin_port = data.pop("admin_port", None)
        if port is not None and not data.get("address"):
            data["address"] = f"{DEFAULT_HOST}:{port}"
        if admin_port is not None and not data.get("admin_address"):
            data["admin_address"] = f"{DEFAULT_HOST}:{admin_port}"
        return data

    @property
    def port(self) -> int | None:
        return _port_of(self.address)

    @property
    def admin_port(self) -> int | None:
        return _port_of(self.admin_address)

    def is_empty(self) -> bool:
        return self.address is None and self.admin_address is None

    def to_config(self) -> dict[str, Any]:
        """Return the ``rpcSettings`` block as it appears in ``node.conf``."""
        block: dict[str, Any] = {}
        if self.address is not None:
            block["address"] = self.address
        if self.admin_address is not None:
            block["adminAddress"] = self.admin_address
        return block


class RpcSettingsBuilder:
    """Setter-style builder for :class:`RpcSettings`."""

    def __init__(self) -> None:
        self._address: str | None = None
        self._admin_address: str | None = None

    def address(self, address: str) -> "RpcSettingsBuilder":
        self._address = address
        return self

    def port(self, port: int, host: str = DEFAULT_HOST) -> "RpcSettingsBuilder":
        self._address = f"{host}:{port}"
        return self

    def admin_address(self, address: str) -> "RpcSettingsBuilder":
        self._admin_address = address
        return self

    def admin_port(self, port: int, host: str = DEFAULT_HOST) -> "RpcSettingsBuilder":
        self._admin_address = f"{host}:{port}"
        return self

    def build(self) -> RpcSettings:
        return RpcSettings(address=self._address, admin_address=self._admin_address)


# ---------------------------------------------------------------------------
# Bundles and artifacts
# ---------------------------------------------------------------------------


class BundleRef(BaseModel):
    """A cordapp to install: a ``group:artifact:version`` coordinate or the
    output of another build unit, plus optional inline configuration text."""

    model_config = ConfigDict(frozen=True)

    coordinates: Optional[str] = None
    project: Optional[str] = None
    config: Optional[str] = None

    @model_validator(mode="after")
    def _exactly_one_source(self) -> "BundleRef":
        if (self.coordinates is None) == (self.project is None):
            raise ValueError("a cordapp needs exactly one of 'coordinates' or 'project'")
        if self.coordinates is not None and self.coordinates.count(":") != 2:
            raise ValueError(
                f"cordapp coordinates must look like group:artifact:version, got {self.coordinates!r}"
            )
        return self

    @property
    def key(self) -> str:
        """Identity used for de-duplication."""
        if self.coordinates is not None:
            return self.coordinates
        return f"project:{self.project}"

    @property
    def display_name(self) -> str:
        return self.coordinates if self.coordinates is not None else str(self.project)


class Artifact(BaseModel):
    """One file of the candidate pool handed over by dependency resolution.

    Accepts either ``group``/``name``/``version`` or a single ``coordinates``
    string.  ``project`` marks the output of a local build unit.
    """

    model_config = ConfigDict(frozen=True)

    group: str = ""
    name: str = ""
    version: str = ""
    path: Path
    project: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _split_coordinates(cls, data: Any) -> Any:
        if isinstance(data, dict) and "coordinates" in data:
            data = dict(data)
            parts = str(data.pop("coordinates")).split(":")
            if len(parts) != 3:
                raise ValueError(f"artifact coordinates must have three parts: {parts!r}")
            data.setdefault("group", parts[0])
            data.setdefault("name", parts[1])
            data.setdefault("version", parts[2])
        return data

    @property
    def coordinates(self) -> str:
        return f"{self.group}:{self.name}:{self.version}"


class ResolvedBundle(BaseModel):
    """A bundle resolved to exactly one file."""

    model_config = ConfigDict(frozen=True)

    path: Path
    config: Optional[str] = None


# ---------------------------------------------------------------------------
# Node
# ---------------------------------------------------------------------------


class NodeSpec(BaseModel):
    """Declarative description of one node.

    Constructed once when the deployment is planned and consumed by the
    assembler and materializer.  ``p2p_port`` / ``web_port`` are accepted as
    shorthands for ``localhost`` addresses.
    """

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    p2p_address: Optional[str] = None
    web_address: Optional[str] = None
    rpc_settings: RpcSettings = Field(default_factory=RpcSettings)
    cordapps: list[BundleRef] = Field(default_factory=list)
    project_cordapp_config: Optional[str] = None
    https: Optional[bool] = None
    use_test_clock: Optional[bool] = None
    h2_port: Optional[int] = None
    sshd_port: Optional[int] = None
    rpc_users: Optional[list[dict[str, Any]]] = None
    notary: Optional[dict[str, Any]] = None
    extra_config: Optional[dict[str, Any]] = None
    drivers: list[Path] = Field(default_factory=list)
    config_file: Optional[Path] = None
    webserver_jar: Optional[Path] = None

    @model_validator(mode="before")
    @classmethod
    def _ports_to_addresses(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        p2p_port = data.pop("p2p_port", None)
        web_port = data.pop("web_port", None)
        if p2p_port is not None and not data.get("p2p_address"):
            data["p2p_address"] = f"{DEFAULT_HOST}:{p2p_port}"
        if web_port is not None and not data.get("web_address"):
            data["web_address"] = f"{DEFAULT_HOST}:{web_port}"
        return data

    @property
    def p2p_port(self) -> int | None:
        return _port_of(self.p2p_address)

    @property
    def directory_name(self) -> str:
        """Directory of this node under the deployment root.

        The ``O=`` part of the legal name (or the whole name) without spaces.
        """
        return "".join(self._base_name().split())

    @property
    def container_name(self) -> str:
        return container_name(self._base_name())

    def _base_name(self) -> str:
        if not self.name or not self.name.strip():
            raise MissingRequiredFieldError("name", "node")
        return organisation_name(self.name) or self.name

    def explicit_settings(self) -> dict[str, Any]:
        """The configuration keys set directly on this node."""
        settings: dict[str, Any] = {}
        if self.name is not None:
            settings["myLegalName"] = self.name
        if self.p2p_address is not None:
            settings["p2pAddress"] = self.p2p_address
        if self.web_address is not None:
            settings["webAddress"] = self.web_address
        if self.https is not None:
            settings["useHTTPS"] = self.https
        if self.h2_port is not None:
            settings["h2port"] = self.h2_port
        if self.use_test_clock is not None:
            settings["useTestClock"] = self.use_test_clock
        if not self.rpc_settings.is_empty():
            settings["rpcSettings"] = self.rpc_settings.to_config()
        if self.sshd_port is not None:
            settings["sshd"] = {"port": self.sshd_port}
        return settings


class NodeBuilder:
    """Setter-style builder producing an immutable :class:`NodeSpec`.

    Usage::

        node = (
            NodeBuilder("O=Bank A,L=London,C=GB")
            .p2p_port(10002)
            .rpc_settings(RpcSettingsBuilder().port(10003).admin_port(10043))
            .cordapp("com.example:app:1.0", config="threshold = 3")
            .build()
        )
    """

    def __init__(self, name: str | None = None) -> None:
        self._values: dict[str, Any] = {"name": name}
        self._cordapps: list[BundleRef] = []
        self._drivers: list[Path] = []

    def name(self, name: str) -> "NodeBuilder":
        self._values["name"] = name
        return self

    def p2p_port(self, port: int) -> "NodeBuilder":
        self._values["p2p_address"] = f"{DEFAULT_HOST}:{port}"
        return self

    def p2p_address(self, address: str) -> "NodeBuilder":
        self._values["p2p_address"] = address
        return self

    def web_port(self, port: int) -> "NodeBuilder":
        self._values["web_address"] = f"{DEFAULT_HOST}:{port}"
        return self

    def web_address(self, address: str) -> "NodeBuilder":
        self._values["web_address"] = address
        return self

    def https(self, enabled: bool) -> "NodeBuilder":
        self._values["https"] = enabled
        return self

    def h2_port(self, port: int) -> "NodeBuilder":
        self._values["h2_port"] = port
        return self

    def use_test_clock(self, enabled: bool) -> "NodeBuilder":
        self._values["use_test_clock"] = enabled
        return self

    def sshd_port(self, port: int) -> "NodeBuilder":
        self._values["sshd_port"] = port
        return self

    def rpc_settings(self, settings: RpcSettings | RpcSettingsBuilder) -> "NodeBuilder":
        if isinstance(settings, RpcSettingsBuilder):
            settings = settings.build()
        self._values["rpc_settings"] = settings
        return self

    def rpc_users(self, users: list[dict[str, Any]]) -> "NodeBuilder":
        self._values["rpc_users"] = [dict(user) for user in users]
        return self

    def notary(self, notary: dict[str, Any]) -> "NodeBuilder":
        self._values["notary"] = dict(notary)
        return self

    def extra_config(self, extra: dict[str, Any]) -> "NodeBuilder":
        self._values["extra_config"] = dict(extra)
        return self

    def cordapp(self, coordinates: str, config: str | None = None) -> "NodeBuilder":
        self._cordapps.append(BundleRef(coordinates=coordinates, config=config))
        return self

    def cordapp_project(self, project: str, config: str | None = None) -> "NodeBuilder":
        self._cordapps.append(BundleRef(project=project, config=config))
        return self

    def project_cordapp(self, config: str) -> "NodeBuilder":
        """Set the inline config of the cordapp built by this project."""
        self._values["project_cordapp_config"] = config
        return self

    def drivers(self, *paths: str | Path) -> "NodeBuilder":
        self._drivers.extend(Path(p) for p in paths)
        return self

    def config_file(self, path: str | Path) -> "NodeBuilder":
        self._values["config_file"] = Path(path)
        return self

    def webserver_jar(self, path: str | Path) -> "NodeBuilder":
        self._values["webserver_jar"] = Path(path)
        return self

    def build(self) -> NodeSpec:
        name = self._values.get("name")
        if not name or not name.strip():
            raise MissingRequiredFieldError("name", "node")
        return NodeSpec(
            **self._values,
            cordapps=list(self._cordapps),
            drivers=list(self._drivers),
        )


# ---------------------------------------------------------------------------
# Deployment description
# ---------------------------------------------------------------------------


class ProjectOutput(BaseModel):
    """The cordapp built by the current project; installed on every node."""

    name: str = Field(default="")
    jar: Optional[Path] = None
    config: Optional[str] = None


class Deployment(BaseModel):
    """A complete deployment description as read from YAML."""

    project: ProjectOutput = Field(default_factory=ProjectOutput)
    artifacts: list[Artifact] = Field(default_factory=list)
    defaults: dict[str, Any] = Field(
        default_factory=dict,
        description="Base configuration layer shared by every node",
    )
    nodes: list[NodeSpec] = Field(default_factory=list)

    def relative_to(self, base: Path) -> "Deployment":
        """Return a copy whose relative file paths are anchored at *base*."""

        def anchor(path: Path | None) -> Path | None:
            if path is None or path.is_absolute():
                return path
            return base / path

        project = self.project.model_copy(update={"jar": anchor(self.project.jar)})
        artifacts = [a.model_copy(update={"path": anchor(a.path)}) for a in self.artifacts]
        nodes = [
            node.model_copy(
                update={
                    "drivers": [anchor(d) for d in node.drivers],
                    "config_file": anchor(node.config_file),
                    "webserver_jar": anchor(node.webserver_jar),
                }
            )
            for node in self.nodes
        ]
        return self.model_copy(
            update={"project": project, "artifacts": artifacts, "nodes": nodes}
        )
