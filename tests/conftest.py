"""Shared pytest fixtures for the nodeform test suite.

Provides reusable fixtures for:
- Fake jar files and the artifact pool that references them
- A sample node description and deployment YAML
- A small Python package used as API scanner input
"""

from __future__ import annotations

import textwrap
import zipfile
from pathlib import Path

import pytest

from nodeform.config import Config
from nodeform.node.models import Artifact, NodeBuilder, NodeSpec, RpcSettingsBuilder


# ---------------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------------


def _jar(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content.encode("utf-8"))
    return path


@pytest.fixture
def libs_dir(tmp_path: Path) -> Path:
    """Directory of fake jars as produced by dependency resolution."""
    libs = tmp_path / "libs"
    _jar(libs / "app-1.0.jar", "app")
    _jar(libs / "other-2.0.jar", "other")
    _jar(libs / "jolokia-jvm-1.6.0-agent.jar", "agent")
    _jar(libs / "corda-webserver-4.0.jar", "webserver")
    _jar(libs / "workflows-0.1.jar", "workflows")
    return libs


@pytest.fixture
def project_jar(tmp_path: Path) -> Path:
    """The cordapp built by the current project."""
    return _jar(tmp_path / "build" / "libs" / "my-cordapp-0.1.jar", "project")


@pytest.fixture
def artifact_pool(libs_dir: Path) -> list[Artifact]:
    return [
        Artifact(coordinates="com.example:app:1.0", path=libs_dir / "app-1.0.jar"),
        Artifact(coordinates="com.example:other:2.0", path=libs_dir / "other-2.0.jar"),
        Artifact(
            coordinates="org.jolokia:jolokia-jvm:1.6.0",
            path=libs_dir / "jolokia-jvm-1.6.0-agent.jar",
        ),
        Artifact(
            coordinates="net.corda:corda-webserver:4.0",
            path=libs_dir / "corda-webserver-4.0.jar",
        ),
        Artifact(
            coordinates="com.example:workflows:0.1",
            path=libs_dir / "workflows-0.1.jar",
            project="workflows",
        ),
    ]


@pytest.fixture
def tool_config(tmp_path: Path) -> Config:
    return Config(output_dir=tmp_path / "nodes", build_dir=tmp_path / "build")


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


@pytest.fixture
def bank_node() -> NodeSpec:
    """A node with a web server, RPC settings and one configured cordapp."""
    return (
        NodeBuilder("O=Bank A,L=London,C=GB")
        .p2p_port(10002)
        .web_port(10007)
        .rpc_settings(RpcSettingsBuilder().port(10003).admin_port(10043))
        .rpc_users([{"user": "demo", "password": "demo", "permissions": ["ALL"]}])
        .cordapp("com.example:app:1.0", config="threshold = 3\n")
        .build()
    )


@pytest.fixture
def notary_node() -> NodeSpec:
    """A notary without a web server."""
    return (
        NodeBuilder("O=Notary Service,L=Zurich,C=CH")
        .p2p_port(10012)
        .rpc_settings(RpcSettingsBuilder().port(10013).admin_port(10053))
        .notary({"validating": False})
        .build()
    )


@pytest.fixture
def deployment_yaml(tmp_path: Path, libs_dir: Path, project_jar: Path) -> Path:
    """A deployment description with relative artifact paths."""
    path = tmp_path / "nodes.yml"
    path.write_text(
        textwrap.dedent(
            """\
            project:
              name: my-cordapp
              jar: build/libs/my-cordapp-0.1.jar
            artifacts:
              - coordinates: com.example:app:1.0
                path: libs/app-1.0.jar
              - coordinates: org.jolokia:jolokia-jvm:1.6.0
                path: libs/jolokia-jvm-1.6.0-agent.jar
              - coordinates: net.corda:corda-webserver:4.0
                path: libs/corda-webserver-4.0.jar
              - coordinates: com.example:workflows:0.1
                path: libs/workflows-0.1.jar
                project: workflows
            defaults:
              devMode: true
              database:
                runMigration: true
            nodes:
              - name: "O=Notary Service,L=Zurich,C=CH"
                p2p_port: 10002
                rpc_settings:
                  port: 10003
                  admin_port: 10043
                notary:
                  validating: false
              - name: "O=Bank A,L=London,C=GB"
                p2p_port: 10005
                web_port: 10007
                rpc_settings:
                  port: 10006
                  admin_port: 10046
                rpc_users:
                  - user: demo
                    password: demo
                    permissions: [ALL]
                cordapps:
                  - coordinates: com.example:app:1.0
                    config: |
                      threshold = 3
                  - project: workflows
                extra_config:
                  jarDirs: [plugins]
            """
        ),
        encoding="utf-8",
    )
    return path


# ---------------------------------------------------------------------------
# API scanner input
# ---------------------------------------------------------------------------

SHOP_INIT = '''\
"""Shop package."""
from shop.orders import Order

__all__ = ["Order", "VERSION"]

VERSION = "1.0"
_secret = 1
'''

SHOP_ORDERS = '''\
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar


def internal(obj):
    return obj


class Base(ABC):
    @abstractmethod
    def total(self) -> int:
        ...


@dataclass(frozen=True)
class Order(Base):
    LIMIT: ClassVar[int] = 10

    id: int
    note: str = ""

    def total(self) -> int:
        return 0

    @staticmethod
    def parse(text: str) -> "Order":
        return Order(int(text))

    @classmethod
    def empty(cls) -> "Order":
        return cls(0)

    @property
    def label(self) -> str:
        return self.note

    async def submit(self, *, retries: int = 3) -> bool:
        return True

    def _hidden(self):
        pass

    def __eq__(self, other):
        return True

    @internal
    def debug(self):
        pass

    class Line:
        def __init__(self, sku: str, qty: int = 1):
            self.sku = sku
            self.qty: int = qty
            self._cache = None


@internal
class Secret:
    def leak(self):
        pass


def make_order(id: int, /, note: str = "", *items, **extra) -> Order:
    return Order(id, note)
'''

SHOP_IMPL = '''\
def helper():
    return 1
'''


@pytest.fixture
def shop_package(tmp_path: Path) -> Path:
    """A small package exercising most declaration shapes."""
    package = tmp_path / "src" / "shop"
    package.mkdir(parents=True)
    (package / "__init__.py").write_text(SHOP_INIT, encoding="utf-8")
    (package / "orders.py").write_text(SHOP_ORDERS, encoding="utf-8")
    (package / "_impl.py").write_text(SHOP_IMPL, encoding="utf-8")
    cache = package / "__pycache__"
    cache.mkdir()
    (cache / "orders.cpython-312.py").write_text("x = 1\n", encoding="utf-8")
    return package


SHOP_REPORT = [
    "public module shop",
    "public field shop.VERSION: str",
    "public module shop.orders",
    "public def shop.orders.internal(obj)",
    "public def shop.orders.make_order(id: int, /, note: str = '', *items, **extra) -> Order",
    "public abstract class shop.orders.Base(ABC)",
    "public abstract def shop.orders.Base.total() -> int",
    "@dataclass(frozen=True) public class shop.orders.Order(Base)",
    "public field shop.orders.Order.id: int",
    "public field shop.orders.Order.note: str",
    "public static field shop.orders.Order.LIMIT: int",
    "public async def shop.orders.Order.submit(*, retries: int = 3) -> bool",
    "public classmethod def shop.orders.Order.empty() -> 'Order'",
    "public def shop.orders.Order.__eq__(other)",
    "public def shop.orders.Order.total() -> int",
    "public property def shop.orders.Order.label() -> str",
    "public static def shop.orders.Order.parse(text: str) -> 'Order'",
    "public class shop.orders.Order.Line",
    "public field shop.orders.Order.Line.qty: int",
    "public field shop.orders.Order.Line.sku",
    "public constructor shop.orders.Order.Line(sku: str, qty: int = 1)",
]


@pytest.fixture
def shop_report() -> list[str]:
    """The expected report of ``shop_package`` with the default rules."""
    return list(SHOP_REPORT)


@pytest.fixture
def shop_wheel(shop_package: Path, tmp_path: Path) -> Path:
    """``shop_package`` packed as a wheel, with metadata entries."""
    wheel = tmp_path / "dist" / "shop-1.0-py3-none-any.whl"
    wheel.parent.mkdir(parents=True)
    with zipfile.ZipFile(wheel, "w") as zf:
        zf.writestr("shop/__init__.py", SHOP_INIT)
        zf.writestr("shop/orders.py", SHOP_ORDERS)
        zf.writestr("shop/_impl.py", SHOP_IMPL)
        zf.writestr("shop-1.0.dist-info/METADATA", "Name: shop\nVersion: 1.0\n")
        zf.writestr("shop-1.0.dist-info/helper.py", "x = 1\n")
    return wheel
