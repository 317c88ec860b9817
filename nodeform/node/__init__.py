"""Node assembler -- builds per-node runtime directories.

Reads a declarative deployment (nodes, cordapps, artifact pool, base
configuration), resolves every cordapp to one file, renders the layered
``node.conf`` / ``web-server.conf`` and writes each node's directory tree.

Quick usage::

    from nodeform.node import NodeBuilder, RpcSettingsBuilder

    node = (
        NodeBuilder("O=Bank A,L=London,C=GB")
        .p2p_port(10002)
        .rpc_settings(RpcSettingsBuilder().port(10003).admin_port(10043))
        .cordapp("com.example:app:1.0")
        .build()
    )
"""

from nodeform.node.assembler import ConfigAssembler, RenderedConfigs
from nodeform.node.deployer import Deployer, load_deployment
from nodeform.node.document import ConfigDocument
from nodeform.node.materializer import DirectoryMaterializer
from nodeform.node.models import (
    Artifact,
    BundleRef,
    Deployment,
    NodeBuilder,
    NodeSpec,
    ResolvedBundle,
    RpcSettings,
    RpcSettingsBuilder,
)
from nodeform.node.resolver import BundleResolver

__all__ = [
    "Artifact",
    "BundleRef",
    "BundleResolver",
    "ConfigAssembler",
    "ConfigDocument",
    "Deployer",
    "Deployment",
    "DirectoryMaterializer",
    "NodeBuilder",
    "NodeSpec",
    "RenderedConfigs",
    "ResolvedBundle",
    "RpcSettings",
    "RpcSettingsBuilder",
    "load_deployment",
]
