"""Configuration assembly for a single node.

Builds the layered :class:`ConfigDocument` of a node and renders the final
``node.conf`` / ``web-server.conf`` texts.  The layers are, in order:

1. base defaults shared by the whole deployment,
2. the node's explicit settings (addresses, ports, flags, RPC settings),
3. injected well-known keys for RPC users and notary settings,
4. the node's extra overlay,
5. for Docker deployments, container-local address rewrites.

Later layers win.  An external override file is never merged: its bytes are
appended verbatim to the rendered ``node.conf`` so the consuming parser sees
its keys last.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from nodeform.node.document import WEB_ADDRESS, ConfigDocument
from nodeform.node.models import NodeSpec
from nodeform.utils import print_info, print_warning


class RenderedConfigs(BaseModel):
    """The on-disk configuration texts of one node."""

    model_config = ConfigDict(frozen=True)

    node_conf: bytes
    web_server_conf: Optional[str] = None


class ConfigAssembler:
    """Produces the configuration layers and rendered files of a node.

    Args:
        defaults: Base layer applied beneath every node's own settings.
        override_file: Tool-level override file.  When set it replaces the
            node's own ``config_file``.
    """

    def __init__(
        self,
        defaults: dict[str, Any] | None = None,
        override_file: Path | None = None,
    ) -> None:
        self.defaults = dict(defaults or {})
        self.override_file = override_file

    # -- Layers ------------------------------------------------------------

    def layers(self, node: NodeSpec) -> list[dict[str, Any]]:
        """Return the ordered overlays that make up the node's document."""
        injected: dict[str, Any] = {}
        if node.rpc_users is not None:
            injected["security"] = {
                "authService": {
                    "dataSource": {
                        "type": "INMEMORY",
                        "users": [dict(user) for user in node.rpc_users],
                    }
                }
            }
        if node.notary is not None:
            injected["notary"] = dict(node.notary)

        return [
            self.defaults,
            node.explicit_settings(),
            injected,
            dict(node.extra_config or {}),
        ]

    def document(self, node: NodeSpec) -> ConfigDocument:
        return ConfigDocument.from_layers(self.layers(node))

    def docker_document(self, node: NodeSpec) -> ConfigDocument:
        """The node's document with addresses rewritten for its container."""
        container = node.container_name
        doc = self.document(node)
        rewrites: dict[str, Any] = {"detectPublicIp": False}
        if node.p2p_port is not None:
            rewrites["p2pAddress"] = f"{container}:{node.p2p_port}"
        if node.rpc_settings.port is not None:
            rewrites["rpcSettings.address"] = f"{container}:{node.rpc_settings.port}"
        if node.rpc_settings.admin_port is not None:
            rewrites["rpcSettings.adminAddress"] = f"{container}:{node.rpc_settings.admin_port}"
        return doc.with_overlay(rewrites)

    # -- Rendering ---------------------------------------------------------

    def render(self, node: NodeSpec, document: ConfigDocument | None = None) -> RenderedConfigs:
        """Render ``node.conf`` (with any override appended) and, when the
        node has a web address, ``web-server.conf``."""
        if document is None:
            document = self.document(node)

        node_conf = document.node_only().render().encode("utf-8")
        override = self.override_path(node)
        if override is not None:
            node_conf += read_override(override)

        web_server_conf = None
        if document.has_path(WEB_ADDRESS):
            web_server_conf = document.web_server_only().render()
        return RenderedConfigs(node_conf=node_conf, web_server_conf=web_server_conf)

    def override_path(self, node: NodeSpec) -> Path | None:
        if self.override_file is not None:
            return self.override_file
        return node.config_file


def read_override(path: Path) -> bytes:
    """Return the raw bytes of an override file, or nothing if it is missing."""
    if not path.is_file():
        print_warning(f"configFile '{path}' not found")
        return b""
    print_info(f"Appending configuration from {path}")
    return path.read_bytes()
