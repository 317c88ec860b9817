"""Creation and population of per-node output directories.

Layout of one node::

    <root>/<node>/node.conf
    <root>/<node>/web-server.conf        (only with a web address)
    <root>/<node>/corda-webserver.jar    (only with a web address)
    <root>/<node>/corda.jar              (Docker, when the pool has the runtime)
    <root>/<node>/drivers/*
    <root>/<node>/cordapps/*.jar
    <root>/<node>/cordapps/config/*.conf

Directories are created if absent and files are overwritten, so re-running a
materialization is safe.  Any ``OSError`` aborts it and propagates.
"""

from __future__ import annotations

from pathlib import Path

from nodeform.config import Config
from nodeform.errors import BundleNotFoundError
from nodeform.node.assembler import ConfigAssembler
from nodeform.node.document import ConfigDocument
from nodeform.node.models import NodeSpec, ResolvedBundle
from nodeform.node.resolver import BundleResolver
from nodeform.node.templates import TemplateRenderer
from nodeform.utils import copy_into, ensure_dir, print_info, print_warning, write_text

WEB_JAR_NAME = "corda-webserver.jar"
NODE_JAR_NAME = "corda.jar"
NODE_CONF = "node.conf"
WEB_SERVER_CONF = "web-server.conf"
JOLOKIA_GROUP = "org.jolokia"
JOLOKIA_NAME = "jolokia-jvm"


class DirectoryMaterializer:
    """Writes one node's directory from its NodeSpec and resolved bundles."""

    def __init__(
        self,
        config: Config,
        resolver: BundleResolver,
        assembler: ConfigAssembler,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.config = config
        self.resolver = resolver
        self.assembler = assembler
        self.renderer = renderer or TemplateRenderer()

    # -- Public API --------------------------------------------------------

    def node_dir(self, node: NodeSpec, root: Path | None = None) -> Path:
        """Create (if needed) and return the directory of *node*."""
        return ensure_dir((root or self.config.output_dir) / node.directory_name)

    def build(
        self,
        node: NodeSpec,
        bundles: list[ResolvedBundle],
        root: Path | None = None,
    ) -> Path:
        """Materialize a node for a plain (non-container) deployment."""
        node_dir = self.node_dir(node, root)
        document = self.assembler.document(node)

        if document.has_path("webAddress"):
            self.install_webserver_jar(node, node_dir)
        self.install_agent_jar(node_dir)
        self.install_drivers(node, node_dir)
        self.install_cordapps(bundles, node_dir)
        self.install_config(node, node_dir, document)
        return node_dir

    def build_docker(
        self,
        node: NodeSpec,
        bundles: list[ResolvedBundle],
        root: Path | None = None,
    ) -> Path:
        """Materialize a node for a Docker deployment.

        ``run-corda.sh`` starts ``corda.jar``.  It is copied from the pool when
        the node runtime artifact is there; otherwise the base image must
        provide it.
        """
        node_dir = self.node_dir(node, root)
        self.install_node_jar(node_dir)
        agent = self.install_agent_jar(node_dir)
        self.install_docker_files(node, node_dir, agent)
        self.install_drivers(node, node_dir)
        self.install_cordapps(bundles, node_dir)
        self.install_config(node, node_dir, self.assembler.docker_document(node))
        return node_dir

    # -- Steps -------------------------------------------------------------

    def install_webserver_jar(self, node: NodeSpec, node_dir: Path) -> Path:
        """Copy the web server jar into the node directory as ``corda-webserver.jar``."""
        if node.webserver_jar is None:
            print_info("Using default development webserver.")
            web_jar = self.resolver.find_runtime(self.config.webserver_artifact)
        else:
            print_info(f"Using custom webserver: {node.webserver_jar}.")
            web_jar = node.webserver_jar
        return copy_into(web_jar, node_dir, WEB_JAR_NAME)

    def install_node_jar(self, node_dir: Path) -> Path | None:
        """Copy the node runtime into the node directory as ``corda.jar``."""
        try:
            runtime = self.resolver.find_runtime(self.config.node_artifact)
        except BundleNotFoundError:
            print_warning(
                f"Node runtime {self.config.node_artifact!r} not in the artifact pool; "
                f"the image {self.config.docker_image} must provide {NODE_JAR_NAME}."
            )
            return None
        return copy_into(runtime, node_dir, NODE_JAR_NAME)

    def install_agent_jar(self, node_dir: Path) -> Path | None:
        """Copy the Jolokia monitoring agent into ``drivers/`` when the pool has it."""
        agent = self.resolver.find_agent(JOLOKIA_GROUP, JOLOKIA_NAME, self.config.jolokia_version)
        if agent is None:
            print_warning(
                f"Jolokia agent {JOLOKIA_GROUP}:{JOLOKIA_NAME}:{self.config.jolokia_version} "
                "not in the artifact pool; skipping."
            )
            return None
        print_info(f"Jolokia agent jar: {agent}")
        return self._copy_to_drivers(agent, node_dir)

    def install_drivers(self, node: NodeSpec, node_dir: Path) -> list[Path]:
        installed: list[Path] = []
        for driver in node.drivers:
            copied = self._copy_to_drivers(driver, node_dir)
            if copied is not None:
                installed.append(copied)
        return installed

    def install_cordapps(self, bundles: list[ResolvedBundle], node_dir: Path) -> list[Path]:
        """Copy bundle files into ``cordapps/`` and write their inline configs."""
        cordapps_dir = ensure_dir(node_dir / "cordapps")
        config_dir = ensure_dir(cordapps_dir / "config")
        installed: list[Path] = []
        for bundle in bundles:
            installed.append(copy_into(bundle.path, cordapps_dir))
            if bundle.config is not None:
                write_text(config_dir / f"{bundle.path.stem}.conf", bundle.config)
        return installed

    def install_config(self, node: NodeSpec, node_dir: Path, document: ConfigDocument) -> list[Path]:
        """Write ``node.conf`` and, when applicable, ``web-server.conf``."""
        rendered = self.assembler.render(node, document)
        node_conf = node_dir / NODE_CONF
        node_conf.write_bytes(rendered.node_conf)
        written = [node_conf]
        if rendered.web_server_conf is not None:
            written.append(write_text(node_dir / WEB_SERVER_CONF, rendered.web_server_conf))
        return written

    def install_docker_files(self, node: NodeSpec, node_dir: Path, agent: Path | None) -> list[Path]:
        """Render ``Dockerfile`` and ``run-corda.sh`` into the node directory."""
        context = {
            "node_name": node.name,
            "base_image": self.config.docker_image,
            "ports": exposed_ports(node),
            "agent_jar": agent.name if agent is not None else None,
            "agent_port": self.config.agent_port,
        }
        dockerfile = self.renderer.render_to_file("Dockerfile.j2", node_dir / "Dockerfile", context)
        script = self.renderer.render_to_file("run-corda.sh.j2", node_dir / "run-corda.sh", context)
        script.chmod(script.stat().st_mode | 0o111)
        return [dockerfile, script]

    # -- Helpers -----------------------------------------------------------

    def _copy_to_drivers(self, file: Path, node_dir: Path) -> Path | None:
        if not file.is_file():
            print_warning(f"Driver {file} is not a file; skipping.")
            return None
        return copy_into(file, node_dir / "drivers")


def exposed_ports(node: NodeSpec) -> list[int]:
    """Ports a node listens on, in a stable order."""
    candidates = [
        node.p2p_port,
        node.rpc_settings.port,
        node.rpc_settings.admin_port,
        node.sshd_port,
    ]
    return sorted({port for port in candidates if port is not None})
