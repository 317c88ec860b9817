"""Docker Compose file generation for containerised deployments.

Uses the ``docker-compose.yml.j2`` template to produce one service per node,
building from the node's own directory and publishing its ports.
"""

from __future__ import annotations

from pathlib import Path

from nodeform.node.materializer import exposed_ports
from nodeform.node.models import NodeSpec
from nodeform.node.templates import TemplateRenderer


class DockerGenerator:
    """Generates the ``docker-compose.yml`` of a deployment."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    def generate_compose(self, output_dir: Path, nodes: list[NodeSpec]) -> Path:
        """Render ``docker-compose.yml`` into *output_dir*.

        Args:
            output_dir: Deployment root holding one directory per node.
            nodes: The deployed nodes, in declaration order.

        Returns:
            Path of the written compose file.
        """
        services = [
            {
                "container_name": node.container_name,
                "directory": node.directory_name,
                "ports": exposed_ports(node),
            }
            for node in nodes
        ]
        return self.renderer.render_to_file(
            "docker-compose.yml.j2", output_dir / "docker-compose.yml", {"nodes": services}
        )
