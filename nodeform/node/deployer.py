"""Deployment orchestrator.

Reads a YAML deployment description and assembles every node it declares:

1. resolve the node's cordapps against the artifact pool,
2. materialize the node directory (jars, drivers, configs),
3. in Docker mode, render a ``docker-compose.yml`` for the whole deployment.

Usage::

    from nodeform.config import Config
    from nodeform.node.deployer import Deployer, load_deployment

    deployment = load_deployment("nodes.yml")
    Deployer(Config(output_dir=Path("build/nodes"))).deploy(deployment)
"""

from __future__ import annotations

from pathlib import Path

from nodeform.config import Config
from nodeform.node.assembler import ConfigAssembler
from nodeform.node.docker_gen import DockerGenerator
from nodeform.node.materializer import DirectoryMaterializer
from nodeform.node.models import Deployment
from nodeform.node.resolver import BundleResolver
from nodeform.node.templates import TemplateRenderer
from nodeform.utils import console, ensure_dir, load_yaml, print_header, print_summary_table


def load_deployment(path: str | Path) -> Deployment:
    """Parse a deployment description.

    Relative file paths in the description are taken relative to the file
    itself.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If the description is malformed.
    """
    description = Path(path)
    deployment = Deployment.model_validate(load_yaml(description))
    return deployment.relative_to(description.resolve().parent)


class Deployer:
    """Assembles all nodes of a deployment under ``config.output_dir``."""

    def __init__(self, config: Config, renderer: TemplateRenderer | None = None) -> None:
        self.config = config
        self.renderer = renderer or TemplateRenderer()

    def deploy(self, deployment: Deployment, *, docker: bool = False) -> list[Path]:
        """Materialize every node and return their directories in order."""
        root = ensure_dir(self.config.output_dir)
        resolver = BundleResolver(deployment.artifacts)
        assembler = ConfigAssembler(
            defaults=deployment.defaults,
            override_file=self.config.config_file,
        )
        materializer = DirectoryMaterializer(self.config, resolver, assembler, self.renderer)

        mode = "docker" if docker else "local"
        print_header(f"Assembling {len(deployment.nodes)} node(s) ({mode})")

        node_dirs: list[Path] = []
        summary: dict[str, str] = {}
        for node in deployment.nodes:
            bundles = resolver.resolve_all(
                node.cordapps,
                deployment.project.jar,
                node.project_cordapp_config or deployment.project.config,
            )
            if docker:
                node_dir = materializer.build_docker(node, bundles, root)
            else:
                node_dir = materializer.build(node, bundles, root)
            console.print(f"  [green]+[/green] {node.name} -> {node_dir}")
            node_dirs.append(node_dir)
            summary[str(node.name)] = f"{len(bundles)} cordapp(s)"

        if docker:
            compose = DockerGenerator(self.renderer).generate_compose(root, deployment.nodes)
            summary["docker-compose"] = str(compose)

        print_summary_table(summary, title="Deployment")
        return node_dirs
