"""Resolution of declared cordapps against the candidate artifact pool.

The pool is whatever the dependency-resolution step produced: a flat list of
:class:`~nodeform.node.models.Artifact` entries.  Each declared bundle must
map to exactly one file.
"""

from __future__ import annotations

from pathlib import Path

from nodeform.errors import AmbiguousBundleError, BundleNotFoundError, MissingRequiredFieldError
from nodeform.node.models import Artifact, BundleRef, ResolvedBundle
from nodeform.utils import print_warning


class BundleResolver:
    """Maps bundle references onto files of a candidate pool."""

    def __init__(self, pool: list[Artifact]) -> None:
        self.pool = list(pool)

    # -- Single bundle -----------------------------------------------------

    def matches(self, bundle: BundleRef) -> list[Artifact]:
        """Return every pool entry matching *bundle*, one per distinct file."""
        if bundle.project is not None:
            found = [a for a in self.pool if a.project == bundle.project]
        else:
            found = [a for a in self.pool if a.coordinates == bundle.coordinates]
        return _distinct_files(found)

    def resolve(self, bundle: BundleRef) -> ResolvedBundle:
        """Resolve *bundle* to exactly one file.

        Raises:
            BundleNotFoundError: No candidate matches.
            AmbiguousBundleError: Several distinct files match.
        """
        found = self.matches(bundle)
        if not found:
            raise BundleNotFoundError(bundle.display_name)
        if len(found) > 1:
            raise AmbiguousBundleError(bundle.display_name, [str(a.path) for a in found])
        return ResolvedBundle(path=found[0].path, config=bundle.config)

    # -- Whole node --------------------------------------------------------

    def resolve_all(
        self,
        bundles: list[BundleRef],
        project_jar: Path | None,
        project_config: str | None = None,
    ) -> list[ResolvedBundle]:
        """Resolve every declared bundle plus the project's own build output.

        Bundles declared more than once with the same identity are resolved
        once; the first declaration is kept.
        """
        if project_jar is None:
            raise MissingRequiredFieldError("jar", "project cordapp")

        resolved = [self.resolve(bundle) for bundle in dedupe_bundles(bundles)]
        resolved.append(ResolvedBundle(path=project_jar, config=project_config))
        return resolved

    # -- Runtime jars ------------------------------------------------------

    def find_runtime(self, name: str) -> Path:
        """Return the single pool file whose artifact name is *name*."""
        found = _distinct_files([a for a in self.pool if a.name == name])
        if not found:
            raise BundleNotFoundError(name)
        if len(found) > 1:
            raise AmbiguousBundleError(name, [str(a.path) for a in found])
        return found[0].path

    def find_agent(self, group: str, name: str, version: str) -> Path | None:
        """Return the first pool file for the given agent coordinate, if any."""
        coordinates = f"{group}:{name}:{version}"
        for artifact in self.pool:
            if artifact.coordinates == coordinates:
                return artifact.path
        return None


def dedupe_bundles(bundles: list[BundleRef]) -> list[BundleRef]:
    """Drop repeated declarations of the same bundle, keeping the first."""
    kept: dict[str, BundleRef] = {}
    for bundle in bundles:
        first = kept.get(bundle.key)
        if first is None:
            kept[bundle.key] = bundle
        elif bundle.config is not None and bundle.config != first.config:
            print_warning(
                f"Cordapp {bundle.display_name} declared twice with different config; "
                "keeping the first declaration."
            )
    return list(kept.values())


def _distinct_files(artifacts: list[Artifact]) -> list[Artifact]:
    seen: set[Path] = set()
    distinct: list[Artifact] = []
    for artifact in artifacts:
        if artifact.path in seen:
            continue
        seen.add(artifact.path)
        distinct.append(artifact)
    return distinct
