"""Reading Python sources out of a built artifact.

Supported artifacts:

* a package directory (every ``*.py`` below it, module names relative to the
  directory's parent so the package name is kept),
* a source root directory without ``__init__.py`` (module names relative to
  the directory itself),
* a single ``.py`` module,
* a wheel or zip archive.

Metadata directories (``*.dist-info``, ``*.egg-info``) and ``__pycache__``
are ignored.  Units come back sorted by module name.
"""

from __future__ import annotations

import zipfile
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, ConfigDict

_ARCHIVE_SUFFIXES = (".whl", ".zip")
_IGNORED_PARTS = ("__pycache__",)
_IGNORED_SUFFIXES = (".dist-info", ".egg-info", ".data")


class SourceUnit(BaseModel):
    """One module's source text."""

    model_config = ConfigDict(frozen=True)

    module: str
    path: str
    source: str


def load_sources(artifact: str | Path) -> list[SourceUnit]:
    """Return every module of *artifact*, sorted by module name.

    Raises:
        FileNotFoundError: If *artifact* does not exist.
        ValueError: If *artifact* is not a supported kind of file.
    """
    path = Path(artifact)
    if not path.exists():
        raise FileNotFoundError(f"Artifact not found: {path}")

    if path.is_dir():
        units = _load_directory(path)
    elif path.suffix in _ARCHIVE_SUFFIXES:
        units = _load_archive(path)
    elif path.suffix == ".py":
        units = [SourceUnit(module=path.stem, path=str(path), source=_read(path))]
    else:
        raise ValueError(f"Unsupported artifact type: {path}")

    return sorted(units, key=lambda unit: unit.module)


def module_name(relative: PurePosixPath) -> str | None:
    """Map a relative ``.py`` path to a dotted module name (``None`` if skipped)."""
    parts = list(relative.parts)
    if not parts or not parts[-1].endswith(".py"):
        return None
    if any(p in _IGNORED_PARTS or p.endswith(_IGNORED_SUFFIXES) for p in parts[:-1]):
        return None
    parts[-1] = parts[-1][: -len(".py")]
    if parts[-1] == "__init__":
        parts.pop()
    if not parts:
        return None
    return ".".join(parts)


def _load_directory(directory: Path) -> list[SourceUnit]:
    base = directory.parent if (directory / "__init__.py").is_file() else directory
    units: list[SourceUnit] = []
    for file in sorted(directory.rglob("*.py")):
        name = module_name(PurePosixPath(file.relative_to(base).as_posix()))
        if name is not None:
            units.append(SourceUnit(module=name, path=str(file), source=_read(file)))
    return units


def _load_archive(archive: Path) -> list[SourceUnit]:
    units: list[SourceUnit] = []
    with zipfile.ZipFile(archive) as zf:
        for entry in sorted(zf.namelist()):
            name = module_name(PurePosixPath(entry))
            if name is None:
                continue
            source = zf.read(entry).decode("utf-8", errors="replace")
            units.append(SourceUnit(module=name, path=f"{archive}!{entry}", source=source))
    return units


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")
