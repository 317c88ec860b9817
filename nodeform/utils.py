"""Shared utility functions for nodeform.

Provides YAML loading, file-system helpers used while materializing node
directories, and Rich-based console reporting.  File operations never swallow
errors: an ``OSError`` raised here aborts the calling task.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path
from typing import Any

import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# Name helpers
# ---------------------------------------------------------------------------


def organisation_name(legal_name: str) -> str | None:
    """Return the ``O=`` component of an X.500 name, if any.

    Examples::

        organisation_name("O=Bank A,L=London,C=GB") -> "Bank A"
        organisation_name("Bank A") -> None
    """
    for part in legal_name.strip().split(","):
        part = part.strip()
        if part.startswith("O="):
            return part[len("O="):]
    return None


def container_name(name: str) -> str:
    """Convert a node directory name to a Docker-friendly container name.

    Examples::

        container_name("Bank A") -> "bank-a"
    """
    return re.sub(r"\s+", "-", name.strip()).lower()


# ---------------------------------------------------------------------------
# Structured file I/O
# ---------------------------------------------------------------------------


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML document that must contain a top-level mapping.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the document is not a mapping.
    """
    raw = Path(path).read_text(encoding="utf-8")
    data = yaml.safe_load(raw)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return data


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist."""
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def copy_into(source: str | Path, target_dir: str | Path, name: str | None = None) -> Path:
    """Copy *source* into *target_dir*, overwriting any existing file.

    Args:
        source: File to copy.
        target_dir: Destination directory, created when absent.
        name: Optional new file name; defaults to the source name.

    Returns:
        The destination path.
    """
    src = Path(source)
    destination = ensure_dir(target_dir) / (name or src.name)
    shutil.copyfile(src, destination)
    return destination


def write_text(path: str | Path, content: str) -> Path:
    """Write UTF-8 text, creating parent directories as needed."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(content, encoding="utf-8")
    return file_path


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_header(title: str) -> None:
    """Print a boxed task header."""
    console.print(Panel(f"[bold]{title}[/bold]", style="cyan"))


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_info(message: str) -> None:
    """Print a dim informational message."""
    console.print(f"[dim]{message}[/dim]")


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
