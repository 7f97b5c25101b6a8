"""Shared helpers for gas tag tooling."""

from pathlib import Path


def ensure_output_directory(path: str) -> None:
    """Create the parent directory of an output file if needed."""
    parent = Path(path).parent
    parent.mkdir(parents=True, exist_ok=True)
