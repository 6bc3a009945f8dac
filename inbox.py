"""
inbox.py - Directory listing for one reconciliation run.

Lists the names of the files sitting directly in the target directory.
Only names are returned; file contents are never opened.
"""

from __future__ import annotations

from pathlib import Path

from logging_config import get_logger

logger = get_logger(__name__)


def scan_directory(target_dir: str | Path) -> list[str]:
    """Return sorted names of regular, non-hidden files in `target_dir`.

    No recursion. Raises FileNotFoundError / NotADirectoryError when the
    directory cannot be listed; both are fatal for the run.
    """
    if target_dir is None or not str(target_dir).strip():
        raise ValueError("target_dir cannot be empty")

    directory = Path(str(target_dir).strip())
    if not directory.exists():
        raise FileNotFoundError(f"Target directory not found: {directory}")
    if not directory.is_dir():
        raise NotADirectoryError(f"Target path is not a directory: {directory}")

    names = sorted(
        path.name
        for path in directory.iterdir()
        if path.is_file() and not path.name.startswith(".")
    )
    logger.info("directory_scanned | path=%s | files=%s", directory, len(names))
    return names
