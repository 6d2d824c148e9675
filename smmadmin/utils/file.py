"""File utilities for smmadmin."""

import logging
from pathlib import Path
from typing import Iterable


def ensure_directory(directory_path: Path) -> bool:
    """Ensure a directory exists, creating it if needed.

    Args:
        directory_path: Path to the directory

    Returns:
        True if directory exists or was created, False on error
    """
    try:
        directory_path.mkdir(parents=True, exist_ok=True)
        return True
    except Exception as e:
        logging.error(f"💥 Error creating directory {directory_path}: {e}")
        return False


def remove_files(directory: Path, filenames: Iterable[str]) -> int:
    """Remove the named files from a directory, ignoring missing ones.

    Args:
        directory: Directory holding the files
        filenames: Stored file names to remove

    Returns:
        Number of files removed
    """
    count = 0
    for filename in filenames:
        file_path = directory / filename
        if not file_path.exists():
            continue
        try:
            file_path.unlink()
            count += 1
            logging.debug(f"🧹 Removed file: {file_path.name}")
        except Exception as e:
            logging.error(f"💥 Error removing file {file_path}: {e}")
    return count
