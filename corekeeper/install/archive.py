"""
Archive extraction primitives used to install downloaded engine releases.
"""

import gzip
import logging
import shutil
import tarfile
import zipfile
from pathlib import Path

from corekeeper.exceptions import ExtractionError

log = logging.getLogger(__name__)


def _ensure_inside(dest_dir: Path, member_name: str) -> Path:
    target = (dest_dir / member_name).resolve()
    if not target.is_relative_to(dest_dir.resolve()):
        raise ExtractionError(f"Archive entry escapes destination: {member_name}")
    return target


def decompress_tar(file_path: Path, dest_dir: Path) -> None:
    """Unpacks a .tar.gz archive into dest_dir."""
    dest_dir.mkdir(parents=True, exist_ok=True)
    try:
        with tarfile.open(file_path, "r:gz") as tar:
            for member in tar.getmembers():
                _ensure_inside(dest_dir, member.name)
            if hasattr(tarfile, "data_filter"):
                tar.extractall(dest_dir, filter="data")
            else:
                tar.extractall(dest_dir)
    except (tarfile.TarError, OSError, EOFError) as e:
        raise ExtractionError(f"Failed to unpack '{file_path.name}': {e}") from e


def flatten_subdirectories(dest_dir: Path) -> None:
    """
    Moves the files of each first-level subdirectory up into dest_dir, then
    removes the subdirectory. Release tarballs wrap their binary in a folder.
    """
    for sub_dir in [p for p in dest_dir.iterdir() if p.is_dir()]:
        for item in sub_dir.iterdir():
            if item.is_file():
                shutil.copy2(item, dest_dir / item.name)
        shutil.rmtree(sub_dir)


def decompress_gzip(file_path: Path, dest_dir: Path, output_name: str) -> Path:
    """Decompresses a single-file .gz into dest_dir/output_name."""
    dest_dir.mkdir(parents=True, exist_ok=True)
    target = dest_dir / output_name
    try:
        with gzip.open(file_path, "rb") as src, open(target, "wb") as dst:
            shutil.copyfileobj(src, dst)
    except (gzip.BadGzipFile, OSError, EOFError) as e:
        raise ExtractionError(f"Failed to decompress '{file_path.name}': {e}") from e
    return target


def extract_zip(file_path: Path, dest_dir: Path, ignored_name: str | None = None) -> int:
    """
    Extracts a .zip archive into dest_dir, overwriting existing files.

    Entries whose name contains ignored_name are skipped, so geo data bundled
    inside an engine release never replaces separately updated geo files.

    Returns:
        The number of files written.
    """
    dest_dir.mkdir(parents=True, exist_ok=True)
    written = 0
    try:
        with zipfile.ZipFile(file_path) as archive:
            for info in archive.infolist():
                if info.is_dir():
                    continue
                if ignored_name and ignored_name in info.filename:
                    log.debug(f"Skipping bundled entry '{info.filename}'.")
                    continue
                target = _ensure_inside(dest_dir, info.filename)
                target.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(info) as src, open(target, "wb") as dst:
                    shutil.copyfileobj(src, dst)
                written += 1
    except (zipfile.BadZipFile, OSError) as e:
        raise ExtractionError(f"Failed to extract '{file_path.name}': {e}") from e
    return written
