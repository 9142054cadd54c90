"""Acquisition helpers: downloads, archives, host lookups and git."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tarfile
from pathlib import Path, PurePosixPath

import httpx

from .errors import AcquisitionError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 16384


def is_executable(path: Path | str) -> bool:
    path = Path(path)
    return path.is_file() and os.access(path, os.X_OK)


def find_executable(name: str) -> Path | None:
    """Look ``name`` up on the host PATH."""
    found = shutil.which(name)
    if found is None:
        logger.debug("'%s' not found on PATH", name)
        return None
    return Path(found)


def download(url: str, destination: Path) -> Path:
    """Stream ``url`` into ``destination``, creating parent directories."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Downloading %s", url)
    try:
        with httpx.stream("GET", url, follow_redirects=True, timeout=httpx.Timeout(30.0)) as response:
            response.raise_for_status()
            total = int(response.headers.get("content-length", 0))
            received = 0
            with destination.open("wb") as fh:
                for chunk in response.iter_bytes(CHUNK_SIZE):
                    fh.write(chunk)
                    received += len(chunk)
    except (httpx.HTTPError, OSError) as exc:
        raise AcquisitionError(f"Download of {url} failed: {exc}") from exc
    logger.debug("Downloaded %d/%d bytes to %s", received, total, destination)
    return destination


def fetch_text(url: str) -> str:
    """Fetch a small text resource such as an install script."""
    try:
        response = httpx.get(url, follow_redirects=True, timeout=httpx.Timeout(30.0))
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise AcquisitionError(f"Fetching {url} failed: {exc}") from exc
    return response.text


def _strip(name: str, segments: int) -> PurePosixPath | None:
    parts = PurePosixPath(name).parts
    if len(parts) <= segments:
        return None
    return PurePosixPath(*parts[segments:])


def extract_archive(archive: Path, destination: Path, strip_segments: int = 0) -> None:
    """Extract a (compressed) tarball, dropping leading path segments."""
    destination.mkdir(parents=True, exist_ok=True)
    logger.info("Extracting %s", archive.name)
    try:
        with tarfile.open(archive, "r:*") as tar:
            members = []
            for member in tar.getmembers():
                stripped = _strip(member.name, strip_segments)
                if stripped is None:
                    continue
                member.name = str(stripped)
                if member.islnk():
                    linked = _strip(member.linkname, strip_segments)
                    if linked is None:
                        continue
                    member.linkname = str(linked)
                members.append(member)
            tar.extractall(path=destination, members=members, filter="tar")
    except (tarfile.TarError, OSError) as exc:
        raise AcquisitionError(f"Extracting {archive} failed: {exc}") from exc


def symlink_file(source: Path, destination: Path) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    if destination.is_symlink() or destination.exists():
        destination.unlink()
    destination.symlink_to(source)


def clone(url: str, destination: Path) -> Path:
    """Clone a git repository into ``destination``."""
    logger.info("Cloning %s", url)
    try:
        process = subprocess.run(["git", "clone", url, str(destination)], check=False)
    except OSError as exc:
        raise AcquisitionError(f"Could not run git: {exc}") from exc
    if process.returncode != 0:
        raise AcquisitionError(f"Failed to fetch {url}")
    return destination
