"""I/O helpers for loading source textures and writing generated maps."""
from __future__ import annotations

import logging
import os
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from PIL import Image

from .utils_image import fit_within

LOGGER = logging.getLogger("pbr_pipeline.io")

_LOCK_REGISTRY: dict[Path, threading.Lock] = {}
_LOCK_REGISTRY_GUARD = threading.Lock()


@dataclass(frozen=True)
class LoadedImage:
    """Decoded source image plus the metadata the engine keeps about it."""

    image: Image.Image
    file_name: str
    file_size: int


def ensure_dir(path: Path) -> Path:
    """Ensure that *path* exists and return it."""

    path.mkdir(parents=True, exist_ok=True)
    return path


def load_source_image(path: Path | str, max_dim: int = 2048) -> LoadedImage:
    """Decode *path* into RGBA, capping the larger side at *max_dim* pixels."""

    source = Path(path)
    with Image.open(source) as handle:
        image = handle.convert("RGBA")
    original_size = image.size
    image = fit_within(image, max_dim)
    if image.size != original_size:
        LOGGER.info("Resized %s from %sx%s to %sx%s", source.name, *original_size, *image.size)
    return LoadedImage(image=image, file_name=source.name, file_size=source.stat().st_size)


def _acquire_file_lock(target: Path) -> threading.Lock:
    with _LOCK_REGISTRY_GUARD:
        lock = _LOCK_REGISTRY.get(target)
        if lock is None:
            lock = threading.Lock()
            _LOCK_REGISTRY[target] = lock
    lock.acquire()
    return lock


@contextmanager
def file_lock(path: Path) -> Iterator[None]:
    """Context manager providing a lightweight file lock."""

    temp_lock = path.with_suffix(path.suffix + ".lock")
    lock = _acquire_file_lock(temp_lock)
    try:
        while True:
            try:
                fd = os.open(temp_lock, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
                os.close(fd)
                break
            except FileExistsError:
                time.sleep(0.05)
        yield
    finally:
        try:
            os.remove(temp_lock)
        except FileNotFoundError:
            pass
        lock.release()


class SafeFileManager:
    """Manage atomic map writes below an output directory."""

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)
        ensure_dir(self.base_dir)

    def resolve(self, path: Path | str) -> Path:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.base_dir / candidate
        ensure_dir(candidate.parent)
        return candidate

    def atomic_save(self, image: Image.Image, path: Path | str, *, format: Optional[str] = None) -> Path:
        """Safely save *image* to *path* using a temporary file."""

        destination = self.resolve(path)
        temp_dir = destination.parent / ".tmp_maps"
        ensure_dir(temp_dir)
        temp_path = temp_dir / f"{destination.name}.tmp"
        with file_lock(destination):
            image.save(temp_path, format=format or "PNG")
            os.replace(temp_path, destination)
        return destination
