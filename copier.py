import contextlib
import shutil
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable

from destination_index import DestinationIndex
from models import MediaCategory

CATEGORY_DIRS = {
    MediaCategory.VIDEO: "Videos",
    MediaCategory.PHOTO: "Photos",
}

SESSION_FOLDER_FORMAT = "%Y-%m-%d_%H-%M-%S"

COPY_BUFFER_SIZE = 1024 * 1024  # 1 MiB

MAX_COLLISION_ATTEMPTS = 999


class CopyError(OSError):
    """A file could not be copied; the run cannot continue."""


@dataclass(frozen=True)
class CopyResult:
    bytes_copied: int
    elapsed: float


def session_folder_path(destination_root: Path, started_at: datetime) -> Path:
    """
    Construct: destination_root / TransferredMedia / yyyy-MM-dd_HH-mm-ss
    Example: /media/usb/TransferredMedia/2024-01-01_10-45-00
    """
    return (
        DestinationIndex.archive_path_for(destination_root)
        / started_at.strftime(SESSION_FOLDER_FORMAT)
    )


def build_destination_path(
    session_folder: Path, category: MediaCategory, original_filename: str
) -> Path:
    """session_folder / Videos|Photos / filename"""
    return session_folder / CATEGORY_DIRS[category] / original_filename


def create_session_folder(
    destination_root: Path,
    started_at: datetime,
    categories: Iterable[MediaCategory],
) -> Path:
    """Create the session folder and only the category folders that are needed."""
    folder = session_folder_path(destination_root, started_at)
    folder.mkdir(parents=True, exist_ok=True)
    for category in categories:
        (folder / CATEGORY_DIRS[category]).mkdir(exist_ok=True)
    return folder


def resolve_collision(dest_path: Path) -> Path:
    """
    Two planned files with the same name in one category folder:
    IMG_0001.JPG, then IMG_0001_2.JPG, IMG_0001_3.JPG, ...
    """
    candidates = [dest_path] + [
        dest_path.with_name(f"{dest_path.stem}_{n}{dest_path.suffix}")
        for n in range(2, MAX_COLLISION_ATTEMPTS + 2)
    ]
    for candidate in candidates:
        if not candidate.exists():
            return candidate
    raise CopyError(f"No free name left in {dest_path.parent} for {dest_path.name}")


def copy_file(
    source_path: Path,
    dest_path: Path,
    size: int,
    progress=None,
    buffer_size: int = COPY_BUFFER_SIZE,
    clock: Callable[[], float] = time.monotonic,
) -> CopyResult:
    """
    Stream source to dest in buffer_size chunks, reporting every chunk to
    progress.add_bytes(). Timestamps are copied once the data is closed.

    Any failure, including a byte count that differs from size, removes
    the partial dest file and raises CopyError.
    """
    started = clock()
    copied = 0
    created = False
    try:
        with open(source_path, "rb") as src:
            with open(dest_path, "xb") as dst:
                created = True
                while chunk := src.read(buffer_size):
                    dst.write(chunk)
                    copied += len(chunk)
                    if progress is not None:
                        progress.add_bytes(len(chunk))
        if copied != size:
            raise CopyError(
                f"{source_path.name} changed size during copy "
                f"(expected {size} bytes, read {copied})"
            )
        shutil.copystat(source_path, dest_path)
    except OSError as e:
        if created:
            with contextlib.suppress(OSError):
                dest_path.unlink()
        if isinstance(e, CopyError):
            raise
        raise CopyError(f"Cannot copy {source_path} to {dest_path}: {e}") from e

    return CopyResult(bytes_copied=copied, elapsed=clock() - started)
