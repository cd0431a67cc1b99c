from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, NamedTuple, Optional

from progress import format_bytes, format_duration


class MediaCategory(Enum):
    VIDEO = "video"
    PHOTO = "photo"
    NONE = "none"


class IdentityKey(NamedTuple):
    name: str       # case-folded file name
    size: int


def identity_key(name: str, size: int) -> IdentityKey:
    """Dedup fingerprint: same name (any case) and same byte length."""
    return IdentityKey(name.lower(), size)


@dataclass(frozen=True)
class MediaFile:
    path: Path
    name: str
    extension: str           # lowercase, e.g. ".mp4"
    size: int
    modified: datetime       # local last-write time

    @property
    def key(self) -> IdentityKey:
        return identity_key(self.name, self.size)

    @staticmethod
    def from_path(path: Path) -> "MediaFile":
        stat = path.stat()
        return MediaFile(
            path=path,
            name=path.name,
            extension=path.suffix.lower(),
            size=stat.st_size,
            modified=datetime.fromtimestamp(stat.st_mtime),
        )


@dataclass(frozen=True)
class Volume:
    root: Path
    label: str

    def describe(self) -> str:
        return f"{self.root} ({self.label})"


@dataclass
class TransferSummary:
    destination_folder: str
    videos_copied: int = 0
    photos_copied: int = 0
    videos_skipped: int = 0
    photos_skipped: int = 0
    skipped_bytes: int = 0
    oldest: Optional[datetime] = None
    newest: Optional[datetime] = None
    total_bytes: int = 0
    elapsed_seconds: float = 0.0

    @property
    def files_copied(self) -> int:
        return self.videos_copied + self.photos_copied

    @property
    def files_skipped(self) -> int:
        return self.videos_skipped + self.photos_skipped

    @property
    def average_bps(self) -> float:
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.total_bytes / self.elapsed_seconds

    def lines(self) -> List[str]:
        """Human-readable summary, one entry per line."""
        skipped = f"Files skipped (duplicates): {self.files_skipped}"
        if self.skipped_bytes:
            skipped += f" ({format_bytes(self.skipped_bytes)})"
        out = [
            f"Files transferred: {self.files_copied}",
            f"  - Videos: {self.videos_copied}",
            f"  - Photos: {self.photos_copied}",
            skipped,
        ]
        if self.oldest is not None and self.newest is not None:
            out.append(
                f"Time range: {self.oldest:%Y-%m-%d %H:%M:%S} "
                f"to {self.newest:%Y-%m-%d %H:%M:%S}"
            )
        out.extend([
            f"Total size: {format_bytes(self.total_bytes)}",
            f"Total time: {format_duration(self.elapsed_seconds)}",
            f"Average speed: {format_bytes(int(self.average_bps))}/s",
            f"Files saved to: {self.destination_folder}",
        ])
        return out
