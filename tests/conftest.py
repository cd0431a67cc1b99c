"""
Shared fixtures for the media-transfer test suite.
"""
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

import pytest

from config import parse_extension_set, DEFAULT_PHOTO_EXTENSIONS, DEFAULT_VIDEO_EXTENSIONS
from models import MediaFile
from scanner import MediaTypes

MB = 1024 * 1024


# ── File-creation helpers ─────────────────────────────────────────────────────

def make_file(
    path: Path,
    content: bytes = b"dummy content",
    modified: Optional[datetime] = None,
) -> Path:
    """Create a file with the given content and, optionally, mtime."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    if modified is not None:
        ts = modified.timestamp()
        os.utime(path, (ts, ts))
    return path


def make_media(name: str, modified: datetime, size: int = 1024, folder: str = "/card/DCIM") -> MediaFile:
    """In-memory MediaFile; nothing is written to disk."""
    path = Path(folder) / name
    return MediaFile(
        path=path,
        name=name,
        extension=path.suffix.lower(),
        size=size,
        modified=modified,
    )


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def src(tmp_path: Path) -> Path:
    """Empty source volume."""
    d = tmp_path / "card"
    d.mkdir()
    return d


@pytest.fixture
def dst(tmp_path: Path) -> Path:
    """Empty destination volume."""
    d = tmp_path / "usb"
    d.mkdir()
    return d


@pytest.fixture
def media_types() -> MediaTypes:
    return MediaTypes(
        video_extensions=parse_extension_set(DEFAULT_VIDEO_EXTENSIONS),
        photo_extensions=parse_extension_set(DEFAULT_PHOTO_EXTENSIONS),
    )


@pytest.fixture
def session_files():
    """vid1/vid2/img1 from the 2024-01-01 shoot."""
    return [
        make_media("vid1.mp4", datetime(2024, 1, 1, 10, 0), size=50 * MB),
        make_media("vid2.mp4", datetime(2024, 1, 1, 10, 30), size=60 * MB),
        make_media("img1.jpg", datetime(2024, 1, 1, 9, 0), size=5 * MB),
    ]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
