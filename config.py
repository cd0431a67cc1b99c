"""
Transfer settings supplied by the caller (CLI flags today).

Numeric parameters arrive as free text and are coerced to documented
defaults when they cannot be used. The coerced value is written back onto
the settings object so the caller can show what was actually applied.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Union

DEFAULT_VIDEO_EXTENSIONS = ".mp4,.mov,.avi,.mkv,.m4v,.wmv,.flv,.webm,.mts,.m2ts,.3gp"
DEFAULT_PHOTO_EXTENSIONS = (
    ".jpg,.jpeg,.png,.gif,.bmp,.tiff,.tif,.heic,.heif,.webp,.raw,.cr2,.nef,.arw,.dng"
)

DEFAULT_TIME_WINDOW_MINUTES = 40
DEFAULT_MAX_FILES = 10


class SelectionMode(Enum):
    TIME_WINDOW = "time"
    FIXED_COUNT = "count"


def normalize_extension(extension: str) -> str:
    """'MP4', ' .Mp4 ' and '.mp4' all become '.mp4'. Empty stays empty."""
    ext = extension.strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


def parse_extension_set(raw: str) -> FrozenSet[str]:
    """Parse a comma-separated extension list into a normalised set."""
    exts = (normalize_extension(part) for part in raw.split(","))
    return frozenset(e for e in exts if e)


def coerce_positive_int(value: Union[int, str, None], default: int) -> int:
    """Return value as an int >= 1, or default when it is unusable."""
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    if number < 1:
        return default
    return number


@dataclass
class TransferSettings:
    mode: SelectionMode = SelectionMode.TIME_WINDOW
    time_window_minutes: Union[int, str] = DEFAULT_TIME_WINDOW_MINUTES
    max_files: Union[int, str] = DEFAULT_MAX_FILES
    transfer_videos: bool = True
    transfer_photos: bool = True
    video_extensions: str = DEFAULT_VIDEO_EXTENSIONS
    photo_extensions: str = DEFAULT_PHOTO_EXTENSIONS

    def effective_time_window(self) -> int:
        minutes = coerce_positive_int(self.time_window_minutes, DEFAULT_TIME_WINDOW_MINUTES)
        self.time_window_minutes = minutes
        return minutes

    def effective_max_files(self) -> int:
        count = coerce_positive_int(self.max_files, DEFAULT_MAX_FILES)
        self.max_files = count
        return count
