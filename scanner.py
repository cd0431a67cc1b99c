import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, FrozenSet, List, Set

from config import TransferSettings, normalize_extension, parse_extension_set
from models import MediaCategory, MediaFile


def classify_extension(
    extension: str,
    video_extensions: FrozenSet[str],
    photo_extensions: FrozenSet[str],
) -> MediaCategory:
    """Return VIDEO, PHOTO, or NONE for an extension (case-insensitive)."""
    ext = normalize_extension(extension)
    if not ext:
        return MediaCategory.NONE
    if ext in video_extensions:
        return MediaCategory.VIDEO
    if ext in photo_extensions:
        return MediaCategory.PHOTO
    return MediaCategory.NONE


@dataclass(frozen=True)
class MediaTypes:
    """Extension sets plus which categories the caller has switched on."""
    video_extensions: FrozenSet[str]
    photo_extensions: FrozenSet[str]
    videos_enabled: bool = True
    photos_enabled: bool = True

    @staticmethod
    def from_settings(settings: TransferSettings) -> "MediaTypes":
        return MediaTypes(
            video_extensions=parse_extension_set(settings.video_extensions),
            photo_extensions=parse_extension_set(settings.photo_extensions),
            videos_enabled=settings.transfer_videos,
            photos_enabled=settings.transfer_photos,
        )

    @property
    def enabled_categories(self) -> Set[MediaCategory]:
        enabled = set()
        if self.videos_enabled:
            enabled.add(MediaCategory.VIDEO)
        if self.photos_enabled:
            enabled.add(MediaCategory.PHOTO)
        return enabled

    def classify(self, extension: str) -> MediaCategory:
        """Category of an extension, or NONE if that category is disabled."""
        category = classify_extension(
            extension, self.video_extensions, self.photo_extensions
        )
        if category in self.enabled_categories:
            return category
        return MediaCategory.NONE


def _raise(error: OSError) -> None:
    raise error


def _walk_files(root: Path):
    # onerror re-raises so an unreadable subtree fails the whole root
    for dirpath, _dirnames, filenames in os.walk(root, onerror=_raise):
        for filename in filenames:
            yield Path(dirpath) / filename


def scan_media(
    root: Path,
    media_types: MediaTypes,
    log: Callable[[str], None],
) -> List[MediaFile]:
    """
    Walk root recursively and return a MediaFile snapshot for every regular
    file in an enabled category. Any traversal error is logged once and
    the root is treated as holding no media.
    """
    found: List[MediaFile] = []
    try:
        if not root.is_dir():
            raise FileNotFoundError(f"not a directory: {root}")
        for file_path in _walk_files(root):
            if not file_path.is_file():
                continue
            if media_types.classify(file_path.suffix) is MediaCategory.NONE:
                continue
            found.append(MediaFile.from_path(file_path))
    except OSError as e:
        log(f"Error scanning {root}: {e}")
        return []
    return found
