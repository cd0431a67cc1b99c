"""
Selection policies: decide which scanned files make up the current
capture session.

Both policies are pure functions of the candidate list and one number.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Sequence, Union

from config import SelectionMode, TransferSettings
from models import MediaCategory, MediaFile
from scanner import MediaTypes


@dataclass(frozen=True)
class CategoryWindow:
    category: MediaCategory
    latest: MediaFile
    cutoff: datetime
    count: int


@dataclass
class SelectionResult:
    files: List[MediaFile] = field(default_factory=list)
    video_count: int = 0
    photo_count: int = 0
    windows: List[CategoryWindow] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.files)


def _counted(files: List[MediaFile], media_types: MediaTypes) -> SelectionResult:
    result = SelectionResult(files=files)
    for media in files:
        category = media_types.classify(media.extension)
        if category is MediaCategory.VIDEO:
            result.video_count += 1
        elif category is MediaCategory.PHOTO:
            result.photo_count += 1
    return result


class TimeWindowPolicy:
    """
    Per category: everything modified within window_minutes of that
    category's newest file. Videos and photos each get their own anchor.
    """

    def __init__(self, window_minutes: int) -> None:
        self.window_minutes = window_minutes

    def describe(self) -> str:
        return f"time-based mode: last {self.window_minutes} minutes from latest file"

    def select(
        self, candidates: Sequence[MediaFile], media_types: MediaTypes
    ) -> SelectionResult:
        window = timedelta(minutes=self.window_minutes)
        selected: List[MediaFile] = []
        windows: List[CategoryWindow] = []

        for category in (MediaCategory.VIDEO, MediaCategory.PHOTO):
            if category not in media_types.enabled_categories:
                continue
            members = [m for m in candidates if media_types.classify(m.extension) is category]
            if not members:
                continue
            latest = max(members, key=lambda m: m.modified)
            cutoff = latest.modified - window
            recent = [m for m in members if m.modified >= cutoff]
            selected.extend(recent)
            windows.append(CategoryWindow(category, latest, cutoff, len(recent)))

        result = _counted(selected, media_types)
        result.windows = windows
        return result


class FixedCountPolicy:
    """The max_files newest files across all enabled categories."""

    def __init__(self, max_files: int) -> None:
        self.max_files = max_files

    def describe(self) -> str:
        return f"fixed count mode: latest {self.max_files} files"

    def select(
        self, candidates: Sequence[MediaFile], media_types: MediaTypes
    ) -> SelectionResult:
        eligible = [
            m for m in candidates
            if media_types.classify(m.extension) is not MediaCategory.NONE
        ]
        newest_first = sorted(eligible, key=lambda m: m.modified, reverse=True)
        return _counted(newest_first[: self.max_files], media_types)


SelectionPolicy = Union[TimeWindowPolicy, FixedCountPolicy]


def build_policy(settings: TransferSettings) -> SelectionPolicy:
    """Build the configured policy, writing the coerced parameter back."""
    if settings.mode is SelectionMode.FIXED_COUNT:
        return FixedCountPolicy(settings.effective_max_files())
    return TimeWindowPolicy(settings.effective_time_window())
