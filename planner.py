from dataclasses import dataclass, field
from enum import Enum
from typing import List, NamedTuple, Set

from destination_index import DestinationIndex
from models import IdentityKey, MediaCategory, MediaFile
from scanner import MediaTypes
from selection import SelectionResult


class SkipReason(Enum):
    ON_DESTINATION = "on_destination"   # already under TransferredMedia
    IN_SELECTION = "in_selection"       # an earlier selected file has the same key


class SkippedFile(NamedTuple):
    name: str
    size: int
    reason: SkipReason


@dataclass
class TransferPlan:
    to_copy: List[MediaFile] = field(default_factory=list)   # oldest first
    skipped_files: List[SkippedFile] = field(default_factory=list)
    videos_to_copy: int = 0
    photos_to_copy: int = 0
    videos_skipped: int = 0
    photos_skipped: int = 0
    total_bytes: int = 0

    @property
    def skipped(self) -> List[str]:
        return [s.name for s in self.skipped_files]

    @property
    def skipped_bytes(self) -> int:
        return sum(s.size for s in self.skipped_files)

    @property
    def is_empty(self) -> bool:
        return not self.to_copy

    @property
    def categories(self) -> Set[MediaCategory]:
        """Categories that will receive at least one file."""
        cats = set()
        if self.videos_to_copy:
            cats.add(MediaCategory.VIDEO)
        if self.photos_to_copy:
            cats.add(MediaCategory.PHOTO)
        return cats


def plan_transfer(
    selection: SelectionResult,
    index: DestinationIndex,
    media_types: MediaTypes,
) -> TransferPlan:
    """
    Split the selection into files to copy and already-transferred files.

    A file is skipped when its (name, size) is in the destination index, or
    when an earlier file of this selection already claimed the same key.
    """
    plan = TransferPlan()
    planned: Set[IdentityKey] = set()

    for media in selection.files:
        is_photo = media_types.classify(media.extension) is MediaCategory.PHOTO
        key = media.key
        if index.contains(key):
            reason = SkipReason.ON_DESTINATION
        elif key in planned:
            reason = SkipReason.IN_SELECTION
        else:
            planned.add(key)
            plan.to_copy.append(media)
            plan.total_bytes += media.size
            if is_photo:
                plan.photos_to_copy += 1
            else:
                plan.videos_to_copy += 1
            continue

        plan.skipped_files.append(SkippedFile(media.name, media.size, reason))
        if is_photo:
            plan.photos_skipped += 1
        else:
            plan.videos_skipped += 1

    plan.to_copy.sort(key=lambda m: m.modified)
    return plan
