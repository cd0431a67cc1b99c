import os
from pathlib import Path
from typing import Callable, Iterable, Optional, Set

from models import IdentityKey, identity_key

ARCHIVE_FOLDER_NAME = "TransferredMedia"


class DestinationIndex:
    """
    Files already present under destination_root/TransferredMedia.

    Holds the (name, size) identity of every file for O(1) duplicate
    lookup. The index is rebuilt from the folder on every run and never written anywhere.
    """

    def __init__(self, keys: Optional[Iterable[IdentityKey]] = None) -> None:
        self._keys: Set[IdentityKey] = set(keys or ())

    @classmethod
    def build(
        cls, destination_root: Path, log: Callable[[str], None]
    ) -> "DestinationIndex":
        archive = cls.archive_path_for(destination_root)
        if not archive.is_dir():
            return cls()

        keys: Set[IdentityKey] = set()
        try:
            for dirpath, _dirnames, filenames in os.walk(archive, onerror=_raise):
                for filename in filenames:
                    size = (Path(dirpath) / filename).stat().st_size
                    keys.add(identity_key(filename, size))
        except OSError as e:
            log(f"Error indexing existing files: {e}")
            return cls()

        log(f"Found {len(keys)} existing file(s) on destination.")
        return cls(keys)

    def contains(self, key: IdentityKey) -> bool:
        """Return True if a file with this identity was already transferred."""
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    @staticmethod
    def archive_path_for(destination_root: Path) -> Path:
        return destination_root / ARCHIVE_FOLDER_NAME


def _raise(error: OSError) -> None:
    raise error
