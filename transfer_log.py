from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from tqdm import tqdm

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class TransferLog:
    """
    Append-only, timestamped log of transfer events.

    Lines are kept in memory, echoed through tqdm.write (so an active
    progress bar is redrawn below them instead of being torn), and
    optionally appended to a log file.
    """

    def __init__(
        self,
        echo: bool = True,
        log_file: Optional[Path] = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.lines: List[str] = []
        self._echo = echo
        self._log_file = log_file
        self._now = now
        if log_file is not None:
            log_file.parent.mkdir(parents=True, exist_ok=True)

    def __call__(self, message: str) -> None:
        line = f"[{self._now().strftime(TIMESTAMP_FORMAT)}] {message}"
        self.lines.append(line)
        if self._echo:
            tqdm.write(line)
        if self._log_file is not None:
            with open(self._log_file, "a", encoding="utf-8") as f:
                f.write(line + "\n")
