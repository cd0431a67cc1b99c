"""
Live transfer progress.

TransferProgress is the one record shared between the copy loop (writer)
and the ProgressTracker thread (reader). All access goes through a lock;
the tracker only ever sees immutable ProgressState snapshots.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

SIZE_UNITS = ("B", "KB", "MB", "GB")

TICK_INTERVAL = 0.25          # seconds between progress reports
FILE_RATE_MIN_ELAPSED = 0.5   # file stopwatch must reach this before a file ETA
RUN_RATE_MIN_ELAPSED = 1.0    # run stopwatch must reach this before a total ETA


def format_bytes(num_bytes: int) -> str:
    """1536 -> '1.5 KB'. Binary units, at most two decimals."""
    value = float(num_bytes)
    order = 0
    while value >= 1024 and order < len(SIZE_UNITS) - 1:
        value /= 1024
        order += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[order]}"


def format_duration(seconds: float) -> str:
    """125 -> '2m5s', 3603 -> '1h0m3s', 7.9 -> '7s'."""
    total = max(int(seconds), 0)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m{secs}s"
    return f"{secs}s"


@dataclass(frozen=True)
class ProgressState:
    current_file: str
    current_file_index: int
    total_files: int
    current_file_bytes: int
    current_file_size: int
    total_bytes_done: int        # completed files only
    total_bytes_planned: int
    file_elapsed: float
    run_elapsed: float
    file_running: bool
    run_running: bool

    @property
    def bytes_so_far(self) -> int:
        if self.file_running:
            return self.total_bytes_done + self.current_file_bytes
        return self.total_bytes_done


class TransferProgress:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._lock = threading.Lock()
        self._clock = clock
        self.current_file = ""
        self.current_file_index = 0
        self.total_files = 0
        self.current_file_bytes = 0
        self.current_file_size = 0
        self.total_bytes_done = 0
        self.total_bytes_planned = 0
        self._run_started: Optional[float] = None
        self._run_stopped: Optional[float] = None
        self._file_started: Optional[float] = None
        self._file_stopped: Optional[float] = None

    # ── Writer side (copy loop) ──────────────────────────────────────────────

    def start_run(self, total_files: int, total_bytes: int) -> None:
        with self._lock:
            self.total_files = total_files
            self.total_bytes_planned = total_bytes
            self.total_bytes_done = 0
            self.current_file_index = 0
            self._run_started = self._clock()
            self._run_stopped = None

    def start_file(self, index: int, name: str, size: int) -> None:
        with self._lock:
            self.current_file_index = index
            self.current_file = name
            self.current_file_size = size
            self.current_file_bytes = 0
            self._file_started = self._clock()
            self._file_stopped = None

    def add_bytes(self, count: int) -> None:
        with self._lock:
            self.current_file_bytes += count

    def finish_file(self) -> None:
        with self._lock:
            self.total_bytes_done += self.current_file_bytes
            self._file_stopped = self._clock()

    def finish_run(self) -> None:
        with self._lock:
            self._run_stopped = self._clock()

    # ── Reader side ──────────────────────────────────────────────────────────

    @staticmethod
    def _elapsed(started: Optional[float], stopped: Optional[float], now: float) -> float:
        if started is None:
            return 0.0
        return (stopped if stopped is not None else now) - started

    @property
    def run_elapsed(self) -> float:
        with self._lock:
            return self._elapsed(self._run_started, self._run_stopped, self._clock())

    def snapshot(self) -> ProgressState:
        with self._lock:
            now = self._clock()
            return ProgressState(
                current_file=self.current_file,
                current_file_index=self.current_file_index,
                total_files=self.total_files,
                current_file_bytes=self.current_file_bytes,
                current_file_size=self.current_file_size,
                total_bytes_done=self.total_bytes_done,
                total_bytes_planned=self.total_bytes_planned,
                file_elapsed=self._elapsed(self._file_started, self._file_stopped, now),
                run_elapsed=self._elapsed(self._run_started, self._run_stopped, now),
                file_running=self._file_started is not None and self._file_stopped is None,
                run_running=self._run_started is not None and self._run_stopped is None,
            )


@dataclass(frozen=True)
class ProgressReport:
    current_file: str
    percent: int                 # current file, 0-100
    overall_percent: int         # whole run, 0-100
    bytes_done: int
    bytes_total: int
    file_status: str = ""
    file_eta: str = ""
    overall_eta: str = ""
    files_counter: str = ""


def build_report(state: ProgressState) -> ProgressReport:
    """Turn a snapshot into display strings. Never divides by zero."""
    percent = 0
    if state.current_file_size > 0:
        percent = min(100, int(state.current_file_bytes * 100 / state.current_file_size))

    overall_percent = 0
    if state.total_bytes_planned > 0:
        overall_percent = min(100, int(state.bytes_so_far * 100 / state.total_bytes_planned))

    file_status = file_eta = ""
    if state.file_running and state.file_elapsed >= FILE_RATE_MIN_ELAPSED:
        rate = state.current_file_bytes / state.file_elapsed
        if rate > 0:
            remaining = max(state.current_file_size - state.current_file_bytes, 0)
            file_status = (
                f"{format_bytes(state.current_file_bytes)} / "
                f"{format_bytes(state.current_file_size)} @ {format_bytes(int(rate))}/s"
            )
            file_eta = f"~{format_duration(remaining / rate)} remaining"

    overall_eta = ""
    if state.run_running and state.run_elapsed >= RUN_RATE_MIN_ELAPSED:
        rate = state.bytes_so_far / state.run_elapsed
        if rate > 0:
            remaining = max(state.total_bytes_planned - state.bytes_so_far, 0)
            overall_eta = (
                f"Total: ~{format_duration(remaining / rate)} remaining "
                f"@ {format_bytes(int(rate))}/s"
            )

    return ProgressReport(
        current_file=state.current_file,
        percent=percent,
        overall_percent=overall_percent,
        bytes_done=state.bytes_so_far,
        bytes_total=state.total_bytes_planned,
        file_status=file_status,
        file_eta=file_eta,
        overall_eta=overall_eta,
        files_counter=f"{state.current_file_index} of {state.total_files} files",
    )


class ProgressTracker:
    """
    Polls a TransferProgress on its own thread every `interval` seconds and
    hands a ProgressReport to `sink`. Independent of copy events.
    """

    def __init__(
        self,
        progress: TransferProgress,
        sink: Callable[[ProgressReport], None],
        interval: float = TICK_INTERVAL,
    ) -> None:
        self.progress = progress
        self.sink = sink
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self) -> ProgressReport:
        return build_report(self.progress.snapshot())

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            self.sink(self.tick())

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="progress", daemon=True)
        self._thread.start()

    def stop(self, final: bool = False) -> None:
        """Stop polling; with final=True emit one last report."""
        was_running = self.running
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None
        if final and was_running:
            self.sink(self.tick())

    def __enter__(self) -> "ProgressTracker":
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self.stop()
