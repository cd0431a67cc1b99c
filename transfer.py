"""
The transfer run: scan -> select -> index -> plan -> copy -> summarize.

Everything runs on the caller's thread, one file at a time. The only
other thread is the ProgressTracker, which reads the shared
TransferProgress record and is stopped on every exit path.
"""

import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from config import TransferSettings
from copier import build_destination_path, copy_file, create_session_folder, resolve_collision
from destination_index import DestinationIndex
from models import MediaCategory, MediaFile, TransferSummary, Volume
from planner import SkipReason, TransferPlan, plan_transfer
from progress import ProgressReport, ProgressTracker, TransferProgress, format_bytes, format_duration
from scanner import MediaTypes, scan_media
from selection import build_policy

LogSink = Callable[[str], None]
NotifySink = Callable[[str, str], None]


class TransferState(Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    SELECTING = "selecting"
    INDEXING = "indexing"
    PLANNING = "planning"
    NO_WORK = "no_work"
    COPYING = "copying"
    SUMMARIZING = "summarizing"
    FAILED = "failed"


class TransferStatus(Enum):
    COMPLETED = "completed"
    NO_WORK = "no_work"
    FAILED = "failed"


@dataclass
class TransferOutcome:
    status: TransferStatus
    message: str
    plan: Optional[TransferPlan] = None
    summary: Optional[TransferSummary] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status is not TransferStatus.FAILED


def _ignore_report(report: ProgressReport) -> None:
    pass


class TransferOrchestrator:
    def __init__(
        self,
        settings: TransferSettings,
        log: LogSink,
        progress_sink: Callable[[ProgressReport], None] = _ignore_report,
        notify: Optional[NotifySink] = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = datetime.now,
        progress_interval: float = 0.25,
    ) -> None:
        self.settings = settings
        self.log = log
        self.notify = notify
        self.now = now
        self.progress = TransferProgress(clock=clock)
        self.tracker = ProgressTracker(self.progress, progress_sink, interval=progress_interval)
        self.state = TransferState.IDLE
        self.history: List[TransferState] = [TransferState.IDLE]

    # ── State handling ───────────────────────────────────────────────────────

    def _enter(self, state: TransferState) -> None:
        self.state = state
        self.history.append(state)

    def _no_work(self, message: str, title: Optional[str] = None) -> TransferOutcome:
        self._enter(TransferState.NO_WORK)
        self.log(message)
        if title and self.notify is not None:
            self.notify(title, message)
        return TransferOutcome(TransferStatus.NO_WORK, message)

    def _fail(self, error: BaseException) -> TransferOutcome:
        self.tracker.stop()
        self._enter(TransferState.FAILED)
        self.log(f"Error during transfer: {error}")
        if self.notify is not None:
            self.notify("Error", f"Transfer failed: {error}")
        return TransferOutcome(TransferStatus.FAILED, f"Transfer failed: {error}", error=error)

    # ── Entry points ─────────────────────────────────────────────────────────

    def run_volumes(self, volumes: Sequence[Volume]) -> TransferOutcome:
        """
        Pair up collaborator volumes: the first one holding enabled media is
        the source, the first other one is the destination.
        """
        self.log("Checking for removable drives...")
        if not volumes:
            return self._no_work("No removable drives detected.", "No Drives Found")
        if len(volumes) == 1:
            return self._no_work(
                f"Only 1 removable drive detected: {volumes[0].root}", "Need Both Drives"
            )

        self.log(f"Found {len(volumes)} removable drives. Processing...")
        try:
            media_types = MediaTypes.from_settings(self.settings)
            self._enter(TransferState.SCANNING)
            source = None
            candidates: List[MediaFile] = []
            for volume in volumes:
                candidates = scan_media(volume.root, media_types, self.log)
                if candidates:
                    source = volume
                    break
            if source is None:
                return self._no_work("No media files found on any removable drive.")

            destination = next((v for v in volumes if v.root != source.root), None)
            if destination is None:
                return self._no_work("Could not identify destination drive.")
            self.log(f"Source: {source.describe()}")
            self.log(f"Destination: {destination.describe()}")
            return self._transfer(destination.root, media_types, candidates)
        except Exception as e:
            return self._fail(e)

    def run(self, source_root: Path, destination_root: Path) -> TransferOutcome:
        try:
            media_types = MediaTypes.from_settings(self.settings)
            self._enter(TransferState.SCANNING)
            candidates = scan_media(source_root, media_types, self.log)
            return self._transfer(destination_root, media_types, candidates)
        except Exception as e:
            return self._fail(e)

    # ── Pipeline ─────────────────────────────────────────────────────────────

    def _transfer(
        self,
        destination_root: Path,
        media_types: MediaTypes,
        candidates: List[MediaFile],
    ) -> TransferOutcome:
        self._enter(TransferState.SELECTING)
        policy = build_policy(self.settings)
        self.log(f"Using {policy.describe()}")
        selection = policy.select(candidates, media_types)
        for window in selection.windows:
            noun = "video" if window.category is MediaCategory.VIDEO else "photo"
            self.log(
                f"Latest {noun}: {window.latest.name} at "
                f"{window.latest.modified:%Y-%m-%d %H:%M:%S}"
            )
            self.log(
                f"{noun.capitalize()} cutoff time: {window.cutoff:%Y-%m-%d %H:%M:%S} "
                f"(last {policy.window_minutes} minutes)"
            )
            self.log(f"Found {window.count} {noun}(s) within time window.")

        if not selection.files:
            return self._no_work("No media files found to transfer.")
        self.log(
            f"Found {len(selection)} media file(s) to transfer: "
            f"{selection.video_count} video(s), {selection.photo_count} photo(s)."
        )

        self._enter(TransferState.INDEXING)
        index = DestinationIndex.build(destination_root, self.log)

        self._enter(TransferState.PLANNING)
        plan = plan_transfer(selection, index, media_types)
        for skipped in plan.skipped_files:
            if skipped.reason is SkipReason.IN_SELECTION:
                self.log(f"Skipping (duplicate in selection): {skipped.name}")
            else:
                self.log(f"Skipping (already exists): {skipped.name}")
        if plan.is_empty:
            outcome = self._no_work(
                "All files already exist on destination. Nothing to transfer.",
                "Already Transferred",
            )
            outcome.plan = plan
            return outcome

        self.log(
            f"Transferring {len(plan.to_copy)} new file(s): "
            f"{plan.videos_to_copy} video(s), {plan.photos_to_copy} photo(s). "
            f"Skipped {len(plan.skipped)} duplicate(s)."
        )

        self._enter(TransferState.COPYING)
        session_folder = self._copy_all(plan, destination_root, media_types)

        self._enter(TransferState.SUMMARIZING)
        summary = self._summarize(plan, session_folder)
        self.log(
            f"Transfer completed in {format_duration(summary.elapsed_seconds)}. "
            f"{summary.files_copied} new file(s) transferred, "
            f"{summary.files_skipped} duplicate(s) skipped."
        )
        if self.notify is not None:
            self.notify("Success", "\n".join(["Transfer complete!"] + summary.lines()))
        self._enter(TransferState.IDLE)
        return TransferOutcome(
            TransferStatus.COMPLETED, "Transfer complete!", plan=plan, summary=summary
        )

    def _copy_all(
        self, plan: TransferPlan, destination_root: Path, media_types: MediaTypes
    ) -> Path:
        total = len(plan.to_copy)
        self.progress.start_run(total, plan.total_bytes)
        self.tracker.start()
        try:
            session_folder = create_session_folder(
                destination_root, self.now(), plan.categories
            )
            for index, media in enumerate(plan.to_copy, start=1):
                is_photo = media_types.classify(media.extension) is MediaCategory.PHOTO
                category = MediaCategory.PHOTO if is_photo else MediaCategory.VIDEO
                dest_path = resolve_collision(
                    build_destination_path(session_folder, category, media.name)
                )
                self.log(
                    f"Transferring ({index}/{total}) "
                    f"[{'Photo' if is_photo else 'Video'}]: {media.name} "
                    f"({format_bytes(media.size)}) - {media.modified:%H:%M:%S}"
                )
                self.progress.start_file(index, media.name, media.size)
                copy_file(media.path, dest_path, media.size, progress=self.progress)
                self.progress.finish_file()
                self.log(f"Completed: {media.name}")
            self.progress.finish_run()
            self.tracker.stop(final=True)
        finally:
            self.tracker.stop()
        return session_folder

    def _summarize(self, plan: TransferPlan, session_folder: Path) -> TransferSummary:
        return TransferSummary(
            destination_folder=str(session_folder),
            videos_copied=plan.videos_to_copy,
            photos_copied=plan.photos_to_copy,
            videos_skipped=plan.videos_skipped,
            photos_skipped=plan.photos_skipped,
            skipped_bytes=plan.skipped_bytes,
            oldest=plan.to_copy[0].modified,
            newest=plan.to_copy[-1].modified,
            total_bytes=self.progress.snapshot().total_bytes_done,
            elapsed_seconds=self.progress.run_elapsed,
        )
