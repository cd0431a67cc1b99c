#!/usr/bin/env python3
"""
media-transfer: copy the latest capture session from a camera card to a
backup volume, skipping files that were already transferred.

Usage:
    python media_transfer.py --volume /media/SDCARD /media/USBSTICK
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from config import (
    DEFAULT_MAX_FILES,
    DEFAULT_PHOTO_EXTENSIONS,
    DEFAULT_TIME_WINDOW_MINUTES,
    DEFAULT_VIDEO_EXTENSIONS,
    SelectionMode,
    TransferSettings,
)
from models import Volume
from progress import ProgressReport
from transfer import TransferOrchestrator, TransferOutcome, TransferStatus
from transfer_log import TransferLog


# ── Progress helpers ──────────────────────────────────────────────────────────

class _NoOpBar:
    """Minimal tqdm-compatible no-op for --no-progress mode."""
    def __init__(self, *args, **kwargs):
        self.n = 0

    def update(self, n=1):
        self.n += n

    def set_description_str(self, desc=None, refresh=True):
        pass

    def set_postfix_str(self, s="", refresh=True):
        pass

    def close(self):
        pass


class ProgressBarSink:
    """Renders ProgressReports on a tqdm byte bar, created lazily per run."""

    def __init__(self, use_progress: bool) -> None:
        self.use_progress = use_progress
        self._bar = None

    def _make_bar(self, total: int):
        if self.use_progress:
            return tqdm(total=total, unit="B", unit_scale=True, unit_divisor=1024, ncols=100)
        return _NoOpBar()

    def __call__(self, report: ProgressReport) -> None:
        if self._bar is None:
            self._bar = self._make_bar(report.bytes_total)
        self._bar.set_description_str(report.files_counter)
        self._bar.set_postfix_str(report.overall_eta or report.file_eta)
        delta = report.bytes_done - self._bar.n
        if delta > 0:
            self._bar.update(delta)

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None


# ── Output ────────────────────────────────────────────────────────────────────

def print_outcome(outcome: TransferOutcome) -> None:
    print("\n" + "=" * 44)
    print("  Media Transfer Summary")
    print("=" * 44)

    if outcome.summary is None:
        print(f"\n{outcome.message}")
        if outcome.plan is not None and outcome.plan.skipped:
            print(f"Skipped : {len(outcome.plan.skipped):>6,} files (already on destination)")
        print()
        return

    print()
    for line in outcome.summary.lines():
        print(f"  {line}")
    print()


def print_notification(title: str, message: str) -> None:
    # Success details come from print_outcome; only surface the rest here.
    if title == "Success":
        return
    stream = sys.stderr if title == "Error" else sys.stdout
    tqdm.write(f"{title}: {message}", file=stream)


# ── CLI ───────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="media-transfer",
        description=(
            "Copy the most recent media from a source volume (camera card) to "
            "TransferredMedia/<timestamp>/Videos|Photos on a destination volume, "
            "skipping files already transferred (same name and size)."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  media-transfer --volume /media/SDCARD /media/USB\n"
            "  media-transfer --volume /media/SDCARD /media/USB --mode count --max-files 25\n"
            "  media-transfer --volume /media/SDCARD /media/USB --window 90 --no-photos\n"
        ),
    )
    parser.add_argument(
        "--volume",
        nargs="+",
        required=True,
        metavar="PATH",
        help="Candidate volume roots. The first holding media is the source, "
             "the next other one the destination.",
    )
    parser.add_argument(
        "--label",
        nargs="+",
        default=[],
        metavar="NAME",
        help="Optional human labels, matched to --volume by position.",
    )
    parser.add_argument(
        "--mode",
        choices=[m.value for m in SelectionMode],
        default=SelectionMode.TIME_WINDOW.value,
        help="'time': files within --window minutes of the newest file per type; "
             "'count': the --max-files newest files (default: time).",
    )
    parser.add_argument(
        "--window",
        default=str(DEFAULT_TIME_WINDOW_MINUTES),
        metavar="MINUTES",
        help=f"Time window in minutes (default: {DEFAULT_TIME_WINDOW_MINUTES}).",
    )
    parser.add_argument(
        "--max-files",
        default=str(DEFAULT_MAX_FILES),
        metavar="N",
        help=f"Number of files in count mode (default: {DEFAULT_MAX_FILES}).",
    )
    parser.add_argument(
        "--no-videos",
        action="store_true",
        help="Do not transfer videos.",
    )
    parser.add_argument(
        "--no-photos",
        action="store_true",
        help="Do not transfer photos.",
    )
    parser.add_argument(
        "--video-ext",
        default=DEFAULT_VIDEO_EXTENSIONS,
        metavar="LIST",
        help="Comma-separated video extensions.",
    )
    parser.add_argument(
        "--photo-ext",
        default=DEFAULT_PHOTO_EXTENSIONS,
        metavar="LIST",
        help="Comma-separated photo extensions.",
    )
    parser.add_argument(
        "--log-file",
        metavar="PATH",
        default=None,
        help="Also append log lines to this file.",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the progress bar (useful when piping output to log files).",
    )
    return parser


def settings_from_args(args: argparse.Namespace) -> TransferSettings:
    return TransferSettings(
        mode=SelectionMode(args.mode),
        time_window_minutes=args.window,
        max_files=args.max_files,
        transfer_videos=not args.no_videos,
        transfer_photos=not args.no_photos,
        video_extensions=args.video_ext,
        photo_extensions=args.photo_ext,
    )


def volumes_from_args(args: argparse.Namespace) -> List[Volume]:
    volumes: List[Volume] = []
    for position, raw in enumerate(args.volume):
        root = Path(raw).expanduser().resolve()
        label = args.label[position] if position < len(args.label) else root.name or str(root)
        volumes.append(Volume(root=root, label=label))
    return volumes


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = settings_from_args(args)
    log_file = Path(args.log_file).expanduser().resolve() if args.log_file else None
    log = TransferLog(echo=True, log_file=log_file)
    bar = ProgressBarSink(use_progress=not args.no_progress)

    orchestrator = TransferOrchestrator(
        settings, log=log, progress_sink=bar, notify=print_notification
    )
    try:
        outcome = orchestrator.run_volumes(volumes_from_args(args))
    finally:
        bar.close()

    if settings.mode is SelectionMode.TIME_WINDOW and args.window != str(settings.time_window_minutes):
        print(f"Time window set to {settings.time_window_minutes} minutes.")
    if settings.mode is SelectionMode.FIXED_COUNT and args.max_files != str(settings.max_files):
        print(f"Max files set to {settings.max_files}.")

    print_outcome(outcome)
    return 0 if outcome.status is not TransferStatus.FAILED else 1


if __name__ == "__main__":
    sys.exit(main())
