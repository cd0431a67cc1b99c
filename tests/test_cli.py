"""CLI tests — argument parsing and main() against temporary volumes."""
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from config import SelectionMode
from copier import CopyError
from media_transfer import build_parser, main, settings_from_args, volumes_from_args
from tests.conftest import make_file

SHOOT = datetime(2024, 1, 1, 10, 0, 0)


def _card(src):
    make_file(src / "DCIM" / "vid1.mp4", b"a" * 300, modified=SHOOT)
    make_file(src / "DCIM" / "img1.jpg", b"b" * 30, modified=SHOOT + timedelta(minutes=5))


class TestParser:
    def test_volume_is_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_defaults(self):
        args = build_parser().parse_args(["--volume", "/a", "/b"])
        settings = settings_from_args(args)
        assert settings.mode is SelectionMode.TIME_WINDOW
        assert settings.time_window_minutes == "40"
        assert settings.transfer_videos and settings.transfer_photos
        assert args.no_progress is False

    def test_count_mode_flags(self):
        args = build_parser().parse_args(
            ["--volume", "/a", "/b", "--mode", "count", "--max-files", "3", "--no-photos"]
        )
        settings = settings_from_args(args)
        assert settings.mode is SelectionMode.FIXED_COUNT
        assert settings.effective_max_files() == 3
        assert settings.transfer_photos is False

    def test_unknown_mode_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--volume", "/a", "--mode", "newest"])

    def test_labels_by_position(self, tmp_path):
        args = build_parser().parse_args(
            ["--volume", str(tmp_path / "card"), str(tmp_path / "usb"), "--label", "SDCARD"]
        )
        volumes = volumes_from_args(args)
        assert volumes[0].label == "SDCARD"
        assert volumes[1].label == "usb"
        assert volumes[1].root == (tmp_path / "usb").resolve()


class TestMain:
    def test_transfers_and_prints_summary(self, src, dst, capsys):
        _card(src)
        code = main(["--volume", str(src), str(dst), "--no-progress"])
        out = capsys.readouterr().out
        assert code == 0
        assert "Media Transfer Summary" in out
        assert "Files transferred: 2" in out
        assert "Source: " in out
        assert len(list((dst / "TransferredMedia").rglob("*.mp4"))) == 1
        assert len(list((dst / "TransferredMedia").rglob("*.jpg"))) == 1

    def test_second_run_reports_already_transferred(self, src, dst, capsys):
        _card(src)
        main(["--volume", str(src), str(dst), "--no-progress"])
        capsys.readouterr()
        code = main(["--volume", str(src), str(dst), "--no-progress"])
        out = capsys.readouterr().out
        assert code == 0
        assert "Already Transferred: All files already exist on destination." in out
        assert "Skipped :      2 files (already on destination)" in out

    def test_single_volume_is_not_an_error(self, src, capsys):
        _card(src)
        code = main(["--volume", str(src), "--no-progress"])
        out = capsys.readouterr().out
        assert code == 0
        assert "Need Both Drives: Only 1 removable drive detected" in out

    def test_coerced_window_is_reported(self, src, dst, capsys):
        _card(src)
        main(["--volume", str(src), str(dst), "--window", "soon", "--no-progress"])
        assert "Time window set to 40 minutes." in capsys.readouterr().out

    def test_coerced_max_files_is_reported(self, src, dst, capsys):
        _card(src)
        main(["--volume", str(src), str(dst), "--mode", "count", "--max-files", "0",
              "--no-progress"])
        assert "Max files set to 10." in capsys.readouterr().out

    def test_valid_window_not_reported(self, src, dst, capsys):
        _card(src)
        main(["--volume", str(src), str(dst), "--window", "90", "--no-progress"])
        assert "Time window set to" not in capsys.readouterr().out

    def test_failure_exit_code(self, src, dst, capsys):
        _card(src)
        with patch("transfer.copy_file", side_effect=CopyError("device removed")):
            code = main(["--volume", str(src), str(dst), "--no-progress"])
        captured = capsys.readouterr()
        assert code == 1
        assert "Error: Transfer failed: device removed" in captured.err
        assert "Transfer failed: device removed" in captured.out

    def test_log_file_written(self, src, dst, tmp_path, capsys):
        _card(src)
        log_path = tmp_path / "logs" / "transfer.log"
        main(["--volume", str(src), str(dst), "--no-progress", "--log-file", str(log_path)])
        text = log_path.read_text(encoding="utf-8")
        assert "Checking for removable drives..." in text
        assert "Completed: vid1.mp4" in text
