"""Tests for destination_index.py — building the already-transferred index."""
from unittest.mock import patch

from destination_index import ARCHIVE_FOLDER_NAME, DestinationIndex
from models import identity_key
from tests.conftest import make_file


class TestBuild:
    def test_missing_archive_is_empty_first_run(self, dst):
        log = []
        index = DestinationIndex.build(dst, log.append)
        assert len(index) == 0
        assert log == []

    def test_indexes_all_session_folders(self, dst):
        archive = dst / ARCHIVE_FOLDER_NAME
        make_file(archive / "2024-01-01_10-00-00" / "Videos" / "vid1.mp4", b"a" * 50)
        make_file(archive / "2024-02-01_10-00-00" / "Photos" / "img1.jpg", b"b" * 5)
        index = DestinationIndex.build(dst, [].append)
        assert index.contains(identity_key("vid1.mp4", 50))
        assert index.contains(identity_key("img1.jpg", 5))
        assert len(index) == 2

    def test_includes_non_media_files(self, dst):
        make_file(dst / ARCHIVE_FOLDER_NAME / "notes.txt", b"hello")
        index = DestinationIndex.build(dst, [].append)
        assert index.contains(identity_key("notes.txt", 5))

    def test_files_outside_archive_ignored(self, dst):
        make_file(dst / "vid1.mp4", b"a" * 50)
        make_file(dst / "Other" / "img1.jpg", b"b")
        (dst / ARCHIVE_FOLDER_NAME).mkdir()
        index = DestinationIndex.build(dst, [].append)
        assert len(index) == 0

    def test_logs_existing_count(self, dst):
        make_file(dst / ARCHIVE_FOLDER_NAME / "s" / "a.mp4", b"1")
        log = []
        DestinationIndex.build(dst, log.append)
        assert log == ["Found 1 existing file(s) on destination."]

    def test_same_key_in_two_sessions_counted_once(self, dst):
        archive = dst / ARCHIVE_FOLDER_NAME
        make_file(archive / "s1" / "Videos" / "clip.mp4", b"xyz")
        make_file(archive / "s2" / "Videos" / "clip.mp4", b"abc")
        index = DestinationIndex.build(dst, [].append)
        assert len(index) == 1
        assert index.contains(identity_key("clip.mp4", 3))

    def test_scan_error_logged_and_empty(self, dst):
        make_file(dst / ARCHIVE_FOLDER_NAME / "s" / "a.mp4", b"1")
        log = []
        with patch("destination_index.os.walk", side_effect=PermissionError("denied")):
            index = DestinationIndex.build(dst, log.append)
        assert len(index) == 0
        assert log == ["Error indexing existing files: denied"]


class TestLookup:
    def test_contains_is_case_insensitive_on_name(self):
        index = DestinationIndex([identity_key("VID1.MP4", 10)])
        assert index.contains(identity_key("vid1.mp4", 10))

    def test_size_must_match(self):
        index = DestinationIndex([identity_key("vid1.mp4", 10)])
        assert not index.contains(identity_key("vid1.mp4", 11))

    def test_empty_index_contains_nothing(self):
        assert not DestinationIndex().contains(identity_key("x.jpg", 1))

    def test_archive_path_for(self, dst):
        assert DestinationIndex.archive_path_for(dst) == dst / "TransferredMedia"
