# tests/test_archive.py
"""
Tests for archive.py - Packing and removing staging trees
"""
import tarfile

import pytest

from csvtocourse.archive import pack_mbz, remove_staging
from csvtocourse.errors import StagingWriteError


class TestPackMbz:
    """Tests for pack_mbz()"""

    def test_members_at_root(self, generator, config, welcome_rows, tmp_path):
        staging = config.staging_root() / generator.generate(welcome_rows, "Course", "C1")
        output = pack_mbz(staging, tmp_path / "out" / "course.mbz")

        with tarfile.open(output, "r:gz") as tar:
            names = tar.getnames()

        assert "moodle_backup.xml" in names
        assert "course/course.xml" in names
        assert "activities/label_1/label.xml" in names
        assert not any(n.startswith(staging.name) for n in names)

    def test_replaces_existing(self, tmp_path):
        staging = tmp_path / "stage"
        staging.mkdir()
        (staging / "moodle_backup.xml").write_text("<x/>")
        output = tmp_path / "c.mbz"
        output.write_text("old")

        pack_mbz(staging, output)
        assert tarfile.is_tarfile(output)

    def test_unwritable_output(self, tmp_path, mocker):
        staging = tmp_path / "stage"
        staging.mkdir()
        mocker.patch("csvtocourse.archive.tarfile.open", side_effect=PermissionError("denied"))

        with pytest.raises(StagingWriteError):
            pack_mbz(staging, tmp_path / "c.mbz")


class TestRemoveStaging:
    """Tests for remove_staging()"""

    def test_removes_tree(self, tmp_path):
        staging = tmp_path / "stage"
        (staging / "course").mkdir(parents=True)
        (staging / "course" / "course.xml").write_text("<course/>")

        remove_staging(staging)
        assert not staging.exists()

    def test_missing_is_fine(self, tmp_path):
        remove_staging(tmp_path / "gone")
