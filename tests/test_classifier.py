"""Tests for path classification."""

from __future__ import annotations

from pathlib import Path, PurePath

import pytest

from reclaim.core.classifier import (
    BIG_FILE_THRESHOLD,
    CACHE_ROOT,
    GENERIC,
    TEMP_ROOT,
    classify,
    is_junk_extension,
    looks_temp,
)
from reclaim.models.junk import JunkCategory

MB = 1024 * 1024


class TestClassify:
    def test_tmp_file_is_temp(self):
        assert classify(Path("/any/root/foo.tmp"), 10) is JunkCategory.TEMP

    def test_cache_file_is_cache(self):
        assert classify(Path("/any/root/bar.cache"), 10) is JunkCategory.CACHE

    def test_large_plain_file_is_big(self):
        assert classify(Path("/any/root/movie.mp4"), 15 * MB) is JunkCategory.BIG

    def test_small_plain_file_defaults_to_temp(self):
        assert classify(Path("/any/root/notes.txt"), 2048) is JunkCategory.TEMP

    def test_threshold_is_exclusive(self):
        assert classify(Path("a.bin"), BIG_FILE_THRESHOLD) is JunkCategory.TEMP
        assert classify(Path("a.bin"), BIG_FILE_THRESHOLD + 1) is JunkCategory.BIG

    def test_name_matching_is_case_insensitive(self):
        assert classify(Path("MyCacheFile.bin"), 1) is JunkCategory.CACHE
        assert classify(Path("UPLOAD.TEMP"), 1) is JunkCategory.TEMP

    def test_temp_rule_wins_over_cache_rule(self):
        assert classify(Path("temp.cache"), 1) is JunkCategory.TEMP
        assert classify(Path("x.cache"), 1, TEMP_ROOT) is JunkCategory.TEMP

    def test_cache_root_wins_over_size(self):
        assert classify(Path("dump.log"), 50 * MB, CACHE_ROOT) is JunkCategory.CACHE

    def test_only_file_name_is_considered(self):
        path = Path("/tmp/cache/temp/report.log")
        assert classify(path, 20 * MB, GENERIC) is JunkCategory.BIG

    def test_custom_threshold(self):
        assert classify(Path("a.bin"), 200, big_threshold=100) is JunkCategory.BIG


class TestJunkExtension:
    @pytest.mark.parametrize(
        "name",
        ["a.tmp", "a.log", "a.bak", "a.cache", "a.temp", "a.old", "a.dmp", "a.crdownload", "a.part", "a.download"],
    )
    def test_known_extensions(self, name):
        assert is_junk_extension(name)

    def test_upper_case(self):
        assert is_junk_extension("CRASH.DMP")

    @pytest.mark.parametrize("name", ["photo.jpg", "notes.txt", "log", "backup.tar"])
    def test_other_files(self, name):
        assert not is_junk_extension(name)


class TestLooksTemp:
    def test_any_component_named_temp(self):
        assert looks_temp(PurePath("temp/a.bin"))
        assert looks_temp(PurePath("Download/temp/sub/b.jpg"))

    def test_media_without_temp_marker(self):
        assert not looks_temp(PurePath("Android/media/com.app/pic.jpg"))

    def test_media_with_temp_suffix(self):
        assert looks_temp(PurePath("Android/media/com.app/upload.TMP"))
        assert looks_temp(PurePath("Android/media/com.app/TempImage.jpg"))
