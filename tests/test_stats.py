"""Tests for hunkmap.stats.DiffMapStats."""

from hunkmap.diff_map import Hunk
from hunkmap.stats import DiffMapStats


def test_count_map():
    s = DiffMapStats()
    s.count_map({"a.py": [Hunk(1, 1, "x"), Hunk(4, 5, "y")], "b.png": []})
    assert s.paths == 2
    assert s.paths_without_ranges == 1
    assert s.hunks == 2


def test_format_summary():
    lines = DiffMapStats(commits=2, file_diffs=3, paths=2, hunks=4).format_summary()
    assert lines[0] == "--- hunkmap summary ---"
    assert any(line.startswith("commits:") and line.endswith("2") for line in lines)
    assert any(line.startswith("hunks:") and line.endswith("4") for line in lines)
