"""Tests for hunkmap.review against an in-memory review source."""

import logging

from hunkmap.diff_map import CommitRecord, FileDiff, Hunk
from hunkmap.review import (
    comment_on_line,
    fetch_diff_map,
    iter_commit_diffs,
    log_discussions,
)
from hunkmap.stats import DiffMapStats


class FakeSource:
    def __init__(self, commits, diffs, discussions=None):
        self.commits = commits
        self.diffs = diffs
        self.discussions = discussions or []
        self.fetched = []
        self.posted = []

    def list_commits(self, project_id, mr_iid):
        return list(self.commits)

    def get_commit_diff(self, project_id, sha):
        self.fetched.append(sha)
        return list(self.diffs.get(sha, []))

    def list_discussions(self, project_id, mr_iid):
        return list(self.discussions)

    def post_discussion(self, project_id, mr_iid, line, path, body, base_sha):
        self.posted.append((project_id, mr_iid, line, path, body, base_sha))
        return True

    def edit_note(self, project_id, mr_iid, discussion_id, note_id, body):
        return True


def _source():
    return FakeSource(
        [CommitRecord("a", "first"), CommitRecord("b", "second")],
        {
            "a": [
                FileDiff("foo.py", "foo.py", "@@ -1,1 +1,1 @@\n-x\n+y\n"),
                FileDiff("logo.png", "logo.png", "Binary files differ"),
            ],
            "b": [FileDiff("foo.py", "foo.py", "@@ -1,1 +3,2 @@\n x\n+z\n")],
        },
    )


# ---------------------------------------------------------------------------
# iter_commit_diffs / fetch_diff_map
# ---------------------------------------------------------------------------


def test_iter_commit_diffs_fetches_lazily():
    source = _source()
    pairs = iter_commit_diffs(source, 7, 3)
    commit, diffs = next(pairs)
    assert commit.id == "a"
    assert source.fetched == ["a"]
    next(pairs)
    assert source.fetched == ["a", "b"]


def test_fetch_diff_map():
    diff_map = fetch_diff_map(_source(), 7, 3)
    assert diff_map == {
        "foo.py": [Hunk(1, 1, "a"), Hunk(3, 4, "b")],
        "logo.png": [],
    }


def test_fetch_diff_map_fills_stats():
    stats = DiffMapStats()
    fetch_diff_map(_source(), 7, 3, stats=stats)
    assert stats == DiffMapStats(
        commits=2, file_diffs=3, paths=2, paths_without_ranges=1, hunks=2
    )


def test_fetch_diff_map_logs_ranges(caplog):
    with caplog.at_level(logging.DEBUG, logger="hunkmap.review"):
        fetch_diff_map(_source(), 7, 3)
    assert "Added foo.py: 3 to 4" in caplog.text


# ---------------------------------------------------------------------------
# log_discussions
# ---------------------------------------------------------------------------


def test_log_discussions(caplog):
    discussions = [
        {
            "id": "d1",
            "notes": [
                {
                    "body": "nit",
                    "position": {
                        "base_sha": "b",
                        "head_sha": "h",
                        "start_sha": "s",
                        "position_type": "text",
                        "new_path": "foo.py",
                        "old_path": "foo.py",
                        "new_line": 3,
                    },
                },
                {"body": "general remark", "position": None},
            ],
        },
        {"id": "d2", "notes": None},
    ]
    with caplog.at_level(logging.DEBUG, logger="hunkmap.review"):
        log_discussions(discussions)
    assert "Discussion d1" in caplog.text
    assert "base_sha=b head_sha=h start_sha=s" in caplog.text
    assert "new_line=3" in caplog.text
    assert "body=general remark" in caplog.text
    assert "Discussion d2" in caplog.text


# ---------------------------------------------------------------------------
# comment_on_line
# ---------------------------------------------------------------------------


def test_comment_on_changed_line_posts():
    source = _source()
    diff_map = {"foo.py": [Hunk(3, 4, "b")]}
    assert comment_on_line(source, 7, 3, diff_map, "foo.py", 4, "hi", "base")
    assert source.posted == [(7, 3, 4, "foo.py", "hi", "base")]


def test_comment_on_unchanged_line_skipped():
    source = _source()
    diff_map = {"foo.py": [Hunk(3, 4, "b")], "logo.png": []}
    assert not comment_on_line(source, 7, 3, diff_map, "foo.py", 5, "hi", "base")
    assert not comment_on_line(source, 7, 3, diff_map, "logo.png", 1, "hi", "base")
    assert source.posted == []


def test_stats_count_paths_without_any_range():
    source = FakeSource(
        [CommitRecord("a"), CommitRecord("b")],
        {
            "a": [FileDiff("foo.py", "foo.py", "@@ -1,1 +1,1 @@\n-x\n+y\n")],
            "b": [
                FileDiff("foo.py", "foo.py", "Binary files differ"),
                FileDiff("logo.png", "logo.png", "Binary files differ"),
            ],
        },
    )
    stats = DiffMapStats()
    fetch_diff_map(source, 7, 3, stats=stats)
    assert stats.paths_without_ranges == 1
    assert stats.file_diffs == 3
