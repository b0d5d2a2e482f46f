"""Glue between a review source and the diff map: fetch, log, comment."""

import logging
from typing import Any, Dict, Iterable, Iterator, Optional

from .diff_map import CommitDiffs, DiffMap, build_diff_map, find_hunk
from .gitlab_client import ProjectId, ReviewSource
from .stats import DiffMapStats

logger = logging.getLogger(__name__)


def iter_commit_diffs(
    source: ReviewSource,
    project_id: ProjectId,
    mr_iid: int,
    stats: Optional[DiffMapStats] = None,
) -> Iterator[CommitDiffs]:
    """Yield ``(commit, file_diffs)`` for each commit, fetching diffs one by one."""
    for commit in source.list_commits(project_id, mr_iid):
        file_diffs = source.get_commit_diff(project_id, commit.id)
        if stats is not None:
            stats.commits += 1
            stats.file_diffs += len(file_diffs)
        yield commit, file_diffs


def fetch_diff_map(
    source: ReviewSource,
    project_id: ProjectId,
    mr_iid: int,
    all_hunks: bool = False,
    stats: Optional[DiffMapStats] = None,
) -> DiffMap:
    """Build the diff map of merge request *mr_iid* from *source*."""
    diff_map = build_diff_map(
        iter_commit_diffs(source, project_id, mr_iid, stats),
        on_event=logger.debug,
        all_hunks=all_hunks,
    )
    if stats is not None:
        stats.count_map(diff_map)
    return diff_map


def log_discussions(discussions: Iterable[Dict[str, Any]]) -> None:
    """Debug-log every note of *discussions* with its diff position."""
    for discussion in discussions:
        logger.debug("Discussion %s", discussion.get("id"))
        for note in discussion.get("notes") or []:
            position = note.get("position") or {}
            logger.debug("  body=%s", note.get("body"))
            logger.debug(
                "  base_sha=%s head_sha=%s start_sha=%s",
                position.get("base_sha"),
                position.get("head_sha"),
                position.get("start_sha"),
            )
            logger.debug(
                "  position_type=%s new_path=%s old_path=%s",
                position.get("position_type"),
                position.get("new_path"),
                position.get("old_path"),
            )
            logger.debug("  new_line=%s", position.get("new_line"))


def comment_on_line(
    source: ReviewSource,
    project_id: ProjectId,
    mr_iid: int,
    diff_map: DiffMap,
    path: str,
    line: int,
    body: str,
    base_sha: str,
) -> bool:
    """Post *body* on *path*:*line* if the merge request changed that line.

    Returns False without calling the API when no hunk covers the line.
    """
    hunk = find_hunk(diff_map, path, line)
    if hunk is None:
        logger.info("Skipping comment on %s:%s, line not changed", path, line)
        return False
    logger.debug("Anchoring comment on %s:%s (commit %s)", path, line, hunk.sha)
    return source.post_discussion(project_id, mr_iid, line, path, body, base_sha)
