"""Build per-file changed-line ranges from a merge request's commits."""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .hunk_header import iter_hunk_ranges, parse_hunk_header


@dataclass(frozen=True)
class Hunk:
    """Lines first_line..last_line (1-based, inclusive) added by commit sha."""

    first_line: int
    last_line: int
    sha: str

    def covers(self, line: int) -> bool:
        return self.first_line <= line <= self.last_line

    def to_dict(self) -> Dict[str, Any]:
        return {"firstLine": self.first_line, "lastLine": self.last_line, "sha": self.sha}


@dataclass(frozen=True)
class CommitRecord:
    id: str
    title: str = ""

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "CommitRecord":
        return cls(id=data["id"], title=data.get("title") or "")


@dataclass(frozen=True)
class FileDiff:
    new_path: str
    old_path: str
    diff: str

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "FileDiff":
        new_path = data["new_path"]
        return cls(
            new_path=new_path,
            old_path=data.get("old_path") or new_path,
            diff=data.get("diff") or "",
        )


DiffMap = Dict[str, List[Hunk]]

CommitDiffs = Tuple[CommitRecord, Iterable[FileDiff]]


def _ranges(file_diff: FileDiff, all_hunks: bool) -> List[Tuple[int, int]]:
    if all_hunks:
        return list(
            iter_hunk_ranges(file_diff.diff, file_diff.old_path, file_diff.new_path)
        )
    first = parse_hunk_header(file_diff.diff)
    return [first] if first is not None else []


def build_diff_map(
    commit_diffs: Iterable[CommitDiffs],
    on_event: Optional[Callable[[str], None]] = None,
    all_hunks: bool = False,
) -> DiffMap:
    """Map each touched path to the added ranges of every commit, in order.

    *commit_diffs* yields ``(commit, file_diffs)`` pairs in merge request
    order.  A path is recorded as soon as a commit touches it, even if no
    range could be read from its diff.  Ranges accumulate across commits;
    nothing is merged or replaced.

    *on_event* receives one message per commit, file and range, for
    logging.  By default only the first hunk header of each file diff is
    read; pass ``all_hunks=True`` to read every hunk.
    """

    def emit(message: str) -> None:
        if on_event is not None:
            on_event(message)

    diff_map: DiffMap = {}
    for commit, file_diffs in commit_diffs:
        emit(f"Commit #{commit.id}: {commit.title}")
        for file_diff in file_diffs:
            path = file_diff.new_path
            emit(f"  Diff file: {path}")
            hunks = diff_map.setdefault(path, [])
            ranges = _ranges(file_diff, all_hunks)
            if not ranges:
                emit(f"  No added range in {path}")
            for start, end in ranges:
                emit(f"Added {path}: {start} to {end}")
                hunks.append(Hunk(first_line=start, last_line=end, sha=commit.id))
    return diff_map


def find_hunk(diff_map: DiffMap, path: str, line: int) -> Optional[Hunk]:
    """Return the first hunk of *path* covering *line*, or None."""
    for hunk in diff_map.get(path, []):
        if hunk.covers(line):
            return hunk
    return None


def changed_paths(diff_map: DiffMap) -> List[str]:
    """Return the paths with at least one added range, in map order."""
    return [path for path, hunks in diff_map.items() if hunks]


def diff_map_to_dict(diff_map: DiffMap) -> Dict[str, List[Dict[str, Any]]]:
    return {path: [hunk.to_dict() for hunk in hunks] for path, hunks in diff_map.items()}
