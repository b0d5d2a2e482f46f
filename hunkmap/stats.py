"""Cumulative statistics for a single diff map run."""

from dataclasses import dataclass
from typing import List

from .diff_map import DiffMap


@dataclass
class DiffMapStats:
    """Holds counts for one diff map build."""

    commits: int = 0
    file_diffs: int = 0

    # Filled from the finished map
    paths: int = 0
    paths_without_ranges: int = 0
    hunks: int = 0

    def count_map(self, diff_map: DiffMap) -> None:
        """Add the path and hunk counts of a finished *diff_map*."""
        self.paths += len(diff_map)
        for hunks in diff_map.values():
            self.hunks += len(hunks)
            if not hunks:
                self.paths_without_ranges += 1

    def format_summary(self) -> List[str]:
        """Return a list of lines forming the human-readable run summary."""
        lines = ["--- hunkmap summary ---"]
        lines.append(f"commits:              {self.commits}")
        lines.append(f"file diffs:           {self.file_diffs}")
        lines.append(f"paths:                {self.paths}")
        lines.append(f"  without ranges:     {self.paths_without_ranges}")
        lines.append(f"hunks:                {self.hunks}")
        return lines
