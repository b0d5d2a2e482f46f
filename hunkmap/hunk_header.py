"""Parse the added-side line range out of unified-diff hunk headers."""

import re
from typing import Iterator, Optional, Tuple

from unidiff import PatchSet
from unidiff.errors import UnidiffParseError

HUNK_MARKER = "@@"

# Leading base-10 integer; anything after the digits is ignored.
_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")


def _parse_int(text: str) -> Optional[int]:
    match = _LEADING_INT.match(text)
    if match is None:
        return None
    return int(match.group(1))


def parse_hunk_header(diff_text: str) -> Optional[Tuple[int, int]]:
    """Return the (start, end) lines added by the first hunk of *diff_text*.

    Only the header of the first hunk is read.  Returns None when the text
    does not open with ``@@``, when the header is not closed by `` @@`` on
    its first line, when the header has no ``+`` side, when the numbers
    cannot be parsed, when the start line is below 1, or when the hunk adds
    no lines.  A missing ``,count`` means a count of 1.
    """
    if not diff_text.startswith(HUNK_MARKER):
        return None
    header = diff_text[3:].split("\n", 1)[0]
    closing = header.find(" " + HUNK_MARKER)
    if closing == -1:
        return None
    header = header[:closing]

    plus = header.find("+")
    if plus == -1:
        return None
    added = header[plus + 1 :]
    start_text, sep, count_text = added.partition(",")

    start = _parse_int(start_text)
    count = _parse_int(count_text) if sep else 1
    if start is None or count is None or start < 1:
        return None
    end = start + count - 1
    if end < start:
        return None
    return start, end


def iter_hunk_ranges(
    diff_text: str, old_path: str, new_path: str
) -> Iterator[Tuple[int, int]]:
    """Yield the (start, end) added range of every hunk in a file diff.

    *diff_text* is the body GitLab returns for one file, without ``---`` /
    ``+++`` lines; they are synthesized from the paths so ``unidiff`` can
    read it.  Hunks that add nothing are skipped, and text ``unidiff``
    rejects yields nothing.
    """
    if not diff_text.startswith(HUNK_MARKER):
        return
    patch_text = f"--- a/{old_path}\n+++ b/{new_path}\n{diff_text}"
    if not patch_text.endswith("\n"):
        patch_text += "\n"
    try:
        patch = PatchSet.from_string(patch_text)
    except UnidiffParseError:
        return
    for patched_file in patch:
        for hunk in patched_file:
            if hunk.target_length < 1:
                continue
            yield hunk.target_start, hunk.target_start + hunk.target_length - 1
