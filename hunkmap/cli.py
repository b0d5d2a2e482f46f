"""CLI entry point: fetches merge request data and prints or posts to GitLab."""

import argparse
import json
import sys
from typing import List, Optional

from .config import get_token, load_config
from .diff_map import diff_map_to_dict
from .errors import HunkmapAPIError
from .gitlab_client import GitLabReviewClient
from .log import configure_logging
from .review import comment_on_line, fetch_diff_map, log_discussions
from .stats import DiffMapStats


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hunkmap",
        description="Map merge request commits to changed line ranges on GitLab.",
    )
    parser.add_argument("--url", help="GitLab base URL (overrides config)")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="increase log verbosity"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add_mr_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("project", help="project id or group/project path")
        p.add_argument("mr", type=int, help="merge request iid")

    p_map = sub.add_parser("diff-map", help="print changed line ranges as JSON")
    add_mr_args(p_map)
    p_map.add_argument(
        "--all-hunks",
        action="store_true",
        default=None,
        help="read every hunk, not only the first of each file diff",
    )

    p_disc = sub.add_parser("discussions", help="print review discussions as JSON")
    add_mr_args(p_disc)

    p_comment = sub.add_parser("comment", help="post an inline comment")
    add_mr_args(p_comment)
    p_comment.add_argument("--path", required=True)
    p_comment.add_argument("--line", type=int, required=True)
    p_comment.add_argument("--body", required=True)
    p_comment.add_argument("--base-sha", required=True)
    p_comment.add_argument(
        "--force", action="store_true", help="post even if the line was not changed"
    )

    p_edit = sub.add_parser("edit-note", help="replace the body of a note")
    add_mr_args(p_edit)
    p_edit.add_argument("discussion")
    p_edit.add_argument("note", type=int)
    p_edit.add_argument("--body", required=True)
    return parser


def _run(args: argparse.Namespace) -> int:
    config = load_config()
    client = GitLabReviewClient(
        args.url or config.gitlab_url, get_token(config), timeout=config.timeout
    )

    if args.command == "diff-map":
        all_hunks = config.all_hunks if args.all_hunks is None else args.all_hunks
        run_stats = DiffMapStats()
        diff_map = fetch_diff_map(
            client, args.project, args.mr, all_hunks=all_hunks, stats=run_stats
        )
        print(json.dumps(diff_map_to_dict(diff_map), indent=2))
        for line in run_stats.format_summary():
            print(line, file=sys.stderr)
        return 0

    if args.command == "discussions":
        discussions = client.list_discussions(args.project, args.mr)
        log_discussions(discussions)
        print(json.dumps(discussions, indent=2, default=str))
        return 0

    if args.command == "comment":
        if args.force:
            posted = client.post_discussion(
                args.project, args.mr, args.line, args.path, args.body, args.base_sha
            )
        else:
            diff_map = fetch_diff_map(
                client, args.project, args.mr, all_hunks=config.all_hunks
            )
            posted = comment_on_line(
                client,
                args.project,
                args.mr,
                diff_map,
                args.path,
                args.line,
                args.body,
                args.base_sha,
            )
        if not posted:
            print(
                f"hunkmap: comment on {args.path}:{args.line} not posted",
                file=sys.stderr,
            )
            return 1
        return 0

    client.edit_note(args.project, args.mr, args.discussion, args.note, args.body)
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    try:
        code = _run(args)
    except HunkmapAPIError as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(1)
    if code:
        sys.exit(code)
