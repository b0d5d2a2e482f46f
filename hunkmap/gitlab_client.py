"""GitLab merge request API access: commits, diffs, discussions and notes."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Protocol, Union
from urllib.parse import quote

import gitlab
import requests

from .diff_map import CommitRecord, FileDiff
from .errors import HunkmapAPIError

logger = logging.getLogger(__name__)

ProjectId = Union[int, str]

# python-gitlab lets transport errors from requests through unwrapped
_API_ERRORS = (gitlab.GitlabError, requests.RequestException)


class ReviewSource(Protocol):
    """Operations the review workflow needs from a hosting platform."""

    def list_commits(self, project_id: ProjectId, mr_iid: int) -> List[CommitRecord]: ...

    def get_commit_diff(self, project_id: ProjectId, sha: str) -> List[FileDiff]: ...

    def list_discussions(
        self, project_id: ProjectId, mr_iid: int
    ) -> List[Dict[str, Any]]: ...

    def post_discussion(
        self,
        project_id: ProjectId,
        mr_iid: int,
        line: int,
        path: str,
        body: str,
        base_sha: str,
    ) -> bool: ...

    def edit_note(
        self,
        project_id: ProjectId,
        mr_iid: int,
        discussion_id: str,
        note_id: int,
        body: str,
    ) -> bool: ...


def discussion_form(
    body: str, path: str, line: int, base_sha: str, head_sha: str
) -> Dict[str, str]:
    """Return the form fields for a text comment anchored on a new-side line."""
    return {
        "body": body,
        "position[position_type]": "text",
        "position[base_sha]": base_sha,
        "position[start_sha]": base_sha,
        "position[head_sha]": head_sha,
        "position[new_path]": path,
        "position[old_path]": path,
        "position[new_line]": str(line),
    }


class GitLabReviewClient:
    """ReviewSource backed by python-gitlab, plus a bare REST call for comments.

    Inline discussions are posted as multipart/form-data with ``requests``
    because the position fields must be sent flat.
    """

    def __init__(self, url: str, token: str, timeout: float = 30.0):
        self.url = url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.gl = gitlab.Gitlab(self.url, private_token=token, timeout=timeout)

    def _project(self, project_id: ProjectId, lazy: bool = True):
        return self.gl.projects.get(project_id, lazy=lazy)

    def _merge_request(self, project_id: ProjectId, mr_iid: int, lazy: bool = True):
        return self._project(project_id).mergerequests.get(mr_iid, lazy=lazy)

    def get_project(self, project_id: ProjectId) -> Dict[str, Any]:
        logger.debug("Getting project %s", project_id)
        try:
            project = self._project(project_id, lazy=False)
        except _API_ERRORS as exc:
            raise HunkmapAPIError(
                f"hunkmap: cannot get project {project_id}: {exc}"
            ) from exc
        logger.debug("Project name is %s", project.name)
        return project.attributes

    def get_merge_request(self, project_id: ProjectId, mr_iid: int) -> Dict[str, Any]:
        logger.debug("Getting merge request #%s in project #%s", mr_iid, project_id)
        try:
            mr = self._merge_request(project_id, mr_iid, lazy=False)
        except _API_ERRORS as exc:
            raise HunkmapAPIError(
                f"hunkmap: cannot get merge request !{mr_iid}: {exc}"
            ) from exc
        logger.debug("Merge Request title is %s", mr.title)
        return mr.attributes

    def list_commits(self, project_id: ProjectId, mr_iid: int) -> List[CommitRecord]:
        logger.debug(
            "Getting commits for merge request #%s in project #%s", mr_iid, project_id
        )
        try:
            commits = self._merge_request(project_id, mr_iid).commits()
            return [CommitRecord.from_api(commit.attributes) for commit in commits]
        except _API_ERRORS as exc:
            raise HunkmapAPIError(
                f"hunkmap: cannot list commits of merge request !{mr_iid}: {exc}"
            ) from exc

    def get_commit_diff(self, project_id: ProjectId, sha: str) -> List[FileDiff]:
        try:
            diffs = self._project(project_id).commits.get(sha, lazy=True).diff(
                get_all=True
            )
        except _API_ERRORS as exc:
            raise HunkmapAPIError(
                f"hunkmap: cannot get diff of commit {sha}: {exc}"
            ) from exc
        return [FileDiff.from_api(diff) for diff in diffs]

    def list_discussions(
        self, project_id: ProjectId, mr_iid: int
    ) -> List[Dict[str, Any]]:
        try:
            discussions = self._merge_request(project_id, mr_iid).discussions.list(
                get_all=True
            )
        except _API_ERRORS as exc:
            raise HunkmapAPIError(
                f"hunkmap: cannot list discussions of merge request !{mr_iid}: {exc}"
            ) from exc
        return [discussion.attributes for discussion in discussions]

    def post_discussion(
        self,
        project_id: ProjectId,
        mr_iid: int,
        line: int,
        path: str,
        body: str,
        base_sha: str,
    ) -> bool:
        logger.debug(
            "Create new discussion for merge request #%s in project #%s",
            mr_iid,
            project_id,
        )
        head_sha = self.get_merge_request(project_id, mr_iid)["sha"]
        form = discussion_form(body, path, line, base_sha, head_sha)
        url = (
            f"{self.url}/api/v4/projects/{quote(str(project_id), safe='')}"
            f"/merge_requests/{mr_iid}/discussions"
        )
        try:
            response = requests.post(
                url,
                headers={"PRIVATE-TOKEN": self.token},
                files={key: (None, value) for key, value in form.items()},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise HunkmapAPIError(
                f"hunkmap: cannot create discussion at {url}: {exc}"
            ) from exc
        if response.status_code > 201:
            logger.error(
                "Unable to create discussion for %s:%s at %s (HTTP %s)",
                path,
                line,
                url,
                response.status_code,
            )
            return False
        return True

    def edit_note(
        self,
        project_id: ProjectId,
        mr_iid: int,
        discussion_id: str,
        note_id: int,
        body: str,
    ) -> bool:
        logger.debug(
            "Update discussion for merge request #%s in project #%s",
            mr_iid,
            project_id,
        )
        try:
            discussion = self._merge_request(project_id, mr_iid).discussions.get(
                discussion_id, lazy=True
            )
            note = discussion.notes.get(note_id, lazy=True)
            note.body = body
            note.save()
        except _API_ERRORS as exc:
            raise HunkmapAPIError(
                f"hunkmap: cannot edit note {note_id}: {exc}"
            ) from exc
        return True
