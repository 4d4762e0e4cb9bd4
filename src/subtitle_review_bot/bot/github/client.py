"""GitHub implementation of the :class:`Tracker` capability surface.

REST calls go through a ``requests`` session so every failure can be mapped to
:class:`TransportError` in one place. PyGithub is used for repository label
bootstrap, where its object model is more convenient than raw REST.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any
from urllib.parse import quote

import requests
from github import Auth, Github, GithubException
from github.Repository import Repository

from subtitle_review_bot.bot.github.tracker import (
    ChangedFile,
    Comment,
    IssueOrPull,
    TransportError,
    TreeEntry,
)
from subtitle_review_bot.labels import LabelSpec

logger = logging.getLogger(__name__)

_PER_PAGE = 100
_MAX_PAGES = 10


class GitHubClient:
    """Tracker adapter scoped to a single ``owner/repo``."""

    def __init__(
        self,
        *,
        token: str,
        repository: str,
        base_url: str = "https://api.github.com",
        timeout_seconds: float = 30.0,
        repo: Repository | None = None,
        github_api: Github | None = None,
    ) -> None:
        if not token:
            raise ValueError("GitHub token is required")
        if not repository.strip().strip("/"):
            raise ValueError("GitHub repository is required")

        self._repository_name = repository.strip().strip("/")
        self._rest_base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._session = requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "subtitle-review-bot",
            }
        )

        # PyGithub is only needed for label bootstrap, so connect lazily.
        self._repo = repo
        self._github = github_api
        self._token = token
        self._base_url = base_url

    @property
    def repository(self) -> str:
        """Return the configured repository name ("owner/repo")."""

        return self._repository_name

    def _repo_url(self, path: str) -> str:
        path = path.lstrip("/")
        root = f"{self._rest_base_url}/repos/{self._repository_name}"
        return f"{root}/{path}" if path else root

    def _request(
        self,
        method: str,
        path: str,
        *,
        allow_statuses: Iterable[int] = (),
        **kwargs: Any,
    ) -> requests.Response:
        url = self._repo_url(path)
        try:
            resp = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        if resp.status_code in set(allow_statuses):
            return resp
        if resp.status_code >= 400:
            raise TransportError(
                f"{method} {path} failed with HTTP {resp.status_code}: {_error_message(resp)}",
                status_code=resp.status_code,
            )
        return resp

    @staticmethod
    def _json(resp: requests.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON response from {resp.url}") from e

    def _json_object(self, resp: requests.Response) -> dict[str, Any]:
        data = self._json(resp)
        if not isinstance(data, dict):
            raise TransportError(f"Unexpected response shape from {resp.url}: expected object")
        return data

    def _get_paginated_json_list(self, path: str) -> list[dict[str, Any]]:
        """Fetch a REST endpoint that returns a JSON list, following basic pagination.

        Returns an empty list when the endpoint answers 404.
        """

        items: list[dict[str, Any]] = []
        for page in range(1, _MAX_PAGES + 1):
            resp = self._request(
                "GET",
                path,
                allow_statuses=(404,),
                params={"per_page": _PER_PAGE, "page": page},
            )
            if resp.status_code == 404:
                return []
            payload = self._json(resp)
            if not isinstance(payload, list):
                raise TransportError(f"Unexpected response shape from {path}: expected list")

            items.extend(p for p in payload if isinstance(p, dict))
            if len(payload) < _PER_PAGE:
                break
        return items

    @staticmethod
    def _sha_of(data: dict[str, Any], what: str) -> str:
        sha = data.get("sha")
        if not isinstance(sha, str) or not sha.strip():
            raise TransportError(f"Unexpected {what} response: missing sha")
        return sha

    # Issues and pull requests

    def get_issue_or_pull(self, number: int) -> IssueOrPull:
        _require_positive(number)
        data = self._json_object(self._request("GET", f"issues/{number}"))

        returned = data.get("number")
        if not isinstance(returned, int) or returned <= 0:
            raise TransportError("Invalid issue response: missing number")

        pull_info = data.get("pull_request")
        is_pull = isinstance(pull_info, dict)
        merged = is_pull and bool(pull_info.get("merged_at"))

        assignee = data.get("assignee")
        assignee_id: int | None = None
        assignee_login: str | None = None
        if isinstance(assignee, dict):
            raw_id = assignee.get("id")
            assignee_id = raw_id if isinstance(raw_id, int) else None
            raw_login = assignee.get("login")
            assignee_login = raw_login if isinstance(raw_login, str) else None

        return IssueOrPull(
            number=returned,
            state=_str_or_empty(data.get("state")),
            title=_str_or_empty(data.get("title")),
            body=_str_or_empty(data.get("body")),
            is_pull=is_pull,
            merged=merged,
            assignee_id=assignee_id,
            assignee_login=assignee_login,
        )

    def list_labels(self, number: int) -> list[str]:
        _require_positive(number)
        labels = self._get_paginated_json_list(f"issues/{number}/labels")
        return [item["name"] for item in labels if isinstance(item.get("name"), str)]

    def add_labels(self, number: int, names: Sequence[str]) -> None:
        _require_positive(number)
        normalized = [n for n in names if n.strip()]
        if not normalized:
            return
        self._request("POST", f"issues/{number}/labels", json={"labels": normalized})
        logger.info(
            "Labels added",
            extra={"repo": self._repository_name, "number": number, "labels": normalized},
        )

    def remove_label(self, number: int, name: str) -> None:
        _require_positive(number)
        resp = self._request(
            "DELETE",
            f"issues/{number}/labels/{quote(name, safe='')}",
            allow_statuses=(404,),
        )
        if resp.status_code == 404:
            logger.debug(
                "Label already absent",
                extra={"repo": self._repository_name, "number": number, "label": name},
            )
            return
        logger.info(
            "Label removed",
            extra={"repo": self._repository_name, "number": number, "label": name},
        )

    def list_comments(self, number: int) -> list[Comment]:
        _require_positive(number)
        comments: list[Comment] = []
        for item in self._get_paginated_json_list(f"issues/{number}/comments"):
            comment_id = item.get("id")
            if not isinstance(comment_id, int):
                continue
            user = item.get("user") if isinstance(item.get("user"), dict) else {}
            author_id = user.get("id")
            comments.append(
                Comment(
                    id=comment_id,
                    body=_str_or_empty(item.get("body")),
                    author_id=author_id if isinstance(author_id, int) else None,
                    author_login=_str_or_empty(user.get("login")),
                )
            )
        return comments

    def list_changed_files(self, pull_number: int) -> list[ChangedFile]:
        _require_positive(pull_number)
        files = self._get_paginated_json_list(f"pulls/{pull_number}/files")
        return [
            ChangedFile(path=item["filename"])
            for item in files
            if isinstance(item.get("filename"), str)
        ]

    def create_pull(self, head: str, base: str, title: str, body: str) -> int:
        payload = {
            "title": title,
            "body": body,
            "head": head,
            "base": base,
            "maintainer_can_modify": True,
        }
        data = self._json_object(self._request("POST", "pulls", json=payload))
        number = data.get("number")
        if not isinstance(number, int) or number <= 0:
            raise TransportError("Unexpected create pull response: missing number")
        logger.info(
            "Pull request created",
            extra={"repo": self._repository_name, "pull_number": number, "head": head},
        )
        return number

    def update_comment(self, comment_id: int, body: str) -> None:
        _require_positive(comment_id)
        self._request("PATCH", f"issues/comments/{comment_id}", json={"body": body})
        logger.info(
            "Comment updated",
            extra={"repo": self._repository_name, "comment_id": comment_id},
        )

    def create_comment(self, number: int, body: str) -> None:
        _require_positive(number)
        self._request("POST", f"issues/{number}/comments", json={"body": body})
        logger.info(
            "Comment created",
            extra={"repo": self._repository_name, "number": number},
        )

    # Git data

    def get_branch_tip(self, branch: str) -> str:
        if not branch.strip():
            raise ValueError("branch is required")
        data = self._json_object(self._request("GET", f"git/ref/heads/{branch}"))
        obj = data.get("object")
        if not isinstance(obj, dict):
            raise TransportError("Unexpected ref response: missing object")
        return self._sha_of(obj, "ref")

    def create_tree(self, base_sha: str, entries: Sequence[TreeEntry]) -> str:
        if not base_sha.strip():
            raise ValueError("base_sha is required")
        payload = {"base_tree": base_sha, "tree": [entry.to_json() for entry in entries]}
        data = self._json_object(self._request("POST", "git/trees", json=payload))
        return self._sha_of(data, "tree")

    def create_commit(self, tree_sha: str, parents: Sequence[str], message: str) -> str:
        payload = {"message": message, "tree": tree_sha, "parents": list(parents)}
        data = self._json_object(self._request("POST", "git/commits", json=payload))
        return self._sha_of(data, "commit")

    def create_ref(self, ref: str, sha: str) -> None:
        if not ref.startswith("refs/"):
            raise ValueError("ref must be fully qualified, e.g. 'refs/heads/name'")
        # 422 (ref already exists) is surfaced as a TransportError by _request.
        self._request("POST", "git/refs", json={"ref": ref, "sha": sha})
        logger.info(
            "Ref created",
            extra={"repo": self._repository_name, "ref": ref, "sha": sha},
        )

    # Repository bootstrap

    def _repository(self) -> Repository:
        if self._repo is None:
            if self._github is None:
                self._github = Github(auth=Auth.Token(self._token), base_url=self._base_url)
            try:
                self._repo = self._github.get_repo(self._repository_name)
            except GithubException as e:
                raise TransportError(
                    f"Failed to connect to repository {self._repository_name}: {e}",
                    status_code=e.status,
                ) from e
            logger.info(
                "Connected to repository via PyGithub", extra={"repo": self._repository_name}
            )
        return self._repo

    def ensure_labels(self, specs: Sequence[LabelSpec]) -> list[str]:
        """Create any of ``specs`` missing from the repository.

        Returns:
            Names of the labels that were created.
        """

        repo = self._repository()
        try:
            existing = {label.name for label in repo.get_labels()}
            created: list[str] = []
            for spec in specs:
                if spec.name in existing:
                    continue
                repo.create_label(name=spec.name, color=spec.color, description=spec.description)
                created.append(spec.name)
        except GithubException as e:
            raise TransportError(f"Label bootstrap failed: {e}", status_code=e.status) from e

        logger.info(
            "Repository labels ensured",
            extra={"repo": self._repository_name, "created": created},
        )
        return created

    def close(self) -> None:
        self._session.close()
        if self._github is not None:
            self._github.close()


def _require_positive(number: int) -> None:
    if number <= 0:
        raise ValueError("number must be a positive integer")


def _str_or_empty(value: object) -> str:
    return value if isinstance(value, str) else ""


def _error_message(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return resp.text[:200]
