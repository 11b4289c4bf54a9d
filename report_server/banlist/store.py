"""
Versioned document store used for the ban list.

get() returns the document text plus an opaque version token; put() only succeeds when the
token it is given still matches the stored revision (None means "create, must not exist").
GitHubContentsStore implements this on top of the GitHub repository contents API,
where the version token is the blob sha.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from report_server.config import Settings

logger = logging.getLogger(__name__)


class DocumentStoreError(Exception):
    pass


class DocumentNotFound(DocumentStoreError):
    pass


class PreconditionFailed(DocumentStoreError):
    pass


@dataclass(frozen=True)
class VersionedDocument:
    content: str
    version: Optional[str]


class VersionedDocumentStore:
    def get(self, path: str) -> VersionedDocument:
        raise NotImplementedError

    def put(self, path: str, content: str, expected_version: Optional[str], message: str) -> Optional[str]:
        """Write content and return the new version token."""
        raise NotImplementedError

    def close(self) -> None:
        pass


class GitHubContentsStore(VersionedDocumentStore):
    """Reads and writes a single file in a GitHub repository."""

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        branch: Optional[str] = None,
        api_url: str = "https://api.github.com",
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.client = client or httpx.Client(base_url=api_url, timeout=timeout)
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "GitHubContentsStore":
        return cls(
            token=settings.github_token,
            owner=settings.github_owner,
            repo=settings.github_repo,
            branch=settings.github_branch,
            api_url=settings.github_api_url,
        )

    def _contents_url(self, path: str) -> str:
        return f"/repos/{self.owner}/{self.repo}/contents/{path.lstrip('/')}"

    def get(self, path: str) -> VersionedDocument:
        params = {"ref": self.branch} if self.branch else None
        response = self.client.get(self._contents_url(path), headers=self.headers, params=params)

        if response.status_code == 404:
            raise DocumentNotFound(f"{self.owner}/{self.repo}:{path} does not exist")
        if not response.is_success:
            raise DocumentStoreError(f"GET {path} failed with HTTP {response.status_code}: {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise DocumentStoreError(f"GET {path} returned a body that is not JSON") from e
        if not isinstance(data, dict):
            raise DocumentStoreError(f"GET {path} did not return a file (got {type(data).__name__})")

        try:
            content = base64.b64decode(data.get("content") or "").decode("utf-8")
        except (ValueError, TypeError) as e:
            # Unreadable content parses as an empty ban list
            logger.warning("Could not decode %s content: %s", path, e)
            content = ""
        return VersionedDocument(content=content, version=data.get("sha"))

    def put(self, path: str, content: str, expected_version: Optional[str], message: str) -> Optional[str]:
        body = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
        }
        if expected_version:
            body["sha"] = expected_version
        if self.branch:
            body["branch"] = self.branch

        response = self.client.put(self._contents_url(path), headers=self.headers, json=body)

        # 409: sha is stale. 422: sha missing for a file that now exists.
        if response.status_code in (409, 422):
            raise PreconditionFailed(f"PUT {path} rejected (HTTP {response.status_code}): {response.text}")
        if not response.is_success:
            raise DocumentStoreError(f"PUT {path} failed with HTTP {response.status_code}: {response.text}")

        try:
            return response.json()["content"]["sha"]
        except (ValueError, KeyError, TypeError):
            logger.warning("PUT %s committed but the response carried no sha", path)
            return None

    def close(self) -> None:
        self.client.close()
