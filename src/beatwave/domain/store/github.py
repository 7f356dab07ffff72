"""
GitHub repository used as a JSON document store.

Documents are files read and written through the Contents API. The blob SHA
GitHub returns for each file is the version token.
"""

import base64
from typing import Any, Optional

import requests
from loguru import logger

from beatwave.core.config import StoreConfig

from .base import ABSENT, BlobStore, StoredBlob
from .exceptions import StoreError, VersionConflictError

# Blind writes look up the current SHA first; a concurrent writer can still
# move it between lookup and PUT.
BLIND_WRITE_ATTEMPTS = 3


class GitHubBlobStore(BlobStore):
    """Contents API client for one repository branch."""

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str = "",
        branch: str = "main",
        api_url: str = "https://api.github.com",
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ):
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/vnd.github.v3+json",
                "User-Agent": "beatwave",
            }
        )
        if token:
            self.session.headers["Authorization"] = f"token {token}"

    @classmethod
    def from_config(cls, config: StoreConfig) -> "GitHubBlobStore":
        return cls(
            owner=config.owner,
            repo=config.repo,
            token=config.token,
            branch=config.branch,
            api_url=config.api_url,
            timeout=config.request_timeout,
        )

    def _contents_url(self, path: str) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}/contents/{path.strip('/')}"

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise StoreError(f"GitHub request failed: {method} {url}: {e}") from e

    def _fetch_large_blob(self, sha: str) -> str:
        """Files over 1 MB come back without inline content."""
        url = f"{self.api_url}/repos/{self.owner}/{self.repo}/git/blobs/{sha}"
        response = self._request("GET", url)
        if response.status_code != 200:
            raise StoreError(f"GitHub blob fetch failed ({response.status_code})")
        return response.json().get("content", "")

    def read(self, path: str) -> Optional[StoredBlob]:
        response = self._request(
            "GET", self._contents_url(path), params={"ref": self.branch}
        )
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise StoreError(
                f"GitHub read of {path} failed ({response.status_code}): {response.text[:200]}"
            )

        data = response.json()
        if isinstance(data, list):
            raise StoreError(f"{path} is a folder, not a document")

        encoded = data.get("content") or ""
        if not encoded and data.get("encoding") == "none":
            encoded = self._fetch_large_blob(data["sha"])

        try:
            content = base64.b64decode(encoded).decode("utf-8")
        except (ValueError, UnicodeDecodeError) as e:
            raise StoreError(f"Undecodable content in {path}: {e}") from e

        return StoredBlob(path=path, content=content, version=data["sha"])

    def _put(self, path: str, content: str, sha: Optional[str], message: str) -> str:
        body: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": self.branch,
        }
        if sha:
            body["sha"] = sha

        response = self._request("PUT", self._contents_url(path), json=body)
        if response.status_code in (200, 201):
            return response.json()["content"]["sha"]
        # 409: SHA does not match; 422: SHA missing for an existing file
        if response.status_code in (409, 422):
            raise VersionConflictError(path, sha)
        raise StoreError(
            f"GitHub write of {path} failed ({response.status_code}): {response.text[:200]}"
        )

    def write(
        self,
        path: str,
        content: str,
        expected_version: Optional[str] = None,
        message: Optional[str] = None,
    ) -> str:
        message = message or f"Update {path}"

        if expected_version is not None:
            sha = None if expected_version == ABSENT else expected_version
            return self._put(path, content, sha, message)

        for attempt in range(1, BLIND_WRITE_ATTEMPTS + 1):
            current = self.read(path)
            try:
                return self._put(path, content, current.version if current else None, message)
            except VersionConflictError:
                logger.debug(f"Blind write of {path} raced (attempt {attempt})")
        raise StoreError(f"Blind write of {path} kept conflicting")

    def list(self, prefix: str) -> list[str]:
        response = self._request(
            "GET", self._contents_url(prefix), params={"ref": self.branch}
        )
        if response.status_code == 404:
            return []
        if response.status_code != 200:
            raise StoreError(
                f"GitHub listing of {prefix} failed ({response.status_code})"
            )
        entries = response.json()
        if not isinstance(entries, list):
            return []
        return [
            entry["path"]
            for entry in entries
            if entry.get("type") == "file" and entry.get("name", "").endswith(".json")
        ]
