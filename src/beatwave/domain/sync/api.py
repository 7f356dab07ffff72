"""
HTTP client for the BeatWave API.

Reads raise NetworkUnavailableError when the server cannot be reached and
ApiError on an error status. Writes raise RemoteWriteError for any failure.
"""

from typing import Any, Optional

import requests
from loguru import logger

from .exceptions import ApiError, NetworkUnavailableError, RemoteWriteError

DEFAULT_TIMEOUT = 10.0


class BeatWaveApi:
    """Thin JSON client over ``requests``."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise NetworkUnavailableError(f"Cannot reach {url}: {e}") from e

    def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        response = self._request("GET", path, params=params)
        if not response.ok:
            raise ApiError(
                f"GET {path} failed ({response.status_code})", response.status_code
            )
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(f"GET {path} returned invalid JSON") from e

    def _post(self, path: str, body: dict[str, Any]) -> Any:
        try:
            response = self._request("POST", path, json=body)
        except NetworkUnavailableError as e:
            raise RemoteWriteError(str(e)) from e
        if not response.ok:
            raise RemoteWriteError(
                f"POST {path} failed ({response.status_code}): {response.text[:200]}",
                response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise RemoteWriteError(f"POST {path} returned invalid JSON") from e

    # Tracks

    def get_tracks(self) -> list[dict[str, Any]]:
        data = self._get("tracks")
        tracks = data.get("tracks") if isinstance(data, dict) else None
        return tracks if isinstance(tracks, list) else []

    def create_track(self, track: dict[str, Any]) -> str:
        return self._post("tracks", {"action": "create", "track": track})["trackId"]

    def record_play(self, track_id: str, username: Optional[str]) -> dict[str, Any]:
        return self._post(f"tracks/{track_id}/play", {"username": username})

    def set_like(self, track_id: str, username: str, liked: bool) -> dict[str, Any]:
        return self._post(
            f"tracks/{track_id}/like", {"username": username, "liked": liked}
        )

    def get_track_stats(self, track_id: str) -> dict[str, Any]:
        return self._get(f"tracks/{track_id}/stats")

    # Discovery

    def search(self, query: str) -> list[dict[str, Any]]:
        return self._get("search", {"q": query}).get("tracks", [])

    def recommendations(self, kind: str = "trending") -> list[dict[str, Any]]:
        return self._get("recommendations", {"type": kind}).get("tracks", [])

    def artists(self, limit: int = 12) -> list[dict[str, Any]]:
        return self._get("artists", {"limit": limit}).get("artists", [])

    # Social

    def get_profile(self, username: str) -> dict[str, Any]:
        return self._get("profile", {"username": username})

    def save_profile(
        self, username: str, profile: dict[str, Any], sha: Optional[str]
    ) -> dict[str, Any]:
        return self._post(
            "profile",
            {"action": "save", "username": username, "profile": profile, "sha": sha},
        )

    def toggle_follow(self, username: str, follow_username: str) -> bool:
        data = self._post(
            "follow", {"username": username, "followUsername": follow_username}
        )
        return bool(data.get("following"))

    def get_comments(self, track_id: str) -> list[dict[str, Any]]:
        return self._get("comments", {"trackId": track_id}).get("comments", [])

    def add_comment(self, track_id: str, username: str, text: str) -> list[dict[str, Any]]:
        data = self._post(
            "comments", {"trackId": track_id, "username": username, "text": text}
        )
        return data.get("comments", [])
