"""Seerr (Overseerr / Jellyseerr) API adapter."""

from typing import Any, Dict

import requests

from seerrbridge.adapters.base import IssueTracker, IssueTrackerError


class SeerrAdapter(IssueTracker):
    """Seerr v1 API implementation (X-Api-Key auth)."""

    def __init__(self, api_url: str, api_key: str, timeout: float = 30.0) -> None:
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers["X-Api-Key"] = api_key
        self._session.headers["Accept"] = "application/json"

    def _request(
        self,
        method: str,
        path: str,
        json: Dict[str, Any] | None = None,
    ) -> requests.Response:
        url = f"{self._api_url}{path}"
        try:
            resp = self._session.request(method, url, json=json, timeout=self._timeout)
        except requests.RequestException as e:
            raise IssueTrackerError(f"{method} {path}: {e}") from e
        if resp.status_code >= 400:
            msg = resp.text or resp.reason or str(resp.status_code)
            try:
                data = resp.json()
            except ValueError:
                data = None
            if isinstance(data, dict) and data.get("message"):
                msg = data["message"]
            raise IssueTrackerError(f"{resp.status_code}: {msg}")
        return resp

    def post_comment(self, issue_id: int, text: str) -> None:
        self._request("POST", f"/api/v1/issue/{issue_id}/comment", json={"message": text})

    def mark_resolved(self, issue_id: int) -> None:
        self._request("POST", f"/api/v1/issue/{issue_id}/resolved")
