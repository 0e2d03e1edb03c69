"""
HTTP side of the desktop client.

Kept free of any Qt imports so it can be used (and tested) without a
display.  The window in `main.py` runs these calls on worker threads.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List

import requests


API_BASE_URL = os.environ.get("CHEMVIZ_API_URL", "http://127.0.0.1:8000/api")
TIMEOUT_SECONDS = 30


class ApiError(Exception):
    """A request failed; `message` is ready to show in the UI."""

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


@dataclass
class ClientSession:
    """
    Everything the window knows about the signed-in user.

    Created by `ApiClient.sign_in` and dropped on sign-out; the window holds
    a reference instead of reading module globals.
    """

    username: str
    password: str
    profile: Dict[str, Any] = field(default_factory=dict)
    preview: Dict[str, Any] | None = None
    current_upload: Dict[str, Any] | None = None
    active: bool = True

    @property
    def auth(self) -> tuple[str, str]:
        return (self.username, self.password)

    def close(self) -> None:
        self.preview = None
        self.current_upload = None
        self.profile = {}
        self.password = ""
        self.active = False


def _error_from_response(response: requests.Response) -> ApiError:
    try:
        data = response.json()
    except ValueError:
        return ApiError(response.text or f"HTTP {response.status_code}", response.status_code)

    if isinstance(data, dict):
        if "error" in data:
            return ApiError(data["error"], response.status_code, data.get("code"))
        if "detail" in data:
            return ApiError(str(data["detail"]), response.status_code)
        # Serializer errors: {"field": ["message", ...]}
        parts = []
        for key, value in data.items():
            text = ", ".join(str(v) for v in value) if isinstance(value, list) else str(value)
            parts.append(f"{key}: {text}")
        return ApiError("; ".join(parts), response.status_code)
    return ApiError(str(data), response.status_code)


class ApiClient:
    """Thin wrapper around the Django API used by the desktop window."""

    def __init__(self, base_url: str = API_BASE_URL, http: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.http = http or requests.Session()

    def _request(self, method: str, path: str, session: ClientSession | None = None, **kwargs):
        url = f"{self.base_url}/{path.lstrip('/')}"
        if session is not None:
            kwargs["auth"] = session.auth
        try:
            response = self.http.request(method, url, timeout=TIMEOUT_SECONDS, **kwargs)
        except requests.RequestException as exc:
            raise ApiError(f"Could not reach the server: {exc}") from exc

        if response.status_code >= 400:
            raise _error_from_response(response)
        return response

    def sign_in(self, username: str, password: str) -> ClientSession:
        """Check the credentials by loading the profile."""
        session = ClientSession(username=username, password=password)
        session.profile = self._request("GET", "profile/", session).json()
        return session

    def sign_out(self, session: ClientSession) -> None:
        session.close()

    def preview(self, session: ClientSession, file_path: str) -> Dict[str, Any]:
        # A rejected file must not leave the previous preview confirmable.
        session.preview = None
        with open(file_path, "rb") as f:
            files = {"file": (os.path.basename(file_path), f, "text/csv")}
            preview = self._request("POST", "uploads/preview/", session, files=files).json()
        session.preview = preview
        return preview

    def confirm(self, session: ClientSession) -> Dict[str, Any]:
        """
        Store the current preview.

        The preview stays on the session if this fails, so the user can try
        again without choosing the file a second time.
        """
        if not session.preview:
            raise ApiError("Nothing to upload. Choose a CSV file first.")
        payload = {"filename": session.preview["filename"], "rows": session.preview["rows"]}
        upload = self._request("POST", "uploads/", session, json=payload).json()
        session.preview = None
        session.current_upload = upload
        return upload

    def history(self, session: ClientSession) -> List[Dict[str, Any]]:
        return self._request("GET", "uploads/", session).json()

    def upload_detail(self, session: ClientSession, upload_id: str) -> Dict[str, Any]:
        return self._request("GET", f"uploads/{upload_id}/", session).json()

    def delete_upload(self, session: ClientSession, upload_id: str) -> None:
        self._request("DELETE", f"uploads/{upload_id}/", session)
        if session.current_upload and session.current_upload.get("id") == upload_id:
            session.current_upload = None

    def download_report(self, session: ClientSession, upload_id: str, target_path: str) -> str:
        response = self._request("GET", f"uploads/{upload_id}/report/", session)
        with open(target_path, "wb") as f:
            f.write(response.content)
        return target_path
