"""API client for the ALF Coach REST API."""

from __future__ import annotations

from typing import Any

import httpx


class CoachClient:
    """HTTP client wrapping the ALF Coach API endpoints."""

    def __init__(self, base_url: str = "http://localhost:8400", auth_token: str | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        headers = {}
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"
        # Model turns can take a while.
        self._client = httpx.Client(base_url=f"{self.base_url}/api/v1", headers=headers, timeout=90)

    def _handle(self, resp: httpx.Response) -> Any:
        if resp.status_code >= 400:
            try:
                detail = resp.json().get("detail", resp.text)
            except Exception:
                detail = resp.text
            raise RuntimeError(f"API error ({resp.status_code}): {detail}")
        return resp.json()

    # --- Projects ---

    def list_projects(self, **params: Any) -> list[dict]:
        return self._handle(self._client.get("/projects", params=params))

    def create_project(self, data: dict) -> dict:
        return self._handle(self._client.post("/projects", json=data))

    def get_project(self, project_id: str) -> dict:
        return self._handle(self._client.get(f"/projects/{project_id}"))

    # --- Stages ---

    def advance(self, project_id: str, finalize: bool = False) -> dict:
        return self._handle(
            self._client.post(f"/projects/{project_id}/advance", json={"finalize": finalize})
        )

    def revise(self, project_id: str, stage: str) -> dict:
        return self._handle(self._client.post(f"/projects/{project_id}/revise", json={"stage": stage}))

    # --- Chat ---

    def send_message(self, project_id: str, message: str) -> dict:
        return self._handle(
            self._client.post(f"/projects/{project_id}/chat", json={"message": message})
        )

    def finalize_ideation(self, project_id: str) -> dict:
        return self._handle(self._client.post(f"/projects/{project_id}/finalize-ideation"))

    # --- Prompt preview ---

    def preview_prompt(self, project_id: str, stage: str | None = None, summary: bool = False) -> dict:
        params: dict[str, Any] = {}
        if stage:
            params["stage"] = stage
        if summary:
            params["summary"] = "true"
        return self._handle(self._client.get(f"/projects/{project_id}/prompt", params=params))
