"""
Synchronous HTTP client for the Memory Sketches backend API.

Uses ``httpx.Client`` (sync) because Streamlit scripts run synchronously.
"""

import logging
from collections.abc import Callable

import httpx
import streamlit as st

from memsketch.core.status import failed_stage, pipeline_step

logger = logging.getLogger(__name__)


class APIError(Exception):
    """User-friendly API error with categorized message.

    Categories: "connection", "timeout", "http", "network", "unknown".
    ``status_code`` is set for "http" errors.
    """

    def __init__(
        self, message: str, category: str = "unknown", status_code: int | None = None
    ) -> None:
        self.message = message
        self.category = category
        self.status_code = status_code
        super().__init__(message)


class APIClient:
    """Thin synchronous wrapper around httpx for calling the FastAPI backend.

    All methods return parsed JSON or raise ``APIError`` with messages
    suitable for display in the UI.
    """

    def __init__(self, base_url: str = "http://localhost:8000", token: str = "") -> None:
        """Initialize the HTTP client.

        Args:
            base_url: Base URL of the backend.
            token: Bearer token identifying the user.
        """
        self._base_url = base_url.rstrip("/")
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.Client(base_url=self._base_url, timeout=30.0, headers=headers)

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Execute an HTTP request with user-friendly error handling.

        Raises:
            APIError: On connection, timeout, HTTP status, or network errors.
        """
        try:
            resp = getattr(self._client, method)(path, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.ConnectError:
            raise APIError(
                "Backend server is not running. "
                "Start it with: `uvicorn memsketch.api.app:app --reload --port 8000`",
                category="connection",
            ) from None
        except httpx.TimeoutException:
            raise APIError(
                "Request timed out. The AI service may be slow, try again.",
                category="timeout",
            ) from None
        except httpx.HTTPStatusError as exc:
            try:
                body = exc.response.json()
                detail = body.get("error") or body.get("detail") or exc.response.text
            except ValueError:
                detail = exc.response.text or str(exc)
            raise APIError(
                str(detail), category="http", status_code=exc.response.status_code
            ) from None
        except httpx.HTTPError as exc:
            raise APIError(f"Network error: {exc}", category="network") from None

    # -- health --

    def health_check(self) -> dict:
        return self._request("get", "/health").json()

    def check_connection(self) -> tuple[bool, str]:
        """Check if the backend is reachable. Returns (ok, message)."""
        try:
            self.health_check()
            return True, "Connected"
        except APIError as exc:
            return False, exc.message

    # -- memories --

    def create_memory(self, title: str | None = None) -> dict:
        body = {"title": title} if title else None
        return self._request("post", "/api/v1/memories", json=body).json()

    def upload_audio(self, memory_id: str, audio: bytes, content_type: str = "audio/webm") -> dict:
        return self._request(
            "put",
            f"/api/v1/memories/{memory_id}/audio",
            content=audio,
            headers={"Content-Type": content_type},
        ).json()

    def list_memories(self, status: str | None = None, limit: int = 50) -> list[dict]:
        params: dict = {"limit": limit}
        if status:
            params["status"] = status
        return self._request("get", "/api/v1/memories", params=params).json()

    def get_memory(self, memory_id: str) -> dict:
        return self._request("get", f"/api/v1/memories/{memory_id}").json()

    def reset_memory(self, memory_id: str) -> dict:
        return self._request("post", f"/api/v1/memories/{memory_id}/reset").json()

    def delete_memory(self, memory_id: str) -> dict:
        return self._request("delete", f"/api/v1/memories/{memory_id}").json()

    def download_audio(self, memory_id: str) -> bytes | None:
        """Fetch raw audio bytes for a memory. Returns None on error."""
        try:
            return self._request("get", f"/api/v1/memories/{memory_id}/audio").content
        except APIError:
            return None

    def download_sketch_image(self, memory_id: str, scene_index: int) -> bytes | None:
        try:
            return self._request(
                "get",
                f"/api/v1/memories/{memory_id}/sketches/{scene_index}/image",
                follow_redirects=True,
            ).content
        except APIError:
            return None

    # -- pipeline stages --

    def process_memory(self, memory_id: str) -> dict:
        return self._request(
            "post", "/api/v1/process-memory", json={"memoryId": memory_id}, timeout=300.0
        ).json()

    def generate_sketches(self, memory_id: str) -> dict:
        return self._request(
            "post", "/api/v1/generate-sketches", json={"memoryId": memory_id}, timeout=300.0
        ).json()

    def _failed_step(self, memory_id: str) -> int | None:
        """Step index a failed memory stopped at, or None if it cannot be told."""
        try:
            memory = self.get_memory(memory_id)
        except APIError:
            return None
        if memory.get("processingStatus") != "error":
            return None
        stage = failed_stage(memory.get("transcript"), len(memory.get("scenes") or []))
        return pipeline_step("error", failed_at=stage)

    def record_memory(
        self,
        audio: bytes,
        content_type: str = "audio/webm",
        title: str | None = None,
        on_step: Callable[[int, str], None] | None = None,
    ) -> dict:
        """Run the whole flow for a freshly captured recording.

        Creates the memory, uploads the audio, then calls both stage
        handlers in order. *on_step* receives (step index, message) as the
        flow advances.

        Returns:
            Dict with ``memoryId``, ``transcript``, ``scenes`` and ``sketches``.
        """
        notify = on_step or (lambda _step, _msg: None)

        memory = self.create_memory(title=title)
        memory_id = memory["id"]
        self.upload_audio(memory_id, audio, content_type=content_type)

        notify(1, "Transcribing your memory...")
        try:
            processed = self.process_memory(memory_id)
        except APIError as exc:
            step = self._failed_step(memory_id)
            if step is not None:
                notify(step, exc.message)
            raise

        notify(3, "Scenes extracted! Generating sketches...")
        sketched = self.generate_sketches(memory_id)

        notify(4, "Your memory has been preserved as sketches!")
        return {
            "memoryId": memory_id,
            "transcript": processed.get("transcript"),
            "scenes": processed.get("scenes", []),
            "sketches": sketched.get("sketches", []),
        }


@st.cache_resource
def get_api_client(base_url: str = "http://localhost:8000", token: str = "") -> APIClient:
    """Return a cached APIClient, keyed by base_url and token."""
    return APIClient(base_url=base_url, token=token)
