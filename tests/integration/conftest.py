"""Integration test fixtures for Memory Sketches.

Provides an async HTTP client over the real app with an in-memory SQLite
database, and a fake AI gateway served through ``httpx.MockTransport``.
"""

import base64
import json

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from memsketch.api.app import create_app
from memsketch.services import pipeline
from memsketch.services.llm.gateway import GatewayClient
from memsketch.services.storage import database

PNG = b"\x89PNG\r\n\x1a\nintegration"


@pytest.fixture
def app():
    """Create a fresh FastAPI application instance."""
    return create_app()


@pytest.fixture
async def async_client(app, db_engine):
    """AsyncClient backed by the in-memory test engine, authenticated as alice.

    Injects the test engine into the database module so that all routes
    use the same in-memory SQLite with tables already created.
    """
    database._engine = db_engine
    database._session_factory = None
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": "Bearer tok-alice"},
    ) as c:
        yield c
    database.reset_engine()


class FakeGateway:
    """Routes chat completion requests by model name.

    ``transcript`` answers the transcription model, ``scenes`` the scene
    model (as a tool call) and every sketch request gets a PNG data URL.
    ``status_for`` overrides the HTTP status per model.
    """

    def __init__(self, settings) -> None:
        self.settings = settings
        self.png = PNG
        self.transcript = (
            "We spent every summer at the lake house. "
            "My grandfather taught me to fish off the dock."
        )
        self.scenes = [
            {
                "sentence": "We spent every summer at the lake house.",
                "description": "A wooden cabin beside a calm lake",
                "mood": "nostalgic",
            },
            {
                "sentence": "My grandfather taught me to fish off the dock.",
                "description": "An old man and a child fishing from a dock",
                "mood": "peaceful",
            },
        ]
        self.status_for: dict[str, int] = {}
        self.requests: list[dict] = []

    def _message(self, model: str) -> dict:
        if model == self.settings.transcription_model:
            return {"role": "assistant", "content": f" {self.transcript} \n"}
        if model == self.settings.scene_model:
            return {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {
                        "type": "function",
                        "function": {
                            "name": "extract_scenes",
                            "arguments": json.dumps({"scenes": self.scenes}),
                        },
                    }
                ],
            }
        url = "data:image/png;base64," + base64.b64encode(self.png).decode()
        return {
            "role": "assistant",
            "content": "A soft pencil sketch",
            "images": [{"type": "image_url", "image_url": {"url": url}}],
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        model = body["model"]
        status = self.status_for.get(model)
        if status:
            return httpx.Response(status, json={"error": {"message": "nope"}})
        return httpx.Response(200, json={"choices": [{"message": self._message(model)}]})

    def models_called(self) -> list[str]:
        return [r["model"] for r in self.requests]


@pytest.fixture
def fake_gateway(monkeypatch, settings):
    """Replace the pipeline's gateway client with one backed by ``FakeGateway``."""
    gateway = FakeGateway(settings)

    def _client() -> GatewayClient:
        return GatewayClient(transport=httpx.MockTransport(gateway))

    monkeypatch.setattr(pipeline, "GatewayClient", _client)
    return gateway
