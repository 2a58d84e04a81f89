"""Unit tests for gateway-backed speech-to-text."""

import base64
import json

import httpx
import pytest

from memsketch.services.llm.gateway import GatewayClient
from memsketch.services.transcription import create_stt
from memsketch.services.transcription.gateway import SYSTEM_PROMPT, GatewaySTT


def _client(handler) -> GatewayClient:
    return GatewayClient(
        base_url="https://gateway.test/v1",
        api_key="test-key",
        transport=httpx.MockTransport(handler),
    )


class TestBuildMessages:
    def test_audio_sent_inline_as_base64(self):
        messages = GatewaySTT.build_messages(b"\x1aE\xdf\xa3webm", "webm")
        assert messages[0] == {"role": "system", "content": SYSTEM_PROMPT}
        audio_part = messages[1]["content"][0]
        assert audio_part["type"] == "input_audio"
        assert audio_part["input_audio"]["format"] == "webm"
        assert base64.b64decode(audio_part["input_audio"]["data"]) == b"\x1aE\xdf\xa3webm"


class TestGatewaySTT:
    async def test_transcript_is_trimmed(self, settings):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200, json={"choices": [{"message": {"content": "  We went to the beach.\n"}}]}
            )

        async with _client(handler) as client:
            stt = GatewaySTT(client)
            text = await stt.transcribe(b"audio", "wav")

        assert text == "We went to the beach."
        assert seen["body"]["model"] == settings.transcription_model

    async def test_no_content_is_empty_string(self):
        def handler(request):
            return httpx.Response(200, json={"choices": [{"message": {"content": None}}]})

        async with _client(handler) as client:
            assert await GatewaySTT(client).transcribe(b"audio") == ""


class TestCreateSTT:
    async def test_gateway(self):
        async with _client(lambda r: httpx.Response(200)) as client:
            assert isinstance(create_stt("gateway", client=client), GatewaySTT)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown STT provider"):
            create_stt("whisper")
