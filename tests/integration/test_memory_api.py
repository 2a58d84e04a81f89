"""Integration tests for the memory REST endpoints."""

BOB = {"Authorization": "Bearer tok-bob"}


async def _create(client, title: str | None = None) -> dict:
    resp = await client.post("/api/v1/memories", json={"title": title} if title else None)
    assert resp.status_code == 200
    return resp.json()


# ---------------------------------------------------------------------------
# Create / read
# ---------------------------------------------------------------------------


async def test_create_memory(async_client):
    body = await _create(async_client, "Lake house")
    assert body["title"] == "Lake house"
    assert body["userId"] == "alice"
    assert body["processingStatus"] == "recorded"
    assert body["scenes"] == []
    assert body["sketches"] == []
    assert body["audioUrl"] is None


async def test_create_without_body(async_client):
    body = await _create(async_client)
    assert body["title"] is None


async def test_requires_auth(async_client):
    resp = await async_client.get("/api/v1/memories", headers={"Authorization": ""})
    assert resp.status_code == 401
    assert resp.json()["error"] == "No authorization header"


async def test_list_is_scoped_to_caller(async_client):
    await _create(async_client, "mine")
    await async_client.post("/api/v1/memories", json={"title": "bobs"}, headers=BOB)

    resp = await async_client.get("/api/v1/memories")
    assert resp.status_code == 200
    assert [m["title"] for m in resp.json()] == ["mine"]


async def test_list_status_filter(async_client):
    await _create(async_client)
    resp = await async_client.get("/api/v1/memories", params={"status": "complete"})
    assert resp.json() == []
    resp = await async_client.get("/api/v1/memories", params={"status": "recorded"})
    assert len(resp.json()) == 1


async def test_list_rejects_unknown_status(async_client):
    resp = await async_client.get("/api/v1/memories", params={"status": "finished"})
    assert resp.status_code == 400


async def test_get_memory_not_found(async_client):
    resp = await async_client.get("/api/v1/memories/does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["code"] == "MEMORY_NOT_FOUND"


async def test_get_other_users_memory_is_404(async_client):
    memory = await _create(async_client)
    resp = await async_client.get(f"/api/v1/memories/{memory['id']}", headers=BOB)
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Audio
# ---------------------------------------------------------------------------


async def test_upload_and_fetch_audio(async_client):
    memory = await _create(async_client)

    resp = await async_client.put(
        f"/api/v1/memories/{memory['id']}/audio",
        content=b"RIFF....WAVEfmt ",
        headers={"Content-Type": "audio/wav"},
    )
    assert resp.status_code == 200
    assert resp.json()["audioUrl"] == f"alice/{memory['id']}.wav"

    audio = await async_client.get(f"/api/v1/memories/{memory['id']}/audio")
    assert audio.status_code == 200
    assert audio.content == b"RIFF....WAVEfmt "
    assert audio.headers["content-type"] == "audio/wav"


async def test_upload_empty_audio(async_client):
    memory = await _create(async_client)
    resp = await async_client.put(
        f"/api/v1/memories/{memory['id']}/audio",
        content=b"",
        headers={"Content-Type": "audio/webm"},
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "EMPTY_AUDIO"


async def test_upload_too_large(async_client, monkeypatch, settings):
    monkeypatch.setattr(settings, "max_audio_bytes", 8)
    memory = await _create(async_client)
    resp = await async_client.put(
        f"/api/v1/memories/{memory['id']}/audio",
        content=b"0123456789",
        headers={"Content-Type": "audio/webm"},
    )
    assert resp.status_code == 413


async def test_upload_rejected_on_declared_length(async_client, monkeypatch, settings):
    monkeypatch.setattr(settings, "max_audio_bytes", 8)
    memory = await _create(async_client)
    resp = await async_client.put(
        f"/api/v1/memories/{memory['id']}/audio",
        content=b"0123",
        headers={"Content-Type": "audio/webm", "Content-Length": "1000"},
    )
    assert resp.status_code == 413
    assert resp.json()["code"] == "AUDIO_TOO_LARGE"
    assert (await async_client.get(f"/api/v1/memories/{memory['id']}")).json()["audioUrl"] is None


async def test_chunked_upload_too_large(async_client, monkeypatch, settings):
    monkeypatch.setattr(settings, "max_audio_bytes", 8)
    memory = await _create(async_client)

    async def chunks():
        yield b"01234"
        yield b"56789"

    resp = await async_client.put(
        f"/api/v1/memories/{memory['id']}/audio",
        content=chunks(),
        headers={"Content-Type": "audio/webm"},
    )
    assert resp.status_code == 413


async def test_fetch_audio_when_none(async_client):
    memory = await _create(async_client)
    resp = await async_client.get(f"/api/v1/memories/{memory['id']}/audio")
    assert resp.status_code == 404
    assert resp.json()["code"] == "AUDIO_NOT_FOUND"


# ---------------------------------------------------------------------------
# Reset / delete
# ---------------------------------------------------------------------------


async def test_reset_recorded_memory_conflicts(async_client):
    memory = await _create(async_client)
    resp = await async_client.post(f"/api/v1/memories/{memory['id']}/reset")
    assert resp.status_code == 409
    assert resp.json()["code"] == "INVALID_STATUS_TRANSITION"


async def test_delete_memory(async_client):
    memory = await _create(async_client)
    await async_client.put(
        f"/api/v1/memories/{memory['id']}/audio",
        content=b"webm",
        headers={"Content-Type": "audio/webm"},
    )

    resp = await async_client.delete(f"/api/v1/memories/{memory['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"memoryId": memory["id"], "deleted": True, "blobsRemoved": 1}

    resp = await async_client.get(f"/api/v1/memories/{memory['id']}")
    assert resp.status_code == 404


async def test_delete_other_users_memory(async_client):
    memory = await _create(async_client)
    resp = await async_client.delete(f"/api/v1/memories/{memory['id']}", headers=BOB)
    assert resp.status_code == 404
    resp = await async_client.get(f"/api/v1/memories/{memory['id']}")
    assert resp.status_code == 200
