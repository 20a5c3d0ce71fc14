import asyncio

import pytest
from aiohttp.test_utils import TestClient, TestServer

from api.server import create_app
from conftest import ScriptedModel, make_coordinator, wait_for
from persistence.learning_client import LocalLearningClient
from persistence.learning_store import InMemoryLearningStore


def cup_script():
    return ScriptedModel([[{"label": "cup", "confidence": 0.9, "bbox": [100, 100, 50, 50]}]])


async def receive_until(ws, event_type, timeout=2.0):
    async def _read():
        while True:
            message = await ws.receive_json()
            if message.get("event_type") == event_type:
                return message

    return await asyncio.wait_for(_read(), timeout)


@pytest.mark.asyncio
async def test_health_and_ready():
    coordinator, _ = make_coordinator()
    async with TestClient(TestServer(create_app(coordinator, preload_model=False))) as client:
        assert (await (await client.get("/health")).json()) == {"status": "ok"}
        resp = await client.get("/ready")
        assert resp.status == 200
        body = await resp.json()
        assert body["checks"]["detector"] == "ok"
        assert body["checks"]["camera"] == "idle"


@pytest.mark.asyncio
async def test_cameras_are_listed():
    coordinator, _ = make_coordinator()
    async with TestClient(TestServer(create_app(coordinator, preload_model=False))) as client:
        body = await (await client.get("/api/cameras")).json()
        assert [c["deviceId"] for c in body["cameras"]] == ["/dev/video0", "/dev/video2"]
        assert body["selectedCameraId"] is None


@pytest.mark.asyncio
async def test_start_detect_and_learn():
    store = InMemoryLearningStore()
    coordinator, _ = make_coordinator(model=cup_script())
    coordinator.detection_set._learning_client = LocalLearningClient(store)
    app = create_app(coordinator, store=store, preload_model=False)

    async with TestClient(TestServer(app)) as client:
        user = await (await client.post("/api/users", json={"username": "ana"})).json()

        resp = await client.post("/api/detection/start", json={})
        assert resp.status == 200
        assert (await resp.json())["success"] is True
        assert await wait_for(lambda: len(coordinator.detection_set) == 1)

        body = await (await client.get("/api/detections?limit=3")).json()
        assert body["total"] == 1
        assert body["detections"][0]["name"] == "Cup"
        assert body["detections"][0]["translation"] == "taza"

        resp = await client.post(
            "/api/detections/learn",
            json={"name": "Cup", "userId": user["user"]["id"], "languageId": 1},
        )
        assert resp.status == 200
        assert (await resp.json())["score"] == 10

        body = await (await client.get("/api/detections")).json()
        assert body["learnedWords"] == ["Cup"]

        resp = await client.post("/api/detections/learn", json={"name": "Giraffe", "userId": 1, "languageId": 1})
        assert resp.status == 404

        resp = await client.post("/api/detection/stop", json={"releaseCamera": True})
        assert (await resp.json())["status"]["state"] == "idle"


@pytest.mark.asyncio
async def test_control_validation():
    coordinator, _ = make_coordinator()
    async with TestClient(TestServer(create_app(coordinator, preload_model=False))) as client:
        assert (await client.post("/api/detection/camera", json={})).status == 400
        assert (await client.post("/api/detection/language", json={"languageCode": ""})).status == 400
        assert (await client.get("/api/detections?limit=abc")).status == 400
        assert (await client.post("/api/detections/learn", json={"name": "Cup"})).status == 400

        resp = await client.post("/api/detection/language", json={"languageCode": "FR"})
        assert (await resp.json())["status"]["languageCode"] == "fr"


@pytest.mark.asyncio
async def test_start_without_camera_reports_failure():
    coordinator, opener = make_coordinator()
    opener.side_effect = OSError("busy")
    async with TestClient(TestServer(create_app(coordinator, preload_model=False))) as client:
        resp = await client.post("/api/detection/start")
        assert resp.status == 503
        assert (await resp.json())["success"] is False


@pytest.mark.asyncio
async def test_websocket_pushes_batches_and_accepts_commands():
    coordinator, _ = make_coordinator(model=cup_script())
    async with TestClient(TestServer(create_app(coordinator, preload_model=False))) as client:
        async with client.ws_connect("/ws/detections") as ws:
            hello = await receive_until(ws, "hello")
            assert hello["status"]["state"] == "idle"

            await ws.send_json({"command": "start"})
            batch = await receive_until(ws, "detections")
            assert batch["language_code"] == "es"
            assert batch["total_accumulated"] == 1
            assert batch["detections"][0]["name"] == "Cup"
            assert batch["detections"][0]["boundingBox"]["x"] == pytest.approx(0.1)

            await ws.send_json({"command": "dance"})
            reply = await receive_until(ws, "command_result")
            # the start command's reply may arrive first
            if reply.get("success"):
                reply = await receive_until(ws, "command_result")
            assert reply["success"] is False
