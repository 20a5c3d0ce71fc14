"""Session control routes and the detection push websocket."""

import json
import logging
import time
from typing import Any, Dict, List

from aiohttp import WSMsgType, web

from api.app_keys import COORDINATOR, PUSH_SOCKETS
from capture.preferences import SELECTED_CAMERA_KEY
from config import constants
from models.detection import EnrichedDetection
from models.events import DetectionBatchEvent, SessionStatusEvent
from stream.commands import (Command, SelectLanguage, StartDetection,
                             StopDetection, SwitchCamera)
from utils.errors import LearningApiError

logger = logging.getLogger("vocabary.api.detection")

router = web.RouteTableDef()


def _error(status: int, message: str) -> web.Response:
    return web.json_response({"message": message}, status=status)


async def _read_json(request: web.Request) -> Dict[str, Any]:
    if not request.can_read_body:
        return {}
    body = await request.json()
    if not isinstance(body, dict):
        raise ValueError("request body must be a JSON object")
    return body


def command_from_payload(payload: Dict[str, Any]) -> Command:
    """Build a command from a websocket message like ``{"command": "start"}``."""
    name = payload.get("command")
    if name == "start":
        return StartDetection(payload.get("deviceId"), payload.get("facingMode"))
    if name == "stop":
        return StopDetection(bool(payload.get("releaseCamera", False)))
    if name == "switchCamera":
        device_id = payload.get("deviceId")
        if not device_id:
            raise ValueError("deviceId is required")
        return SwitchCamera(str(device_id))
    if name == "selectLanguage":
        code = str(payload.get("languageCode") or "").strip()
        if not code:
            raise ValueError("languageCode is required")
        return SelectLanguage(code.lower())
    raise ValueError(f"unknown command {name!r}")


async def _run_command(request: web.Request, command: Command) -> web.Response:
    result = await request.app[COORDINATOR].commands.call(command)
    status = 200 if result["success"] else 503
    return web.json_response(result, status=status)


@router.get("/api/cameras")
async def list_cameras(request: web.Request) -> web.Response:
    coordinator = request.app[COORDINATOR]
    devices = coordinator.capture.enumerate_devices()
    return web.json_response({
        "cameras": [device.to_dict() for device in devices],
        "selectedCameraId": coordinator.preferences.get(SELECTED_CAMERA_KEY),
    })


@router.get("/api/detection/status")
async def detection_status(request: web.Request) -> web.Response:
    return web.json_response(request.app[COORDINATOR].status())


@router.post("/api/detection/start")
async def start_detection(request: web.Request) -> web.Response:
    try:
        body = await _read_json(request)
    except ValueError:
        return _error(400, "Invalid request body")
    return await _run_command(request, StartDetection(body.get("deviceId"), body.get("facingMode")))


@router.post("/api/detection/stop")
async def stop_detection(request: web.Request) -> web.Response:
    try:
        body = await _read_json(request)
    except ValueError:
        return _error(400, "Invalid request body")
    return await _run_command(request, StopDetection(bool(body.get("releaseCamera", False))))


@router.post("/api/detection/camera")
async def switch_camera(request: web.Request) -> web.Response:
    try:
        command = command_from_payload({**await _read_json(request), "command": "switchCamera"})
    except ValueError as error:
        return _error(400, str(error))
    return await _run_command(request, command)


@router.post("/api/detection/language")
async def select_language(request: web.Request) -> web.Response:
    try:
        command = command_from_payload({**await _read_json(request), "command": "selectLanguage"})
    except ValueError as error:
        return _error(400, str(error))
    return await _run_command(request, command)


@router.get("/api/detections")
async def latest_detections(request: web.Request) -> web.Response:
    """The newest detections (default: the display window of 3)."""
    try:
        limit = int(request.query.get("limit", constants.DISPLAY_WINDOW))
    except ValueError:
        return _error(400, "Invalid limit")
    if limit < 0:
        return _error(400, "Invalid limit")
    coordinator = request.app[COORDINATOR]
    detections = coordinator.detection_set.latest(limit)
    return web.json_response({
        "detections": [d.to_dict() for d in detections],
        "total": len(coordinator.detection_set),
        "learnedWords": sorted(coordinator.learned_words),
    })


@router.delete("/api/detections")
async def clear_detections(request: web.Request) -> web.Response:
    request.app[COORDINATOR].detection_set.clear()
    return web.json_response({"success": True})


@router.post("/api/detections/learn")
async def learn_detection(request: web.Request) -> web.Response:
    try:
        body = await _read_json(request)
        name = str(body.get("name") or "").strip()
        user_id = int(body["userId"])
        language_id = int(body["languageId"])
    except (KeyError, TypeError, ValueError):
        return _error(400, "name, userId and languageId are required")
    if not name:
        return _error(400, "name, userId and languageId are required")

    try:
        result = await request.app[COORDINATOR].mark_learned(name, user_id, language_id)
    except KeyError:
        return _error(404, f"No current detection named {name!r}")
    except LearningApiError as error:
        status = error.status_code if error.status_code and 400 <= error.status_code < 500 else 502
        return _error(status, str(error))
    return web.json_response(result.dump())


@router.get(constants.DETECTIONS_WS_PATH)
async def detections_ws(request: web.Request) -> web.WebSocketResponse:
    """Push channel: detection batches and session status as JSON.

    Clients may also send commands, e.g. ``{"command": "start"}``; each
    one is answered with a ``command_result`` message.
    """
    ws = web.WebSocketResponse(heartbeat=30)
    await ws.prepare(request)
    sockets = request.app[PUSH_SOCKETS]
    sockets.add(ws)
    coordinator = request.app[COORDINATOR]
    logger.info("client_connected", extra={"session_id": coordinator.session.stats.session_id})

    await ws.send_json({
        "event_type": "hello",
        "timestamp_ms": int(time.time() * 1000),
        "status": coordinator.status(),
        "detections": [d.to_dict() for d in coordinator.detection_set.latest()],
    })

    try:
        async for msg in ws:
            if msg.type == WSMsgType.TEXT:
                await _handle_ws_message(ws, coordinator, msg.data)
            elif msg.type == WSMsgType.ERROR:
                logger.warning(f"websocket_error: {ws.exception()}")
    finally:
        sockets.discard(ws)
        logger.info("client_disconnected", extra={"session_id": coordinator.session.stats.session_id})
    return ws


async def _handle_ws_message(ws: web.WebSocketResponse, coordinator: Any, data: str) -> None:
    reply: Dict[str, Any] = {"event_type": "command_result"}
    try:
        payload = json.loads(data)
        if not isinstance(payload, dict):
            raise ValueError("message must be a JSON object")
        command = command_from_payload(payload)
    except ValueError as error:
        reply.update(success=False, message=str(error))
    else:
        reply.update(await coordinator.commands.call(command))
    await ws.send_json(reply)


async def broadcast(app: web.Application, payload: Dict[str, Any]) -> None:
    for ws in list(app[PUSH_SOCKETS]):
        if ws.closed:
            app[PUSH_SOCKETS].discard(ws)
            continue
        try:
            await ws.send_json(payload)
        except ConnectionError as error:
            logger.warning(f"Dropping push socket: {error}")
            app[PUSH_SOCKETS].discard(ws)


def detection_batch_payload(
    batch: List[EnrichedDetection],
    session_id: str,
    language_code: str,
    total: int,
) -> Dict[str, Any]:
    return DetectionBatchEvent(
        session_id=session_id,
        timestamp_ms=int(time.time() * 1000),
        language_code=language_code,
        detections=[d.to_dict() for d in batch],
        total_accumulated=total,
    ).model_dump()


def attach_push(app: web.Application) -> None:
    """Forward detection batches and session status to every push socket."""
    coordinator = app[COORDINATOR]
    session = coordinator.session

    async def on_batch(batch: List[EnrichedDetection]) -> None:
        payload = detection_batch_payload(
            batch, session.stats.session_id, session.language_code, len(coordinator.detection_set)
        )
        await broadcast(app, payload)

    async def on_status(event: SessionStatusEvent) -> None:
        await broadcast(app, event.model_dump())

    coordinator.detection_set.subscribe(on_batch)
    session.add_status_listener(on_status)
