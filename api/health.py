import logging

from aiohttp import web

from api.app_keys import COORDINATOR

logger = logging.getLogger("vocabary.api.health")

router = web.RouteTableDef()


@router.get("/health")
async def health(request):
    """Basic liveness probe - always returns ok if the server is running."""
    return web.json_response({"status": "ok"})


@router.get("/ready")
async def ready(request):
    """Readiness probe - the detector is loaded and nothing failed for good."""
    coordinator = request.app[COORDINATOR]
    model_manager = coordinator.session.model_manager
    checks = {}

    if model_manager.is_ready():
        checks["detector"] = "fallback" if model_manager.used_fallback else "ok"
    elif model_manager.last_error is not None:
        checks["detector"] = f"failed: {model_manager.last_error}"
    else:
        checks["detector"] = "loading"

    active = coordinator.capture.active
    checks["camera"] = "active" if active is not None and active.is_active else "idle"
    checks["session"] = coordinator.session.state.value

    ready = model_manager.is_ready()
    if not ready:
        logger.info(f"Readiness check failed: detector {checks['detector']}")
    return web.json_response({"ready": ready, "checks": checks}, status=200 if ready else 503)
