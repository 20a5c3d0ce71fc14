import asyncio
import logging
from typing import Any, List, Optional

from aiohttp import web

from api import detection_routes, health, learning_routes
from api.app_keys import COORDINATOR, LEARNING_STORE, PUSH_SOCKETS
from persistence.learning_store import InMemoryLearningStore
from stream.coordinator import DetectionCoordinator

logger = logging.getLogger("vocabary.server")

def create_app(
    coordinator: DetectionCoordinator,
    store: Optional[InMemoryLearningStore] = None,
    learning_client: Any = None,
    preload_model: bool = True,
) -> web.Application:
    """Build the aiohttp application around an already wired coordinator.

    `learning_client` is closed on shutdown when given.
    """
    app = web.Application()
    app[COORDINATOR] = coordinator
    app[LEARNING_STORE] = store or InMemoryLearningStore()
    app[PUSH_SOCKETS] = set()

    app.add_routes(health.router)
    app.add_routes(learning_routes.router)
    app.add_routes(detection_routes.router)
    detection_routes.attach_push(app)
    background: List[asyncio.Task] = []

    async def on_startup(app: web.Application) -> None:
        coordinator.start_command_loop()
        if preload_model:
            background.append(asyncio.create_task(_preload(coordinator)))
        logger.info("Server started")

    async def on_shutdown(app: web.Application) -> None:
        """Close push sockets, stop detection and release the camera."""
        logger.info("Shutting down, closing push sockets...")
        close_tasks = [ws.close() for ws in list(app[PUSH_SOCKETS])]
        await asyncio.gather(*close_tasks, return_exceptions=True)
        app[PUSH_SOCKETS].clear()

        for task in background:
            if not task.done():
                task.cancel()
        await coordinator.shutdown()
        if learning_client is not None:
            await learning_client.close()
        logger.info("Shutdown complete")

    app.on_startup.append(on_startup)
    app.on_shutdown.append(on_shutdown)
    return app


async def _preload(coordinator: DetectionCoordinator) -> None:
    """Start loading the detector so the first `start` does not wait for it."""
    model_manager = coordinator.session.model_manager
    try:
        await model_manager.load()
    except asyncio.CancelledError:
        raise
    except Exception as error:
        logger.error(f"Model preload failed: {error}")
