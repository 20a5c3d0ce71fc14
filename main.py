import logging

from aiohttp import web

from api.server import create_app
from capture.manager import CaptureSourceManager
from capture.preferences import JsonFileSelectionStore
from config import constants
from enrichment.service import EnrichmentService
from inference.model_manager import default_model_manager
from persistence.learning_client import LearningApiClient, LocalLearningClient
from persistence.learning_store import InMemoryLearningStore
from stream.coordinator import DetectionCoordinator
from stream.detection_set import AccumulatedDetectionSet
from stream.frame_processor import DetectionSession
from utils.logging_config import configure_logging

logger = logging.getLogger("vocabary.main")


def build_app() -> web.Application:
    store = InMemoryLearningStore()
    if constants.USE_REMOTE_LEARNING_API:
        learning_client = LearningApiClient(constants.LEARNING_API_BASE_URL)
    else:
        learning_client = LocalLearningClient(store)

    session = DetectionSession(
        model_manager=default_model_manager(),
        enrichment=EnrichmentService(),
        detection_set=AccumulatedDetectionSet(learning_client=learning_client),
    )
    coordinator = DetectionCoordinator(
        capture=CaptureSourceManager(),
        session=session,
        preferences=JsonFileSelectionStore(constants.CAMERA_SELECTION_FILE),
    )
    return create_app(coordinator, store=store, learning_client=learning_client)


def main() -> None:
    configure_logging()
    logger.info(f"Starting server on {constants.DEFAULT_SERVER_HOST}:{constants.SERVER_PORT}")
    web.run_app(build_app(), host=constants.DEFAULT_SERVER_HOST, port=constants.SERVER_PORT)


if __name__ == "__main__":
    main()
