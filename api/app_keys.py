from aiohttp import web

from persistence.learning_store import InMemoryLearningStore
from stream.coordinator import DetectionCoordinator

LEARNING_STORE = web.AppKey("learning_store", InMemoryLearningStore)
COORDINATOR = web.AppKey("coordinator", DetectionCoordinator)
PUSH_SOCKETS = web.AppKey("push_sockets", set)
