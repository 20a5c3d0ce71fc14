"""Configuration module for the vocabary detection service."""

from config.constants import (DEFAULT_LANGUAGE_CODE,
                              DEFAULT_SERVER_HOST,
                              DETECTION_CONFIDENCE_THRESHOLD,
                              LEARNING_API_BASE_URL,
                              SERVER_PORT)

__all__ = [
    "DEFAULT_LANGUAGE_CODE",
    "DEFAULT_SERVER_HOST",
    "DETECTION_CONFIDENCE_THRESHOLD",
    "LEARNING_API_BASE_URL",
    "SERVER_PORT",
]
