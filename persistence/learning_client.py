import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from config.constants import HTTP_REQUEST_TIMEOUT_SEC as DEFAULT_HTTP_TIMEOUT
from config.constants import LEARNING_API_BASE_URL
from models.learning import (Language, LearnedWord, LearnedWordCreate,
                             MarkLearnedResult, UserScore)
from utils.errors import LearningApiError
from utils.time_converter import utc_now_iso

logger = logging.getLogger("vocabary.persistence.client")


class LearningApiClient:
    """Async client for the learned-word REST API.

    Used by the detection set to persist "mark as learned" actions. The
    underlying `httpx.AsyncClient` is created on first use; pass `transport`
    to route requests somewhere else (tests use `httpx.MockTransport`).
    """

    def __init__(
        self,
        base_url: str = LEARNING_API_BASE_URL,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _ensure_client(self) -> None:
        """Lazily initialize HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url, timeout=self._timeout, transport=self._transport
            )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        self._ensure_client()
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as error:
            logger.error(f"{method} {path} failed: {error}")
            raise LearningApiError(f"Learning API unreachable: {error}") from error

        if response.is_error:
            message = self._error_message(response)
            logger.warning(f"{method} {path} -> {response.status_code}: {message}")
            raise LearningApiError(message, status_code=response.status_code)
        return response.json()

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            return str(response.json().get("message", response.text))
        except ValueError:
            return response.text or response.reason_phrase

    async def list_languages(self) -> List[Language]:
        data = await self._request("GET", "/languages")
        return [Language.model_validate(item) for item in data.get("languages", [])]

    async def get_learned_words(self, user_id: int) -> List[LearnedWord]:
        data = await self._request("GET", f"/users/{user_id}/words")
        return [LearnedWord.model_validate(item) for item in data.get("learnedWords", [])]

    async def mark_learned(self, user_id: int, word: str, translation: str, language_id: int) -> MarkLearnedResult:
        payload = {"word": word, "translation": translation, "languageId": language_id, "learnedAt": utc_now_iso()}
        data = await self._request("POST", f"/users/{user_id}/words", json=payload)
        return MarkLearnedResult.model_validate(data)

    async def get_score(self, user_id: int) -> UserScore:
        data = await self._request("GET", f"/users/{user_id}/score")
        return UserScore.model_validate(data["userScore"])

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class LocalLearningClient:
    """Same calls as `LearningApiClient`, served by an in-process store."""

    def __init__(self, store: Any):
        self._store = store

    async def list_languages(self) -> List[Language]:
        return await self._store.list_languages()

    async def get_learned_words(self, user_id: int) -> List[LearnedWord]:
        return await self._store.get_learned_words(user_id)

    async def mark_learned(self, user_id: int, word: str, translation: str, language_id: int) -> MarkLearnedResult:
        try:
            data = LearnedWordCreate(word=word, translation=translation, language_id=language_id)
        except ValidationError as error:
            raise LearningApiError(f"Invalid word data: {error}", status_code=400) from error
        return await self._store.mark_learned(user_id, data)

    async def get_score(self, user_id: int) -> UserScore:
        score = await self._store.get_score(user_id)
        if score is None:
            raise LearningApiError("User score not found", status_code=404)
        return score

    async def close(self) -> None:
        return None
