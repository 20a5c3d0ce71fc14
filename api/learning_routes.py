"""REST API for languages, learned words, scores and vocabulary lists."""

import logging
from typing import Any, Dict, Optional

from aiohttp import web
from pydantic import BaseModel, ValidationError

from api.app_keys import LEARNING_STORE
from models.learning import (LearnedWordCreate, VocabularyListCreate,
                             VocabularyListUpdate, VocabularyListWordCreate)
from utils.errors import ConflictError, NotFoundError

logger = logging.getLogger("vocabary.api.learning")

router = web.RouteTableDef()


def _error(status: int, message: str, **extra: Any) -> web.Response:
    return web.json_response({"message": message, **extra}, status=status)


def _int_param(request: web.Request, name: str) -> Optional[int]:
    try:
        return int(request.match_info[name])
    except (KeyError, ValueError):
        return None


async def _read_json(request: web.Request) -> Dict[str, Any]:
    """Request body as a dict; an empty body reads as {}."""
    if not request.can_read_body:
        return {}
    body = await request.json()
    if not isinstance(body, dict):
        raise ValueError("request body must be a JSON object")
    return body


def _validation_error(message: str, error: ValidationError) -> web.Response:
    details = error.errors(include_url=False, include_context=False, include_input=False)
    return _error(400, message, error=details)


def _dump(model: BaseModel) -> Dict[str, Any]:
    return model.model_dump(by_alias=True)


@router.get("/api/languages")
async def list_languages(request: web.Request) -> web.Response:
    try:
        languages = await request.app[LEARNING_STORE].list_languages()
        return web.json_response({"languages": [_dump(lang) for lang in languages]})
    except Exception as error:
        logger.error(f"Failed to fetch languages: {error}")
        return _error(500, "Failed to fetch languages")


@router.post("/api/users")
async def create_user(request: web.Request) -> web.Response:
    try:
        body = await _read_json(request)
        username = str(body.get("username") or "").strip()
        if not username:
            return _error(400, "Username is required")
        user = await request.app[LEARNING_STORE].create_user(username)
        return web.json_response(
            {"user": _dump(user), "message": "User created successfully"}, status=201
        )
    except ConflictError as error:
        return _error(409, str(error))
    except ValueError:
        return _error(400, "Invalid user data")
    except Exception as error:
        logger.error(f"Failed to create user: {error}")
        return _error(500, "Failed to create user")


@router.get("/api/users/{userId}/score")
async def get_user_score(request: web.Request) -> web.Response:
    user_id = _int_param(request, "userId")
    if user_id is None:
        return _error(400, "Invalid user ID")
    try:
        score = await request.app[LEARNING_STORE].get_score(user_id)
    except Exception as error:
        logger.error(f"Failed to fetch score for user {user_id}: {error}")
        return _error(500, "Failed to fetch user score")
    if score is None:
        return _error(404, "User score not found")
    return web.json_response({"userScore": _dump(score)})


@router.get("/api/users/{userId}/words")
async def get_learned_words(request: web.Request) -> web.Response:
    user_id = _int_param(request, "userId")
    if user_id is None:
        return _error(400, "Invalid user ID")
    try:
        words = await request.app[LEARNING_STORE].get_learned_words(user_id)
        return web.json_response({"learnedWords": [_dump(w) for w in words]})
    except Exception as error:
        logger.error(f"Failed to fetch learned words for user {user_id}: {error}")
        return _error(500, "Failed to fetch learned words")


@router.post("/api/users/{userId}/words")
async def add_learned_word(request: web.Request) -> web.Response:
    """Record a learned word: +10 points when new, +5 for a recap."""
    user_id = _int_param(request, "userId")
    if user_id is None:
        return _error(400, "Invalid user ID")
    try:
        data = LearnedWordCreate.model_validate(await _read_json(request))
        result = await request.app[LEARNING_STORE].mark_learned(user_id, data)
        return web.json_response(_dump(result))
    except ValidationError as error:
        return _validation_error("Invalid word data", error)
    except ValueError:
        return _error(400, "Invalid word data")
    except Exception as error:
        logger.error(f"Failed to add learned word for user {user_id}: {error}")
        return _error(500, "Failed to add learned word")


@router.get("/api/users/{userId}/vocabulary-lists")
async def get_vocabulary_lists(request: web.Request) -> web.Response:
    user_id = _int_param(request, "userId")
    if user_id is None:
        return _error(400, "Invalid user ID")
    try:
        lists = await request.app[LEARNING_STORE].get_vocabulary_lists(user_id)
        return web.json_response({"vocabularyLists": [_dump(lst) for lst in lists]})
    except Exception as error:
        logger.error(f"Failed to fetch vocabulary lists for user {user_id}: {error}")
        return _error(500, "Failed to fetch vocabulary lists")


@router.post("/api/users/{userId}/vocabulary-lists")
async def create_vocabulary_list(request: web.Request) -> web.Response:
    user_id = _int_param(request, "userId")
    if user_id is None:
        return _error(400, "Invalid user ID")
    try:
        data = VocabularyListCreate.model_validate(await _read_json(request))
        vocabulary_list = await request.app[LEARNING_STORE].create_vocabulary_list(user_id, data)
        return web.json_response(
            {"success": True, "vocabularyList": _dump(vocabulary_list)}, status=201
        )
    except ValidationError as error:
        return _validation_error("Invalid list data", error)
    except ValueError:
        return _error(400, "Invalid list data")
    except Exception as error:
        logger.error(f"Failed to create vocabulary list: {error}")
        return _error(500, "Failed to create vocabulary list")


@router.get("/api/vocabulary-lists/{listId}")
async def get_vocabulary_list(request: web.Request) -> web.Response:
    list_id = _int_param(request, "listId")
    if list_id is None:
        return _error(400, "Invalid list ID")
    try:
        vocabulary_list = await request.app[LEARNING_STORE].get_vocabulary_list(list_id)
    except Exception as error:
        logger.error(f"Failed to fetch vocabulary list {list_id}: {error}")
        return _error(500, "Failed to fetch vocabulary list")
    if vocabulary_list is None:
        return _error(404, "Vocabulary list not found")
    return web.json_response({"list": _dump(vocabulary_list)})


@router.patch("/api/vocabulary-lists/{listId}")
async def update_vocabulary_list(request: web.Request) -> web.Response:
    list_id = _int_param(request, "listId")
    if list_id is None:
        return _error(400, "Invalid list ID")
    try:
        data = VocabularyListUpdate.model_validate(await _read_json(request))
        updated = await request.app[LEARNING_STORE].update_vocabulary_list(list_id, data)
        return web.json_response({"success": True, "vocabularyList": _dump(updated)})
    except NotFoundError as error:
        return _error(404, str(error))
    except ValidationError as error:
        return _validation_error("Invalid list data", error)
    except ValueError:
        return _error(400, "Invalid list data")
    except Exception as error:
        logger.error(f"Failed to update vocabulary list {list_id}: {error}")
        return _error(500, "Failed to update vocabulary list")


@router.delete("/api/vocabulary-lists/{listId}")
async def delete_vocabulary_list(request: web.Request) -> web.Response:
    list_id = _int_param(request, "listId")
    if list_id is None:
        return _error(400, "Invalid list ID")
    try:
        deleted = await request.app[LEARNING_STORE].delete_vocabulary_list(list_id)
    except Exception as error:
        logger.error(f"Failed to delete vocabulary list {list_id}: {error}")
        return _error(500, "Failed to delete vocabulary list")
    if not deleted:
        return _error(404, "Vocabulary list not found")
    return web.json_response({"success": True, "message": "Vocabulary list deleted successfully"})


@router.get("/api/vocabulary-lists/{listId}/words")
async def get_vocabulary_list_words(request: web.Request) -> web.Response:
    list_id = _int_param(request, "listId")
    if list_id is None:
        return _error(400, "Invalid list ID")
    try:
        words = await request.app[LEARNING_STORE].get_vocabulary_list_words(list_id)
        return web.json_response({"words": [_dump(w) for w in words]})
    except Exception as error:
        logger.error(f"Failed to fetch words of list {list_id}: {error}")
        return _error(500, "Failed to fetch vocabulary list words")


@router.post("/api/vocabulary-lists/{listId}/words")
async def add_vocabulary_list_word(request: web.Request) -> web.Response:
    list_id = _int_param(request, "listId")
    if list_id is None:
        return _error(400, "Invalid list ID")
    try:
        data = VocabularyListWordCreate.model_validate(await _read_json(request))
        entry = await request.app[LEARNING_STORE].add_word_to_vocabulary_list(list_id, data)
        return web.json_response({"success": True, "listWord": _dump(entry)}, status=201)
    except NotFoundError as error:
        return _error(404, str(error))
    except ValidationError as error:
        return _validation_error("Invalid word ID", error)
    except ValueError:
        return _error(400, "Invalid data")
    except Exception as error:
        logger.error(f"Failed to add word to list {list_id}: {error}")
        return _error(500, "Failed to add word to vocabulary list")


@router.delete("/api/vocabulary-lists/{listId}/words/{wordId}")
async def remove_vocabulary_list_word(request: web.Request) -> web.Response:
    list_id = _int_param(request, "listId")
    word_id = _int_param(request, "wordId")
    if list_id is None or word_id is None:
        return _error(400, "Invalid IDs")
    try:
        removed = await request.app[LEARNING_STORE].remove_word_from_vocabulary_list(list_id, word_id)
    except Exception as error:
        logger.error(f"Failed to remove word {word_id} from list {list_id}: {error}")
        return _error(500, "Failed to remove word from vocabulary list")
    if not removed:
        return _error(404, "Word not found in vocabulary list")
    return web.json_response({"success": True, "message": "Word removed from vocabulary list"})


@router.patch("/api/vocabulary-list-words/{id}")
async def update_vocabulary_list_word(request: web.Request) -> web.Response:
    entry_id = _int_param(request, "id")
    if entry_id is None:
        return _error(400, "Invalid ID")
    try:
        body = await _read_json(request)
        entry = await request.app[LEARNING_STORE].update_word_in_vocabulary_list(entry_id, body.get("notes"))
        return web.json_response({"success": True, "listWord": _dump(entry)})
    except NotFoundError as error:
        return _error(404, str(error))
    except ValueError:
        return _error(400, "Invalid data")
    except Exception as error:
        logger.error(f"Failed to update list word {entry_id}: {error}")
        return _error(500, "Failed to update word in vocabulary list")
