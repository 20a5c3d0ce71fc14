"""In-memory backend for learned words, scores and vocabulary lists.

Scoring: a word the user has not learned before (case-insensitive) is
worth `POINTS_NEW_WORD`, a recap `POINTS_RECAP_WORD`; the level is
``score // POINTS_PER_LEVEL + 1``.
"""

import itertools
import logging
from typing import Dict, Iterator, List, Optional

from config import constants
from models.learning import (Language, LearnedWord, LearnedWordCreate,
                             MarkLearnedResult, User, UserScore,
                             VocabularyList, VocabularyListCreate,
                             VocabularyListUpdate, VocabularyListWord,
                             VocabularyListWordCreate)
from utils.errors import ConflictError, NotFoundError
from utils.time_converter import utc_now_iso

logger = logging.getLogger("vocabary.persistence.store")

DEFAULT_LANGUAGES = (
    ("Spanish", "es", 3248),
    ("French", "fr", 3145),
    ("German", "de", 2976),
    ("Japanese", "ja", 2348),
    ("Hindi", "hi", 3510),
    ("Tamil", "ta", 3275),
    ("Telugu", "te", 3150),
    ("Malayalam", "ml", 3300),
)


def level_for(score: int) -> int:
    return score // constants.POINTS_PER_LEVEL + 1


class InMemoryLearningStore:
    def __init__(self):
        self._languages: Dict[int, Language] = {}
        self._users: Dict[int, User] = {}
        self._learned_words: Dict[int, LearnedWord] = {}
        self._scores: Dict[int, UserScore] = {}
        self._lists: Dict[int, VocabularyList] = {}
        self._list_words: Dict[int, VocabularyListWord] = {}
        self._ids: Dict[str, Iterator[int]] = {}

        for index, (name, code, word_count) in enumerate(DEFAULT_LANGUAGES, start=1):
            self._languages[index] = Language(id=index, name=name, code=code, word_count=word_count)

    def _next_id(self, kind: str) -> int:
        counter = self._ids.setdefault(kind, itertools.count(1))
        return next(counter)

    # users
    async def create_user(self, username: str) -> User:
        username = username.strip()
        if not username:
            raise ValueError("username must not be blank")
        if await self.get_user_by_username(username) is not None:
            raise ConflictError("Username already exists")
        user = User(id=self._next_id("user"), username=username)
        self._users[user.id] = user
        await self.set_score(user.id, 0)
        logger.info(f"Created user {user.id} ({username})")
        return user

    async def get_user(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self._users.values() if u.username == username), None)

    # languages
    async def list_languages(self) -> List[Language]:
        return list(self._languages.values())

    async def get_language(self, language_id: int) -> Optional[Language]:
        return self._languages.get(language_id)

    async def get_language_by_code(self, code: str) -> Optional[Language]:
        code = code.lower()
        return next((lang for lang in self._languages.values() if lang.code == code), None)

    # learned words and scores
    async def get_learned_words(self, user_id: int) -> List[LearnedWord]:
        return [w for w in self._learned_words.values() if w.user_id == user_id]

    async def count_learned_words(self, user_id: int) -> int:
        return len(await self.get_learned_words(user_id))

    async def mark_learned(self, user_id: int, data: LearnedWordCreate) -> MarkLearnedResult:
        """Record the word and award points; recaps are recorded too."""
        wanted = data.word.lower()
        recap = any(w.word.lower() == wanted for w in await self.get_learned_words(user_id))

        learned = LearnedWord(
            id=self._next_id("learned_word"),
            user_id=user_id,
            word=data.word,
            translation=data.translation,
            language_id=data.language_id,
            learned_at=data.learned_at or utc_now_iso(),
        )
        self._learned_words[learned.id] = learned

        points = constants.POINTS_RECAP_WORD if recap else constants.POINTS_NEW_WORD
        score = await self.increment_score(user_id, points)
        logger.info(f"User {user_id} learned {data.word!r} (+{points}, recap={recap})")
        return MarkLearnedResult(
            learned_word=learned, score=score.score, level=score.level, recap=recap
        )

    async def get_score(self, user_id: int) -> Optional[UserScore]:
        return next((s for s in self._scores.values() if s.user_id == user_id), None)

    async def set_score(self, user_id: int, score: int) -> UserScore:
        existing = await self.get_score(user_id)
        if existing is None:
            existing = UserScore(id=self._next_id("score"), user_id=user_id)
        updated = existing.model_copy(update={"score": score, "level": level_for(score)})
        self._scores[updated.id] = updated
        return updated

    async def increment_score(self, user_id: int, points: int) -> UserScore:
        existing = await self.get_score(user_id)
        return await self.set_score(user_id, (existing.score if existing else 0) + points)

    # vocabulary lists
    async def get_vocabulary_lists(self, user_id: int) -> List[VocabularyList]:
        return [lst for lst in self._lists.values() if lst.user_id == user_id]

    async def get_vocabulary_list(self, list_id: int) -> Optional[VocabularyList]:
        return self._lists.get(list_id)

    async def create_vocabulary_list(self, user_id: int, data: VocabularyListCreate) -> VocabularyList:
        now = utc_now_iso()
        vocabulary_list = VocabularyList(
            id=self._next_id("list"),
            user_id=user_id,
            name=data.name,
            description=data.description or None,
            icon=data.icon or "folder",
            color=data.color or "#8F87F1",
            created_at=now,
            updated_at=now,
        )
        self._lists[vocabulary_list.id] = vocabulary_list
        return vocabulary_list

    async def update_vocabulary_list(self, list_id: int, data: VocabularyListUpdate) -> VocabularyList:
        existing = self._lists.get(list_id)
        if existing is None:
            raise NotFoundError(f"Vocabulary list with ID {list_id} not found")
        changes = data.model_dump(exclude_unset=True)
        changes["updated_at"] = utc_now_iso()
        updated = existing.model_copy(update=changes)
        self._lists[list_id] = updated
        return updated

    async def delete_vocabulary_list(self, list_id: int) -> bool:
        if self._lists.pop(list_id, None) is None:
            return False
        for entry_id in [e.id for e in self._list_words.values() if e.list_id == list_id]:
            del self._list_words[entry_id]
        return True

    async def get_vocabulary_list_words(self, list_id: int) -> List[VocabularyListWord]:
        return [e for e in self._list_words.values() if e.list_id == list_id]

    async def add_word_to_vocabulary_list(self, list_id: int, data: VocabularyListWordCreate) -> VocabularyListWord:
        if list_id not in self._lists:
            raise NotFoundError(f"Vocabulary list with ID {list_id} not found")
        entry = VocabularyListWord(
            id=self._next_id("list_word"),
            list_id=list_id,
            word_id=data.word_id,
            added_at=utc_now_iso(),
            notes=data.notes or None,
        )
        self._list_words[entry.id] = entry
        return entry

    async def remove_word_from_vocabulary_list(self, list_id: int, word_id: int) -> bool:
        for entry in list(self._list_words.values()):
            if entry.list_id == list_id and entry.word_id == word_id:
                del self._list_words[entry.id]
                return True
        return False

    async def update_word_in_vocabulary_list(self, entry_id: int, notes: Optional[str]) -> VocabularyListWord:
        existing = self._list_words.get(entry_id)
        if existing is None:
            raise NotFoundError(f"Vocabulary list word with ID {entry_id} not found")
        updated = existing.model_copy(update={"notes": notes or None})
        self._list_words[entry_id] = updated
        return updated
