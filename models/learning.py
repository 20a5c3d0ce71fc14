"""Request/response models for the learned-word and vocabulary-list backend."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def dump(self) -> dict:
        return self.model_dump(by_alias=True)


class Language(CamelModel):
    id: int
    name: str
    code: str
    word_count: int = Field(0, alias="wordCount")


class User(CamelModel):
    id: int
    username: str


class LearnedWordCreate(CamelModel):
    word: str = Field(min_length=1)
    translation: str = Field(min_length=1)
    language_id: int = Field(alias="languageId")
    learned_at: Optional[str] = Field(None, alias="learnedAt")

    @field_validator("word", "translation")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class LearnedWord(CamelModel):
    id: int
    user_id: int = Field(alias="userId")
    word: str
    translation: str
    language_id: int = Field(alias="languageId")
    learned_at: str = Field(alias="learnedAt")


class UserScore(CamelModel):
    id: int
    user_id: int = Field(alias="userId")
    score: int = 0
    level: int = 1


class MarkLearnedResult(CamelModel):
    success: bool = True
    learned_word: LearnedWord = Field(alias="learnedWord")
    score: int
    level: int
    recap: bool = False


class VocabularyListCreate(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    icon: str = "folder"
    color: str = "#8F87F1"


class VocabularyListUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None


class VocabularyList(CamelModel):
    id: int
    user_id: int = Field(alias="userId")
    name: str
    description: Optional[str] = None
    icon: str = "folder"
    color: str = "#8F87F1"
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")


class VocabularyListWordCreate(CamelModel):
    word_id: int = Field(alias="wordId")
    notes: Optional[str] = None


class VocabularyListWord(CamelModel):
    id: int
    list_id: int = Field(alias="listId")
    word_id: int = Field(alias="wordId")
    added_at: str = Field(alias="addedAt")
    notes: Optional[str] = None
