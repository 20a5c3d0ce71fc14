import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from enrichment.categories import categories_for
from enrichment.translations import pronounce, speech_language_tag, translate
from models.detection import EnrichedDetection, NormalizedBoundingBox, RawDetection

logger = logging.getLogger("vocabary.enrichment")

Translator = Callable[[str, str], str]
Pronouncer = Callable[[str, str], Optional[str]]


@dataclass(frozen=True)
class EnrichmentResult:
    translation: str
    categories: Tuple[str, str]
    pronunciation: Optional[str] = None


def display_name(label: str) -> str:
    """Capitalize the first character only ("traffic light" -> "Traffic light")."""
    label = label.strip()
    return label[:1].upper() + label[1:]


class EnrichmentService:
    """Maps a raw detector label to its flashcard bundle.

    Translation lookups are cached per ``(language_code, label.lower())``
    for the lifetime of the process. Misses never raise: translations fall
    back to a deterministic placeholder and categories to
    ``("Unknown", "Other")``.
    """

    def __init__(
        self,
        translator: Translator = translate,
        pronouncer: Pronouncer = pronounce,
    ):
        self._translator = translator
        self._pronouncer = pronouncer
        self._translation_cache: Dict[Tuple[str, str], str] = {}

    def translation(self, label: str, language_code: str) -> str:
        normalized = label.strip().lower()
        key = (language_code, normalized)
        cached = self._translation_cache.get(key)
        if cached is not None:
            return cached
        value = self._translator(normalized, language_code)
        self._translation_cache[key] = value
        return value

    def enrich(self, label: str, language_code: str) -> EnrichmentResult:
        return EnrichmentResult(
            translation=self.translation(label, language_code),
            categories=categories_for(label),
            pronunciation=self._pronouncer(label, language_code),
        )

    def build(
        self,
        raw: RawDetection,
        bounding_box: NormalizedBoundingBox,
        language_code: str,
    ) -> EnrichedDetection:
        result = self.enrich(raw.label, language_code)
        return EnrichedDetection(
            name=display_name(raw.label),
            translation=result.translation,
            confidence=float(raw.confidence),
            bounding_box=bounding_box,
            categories=result.categories,
            pronunciation=result.pronunciation,
            speech_language=speech_language_tag(language_code),
        )

    def cache_size(self) -> int:
        return len(self._translation_cache)
