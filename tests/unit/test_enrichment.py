from unittest.mock import Mock

from enrichment.categories import UNKNOWN_CATEGORIES, categories_for
from enrichment.service import EnrichmentService, display_name
from enrichment.translations import pronounce, speech_language_tag, translate
from models.detection import BoundingBox, NormalizedBoundingBox, RawDetection


def test_translate_known_label():
    assert translate("cup", "es") == "taza"
    assert translate("Person", "fr") == "personne"


def test_translate_miss_uses_placeholder():
    assert translate("giraffe", "es") == "giraffe (es)"
    # languages without a table get the placeholder too
    assert translate("cup", "ta") == "cup (ta)"


def test_categories():
    assert categories_for("cup") == ("Kitchenware", "Dining")
    assert categories_for("unicorn") == UNKNOWN_CATEGORIES == ("Unknown", "Other")


def test_pronunciation_is_optional():
    assert pronounce("cup", "es") == "tah-sah"
    assert pronounce("bottle", "es") is None


def test_speech_language_tag():
    assert speech_language_tag("ta") == "ta-IN"
    assert speech_language_tag("xx") == "xx"


def test_display_name_capitalizes_first_letter_only():
    assert display_name("traffic light") == "Traffic light"
    assert display_name("cup") == "Cup"


def test_enrich_never_fails_on_unknown_label():
    result = EnrichmentService().enrich("giraffe", "de")
    assert result.translation == "giraffe (de)"
    assert result.categories == ("Unknown", "Other")
    assert result.pronunciation is None


def test_placeholder_does_not_depend_on_label_case_or_call_order():
    first = EnrichmentService()
    assert first.translation("Cup", "xx") == "cup (xx)"
    assert first.translation("cup", "xx") == "cup (xx)"

    second = EnrichmentService()
    assert second.translation(" cup ", "xx") == "cup (xx)"
    assert second.translation("CUP", "xx") == "cup (xx)"
    assert translate("Giraffe", "es") == translate("giraffe", "es")


def test_translation_is_cached_per_language_and_label():
    translator = Mock(side_effect=lambda label, code: f"{label}-{code}")
    service = EnrichmentService(translator=translator)

    assert service.translation("Cup", "es") == "cup-es"
    assert service.translation("cup", "es") == "cup-es"
    assert service.translation("cup", "fr") == "cup-fr"

    assert translator.call_count == 2
    assert service.cache_size() == 2


def test_build_enriched_detection():
    raw = RawDetection("cup", 0.9, BoundingBox(100, 100, 50, 50))
    box = NormalizedBoundingBox(0.1, 0.1, 0.05, 0.05)

    detection = EnrichmentService().build(raw, box, "es")

    assert detection.name == "Cup"
    assert detection.translation == "taza"
    assert detection.categories == ("Kitchenware", "Dining")
    assert detection.pronunciation == "tah-sah"
    assert detection.speech_language == "es-ES"
    payload = detection.to_dict()
    assert payload["boundingBox"] == {"x": 0.1, "y": 0.1, "width": 0.05, "height": 0.05}
    assert payload["categories"] == ["Kitchenware", "Dining"]
