"""Static translation and pronunciation tables.

`translate` and `pronounce` are pure functions; any caching happens in
`enrichment.service.EnrichmentService`.
"""

from typing import Dict, Optional

PREDEFINED_TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "es": {
        "chair": "silla",
        "table": "mesa",
        "cup": "taza",
        "book": "libro",
        "computer": "computadora",
        "phone": "teléfono",
        "dog": "perro",
        "cat": "gato",
        "car": "coche",
        "door": "puerta",
        "window": "ventana",
        "bottle": "botella",
        "television": "televisión",
        "remote": "control remoto",
        "couch": "sofá",
        "lamp": "lámpara",
        "refrigerator": "refrigerador",
        "clock": "reloj",
        "backpack": "mochila",
        "shoe": "zapato",
        "person": "persona",
        "bicycle": "bicicleta",
        "keyboard": "teclado",
        "mouse": "ratón",
        "plant": "planta",
        "bowl": "tazón",
        "fork": "tenedor",
        "knife": "cuchillo",
        "spoon": "cuchara",
        "banana": "plátano",
        "apple": "manzana",
        "sandwich": "sándwich",
        "orange": "naranja",
    },
    "fr": {
        "chair": "chaise",
        "table": "table",
        "cup": "tasse",
        "book": "livre",
        "computer": "ordinateur",
        "phone": "téléphone",
        "dog": "chien",
        "cat": "chat",
        "car": "voiture",
        "door": "porte",
        "window": "fenêtre",
        "bottle": "bouteille",
        "television": "télévision",
        "remote": "télécommande",
        "couch": "canapé",
        "lamp": "lampe",
        "refrigerator": "réfrigérateur",
        "clock": "horloge",
        "backpack": "sac à dos",
        "shoe": "chaussure",
        "person": "personne",
        "bicycle": "vélo",
        "keyboard": "clavier",
        "mouse": "souris",
        "plant": "plante",
        "bowl": "bol",
        "fork": "fourchette",
        "knife": "couteau",
        "spoon": "cuillère",
        "banana": "banane",
        "apple": "pomme",
        "sandwich": "sandwich",
        "orange": "orange",
    },
    "de": {
        "chair": "Stuhl",
        "table": "Tisch",
        "cup": "Tasse",
        "book": "Buch",
        "computer": "Computer",
        "phone": "Telefon",
        "dog": "Hund",
        "cat": "Katze",
        "car": "Auto",
        "door": "Tür",
        "window": "Fenster",
        "bottle": "Flasche",
        "television": "Fernseher",
        "remote": "Fernbedienung",
        "couch": "Sofa",
        "lamp": "Lampe",
        "refrigerator": "Kühlschrank",
        "clock": "Uhr",
        "backpack": "Rucksack",
        "shoe": "Schuh",
        "person": "Person",
        "bicycle": "Fahrrad",
        "keyboard": "Tastatur",
        "mouse": "Maus",
        "plant": "Pflanze",
        "bowl": "Schüssel",
        "fork": "Gabel",
        "knife": "Messer",
        "spoon": "Löffel",
        "banana": "Banane",
        "apple": "Apfel",
        "sandwich": "Sandwich",
        "orange": "Orange",
    },
    "ja": {
        "chair": "いす",
        "table": "テーブル",
        "cup": "カップ",
        "book": "本",
        "computer": "コンピュータ",
        "phone": "電話",
        "dog": "犬",
        "cat": "猫",
        "car": "車",
        "door": "ドア",
        "window": "窓",
        "bottle": "ボトル",
        "television": "テレビ",
        "remote": "リモコン",
        "couch": "ソファ",
        "lamp": "ランプ",
        "refrigerator": "冷蔵庫",
        "clock": "時計",
        "backpack": "バックパック",
        "shoe": "靴",
        "person": "人",
        "bicycle": "自転車",
        "keyboard": "キーボード",
        "mouse": "マウス",
        "plant": "植物",
        "bowl": "ボウル",
        "fork": "フォーク",
        "knife": "ナイフ",
        "spoon": "スプーン",
        "banana": "バナナ",
        "apple": "りんご",
        "sandwich": "サンドイッチ",
        "orange": "オレンジ",
    },
}

PRONUNCIATIONS: Dict[str, Dict[str, str]] = {
    "es": {
        "chair": "see-ya",
        "book": "lee-bro",
        "cup": "tah-sah",
        "table": "meh-sah",
        "computer": "com-poo-tah-dor",
        "phone": "teh-leh-fo-no",
        "dog": "peh-ro",
        "cat": "gah-to",
    },
    "fr": {
        "chair": "shehz",
        "book": "leev-ruh",
        "cup": "tahss",
        "table": "tah-bluh",
        "computer": "or-di-na-teur",
        "phone": "teh-leh-fon",
        "dog": "shee-an",
        "cat": "shah",
    },
    "de": {
        "chair": "shtool",
        "book": "booh-kh",
        "cup": "tah-seh",
        "table": "tish",
        "computer": "reh-kh-ner",
        "phone": "hahn-dee",
        "dog": "hoont",
        "cat": "kah-tseh",
    },
    "ja": {
        "chair": "ee-soo",
        "book": "hon",
        "cup": "kah-poo",
        "table": "tay-boo-ru",
        "computer": "kon-pyoo-tah",
        "phone": "den-wa",
        "dog": "ee-noo",
        "cat": "neh-ko",
    },
}

# BCP 47 tags used by speech synthesis clients
SPEECH_LANGUAGE_TAGS: Dict[str, str] = {
    "ta": "ta-IN",
    "hi": "hi-IN",
    "te": "te-IN",
    "ml": "ml-IN",
    "es": "es-ES",
    "fr": "fr-FR",
    "de": "de-DE",
    "ja": "ja-JP",
}


def fallback_translation(label: str, language_code: str) -> str:
    """Deterministic placeholder used when no dictionary entry exists."""
    return f"{label} ({language_code})"


def translate(label: str, language_code: str) -> str:
    normalized = label.strip().lower()
    table = PREDEFINED_TRANSLATIONS.get(language_code.lower(), {})
    found = table.get(normalized)
    if found:
        return found
    return fallback_translation(normalized, language_code)


def pronounce(label: str, language_code: str) -> Optional[str]:
    return PRONUNCIATIONS.get(language_code.lower(), {}).get(label.strip().lower())


def speech_language_tag(language_code: str) -> str:
    return SPEECH_LANGUAGE_TAGS.get(language_code.lower(), language_code)
