"""Persisted UI selections (camera, language) as a tiny key-value store."""

import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger("vocabary.capture.preferences")

SELECTED_CAMERA_KEY = "selectedCameraId"
SELECTED_LANGUAGE_KEY = "selectedLanguage"


class MemorySelectionStore:
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value


class JsonFileSelectionStore(MemorySelectionStore):
    """Same interface, written through to a JSON file on every `set`.

    An unreadable or corrupt file is treated as empty rather than fatal.
    """

    def __init__(self, path: str):
        self._path = path
        super().__init__(self._read())

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as error:
            logger.warning(f"Ignoring unreadable selection file {self._path}: {error}")
            return {}

    def set(self, key: str, value: Any) -> None:
        super().set(key, value)
        try:
            os.makedirs(os.path.dirname(self._path) or ".", exist_ok=True)
            tmp_path = f"{self._path}.tmp"
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self._values, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self._path)
        except OSError as error:
            logger.error(f"Could not persist selection {key}: {error}")
