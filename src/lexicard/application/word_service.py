"""Word management: CRUD, bulk import and export."""

import json
import logging
from typing import Any

from lexicard.application.utils.codec import WordPayload
from lexicard.domain.clock import Clock, iso_str, now_ms
from lexicard.domain.constants import DATASET_VERSION
from lexicard.domain.errors import NotFoundError, ValidationError
from lexicard.domain.models import ImportResult, Word
from lexicard.domain.ports import WordStore

logger = logging.getLogger(__name__)

EXPORT_FIELDS = {
    "english_term",
    "translated_term",
    "example",
    "unit",
    "review_count",
    "difficulty",
    "created_at",
}


def parse_unit(value: Any) -> int:
    """Units are non-negative integers; anything else falls back to 0."""
    if value is None or value == "":
        return 0
    try:
        unit = int(value)
    except (TypeError, ValueError):
        return 0
    return unit if unit >= 0 else 0


def _field(item: dict[str, Any], *names: str) -> str:
    for name in names:
        value = item.get(name)
        if isinstance(value, str) and value.strip():
            return value
    return ""


class WordService:
    def __init__(self, store: WordStore, clock: Clock = now_ms):
        self._store = store
        self._clock = clock

    async def _find_duplicate(self, english: str, exclude_id: int | None = None) -> Word | None:
        key = english.strip().lower()
        for word in await self._store.search(english.strip()):
            if word.key == key and word.id != exclude_id:
                return word
        return None

    async def add_word(
        self, english: str, translated: str, example: str = "", unit: Any = None
    ) -> int:
        english, translated = english.strip(), translated.strip()
        if not english or not translated:
            raise ValidationError("Both the word and its translation are required")
        if await self._find_duplicate(english):
            raise ValidationError(f"Word already exists: {english}")

        word_id = await self._store.add(
            {
                "english_term": english,
                "translated_term": translated,
                "example": (example or "").strip(),
                "unit": parse_unit(unit),
            }
        )
        logger.info(f"Added word {english!r} id={word_id}")
        return word_id

    async def update_word(
        self,
        word_id: int,
        english: str,
        translated: str,
        example: str = "",
        unit: Any = None,
    ) -> Word:
        english, translated = english.strip(), translated.strip()
        if not english or not translated:
            raise ValidationError("Both the word and its translation are required")
        if await self._find_duplicate(english, exclude_id=word_id):
            raise ValidationError(f"Word already exists: {english}")

        return await self._store.update(
            word_id,
            {
                "english_term": english,
                "translated_term": translated,
                "example": (example or "").strip(),
                "unit": parse_unit(unit),
            },
        )

    async def delete_word(self, word_id: int) -> None:
        await self._store.delete(word_id)
        logger.info(f"Deleted word id={word_id}")

    async def get_word(self, word_id: int) -> Word:
        word = await self._store.get(word_id)
        if word is None:
            raise NotFoundError(f"Word not found: {word_id}")
        return word

    async def get_all_words(self, query: str = "") -> list[Word]:
        if query:
            return await self._store.search(query)
        return await self._store.get_all()

    async def get_words_by_unit(self, unit: Any) -> list[Word]:
        return await self._store.get_words_by_unit(parse_unit(unit))

    async def get_all_units(self) -> list[int]:
        return await self._store.get_all_units()

    async def import_words(self, payload: str | list | dict) -> ImportResult:
        """
        Add words from a JSON array, an object with a ``words`` array, or its JSON text.

        Each item is validated and added on its own: failures are recorded and
        skipped, duplicates are skipped, and the batch always runs to the end.
        """
        data: Any = payload
        if isinstance(payload, str):
            try:
                data = json.loads(payload)
            except json.JSONDecodeError as e:
                raise ValidationError("Invalid JSON format") from e

        if isinstance(data, dict) and isinstance(data.get("words"), list):
            items = data["words"]
        elif isinstance(data, list):
            items = data
        else:
            raise ValidationError(
                "Data must be an array of words or an object with a words array"
            )

        result = ImportResult(total=len(items))
        for item in items:
            if not isinstance(item, dict):
                result.errors.append(f"Missing required fields: {item!r}")
                result.skipped += 1
                continue

            english = _field(item, "englishTerm", "english")
            translated = _field(item, "translatedTerm", "chinese")
            if not english or not translated:
                result.errors.append(
                    f"Missing required fields: {json.dumps(item, ensure_ascii=False)}"
                )
                result.skipped += 1
                continue

            if await self._find_duplicate(english):
                result.skipped += 1
                continue

            try:
                await self.add_word(
                    english, translated, item.get("example") or "", item.get("unit")
                )
                result.imported += 1
            except Exception as e:
                logger.warning(f"Import of {english!r} failed: {e}")
                result.errors.append(f'Error importing "{english}": {e}')
                result.skipped += 1

        logger.info(
            f"Imported {result.imported}/{result.total} words ({result.skipped} skipped)"
        )
        return result

    async def export_words(self) -> str:
        """Simplified word export (terms, unit and coarse progress) as JSON text."""
        words = await self._store.get_all()
        data = {
            "version": DATASET_VERSION,
            "exportDate": iso_str(self._clock()),
            "words": [
                WordPayload.from_word(w).model_dump(by_alias=True, include=EXPORT_FIELDS)
                for w in words
            ],
        }
        return json.dumps(data, indent=2, ensure_ascii=False)
