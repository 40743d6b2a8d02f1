"""
Dataset wire format.

Snapshots travel as pretty-printed UTF-8 JSON with camelCase keys, and as
base64 of that JSON when moving through the contents API.
"""

import base64
import binascii
import json
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as SchemaError
from pydantic.alias_generators import to_camel

from lexicard.domain.constants import DATASET_VERSION, MAX_DIFFICULTY, MIN_DIFFICULTY
from lexicard.domain.errors import ValidationError
from lexicard.domain.models import Dataset, Word


class WordPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    # Older exports used "english"/"chinese".
    english_term: str = Field(
        validation_alias=AliasChoices("englishTerm", "english", "english_term"),
        serialization_alias="englishTerm",
    )
    translated_term: str = Field(
        validation_alias=AliasChoices("translatedTerm", "chinese", "translated_term"),
        serialization_alias="translatedTerm",
    )
    example: str | None = ""
    unit: int | None = 0
    created_at: int | None = None
    last_reviewed_at: int | None = None
    next_review_date: int | None = None
    review_count: int = Field(default=0, ge=0)
    correct_count: int = Field(default=0, ge=0)
    incorrect_count: int = Field(default=0, ge=0)
    difficulty: int = 0
    streak: int = Field(default=0, ge=0)

    @field_validator("difficulty")
    @classmethod
    def clamp_difficulty(cls, v: int) -> int:
        return max(MIN_DIFFICULTY, min(MAX_DIFFICULTY, v))

    @model_validator(mode="after")
    def reconcile_counts(self) -> "WordPayload":
        # correct + incorrect == review; the larger side is taken as the truth.
        answered = self.correct_count + self.incorrect_count
        if answered > self.review_count:
            self.review_count = answered
        elif answered < self.review_count:
            self.incorrect_count = self.review_count - self.correct_count
        return self

    @field_validator("unit", mode="before")
    @classmethod
    def coerce_unit(cls, v: Any) -> int:
        try:
            unit = int(v)
        except (TypeError, ValueError):
            return 0
        return unit if unit >= 0 else 0

    @classmethod
    def from_word(cls, word: Word) -> "WordPayload":
        return cls(
            english_term=word.english_term,
            translated_term=word.translated_term,
            example=word.example,
            unit=word.unit,
            created_at=word.created_at,
            last_reviewed_at=word.last_reviewed_at,
            next_review_date=word.next_review_date,
            review_count=word.review_count,
            correct_count=word.correct_count,
            incorrect_count=word.incorrect_count,
            difficulty=word.difficulty,
            streak=word.streak,
        )

    def to_word(self) -> Word:
        created_at = self.created_at or 0
        return Word(
            id=None,
            english_term=self.english_term,
            translated_term=self.translated_term,
            example=self.example or "",
            unit=self.unit or 0,
            created_at=created_at,
            last_reviewed_at=self.last_reviewed_at,
            next_review_date=(
                self.next_review_date if self.next_review_date is not None else created_at
            ),
            review_count=self.review_count,
            correct_count=self.correct_count,
            incorrect_count=self.incorrect_count,
            difficulty=self.difficulty,
            streak=self.streak,
        )


class DatasetPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    version: int | str = DATASET_VERSION
    export_date: str = ""
    words: list[WordPayload]
    settings: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_dataset(cls, dataset: Dataset) -> "DatasetPayload":
        return cls(
            version=dataset.version,
            export_date=dataset.export_date,
            words=[WordPayload.from_word(w) for w in dataset.words],
            settings=dict(dataset.settings),
        )

    def to_dataset(self) -> Dataset:
        return Dataset(
            version=self.version,
            export_date=self.export_date,
            words=[w.to_word() for w in self.words],
            settings=dict(self.settings),
        )


def dataset_to_json(dataset: Dataset) -> str:
    payload = DatasetPayload.from_dataset(dataset)
    return json.dumps(payload.model_dump(by_alias=True), indent=2, ensure_ascii=False)


def dataset_from_data(data: Any) -> Dataset:
    if not isinstance(data, dict) or not isinstance(data.get("words"), list):
        raise ValidationError("Invalid import data format")
    try:
        return DatasetPayload.model_validate(data).to_dataset()
    except SchemaError as e:
        raise ValidationError(f"Invalid import data format: {e}") from e


def dataset_from_json(text: str) -> Dataset:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON format: {e}") from e
    return dataset_from_data(data)


def encode_content(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_content(content: str) -> str:
    # The contents API wraps base64 at 60 columns.
    try:
        return base64.b64decode("".join(content.split())).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ValidationError(f"Remote content is not valid base64 UTF-8: {e}") from e


def encode_dataset(dataset: Dataset) -> str:
    return encode_content(dataset_to_json(dataset))


def decode_dataset(content: str) -> Dataset:
    return dataset_from_json(decode_content(content))
