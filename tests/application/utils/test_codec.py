import base64
import json

import pytest

from lexicard.application.utils.codec import (
    dataset_from_data,
    dataset_from_json,
    dataset_to_json,
    decode_content,
    decode_dataset,
    encode_dataset,
)
from lexicard.domain.errors import ValidationError
from lexicard.domain.models import Dataset


def test_dataset_json_uses_camel_case(make_word):
    dataset = Dataset(
        version=1,
        export_date="2024-01-15T12:00:00.000Z",
        words=[make_word(review_count=2, correct_count=2, last_reviewed_at=1000)],
        settings={"dailyGoal": 25},
    )

    data = json.loads(dataset_to_json(dataset))

    assert data["version"] == 1
    assert data["exportDate"] == "2024-01-15T12:00:00.000Z"
    assert data["settings"] == {"dailyGoal": 25}
    word = data["words"][0]
    assert word["englishTerm"] == "apple"
    assert word["translatedTerm"] == "苹果"
    assert word["reviewCount"] == 2
    assert word["lastReviewedAt"] == 1000
    assert "english_term" not in word


def test_non_ascii_is_kept_readable(make_word):
    dataset = Dataset(version=1, export_date="", words=[make_word()])
    assert "苹果" in dataset_to_json(dataset)


def test_legacy_field_names_are_accepted():
    dataset = dataset_from_data(
        {
            "version": 1,
            "words": [{"english": "apple", "chinese": "苹果", "unit": "3", "difficulty": 9}],
        }
    )

    word = dataset.words[0]
    assert word.english_term == "apple"
    assert word.translated_term == "苹果"
    assert word.unit == 3
    assert word.difficulty == 5
    assert word.next_review_date == word.created_at == 0
    assert dataset.settings == {}


def test_invalid_datasets_are_rejected():
    with pytest.raises(ValidationError):
        dataset_from_json("{oops")
    with pytest.raises(ValidationError):
        dataset_from_data({"version": 1})
    with pytest.raises(ValidationError):
        dataset_from_data({"words": [{"englishTerm": "apple"}]})


def test_base64_transport(make_word):
    dataset = Dataset(version=1, export_date="", words=[make_word()])
    encoded = encode_dataset(dataset)

    assert json.loads(base64.b64decode(encoded))["words"][0]["englishTerm"] == "apple"
    # The contents API wraps base64 lines
    wrapped = "\n".join(encoded[i : i + 60] for i in range(0, len(encoded), 60))
    assert decode_dataset(wrapped).words[0].translated_term == "苹果"


def test_decode_content_rejects_garbage():
    with pytest.raises(ValidationError):
        decode_content("/w==")  # base64 of a lone 0xff byte


@pytest.mark.parametrize("field", ["reviewCount", "correctCount", "incorrectCount", "streak"])
def test_negative_counters_are_rejected(field):
    with pytest.raises(ValidationError):
        dataset_from_data(
            {"words": [{"englishTerm": "apple", "translatedTerm": "苹果", field: -1}]}
        )


def test_answer_counts_are_reconciled_with_review_count():
    dataset = dataset_from_data(
        {
            "words": [
                {"englishTerm": "apple", "translatedTerm": "苹果", "reviewCount": 4, "correctCount": 3},
                {
                    "englishTerm": "pear",
                    "translatedTerm": "梨",
                    "reviewCount": 1,
                    "correctCount": 2,
                    "incorrectCount": 1,
                },
            ]
        }
    )

    apple, pear = dataset.words
    assert (apple.review_count, apple.correct_count, apple.incorrect_count) == (4, 3, 1)
    assert (pear.review_count, pear.correct_count, pear.incorrect_count) == (3, 2, 1)
