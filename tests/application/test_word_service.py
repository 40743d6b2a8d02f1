import json

import pytest

from lexicard.application.word_service import WordService, parse_unit
from lexicard.domain.errors import NotFoundError, ValidationError


@pytest.fixture
def words(store, clock):
    return WordService(store, clock=clock)


@pytest.mark.parametrize(
    "value, expected",
    [(None, 0), ("", 0), ("3", 3), (7, 7), (-2, 0), ("abc", 0)],
)
def test_parse_unit(value, expected):
    assert parse_unit(value) == expected


@pytest.mark.asyncio
async def test_add_word_trims_and_defaults(words, clock):
    word_id = await words.add_word("  apple ", " 苹果 ", " An apple a day. ", "2")

    word = await words.get_word(word_id)
    assert word.english_term == "apple"
    assert word.translated_term == "苹果"
    assert word.example == "An apple a day."
    assert word.unit == 2
    assert word.review_count == 0
    assert word.difficulty == 0
    assert word.created_at == clock()
    assert word.next_review_date == clock()


@pytest.mark.asyncio
async def test_add_word_requires_both_terms(words):
    with pytest.raises(ValidationError):
        await words.add_word("apple", "  ")
    with pytest.raises(ValidationError):
        await words.add_word("", "苹果")


@pytest.mark.asyncio
async def test_add_duplicate_is_rejected_case_insensitively(words):
    await words.add_word("Apple", "苹果")

    with pytest.raises(ValidationError, match="already exists"):
        await words.add_word("apple", "蘋果")


@pytest.mark.asyncio
async def test_substring_is_not_a_duplicate(words):
    await words.add_word("pineapple", "菠萝")
    assert await words.add_word("apple", "苹果")


@pytest.mark.asyncio
async def test_update_word_keeps_progress(words, store):
    word_id = await words.add_word("aple", "苹果")
    await store.update(word_id, {"review_count": 3, "correct_count": 3, "difficulty": 3})

    updated = await words.update_word(word_id, "apple", "苹果", "fixed typo", 1)

    assert updated.english_term == "apple"
    assert updated.example == "fixed typo"
    assert updated.unit == 1
    assert updated.review_count == 3
    assert updated.difficulty == 3


@pytest.mark.asyncio
async def test_update_word_allows_same_term_but_not_another(words):
    first = await words.add_word("apple", "苹果")
    await words.add_word("pear", "梨")

    await words.update_word(first, "Apple", "苹果")

    with pytest.raises(ValidationError):
        await words.update_word(first, "pear", "梨")


@pytest.mark.asyncio
async def test_update_missing_word(words):
    with pytest.raises(NotFoundError):
        await words.update_word(42, "apple", "苹果")


@pytest.mark.asyncio
async def test_delete_word(words):
    word_id = await words.add_word("apple", "苹果")

    await words.delete_word(word_id)

    with pytest.raises(NotFoundError):
        await words.get_word(word_id)
    with pytest.raises(NotFoundError):
        await words.delete_word(word_id)


@pytest.mark.asyncio
async def test_search_and_units(words):
    await words.add_word("Apple", "苹果", unit=1)
    await words.add_word("pear", "梨", unit=2)
    await words.add_word("grape", "葡萄", unit=2)

    assert [w.english_term for w in await words.get_all_words("app")] == ["Apple"]
    assert [w.english_term for w in await words.get_all_words("葡")] == ["grape"]
    assert len(await words.get_all_words()) == 3
    assert [w.english_term for w in await words.get_words_by_unit("2")] == ["pear", "grape"]
    assert await words.get_all_units() == [1, 2]


@pytest.mark.asyncio
async def test_import_reports_partial_failures(words):
    await words.add_word("apple", "苹果")
    payload = json.dumps(
        [
            {"englishTerm": "pear", "translatedTerm": "梨", "unit": 3},
            {"english": "grape", "chinese": "葡萄", "example": "Grapes grow on vines."},
            {"englishTerm": "plum"},
            {"englishTerm": "Apple", "translatedTerm": "苹果"},
            "not a word",
        ]
    )

    result = await words.import_words(payload)

    assert result.total == 5
    assert result.imported == 2
    assert result.skipped == 3
    assert len(result.errors) == 2
    assert "Missing required fields" in result.errors[0]

    imported = {w.english_term: w for w in await words.get_all_words()}
    assert set(imported) == {"apple", "pear", "grape"}
    assert imported["pear"].unit == 3
    assert imported["grape"].example == "Grapes grow on vines."


@pytest.mark.asyncio
async def test_import_accepts_exported_object(words):
    result = await words.import_words({"words": [{"englishTerm": "pear", "translatedTerm": "梨"}]})
    assert result.imported == 1


@pytest.mark.asyncio
async def test_import_rejects_bad_payloads(words):
    with pytest.raises(ValidationError, match="Invalid JSON format"):
        await words.import_words("{not json")
    with pytest.raises(ValidationError):
        await words.import_words('{"version": 1}')


@pytest.mark.asyncio
async def test_export_words(words, store):
    word_id = await words.add_word("apple", "苹果", "An apple a day.", 2)
    await store.update(word_id, {"review_count": 4, "difficulty": 3})

    data = json.loads(await words.export_words())

    assert data["version"] == 1
    assert data["exportDate"] == "2024-01-15T12:00:00.000Z"
    assert data["words"] == [
        {
            "englishTerm": "apple",
            "translatedTerm": "苹果",
            "example": "An apple a day.",
            "unit": 2,
            "createdAt": 1705320000000,
            "reviewCount": 4,
            "difficulty": 3,
        }
    ]


@pytest.mark.asyncio
async def test_export_then_import_elsewhere(words, tmp_path, clock):
    from lexicard.infrastructure.persistence.sqlite_store import SqliteWordStore

    await words.add_word("apple", "苹果", "An apple a day.", 2)
    await words.add_word("pear", "梨")
    exported = await words.export_words()

    other = WordService(SqliteWordStore(tmp_path / "other.db", clock=clock), clock=clock)
    result = await other.import_words(exported)

    assert result.imported == 2
    assert [(w.english_term, w.example, w.unit) for w in await other.get_all_words()] == [
        ("apple", "An apple a day.", 2),
        ("pear", "", 0),
    ]
