import pytest

from olympiad.config import Language
from olympiad.quiz.domain.models import Difficulty
from olympiad.quiz.domain.parsing import (
    parse_correct_index,
    parse_options,
    parse_question,
    raw_difficulty,
)
from tests.factories import raw_question


def test_parses_spreadsheet_shape():
    q = parse_question(
        raw_question("q1", "Medium", answer="C", category="Characters"),
        Language.HINDI,
    )

    assert q.id == "q1"
    assert q.text == "Question q1"
    assert q.options == ["q1-a", "q1-b", "q1-c", "q1-d"]
    assert q.correct_option_index == 2
    assert q.difficulty is Difficulty.MEDIUM
    assert q.category == "Characters"
    assert q.language is Language.HINDI


def test_parses_list_options_and_correct_answer_key():
    q = parse_question(
        {
            "_id": "abc",
            "question": "Where?",
            "options": ["x", "y", "z", "w"],
            "Correct Answer": "Option D",
            "difficulty": "HARD",
        },
        Language.ENGLISH,
    )

    assert q.id == "abc"
    assert q.options == ["x", "y", "z", "w"]
    assert q.correct_option_index == 3
    assert q.difficulty is Difficulty.HARD


def test_missing_fields_get_defaults():
    q = parse_question({"id": 7, "Question": "Bare"}, Language.ENGLISH)

    assert q.id == "7"
    assert q.options == ["", "", "", ""]
    assert q.correct_option_index == 0
    assert q.difficulty is None
    assert q.category == "General"


def test_short_option_list_is_padded():
    assert parse_options({"options": ["one", "two"]}) == ["one", "two", "", ""]


def test_partial_option_keys_leave_gaps():
    assert parse_options({"Option A": "a", "Option C": "c"}) == ["a", "", "c", ""]


def test_unknown_difficulty_maps_to_none():
    q = parse_question(raw_question("q", "Expert"), Language.ENGLISH)
    assert q.difficulty is None


def test_document_without_id_is_rejected():
    with pytest.raises(ValueError):
        parse_question({"Question": "No id"}, Language.ENGLISH)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("A", 0),
        ("b", 1),
        (" c ", 2),
        ("Option D", 3),
        (2, 2),
        ("3", 3),
        ("E", 0),
        (7, 0),
        (None, 0),
        (True, 0),
    ],
)
def test_parse_correct_index(raw, expected):
    assert parse_correct_index(raw) == expected


def test_raw_difficulty_is_lowercased_for_indexing():
    assert raw_difficulty({"Difficulty": " Easy "}) == "easy"
    assert raw_difficulty({"difficulty": "unknown"}) == "unknown"
    assert raw_difficulty({}) is None
