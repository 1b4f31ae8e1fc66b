from typing import Any

from olympiad.config import EngineConfig, Language
from olympiad.quiz.domain.models import Difficulty, Question

# Key spellings observed in imported question banks, in lookup order
TEXT_KEYS = ("question", "Question", "text", "Text")
ANSWER_KEYS = ("Answer", "Correct Answer", "correctAnswer", "answer", "correct_answer")
DIFFICULTY_KEYS = ("difficulty", "Difficulty")
CATEGORY_KEYS = ("category", "Category")
OPTION_KEY_PATTERNS = ("Option {}", "option{}", "option_{}", "{}")


def _first(raw: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def parse_options(raw: dict[str, Any]) -> list[str]:
    """Always returns exactly four strings; gaps become empty strings."""
    listed = raw.get("options")
    if isinstance(listed, list):
        options = [_as_text(o) for o in listed[:4]]
        return options + [""] * (4 - len(options))

    options = []
    for letter in EngineConfig.OPTION_LETTERS:
        keys = tuple(p.format(letter) for p in OPTION_KEY_PATTERNS)
        options.append(_as_text(_first(raw, keys)))
    return options


def parse_correct_index(value: Any) -> int:
    """
    Maps a stored answer ("B", "option c", 2) to 0-3. Unmappable values
    resolve to 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value if 0 <= value <= 3 else 0
    if not isinstance(value, str):
        return 0

    token = value.strip().upper()
    if token.startswith("OPTION"):
        token = token[len("OPTION") :].strip()
    if token in EngineConfig.OPTION_LETTERS:
        return EngineConfig.OPTION_LETTERS.index(token)
    if token.isdigit() and 0 <= int(token) <= 3:
        return int(token)
    return 0


def raw_difficulty(raw: dict[str, Any]) -> str | None:
    """The difficulty tag as stored, lower-cased, for indexing."""
    value = _first(raw, DIFFICULTY_KEYS)
    return value.strip().lower() if isinstance(value, str) else None


def parse_question(raw: dict[str, Any], language: Language) -> Question:
    """Normalizes one raw question document into the canonical shape."""
    question_id = _first(raw, ("id", "_id"))
    if question_id is None:
        raise ValueError("Question document has no id")

    return Question(
        id=str(question_id),
        text=_as_text(_first(raw, TEXT_KEYS)),
        options=parse_options(raw),
        correct_option_index=parse_correct_index(_first(raw, ANSWER_KEYS)),
        difficulty=Difficulty.parse(_first(raw, DIFFICULTY_KEYS)),
        category=_as_text(_first(raw, CATEGORY_KEYS)) or EngineConfig.DEFAULT_CATEGORY,
        language=language,
    )
