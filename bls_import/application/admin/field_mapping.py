import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from bls_import.presentation.schemas.question_import_schema import QuestionImportFormat

logger = logging.getLogger(__name__)

ANSWER_LETTERS = ("A", "B", "C", "D")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_WHITESPACE = re.compile(r"\s+")


def parse_int(text: str) -> Optional[int]:
    """Leading integer of `text` ("10", "10.0", "12 pts" -> 10, 10, 12), else None."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


def to_snake_case(text: str) -> str:
    return _WHITESPACE.sub("_", text.lower())


def _positive_int(text: str) -> Optional[int]:
    # A zero time limit means "no limit".
    return parse_int(text) or None


def _answer_letter(text: str) -> Optional[str]:
    letter = text.upper()
    return letter if letter in ANSWER_LETTERS else None


@dataclass(frozen=True)
class FieldSpec:
    aliases: Tuple[str, ...]
    default: Any = None
    normalize: Optional[Callable[[str], Any]] = None


def _option_spec(letter: str) -> FieldSpec:
    return FieldSpec((f"option_{letter}", f"option{letter.upper()}", letter, f"Option {letter.upper()}"))


# ---------------------------
# Column aliases per question field, tried in order
# ---------------------------
QUESTION_FIELDS: Dict[str, FieldSpec] = {
    "question_text": FieldSpec(
        ("question_text", "question", "text", "Question Text", "Question"), default=""
    ),
    "question_type": FieldSpec(
        ("question_type", "type", "Question Type", "Type"), "multiple_choice", str.lower
    ),
    "difficulty_level": FieldSpec(
        ("difficulty_level", "difficulty", "Difficulty Level", "Difficulty"), "easy", str.lower
    ),
    "category": FieldSpec(("category", "Category"), "basic_life_support", to_snake_case),
    "points": FieldSpec(("points", "point", "Points", "Point"), 10, parse_int),
    "time_limit_seconds": FieldSpec(
        ("time_limit_seconds", "time_limit", "Time Limit"), None, _positive_int
    ),
    "explanation": FieldSpec(("explanation", "Explanation")),
    "correct_answer": FieldSpec(
        ("correct_answer", "correct", "answer", "Correct Answer", "Correct", "Answer"),
        None,
        _answer_letter,
    ),
    "option_a": _option_spec("a"),
    "option_b": _option_spec("b"),
    "option_c": _option_spec("c"),
    "option_d": _option_spec("d"),
    "tags": FieldSpec(("tags", "Tags")),
    "test_type": FieldSpec(("test_type", "testType", "Test Type"), None, to_snake_case),
}


def field_default(name: str) -> Any:
    spec = QUESTION_FIELDS.get(name)
    return spec.default if spec else None


def resolve_field(row: Mapping[str, Any], spec: FieldSpec) -> Any:
    """First alias carrying a non-empty value wins; normalizer failures fall back to the default."""
    for alias in spec.aliases:
        raw = row.get(alias)
        if raw is None:
            continue
        text = str(raw).strip()
        if not text:
            continue
        if spec.normalize is None:
            return text
        value = spec.normalize(text)
        if value is None:
            logger.debug(f"Column '{alias}' value {text!r} not usable, using default {spec.default!r}")
            return spec.default
        return value
    return spec.default


def map_row_to_question(row: Mapping[str, Any]) -> QuestionImportFormat:
    values = {name: resolve_field(row, spec) for name, spec in QUESTION_FIELDS.items()}
    return QuestionImportFormat(**values)
