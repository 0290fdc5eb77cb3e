from pydantic import BaseModel
from typing import Dict, List, Literal, Optional

AnswerLetter = Literal["A", "B", "C", "D"]


class QuestionImportFormat(BaseModel):
    question_text: str
    question_text_en: Optional[str] = None
    question_type: str = "multiple_choice"
    difficulty_level: str = "easy"
    category: str = "basic_life_support"
    points: int = 10
    time_limit_seconds: Optional[int] = None
    explanation: Optional[str] = None
    correct_answer: Optional[AnswerLetter] = None
    option_a: Optional[str] = None
    option_a_en: Optional[str] = None
    option_b: Optional[str] = None
    option_b_en: Optional[str] = None
    option_c: Optional[str] = None
    option_c_en: Optional[str] = None
    option_d: Optional[str] = None
    option_d_en: Optional[str] = None
    tags: Optional[str] = None
    test_type: Optional[str] = None

    class Config:
        frozen = True


class ParsedFileResult(BaseModel):
    success: bool
    data: List[QuestionImportFormat] = []
    errors: List[str] = []
    warnings: List[str] = []

    class Config:
        frozen = True

    @classmethod
    def from_parts(cls, data, errors, warnings) -> "ParsedFileResult":
        return cls(success=not errors, data=list(data), errors=list(errors), warnings=list(warnings))

    @classmethod
    def failure(cls, message: str) -> "ParsedFileResult":
        return cls(success=False, data=[], errors=[message], warnings=[])


class InvalidQuestion(BaseModel):
    question: QuestionImportFormat
    errors: List[str]


class QuestionValidationResult(BaseModel):
    valid: List[QuestionImportFormat] = []
    invalid: List[InvalidQuestion] = []


class QuestionPreviewResponse(BaseModel):
    result: ParsedFileResult
    valid_count: int
    invalid_count: int
    missing_answer_count: int
    invalid: List[InvalidQuestion] = []


class QuestionImportRequest(BaseModel):
    questions: List[QuestionImportFormat]
    question_set: Optional[str] = None
    test_type: Optional[str] = None
    # Reviewer-chosen answer letters, keyed by question position.
    answers: Dict[int, str] = {}
