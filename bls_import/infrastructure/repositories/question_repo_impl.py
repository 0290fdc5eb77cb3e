from bls_import.infrastructure.db.models.question_model import QuestionModel
from sqlalchemy.orm import Session
import logging
from bls_import.presentation.schemas.question_import_schema import QuestionImportFormat

logger = logging.getLogger(__name__)


def create_question(db: Session, question: QuestionImportFormat) -> QuestionModel:
    try:
        if not question.question_text.strip():
            raise ValueError("Question text is required")

        model = QuestionModel(
            question_text=question.question_text,
            question_text_en=question.question_text_en or None,
            question_type=question.question_type,
            difficulty_level=question.difficulty_level,
            category=question.category,
            points=question.points,
            time_limit_seconds=question.time_limit_seconds or None,
            explanation=question.explanation or None,
            is_active=True,
            tags=[question.tags] if question.tags else None,
            test_type=question.test_type or "pre_test",
            correct_answer=question.correct_answer,
            option_a=question.option_a or None,
            option_a_en=question.option_a_en or None,
            option_b=question.option_b or None,
            option_b_en=question.option_b_en or None,
            option_c=question.option_c or None,
            option_c_en=question.option_c_en or None,
            option_d=question.option_d or None,
            option_d_en=question.option_d_en or None,
        )
        db.add(model)
        db.commit()
        db.refresh(model)
        logger.info(f"Created question {model.id} ({model.category}, {model.test_type})")
        return model
    except ValueError:
        raise
    except Exception as e:
        logger.error(f"Database error during question creation: {e}", exc_info=True)
        db.rollback()
        raise


class SqlQuestionStore:
    def __init__(self, db: Session):
        self.db = db

    def create_question(self, question: QuestionImportFormat) -> QuestionModel:
        return create_question(self.db, question)
