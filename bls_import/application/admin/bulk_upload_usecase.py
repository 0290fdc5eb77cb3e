from typing import Dict, List, Optional, Sequence
from bls_import.application.admin.field_mapping import ANSWER_LETTERS
from bls_import.application.admin.file_parser import validate_questions
from bls_import.application.admin.stores import ChecklistStore, QuestionStore
from bls_import.presentation.schemas.bulk_upload_schema import BulkUploadResponse
from bls_import.presentation.schemas.checklist_schema import ChecklistCreate
from bls_import.presentation.schemas.question_import_schema import QuestionImportFormat
import logging

logger = logging.getLogger(__name__)


class ImportRejected(ValueError):
    """The batch cannot be imported as submitted; nothing was written."""


def apply_correct_answers(
    questions: Sequence[QuestionImportFormat], answers: Dict[int, str]
) -> List[QuestionImportFormat]:
    """Copies of `questions` with the reviewer's answer letters applied, keyed by position."""
    updated = list(questions)
    for index, letter in answers.items():
        letter = letter.strip().upper()
        if letter not in ANSWER_LETTERS:
            raise ValueError(f"Question {index + 1}: correct answer must be one of A, B, C, D")
        if not 0 <= index < len(updated):
            raise ValueError(f"Question {index + 1} does not exist")
        updated[index] = updated[index].model_copy(update={"correct_answer": letter})
    return updated


def import_questions(
    store: QuestionStore,
    questions: Sequence[QuestionImportFormat],
    question_set: Optional[str] = None,
    test_type: Optional[str] = None,
) -> BulkUploadResponse:
    validation = validate_questions(questions)
    valid = validation.valid
    if not valid:
        raise ImportRejected("All questions have validation errors. Please fix the issues and try again.")

    missing = [q for q in valid if not q.correct_answer]
    if missing:
        raise ImportRejected(
            f"Please select correct answers for all questions. "
            f"{len(missing)} question(s) are missing correct answers."
        )

    overrides = {}
    if question_set and question_set.strip():
        overrides["tags"] = question_set.strip()
    if test_type:
        overrides["test_type"] = test_type

    logger.info(f"Importing {len(valid)} questions (question set: {overrides.get('tags')})")
    inserted = 0
    failed = 0
    errors = []
    for index, question in enumerate(valid):
        try:
            store.create_question(question.model_copy(update=overrides))
            inserted += 1
        except Exception as e:
            failed += 1
            errors.append(f"Question {index + 1}: {str(e)}")
            logger.warning(f"Question {index + 1} failed to import: {e}")

    logger.info(f"Bulk upload finished. Inserted: {inserted}, Failed: {failed}")
    return BulkUploadResponse(
        success=inserted > 0,
        message=f"Upload completed: {inserted} successful, {failed} failed",
        total_rows=len(valid),
        inserted=inserted,
        failed=failed,
        errors=errors,
    )


def import_checklist(store: ChecklistStore, checklist: ChecklistCreate):
    if not checklist.name.strip():
        raise ImportRejected("Checklist name is required")
    if not checklist.items:
        raise ImportRejected("No checklist items to import")

    logger.info(f"Importing checklist '{checklist.name}' with {len(checklist.items)} items")
    try:
        return store.create_checklist(checklist)
    except Exception as e:
        logger.error(f"Checklist import failed: {e}", exc_info=True)
        raise
