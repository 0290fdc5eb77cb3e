from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session
from bls_import.config import MAX_UPLOAD_BYTES
from bls_import.application.admin.file_parser import FileParser
from bls_import.application.admin.bulk_upload_usecase import apply_correct_answers, import_checklist, import_questions
from bls_import.infrastructure.repositories.checklist_repo_impl import SqlChecklistStore, get_checklist
from bls_import.infrastructure.repositories.question_repo_impl import SqlQuestionStore
from bls_import.presentation.dependencies import get_checklist_store, get_db, get_file_parser, get_question_store
from bls_import.presentation.schemas.bulk_upload_schema import BulkUploadResponse
from bls_import.presentation.schemas.checklist_schema import ChecklistCreate, ChecklistOut, ChecklistParseResult
from bls_import.presentation.schemas.question_import_schema import (
    QuestionImportFormat,
    QuestionImportRequest,
    QuestionPreviewResponse,
    QuestionValidationResult,
)
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def _read_upload(file: UploadFile) -> bytes:
    content = file.file.read(MAX_UPLOAD_BYTES + 1)
    if len(content) > MAX_UPLOAD_BYTES:
        logger.warning(f"Rejected upload {file.filename}: larger than {MAX_UPLOAD_BYTES} bytes")
        raise HTTPException(status_code=413, detail=f"File exceeds the {MAX_UPLOAD_BYTES} byte upload limit")
    return content


@router.post("/questions/preview", response_model=QuestionPreviewResponse)
def preview_questions(file: UploadFile = File(...), parser: FileParser = Depends(get_file_parser)):
    logger.info(f"Previewing question upload: {file.filename}")
    result = parser.parse_file(_read_upload(file), file.filename or "")
    validation = parser.validate_questions(result.data)
    return QuestionPreviewResponse(
        result=result,
        valid_count=len(validation.valid),
        invalid_count=len(validation.invalid),
        missing_answer_count=sum(1 for q in validation.valid if not q.correct_answer),
        invalid=validation.invalid,
    )


@router.post("/questions/validate", response_model=QuestionValidationResult)
def validate_question_batch(questions: list[QuestionImportFormat], parser: FileParser = Depends(get_file_parser)):
    return parser.validate_questions(questions)


@router.post("/questions/import", response_model=BulkUploadResponse)
def import_question_batch(request: QuestionImportRequest, store: SqlQuestionStore = Depends(get_question_store)):
    try:
        logger.info(f"Importing {len(request.questions)} questions (set: {request.question_set})")
        questions = request.questions
        if request.answers:
            questions = apply_correct_answers(questions, request.answers)
        return import_questions(store, questions, request.question_set, request.test_type)
    except ValueError as e:
        logger.warning(f"Question import rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error during question import: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.post("/checklists/preview", response_model=ChecklistParseResult)
def preview_checklist(file: UploadFile = File(...), parser: FileParser = Depends(get_file_parser)):
    logger.info(f"Previewing checklist upload: {file.filename}")
    return parser.parse_checklist_file(_read_upload(file), file.filename or "")


@router.post("/checklists/import", response_model=ChecklistOut)
def import_checklist_items(data: ChecklistCreate, store: SqlChecklistStore = Depends(get_checklist_store)):
    try:
        checklist = import_checklist(store, data)
        return ChecklistOut(
            id=checklist.id,
            name=checklist.name,
            category=checklist.category,
            item_count=len(checklist.items),
        )
    except ValueError as e:
        logger.warning(f"Checklist import rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error importing checklist: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/checklists/{checklist_id}", response_model=ChecklistOut)
def get_checklist_summary(checklist_id: int, db: Session = Depends(get_db)):
    try:
        checklist = get_checklist(db, checklist_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ChecklistOut(
        id=checklist.id,
        name=checklist.name,
        category=checklist.category,
        item_count=len(checklist.items),
    )
