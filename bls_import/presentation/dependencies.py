from bls_import.infrastructure.db.session import SessionLocal
from bls_import.application.admin.file_parser import FileParser
from bls_import.infrastructure.repositories.question_repo_impl import SqlQuestionStore
from bls_import.infrastructure.repositories.checklist_repo_impl import SqlChecklistStore
from fastapi import Depends
from sqlalchemy.orm import Session
import logging

logger = logging.getLogger(__name__)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_file_parser() -> FileParser:
    return FileParser(logger=logging.getLogger("bls_import.import"))


def get_question_store(db: Session = Depends(get_db)) -> SqlQuestionStore:
    return SqlQuestionStore(db)


def get_checklist_store(db: Session = Depends(get_db)) -> SqlChecklistStore:
    return SqlChecklistStore(db)
