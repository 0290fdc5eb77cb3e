from typing import Any, Protocol

from bls_import.presentation.schemas.checklist_schema import ChecklistCreate
from bls_import.presentation.schemas.question_import_schema import QuestionImportFormat


class QuestionStore(Protocol):
    def create_question(self, question: QuestionImportFormat) -> Any:
        """
        Persists one imported question. Raises on failure.
        """
        ...


class ChecklistStore(Protocol):
    def create_checklist(self, checklist: ChecklistCreate) -> Any:
        """
        Persists a checklist together with its items. Raises on failure.
        """
        ...
