from .question_model import QuestionModel
from .checklist_model import ChecklistModel, ChecklistItemModel

__all__ = ["QuestionModel", "ChecklistModel", "ChecklistItemModel"]
