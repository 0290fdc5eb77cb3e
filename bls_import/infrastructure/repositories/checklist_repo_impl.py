from sqlalchemy.orm import Session
from bls_import.infrastructure.db.models.checklist_model import ChecklistModel, ChecklistItemModel
from bls_import.presentation.schemas.checklist_schema import ChecklistCreate
import logging

logger = logging.getLogger(__name__)


def create_checklist(db: Session, data: ChecklistCreate) -> ChecklistModel:
    """Checklist and all of its items are written in one transaction."""
    try:
        if not data.items:
            raise ValueError("Checklist must have at least 1 item")

        logger.info(f"Creating checklist '{data.name}' with {len(data.items)} items")
        checklist = ChecklistModel(
            name=data.name,
            description=data.description,
            category=data.category,
        )
        checklist.items = [
            ChecklistItemModel(
                title=item.title,
                description=item.description,
                category=item.category,
                sub_items=list(item.sub_items),
                order_index=index,
            )
            for index, item in enumerate(data.items)
        ]
        db.add(checklist)
        db.commit()
        db.refresh(checklist)
        logger.info(f"Successfully committed checklist {checklist.id}")
        return checklist
    except ValueError:
        raise
    except Exception as e:
        logger.error(f"Error creating checklist '{data.name}': {e}", exc_info=True)
        db.rollback()
        raise


def get_checklist(db: Session, checklist_id: int) -> ChecklistModel:
    checklist = db.query(ChecklistModel).filter(ChecklistModel.id == checklist_id).first()
    if not checklist:
        raise ValueError(f"Checklist {checklist_id} not found")
    return checklist


class SqlChecklistStore:
    def __init__(self, db: Session):
        self.db = db

    def create_checklist(self, checklist: ChecklistCreate) -> ChecklistModel:
        return create_checklist(self.db, checklist)
