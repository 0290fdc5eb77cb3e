from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..base import Base


class ChecklistModel(Base):
    __tablename__ = "checklists"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=False, default="general")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    items = relationship(
        "ChecklistItemModel",
        back_populates="checklist",
        cascade="all, delete-orphan",
        order_by="ChecklistItemModel.order_index",
    )


class ChecklistItemModel(Base):
    __tablename__ = "checklist_items"

    id = Column(Integer, primary_key=True, index=True)
    checklist_id = Column(Integer, ForeignKey("checklists.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=False, default="item")  # "section" or "item"
    sub_items = Column(JSON, nullable=False, default=list)
    order_index = Column(Integer, nullable=False, default=0)

    # Relationships
    checklist = relationship("ChecklistModel", back_populates="items")
