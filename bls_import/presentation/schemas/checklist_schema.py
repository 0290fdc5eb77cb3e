from pydantic import BaseModel
from typing import List, Literal, Optional


class ChecklistItem(BaseModel):
    title: str
    description: Optional[str] = None
    category: Literal["section", "item"]
    sub_items: List[str] = []

    class Config:
        frozen = True


class ChecklistParseResult(BaseModel):
    success: bool
    data: List[ChecklistItem] = []
    errors: List[str] = []
    warnings: List[str] = []

    class Config:
        frozen = True

    @classmethod
    def from_parts(cls, data, errors, warnings) -> "ChecklistParseResult":
        return cls(success=not errors, data=list(data), errors=list(errors), warnings=list(warnings))

    @classmethod
    def failure(cls, message: str) -> "ChecklistParseResult":
        return cls(success=False, data=[], errors=[message], warnings=[])


class ChecklistCreate(BaseModel):
    name: str
    description: Optional[str] = None
    category: str = "general"
    items: List[ChecklistItem]


class ChecklistOut(BaseModel):
    id: int
    name: str
    category: str
    item_count: int
