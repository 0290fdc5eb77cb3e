import logging
import re
from typing import Any, Iterable, List, Mapping, Optional

from bls_import.presentation.schemas.checklist_schema import ChecklistItem

logger = logging.getLogger(__name__)

SECTION_HEADER = re.compile(r"[A-Z\s:]+")
SECTION_KEYWORDS = (
    "DANGER",
    "RESPONSE",
    "AIRWAY",
    "BREATHING",
    "CIRCULATION",
    "DEFIBRILATION",
    "STATION",
    "SKILL",
)
MAX_SECTION_HEADER_LENGTH = 50


def _cell_values(row: Mapping[str, Any]) -> Iterable[str]:
    for value in row.values():
        if value is None:
            continue
        text = str(value).strip()
        if text:
            yield text


def main_content(row: Mapping[str, Any]) -> str:
    """First non-empty cell of the row, in column order."""
    return next(iter(_cell_values(row)), "")


def is_section_header(line: str) -> bool:
    if not SECTION_HEADER.fullmatch(line):
        return False
    return len(line) < MAX_SECTION_HEADER_LENGTH or any(k in line for k in SECTION_KEYWORDS)


def group_checklist_rows(
    rows: Iterable[Mapping[str, Any]], log: Optional[logging.Logger] = None
) -> List[ChecklistItem]:
    """
    Groups checklist rows into sections: an upper-case heading followed by its
    sub-item lines. A heading is only kept once at least one sub-item follows
    it. Without any heading, every non-empty cell becomes a plain item.
    """
    log = log or logger
    rows = list(rows)
    items: List[ChecklistItem] = []
    section = ""
    sub_items: List[str] = []

    for line in (main_content(row) for row in rows):
        if not line:
            continue
        if is_section_header(line):
            if section and sub_items:
                items.append(ChecklistItem(title=section, category="section", sub_items=sub_items))
            elif section:
                log.debug(f"Dropping checklist section '{section}' with no sub-items")
            section = line
            sub_items = []
        else:
            sub_items.append(line)

    if section and sub_items:
        items.append(ChecklistItem(title=section, category="section", sub_items=sub_items))

    if items:
        log.info(f"Grouped {len(rows)} checklist rows into {len(items)} sections")
        return items

    log.info("No checklist section headings found, importing every cell as an item")
    return [
        ChecklistItem(title=value, category="item")
        for row in rows
        for value in _cell_values(row)
    ]
