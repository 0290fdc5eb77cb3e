import base64
import binascii
import csv
import io
import logging
import os
import re
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import pandas as pd

from bls_import.application.admin.checklist_grouping import group_checklist_rows
from bls_import.application.admin.field_mapping import field_default, map_row_to_question
from bls_import.presentation.schemas.checklist_schema import ChecklistParseResult
from bls_import.presentation.schemas.question_import_schema import (
    InvalidQuestion,
    ParsedFileResult,
    QuestionImportFormat,
    QuestionValidationResult,
)

logger = logging.getLogger(__name__)

Row = Dict[str, str]
FileContent = Union[bytes, bytearray, str, os.PathLike]

SUPPORTED_EXTENSIONS = ("csv", "xlsx", "xls")
CSV_DELIMITERS = ",;\t|"
SNIFF_SAMPLE_SIZE = 8192
HEADER_QUESTION_MIN_LENGTH = 50

QUESTION_START = re.compile(r"^\d+[.)]\s*")
OPTION_LINE = re.compile(r"^[a-d][.)]\s*(.+)$", re.IGNORECASE)

OPTION_FIELDS = ("option_a", "option_b", "option_c", "option_d")
BILINGUAL_FIELDS = ("question_text",) + OPTION_FIELDS
SHARED_FIELDS = (
    "question_type",
    "difficulty_level",
    "category",
    "points",
    "time_limit_seconds",
    "explanation",
    "correct_answer",
    "tags",
    "test_type",
)


class RowShape(str, Enum):
    STANDARD = "standard"
    HEADER_EMBEDDED = "header_embedded"
    PLAIN = "plain"


class InvalidDataURI(ValueError):
    pass


def classify_columns(columns: Sequence[str]) -> RowShape:
    """
    Decides how a sheet is laid out from its named header columns.
    A lone column with a very long header means the sheet had no header row
    and its first question ended up as the column name.
    """
    if len(columns) == 1 and len(columns[0]) > HEADER_QUESTION_MIN_LENGTH:
        return RowShape.HEADER_EMBEDDED
    if len(columns) > 1:
        return RowShape.STANDARD
    return RowShape.PLAIN


def classify_rows(rows: Sequence[Row]) -> RowShape:
    return classify_columns(list(rows[0]) if rows else [])


def header_columns(frame: pd.DataFrame) -> List[str]:
    """Column names the sheet's header row actually carries."""
    return [str(column) for column in frame.columns if not str(column).startswith("Unnamed:")]


def file_extension(file_name: str) -> str:
    return file_name.lower().rsplit(".", 1)[-1]


def is_data_uri(content) -> bool:
    return isinstance(content, str) and content.startswith("data:")


def decode_data_uri(uri: str) -> bytes:
    _, _, payload = uri.partition(",")
    if not payload:
        raise InvalidDataURI("Invalid data URI format")
    return base64.b64decode(payload)


def load_content(content: FileContent) -> bytes:
    """Raw bytes of an upload given as bytes, a data URI, a file path or plain text."""
    if isinstance(content, (bytes, bytearray)):
        return bytes(content)
    if isinstance(content, os.PathLike):
        return Path(content).read_bytes()
    if is_data_uri(content):
        return decode_data_uri(content)
    if "\n" not in content:
        if os.path.isfile(content):
            return Path(content).read_bytes()
        if os.sep in content or file_extension(content) in SUPPORTED_EXTENSIONS:
            raise FileNotFoundError(f"No such file: {content}")
    return content.encode("utf-8")


def frame_to_rows(frame: pd.DataFrame) -> List[Row]:
    """Records of a sheet, keeping only the non-empty cells; fully blank rows are dropped."""
    rows = []
    for record in frame.to_dict(orient="records"):
        row = {}
        for key, value in record.items():
            if value is None or (not isinstance(value, str) and pd.isna(value)):
                continue
            text = str(value)
            if text.strip():
                row[str(key)] = text
        if row:
            rows.append(row)
    return rows


class FileParser:
    """
    Turns uploaded question and checklist spreadsheets into structured records.

    Every public entry point returns a result object; problems with the file
    content are reported in its `errors` and `warnings` lists instead of being
    raised. Pass `logger` to route the parser's tracing somewhere specific.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    # ---------------------------
    # Entry points
    # ---------------------------
    def parse_file(self, content: FileContent, file_name: str) -> ParsedFileResult:
        extension = file_extension(file_name)
        self.logger.info(f"Parsing question file {file_name} (extension: {extension})")
        if extension not in SUPPORTED_EXTENSIONS:
            return ParsedFileResult.failure(
                f"Unsupported file format: {extension}. Please upload a CSV or Excel file."
            )

        try:
            data = load_content(content)
        except InvalidDataURI as e:
            return ParsedFileResult.failure(str(e))
        except (binascii.Error, ValueError) as e:
            self.logger.warning(f"Could not decode data URI for {file_name}: {e}")
            return ParsedFileResult.failure(f"Failed to parse data URI: {e}")
        except Exception as e:
            self.logger.warning(f"Could not read {file_name}: {e}")
            return ParsedFileResult.failure(f"Failed to read file: {e}")

        if extension == "csv":
            return self._parse_question_csv(data)
        return self._parse_question_workbook(data)

    def parse_checklist_file(self, content: FileContent, file_name: str) -> ChecklistParseResult:
        extension = file_extension(file_name)
        self.logger.info(f"Parsing checklist file {file_name} (extension: {extension})")
        if extension not in SUPPORTED_EXTENSIONS:
            return ChecklistParseResult.failure(
                f"Unsupported file format: {extension}. Please upload a CSV or Excel file."
            )

        try:
            data = load_content(content)
            if extension == "csv":
                rows, errors, warnings = self.read_csv_rows(data)
            else:
                sheets = self.read_workbook(data)
                rows = frame_to_rows(next(iter(sheets.values()))) if sheets else []
                errors, warnings = [], []
        except InvalidDataURI as e:
            return ChecklistParseResult.failure(str(e))
        except Exception as e:
            self.logger.error(f"Checklist parsing failed for {file_name}: {e}", exc_info=True)
            return ChecklistParseResult.failure(f"Failed to parse checklist file: {e}")

        items = group_checklist_rows(rows, log=self.logger)
        return ChecklistParseResult.from_parts(items, errors, warnings)

    # ---------------------------
    # Readers
    # ---------------------------
    def read_csv_rows(self, data: bytes) -> Tuple[List[Row], List[str], List[str]]:
        """Header-keyed rows of a CSV file plus the row-level errors and warnings found reading it."""
        text = data.decode("utf-8-sig")
        errors: List[str] = []
        warnings: List[str] = []

        try:
            delimiter = csv.Sniffer().sniff(text[:SNIFF_SAMPLE_SIZE], delimiters=CSV_DELIMITERS).delimiter
        except csv.Error:
            delimiter = ","
            warnings.append("Unable to auto-detect delimiting character; defaulted to ','")

        records = [record for record in csv.reader(io.StringIO(text), delimiter=delimiter) if record]
        if not records:
            raise pd.errors.EmptyDataError("No columns to parse from file")
        width = len(records[0])
        for record in records[1:]:
            if len(record) > width:
                errors.append(f"Too many fields: expected {width} fields but parsed {len(record)}")

        # Overlong rows are kept, cut down to the header's width.
        frame = pd.read_csv(
            io.StringIO(text),
            sep=delimiter,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False,
            engine="python",
            on_bad_lines=lambda fields: fields[:width],
        )

        rows = frame_to_rows(frame)
        self.logger.debug(f"Read {len(rows)} CSV rows with delimiter {delimiter!r}")
        return rows, errors, warnings

    def read_workbook(self, data: bytes) -> Dict[str, pd.DataFrame]:
        """Every sheet in workbook order, keyed by sheet name."""
        frames = pd.read_excel(io.BytesIO(data), sheet_name=None, dtype=str)
        self.logger.info(f"Excel workbook loaded, sheets: {list(frames)}")
        return frames

    def _parse_question_csv(self, data: bytes) -> ParsedFileResult:
        try:
            rows, errors, warnings = self.read_csv_rows(data)
        except Exception as e:
            self.logger.error(f"CSV parsing error: {e}", exc_info=True)
            return ParsedFileResult.failure(f"Failed to read CSV file: {e}")
        questions = self.map_standard_rows(rows)
        return ParsedFileResult.from_parts(questions, errors, warnings)

    def _parse_question_workbook(self, data: bytes) -> ParsedFileResult:
        try:
            sheets = self.read_workbook(data)
            if not sheets:
                return ParsedFileResult.failure("No worksheet found in Excel file")

            if len(sheets) >= 2:
                names = list(sheets)
                self.logger.info(
                    f"Detected multiple sheets, parsing '{names[0]}' and '{names[1]}' as a bilingual pair"
                )
                primary = self.parse_single_column(frame_to_rows(sheets[names[0]]))
                english = self.parse_single_column(frame_to_rows(sheets[names[1]]))
                return self.merge_bilingual(primary, english)

            frame = next(iter(sheets.values()))
            rows = frame_to_rows(frame)
            if not rows:
                return ParsedFileResult.failure("Excel file appears to be empty")

            shape = classify_columns(header_columns(frame))
            self.logger.info(f"Single sheet with {len(rows)} rows classified as {shape.value}")
            if shape is RowShape.STANDARD:
                return ParsedFileResult.from_parts(self.map_standard_rows(rows), [], [])
            return self.parse_single_column(rows, header_is_question=shape is RowShape.HEADER_EMBEDDED)
        except Exception as e:
            self.logger.error(f"Excel parsing error: {e}", exc_info=True)
            return ParsedFileResult.failure(f"Failed to parse Excel file: {e}")

    # ---------------------------
    # Strategies
    # ---------------------------
    def map_standard_rows(self, rows: Iterable[Row]) -> List[QuestionImportFormat]:
        questions = []
        for index, row in enumerate(rows):
            question = map_row_to_question(row)
            if not question.question_text.strip():
                self.logger.debug(f"Row {index + 1} has no question text, skipping")
                continue
            questions.append(question)
        return questions

    def parse_single_column(
        self, rows: Sequence[Row], header_is_question: Optional[bool] = None
    ) -> ParsedFileResult:
        """
        Rebuilds questions from one column of loose lines. A line opening with a
        question number ("3.", "12)") starts a question; every other line is an
        option or continuation of the current one. A question is only finalized
        once it has collected at least one such line.
        """
        if not rows:
            return ParsedFileResult.from_parts([], [], [])

        column = next(iter(rows[0]))
        if header_is_question is None:
            header_is_question = (
                len(column) > HEADER_QUESTION_MIN_LENGTH or bool(QUESTION_START.match(column.strip()))
            )

        questions: List[QuestionImportFormat] = []
        errors: List[str] = []
        current_text = column.strip() if header_is_question else ""
        current_options: List[str] = []
        question_index = 0

        for row in rows:
            value = row.get(column)
            if value is None or not str(value).strip():
                continue
            line = str(value).strip()

            if QUESTION_START.match(line):
                if current_options:
                    self._finalize_question(current_text, current_options, question_index, questions, errors)
                    question_index += 1
                current_text = line
                current_options = []
            else:
                current_options.append(line)

        if current_options:
            self._finalize_question(current_text, current_options, question_index, questions, errors)

        self.logger.info(
            f"Single-column parse: {len(rows)} rows, {len(questions)} questions, {len(errors)} errors"
        )
        return ParsedFileResult.from_parts(questions, errors, [])

    def _finalize_question(self, text, options, index, questions, errors) -> None:
        block = "\n".join([text, *options])
        question = self.parse_question_text(block)
        if question is None:
            self.logger.warning(f"Question {index + 1}: could not split into prompt and options")
            errors.append(f"Question {index + 1}: Could not parse question format")
        else:
            questions.append(question)

    def parse_question_text(self, text: str) -> Optional[QuestionImportFormat]:
        """
        Splits a question block into its prompt and up to four options. Option
        lines fill the option slots in the order they appear, whatever letter
        they carry. Returns None for a block made only of option lines.
        """
        prompt_lines = []
        options = []
        for line in (raw.strip() for raw in text.split("\n")):
            if not line:
                continue
            match = OPTION_LINE.match(line)
            if match:
                options.append(match.group(1).strip())
            else:
                prompt_lines.append(line)

        question_text = QUESTION_START.sub("", " ".join(prompt_lines), count=1).strip()
        if not question_text and options:
            return None

        slots = dict(zip(OPTION_FIELDS, options))
        return QuestionImportFormat(
            question_text=question_text,
            question_type="multiple_choice",
            difficulty_level="easy",
            category="basic_life_support",
            points=10,
            test_type="practice",
            correct_answer="A" if options else None,
            **slots,
        )

    def merge_bilingual(self, primary: ParsedFileResult, english: ParsedFileResult) -> ParsedFileResult:
        """
        Pairs the questions of two language sheets by position. Where one sheet
        runs out, the other sheet's text fills both language slots.
        """
        merged = []
        total = max(len(primary.data), len(english.data))
        for i in range(total):
            local = primary.data[i] if i < len(primary.data) else None
            translated = english.data[i] if i < len(english.data) else None
            if local is None and translated is None:
                continue
            merged.append(_merge_question(local, translated))

        if len(primary.data) != len(english.data):
            self.logger.warning(
                f"Bilingual sheets differ in length ({len(primary.data)} vs {len(english.data)}), "
                f"unmatched questions reuse the available language"
            )
        self.logger.info(f"Created {len(merged)} bilingual questions")
        return ParsedFileResult.from_parts(
            merged,
            [*primary.errors, *english.errors],
            [*primary.warnings, *english.warnings],
        )

    # ---------------------------
    # Validation
    # ---------------------------
    @staticmethod
    def validate_questions(questions: Iterable[QuestionImportFormat]) -> QuestionValidationResult:
        valid = []
        invalid = []
        for question in questions:
            if question.question_text and question.question_text.strip():
                valid.append(question)
            else:
                invalid.append(InvalidQuestion(question=question, errors=["Question text is required"]))
        logger.info(f"Validation finished. Valid: {len(valid)}, Invalid: {len(invalid)}")
        return QuestionValidationResult(valid=valid, invalid=invalid)


def _value(question: Optional[QuestionImportFormat], field: str):
    return getattr(question, field) if question is not None else None


def _merge_question(
    local: Optional[QuestionImportFormat], translated: Optional[QuestionImportFormat]
) -> QuestionImportFormat:
    values = {}
    for field in BILINGUAL_FIELDS:
        base = _value(local, field)
        english = _value(translated, field)
        values[field] = base or english or field_default(field)
        values[f"{field}_en"] = english or base
    for field in SHARED_FIELDS:
        values[field] = _value(local, field) or _value(translated, field) or field_default(field)
    return QuestionImportFormat(**values)


def validate_questions(questions: Iterable[QuestionImportFormat]) -> QuestionValidationResult:
    return FileParser.validate_questions(questions)
