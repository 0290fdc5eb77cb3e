import base64
import os
import tempfile
import unittest

from bls_import.application.admin.file_parser import (
    FileParser,
    RowShape,
    classify_columns,
    classify_rows,
    validate_questions,
)
from bls_import.presentation.schemas.question_import_schema import QuestionImportFormat

from ._workbooks import single_column_rows, workbook_bytes

LONG_HEADER = "1. Apakah langkah pertama yang perlu dilakukan semasa bantuan hayat asas?"


class FormatDispatchTests(unittest.TestCase):
    def setUp(self):
        self.parser = FileParser()

    def test_unsupported_extension_is_rejected(self):
        for name, ext in [("notes.txt", "txt"), ("Bank.DOCX", "docx"), ("questions.pdf", "pdf")]:
            result = self.parser.parse_file(b"anything", name)
            self.assertFalse(result.success)
            self.assertEqual(result.data, [])
            self.assertEqual(result.warnings, [])
            self.assertEqual(
                result.errors,
                [f"Unsupported file format: {ext}. Please upload a CSV or Excel file."],
            )

    def test_extension_is_case_insensitive(self):
        result = self.parser.parse_file(b"question,option_a\nWhat is CPR?,Chest compressions\n", "BANK.CSV")
        self.assertTrue(result.success)
        self.assertEqual(len(result.data), 1)

    def test_csv_data_uri_is_decoded_before_parsing(self):
        csv_text = "question,option_a,correct\nWhat is CPR?,Chest compressions,a\n"
        uri = "data:text/csv;base64," + base64.b64encode(csv_text.encode("utf-8")).decode("ascii")
        result = self.parser.parse_file(uri, "upload.csv")
        self.assertTrue(result.success)
        self.assertEqual(result.data[0].question_text, "What is CPR?")

    def test_data_uri_without_payload(self):
        result = self.parser.parse_file("data:text/csv;base64,", "upload.csv")
        self.assertFalse(result.success)
        self.assertEqual(result.errors, ["Invalid data URI format"])

    def test_excel_data_uri(self):
        content = workbook_bytes({"Sheet1": {"question": ["What is an AED?"], "option_a": ["A defibrillator"]}})
        uri = "data:application/octet-stream;base64," + base64.b64encode(content).decode("ascii")
        result = self.parser.parse_file(uri, "bank.xlsx")
        self.assertTrue(result.success)
        self.assertEqual(result.data[0].option_a, "A defibrillator")

    def test_reads_from_file_path(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "bank.csv")
            with open(path, "w", encoding="utf-8") as f:
                f.write("question_text,points\nCheck for danger first?,5\n")
            result = self.parser.parse_file(path, "bank.csv")
        self.assertTrue(result.success)
        self.assertEqual(result.data[0].points, 5)

    def test_missing_file_path_is_reported(self):
        result = self.parser.parse_file("/nonexistent/bank.csv", "bank.csv")
        self.assertFalse(result.success)
        self.assertEqual(result.data, [])
        self.assertEqual(len(result.errors), 1)
        self.assertTrue(result.errors[0].startswith("Failed to read file"))

    def test_corrupt_workbook_is_reported_not_raised(self):
        result = self.parser.parse_file(b"this is not a spreadsheet", "bank.xlsx")
        self.assertFalse(result.success)
        self.assertEqual(result.data, [])
        self.assertEqual(len(result.errors), 1)
        self.assertTrue(result.errors[0].startswith("Failed to parse Excel file"))

    def test_empty_csv_is_reported_not_raised(self):
        result = self.parser.parse_file(b"", "bank.csv")
        self.assertFalse(result.success)
        self.assertTrue(result.errors[0].startswith("Failed to read CSV file"))

    def test_empty_sheet(self):
        content = workbook_bytes({"Sheet1": {"question_text": []}})
        result = self.parser.parse_file(content, "bank.xlsx")
        self.assertFalse(result.success)
        self.assertEqual(result.errors, ["Excel file appears to be empty"])


class CsvParsingTests(unittest.TestCase):
    def setUp(self):
        self.parser = FileParser()

    def test_standard_row_is_mapped_with_defaults(self):
        result = self.parser.parse_file(b"question,option_a,correct\nWhat is CPR?,A,a\n", "bank.csv")
        self.assertTrue(result.success)
        self.assertEqual(len(result.data), 1)
        question = result.data[0]
        self.assertEqual(question.question_text, "What is CPR?")
        self.assertEqual(question.correct_answer, "A")
        self.assertEqual(question.points, 10)
        self.assertEqual(question.category, "basic_life_support")

    def test_rows_without_question_text_are_dropped_silently(self):
        content = (
            "question_text,option_a\n"
            "What is the compression rate?,100-120 per minute\n"
            ",orphan option\n"
            "   ,another\n"
            "Where do you place the hands?,Centre of the chest\n"
        ).encode("utf-8")
        result = self.parser.parse_file(content, "bank.csv")
        self.assertTrue(result.success)
        self.assertEqual(
            [q.question_text for q in result.data],
            ["What is the compression rate?", "Where do you place the hands?"],
        )

    def test_semicolon_delimiter_is_detected(self):
        content = "question;option_a;option_b\nWhat is CPR?;Compressions;Rest\nWhat is AED?;Device;Drug\n"
        result = self.parser.parse_file(content.encode("utf-8"), "bank.csv")
        self.assertTrue(result.success)
        self.assertEqual(result.warnings, [])
        self.assertEqual(result.data[1].option_b, "Drug")

    def test_undetectable_delimiter_is_a_warning(self):
        result = self.parser.parse_file(b"Question\nIs the scene safe?\n", "bank.csv")
        self.assertTrue(result.success)
        self.assertEqual(result.warnings, ["Unable to auto-detect delimiting character; defaulted to ','"])
        self.assertEqual(result.data[0].question_text, "Is the scene safe?")

    def test_row_with_too_many_fields_is_an_error(self):
        content = (
            "question,option_a\n"
            "What is CPR?,Compressions\n"
            "What is AED?,Device,unexpected\n"
            "What is the rate?,100-120\n"
        ).encode("utf-8")
        result = self.parser.parse_file(content, "bank.csv")
        self.assertFalse(result.success)
        self.assertTrue(any("Too many fields" in e for e in result.errors))
        self.assertIn("What is the rate?", [q.question_text for q in result.data])

    def test_first_data_row_with_too_many_fields(self):
        result = self.parser.parse_file(b"question,option_a\nWhat is AED?,Device,unexpected\n", "bank.csv")
        self.assertFalse(result.success)
        self.assertEqual(result.errors, ["Too many fields: expected 2 fields but parsed 3"])
        self.assertEqual(len(result.data), 1)
        self.assertEqual(result.data[0].question_text, "What is AED?")
        self.assertEqual(result.data[0].option_a, "Device")

    def test_utf8_bom_is_ignored(self):
        content = "\ufeffquestion_text,option_a\nApa itu CPR?,Resusitasi\n".encode("utf-8")
        result = self.parser.parse_file(content, "bank.csv")
        self.assertEqual(result.data[0].question_text, "Apa itu CPR?")


class RowShapeTests(unittest.TestCase):
    def test_multiple_columns_are_standard(self):
        self.assertEqual(classify_rows([{"question": "x", "option_a": "y"}]), RowShape.STANDARD)

    def test_long_single_header_is_embedded_question(self):
        self.assertEqual(classify_rows([{LONG_HEADER: "a. Periksa bahaya"}]), RowShape.HEADER_EMBEDDED)

    def test_classification_uses_header_columns(self):
        self.assertEqual(classify_columns(["Question Text", "Option A"]), RowShape.STANDARD)
        self.assertEqual(classify_columns([LONG_HEADER]), RowShape.HEADER_EMBEDDED)
        self.assertEqual(classify_columns(["Soalan"]), RowShape.PLAIN)

    def test_short_single_header_is_plain(self):
        self.assertEqual(classify_rows([{"Questions": "1. What?"}]), RowShape.PLAIN)


class SingleColumnTests(unittest.TestCase):
    def setUp(self):
        self.parser = FileParser()

    def test_questions_and_options_are_grouped(self):
        rows = single_column_rows(
            ["1. What is the first step?", "a. Check danger", "b. Call for help", "2. What next?", "a. Airway"]
        )
        result = self.parser.parse_single_column(rows)
        self.assertTrue(result.success)
        self.assertEqual(len(result.data), 2)
        first, second = result.data
        self.assertEqual(first.question_text, "What is the first step?")
        self.assertEqual((first.option_a, first.option_b), ("Check danger", "Call for help"))
        self.assertIsNone(first.option_c)
        self.assertEqual(second.question_text, "What next?")
        self.assertEqual(second.option_a, "Airway")
        self.assertEqual(first.correct_answer, "A")
        self.assertEqual(first.test_type, "practice")

    def test_options_only_block_is_rejected(self):
        result = self.parser.parse_single_column(single_column_rows(["a. Check danger", "b. Call for help"]))
        self.assertFalse(result.success)
        self.assertEqual(result.data, [])
        self.assertEqual(result.errors, ["Question 1: Could not parse question format"])

    def test_blank_rows_are_skipped(self):
        rows = [{"Questions": "1. Is it safe?"}, {"Questions": "   "}, {"Other": "ignored"}, {"Questions": "a. Yes"}]
        result = self.parser.parse_single_column(rows)
        self.assertEqual(len(result.data), 1)
        self.assertEqual(result.data[0].option_a, "Yes")

    def test_question_without_options_is_not_emitted(self):
        rows = single_column_rows(["1. Is it safe?", "a. Yes", "2. A question nobody answered"])
        result = self.parser.parse_single_column(rows)
        self.assertEqual([q.question_text for q in result.data], ["Is it safe?"])

    def test_continuation_lines_join_the_prompt(self):
        rows = single_column_rows(["3) A casualty collapses.", "What do you do", "first?", "a. Shout for help"])
        result = self.parser.parse_single_column(rows)
        self.assertEqual(result.data[0].question_text, "A casualty collapses. What do you do first?")

    def test_numbered_header_is_seeded_without_a_shape(self):
        result = self.parser.parse_single_column([{"1. Satu?": "a. Ya"}, {"1. Satu?": "b. Tidak"}])
        self.assertEqual(len(result.data), 1)
        self.assertEqual(result.data[0].question_text, "Satu?")
        self.assertEqual(result.data[0].option_b, "Tidak")

    def test_header_holding_first_question(self):
        content = workbook_bytes(
            {
                "Sheet1": {
                    LONG_HEADER: ["a. Periksa bahaya", "b. Panggil bantuan", "2. Bila mula CPR?", "a. Segera"],
                }
            }
        )
        result = FileParser().parse_file(content, "soalan.xlsx")
        self.assertTrue(result.success)
        self.assertEqual(len(result.data), 2)
        self.assertEqual(
            result.data[0].question_text,
            "Apakah langkah pertama yang perlu dilakukan semasa bantuan hayat asas?",
        )
        self.assertEqual(result.data[0].option_b, "Panggil bantuan")
        self.assertEqual(result.data[1].question_text, "Bila mula CPR?")

    def test_plain_single_column_sheet(self):
        content = workbook_bytes({"Sheet1": {"Soalan": ["1. Apa itu AED?", "a. Defibrilator", "b. Ubat"]}})
        result = FileParser().parse_file(content, "soalan.xlsx")
        self.assertTrue(result.success)
        self.assertEqual(result.data[0].question_text, "Apa itu AED?")
        self.assertEqual(result.data[0].option_b, "Ubat")


class QuestionTextTests(unittest.TestCase):
    def setUp(self):
        self.parser = FileParser()

    def test_options_fill_slots_in_scan_order(self):
        question = self.parser.parse_question_text("1. Pick one\nc) Third\nA. First\nd. Fourth\nb) Second\nB) Fifth")
        self.assertEqual(question.question_text, "Pick one")
        self.assertEqual(
            [question.option_a, question.option_b, question.option_c, question.option_d],
            ["Third", "First", "Fourth", "Second"],
        )

    def test_only_options_returns_none(self):
        self.assertIsNone(self.parser.parse_question_text("a. One\nb. Two"))

    def test_no_options_leaves_answer_unset(self):
        question = self.parser.parse_question_text("12) Describe the recovery position")
        self.assertEqual(question.question_text, "Describe the recovery position")
        self.assertIsNone(question.correct_answer)


class BilingualTests(unittest.TestCase):
    def setUp(self):
        self.content = workbook_bytes(
            {
                "Malay": {
                    "Soalan": [
                        "1. Soalan satu?", "a. Ya", "b. Tidak",
                        "2. Soalan dua?", "a. Betul",
                        "3. Soalan tiga?", "a. Salah",
                    ]
                },
                "English": {
                    "Question": ["1. Question one?", "a. Yes", "b. No", "2. Question two?", "a. True"]
                },
                "Notes": {"Remarks": ["1. Ignored?", "a. Ignored"]},
            }
        )

    def test_sheets_are_merged_by_position(self):
        result = FileParser().parse_file(self.content, "bilingual.xlsx")
        self.assertTrue(result.success)
        self.assertEqual(len(result.data), 3)

        first = result.data[0]
        self.assertEqual(first.question_text, "Soalan satu?")
        self.assertEqual(first.question_text_en, "Question one?")
        self.assertEqual((first.option_a, first.option_a_en), ("Ya", "Yes"))
        self.assertEqual((first.option_b, first.option_b_en), ("Tidak", "No"))
        self.assertEqual(first.correct_answer, "A")

    def test_missing_english_question_reuses_primary_text(self):
        result = FileParser().parse_file(self.content, "bilingual.xlsx")
        third = result.data[2]
        self.assertEqual(third.question_text, "Soalan tiga?")
        self.assertEqual(third.question_text_en, "Soalan tiga?")
        self.assertEqual(third.option_a_en, "Salah")

    def test_missing_primary_question_uses_english_for_both(self):
        parser = FileParser()
        primary = parser.parse_single_column(single_column_rows(["1. Satu?", "a. Ya"]))
        english = parser.parse_single_column(
            single_column_rows(["1. One?", "a. Yes", "2. Two?", "a. True", "b. False"])
        )
        merged = parser.merge_bilingual(primary, english)
        self.assertEqual(len(merged.data), 2)
        self.assertEqual(merged.data[1].question_text, "Two?")
        self.assertEqual(merged.data[1].question_text_en, "Two?")
        self.assertEqual(merged.data[1].option_b, "False")
        self.assertEqual(merged.data[1].points, 10)

    def test_errors_from_either_sheet_fail_the_merge(self):
        parser = FileParser()
        primary = parser.parse_single_column(single_column_rows(["1. Satu?", "a. Ya"]))
        english = parser.parse_single_column(single_column_rows(["a. Orphan"]))
        merged = parser.merge_bilingual(primary, english)
        self.assertFalse(merged.success)
        self.assertEqual(merged.errors, ["Question 1: Could not parse question format"])
        self.assertEqual(merged.data[0].question_text_en, "Satu?")


class StandardWorkbookTests(unittest.TestCase):
    def test_single_sheet_with_headers(self):
        content = workbook_bytes(
            {
                "Bank": {
                    "Question Text": ["What is the compression depth?", "What does AED stand for?"],
                    "Option A": ["5-6 cm", "Automated External Defibrillator"],
                    "Option B": ["1-2 cm", "Advanced Emergency Device"],
                    "Correct Answer": ["a", "A"],
                    "Category": ["Basic Life Support", "First Aid"],
                    "Points": ["5", "twenty"],
                }
            }
        )
        result = FileParser().parse_file(content, "bank.xlsx")
        self.assertTrue(result.success)
        self.assertEqual(len(result.data), 2)
        first, second = result.data
        self.assertEqual(first.option_b, "1-2 cm")
        self.assertEqual(first.points, 5)
        self.assertEqual(second.points, 10)
        self.assertEqual(second.category, "first_aid")
        self.assertEqual(second.correct_answer, "A")

    def test_sparse_first_row_stays_standard(self):
        content = workbook_bytes(
            {
                "Bank": {
                    "Question Text": [
                        "Describe the recovery position",
                        "What is the compression rate?",
                        "Where do hands go?",
                    ],
                    "Option A": [None, "100-120 per minute", "Centre of the chest"],
                    "Option B": [None, "60 per minute", "Upper abdomen"],
                    "Correct Answer": [None, "A", "A"],
                }
            }
        )
        result = FileParser().parse_file(content, "bank.xlsx")
        self.assertTrue(result.success)
        self.assertEqual(
            [q.question_text for q in result.data],
            ["Describe the recovery position", "What is the compression rate?", "Where do hands go?"],
        )
        self.assertIsNone(result.data[0].option_a)
        self.assertEqual(result.data[2].option_b, "Upper abdomen")


class ValidationTests(unittest.TestCase):
    def test_only_question_text_is_checked(self):
        questions = [
            QuestionImportFormat(question_text="X"),
            QuestionImportFormat(question_text=""),
            QuestionImportFormat(question_text="  "),
        ]
        result = validate_questions(questions)
        self.assertEqual(len(result.valid), 1)
        self.assertEqual(len(result.invalid), 2)
        for entry in result.invalid:
            self.assertEqual(entry.errors, ["Question text is required"])

    def test_defaulted_fields_are_accepted(self):
        question = QuestionImportFormat(question_text="Anything", points=0, category="whatever")
        self.assertEqual(FileParser.validate_questions([question]).valid, [question])


class LoggerInjectionTests(unittest.TestCase):
    def test_injected_logger_receives_tracing(self):
        import logging

        log = logging.getLogger("tests.file_parser.injected")
        with self.assertLogs(log, level="INFO") as captured:
            FileParser(logger=log).parse_file(b"question\nWhat is CPR?\n", "bank.csv")
        self.assertTrue(any("bank.csv" in line for line in captured.output))


if __name__ == "__main__":
    unittest.main()
