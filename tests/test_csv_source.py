"""
Tests for the CSV data source.

We need to:
1. Turn each data row into a column -> cell mapping
2. Skip survey-platform header rows below the column identifiers
3. Keep empty cells as "" so the engine treats them as absent
4. Reject headers that would silently overwrite columns
"""

import pytest
from surveyquant.csv_source import CSVSourceError, read_records_file, read_records_string


class TestReadRecordsString:
    """Test parsing CSV text."""

    def test_basic_rows(self):
        csv = "ResponseId,Finished,Q15\nR_1,True,Very satisfied\nR_2,False,\n"
        records = read_records_string(csv)
        assert records == [
            {"ResponseId": "R_1", "Finished": "True", "Q15": "Very satisfied"},
            {"ResponseId": "R_2", "Finished": "False", "Q15": ""},
        ]

    def test_column_order_preserved(self):
        records = read_records_string("Q2,Q1,Q3\na,b,c\n")
        assert list(records[0]) == ["Q2", "Q1", "Q3"]

    def test_skip_platform_header_rows(self):
        csv = (
            "ResponseId,Q15\n"
            '"Response ID","How satisfied are you?"\n'
            '"{""ImportId"":""_recordId""}","{""ImportId"":""QID15""}"\n'
            "R_1,Somewhat satisfied\n"
        )
        records = read_records_string(csv, skip_rows=2)
        assert records == [{"ResponseId": "R_1", "Q15": "Somewhat satisfied"}]

    def test_quoted_multiline_cell(self):
        csv = 'ResponseId,Comment\nR_1,"first line\nsecond line"\n'
        records = read_records_string(csv)
        assert records[0]["Comment"] == "first line\nsecond line"

    def test_unicode_dash_kept_verbatim(self):
        records = read_records_string("Q10\n30–60 minutes\n")
        assert records[0]["Q10"] == "30–60 minutes"

    def test_short_rows_padded(self):
        records = read_records_string("A,B,C\n1,2\n")
        assert records == [{"A": "1", "B": "2", "C": ""}]

    def test_blank_lines_skipped(self):
        records = read_records_string("A,B\n1,2\n\n,\n3,4\n")
        assert [r["A"] for r in records] == ["1", "3"]

    def test_byte_order_mark_removed(self):
        records = read_records_string("\ufeffResponseId,Q1\nR_1,x\n")
        assert "ResponseId" in records[0]

    def test_header_only(self):
        assert read_records_string("A,B\n") == []

    def test_empty_input(self):
        with pytest.raises(CSVSourceError, match="empty"):
            read_records_string("")

    def test_duplicate_columns(self):
        with pytest.raises(CSVSourceError, match="Duplicate"):
            read_records_string("Q1,Q1\na,b\n")

    def test_too_many_cells(self):
        with pytest.raises(CSVSourceError, match="Row 2"):
            read_records_string("A,B\n1,2,3\n")

    def test_oversized_field(self):
        csv = "A\n" + "x" * 200_000 + "\n"
        with pytest.raises(CSVSourceError, match="Malformed CSV"):
            read_records_string(csv)


class TestReadRecordsFile:
    """Test file I/O operations."""

    def test_read_file(self, tmp_path):
        path = tmp_path / "responses.csv"
        path.write_text("ResponseId,Q15\nR_1,Very satisfied\n", encoding="utf-8")
        records = read_records_file(str(path))
        assert records == [{"ResponseId": "R_1", "Q15": "Very satisfied"}]

    def test_read_file_with_bom(self, tmp_path):
        path = tmp_path / "export.csv"
        path.write_text("ResponseId,Q15\nR_1,x\n", encoding="utf-8-sig")
        records = read_records_file(str(path))
        assert list(records[0]) == ["ResponseId", "Q15"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_records_file(str(tmp_path / "nope.csv"))

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "export.csv"
        path.write_bytes(b"Q1\n\xff\xfe\n")
        with pytest.raises(CSVSourceError, match="not valid"):
            read_records_file(str(path))
