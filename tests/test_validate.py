# tests/test_validate.py
"""
Tests for validate.py - Pre-flight CSV checks
"""
from csvtocourse.sample import SAMPLE_CSV
from csvtocourse.validate import Severity, validate_csv

HEADER = "section_id,section_name,activity_type,activity_name,content_text,source_url_path,date_start,date_end,date_cutoff"


class TestValidateCsv:
    """Tests for validate_csv()"""

    def test_sample_is_valid(self, tmp_path):
        path = tmp_path / "sample.csv"
        path.write_text(SAMPLE_CSV, encoding="utf-8")
        result = validate_csv(path)

        assert result.is_valid
        assert result.warnings == []
        assert "rows valid" in result.summary()

    def test_missing_column_is_error(self, write_csv):
        result = validate_csv(write_csv(["section_id,section_name", "0,General"]))

        assert not result.is_valid
        assert "activity_name" in result.errors[0].message

    def test_no_rows_is_error(self, write_csv):
        result = validate_csv(write_csv([HEADER]))
        assert not result.is_valid

    def test_bad_section_id(self, write_csv):
        result = validate_csv(write_csv([HEADER, "one,General,label,Hi,,,,,"]))

        assert len(result.errors) == 1
        assert result.errors[0].row == 1

    def test_unknown_type_is_warning(self, write_csv):
        result = validate_csv(write_csv([HEADER, "0,General,survey,X,,,,,"]))

        assert result.is_valid
        assert "survey" in result.warnings[0].message

    def test_bad_date_is_warning(self, write_csv):
        result = validate_csv(write_csv([HEADER, "0,General,quiz,Q,,,someday,,"]))

        assert [w.message for w in result.warnings] == ["date_start 'someday' is not a date; it will be left unset"]

    def test_url_without_link(self, write_csv):
        result = validate_csv(write_csv([HEADER, "0,General,url,Link,,,,,"]))
        assert "source_url_path" in result.warnings[0].message

    def test_renamed_section_is_info(self, write_csv):
        result = validate_csv(write_csv([
            HEADER,
            "1,Week 1,page,A,,,,,",
            "1,Week One,page,B,,,,,",
        ]))
        infos = [i for i in result.issues if i.severity == Severity.INFO]

        assert result.is_valid
        assert len(infos) == 1
        assert infos[0].row == 2

    def test_summary_counts(self, write_csv):
        result = validate_csv(write_csv([
            HEADER,
            "x,General,label,Hi,,,,,",
            "0,General,survey,X,,,,,",
        ]))
        assert result.summary() == "Found 1 error, 1 warning in 2 rows checked."

    def test_blank_lines_ignored(self, write_csv):
        result = validate_csv(write_csv([
            HEADER,
            "0,General,label,Hi,,,,,",
            "",
            ",,,,,,,,",
            "1,Week 1,page,Intro,,,,,",
            "",
        ]))
        assert result.is_valid
        assert result.issues == []
