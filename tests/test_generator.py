# tests/test_generator.py
"""
Tests for generator.py - End-to-end backup generation
"""
import logging
import re
import threading
from pathlib import Path

import pytest

from csvtocourse.config_utils import ConverterConfig
from csvtocourse.csv_reader import parse_csv
from csvtocourse.dates import normalize_date
from csvtocourse.errors import InvalidFormatError, StagingWriteError, WarningKind
from csvtocourse.generator import MbzGenerator
from csvtocourse.models import Gradable, NotGradable

from conftest import NOW, make_row, parse_xml

HEADER = "section_id,section_name,activity_type,activity_name,content_text,source_url_path,date_start,date_end,date_cutoff"


def activity_dirs(plan):
    return sorted({path.rsplit("/", 1)[0] for path in plan.documents if path.startswith("activities/")})


def section_docs(plan):
    return sorted(p for p in plan.documents if p.startswith("sections/") and p.endswith("/section.xml"))


class TestWelcomeCourse:
    """A label and a forum in the general section"""

    def test_one_section_two_activities(self, generator, welcome_rows):
        plan = generator.build(welcome_rows, "Course", "C1")

        assert len(plan.sections) == 1
        assert plan.sections[0].number == 0
        assert plan.sections[0].sequence == [1, 2]
        assert activity_dirs(plan) == ["activities/forum_2", "activities/label_1"]

    def test_section_document_sequence(self, generator, welcome_rows):
        plan = generator.build(welcome_rows, "Course", "C1")
        root = parse_xml(plan.documents["sections/section_1000/section.xml"])

        assert root.findtext("number") == "0"
        assert root.findtext("name") == "General"
        assert root.findtext("sequence") == "1,2"

    def test_manifest_lists_exactly_these(self, generator, welcome_rows):
        plan = generator.build(welcome_rows, "Course", "C1")
        info = parse_xml(plan.documents["moodle_backup.xml"]).find("information")

        acts = info.findall("contents/activities/activity")
        assert [(a.findtext("moduleid"), a.findtext("modulename")) for a in acts] == [
            ("1", "label"), ("2", "forum"),
        ]
        secs = info.findall("contents/sections/section")
        assert [s.findtext("sectionid") for s in secs] == ["1000"]

    def test_label_content(self, generator, welcome_rows):
        plan = generator.build(welcome_rows, "Course", "C1")
        root = parse_xml(plan.documents["activities/label_1/label.xml"])
        assert root.findtext("label/intro") == "<p>Hi</p>"

    def test_no_warnings(self, generator, welcome_rows):
        assert generator.build(welcome_rows, "Course", "C1").warnings == []


class TestDocumentTree:
    """The full set of paths a backup contains"""

    ROOT_FILES = [
        "moodle_backup.xml", "files.xml", "completion.xml", "gradebook.xml",
        "grade_history.xml", "scales.xml", "outcomes.xml", "questions.xml",
        "groups.xml", "roles.xml",
    ]
    COURSE_FILES = [
        "course/course.xml", "course/enrolments.xml", "course/roles.xml",
        "course/inforef.xml", "course/completiondefaults.xml",
    ]

    def test_root_and_course_files(self, generator, welcome_rows):
        plan = generator.build(welcome_rows, "Course", "C1")
        for path in self.ROOT_FILES + self.COURSE_FILES:
            assert path in plan.documents, path

    def test_activity_files(self, generator, row):
        plan = generator.build([
            row(0, "General", "page", "Intro"),
            row(0, "General", "assign", "Essay"),
        ], "Course", "C1")

        page = {p.rsplit("/", 1)[1] for p in plan.documents if p.startswith("activities/page_1/")}
        assign = {p.rsplit("/", 1)[1] for p in plan.documents if p.startswith("activities/assign_2/")}

        assert page == {"page.xml", "module.xml", "grades.xml", "grade_history.xml", "inforef.xml", "roles.xml"}
        assert assign == page - {"page.xml"} | {"assign.xml", "grading.xml"}

    def test_quiz_has_no_grading_areas(self, generator, row):
        plan = generator.build([row(0, "General", "quiz", "Check")], "Course", "C1")
        assert "activities/quiz_1/grading.xml" not in plan.documents

    def test_every_document_is_xml(self, generator, welcome_rows):
        plan = generator.build(welcome_rows, "Course", "C1")
        for path, text in plan.documents.items():
            assert text.startswith('<?xml version="1.0" encoding="UTF-8"?>'), path
            parse_xml(text)


class TestCrossReferences:
    """Ids agree between sections, modules and grade documents"""

    @pytest.fixture
    def mixed_rows(self):
        return [
            make_row(1, "Week 1", "page", "Read"),
            make_row(0, "General", "label", "Hello"),
            make_row(1, "Week 1", "assign", "Essay"),
            make_row(2, "Week 2", "quiz", "Quiz"),
            make_row(2, "Week 2", "url", "Link", source_url_path="https://moodle.org"),
            make_row(0, "General", "forum", "News"),
        ]

    def test_sequence_matches_module_documents(self, generator, mixed_rows):
        plan = generator.build(mixed_rows, "Course", "C1")

        seen = []
        for section in plan.sections:
            for module_id in section.sequence:
                dirs = [d for d in activity_dirs(plan) if d.endswith(f"_{module_id}")]
                assert len(dirs) == 1
                kind = dirs[0].split("/")[1].rsplit("_", 1)[0]

                module = parse_xml(plan.documents[f"{dirs[0]}/module.xml"])
                assert module.get("id") == str(module_id)
                assert module.findtext("sectionid") == str(section.section_id)
                assert module.findtext("modulename") == kind

                activity = parse_xml(plan.documents[f"{dirs[0]}/{kind}.xml"])
                assert activity.get("moduleid") == str(module_id)
                seen.append(module_id)

        assert sorted(seen) == [1, 2, 3, 4, 5, 6]

    def test_sections_in_first_seen_order(self, generator, mixed_rows):
        plan = generator.build(mixed_rows, "Course", "C1")

        assert [(s.number, s.section_id) for s in plan.sections] == [(1, 1000), (0, 1001), (2, 1002)]
        assert plan.sections[0].sequence == [1, 3]
        assert plan.sections[1].sequence == [2, 6]

    def test_grade_items_referenced_once(self, generator, mixed_rows):
        plan = generator.build(mixed_rows, "Course", "C1")

        for activity in plan.activities:
            d = activity.directory
            grades = parse_xml(plan.documents[f"{d}/grades.xml"])
            inforef = parse_xml(plan.documents[f"{d}/inforef.xml"])
            item_ids = [i.get("id") for i in grades.findall("grade_items/grade_item")]
            ref_ids = [e.text for e in inforef.findall("grade_itemref/grade_item/id")]

            if activity.modulename in ("assign", "quiz"):
                assert isinstance(activity.grade, Gradable)
                assert item_ids == [str(activity.grade.grade_item_id)]
                assert ref_ids == item_ids
            else:
                assert isinstance(activity.grade, NotGradable)
                assert item_ids == []
                assert len(inforef) == 0

        assign, quiz = [a for a in plan.activities if a.modulename in ("assign", "quiz")]
        assert (assign.grade.grade_item_id, quiz.grade.grade_item_id) == (101, 102)

    def test_quiz_grade_item_names_quiz(self, generator, mixed_rows):
        plan = generator.build(mixed_rows, "Course", "C1")
        grades = parse_xml(plan.documents["activities/quiz_4/grades.xml"])
        assert grades.findtext("grade_items/grade_item/itemmodule") == "quiz"

    def test_manifest_settings_once_each(self, generator, mixed_rows):
        plan = generator.build(mixed_rows, "Course", "C1")
        settings = parse_xml(plan.documents["moodle_backup.xml"]).findall("information/settings/setting")
        names = [s.findtext("name") for s in settings]

        for section in plan.sections:
            assert names.count(f"section_{section.section_id}_included") == 1
            assert names.count(f"section_{section.section_id}_userinfo") == 1
        for activity in plan.activities:
            key = f"{activity.modulename}_{activity.module_id}"
            assert names.count(f"{key}_included") == 1
            assert names.count(f"{key}_userinfo") == 1

    def test_contexts_unique(self, generator, mixed_rows):
        plan = generator.build(mixed_rows, "Course", "C1")
        contexts = [a.context_id for a in plan.activities]
        assert contexts == list(range(101, 107))

    def test_assign_plugin_config_ids(self, generator, row):
        plan = generator.build([
            row(0, "General", "assign", "One"),
            row(0, "General", "assign", "Two"),
        ], "Course", "C1")
        first = parse_xml(plan.documents["activities/assign_1/assign.xml"])
        second = parse_xml(plan.documents["activities/assign_2/assign.xml"])

        first_ids = [c.get("id") for c in first.findall("assign/plugin_configs/plugin_config")]
        second_ids = [c.get("id") for c in second.findall("assign/plugin_configs/plugin_config")]
        assert first_ids[0] == "500"
        assert second_ids[0] == str(500 + len(first_ids))


class TestSections:
    """Section collection"""

    def test_one_document_per_distinct_section(self, generator, row):
        rows = [
            row(2, "Two", "page", "a"),
            row(1, "One", "page", "b"),
            row(2, "Two", "page", "c"),
            row(3, "Three"),
            row(1, "One", "page", "d"),
        ]
        plan = generator.build(rows, "Course", "C1")
        assert len(section_docs(plan)) == 3

        reordered = generator.build(list(reversed(rows)), "Course", "C1")
        assert len(section_docs(reordered)) == 3

    def test_first_name_wins(self, generator, row):
        plan = generator.build([
            row(1, "First name", "page", "a"),
            row(1, "Second name", "page", "b"),
        ], "Course", "C1")
        assert plan.sections[0].name == "First name"

    def test_section_only_row(self, generator, row):
        plan = generator.build([row(5, "Empty week")], "Course", "C1")

        assert plan.activities == []
        assert plan.warnings == []
        root = parse_xml(plan.documents["sections/section_1000/section.xml"])
        assert root.findtext("sequence") in ("", None)

    def test_non_integer_section(self, generator, row):
        with pytest.raises(InvalidFormatError) as exc:
            generator.build([row(0, "General"), row("week1", "Bad", "page", "x")], "Course", "C1")
        assert exc.value.context["row"] == 2


class TestRowHandling:
    """Type dispatch, warnings and text handling"""

    def test_unknown_type_skipped(self, generator, row, caplog):
        rows = [
            row(0, "General", "label", "Before"),
            row(0, "General", "survey", "X"),
            row(0, "General", "page", "After"),
        ]
        with caplog.at_level(logging.WARNING, logger="csvtocourse.generator"):
            plan = generator.build(rows, "Course", "C1")

        assert activity_dirs(plan) == ["activities/label_1", "activities/page_2"]
        assert plan.sections[0].sequence == [1, 2]
        assert not any("survey" in p for p in plan.documents)

        assert len(plan.warnings) == 1
        assert plan.warnings[0].kind == WarningKind.UNRECOGNIZED_ACTIVITY_TYPE
        assert plan.warnings[0].row_number == 2
        assert "survey" in caplog.text

    def test_type_case_insensitive(self, generator, row):
        plan = generator.build([row(0, "General", "  Quiz ", "Check")], "Course", "C1")
        assert activity_dirs(plan) == ["activities/quiz_1"]
        assert plan.activities[0].modulename == "quiz"

    def test_text_trimmed(self, generator, row):
        plan = generator.build([row(" 0 ", " General ", "page", "  Intro  ", "  <p>x</p> ")], " Course ", " C1 ")

        assert plan.activities[0].name == "Intro"
        assert plan.activities[0].content == "<p>x</p>"
        assert plan.sections[0].name == "General"
        assert plan.shortname == "C1"

    def test_bad_date_warns(self, generator, row):
        plan = generator.build([row(0, "General", "quiz", "Q", date_start="someday")], "Course", "C1")

        assert [w.kind for w in plan.warnings] == [WarningKind.DATE_PARSE_FAILURE]
        assert plan.activities[0].dates.start == "0"

    def test_out_of_range_timestamp_warns(self, generator, row):
        plan = generator.build([row(0, "General", "quiz", "Q", date_end="99999999999999999999")], "Course", "C1")

        assert [w.kind for w in plan.warnings] == [WarningKind.DATE_PARSE_FAILURE]
        assert plan.activities[0].dates.end == "0"

    def test_control_chars_do_not_abort(self, generator, row):
        plan = generator.build([row(0, "General", "label", "W", "a\x0bb")], "F", "S")

        label = parse_xml(plan.documents["activities/label_1/label.xml"])
        assert label.findtext("label/intro") == "ab"

    def test_empty_rows_rejected(self, generator):
        with pytest.raises(InvalidFormatError):
            generator.build([], "Course", "C1")

    def test_only_blank_rows_rejected(self, generator, row):
        with pytest.raises(InvalidFormatError):
            generator.build([row("", ""), row("", "")], "Course", "C1")

    def test_blank_rows_skipped(self, generator, row):
        rows = [row(0, "General", "label", "A"), row("", ""), row(1, "Week 1", "page", "B")]
        plan = generator.build(rows, "Course", "C1")

        assert activity_dirs(plan) == ["activities/label_1", "activities/page_2"]
        assert [s.number for s in plan.sections] == [0, 1]

    def test_csv_with_blank_lines(self, generator, write_csv):
        path = write_csv([
            HEADER,
            "0,General,label,Welcome,<p>Hi</p>,,,,",
            "",
            "1,Week 1,forum,Discuss,,,,,",
            "",
        ])
        plan = generator.build(parse_csv(path), "Course", "C1")

        assert activity_dirs(plan) == ["activities/forum_2", "activities/label_1"]
        assert plan.warnings == []

    def test_markdown_content(self, tmp_path, row):
        config = ConverterConfig(staging_dir=tmp_path, content_format="markdown")
        gen = MbzGenerator(config, clock=lambda: NOW)
        plan = gen.build([row(0, "General", "page", "Intro", "Some **bold** text")], "Course", "C1")

        assert plan.activities[0].content == "<p>Some <strong>bold</strong> text</p>"

    def test_html_content_untouched(self, generator, row):
        plan = generator.build([row(0, "General", "page", "Intro", "Some **bold** text")], "Course", "C1")
        assert plan.activities[0].content == "Some **bold** text"


class TestDates:
    """Dates as they land in activity documents"""

    def test_assign_cutoff_falls_back_to_end(self, generator, row):
        plan = generator.build([
            row(1, "Week 1", "assign", "Essay",
                date_start="2026-03-02", date_end="2026-03-08 23:59", date_cutoff=""),
        ], "Course", "C1")
        body = parse_xml(plan.documents["activities/assign_1/assign.xml"]).find("assign")

        end = normalize_date("2026-03-08 23:59")
        assert body.findtext("duedate") == end
        assert body.findtext("cutoffdate") == end
        assert body.findtext("cutoffdate") != "0"
        assert body.findtext("allowsubmissionsfromdate") == normalize_date("2026-03-02")
        assert body.findtext("gradingduedate") == str(int(end) + 7 * 86400)

    def test_assign_defaults_from_now(self, generator, row):
        plan = generator.build([row(0, "General", "assign", "Essay")], "Course", "C1")
        body = parse_xml(plan.documents["activities/assign_1/assign.xml"]).find("assign")

        assert body.findtext("allowsubmissionsfromdate") == str(NOW)
        assert body.findtext("duedate") == str(NOW + 7 * 86400)
        assert body.findtext("cutoffdate") == "0"

    def test_end_date_defaults_to_end_of_day(self, generator, row):
        plan = generator.build([row(0, "General", "quiz", "Q", date_end="2026-03-08")], "Course", "C1")
        body = parse_xml(plan.documents["activities/quiz_1/quiz.xml"]).find("quiz")
        assert body.findtext("timeclose") == normalize_date("2026-03-08 23:59")

    def test_single_now_everywhere(self, generator, welcome_rows):
        plan = generator.build(welcome_rows, "Course", "C1")

        assert plan.now == NOW
        assert parse_xml(plan.documents["moodle_backup.xml"]).findtext("information/backup_date") == str(NOW)
        assert parse_xml(plan.documents["course/course.xml"]).findtext("timecreated") == str(NOW)
        assert parse_xml(plan.documents["activities/label_1/module.xml"]).findtext("added") == str(NOW)


class TestWriting:
    """generate() and write_plan()"""

    def test_generate_writes_tree(self, generator, config, welcome_rows):
        staging_id = generator.generate(welcome_rows, "Course", "C1")
        root = config.staging_root() / staging_id

        assert re.match(rf"^csvtocourse_{NOW}_\w+$", staging_id)
        assert (root / "moodle_backup.xml").is_file()
        assert (root / "course" / "enrolments.xml").is_file()
        assert (root / "sections" / "section_1000" / "inforef.xml").is_file()
        assert (root / "activities" / "forum_2" / "forum.xml").is_file()

    def test_files_match_plan(self, generator, config, welcome_rows):
        plan = generator.build(welcome_rows, "Course", "C1")
        root = config.staging_root() / generator.write_plan(plan)

        written = sorted(str(p.relative_to(root).as_posix()) for p in root.rglob("*") if p.is_file())
        assert written == sorted(plan.documents)
        assert (root / "course/course.xml").read_text(encoding="utf-8") == plan.documents["course/course.xml"]

    def test_runs_get_distinct_staging(self, generator, welcome_rows):
        first = generator.generate(welcome_rows, "Course", "C1")
        second = generator.generate(welcome_rows, "Course", "C1")
        assert first != second

    def test_runs_do_not_share_counters(self, generator, welcome_rows):
        first = generator.build(welcome_rows, "Course", "C1")
        second = generator.build(welcome_rows, "Course", "C1")
        assert first.documents == second.documents

    def test_threads_do_not_interleave(self, generator, welcome_rows):
        results = []

        def run():
            results.append(generator.build(welcome_rows * 20, "Course", "C1"))

        threads = [threading.Thread(target=run) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for plan in results:
            assert [a.module_id for a in plan.activities] == list(range(1, 41))

    def test_missing_staging_root(self, tmp_path, welcome_rows):
        config = ConverterConfig(staging_dir=tmp_path / "does" / "not" / "exist")
        gen = MbzGenerator(config, clock=lambda: NOW)

        with pytest.raises(StagingWriteError):
            gen.generate(welcome_rows, "Course", "C1")

    def test_write_failure_wrapped(self, generator, welcome_rows, mocker):
        mocker.patch.object(Path, "write_text", side_effect=PermissionError("denied"))

        with pytest.raises(StagingWriteError) as exc:
            generator.generate(welcome_rows, "Course", "C1")
        assert isinstance(exc.value.cause, PermissionError)

    def test_bad_header_writes_nothing(self, write_csv, config):
        path = write_csv([
            "section_id,section_name,activity_type",
            "0,General,label",
        ])
        with pytest.raises(InvalidFormatError):
            MbzGenerator(config).generate(parse_csv(path), "Course", "C1")

        assert list(config.staging_root().iterdir()) == []
