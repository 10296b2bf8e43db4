"""
generator.py - Turn parsed CSV rows into a Moodle backup staging tree

MbzGenerator.build() is pure: rows in, BackupPlan out. write_plan() puts
the plan on disk under a fresh staging directory. generate() does both and
returns the staging id, which is what a restore step consumes.

Per-run state (id counters and the single "now" timestamp) lives on a
GenerationContext created by each build() call, so one generator can be
used for many runs, including from several threads.
"""

from __future__ import annotations

import logging
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import markdown

from csvtocourse import xml_builders as xb
from csvtocourse.config_utils import ConverterConfig
from csvtocourse.csv_reader import Row, is_blank_row
from csvtocourse.dates import normalize_date, resolve_dates
from csvtocourse.errors import (
    GenerationWarning,
    WarningKind,
    empty_csv_error,
    invalid_section_error,
    staging_write_error,
)
from csvtocourse.ids import IdAllocator
from csvtocourse.models import (
    Activity,
    ActivityEntry,
    BackupPlan,
    Gradable,
    NotGradable,
    SectionEntry,
    SectionInfo,
)
from csvtocourse.schema import ACTIVITY_TYPES, ASSIGN_PLUGIN_CONFIGS

logger = logging.getLogger(__name__)

STAGING_PREFIX = "csvtocourse"

# CSV column -> default time of day for date-only values
DATE_COLUMNS = (
    ("date_start", "00:00"),
    ("date_end", "23:59"),
    ("date_cutoff", "23:59"),
)


@dataclass
class GenerationContext:
    """State of one generation run."""
    now: int
    ids: IdAllocator = field(default_factory=IdAllocator)


def _cell(row: Row, column: str) -> str:
    return (row.get(column) or "").strip()


def _section_number(row: Row, row_number: int) -> int:
    value = _cell(row, "section_id")
    try:
        return int(value)
    except ValueError:
        raise invalid_section_error(row_number, value)


class MbzGenerator:
    """
    Builds Moodle 2 course backups from CSV rows.

    Args:
        config: Backup version/release, wwwroot, staging root and content format
        clock: Returns the current time in seconds; called once per run
    """

    def __init__(self, config: Optional[ConverterConfig] = None,
                 clock: Callable[[], float] = time.time):
        self.config = config or ConverterConfig()
        self.clock = clock

    # ========================================================================
    # Public API
    # ========================================================================

    def generate(self, rows: Sequence[Row], fullname: str, shortname: str) -> str:
        """
        Build the backup for rows and write it to a new staging directory.

        Returns:
            Staging id: the directory name under config.staging_root()

        Raises:
            InvalidFormatError: no rows, or a non-integer section_id
            StagingWriteError: staging directory or a file could not be written
        """
        plan = self.build(rows, fullname, shortname)
        return self.write_plan(plan)

    def build(self, rows: Sequence[Row], fullname: str, shortname: str) -> BackupPlan:
        """Build every document of the backup in memory."""
        if all(is_blank_row(row) for row in rows):
            raise empty_csv_error("<rows>")

        ctx = GenerationContext(now=int(self.clock()))
        plan = BackupPlan(now=ctx.now, fullname=fullname.strip(), shortname=shortname.strip())

        sections = self._collect_sections(rows, ctx)
        plan.sections = list(sections.values())

        for row_number, row in enumerate(rows, start=1):
            if is_blank_row(row):
                continue
            activity = self._build_activity(row, row_number, sections, ctx, plan)
            if activity is not None:
                plan.activities.append(activity)

        for section in plan.sections:
            plan.add(f"{section.directory}/section.xml", xb.build_section_xml(section, ctx.now))
            plan.add(f"{section.directory}/inforef.xml", xb.build_inforef_xml())

        self._add_course_documents(plan)
        self._add_root_documents(plan)

        logger.info(
            "Built %d documents: %d section(s), %d activit(ies), %d warning(s)",
            len(plan.documents), len(plan.sections), len(plan.activities), len(plan.warnings),
        )
        return plan

    def write_plan(self, plan: BackupPlan) -> str:
        """Write a plan under a new, uniquely named staging directory."""
        root = Path(self.config.staging_root())
        try:
            staging = Path(tempfile.mkdtemp(prefix=f"{STAGING_PREFIX}_{plan.now}_", dir=root))
        except OSError as e:
            raise staging_write_error(root, e)

        for rel_path, xml in plan.documents.items():
            target = staging / rel_path
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(xml, encoding="utf-8")
            except OSError as e:
                raise staging_write_error(target, e)

        logger.info("Wrote %d files to %s", len(plan.documents), staging)
        return staging.name

    # ========================================================================
    # Sections and activities
    # ========================================================================

    def _collect_sections(self, rows: Sequence[Row], ctx: GenerationContext) -> Dict[int, SectionInfo]:
        """Distinct section numbers in first-seen order, ids allocated in that order."""
        sections: Dict[int, SectionInfo] = {}
        for row_number, row in enumerate(rows, start=1):
            if is_blank_row(row):
                continue
            number = _section_number(row, row_number)
            if number not in sections:
                sections[number] = SectionInfo(
                    number=number,
                    section_id=ctx.ids.next_section(),
                    name=_cell(row, "section_name"),
                )
        return sections

    def _render_content(self, text: str) -> str:
        if self.config.content_format == "markdown" and text:
            return markdown.markdown(text)
        return text

    def _normalize_dates(self, row: Row, row_number: int, plan: BackupPlan) -> List[str]:
        values = []
        for column, default_time in DATE_COLUMNS:
            raw = _cell(row, column)
            ts = normalize_date(raw, default_time)
            if raw and ts == "0" and raw != "0":
                plan.warnings.append(GenerationWarning(
                    kind=WarningKind.DATE_PARSE_FAILURE,
                    message=f"{column} {raw!r} could not be parsed; left unset",
                    row_number=row_number,
                ))
            values.append(ts)
        return values

    def _build_activity(self, row: Row, row_number: int, sections: Dict[int, SectionInfo],
                        ctx: GenerationContext, plan: BackupPlan) -> Optional[Activity]:
        kind = _cell(row, "activity_type").lower()
        name = _cell(row, "activity_name")
        if not kind:
            # Section-only row
            return None

        if kind not in ACTIVITY_TYPES:
            warning = GenerationWarning(
                kind=WarningKind.UNRECOGNIZED_ACTIVITY_TYPE,
                message=f"Unknown activity type '{kind}' - skipping '{name}'",
                row_number=row_number,
            )
            logger.warning("%s", warning)
            plan.warnings.append(warning)
            return None

        activity_type = ACTIVITY_TYPES[kind]
        section = sections[_section_number(row, row_number)]
        start, end, cutoff = self._normalize_dates(row, row_number, plan)

        activity = Activity(
            module_id=ctx.ids.next_module(),
            activity_id=ctx.ids.next_activity(),
            context_id=ctx.ids.next_context(),
            modulename=kind,
            name=name,
            section_id=section.section_id,
            section_number=section.number,
            dates=resolve_dates(kind, start, end, cutoff, ctx.now),
            content=self._render_content(_cell(row, "content_text")),
            url=_cell(row, "source_url_path"),
        )
        if activity_type.gradable:
            activity.grade = Gradable(ctx.ids.next_grade_item())
        else:
            activity.grade = NotGradable()

        plugin_config_ids: List[int] = []
        if kind == "assign":
            plugin_config_ids = [ctx.ids.next_plugin_config() for _ in ASSIGN_PLUGIN_CONFIGS]

        section.sequence.append(activity.module_id)

        d = activity.directory
        plan.add(f"{d}/{kind}.xml", xb.build_activity_xml(activity, ctx.now, plugin_config_ids))
        plan.add(f"{d}/module.xml", xb.build_module_xml(activity, ctx.now, self.config.backup_version))
        plan.add(f"{d}/grades.xml", xb.build_grades_xml(activity, ctx.now))
        plan.add(f"{d}/grade_history.xml", xb.build_grade_history_xml())
        plan.add(f"{d}/inforef.xml", xb.grade_inforef_xml(activity.grade))
        plan.add(f"{d}/roles.xml", xb.build_roles_xml())
        if activity_type.grading_areas:
            plan.add(f"{d}/grading.xml", xb.build_grading_xml(activity.activity_id))

        logger.debug("Row %d: %s '%s' -> %s", row_number, kind, name, d)
        return activity

    # ========================================================================
    # Course and root documents
    # ========================================================================

    def _add_course_documents(self, plan: BackupPlan) -> None:
        plan.add("course/course.xml", xb.build_course_xml(plan.fullname, plan.shortname, plan.now))
        plan.add("course/enrolments.xml", xb.build_enrolments_xml(plan.now))
        plan.add("course/roles.xml", xb.build_roles_xml())
        plan.add("course/inforef.xml", xb.build_course_inforef_xml())
        plan.add("course/completiondefaults.xml", xb.empty_document("course_completion_defaults"))

    def _add_root_documents(self, plan: BackupPlan) -> None:
        activities = [
            ActivityEntry(a.module_id, a.section_id, a.modulename, a.name, a.directory)
            for a in plan.activities
        ]
        sections = [SectionEntry(s.section_id, s.name, s.directory) for s in plan.sections]

        plan.add("moodle_backup.xml", xb.build_moodle_backup_xml(
            plan.fullname,
            plan.shortname,
            activities,
            sections,
            plan.now,
            backup_version=self.config.backup_version,
            backup_release=self.config.backup_release,
            wwwroot=self.config.wwwroot,
        ))
        for filename, root_tag in xb.EMPTY_ROOT_DOCUMENTS.items():
            plan.add(filename, xb.empty_document(root_tag))
        plan.add("gradebook.xml", xb.build_gradebook_xml(plan.now))
        plan.add("grade_history.xml", xb.build_grade_history_xml())
        plan.add("groups.xml", xb.build_groups_xml())
        plan.add("roles.xml", xb.build_roles_definition_xml())
