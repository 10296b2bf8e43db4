"""
xml_builders.py - One builder per Moodle backup document

Every builder is a plain function of its arguments: ids, names, and the
run's "now" timestamp come in, a UTF-8 XML string comes out. Field lists
and defaults live in schema.py; the builders only decide which fields a
CSV row overrides.
"""

from __future__ import annotations

import hashlib
import re
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union
from xml.dom import minidom
from xml.etree import ElementTree as ET

from csvtocourse import schema
from csvtocourse.ids import (
    COURSE_CONTEXT_ID,
    COURSE_GRADE_ITEM_ID,
    COURSE_ID,
    GRADE_CATEGORY_ID,
    STUDENT_ROLE_ID,
    SYSTEM_CONTEXT_ID,
)
from csvtocourse.models import Activity, ActivityEntry, Gradable, GradeLink, SectionEntry, SectionInfo
from csvtocourse.schema import EMPTY, NULL_VALUE, FieldTable

FieldValue = Union[str, int, Callable[[ET.Element], None]]

# Characters XML 1.0 cannot carry, even escaped (stray \x0b, \x0c from word processors)
_ILLEGAL_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


# ============================================================================
# XML Helpers
# ============================================================================

def prettify_xml(elem: ET.Element) -> str:
    """Return a pretty-printed XML string with a UTF-8 declaration."""
    rough_string = ET.tostring(elem, encoding="unicode")
    reparsed = minidom.parseString(rough_string)
    return reparsed.toprettyxml(indent="  ", encoding="UTF-8").decode("utf-8")


def new_root(tag: str, **attribs) -> ET.Element:
    return ET.Element(tag, {k: str(v) for k, v in attribs.items()})


def add_text_element(parent: ET.Element, tag: str, text: Optional[str] = None, **attribs) -> ET.Element:
    """Add a child element; text None leaves it empty."""
    elem = ET.SubElement(parent, tag, {k: str(v) for k, v in attribs.items()})
    if text is not None:
        elem.text = _ILLEGAL_XML_CHARS.sub("", str(text))
    return elem


def fill_fields(parent: ET.Element, table: FieldTable,
                overrides: Optional[Mapping[str, FieldValue]] = None) -> None:
    """
    Append one child per table entry, in table order.

    An override replaces the default text; a callable override receives
    the created element and fills it in. Overrides must name fields that
    exist in the table.
    """
    overrides = dict(overrides or {})
    known = {name for name, _ in table}
    unknown = set(overrides) - known
    if unknown:
        raise KeyError(f"Fields not in table: {', '.join(sorted(unknown))}")

    for name, default in table:
        value = overrides.get(name, default)
        if callable(value):
            value(add_text_element(parent, name))
        else:
            add_text_element(parent, name, EMPTY if value is EMPTY else str(value))


def empty_document(root_tag: str, children: Iterable[str] = ()) -> str:
    """A document whose root holds only empty containers."""
    root = new_root(root_tag)
    for child in children:
        add_text_element(root, child)
    return prettify_xml(root)


# ============================================================================
# Activity documents
# ============================================================================

def _plugin_configs_filler(plugin_config_ids: Sequence[int]) -> Callable[[ET.Element], None]:
    if len(plugin_config_ids) != len(schema.ASSIGN_PLUGIN_CONFIGS):
        raise ValueError(
            f"Expected {len(schema.ASSIGN_PLUGIN_CONFIGS)} plugin config ids, "
            f"got {len(plugin_config_ids)}"
        )

    def fill(elem: ET.Element) -> None:
        for pid, (plugin, subtype, name, value) in zip(plugin_config_ids, schema.ASSIGN_PLUGIN_CONFIGS):
            cfg = add_text_element(elem, "plugin_config", id=pid)
            add_text_element(cfg, "plugin", plugin)
            add_text_element(cfg, "subtype", subtype)
            add_text_element(cfg, "name", name)
            add_text_element(cfg, "value", value)

    return fill


def activity_overrides(activity: Activity, now: int,
                       plugin_config_ids: Sequence[int] = ()) -> Dict[str, FieldValue]:
    """Fields of the activity body that come from the row or the clock."""
    dates = activity.dates
    values: Dict[str, FieldValue] = {
        "name": activity.name,
        "intro": activity.content,
        "timemodified": now,
    }

    kind = activity.modulename
    if kind == "url":
        if activity.url:
            values["externalurl"] = activity.url
    elif kind == "page":
        values["content"] = activity.content
    elif kind == "forum":
        values["duedate"] = dates.end
        values["cutoffdate"] = dates.cutoff
    elif kind == "assign":
        values.update({
            "duedate": dates.end,
            "cutoffdate": dates.cutoff,
            "gradingduedate": dates.grading_due,
            "allowsubmissionsfromdate": dates.start,
            "plugin_configs": _plugin_configs_filler(plugin_config_ids),
        })
    elif kind == "quiz":
        values.update({
            "timeopen": dates.start,
            "timeclose": dates.end,
            "timecreated": now,
        })
    elif kind == "feedback":
        values["timeopen"] = dates.start
        values["timeclose"] = dates.end
    return values


def build_activity_xml(activity: Activity, now: int, plugin_config_ids: Sequence[int] = ()) -> str:
    """Build <type>.xml: the <activity> wrapper around the module instance."""
    activity_type = schema.ACTIVITY_TYPES[activity.modulename]
    root = new_root(
        "activity",
        id=activity.activity_id,
        moduleid=activity.module_id,
        modulename=activity.modulename,
        contextid=activity.context_id,
    )
    body = add_text_element(root, activity.modulename, id=activity.activity_id)
    fill_fields(body, activity_type.fields, activity_overrides(activity, now, plugin_config_ids))
    return prettify_xml(root)


def build_module_xml(activity: Activity, now: int, backup_version: str) -> str:
    """Build module.xml, the course-module wrapper shared by every type."""
    activity_type = schema.ACTIVITY_TYPES[activity.modulename]
    root = new_root("module", id=activity.module_id, version=backup_version)
    fill_fields(root, schema.MODULE_FIELDS, {
        "modulename": activity.modulename,
        "sectionid": activity.section_id,
        "sectionnumber": activity.section_number,
        "added": now,
        "showdescription": "1" if activity_type.show_description else "0",
    })
    return prettify_xml(root)


def build_grades_xml(activity: Activity, now: int) -> str:
    """Build grades.xml; empty containers unless the activity is gradable."""
    root = new_root("activity_gradebook")
    items = add_text_element(root, "grade_items")
    link = activity.grade
    if isinstance(link, Gradable):
        item = add_text_element(items, "grade_item", id=link.grade_item_id)
        fill_fields(item, schema.ACTIVITY_GRADE_ITEM_FIELDS, {
            "categoryid": GRADE_CATEGORY_ID,
            "itemname": activity.name,
            "itemmodule": activity.modulename,
            "iteminstance": activity.activity_id,
            "timecreated": now,
            "timemodified": now,
        })
    add_text_element(root, "grade_letters")
    return prettify_xml(root)


def build_grade_history_xml() -> str:
    return empty_document("grade_history", ["grade_grades"])


def build_roles_xml() -> str:
    return empty_document("roles", ["role_overrides", "role_assignments"])


def build_inforef_xml(grade_item_ids: Iterable[int] = (), role_ids: Iterable[int] = ()) -> str:
    """
    Build inforef.xml, the list of ids a directory refers to outside itself.

    With no ids this is the bare <inforef/> the schema still requires.
    """
    root = new_root("inforef")
    grade_item_ids = list(grade_item_ids)
    role_ids = list(role_ids)
    if grade_item_ids:
        ref = add_text_element(root, "grade_itemref")
        for giid in grade_item_ids:
            gi = add_text_element(ref, "grade_item")
            add_text_element(gi, "id", str(giid))
    if role_ids:
        ref = add_text_element(root, "roleref")
        for rid in role_ids:
            r = add_text_element(ref, "role")
            add_text_element(r, "id", str(rid))
    return prettify_xml(root)


def grade_inforef_xml(link: GradeLink) -> str:
    if isinstance(link, Gradable):
        return build_inforef_xml(grade_item_ids=[link.grade_item_id])
    return build_inforef_xml()


def build_grading_xml(activity_id: int) -> str:
    """Build grading.xml: the submissions grading area, no advanced method."""
    root = new_root("areas")
    area = add_text_element(root, "area", id=activity_id)
    add_text_element(area, "areaname", "submissions")
    add_text_element(area, "activemethod", NULL_VALUE)
    add_text_element(area, "definitions")
    return prettify_xml(root)


# ============================================================================
# Section documents
# ============================================================================

def build_section_xml(section: SectionInfo, now: int) -> str:
    root = new_root("section", id=section.section_id)
    fill_fields(root, schema.SECTION_FIELDS, {
        "number": section.number,
        "name": section.name,
        "sequence": ",".join(str(mid) for mid in section.sequence),
        "timemodified": now,
    })
    return prettify_xml(root)


# ============================================================================
# Course-level documents
# ============================================================================

def build_course_xml(fullname: str, shortname: str, now: int) -> str:
    root = new_root("course", id=COURSE_ID, contextid=COURSE_CONTEXT_ID)
    fill_fields(root, schema.COURSE_FIELDS, {
        "shortname": shortname,
        "fullname": fullname,
        "startdate": now,
        "enddate": now + schema.COURSE_LENGTH_SECONDS,
        "timecreated": now,
        "timemodified": now,
    })
    category = add_text_element(root, "category", id=1)
    add_text_element(category, "name", "Default")
    add_text_element(category, "description", "")
    add_text_element(root, "tags")
    add_text_element(root, "customfields")

    options = add_text_element(root, "courseformatoptions")
    for name, value in schema.COURSE_FORMAT_OPTIONS:
        opt = add_text_element(options, "courseformatoption")
        add_text_element(opt, "format", schema.COURSE_FORMAT)
        add_text_element(opt, "sectionid", "0")
        add_text_element(opt, "name", name)
        add_text_element(opt, "value", value)
    return prettify_xml(root)


def build_enrolments_xml(now: int) -> str:
    """Build enrolments.xml with the manual, guest and self methods."""
    root = new_root("enrolments")
    enrols = add_text_element(root, "enrols")
    for method in schema.ENROL_METHODS:
        enrol = add_text_element(enrols, "enrol", id=method.id)
        overrides: Dict[str, FieldValue] = {
            "enrol": method.method,
            "status": method.status,
            "roleid": method.role_id,
            "timecreated": now,
            "timemodified": now,
        }
        if method.password is not None:
            overrides["password"] = method.password
        overrides.update(dict(method.custom_ints))
        fill_fields(enrol, schema.ENROL_FIELDS, overrides)
    return prettify_xml(root)


def build_course_inforef_xml() -> str:
    return build_inforef_xml(role_ids=[STUDENT_ROLE_ID])


# ============================================================================
# Root-level documents
# ============================================================================

# Root documents that are only an empty root element
EMPTY_ROOT_DOCUMENTS = {
    "files.xml": "files",
    "completion.xml": "course_completion",
    "scales.xml": "scales_definition",
    "outcomes.xml": "outcomes_definition",
    "questions.xml": "question_categories",
}


def build_groups_xml() -> str:
    root = new_root("groups")
    add_text_element(root, "groupcustomfields")
    groupings = add_text_element(root, "groupings")
    add_text_element(groupings, "groupingcustomfields")
    return prettify_xml(root)


def build_roles_definition_xml() -> str:
    root = new_root("roles_definition")
    role = add_text_element(root, "role", id=STUDENT_ROLE_ID)
    fill_fields(role, schema.STUDENT_ROLE_FIELDS)
    return prettify_xml(root)


def build_gradebook_xml(now: int) -> str:
    """Build gradebook.xml: the course grade category and course total item."""
    root = new_root("gradebook")
    add_text_element(root, "attributes")

    categories = add_text_element(root, "grade_categories")
    category = add_text_element(categories, "grade_category", id=GRADE_CATEGORY_ID)
    fill_fields(category, schema.GRADE_CATEGORY_FIELDS, {
        "path": f"/{GRADE_CATEGORY_ID}/",
        "timecreated": now,
        "timemodified": now,
    })

    items = add_text_element(root, "grade_items")
    item = add_text_element(items, "grade_item", id=COURSE_GRADE_ITEM_ID)
    fill_fields(item, schema.COURSE_GRADE_ITEM_FIELDS, {
        "iteminstance": GRADE_CATEGORY_ID,
        "timecreated": now,
        "timemodified": now,
    })

    add_text_element(root, "grade_letters")
    settings = add_text_element(root, "grade_settings")
    setting = add_text_element(settings, "grade_setting", id="")
    add_text_element(setting, "name", "minmaxtouse")
    add_text_element(setting, "value", "1")
    return prettify_xml(root)


def backup_filename(shortname: str) -> str:
    return f"backup-moodle2-course-{COURSE_ID}-{shortname.replace(' ', '_')}.mbz"


def _add_setting(settings: ET.Element, level: str, name: str, value: str,
                 scope: Optional[str] = None, scope_value: Optional[str] = None) -> None:
    s = add_text_element(settings, "setting")
    add_text_element(s, "level", level)
    if scope:
        add_text_element(s, scope, scope_value)
    add_text_element(s, "name", name)
    add_text_element(s, "value", value)


def build_moodle_backup_xml(
    fullname: str,
    shortname: str,
    activities: List[ActivityEntry],
    sections: List[SectionEntry],
    now: int,
    backup_version: str = "2024100700",
    backup_release: str = "4.5",
    wwwroot: str = "https://localhost",
) -> str:
    """
    Build moodle_backup.xml, the manifest the restore engine reads first.

    Lists every activity and section with its directory, then the settings
    that mark each one included (without user data).
    """
    name = backup_filename(shortname)
    root = new_root("moodle_backup")
    info = add_text_element(root, "information")

    add_text_element(info, "name", name)
    add_text_element(info, "moodle_version", backup_version)
    add_text_element(info, "moodle_release", backup_release)
    add_text_element(info, "backup_version", backup_version)
    add_text_element(info, "backup_release", backup_release)
    add_text_element(info, "backup_date", str(now))
    add_text_element(info, "mnet_remoteusers", "0")
    add_text_element(info, "include_files", "0")
    add_text_element(info, "include_file_references_to_external_content", "0")
    add_text_element(info, "original_wwwroot", wwwroot)
    add_text_element(info, "original_site_identifier_hash", hashlib.md5(str(now).encode()).hexdigest())
    add_text_element(info, "original_course_id", str(COURSE_ID))
    add_text_element(info, "original_course_format", schema.COURSE_FORMAT)
    add_text_element(info, "original_course_fullname", fullname)
    add_text_element(info, "original_course_shortname", shortname)
    add_text_element(info, "original_course_startdate", str(now))
    add_text_element(info, "original_course_enddate", str(now + schema.COURSE_LENGTH_SECONDS))
    add_text_element(info, "original_course_contextid", str(COURSE_CONTEXT_ID))
    add_text_element(info, "original_system_contextid", str(SYSTEM_CONTEXT_ID))

    details = add_text_element(info, "details")
    detail = add_text_element(details, "detail",
                              backup_id=hashlib.md5(f"{now}{COURSE_ID}".encode()).hexdigest())
    fill_fields(detail, schema.BACKUP_DETAIL_FIELDS)

    contents = add_text_element(info, "contents")
    acts = add_text_element(contents, "activities")
    for a in activities:
        act = add_text_element(acts, "activity")
        add_text_element(act, "moduleid", str(a.module_id))
        add_text_element(act, "sectionid", str(a.section_id))
        add_text_element(act, "modulename", a.modulename)
        add_text_element(act, "title", a.title)
        add_text_element(act, "directory", a.directory)
        add_text_element(act, "insubsection", "")

    secs = add_text_element(contents, "sections")
    for s in sections:
        sec = add_text_element(secs, "section")
        add_text_element(sec, "sectionid", str(s.section_id))
        add_text_element(sec, "title", s.title)
        add_text_element(sec, "directory", s.directory)
        add_text_element(sec, "parentcmid", "")
        add_text_element(sec, "modname", "")

    course = add_text_element(contents, "course")
    add_text_element(course, "courseid", str(COURSE_ID))
    add_text_element(course, "title", fullname)
    add_text_element(course, "directory", "course")

    settings = add_text_element(info, "settings")
    for setting_name, value in schema.ROOT_SETTINGS:
        _add_setting(settings, "root", setting_name, name if setting_name == "filename" else value)

    for s in sections:
        for suffix, value in (("included", "1"), ("userinfo", "0")):
            _add_setting(settings, "section", f"{s.setting_key}_{suffix}", value,
                         scope="section", scope_value=s.setting_key)

    for a in activities:
        for suffix, value in (("included", "1"), ("userinfo", "0")):
            _add_setting(settings, "activity", f"{a.setting_key}_{suffix}", value,
                         scope="activity", scope_value=a.setting_key)

    return prettify_xml(root)
