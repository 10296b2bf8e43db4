"""
schema.py - Field tables for the Moodle 2 backup format (backup 4.5)

Each table is an ordered tuple of (element, default) pairs in the order the
restore engine reads them. A default of EMPTY emits an element with no
text (a container the schema requires). Builders override only the
fields that come from the CSV row or the run clock; everything else keeps
its default. Leaving a field out is not the same as sending its default,
so the tables list every field.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

# Moodle backup null placeholder
NULL_VALUE = "$@NULL@$"

# Element present with no text node
EMPTY = None

FieldTable = Tuple[Tuple[str, Optional[str]], ...]


# ============================================================================
# Activity bodies
# ============================================================================

LABEL_FIELDS: FieldTable = (
    ("name", ""),
    ("intro", ""),
    ("introformat", "1"),
    ("timemodified", "0"),
)

URL_FIELDS: FieldTable = (
    ("name", ""),
    ("intro", ""),
    ("introformat", "1"),
    ("externalurl", "https://example.com"),
    ("display", "0"),
    ("displayoptions", 'a:1:{s:10:"printintro";i:1;}'),
    ("parameters", "a:0:{}"),
    ("timemodified", "0"),
)

RESOURCE_FIELDS: FieldTable = (
    ("name", ""),
    ("intro", ""),
    ("introformat", "1"),
    ("tobemigrated", "0"),
    ("legacyfiles", "0"),
    ("legacyfileslast", NULL_VALUE),
    ("display", "0"),
    ("displayoptions", 'a:1:{s:10:"printintro";i:0;}'),
    ("filterfiles", "0"),
    ("revision", "1"),
    ("timemodified", "0"),
)

PAGE_FIELDS: FieldTable = (
    ("name", ""),
    ("intro", ""),
    ("introformat", "1"),
    ("content", ""),
    ("contentformat", "1"),
    ("legacyfiles", "0"),
    ("legacyfileslast", NULL_VALUE),
    ("display", "5"),
    ("displayoptions", 'a:2:{s:10:"printintro";s:1:"0";s:17:"printlastmodified";s:1:"1";}'),
    ("revision", "1"),
    ("timemodified", "0"),
)

FORUM_FIELDS: FieldTable = (
    ("type", "general"),
    ("name", ""),
    ("intro", ""),
    ("introformat", "1"),
    ("duedate", "0"),
    ("cutoffdate", "0"),
    ("assessed", "0"),
    ("assesstimestart", "0"),
    ("assesstimefinish", "0"),
    ("scale", "0"),
    ("maxbytes", "0"),
    ("maxattachments", "9"),
    ("forcesubscribe", "0"),
    ("trackingtype", "1"),
    ("rsstype", "0"),
    ("rssarticles", "0"),
    ("timemodified", "0"),
    ("warnafter", "0"),
    ("blockafter", "0"),
    ("blockperiod", "0"),
    ("completiondiscussions", "0"),
    ("completionreplies", "0"),
    ("completionposts", "0"),
    ("displaywordcount", "0"),
    ("lockdiscussionafter", "0"),
    ("grade_forum", "0"),
    ("discussions", EMPTY),
    ("subscriptions", EMPTY),
    ("digests", EMPTY),
    ("readposts", EMPTY),
    ("trackedprefs", EMPTY),
    ("grades", EMPTY),
)

ASSIGN_FIELDS: FieldTable = (
    ("name", ""),
    ("intro", ""),
    ("introformat", "1"),
    ("alwaysshowdescription", "1"),
    ("submissiondrafts", "0"),
    ("sendnotifications", "0"),
    ("sendlatenotifications", "0"),
    ("sendstudentnotifications", "1"),
    ("duedate", "0"),
    ("cutoffdate", "0"),
    ("gradingduedate", "0"),
    ("allowsubmissionsfromdate", "0"),
    ("grade", "100"),
    ("timemodified", "0"),
    ("completionsubmit", "1"),
    ("requiresubmissionstatement", "0"),
    ("teamsubmission", "0"),
    ("requireallteammemberssubmit", "0"),
    ("teamsubmissiongroupingid", "0"),
    ("blindmarking", "0"),
    ("hidegrader", "0"),
    ("revealidentities", "0"),
    ("attemptreopenmethod", "untilpass"),
    ("maxattempts", "1"),
    ("markingworkflow", "0"),
    ("markingallocation", "0"),
    ("markinganonymous", "0"),
    ("preventsubmissionnotingroup", "0"),
    ("activity", ""),
    ("activityformat", "1"),
    ("timelimit", "0"),
    ("submissionattachments", "0"),
    ("gradepenalty", "0"),
    ("userflags", EMPTY),
    ("submissions", EMPTY),
    ("grades", EMPTY),
    ("plugin_configs", EMPTY),
    ("overrides", EMPTY),
)

# (plugin, subtype, name, value)
ASSIGN_PLUGIN_CONFIGS = (
    ("onlinetext", "assignsubmission", "enabled", "1"),
    ("onlinetext", "assignsubmission", "wordlimit", "0"),
    ("onlinetext", "assignsubmission", "wordlimitenabled", "0"),
    ("file", "assignsubmission", "enabled", "1"),
    ("file", "assignsubmission", "maxfilesubmissions", "20"),
    ("file", "assignsubmission", "maxsubmissionsizebytes", "0"),
    ("file", "assignsubmission", "filetypeslist", ""),
    ("comments", "assignsubmission", "enabled", "1"),
    ("comments", "assignfeedback", "enabled", "1"),
    ("comments", "assignfeedback", "commentinline", "0"),
    ("editpdf", "assignfeedback", "enabled", "1"),
    ("offline", "assignfeedback", "enabled", "0"),
    ("file", "assignfeedback", "enabled", "0"),
)

QUIZ_FIELDS: FieldTable = (
    ("name", ""),
    ("intro", ""),
    ("introformat", "1"),
    ("timeopen", "0"),
    ("timeclose", "0"),
    ("timelimit", "0"),
    ("overduehandling", "autosubmit"),
    ("graceperiod", "0"),
    ("preferredbehaviour", "deferredfeedback"),
    ("canredoquestions", "0"),
    ("attempts_number", "0"),
    ("attemptonlast", "0"),
    ("grademethod", "1"),
    ("decimalpoints", "2"),
    ("questiondecimalpoints", "-1"),
    ("reviewattempt", "69904"),
    ("reviewcorrectness", "69904"),
    ("reviewmaxmarks", "69904"),
    ("reviewmarks", "69904"),
    ("reviewspecificfeedback", "69904"),
    ("reviewgeneralfeedback", "69904"),
    ("reviewrightanswer", "69904"),
    ("reviewoverallfeedback", "4368"),
    ("questionsperpage", "1"),
    ("navmethod", "free"),
    ("shuffleanswers", "1"),
    ("sumgrades", "0.00000"),
    ("grade", "10.00000"),
    ("timecreated", "0"),
    ("timemodified", "0"),
    ("password", ""),
    ("subnet", ""),
    ("browsersecurity", "-"),
    ("delay1", "0"),
    ("delay2", "0"),
    ("showuserpicture", "0"),
    ("showblocks", "0"),
    ("completionattemptsexhausted", "0"),
    ("completionminattempts", "0"),
    ("allowofflineattempts", "0"),
    ("question_instances", EMPTY),
    ("feedbacks", EMPTY),
    ("overrides", EMPTY),
    ("grades", EMPTY),
    ("attempts", EMPTY),
)

FEEDBACK_FIELDS: FieldTable = (
    ("name", ""),
    ("intro", ""),
    ("introformat", "1"),
    ("anonymous", "1"),
    ("email_notification", "0"),
    ("multiple_submit", "0"),
    ("autonumbering", "1"),
    ("site_after_submit", ""),
    ("page_after_submit", ""),
    ("page_after_submitformat", "1"),
    ("publish_stats", "0"),
    ("timeopen", "0"),
    ("timeclose", "0"),
    ("timemodified", "0"),
    ("completionsubmit", "0"),
    ("items", EMPTY),
    ("completeds", EMPTY),
)


@dataclass(frozen=True)
class ActivityType:
    """Everything that varies by activity type."""
    name: str
    fields: FieldTable
    gradable: bool = False
    grading_areas: bool = False
    show_description: bool = False


ACTIVITY_TYPES = {
    t.name: t for t in (
        ActivityType("label", LABEL_FIELDS, show_description=True),
        ActivityType("url", URL_FIELDS),
        ActivityType("resource", RESOURCE_FIELDS),
        ActivityType("page", PAGE_FIELDS),
        ActivityType("forum", FORUM_FIELDS),
        ActivityType("assign", ASSIGN_FIELDS, gradable=True, grading_areas=True),
        ActivityType("quiz", QUIZ_FIELDS, gradable=True),
        ActivityType("feedback", FEEDBACK_FIELDS),
    )
}

VALID_TYPES = tuple(ACTIVITY_TYPES)


# ============================================================================
# Course module wrapper (module.xml)
# ============================================================================

MODULE_FIELDS: FieldTable = (
    ("modulename", ""),
    ("sectionid", "0"),
    ("sectionnumber", "0"),
    ("idnumber", ""),
    ("added", "0"),
    ("score", "0"),
    ("indent", "0"),
    ("visible", "1"),
    ("visibleoncoursepage", "1"),
    ("visibleold", "1"),
    ("groupmode", "0"),
    ("groupingid", "0"),
    ("completion", "0"),
    ("completiongradeitemnumber", NULL_VALUE),
    ("completionpassgrade", "0"),
    ("completionview", "0"),
    ("completionexpected", "0"),
    ("availability", NULL_VALUE),
    ("showdescription", "0"),
    ("downloadcontent", "1"),
    ("lang", ""),
    ("tags", EMPTY),
)


# ============================================================================
# Grade items
# ============================================================================

ACTIVITY_GRADE_ITEM_FIELDS: FieldTable = (
    ("categoryid", "0"),
    ("itemname", ""),
    ("itemtype", "mod"),
    ("itemmodule", ""),
    ("iteminstance", "0"),
    ("itemnumber", "0"),
    ("iteminfo", NULL_VALUE),
    ("idnumber", ""),
    ("calculation", NULL_VALUE),
    ("gradetype", "1"),
    ("grademax", "100.00000"),
    ("grademin", "0.00000"),
    ("scaleid", NULL_VALUE),
    ("outcomeid", NULL_VALUE),
    ("gradepass", "0.00000"),
    ("multfactor", "1.00000"),
    ("plusfactor", "0.00000"),
    ("aggregationcoef", "0.00000"),
    ("aggregationcoef2", "1.00000"),
    ("weightoverride", "0"),
    ("sortorder", "2"),
    ("display", "0"),
    ("decimals", NULL_VALUE),
    ("hidden", "0"),
    ("locked", "0"),
    ("locktime", "0"),
    ("needsupdate", "0"),
    ("timecreated", "0"),
    ("timemodified", "0"),
    ("grade_grades", EMPTY),
)

COURSE_GRADE_ITEM_FIELDS: FieldTable = (
    ("categoryid", NULL_VALUE),
    ("itemname", NULL_VALUE),
    ("itemtype", "course"),
    ("itemmodule", NULL_VALUE),
    ("iteminstance", "0"),
    ("itemnumber", NULL_VALUE),
    ("iteminfo", NULL_VALUE),
    ("idnumber", NULL_VALUE),
    ("calculation", NULL_VALUE),
    ("gradetype", "1"),
    ("grademax", "100.00000"),
    ("grademin", "0.00000"),
    ("scaleid", NULL_VALUE),
    ("outcomeid", NULL_VALUE),
    ("gradepass", "0.00000"),
    ("multfactor", "1.00000"),
    ("plusfactor", "0.00000"),
    ("aggregationcoef", "0.00000"),
    ("aggregationcoef2", "0.00000"),
    ("weightoverride", "0"),
    ("sortorder", "1"),
    ("display", "0"),
    ("decimals", NULL_VALUE),
    ("hidden", "0"),
    ("locked", "0"),
    ("locktime", "0"),
    ("needsupdate", "0"),
    ("timecreated", "0"),
    ("timemodified", "0"),
    ("grade_grades", EMPTY),
)

GRADE_CATEGORY_FIELDS: FieldTable = (
    ("parent", NULL_VALUE),
    ("depth", "1"),
    ("path", ""),
    ("fullname", "?"),
    ("aggregation", "13"),
    ("keephigh", "0"),
    ("droplow", "0"),
    ("aggregateonlygraded", "1"),
    ("aggregateoutcomes", "0"),
    ("timecreated", "0"),
    ("timemodified", "0"),
    ("hidden", "0"),
)


# ============================================================================
# Sections and course
# ============================================================================

SECTION_FIELDS: FieldTable = (
    ("number", "0"),
    ("name", ""),
    ("summary", ""),
    ("summaryformat", "1"),
    ("sequence", ""),
    ("visible", "1"),
    ("availabilityjson", NULL_VALUE),
    ("component", NULL_VALUE),
    ("itemid", NULL_VALUE),
    ("timemodified", "0"),
)

COURSE_FORMAT = "topics"

COURSE_FIELDS: FieldTable = (
    ("shortname", ""),
    ("fullname", ""),
    ("idnumber", ""),
    ("summary", ""),
    ("summaryformat", "1"),
    ("format", COURSE_FORMAT),
    ("showgrades", "1"),
    ("newsitems", "0"),
    ("startdate", "0"),
    ("enddate", "0"),
    ("marker", "0"),
    ("maxbytes", "0"),
    ("legacyfiles", "0"),
    ("showreports", "0"),
    ("visible", "1"),
    ("groupmode", "0"),
    ("groupmodeforce", "0"),
    ("defaultgroupingid", "0"),
    ("lang", ""),
    ("theme", ""),
    ("timecreated", "0"),
    ("timemodified", "0"),
    ("requested", "0"),
    ("showactivitydates", "1"),
    ("showcompletionconditions", "1"),
    ("pdfexportfont", NULL_VALUE),
    ("enablecompletion", "1"),
    ("completionnotify", "0"),
)

# (name, value) course format options for the topics format
COURSE_FORMAT_OPTIONS = (
    ("coursedisplay", "0"),
    ("hiddensections", "1"),
)

COURSE_LENGTH_SECONDS = 365 * 86400


# ============================================================================
# Enrolment methods
# ============================================================================

@dataclass(frozen=True)
class EnrolMethod:
    id: int
    method: str
    status: int
    role_id: int
    custom_ints: Tuple[Tuple[str, str], ...] = ()
    # None -> NULL_VALUE
    password: Optional[str] = None


ENROL_METHODS = (
    EnrolMethod(1, "manual", 0, 5, (("customint1", "1"),)),
    EnrolMethod(2, "guest", 1, 0, password=""),
    EnrolMethod(3, "self", 1, 5, (
        ("customint1", "0"), ("customint2", "0"), ("customint3", "0"),
        ("customint4", "1"), ("customint5", "0"), ("customint6", "1"),
    )),
)

ENROL_FIELDS: FieldTable = (
    ("enrol", ""),
    ("status", "0"),
    ("name", NULL_VALUE),
    ("enrolperiod", "0"),
    ("enrolstartdate", "0"),
    ("enrolenddate", "0"),
    ("expirynotify", "0"),
    ("expirythreshold", "86400"),
    ("notifyall", "0"),
    ("password", NULL_VALUE),
    ("cost", NULL_VALUE),
    ("currency", NULL_VALUE),
    ("roleid", "0"),
    *((f"customint{i}", NULL_VALUE) for i in range(1, 9)),
    *((f"customchar{i}", NULL_VALUE) for i in range(1, 4)),
    *((f"customdec{i}", NULL_VALUE) for i in range(1, 3)),
    *((f"customtext{i}", NULL_VALUE) for i in range(1, 5)),
    ("timecreated", "0"),
    ("timemodified", "0"),
    ("user_enrolments", EMPTY),
)


# ============================================================================
# Root level
# ============================================================================

STUDENT_ROLE_FIELDS: FieldTable = (
    ("name", ""),
    ("shortname", "student"),
    ("nameincourse", NULL_VALUE),
    ("description", ""),
    ("sortorder", "5"),
    ("archetype", "student"),
)

BACKUP_DETAIL_FIELDS: FieldTable = (
    ("type", "course"),
    ("format", "moodle2"),
    ("interactive", "1"),
    ("mode", "70"),
    ("execution", "2"),
    ("executiontime", "0"),
)

# Root-level backup settings; "filename" is filled in per run
ROOT_SETTINGS = (
    ("filename", ""),
    ("users", "0"),
    ("anonymize", "0"),
    ("role_assignments", "0"),
    ("activities", "1"),
    ("blocks", "0"),
    ("files", "0"),
    ("filters", "0"),
    ("comments", "0"),
    ("badges", "0"),
    ("calendarevents", "0"),
    ("userscompletion", "0"),
    ("logs", "0"),
    ("grade_histories", "0"),
    ("groups", "0"),
    ("competencies", "0"),
    ("customfield", "0"),
    ("contentbankcontent", "0"),
    ("xapistate", "0"),
    ("legacyfiles", "1"),
)
