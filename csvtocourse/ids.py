"""
ids.py - Internal id allocation for one generation run

Moodle backups cross-reference sections, course modules, activity
instances, contexts, grade items and assignment plugin configs by numeric
id. Each class of id has its own counter; values are handed out once and
never reused. A fresh IdAllocator is created for every run.
"""

from dataclasses import dataclass

# Fixed ids for the single course-level entities
COURSE_ID = 1
COURSE_CONTEXT_ID = 100
SYSTEM_CONTEXT_ID = 1
GRADE_CATEGORY_ID = 1
COURSE_GRADE_ITEM_ID = 100
STUDENT_ROLE_ID = 5

# Counter bases; kept clear of the fixed ids above
SECTION_BASE = 1000
MODULE_BASE = 1
ACTIVITY_BASE = 1
CONTEXT_BASE = 101
GRADE_ITEM_BASE = 101
PLUGIN_CONFIG_BASE = 500


@dataclass
class IdAllocator:
    """Post-increment counters, one per id namespace."""
    section: int = SECTION_BASE
    module: int = MODULE_BASE
    activity: int = ACTIVITY_BASE
    context: int = CONTEXT_BASE
    grade_item: int = GRADE_ITEM_BASE
    plugin_config: int = PLUGIN_CONFIG_BASE

    def _take(self, name: str) -> int:
        value = getattr(self, name)
        setattr(self, name, value + 1)
        return value

    def next_section(self) -> int:
        return self._take("section")

    def next_module(self) -> int:
        return self._take("module")

    def next_activity(self) -> int:
        return self._take("activity")

    def next_context(self) -> int:
        return self._take("context")

    def next_grade_item(self) -> int:
        return self._take("grade_item")

    def next_plugin_config(self) -> int:
        return self._take("plugin_config")
