"""
models.py - Entities of one generation run

Everything here is created fresh by MbzGenerator.build() and thrown away
once the documents are written.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Union

from csvtocourse.dates import ResolvedDates
from csvtocourse.errors import GenerationWarning


# ============================================================================
# Grade linkage
# ============================================================================

@dataclass(frozen=True)
class Gradable:
    """Activity owns a gradebook item."""
    grade_item_id: int


@dataclass(frozen=True)
class NotGradable:
    """Activity has no gradebook item; grade documents are empty shells."""


GradeLink = Union[Gradable, NotGradable]


# ============================================================================
# Course structure
# ============================================================================

@dataclass
class SectionInfo:
    """A course section and the module ids shown in it, in order"""
    number: int
    section_id: int
    name: str
    sequence: List[int] = field(default_factory=list)

    @property
    def directory(self) -> str:
        return f"sections/section_{self.section_id}"


@dataclass
class Activity:
    """One activity row, with its three ids and resolved dates"""
    activity_id: int
    module_id: int
    context_id: int
    modulename: str
    name: str
    section_id: int
    section_number: int
    dates: ResolvedDates
    content: str = ""
    url: str = ""
    grade: GradeLink = field(default_factory=NotGradable)

    @property
    def directory(self) -> str:
        return f"activities/{self.modulename}_{self.module_id}"


# ============================================================================
# moodle_backup.xml summaries
# ============================================================================

@dataclass(frozen=True)
class ActivityEntry:
    module_id: int
    section_id: int
    modulename: str
    title: str
    directory: str

    @property
    def setting_key(self) -> str:
        return f"{self.modulename}_{self.module_id}"


@dataclass(frozen=True)
class SectionEntry:
    section_id: int
    title: str
    directory: str

    @property
    def setting_key(self) -> str:
        return f"section_{self.section_id}"


# ============================================================================
# Build output
# ============================================================================

@dataclass
class BackupPlan:
    """All documents of one backup, keyed by path relative to the staging root"""
    now: int
    fullname: str
    shortname: str
    documents: Dict[str, str] = field(default_factory=dict)
    sections: List[SectionInfo] = field(default_factory=list)
    activities: List[Activity] = field(default_factory=list)
    warnings: List[GenerationWarning] = field(default_factory=list)

    def add(self, path: str, xml: str) -> None:
        self.documents[path] = xml
