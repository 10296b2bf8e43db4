"""
validate.py - Check a course CSV before converting it

Usage:
    csvtocourse validate course.csv

Checks:
- File readable, header has the required columns
- section_id is an integer on every row
- activity_type is blank or one of the known types
- Activity rows have a name; url rows have a source_url_path
- Date cells parse
- A section number keeps the same name throughout

Nothing is written. Errors stop a conversion; warnings mark rows that
would be skipped or degraded.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from csvtocourse.csv_reader import Row, parse_csv
from csvtocourse.dates import normalize_date
from csvtocourse.errors import InvalidFormatError
from csvtocourse.icons import ERROR, INFO, SUCCESS, WARNING
from csvtocourse.schema import VALID_TYPES

DATE_COLUMNS = ("date_start", "date_end", "date_cutoff")


class Severity(Enum):
    ERROR = "error"      # Conversion will fail
    WARNING = "warning"  # Row skipped or value dropped
    INFO = "info"        # Probably unintended


@dataclass
class Issue:
    """A single validation issue"""
    message: str
    severity: Severity = Severity.ERROR
    row: Optional[int] = None
    suggestion: Optional[str] = None

    def __str__(self):
        icon = {"error": ERROR, "warning": WARNING, "info": INFO}[self.severity.value]
        loc = f"row {self.row}: " if self.row is not None else ""
        msg = f"  {icon} {loc}{self.message}"
        if self.suggestion:
            msg += f"\n    -> {self.suggestion}"
        return msg


@dataclass
class ValidationResult:
    """Results from validating one CSV file"""
    issues: List[Issue] = field(default_factory=list)
    rows_checked: int = 0

    @property
    def errors(self) -> List[Issue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[Issue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add(self, issue: Issue):
        self.issues.append(issue)

    def summary(self) -> str:
        e = len(self.errors)
        w = len(self.warnings)

        if e == 0 and w == 0:
            return f"{SUCCESS} All {self.rows_checked} rows valid!"

        parts = []
        if e > 0:
            parts.append(f"{e} error{'s' if e != 1 else ''}")
        if w > 0:
            parts.append(f"{w} warning{'s' if w != 1 else ''}")

        return f"Found {', '.join(parts)} in {self.rows_checked} rows checked."


class CsvValidator:
    """Validates a course CSV without generating anything"""

    def __init__(self, source: Union[str, Path]):
        self.source = source
        self.section_names: Dict[int, str] = {}

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        try:
            rows = parse_csv(self.source)
        except InvalidFormatError as e:
            result.add(Issue(e.message, suggestion=e.suggestion))
            return result

        if not rows:
            result.add(Issue("No data rows below the header"))
            return result

        for row_number, row in enumerate(rows, start=1):
            self._check_row(row_number, row, result)
            result.rows_checked += 1
        return result

    def _check_row(self, row_number: int, row: Row, result: ValidationResult):
        section = (row.get("section_id") or "").strip()
        try:
            number = int(section)
        except ValueError:
            result.add(Issue(
                f"section_id must be an integer, got {section!r}",
                row=row_number,
                suggestion="Use 0 for the general section and 1, 2, 3... for the rest",
            ))
        else:
            self._check_section_name(row_number, number, (row.get("section_name") or "").strip(), result)

        kind = (row.get("activity_type") or "").strip().lower()
        name = (row.get("activity_name") or "").strip()
        if not kind:
            return

        if kind not in VALID_TYPES:
            result.add(Issue(
                f"Unknown activity type '{kind}'; row will be skipped",
                severity=Severity.WARNING,
                row=row_number,
                suggestion=f"Use one of: {', '.join(VALID_TYPES)}",
            ))
            return

        if not name:
            result.add(Issue("Activity has no activity_name", Severity.WARNING, row_number))

        if kind == "url" and not (row.get("source_url_path") or "").strip():
            result.add(Issue(
                "url activity has no source_url_path; a placeholder link is used",
                Severity.WARNING,
                row_number,
            ))

        for column in DATE_COLUMNS:
            raw = (row.get(column) or "").strip()
            if raw and raw != "0" and normalize_date(raw) == "0":
                result.add(Issue(
                    f"{column} {raw!r} is not a date; it will be left unset",
                    Severity.WARNING,
                    row_number,
                    suggestion="Use YYYY-MM-DD or YYYY-MM-DD HH:MM",
                ))

    def _check_section_name(self, row_number: int, number: int, name: str, result: ValidationResult):
        first = self.section_names.setdefault(number, name)
        if name and first != name:
            result.add(Issue(
                f"Section {number} is named '{first}' earlier; '{name}' is ignored",
                Severity.INFO,
                row_number,
            ))


def validate_csv(source: Union[str, Path]) -> ValidationResult:
    """Validate a course CSV and return all issues found."""
    return CsvValidator(source).validate()
