# errors.py
"""
Exception classes and row-level warning records for csvtocourse

All exceptions include:
- Clear error description
- Actionable suggestions
- Relevant context

Fatal problems (unreadable CSV, missing columns, unwritable staging area)
raise. Row-level anomalies (unknown activity type, unparseable date) are
collected as GenerationWarning records and never abort a run.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


class CsvToCourseError(Exception):
    """Base exception for all csvtocourse errors"""

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        self.message = message
        self.suggestion = suggestion
        self.context = context or {}
        self.cause = cause
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error with all details"""
        lines = [
            "",
            "=" * 70,
            f"[x] {self.__class__.__name__}",
            "=" * 70,
            "",
            self.message,
        ]

        if self.context:
            lines.append("")
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        if self.suggestion:
            lines.append("")
            lines.append("Suggestion:")
            lines.append(f"  {self.suggestion}")

        if self.cause:
            lines.append("")
            lines.append(f"Caused by: {type(self.cause).__name__}: {self.cause}")

        lines.append("")
        lines.append("=" * 70)
        lines.append("")

        return "\n".join(lines)


class InvalidFormatError(CsvToCourseError):
    """CSV input is unreadable, malformed, or has no usable rows"""
    pass


class StagingWriteError(CsvToCourseError):
    """Staging directory or one of its files could not be written"""
    pass


class ConfigurationError(CsvToCourseError):
    """Configuration is missing or invalid"""
    pass


# ============================================================================
# Row-level warnings (non-fatal)
# ============================================================================

class WarningKind(Enum):
    UNRECOGNIZED_ACTIVITY_TYPE = "unrecognized_activity_type"
    DATE_PARSE_FAILURE = "date_parse_failure"


@dataclass
class GenerationWarning:
    """A row-level anomaly that was skipped or degraded, not fatal"""
    kind: WarningKind
    message: str
    row_number: Optional[int] = None

    def __str__(self):
        where = f"row {self.row_number}: " if self.row_number is not None else ""
        return f"{where}{self.message}"


# Specific error factory functions

def missing_columns_error(source: Union[str, Path], missing: List[str], header: List[str]) -> InvalidFormatError:
    """Create error for a CSV header lacking required columns"""
    return InvalidFormatError(
        message=f"CSV header is missing required column(s): {', '.join(missing)}",
        suggestion=(
            "The first line of the file must name these columns:\n"
            "  section_id,section_name,activity_type,activity_name\n\n"
            "Optional columns: content_text, source_url_path,\n"
            "  date_start, date_end, date_cutoff\n\n"
            "Run: csvtocourse sample  to get a working example"
        ),
        context={
            "file": str(source),
            "missing_columns": missing,
            "found_columns": header,
        }
    )


def empty_csv_error(source: Union[str, Path]) -> InvalidFormatError:
    """Create error for a CSV with no header or no usable rows"""
    return InvalidFormatError(
        message="The CSV file is empty or has no valid rows",
        suggestion="Add at least one row below the header line",
        context={"file": str(source)}
    )


def invalid_section_error(row_number: int, value: str) -> InvalidFormatError:
    """Create error for a section_id cell that is not an integer"""
    return InvalidFormatError(
        message=f"section_id must be an integer, got {value!r}",
        suggestion="Use 0 for the general section and 1, 2, 3... for the rest",
        context={"row": row_number, "section_id": value}
    )


def staging_write_error(path: Path, cause: Exception) -> StagingWriteError:
    """Create error when the staging tree cannot be written"""
    return StagingWriteError(
        message=f"Could not write backup files to {path}",
        suggestion=(
            "Check that the staging directory exists and is writable.\n"
            "Set a different one with CSVTOCOURSE_STAGING_DIR or staging_dir\n"
            "in csvtocourse.yaml"
        ),
        context={"path": str(path)},
        cause=cause
    )
