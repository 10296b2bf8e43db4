"""
csv_reader.py - Read a course CSV into field-keyed rows

The first line is the header. Required columns:
    section_id, section_name, activity_type, activity_name
Optional columns:
    content_text, source_url_path, date_start, date_end, date_cutoff

Rows are returned in file order as Dict[str, str]. Short rows are padded
with "" and cells beyond the header are ignored. Blank lines and rows whose
cells are all blank are dropped.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Dict, Iterable, List, TextIO, Union

from csvtocourse.errors import InvalidFormatError, empty_csv_error, missing_columns_error

REQUIRED_COLUMNS = ["section_id", "section_name", "activity_type", "activity_name"]
OPTIONAL_COLUMNS = ["content_text", "source_url_path", "date_start", "date_end", "date_cutoff"]

BOM = "\ufeff"

Row = Dict[str, str]


def is_blank_row(cells) -> bool:
    """True for a blank line or a row of empty cells (",,,," from spreadsheets)"""
    values = cells.values() if isinstance(cells, dict) else cells
    return not any((c or "").strip() for c in values)


def _rows_from_reader(lines: Iterable[List[str]], source: Union[str, Path]) -> List[Row]:
    reader = iter(lines)
    header = next(reader, None)
    if not header:
        raise empty_csv_error(source)

    header = list(header)
    if header[0].startswith(BOM):
        header[0] = header[0][len(BOM):]
    header = [h.strip() for h in header]

    missing = [col for col in REQUIRED_COLUMNS if col not in header]
    if missing:
        raise missing_columns_error(source, missing, header)

    rows: List[Row] = []
    width = len(header)
    for data in reader:
        if is_blank_row(data):
            continue
        if len(data) < width:
            data = data + [""] * (width - len(data))
        rows.append({header[i]: data[i] for i in range(width)})
    return rows


def parse_csv(source: Union[str, Path, TextIO]) -> List[Row]:
    """
    Parse a course CSV from a path or an open text handle.

    Returns:
        Ordered list of rows (column name -> cell string). A header-only
        file gives an empty list; deciding whether that is an error is up
        to the caller.

    Raises:
        InvalidFormatError: file unreadable, empty, or missing a required column
    """
    if hasattr(source, "read"):
        name = getattr(source, "name", "<stream>")
        try:
            return _rows_from_reader(csv.reader(source), name)
        except csv.Error as e:
            raise InvalidFormatError(
                message="The CSV file could not be read",
                context={"file": str(name)},
                cause=e,
            )

    path = Path(source)
    try:
        with path.open(newline="", encoding="utf-8") as fh:
            return _rows_from_reader(csv.reader(fh), path)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise InvalidFormatError(
            message="The CSV file could not be read",
            suggestion="Check the path and save the file as UTF-8 CSV",
            context={"file": str(path)},
            cause=e,
        )
