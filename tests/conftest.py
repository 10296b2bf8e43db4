# tests/conftest.py
"""
Pytest configuration and shared fixtures for csvtocourse tests
"""
import logging
import pytest
from pathlib import Path
from typing import Callable, Dict, List
from xml.etree import ElementTree as ET

from csvtocourse.config_utils import ConverterConfig
from csvtocourse.generator import MbzGenerator

# Fixed "now" for deterministic output (2026-02-25)
NOW = 1772000000


def make_row(section_id="0", section_name="General", activity_type="", activity_name="",
             content_text="", source_url_path="", date_start="", date_end="", date_cutoff="") -> Dict[str, str]:
    """Build a CSV row dict with every column present"""
    return {
        "section_id": str(section_id),
        "section_name": section_name,
        "activity_type": activity_type,
        "activity_name": activity_name,
        "content_text": content_text,
        "source_url_path": source_url_path,
        "date_start": date_start,
        "date_end": date_end,
        "date_cutoff": date_cutoff,
    }


def parse_xml(text: str) -> ET.Element:
    return ET.fromstring(text.encode("utf-8"))


@pytest.fixture
def row() -> Callable[..., Dict[str, str]]:
    return make_row


@pytest.fixture
def config(tmp_path: Path) -> ConverterConfig:
    """Config that stages under the test's tmp dir"""
    staging = tmp_path / "staging"
    staging.mkdir()
    return ConverterConfig(staging_dir=staging)


@pytest.fixture
def generator(config: ConverterConfig) -> MbzGenerator:
    return MbzGenerator(config, clock=lambda: NOW)


@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[..., Path]:
    """Write lines to a CSV file and return its path"""
    def _write(lines: List[str], name: str = "course.csv", bom: bool = False) -> Path:
        path = tmp_path / name
        text = "\n".join(lines) + "\n"
        if bom:
            text = "\ufeff" + text
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def welcome_rows() -> List[Dict[str, str]]:
    """The label + forum course used by several end-to-end tests"""
    return [
        make_row(0, "General", "label", "Welcome", "<p>Hi</p>"),
        make_row(0, "General", "forum", "Discuss"),
    ]


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers the CLI installs so they do not outlive CliRunner's streams"""
    yield
    logger = logging.getLogger("csvtocourse")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
