"""
sample.py - The sample course CSV

One row per activity, plus section-only rows (blank activity_type) for
sections with nothing in them yet. Every activity type appears once.
"""

from pathlib import Path
from typing import Union

SAMPLE_FILENAME = "sample_course.csv"

SAMPLE_CSV = """\
section_id,section_name,activity_type,activity_name,content_text,source_url_path,date_start,date_end,date_cutoff
0,General,label,Welcome,<p>Welcome to the course!</p>,,,,
0,General,forum,Announcements,<p>Course news and updates</p>,,,,
1,Week 1: Introduction,page,Syllabus,<h2>Syllabus</h2><p>Read this first.</p>,,,,
1,Week 1: Introduction,url,Course website,<p>Reference material</p>,https://moodle.org,,,
1,Week 1: Introduction,resource,Reading list,<p>Books and articles</p>,,,,
2,Week 2: Practice,assign,First assignment,<p>Submit your answers as a PDF.</p>,,2026-03-02,2026-03-08 23:59,2026-03-10
2,Week 2: Practice,forum,Discussion,<p>Share your questions</p>,,2026-03-02,2026-03-08,
2,Week 2: Practice,quiz,Self check,<p>Ten quick questions</p>,,2026-03-02 08:00,2026-03-08 23:59,
3,Week 3: Wrap-up,feedback,Course survey,<p>Tell us what you think</p>,,2026-03-09,2026-03-15,
4,Week 4: Extra material,,,,,,,
"""


def write_sample(output: Union[str, Path] = SAMPLE_FILENAME) -> Path:
    """Write the sample CSV (UTF-8) and return its path."""
    path = Path(output)
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return path
