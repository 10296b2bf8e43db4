"""
archive.py - Pack a staging tree into an .mbz file

An .mbz is a gzip-compressed tar whose members sit at the archive root
(moodle_backup.xml, course/, sections/, activities/ ...).
"""

from __future__ import annotations

import logging
import shutil
import tarfile
from pathlib import Path
from typing import Union

from csvtocourse.errors import staging_write_error

logger = logging.getLogger(__name__)


def pack_mbz(staging_path: Union[str, Path], output: Union[str, Path]) -> Path:
    """
    Write staging_path's contents to output as a gzip tar.

    Members are added in sorted order so the same tree always packs the
    same way. An existing output file is replaced.

    Raises:
        StagingWriteError: staging tree unreadable or output not writable
    """
    staging_path = Path(staging_path)
    output = Path(output)
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        if output.exists():
            logger.info("Replacing existing %s", output)
            output.unlink()

        items = sorted(p for p in staging_path.rglob("*") if p.is_file())
        with tarfile.open(output, "w:gz") as tar:
            for item in items:
                tar.add(str(item), arcname=item.relative_to(staging_path).as_posix())
    except (OSError, tarfile.TarError) as e:
        raise staging_write_error(output, e)

    logger.info("Packed %d files into %s (%.1f KB)", len(items), output, output.stat().st_size / 1024)
    return output


def remove_staging(staging_path: Union[str, Path]) -> None:
    """Delete a staging tree; a tree that is already gone is fine."""
    staging_path = Path(staging_path)
    if staging_path.exists():
        shutil.rmtree(staging_path)
        logger.debug("Removed staging directory %s", staging_path)
