"""
csvtocourse - Moodle course backups from a CSV file

This package turns a spreadsheet of sections and activities into the
XML tree of a Moodle 2 course backup, and packs it as an .mbz file.
"""

__version__ = "1.0.0"
