# cli.py - Command line interface for csvtocourse
"""
csvtocourse CLI - Build Moodle course backups from a CSV file

COMMANDS:
    csvtocourse convert CSV --fullname F --shortname S   Build an .mbz backup
    csvtocourse validate CSV                             Check a CSV without converting
    csvtocourse sample [--output FILE]                   Write the sample CSV
    csvtocourse init [--force]                           Write csvtocourse.yaml
    csvtocourse version                                  Show version information

EXAMPLES:
    # Start from the sample
    csvtocourse sample
    csvtocourse convert sample_course.csv --fullname "Intro to Python" --shortname PY101

    # Keep the unpacked XML for inspection
    csvtocourse convert course.csv -f "Intro" -s INTRO --keep-staging -v
"""

import sys
from pathlib import Path
from typing import Optional

import click

from csvtocourse import __version__
from csvtocourse.archive import pack_mbz, remove_staging
from csvtocourse.config_utils import create_config_template, get_config
from csvtocourse.csv_reader import parse_csv
from csvtocourse.errors import CsvToCourseError, staging_write_error
from csvtocourse.generator import MbzGenerator
from csvtocourse.icons import PACKAGE, SWEEP, WARNING
from csvtocourse.log_utils import setup_logging
from csvtocourse.sample import SAMPLE_FILENAME, write_sample
from csvtocourse.validate import validate_csv
from csvtocourse.xml_builders import backup_filename


def _fail(error: CsvToCourseError):
    click.echo(str(error), err=True)
    sys.exit(1)


# ============================================================================
# Click Group Setup
# ============================================================================

@click.group()
def cli():
    """
    csvtocourse - CSV to Moodle course backup converter

    Describe sections and activities in a spreadsheet, get an .mbz file
    Moodle can restore.
    """


# ============================================================================
# Convert
# ============================================================================

@cli.command()
@click.argument('csv_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--fullname', '-f', required=True, help='Course full name')
@click.option('--shortname', '-s', required=True, help='Course short name')
@click.option('--output', '-o', type=click.Path(dir_okay=False, path_type=Path),
              help='Output .mbz path (default: <shortname>.mbz)')
@click.option('--keep-staging', is_flag=True, help='Do not delete the unpacked XML tree')
@click.option('--staging-dir', type=click.Path(file_okay=False, path_type=Path),
              help='Where to create the staging directory (default: system temp dir)')
@click.option('--verbose', '-v', count=True, help='More output (-vv for debug)')
def convert(csv_file: Path, fullname: str, shortname: str, output: Optional[Path],
            keep_staging: bool, staging_dir: Optional[Path], verbose: int):
    """
    Convert a course CSV into a Moodle backup (.mbz)

    Examples:
        csvtocourse convert course.csv -f "Biology 101" -s BIO101
        csvtocourse convert course.csv -f "Biology 101" -s BIO101 -o bio.mbz
    """
    setup_logging(verbose)
    click.echo(f"[*] Converting: {csv_file}")

    try:
        config = get_config()
        if staging_dir:
            try:
                staging_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise staging_write_error(staging_dir, e)
            config.staging_dir = staging_dir

        rows = parse_csv(csv_file)
        generator = MbzGenerator(config)
        plan = generator.build(rows, fullname, shortname)

        for warning in plan.warnings:
            click.echo(f"  {WARNING} {warning}")

        staging_id = generator.write_plan(plan)
    except CsvToCourseError as e:
        _fail(e)

    staging_path = config.staging_root() / staging_id
    click.echo(f"[v] Wrote {len(plan.documents)} XML files "
               f"({len(plan.sections)} sections, {len(plan.activities)} activities)")

    if output is None:
        output = Path(f"{shortname.strip().replace(' ', '_')}.mbz")

    try:
        pack_mbz(staging_path, output)
    except CsvToCourseError as e:
        _fail(e)
    finally:
        # Staging is disposable once packed or failed
        if keep_staging:
            click.echo(f"[*] Staging kept at: {staging_path}")
        else:
            remove_staging(staging_path)
            click.echo(f"[v] {SWEEP} Staging removed")

    click.echo(f"[v] {PACKAGE} Backup created: {output}")
    click.echo(f"    Moodle will list it as {backup_filename(shortname.strip())}")


# ============================================================================
# Validate
# ============================================================================

@cli.command()
@click.argument('csv_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--verbose', '-v', is_flag=True, help='Show info-level notes too')
def validate(csv_file: Path, verbose: bool):
    """
    Check a course CSV for problems without converting it

    Checks for:
    - Missing required columns
    - Non-numeric section_id
    - Unknown activity types
    - Dates that cannot be parsed

    Examples:
        csvtocourse validate course.csv
    """
    click.echo(f"[*] Validating: {csv_file}\n")

    result = validate_csv(csv_file)
    for issue in result.issues:
        if verbose or issue.severity.value != "info":
            click.echo(str(issue))

    if result.issues:
        click.echo()
    click.echo(result.summary())

    if not result.is_valid:
        sys.exit(1)


# ============================================================================
# Sample & Init
# ============================================================================

@cli.command()
@click.option('--output', '-o', type=click.Path(dir_okay=False, path_type=Path),
              default=SAMPLE_FILENAME, show_default=True, help='Where to write the sample')
def sample(output: Path):
    """Write a sample course CSV covering every activity type"""
    path = write_sample(output)
    click.echo(f"[v] Sample written: {path}")
    click.echo("Next: csvtocourse convert "
               f"{path} --fullname \"Sample course\" --shortname SAMPLE")


@cli.command()
@click.option('--force', is_flag=True, help='Overwrite an existing csvtocourse.yaml')
def init(force: bool):
    """Write a csvtocourse.yaml template in the current directory"""
    yaml_path = Path.cwd() / "csvtocourse.yaml"
    if yaml_path.exists() and not force:
        click.echo("[!] csvtocourse.yaml already exists (use --force to overwrite)")
        return

    yaml_path.write_text(create_config_template(), encoding="utf-8")
    click.echo(f"[v] Created {yaml_path.name}")


# ============================================================================
# Version
# ============================================================================

@cli.command()
def version():
    """Show csvtocourse version"""
    click.echo(f"csvtocourse v{__version__}")
    click.echo("CSV to Moodle course backup converter")


# ============================================================================
# Entry Point
# ============================================================================

if __name__ == '__main__':
    cli()
