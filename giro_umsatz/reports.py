"""
Report builder: category reports as CSV, fixed-width table and document.

Artifacts are named after the resolved title ``<base-title>-<year>_<sign>``
and written to the output directory:

- ``<title>.csv``   semicolon separated, with a summary line
- ``<title>.table`` fixed-width table, with a summary line
- ``<title>.pdf``   printable document rendered from the table file
"""

import csv
import glob
import io
import logging
import pathlib
import sys
from typing import NamedTuple, Tuple

import numpy as np
import pandas as pd

from .errors import UmsatzError
from .matcher import match_records
from .printer import HEADER_MAX_LENGTH
from .records import RECORD_COLUMNS, TransactionRecord
from .utils import atomic_write_text

logger = logging.getLogger(__name__)

CSV_COLUMNS = ['Datum', 'Buchungstext', 'Verwendungszweck', 'Korrespondent', 'Betrag']
BOOKING_TEXT_WIDTH = 25
PURPOSE_WIDTH = 90
COUNTERPARTY_WIDTH = 65
TABLE_HEADER_FORMAT = "{:<8} | {:<25} | {:<90} | {:<65} | {:>10}"
TABLE_ROW_FORMAT = "{:>8} | {:<25} | {:<90} | {:<65} | {:>10.2f}"
TABLE_FOOTER_FORMAT = "{:<9} {:<4d} {:>182} {:>12.2f}"


class ReportResult(NamedTuple):
    """Matched records of one category with their count and sum."""
    records: Tuple[TransactionRecord, ...]
    total: float

    @property
    def count(self) -> int:
        return len(self.records)

    @property
    def empty(self) -> bool:
        return not self.records


def compose_title(base_title, year, sign):
    """Build ``<base-title>-<year>_<sign>``."""
    sign_name = getattr(sign, 'value', sign) or ''
    return f"{base_title}-{year}_{sign_name}"


def compose_header(title, header=None, global_header=None):
    """Resolve the document header.

    The category header falls back to the title; a user supplied header
    overrides both.
    """
    if global_header:
        return global_header
    return header or title


def sum_amounts(records):
    """Sum the amounts of records, rounded to cents."""
    if not records:
        return 0.0
    amounts = pd.Series([record.value for record in records], dtype=float)
    # + 0.0 turns a negative zero into zero
    return float(np.round(amounts.sum(), 2)) + 0.0


def build_report(base, pattern):
    """Select the records of a category and total them.

    Args:
        base (BaseRecordSet): Base record set
        pattern (str or CategorySpec): Category pattern

    Returns:
        ReportResult: Matched records and their sum
    """
    records = tuple(match_records(base, pattern))
    return ReportResult(records, sum_amounts(records))


def render_csv(result):
    """Render the machine readable projection.

    The account column is left out of this projection.
    """
    df = pd.DataFrame(list(result.records), columns=RECORD_COLUMNS, dtype=str)
    buffer = io.StringIO()
    df[CSV_COLUMNS].to_csv(buffer, sep=';', index=False, quoting=csv.QUOTE_NONE, lineterminator='\n')
    buffer.write(f"records;{result.count};;total (EUR);{result.total:10.2f}\n")
    return buffer.getvalue()


def format_table_row(record):
    """Format one record as a fixed-width table row."""
    return TABLE_ROW_FORMAT.format(
        record.posting_date,
        record.booking_text[:BOOKING_TEXT_WIDTH],
        record.purpose[:PURPOSE_WIDTH],
        record.counterparty_name[:COUNTERPARTY_WIDTH],
        record.value,
    )


def render_table(result):
    """Render the human readable fixed-width projection."""
    lines = [
        TABLE_HEADER_FORMAT.format('Datum', 'Buchungstext', 'Verwendungszweck', 'Korrespondent', 'Betrag'),
        '',
    ]
    lines.extend(format_table_row(record) for record in result.records)
    lines.append('')
    lines.append(TABLE_FOOTER_FORMAT.format('records:', result.count, 'total (EUR):', result.total))
    return '\n'.join(lines) + '\n'


def purge_artifacts(out_dir, title):
    """Remove artifacts of a previous run sharing ``title``."""
    removed = []
    for path in sorted(pathlib.Path(out_dir).glob(f"{glob.escape(title)}.*")):
        if path.is_file():
            path.unlink()
            removed.append(path)
    if removed:
        logger.debug(f"Removed previous artifacts: {[p.name for p in removed]}")
    return removed


def publish(out_dir, title, artifacts, header, year, renderer, stream=None):
    """Write the artifacts of one title and render its document.

    Args:
        out_dir (Path): Output directory
        title (str): Resolved title, used as file name stem
        artifacts (dict): File suffix (``'csv'``, ``'table'``) to content
        header (str): Document header
        year (str): Requested year, shown in the document header
        renderer (callable): ``renderer(table_path, header, year)`` returning
            the document path, or None to skip the document
        stream (file, optional): Where to echo the table, default stdout

    Returns:
        list[Path]: Written files

    Raises:
        UmsatzError: If the document cannot be rendered; files written for
            this title are removed first
    """
    stream = stream or sys.stdout
    out_dir = pathlib.Path(out_dir)
    written = []
    try:
        for suffix, content in artifacts.items():
            written.append(atomic_write_text(out_dir / f"{title}.{suffix}", content))
        table_path = out_dir / f"{title}.table"
        if 'table' in artifacts:
            stream.write("\n\n" + artifacts['table'])
            if renderer is not None:
                written.append(pathlib.Path(renderer(table_path, header[:HEADER_MAX_LENGTH], year)))
    except (UmsatzError, OSError):
        for path in written:
            if path.exists():
                path.unlink()
        raise
    return written


def emit_report(result, title, header, year, out_dir=None, renderer=None, emit_files=True, stream=None):
    """Emit the projections of a category report.

    In emit-files mode, previous artifacts of ``title`` are purged and CSV,
    table and document are written; the table is echoed to ``stream``.
    Otherwise only the table is written to ``stream``.

    Returns:
        list[Path]: Written files (empty when nothing was written)
    """
    stream = stream or sys.stdout
    if not emit_files:
        if result.empty:
            return []
        stream.write("\n\n" + f"{title}.table\n\n" + render_table(result))
        return []

    purge_artifacts(out_dir, title)
    if result.empty:
        return []
    artifacts = {
        'csv': render_csv(result),
        'table': f"{title}.table\n\n" + render_table(result),
    }
    return publish(out_dir, title, artifacts, header, year, renderer, stream)


def list_created_files(out_dir, prefix, year, sign):
    """List the artifacts of one preset run.

    Matches ``<prefix>*-<year>_<sign>.*`` in the output directory.
    """
    title_glob = compose_title(f"{glob.escape(prefix)}*", year, sign)
    files = sorted(p for p in pathlib.Path(out_dir).glob(f"{title_glob}.*") if p.is_file())
    if files:
        logger.info("created files:")
        for path in files:
            logger.info(f"  {path} ({path.stat().st_size} bytes)")
    else:
        logger.info(f"no files created -> {pathlib.Path(out_dir) / title_glob}.*")
    return files
