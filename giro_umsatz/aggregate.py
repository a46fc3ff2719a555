"""
Deduplicating aggregation of parsed records into the base record set.

All statement files of one account are read, newest to-date first. A record
is kept the first time its fingerprint is seen. The resulting set is emitted
in reverse insertion order, so the last line of the base file is the record
inserted first.
"""

import logging
import pathlib

import pandas as pd

from .errors import EmptyBaseError
from .parser import parse_lines
from .records import (
    FIELD_SEPARATOR,
    RECORD_COLUMNS,
    BaseRecordSet,
    SignFilter,
    TransactionRecord,
    records_from_frame,
)
from .sources import find_source_files, read_source_lines
from .utils import atomic_write_text

logger = logging.getLogger(__name__)


def base_file_name(account):
    """Name of the persisted base file of an account."""
    return f"giro-{account}-complete.csv"


def deduplicate(records):
    """Collapse records sharing a fingerprint and reverse the order.

    Args:
        records (iterable of TransactionRecord): Records in insertion order

    Returns:
        BaseRecordSet: Unique records, last inserted first
    """
    df = pd.DataFrame(list(records), columns=RECORD_COLUMNS, dtype=str)
    before = len(df)
    df = df.drop_duplicates(subset=RECORD_COLUMNS, keep='first')
    logger.debug(f"Dropped {before - len(df)} duplicate records, {len(df)} unique")
    return BaseRecordSet(reversed(records_from_frame(df)))


def aggregate_files(files, suffix, sign=SignFilter.ALL, separator=FIELD_SEPARATOR):
    """Parse the given files in order and build the base record set.

    Args:
        files (list of Path): Statement files in read order
        suffix (str): 2-digit year suffix
        sign (SignFilter): Sign filter applied while parsing
        separator (str): Field separator of the files

    Returns:
        BaseRecordSet: Unique qualifying records

    Raises:
        RecordFormatError: If any row breaks the row contract
        EmptyBaseError: If no record qualifies
    """
    collected = []
    for path in files:
        path = pathlib.Path(path)
        records = list(parse_lines(read_source_lines(path), suffix, sign,
                                   filename=path.name, separator=separator))
        logger.debug(f"{path.name}: {len(records)} qualifying records")
        collected.extend(records)

    base = deduplicate(collected)
    if len(base) == 0:
        raise EmptyBaseError(f"no '{sign.value}' records found for year suffix '{suffix}'")
    logger.info(f"Aggregated {len(base)} unique records from {len(files)} files")
    return base


def build_base_set(source_dir, account, suffix, sign=SignFilter.ALL, separator=FIELD_SEPARATOR):
    """Find the statement files of an account and aggregate them."""
    files = find_source_files(source_dir, account)
    return aggregate_files(files, suffix, sign, separator)


def write_base_file(base, path):
    """Persist the base record set, one record per line in emission order."""
    text = ''.join(f"{line}\n" for line in base.lines())
    return atomic_write_text(path, text)


def load_base_file(path):
    """Read a persisted base file back into a BaseRecordSet."""
    with open(path, 'r', encoding='utf-8') as f:
        return BaseRecordSet(TransactionRecord.from_line(line) for line in f if line.strip())
