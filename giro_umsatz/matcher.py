"""
Category matcher: select the records of a base set matching a pattern.

A record matches when its semicolon-joined text
(date;booking text;purpose;counterparty;account;amount) contains a match of
the case-insensitive pattern anywhere. The sign filter was already applied
during aggregation and is not re-applied here.
"""

import logging
import re

from .categories import CategorySpec
from .records import RECORD_COLUMNS, records_from_frame

logger = logging.getLogger(__name__)


def compile_pattern(pattern):
    """Compile a category pattern (or pass a CategorySpec's compiled form)."""
    if isinstance(pattern, CategorySpec):
        return pattern.compile()
    if isinstance(pattern, re.Pattern):
        return pattern
    return CategorySpec('', pattern).compile()


def match_records(base, pattern):
    """Return the unique records of ``base`` matching ``pattern``.

    Args:
        base (BaseRecordSet): Records to scan, in scan order
        pattern (str, re.Pattern or CategorySpec): Category pattern; the
            match-everything labels are honored

    Returns:
        list[TransactionRecord]: Matching records in scan order, first
        occurrence of each fingerprint only
    """
    regex = compile_pattern(pattern)
    df = base.to_frame()
    df['text'] = [record.fingerprint for record in base]
    mask = df['text'].apply(lambda text: regex.search(text) is not None).astype(bool)
    matched = df[mask].drop_duplicates(subset=RECORD_COLUMNS, keep='first')
    logger.debug(f"Pattern '{regex.pattern}' matched {len(matched)} of {len(df)} records")
    return records_from_frame(matched)
