"""
Threshold ranker: records sorted by amount beyond a signed limit.

A positive limit selects ``amount >= limit``, a negative one
``amount <= limit``. The view has no total; it is a selection by size, not
by category.
"""

import logging

import numpy as np

from .errors import ConfigurationError
from .records import records_from_frame
from .reports import BOOKING_TEXT_WIDTH, COUNTERPARTY_WIDTH, PURPOSE_WIDTH

logger = logging.getLogger(__name__)

RANKED_ROW_FORMAT = "{:<9} | {:<25} | {:<90} | {:<65} | {:>10.2f}"


def validate_limit(limit):
    """Check the ranker threshold.

    Returns:
        int: The limit as integer

    Raises:
        ConfigurationError: If the limit is zero or not an integer
    """
    try:
        value = int(limit)
    except (TypeError, ValueError):
        raise ConfigurationError(f"limit must be a signed integer, got '{limit}'", stage='ranker')
    if value == 0:
        raise ConfigurationError("limit must not be 0", stage='ranker')
    return value


def rank_by_amount(base, limit):
    """Select the records beyond ``limit``, ascending by amount.

    Args:
        base (BaseRecordSet): Base record set
        limit (int): Signed threshold, never 0

    Returns:
        list[TransactionRecord]: Selected records; records with equal
        amounts keep their base set order
    """
    limit = validate_limit(limit)
    df = base.to_frame().sort_values('Amount', kind='mergesort')
    mask = np.sign(limit) * df['Amount'].to_numpy() >= abs(limit)
    selected = df[mask]
    logger.debug(f"{len(selected)} of {len(df)} records beyond limit {limit}")
    return records_from_frame(selected)


def format_ranked_row(record):
    # date column is one wider than in category tables
    return RANKED_ROW_FORMAT.format(
        record.posting_date,
        record.booking_text[:BOOKING_TEXT_WIDTH],
        record.purpose[:PURPOSE_WIDTH],
        record.counterparty_name[:COUNTERPARTY_WIDTH],
        record.value,
    )


def render_ranked_table(records):
    """Render the ranked records with a trailing count and no total."""
    lines = [format_ranked_row(record) for record in records]
    lines.append('')
    lines.append(f"records: {len(records)} (no totals for this option)")
    return '\n'.join(lines) + '\n'
