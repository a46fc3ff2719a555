"""
Record parser for CAMT-V2 bank statement rows.

CAMT-V2 header (17 columns):
"Auftragskonto";"Buchungstag";"Valutadatum";"Buchungstext";"Verwendungszweck";
"Glaeubiger ID";"Mandatsreferenz";"Kundenreferenz (End-to-End)";"Sammlerreferenz";
"Lastschrift Ursprungsbetrag";"Auslagenersatz Ruecklastschrift";
"Beguenstigter/Zahlungspflichtiger";"Kontonummer/IBAN";"BIC (SWIFT-Code)";
"Betrag";"Waehrung";"Info"

Fields kept (1-based): 3 Valutadatum, 4 Buchungstext, 5 Verwendungszweck,
12 Beguenstigter/Zahlungspflichtiger, 13 Kontonummer/IBAN, 15 Betrag.
"""

import logging
import re
from typing import Iterable, Iterator, Optional

from .errors import RecordFormatError
from .records import FIELD_SEPARATOR, SignFilter, TransactionRecord

logger = logging.getLogger(__name__)

FIELD_COUNT = 17
COMMENT_MARKER = '#'
PENDING_MARKER = 'Umsatz vorgemerkt'
HEADER_FIRST_FIELD = 'Auftragskonto'

# Zero-based positions of the fields of interest
DATE_FIELD = 2
BOOKING_TEXT_FIELD = 3
PURPOSE_FIELD = 4
COUNTERPARTY_NAME_FIELD = 11
COUNTERPARTY_ACCOUNT_FIELD = 12
AMOUNT_FIELD = 14
INFO_FIELD = 16

# Stands in for ';' inside kept fields when the source uses another separator
SEPARATOR_REPLACEMENT = ','

DATE_PATTERN = re.compile(r'^[0-3][0-9]\.[0-1][0-9]\.[0-9][0-9]$')


def normalize_line(line: str, separator: str = FIELD_SEPARATOR) -> str:
    """Normalize quoting and whitespace of a raw row.

    Removes all double quotes, squeezes whitespace runs to one space, turns
    ``"  ;  "`` into a bare separator and trims the line.

    Args:
        line (str): Raw row
        separator (str): Field separator

    Returns:
        str: Normalized row
    """
    line = line.replace('"', '')
    line = re.sub(r'\s+', ' ', line)
    line = re.sub(r' *' + re.escape(separator) + r' *', separator, line)
    return line.strip()


def is_skippable(line: str) -> bool:
    """Return True for comment and blank lines."""
    return line.startswith(COMMENT_MARKER) or line.strip() == ''


def parse_amount(amount: str, filename=None, line=None) -> str:
    """Convert a decimal comma amount to its dot form.

    Args:
        amount (str): Amount as found in the row, e.g. ``-22,97``

    Returns:
        str: Normalized amount text, e.g. ``-22.97``

    Raises:
        RecordFormatError: If the result is not a number
    """
    normalized = amount.replace(',', '.')
    try:
        float(normalized)
    except ValueError:
        raise RecordFormatError(f"detected bad formatted amount field #15 '{amount}'", filename, line)
    return normalized


def parse_line(raw_line: str, suffix: str, sign: SignFilter = SignFilter.ALL,
               filename=None, separator: str = FIELD_SEPARATOR) -> Optional[TransactionRecord]:
    """Parse one raw CAMT-V2 row.

    Args:
        raw_line (str): Row as read from the file
        suffix (str): 2-digit year suffix the record must belong to
        sign (SignFilter): Sign filter to apply
        filename (str, optional): Source file name, used in error messages
        separator (str): Field separator

    Returns:
        TransactionRecord or None: The record, or None when the row is
        skipped (comment, blank, pending, header) or filtered out (other
        year, wrong sign)

    Raises:
        RecordFormatError: If the row does not have 17 fields or its value
            date is malformed
    """
    line = raw_line.rstrip('\r\n')
    if is_skippable(line):
        return None

    fields = line.split(separator)
    if len(fields) != FIELD_COUNT:
        raise RecordFormatError(
            f"required format CAMT-V2, found bad column/field count {len(fields)} (expected {FIELD_COUNT})",
            filename, line)

    if PENDING_MARKER in fields[INFO_FIELD]:
        return None
    if fields[0].strip().strip('"').strip() == HEADER_FIRST_FIELD:
        return None

    line = normalize_line(line, separator)
    fields = line.split(separator)
    if separator != FIELD_SEPARATOR:
        # kept fields are joined with ';' in the base file and the CSV projection
        fields = [field.replace(FIELD_SEPARATOR, SEPARATOR_REPLACEMENT) for field in fields]

    posting_date = fields[DATE_FIELD]
    if not DATE_PATTERN.match(posting_date):
        raise RecordFormatError(f"detected bad formatted date field #3 '{posting_date}'", filename, line)

    if not posting_date.endswith(suffix):
        return None

    amount = parse_amount(fields[AMOUNT_FIELD], filename, line)
    if not sign.accepts(float(amount)):
        return None

    return TransactionRecord(
        posting_date=posting_date,
        booking_text=fields[BOOKING_TEXT_FIELD],
        purpose=fields[PURPOSE_FIELD],
        counterparty_name=fields[COUNTERPARTY_NAME_FIELD],
        counterparty_account=fields[COUNTERPARTY_ACCOUNT_FIELD],
        amount=amount,
    )


def parse_lines(lines: Iterable[str], suffix: str, sign: SignFilter = SignFilter.ALL,
                filename=None, separator: str = FIELD_SEPARATOR) -> Iterator[TransactionRecord]:
    """Parse many rows, yielding only the records that qualify."""
    for line in lines:
        record = parse_line(line, suffix, sign, filename=filename, separator=separator)
        if record is not None:
            yield record
