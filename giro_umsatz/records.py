"""
Core value types shared by every stage of the pipeline.

A TransactionRecord is the canonical unit: the six fields kept from a
CAMT-V2 row, stored as normalized text exactly as they appear in the base
file. Records are immutable; stages filter and copy them but never change
them.
"""

import re
from enum import Enum
from typing import Iterable, NamedTuple, Tuple

import pandas as pd

from .errors import ConfigurationError

FIELD_SEPARATOR = ';'

# Column names of the record frame, in fingerprint order
RECORD_COLUMNS = [
    'Datum',
    'Buchungstext',
    'Verwendungszweck',
    'Korrespondent',
    'Konto',
    'Betrag',
]


class TransactionRecord(NamedTuple):
    """One booked transaction.

    ``amount`` holds the normalized text (dot as decimal separator); use
    ``value`` for arithmetic.
    """
    posting_date: str
    booking_text: str
    purpose: str
    counterparty_name: str
    counterparty_account: str
    amount: str

    @property
    def value(self) -> float:
        return float(self.amount)

    @property
    def fingerprint(self) -> str:
        return FIELD_SEPARATOR.join(self)

    @classmethod
    def from_line(cls, line: str) -> 'TransactionRecord':
        """Rebuild a record from one line of the base file."""
        fields = line.rstrip('\r\n').split(FIELD_SEPARATOR)
        if len(fields) != len(cls._fields):
            raise ValueError(f"Base record must have {len(cls._fields)} fields, got {len(fields)}: {line!r}")
        return cls(*fields)


class SignFilter(Enum):
    """Which side of the ledger to keep. Zero counts as positive."""
    POSITIVE = 'positiv'
    NEGATIVE = 'negativ'
    ALL = 'all'

    @classmethod
    def parse(cls, value) -> 'SignFilter':
        """Parse a user supplied sign name.

        Args:
            value (str or SignFilter or None): Sign name; ``None`` and ``''``
                mean ``all``. English spellings are accepted as aliases.

        Returns:
            SignFilter: The matching filter

        Raises:
            ConfigurationError: If the value is not a known sign
        """
        if isinstance(value, cls):
            return value
        if value is None or value == '':
            return cls.ALL
        aliases = {
            'positiv': cls.POSITIVE,
            'positive': cls.POSITIVE,
            'negativ': cls.NEGATIVE,
            'negative': cls.NEGATIVE,
            'all': cls.ALL,
        }
        key = str(value).strip().lower()
        if key not in aliases:
            raise ConfigurationError(f"sign must be positiv|negativ|all, got '{value}'")
        return aliases[key]

    def accepts(self, amount: float) -> bool:
        if self is SignFilter.POSITIVE:
            return amount >= 0
        if self is SignFilter.NEGATIVE:
            return amount < 0
        return True


def year_suffix(year) -> str:
    """Return the 2-digit year suffix used to scope records.

    The suffix carries no century: '2024' and '1924' both yield '24'.

    Raises:
        ConfigurationError: If ``year`` is not a 4-digit year
    """
    year = str(year).strip()
    if not re.fullmatch(r'\d{4}', year):
        raise ConfigurationError(f"year must have 4 digits, got '{year}'")
    return year[-2:]


class BaseRecordSet:
    """Immutable, ordered collection of unique transaction records.

    Order is the emission order of the aggregator: the first record is the
    one inserted last.
    """

    __slots__ = ('_records',)

    def __init__(self, records: Iterable[TransactionRecord] = ()):
        object.__setattr__(self, '_records', tuple(records))

    def __setattr__(self, name, value):
        raise AttributeError("BaseRecordSet is immutable")

    @property
    def records(self) -> Tuple[TransactionRecord, ...]:
        return self._records

    def __len__(self):
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    def __getitem__(self, index):
        return self._records[index]

    def __eq__(self, other):
        if not isinstance(other, BaseRecordSet):
            return NotImplemented
        return self._records == other._records

    def __hash__(self):
        return hash(self._records)

    def __repr__(self):
        return f"BaseRecordSet({len(self._records)} records)"

    def lines(self):
        """Yield each record as its base-file line (without newline)."""
        for record in self._records:
            yield record.fingerprint

    def to_frame(self) -> pd.DataFrame:
        """Build a fresh DataFrame view of the records.

        The frame has the text columns of ``RECORD_COLUMNS`` plus a float
        ``Amount`` column. Mutating it does not affect the set.
        """
        df = pd.DataFrame(list(self._records), columns=RECORD_COLUMNS, dtype=str)
        df['Amount'] = pd.to_numeric(df['Betrag']).astype(float)
        return df


def records_from_frame(df: pd.DataFrame):
    """Turn the text columns of a record frame back into records."""
    return [TransactionRecord(*row) for row in df[RECORD_COLUMNS].itertuples(index=False, name=None)]
