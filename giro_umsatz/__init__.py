"""
Giro Umsatz - category reports for giro account statements.

This package provides functionality to:
- Parse CAMT-V2 bank statement exports (17 semicolon separated, quoted fields)
- Build a de-duplicated base record set per account, year and sign
- Select transactions by regex categories (property, salary, tax, ...)
- Report them as CSV, fixed-width table and printable PDF with totals
- Rank transactions by amount beyond a signed limit

The base record format (one line per transaction):
- Datum: value date (DD.MM.YY)
- Buchungstext: booking text
- Verwendungszweck: payment purpose
- Korrespondent: counterparty name
- Konto: counterparty account (IBAN)
- Betrag: amount with dot as decimal separator (negative for debits)
"""

from .records import TransactionRecord, BaseRecordSet, SignFilter, year_suffix
from .parser import parse_line, normalize_line
from .aggregate import aggregate_files, build_base_set, deduplicate
from .categories import CategorySpec, resolve_preset
from .matcher import match_records
from .reports import build_report, render_csv, render_table
from .ranker import rank_by_amount
from .umsatz import Request, run_request, main

__version__ = '0.1.0'
__all__ = [
    'TransactionRecord',
    'BaseRecordSet',
    'SignFilter',
    'year_suffix',
    'parse_line',
    'normalize_line',
    'aggregate_files',
    'build_base_set',
    'deduplicate',
    'CategorySpec',
    'resolve_preset',
    'match_records',
    'build_report',
    'render_csv',
    'render_table',
    'rank_by_amount',
    'Request',
    'run_request',
    'main',
]
