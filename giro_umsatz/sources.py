"""
Source file handling: discovery, encoding normalization and legacy rows.

Statement files follow the naming contract
``giro-<account>-<fromYYYYMMDD>-<toYYYYMMDD>.camtv2.csv``. The parser only
sees UTF-8 text in the 17-field CAMT-V2 shape; this module gets the files
there.
"""

import glob
import logging
import pathlib

from .errors import ConfigurationError, RecordFormatError
from .records import FIELD_SEPARATOR
from .utils import atomic_write_text

logger = logging.getLogger(__name__)

SOURCE_ENCODINGS = ['utf-8-sig', 'cp1252']
# maps every byte, so decoding always ends here
FALLBACK_ENCODING = 'latin-1'

UMLAUTS = {
    'ä': 'ae',
    'ö': 'oe',
    'ü': 'ue',
    'Ä': 'AE',
    'Ö': 'OE',
    'Ü': 'UE',
    'ß': 'ss',
}

LEGACY_FIELD_COUNT = 11
LEGACY_INSERT_AFTER = 5
LEGACY_EMPTY_FIELDS = 6


def source_pattern(account):
    """Glob pattern of the statement files of one account."""
    return f"giro-{glob.escape(str(account))}-????????-????????.camtv2.csv"


def date_range_token(path):
    """Return the trailing to-date token of a statement file name.

    ``giro-99999999-20211230-20230102.camtv2.csv`` yields
    ``20230102.camtv2.csv``.
    """
    parts = pathlib.Path(path).name.split('-', 3)
    return parts[3] if len(parts) > 3 else ''


def find_source_files(source_dir, account):
    """List the statement files of an account, newest to-date first.

    Args:
        source_dir (str or Path): Directory holding the statements
        account (str): Account number

    Returns:
        list[pathlib.Path]: Files sorted descending by to-date token

    Raises:
        ConfigurationError: If no statement file exists
    """
    source_dir = pathlib.Path(source_dir)
    pattern = source_pattern(account)
    files = [p for p in source_dir.glob(pattern) if p.is_file()]
    if not files:
        raise ConfigurationError(f"missing files '{source_dir / pattern}'", stage='sources')
    files.sort(key=lambda p: (date_range_token(p), p.name), reverse=True)
    logger.debug(f"Source files in read order: {[p.name for p in files]}")
    return files


def decode_source(raw):
    """Decode file content with the first encoding that works.

    Returns:
        tuple: (text, encoding)
    """
    for encoding in SOURCE_ENCODINGS:
        try:
            return raw.decode(encoding), encoding
        except UnicodeDecodeError:
            continue
    return raw.decode(FALLBACK_ENCODING), FALLBACK_ENCODING


def transliterate(text):
    """Replace German umlauts and sharp s with their ASCII spellings."""
    for umlaut, replacement in UMLAUTS.items():
        text = text.replace(umlaut, replacement)
    return text


def normalize_source_file(path):
    """Rewrite a statement file as UTF-8 with transliterated umlauts.

    The file is only rewritten when its content changes.

    Args:
        path (str or Path): Statement file

    Returns:
        bool: True if the file was rewritten
    """
    path = pathlib.Path(path)
    raw = path.read_bytes()
    text, encoding = decode_source(raw)
    normalized = transliterate(text)
    if normalized.encode('utf-8') == raw:
        return False
    logger.info(f"Converting {path.name} from {encoding} to UTF-8")
    atomic_write_text(path, normalized, encoding='utf-8')
    return True


def split_rows(text):
    """Split text into rows on newlines only.

    Form feeds, vertical tabs and Unicode line separators may occur inside a
    field and stay part of the row. A trailing carriage return is dropped.
    """
    rows = text.split('\n')
    if rows[-1] == '':
        rows.pop()
    return [row[:-1] if row.endswith('\r') else row for row in rows]


def read_source_lines(path):
    """Read the rows of a statement file, umlauts transliterated."""
    text, _ = decode_source(pathlib.Path(path).read_bytes())
    return split_rows(transliterate(text))


def expand_legacy_line(line, separator=FIELD_SEPARATOR):
    """Align a legacy MT940 row with the CAMT-V2 column positions.

    Six empty quoted fields are inserted after field 5, so that the 11-field
    legacy row becomes a 17-field row. Rows already in the 17-field shape,
    comments and blank lines are returned unchanged.

    Raises:
        RecordFormatError: If the row has neither 11 nor 17 fields
    """
    if line.startswith('#') or line.strip() == '':
        return line
    fields = line.split(separator)
    if len(fields) == LEGACY_FIELD_COUNT + LEGACY_EMPTY_FIELDS:
        return line
    if len(fields) != LEGACY_FIELD_COUNT:
        raise RecordFormatError(
            f"legacy MT940 row must have {LEGACY_FIELD_COUNT} fields, found {len(fields)}", line=line)
    expanded = fields[:LEGACY_INSERT_AFTER] + ['""'] * LEGACY_EMPTY_FIELDS + fields[LEGACY_INSERT_AFTER:]
    return separator.join(expanded)


def convert_legacy_file(source, target, separator=FIELD_SEPARATOR):
    """Convert a legacy MT940 export into a CAMT-V2 shaped file.

    Args:
        source (str or Path): Legacy export
        target (str or Path): File to write (UTF-8)

    Returns:
        pathlib.Path: The written target
    """
    lines = [transliterate(line) for line in read_source_lines(source)]
    converted = [expand_legacy_line(line, separator) for line in lines]
    logger.info(f"Converted {len(converted)} legacy rows from {source} to {target}")
    return atomic_write_text(target, '\n'.join(converted) + '\n')
