"""
Printable document rendering through enscript and ps2pdf.

The table file is transcoded to Latin-1 for enscript, laid out in landscape
A4 with a small monospace font and converted to PDF.
"""

import datetime
import logging
import os
import pathlib
import shutil
import subprocess

from .errors import ConfigurationError, PrinterError
from .utils import atomic_write_text

logger = logging.getLogger(__name__)

REQUIRED_TOOLS = ('enscript', 'ps2pdf')
HEADER_MAX_LENGTH = 80


def check_tools():
    """Make sure the external renderers are installed.

    Raises:
        ConfigurationError: If a tool is missing
    """
    missing = [tool for tool in REQUIRED_TOOLS if shutil.which(tool) is None]
    if missing:
        raise ConfigurationError(
            f"required tool(s) {', '.join(missing)} not available - please install", stage='printer')


def document_header(header, year, today=None):
    """Build the page header, e.g. ``Steuer-2023_all - 2023 (print: 2024-01-31, p. $%/$=)``."""
    today = today or datetime.date.today()
    return f"{header[:HEADER_MAX_LENGTH]} - {year} (print: {today:%Y-%m-%d}, p. $%/$=)"


def enscript_command(source, header):
    return [
        'enscript',
        '--quiet',
        '--landscape',
        '--media=A4',
        '--encoding=88591',
        '--page-label-format=long',
        f'--header={header}',
        '--font=Courier6',
        '--non-printable-format=questionmark',
        str(source),
        '-o', '-',
    ]


def render_document(table_path, header, year, today=None):
    """Render a table file as PDF next to it.

    Args:
        table_path (str or Path): ``<title>.table`` file
        header (str): Header text, cut to 80 characters
        year (str): Requested year
        today (date, optional): Print date shown in the header

    Returns:
        pathlib.Path: The ``<title>.pdf`` document

    Raises:
        PrinterError: If the table is missing or a tool fails
    """
    table_path = pathlib.Path(table_path)
    if not table_path.exists():
        raise PrinterError(f"could not find file '{table_path}'")

    pdf_path = table_path.with_suffix('.pdf')
    latin_path = table_path.with_name(table_path.name + '.tmp')
    pdf_tmp = pdf_path.with_name(pdf_path.name + '.tmp')
    page_header = document_header(header or table_path.stem, year, today)
    logger.debug(f"Rendering {table_path.name} to {pdf_path.name}")
    try:
        text = table_path.read_text(encoding='utf-8')
        atomic_write_text(latin_path, text, encoding='latin-1', errors='replace')
        postscript = subprocess.run(enscript_command(latin_path, page_header),
                                    check=True, capture_output=True).stdout
        subprocess.run(['ps2pdf', '-', str(pdf_tmp)], input=postscript, check=True, capture_output=True)
        os.replace(pdf_tmp, pdf_path)
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or b'').decode('utf-8', errors='replace').strip()
        raise PrinterError(f"{e.cmd[0]} failed with exit code {e.returncode}: {stderr}")
    except OSError as e:
        raise PrinterError(f"could not render {table_path.name}: {e}")
    finally:
        for path in (latin_path, pdf_tmp):
            if path.exists():
                path.unlink()
    return pdf_path
