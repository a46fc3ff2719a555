import logging
import pathlib

import pytest

from giro_umsatz.config import Settings
from giro_umsatz.records import TransactionRecord

ACCOUNT = '12345678'

CAMT_HEADER = (
    '"Auftragskonto";"Buchungstag";"Valutadatum";"Buchungstext";"Verwendungszweck";'
    '"Glaeubiger ID";"Mandatsreferenz";"Kundenreferenz (End-to-End)";"Sammlerreferenz";'
    '"Lastschrift Ursprungsbetrag";"Auslagenersatz Ruecklastschrift";'
    '"Beguenstigter/Zahlungspflichtiger";"Kontonummer/IBAN";"BIC (SWIFT-Code)";'
    '"Betrag";"Waehrung";"Info"'
)

# The sample row of the grundsteuer scenario
SCENARIO_ROW = (
    '"K1";"01.01.24";"01.01.24";"UMBUCHUNG";"grundsteuer moosach";"";"";"";"";"";"";'
    '"Acme";"DE123";"BIC1";"-22,97";"EUR";"Umsatz gebucht"'
)


@pytest.fixture
def make_row():
    """Factory for quoted 17-field CAMT-V2 rows."""
    def _make_row(date='01.01.24', booking='UMBUCHUNG', purpose='grundsteuer moosach', name='Acme',
                  iban='DE123', amount='-22,97', info='Umsatz gebucht', konto='K1'):
        fields = [konto, date, date, booking, purpose, '', '', '', '', '', '', name, iban, 'BIC1',
                  amount, 'EUR', info]
        return ';'.join(f'"{field}"' for field in fields)
    return _make_row


@pytest.fixture
def make_record():
    """Factory for parsed records."""
    def _make_record(amount='-22.97', purpose='grundsteuer moosach', date='01.01.24',
                     booking='UMBUCHUNG', name='Acme', iban='DE123'):
        return TransactionRecord(date, booking, purpose, name, iban, amount)
    return _make_record


@pytest.fixture
def giro_dir(tmp_path):
    """Statement directory (GIRODIR) below tmp_path."""
    path = tmp_path / 'giro'
    path.mkdir()
    return path


@pytest.fixture
def settings(giro_dir):
    return Settings(giro_dir=giro_dir, default_account=ACCOUNT, limit=100)


@pytest.fixture
def write_statement(giro_dir):
    """Factory writing a statement file following the naming contract."""
    def _write(rows, from_date='20240101', to_date='20241231', account=ACCOUNT, header=True,
               encoding='utf-8'):
        path = giro_dir / f"giro-{account}-{from_date}-{to_date}.camtv2.csv"
        lines = ([CAMT_HEADER] if header else []) + list(rows)
        path.write_bytes(('\n'.join(lines) + '\n').encode(encoding))
        return path
    return _write


@pytest.fixture
def fake_renderer():
    """Document renderer writing a placeholder PDF and recording its calls."""
    calls = []

    def _render(table_path, header, year):
        pdf_path = pathlib.Path(table_path).with_suffix('.pdf')
        pdf_path.write_bytes(b'%PDF-1.4 placeholder')
        calls.append((pathlib.Path(table_path), header, year))
        return pdf_path

    _render.calls = calls
    return _render


@pytest.fixture(autouse=True)
def drop_configured_handlers():
    """Remove console and file handlers attached by setup_logging."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
