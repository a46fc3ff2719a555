import io

import pytest

from giro_umsatz.aggregate import deduplicate
from giro_umsatz.errors import PrinterError
from giro_umsatz.records import BaseRecordSet, SignFilter
from giro_umsatz.reports import (
    ReportResult,
    build_report,
    compose_header,
    compose_title,
    emit_report,
    list_created_files,
    publish,
    purge_artifacts,
    render_csv,
    render_table,
    sum_amounts,
)


@pytest.fixture
def scenario_result(make_record):
    return build_report(BaseRecordSet([make_record()]), 'grundsteuer.*moosach')


class TestTitlesAndHeaders:
    """Test suite for title and header composition"""

    def test_title(self):
        assert compose_title('Moosach_Grundsteuer', '2024', SignFilter.NEGATIVE) == 'Moosach_Grundsteuer-2024_negativ'
        assert compose_title('Total', 2023, SignFilter.ALL) == 'Total-2023_all'

    def test_header_falls_back_to_title(self):
        assert compose_header('Steuer-2024_all') == 'Steuer-2024_all'

    def test_category_header_overrides_title(self):
        assert compose_header('T', 'Moosach Miete') == 'Moosach Miete'

    def test_user_header_overrides_all(self):
        assert compose_header('T', 'Moosach Miete', 'LKH 2021') == 'LKH 2021'


class TestBuildReport:
    """Test suite for report totals"""

    def test_scenario(self, scenario_result):
        assert scenario_result.count == 1
        assert scenario_result.total == pytest.approx(-22.97)
        assert scenario_result.records[0].amount == '-22.97'

    def test_empty(self, make_record):
        result = build_report(BaseRecordSet([make_record()]), 'erbschaft')
        assert result.empty
        assert result.count == 0
        assert result.total == 0.0

    def test_sum_rounding_and_negative_zero(self, make_record):
        assert sum_amounts([make_record(amount='0.10'), make_record(amount='0.20')]) == pytest.approx(0.3)
        total = sum_amounts([make_record(amount='-0.001')])
        assert f"{total:.2f}" == '0.00'

    def test_sign_subsets_add_up(self, make_record):
        """Test all == positiv + negativ, with zero counted as positive"""
        records = [
            make_record(amount='100.00'),
            make_record(amount='-40.25'),
            make_record(amount='0.00'),
            make_record(amount='-0.75', purpose='grundsteuer moosach nachzahlung'),
            make_record(amount='12.34', purpose='grundsteuer moosach erstattung'),
        ]

        def report(sign):
            base = deduplicate([r for r in records if sign.accepts(r.value)])
            return build_report(base, 'grundsteuer')

        everything = report(SignFilter.ALL)
        positive = report(SignFilter.POSITIVE)
        negative = report(SignFilter.NEGATIVE)
        assert everything.count == positive.count + negative.count
        assert everything.total == pytest.approx(positive.total + negative.total)
        assert positive.count == 3


class TestProjections:
    """Test suite for CSV and table rendering"""

    def test_csv(self, scenario_result):
        assert render_csv(scenario_result) == (
            'Datum;Buchungstext;Verwendungszweck;Korrespondent;Betrag\n'
            '01.01.24;UMBUCHUNG;grundsteuer moosach;Acme;-22.97\n'
            'records;1;;total (EUR);    -22.97\n'
        )

    def test_table_layout(self, scenario_result):
        lines = render_table(scenario_result).splitlines()
        assert lines[0].startswith('Datum    | Buchungstext              | Verwendungszweck')
        assert lines[0].endswith('|     Betrag')
        assert lines[1] == ''
        assert lines[2].startswith('01.01.24 | UMBUCHUNG                 | grundsteuer moosach ')
        assert lines[2].endswith('|     -22.97')
        assert lines[3] == ''
        assert lines[4].startswith('records:  1    ')
        assert lines[4].endswith('total (EUR):       -22.97')
        assert len(lines[4]) == 210

    def test_table_truncates_long_fields(self, make_record):
        record = make_record(purpose='x' * 120, booking='B' * 40, name='N' * 70)
        row = render_table(ReportResult((record,), record.value)).splitlines()[2]
        columns = row.split(' | ')
        assert columns[1] == 'B' * 25
        assert columns[2] == 'x' * 90
        assert columns[3] == 'N' * 65

    def test_csv_omits_account_column(self, scenario_result):
        assert 'DE123' not in render_csv(scenario_result)


class TestEmitReport:
    """Test suite for writing report artifacts"""

    def test_emit_files(self, tmp_path, scenario_result, fake_renderer):
        stream = io.StringIO()
        files = emit_report(scenario_result, 'Moosach_Grundsteuer-2024_negativ', 'Grundsteuer', '2024',
                            tmp_path, fake_renderer, stream=stream)
        names = sorted(p.name for p in files)
        assert names == ['Moosach_Grundsteuer-2024_negativ.csv',
                         'Moosach_Grundsteuer-2024_negativ.pdf',
                         'Moosach_Grundsteuer-2024_negativ.table']
        table = (tmp_path / 'Moosach_Grundsteuer-2024_negativ.table').read_text(encoding='utf-8')
        assert table.startswith('Moosach_Grundsteuer-2024_negativ.table\n\n')
        assert table in stream.getvalue()
        assert fake_renderer.calls == [(tmp_path / 'Moosach_Grundsteuer-2024_negativ.table', 'Grundsteuer', '2024')]
        assert not list(tmp_path.glob('*.tmp'))

    def test_header_cut_to_80_chars(self, tmp_path, scenario_result, fake_renderer):
        emit_report(scenario_result, 'T-2024_all', 'h' * 100, '2024', tmp_path, fake_renderer,
                    stream=io.StringIO())
        assert fake_renderer.calls[0][1] == 'h' * 80

    def test_previous_artifacts_are_purged(self, tmp_path, make_record, fake_renderer):
        (tmp_path / 'T-2024_all.csv').write_text('stale')
        (tmp_path / 'T-2024_all.pdf').write_text('stale')
        (tmp_path / 'T-2024_allx.csv').write_text('other title')
        result = build_report(BaseRecordSet([make_record()]), 'nothing matches')
        assert emit_report(result, 'T-2024_all', 'T', '2024', tmp_path, fake_renderer,
                           stream=io.StringIO()) == []
        assert sorted(p.name for p in tmp_path.iterdir()) == ['T-2024_allx.csv']

    def test_display_only_writes_nothing(self, tmp_path, scenario_result, fake_renderer):
        out_dir = tmp_path / 'outdir'
        stream = io.StringIO()
        assert emit_report(scenario_result, 'T-2024_all', 'T', '2024', out_dir, fake_renderer,
                           emit_files=False, stream=stream) == []
        assert not out_dir.exists()
        assert fake_renderer.calls == []
        assert 'records:  1' in stream.getvalue()

    def test_renderer_failure_leaves_no_output(self, tmp_path, scenario_result):
        def failing_renderer(table_path, header, year):
            raise PrinterError('enscript failed')

        with pytest.raises(PrinterError):
            emit_report(scenario_result, 'T-2024_all', 'T', '2024', tmp_path, failing_renderer,
                        stream=io.StringIO())
        assert list(tmp_path.iterdir()) == []


def test_publish_without_table(tmp_path):
    files = publish(tmp_path, 'X-2024_all', {'csv': 'a;b\n'}, 'X', '2024', renderer=None, stream=io.StringIO())
    assert [p.name for p in files] == ['X-2024_all.csv']


def test_purge_escapes_glob_characters(tmp_path):
    (tmp_path / 'A[1]-2024_all.csv').write_text('x')
    (tmp_path / 'A1-2024_all.csv').write_text('x')
    removed = purge_artifacts(tmp_path, 'A[1]-2024_all')
    assert [p.name for p in removed] == ['A[1]-2024_all.csv']


def test_list_created_files(tmp_path, caplog):
    (tmp_path / 'Moosach_Miete-2024_all.csv').write_text('x')
    (tmp_path / 'Moosach_Hausgeld-2024_all.table').write_text('x')
    (tmp_path / 'Moosach_Miete-2023_all.csv').write_text('x')
    with caplog.at_level('INFO'):
        files = list_created_files(tmp_path, 'Moosach', '2024', SignFilter.ALL)
    assert [p.name for p in files] == ['Moosach_Hausgeld-2024_all.table', 'Moosach_Miete-2024_all.csv']
    assert 'created files:' in caplog.text

    with caplog.at_level('INFO'):
        assert list_created_files(tmp_path, 'Steuer', '2024', SignFilter.ALL) == []
    assert 'no files created' in caplog.text
