import pytest

from giro_umsatz.errors import ConfigurationError
from giro_umsatz.ranker import format_ranked_row, rank_by_amount, render_ranked_table, validate_limit
from giro_umsatz.records import BaseRecordSet

AMOUNTS = ['250.00', '-50.00', '99.99', '100.00', '-50.01', '0.00', '-12.00', '1500.00', '-49.99']


@pytest.fixture
def base(make_record):
    return BaseRecordSet(make_record(amount=amount, purpose=f'purpose {i}') for i, amount in enumerate(AMOUNTS))


class TestRankByAmount:
    """Test suite for selecting records beyond a signed limit"""

    def test_positive_limit(self, base):
        """Test every record >= 100 is returned, and only those"""
        records = rank_by_amount(base, 100)
        assert [r.amount for r in records] == ['100.00', '250.00', '1500.00']
        expected = {r for r in base if r.value >= 100}
        assert set(records) == expected

    def test_negative_limit(self, base):
        """Test every record <= -50 is returned, ascending"""
        records = rank_by_amount(base, -50)
        assert [r.amount for r in records] == ['-50.01', '-50.00']
        assert all(r.value <= -50 for r in records)
        assert set(records) == {r for r in base if r.value <= -50}

    def test_limit_as_string(self, base):
        assert len(rank_by_amount(base, '-50')) == 2

    def test_nothing_beyond_limit(self, base):
        assert rank_by_amount(base, 100000) == []

    def test_equal_amounts_keep_base_order(self, make_record):
        first = make_record(amount='200.00', purpose='first')
        second = make_record(amount='200.00', purpose='second')
        base = BaseRecordSet([first, make_record(amount='300.00'), second])
        assert rank_by_amount(base, 150)[:2] == [first, second]

    def test_base_set_is_untouched(self, base):
        before = list(base)
        rank_by_amount(base, 100)
        assert list(base) == before


class TestValidateLimit:
    """Test suite for threshold validation"""

    def test_zero_rejected(self, base):
        with pytest.raises(ConfigurationError) as excinfo:
            rank_by_amount(base, 0)
        assert excinfo.value.stage == 'ranker'

    @pytest.mark.parametrize('limit', [None, 'abc', '1.5'])
    def test_not_an_integer(self, limit):
        with pytest.raises(ConfigurationError):
            validate_limit(limit)

    def test_valid(self):
        assert validate_limit('-200') == -200


class TestRankedTable:
    """Test suite for the ranked table"""

    def test_count_without_total(self, base):
        table = render_ranked_table(rank_by_amount(base, 100))
        lines = table.splitlines()
        assert lines[-1] == 'records: 3 (no totals for this option)'
        assert lines[-2] == ''
        assert 'total (EUR)' not in table

    def test_row_layout(self, make_record):
        row = format_ranked_row(make_record(amount='1500.00', purpose='p' * 95))
        assert row.startswith('01.01.24  | UMBUCHUNG ')
        assert row.endswith('|    1500.00')
        assert row.split(' | ')[2] == 'p' * 90
