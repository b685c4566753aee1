"""
Tests for the shared data classes.
"""
import pytest

from ticket_models import FilterState, Statistics


class TestFilterState:

    def test_defaults_constrain_nothing(self):
        filters = FilterState()
        assert filters.product == []
        assert filters.sla_status == 'all'
        assert filters.reopen_status == 'all'
        assert filters.search_query == ''

    @pytest.mark.parametrize("kwargs", [{'sla_status': 'late'}, {'reopen_status': 'maybe'}])
    def test_unknown_status_rejected(self, kwargs):
        with pytest.raises(ValueError):
            FilterState(**kwargs)

    def test_lists_not_shared(self):
        a, b = FilterState(), FilterState()
        a.product.append('RTC')
        assert b.product == []


class TestStatistics:

    def test_defaults_are_zero(self):
        stats = Statistics()
        assert stats.total_tickets == 0
        assert stats.tickets_per_zr == []

    def test_frozen(self):
        with pytest.raises(AttributeError):
            Statistics().total_tickets = 3
