"""
Tests for ticket filtering and the filter summaries.
"""
import pytest

from ticket_filters import apply_filters, describe_filters, filter_options, has_active_filters
from ticket_models import FilterState


def nds(df):
    return df['nd'].tolist()


class TestApplyFilters:

    def test_default_filters_keep_everything(self, tickets):
        assert len(apply_filters(tickets, FilterState())) == 10

    def test_product_selection(self, tickets):
        assert nds(apply_filters(tickets, FilterState(product=['RTC']))) == ['ND004', 'ND006', 'ND009']

    def test_criteria_combine_with_and(self, tickets):
        filtered = apply_filters(tickets, FilterState(product=['RTC'], sla_status='exceeded'))
        assert nds(filtered) == ['ND004', 'ND006']

    def test_multiple_values_in_one_field(self, tickets):
        filtered = apply_filters(tickets, FilterState(product=['VOIP', 'FTTH']))
        assert nds(filtered) == ['ND001', 'ND003', 'ND005', 'ND008']

    def test_sla_status(self, tickets):
        respected = apply_filters(tickets, FilterState(sla_status='respected'))
        exceeded = apply_filters(tickets, FilterState(sla_status='exceeded'))
        assert len(respected) == 5
        assert len(exceeded) == 5
        assert set(nds(respected)).isdisjoint(nds(exceeded))

    def test_reopen_status(self, tickets):
        assert nds(apply_filters(tickets, FilterState(reopen_status='reopened'))) == ['ND002', 'ND004', 'ND007']
        assert len(apply_filters(tickets, FilterState(reopen_status='normal'))) == 7

    def test_month_selection(self, tickets):
        assert nds(apply_filters(tickets, FilterState(month=['2024-02']))) == ['ND004', 'ND005', 'ND006']

    def test_invalid_month_bucket_is_selectable(self, tickets):
        assert nds(apply_filters(tickets, FilterState(month=['0000-00']))) == ['ND008']

    @pytest.mark.parametrize("query,expected", [
        ('inz', ['ND004', 'ND005', 'ND006', 'ND010']),
        ('  INZ ', ['ND004', 'ND005', 'ND006', 'ND010']),
        ('nd01', ['ND010']),
        ('mauvaise', ['ND009']),
        ('information', ['ND005', 'ND007']),
        ('introuvable', []),
    ])
    def test_search(self, tickets, query, expected):
        assert nds(apply_filters(tickets, FilterState(search_query=query))) == expected

    def test_search_is_literal(self, tickets):
        assert apply_filters(tickets, FilterState(search_query='ATR.TAR')).empty

    def test_filtered_frame_is_a_copy(self, tickets):
        filtered = apply_filters(tickets, FilterState(product=['RTC']))
        filtered['sector'] = 'Changé'
        assert 'Changé' not in tickets['sector'].tolist()

    def test_empty_input(self, tickets):
        assert apply_filters(tickets.iloc[0:0], FilterState(product=['RTC'])).empty


class TestFilterOptions:

    def test_sorted_distinct_values(self, tickets):
        options = filter_options(tickets)
        assert options['product'] == ['ADSL', 'FTTH', 'RTC', 'VOIP']
        assert options['month'] == ['0000-00', '2024-01', '2024-02', '2024-03']
        assert options['complaint_type'] == ['Dérangement', 'Information']

    def test_empty_frame(self, tickets):
        options = filter_options(tickets.iloc[0:0])
        assert options['sector'] == []


class TestActiveFiltersAndSummary:

    def test_has_active_filters(self):
        assert not has_active_filters(FilterState())
        assert has_active_filters(FilterState(zr=['INZ-001']))
        assert has_active_filters(FilterState(reopen_status='normal'))
        assert has_active_filters(FilterState(search_query='x'))

    def test_blank_search_is_not_active(self, tickets):
        filters = FilterState(search_query='   ')
        assert not has_active_filters(filters)
        assert len(apply_filters(tickets, filters)) == len(tickets)

    def test_describe_default(self):
        assert describe_filters(FilterState()) == "FILTRES ACTIFS : CONSOLIDÉ"

    def test_describe_full(self):
        filters = FilterState(product=['ADSL', 'RTC'], sla_status='exceeded',
                              reopen_status='reopened', search_query='inz')
        assert describe_filters(filters) == (
            'FILTRES ACTIFS : CRITIQUE (HORS DÉLAI) | RÉOUVERTURE : RÉOUVERTS (RECL) | '
            'PRODUITS : ADSL, RTC | RECHERCHE : "INZ"'
        )
