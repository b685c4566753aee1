"""
Tests for the aggregation of filtered tickets into Statistics.
"""
import pandas as pd
import pytest

from sector_mapping import apply_sector_mapping
from ticket_filters import apply_filters
from ticket_models import FilterState, Statistics
from ticket_stats import calculate_stats, stats_to_frame


class TestHeadlineFigures:

    def test_counts(self, stats):
        assert stats.total_tickets == 10
        assert stats.respected_sla == 5
        assert stats.exceeded_sla == 5
        assert stats.respected_sla + stats.exceeded_sla == stats.total_tickets

    def test_rates(self, stats):
        assert stats.sla_rate == pytest.approx(50.0)
        assert stats.avg_delay == pytest.approx(1.375)
        assert stats.reopened_tickets == 3
        assert stats.reopened_rate == pytest.approx(30.0)

    def test_empty_frame_gives_zero_statistics(self, tickets):
        stats = calculate_stats(tickets.iloc[0:0])
        assert stats == Statistics()
        assert stats.sla_rate == 0.0
        assert stats.tickets_per_month == []

    def test_is_deterministic(self, tickets):
        assert calculate_stats(tickets) == calculate_stats(tickets)


class TestBreakdowns:

    def test_months_sorted_with_invalid_bucket_first(self, stats):
        assert stats.tickets_per_month == [
            {'name': '0000-00', 'total': 1, 'sla': 1},
            {'name': '2024-01', 'total': 3, 'sla': 2},
            {'name': '2024-02', 'total': 3, 'sla': 1},
            {'name': '2024-03', 'total': 3, 'sla': 1},
        ]

    def test_products_keep_first_appearance_order(self, stats):
        assert stats.tickets_per_product == [
            {'name': 'FTTH', 'value': 2},
            {'name': 'ADSL', 'value': 3},
            {'name': 'VOIP', 'value': 2},
            {'name': 'RTC', 'value': 3},
        ]

    def test_motifs_ranked_by_count(self, stats):
        names = [m['name'] for m in stats.tickets_per_motif]
        assert names == [
            'Fibre optique en dérangement',
            'Assistance téléphonique',
            'Ligne en dérangement',
            'XYZ',
            'Inconnu',
            'Fibre Mauvaise',
        ]
        assert stats.tickets_per_motif[0]['value'] == 3

    def test_types_ranked_by_count(self, stats):
        assert stats.tickets_per_type == [
            {'name': 'Dérangement', 'value': 8},
            {'name': 'Information', 'value': 2},
        ]

    def test_sector_load_and_mean_delay(self, stats):
        sectors = {s['name']: s for s in stats.tickets_per_sector}
        assert [s['name'] for s in stats.tickets_per_sector] == ['Agadir', 'Inezgane', 'Inconnu']
        assert sectors['Agadir']['total'] == 5
        assert sectors['Agadir']['delay'] == pytest.approx(0.87)
        assert sectors['Inezgane']['delay'] == pytest.approx(2.35)
        assert sectors['Inconnu']['delay'] == pytest.approx(0.0)

    def test_zr_ranking_is_stable_on_ties(self, stats):
        assert [z['name'] for z in stats.tickets_per_zr] == [
            'ATR-TAR01', 'INZ-001', 'INZ-002', 'OATR-ZO', 'ATR-TAR02', 'Inconnu',
        ]
        assert stats.tickets_per_zr[0]['delay'] == pytest.approx(0.78333, rel=1e-4)

    def test_breakdown_sums_match_total(self, stats):
        for items, key in [(stats.tickets_per_month, 'total'),
                           (stats.tickets_per_product, 'value'),
                           (stats.tickets_per_type, 'value')]:
            assert sum(item[key] for item in items) == stats.total_tickets

    def test_values_are_plain_python(self, stats):
        assert type(stats.tickets_per_month[0]['total']) is int
        assert type(stats.tickets_per_sector[0]['delay']) is float

    def test_top_ten_cut(self, tickets):
        many = tickets.copy()
        many['zr'] = [f"ZR-{i:02d}" for i in range(len(many))]
        extra = many.copy()
        extra['zr'] = [f"ZR-{i:02d}" for i in range(10, 20)]
        stats = calculate_stats(pd.concat([many, extra], ignore_index=True))
        assert len(stats.tickets_per_zr) == 10
        assert stats.tickets_per_zr[0]['name'] == 'ZR-00'


class TestPipeline:

    def test_mapping_then_filter_then_stats(self, tickets):
        mapped = apply_sector_mapping(tickets, {'ATR-TAR01': 'Taroudant', 'ATR-TAR02': 'Taroudant'})
        filtered = apply_filters(mapped, FilterState(sector=['Taroudant']))
        stats = calculate_stats(filtered)
        assert stats.total_tickets == 4
        assert stats.tickets_per_sector == [{'name': 'Taroudant', 'total': 4, 'delay': pytest.approx(0.9625)}]


class TestStatsToFrame:

    def test_empty_keeps_columns(self):
        df = stats_to_frame([], ['name', 'total', 'delay'])
        assert df.empty
        assert list(df.columns) == ['name', 'total', 'delay']

    def test_default_columns(self, stats):
        df = stats_to_frame(stats.tickets_per_product)
        assert list(df.columns) == ['name', 'value']
        assert df['value'].sum() == 10
