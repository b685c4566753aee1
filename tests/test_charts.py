"""
Tests for the Plotly chart builders.
"""
import plotly.graph_objects as go
import pytest

from charts import DASHBOARD_CHARTS, monthly_trend_chart, sector_load_chart, zr_load_chart
from ticket_models import Statistics


@pytest.mark.parametrize("builder", DASHBOARD_CHARTS)
def test_builds_figure(stats, builder):
    assert isinstance(builder(stats), go.Figure)


@pytest.mark.parametrize("builder", DASHBOARD_CHARTS)
def test_no_data_no_figure(builder):
    assert builder(Statistics()) is None


def test_monthly_trend_has_total_and_sla_series(stats):
    fig = monthly_trend_chart(stats)
    assert [trace.name for trace in fig.data] == ['Total', 'SLA OK']
    assert list(fig.data[0].x) == ['0000-00', '2024-01', '2024-02', '2024-03']


def test_load_charts_follow_ranking(stats):
    assert list(zr_load_chart(stats).data[0].x)[0] == 'ATR-TAR01'
    assert list(sector_load_chart(stats).data[0].x) == ['Agadir', 'Inezgane', 'Inconnu']
