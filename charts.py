import plotly.express as px

from sav_config import COLOR_NEUTRAL, COLOR_SLA_OK, COLOR_TOTAL, DELAY_SCALE, PROFESSIONAL_PALETTE
from ticket_models import Statistics
from ticket_stats import stats_to_frame

# Every builder returns None when there is nothing to plot.


def monthly_trend_chart(stats: Statistics):
    df = stats_to_frame(stats.tickets_per_month, ['name', 'total', 'sla'])
    if df.empty:
        return None
    df = df.rename(columns={'name': 'Mois', 'total': 'Total', 'sla': 'SLA OK'})
    fig = px.line(df, x='Mois', y=['Total', 'SLA OK'], title="Évolution Temporelle", markers=True,
                  color_discrete_sequence=[COLOR_TOTAL, COLOR_SLA_OK])
    fig.update_layout(yaxis_title="Nombre de tickets", legend_title_text='', hovermode="x unified")
    fig.update_xaxes(type='category')
    return fig


def product_mix_chart(stats: Statistics):
    df = stats_to_frame(stats.tickets_per_product)
    if df.empty:
        return None
    fig = px.pie(df, names='name', values='value', title="Mix par Produit (%)", hole=0.55,
                 color_discrete_sequence=PROFESSIONAL_PALETTE)
    fig.update_traces(textinfo='percent+label')
    return fig


def motif_pareto_chart(stats: Statistics):
    df = stats_to_frame(stats.tickets_per_motif)
    if df.empty:
        return None
    fig = px.bar(df, x='value', y='name', orientation='h', title="Top Motifs de Clôture", text_auto=True,
                 labels={'value': 'Tickets', 'name': 'Motif'}, color_discrete_sequence=[COLOR_TOTAL])
    fig.update_layout(yaxis={'categoryorder': 'total ascending'})
    return fig


def complaint_type_chart(stats: Statistics):
    df = stats_to_frame(stats.tickets_per_type)
    if df.empty:
        return None
    fig = px.bar(df, x='name', y='value', title="Typologie de Réclamation", text_auto=True,
                 labels={'value': 'Volume', 'name': 'Type'}, color_discrete_sequence=[COLOR_NEUTRAL])
    fig.update_traces(textposition='outside')
    return fig


def zr_load_chart(stats: Statistics):
    df = stats_to_frame(stats.tickets_per_zr, ['name', 'total', 'delay'])
    if df.empty:
        return None
    fig = px.bar(df, x='name', y='total', title="Top 10 Unités Techniques (ZR) par Charge", text_auto=True,
                 hover_data={'delay': ':.2f'},
                 labels={'total': 'Nb Tickets', 'name': 'ZR', 'delay': 'Délai moyen (j)'},
                 color_discrete_sequence=[COLOR_TOTAL])
    fig.update_layout(xaxis={'categoryorder': 'total descending'})
    return fig


def sector_load_chart(stats: Statistics):
    df = stats_to_frame(stats.tickets_per_sector, ['name', 'total', 'delay'])
    if df.empty:
        return None
    fig = px.bar(df, x='name', y='total', color='delay', title="Charge et Délai Moyen par Secteur",
                 text_auto=True, color_continuous_scale=DELAY_SCALE,
                 labels={'total': 'Nb Tickets', 'name': 'Secteur', 'delay': 'Délai moyen (j)'})
    fig.update_layout(xaxis={'categoryorder': 'total descending'})
    return fig


DASHBOARD_CHARTS = [
    monthly_trend_chart,
    product_mix_chart,
    motif_pareto_chart,
    complaint_type_chart,
    zr_load_chart,
    sector_load_chart,
]
