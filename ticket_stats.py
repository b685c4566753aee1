"""
Grouped aggregation of the (filtered) ticket frame into a Statistics object.

The reduction is pure: the same frame always yields the same Statistics.
Ranked breakdowns use a stable descending sort, so ties keep the order in
which their first ticket appeared.
"""
import logging
from typing import List

import numpy as np
import pandas as pd

from sav_config import TOP_N
from ticket_models import Statistics

logger = logging.getLogger(__name__)


def _count_by(tickets: pd.DataFrame, column: str) -> pd.DataFrame:
    counts = tickets.groupby(column, sort=False).size().reset_index(name='value')
    return counts.rename(columns={column: 'name'})


def _load_by(tickets: pd.DataFrame, column: str) -> pd.DataFrame:
    grouped = tickets.groupby(column, sort=False).agg(
        total=('id', 'size'),
        delay=('delay_days', 'mean'),
    ).reset_index()
    return grouped.rename(columns={column: 'name'})


def _ranked(df: pd.DataFrame, by: str, top_n=None) -> pd.DataFrame:
    ranked = df.sort_values(by, ascending=False, kind='stable')
    return ranked.head(top_n) if top_n else ranked


def _records(df: pd.DataFrame) -> List[dict]:
    out = []
    for row in df.to_dict(orient='records'):
        out.append({k: (v.item() if isinstance(v, np.generic) else v) for k, v in row.items()})
    return out


def calculate_stats(tickets: pd.DataFrame) -> Statistics:
    total = len(tickets)
    if total == 0:
        return Statistics()

    respected = int(tickets['sla_respected'].sum())
    reopened = int(tickets['is_reopened'].sum())

    per_month = tickets.groupby('month').agg(
        total=('id', 'size'),
        sla=('sla_respected', 'sum'),
    ).reset_index().rename(columns={'month': 'name'}).sort_values('name')

    stats = Statistics(
        total_tickets=total,
        respected_sla=respected,
        exceeded_sla=total - respected,
        sla_rate=respected / total * 100,
        avg_delay=float(tickets['delay_days'].mean()),
        reopened_tickets=reopened,
        reopened_rate=reopened / total * 100,
        tickets_per_month=_records(per_month),
        tickets_per_product=_records(_count_by(tickets, 'product')),
        tickets_per_sector=_records(_ranked(_load_by(tickets, 'sector'), 'total', TOP_N)),
        tickets_per_zr=_records(_ranked(_load_by(tickets, 'zr'), 'total', TOP_N)),
        tickets_per_motif=_records(_ranked(_count_by(tickets, 'motif'), 'value', TOP_N)),
        tickets_per_type=_records(_ranked(_count_by(tickets, 'complaint_type'), 'value')),
    )
    logger.debug("Computed statistics over %d tickets (SLA %.1f%%)", total, stats.sla_rate)
    return stats


def stats_to_frame(items: List[dict], columns=None) -> pd.DataFrame:
    """Breakdown list -> DataFrame, keeping the expected columns even when empty."""
    if not items:
        return pd.DataFrame(columns=columns or ['name', 'value'])
    return pd.DataFrame(items, columns=columns) if columns else pd.DataFrame(items)
