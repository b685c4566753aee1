"""
Predicate filtering of the ticket frame. Every criterion is independent and
they combine with a logical AND; an empty selection never constrains.
"""
from typing import Dict, List

import pandas as pd

from ticket_models import CATEGORY_FIELDS, FilterState

SEARCH_COLUMNS = ['nd', 'zr', 'motif', 'complaint_type', 'sector']

SLA_STATUS_LABELS = {
    'all': 'Consolidé',
    'respected': 'Conforme (SLA)',
    'exceeded': 'Hors Délai',
}
REOPEN_STATUS_LABELS = {
    'all': 'Tous',
    'reopened': 'Réouverts (RECL)',
    'normal': 'Première demande',
}


def apply_filters(tickets: pd.DataFrame, filters: FilterState) -> pd.DataFrame:
    if tickets.empty:
        return tickets.copy()

    mask = pd.Series(True, index=tickets.index)
    for field_name, column in CATEGORY_FIELDS.items():
        selected = getattr(filters, field_name)
        if selected:
            mask &= tickets[column].isin(selected)

    if filters.sla_status == 'respected':
        mask &= tickets['sla_respected']
    elif filters.sla_status == 'exceeded':
        mask &= ~tickets['sla_respected']

    if filters.reopen_status == 'reopened':
        mask &= tickets['is_reopened']
    elif filters.reopen_status == 'normal':
        mask &= ~tickets['is_reopened']

    query = filters.search_query.strip().lower()
    if query:
        found = pd.Series(False, index=tickets.index)
        for column in SEARCH_COLUMNS:
            found |= tickets[column].astype(str).str.lower().str.contains(query, regex=False)
        mask &= found

    return tickets[mask].copy()


def filter_options(tickets: pd.DataFrame) -> Dict[str, List[str]]:
    """Sorted distinct values offered by each multi-select filter."""
    if tickets.empty:
        return {field_name: [] for field_name in CATEGORY_FIELDS}
    return {
        field_name: sorted(tickets[column].dropna().astype(str).unique().tolist())
        for field_name, column in CATEGORY_FIELDS.items()
    }


def has_active_filters(filters: FilterState) -> bool:
    if any(getattr(filters, field_name) for field_name in CATEGORY_FIELDS):
        return True
    return (filters.sla_status != 'all' or filters.reopen_status != 'all'
            or filters.search_query.strip() != '')


def describe_filters(filters: FilterState) -> str:
    """One-line summary of the active filters, as printed at the top of the PDF report."""
    status = {
        'all': 'CONSOLIDÉ',
        'respected': 'CONFORME SLA',
        'exceeded': 'CRITIQUE (HORS DÉLAI)',
    }[filters.sla_status]
    parts = [f"FILTRES ACTIFS : {status}"]
    if filters.reopen_status != 'all':
        parts.append(f"RÉOUVERTURE : {REOPEN_STATUS_LABELS[filters.reopen_status].upper()}")
    labels = {
        'product': 'PRODUITS', 'sector': 'SECTEURS', 'zr': 'ZR',
        'motif': 'MOTIFS', 'complaint_type': 'TYPES', 'month': 'MOIS',
    }
    for field_name, label in labels.items():
        selected = getattr(filters, field_name)
        if selected:
            parts.append(f"{label} : {', '.join(selected)}")
    if filters.search_query:
        parts.append(f'RECHERCHE : "{filters.search_query.upper()}"')
    return " | ".join(parts)
