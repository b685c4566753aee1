# Defines the standard data classes (models) shared by the dashboard modules.

from dataclasses import dataclass, field
from typing import Dict, List

# Columns of the normalized ticket frame, in display order.
TICKET_COLUMNS = [
    'id', 'nd', 'product', 'sector', 'zr', 'motif', 'complaint_type', 'recourse_type',
    'registered_at', 'closed_at', 'delay_days', 'sla_respected', 'is_reopened', 'month',
]

# Multi-select filter fields mapped to the ticket column they constrain.
CATEGORY_FIELDS = {
    'product': 'product',
    'sector': 'sector',
    'zr': 'zr',
    'motif': 'motif',
    'complaint_type': 'complaint_type',
    'month': 'month',
}

SLA_STATUSES = ('all', 'respected', 'exceeded')
REOPEN_STATUSES = ('all', 'reopened', 'normal')

SectorMapping = Dict[str, str]  # ZR -> sector name


@dataclass
class FilterState:
    """
    The active selection criteria of the dashboard.
    An empty list means "no constraint" for that field.
    """
    product: List[str] = field(default_factory=list)
    sector: List[str] = field(default_factory=list)
    zr: List[str] = field(default_factory=list)
    motif: List[str] = field(default_factory=list)
    complaint_type: List[str] = field(default_factory=list)
    month: List[str] = field(default_factory=list)
    sla_status: str = 'all'
    reopen_status: str = 'all'
    search_query: str = ''

    def __post_init__(self):
        if self.sla_status not in SLA_STATUSES:
            raise ValueError(f"Unknown SLA status: {self.sla_status!r}")
        if self.reopen_status not in REOPEN_STATUSES:
            raise ValueError(f"Unknown reopen status: {self.reopen_status!r}")


@dataclass(frozen=True)
class Statistics:
    """Aggregate over the currently filtered tickets. Recomputed, never stored."""
    total_tickets: int = 0
    respected_sla: int = 0
    exceeded_sla: int = 0
    sla_rate: float = 0.0
    avg_delay: float = 0.0
    reopened_tickets: int = 0
    reopened_rate: float = 0.0
    tickets_per_month: List[dict] = field(default_factory=list)
    tickets_per_product: List[dict] = field(default_factory=list)
    tickets_per_sector: List[dict] = field(default_factory=list)
    tickets_per_zr: List[dict] = field(default_factory=list)
    tickets_per_motif: List[dict] = field(default_factory=list)
    tickets_per_type: List[dict] = field(default_factory=list)
