"""
ZR -> sector lookup. The mapping is edited by the user independently of the
uploaded data and overrides the sector column carried by each ticket.
"""
import json
import logging
from typing import Iterable, List, Set

import pandas as pd

from sav_errors import SectorMappingError
from ticket_models import SectorMapping

logger = logging.getLogger(__name__)


def apply_sector_mapping(tickets: pd.DataFrame, mapping: SectorMapping) -> pd.DataFrame:
    """Returns a copy of `tickets` where mapped ZRs carry their assigned sector."""
    mapped = tickets.copy()
    if mapped.empty or not mapping:
        return mapped
    custom = mapped['zr'].map(mapping)
    has_custom = custom.notna() & (custom.astype(str).str.len() > 0)
    mapped.loc[has_custom, 'sector'] = custom[has_custom]
    return mapped


def mapping_to_json(mapping: SectorMapping) -> str:
    return json.dumps(dict(sorted(mapping.items())), ensure_ascii=False, indent=2)


def mapping_from_json(text) -> SectorMapping:
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise SectorMappingError(f"Fichier de correspondance illisible : {e}") from e
    if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()):
        raise SectorMappingError("Le fichier doit contenir un objet JSON « ZR » -> « Secteur ».")
    return {zr.strip(): sector.strip() for zr, sector in data.items() if zr.strip() and sector.strip()}


class SectorMapper:
    """
    Draft of the sector mapping being edited in the dialog.
    Nothing is committed until the caller reads `mappings` on save;
    dropping the instance cancels the edit.
    """

    def __init__(self, all_zrs: Iterable[str], mappings: SectorMapping):
        self.all_zrs = sorted(set(all_zrs))
        self._mappings = dict(mappings)
        self.sectors: List[str] = sorted(set(self._mappings.values()))
        self.selected: Set[str] = set()

    @property
    def mappings(self) -> SectorMapping:
        return dict(self._mappings)

    @property
    def unmapped_zrs(self) -> List[str]:
        return [zr for zr in self.all_zrs if not self._mappings.get(zr)]

    def zrs_for(self, sector: str) -> List[str]:
        return [zr for zr, s in self._mappings.items() if s == sector]

    def toggle(self, zr: str):
        if zr in self.selected:
            self.selected.discard(zr)
        else:
            self.selected.add(zr)

    def select_all_unmapped(self):
        self.selected = set(self.unmapped_zrs)

    def deselect_all(self):
        self.selected = set()

    def assign_selected(self, sector: str) -> int:
        """Maps every selected ZR to `sector` and clears the selection; returns how many were assigned."""
        if not self.selected:
            return 0
        count = len(self.selected)
        for zr in self.selected:
            self._mappings[zr] = sector
        self.selected = set()
        logger.debug("Assigned %d ZR to sector %s", count, sector)
        return count

    def remove_mapping(self, zr: str):
        self._mappings.pop(zr, None)

    def create_sector(self, name: str) -> bool:
        name = (name or '').strip()
        if not name or name in self.sectors:
            return False
        self.sectors = sorted(self.sectors + [name])
        return True

    def delete_sector(self, sector: str):
        self.sectors = [s for s in self.sectors if s != sector]
        self._mappings = {zr: s for zr, s in self._mappings.items() if s != sector}
