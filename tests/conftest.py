"""
Pytest Configuration and Shared Fixtures

Provides a spreadsheet-shaped fixture of ten SAV tickets (two title lines,
headers on line 3, data from line 4) and the frames derived from it.
"""
import os
import sys
from datetime import datetime

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

HEADERS = ['ND', 'Produit', 'Secteur', 'ZR', 'Motif', 'Type', 'Type Recours',
           'Date Enreg', 'Date clôture', 'Délai', 'Groupe']

DATA_ROWS = [
    ['ND001', 'FTTH', 'Agadir', 'ATR-TAR01', 'GRFD', 'Dérangement', None,
     datetime(2024, 1, 5, 9, 0), datetime(2024, 1, 5, 15, 0), 0.25, 'FIBRE'],
    ['ND002', 'ADSL', 'Agadir', 'ATR-TAR01', 'CAT', 'Dérangement', 'RECL',
     datetime(2024, 1, 10), datetime(2024, 1, 12), 2.0, 'ADSL'],
    ['ND003', 'VOIP FO', 'Agadir', 'OATR-ZO', 'RLD', 'Dérangement', None,
     datetime(2024, 1, 20), None, 0.5, None],
    ['ND004', 'RTC', 'Inezgane', 'INZ-001', 'RLD', 'Dérangement', 'RECL 2',
     datetime(2024, 2, 1), datetime(2024, 2, 4), 3.5, 'RTC'],
    ['ND005', 'FTTH', 'Inezgane', 'INZ-001', 'GRFD', 'Information', None,
     datetime(2024, 2, 3), datetime(2024, 2, 3), 0.9, 'VOIP FTTH'],
    ['ND006', 'RTC', 'Inezgane', 'INZ-002', 'XYZ', 'Dérangement', None,
     datetime(2024, 2, 14), datetime(2024, 2, 15), 1.0, 'RTC'],
    ['ND007', 'ADSL', 'Agadir', 'ATR-TAR02', 'cat', 'Information', 'recl',
     '15/03/2024', '17/03/2024', '1,5', 'ADSL'],
    ['ND008', 'FTTH', None, None, None, 'Dérangement', None,
     'pas une date', None, None, None],
    ['ND009', 'RTC', 'Agadir', 'ATR-TAR01', 'GBF', 'Dérangement', None,
     datetime(2024, 3, 2), datetime(2024, 3, 2), 0.1, 'RTC'],
    ['ND010', 'ADSL', 'Inezgane', 'INZ-002', 'GRFD', 'Dérangement', None,
     datetime(2024, 3, 20), datetime(2024, 3, 24), 4.0, 'ADSL'],
]


def build_rows(data_rows=None, headers=None):
    rows = [
        ['Extraction des signalements SAV'],
        ['Période : T1 2024'],
        list(headers or HEADERS),
    ]
    rows.extend(list(r) for r in (DATA_ROWS if data_rows is None else data_rows))
    return rows


@pytest.fixture
def sheet_rows():
    """Ten tickets plus a row without ND and a blank row, both to be skipped."""
    rows = build_rows()
    rows.insert(6, [None, 'FTTH', 'Agadir', 'ATR-TAR01', 'GRFD', 'Dérangement', None,
                    datetime(2024, 1, 25), None, 0.3, None])
    rows.append([None] * len(HEADERS))
    return rows


@pytest.fixture
def tickets(sheet_rows):
    from ticket_loader import parse_ticket_rows
    return parse_ticket_rows(sheet_rows)


@pytest.fixture
def stats(tickets):
    from ticket_stats import calculate_stats
    return calculate_stats(tickets)


@pytest.fixture
def xlsx_file(tmp_path, sheet_rows):
    """The same fixture written to a real .xlsx workbook."""
    from openpyxl import Workbook
    wb = Workbook()
    ws = wb.active
    for row in sheet_rows:
        ws.append(row)
    path = tmp_path / "export_sav.xlsx"
    wb.save(path)
    return path
