"""
Spreadsheet ingestion: turns the first worksheet of an SAV export into the
normalized ticket frame described by ``ticket_models.TICKET_COLUMNS``.

The export carries two title lines, the header row on line 3 and the data
from line 4. Columns are located by substring so that small header changes
between exports do not break the import.
"""
import io
import logging
import math
import os
import re
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence

import pandas as pd
import xlrd
from openpyxl import load_workbook

from sav_config import (COLUMN_KEYWORDS, HEADER_ROW_INDEX, INVALID_MONTH, MIN_SHEET_ROWS,
                        MOTIF_MAPPING, REOPEN_MARKER, SLA_THRESHOLD_DAYS, SUPPORTED_EXTENSIONS,
                        UNKNOWN_LABEL)
from sav_errors import TicketFileError
from ticket_models import TICKET_COLUMNS

logger = logging.getLogger(__name__)

TOO_SHORT_MESSAGE = (
    "Le fichier ne contient pas assez de données "
    "(attendu : en-têtes à la ligne 3, données à partir de la ligne 4)."
)
_RAW_COLUMNS = TICKET_COLUMNS[:TICKET_COLUMNS.index('delay_days') + 1]
_LEADING_NUMBER = re.compile(r'\s*([-+]?(?:\d+(?:[.,]\d*)?|[.,]\d+))')


# --- Reading ---
def _read_bytes(source) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if hasattr(source, 'getvalue'):
        return source.getvalue()
    if hasattr(source, 'read'):
        return source.read()
    with open(source, 'rb') as f:
        return f.read()


def _read_xlsx_rows(data: bytes) -> List[tuple]:
    wb = load_workbook(io.BytesIO(data), data_only=True)
    try:
        ws = wb.worksheets[0]
        return [tuple(row) for row in ws.iter_rows(min_row=1, min_col=1, values_only=True)]
    finally:
        wb.close()


def _read_xls_rows(data: bytes) -> List[tuple]:
    book = xlrd.open_workbook(file_contents=data)
    sheet = book.sheet_by_index(0)
    rows = []
    for r in range(sheet.nrows):
        values = []
        for cell in sheet.row(r):
            if cell.ctype == xlrd.XL_CELL_DATE:
                values.append(xlrd.xldate_as_datetime(cell.value, book.datemode))
            elif cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
                values.append(None)
            else:
                values.append(cell.value)
        rows.append(tuple(values))
    return rows


def read_sheet_rows(source, filename: str) -> List[tuple]:
    """
    Reads every row (blank rows included) of the first worksheet.
    `source` may be a path, raw bytes, or a file-like object such as a
    Streamlit UploadedFile; `filename` decides the reader.
    """
    ext = os.path.splitext(filename.lower())[1]
    if ext not in SUPPORTED_EXTENSIONS:
        raise TicketFileError(
            f"Format de fichier non pris en charge ({ext or 'sans extension'}). "
            f"Formats acceptés : {', '.join(SUPPORTED_EXTENSIONS)}."
        )
    data = _read_bytes(source)
    try:
        rows = _read_xlsx_rows(data) if ext == '.xlsx' else _read_xls_rows(data)
    except Exception as e:
        # the readers raise their own error types for damaged files
        logger.exception("Could not read workbook %s", filename)
        raise TicketFileError("Erreur lors de la lecture du fichier Excel.") from e
    logger.debug("Read %d rows from %s", len(rows), filename)
    return rows


# --- Cell coercion ---
def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _cell(row: Sequence, idx: Optional[int]):
    if idx is None or idx >= len(row):
        return None
    return row[idx]


def _text(value, default: str = UNKNOWN_LABEL) -> str:
    if _is_blank(value):
        return default
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _to_number(value) -> float:
    """Lenient numeric coercion: leading number of a string, decimal comma accepted, 0 otherwise."""
    if isinstance(value, bool) or _is_blank(value):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    match = _LEADING_NUMBER.match(str(value))
    if not match:
        return 0.0
    return float(match.group(1).replace(',', '.'))


def _to_timestamp(value):
    if isinstance(value, (datetime, date)):
        return pd.Timestamp(value)
    if isinstance(value, str) and value.strip():
        return pd.to_datetime(value.strip(), errors='coerce', dayfirst=True)
    return pd.NaT


def find_column(headers: Iterable, keyword: str) -> Optional[int]:
    """Index of the first header containing `keyword` (case-insensitive), or None."""
    needle = keyword.lower()
    for idx, header in enumerate(headers):
        if not _is_blank(header) and needle in str(header).lower():
            return idx
    return None


def _normalize_product(product: str, group: str) -> str:
    if 'VOIP FTTH' in group.upper() or product.upper() == 'VOIP FO':
        return 'VOIP'
    return product


def _normalize_motif(motif: str) -> str:
    return MOTIF_MAPPING.get(motif.upper(), motif)


# --- Parsing ---
def parse_ticket_rows(rows: Sequence[Sequence]) -> pd.DataFrame:
    """
    Maps raw sheet rows to the normalized ticket frame.
    Missing columns or unparseable cells get placeholder values; only a file
    too short to hold headers and data, or one without an ND column, fails.
    """
    if len(rows) < MIN_SHEET_ROWS:
        raise TicketFileError(TOO_SHORT_MESSAGE)

    headers = rows[HEADER_ROW_INDEX] or ()
    idx = {name: find_column(headers, keyword) for name, keyword in COLUMN_KEYWORDS.items()}
    if idx['nd'] is None:
        raise TicketFileError("Colonne « ND » introuvable dans la ligne d'en-têtes (ligne 3).")
    missing = [COLUMN_KEYWORDS[name] for name, i in idx.items() if i is None]
    if missing:
        logger.info("Columns not found, placeholders used: %s", ", ".join(missing))

    records = []
    for row in rows[HEADER_ROW_INDEX + 1:]:
        row = row or ()
        if _is_blank(_cell(row, idx['nd'])):
            continue
        group = _text(_cell(row, idx['group']), default='')
        records.append({
            'id': f"ticket-{len(records)}",
            'nd': _text(_cell(row, idx['nd']), default=''),
            'product': _normalize_product(_text(_cell(row, idx['product'])), group),
            'sector': _text(_cell(row, idx['sector'])),
            'zr': _text(_cell(row, idx['zr'])),
            'motif': _normalize_motif(_text(_cell(row, idx['motif']))),
            'complaint_type': _text(_cell(row, idx['complaint_type'])),
            'recourse_type': _text(_cell(row, idx['recourse_type']), default=''),
            'registered_at': _to_timestamp(_cell(row, idx['registered_at'])),
            'closed_at': _to_timestamp(_cell(row, idx['closed_at'])),
            'delay_days': _to_number(_cell(row, idx['delay_days'])),
        })

    df = pd.DataFrame.from_records(records, columns=_RAW_COLUMNS)
    df['registered_at'] = pd.to_datetime(df['registered_at'], errors='coerce')
    df['closed_at'] = pd.to_datetime(df['closed_at'], errors='coerce')
    df['delay_days'] = df['delay_days'].astype(float)
    df['sla_respected'] = df['delay_days'] < SLA_THRESHOLD_DAYS
    df['is_reopened'] = df['recourse_type'].astype(str).str.upper().str.contains(REOPEN_MARKER, regex=False)
    df['month'] = df['registered_at'].dt.strftime('%Y-%m').fillna(INVALID_MONTH)
    logger.info("Parsed %d tickets from %d data rows", len(df), len(rows) - HEADER_ROW_INDEX - 1)
    return df[TICKET_COLUMNS]


def load_tickets(source, filename: str) -> pd.DataFrame:
    return parse_ticket_rows(read_sheet_rows(source, filename))
