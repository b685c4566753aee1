import logging
import os

import plotly.express as px

# --- Global Constants ---
BRAND_NAME = "MtSAV-Taroudant"
REGION_NAME = "Taroudant"

SLA_THRESHOLD_DAYS = 1.0   # a ticket respects the SLA when its delay is strictly below this
SLA_TARGET_PCT = 75.0
DELAY_ALERT_DAYS = 1.5
REOPEN_ALERT_PCT = 5.0
REOPEN_MARKER = "RECL"

HEADER_ROW_INDEX = 2       # headers on line 3, data from line 4
MIN_SHEET_ROWS = HEADER_ROW_INDEX + 2
SUPPORTED_EXTENSIONS = (".xlsx", ".xls")

TOP_N = 10
SAMPLE_ROWS = 100
UNKNOWN_LABEL = "Inconnu"
INVALID_MONTH = "0000-00"

# Substring keywords used to locate each column in the header row
COLUMN_KEYWORDS = {
    "nd": "ND",
    "product": "Produit",
    "sector": "Secteur",
    "zr": "ZR",
    "motif": "Motif",
    "complaint_type": "Type",
    "recourse_type": "Recours",
    "registered_at": "Enreg",
    "closed_at": "clôture",
    "delay_days": "Délai",
    "group": "Groupe",
}

MOTIF_MAPPING = {
    'GRFD': 'Fibre optique en dérangement',
    'GBF': 'Fibre Mauvaise',
    'CPSW': 'Porté Signal Wiffi',
    'CICE': 'Client injoinable/contact erroné',
    'GBCA': 'Câble Optique Arraché',
    'CCM': 'Configuration matériel',
    'CAIN': 'Client Absent/Injoignable',
    'CAT': 'Assistance téléphonique',
    'CRDV': 'Client reporte rendez-Vous',
    'GECO': 'Changement ONT',
    'RLD': 'Ligne en dérangement',
    'RDLD': 'Débit limité par la distance',
    'CECC': 'Coupure secteur',
    'CCID': 'Câblage interne dégradé',
}

_DEFAULT_ZRS = [
    "AIG-IGH00", "AIG-IGH31", "AIZ-AIZ00", "AIZ-AIZ01", "ALZ-ALZ00", "ALZ-ALZ01",
    "ALZ-ALZ02", "AOB-OBR00", "AOB-OBR01", "AOB-OBR02", "AOB-OBR11", "ATL-TAL00",
    "ATL-TAL42", "ATME-ATM00", "ATR-TAR00", "ATR-TAR01", "ATR-TAR02", "ATR-TAR03",
    "ATR-TAR04", "ATR-TAR05", "ATR-TAR06", "ATR-TAR07", "ATR-TAR08", "ATR-TAR09",
    "ATR-TAR11", "ATR-TAR12", "ATR-TAR13", "ATR-TAR14", "ATR-TAR15", "ATR-TAR17",
    "ATR-TAR18", "ATR-TAR33", "ATR-TAR45", "ATR-TAR56", "OAIG-ZO", "OAIZ-ZO",
    "OAMTR01-ZO", "OAMTR02-ZO", "OAMTR04-ZO", "OAMTR05-ZO", "OAMTR08-ZO", "OAMTR10-ZO",
    "OAMTR11-ZO", "OAMTR14-ZO", "OAMTR15-ZO", "OAOB-ZO", "OAOB37-ZO", "OATIG-ZO",
    "OATL-ZO", "OATL42-ZO", "OATNO-ZO", "OATR-ZO", "OATR35-ZO", "OATR42-ZO",
    "OATR59-ZO",
]
DEFAULT_SECTOR_MAPPINGS = {zr: REGION_NAME for zr in _DEFAULT_ZRS}

# --- LLM settings ---
GROQ_API_KEY_NAME = "GROQ_API_KEY"
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
LLM_TEMPERATURE = 0.4
LLM_MAX_TOKENS = 1500

# --- Color Palette ---
PROFESSIONAL_PALETTE = ['#dc2626', '#10b981', '#f59e0b', '#8b5cf6', '#ec4899', '#64748b', '#ef4444']
COLOR_TOTAL = '#dc2626'
COLOR_SLA_OK = '#10b981'
COLOR_NEUTRAL = '#1e293b'
DELAY_SCALE = px.colors.sequential.Reds

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level=None):
    """Configures root logging once; the level defaults to $SAV_LOG_LEVEL or INFO."""
    level = level or os.getenv("SAV_LOG_LEVEL", "INFO")
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
