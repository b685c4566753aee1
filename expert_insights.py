"""
Narrative commentary on the computed statistics, produced by a hosted LLM.

The service is optional: a missing key or any API failure yields a static
French message and never interrupts the dashboard.
"""
import logging
import os

import streamlit as st
from groq import Groq

from sav_config import (BRAND_NAME, GROQ_API_KEY_NAME, GROQ_MODEL, LLM_MAX_TOKENS,
                        LLM_TEMPERATURE, REGION_NAME, SLA_TARGET_PCT)
from ticket_models import Statistics

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "Clé API non configurée. Impossible de générer des insights."
EMPTY_RESPONSE_MESSAGE = "Désolé, je n'ai pas pu générer d'analyse pour le moment."
API_ERROR_MESSAGE = "Une erreur est survenue lors de la génération des insights experts."
FALLBACK_MESSAGES = (MISSING_KEY_MESSAGE, EMPTY_RESPONSE_MESSAGE, API_ERROR_MESSAGE)


def is_fallback(text: str) -> bool:
    """True when `text` is one of the static messages rather than model output."""
    return text in FALLBACK_MESSAGES


def _resolve_api_key(api_key=None):
    if api_key:
        return api_key
    env_key = os.getenv(GROQ_API_KEY_NAME)
    if env_key:
        return env_key
    try:
        if GROQ_API_KEY_NAME in st.secrets:
            return st.secrets[GROQ_API_KEY_NAME]
    except (FileNotFoundError, KeyError):
        # no secrets.toml configured
        pass
    return None


def _lines(items, fmt) -> str:
    return "\n".join(fmt(item) for item in items) or "- (aucune donnée)"


def build_insights_prompt(stats: Statistics) -> str:
    products = _lines(stats.tickets_per_product, lambda p: f"- {p['name']}: {p['value']} tickets")
    sectors = _lines(stats.tickets_per_sector,
                     lambda s: f"- {s['name']}: {s['total']} tickets (Moyenne délai: {s['delay']:.2f}j)")
    zrs = _lines(stats.tickets_per_zr,
                 lambda z: f"- {z['name']}: {z['total']} tickets (Moyenne délai: {z['delay']:.2f}j)")
    motifs = _lines(stats.tickets_per_motif[:5], lambda m: f"- {m['name']}: {m['value']} tickets")

    return f"""
    En tant que {BRAND_NAME}, Data Analyst Senior expert en tickets SAV Télécom (ADSL, Fibre, VPN, VoIP, RTC), analyse les statistiques suivantes pour le secteur de {REGION_NAME} et fournis des recommandations stratégiques.

    CONTEXTE :
    - L'objectif (Target) de respect du SLA est fixé à {SLA_TARGET_PCT:.0f}%.
    - Pour les tickets concernant le produit "RTC", il est établi que le réseau et le câblage sont vieillissants et nécessitent une maintenance curative et préventive accrue.

    STATISTIQUES GLOBALES :
    - Total de tickets : {stats.total_tickets}
    - Taux de respect SLA actuel : {stats.sla_rate:.2f}% (Cible : {SLA_TARGET_PCT:.0f}%)
    - Délai moyen de traitement : {stats.avg_delay:.2f} jours
    - Tickets réouverts (RECL) : {stats.reopened_tickets} ({stats.reopened_rate:.2f}%)

    TOP PRODUITS :
{products}

    TOP SECTEURS (VOLUME) :
{sectors}

    TOP UNITÉS TECHNIQUES (ZR) :
{zrs}

    PRINCIPAUX MOTIFS DE CLÔTURE :
{motifs}

    Ta réponse doit être structurée en français avec les sections suivantes :
    1. Analyse de la performance globale par rapport à l'objectif de {SLA_TARGET_PCT:.0f}%.
    2. Focus sur le produit RTC : souligner impérativement la problématique de vétusté du câblage et la nécessité de maintenance.
    3. Identification des goulots d'étranglement par zone technique.
    4. Plan d'action managérial et alertes prioritaires.

    Style professionnel, technique, direct et orienté décisionnel.
    """


def get_expert_insights(stats: Statistics, client=None, api_key=None) -> str:
    """
    Returns the LLM commentary for `stats`, or a fallback message.
    `client` may be any object exposing the Groq chat-completions interface.
    """
    if client is None:
        key = _resolve_api_key(api_key)
        if not key:
            logger.info("No %s configured, skipping AI insights", GROQ_API_KEY_NAME)
            return MISSING_KEY_MESSAGE
        client = Groq(api_key=key)

    prompt = build_insights_prompt(stats)
    try:
        chat_completion = client.chat.completions.create(
            messages=[{"role": "user", "content": prompt}],
            model=GROQ_MODEL, temperature=LLM_TEMPERATURE, max_tokens=LLM_MAX_TOKENS,
        )
        content = chat_completion.choices[0].message.content
    except Exception:
        logger.exception("Error calling LLM API")
        return API_ERROR_MESSAGE
    return (content or "").strip() or EMPTY_RESPONSE_MESSAGE
