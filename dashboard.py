import logging
from datetime import datetime

import pandas as pd
import streamlit as st

from charts import DASHBOARD_CHARTS
from expert_insights import get_expert_insights, is_fallback
from pdf_report import build_pdf_report, report_filename
from sav_config import (BRAND_NAME, DEFAULT_SECTOR_MAPPINGS, DELAY_ALERT_DAYS, REOPEN_ALERT_PCT,
                        SAMPLE_ROWS, SLA_TARGET_PCT, SUPPORTED_EXTENSIONS, configure_logging)
from sav_errors import SectorMappingError, TicketFileError
from sector_mapping import SectorMapper, apply_sector_mapping, mapping_from_json, mapping_to_json
from ticket_filters import (REOPEN_STATUS_LABELS, SLA_STATUS_LABELS, apply_filters, filter_options,
                            has_active_filters)
from ticket_loader import load_tickets
from ticket_models import CATEGORY_FIELDS, FilterState
from ticket_stats import calculate_stats

configure_logging()
logger = logging.getLogger("dashboard")

# --- Page Configuration ---
st.set_page_config(
    page_title=f"{BRAND_NAME} | Analytique SAV",
    page_icon="⚡",
    layout="wide"
)

FILTER_WIDGET_KEYS = {field_name: f"flt_{field_name}" for field_name in CATEGORY_FIELDS}
FILTER_LABELS = {
    'product': "Offres & Produits",
    'sector': "Secteurs Régionaux",
    'zr': "Unités Techniques (ZR)",
    'month': "Fenêtre Temporelle",
    'motif': "Motifs de Clôture",
    'complaint_type': "Typologie de Réclamation",
}
TABLE_COLUMNS = {
    'nd': 'ND / Login', 'product': 'Produit', 'recourse_type': 'Recours', 'sector': 'Secteur',
    'zr': 'ZR', 'motif': 'Motif', 'delay_days': 'Délai (j)', 'sla_respected': 'SLA',
}


# --- Session state helpers ---
def init_session_state():
    defaults = {
        'tickets': None,
        'uploaded_file_id': None,
        'sector_mappings': dict(DEFAULT_SECTOR_MAPPINGS),
        'insights': '',
        'pdf_bytes': None,
        'load_error': None,
        'mapper_draft': None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def clear_report_session_state():
    st.session_state.pdf_bytes = None


def write_filters(filters: FilterState):
    for field_name, key in FILTER_WIDGET_KEYS.items():
        st.session_state[key] = list(getattr(filters, field_name))
    st.session_state.flt_sla = filters.sla_status
    st.session_state.flt_reopen = filters.reopen_status
    st.session_state.flt_search = filters.search_query


def reset_filters():
    write_filters(FilterState())
    clear_report_session_state()


def current_filters() -> FilterState:
    values = {field_name: list(st.session_state.get(key, [])) for field_name, key in FILTER_WIDGET_KEYS.items()}
    return FilterState(
        sla_status=st.session_state.get('flt_sla', 'all'),
        reopen_status=st.session_state.get('flt_reopen', 'all'),
        search_query=st.session_state.get('flt_search', ''),
        **values,
    )


def _prune_selection(key, options):
    # a remapped sector or a new file can remove previously selected values
    if key in st.session_state:
        st.session_state[key] = [v for v in st.session_state[key] if v in options]


@st.cache_data(show_spinner=False)
def cached_load_tickets(data: bytes, file_name: str) -> pd.DataFrame:
    return load_tickets(data, file_name)


def clear_loaded_data():
    st.session_state.tickets = None
    st.session_state.uploaded_file_id = None
    st.session_state.load_error = None
    st.session_state.insights = ''
    clear_report_session_state()


def handle_upload(uploaded_file):
    # file_id changes on every upload, even when the file name does not
    st.session_state.uploaded_file_id = uploaded_file.file_id
    st.session_state.insights = ''
    with st.spinner("Intelligence Opérationnelle en cours..."):
        try:
            tickets = cached_load_tickets(uploaded_file.getvalue(), uploaded_file.name)
        except TicketFileError as e:
            logger.warning("Import of %s rejected: %s", uploaded_file.name, e.message)
            st.session_state.tickets = None
            st.session_state.load_error = e.message
            clear_report_session_state()
            return
    st.session_state.tickets = tickets
    st.session_state.load_error = None
    reset_filters()
    logger.info("Loaded %d tickets from %s", len(tickets), uploaded_file.name)


# --- Sector mapping dialog ---
def _mapper_create_sector():
    if st.session_state.mapper_draft.create_sector(st.session_state.get('mapper_new_sector', '')):
        st.session_state.mapper_new_sector = ''


@st.dialog("Structure des Secteurs", width="large")
def sector_mapper_dialog(all_zrs):
    draft: SectorMapper = st.session_state.mapper_draft
    st.caption("Consolidation structurelle par hub technique régional.")

    col_left, col_right = st.columns([2, 3])
    with col_left:
        unmapped = draft.unmapped_zrs
        st.markdown(f"**ZR Non Assignées** ({len(unmapped)})")
        b1, b2 = st.columns(2)
        b1.button("Tout", on_click=draft.select_all_unmapped, use_container_width=True)
        b2.button("Aucune", on_click=draft.deselect_all, use_container_width=True)
        if unmapped:
            with st.container(height=320):
                # unkeyed so the box follows the draft after "Tout" / "Aucune"
                for zr in unmapped:
                    st.checkbox(zr, value=zr in draft.selected, on_change=draft.toggle, args=(zr,))
        else:
            st.success("Toutes les ZR sont assignées.")

    with col_right:
        n1, n2 = st.columns([3, 1])
        n1.text_input("Nouveau secteur", key='mapper_new_sector', placeholder="NOM DU NOUVEAU SECTEUR...",
                      label_visibility='collapsed')
        n2.button("Ajouter", on_click=_mapper_create_sector, use_container_width=True)

        selected_count = len(draft.selected)
        for sector in draft.sectors:
            zrs = draft.zrs_for(sector)
            with st.expander(f"{sector} ({len(zrs)} ZR)"):
                c1, c2 = st.columns(2)
                if selected_count:
                    c1.button(f"Assigner {selected_count} Zones", key=f"assign_{sector}",
                              on_click=draft.assign_selected, args=(sector,))
                c2.button("Supprimer le secteur", key=f"delete_{sector}",
                          on_click=draft.delete_sector, args=(sector,))
                for zr in sorted(zrs):
                    z1, z2 = st.columns([4, 1])
                    z1.write(zr)
                    z2.button("✖", key=f"unmap_{zr}", on_click=draft.remove_mapping, args=(zr,))

    with st.expander("Import / export de la correspondance (JSON)"):
        st.download_button("Exporter (.json)", data=mapping_to_json(draft.mappings),
                           file_name="secteurs_zr.json", mime="application/json")
        mapping_file = st.file_uploader("Importer un fichier .json", type="json", key='mapper_import')
        if mapping_file is not None and st.session_state.get('mapper_import_id') != mapping_file.file_id:
            try:
                imported = mapping_from_json(mapping_file.getvalue().decode('utf-8'))
            except (SectorMappingError, UnicodeDecodeError) as e:
                st.error(getattr(e, 'message', str(e)))
            else:
                st.session_state.mapper_draft = SectorMapper(all_zrs, imported)
                st.session_state.mapper_import_id = mapping_file.file_id
                st.rerun(scope="fragment")

    f1, f2 = st.columns(2)
    if f1.button("Annuler", use_container_width=True):
        st.session_state.mapper_draft = None
        st.rerun()
    if f2.button("Valider la Structure", type="primary", use_container_width=True):
        st.session_state.sector_mappings = draft.mappings
        st.session_state.mapper_draft = None
        clear_report_session_state()
        logger.info("Sector mapping saved: %d ZR mapped", len(draft.mappings))
        st.rerun()


# --- Sidebar ---
def render_sidebar_filters(mapped_tickets):
    st.sidebar.header("Filtres")
    options = filter_options(mapped_tickets)
    if has_active_filters(current_filters()):
        st.sidebar.button("Vider les filtres", on_click=reset_filters, use_container_width=True)

    for field_name in ['product', 'sector', 'zr', 'month', 'motif', 'complaint_type']:
        key = FILTER_WIDGET_KEYS[field_name]
        _prune_selection(key, options[field_name])
        st.sidebar.multiselect(FILTER_LABELS[field_name], options[field_name], key=key,
                               on_change=clear_report_session_state)

    st.sidebar.radio("Statut de Performance", options=list(SLA_STATUS_LABELS),
                     format_func=SLA_STATUS_LABELS.get, key='flt_sla', on_change=clear_report_session_state)
    st.sidebar.radio("Réouvertures", options=list(REOPEN_STATUS_LABELS),
                     format_func=REOPEN_STATUS_LABELS.get, key='flt_reopen', on_change=clear_report_session_state)


def render_sidebar_export(stats, filtered, filters):
    st.sidebar.markdown("---")
    st.sidebar.subheader("Rapport PDF")
    if st.sidebar.button("Générer le rapport PDF", disabled=filtered.empty, use_container_width=True):
        with st.spinner("Compilation du rapport PDF..."):
            try:
                st.session_state.pdf_bytes = build_pdf_report(
                    stats, filtered, filters, insights=st.session_state.insights or None)
            except Exception:
                logger.exception("PDF export failed")
                st.sidebar.error("Impossible de générer le rapport PDF.")
                st.session_state.pdf_bytes = None
    if st.session_state.pdf_bytes:
        st.sidebar.download_button(
            label="Télécharger le rapport (.pdf)",
            data=st.session_state.pdf_bytes,
            file_name=report_filename(datetime.now()),
            mime="application/pdf",
            use_container_width=True,
        )


# --- Main sections ---
def render_kpis(stats):
    k1, k2, k3, k4, k5 = st.columns(5)
    k1.metric("VOLUME TOTAL", f"{stats.total_tickets:,}", help="Tickets filtrés")
    k2.metric("PERFORMANCE SLA", f"{stats.sla_rate:.1f}%",
              delta=f"{stats.sla_rate - SLA_TARGET_PCT:+.1f} pts vs cible {SLA_TARGET_PCT:.0f}%")
    k3.metric("DÉLAI MOYEN", f"{stats.avg_delay:.2f}j",
              delta=f"{stats.avg_delay - DELAY_ALERT_DAYS:+.2f}j vs seuil", delta_color="inverse")
    k4.metric("ALERTE RETARD", f"{stats.exceeded_sla:,}", help="Tickets hors délai, priorité haute")
    k5.metric("RÉOUVERTURES", f"{stats.reopened_tickets:,}", delta=f"Taux: {stats.reopened_rate:.1f}%",
              delta_color="inverse" if stats.reopened_rate >= REOPEN_ALERT_PCT else "off")


def render_insights(stats, filtered):
    if st.button("🤖 Analyses IA", key="insights_button", disabled=filtered.empty):
        with st.spinner("Génération de l'analyse stratégique..."):
            text = get_expert_insights(stats)
        # fallback messages are shown but never kept for the PDF report
        if is_fallback(text):
            st.session_state.insights = ''
            st.warning(text)
        else:
            st.session_state.insights = text
        clear_report_session_state()
    if st.session_state.insights:
        with st.container(border=True):
            head, close = st.columns([10, 1])
            head.subheader(f"⚡ ANALYSE STRATÉGIQUE {BRAND_NAME}")
            close.button("✖", key="close_insights", help="Fermer l'analyse",
                         on_click=lambda: st.session_state.update(insights=''))
            st.markdown(st.session_state.insights)


def render_charts(stats):
    for i in range(0, len(DASHBOARD_CHARTS), 2):
        cols = st.columns(2)
        for col, builder in zip(cols, DASHBOARD_CHARTS[i:i + 2]):
            with col:
                fig = builder(stats)
                if fig is not None:
                    st.plotly_chart(fig, use_container_width=True)
                else:
                    st.info("Aucune donnée à afficher avec les filtres actuels.")


def render_table(filtered):
    st.subheader(f"Détail des tickets ({len(filtered)} lignes)")
    table = filtered.head(SAMPLE_ROWS)[list(TABLE_COLUMNS)].rename(columns=TABLE_COLUMNS)
    table['Recours'] = table['Recours'].where(table['Recours'] != '', '-')
    table['SLA'] = table['SLA'].map({True: 'Conforme', False: 'Hors délai'})
    st.dataframe(table, hide_index=True, use_container_width=True,
                 column_config={'Délai (j)': st.column_config.NumberColumn(format="%.2f")})
    if len(filtered) > SAMPLE_ROWS:
        st.caption(f"Affichage limité aux {SAMPLE_ROWS} premières lignes.")


# --- Main Application ---
init_session_state()

st.title(f"⚡ {BRAND_NAME}")
st.caption("EXCELLENCE DATA - Plateforme de Pilotage SAV")

uploaded_file = st.file_uploader("Import Excel", type=[ext.lstrip('.') for ext in SUPPORTED_EXTENSIONS],
                                 key='ticket_upload')
if uploaded_file is None:
    if st.session_state.uploaded_file_id is not None:
        clear_loaded_data()
elif st.session_state.uploaded_file_id != uploaded_file.file_id:
    handle_upload(uploaded_file)

if st.session_state.load_error:
    st.error(st.session_state.load_error)

tickets = st.session_state.tickets

if tickets is not None and not tickets.empty:
    st.text_input("Recherche", key='flt_search', placeholder="ND, ZR, motif ou secteur...",
                  on_change=clear_report_session_state)
    mapped_tickets = apply_sector_mapping(tickets, st.session_state.sector_mappings)

    all_zrs = tickets['zr'].unique().tolist()
    if st.sidebar.button("⚙️ Secteurs", use_container_width=True):
        st.session_state.mapper_draft = SectorMapper(all_zrs, st.session_state.sector_mappings)
        sector_mapper_dialog(all_zrs)

    render_sidebar_filters(mapped_tickets)
    filters = current_filters()
    filtered = apply_filters(mapped_tickets, filters)
    stats = calculate_stats(filtered)

    render_kpis(stats)
    render_insights(stats, filtered)
    st.markdown("---")
    render_charts(stats)
    st.markdown("---")
    render_table(filtered)
    render_sidebar_export(stats, filtered, filters)

elif tickets is not None and tickets.empty:
    st.warning("Le fichier importé ne contient aucun ticket exploitable (colonne ND vide).")
else:
    st.header("Analytique SAV de Précision")
    st.info("Importez vos données de signalements (.xlsx ou .xls) pour générer un tableau de bord "
            "haute performance et des analyses stratégiques.")

# --- Footer ---
st.markdown("---")
st.caption(f"© {datetime.now().year} Plateforme de Pilotage SAV. Confidentiel. "
           "Les analyses IA sont expérimentales et doivent être relues.")
