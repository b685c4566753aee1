# Executive PDF report of the filtered ticket set, laid out with ReportLab platypus.
import io
import logging
import re
from datetime import datetime
from xml.sax.saxutils import escape

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from sav_config import BRAND_NAME, DELAY_ALERT_DAYS, SAMPLE_ROWS, SLA_TARGET_PCT
from ticket_filters import describe_filters
from ticket_models import FilterState, Statistics

logger = logging.getLogger(__name__)

RED_600 = colors.HexColor('#dc2626')
RED_800 = colors.HexColor('#991b1b')
RED_300 = colors.HexColor('#fca5a5')
RED_50 = colors.HexColor('#fef2f2')
SLATE_800 = colors.HexColor('#1f2937')
GREY_400 = colors.HexColor('#9ca3af')
GREEN_600 = colors.HexColor('#059669')

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 15 * mm
HEADER_HEIGHT = 45 * mm


def report_filename(now=None) -> str:
    now = now or datetime.now()
    return f"Rapport_Executif_{BRAND_NAME}_{now.strftime('%Y%m%d')}.pdf"


class NumberedCanvas(canvas.Canvas):
    """Defers page output until the total page count is known, then stamps the footer."""

    def __init__(self, *args, **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(total)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)

    def _draw_footer(self, total):
        self.setFont('Helvetica', 7)
        self.setFillColor(GREY_400)
        self.drawCentredString(
            PAGE_WIDTH / 2, 10 * mm,
            f"{BRAND_NAME} ANALYTIQUE - DOCUMENT CONFIDENTIEL - PAGE {self._pageNumber} SUR {total}",
        )


def _styles():
    base = getSampleStyleSheet()
    return {
        'filters': ParagraphStyle('Filters', parent=base['BodyText'], fontName='Helvetica-Bold',
                                  fontSize=8, leading=10, textColor=RED_800),
        'section': ParagraphStyle('Section', parent=base['Heading2'], fontName='Helvetica-Bold',
                                  fontSize=14, textColor=SLATE_800, spaceBefore=8, spaceAfter=6),
        'card_label': ParagraphStyle('CardLabel', parent=base['BodyText'], fontName='Helvetica-Bold',
                                     fontSize=7, leading=9, textColor=RED_800),
        'card_value': ParagraphStyle('CardValue', parent=base['BodyText'], fontName='Helvetica-Bold',
                                     fontSize=16, leading=20),
        'body': ParagraphStyle('Body', parent=base['BodyText'], fontSize=9, leading=12),
        'bullet': ParagraphStyle('Bullet', parent=base['BodyText'], fontSize=9, leading=12,
                                 leftIndent=10, bulletIndent=2),
        'band': ParagraphStyle('Band', parent=base['BodyText'], fontName='Helvetica-Bold',
                               fontSize=11, textColor=colors.white),
    }


def _draw_first_page_header(generated_at):
    def draw(c, doc):
        c.saveState()
        c.setFillColor(RED_600)
        c.rect(0, PAGE_HEIGHT - HEADER_HEIGHT, PAGE_WIDTH, HEADER_HEIGHT, stroke=0, fill=1)
        c.setFillColor(colors.white)
        c.setFont('Helvetica-Bold', 22)
        c.drawString(MARGIN, PAGE_HEIGHT - 22 * mm, f"RAPPORT EXÉCUTIF {BRAND_NAME}")
        c.setFont('Helvetica-Bold', 10)
        c.drawString(MARGIN, PAGE_HEIGHT - 32 * mm, "PLATEFORME ANALYTIQUE TÉLÉCOM DE PRÉCISION")
        c.drawRightString(PAGE_WIDTH - MARGIN, PAGE_HEIGHT - 32 * mm,
                          f"DATE DE GÉNÉRATION : {generated_at.strftime('%d/%m/%Y %H:%M')}")
        c.restoreState()
    return draw


def _data_table(head, body, header_color, col_widths, font_size=8, theme='striped'):
    table = Table([head] + body, colWidths=col_widths, repeatRows=1, hAlign='LEFT')
    style = [
        ('BACKGROUND', (0, 0), (-1, 0), header_color),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 0), (-1, -1), font_size),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('TOPPADDING', (0, 0), (-1, -1), 3),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 3),
    ]
    if theme == 'grid':
        style.append(('GRID', (0, 0), (-1, -1), 0.5, colors.grey))
    else:
        style.append(('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#f5f5f5')]))
    table.setStyle(TableStyle(style))
    return table


def _kpi_cards(stats: Statistics, styles, width):
    cards = [
        ('VOLUME DES TICKETS', f"{stats.total_tickets}", False),
        ('PERFORMANCE SLA', f"{stats.sla_rate:.1f}%", stats.sla_rate < SLA_TARGET_PCT),
        ('DÉLAI MOYEN (J)', f"{stats.avg_delay:.2f}", stats.avg_delay > DELAY_ALERT_DAYS),
        ('ALERTES CRITIQUES', f"{stats.exceeded_sla}", stats.exceeded_sla > 0),
    ]
    cells = []
    for label, value, is_alert in cards:
        value_style = ParagraphStyle('CardValueColored', parent=styles['card_value'],
                                     textColor=RED_600 if is_alert else SLATE_800)
        cells.append([Paragraph(escape(label), styles['card_label']), Paragraph(escape(value), value_style)])
    table = Table([cells], colWidths=[width / 4] * 4)
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, -1), RED_50),
        ('BOX', (0, 0), (0, 0), 0.8, RED_300),
        ('BOX', (1, 0), (1, 0), 0.8, RED_300),
        ('BOX', (2, 0), (2, 0), 0.8, RED_300),
        ('BOX', (3, 0), (3, 0), 0.8, RED_300),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
    ]))
    return table


def _markdown_paragraphs(text, styles):
    """Light markdown -> flowables: **bold**, '#' headings and '-'/'*' bullets."""
    flowables = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        bullet = line.startswith(('- ', '* '))
        if bullet:
            line = line[2:]
        line = line.lstrip('#').strip()
        markup = re.sub(r'\*\*(.+?)\*\*', r'<b>\1</b>', escape(line))
        if bullet:
            flowables.append(Paragraph(markup, styles['bullet'], bulletText='•'))
        else:
            flowables.append(Paragraph(markup, styles['body']))
    return flowables


def _percent(value, total):
    return f"{(value / total * 100) if total else 0:.1f}%"


def build_pdf_report(stats: Statistics, tickets: pd.DataFrame, filters: FilterState,
                     insights=None, generated_at=None) -> bytes:
    """Renders the executive report and returns the PDF document as bytes."""
    generated_at = generated_at or datetime.now()
    styles = _styles()
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=A4,
        leftMargin=MARGIN, rightMargin=MARGIN, topMargin=MARGIN, bottomMargin=18 * mm,
        title=f"Rapport Exécutif {BRAND_NAME}", author=BRAND_NAME,
    )
    width = doc.width
    story = [Spacer(1, HEADER_HEIGHT - MARGIN + 4 * mm)]

    story.append(Paragraph(escape(describe_filters(filters)), styles['filters']))
    story.append(Spacer(1, 4 * mm))
    story.append(_kpi_cards(stats, styles, width))
    story.append(Spacer(1, 6 * mm))

    # --- Segmentation tables ---
    story.append(Paragraph("SEGMENTATION OPÉRATIONNELLE", styles['section']))
    half = width / 2 - 3 * mm
    product_table = _data_table(
        ['OFFRE PRODUIT', 'VOLUME', 'POURCENTAGE'],
        [[p['name'].upper(), p['value'], _percent(p['value'], stats.total_tickets)]
         for p in stats.tickets_per_product],
        RED_600, [half * 0.5, half * 0.22, half * 0.28],
    )
    motif_table = _data_table(
        ['TOP 10 MOTIFS CRITIQUES', 'TICKETS'],
        [[Paragraph(escape(m['name'].upper()), ParagraphStyle('MotifCell', fontSize=7, leading=8)), m['value']]
         for m in stats.tickets_per_motif],
        SLATE_800, [half * 0.75, half * 0.25], font_size=7,
    )
    side_by_side = Table([[product_table, motif_table]], colWidths=[width / 2, width / 2])
    side_by_side.setStyle(TableStyle([
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('LEFTPADDING', (0, 0), (-1, -1), 0),
        ('RIGHTPADDING', (0, 0), (-1, -1), 0),
    ]))
    story.append(side_by_side)
    story.append(Spacer(1, 8 * mm))

    story.append(_data_table(
        ['RÉGION / SECTEUR', 'VOLUME TICKETS', 'DÉLAI MOYEN (J)'],
        [[s['name'].upper(), s['total'], f"{s['delay']:.2f}"] for s in stats.tickets_per_sector],
        RED_600, [width * 0.5, width * 0.25, width * 0.25], font_size=9, theme='grid',
    ))

    if insights:
        story.append(Spacer(1, 6 * mm))
        story.append(Paragraph(f"ANALYSE STRATÉGIQUE {escape(BRAND_NAME)}", styles['section']))
        story.extend(_markdown_paragraphs(insights, styles))

    # --- Detail page ---
    story.append(PageBreak())
    band = Table([[Paragraph(f"EXTRACT OPÉRATIONNEL (ÉCHANTILLON {SAMPLE_ROWS})", styles['band'])]],
                 colWidths=[width])
    band.setStyle(TableStyle([('BACKGROUND', (0, 0), (-1, -1), SLATE_800)]))
    story.append(band)
    story.append(Spacer(1, 4 * mm))

    sample = tickets.head(SAMPLE_ROWS)
    body = [
        [t.nd, str(t.product).upper(), str(t.sector).upper(), t.zr, f"{t.delay_days:.2f}",
         'CONFORME' if t.sla_respected else 'CRITIQUE']
        for t in sample.itertuples(index=False)
    ]
    extract = _data_table(
        ['ND / LOGIN', 'OFFRE', 'REGION', 'ZR', 'DÉLAI', 'STATUT'], body, RED_600,
        [width * f for f in (0.2, 0.14, 0.2, 0.18, 0.12, 0.16)], font_size=7,
    )
    status_style = [('ALIGN', (4, 0), (5, -1), 'CENTER'), ('FONTNAME', (4, 1), (5, -1), 'Helvetica-Bold')]
    for row_idx, row in enumerate(body, start=1):
        status_style.append(('TEXTCOLOR', (5, row_idx), (5, row_idx),
                             RED_600 if row[5] == 'CRITIQUE' else GREEN_600))
    extract.setStyle(TableStyle(status_style))
    story.append(extract)

    doc.build(story, onFirstPage=_draw_first_page_header(generated_at), canvasmaker=NumberedCanvas)
    logger.info("Built PDF report: %d tickets, %d in extract", stats.total_tickets, len(body))
    return buffer.getvalue()
