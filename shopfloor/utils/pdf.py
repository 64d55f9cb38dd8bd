from io import BytesIO
from xml.sax.saxutils import escape
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, PageBreak
from shopfloor.utils.oee import as_percent

HEADER_STYLE = [
    ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
    ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
    ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
    ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
    ('FONTSIZE', (0, 0), (-1, -1), 8),
    ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
    ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
    ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
    ('TOPPADDING', (0, 0), (-1, -1), 4),
]


def _percent(value):
    return f"{as_percent(value)}%"


def _summary_table(summary):
    avg_oee = summary['avg_oee']
    rows = [
        ['Shifts submitted:', str(summary['total_production_stats'])],
        ['Good parts:', str(summary['total_good_parts'])],
        ['Scrap parts:', str(summary['total_scrap_parts'])],
        ['Average OEE:', _percent(avg_oee) if avg_oee is not None else '--'],
        ['Maintenance (open / completed):',
         f"{summary['open_maintenance']} / {summary['completed_maintenance']}"],
    ]
    table = Table(rows, colWidths=[6*cm, 5*cm])
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('ALIGN', (0, 0), (0, -1), 'RIGHT'),
        ('ALIGN', (1, 0), (1, -1), 'LEFT'),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
    ]))
    return table


def _stats_table(stats):
    data = [['Date', 'Shift', 'Good', 'Scrap', 'Downtime', 'Avail.', 'Perf.', 'Quality', 'OEE', 'By']]
    for stat in stats:
        data.append([
            stat['date'],
            stat['shift'],
            str(stat['good_parts_ran']),
            str(stat['scrap_parts']),
            f"{stat['downtime']} min",
            _percent(stat['availability']),
            _percent(stat['performance']),
            _percent(stat['quality']),
            _percent(stat['oee']),
            stat['created_by_name'],
        ])
    table = Table(data, repeatRows=1)
    table.setStyle(TableStyle(HEADER_STYLE + [('ALIGN', (2, 1), (-2, -1), 'RIGHT')]))
    return table


def _maintenance_table(logs, styles):
    data = [['Type', 'Description', 'Status', 'Scheduled', 'Completed', 'Technician']]
    for log in logs:
        data.append([
            log['type'],
            Paragraph(escape(log['description'] or ''), styles['BodyText']),
            log['status'],
            log['scheduled_date'] or '-',
            log['completed_date'] or '-',
            log['technician'] or '-',
        ])
    table = Table(data, colWidths=[3*cm, 9*cm, 2.5*cm, 2.5*cm, 2.5*cm, 4*cm], repeatRows=1)
    table.setStyle(TableStyle(HEADER_STYLE))
    return table


def generate_machine_history_report(histories, company_name, generated_at):
    """
    Generate the machine history report PDF

    Args:
        histories: machine history dicts as served by the machine-history report
        company_name: shown in the page header
        generated_at: plant-local datetime printed under the title

    Returns:
        BytesIO buffer containing the PDF
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=landscape(A4),
                            leftMargin=1.5*cm, rightMargin=1.5*cm,
                            topMargin=1.5*cm, bottomMargin=1.5*cm,
                            title='Machine History Report')

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'ReportTitle',
        parent=styles['Heading1'],
        fontSize=18,
        alignment=1,  # Center
        spaceAfter=6
    )
    story = [
        Paragraph(f"<b>{escape(company_name)}</b>", styles['Normal']),
        Paragraph('MACHINE HISTORY REPORT', title_style),
        Paragraph(f"Generated {generated_at.strftime('%Y-%m-%d %H:%M')}", styles['Normal']),
        Spacer(1, 15),
    ]

    if not histories:
        story.append(Paragraph('No machines match the selected filter.', styles['Normal']))

    for index, history in enumerate(histories):
        if index:
            story.append(PageBreak())
        story.append(Paragraph(
            f"{escape(history['machine_name'])} ({escape(history['machine_tag'])})", styles['Heading2']))
        story.append(Paragraph(
            f"Status: {history['status']} &nbsp;&nbsp; Operator: {escape(history['current_operator'])}",
            styles['Normal']))
        story.append(Spacer(1, 8))
        story.append(_summary_table(history['summary']))
        story.append(Spacer(1, 12))

        story.append(Paragraph('<b>PRODUCTION</b>', styles['Normal']))
        story.append(Spacer(1, 6))
        if history['production_stats']:
            story.append(_stats_table(history['production_stats']))
        else:
            story.append(Paragraph('No production stats submitted.', styles['Normal']))
        story.append(Spacer(1, 12))

        story.append(Paragraph('<b>MAINTENANCE</b>', styles['Normal']))
        story.append(Spacer(1, 6))
        if history['maintenance']:
            story.append(_maintenance_table(history['maintenance'], styles))
        else:
            story.append(Paragraph('No maintenance recorded.', styles['Normal']))

    doc.build(story)
    buffer.seek(0)
    return buffer
