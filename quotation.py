"""PDF Quotation Generator for Solar Installation projects."""

from io import BytesIO
from datetime import datetime
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import (
    SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
)
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.graphics.shapes import Drawing, String
from reportlab.graphics.charts.barcharts import HorizontalBarChart

from constants import COMPANY_NAME, SUPPORT_EMAIL, SUPPORT_PHONE
from dashboard import parse_timestamp
from models import Project
from utils import format_currency, format_number

# reportlab's core fonts have no rupee glyph
PDF_CURRENCY = "Rs. "


def pdf_currency(amount: float) -> str:
    return format_currency(amount).replace("₹", PDF_CURRENCY)


def quote_reference(project: Project) -> str:
    return f"Q-{project.id[:8].upper()}"


def create_price_breakdown_chart(project: Project) -> Drawing:
    """Create a horizontal bar chart of the quotation's price components."""

    calc = project.calculations
    config = project.system_configuration

    drawing = Drawing(170*mm, 60*mm)

    chart = HorizontalBarChart()
    chart.x = 35*mm
    chart.y = 8*mm
    chart.width = 125*mm
    chart.height = 40*mm

    chart.data = [[
        calc.total_base_price,
        calc.gst_amount,
        config.cleaning_charges,
        config.subsidy,
    ]]
    chart.categoryAxis.categoryNames = ['Base Price', 'GST', 'Cleaning', 'Subsidy']
    chart.categoryAxis.labels.fontSize = 8
    chart.categoryAxis.reverseDirection = 1

    chart.valueAxis.valueMin = 0
    chart.valueAxis.labels.fontSize = 7
    chart.valueAxis.labelTextFormat = lambda v: format_number(v)

    bar_colors = ['#2E86AB', '#F97316', '#4ECDC4', '#4CAF50']
    for i, color in enumerate(bar_colors):
        chart.bars[(0, i)].fillColor = colors.HexColor(color)

    drawing.add(chart)

    title = String(chart.x + chart.width / 2, chart.y + chart.height + 6*mm, 'Price Breakdown')
    title.fontSize = 10
    title.fontName = 'Helvetica-Bold'
    title.textAnchor = 'middle'
    drawing.add(title)

    return drawing


def generate_quotation_pdf(project: Project, company_name: str = COMPANY_NAME) -> bytes:
    """Generate a customer quotation PDF for a saved project.

    Returns PDF as bytes.
    """

    details = project.personal_details
    config = project.system_configuration
    calc = project.calculations

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=20*mm,
        leftMargin=20*mm,
        topMargin=20*mm,
        bottomMargin=20*mm,
        title=f"Quotation {quote_reference(project)}",
    )

    styles = getSampleStyleSheet()

    # Custom styles
    styles.add(ParagraphStyle(
        name='CompanyName',
        parent=styles['Heading1'],
        fontSize=24,
        textColor=colors.HexColor('#2E86AB'),
        spaceAfter=5*mm
    ))
    styles.add(ParagraphStyle(
        name='QuoteTitle',
        parent=styles['Heading1'],
        fontSize=18,
        textColor=colors.HexColor('#1a1a1a'),
        alignment=TA_CENTER,
        spaceBefore=5*mm,
        spaceAfter=10*mm
    ))
    styles.add(ParagraphStyle(
        name='SectionHeader',
        parent=styles['Heading2'],
        fontSize=14,
        textColor=colors.HexColor('#2E86AB'),
        spaceBefore=8*mm,
        spaceAfter=4*mm
    ))
    styles.add(ParagraphStyle(
        name='BodyTextRight',
        parent=styles['Normal'],
        alignment=TA_RIGHT
    ))
    styles.add(ParagraphStyle(
        name='Footer',
        parent=styles['Normal'],
        fontSize=8,
        textColor=colors.grey,
        alignment=TA_CENTER
    ))

    detail_table_style = TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('BACKGROUND', (0, 0), (-1, -1), colors.HexColor('#f5f5f5')),
        ('BOX', (0, 0), (-1, -1), 0.5, colors.grey),
        ('INNERGRID', (0, 0), (-1, -1), 0.25, colors.grey),
        ('PADDING', (0, 0), (-1, -1), 6),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
    ])

    elements = []

    # --- Header ---
    created = parse_timestamp(project.created_at) or datetime.now()
    header_data = [
        [Paragraph(f"<b>{escape(company_name)}</b>", styles['CompanyName']),
         Paragraph(f"Quote Ref: {quote_reference(project)}<br/>Date: {created.strftime('%d %B %Y')}",
                   styles['BodyTextRight'])]
    ]
    header_table = Table(header_data, colWidths=[100*mm, 70*mm])
    header_table.setStyle(TableStyle([
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
    ]))
    elements.append(header_table)
    elements.append(Spacer(1, 5*mm))

    elements.append(Paragraph("Solar Installation Quotation", styles['QuoteTitle']))

    # --- Client Information ---
    elements.append(Paragraph("Client Information", styles['SectionHeader']))

    client_data = [
        ["Name:", details.name],
        ["Phone:", details.phone],
        ["Email:", details.email],
        ["Installation Address:", Paragraph(escape(details.address).replace("\n", "<br/>"), styles['Normal'])],
    ]
    client_table = Table(client_data, colWidths=[50*mm, 120*mm])
    client_table.setStyle(detail_table_style)
    elements.append(client_table)

    # --- System Specification ---
    elements.append(Paragraph("System Specification", styles['SectionHeader']))

    system_data = [
        ["Panel Make:", config.make],
        ["Watt Peak:", f"{format_number(config.watt_peak)} W"],
        ["Number of Panels:", str(config.number_of_panels)],
        ["System Size:", f"{format_number(calc.system_size)} kW"],
        ["Base Price per kW:", pdf_currency(config.base_price_per_kw)],
    ]
    system_table = Table(system_data, colWidths=[50*mm, 120*mm])
    system_table.setStyle(detail_table_style)
    elements.append(system_table)

    # --- Pricing ---
    elements.append(Paragraph("Financial Summary", styles['SectionHeader']))

    pricing_data = [
        ["Base Price:", pdf_currency(calc.total_base_price)],
        [f"GST ({format_number(config.gst_percentage)}%):", pdf_currency(calc.gst_amount)],
    ]
    if config.cleaning_charges > 0:
        pricing_data.append(["Cleaning Charges:", pdf_currency(config.cleaning_charges)])
    if config.subsidy > 0:
        pricing_data.append(["Subsidy:", f"-{pdf_currency(config.subsidy)}"])
    pricing_data.append(["Total Payable:", pdf_currency(calc.total_payable_amount)])

    pricing_table = Table(pricing_data, colWidths=[50*mm, 120*mm])
    pricing_table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, -1), (-1, -1), 12),
        ('BACKGROUND', (0, -1), (-1, -1), colors.HexColor('#2E86AB')),
        ('TEXTCOLOR', (0, -1), (-1, -1), colors.white),
        ('BOX', (0, 0), (-1, -1), 0.5, colors.grey),
        ('INNERGRID', (0, 0), (-1, -2), 0.25, colors.grey),
        ('PADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(pricing_table)
    elements.append(Spacer(1, 6*mm))
    elements.append(create_price_breakdown_chart(project))

    # --- Status ---
    elements.append(Paragraph("Project Status", styles['SectionHeader']))
    elements.append(Paragraph(project.status.value.capitalize(), styles['Normal']))

    # --- Footer ---
    elements.append(Spacer(1, 15*mm))
    elements.append(Paragraph(
        f"For assistance contact {SUPPORT_EMAIL} or {SUPPORT_PHONE}.",
        styles['Footer']
    ))
    elements.append(Paragraph(
        f"Generated {datetime.now().strftime('%d %B %Y %H:%M')}",
        styles['Footer']
    ))

    doc.build(elements)
    return buffer.getvalue()
