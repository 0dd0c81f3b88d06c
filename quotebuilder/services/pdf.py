"""
PDF Generation Service.
Renders quote documents using ReportLab.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Optional, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import (
    SimpleDocTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
)
from reportlab.lib.enums import TA_RIGHT

from quotebuilder.core.config import settings
from quotebuilder.models.quote import Quote
from quotebuilder.models.template import PdfTemplate
from quotebuilder.schemas.template import TemplateConfig
from quotebuilder.services.pricing import CategorySubtotal, DiscountMode


logger = logging.getLogger(__name__)


class PDFService:
    """Service for generating quote PDFs."""

    def __init__(self, storage_path: Optional[str] = None):
        self.storage_path = Path(storage_path or settings.PDF_STORAGE_PATH)
        self.storage_path.mkdir(parents=True, exist_ok=True)

        # Colors
        self.gray_color = colors.HexColor("#6B7280")
        self.light_gray = colors.HexColor("#F3F4F6")
        self.border_color = colors.HexColor("#E5E7EB")

    def _get_styles(self, accent):
        """Get custom paragraph styles."""
        styles = getSampleStyleSheet()

        styles.add(ParagraphStyle(
            name='QuoteTitle',
            parent=styles['Heading1'],
            fontSize=24,
            textColor=accent,
            alignment=TA_RIGHT,
            spaceAfter=6*mm,
        ))
        styles.add(ParagraphStyle(
            name='Subtitle',
            parent=styles['Normal'],
            fontSize=10,
            textColor=self.gray_color,
            alignment=TA_RIGHT,
        ))
        styles.add(ParagraphStyle(
            name='SectionHeader',
            parent=styles['Heading2'],
            fontSize=12,
            textColor=accent,
            spaceBefore=4*mm,
            spaceAfter=2*mm,
        ))
        styles.add(ParagraphStyle(
            name='NormalText',
            parent=styles['Normal'],
            fontSize=10,
            textColor=colors.black,
        ))
        styles.add(ParagraphStyle(
            name='SmallText',
            parent=styles['Normal'],
            fontSize=8,
            textColor=self.gray_color,
        ))
        styles.add(ParagraphStyle(
            name='RightAlign',
            parent=styles['Normal'],
            fontSize=9,
            alignment=TA_RIGHT,
        ))
        styles.add(ParagraphStyle(
            name='Bold',
            parent=styles['Normal'],
            fontSize=10,
            fontName='Helvetica-Bold',
        ))

        return styles

    @staticmethod
    def _format_currency(amount: Decimal, symbol: str) -> str:
        return f"{symbol} {amount:,.2f}"

    @staticmethod
    def _format_date(d: Optional[datetime]) -> str:
        return d.strftime("%d %b %Y") if d else "-"

    @staticmethod
    def resolve_config(template: Optional[PdfTemplate]) -> TemplateConfig:
        """Template settings with defaults filled in."""
        config = TemplateConfig.model_validate(template.config if template else {})
        if config.currency_symbol is None:
            config.currency_symbol = settings.CURRENCY_SYMBOL
        return config

    def _header(self, quote: Quote, config: TemplateConfig, styles) -> Table:
        company_lines = [Paragraph(f"<b>{escape(settings.COMPANY_NAME)}</b>", styles['Bold'])]
        for line in (settings.COMPANY_ADDRESS, settings.COMPANY_PHONE, settings.COMPANY_EMAIL):
            if line:
                company_lines.append(Paragraph(escape(line), styles['SmallText']))
        if settings.COMPANY_TAX_ID:
            company_lines.append(Paragraph(f"Tax ID: {escape(settings.COMPANY_TAX_ID)}", styles['SmallText']))

        title_lines = [
            Paragraph(f"<b>{escape(config.document_title)}</b>", styles['QuoteTitle']),
            Paragraph(f"No. {escape(quote.quote_number)}", styles['Subtitle']),
            Paragraph(f"Date: {self._format_date(quote.created_at)}", styles['Subtitle']),
            Paragraph(f"Status: {quote.status.value.replace('_', ' ').title()}", styles['Subtitle']),
        ]

        rows = max(len(company_lines), len(title_lines))
        company_lines += [""] * (rows - len(company_lines))
        title_lines += [""] * (rows - len(title_lines))

        header_table = Table(list(zip(company_lines, title_lines)), colWidths=[95*mm, 75*mm])
        header_table.setStyle(TableStyle([
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
        ]))
        return header_table

    def _client_block(self, quote: Quote, styles) -> list:
        client = quote.client
        if client is None:
            return []

        lines = [f"<b>{escape(client.name)}</b>"]
        if client.company:
            lines.append(escape(client.company))
        if client.address:
            lines.append(escape(client.address))
        if client.email:
            lines.append(f"Email: {escape(client.email)}")
        if client.phone:
            lines.append(f"Phone: {escape(client.phone)}")

        return [
            Paragraph("BILL TO", styles['SectionHeader']),
            Paragraph("<br/>".join(lines), styles['NormalText']),
            Spacer(1, 8*mm),
        ]

    def _items_table(self, quote: Quote, config: TemplateConfig, accent, styles) -> Table:
        symbol = config.currency_symbol
        show_discount = config.show_item_discounts and quote.discount_mode != DiscountMode.OVERALL

        header = ["#", "Description", "Qty", "Rate"]
        widths = [8*mm, 72*mm, 25*mm, 25*mm]
        if show_discount:
            header.append("Disc.")
            widths.append(15*mm)
        header.append("Amount")
        widths.append(30*mm)
        if not show_discount:
            widths[1] += 15*mm

        items_data = [[Paragraph(f"<b>{h}</b>", styles['Bold']) for h in header]]

        for index, item in enumerate(quote.items, start=1):
            description = escape(item.description or (item.product.name if item.product else ""))
            if item.product and item.product.item_code:
                description = f"<b>{escape(item.product.item_code)}</b> {description}"
            if item.dimensions:
                description += f"<br/><font size=7>{item.dimensions.get('length')} x {item.dimensions.get('width')}</font>"
            row = [
                str(index),
                Paragraph(description, styles['NormalText']),
                Paragraph(f"{item.quantity.normalize():f} {escape(item.unit or '')}", styles['RightAlign']),
                Paragraph(self._format_currency(item.rate, symbol), styles['RightAlign']),
            ]
            if show_discount:
                row.append(Paragraph(f"{item.discount_percent.normalize():f}%", styles['RightAlign']))
            row.append(Paragraph(self._format_currency(item.line_total, symbol), styles['RightAlign']))
            items_data.append(row)

        items_table = Table(items_data, colWidths=widths, repeatRows=1)
        items_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), accent),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, 0), 10),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 4*mm),
            ('TOPPADDING', (0, 0), (-1, 0), 4*mm),
            ('FONTSIZE', (0, 1), (-1, -1), 9),
            ('BOTTOMPADDING', (0, 1), (-1, -1), 3*mm),
            ('TOPPADDING', (0, 1), (-1, -1), 3*mm),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('LINEBELOW', (0, 0), (-1, 0), 1, accent),
            ('LINEBELOW', (0, 1), (-1, -2), 0.5, self.border_color),
            ('LINEBELOW', (0, -1), (-1, -1), 1, self.border_color),
            *[('BACKGROUND', (0, i), (-1, i), self.light_gray)
              for i in range(2, len(items_data), 2)],
        ]))
        return items_table

    def _totals_table(self, quote: Quote, config: TemplateConfig, accent) -> Table:
        symbol = config.currency_symbol
        totals_data = [["Subtotal", self._format_currency(quote.subtotal, symbol)]]
        if quote.discount_amount:
            label = "Discount"
            if quote.discount_mode != DiscountMode.LINE_ITEM:
                label = f"Discount ({quote.overall_discount_percent.normalize():f}%)"
            totals_data.append([label, f"- {self._format_currency(quote.discount_amount, symbol)}"])
        if quote.discount_mode != DiscountMode.LINE_ITEM:
            totals_data.append(["Net amount", self._format_currency(quote.net_amount, symbol)])
        totals_data.append([
            f"Tax ({quote.tax_rate_percent.normalize():f}%)",
            self._format_currency(quote.tax_amount, symbol),
        ])
        totals_data.append(["Grand total", self._format_currency(quote.grand_total, symbol)])

        totals_table = Table(totals_data, colWidths=[130*mm, 45*mm])
        totals_table.setStyle(TableStyle([
            ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
            ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('TOPPADDING', (0, 0), (-1, -1), 2*mm),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 2*mm),
            ('LINEABOVE', (0, -1), (-1, -1), 1, accent),
            ('BACKGROUND', (0, -1), (-1, -1), self.light_gray),
        ]))
        return totals_table

    def _breakdown_table(self, breakdown: Sequence[CategorySubtotal], config: TemplateConfig) -> Table:
        rows = [["Category", "Items", "Amount"]]
        rows += [
            [row.category_name, str(row.item_count), self._format_currency(row.total, config.currency_symbol)]
            for row in breakdown
        ]
        table = Table(rows, colWidths=[100*mm, 25*mm, 45*mm])
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
            ('LINEBELOW', (0, 0), (-1, 0), 0.5, self.border_color),
        ]))
        return table

    def generate_quote_pdf(
        self,
        quote: Quote,
        template: Optional[PdfTemplate] = None,
        breakdown: Sequence[CategorySubtotal] = (),
    ) -> str:
        """
        Generate PDF for a quote.

        Args:
            quote: Quote with items, policies and client loaded
            template: Template of the quote, or the default template
            breakdown: Category subtotals, printed when the template asks for them

        Returns:
            Path to generated PDF file
        """
        config = self.resolve_config(template)
        accent = colors.HexColor(config.accent_color)
        styles = self._get_styles(accent)

        filepath = self.storage_path / f"quote_{quote.quote_number.replace('/', '-')}.pdf"

        doc = SimpleDocTemplate(
            str(filepath),
            pagesize=A4,
            rightMargin=20*mm,
            leftMargin=20*mm,
            topMargin=20*mm,
            bottomMargin=20*mm,
            title=f"{config.document_title} {quote.quote_number}",
        )

        elements = [self._header(quote, config, styles), Spacer(1, 10*mm)]
        elements += self._client_block(quote, styles)

        elements.append(Paragraph(escape(quote.title), styles['SectionHeader']))
        elements.append(self._items_table(quote, config, accent, styles))
        elements.append(Spacer(1, 6*mm))
        elements.append(self._totals_table(quote, config, accent))
        elements.append(Spacer(1, 8*mm))

        if config.show_category_breakdown and breakdown:
            elements.append(Paragraph("CATEGORY SUMMARY", styles['SectionHeader']))
            elements.append(self._breakdown_table(breakdown, config))
            elements.append(Spacer(1, 6*mm))

        if quote.notes:
            elements.append(Paragraph("NOTES", styles['SectionHeader']))
            elements.append(Paragraph(escape(quote.notes), styles['NormalText']))
            elements.append(Spacer(1, 4*mm))

        policies = [p for p in quote.policies if p.is_active]
        if config.show_policies and policies:
            elements.append(Paragraph("TERMS & CONDITIONS", styles['SectionHeader']))
            for policy in policies:
                elements.append(Paragraph(f"<b>{escape(policy.title)}</b>", styles['NormalText']))
                if policy.description:
                    elements.append(Paragraph(escape(policy.description), styles['SmallText']))
                elements.append(Spacer(1, 2*mm))

        elements.append(Spacer(1, 10*mm))
        generated_on = self._format_date(datetime.now(timezone.utc))
        footer = config.footer_text or f"Generated on {generated_on} by {settings.APP_NAME}"
        elements.append(Paragraph(f"<i>{escape(footer)}</i>", styles['SmallText']))

        doc.build(elements)
        logger.info("Rendered PDF for quote %s to %s", quote.quote_number, filepath)

        return str(filepath)
