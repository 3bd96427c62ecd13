"""
PDF rendering for the Course Completion Report application
Lays the report table out on landscape A4 pages with reportlab

reportlab does not lay out HTML, so instead of reusing the markup of
templates/completion/table.html this module rebuilds the same header rows
(criteria group, aggregation method, section, titles) from the build_table
context. Changes to the header layout of that template must be made here too.
"""

import logging
from io import BytesIO
from xml.sax.saxutils import escape as xml_escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

logger = logging.getLogger(__name__)

class CourseReportPdf:
    """Landscape A4 PDF of the completion report table.

    Takes the same table context the HTML template receives, built with PDF
    output so that completion cells hold ZapfDingbats glyph codes.
    """

    PAGE_SIZE = landscape(A4)
    MARGIN = 10 * mm
    FONT_SIZE = 8
    FILL_COLOR = colors.Color(230 / 255.0, 230 / 255.0, 230 / 255.0)
    DRAW_COLOR = colors.Color(128 / 255.0, 128 / 255.0, 128 / 255.0)
    LINE_WIDTH = 0.1
    NAME_WIDTH = 40 * mm
    FIELD_WIDTH = 35 * mm
    CODE_FONT = 'ZapfDingbats'

    @staticmethod
    def _cell_style():
        styles = getSampleStyleSheet()
        return ParagraphStyle(
            'ReportCell',
            parent=styles['Normal'],
            fontSize=CourseReportPdf.FONT_SIZE,
            leading=CourseReportPdf.FONT_SIZE + 2,
            spaceAfter=0,
            spaceBefore=0,
        )

    @staticmethod
    def _to_paragraph(value):
        """Wrap text so it stays inside its column"""
        text = xml_escape(str(value)) if value is not None else ''
        return Paragraph(text, CourseReportPdf._cell_style())

    @staticmethod
    def _group_row(label, leftcols, groups, total_criteria, last_cell, row_index, spans):
        """One header row of column groups; appends the SPAN commands it needs"""
        row = [CourseReportPdf._to_paragraph(label)] + [''] * (leftcols - 1)
        if leftcols > 1:
            spans.append(('SPAN', (0, row_index), (leftcols - 1, row_index)))
        col = leftcols
        for group in groups:
            row.append(CourseReportPdf._to_paragraph(group.label))
            row.extend([''] * (group.span - 1))
            if group.span > 1:
                spans.append(('SPAN', (col, row_index), (col + group.span - 1, row_index)))
            col += group.span
        used = sum(group.span for group in groups)
        row.extend([''] * max(total_criteria - used, 0))
        row.append(CourseReportPdf._to_paragraph(last_cell))
        return row

    @staticmethod
    def build_rows(report):
        """Header rows, user rows and the style commands for the table"""
        leftcols = report['leftcols']
        total_criteria = report['criteriacount']
        spans = []
        rows = []

        rows.append(CourseReportPdf._group_row(
            'Criteria group', leftcols, report['criteriaheaders'], total_criteria,
            'Course', len(rows), spans))
        rows.append(CourseReportPdf._group_row(
            'Aggregation method', leftcols, report['criteriamethodheaders'], total_criteria,
            report['courseaggregationheader'], len(rows), spans))
        if report['sectionheaders']:
            rows.append(CourseReportPdf._group_row(
                'Section', leftcols, report['sectionheaders'], total_criteria,
                '', len(rows), spans))

        titles = report['criteria'] or [''] * total_criteria
        title_row = ['Name'] + list(report['fields']) + list(titles) + ['Course complete']
        rows.append([CourseReportPdf._to_paragraph(value) for value in title_row])
        header_rows = len(rows)

        for user in report['users']:
            row = [CourseReportPdf._to_paragraph(user['fullname'])]
            row.extend(CourseReportPdf._to_paragraph(value) for value in user['fields'])
            row.extend(str(cell['describe']) for cell in user['criteria'])
            row.append(str(user['coursecomplete']['description']))
            rows.append(row)

        style = [
            ('GRID', (0, 0), (-1, -1), CourseReportPdf.LINE_WIDTH, CourseReportPdf.DRAW_COLOR),
            ('BACKGROUND', (0, 0), (-1, header_rows - 1), CourseReportPdf.FILL_COLOR),
            ('FONTSIZE', (0, 0), (-1, -1), CourseReportPdf.FONT_SIZE),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('ALIGN', (leftcols, 0), (-1, -1), 'CENTER'),
            ('LEFTPADDING', (0, 0), (-1, -1), 2),
            ('RIGHTPADDING', (0, 0), (-1, -1), 2),
            ('TOPPADDING', (0, 0), (-1, -1), 1),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 1),
        ]
        if report['users']:
            style.append(('FONTNAME', (leftcols, header_rows), (-1, -1), CourseReportPdf.CODE_FONT))
        style.extend(spans)
        return rows, style, header_rows

    @staticmethod
    def _column_widths(leftcols, total_criteria):
        available = CourseReportPdf.PAGE_SIZE[0] - 2 * CourseReportPdf.MARGIN
        fixed = [CourseReportPdf.NAME_WIDTH] + [CourseReportPdf.FIELD_WIDTH] * (leftcols - 1)
        remaining = max(available - sum(fixed), 20 * mm)
        code_cols = total_criteria + 1
        return fixed + [remaining / code_cols] * code_cols

    @staticmethod
    def render(report):
        """Build the PDF and return its bytes"""
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=CourseReportPdf.PAGE_SIZE,
            leftMargin=CourseReportPdf.MARGIN,
            rightMargin=CourseReportPdf.MARGIN,
            topMargin=CourseReportPdf.MARGIN,
            bottomMargin=CourseReportPdf.MARGIN,
            title=report.get('title', ''),
        )
        styles = getSampleStyleSheet()
        elements = [
            Paragraph(xml_escape(f"{report.get('title', '')}: {report.get('coursename', '')}"), styles['Heading2']),
            Paragraph(xml_escape(report.get('totalparticipants', '')), CourseReportPdf._cell_style()),
            Spacer(1, 4 * mm),
        ]

        rows, style, header_rows = CourseReportPdf.build_rows(report)
        widths = CourseReportPdf._column_widths(report['leftcols'], report['criteriacount'])
        table = Table(rows, colWidths=widths, repeatRows=header_rows if report['users'] else 0)
        table.setStyle(TableStyle(style))
        elements.append(table)

        doc.build(elements)
        pdf_bytes = buffer.getvalue()
        buffer.close()
        logger.info("Rendered completion PDF with %d users", len(report['users']))
        return pdf_bytes
