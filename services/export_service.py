"""
CSV export service for the Course Completion Report application
Writes the completion matrix as plain or Excel-flavoured CSV
"""

import csv
import logging
import re
from io import StringIO

from markupsafe import Markup

from models.completion import COMPLETION_CRITERIA_TYPE_ACTIVITY
from services.completion_engine import build_row, COURSE_COMPLETE_TITLE
from services.completion_service import CompletionService

logger = logging.getLogger(__name__)

class CsvExportService:
    """Service for exporting the completion report to CSV"""

    DELIMITER = ','
    QUOTECHAR = '"'
    MIMETYPE = 'text/csv'

    @staticmethod
    def strip_tags(value):
        return Markup(str(value or '')).striptags()

    @staticmethod
    def make_filename(shortname):
        """completion-<shortname>.csv with the shortname reduced to [a-z0-9-]"""
        cleaned = CsvExportService.strip_tags(shortname).lower()
        cleaned = re.sub(r'[^a-z0-9-]', '_', cleaned)
        return f'completion-{cleaned}.csv'

    @staticmethod
    def build_header(criteria, identity_fields):
        """Header row: identity columns, two per activity, one per other criterion, course completion"""
        row = ['ID', 'Name']
        row.extend(CompletionService.get_identity_field_name(field) for field in identity_fields)
        for criterion in criteria:
            if criterion.criteriatype == COMPLETION_CRITERIA_TYPE_ACTIVITY and criterion.module:
                module = criterion.module
                name = module.get_formatted_name()
                section = module.section.get_display_name() if module.section else ''
                row.append(f'{name} - {section}' if section else name)
                row.append(f'{name} - Completion date')
            else:
                row.append(CsvExportService.strip_tags(criterion.get_title_detailed()))
        row.append(COURSE_COMPLETE_TITLE)
        return row

    @staticmethod
    def build_rows(criteria, records, context):
        """Header plus one row of raw values per user"""
        rows = [CsvExportService.build_header(criteria, context.identity_fields)]
        for record in records:
            report_row = build_row(record, criteria, context)
            values = [report_row['id'], report_row['fullname']]
            values.extend(report_row['fields'])
            for criterion, cell in zip(criteria, report_row['criteria']):
                if criterion.criteriatype == COMPLETION_CRITERIA_TYPE_ACTIVITY and criterion.module:
                    values.append(cell['status'])
                    values.append(cell['date'])
                else:
                    values.append(cell['date'])
            values.append(report_row['coursecomplete']['date'])
            rows.append(values)
        return rows

    @staticmethod
    def rows_to_bytes(rows, excel=False):
        """Serialize rows; the Excel flavour carries a UTF-8 byte order mark"""
        output = StringIO()
        writer = csv.writer(output, delimiter=CsvExportService.DELIMITER,
                            quotechar=CsvExportService.QUOTECHAR,
                            quoting=csv.QUOTE_MINIMAL, lineterminator='\n')
        writer.writerows(rows)
        return output.getvalue().encode('utf-8-sig' if excel else 'utf-8')

    @staticmethod
    def export_report(course, criteria, records, context, excel=False):
        """Return (filename, bytes) for the course completion CSV"""
        rows = CsvExportService.build_rows(criteria, records, context)
        logger.info("Exporting completion CSV for course %s with %d users", course.id, len(records))
        return CsvExportService.make_filename(course.shortname), CsvExportService.rows_to_bytes(rows, excel)
