"""
Report service for the Course Completion Report application
Loads a course's completion data and shapes it for the HTML, CSV and PDF outputs
"""

import logging

from models.completion import COMPLETION_AGGREGATION_ALL
from services.completion_engine import (
    ReportContext, group_by_type, group_by_method, group_by_section, section_header_cells,
    criteria_icons, build_row, METHOD_ALL, METHOD_ANY, COURSE_COMPLETE_TITLE
)
from services.completion_service import CompletionService

logger = logging.getLogger(__name__)

REPORT_TITLE = 'Course completion'

class CompletionReportService:
    """Service for building the course completion report"""

    @staticmethod
    def make_context(output, permissions, config, date_format=None, pix_url='/static/pix'):
        """Report context for the current viewer and output"""
        identity_fields = CompletionService.get_identity_fields(
            config.get('SHOW_USER_IDENTITY'), permissions.get('view_identity')
        )
        return ReportContext(
            output=output,
            date_format=date_format or config.get('REPORT_DATE_FORMAT', '%Y-%m-%d %H:%M:%S'),
            identity_fields=identity_fields,
            view_full_names=permissions.get('view_full_names', False),
            fullname_format=config.get('FULLNAME_FORMAT', '{firstname} {lastname}'),
            alternative_fullname_format=config.get('ALTERNATIVE_FULLNAME_FORMAT'),
            wwwroot=config.get('WWWROOT', ''),
            pix_url=pix_url,
        )

    @staticmethod
    def load(course, sifirst='all', silast='all', group_id=0, sort='lastname', start=0, limit=0):
        """Criteria, user counts and the completion records of the requested page"""
        criteria = CompletionService.get_criteria(course)
        total = CompletionService.get_num_tracked_users(course, sifirst, silast, group_id)
        grandtotal = CompletionService.get_num_tracked_users(course, group_id=group_id)
        records = []
        if total:
            records = CompletionService.get_progress_all(
                course, sifirst, silast, group_id, sort, start, limit
            )
        logger.info(
            "Loaded completion report for course %s: %d criteria, %d/%d users",
            course.id, len(criteria), total, grandtotal
        )
        return {
            'criteria': criteria,
            'records': records,
            'total': total,
            'grandtotal': grandtotal,
        }

    @staticmethod
    def build_table(course, loaded, context, show_titles=True):
        """Template context of the report matrix, shared by the HTML and PDF renderers"""
        criteria = loaded['criteria']
        total = loaded['total']
        grandtotal = loaded['grandtotal']
        totalheader = str(total) if total == grandtotal else f'{total}/{grandtotal}'

        # Section row only when some activity sits in a section
        section_headers = section_header_cells(criteria) if group_by_section(criteria) else []
        course_method = CompletionService.get_aggregation_method(course)

        return {
            'title': REPORT_TITLE,
            'coursename': course.fullname,
            'total': total,
            'grandtotal': grandtotal,
            'totalparticipants': f'All participants: {totalheader}',
            'leftcols': 1 + len(context.identity_fields),
            'criteriacount': len(criteria),
            'criteriaheaders': group_by_type(criteria),
            'criteriamethodheaders': group_by_method(criteria, CompletionService.get_aggregation_rules(course)),
            'courseaggregationheader': METHOD_ALL if course_method == COMPLETION_AGGREGATION_ALL else METHOD_ANY,
            'fields': [CompletionService.get_identity_field_name(f) for f in context.identity_fields],
            'criteria': [c.get_title_detailed() for c in criteria] if show_titles else [],
            'criteriaicons': criteria_icons(criteria, context),
            'sectionheaders': section_headers,
            'users': [build_row(record, criteria, context) for record in loaded['records']],
            'ishtml': context.is_html,
            'coursecompleteicon': context.pix_icon('i/course', COURSE_COMPLETE_TITLE),
        }
