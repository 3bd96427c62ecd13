"""
Completion report routes for the Course Completion Report application
Parses report parameters and dispatches to the HTML, CSV and PDF outputs
"""

from flask import (
    Blueprint, render_template, request, session, abort, current_app,
    make_response, url_for
)
from routes.auth import login_required
from services.auth_service import AuthService, SessionManager
from services.completion_engine import (
    CompletionStateError, OUTPUT_HTML, OUTPUT_PDF, OUTPUT_EXPORT, paging_bar
)
from services.export_service import CsvExportService
from services.pdf_service import CourseReportPdf
from services.report_service import CompletionReportService
from models.academic import Course, CourseGroup, GroupMember, SEPARATEGROUPS, NOGROUPS
from models.user import User
from database import db
from utils.validators import (
    validate_report_format, validate_sort, validate_initial, normalize_initial
)

report_bp = Blueprint('report', __name__)

NO_USERS_MESSAGE = 'There are no users in this course or group whose completion is tracked.'
NOTHING_TO_DISPLAY_MESSAGE = 'Nothing to display'

def _viewer_groups(course):
    """Groups of the course the logged-in course user belongs to"""
    if not SessionManager.is_course_user(session):
        return []
    return (
        CourseGroup.query
        .join(GroupMember, GroupMember.group_id == CourseGroup.id)
        .filter(CourseGroup.course_id == course.id,
                GroupMember.user_id == SessionManager.get_current_user_id(session))
        .order_by(CourseGroup.name)
        .all()
    )

def _resolve_group(course, permissions):
    """Active group for the report; the selection is remembered per course"""
    if course.groupmode == NOGROUPS:
        return 0

    preference = f'group_{course.id}'
    group_id = request.args.get('group', type=int)
    if group_id is not None:
        if group_id and not course.get_group(group_id):
            abort(404)
        SessionManager.set_preference(session, preference, group_id)
    else:
        group_id = SessionManager.get_preference(session, preference, 0)
        if group_id and not course.get_group(group_id):
            group_id = 0
            SessionManager.set_preference(session, preference, group_id)

    if course.groupmode == SEPARATEGROUPS and not permissions['access_all_groups']:
        own_groups = [g.id for g in _viewer_groups(course)]
        if group_id == 0 and own_groups:
            group_id = own_groups[0]
        if group_id == 0 or group_id not in own_groups:
            abort(403)
    return group_id

def _resolve_initials():
    """First and last name initial filters, remembered as viewer preferences"""
    values = {}
    for param, preference in (('sifirst', 'ifirst'), ('silast', 'ilast')):
        value = request.args.get(param)
        if value is not None:
            is_valid, _ = validate_initial(value)
            if not is_valid:
                abort(400)
            SessionManager.set_preference(session, preference, normalize_initial(value))
        values[param] = SessionManager.get_preference(session, preference, 'all')
    return values['sifirst'], values['silast']

@report_bp.errorhandler(CompletionStateError)
def completion_state_error(error):
    current_app.logger.exception("Invalid completion state in report: %s", error)
    return render_template('completion/error.html', message=str(error)), 500

@report_bp.route('/courses')
@login_required()
def courses():
    """Courses whose completion report the viewer can open"""
    if SessionManager.is_management(session):
        visible = Course.query.filter_by(is_active=True).order_by(Course.fullname).all()
    else:
        visible = []
        user = db.session.get(User, SessionManager.get_current_user_id(session))
        candidates = Course.query.filter_by(is_active=True).order_by(Course.fullname).all()
        for course in candidates:
            if user and any(role.can_view_report for role in user.get_course_roles(course.id)):
                visible.append(course)
    return render_template('completion/courses.html', courses=visible)

@report_bp.route('/')
@login_required()
def index():
    """Course completion progress report"""
    course_id = request.args.get('course', type=int)
    if not course_id:
        abort(400)

    report_format = (request.args.get('format') or '').lower()
    sort = (request.args.get('sort') or '').lower()
    if not validate_report_format(report_format)[0] or not validate_sort(sort)[0]:
        abort(400)

    course = db.session.get(Course, course_id)
    if course is None:
        abort(404)

    permissions = AuthService.get_report_permissions(session, course)
    if not permissions['view']:
        current_app.logger.warning(
            "User %s denied completion report for course %s",
            SessionManager.get_current_username(session), course.id
        )
        abort(403)

    group_id = _resolve_group(course, permissions)
    sifirst, silast = _resolve_initials()
    config = current_app.config
    current_app.logger.info(
        "Completion report for course %s as %s requested by %s",
        course.id, report_format or 'html', SessionManager.get_current_username(session)
    )
    pix_url = url_for('static', filename='pix')

    if report_format in ('csv', 'excelcsv'):
        context = CompletionReportService.make_context(
            OUTPUT_EXPORT, permissions, config, config['EXPORT_DATE_FORMAT'], pix_url
        )
        loaded = CompletionReportService.load(course, sifirst, silast, group_id, sort)
        filename, data = CsvExportService.export_report(
            course, loaded['criteria'], loaded['records'], context,
            excel=(report_format == 'excelcsv')
        )
        response = make_response(data)
        response.headers['Content-Type'] = f'{CsvExportService.MIMETYPE}; charset=utf-8'
        response.headers['Content-Disposition'] = f'attachment; filename={filename}'
        return response

    if report_format == 'pdf':
        context = CompletionReportService.make_context(OUTPUT_PDF, permissions, config, pix_url=pix_url)
        loaded = CompletionReportService.load(course, sifirst, silast, group_id, sort)
        table = CompletionReportService.build_table(
            course, loaded, context, config['COMPLETION_REPORT_COL_TITLES']
        )
        response = make_response(CourseReportPdf.render(table))
        response.headers['Content-Type'] = 'application/pdf'
        response.headers['Content-Disposition'] = 'inline; filename=completion.pdf'
        return response

    page_size = config['COMPLETION_REPORT_PAGE']
    start = max(request.args.get('start', 0, type=int), 0) // page_size * page_size
    context = CompletionReportService.make_context(OUTPUT_HTML, permissions, config, pix_url=pix_url)
    loaded = CompletionReportService.load(course, sifirst, silast, group_id, sort, start, page_size)
    if loaded['total'] and start >= loaded['total']:
        # Past the last page, show the last page instead
        start = (loaded['total'] - 1) // page_size * page_size
        loaded = CompletionReportService.load(course, sifirst, silast, group_id, sort, start, page_size)

    groups = []
    if course.groupmode != NOGROUPS:
        if permissions['access_all_groups'] or course.groupmode != SEPARATEGROUPS:
            groups = course.groups.order_by(CourseGroup.name).all()
        else:
            groups = _viewer_groups(course)

    if not loaded['grandtotal']:
        return render_template(
            'completion/index.html', course=course, error=NO_USERS_MESSAGE,
            groups=groups, group_id=group_id
        )

    base_url = url_for('report.index')
    link_params = {'course': course.id, 'sort': sort}
    table = CompletionReportService.build_table(
        course, loaded, context, config['COMPLETION_REPORT_COL_TITLES']
    )
    return render_template(
        'completion/index.html',
        course=course,
        report=table,
        pagingbar=paging_bar(loaded['total'], page_size, start, sifirst, silast, base_url, link_params),
        notice=None if loaded['total'] else NOTHING_TO_DISPLAY_MESSAGE,
        groups=groups,
        group_id=group_id,
        csvurl=url_for('report.index', course=course.id, format='csv'),
        excelurl=url_for('report.index', course=course.id, format='excelcsv'),
        pdfurl=url_for('report.index', course=course.id, format='pdf'),
    )
