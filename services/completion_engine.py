"""
Aggregation engine for the course completion report
Turns completion criteria and per-user completion records into grouped
column headers and report rows
"""

import string
from collections import namedtuple
from urllib.parse import urlencode

from markupsafe import Markup

from models.completion import (
    COMPLETION_CRITERIA_TYPE_ACTIVITY, COMPLETION_CRITERIA_TYPE_COURSE,
    COMPLETION_CRITERIA_TYPE_ROLE, COMPLETION_AGGREGATION_ALL,
    COMPLETION_INCOMPLETE, COMPLETION_COMPLETE, COMPLETION_COMPLETE_PASS,
    COMPLETION_COMPLETE_FAIL
)

OUTPUT_HTML = 'html'
OUTPUT_PDF = 'pdf'
OUTPUT_EXPORT = 'export'

# Criterion types that carry their own aggregation method
HAS_AGGREGATION = (
    COMPLETION_CRITERIA_TYPE_COURSE,
    COMPLETION_CRITERIA_TYPE_ACTIVITY,
    COMPLETION_CRITERIA_TYPE_ROLE,
)

METHOD_ALL = 'All'
METHOD_ANY = 'Any'
METHOD_NOT_APPLICABLE = '-'

DISPLAY_CODES = {
    COMPLETION_INCOMPLETE: 'n',
    COMPLETION_COMPLETE: 'y',
    COMPLETION_COMPLETE_PASS: 'pass',
    COMPLETION_COMPLETE_FAIL: 'fail',
}

STATE_DESCRIPTIONS = {
    'n': 'Not completed',
    'y': 'Completed',
    'pass': 'Completed (achieved pass grade)',
    'fail': 'Completed (did not achieve pass grade)',
}

# ZapfDingbats glyphs: '3' is a check mark, '6' a cross
PDF_CODE_COMPLETE = '3'
PDF_CODE_INCOMPLETE = '6'

COURSE_COMPLETE_TITLE = 'Course complete'

ColumnGroup = namedtuple('ColumnGroup', ['label', 'span'])

class CompletionStateError(ValueError):
    """Raised when a completion state is not one of the four known values"""
    pass

class ReportContext:
    """Everything about the viewer and the output that shapes the report cells"""

    def __init__(self, output=OUTPUT_HTML, date_format='%Y-%m-%d %H:%M:%S',
                 identity_fields=(), view_full_names=False,
                 fullname_format='{firstname} {lastname}',
                 alternative_fullname_format=None, wwwroot='',
                 pix_url='/static/pix'):
        self.output = output
        self.date_format = date_format
        self.identity_fields = list(identity_fields)
        self.view_full_names = view_full_names
        self.fullname_format = fullname_format
        self.alternative_fullname_format = alternative_fullname_format
        self.wwwroot = wwwroot.rstrip('/')
        self.pix_url = pix_url.rstrip('/')

    @property
    def is_html(self):
        return self.output == OUTPUT_HTML

    def format_date(self, value):
        if not value:
            return ''
        return value.strftime(self.date_format)

    def fullname(self, user):
        return user.fullname(self.fullname_format, self.alternative_fullname_format,
                             override=self.view_full_names)

    def pix_icon(self, name, alt, title=None):
        """Markup for an icon from the pix directory"""
        return Markup('<img class="icon" src="{src}" alt="{alt}" title="{title}">').format(
            src=f'{self.pix_url}/{name}.svg',
            alt=alt,
            title=alt if title is None else title,
        )

class UserCompletionRecord:
    """Completion data loaded for one tracked user.

    progress maps activity (course module) id to its cached completion state,
    criteria_completions maps criterion id to the completion timestamp (None
    while incomplete) and course_completion is the course completion timestamp.
    """

    def __init__(self, user, progress=None, criteria_completions=None, course_completion=None):
        self.user = user
        self.progress = progress or {}
        self.criteria_completions = criteria_completions or {}
        self.course_completion = course_completion

    def get_criterion_completion(self, criterion):
        return self.criteria_completions.get(criterion.id)

    def is_course_complete(self):
        return self.course_completion is not None

def _collapse_groups(pairs):
    """Collapse (key, label) pairs into column groups.

    Groups are ordered by the first appearance of their key, carry the last
    label seen for the key and span every occurrence of it.
    """
    labels = {}
    spans = {}
    for key, label in pairs:
        labels[key] = label
        spans[key] = spans.get(key, 0) + 1
    return [ColumnGroup(label, spans[key]) for key, label in labels.items()]

def group_by_type(criteria):
    """Column groups keyed by criterion type"""
    return _collapse_groups((c.criteriatype, c.get_type_title()) for c in criteria)

def aggregation_method_label(criteriatype, aggregation_rules):
    """'All', 'Any' or '-' for a criterion type.

    aggregation_rules is either a callable taking the criterion type or a
    mapping of criterion type to aggregation method; missing types use ALL.
    """
    if criteriatype not in HAS_AGGREGATION:
        return METHOD_NOT_APPLICABLE
    if callable(aggregation_rules):
        method = aggregation_rules(criteriatype)
    else:
        method = (aggregation_rules or {}).get(criteriatype, COMPLETION_AGGREGATION_ALL)
    return METHOD_ALL if method == COMPLETION_AGGREGATION_ALL else METHOD_ANY

def group_by_method(criteria, aggregation_rules):
    """Column groups keyed by the aggregation method label"""
    labels = (aggregation_method_label(c.criteriatype, aggregation_rules) for c in criteria)
    return _collapse_groups((label, label) for label in labels)

def _criterion_section(criterion):
    if criterion.criteriatype != COMPLETION_CRITERIA_TYPE_ACTIVITY:
        return None
    module = getattr(criterion, 'module', None)
    if module is None:
        return None
    return getattr(module, 'section', None)

def group_by_section(criteria):
    """Column groups keyed by course section, for activity criteria only"""
    pairs = []
    for criterion in criteria:
        section = _criterion_section(criterion)
        if section is None:
            continue
        name = section.get_display_name()
        pairs.append((name, name))
    return _collapse_groups(pairs)

def section_header_cells(criteria):
    """Section row cells covering every criterion column in order.

    Adjacent activities of one section share a cell. Columns without a
    section (other criteria, sectionless activities) get blank cells.
    """
    cells = []
    for criterion in criteria:
        section = _criterion_section(criterion)
        label = section.get_display_name() if section is not None else ''
        if cells and cells[-1][0] == label:
            cells[-1][1] += 1
        else:
            cells.append([label, 1])
    return [ColumnGroup(label, span) for label, span in cells]

def criteria_icons(criteria, context):
    """Icon, link and title for each criterion header"""
    icons = []
    for criterion in criteria:
        link = ''
        alt = ''
        title = None
        if criterion.criteriatype == COMPLETION_CRITERIA_TYPE_ACTIVITY and criterion.module:
            module = criterion.module
            link = f"{context.wwwroot}/mod/{module.modname}/view?{urlencode({'id': module.id})}"
            title = module.get_formatted_name()
            alt = module.get_module_type_name()
        elif criterion.criteriatype == COMPLETION_CRITERIA_TYPE_COURSE and criterion.course_instance:
            course = criterion.course_instance
            link = f"{context.wwwroot}/course/view?{urlencode({'id': course.id})}"
            title = course.fullname
            alt = course.shortname
        elif criterion.criteriatype == COMPLETION_CRITERIA_TYPE_ROLE and criterion.role:
            alt = criterion.role.get_display_name()

        if not alt:
            alt = criterion.get_title()
        if not title:
            title = alt

        icons.append({
            'icon': context.pix_icon(criterion.get_icon_name(), alt, title),
            'url': link,
            'title': title,
            'alt': alt,
        })
    return icons

def completion_display_code(state):
    """Map a completion state to its display code (n, y, pass, fail)"""
    try:
        return DISPLAY_CODES[state]
    except (KeyError, TypeError):
        raise CompletionStateError(f'Unexpected completion state: {state!r}') from None

def pdf_code(code):
    return PDF_CODE_INCOMPLETE if code == 'n' else PDF_CODE_COMPLETE

def resolve_state(record, criterion):
    """Completion state of a criterion for one user.

    The activity progress cache wins; otherwise a completed criterion counts
    as complete and anything else as incomplete.
    """
    if criterion.criteriatype == COMPLETION_CRITERIA_TYPE_ACTIVITY and criterion.module:
        module_id = criterion.module.id
        if module_id in record.progress:
            return record.progress[module_id]
    if record.get_criterion_completion(criterion) is not None:
        return COMPLETION_COMPLETE
    return COMPLETION_INCOMPLETE

def progress_title(user, activity, state, date=''):
    return f'{user}, {activity}: {state} {date}'.strip()

def _build_cell(record, criterion, context, fullname):
    state = resolve_state(record, criterion)
    code = completion_display_code(state)
    date = context.format_date(record.get_criterion_completion(criterion))
    status = STATE_DESCRIPTIONS[code]
    cell = {'state': state, 'code': code, 'date': date, 'status': status}

    if context.output == OUTPUT_PDF:
        cell['describe'] = pdf_code(code)
    elif context.output == OUTPUT_HTML:
        module = criterion.module if criterion.criteriatype == COMPLETION_CRITERIA_TYPE_ACTIVITY else None
        auto = module.is_automatic() if module else True
        activity = module.get_formatted_name() if module else criterion.get_title_detailed()
        icon = f"i/completion-{'auto' if auto else 'manual'}-{code}"
        cell['describe'] = context.pix_icon(icon, progress_title(fullname, activity, status, date))
    else:
        cell['describe'] = status
    return cell

def build_row(record, criteria, context):
    """One report row: identity, a cell per criterion in order and course completion"""
    user = record.user
    fullname = context.fullname(user)

    complete = record.is_course_complete()
    code = 'y' if complete else 'n'
    status = STATE_DESCRIPTIONS[code]
    if context.output == OUTPUT_PDF:
        description = pdf_code(code)
    elif context.output == OUTPUT_HTML:
        description = context.pix_icon(f'i/completion-auto-{code}',
                                       progress_title(fullname, COURSE_COMPLETE_TITLE, status))
    else:
        description = status

    return {
        'id': user.id,
        'fullname': fullname,
        'fields': [getattr(user, field, '') or '' for field in context.identity_fields],
        'criteria': [_build_cell(record, criterion, context, fullname) for criterion in criteria],
        'coursecomplete': {
            'date': context.format_date(record.course_completion) if complete else '',
            'description': description,
            'code': code,
        },
    }

def _link(base_url, params):
    query = {k: v for k, v in params.items() if v not in (None, '', 'all')}
    return f'{base_url}?{urlencode(query)}' if query else base_url

def pagination_links(total, page_size, current_start, base_url='', params=None):
    """Offset pagination bar; empty when everything fits on one page"""
    if page_size <= 0:
        raise ValueError('page_size must be positive')
    if total <= page_size:
        return Markup('')

    params = dict(params or {})
    parts = ['<div class="paging">Page: ']

    if current_start > 0:
        previous_start = max(current_start - page_size, 0)
        href = _link(base_url, dict(params, start=previous_start))
        parts.append(Markup('(<a class="previous" href="{}">Previous</a>)&nbsp;').format(href))

    page_start = 0
    page = 0
    while page_start < total:
        page += 1
        href = _link(base_url, dict(params, start=page_start))
        if page_start == current_start:
            parts.append(Markup('&nbsp;<a class="page active" aria-current="page" href="{}">{}</a>&nbsp;').format(href, page))
        else:
            parts.append(Markup('&nbsp;<a class="page" href="{}">{}</a>&nbsp;').format(href, page))
        page_start += page_size

    next_start = current_start + page_size
    if next_start < total:
        href = _link(base_url, dict(params, start=next_start))
        parts.append(Markup('&nbsp;(<a class="next" href="{}">Next</a>)').format(href))

    parts.append('</div>')
    return Markup(''.join(str(part) for part in parts))

def initials_bar(current, param, label, base_url='', params=None):
    """Letter filter bar for first or last name initials"""
    params = dict(params or {})
    params.pop('start', None)
    current = (current or 'all').upper()
    parts = [Markup('<div class="initialbar {}"><span class="initialbar-label">{}</span> ').format(param, label)]
    for letter in ['All'] + list(string.ascii_uppercase):
        value = 'all' if letter == 'All' else letter
        if letter.upper() == current:
            parts.append(Markup('<strong class="initial active">{}</strong> ').format(letter))
        else:
            href = _link(base_url, dict(params, **{param: value}))
            if value == 'all':
                # _link drops "all", add it back to clear the filter
                separator = '&' if '?' in href else '?'
                href = f'{href}{separator}{param}=all'
            parts.append(Markup('<a class="initial" href="{}">{}</a> ').format(href, letter))
    parts.append('</div>')
    return Markup(''.join(str(part) for part in parts))

def paging_bar(total, page_size, current_start, sifirst, silast, base_url='', params=None):
    """Initials bars for first and last name followed by the page links"""
    params = dict(params or {})
    filter_params = dict(params, sifirst=sifirst, silast=silast)
    bar = initials_bar(sifirst, 'sifirst', 'First name', base_url, dict(filter_params))
    bar += initials_bar(silast, 'silast', 'Last name', base_url, dict(filter_params))
    bar += pagination_links(total, page_size, current_start, base_url, filter_params)
    return bar
