"""
Unit tests for service layer
"""

import csv
import unittest
from io import StringIO
from app import create_app
from config import TestConfig
from database import db
from sample_data import create_sample_data
from flask.sessions import SecureCookieSession
from models.academic import CourseModule, COMPLETION_TRACKING_MANUAL
from models.completion import (
    CompletionCriterion, COMPLETION_AGGREGATION_ALL, COMPLETION_AGGREGATION_ANY, COMPLETION_CRITERIA_TYPE_ACTIVITY,
    COMPLETION_CRITERIA_TYPE_ROLE, COMPLETION_COMPLETE_PASS
)
from services.auth_service import AuthService, SessionManager
from services.completion_engine import OUTPUT_EXPORT, OUTPUT_PDF, OUTPUT_HTML, ColumnGroup
from services.completion_service import CompletionService
from services.export_service import CsvExportService
from services.pdf_service import CourseReportPdf
from services.report_service import CompletionReportService
from utils.validators import (
    validate_username, validate_report_format, validate_sort, validate_initial, normalize_initial
)

class ServiceTestCase(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.app = create_app(TestConfig)
        self.app_context = self.app.app_context()
        self.app_context.push()
        self.data = create_sample_data()
        self.course = self.data['course']

    def tearDown(self):
        """Clean up after tests"""
        db.session.remove()
        db.drop_all()
        self.app_context.pop()

class TestAuthService(ServiceTestCase):

    def test_authenticate_management(self):
        success, user, _ = AuthService.authenticate_management('ADMIN', 'admin123')
        self.assertTrue(success)
        self.assertEqual(user.username, 'admin')

        success, user, message = AuthService.authenticate_management('admin', 'wrong')
        self.assertFalse(success)
        self.assertIsNone(user)
        self.assertEqual(message, 'Invalid username or password')

    def test_authenticate_user(self):
        success, user, _ = AuthService.authenticate_user('tsmith', 'password123')
        self.assertTrue(success)
        self.assertIsNotNone(user.last_login)

    def test_report_permissions(self):
        """Permissions are the union of the viewer's role flags in the course"""
        session = SecureCookieSession()
        self.assertFalse(AuthService.get_report_permissions(session, self.course)['view'])

        SessionManager.create_session(session, 'user', self.data['users']['tsmith'].id, 'tsmith')
        permissions = AuthService.get_report_permissions(session, self.course)
        self.assertTrue(all(permissions.values()))

        SessionManager.create_session(session, 'user', self.data['users']['mjones'].id, 'mjones')
        permissions = AuthService.get_report_permissions(session, self.course)
        self.assertTrue(permissions['view'])
        self.assertFalse(permissions['access_all_groups'])
        self.assertFalse(permissions['view_identity'])

        SessionManager.create_session(session, 'user', self.data['users']['aanderson'].id, 'aanderson')
        self.assertFalse(AuthService.get_report_permissions(session, self.course)['view'])

        SessionManager.create_session(session, 'management', 1, 'admin')
        self.assertTrue(all(AuthService.get_report_permissions(session, self.course).values()))

    def test_preferences(self):
        session = {}
        self.assertEqual(SessionManager.get_preference(session, 'ifirst', 'all'), 'all')
        SessionManager.set_preference(session, 'ifirst', 'B')
        self.assertEqual(SessionManager.get_preference(session, 'ifirst', 'all'), 'B')

class TestCompletionService(ServiceTestCase):

    def test_criteria_order(self):
        """Course criteria first, then activities, then the rest"""
        criteria = CompletionService.get_criteria(self.course)
        expected = ['prerequisite', 'forum', 'quiz', 'assign', 'self', 'grade', 'role']
        self.assertEqual([c.id for c in criteria], [self.data['criteria'][name].id for name in expected])

    def test_aggregation(self):
        self.assertEqual(CompletionService.get_aggregation_method(self.course), COMPLETION_AGGREGATION_ALL)
        self.assertEqual(
            CompletionService.get_aggregation_method(self.course, COMPLETION_CRITERIA_TYPE_ROLE),
            COMPLETION_AGGREGATION_ANY
        )
        self.assertEqual(CompletionService.get_aggregation_rules(self.course), {
            COMPLETION_CRITERIA_TYPE_ACTIVITY: COMPLETION_AGGREGATION_ALL,
            COMPLETION_CRITERIA_TYPE_ROLE: COMPLETION_AGGREGATION_ANY,
        })

    def test_tracked_user_counts(self):
        self.assertEqual(CompletionService.get_num_tracked_users(self.course), 4)
        self.assertEqual(CompletionService.get_num_tracked_users(self.course, sifirst='a'), 1)
        self.assertEqual(CompletionService.get_num_tracked_users(self.course, silast='B'), 1)
        self.assertEqual(CompletionService.get_num_tracked_users(self.course, sifirst='Z'), 0)
        red = self.data['groups']['red']
        self.assertEqual(CompletionService.get_num_tracked_users(self.course, group_id=red.id), 2)

    def test_tracked_users_sort_and_paging(self):
        users = CompletionService.get_tracked_users(self.course, sort='firstname')
        self.assertEqual([u.firstname for u in users], ['Alice', 'Bob', 'Carol', 'Dave'])

        page = CompletionService.get_tracked_users(self.course, start=1, limit=2)
        self.assertEqual([u.lastname for u in page], ['Brown', 'Clark'])

    def test_progress_all(self):
        records = CompletionService.get_progress_all(self.course)
        self.assertEqual(len(records), 4)
        alice = records[0]
        self.assertEqual(alice.user.username, 'aanderson')
        self.assertEqual(alice.progress[self.data['modules']['quiz'].id], COMPLETION_COMPLETE_PASS)
        self.assertTrue(alice.is_course_complete())
        self.assertFalse(records[3].is_course_complete())
        self.assertEqual(records[3].criteria_completions, {})

    def test_identity_fields(self):
        self.assertEqual(CompletionService.get_identity_fields(['email', 'password_hash'], True), ['email'])
        self.assertEqual(CompletionService.get_identity_fields(['email'], False), [])
        self.assertEqual(CompletionService.get_identity_field_name('email'), 'Email address')

class TestCompletionReportService(ServiceTestCase):

    def make_context(self, output=OUTPUT_HTML, permissions=None):
        permissions = permissions or {'view': True, 'view_identity': True, 'view_full_names': False}
        return CompletionReportService.make_context(output, permissions, self.app.config)

    def test_build_table(self):
        loaded = CompletionReportService.load(self.course)
        table = CompletionReportService.build_table(self.course, loaded, self.make_context())

        self.assertEqual(table['totalparticipants'], 'All participants: 4')
        self.assertEqual(table['leftcols'], 2)
        self.assertEqual(table['fields'], ['Email address'])
        self.assertEqual(table['criteriacount'], 7)
        self.assertEqual(table['criteriaheaders'], [
            ColumnGroup('Dependencies', 1), ColumnGroup('Activities', 3),
            ColumnGroup('Self completion', 1), ColumnGroup('Course grade', 1),
            ColumnGroup('Manual completion by', 1),
        ])
        self.assertEqual(table['criteriamethodheaders'], [
            ColumnGroup('All', 4), ColumnGroup('-', 2), ColumnGroup('Any', 1),
        ])
        self.assertEqual(table['courseaggregationheader'], 'All')
        self.assertEqual(table['sectionheaders'], [
            ColumnGroup('', 1), ColumnGroup('General', 1), ColumnGroup('Week 1: Data wrangling', 1),
            ColumnGroup('Topic 2', 1), ColumnGroup('', 3),
        ])
        self.assertEqual(table['criteria'][0], 'PY100')
        self.assertEqual(len(table['users']), 4)
        self.assertTrue(table['ishtml'])

    def test_sectionless_activity_keeps_section_row_aligned(self):
        """An activity outside any section gets a blank section cell of its own"""
        page = CourseModule(course_id=self.course.id, section_id=None, modname='page',
                            name='Loose page', completion=COMPLETION_TRACKING_MANUAL)
        db.session.add(page)
        db.session.flush()
        db.session.add(CompletionCriterion(course_id=self.course.id, module_id=page.id,
                                           criteriatype=COMPLETION_CRITERIA_TYPE_ACTIVITY, sortorder=2))
        db.session.commit()

        loaded = CompletionReportService.load(self.course)
        table = CompletionReportService.build_table(self.course, loaded, self.make_context(OUTPUT_PDF))
        self.assertEqual(table['criteria'][1:5], ['Announcements', 'Pandas quiz', 'Loose page', 'Final project'])
        self.assertEqual(table['sectionheaders'], [
            ColumnGroup('', 1), ColumnGroup('General', 1), ColumnGroup('Week 1: Data wrangling', 1),
            ColumnGroup('', 1), ColumnGroup('Topic 2', 1), ColumnGroup('', 3),
        ])
        self.assertEqual(sum(g.span for g in table['sectionheaders']), table['criteriacount'])

        rows, style, _ = CourseReportPdf.build_rows(table)
        section_row, title_row = rows[2], rows[3]
        self.assertEqual(section_row[6].text, 'Topic 2')
        self.assertEqual(title_row[6].text, 'Final project')
        self.assertIn(('SPAN', (7, 2), (9, 2)), style)

    def test_filtered_total(self):
        loaded = CompletionReportService.load(self.course, sifirst='C')
        table = CompletionReportService.build_table(self.course, loaded, self.make_context())
        self.assertEqual(table['totalparticipants'], 'All participants: 1/4')
        self.assertEqual([u['fullname'] for u in table['users']], ['Carol Clark'])

    def test_identity_hidden_without_permission(self):
        context = self.make_context(permissions={'view': True})
        loaded = CompletionReportService.load(self.course)
        table = CompletionReportService.build_table(self.course, loaded, context)
        self.assertEqual(table['leftcols'], 1)
        self.assertEqual(table['users'][0]['fields'], [])

    def test_pdf_render(self):
        loaded = CompletionReportService.load(self.course)
        table = CompletionReportService.build_table(self.course, loaded, self.make_context(OUTPUT_PDF))
        rows, style, header_rows = CourseReportPdf.build_rows(table)
        self.assertEqual(header_rows, 4)
        self.assertEqual(len(rows), 8)
        self.assertEqual(rows[4][2:], ['3', '3', '3', '3', '3', '3', '3', '3'])
        self.assertIn(('SPAN', (0, 0), (1, 0)), style)

        pdf = CourseReportPdf.render(table)
        self.assertTrue(pdf.startswith(b'%PDF'))

class TestCsvExportService(ServiceTestCase):

    def export(self, excel=False):
        context = CompletionReportService.make_context(
            OUTPUT_EXPORT, {'view': True, 'view_identity': True}, self.app.config,
            self.app.config['EXPORT_DATE_FORMAT']
        )
        loaded = CompletionReportService.load(self.course)
        return CsvExportService.export_report(self.course, loaded['criteria'], loaded['records'], context, excel)

    def test_filename(self):
        self.assertEqual(CsvExportService.make_filename('DS 101/<b>A</b>'), 'completion-ds_101_a.csv')
        filename, _ = self.export()
        self.assertEqual(filename, 'completion-ds101.csv')

    def test_csv_content(self):
        _, data = self.export()
        self.assertFalse(data.startswith(b'\xef\xbb\xbf'))
        rows = list(csv.reader(StringIO(data.decode('utf-8'))))

        self.assertEqual(rows[0], [
            'ID', 'Name', 'Email address', 'PY100',
            'Announcements - General', 'Announcements - Completion date',
            'Pandas quiz - Week 1: Data wrangling', 'Pandas quiz - Completion date',
            'Final project - Topic 2', 'Final project - Completion date',
            'Self completion', 'Course grade: 60.00 required', 'Teacher', 'Course complete',
        ])
        self.assertEqual(len(rows), 5)

        alice = rows[1]
        self.assertEqual(alice[1], 'Alice Anderson')
        self.assertEqual(alice[3], '14/03/24, 10:30')
        self.assertEqual(alice[6], 'Completed (achieved pass grade)')
        self.assertEqual(alice[-1], '14/03/24, 10:30')

        dave = rows[4]
        self.assertEqual(dave[4], 'Not completed')
        self.assertEqual(dave[5], '')
        self.assertEqual(dave[-1], '')

    def test_excel_csv_has_bom(self):
        _, data = self.export(excel=True)
        self.assertTrue(data.startswith(b'\xef\xbb\xbf'))

class TestValidators(unittest.TestCase):

    def test_username(self):
        self.assertTrue(validate_username('t.smith-2')[0])
        self.assertFalse(validate_username('ab')[0])
        self.assertFalse(validate_username('bad name')[0])

    def test_report_parameters(self):
        for value in ('', 'csv', 'excelcsv', 'pdf'):
            self.assertTrue(validate_report_format(value)[0])
        self.assertFalse(validate_report_format('xlsx')[0])
        self.assertTrue(validate_sort('firstname')[0])
        self.assertFalse(validate_sort('email')[0])

    def test_initials(self):
        self.assertTrue(validate_initial('b')[0])
        self.assertTrue(validate_initial('ALL')[0])
        self.assertTrue(validate_initial('')[0])
        self.assertFalse(validate_initial('ab')[0])
        self.assertFalse(validate_initial('1')[0])
        self.assertEqual(normalize_initial('b'), 'B')
        self.assertEqual(normalize_initial(''), 'all')
        self.assertEqual(normalize_initial('All'), 'all')

if __name__ == '__main__':
    unittest.main()
