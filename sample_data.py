#!/usr/bin/env python3
"""
Sample data generator for the Course Completion Report application
Creates a demonstration course with criteria, participants and completion progress
"""

import logging
from datetime import datetime

from database import db, handle_db_error
from models.user import Role, User
from models.academic import (
    Course, CourseSection, CourseModule, CourseGroup, GroupMember, Enrolment,
    VISIBLEGROUPS, COMPLETION_TRACKING_AUTOMATIC, COMPLETION_TRACKING_MANUAL
)
from models.completion import (
    CompletionCriterion, CompletionAggregation, CriterionCompletion,
    ModuleCompletion, CourseCompletion, COMPLETION_CRITERIA_TYPE_SELF,
    COMPLETION_CRITERIA_TYPE_ACTIVITY, COMPLETION_CRITERIA_TYPE_ROLE,
    COMPLETION_CRITERIA_TYPE_COURSE, COMPLETION_CRITERIA_TYPE_GRADE,
    COMPLETION_AGGREGATION_ALL, COMPLETION_AGGREGATION_ANY,
    COMPLETION_COMPLETE, COMPLETION_COMPLETE_PASS, COMPLETION_COMPLETE_FAIL
)

logger = logging.getLogger(__name__)

DEFAULT_PASSWORD = 'password123'

ROLES_DATA = [
    {'shortname': 'editingteacher', 'name': 'Teacher', 'can_view_report': True,
     'can_access_all_groups': True, 'can_view_full_names': True, 'can_view_identity': True},
    {'shortname': 'teacher', 'name': 'Non-editing teacher', 'can_view_report': True},
    {'shortname': 'student', 'name': 'Student', 'is_tracked': True},
]

USERS_DATA = [
    {'username': 'tsmith', 'firstname': 'Tara', 'lastname': 'Smith', 'email': 'tara.smith@example.edu'},
    {'username': 'mjones', 'firstname': 'Mark', 'lastname': 'Jones', 'email': 'mark.jones@example.edu'},
    {'username': 'aanderson', 'firstname': 'Alice', 'lastname': 'Anderson', 'email': 'alice@example.edu',
     'alternatename': 'Ali', 'idnumber': 'S001'},
    {'username': 'bbrown', 'firstname': 'Bob', 'lastname': 'Brown', 'email': 'bob@example.edu', 'idnumber': 'S002'},
    {'username': 'cclark', 'firstname': 'Carol', 'lastname': 'Clark', 'email': 'carol@example.edu', 'idnumber': 'S003'},
    {'username': 'ddavis', 'firstname': 'Dave', 'lastname': 'Davis', 'email': 'dave@example.edu', 'idnumber': 'S004'},
]

@handle_db_error
def create_sample_data():
    """Create the demonstration data inside the current application context.

    Returns a dict of the created records keyed by a short name, so callers
    (the tests in particular) can refer to them.
    """
    created = {}

    roles = {}
    for role_data in ROLES_DATA:
        role = Role(**role_data)
        db.session.add(role)
        roles[role.shortname] = role

    users = {}
    for user_data in USERS_DATA:
        user = User(**user_data)
        user.set_password(DEFAULT_PASSWORD)
        db.session.add(user)
        users[user.username] = user

    prerequisite = Course(fullname='Python Basics', shortname='PY100')
    course = Course(fullname='Introduction to Data Science', shortname='DS101',
                    groupmode=VISIBLEGROUPS)
    db.session.add_all([prerequisite, course])
    db.session.flush()
    logger.info("Created courses %s and %s", prerequisite.shortname, course.shortname)

    sections = [
        CourseSection(course_id=course.id, section=0),
        CourseSection(course_id=course.id, section=1, name='Week 1: Data wrangling'),
        CourseSection(course_id=course.id, section=2),
    ]
    db.session.add_all(sections)
    db.session.flush()

    modules = {
        'forum': CourseModule(course_id=course.id, section_id=sections[0].id, modname='forum',
                              name='Announcements', completion=COMPLETION_TRACKING_MANUAL),
        'quiz': CourseModule(course_id=course.id, section_id=sections[1].id, modname='quiz',
                             name='Pandas quiz', completion=COMPLETION_TRACKING_AUTOMATIC),
        'assign': CourseModule(course_id=course.id, section_id=sections[2].id, modname='assign',
                               name='Final project', completion=COMPLETION_TRACKING_AUTOMATIC),
    }
    db.session.add_all(modules.values())
    db.session.flush()

    # Enrolments: the two staff members view, the four students are tracked
    db.session.add(Enrolment(user_id=users['tsmith'].id, course_id=course.id, role_id=roles['editingteacher'].id))
    db.session.add(Enrolment(user_id=users['mjones'].id, course_id=course.id, role_id=roles['teacher'].id))
    students = [users[name] for name in ('aanderson', 'bbrown', 'cclark', 'ddavis')]
    for student in students:
        db.session.add(Enrolment(user_id=student.id, course_id=course.id, role_id=roles['student'].id))
        db.session.add(Enrolment(user_id=student.id, course_id=prerequisite.id, role_id=roles['student'].id))

    groups = {
        'red': CourseGroup(course_id=course.id, name='Red team'),
        'blue': CourseGroup(course_id=course.id, name='Blue team'),
    }
    db.session.add_all(groups.values())
    db.session.flush()
    for user, group in ((students[0], 'red'), (students[1], 'red'), (students[2], 'blue'),
                        (students[3], 'blue'), (users['mjones'], 'red')):
        db.session.add(GroupMember(group_id=groups[group].id, user_id=user.id))

    criteria = {
        'self': CompletionCriterion(course_id=course.id, criteriatype=COMPLETION_CRITERIA_TYPE_SELF),
        'grade': CompletionCriterion(course_id=course.id, criteriatype=COMPLETION_CRITERIA_TYPE_GRADE,
                                     gradepass=60.0),
        'forum': CompletionCriterion(course_id=course.id, criteriatype=COMPLETION_CRITERIA_TYPE_ACTIVITY,
                                     module_id=modules['forum'].id, sortorder=1),
        'quiz': CompletionCriterion(course_id=course.id, criteriatype=COMPLETION_CRITERIA_TYPE_ACTIVITY,
                                    module_id=modules['quiz'].id, sortorder=2),
        'assign': CompletionCriterion(course_id=course.id, criteriatype=COMPLETION_CRITERIA_TYPE_ACTIVITY,
                                      module_id=modules['assign'].id, sortorder=3),
        'role': CompletionCriterion(course_id=course.id, criteriatype=COMPLETION_CRITERIA_TYPE_ROLE,
                                    role_id=roles['editingteacher'].id),
        'prerequisite': CompletionCriterion(course_id=course.id, criteriatype=COMPLETION_CRITERIA_TYPE_COURSE,
                                            course_instance_id=prerequisite.id),
    }
    db.session.add_all(criteria.values())
    db.session.add_all([
        CompletionAggregation(course_id=course.id, criteriatype=None, method=COMPLETION_AGGREGATION_ALL),
        CompletionAggregation(course_id=course.id, criteriatype=COMPLETION_CRITERIA_TYPE_ACTIVITY,
                              method=COMPLETION_AGGREGATION_ALL),
        CompletionAggregation(course_id=course.id, criteriatype=COMPLETION_CRITERIA_TYPE_ROLE,
                              method=COMPLETION_AGGREGATION_ANY),
    ])
    db.session.flush()

    # Alice finished everything, Bob is part way, Carol failed the quiz, Dave has not started
    alice, bob, carol, _ = students
    done = datetime(2024, 3, 14, 10, 30)
    progress = [
        (alice, 'forum', COMPLETION_COMPLETE),
        (alice, 'quiz', COMPLETION_COMPLETE_PASS),
        (alice, 'assign', COMPLETION_COMPLETE),
        (bob, 'forum', COMPLETION_COMPLETE),
        (bob, 'quiz', COMPLETION_COMPLETE_PASS),
        (carol, 'quiz', COMPLETION_COMPLETE_FAIL),
    ]
    for user, module, state in progress:
        db.session.add(ModuleCompletion(user_id=user.id, module_id=modules[module].id,
                                        completionstate=state, timemodified=done))
        db.session.add(CriterionCompletion(user_id=user.id, course_id=course.id,
                                           criterion_id=criteria[module].id, timecompleted=done))
    for name in ('self', 'grade', 'role', 'prerequisite'):
        db.session.add(CriterionCompletion(user_id=alice.id, course_id=course.id,
                                           criterion_id=criteria[name].id, timecompleted=done))
    db.session.add(CriterionCompletion(user_id=bob.id, course_id=course.id,
                                       criterion_id=criteria['self'].id, timecompleted=done))

    for student in students:
        db.session.add(CourseCompletion(
            user_id=student.id, course_id=course.id, timeenrolled=datetime(2024, 1, 8),
            timecompleted=done if student is alice else None
        ))

    db.session.commit()
    logger.info("Sample data created: %d users, %d criteria", len(users), len(criteria))

    created.update(roles=roles, users=users, course=course, prerequisite=prerequisite,
                   sections=sections, modules=modules, groups=groups, criteria=criteria)
    return created

def main():
    from app import create_app

    app = create_app()
    with app.app_context():
        if Course.query.filter_by(shortname='DS101').first():
            print("Sample data already exists")
            return
        create_sample_data()

    print("Sample data creation completed!")
    print("\nLogin credentials:")
    print(f"Management: {app.config['DEFAULT_ADMIN_USERNAME']} / {app.config['DEFAULT_ADMIN_PASSWORD']}")
    print(f"Course users: [username] / {DEFAULT_PASSWORD}")
    print("  - tsmith (teacher, sees every group and identity fields)")
    print("  - mjones (non-editing teacher, Red team)")
    print("  - aanderson (student, cannot view the report)")

if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    main()
