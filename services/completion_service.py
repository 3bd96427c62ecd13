"""
Completion data service for the Course Completion Report application
Loads criteria, aggregation methods, tracked users and their completion records
"""

import logging

from models.user import User, Role
from models.academic import CourseModule, GroupMember, Enrolment
from models.completion import (
    CompletionCriterion, CompletionAggregation, CriterionCompletion,
    ModuleCompletion, CourseCompletion, COMPLETION_CRITERIA_TYPE_COURSE,
    COMPLETION_CRITERIA_TYPE_ACTIVITY, COMPLETION_AGGREGATION_ALL
)
from services.completion_engine import UserCompletionRecord

logger = logging.getLogger(__name__)

IDENTITY_FIELD_NAMES = {
    'email': 'Email address',
    'username': 'Username',
    'idnumber': 'ID number',
    'phone': 'Phone',
    'department': 'Department',
    'institution': 'Institution',
}

SORT_FIRSTNAME = 'firstname'
SORT_LASTNAME = 'lastname'

class CompletionService:
    """Read-only lookups behind the completion report"""

    @staticmethod
    def get_criteria(course):
        """Course criteria first, then activity criteria, then everything else"""
        criteria = (
            CompletionCriterion.query
            .filter_by(course_id=course.id)
            .order_by(CompletionCriterion.sortorder, CompletionCriterion.id)
            .all()
        )
        course_criteria = [c for c in criteria if c.criteriatype == COMPLETION_CRITERIA_TYPE_COURSE]
        activity_criteria = [c for c in criteria if c.criteriatype == COMPLETION_CRITERIA_TYPE_ACTIVITY]
        other_criteria = [
            c for c in criteria
            if c.criteriatype not in (COMPLETION_CRITERIA_TYPE_COURSE, COMPLETION_CRITERIA_TYPE_ACTIVITY)
        ]
        return course_criteria + activity_criteria + other_criteria

    @staticmethod
    def get_aggregation_method(course, criteriatype=None):
        """Aggregation method for a criterion type, or for the course when criteriatype is None"""
        row = CompletionAggregation.query.filter_by(course_id=course.id, criteriatype=criteriatype).first()
        return row.method if row else COMPLETION_AGGREGATION_ALL

    @staticmethod
    def get_aggregation_rules(course):
        """Mapping of criterion type to aggregation method for a course"""
        rows = CompletionAggregation.query.filter(
            CompletionAggregation.course_id == course.id,
            CompletionAggregation.criteriatype.isnot(None)
        ).all()
        return {row.criteriatype: row.method for row in rows}

    @staticmethod
    def _tracked_users_query(course, sifirst='all', silast='all', group_id=0):
        query = (
            User.query
            .join(Enrolment, Enrolment.user_id == User.id)
            .join(Role, Role.id == Enrolment.role_id)
            .filter(
                Enrolment.course_id == course.id,
                Enrolment.is_active == True,
                Role.is_tracked == True,
                User.is_active == True
            )
        )
        if sifirst and sifirst != 'all':
            query = query.filter(User.firstname.ilike(f'{sifirst}%'))
        if silast and silast != 'all':
            query = query.filter(User.lastname.ilike(f'{silast}%'))
        if group_id:
            query = query.join(GroupMember, GroupMember.user_id == User.id).filter(GroupMember.group_id == group_id)
        return query.distinct()

    @staticmethod
    def get_num_tracked_users(course, sifirst='all', silast='all', group_id=0):
        """Count tracked users matching the initials and group filters"""
        query = CompletionService._tracked_users_query(course, sifirst, silast, group_id)
        return query.with_entities(User.id).distinct().count()

    @staticmethod
    def get_tracked_users(course, sifirst='all', silast='all', group_id=0, sort=SORT_LASTNAME, start=0, limit=0):
        """Tracked users in report order, optionally paged"""
        query = CompletionService._tracked_users_query(course, sifirst, silast, group_id)
        if sort == SORT_FIRSTNAME:
            query = query.order_by(User.firstname, User.lastname, User.id)
        else:
            query = query.order_by(User.lastname, User.firstname, User.id)
        if start:
            query = query.offset(start)
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def get_progress_all(course, sifirst='all', silast='all', group_id=0, sort=SORT_LASTNAME, start=0, limit=0):
        """Completion records for every tracked user matching the filters"""
        users = CompletionService.get_tracked_users(course, sifirst, silast, group_id, sort, start, limit)
        if not users:
            return []
        user_ids = [u.id for u in users]

        module_ids = [m.id for m in CourseModule.query.filter_by(course_id=course.id).with_entities(CourseModule.id)]
        progress = {uid: {} for uid in user_ids}
        if module_ids:
            rows = ModuleCompletion.query.filter(
                ModuleCompletion.user_id.in_(user_ids),
                ModuleCompletion.module_id.in_(module_ids)
            ).all()
            for row in rows:
                progress[row.user_id][row.module_id] = row.completionstate

        criteria_completions = {uid: {} for uid in user_ids}
        rows = CriterionCompletion.query.filter(
            CriterionCompletion.user_id.in_(user_ids),
            CriterionCompletion.course_id == course.id
        ).all()
        for row in rows:
            criteria_completions[row.user_id][row.criterion_id] = row.timecompleted

        course_completions = {}
        rows = CourseCompletion.query.filter(
            CourseCompletion.user_id.in_(user_ids),
            CourseCompletion.course_id == course.id
        ).all()
        for row in rows:
            course_completions[row.user_id] = row.timecompleted

        logger.debug("Loaded completion records for %d users in course %s", len(users), course.id)
        return [
            UserCompletionRecord(
                user,
                progress=progress[user.id],
                criteria_completions=criteria_completions[user.id],
                course_completion=course_completions.get(user.id),
            )
            for user in users
        ]

    @staticmethod
    def get_identity_fields(configured_fields, can_view_identity):
        """Identity fields the viewer may see, limited to known user attributes"""
        if not can_view_identity:
            return []
        return [field for field in (configured_fields or []) if field in IDENTITY_FIELD_NAMES]

    @staticmethod
    def get_identity_field_name(field):
        return IDENTITY_FIELD_NAMES.get(field, field)
