"""
Database models package for the Course Completion Report application
"""

from .user import Management, User, Role
from .academic import Course, CourseSection, CourseModule, CourseGroup, GroupMember, Enrolment
from .completion import (
    CompletionCriterion, CompletionAggregation, CriterionCompletion,
    ModuleCompletion, CourseCompletion
)

__all__ = [
    'Management', 'User', 'Role', 'Course', 'CourseSection', 'CourseModule',
    'CourseGroup', 'GroupMember', 'Enrolment', 'CompletionCriterion',
    'CompletionAggregation', 'CriterionCompletion', 'ModuleCompletion',
    'CourseCompletion'
]
