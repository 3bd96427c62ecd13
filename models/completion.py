"""
Completion models for the Course Completion Report application
Criteria, aggregation methods and per-user completion records
"""

from database import db
from datetime import datetime

# Criterion types
COMPLETION_CRITERIA_TYPE_SELF = 1
COMPLETION_CRITERIA_TYPE_DATE = 2
COMPLETION_CRITERIA_TYPE_UNENROL = 3
COMPLETION_CRITERIA_TYPE_ACTIVITY = 4
COMPLETION_CRITERIA_TYPE_DURATION = 5
COMPLETION_CRITERIA_TYPE_GRADE = 6
COMPLETION_CRITERIA_TYPE_ROLE = 7
COMPLETION_CRITERIA_TYPE_COURSE = 8

# Aggregation methods
COMPLETION_AGGREGATION_ALL = 1
COMPLETION_AGGREGATION_ANY = 2

# Activity completion states
COMPLETION_INCOMPLETE = 0
COMPLETION_COMPLETE = 1
COMPLETION_COMPLETE_PASS = 2
COMPLETION_COMPLETE_FAIL = 3

CRITERIA_TYPE_KEYS = {
    COMPLETION_CRITERIA_TYPE_SELF: 'self',
    COMPLETION_CRITERIA_TYPE_DATE: 'date',
    COMPLETION_CRITERIA_TYPE_UNENROL: 'unenrol',
    COMPLETION_CRITERIA_TYPE_ACTIVITY: 'activity',
    COMPLETION_CRITERIA_TYPE_DURATION: 'duration',
    COMPLETION_CRITERIA_TYPE_GRADE: 'grade',
    COMPLETION_CRITERIA_TYPE_ROLE: 'role',
    COMPLETION_CRITERIA_TYPE_COURSE: 'course',
}

CRITERIA_TYPE_TITLES = {
    COMPLETION_CRITERIA_TYPE_SELF: 'Self completion',
    COMPLETION_CRITERIA_TYPE_DATE: 'Date',
    COMPLETION_CRITERIA_TYPE_UNENROL: 'Unenrolment',
    COMPLETION_CRITERIA_TYPE_ACTIVITY: 'Activities',
    COMPLETION_CRITERIA_TYPE_DURATION: 'Enrolment duration',
    COMPLETION_CRITERIA_TYPE_GRADE: 'Course grade',
    COMPLETION_CRITERIA_TYPE_ROLE: 'Manual completion by',
    COMPLETION_CRITERIA_TYPE_COURSE: 'Dependencies',
}

CRITERIA_TITLES = {
    COMPLETION_CRITERIA_TYPE_SELF: 'Self completion',
    COMPLETION_CRITERIA_TYPE_DATE: 'Date',
    COMPLETION_CRITERIA_TYPE_UNENROL: 'Unenrolment',
    COMPLETION_CRITERIA_TYPE_ACTIVITY: 'Activities completed',
    COMPLETION_CRITERIA_TYPE_DURATION: 'Enrolment duration',
    COMPLETION_CRITERIA_TYPE_GRADE: 'Course grade',
    COMPLETION_CRITERIA_TYPE_ROLE: 'Manual completion by',
    COMPLETION_CRITERIA_TYPE_COURSE: 'Completion of other courses',
}

class CompletionCriterion(db.Model):
    """A single condition contributing to course completion"""
    __tablename__ = 'completion_criterion'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=False, index=True)
    criteriatype = db.Column(db.Integer, nullable=False)
    module_id = db.Column(db.Integer, db.ForeignKey('course_module.id'), nullable=True)
    course_instance_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=True)
    role_id = db.Column(db.Integer, db.ForeignKey('role.id'), nullable=True)
    gradepass = db.Column(db.Float, nullable=True)
    enrolperiod = db.Column(db.Integer, nullable=True)  # seconds
    timeend = db.Column(db.DateTime, nullable=True)
    sortorder = db.Column(db.Integer, default=0)

    course = db.relationship('Course', foreign_keys=[course_id],
                             backref=db.backref('completion_criteria', lazy='dynamic'))
    course_instance = db.relationship('Course', foreign_keys=[course_instance_id])
    module = db.relationship('CourseModule')
    role = db.relationship('Role')

    def get_type_title(self):
        """Title of the criterion type, used for column group headers"""
        return CRITERIA_TYPE_TITLES.get(self.criteriatype, 'Other')

    def get_title(self):
        """Generic title of the criterion"""
        return CRITERIA_TITLES.get(self.criteriatype, 'Criteria')

    def get_title_detailed(self):
        """Title naming the specific activity, course or role"""
        if self.criteriatype == COMPLETION_CRITERIA_TYPE_ACTIVITY and self.module:
            return self.module.get_formatted_name()
        if self.criteriatype == COMPLETION_CRITERIA_TYPE_COURSE and self.course_instance:
            return self.course_instance.shortname
        if self.criteriatype == COMPLETION_CRITERIA_TYPE_ROLE and self.role:
            return self.role.get_display_name()
        if self.criteriatype == COMPLETION_CRITERIA_TYPE_DATE and self.timeend:
            return f'Date: {self.timeend.strftime("%d %B %Y")}'
        if self.criteriatype == COMPLETION_CRITERIA_TYPE_GRADE and self.gradepass is not None:
            return f'Course grade: {self.gradepass:.2f} required'
        if self.criteriatype == COMPLETION_CRITERIA_TYPE_DURATION and self.enrolperiod:
            return f'{self.enrolperiod // 86400} days'
        return self.get_title()

    def get_icon_name(self):
        """Pix icon path for this criterion"""
        if self.criteriatype == COMPLETION_CRITERIA_TYPE_ACTIVITY:
            return 'i/activity'
        return f"i/{CRITERIA_TYPE_KEYS.get(self.criteriatype, 'criterion')}"

    def __repr__(self):
        return f'<CompletionCriterion {self.id} type={self.criteriatype}>'

class CompletionAggregation(db.Model):
    """Aggregation method for a criterion type, or the whole course when criteriatype is NULL"""
    __tablename__ = 'completion_aggregation'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=False)
    criteriatype = db.Column(db.Integer, nullable=True)
    method = db.Column(db.Integer, default=COMPLETION_AGGREGATION_ALL, nullable=False)

    __table_args__ = (db.UniqueConstraint('course_id', 'criteriatype', name='unique_aggregation_per_type'),)

class CriterionCompletion(db.Model):
    """Completion of a single criterion by a user"""
    __tablename__ = 'criterion_completion'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=False)
    criterion_id = db.Column(db.Integer, db.ForeignKey('completion_criterion.id'), nullable=False)
    timecompleted = db.Column(db.DateTime, nullable=True)

    __table_args__ = (db.UniqueConstraint('user_id', 'criterion_id', name='unique_criterion_completion'),)

    def is_complete(self):
        return self.timecompleted is not None

class ModuleCompletion(db.Model):
    """Cached completion state of an activity for a user"""
    __tablename__ = 'module_completion'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    module_id = db.Column(db.Integer, db.ForeignKey('course_module.id'), nullable=False)
    completionstate = db.Column(db.Integer, default=COMPLETION_INCOMPLETE, nullable=False)
    timemodified = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint('user_id', 'module_id', name='unique_module_completion'),)

class CourseCompletion(db.Model):
    """Overall completion of a course by a user"""
    __tablename__ = 'course_completion'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=False)
    timeenrolled = db.Column(db.DateTime, nullable=True)
    timestarted = db.Column(db.DateTime, nullable=True)
    timecompleted = db.Column(db.DateTime, nullable=True)

    __table_args__ = (db.UniqueConstraint('user_id', 'course_id', name='unique_course_completion'),)

    def is_complete(self):
        return self.timecompleted is not None
