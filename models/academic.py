"""
Course structure models for the Course Completion Report application
Course, CourseSection, CourseModule, CourseGroup, GroupMember and Enrolment models
"""

from database import db
from datetime import datetime

# Course group modes
NOGROUPS = 0
SEPARATEGROUPS = 1
VISIBLEGROUPS = 2

# Activity completion tracking
COMPLETION_TRACKING_NONE = 0
COMPLETION_TRACKING_MANUAL = 1
COMPLETION_TRACKING_AUTOMATIC = 2

class Course(db.Model):
    """Course model"""
    __tablename__ = 'course'

    id = db.Column(db.Integer, primary_key=True)
    fullname = db.Column(db.String(255), nullable=False)
    shortname = db.Column(db.String(100), unique=True, nullable=False, index=True)
    groupmode = db.Column(db.Integer, default=NOGROUPS, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    is_active = db.Column(db.Boolean, default=True)

    # Relationships
    sections = db.relationship('CourseSection', backref='course', lazy='dynamic',
                               order_by='CourseSection.section')
    modules = db.relationship('CourseModule', backref='course', lazy='dynamic')
    groups = db.relationship('CourseGroup', backref='course', lazy='dynamic')
    enrolments = db.relationship('Enrolment', backref='course', lazy='dynamic')

    def get_group(self, group_id):
        """Return a group of this course or None"""
        return self.groups.filter_by(id=group_id).first()

    def __repr__(self):
        return f'<Course {self.shortname}: {self.fullname}>'

class CourseSection(db.Model):
    """Numbered section (topic) of a course"""
    __tablename__ = 'course_section'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=False)
    section = db.Column(db.Integer, nullable=False)
    name = db.Column(db.String(255), nullable=True)
    visible = db.Column(db.Boolean, default=True)

    modules = db.relationship('CourseModule', backref='section', lazy='dynamic')

    __table_args__ = (db.UniqueConstraint('course_id', 'section', name='unique_section_per_course'),)

    def get_display_name(self):
        """Section name, or the default name for its number"""
        if self.name:
            return self.name
        if self.section == 0:
            return 'General'
        return f'Topic {self.section}'

    def __repr__(self):
        return f'<CourseSection {self.course_id}/{self.section}>'

class CourseModule(db.Model):
    """Activity placed in a course section"""
    __tablename__ = 'course_module'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=False)
    section_id = db.Column(db.Integer, db.ForeignKey('course_section.id'), nullable=True)
    modname = db.Column(db.String(50), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    completion = db.Column(db.Integer, default=COMPLETION_TRACKING_NONE, nullable=False)
    visible = db.Column(db.Boolean, default=True)

    def get_formatted_name(self):
        return (self.name or '').strip()

    def get_module_type_name(self):
        """Human name of the activity type (quiz -> Quiz)"""
        return (self.modname or '').replace('_', ' ').capitalize()

    def is_automatic(self):
        return self.completion == COMPLETION_TRACKING_AUTOMATIC

    def __repr__(self):
        return f'<CourseModule {self.modname} {self.id}: {self.name}>'

class CourseGroup(db.Model):
    """Group of participants inside a course"""
    __tablename__ = 'course_group'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=False)
    name = db.Column(db.String(255), nullable=False)

    members = db.relationship('GroupMember', backref='group', lazy='dynamic')

    def __repr__(self):
        return f'<CourseGroup {self.name}>'

class GroupMember(db.Model):
    """Membership of a user in a course group"""
    __tablename__ = 'group_member'

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.Integer, db.ForeignKey('course_group.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)

    __table_args__ = (db.UniqueConstraint('group_id', 'user_id', name='unique_group_member'),)

class Enrolment(db.Model):
    """Enrolment of a user in a course with a role"""
    __tablename__ = 'enrolment'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=False)
    role_id = db.Column(db.Integer, db.ForeignKey('role.id'), nullable=False)
    time_start = db.Column(db.DateTime, default=datetime.utcnow)
    is_active = db.Column(db.Boolean, default=True)

    __table_args__ = (db.UniqueConstraint('user_id', 'course_id', 'role_id', name='unique_enrolment'),)

    def __repr__(self):
        return f'<Enrolment user={self.user_id} course={self.course_id}>'
