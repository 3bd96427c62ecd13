"""
User models for the Course Completion Report application
Management, User and Role models
"""

from database import db
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash

class Management(db.Model):
    """Site administrator with access to every course report"""
    __tablename__ = 'management'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_login = db.Column(db.DateTime)
    is_active = db.Column(db.Boolean, default=True)

    def set_password(self, password):
        """Set password hash"""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check password against hash"""
        return check_password_hash(self.password_hash, password)

    def update_last_login(self):
        """Update last login timestamp"""
        self.last_login = datetime.utcnow()
        db.session.commit()

    def __repr__(self):
        return f'<Management {self.username}>'

class Role(db.Model):
    """Course role with the report permissions it grants"""
    __tablename__ = 'role'

    id = db.Column(db.Integer, primary_key=True)
    shortname = db.Column(db.String(50), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    can_view_report = db.Column(db.Boolean, default=False)
    can_access_all_groups = db.Column(db.Boolean, default=False)
    can_view_full_names = db.Column(db.Boolean, default=False)
    can_view_identity = db.Column(db.Boolean, default=False)
    # Users enrolled with a tracked role appear in completion reports
    is_tracked = db.Column(db.Boolean, default=False)

    enrolments = db.relationship('Enrolment', backref='role', lazy='dynamic')

    def get_display_name(self):
        return self.name or self.shortname

    def __repr__(self):
        return f'<Role {self.shortname}>'

class User(db.Model):
    """Course participant (learner or teacher)"""
    __tablename__ = 'user'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=True)
    firstname = db.Column(db.String(100), nullable=False, index=True)
    lastname = db.Column(db.String(100), nullable=False, index=True)
    alternatename = db.Column(db.String(100), nullable=True)
    email = db.Column(db.String(120), unique=True, nullable=True)
    idnumber = db.Column(db.String(50), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    department = db.Column(db.String(100), nullable=True)
    institution = db.Column(db.String(100), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_login = db.Column(db.DateTime)
    is_active = db.Column(db.Boolean, default=True)

    # Relationships
    enrolments = db.relationship('Enrolment', backref='user', lazy='dynamic')
    group_memberships = db.relationship('GroupMember', backref='user', lazy='dynamic')

    def set_password(self, password):
        """Set password hash"""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check password against hash"""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def update_last_login(self):
        """Update last login timestamp"""
        self.last_login = datetime.utcnow()
        db.session.commit()

    def fullname(self, fmt='{firstname} {lastname}', alternative_fmt=None, override=False):
        """Render the user's display name.

        The alternative format is only used when the viewer is allowed to see
        full names (override=True) and one is configured.
        """
        template = alternative_fmt if (override and alternative_fmt) else fmt
        values = {
            'firstname': self.firstname or '',
            'lastname': self.lastname or '',
            'alternatename': self.alternatename or '',
        }
        return ' '.join(template.format(**values).split())

    def get_course_roles(self, course_id):
        """Roles held through active enrolments in a course"""
        return [e.role for e in self.enrolments.filter_by(course_id=course_id, is_active=True) if e.role]

    def __repr__(self):
        return f'<User {self.username}>'
