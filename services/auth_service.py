"""
Authentication service for the Course Completion Report application
Handles login, report permissions and session utilities
"""

import logging
from datetime import datetime

from sqlalchemy import func

from database import db
from models.user import Management, User

logger = logging.getLogger(__name__)

NO_PERMISSIONS = {
    'view': False,
    'access_all_groups': False,
    'view_full_names': False,
    'view_identity': False,
}

ALL_PERMISSIONS = {key: True for key in NO_PERMISSIONS}

class AuthService:
    """Authentication service class"""

    @staticmethod
    def authenticate_management(username, password):
        """Authenticate management user"""
        try:
            # Case-insensitive username match
            normalized = (username or '').strip()
            user = (
                Management.query
                .filter(func.lower(Management.username) == func.lower(normalized))
                .filter_by(is_active=True)
                .first()
            )

            if user and user.check_password(password):
                user.update_last_login()
                return True, user, "Login successful"

            return False, None, "Invalid username or password"

        except Exception as e:
            logger.exception("Management authentication failed")
            return False, None, f"Authentication error: {str(e)}"

    @staticmethod
    def authenticate_user(username, password):
        """Authenticate a course user"""
        try:
            normalized = (username or '').strip()
            user = (
                User.query
                .filter(func.lower(User.username) == func.lower(normalized))
                .filter_by(is_active=True)
                .first()
            )

            if user and user.check_password(password):
                user.update_last_login()
                return True, user, "Login successful"

            return False, None, "Invalid username or password"

        except Exception as e:
            logger.exception("User authentication failed")
            return False, None, f"Authentication error: {str(e)}"

    @staticmethod
    def get_report_permissions(session, course):
        """Report permissions of the logged-in viewer for a course.

        Management users hold every permission. Course users get the union of
        the flags of the roles they hold through active enrolments.
        """
        if not SessionManager.is_authenticated(session):
            return dict(NO_PERMISSIONS)
        if SessionManager.is_management(session):
            return dict(ALL_PERMISSIONS)

        user = db.session.get(User, SessionManager.get_current_user_id(session))
        if not user or not user.is_active:
            return dict(NO_PERMISSIONS)

        permissions = dict(NO_PERMISSIONS)
        for role in user.get_course_roles(course.id):
            permissions['view'] |= bool(role.can_view_report)
            permissions['access_all_groups'] |= bool(role.can_access_all_groups)
            permissions['view_full_names'] |= bool(role.can_view_full_names)
            permissions['view_identity'] |= bool(role.can_view_identity)
        return permissions

class SessionManager:
    """Session management utilities"""

    @staticmethod
    def create_session(session, user_type, user_id, username):
        """Create user session"""
        session['user_type'] = user_type
        session['user_id'] = user_id
        session['username'] = username
        session['login_time'] = datetime.utcnow().isoformat()
        session.permanent = True

    @staticmethod
    def clear_session(session):
        """Clear user session"""
        session.clear()

    @staticmethod
    def is_authenticated(session):
        """Check if user is authenticated"""
        return 'user_type' in session and 'user_id' in session

    @staticmethod
    def is_management(session):
        """Check if current user is management"""
        return session.get('user_type') == 'management'

    @staticmethod
    def is_course_user(session):
        """Check if current user is a course user"""
        return session.get('user_type') == 'user'

    @staticmethod
    def get_current_user_id(session):
        """Get current user ID from session"""
        return session.get('user_id')

    @staticmethod
    def get_current_username(session):
        """Get current username from session"""
        return session.get('username')

    @staticmethod
    def get_preference(session, name, default=None):
        """Read a per-viewer report preference"""
        return session.get('preferences', {}).get(name, default)

    @staticmethod
    def set_preference(session, name, value):
        """Store a per-viewer report preference"""
        preferences = dict(session.get('preferences', {}))
        preferences[name] = value
        session['preferences'] = preferences

    @staticmethod
    def get_session_info(session):
        """Get complete session information"""
        if not SessionManager.is_authenticated(session):
            return None

        return {
            'user_type': session.get('user_type'),
            'user_id': session.get('user_id'),
            'username': session.get('username'),
            'login_time': session.get('login_time')
        }
