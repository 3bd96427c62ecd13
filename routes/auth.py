"""
Authentication routes for the Course Completion Report application
Handles login, logout, and authentication redirects
"""

from functools import wraps

from flask import Blueprint, render_template, request, redirect, url_for, flash, session
from services.auth_service import AuthService, SessionManager
from utils.validators import validate_username

auth_bp = Blueprint('auth', __name__)

@auth_bp.route('/')
def index():
    """Landing page with login options"""
    # Redirect if already logged in
    if SessionManager.is_authenticated(session):
        return redirect(url_for('report.courses'))

    return render_template('auth/index.html')

def _login(user_type, authenticate, template_title):
    """Shared login form handling for both user types"""
    if request.method == 'POST':
        username = request.form.get('username', '').strip()
        password = request.form.get('password', '')

        # Validate input
        if not username or not password:
            flash('Username and password are required', 'error')
            return render_template('auth/login.html', title=template_title)

        is_valid, message = validate_username(username)
        if not is_valid:
            flash(message, 'error')
            return render_template('auth/login.html', title=template_title)

        success, user, message = authenticate(username, password)

        if success:
            SessionManager.create_session(session, user_type, user.id, user.username)
            flash('Login successful', 'success')
            next_url = request.args.get('next')
            if next_url and next_url.startswith('/') and not next_url.startswith('//'):
                return redirect(next_url)
            return redirect(url_for('report.courses'))

        flash(message, 'error')

    return render_template('auth/login.html', title=template_title)

@auth_bp.route('/management/login', methods=['GET', 'POST'])
def management_login():
    """Management login page and handler"""
    if SessionManager.is_authenticated(session) and SessionManager.is_management(session):
        return redirect(url_for('report.courses'))
    return _login('management', AuthService.authenticate_management, 'Management Login')

@auth_bp.route('/login', methods=['GET', 'POST'])
def user_login():
    """Course user login page and handler"""
    if SessionManager.is_authenticated(session) and SessionManager.is_course_user(session):
        return redirect(url_for('report.courses'))
    return _login('user', AuthService.authenticate_user, 'Login')

@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Logout handler for both user types"""
    user_type = session.get('user_type')
    SessionManager.clear_session(session)
    flash('You have been logged out successfully', 'success')

    if user_type == 'management':
        return redirect(url_for('auth.management_login'))
    return redirect(url_for('auth.user_login'))

# Authentication decorator
def login_required(user_type=None):
    """Decorator to require authentication"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not SessionManager.is_authenticated(session):
                flash('Please log in to access this page', 'error')
                return redirect(url_for('auth.user_login', next=request.full_path))

            if user_type == 'management' and not SessionManager.is_management(session):
                flash('Access denied. Management login required.', 'error')
                return redirect(url_for('auth.management_login'))

            return f(*args, **kwargs)

        return decorated_function
    return decorator

# Context processor to make session info available in templates
@auth_bp.app_context_processor
def inject_user():
    """Inject user information into template context"""
    return {
        'current_user': SessionManager.get_session_info(session),
        'is_authenticated': SessionManager.is_authenticated(session),
        'is_management': SessionManager.is_management(session),
    }
