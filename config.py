"""
Configuration settings for the Course Completion Report application
"""

import os
from datetime import timedelta

class Config:
    """Base configuration class"""

    # Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'completion-report-secret-key'

    # Database settings
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///completion_report.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session settings
    PERMANENT_SESSION_LIFETIME = timedelta(hours=2)
    SESSION_COOKIE_SECURE = False  # Set to True in production with HTTPS
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'

    # Completion report settings
    COMPLETION_REPORT_PAGE = 25  # Users per page in the HTML report
    COMPLETION_REPORT_COL_TITLES = True
    SHOW_USER_IDENTITY = ['email']
    FULLNAME_FORMAT = '{firstname} {lastname}'
    ALTERNATIVE_FULLNAME_FORMAT = None  # e.g. '{firstname} ({alternatename}) {lastname}'
    REPORT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
    EXPORT_DATE_FORMAT = '%d/%m/%y, %H:%M'
    WWWROOT = os.environ.get('WWWROOT') or ''

    # Security settings
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = None

    # Default administrator created on first start
    DEFAULT_ADMIN_USERNAME = 'admin'
    DEFAULT_ADMIN_PASSWORD = os.environ.get('DEFAULT_ADMIN_PASSWORD') or 'admin123'

class TestConfig(Config):
    """Configuration used by the test suite"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    LOG_LEVEL = 'WARNING'
