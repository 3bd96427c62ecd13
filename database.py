"""
Database configuration and initialization for the Course Completion Report application
"""

import logging
import sqlite3

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# Initialize SQLAlchemy instance
db = SQLAlchemy()

@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints for SQLite"""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

def init_db(app):
    """Initialize database with application context"""
    with app.app_context():
        # Import all models to ensure they are registered
        from models import (
            Management, User, Role, Course, CourseSection, CourseModule,
            CourseGroup, GroupMember, Enrolment, CompletionCriterion,
            CompletionAggregation, CriterionCompletion, ModuleCompletion,
            CourseCompletion
        )

        # Create all tables
        db.create_all()

        # Create default management user if not exists
        create_default_management_user(app)

        logger.info("Database initialized")

def create_default_management_user(app):
    """Create default management user for initial access"""
    from models.user import Management

    username = app.config.get('DEFAULT_ADMIN_USERNAME', 'admin')
    existing_user = Management.query.filter_by(username=username).first()

    if not existing_user:
        default_user = Management(username=username)
        default_user.set_password(app.config.get('DEFAULT_ADMIN_PASSWORD', 'admin123'))

        try:
            db.session.add(default_user)
            db.session.commit()
            logger.info("Default management user created: %s", username)
        except Exception:
            db.session.rollback()
            logger.exception("Error creating default management user")

def reset_database(app):
    """Reset database - WARNING: This will delete all data"""
    with app.app_context():
        db.drop_all()
        db.create_all()
        create_default_management_user(app)
        logger.warning("Database reset completed")

class DatabaseError(Exception):
    """Custom exception for database operations"""
    pass

def handle_db_error(func):
    """Decorator to roll back the session and wrap failures in DatabaseError"""
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            db.session.rollback()
            raise DatabaseError(f"Database operation failed: {str(e)}") from e
    wrapper.__name__ = func.__name__
    wrapper.__doc__ = func.__doc__
    return wrapper
