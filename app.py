"""
Course Completion Report
Main Flask application entry point
"""

from flask import Flask
from flask_wtf.csrf import CSRFProtect
from config import Config
from database import db, init_db

def create_app(config_class=Config):
    """Application factory pattern"""
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize extensions with app
    db.init_app(app)
    CSRFProtect(app)

    # Add CSRF token to template context
    @app.context_processor
    def inject_csrf_token():
        from flask_wtf.csrf import generate_csrf
        return dict(csrf_token=generate_csrf)

    # Register blueprints
    from routes.auth import auth_bp
    from routes.report import report_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(report_bp, url_prefix='/report/completion')

    # Initialize database
    init_db(app)

    return app

if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', port=8000, debug=True, use_reloader=False)
