"""Application factory and initialization"""
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
from config import config
from microlend.logging_config import setup_logging

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()

def create_app(config_name='default'):
    """Create and configure the Flask application"""
    app = Flask(__name__)
    app.config.from_object(config[config_name])

    setup_logging(app.config.get('LOG_LEVEL', 'INFO'), app.config.get('LOG_FORMAT', 'standard'))

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)

    # Configure login manager
    login_manager.login_view = 'auth.login'
    login_manager.login_message = 'Please log in to access this page.'
    login_manager.login_message_category = 'info'

    # Register blueprints
    from microlend.auth import auth_bp
    from microlend.main import main_bp
    from microlend.customers import customers_bp
    from microlend.loans import loans_bp
    from microlend.payments import payments_bp
    from microlend.settings import settings_bp

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(main_bp, url_prefix='/')
    app.register_blueprint(customers_bp, url_prefix='/customers')
    app.register_blueprint(loans_bp, url_prefix='/loans')
    app.register_blueprint(payments_bp, url_prefix='/payments')
    app.register_blueprint(settings_bp, url_prefix='/settings')

    from microlend.utils.helpers import format_currency
    app.add_template_filter(format_currency, 'currency')

    # Context processor for global variables
    @app.context_processor
    def inject_settings():
        from microlend.models import SystemSettings
        from datetime import datetime
        settings = SystemSettings.get_settings()
        return dict(
            system_settings=settings,
            now=datetime.now,
            today=datetime.now().date()
        )

    app.logger.info('microlend started with %s configuration', config_name)
    return app
