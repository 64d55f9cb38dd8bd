import os
import time
import logging
from flask import Flask, g, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect, CSRFError
from werkzeug.exceptions import HTTPException
from config import config

db = SQLAlchemy()
login_manager = LoginManager()
csrf = CSRFProtect()


@login_manager.unauthorized_handler
def unauthorized():
    """API clients get a JSON 401 instead of a login redirect"""
    return jsonify({'error': 'Unauthorized - please log in'}), 401


def create_app(config_name=None):
    """Application factory"""
    if config_name is None:
        config_name = os.environ.get('FLASK_CONFIG', 'default')

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    csrf.init_app(app)

    # Ensure the SQLite folder exists
    uri = app.config['SQLALCHEMY_DATABASE_URI']
    if uri.startswith('sqlite:///') and not uri.endswith(':memory:'):
        os.makedirs(os.path.dirname(uri[len('sqlite:///'):]), exist_ok=True)

    # Register blueprints
    from shopfloor.routes.main import main_bp
    from shopfloor.routes.auth import auth_bp
    from shopfloor.routes.machines import machines_bp
    from shopfloor.routes.operators import operators_bp
    from shopfloor.routes.maintenance import maintenance_bp
    from shopfloor.routes.downtime import downtime_bp
    from shopfloor.routes.production import production_bp
    from shopfloor.routes.scrap import scrap_bp
    from shopfloor.routes.cells import cells_bp
    from shopfloor.routes.schedule import schedule_bp
    from shopfloor.routes.reports import reports_bp
    from shopfloor.routes.events import events_bp

    app.register_blueprint(main_bp, url_prefix='/api')
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(machines_bp, url_prefix='/api/machines')
    app.register_blueprint(operators_bp, url_prefix='/api/operators')
    app.register_blueprint(maintenance_bp, url_prefix='/api/maintenance')
    app.register_blueprint(downtime_bp, url_prefix='/api/downtime')
    app.register_blueprint(production_bp, url_prefix='/api/production-stats')
    app.register_blueprint(scrap_bp, url_prefix='/api/scrap')
    app.register_blueprint(cells_bp, url_prefix='/api/cells')
    app.register_blueprint(schedule_bp, url_prefix='/api')
    app.register_blueprint(reports_bp, url_prefix='/api/reports')
    app.register_blueprint(events_bp, url_prefix='/api')

    register_error_handlers(app)
    register_request_logging(app)

    # Create database tables
    with app.app_context():
        db.create_all()
        seed_defaults(app)

    return app


def configure_logging(app):
    """Send app.logger output to stderr at the configured level"""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(asctime)s [%(name)s] %(levelname)s %(message)s'))
    app.logger.handlers = [handler]
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))


def register_error_handlers(app):
    """JSON error bodies for the API"""

    @app.errorhandler(CSRFError)
    def handle_csrf_error(error):
        return jsonify({'error': error.description}), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'error': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        app.logger.exception('Unhandled error on %s %s', request.method, request.path)
        db.session.rollback()
        return jsonify({'error': 'Internal server error'}), 500


def register_request_logging(app):
    """Log method, path, status and timing of every API call"""

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def log_request(response):
        if request.path.startswith('/api') and 'request_started' in g:
            elapsed_ms = (time.perf_counter() - g.request_started) * 1000
            app.logger.info('%s %s %s in %dms', request.method, request.path,
                            response.status_code, elapsed_ms)
        return response


def seed_defaults(app):
    """Seed the shift schedule and a first operator on an empty database"""
    from shopfloor.models.operator import Operator
    from shopfloor.models.schedule import Shift, ShiftBreak

    if Shift.query.count() == 0:
        for order, (name, start, end) in enumerate(app.config['DEFAULT_SHIFTS']):
            db.session.add(Shift(name=name, start_time=start, end_time=end, display_order=order))
        for label, start, end in app.config['DEFAULT_BREAKS']:
            db.session.add(ShiftBreak(label=label, start_time=start, end_time=end))
        app.logger.info('Seeded default shift schedule')

    if Operator.query.count() == 0:
        defaults = app.config['DEFAULT_OPERATOR']
        operator = Operator(
            name=defaults['name'],
            initials=defaults['initials'],
            shift=defaults['shift']
        )
        operator.set_password(defaults['password'])  # Change in production!
        db.session.add(operator)
        app.logger.info('Created default operator %s', defaults['initials'])

    db.session.commit()
