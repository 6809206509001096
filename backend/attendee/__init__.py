"""Attendee - RFID attendance backend. Application Factory."""
import logging
import os
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)

def create_app(config_name: str = None) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)

    # Load configuration
    from config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)

    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]), supports_credentials=True)

    # Setup logging
    setup_logging(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Setup database
    setup_database(app)

    # Notifications and background jobs
    setup_jobs(app)

    # Add CLI commands
    register_commands(app)

    # Add health check
    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'Attendee System',
            'version': '2.0.0'
        })

    @app.route('/')
    def api_info():
        return jsonify({
            'name': 'Attendee System API',
            'version': '2.0.0',
            'description': 'RFID attendance tracking with multi-session support',
            'features': [
                'RFID-based attendance tracking',
                'JWT authentication',
                'Role-based access control',
                'Automatic session cleanup',
                'Email notifications',
            ],
            'authentication': 'JWT Bearer token required for most endpoints'
        })

    return app

def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from attendee.api.auth import auth_bp
    from attendee.api.users import users_bp
    from attendee.api.attendance import attendance_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')

def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from attendee.exceptions import AttendeeError
    from attendee.utils.helpers import handle_error, error_response
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(AttendeeError)
    def handle_attendee_error(error):
        if error.status_code >= 500:
            db.session.rollback()
            app.logger.error('Attendee failure: %s', error.message)
        return error_response(error.message, error.status_code, **error.to_payload())

    @app.errorhandler(404)
    def not_found(error):
        return handle_error('Endpoint not found', 404)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return handle_error('Internal server error', 500)

    @app.errorhandler(HTTPException)
    def handle_exception(e):
        return handle_error(e.description, e.code)

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({
            'error': True,
            'message': 'Token expired',
            'code': 'TOKEN_EXPIRED',
            'status_code': 401
        }), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return jsonify({
            'error': True,
            'message': 'Invalid token',
            'status_code': 401
        }), 401

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return jsonify({
            'error': True,
            'message': 'No token provided, authorization denied',
            'status_code': 401
        }), 401

def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO)
    logging.getLogger('attendee').setLevel(level)

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(level)
        app.logger.addHandler(file_handler)
        logging.getLogger('attendee').addHandler(file_handler)

        app.logger.setLevel(level)
        app.logger.info('Attendee System startup')

def setup_database(app: Flask) -> None:
    """Setup database connections."""
    with app.app_context():
        # Import all models so metadata is complete for create_all/migrations
        from attendee.models import User, DayAttendanceRecord, AttendanceSession  # noqa: F401

def setup_jobs(app: Flask) -> None:
    """Attach the notification sink and start the daily jobs if enabled."""
    from attendee.services.notification_service import build_notification_sink
    from attendee.services.scheduler import DailyJobScheduler

    app.extensions['attendee.notifier'] = build_notification_sink(app.config)

    scheduler = DailyJobScheduler(app)
    app.extensions['attendee.scheduler'] = scheduler

    # Opt-in; deployments run the jobs from one process (`flask run-scheduler`)
    # The reloader imports the app twice; only the serving process schedules jobs
    if app.config.get('SCHEDULER_ENABLED') and not app.testing:
        if not app.debug or os.environ.get('WERKZEUG_RUN_MAIN') == 'true':
            scheduler.start()

def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click
    from attendee.exceptions import AttendeeError

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables')
    def init_db(drop):
        """Initialize the database."""
        if drop:
            db.drop_all()
            click.echo('Dropped all tables.')

        db.create_all()
        click.echo('Created all tables.')

    @app.cli.command('create-admin')
    def create_admin():
        """Create admin user."""
        from attendee.services.user_service import UserService

        name = click.prompt('Admin name')
        email = click.prompt('Admin email')
        rfid_tag = click.prompt('RFID tag')
        password = click.prompt('Password', hide_input=True, confirmation_prompt=True)

        try:
            user = UserService.create_user({
                'name': name,
                'email': email,
                'rfidTag': rfid_tag,
                'password': password,
                'role': 'admin',
            })
        except AttendeeError as e:
            raise click.ClickException(e.message)
        click.echo(f'Admin user created: {user.email}')

    @app.cli.command('seed-db')
    def seed_db():
        """Seed database with demo users and attendance."""
        from attendee.services.seed_service import SeedService

        result = SeedService.seed_all()
        click.echo(f"Seeded {result['users']} users and {result['records']} attendance records.")

    @app.cli.command('import-legacy')
    @click.argument('path', type=click.Path(exists=True, dir_okay=False))
    def import_legacy(path):
        """Import single-entry attendance documents exported from the old system."""
        import json
        from attendee.services.legacy_import import import_legacy_records

        with open(path, encoding='utf-8') as fh:
            documents = json.load(fh)

        result = import_legacy_records(documents)
        click.echo(
            f"Imported {result['imported']} records "
            f"({result['skipped']} skipped, {result['errors']} errors)."
        )

    @app.cli.command('run-cleanup')
    def run_cleanup():
        """Discard today's incomplete sessions (no-op before the cutoff)."""
        from attendee.services.cleanup_service import SessionCleanupJob

        summary = SessionCleanupJob.from_app(app).run()
        click.echo(summary.message)

    @app.cli.command('check-low-attendance')
    @click.option('--date', 'target_date', default=None, help='YYYY-MM-DD (defaults to today)')
    def check_low_attendance(target_date):
        """Flag users under the daily hour threshold and send notifications."""
        from attendee.services.audit_service import LowAttendanceAuditor
        from attendee.utils.timeutils import parse_date

        try:
            day = parse_date(target_date) if target_date else None
        except AttendeeError as e:
            raise click.BadParameter(e.message, param_hint='--date')
        summary = LowAttendanceAuditor.from_app(app).run(day)
        click.echo(summary.message)

    @app.cli.command('run-scheduler')
    def run_scheduler():
        """Run the daily cleanup and audit jobs in this process until interrupted."""
        import time

        scheduler = app.extensions['attendee.scheduler']
        scheduler.start()
        click.echo('Scheduler running, press Ctrl+C to stop.')
        try:
            while scheduler.running:
                time.sleep(1)
        except KeyboardInterrupt:
            click.echo('Stopping scheduler.')
        finally:
            scheduler.stop()
