from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from config import Config
from sqlalchemy import event
from werkzeug.exceptions import HTTPException
import logging

db = SQLAlchemy()
login_manager = LoginManager()

logger = logging.getLogger(__name__)

LEDGER_TABLES = {
    'enrollments', 'payments', 'mentor_assignments',
    'discounts', 'discount_applications', 'courses'
}


_commit_logging_installed = False


def setup_commit_logging():
    global _commit_logging_installed
    if _commit_logging_installed:
        return
    _commit_logging_installed = True
    touched_tables = set()

    def collect(session):
        for obj in list(session.new) + list(session.dirty) + list(session.deleted):
            table_name = getattr(obj, '__tablename__', None)
            if table_name in LEDGER_TABLES:
                touched_tables.add(table_name)

    @event.listens_for(db.session, 'before_flush')
    def receive_before_flush(session, flush_context, instances):
        collect(session)

    @event.listens_for(db.session, 'after_commit')
    def receive_after_commit(session):
        if touched_tables:
            logger.info('Committed changes to: %s', ', '.join(sorted(touched_tables)))
            touched_tables.clear()

    @event.listens_for(db.session, 'after_rollback')
    def receive_after_rollback(session):
        touched_tables.clear()


def register_error_handlers(app):
    from mentorhub.services.errors import LedgerError

    @app.errorhandler(LedgerError)
    def handle_ledger_error(e):
        if e.status_code >= 500:
            logger.error(f'Ledger operation failed: {e.message}')
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({'error': e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        logger.exception(f'Unexpected error: {e}')
        db.session.rollback()
        return jsonify({'error': 'Internal server error'}), 500


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    db.init_app(app)
    login_manager.init_app(app)

    from mentorhub.models import user

    @login_manager.user_loader
    def load_user(user_id):
        try:
            loaded_user = db.session.get(user.User, int(user_id))
        except (TypeError, ValueError):
            return None
        if loaded_user and loaded_user.is_active:
            return loaded_user
        return None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Unauthorized'}), 401

    from mentorhub.routes import (auth, users, courses, enrollments, payments,
                                  discounts, assignments, student, mentor)

    app.register_blueprint(auth.bp)
    app.register_blueprint(users.bp)
    app.register_blueprint(courses.bp)
    app.register_blueprint(enrollments.bp)
    app.register_blueprint(payments.bp)
    app.register_blueprint(discounts.bp)
    app.register_blueprint(assignments.bp)
    app.register_blueprint(student.bp)
    app.register_blueprint(mentor.bp)

    register_error_handlers(app)

    with app.app_context():
        db.create_all()
        from mentorhub.utils import init_db
        init_db.initialize_database()

    setup_commit_logging()

    from mentorhub.utils.scheduler import init_scheduler
    init_scheduler(app)

    return app
