import logging

from flask import Flask, render_template, flash
from sqlalchemy import event

from config import Config
from errors import InventoryError
from extensions import db, bcrypt, lockout_policy, session_manager
from utils.helpers import redirect_back, format_currency

logger = logging.getLogger(__name__)


def configure_logging(app):
    logging.basicConfig(
        level=getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def register_error_handlers(app):
    @app.errorhandler(InventoryError)
    def handle_inventory_error(error):
        # Anything a view did not recover itself
        logger.warning("%s: %s", error.kind.value, error.message)
        db.session.rollback()
        flash(error.message, 'error')
        return redirect_back('main_bp.index')

    @app.errorhandler(404)
    def handle_not_found(error):
        return render_template('404.html', title='Page Not Found'), 404

    @app.errorhandler(500)
    def handle_server_error(error):
        original = getattr(error, 'original_exception', None) or error
        logger.error("Unhandled error: %s", original, exc_info=original)
        db.session.rollback()
        return render_template('500.html', title='Server Error',
                               error=original if app.debug else None), 500


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)

    if test_config:
        app.config.update(test_config)

    configure_logging(app)

    # ---------------------------
    # Initialize extensions
    # ---------------------------
    db.init_app(app)
    bcrypt.init_app(app)
    lockout_policy.init_app(app)
    session_manager.init_app(app)

    from middleware.method_override import HTTPMethodOverrideMiddleware
    app.wsgi_app = HTTPMethodOverrideMiddleware(app.wsgi_app)

    # ---------------------------
    # SQLite tuning (WAL Mode + Busy Timeout) and foreign key enforcement
    # ---------------------------
    with app.app_context():
        @event.listens_for(db.engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            if app.config['SQLALCHEMY_DATABASE_URI'].startswith("sqlite"):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("PRAGMA synchronous=NORMAL")
                cursor.execute("PRAGMA busy_timeout=30000")  # 30s timeout
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

    # ---------------------------
    # Database setup
    # ---------------------------
    with app.app_context():
        from models import User, Supplier, Product  # noqa: F401 (registers tables)
        db.create_all()

        if app.config.get('SEED_DEFAULT_ADMIN'):
            from services.auth_service import ensure_default_admin
            ensure_default_admin(app)

    # ---------------------------
    # Register blueprints
    # ---------------------------
    from routes.main import main_bp
    from routes.auth import auth_bp
    from routes.suppliers import suppliers_bp
    from routes.products import products_bp
    from routes.session_demo import session_bp

    from middleware.session_middleware import init_session_middleware

    init_session_middleware(app)

    # suppliers_bp and products_bp carry their own login check
    for bp in (main_bp, auth_bp, session_bp, suppliers_bp, products_bp):
        app.register_blueprint(bp)

    app.add_template_filter(format_currency, 'currency')
    register_error_handlers(app)

    return app


# ---------------------------
# Main entry point
# ---------------------------
if __name__ == "__main__":
    app = create_app()
    logger.info("Starting Inventory Management System on http://localhost:5001")
    app.run(host="0.0.0.0", port=5001, debug=False, use_reloader=False)
