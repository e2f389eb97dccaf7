"""Flask application factory."""
import os

from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError

from offerdesk.database import init_db


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Sentry error tracking in production
    if os.getenv('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=app.config.get('ENV'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Flask-Mail for offer emails
    from offerdesk.services.email_service import init_mail
    init_mail(app)

    # Prometheus metrics instrumentation
    from offerdesk.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Behind a reverse proxy in production
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    # Initialize database
    init_db(app)

    # Schema gate: checked once here, never per request
    from offerdesk.database import verify_schema
    try:
        missing = verify_schema()
        if missing:
            app.logger.warning(f"Database schema incomplete, missing tables: {', '.join(missing)}. Run 'flask init-db'.")
    except SQLAlchemyError as e:
        app.logger.error(f"Could not verify database schema: {e}")

    # Error Handlers
    from offerdesk.exceptions import OfferDeskError

    @app.errorhandler(OfferDeskError)
    def handle_offerdesk_error(error):
        """Handle custom application exceptions."""
        app.logger.error(f"OfferDeskError [{error.status_code}]: {error.message}")
        return jsonify({'success': False, 'error': error.message}), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'success': False, 'error': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return jsonify({'success': False, 'error': 'Method Not Allowed'}), 405

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.exception(f"Unhandled Exception: {error}")
        return jsonify({'success': False, 'error': 'Internal Server Error'}), 500

    # Register blueprints
    from offerdesk.blueprints.offer_drafts import offer_drafts_bp
    from offerdesk.blueprints.offers import offers_bp
    from offerdesk.blueprints.metrics import metrics_bp

    app.register_blueprint(offer_drafts_bp)
    app.register_blueprint(offers_bp)
    app.register_blueprint(metrics_bp)

    # CLI commands
    from offerdesk.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
