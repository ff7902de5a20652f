import logging
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, jsonify, request

from storefront.core.config import Config, config as default_config
from storefront.core.dependencies import build_container
from storefront.core.exceptions import BaseAPIException, MethodNotAllowedError
from storefront.routes import alerts_bp, notifications_bp, reservations_bp
from storefront.scheduler import start_sweeper_thread
from storefront.services.reservation_service import ReservationStore

logger = logging.getLogger(__name__)


def configure_logging(app_config: Config) -> None:
    logging.basicConfig(
        level=getattr(logging, app_config.app.log_level.upper(), logging.INFO),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )


def create_app(app_config: Optional[Config] = None) -> Flask:
    """
    Application factory.

    Every app gets its own dependency container, so each instance (and each
    test) owns its own reservation, notification and alert ledgers.
    """
    app_config = app_config or default_config
    app_config.validate()
    configure_logging(app_config)

    app = Flask(__name__)
    app.config["DEBUG"] = app_config.app.debug
    app.extensions["storefront"] = build_container(app_config)

    # ------------------------------------------------------------------ #
    # Blueprints, all under /api/stock/                                   #
    # ------------------------------------------------------------------ #
    app.register_blueprint(reservations_bp, url_prefix="/api/stock/reservations")
    app.register_blueprint(notifications_bp, url_prefix="/api/stock/notifications")
    app.register_blueprint(alerts_bp, url_prefix="/api/stock/low-stock-alerts")

    # ------------------------------------------------------------------ #
    # Error handlers: consistent JSON error envelope                      #
    # ------------------------------------------------------------------ #
    @app.errorhandler(BaseAPIException)
    def api_error(e: BaseAPIException):
        if e.status_code >= 500:
            logger.error(f"{e.error_code}: {e.internal_message}")
        else:
            logger.warning(f"{request.method} {request.path} rejected ({e.error_code}): {e.message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(400)
    def bad_request(e):
        return jsonify(BaseAPIException(str(e.description), 400, "BAD_REQUEST").to_dict()), 400

    @app.errorhandler(404)
    def not_found(e):
        return jsonify(BaseAPIException(str(e.description), 404, "NOT_FOUND").to_dict()), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        error = MethodNotAllowedError(request.method, sorted(e.valid_methods or []))
        return jsonify(error.to_dict()), 405

    @app.errorhandler(500)
    def internal_error(e):
        logger.exception("Unhandled error")
        message = "An internal server error occurred."
        if app_config.is_development:
            message = f"{message} {getattr(e, 'original_exception', e)}"
        return jsonify(BaseAPIException(message, 500, "INTERNAL_ERROR").to_dict()), 500

    # ------------------------------------------------------------------ #
    # Health check                                                         #
    # ------------------------------------------------------------------ #
    @app.get("/health")
    def health():
        """Liveness check."""
        return jsonify({
            "status": "ok",
            "environment": app_config.environment,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }), 200

    return app


if __name__ == "__main__":
    application = create_app()
    start_sweeper_thread(
        application.extensions["storefront"].get(ReservationStore),
        default_config.stock.sweep_interval_seconds,
    )
    application.run(
        debug=default_config.app.debug,
        host=default_config.app.host,
        port=default_config.app.port,
    )
