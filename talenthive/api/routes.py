"""
Flask application for the TalentHive REST API.

Every area of the marketplace is a blueprint under ``/api/v1``:
- auth, users (profiles, slugs, onboarding)
- projects, proposals, contracts and milestones
- payments (escrow, Stripe webhook)
- reviews, disputes, notifications, messages, hire-now, support
- admin (users, platform settings, transactions, escrow sweep)

To run the server:
    talenthive-api

Or with Flask:
    FLASK_APP=talenthive.api.routes:create_app flask run
"""

import logging

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from .. import __version__
from ..config import Settings, load_settings
from ..errors import AppError
from ..platform import Platform
from .blueprints import BLUEPRINTS

logger = logging.getLogger(__name__)

# Reachable while the platform is in maintenance mode
MAINTENANCE_EXEMPT = ("/health", "/api/v1/auth/", "/api/v1/admin/", "/api/v1/payments/webhook")


def create_app(config: Settings = None, gateway=None) -> Flask:
    """Create and configure the Flask application."""
    config = config or load_settings()

    app = Flask(__name__)
    app.config["PLATFORM"] = Platform(config, gateway=gateway)

    @app.before_request
    def init_services():
        g.platform = app.config["PLATFORM"]

    @app.before_request
    def check_maintenance():
        if request.path.startswith(MAINTENANCE_EXEMPT):
            return None
        if g.platform.settings.get_settings().maintenance_mode:
            return jsonify({
                "status": "error",
                "message": "The platform is under maintenance. Please try again later.",
            }), 503
        return None

    # === Errors ===

    @app.errorhandler(AppError)
    def handle_app_error(e: AppError):
        if e.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        status = "fail" if e.code < 500 else "error"
        return jsonify({"status": status, "message": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"status": "error", "message": "Internal server error"}), 500

    # === Health Check ===

    @app.route("/health", methods=["GET"])
    def health():
        """Health check endpoint."""
        return jsonify({"status": "healthy", "version": __version__})

    for blueprint in BLUEPRINTS:
        app.register_blueprint(blueprint)

    return app


def main():
    """Run the API server."""
    config = load_settings()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(config)
    logger.info("Starting TalentHive API on %s:%s", config.host, config.port)
    app.run(host=config.host, port=config.port, debug=config.debug)


if __name__ == "__main__":
    main()
