import logging
import os

from flask import Flask, jsonify
from flask_cors import CORS

from cli import register_cli
from config import Config
from extensions import db, jwt, migrate
from utils.errors import SaccoError

# Blueprints
from audit.routes import audit_bp
from interest.routes import interest_bp
from loans.routes import loans_bp
from members.routes import members_bp
from notifications.routes import notifications_bp
from periods.routes import periods_bp
from savings.routes import savings_bp
from shareout.routes import shareout_bp


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # CORS with credentials so cookie tokens work
    CORS(app, supports_credentials=True)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    # Register Blueprints
    app.register_blueprint(periods_bp)
    app.register_blueprint(loans_bp)
    app.register_blueprint(interest_bp)
    app.register_blueprint(savings_bp)
    app.register_blueprint(shareout_bp)
    app.register_blueprint(members_bp)
    app.register_blueprint(audit_bp)
    app.register_blueprint(notifications_bp, url_prefix="/api/notifications")

    register_cli(app)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"}), 200

    # Error handlers
    @app.errorhandler(SaccoError)
    def sacco_error(error):
        level = logging.WARNING if error.status_code >= 409 else logging.INFO
        app.logger.log(level, "%s: %s", error.code, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Route not found"}), 404

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({"error": "Internal server error"}), 500

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 10000)), debug=True)
