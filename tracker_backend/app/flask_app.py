"""
Flask app factory registering the tracker API blueprints.
"""
from __future__ import annotations
#py -m tracker_backend.app.flask_app
import logging
from flask import Flask, request, jsonify
from flask_cors import CORS

from . import config


def create_app() -> Flask:
    logging.basicConfig(level=config.LOG_LEVEL)
    app = Flask(__name__, static_folder=None)
    CORS(app, resources={r"/*": {"origins": config.CORS_ORIGINS}}, supports_credentials=True)

    # Register API blueprints
    from .routes.health import bp as health_bp
    from .routes.user import bp as user_bp
    from .routes.logs import food_bp, gym_bp
    from .routes.progress import bp as progress_bp
    from .routes.tracking import bp as tracking_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(user_bp)
    app.register_blueprint(food_bp)
    app.register_blueprint(gym_bp)
    app.register_blueprint(progress_bp)
    app.register_blueprint(tracking_bp)

    # Global error handlers to ensure API returns JSON on errors
    @app.errorhandler(400)
    def handle_400(err):
        if str(request.path).startswith('/api/'):
            return jsonify({"success": False, "error": getattr(err, 'description', 'Bad request')}), 400
        return err

    @app.errorhandler(500)
    def handle_500(err):
        if str(request.path).startswith('/api/'):
            return jsonify({"success": False, "error": "Internal server error"}), 500
        return err

    @app.errorhandler(404)
    def handle_404(err):
        if str(request.path).startswith('/api/'):
            return jsonify({"success": False, "error": "Not found"}), 404
        return err

    return app


# For `python -m tracker_backend.app.flask_app`
if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=8000)
