import logging
import threading
import time

import redis
from flask import Flask, jsonify, request
from flask_cors import CORS
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException

from config import Config
from models import db
from routes import login_manager, other_api_bp
from routes.friendship import friendship_api_bp
from routes.group import group_api_bp
from routes.invitation import invitation_api_bp
from routes.movie import movie_api_bp
from routes.ranking import ranking_api_bp
from routes.user import user_api_bp
from services.exceptions import ServiceError
from services.phase_timer import advance_expired_phases
from services.tmdb import TMDbClient

logger = logging.getLogger(__name__)


def background_phase_checker(app, interval):
    while True:
        time.sleep(interval)
        with app.app_context():
            try:
                advanced = advance_expired_phases()
                if advanced:
                    logger.info("Phase timers advanced groups %s", advanced)

            except OperationalError:
                # Stale connection? Roll back, dispose, and retry next tick.
                db.session.rollback()
                db.engine.dispose()
                logger.warning(
                    "Detected stale DB connection, disposed engine and will retry."
                )
            except Exception:
                db.session.rollback()
                logger.exception("Phase timer check failed")
            finally:
                db.session.remove()


def create_robust_redis_client(config):
    if not config.get("REDIS_HOST"):
        return None
    return redis.Redis(
        host=config["REDIS_HOST"],
        port=config["REDIS_PORT"],
        db=config["REDIS_DB"],
        decode_responses=config["REDIS_DECODE_RESPONSES"],
        # The following help avoid stale connections in Redis:
        socket_keepalive=True,
        retry_on_timeout=True,
        health_check_interval=30,
        socket_connect_timeout=2,
    )


def register_error_handlers(app):
    @app.errorhandler(ServiceError)
    def handle_service_error(e):
        return jsonify(
            {"error": e.message, "status": e.status_code, "path": request.path}
        ), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify(
            {"error": e.description, "status": e.code, "path": request.path}
        ), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        db.session.rollback()
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify(
            {
                "error": "An unexpected error occurred",
                "status": 500,
                "path": request.path,
            }
        ), 500


def create_app(config_class=Config):
    app = Flask(__name__)
    CORS(app)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize SQLAlchemy with the configured engine options
    db.init_app(app)
    logger.debug("Engine options: %s", app.config.get("SQLALCHEMY_ENGINE_OPTIONS"))

    login_manager.init_app(app)

    app.redis = create_robust_redis_client(app.config)
    app.tmdb = TMDbClient.from_config(app.config, app.redis)
    if not app.tmdb.configured:
        logger.warning("TMDB_API_TOKEN not set, movie lookups use the local cache only")

    # Register your Blueprints
    app.register_blueprint(other_api_bp)
    app.register_blueprint(user_api_bp)
    app.register_blueprint(friendship_api_bp)
    app.register_blueprint(group_api_bp)
    app.register_blueprint(invitation_api_bp)
    app.register_blueprint(movie_api_bp)
    app.register_blueprint(ranking_api_bp)

    register_error_handlers(app)

    # Ensure DB tables exist
    with app.app_context():
        db.create_all()

    # Start the background thread that moves groups along their phase timers
    interval = app.config.get("PHASE_CHECK_INTERVAL", 0)
    if interval and interval > 0:
        thread = threading.Thread(
            target=background_phase_checker, args=(app, interval), daemon=True
        )
        thread.start()

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=6003, debug=True)
