# livevip_api/app.py
import atexit
import logging
from datetime import datetime, timezone

from flask import Flask, current_app, g, jsonify, request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from .config import Settings
from .errors import NotFound, StorageUnavailable, ValidationError
from .logging_setup import request_logger
from .store import RecordStore
from .sync import SnapshotSynchronizer

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Origin, X-Requested-With, Content-Type, Accept, Authorization",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
}


def _store() -> RecordStore:
    return current_app.extensions["livevip.store"]


def _synchronizer() -> SnapshotSynchronizer:
    return current_app.extensions["livevip.synchronizer"]


def _log():
    return g.get("log", logger)


def _json_body():
    # None for a missing or undecodable body
    return request.get_json(silent=True)


def create_app(settings: Settings | None = None, engine: Engine | None = None) -> Flask:
    """
    Build the Flask app. When no engine is given one is created from
    ``settings`` and disposed at process exit; a caller-provided engine
    stays owned by the caller.
    """
    settings = settings or Settings.from_env()
    if engine is None:
        engine = create_engine(settings.db_url(), pool_pre_ping=True)
        atexit.register(engine.dispose)
        logger.info(
            "DB settings loaded (host=%s, db=%s, user=%s)",
            settings.db_host,
            engine.url.database,
            settings.db_user,
        )

    store = RecordStore(engine)
    app = Flask(__name__)
    app.config["LIVEVIP_SETTINGS"] = settings
    app.extensions["livevip.store"] = store
    app.extensions["livevip.synchronizer"] = SnapshotSynchronizer(store)

    _register_hooks(app)
    _register_error_handlers(app)
    _register_routes(app)

    try:
        store.ensure_schema()
        logger.info("Streams table created/verified")
    except StorageUnavailable as e:
        # requests retry the schema check on their own
        logger.error("Could not ensure streams table at startup: %s", e)
    return app


# ---------------
# Request context
# ---------------
def _register_hooks(app: Flask) -> None:
    @app.before_request
    def start_request():
        g.log = request_logger(logger, request.method, request.path)
        g.log.info("Request received")
        if request.content_length and g.log.isEnabledFor(logging.DEBUG):
            g.log.debug("Body: %s", request.get_data(as_text=True)[:200])
        if request.method == "OPTIONS":
            return "", 200
        return None

    @app.after_request
    def add_cors_headers(response):
        response.headers.update(CORS_HEADERS)
        return response


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def validation_failed(e: ValidationError):
        _log().warning("Validation failed: %s", e)
        body = {"error": str(e)}
        if e.received is not None:
            body["received"] = e.received
        return jsonify(body), 400

    @app.errorhandler(NotFound)
    def stream_not_found(e: NotFound):
        _log().info("Stream %s not found", e.stream_id)
        return jsonify({"error": "Stream not found"}), 404

    @app.errorhandler(StorageUnavailable)
    def storage_failed(e: StorageUnavailable):
        _log().error("Storage failure: %s", e)
        return jsonify({
            "success": False,
            "error": "Internal server error",
            "message": str(e),
        }), 500


# --------------
# Flask endpoints
# --------------
def _register_routes(app: Flask) -> None:
    @app.route("/health")
    def health():
        settings = current_app.config["LIVEVIP_SETTINGS"]
        return jsonify({
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": settings.service_name,
            "cors": "enabled",
        })

    @app.route("/api/test-db")
    def test_db():
        store = _store()
        try:
            now = store.ping()
        except StorageUnavailable as e:
            g.log.error("Database check failed: %s", e)
            return jsonify({"error": "Database connection failed", "message": str(e)}), 500
        g.log.info("Database connection OK")
        return jsonify({
            "status": "connected",
            "timestamp": now.isoformat() if hasattr(now, "isoformat") else str(now),
            "database": store.engine.url.database,
        })

    @app.route("/api/streams", methods=["GET"])
    def list_streams():
        store = _store()
        try:
            store.ensure_schema()
            records = store.list_all()
        except StorageUnavailable as e:
            # the dashboard gets an empty list rather than an error
            g.log.error("Failed to list streams, answering empty: %s", e)
            return jsonify([])
        g.log.info("%d stream(s) found", len(records))
        return jsonify([record.to_dict() for record in records])

    @app.route("/api/streams", methods=["POST"])
    def replace_streams():
        result = _synchronizer().synchronize(_json_body(), log=g.log)
        return jsonify(result.to_dict())

    @app.route("/api/streams/add", methods=["POST"])
    def add_stream():
        store = _store()
        store.ensure_schema()
        record = store.insert(_json_body())
        g.log.info("Created stream %s: %s", record.id, record.title)
        return jsonify({"success": True, "created": record.to_dict()})

    @app.route("/api/streams/<int:stream_id>", methods=["PUT"])
    def update_stream(stream_id: int):
        body = _json_body()
        if body is None:
            raise ValidationError("Invalid data - expected object", received="null")
        store = _store()
        store.ensure_schema()
        record = store.update(stream_id, body)
        g.log.info("Updated stream %s: %s", record.id, record.title)
        return jsonify({"success": True, "updated": record.to_dict()})

    @app.route("/api/streams/<int:stream_id>", methods=["DELETE"])
    def delete_stream(stream_id: int):
        store = _store()
        store.ensure_schema()
        record = store.remove_by_id(stream_id)
        g.log.info("Deleted stream %s: %s", record.id, record.title)
        return jsonify({"success": True, "deleted": record.to_dict()})
