"""
HADES URL Risk Analyzer - Flask Backend

Scores submitted URLs for phishing/fraud risk (0-100):
1. URL feature extraction (lexical shape + WHOIS domain age)
2. URL-level heuristic score
3. Live HTML fetch and phishing signal analysis
4. 40/60 weighted combination into the final score

Endpoints:
    POST /analyze   { "urls": [...] } -> [ result, ... ] in input order
    GET  /health    { "status": "ok" }
    GET  /metrics   Prometheus exposition

RULES:
- Per-URL lookup failures never fail the request; they degrade the score
- Only a malformed request body is a client error
"""

import atexit
import json
import logging
import time
from typing import Optional

from flask import Blueprint, Flask, Response, current_app, jsonify, request
from flask_cors import CORS

from hades.config import Settings, load_settings
from hades.errors import RequestDecodeError, StorageError
from hades.models import AnalyzeRequest
from hades.observability import setup_logging, setup_prometheus_endpoint
from hades.pipeline.analysis_pipeline import AnalysisPipeline
from hades.storage.postgres import Database

APP_VERSION = "1.0.0"

logger = logging.getLogger(__name__)

api_bp = Blueprint('api', __name__)


@api_bp.route("/analyze", methods=["POST"])
def analyze_urls():
    """
    Analyze a batch of URLs.

    Expects JSON: { "urls": ["https://example.com", ...] }

    Returns JSON: [
        {
            "url": "...",
            "score": 30,
            "url_details": {...},
            "html_details": {...},
            "final_score": 30
        },
        ...
    ]
    """
    settings: Settings = current_app.config['HADES_SETTINGS']
    pipeline: AnalysisPipeline = current_app.extensions['hades_pipeline']

    try:
        analyze_request = AnalyzeRequest.from_body(request.get_data())
    except RequestDecodeError as e:
        logger.warning(f"[API] Rejected request: {e}")
        return jsonify({"error": str(e)}), 400

    limit = settings.max_batch_size
    if limit and len(analyze_request.urls) > limit:
        return jsonify({
            "error": f"Maximum {limit} URLs per batch"
        }), 400

    start_time = time.time()

    try:
        results = pipeline.analyze_batch(analyze_request.urls)
    except Exception as e:
        logger.error(f"[API] Unexpected error: {e}", exc_info=True)
        return jsonify({"error": "An unexpected error occurred during analysis"}), 500

    try:
        body = json.dumps([result.to_dict() for result in results])
    except (TypeError, ValueError) as e:
        logger.error(f"[API] Failed to encode response: {e}", exc_info=True)
        return jsonify({"error": "Failed to encode response"}), 500

    latency_ms = round((time.time() - start_time) * 1000, 2)
    logger.info(
        f"[API] Analyzed {len(results)} URLs in {latency_ms}ms",
        extra={"batch_size": len(results), "latency_ms": latency_ms}
    )

    return Response(body, status=200, mimetype="application/json")


@api_bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    return jsonify({"status": "ok"})


def create_app(
    pipeline: Optional[AnalysisPipeline] = None,
    settings: Optional[Settings] = None,
    database: Optional[Database] = None
) -> Flask:
    """
    Application factory.

    Args:
        pipeline: Analysis pipeline (built from settings if omitted)
        settings: Service configuration (read from the environment if omitted)
        database: Connected storage handle, owned by the caller
    """
    settings = settings or load_settings()

    app = Flask(__name__)
    app.config['HADES_SETTINGS'] = settings
    app.extensions['hades_pipeline'] = pipeline or AnalysisPipeline.from_settings(settings)
    app.extensions['hades_database'] = database

    CORS(app, resources={
        r"/analyze": {"origins": list(settings.cors_origins)},
        r"/health": {"origins": "*"}
    })

    app.register_blueprint(api_bp)

    setup_prometheus_endpoint(app, version=APP_VERSION)

    return app


def connect_database(settings: Settings) -> Database:
    """
    Open the storage pool for the process.

    A missing DATABASE_URL or an unreachable database is fatal at startup.
    """
    try:
        return Database(settings.database_url).connect()
    except StorageError as e:
        logger.critical(f"[APP] FATAL: {e}")
        raise SystemExit(f"Cannot start: {e}")


def build_production_app(settings: Optional[Settings] = None) -> Flask:
    """Configure logging, connect storage and build the app."""
    settings = settings or load_settings()
    setup_logging(
        level=settings.log_level_value,
        json_format=settings.log_json,
        log_file=settings.log_file
    )

    database = connect_database(settings)
    atexit.register(database.close)

    app = create_app(settings=settings, database=database)
    logger.info("[APP] HADES analyzer initialized")
    return app


def main():
    """
    Development entry point.

    Environment Variables:
        FLASK_DEBUG: Set to 'true' to enable debug mode (default: False)
        PORT: Server port (default: 8080)

    For production, use a WSGI server: gunicorn wsgi:app
    """
    settings = load_settings()
    app = build_production_app(settings)

    print("\n" + "=" * 60)
    print("[*] HADES URL RISK ANALYZER")
    print("=" * 60)
    print(f"[+] Server: http://127.0.0.1:{settings.port}")
    print(f"[+] HTML fetch timeout: {settings.html_fetch_timeout}s")
    print(f"[+] WHOIS timeout: {settings.whois_timeout}s")
    print(f"[+] Debug Mode: {'ENABLED (DEVELOPMENT ONLY)' if settings.debug else 'DISABLED'}")
    print("=" * 60 + "\n")

    app.run(debug=settings.debug, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
