#!/usr/bin/env python3
"""
Classroom AI - Grading, Plagiarism and Feedback Analysis
========================================================
Run: python3 -m classroom_ai.app
Then POST to http://localhost:8000/ai-grade-submission
"""

import logging

from flask import Flask, jsonify
from flask_cors import CORS

from classroom_ai.config import Config
from classroom_ai.routes import register_routes
from classroom_ai.routes.helpers import EXTENSION_KEY
from classroom_ai.services.ai_gateway import AIGateway
from classroom_ai.services.analysis_service import AnalysisService
from classroom_ai.services.persistence import SupabaseStore

logger = logging.getLogger(__name__)

# Headers the portal's Supabase client sends with every function call
CORS_ALLOW_HEADERS = ['authorization', 'x-client-info', 'apikey', 'content-type']

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level):
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)


def create_app(config=None, store=None, gateway=None):
    """
    Build the Flask app.

    Configuration is validated before anything else so a missing key fails
    the cold start instead of the first request. ``store`` and ``gateway``
    default to the Supabase store and the configured AI provider.
    """
    config = config or Config.from_env()
    configure_logging(config.log_level)
    config.validate()

    app = Flask(__name__)
    CORS(app, allow_headers=CORS_ALLOW_HEADERS)

    store = store or SupabaseStore.from_config(config)
    gateway = gateway or AIGateway.from_config(config)
    app.extensions[EXTENSION_KEY] = AnalysisService(store, gateway)
    app.config['CLASSROOM_AI'] = config.to_dict()

    register_routes(app)

    @app.route('/health')
    def health():
        return jsonify({"status": "ok", "provider": config.ai_provider})

    logger.info("Classroom AI ready (provider=%s, model=%s)", config.ai_provider, config.ai_model)
    return app


# ══════════════════════════════════════════════════════════════
# MAIN
# ══════════════════════════════════════════════════════════════

if __name__ == '__main__':
    settings = Config.from_env()
    application = create_app(settings)
    application.run(host=settings.host, port=settings.port, debug=False)
