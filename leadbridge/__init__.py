"""
Flask application factory.

Creates and configures the Flask app, registers all blueprints.
"""
from flask import Flask, request


def _cors_origin(allowed):
    """Access-Control-Allow-Origin value for the current request."""
    if allowed == '*':
        return '*'
    origins = [o.strip() for o in allowed.split(',') if o.strip()]
    origin = request.headers.get('Origin', '')
    if origin in origins:
        return origin
    return origins[0] if origins else '*'


def create_app():
    """Create and configure the Flask application."""
    from leadbridge.logging_config import configure_logging
    from leadbridge.config import ALLOWED_ORIGIN

    app = Flask(__name__)

    configure_logging(app)

    # ── CORS for the browser-side relay ─────────────────────────────────
    @app.after_request
    def add_cors_headers(response):
        response.headers['Access-Control-Allow-Origin'] = _cors_origin(ALLOWED_ORIGIN)
        response.headers['Access-Control-Allow-Methods'] = 'GET, POST, OPTIONS'
        response.headers['Access-Control-Allow-Headers'] = 'Content-Type'
        if ALLOWED_ORIGIN != '*':
            response.headers['Vary'] = 'Origin'
        return response

    # Register blueprints
    from leadbridge.routes.leads import bp as leads_bp
    from leadbridge.routes.twilio import bp as twilio_bp
    from leadbridge.routes.health import bp as health_bp

    app.register_blueprint(leads_bp)
    app.register_blueprint(twilio_bp)
    app.register_blueprint(health_bp)

    # Circuit breakers for the voice providers
    from leadbridge.extensions import redis_client
    from leadbridge.services.circuit_breaker import init_breakers
    init_breakers(redis_client)

    # Import models so Base.metadata knows about them (required for SQLAlchemy).
    # Schema is managed by Alembic; there is no init_db() call.
    import importlib
    importlib.import_module('leadbridge.models.lead')
    importlib.import_module('leadbridge.models.call_event')

    return app
