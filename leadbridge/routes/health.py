"""
Health routes — liveness for load balancers, circuit breaker state for operators.
"""
from datetime import datetime, timezone
from flask import Blueprint, jsonify

from leadbridge.config import APP_VERSION, VOICE_PROVIDER
from leadbridge.services.circuit_breaker import get_all_breakers

bp = Blueprint('health', __name__)


@bp.route('/health')
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'version': APP_VERSION,
        'provider': VOICE_PROVIDER,
    }), 200


@bp.route('/api/health')
def api_health():
    """Circuit breaker state per voice provider."""
    return jsonify({
        'services': {name: cb.get_health() for name, cb in get_all_breakers().items()},
    }), 200


@bp.route('/api/health/<service>/reset', methods=['POST'])
def reset_circuit(service):
    breaker = get_all_breakers().get(service)
    if breaker is None:
        return jsonify({'ok': False, 'error': f'Unknown service: {service}'}), 404
    breaker.reset()
    return jsonify({'ok': True, 'service': service, 'state': breaker.state}), 200
