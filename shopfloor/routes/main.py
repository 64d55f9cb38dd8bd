import time
from flask import Blueprint, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError
from shopfloor.models.machine import Machine

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """Confirm the running build can reach the database"""
    try:
        start = time.perf_counter()
        machines = Machine.query.order_by(Machine.id).limit(2).all()
        latency_ms = round((time.perf_counter() - start) * 1000)
    except SQLAlchemyError:
        current_app.logger.exception('Health check database query failed')
        return jsonify({'ok': False, 'error': 'DB check failed'}), 500

    response = jsonify({
        'ok': True,
        'version': current_app.config['SHOPFLOOR_VERSION'],
        'machines_sample': [{'id': m.id, 'name': m.name} for m in machines],
        'db_latency_ms': latency_ms
    })
    response.headers['Cache-Control'] = 'no-store'
    return response
