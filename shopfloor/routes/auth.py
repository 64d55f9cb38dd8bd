from flask import Blueprint, jsonify, request, session, current_app
from flask_login import login_user, logout_user, login_required, current_user
from flask_wtf.csrf import generate_csrf
from shopfloor.models.operator import Operator

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/csrf-token')
def csrf_token():
    """Token the SPA echoes back in the X-CSRFToken header"""
    return jsonify({'csrf_token': generate_csrf()})


@auth_bp.route('/login', methods=['POST'])
def login():
    """Operator login by initials and password"""
    data = request.get_json(silent=True) or {}
    initials = str(data.get('initials', '')).strip().upper()
    password = data.get('password') or ''

    if not initials:
        return jsonify({'error': 'Initials required'}), 400

    operator = Operator.query.filter_by(initials=initials).first()

    if operator is None or not operator.check_password(password):
        current_app.logger.warning('Failed login for %s', initials)
        return jsonify({'error': 'Invalid initials or password'}), 401

    session.permanent = True
    login_user(operator)
    current_app.logger.info('Operator %s logged in', operator.initials)

    return jsonify({'success': True, 'operator': operator.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """Operator logout"""
    logout_user()
    return jsonify({'success': True})


@auth_bp.route('/me')
@login_required
def me():
    """Currently signed-in operator"""
    return jsonify(current_user.to_dict())
