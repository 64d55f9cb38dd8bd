from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from shopfloor import db
from shopfloor.models.operator import Operator
from shopfloor.models.machine import Machine
from shopfloor.models.events import EventTask, EventMember

operators_bp = Blueprint('operators', __name__)


def apply_operator_fields(operator, data, partial=False):
    """Validate and copy operator fields; returns a list of errors"""
    errors = []
    updates = {}

    for field in ('name', 'initials', 'shift'):
        if field in data or not partial:
            value = str(data.get(field) or '').strip()
            if not value:
                errors.append({'field': field, 'message': f'{field} is required'})
            updates[field] = value

    if updates.get('initials'):
        updates['initials'] = updates['initials'].upper()
        clash = Operator.query.filter_by(initials=updates['initials']).first()
        if clash and clash.id != operator.id:
            errors.append({'field': 'initials', 'message': 'Initials already in use'})

    if not errors:
        for field, value in updates.items():
            setattr(operator, field, value)
        if 'password' in data:
            operator.set_password(data.get('password'))
    return errors


@operators_bp.route('')
@login_required
def operator_list():
    """List all operators"""
    operators = Operator.query.order_by(Operator.name).all()
    return jsonify([o.to_dict() for o in operators])


@operators_bp.route('', methods=['POST'])
@login_required
def operator_create():
    """Create operator"""
    data = request.get_json(silent=True) or {}
    operator = Operator()

    errors = apply_operator_fields(operator, data)
    if errors:
        return jsonify({'error': 'Invalid operator data', 'details': errors}), 400

    db.session.add(operator)
    db.session.commit()

    current_app.logger.info('Operator %s created by %s', operator.initials, current_user.initials)
    return jsonify(operator.to_dict()), 201


@operators_bp.route('/<int:operator_id>')
@login_required
def operator_detail(operator_id):
    """Get single operator"""
    operator = db.get_or_404(Operator, operator_id, description='Operator not found')
    return jsonify(operator.to_dict())


@operators_bp.route('/<int:operator_id>', methods=['PATCH'])
@login_required
def operator_edit(operator_id):
    """Update operator"""
    operator = db.get_or_404(Operator, operator_id, description='Operator not found')
    data = request.get_json(silent=True) or {}

    errors = apply_operator_fields(operator, data, partial=True)
    if errors:
        return jsonify({'error': 'Invalid operator data', 'details': errors}), 400

    db.session.commit()
    return jsonify(operator.to_dict())


@operators_bp.route('/<int:operator_id>', methods=['DELETE'])
@login_required
def operator_delete(operator_id):
    """Delete operator, unassigning their machines and tasks"""
    operator = db.get_or_404(Operator, operator_id, description='Operator not found')

    Machine.query.filter_by(operator_id=operator.id).update({'operator_id': None})
    EventTask.query.filter_by(assignee_id=operator.id).update({'assignee_id': None})
    EventMember.query.filter_by(operator_id=operator.id).delete()
    db.session.delete(operator)
    db.session.commit()

    current_app.logger.info('Operator %s deleted by %s', operator_id, current_user.initials)
    return jsonify({'success': True})
