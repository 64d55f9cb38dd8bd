from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from shopfloor import db
from shopfloor.models.machine import Machine, MaintenanceLog, MAINTENANCE_STATUSES
from shopfloor.utils.dates import is_ymd

maintenance_bp = Blueprint('maintenance', __name__)


def apply_maintenance_fields(log, data, partial=False):
    """Validate and copy maintenance fields; returns a list of errors"""
    errors = []
    updates = {}

    if 'machine_id' in data or not partial:
        machine_id = data.get('machine_id')
        if machine_id is None or db.session.get(Machine, machine_id) is None:
            errors.append({'field': 'machine_id', 'message': 'Machine not found'})
        updates['machine_id'] = machine_id

    for field in ('type', 'description'):
        if field in data or not partial:
            value = str(data.get(field) or '').strip()
            if not value:
                errors.append({'field': field, 'message': f'{field} is required'})
            updates[field] = value

    if 'status' in data or not partial:
        status = data.get('status', 'scheduled')
        if status not in MAINTENANCE_STATUSES:
            errors.append({'field': 'status', 'message': f'status must be one of {", ".join(MAINTENANCE_STATUSES)}'})
        updates['status'] = status

    for field in ('scheduled_date', 'completed_date'):
        if field in data:
            value = data.get(field) or None
            if value is not None and not is_ymd(value):
                errors.append({'field': field, 'message': f'{field} must be YYYY-MM-DD'})
            updates[field] = value

    for field in ('technician', 'notes'):
        if field in data:
            updates[field] = data.get(field)

    if not errors:
        for field, value in updates.items():
            setattr(log, field, value)
    return errors


@maintenance_bp.route('')
@login_required
def maintenance_list():
    """All maintenance logs, newest first"""
    logs = MaintenanceLog.query.order_by(MaintenanceLog.created_at.desc(), MaintenanceLog.id.desc()).all()
    return jsonify([log.to_dict() for log in logs])


@maintenance_bp.route('/machine/<int:machine_id>')
@login_required
def maintenance_by_machine(machine_id):
    """Maintenance logs for one machine"""
    logs = MaintenanceLog.query.filter_by(machine_id=machine_id).order_by(MaintenanceLog.created_at.desc()).all()
    return jsonify([log.to_dict() for log in logs])


@maintenance_bp.route('/<int:log_id>')
@login_required
def maintenance_detail(log_id):
    log = db.get_or_404(MaintenanceLog, log_id, description='Maintenance log not found')
    return jsonify(log.to_dict())


@maintenance_bp.route('', methods=['POST'])
@login_required
def maintenance_create():
    """Create maintenance log"""
    data = request.get_json(silent=True) or {}
    log = MaintenanceLog()

    errors = apply_maintenance_fields(log, data)
    if errors:
        return jsonify({'error': 'Invalid maintenance data', 'details': errors}), 400

    log.created_by = current_user.id
    db.session.add(log)
    db.session.commit()
    return jsonify(log.to_dict()), 201


@maintenance_bp.route('/<int:log_id>', methods=['PATCH'])
@login_required
def maintenance_edit(log_id):
    """Update maintenance log"""
    log = db.get_or_404(MaintenanceLog, log_id, description='Maintenance log not found')
    data = request.get_json(silent=True) or {}

    errors = apply_maintenance_fields(log, data, partial=True)
    if errors:
        return jsonify({'error': 'Invalid maintenance data', 'details': errors}), 400

    log.updated_by = current_user.id
    db.session.commit()
    return jsonify(log.to_dict())


@maintenance_bp.route('/<int:log_id>', methods=['DELETE'])
@login_required
def maintenance_delete(log_id):
    log = db.get_or_404(MaintenanceLog, log_id, description='Maintenance log not found')
    db.session.delete(log)
    db.session.commit()
    return jsonify({'success': True})
