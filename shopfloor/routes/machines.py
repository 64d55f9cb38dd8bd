from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from shopfloor import db
from shopfloor.models.machine import Machine, MACHINE_STATUSES
from shopfloor.models.operator import Operator
from shopfloor.models.production import ProductionStat
from shopfloor.models.schedule import current_shift_bucket
from shopfloor.utils.dates import is_ymd
from shopfloor.utils.oee import aggregate_downtime, compute_oee
from shopfloor.utils.validation import parse_count, parse_positive_number

machines_bp = Blueprint('machines', __name__)


def apply_machine_fields(machine, data, partial=False):
    """Copy validated fields from a request body onto a machine.

    Returns a list of field errors; nothing is assigned when it is non-empty.
    """
    errors = []
    updates = {}

    for field in ('name', 'machine_tag'):
        if field in data or not partial:
            value = str(data.get(field) or '').strip()
            if not value:
                errors.append({'field': field, 'message': f'{field} is required'})
            updates[field] = value

    if 'status' in data or not partial:
        status = data.get('status', 'idle')
        if status not in MACHINE_STATUSES:
            errors.append({'field': 'status', 'message': f'status must be one of {", ".join(MACHINE_STATUSES)}'})
        updates['status'] = status

    if 'operator_id' in data:
        operator_id = data.get('operator_id')
        if operator_id is not None and db.session.get(Operator, operator_id) is None:
            errors.append({'field': 'operator_id', 'message': 'Operator not found'})
        updates['operator_id'] = operator_id

    if 'ideal_cycle_time' in data:
        updates['ideal_cycle_time'] = parse_positive_number(data.get('ideal_cycle_time'), 'ideal_cycle_time', errors)

    for field in ('good_parts_ran', 'scrap_parts'):
        if field in data:
            updates[field] = parse_count(data.get(field), field, errors)

    if 'status_update' in data:
        updates['status_update'] = data.get('status_update')

    if not errors:
        for field, value in updates.items():
            setattr(machine, field, value)
    return errors


@machines_bp.route('')
@login_required
def machine_list():
    """List all machines"""
    machines = Machine.query.order_by(Machine.name).all()
    return jsonify([m.to_dict() for m in machines])


@machines_bp.route('', methods=['POST'])
@login_required
def machine_create():
    """Create new machine"""
    data = request.get_json(silent=True) or {}
    machine = Machine(good_parts_ran=0, scrap_parts=0)

    errors = apply_machine_fields(machine, data)
    if errors:
        return jsonify({'error': 'Invalid machine data', 'details': errors}), 400

    machine.created_by = current_user.id
    machine.last_updated = 'Created'
    db.session.add(machine)
    db.session.commit()

    current_app.logger.info('Machine %s created by %s', machine.name, current_user.initials)
    return jsonify(machine.to_dict()), 201


@machines_bp.route('/<int:machine_id>')
@login_required
def machine_detail(machine_id):
    """Get single machine"""
    machine = db.get_or_404(Machine, machine_id, description='Machine not found')
    return jsonify(machine.to_dict())


@machines_bp.route('/<int:machine_id>', methods=['PATCH'])
@login_required
def machine_edit(machine_id):
    """Update machine; counters are overwritten, not added to"""
    machine = db.get_or_404(Machine, machine_id, description='Machine not found')
    data = request.get_json(silent=True) or {}

    errors = apply_machine_fields(machine, data, partial=True)
    if errors:
        return jsonify({'error': 'Invalid machine data', 'details': errors}), 400

    machine.touch(current_user.id, 'Updated')
    db.session.commit()
    return jsonify(machine.to_dict())


@machines_bp.route('/<int:machine_id>/status', methods=['PATCH'])
@login_required
def machine_status(machine_id):
    """Update machine status"""
    machine = db.get_or_404(Machine, machine_id, description='Machine not found')
    data = request.get_json(silent=True) or {}
    status = data.get('status')

    if status not in MACHINE_STATUSES:
        return jsonify({'error': f'status must be one of {", ".join(MACHINE_STATUSES)}'}), 400

    machine.status = status
    machine.touch(current_user.id)
    db.session.commit()
    return jsonify(machine.to_dict())


@machines_bp.route('/<int:machine_id>/operator', methods=['PATCH'])
@login_required
def machine_operator(machine_id):
    """Assign or unassign the machine's operator"""
    machine = db.get_or_404(Machine, machine_id, description='Machine not found')
    data = request.get_json(silent=True) or {}
    operator_id = data.get('operator_id')

    if operator_id is not None and db.session.get(Operator, operator_id) is None:
        return jsonify({'error': 'Operator not found'}), 404

    machine.operator_id = operator_id
    machine.touch(current_user.id)
    db.session.commit()
    return jsonify(machine.to_dict())


@machines_bp.route('/<int:machine_id>/status-update', methods=['PATCH'])
@login_required
def machine_status_update(machine_id):
    """Update the free-text status note"""
    machine = db.get_or_404(Machine, machine_id, description='Machine not found')
    data = request.get_json(silent=True) or {}
    status_update = data.get('status_update')

    if not isinstance(status_update, str):
        return jsonify({'error': 'Missing or invalid status_update'}), 400

    machine.status_update = status_update
    machine.touch(current_user.id)
    db.session.commit()
    return jsonify(machine.to_dict())


@machines_bp.route('/<int:machine_id>', methods=['DELETE'])
@login_required
def machine_delete(machine_id):
    """Delete machine together with its logs and stats"""
    machine = db.get_or_404(Machine, machine_id, description='Machine not found')
    db.session.delete(machine)
    db.session.commit()

    current_app.logger.info('Machine %s deleted by %s', machine_id, current_user.initials)
    return jsonify({'success': True})


@machines_bp.route('/<int:machine_id>/production-stats')
@login_required
def machine_production_stats(machine_id):
    """Production stats submitted for one machine, newest first"""
    machine = db.get_or_404(Machine, machine_id, description='Machine not found')
    stats = machine.production_stats.order_by(ProductionStat.date.desc(), ProductionStat.id.desc()).all()
    return jsonify([s.to_dict() for s in stats])


@machines_bp.route('/<int:machine_id>/submit-stats', methods=['POST'])
@login_required
def machine_submit_stats(machine_id):
    """
    Freeze the machine's counters and OEE for a shift into a production stat

    Downtime is summed for the machine, date and shift; the planned runtime
    is the fixed shift length, not the live elapsed runtime.
    """
    machine = db.get_or_404(Machine, machine_id, description='Machine not found')
    data = request.get_json(silent=True) or {}

    _, current_date, current_shift = current_shift_bucket(current_app.config['PLANT_TIMEZONE'])
    date = data.get('date') or current_date
    shift = data.get('shift') or current_shift

    if not is_ymd(date):
        return jsonify({'error': 'date must be YYYY-MM-DD'}), 400
    if not shift:
        return jsonify({'error': 'shift is required outside scheduled shifts'}), 400

    downtime = aggregate_downtime(machine.downtime_logs.all(), machine.id, date, shift)
    metrics = compute_oee(
        current_app.config['PLANNED_SHIFT_MINUTES'],
        downtime,
        machine.good_parts_ran,
        machine.scrap_parts,
        machine.ideal_cycle_time,
    )

    stat = ProductionStat(
        machine_id=machine.id,
        date=date,
        shift=shift,
        good_parts_ran=machine.good_parts_ran or 0,
        scrap_parts=machine.scrap_parts or 0,
        ideal_cycle_time=machine.ideal_cycle_time or 0,
        downtime=downtime,
        created_by=machine.operator_id or current_user.id,
        **metrics
    )
    db.session.add(stat)
    db.session.commit()

    current_app.logger.info('Stats submitted for %s %s %s: OEE %.3f',
                            machine.name, date, shift, stat.oee)
    return jsonify(stat.to_dict()), 201
