from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required
from shopfloor import db
from shopfloor.models.cells import Cell, CellMachine
from shopfloor.models.downtime import DowntimeLog
from shopfloor.models.machine import Machine
from shopfloor.utils.oee import compute_cell_oee, as_percent
from shopfloor.utils.validation import is_number

cells_bp = Blueprint('cells', __name__)


def apply_cell_fields(cell, data, partial=False):
    """Validate and copy cell fields; returns a list of errors"""
    errors = []
    updates = {}

    if 'name' in data or not partial:
        name = str(data.get('name') or '').strip()
        if not name:
            errors.append({'field': 'name', 'message': 'name is required'})
        updates['name'] = name

    if 'description' in data:
        updates['description'] = data.get('description')

    if 'target_oee' in data:
        target = data.get('target_oee')
        if target is not None and (not is_number(target) or not 0 <= target <= 100):
            errors.append({'field': 'target_oee', 'message': 'target_oee must be a percentage between 0 and 100'})
        updates['target_oee'] = target

    if not errors:
        for field, value in updates.items():
            setattr(cell, field, value)
    return errors


@cells_bp.route('')
@login_required
def cell_list():
    cells = Cell.query.order_by(Cell.name).all()
    return jsonify([c.to_dict() for c in cells])


@cells_bp.route('', methods=['POST'])
@login_required
def cell_create():
    """Create cell, optionally with an initial machine list"""
    data = request.get_json(silent=True) or {}
    cell = Cell()

    errors = apply_cell_fields(cell, data)
    machine_ids = data.get('machine_ids') or []
    for machine_id in machine_ids:
        if db.session.get(Machine, machine_id) is None:
            errors.append({'field': 'machine_ids', 'message': f'Machine {machine_id} not found'})
    if errors:
        return jsonify({'error': 'Invalid cell data', 'details': errors}), 400

    db.session.add(cell)
    for machine_id in dict.fromkeys(machine_ids):
        cell.memberships.append(CellMachine(machine_id=machine_id))
    db.session.commit()

    current_app.logger.info('Cell %s created with %d machines', cell.name, len(machine_ids))
    return jsonify(cell.to_dict()), 201


@cells_bp.route('/<int:cell_id>')
@login_required
def cell_detail(cell_id):
    cell = db.get_or_404(Cell, cell_id, description='Cell not found')
    result = cell.to_dict()
    result['machines'] = [m.to_dict() for m in cell.machines]
    return jsonify(result)


@cells_bp.route('/<int:cell_id>', methods=['PATCH'])
@login_required
def cell_edit(cell_id):
    cell = db.get_or_404(Cell, cell_id, description='Cell not found')
    data = request.get_json(silent=True) or {}

    errors = apply_cell_fields(cell, data, partial=True)
    if errors:
        return jsonify({'error': 'Invalid cell data', 'details': errors}), 400

    db.session.commit()
    return jsonify(cell.to_dict())


@cells_bp.route('/<int:cell_id>', methods=['DELETE'])
@login_required
def cell_delete(cell_id):
    """Delete cell; its machines are kept"""
    cell = db.get_or_404(Cell, cell_id, description='Cell not found')
    db.session.delete(cell)
    db.session.commit()
    return jsonify({'success': True})


@cells_bp.route('/<int:cell_id>/machines', methods=['POST'])
@login_required
def cell_add_machine(cell_id):
    """Add a machine to the cell; adding it twice is a no-op"""
    cell = db.get_or_404(Cell, cell_id, description='Cell not found')
    data = request.get_json(silent=True) or {}
    machine_id = data.get('machine_id')

    if machine_id is None or db.session.get(Machine, machine_id) is None:
        return jsonify({'error': 'Machine not found'}), 404

    link = cell.memberships.filter_by(machine_id=machine_id).first()
    if link is None:
        link = CellMachine(cell_id=cell.id, machine_id=machine_id)
        db.session.add(link)
        db.session.commit()
    return jsonify(cell.to_dict()), 201


@cells_bp.route('/<int:cell_id>/machines/<int:machine_id>', methods=['DELETE'])
@login_required
def cell_remove_machine(cell_id, machine_id):
    cell = db.get_or_404(Cell, cell_id, description='Cell not found')
    link = cell.memberships.filter_by(machine_id=machine_id).first()
    if link is None:
        return jsonify({'error': 'Machine is not in this cell'}), 404

    db.session.delete(link)
    db.session.commit()
    return jsonify(cell.to_dict())


@cells_bp.route('/<int:cell_id>/stats')
@login_required
def cell_stats(cell_id):
    """
    Cell totals and OEE

    OEE uses the fixed planned shift for every machine and the slowest
    ideal cycle time in the cell as the pace.
    """
    cell = db.get_or_404(Cell, cell_id, description='Cell not found')
    machines = cell.machines
    machine_ids = [m.id for m in machines]
    logs = DowntimeLog.query.filter(DowntimeLog.machine_id.in_(machine_ids)).all() if machine_ids else []

    metrics = compute_cell_oee(machines, logs, current_app.config['PLANNED_SHIFT_MINUTES'])
    oee_percent = as_percent(metrics['oee'])

    return jsonify({
        'cell_id': cell.id,
        'machine_count': len(machines),
        'running_count': sum(1 for m in machines if m.status == 'running'),
        'total_good_parts': sum(m.good_parts_ran or 0 for m in machines),
        'total_scrap_parts': sum(m.scrap_parts or 0 for m in machines),
        'total_downtime': sum(log.duration or 0 for log in logs),
        'availability': metrics['availability'],
        'performance': metrics['performance'],
        'quality': metrics['quality'],
        'oee': metrics['oee'],
        'oee_percent': oee_percent,
        'target_oee': cell.target_oee,
        'meets_target': oee_percent >= cell.target_oee if cell.target_oee is not None else None,
    })
