from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from shopfloor import db
from shopfloor.models.machine import Machine
from shopfloor.models.production import ProductionStat
from shopfloor.utils.dates import is_ymd
from shopfloor.utils.validation import finite_or_zero

production_bp = Blueprint('production', __name__)

STAT_NUMBERS = ('good_parts_ran', 'scrap_parts', 'ideal_cycle_time', 'downtime',
                'oee', 'availability', 'performance', 'quality')


@production_bp.route('')
@login_required
def stat_list():
    """Production stats, newest first, optionally filtered by machine, date and shift"""
    machine_id = request.args.get('machine_id', type=int)
    date = request.args.get('date', '')
    shift = request.args.get('shift', '')

    query = ProductionStat.query
    if machine_id:
        query = query.filter_by(machine_id=machine_id)
    if date:
        query = query.filter_by(date=date)
    if shift:
        query = query.filter_by(shift=shift)

    stats = query.order_by(ProductionStat.date.desc(), ProductionStat.id.desc()).all()
    return jsonify([s.to_dict() for s in stats])


@production_bp.route('', methods=['POST'])
@login_required
def stat_create():
    """
    Store a production stat as given by the client

    Metrics are not recomputed here. Missing or non-finite numbers are
    stored as 0.
    """
    data = request.get_json(silent=True) or {}
    machine = db.session.get(Machine, data.get('machine_id')) if data.get('machine_id') is not None else None

    errors = []
    if machine is None:
        errors.append({'field': 'machine_id', 'message': 'Machine not found'})
    if not is_ymd(data.get('date')):
        errors.append({'field': 'date', 'message': 'date must be YYYY-MM-DD'})
    if not str(data.get('shift') or '').strip():
        errors.append({'field': 'shift', 'message': 'shift is required'})
    if errors:
        return jsonify({'error': 'Invalid production stat data', 'details': errors}), 400

    stat = ProductionStat(
        machine_id=machine.id,
        date=data['date'],
        shift=str(data['shift']).strip(),
        created_by=machine.operator_id or current_user.id,
    )
    for field in STAT_NUMBERS:
        setattr(stat, field, finite_or_zero(data.get(field)))

    db.session.add(stat)
    db.session.commit()
    return jsonify(stat.to_dict()), 201


@production_bp.route('/<int:stat_id>', methods=['DELETE'])
@login_required
def stat_delete(stat_id):
    stat = db.get_or_404(ProductionStat, stat_id, description='Production stat not found')
    db.session.delete(stat)
    db.session.commit()
    return jsonify({'success': True})


@production_bp.route('/by-date', methods=['DELETE'])
@login_required
def stat_delete_by_date():
    """Remove every stat for a machine on a date, optionally one shift only"""
    machine_id = request.args.get('machine_id', type=int)
    date = request.args.get('date', '')
    shift = request.args.get('shift', '')

    if not machine_id or not is_ymd(date):
        return jsonify({'error': 'machine_id and date (YYYY-MM-DD) are required'}), 400

    query = ProductionStat.query.filter_by(machine_id=machine_id, date=date)
    if shift:
        query = query.filter_by(shift=shift)
    deleted = query.delete()
    db.session.commit()

    current_app.logger.info('Deleted %d production stats for machine %s on %s %s',
                            deleted, machine_id, date, shift or '(all shifts)')
    return jsonify({'deleted': deleted})
