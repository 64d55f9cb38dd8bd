from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from shopfloor import db
from shopfloor.models.downtime import DowntimeLog
from shopfloor.models.machine import Machine
from shopfloor.models.production import ProductionStat
from shopfloor.models.schedule import Shift, ShiftBreak, load_schedule
from shopfloor.utils.oee import machine_oee
from shopfloor.utils.shift_clock import find_active_shift, shift_start_instant, shift_bucket, planned_runtime_elapsed
from shopfloor.utils.dates import plant_now
from shopfloor.utils.validation import is_time_of_day

schedule_bp = Blueprint('schedule', __name__)


def _check_windows(items, kind, errors, require_name=False):
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            errors.append({'field': f'{kind}[{index}]', 'message': 'must be an object'})
            continue
        if require_name and not str(item.get('name') or '').strip():
            errors.append({'field': f'{kind}[{index}].name', 'message': 'name is required'})
        for field in ('start_time', 'end_time'):
            if not is_time_of_day(item.get(field)):
                errors.append({'field': f'{kind}[{index}].{field}', 'message': f'{field} must be HH:MM'})


@schedule_bp.route('/schedule')
@login_required
def schedule_get():
    shifts, breaks = load_schedule()
    return jsonify({
        'shifts': [s.to_dict() for s in shifts],
        'breaks': [b.to_dict() for b in breaks],
        'timezone': current_app.config['PLANT_TIMEZONE'],
    })


@schedule_bp.route('/schedule', methods=['PUT'])
@login_required
def schedule_replace():
    """Replace the whole shift schedule; shift names must be unique"""
    data = request.get_json(silent=True) or {}
    shifts = data.get('shifts')
    breaks = data.get('breaks', [])

    errors = []
    if not isinstance(shifts, list) or not shifts:
        errors.append({'field': 'shifts', 'message': 'at least one shift is required'})
        shifts = []
    if not isinstance(breaks, list):
        errors.append({'field': 'breaks', 'message': 'breaks must be a list'})
        breaks = []
    _check_windows(shifts, 'shifts', errors, require_name=True)
    _check_windows(breaks, 'breaks', errors)

    names = [str(s.get('name') or '').strip() for s in shifts if isinstance(s, dict)]
    if len(set(names)) != len(names):
        errors.append({'field': 'shifts', 'message': 'shift names must be unique'})
    if errors:
        return jsonify({'error': 'Invalid schedule', 'details': errors}), 400

    Shift.query.delete()
    ShiftBreak.query.delete()
    for order, item in enumerate(shifts):
        db.session.add(Shift(name=item['name'].strip(), start_time=item['start_time'],
                             end_time=item['end_time'], display_order=order))
    for item in breaks:
        db.session.add(ShiftBreak(label=item.get('label'), start_time=item['start_time'],
                                  end_time=item['end_time']))
    db.session.commit()

    current_app.logger.info('Schedule replaced by %s: %d shifts, %d breaks',
                            current_user.initials, len(shifts), len(breaks))
    return schedule_get()


@schedule_bp.route('/dashboard')
@login_required
def dashboard():
    """
    Live status for every machine in the current shift

    Planned runtime is the shift time elapsed so far net of breaks, and
    downtime is scoped to the current shift bucket.
    """
    shifts, breaks = load_schedule()
    now = plant_now(current_app.config['PLANT_TIMEZONE'])
    shift = find_active_shift(now, shifts)
    shift_date, shift_name = shift_bucket(now, shifts)
    planned = planned_runtime_elapsed(now, shifts, breaks)

    machines = Machine.query.order_by(Machine.name).all()
    logs = DowntimeLog.query.all()
    submitted = set()
    if shift_name:
        submitted = {
            stat.machine_id
            for stat in ProductionStat.query.filter_by(date=shift_date, shift=shift_name)
        }

    rows = []
    for machine in machines:
        row = machine.to_dict()
        row['operator_name'] = machine.operator.name if machine.operator else None
        row.update(machine_oee(machine, logs, planned, shift_date, shift_name))
        row['active_downtime'] = any(log.is_active for log in logs if log.machine_id == machine.id)
        row['stats_submitted'] = machine.id in submitted
        rows.append(row)

    return jsonify({
        'shift': shift_name,
        'shift_date': shift_date,
        'shift_start': shift_start_instant(now, shift).isoformat() if shift else None,
        'plant_time': now.isoformat(),
        'planned_runtime_elapsed': planned,
        'machines': rows,
    })
