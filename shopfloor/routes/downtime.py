from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from shopfloor import db
from shopfloor.models.downtime import DowntimeLog, DOWNTIME_REASON_CODES, DOWNTIME_CATEGORIES, reason_category
from shopfloor.models.machine import Machine
from shopfloor.models.schedule import Shift
from shopfloor.utils.dates import utcnow, parse_timestamp, to_plant_time, plant_now, is_ymd
from shopfloor.utils.oee import log_matches
from shopfloor.utils.shift_clock import shift_bucket
from shopfloor.utils.validation import check_downtime_times, parse_count

downtime_bp = Blueprint('downtime', __name__)


def _parse_time_field(data, field, errors):
    value = data.get(field)
    if value is None:
        return None
    try:
        return parse_timestamp(value)
    except (TypeError, ValueError):
        errors.append({'field': field, 'message': f'{field} must be an ISO 8601 timestamp'})
        return None


def apply_downtime_fields(log, data, partial=False):
    """
    Validate a downtime request body and copy it onto log

    The reason category is always taken from the reason code table. Start and
    end may not be in the future and end may not precede start.

    Returns:
        list of field errors; log is untouched when it is non-empty
    """
    errors = []
    updates = {}

    if 'machine_id' in data or not partial:
        machine_id = data.get('machine_id')
        if machine_id is None or db.session.get(Machine, machine_id) is None:
            errors.append({'field': 'machine_id', 'message': 'Machine not found'})
        updates['machine_id'] = machine_id

    if 'reason_code' in data or not partial:
        code = data.get('reason_code')
        category = reason_category(code)
        if category is None:
            errors.append({'field': 'reason_code', 'message': 'Unknown reason code'})
        elif data.get('reason_category') not in (None, category):
            errors.append({'field': 'reason_category', 'message': f'{code} belongs to {category}'})
        updates['reason_code'] = code
        updates['reason_category'] = category

    start_time = log.start_time
    if 'start_time' in data or not partial:
        start_time = _parse_time_field(data, 'start_time', errors)
        if start_time is None and not any(e['field'] == 'start_time' for e in errors):
            errors.append({'field': 'start_time', 'message': 'start_time is required'})
        updates['start_time'] = start_time

    end_time = log.end_time
    if 'end_time' in data:
        end_time = _parse_time_field(data, 'end_time', errors)
        updates['end_time'] = end_time

    errors.extend(check_downtime_times(start_time, end_time, utcnow()))

    if data.get('duration') is not None:
        updates['duration'] = parse_count(data.get('duration'), 'duration', errors)

    if data.get('date') is not None:
        if not is_ymd(data.get('date')):
            errors.append({'field': 'date', 'message': 'date must be YYYY-MM-DD'})
        updates['date'] = data.get('date')
    if data.get('shift') is not None:
        updates['shift'] = data.get('shift')
    if 'start_time' in updates:
        # Moved incidents are re-bucketed unless the caller names the bucket
        updates.setdefault('date', None)
        updates.setdefault('shift', None)

    for field in ('description', 'reported_by', 'resolved_by'):
        if field in data:
            updates[field] = data.get(field)

    if not errors:
        for field, value in updates.items():
            setattr(log, field, value)
        times_changed = 'start_time' in updates or 'end_time' in updates
        if times_changed and 'duration' not in updates and log.end_time is not None:
            log.calculate_duration()
        elif 'end_time' in updates and log.end_time is None and 'duration' not in updates:
            log.duration = None
    return errors


def stamp_shift_bucket(log):
    """Fill in the shift date and name from the start time when not given"""
    if log.date and log.shift:
        return
    local_start = to_plant_time(log.start_time, current_app.config['PLANT_TIMEZONE'])
    date, shift_name = shift_bucket(local_start, Shift.ordered())
    log.date = log.date or date
    log.shift = log.shift or shift_name


def _bump(groups, key, log, **extra):
    entry = groups.setdefault(key, {'count': 0, 'total_minutes': 0, **extra})
    entry['count'] += 1
    entry['total_minutes'] += log.duration or 0


@downtime_bp.route('/reasons')
@login_required
def reason_codes():
    """Reason code table grouped for pickers"""
    return jsonify({
        'categories': list(DOWNTIME_CATEGORIES),
        'reasons': [
            {'code': code, 'category': reason['category'], 'label': reason['label']}
            for code, reason in DOWNTIME_REASON_CODES.items()
        ]
    })


@downtime_bp.route('')
@login_required
def downtime_list():
    """Downtime logs, newest first, optionally filtered by machine and start date range"""
    machine_id = request.args.get('machine_id', type=int)
    start_date = request.args.get('start_date', '')
    end_date = request.args.get('end_date', '')

    query = DowntimeLog.query
    if machine_id:
        query = query.filter_by(machine_id=machine_id)
    if start_date:
        try:
            query = query.filter(DowntimeLog.start_time >= parse_timestamp(start_date))
        except ValueError:
            return jsonify({'error': 'start_date must be an ISO 8601 date or timestamp'}), 400
    if end_date:
        try:
            query = query.filter(DowntimeLog.start_time <= parse_timestamp(end_date))
        except ValueError:
            return jsonify({'error': 'end_date must be an ISO 8601 date or timestamp'}), 400

    logs = query.order_by(DowntimeLog.start_time.desc()).all()
    return jsonify([log.to_dict() for log in logs])


@downtime_bp.route('/active')
@login_required
def downtime_active():
    """Incidents that have not been resolved"""
    logs = DowntimeLog.query.filter(DowntimeLog.end_time.is_(None)).order_by(DowntimeLog.start_time).all()
    return jsonify([log.to_dict() for log in logs])


@downtime_bp.route('/count')
@login_required
def downtime_count():
    response = jsonify({'count': DowntimeLog.query.count()})
    response.headers['Cache-Control'] = 'no-store'
    return response


@downtime_bp.route('/machine/<int:machine_id>')
@login_required
def downtime_by_machine(machine_id):
    logs = DowntimeLog.query.filter_by(machine_id=machine_id).order_by(DowntimeLog.start_time.desc()).all()
    return jsonify([log.to_dict() for log in logs])


@downtime_bp.route('/stats')
@login_required
def downtime_stats():
    """Downtime totals by reason, category and machine"""
    logs = DowntimeLog.query.all()
    machine_names = {m.id: m.name for m in Machine.query.all()}
    today = plant_now(current_app.config['PLANT_TIMEZONE']).date().isoformat()

    by_reason = {}
    by_category = {}
    by_machine = {}
    for log in logs:
        _bump(by_reason, log.reason_code, log)
        _bump(by_category, log.reason_category, log)
        _bump(by_machine, str(log.machine_id), log,
              machine_name=machine_names.get(log.machine_id, 'Unknown'))

    total_minutes = sum(log.duration or 0 for log in logs)
    today_minutes = sum(log.duration or 0 for log in logs if log_matches(log, log.machine_id, today))
    completed = [log.duration for log in logs if log.duration is not None]
    avg_duration = sum(completed) / len(completed) if completed else 0

    return jsonify({
        'summary': {
            'total_incidents': len(logs),
            'total_downtime_minutes': total_minutes,
            'total_downtime_hours': round(total_minutes / 60, 1),
            'active_incidents': sum(1 for log in logs if log.is_active),
            'today_downtime_minutes': today_minutes,
            'today_downtime_hours': round(today_minutes / 60, 1),
            'avg_duration_minutes': round(avg_duration, 1),
        },
        'by_reason_code': by_reason,
        'by_category': by_category,
        'by_machine': by_machine,
    })


@downtime_bp.route('/<int:log_id>')
@login_required
def downtime_detail(log_id):
    log = db.get_or_404(DowntimeLog, log_id, description='Downtime log not found')
    return jsonify(log.to_dict())


@downtime_bp.route('', methods=['POST'])
@login_required
def downtime_create():
    """Log a downtime incident"""
    data = request.get_json(silent=True) or {}
    log = DowntimeLog()

    errors = apply_downtime_fields(log, data)
    if errors:
        return jsonify({'error': 'Invalid downtime data', 'details': errors}), 400

    if not log.reported_by:
        log.reported_by = current_user.name
    stamp_shift_bucket(log)
    db.session.add(log)
    db.session.commit()

    current_app.logger.info('Downtime logged on machine %s: %s (%s %s)',
                            log.machine_id, log.reason_code, log.date, log.shift)
    return jsonify(log.to_dict()), 201


@downtime_bp.route('/<int:log_id>', methods=['PATCH'])
@login_required
def downtime_edit(log_id):
    """Update downtime log; setting end_time recalculates the duration"""
    log = db.get_or_404(DowntimeLog, log_id, description='Downtime log not found')
    data = request.get_json(silent=True) or {}

    errors = apply_downtime_fields(log, data, partial=True)
    if errors:
        return jsonify({'error': 'Invalid downtime data', 'details': errors}), 400

    stamp_shift_bucket(log)
    db.session.commit()
    return jsonify(log.to_dict())


@downtime_bp.route('/<int:log_id>/resolve', methods=['POST'])
@login_required
def downtime_resolve(log_id):
    """Close an open incident; end_time defaults to now"""
    log = db.get_or_404(DowntimeLog, log_id, description='Downtime log not found')
    if not log.is_active:
        return jsonify({'error': 'Downtime log already resolved'}), 400

    data = request.get_json(silent=True) or {}
    errors = []
    end_time = _parse_time_field(data, 'end_time', errors) if data.get('end_time') else utcnow()
    if not errors:
        errors = check_downtime_times(log.start_time, end_time, utcnow())
    if errors:
        return jsonify({'error': 'Invalid downtime data', 'details': errors}), 400

    log.end_time = end_time
    log.resolved_by = data.get('resolved_by') or current_user.name
    log.calculate_duration()
    db.session.commit()

    current_app.logger.info('Downtime %s resolved after %s minutes', log.id, log.duration)
    return jsonify(log.to_dict())


@downtime_bp.route('/<int:log_id>', methods=['DELETE'])
@login_required
def downtime_delete(log_id):
    log = db.get_or_404(DowntimeLog, log_id, description='Downtime log not found')
    db.session.delete(log)
    db.session.commit()
    return jsonify({'success': True})


@downtime_bp.route('/all', methods=['DELETE'])
@login_required
def downtime_clear():
    """Remove every downtime log"""
    deleted = DowntimeLog.query.delete()
    db.session.commit()

    current_app.logger.info('All %d downtime logs cleared by %s', deleted, current_user.initials)
    return jsonify({'deleted': deleted})
