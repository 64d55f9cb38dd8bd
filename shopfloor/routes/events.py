from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from shopfloor import db
from shopfloor.models.events import Event, EventTask, EventMember, TASK_STATUSES
from shopfloor.models.operator import Operator
from shopfloor.utils.dates import is_ymd

events_bp = Blueprint('events', __name__)


def _check_dates(data, updates, errors):
    for field in ('start_date', 'end_date'):
        if field in data:
            value = data.get(field) or None
            if value is not None and not is_ymd(value):
                errors.append({'field': field, 'message': f'{field} must be YYYY-MM-DD'})
            updates[field] = value
    start = updates.get('start_date')
    end = updates.get('end_date')
    if start and end and is_ymd(start) and is_ymd(end) and end < start:
        errors.append({'field': 'end_date', 'message': 'end_date must not be before start_date'})


def apply_event_fields(event, data, partial=False):
    """Validate and copy event fields; returns a list of errors"""
    errors = []
    updates = {}

    if 'title' in data or not partial:
        title = str(data.get('title') or '').strip()
        if not title:
            errors.append({'field': 'title', 'message': 'title is required'})
        updates['title'] = title
    if 'description' in data:
        updates['description'] = data.get('description')
    _check_dates(data, updates, errors)

    if not errors:
        for field, value in updates.items():
            setattr(event, field, value)
    return errors


def apply_task_fields(task, data, partial=False):
    """Validate and copy task fields; returns a list of errors"""
    errors = []
    updates = {}

    if 'event_id' in data or not partial:
        event_id = data.get('event_id')
        if event_id is None or db.session.get(Event, event_id) is None:
            errors.append({'field': 'event_id', 'message': 'Event not found'})
        updates['event_id'] = event_id

    if 'title' in data or not partial:
        title = str(data.get('title') or '').strip()
        if not title:
            errors.append({'field': 'title', 'message': 'title is required'})
        updates['title'] = title

    if 'status' in data:
        if data.get('status') not in TASK_STATUSES:
            errors.append({'field': 'status', 'message': f'status must be one of {", ".join(TASK_STATUSES)}'})
        updates['status'] = data.get('status')

    if 'assignee_id' in data:
        assignee_id = data.get('assignee_id')
        if assignee_id is not None and db.session.get(Operator, assignee_id) is None:
            errors.append({'field': 'assignee_id', 'message': 'Operator not found'})
        updates['assignee_id'] = assignee_id

    if 'description' in data:
        updates['description'] = data.get('description')
    _check_dates(data, updates, errors)

    if not errors:
        for field, value in updates.items():
            setattr(task, field, value)
    return errors


# Events
@events_bp.route('/events')
@login_required
def event_list():
    events = Event.query.order_by(Event.start_date.desc(), Event.id.desc()).all()
    return jsonify([e.to_dict() for e in events])


@events_bp.route('/events', methods=['POST'])
@login_required
def event_create():
    data = request.get_json(silent=True) or {}
    event = Event()

    errors = apply_event_fields(event, data)
    if errors:
        return jsonify({'error': 'Invalid event data', 'details': errors}), 400

    event.created_by = current_user.id
    db.session.add(event)
    db.session.commit()

    current_app.logger.info('Event "%s" created by %s', event.title, current_user.initials)
    return jsonify(event.to_dict()), 201


@events_bp.route('/events/<int:event_id>')
@login_required
def event_detail(event_id):
    """Event with its tasks and members"""
    event = db.get_or_404(Event, event_id, description='Event not found')
    result = event.to_dict()
    result['tasks'] = [t.to_dict() for t in event.tasks.order_by(EventTask.id)]
    result['members'] = [m.to_dict() for m in event.members.order_by(EventMember.id)]
    return jsonify(result)


@events_bp.route('/events/<int:event_id>', methods=['PATCH'])
@login_required
def event_edit(event_id):
    event = db.get_or_404(Event, event_id, description='Event not found')
    data = request.get_json(silent=True) or {}

    errors = apply_event_fields(event, data, partial=True)
    if errors:
        return jsonify({'error': 'Invalid event data', 'details': errors}), 400

    db.session.commit()
    return jsonify(event.to_dict())


@events_bp.route('/events/<int:event_id>', methods=['DELETE'])
@login_required
def event_delete(event_id):
    """Delete event with its tasks and members"""
    event = db.get_or_404(Event, event_id, description='Event not found')
    db.session.delete(event)
    db.session.commit()
    return jsonify({'success': True})


# Tasks
@events_bp.route('/events/<int:event_id>/tasks')
@login_required
def task_list(event_id):
    event = db.get_or_404(Event, event_id, description='Event not found')
    return jsonify([t.to_dict() for t in event.tasks.order_by(EventTask.id)])


@events_bp.route('/event-tasks', methods=['POST'])
@login_required
def task_create():
    data = request.get_json(silent=True) or {}
    task = EventTask(status='pending')

    errors = apply_task_fields(task, data)
    if errors:
        return jsonify({'error': 'Invalid task data', 'details': errors}), 400

    db.session.add(task)
    db.session.commit()
    return jsonify(task.to_dict()), 201


@events_bp.route('/event-tasks/<int:task_id>', methods=['PATCH'])
@login_required
def task_edit(task_id):
    task = db.get_or_404(EventTask, task_id, description='Task not found')
    data = request.get_json(silent=True) or {}
    data.pop('event_id', None)

    errors = apply_task_fields(task, data, partial=True)
    if errors:
        return jsonify({'error': 'Invalid task data', 'details': errors}), 400

    db.session.commit()
    return jsonify(task.to_dict())


@events_bp.route('/event-tasks/<int:task_id>', methods=['DELETE'])
@login_required
def task_delete(task_id):
    task = db.get_or_404(EventTask, task_id, description='Task not found')
    db.session.delete(task)
    db.session.commit()
    return jsonify({'success': True})


# Members
@events_bp.route('/events/<int:event_id>/members')
@login_required
def member_list(event_id):
    event = db.get_or_404(Event, event_id, description='Event not found')
    return jsonify([m.to_dict() for m in event.members.order_by(EventMember.id)])


@events_bp.route('/event-members', methods=['POST'])
@login_required
def member_add():
    """Add an operator to an event team; adding twice returns the existing member"""
    data = request.get_json(silent=True) or {}
    event_id = data.get('event_id')
    operator_id = data.get('operator_id')

    if event_id is None or db.session.get(Event, event_id) is None:
        return jsonify({'error': 'Event not found'}), 404
    if operator_id is None or db.session.get(Operator, operator_id) is None:
        return jsonify({'error': 'Operator not found'}), 404

    member = EventMember.query.filter_by(event_id=event_id, operator_id=operator_id).first()
    if member is None:
        member = EventMember(event_id=event_id, operator_id=operator_id)
        db.session.add(member)
        db.session.commit()
    return jsonify(member.to_dict()), 201


@events_bp.route('/events/<int:event_id>/members/<int:operator_id>', methods=['DELETE'])
@login_required
def member_remove(event_id, operator_id):
    member = EventMember.query.filter_by(event_id=event_id, operator_id=operator_id).first()
    if member is None:
        return jsonify({'error': 'Member not found'}), 404

    db.session.delete(member)
    db.session.commit()
    return jsonify({'success': True})
