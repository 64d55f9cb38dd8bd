from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from shopfloor import db
from shopfloor.models.machine import Machine
from shopfloor.models.production import ScrapTicket, SCRAP_REASONS
from shopfloor.models.schedule import current_shift_bucket
from shopfloor.utils.dates import is_ymd
from shopfloor.utils.validation import is_number

scrap_bp = Blueprint('scrap', __name__)


@scrap_bp.route('/reasons')
@login_required
def scrap_reasons():
    return jsonify([{'value': value, 'label': label} for value, label in SCRAP_REASONS])


@scrap_bp.route('')
@login_required
def scrap_list():
    """Scrap tickets, newest first"""
    machine_id = request.args.get('machine_id', type=int)

    query = ScrapTicket.query
    if machine_id:
        query = query.filter_by(machine_id=machine_id)
    tickets = query.order_by(ScrapTicket.created_at.desc(), ScrapTicket.id.desc()).all()
    return jsonify([t.to_dict() for t in tickets])


@scrap_bp.route('', methods=['POST'])
@login_required
def scrap_create():
    """Write off scrapped parts; the machine's counters are left alone"""
    data = request.get_json(silent=True) or {}
    errors = []

    machine_id = data.get('machine_id')
    if machine_id is None or db.session.get(Machine, machine_id) is None:
        errors.append({'field': 'machine_id', 'message': 'Machine not found'})

    quantity = data.get('quantity')
    if not is_number(quantity) or quantity <= 0 or not float(quantity).is_integer():
        errors.append({'field': 'quantity', 'message': 'quantity must be a positive integer'})

    reason = data.get('reason')
    if reason not in dict(SCRAP_REASONS):
        errors.append({'field': 'reason', 'message': 'Unknown scrap reason'})

    date = data.get('date')
    if date is None:
        _, date, _ = current_shift_bucket(current_app.config['PLANT_TIMEZONE'])
    elif not is_ymd(date):
        errors.append({'field': 'date', 'message': 'date must be YYYY-MM-DD'})

    if errors:
        return jsonify({'error': 'Invalid scrap data', 'details': errors}), 400

    ticket = ScrapTicket(
        machine_id=machine_id,
        quantity=int(quantity),
        reason=reason,
        description=data.get('description'),
        date=date,
        created_by=current_user.id,
    )
    db.session.add(ticket)
    db.session.commit()

    current_app.logger.info('Scrap ticket: %d parts on machine %s (%s)', ticket.quantity, machine_id, reason)
    return jsonify(ticket.to_dict()), 201


@scrap_bp.route('/<int:ticket_id>', methods=['DELETE'])
@login_required
def scrap_delete(ticket_id):
    ticket = db.get_or_404(ScrapTicket, ticket_id, description='Scrap ticket not found')
    db.session.delete(ticket)
    db.session.commit()
    return jsonify({'success': True})
