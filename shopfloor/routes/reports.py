from flask import Blueprint, jsonify, request, send_file, current_app
from flask_login import login_required
from shopfloor.models.machine import Machine, MaintenanceLog
from shopfloor.models.operator import Operator
from shopfloor.models.production import ProductionStat
from shopfloor.utils.dates import plant_now, to_iso
from shopfloor.utils.oee import as_percent
from shopfloor.utils.pdf import generate_machine_history_report

reports_bp = Blueprint('reports', __name__)


def _quantile(ordered, fraction):
    """Linearly interpolated quantile of an already sorted list"""
    position = (len(ordered) - 1) * fraction
    lower = int(position)
    upper = min(lower + 1, len(ordered) - 1)
    return ordered[lower] + (position - lower) * (ordered[upper] - ordered[lower])


def box_plot_stats(values):
    """Min, quartiles, max and mean of a non-empty list of numbers"""
    ordered = sorted(values)
    return {
        'min': ordered[0],
        'q1': _quantile(ordered, 0.25),
        'median': _quantile(ordered, 0.5),
        'q3': _quantile(ordered, 0.75),
        'max': ordered[-1],
        'mean': sum(ordered) / len(ordered),
    }


def filter_machines(machines, machines_param):
    """Machines matching any comma separated id, tag or name fragment"""
    filters = [f.strip().lower() for f in (machines_param or '').split(',') if f.strip()]
    if not filters:
        return machines
    return [
        m for m in machines
        if any(f == str(m.id) or f == (m.machine_tag or '').lower() or f in (m.name or '').lower()
               for f in filters)
    ]


def build_machine_history(machines_param=None):
    """Production and maintenance history per machine, sorted by machine name"""
    operator_names = {o.id: o.name for o in Operator.query.all()}
    machines = filter_machines(Machine.query.order_by(Machine.name).all(), machines_param)

    histories = []
    for machine in machines:
        stats = machine.production_stats.order_by(ProductionStat.date.desc(), ProductionStat.id.desc()).all()
        logs = machine.maintenance_logs.order_by(MaintenanceLog.created_at.desc(), MaintenanceLog.id.desc()).all()

        production_stats = []
        for stat in stats:
            row = stat.to_dict()
            row['created_by_name'] = operator_names.get(stat.created_by, 'System')
            production_stats.append(row)

        maintenance = []
        for log in logs:
            row = log.to_dict()
            row['created_by_name'] = operator_names.get(log.created_by, 'System')
            maintenance.append(row)

        avg_oee = sum(s.oee for s in stats) / len(stats) if stats else None
        completed = sum(1 for log in logs if log.status == 'completed')

        histories.append({
            'machine_id': machine.id,
            'machine_name': machine.name,
            'machine_tag': machine.machine_tag,
            'status': machine.status,
            'current_operator': operator_names.get(machine.operator_id, 'Unassigned'),
            'created_at': to_iso(machine.created_at),
            'updated_at': to_iso(machine.updated_at),
            'summary': {
                'total_production_stats': len(stats),
                'total_good_parts': sum(s.good_parts_ran for s in stats),
                'total_scrap_parts': sum(s.scrap_parts for s in stats),
                'avg_oee': avg_oee,
                'avg_oee_percent': as_percent(avg_oee) if avg_oee is not None else None,
                'total_maintenance_records': len(logs),
                'open_maintenance': len(logs) - completed,
                'completed_maintenance': completed,
            },
            'production_stats': production_stats,
            'maintenance': maintenance,
        })
    return histories


@reports_bp.route('/machine-history')
@login_required
def machine_history():
    """Machine history report (?machines=ids, tags or name fragments)"""
    return jsonify({'machines': build_machine_history(request.args.get('machines'))})


@reports_bp.route('/machine-history.pdf')
@login_required
def machine_history_pdf():
    """Machine history report as a PDF download"""
    histories = build_machine_history(request.args.get('machines'))
    now = plant_now(current_app.config['PLANT_TIMEZONE'])
    buffer = generate_machine_history_report(histories, current_app.config['COMPANY_NAME'], now)

    current_app.logger.info('Machine history PDF generated for %d machines', len(histories))
    return send_file(
        buffer,
        mimetype='application/pdf',
        as_attachment=True,
        download_name=f"machine-history-{now.strftime('%Y%m%d')}.pdf"
    )


@reports_bp.route('/efficiency')
@login_required
def efficiency():
    """
    OEE spread per machine and operator

    Box-plot statistics come from every submitted stat, grouped by machine
    and the operator credited with the shift. Alongside are per-machine
    averages, the shifts each machine has submitted for today, operator
    activity and the maintenance log.
    """
    machines = Machine.query.order_by(Machine.name).all()
    machine_names = {m.id: m.name for m in machines}
    operator_names = {o.id: o.name for o in Operator.query.all()}
    stats = ProductionStat.query.all()
    maintenance_logs = MaintenanceLog.query.order_by(MaintenanceLog.created_at.desc()).all()
    today = plant_now(current_app.config['PLANT_TIMEZONE']).date().isoformat()

    groups = {}
    for stat in stats:
        groups.setdefault((stat.machine_id, stat.created_by), []).append(stat.oee)

    data = []
    for (machine_id, operator_id), values in groups.items():
        if operator_id is None:
            operator_name = 'Unassigned'
        else:
            operator_name = operator_names.get(operator_id, 'Unknown')
        data.append({
            'machine_id': machine_id,
            'machine_name': machine_names.get(machine_id, 'Unknown Machine'),
            'operator_id': operator_id,
            'operator_name': operator_name,
            'count': len(values),
            **box_plot_stats(values),
        })
    data.sort(key=lambda row: (row['machine_name'], row['operator_name']))

    machine_logs = []
    for machine in machines:
        machine_stats = [s for s in stats if s.machine_id == machine.id]
        avg_oee = sum(s.oee for s in machine_stats) / len(machine_stats) if machine_stats else None
        machine_logs.append({
            'machine_id': machine.id,
            'machine_name': machine.name,
            'status': machine.status,
            'operator_name': operator_names.get(machine.operator_id, 'Unassigned'),
            'stats_count': len(machine_stats),
            'total_good_parts': sum(s.good_parts_ran for s in machine_stats),
            'avg_oee': avg_oee,
            'avg_oee_percent': as_percent(avg_oee) if avg_oee is not None else None,
            'completed_shifts': [s.shift for s in machine_stats if s.date == today],
            'created_by': operator_names.get(machine.created_by, 'System'),
            'last_updated': to_iso(machine.updated_at),
            'last_updated_by': operator_names.get(machine.updated_by, 'System'),
        })

    activities = []
    for machine in machines:
        if machine.created_by:
            activities.append({
                'operator_id': machine.created_by,
                'operator_name': operator_names.get(machine.created_by, 'Unknown'),
                'type': 'Created Machine',
                'target': machine.name,
                'timestamp': to_iso(machine.created_at),
                'details': f'Machine "{machine.name}" was created',
            })
        if machine.updated_by:
            activities.append({
                'operator_id': machine.updated_by,
                'operator_name': operator_names.get(machine.updated_by, 'Unknown'),
                'type': 'Updated Machine',
                'target': machine.name,
                'timestamp': to_iso(machine.updated_at),
                'details': f'Machine "{machine.name}" was updated (Status: {machine.status})',
            })
    for log in maintenance_logs:
        if log.status == 'completed' and log.created_by:
            activities.append({
                'operator_id': log.created_by,
                'operator_name': operator_names.get(log.created_by, 'Unknown'),
                'type': 'Completed Maintenance',
                'target': machine_names.get(log.machine_id, 'Unknown'),
                'timestamp': to_iso(log.created_at),
                'details': f'{log.type} - {log.description}',
            })
    activities.sort(key=lambda a: a['timestamp'] or '', reverse=True)

    maintenance = []
    for log in maintenance_logs:
        row = log.to_dict()
        row['machine_name'] = machine_names.get(log.machine_id, 'Unknown')
        row['created_by_name'] = operator_names.get(log.created_by, 'System')
        maintenance.append(row)

    return jsonify({
        'data': data,
        'machine_logs': machine_logs,
        'job_setter_activities': activities,
        'maintenance_logs': maintenance,
    })
