"""
OEE (Overall Equipment Effectiveness) calculations

Every dashboard, report and submission path goes through compute_oee so the
minutes/seconds conversion lives in exactly one place. All metrics are
fractions; as_percent formats them for display.
"""


def _number(value):
    """Coerce a possibly missing counter to a number"""
    return value if value else 0


def _start_time_text(start_time):
    if start_time is None:
        return ''
    if isinstance(start_time, str):
        return start_time
    return start_time.isoformat()


def log_matches(log, machine_id, date=None, shift=None):
    """Check whether a downtime log falls in the given machine/date/shift scope.

    Logs carrying their own date are matched on date and shift. A dated log
    with no shift (started between scheduled shifts) belongs to no shift.
    Older logs without a date fall back to comparing the date against the
    start of the start_time timestamp.
    """
    if log.machine_id != machine_id:
        return False
    if date is None:
        return True

    log_date = getattr(log, 'date', None)
    if log_date:
        if shift is None:
            return log_date == date
        return log_date == date and getattr(log, 'shift', None) == shift

    return _start_time_text(log.start_time).startswith(date)


def aggregate_downtime(logs, machine_id, date=None, shift=None):
    """Total downtime minutes for a machine over all time, a date, or a date and shift.

    Logs without a duration (still open) contribute nothing.
    """
    return sum(
        _number(log.duration)
        for log in logs
        if log_matches(log, machine_id, date, shift)
    )


def compute_oee(planned_runtime_minutes, downtime_minutes, good_parts, scrap_parts,
                ideal_cycle_time_seconds):
    """
    Calculate availability, performance, quality and OEE

    Args:
        planned_runtime_minutes: planned production time (fixed shift or elapsed)
        downtime_minutes: aggregated downtime in the same window
        good_parts: good parts produced
        scrap_parts: scrapped parts produced
        ideal_cycle_time_seconds: seconds per part at full speed

    Returns:
        dict of fractions: availability, performance, quality, oee.
        Missing or zero denominators give 0 for that factor. Performance is
        not clamped and can exceed 1.
    """
    planned = _number(planned_runtime_minutes)
    downtime = _number(downtime_minutes)
    good = _number(good_parts)
    scrap = _number(scrap_parts)
    ideal_cycle_time = _number(ideal_cycle_time_seconds)

    actual_runtime = max(planned - downtime, 0)
    availability = actual_runtime / planned if planned > 0 else 0

    total_parts = good + scrap
    # Cycle time is in seconds, runtime in minutes
    actual_runtime_seconds = actual_runtime * 60
    if total_parts > 0 and actual_runtime_seconds > 0 and ideal_cycle_time > 0:
        performance = (total_parts * ideal_cycle_time) / actual_runtime_seconds
    else:
        performance = 0

    quality = good / total_parts if total_parts > 0 else 0

    return {
        'availability': availability,
        'performance': performance,
        'quality': quality,
        'oee': availability * performance * quality,
    }


def machine_oee(machine, logs, planned_runtime_minutes, date=None, shift=None):
    """OEE for a machine's live counters against its downtime in scope"""
    downtime = aggregate_downtime(logs, machine.id, date, shift)
    metrics = compute_oee(
        planned_runtime_minutes,
        downtime,
        machine.good_parts_ran,
        machine.scrap_parts,
        machine.ideal_cycle_time,
    )
    metrics['downtime'] = downtime
    return metrics


def compute_cell_oee(machines, logs, planned_runtime_minutes):
    """OEE for a group of machines, paced by the slowest ideal cycle time.

    Only machines with an ideal cycle time and some runtime left after their
    downtime take part.
    """
    planned = _number(planned_runtime_minutes)
    contributing = 0
    total_runtime = 0
    good = 0
    scrap = 0
    bottleneck_cycle_time = 0

    for machine in machines:
        runtime = max(planned - aggregate_downtime(logs, machine.id), 0)
        if not machine.ideal_cycle_time or runtime <= 0:
            continue
        contributing += 1
        total_runtime += runtime
        good += _number(machine.good_parts_ran)
        scrap += _number(machine.scrap_parts)
        bottleneck_cycle_time = max(bottleneck_cycle_time, machine.ideal_cycle_time)

    planned_total = planned * contributing
    return compute_oee(
        planned_total,
        planned_total - total_runtime,
        good,
        scrap,
        bottleneck_cycle_time,
    )


def as_percent(fraction, digits=1):
    """Format a metric fraction as a rounded percentage"""
    return round(_number(fraction) * 100, digits)
