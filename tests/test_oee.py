from datetime import datetime
from types import SimpleNamespace
import pytest
from shopfloor.utils.oee import aggregate_downtime, compute_oee, compute_cell_oee, machine_oee, as_percent


def downtime(machine_id, duration, start='2024-03-04T08:00:00', date=None, shift=None):
    return SimpleNamespace(
        machine_id=machine_id,
        duration=duration,
        start_time=datetime.fromisoformat(start),
        date=date,
        shift=shift,
    )


def test_worked_example():
    metrics = compute_oee(420, 60, 350, 50, 30)
    assert metrics['availability'] == pytest.approx(360 / 420)
    assert metrics['performance'] == pytest.approx(400 * 30 / (360 * 60))
    assert metrics['quality'] == pytest.approx(350 / 400)
    assert metrics['oee'] == pytest.approx(0.4167, abs=1e-4)
    assert as_percent(metrics['oee']) == 41.7


def test_oee_is_product_of_factors():
    metrics = compute_oee(480, 45, 900, 12, 25)
    assert metrics['oee'] == pytest.approx(
        metrics['availability'] * metrics['performance'] * metrics['quality'])


def test_availability_bounds():
    assert compute_oee(420, 0, 10, 0, 30)['availability'] == 1
    assert compute_oee(420, 500, 10, 0, 30)['availability'] == 0
    assert compute_oee(0, 0, 10, 0, 30)['availability'] == 0


def test_downtime_exceeding_plan_gives_zero_performance():
    metrics = compute_oee(420, 600, 10, 0, 30)
    assert metrics['performance'] == 0
    assert metrics['oee'] == 0


def test_no_parts_gives_zero_quality_and_performance():
    metrics = compute_oee(420, 0, 0, 0, 30)
    assert metrics['quality'] == 0
    assert metrics['performance'] == 0


def test_missing_inputs_are_treated_as_zero():
    metrics = compute_oee(None, None, None, None, None)
    assert metrics == {'availability': 0, 'performance': 0, 'quality': 0, 'oee': 0}


def test_performance_converts_runtime_to_seconds():
    # 60 minutes of runtime at 60 s per part is exactly 60 parts
    assert compute_oee(60, 0, 60, 0, 60)['performance'] == pytest.approx(1.0)


def test_performance_is_not_clamped():
    assert compute_oee(60, 0, 120, 0, 60)['performance'] == pytest.approx(2.0)


def test_quality_is_good_over_total():
    assert compute_oee(420, 0, 80, 20, 30)['quality'] == pytest.approx(0.8)


def test_quality_falls_as_scrap_rises():
    qualities = [compute_oee(420, 0, 100, scrap, 30)['quality'] for scrap in (0, 5, 20, 80)]
    assert qualities == sorted(qualities, reverse=True)


def test_compute_oee_is_idempotent():
    assert compute_oee(420, 60, 350, 50, 30) == compute_oee(420, 60, 350, 50, 30)


def test_aggregate_all_time():
    logs = [downtime(1, 10), downtime(1, 20), downtime(2, 99)]
    assert aggregate_downtime(logs, 1) == 30


def test_open_incidents_contribute_nothing():
    logs = [downtime(1, None), downtime(1, 15)]
    assert aggregate_downtime(logs, 1) == 15


def test_aggregate_by_shift_uses_log_bucket():
    logs = [
        downtime(1, 10, date='2024-03-04', shift='Day'),
        downtime(1, 20, date='2024-03-04', shift='Evening'),
        downtime(1, 40, start='2024-03-05T02:00:00', date='2024-03-04', shift='Night'),
    ]
    assert aggregate_downtime(logs, 1, '2024-03-04', 'Day') == 10
    assert aggregate_downtime(logs, 1, '2024-03-04', 'Night') == 40
    assert aggregate_downtime(logs, 1, '2024-03-04') == 70


def test_aggregate_falls_back_to_start_time_prefix():
    logs = [
        downtime(1, 12, start='2024-03-04T09:30:00'),
        downtime(1, 8, start='2024-03-05T09:30:00'),
    ]
    assert aggregate_downtime(logs, 1, '2024-03-04') == 12
    assert aggregate_downtime(logs, 1, '2024-03-04', 'Day') == 12


def test_aggregate_excludes_other_machines_and_shifts():
    logs = [
        downtime('m1', 20, date='2024-01-01', shift='Day'),
        downtime('m1', 15, date='2024-01-01', shift='Night'),
        downtime('m2', 5, date='2024-01-01', shift='Day'),
    ]
    assert aggregate_downtime(logs, 'm1', '2024-01-01', 'Day') == 20


def test_log_between_shifts_belongs_to_no_shift():
    # Dated on the plant-local day, started in a gap between shifts
    logs = [downtime(1, 20, start='2024-03-04T21:30:00', date='2024-03-04')]
    assert aggregate_downtime(logs, 1, '2024-03-04', 'Day') == 0
    assert aggregate_downtime(logs, 1, '2024-03-04', 'Evening') == 0
    assert aggregate_downtime(logs, 1, '2024-03-04') == 20


def test_machine_oee_reports_downtime():
    machine = SimpleNamespace(id=1, good_parts_ran=350, scrap_parts=50, ideal_cycle_time=30)
    metrics = machine_oee(machine, [downtime(1, 60), downtime(2, 30)], 420)
    assert metrics['downtime'] == 60
    assert metrics['oee'] == pytest.approx(0.4167, abs=1e-4)


def test_cell_oee_uses_bottleneck_cycle_time():
    machines = [
        SimpleNamespace(id=1, good_parts_ran=100, scrap_parts=0, ideal_cycle_time=20),
        SimpleNamespace(id=2, good_parts_ran=100, scrap_parts=0, ideal_cycle_time=40),
    ]
    metrics = compute_cell_oee(machines, [downtime(1, 60)], 420)
    total_runtime = 360 + 420
    assert metrics['availability'] == pytest.approx(total_runtime / 840)
    assert metrics['performance'] == pytest.approx(200 * 40 / (total_runtime * 60))
    assert metrics['quality'] == 1


def test_cell_oee_skips_machines_without_cycle_time():
    machines = [
        SimpleNamespace(id=1, good_parts_ran=100, scrap_parts=0, ideal_cycle_time=30),
        SimpleNamespace(id=2, good_parts_ran=500, scrap_parts=500, ideal_cycle_time=None),
    ]
    metrics = compute_cell_oee(machines, [], 420)
    assert metrics == compute_oee(420, 0, 100, 0, 30)


def test_empty_cell_is_zero():
    assert compute_cell_oee([], [], 420)['oee'] == 0
