from datetime import timedelta
from shopfloor.utils.dates import utcnow


def iso(moment):
    return moment.isoformat() + 'Z'


def log_downtime(client, machine_id, **overrides):
    body = {
        'machine_id': machine_id,
        'reason_code': 'MECH_JAM',
        'start_time': iso(utcnow() - timedelta(hours=2)),
    }
    body.update(overrides)
    return client.post('/api/downtime', json=body)


def test_reason_table(auth_client):
    body = auth_client.get('/api/downtime/reasons').get_json()
    codes = {r['code']: r['category'] for r in body['reasons']}
    assert len(codes) == 20
    assert codes['ELEC_SENSOR'] == 'electrical'
    assert 'quality' in body['categories']


def test_create_derives_category_and_shift_bucket(auth_client, machine):
    response = log_downtime(auth_client, machine.id, reason_code='MAT_SHORTAGE')
    assert response.status_code == 201
    log = response.get_json()
    assert log['reason_category'] == 'material'
    assert log['is_active'] is True
    assert log['duration'] is None
    assert log['date'] is not None
    assert log['reported_by'] == 'Shift Supervisor'


def test_create_with_end_time_calculates_duration(auth_client, machine):
    start = utcnow() - timedelta(hours=2)
    response = log_downtime(auth_client, machine.id, start_time=iso(start),
                            end_time=iso(start + timedelta(minutes=45)))
    assert response.get_json()['duration'] == 45


def test_validation_errors(auth_client, machine):
    future = iso(utcnow() + timedelta(hours=1))
    response = log_downtime(auth_client, machine.id, start_time=future)
    assert response.status_code == 400
    messages = [d['message'] for d in response.get_json()['details']]
    assert 'Start time cannot be in the future' in messages

    start = utcnow() - timedelta(hours=2)
    response = log_downtime(auth_client, machine.id, start_time=iso(start),
                            end_time=iso(start - timedelta(minutes=5)))
    messages = [d['message'] for d in response.get_json()['details']]
    assert messages == ['End time must be after start time']

    assert log_downtime(auth_client, machine.id, reason_code='NOPE').status_code == 400
    assert log_downtime(auth_client, machine.id, start_time='yesterday').status_code == 400
    assert log_downtime(auth_client, 999).status_code == 400
    assert log_downtime(auth_client, machine.id, reason_category='electrical').status_code == 400


def test_resolve(auth_client, machine):
    start = utcnow() - timedelta(minutes=90)
    log = log_downtime(auth_client, machine.id, start_time=iso(start)).get_json()

    response = auth_client.post(f"/api/downtime/{log['id']}/resolve", json={
        'end_time': iso(start + timedelta(minutes=30)), 'resolved_by': 'Maintenance',
    })
    assert response.status_code == 200
    resolved = response.get_json()
    assert resolved['duration'] == 30
    assert resolved['is_active'] is False
    assert resolved['resolved_by'] == 'Maintenance'

    again = auth_client.post(f"/api/downtime/{log['id']}/resolve", json={})
    assert again.status_code == 400


def test_resolve_defaults_to_now(auth_client, machine):
    log = log_downtime(auth_client, machine.id, start_time=iso(utcnow() - timedelta(minutes=20))).get_json()
    resolved = auth_client.post(f"/api/downtime/{log['id']}/resolve").get_json()
    assert resolved['duration'] in (20, 21)


def test_active_count_and_filters(auth_client, machine):
    log_downtime(auth_client, machine.id)
    start = utcnow() - timedelta(days=3)
    log_downtime(auth_client, machine.id, start_time=iso(start), end_time=iso(start + timedelta(minutes=10)))

    assert len(auth_client.get('/api/downtime/active').get_json()) == 1
    assert auth_client.get('/api/downtime/count').get_json()['count'] == 2
    recent = auth_client.get('/api/downtime', query_string={'start_date': iso(utcnow() - timedelta(days=1))})
    assert len(recent.get_json()) == 1
    assert len(auth_client.get(f'/api/downtime/machine/{machine.id}').get_json()) == 2


def test_stats(auth_client, machine):
    start = utcnow() - timedelta(days=3)
    log_downtime(auth_client, machine.id, start_time=iso(start), end_time=iso(start + timedelta(minutes=30)))
    log_downtime(auth_client, machine.id, reason_code='ELEC_POWER', start_time=iso(start),
                 end_time=iso(start + timedelta(minutes=90)))

    body = auth_client.get('/api/downtime/stats').get_json()
    assert body['summary']['total_incidents'] == 2
    assert body['summary']['total_downtime_minutes'] == 120
    assert body['summary']['total_downtime_hours'] == 2.0
    assert body['summary']['avg_duration_minutes'] == 60.0
    assert body['by_category']['electrical']['total_minutes'] == 90
    assert body['by_machine'][str(machine.id)]['machine_name'] == 'Press 1'


def test_edit_recalculates_duration(auth_client, machine):
    start = utcnow() - timedelta(hours=3)
    log = log_downtime(auth_client, machine.id, start_time=iso(start),
                       end_time=iso(start + timedelta(minutes=10))).get_json()
    response = auth_client.patch(f"/api/downtime/{log['id']}",
                                 json={'end_time': iso(start + timedelta(minutes=50))})
    assert response.get_json()['duration'] == 50


def test_delete_and_clear(auth_client, machine):
    first = log_downtime(auth_client, machine.id).get_json()
    log_downtime(auth_client, machine.id)
    assert auth_client.delete(f"/api/downtime/{first['id']}").status_code == 200
    assert auth_client.delete('/api/downtime/all').get_json() == {'deleted': 1}
    assert auth_client.get('/api/downtime/count').get_json()['count'] == 0


def submitted_downtime(client, machine_id, date, shift):
    response = client.post(f'/api/machines/{machine_id}/submit-stats', json={'date': date, 'shift': shift})
    return response.get_json()['downtime']


def test_moving_start_time_moves_shift_bucket(auth_client, machine):
    log = log_downtime(auth_client, machine.id, start_time='2024-03-04T13:00:00Z',
                       end_time='2024-03-04T13:20:00Z').get_json()
    assert (log['date'], log['shift']) == ('2024-03-04', 'Day')

    moved = auth_client.patch(f"/api/downtime/{log['id']}", json={
        'start_time': '2024-03-06T20:00:00Z', 'end_time': '2024-03-06T20:20:00Z',
    }).get_json()
    assert (moved['date'], moved['shift']) == ('2024-03-06', 'Evening')
    assert moved['duration'] == 20

    assert submitted_downtime(auth_client, machine.id, '2024-03-04', 'Day') == 0
    assert submitted_downtime(auth_client, machine.id, '2024-03-06', 'Evening') == 20


def test_edit_keeps_explicit_shift_bucket(auth_client, machine):
    log = log_downtime(auth_client, machine.id, start_time='2024-03-04T13:00:00Z').get_json()
    edited = auth_client.patch(f"/api/downtime/{log['id']}", json={
        'start_time': '2024-03-04T14:00:00Z', 'date': '2024-03-05', 'shift': 'Night',
    }).get_json()
    assert (edited['date'], edited['shift']) == ('2024-03-05', 'Night')


def test_log_between_shifts_counts_for_no_shift(auth_client, machine):
    auth_client.put('/api/schedule', json={
        'shifts': [
            {'name': 'Day', 'start_time': '08:00', 'end_time': '16:00'},
            {'name': 'Evening', 'start_time': '17:00', 'end_time': '23:00'},
        ],
        'breaks': [],
    })
    # 16:30 plant time
    log = log_downtime(auth_client, machine.id, start_time='2024-03-04T21:30:00Z',
                       end_time='2024-03-04T21:50:00Z').get_json()
    assert (log['date'], log['shift']) == ('2024-03-04', None)

    assert submitted_downtime(auth_client, machine.id, '2024-03-04', 'Day') == 0
    assert submitted_downtime(auth_client, machine.id, '2024-03-04', 'Evening') == 0


def test_reopening_clears_duration(auth_client, machine):
    start = utcnow() - timedelta(hours=2)
    log = log_downtime(auth_client, machine.id, start_time=iso(start)).get_json()
    auth_client.post(f"/api/downtime/{log['id']}/resolve", json={'end_time': iso(start + timedelta(minutes=20))})

    reopened = auth_client.patch(f"/api/downtime/{log['id']}", json={'end_time': None}).get_json()
    assert reopened['is_active'] is True
    assert reopened['duration'] is None
    assert auth_client.get('/api/downtime/stats').get_json()['summary']['total_downtime_minutes'] == 0
