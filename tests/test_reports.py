import pytest
from shopfloor.routes.reports import box_plot_stats


def submit(client, machine_id, date, shift, oee):
    client.post('/api/production-stats', json={
        'machine_id': machine_id, 'date': date, 'shift': shift,
        'good_parts_ran': 100, 'scrap_parts': 5, 'oee': oee,
    })


def test_box_plot_quartiles_interpolate():
    stats = box_plot_stats([0.4, 0.1, 0.3, 0.2])
    assert stats['min'] == 0.1
    assert stats['max'] == 0.4
    assert stats['median'] == pytest.approx(0.25)
    assert stats['q1'] == pytest.approx(0.175)
    assert stats['q3'] == pytest.approx(0.325)
    assert stats['mean'] == pytest.approx(0.25)


def test_box_plot_single_value():
    assert box_plot_stats([0.5]) == {'min': 0.5, 'q1': 0.5, 'median': 0.5, 'q3': 0.5, 'max': 0.5, 'mean': 0.5}


def test_machine_history(auth_client, machine):
    submit(auth_client, machine.id, '2024-03-04', 'Day', 0.5)
    submit(auth_client, machine.id, '2024-03-05', 'Day', 0.7)
    auth_client.post('/api/maintenance', json={'machine_id': machine.id, 'type': 'corrective',
                                               'description': 'Replace seal'})

    history = auth_client.get('/api/reports/machine-history').get_json()['machines'][0]
    assert history['machine_tag'] == 'P-001'
    assert [s['date'] for s in history['production_stats']] == ['2024-03-05', '2024-03-04']
    assert history['summary']['avg_oee'] == pytest.approx(0.6)
    assert history['summary']['avg_oee_percent'] == 60.0
    assert history['summary']['open_maintenance'] == 1
    assert history['production_stats'][0]['created_by_name'] == 'Shift Supervisor'


def test_machine_history_filter(auth_client, machine):
    for value in ('p-001', str(machine.id), 'press'):
        body = auth_client.get('/api/reports/machine-history', query_string={'machines': value}).get_json()
        assert len(body['machines']) == 1
    body = auth_client.get('/api/reports/machine-history', query_string={'machines': 'lathe'}).get_json()
    assert body['machines'] == []


def test_machine_history_pdf(auth_client, machine):
    submit(auth_client, machine.id, '2024-03-04', 'Day', 0.5)
    response = auth_client.get('/api/reports/machine-history.pdf')
    assert response.status_code == 200
    assert response.mimetype == 'application/pdf'
    assert response.data.startswith(b'%PDF')


def test_efficiency_report(auth_client, machine):
    for oee in (0.2, 0.4, 0.6):
        submit(auth_client, machine.id, '2024-03-04', 'Day', oee)

    body = auth_client.get('/api/reports/efficiency').get_json()
    group = body['data'][0]
    assert group['machine_name'] == 'Press 1'
    assert group['operator_name'] == 'Shift Supervisor'
    assert group['count'] == 3
    assert group['median'] == pytest.approx(0.4)

    log = body['machine_logs'][0]
    assert log['stats_count'] == 3
    assert log['avg_oee_percent'] == 40.0
    assert log['completed_shifts'] == []
    assert body['maintenance_logs'] == []
