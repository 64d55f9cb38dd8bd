import pytest
from shopfloor import db
from shopfloor.models.machine import Machine


@pytest.fixture
def second_machine(app):
    machine = Machine(name='Press 2', machine_tag='P-002', status='idle',
                      ideal_cycle_time=60, good_parts_ran=100, scrap_parts=0)
    db.session.add(machine)
    db.session.commit()
    return machine


def test_cell_crud(auth_client, machine):
    response = auth_client.post('/api/cells', json={'name': 'Stamping', 'machine_ids': [machine.id]})
    assert response.status_code == 201
    cell = response.get_json()
    assert cell['machine_ids'] == [machine.id]
    assert cell['target_oee'] == 85

    updated = auth_client.patch(f"/api/cells/{cell['id']}", json={'target_oee': 70})
    assert updated.get_json()['target_oee'] == 70
    assert auth_client.patch(f"/api/cells/{cell['id']}", json={'target_oee': 170}).status_code == 400

    assert auth_client.delete(f"/api/cells/{cell['id']}").status_code == 200
    assert auth_client.get(f'/api/machines/{machine.id}').status_code == 200


def test_add_and_remove_machines(auth_client, machine, second_machine):
    cell = auth_client.post('/api/cells', json={'name': 'Stamping'}).get_json()
    url = f"/api/cells/{cell['id']}/machines"

    auth_client.post(url, json={'machine_id': machine.id})
    auth_client.post(url, json={'machine_id': machine.id})
    response = auth_client.post(url, json={'machine_id': second_machine.id})
    assert response.get_json()['machine_ids'] == [machine.id, second_machine.id]

    removed = auth_client.delete(f'{url}/{machine.id}')
    assert removed.get_json()['machine_ids'] == [second_machine.id]
    assert auth_client.delete(f'{url}/{machine.id}').status_code == 404
    assert auth_client.post(url, json={'machine_id': 999}).status_code == 404


def test_cell_stats(auth_client, machine, second_machine):
    cell = auth_client.post('/api/cells', json={
        'name': 'Stamping', 'machine_ids': [machine.id, second_machine.id],
    }).get_json()

    stats = auth_client.get(f"/api/cells/{cell['id']}/stats").get_json()
    assert stats['machine_count'] == 2
    assert stats['running_count'] == 1
    assert stats['total_good_parts'] == 450
    assert stats['total_scrap_parts'] == 50
    assert stats['availability'] == 1
    # 500 parts at the 60 s bottleneck over 840 minutes
    assert stats['performance'] == pytest.approx(500 * 60 / (840 * 60))
    assert stats['quality'] == pytest.approx(450 / 500)
    assert stats['meets_target'] is False


def test_cell_without_target_has_no_verdict(auth_client, machine):
    cell = auth_client.post('/api/cells', json={'name': 'Stamping', 'machine_ids': [machine.id]}).get_json()
    cleared = auth_client.patch(f"/api/cells/{cell['id']}", json={'target_oee': None})
    assert cleared.status_code == 200
    assert cleared.get_json()['target_oee'] is None

    stats = auth_client.get(f"/api/cells/{cell['id']}/stats").get_json()
    assert stats['target_oee'] is None
    assert stats['meets_target'] is None
