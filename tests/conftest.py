import pytest
from shopfloor import create_app, db
from shopfloor.models.machine import Machine


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_client(client):
    """Test client signed in as the seeded supervisor"""
    response = client.post('/api/auth/login', json={'initials': 'adm', 'password': 'admin123'})
    assert response.status_code == 200
    return client


@pytest.fixture
def machine(app):
    machine = Machine(
        name='Press 1',
        machine_tag='P-001',
        status='running',
        ideal_cycle_time=30,
        good_parts_ran=350,
        scrap_parts=50,
    )
    db.session.add(machine)
    db.session.commit()
    return machine
