"""
Tests for the Flask API.

Run with: pytest tests/test_api.py -v
"""
import pytest


@pytest.fixture
def session_id(client):
    response = client.post('/api/sessions')
    assert response.status_code == 201
    return response.get_json()['session_id']


def send(client, session_id, *events):
    response = None
    for kind, value in events:
        response = client.post(f'/api/sessions/{session_id}/input', json={'type': kind, 'value': value})
    return response


class TestApi:

    def test_info(self, client):
        data = client.get('/api').get_json()
        assert data['name'] == "QuantumCalc Scientific Calculator"
        assert data['endpoints']

    def test_new_session_starts_at_zero(self, client):
        data = client.post('/api/sessions').get_json()
        assert data['success']
        assert data['state']['display'] == "0"
        assert data['state']['expression'] == ""

    def test_input_events(self, client, session_id):
        response = send(client, session_id,
                        ("number", "5"), ("operator", "add"), ("number", "3"), ("action", "equals"))
        data = response.get_json()
        assert response.status_code == 200
        assert data['state']['display'] == "8"
        assert data['error'] is None

    def test_domain_error_is_reported_not_raised(self, client, session_id):
        response = send(client, session_id,
                        ("number", "5"), ("operator", "divide"), ("number", "0"), ("action", "equals"))
        data = response.get_json()
        assert response.status_code == 200
        assert data['error'] == "Cannot divide by zero"
        assert data['state']['expression'] == "5 ÷ "

    def test_bad_input_is_rejected(self, client, session_id):
        response = send(client, session_id, ("operator", "modulo"))
        assert response.status_code == 400
        assert not response.get_json()['success']

        response = client.post(f'/api/sessions/{session_id}/input', json={'value': "1"})
        assert response.status_code == 400

    def test_unknown_session(self, client):
        response = client.get('/api/sessions/nope')
        assert response.status_code == 404
        assert not response.get_json()['success']

    def test_keyboard(self, client, session_id):
        for key in ("6", "*", "7"):
            client.post(f'/api/sessions/{session_id}/key', json={'key': key})
        data = client.post(f'/api/sessions/{session_id}/key', json={'key': "Enter"}).get_json()
        assert data['state']['display'] == "42"

        data = client.post(f'/api/sessions/{session_id}/key', json={'key': "m", 'ctrl': True}).get_json()
        assert data['state']['memory_active']

    def test_missing_key(self, client, session_id):
        response = client.post(f'/api/sessions/{session_id}/key', json={})
        assert response.status_code == 400

    def test_history(self, client, session_id):
        send(client, session_id,
             ("number", "2"), ("operator", "multiply"), ("number", "4"), ("action", "equals"))
        send(client, session_id, ("action", "equals"))

        data = client.get(f'/api/sessions/{session_id}/history?limit=1').get_json()
        assert data['count'] == 1
        assert data['data'][0]['expression'] == "8 × 4"
        assert data['data'][0]['result'] == "32"

        data = client.post(f'/api/sessions/{session_id}/history/1').get_json()
        assert data['state']['display'] == "8"

        data = client.get(f'/api/sessions/{session_id}/history?format=text').get_json()
        assert data['count'] == 2
        assert data['data'][0].endswith(": 8 × 4 = 32")

        data = client.delete(f'/api/sessions/{session_id}/history').get_json()
        assert data['state']['history'] == []

    def test_history_limit_must_not_be_negative(self, client, session_id):
        send(client, session_id,
             ("number", "2"), ("operator", "multiply"), ("number", "4"), ("action", "equals"))
        response = client.get(f'/api/sessions/{session_id}/history?limit=-1')
        assert response.status_code == 400
        assert not response.get_json()['success']

    def test_list_sessions(self, client, session_id):
        data = client.get('/api/sessions').get_json()
        assert data['success']
        assert data['data'] == [session_id]
        assert data['count'] == 1

    def test_settings(self, client, session_id):
        response = client.put(f'/api/sessions/{session_id}/settings', json={'precision': 2})
        assert response.status_code == 200
        data = send(client, session_id,
                    ("number", "2"), ("operator", "divide"), ("number", "3"), ("action", "equals")).get_json()
        assert data['state']['display'] == "0.67"

        response = client.put(f'/api/sessions/{session_id}/settings', json={'max_history_items': 0})
        assert response.status_code == 400

    def test_delete_session(self, client, session_id):
        assert client.delete(f'/api/sessions/{session_id}').get_json()['success']
        assert client.get(f'/api/sessions/{session_id}').status_code == 404
        assert client.delete(f'/api/sessions/{session_id}').status_code == 404
        assert client.get('/api/sessions').get_json()['data'] == []
