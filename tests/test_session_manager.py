"""
Tests for per-session calculators.

Run with: pytest tests/test_session_manager.py -v
"""
import threading

import pytest

from session_manager import SessionManager, SessionNotFound


def send(sessions, session_id, *events):
    state = None
    for kind, value in events:
        state = sessions.dispatch(session_id, kind, value)
    return state


class TestSessionManager:

    def test_sessions_are_independent(self, db):
        sessions = SessionManager(db)
        first = sessions.create_session().session_id
        second = sessions.create_session().session_id

        sessions.dispatch(first, "number", "7")
        assert sessions.get_state(first)['display'] == "7"
        assert sessions.get_state(second)['display'] == "0"

    def test_state_survives_a_restart(self, db):
        sessions = SessionManager(db)
        session_id = sessions.create_session().session_id
        send(sessions, session_id,
             ("number", "5"), ("operator", "add"), ("number", "3"),
             ("action", "equals"), ("memory", "ms"), ("mode", "angle"))

        restored = SessionManager(db).get_state(session_id)
        assert restored['memory'] == 8.0
        assert restored['memory_active']
        assert restored['angle_mode'] == "RAD"
        assert restored['history'][0]['expression'] == "5 + 3"
        # The typed buffer is not persisted
        assert restored['display'] == "0"

    def test_unknown_session(self, db):
        with pytest.raises(SessionNotFound):
            SessionManager(db).get_state("missing")

    def test_corrupt_snapshot_restores_defaults(self, db, caplog):
        conn = db.get_connection()
        conn.execute(
            "INSERT INTO snapshots (session_id, payload, updated_at) VALUES (?, ?, ?)",
            ("broken", "not json", "2024-05-01 10:00:00"),
        )
        conn.commit()
        conn.close()

        state = SessionManager(db).get_state("broken")
        assert state['display'] == "0"
        assert state['history'] == []
        assert "restored with defaults" in caplog.text

    def test_errors_are_reported_in_the_state(self, db):
        sessions = SessionManager(db)
        session_id = sessions.create_session().session_id
        state = send(sessions, session_id,
                     ("number", "5"), ("operator", "divide"), ("number", "0"), ("action", "equals"))
        assert state['error'] == "Cannot divide by zero"

    def test_invalid_settings_are_not_saved(self, db):
        sessions = SessionManager(db)
        session_id = sessions.create_session().session_id
        with pytest.raises(ValueError):
            sessions.configure(session_id, precision=50)
        assert db.load_snapshot(session_id).snapshot.settings.precision == 15

    def test_close_session(self, db):
        sessions = SessionManager(db)
        session_id = sessions.create_session().session_id
        sessions.close_session(session_id)
        assert not db.has_snapshot(session_id)
        with pytest.raises(SessionNotFound):
            sessions.get_state(session_id)

    def test_close_stored_session_without_restoring_it(self, db):
        session_id = SessionManager(db).create_session().session_id
        sessions = SessionManager(db)
        assert sessions.list_sessions() == [session_id]

        sessions.close_session(session_id)
        assert sessions.list_sessions() == []
        assert session_id not in sessions.sessions
        with pytest.raises(SessionNotFound):
            sessions.close_session(session_id)

    def test_formatted_history_follows_grouping_setting(self, db):
        sessions = SessionManager(db)
        session_id = sessions.create_session().session_id
        send(sessions, session_id,
             ("number", "2"), ("number", "0"), ("number", "0"), ("number", "0"),
             ("operator", "add"), ("number", "1"), ("action", "equals"))
        assert sessions.format_history(session_id)[0].endswith(": 2,000 + 1 = 2,001")

        sessions.configure(session_id, thousands_separator=False)
        assert sessions.format_history(session_id)[0].endswith(": 2,000 + 1 = 2001")

    def test_concurrent_events_are_serialized(self, db):
        sessions = SessionManager(db)
        session_id = sessions.create_session().session_id
        send(sessions, session_id, ("number", "1"), ("memory", "ms"))

        def add_to_memory():
            for _ in range(10):
                sessions.dispatch(session_id, "memory", "m-plus")

        threads = [threading.Thread(target=add_to_memory) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sessions.get_state(session_id)['memory'] == 41.0
