"""
Session Manager for QuantumCalc
Gives every user session its own calculator and serializes access to it
"""
import logging
import threading
import uuid

from calculator import Calculator
from snapshot import LoadStatus

logger = logging.getLogger(__name__)


class SessionNotFound(KeyError):
    pass


class Session:
    def __init__(self, session_id, calculator):
        self.session_id = session_id
        self.calculator = calculator
        self.lock = threading.Lock()


class SessionManager:
    def __init__(self, db):
        self.db = db
        self.sessions = {}
        self._lock = threading.Lock()

    def create_session(self):
        """Create a session with a fresh calculator"""
        session = Session(uuid.uuid4().hex, Calculator())
        with self._lock:
            self.sessions[session.session_id] = session
        self.db.save_snapshot(session.session_id, session.calculator.snapshot())
        logger.info("Created session %s", session.session_id)
        return session

    def get_session(self, session_id):
        """Get a live session, restoring it from its snapshot if needed"""
        with self._lock:
            session = self.sessions.get(session_id)
            if session is not None:
                return session

            result = self.db.load_snapshot(session_id)
            if result.status is LoadStatus.MISSING:
                raise SessionNotFound(session_id)
            if not result.ok:
                logger.warning("Session %s restored with defaults (%s)", session_id, result.status.value)

            session = Session(session_id, Calculator(snapshot=result.snapshot))
            self.sessions[session_id] = session
            logger.info("Restored session %s", session_id)
            return session

    def run(self, session_id, operation, *args, **kwargs):
        """Run one calculator operation under the session lock and save the result"""
        session = self.get_session(session_id)
        with session.lock:
            operation(session.calculator, *args, **kwargs)
            self.db.save_snapshot(session_id, session.calculator.snapshot())
            return session.calculator.view()

    def dispatch(self, session_id, kind, value=None):
        return self.run(session_id, Calculator.dispatch, kind, value)

    def press_key(self, session_id, key, ctrl=False):
        return self.run(session_id, Calculator.handle_key, key, ctrl=ctrl)

    def load_from_history(self, session_id, index):
        return self.run(session_id, Calculator.load_from_history, index)

    def clear_history(self, session_id):
        return self.run(session_id, Calculator.clear_history)

    def configure(self, session_id, **settings):
        return self.run(session_id, Calculator.configure, **settings)

    def get_state(self, session_id):
        session = self.get_session(session_id)
        with session.lock:
            return session.calculator.view()

    def get_history(self, session_id, limit=None):
        session = self.get_session(session_id)
        with session.lock:
            return session.calculator.history.to_list(limit)

    def format_history(self, session_id, limit=None):
        """History as display lines, grouped the way the session's settings ask"""
        session = self.get_session(session_id)
        with session.lock:
            calculator = session.calculator
            return calculator.history.format_calculation_history(
                calculator.settings.thousands_separator, limit
            )

    def list_sessions(self):
        """Stored session ids, most recently used first"""
        return self.db.get_session_ids()

    def close_session(self, session_id):
        """Forget a session and its stored snapshot"""
        with self._lock:
            session = self.sessions.pop(session_id, None)
            if session is None and not self.db.has_snapshot(session_id):
                raise SessionNotFound(session_id)
            self.db.delete_snapshot(session_id)
        logger.info("Closed session %s", session_id)
