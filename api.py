"""
Flask REST API for QuantumCalc
Exposes calculator sessions as JSON endpoints
"""
import functools
import logging

from flask import Flask, jsonify, request
from flask_cors import CORS

import config
from database import Database
from logging_config import set_session_id
from session_manager import SessionManager, SessionNotFound

logger = logging.getLogger(__name__)

ENDPOINTS = [
    "GET    /api/sessions - Stored session ids",
    "POST   /api/sessions - Create a calculator session",
    "GET    /api/sessions/<id> - Current display, expression, memory and modes",
    "DELETE /api/sessions/<id> - Forget a session",
    "POST   /api/sessions/<id>/input - Send one input event {type, value}",
    "POST   /api/sessions/<id>/key - Send one keyboard key {key, ctrl}",
    "PUT    /api/sessions/<id>/settings - Change precision, history size or grouping",
    "GET    /api/sessions/<id>/history - Calculation history (?limit=, ?format=text)",
    "DELETE /api/sessions/<id>/history - Clear calculation history",
    "POST   /api/sessions/<id>/history/<index> - Load a history entry",
]


def json_endpoint(view):
    """Turn lookup, input and unexpected errors into JSON error responses"""
    @functools.wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except SessionNotFound as e:
            return jsonify({'success': False, 'error': f"Unknown session: {e.args[0]}"}), 404
        except ValueError as e:
            return jsonify({'success': False, 'error': str(e)}), 400
        except Exception as e:
            logger.exception("Request failed")
            return jsonify({'success': False, 'error': str(e)}), 500
    return wrapper


def _json_body():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body


def create_app(db=None):
    """Build the Flask app around a database and its session manager"""
    app = Flask(__name__)
    CORS(app)  # Enable CORS for all routes

    if db is None:
        db = Database()
    sessions = SessionManager(db)
    app.config['SESSIONS'] = sessions

    @app.before_request
    def bind_session_id():
        view_args = request.view_args or {}
        set_session_id(view_args.get('session_id'))

    @app.route('/api')
    def api_info():
        """API information"""
        return jsonify({
            'name': config.APP_NAME,
            'version': config.VERSION,
            'endpoints': ENDPOINTS,
        })

    @app.route('/api/sessions', methods=['GET'])
    @json_endpoint
    def list_sessions():
        """List stored sessions"""
        session_ids = sessions.list_sessions()
        return jsonify({
            'success': True,
            'data': session_ids,
            'count': len(session_ids)
        })

    @app.route('/api/sessions', methods=['POST'])
    @json_endpoint
    def create_session():
        """Create a calculator session"""
        session = sessions.create_session()
        return jsonify({
            'success': True,
            'session_id': session.session_id,
            'state': sessions.get_state(session.session_id),
        }), 201

    @app.route('/api/sessions/<session_id>', methods=['GET'])
    @json_endpoint
    def get_session(session_id):
        """Get the calculator state"""
        return jsonify({'success': True, 'state': sessions.get_state(session_id)})

    @app.route('/api/sessions/<session_id>', methods=['DELETE'])
    @json_endpoint
    def delete_session(session_id):
        """Forget a session and its stored state"""
        sessions.close_session(session_id)
        return jsonify({'success': True})

    @app.route('/api/sessions/<session_id>/input', methods=['POST'])
    @json_endpoint
    def send_input(session_id):
        """Send one button event"""
        body = _json_body()
        if 'type' not in body:
            raise ValueError("Missing input type")
        state = sessions.dispatch(session_id, body['type'], body.get('value'))
        return jsonify({'success': True, 'state': state, 'error': state['error']})

    @app.route('/api/sessions/<session_id>/key', methods=['POST'])
    @json_endpoint
    def send_key(session_id):
        """Send one keyboard key"""
        body = _json_body()
        key = body.get('key')
        if not isinstance(key, str) or not key:
            raise ValueError("Missing key")
        state = sessions.press_key(session_id, key, ctrl=bool(body.get('ctrl', False)))
        return jsonify({'success': True, 'state': state, 'error': state['error']})

    @app.route('/api/sessions/<session_id>/settings', methods=['PUT'])
    @json_endpoint
    def update_settings(session_id):
        """Change calculator settings"""
        body = _json_body()
        changes = {
            name: body[name]
            for name in ('precision', 'max_history_items', 'thousands_separator')
            if name in body
        }
        state = sessions.configure(session_id, **changes)
        return jsonify({'success': True, 'state': state})

    @app.route('/api/sessions/<session_id>/history', methods=['GET'])
    @json_endpoint
    def get_history(session_id):
        """Get calculation history"""
        limit = int(request.args.get('limit', config.MAX_HISTORY_ITEMS))
        if limit < 0:
            raise ValueError("limit must not be negative")
        if request.args.get('format') == 'text':
            history = sessions.format_history(session_id, limit)
        else:
            history = sessions.get_history(session_id, limit)
        return jsonify({
            'success': True,
            'data': history,
            'count': len(history)
        })

    @app.route('/api/sessions/<session_id>/history', methods=['DELETE'])
    @json_endpoint
    def clear_history(session_id):
        """Clear calculation history"""
        state = sessions.clear_history(session_id)
        return jsonify({'success': True, 'state': state})

    @app.route('/api/sessions/<session_id>/history/<int:index>', methods=['POST'])
    @json_endpoint
    def load_history_entry(session_id, index):
        """Load a history entry into the calculator"""
        state = sessions.load_from_history(session_id, index)
        return jsonify({'success': True, 'state': state})

    return app

