"""
Database Manager for QuantumCalc
Handles SQLite storage of calculator state snapshots, one row per session
"""
import sqlite3
from datetime import datetime

import config
from snapshot import dump_snapshot, load_snapshot


class Database:
    def __init__(self, db_path=config.DB_PATH):
        self.db_path = db_path
        self.init_database()

    def get_connection(self):
        """Create and return a database connection"""
        return sqlite3.connect(self.db_path)

    def init_database(self):
        """Initialize database tables"""
        conn = self.get_connection()
        cursor = conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS snapshots (
                session_id TEXT PRIMARY KEY,
                payload TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        ''')

        conn.commit()
        conn.close()

    def save_snapshot(self, session_id, snapshot):
        """Insert or replace the snapshot stored for a session"""
        updated_at = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        conn = self.get_connection()
        cursor = conn.cursor()
        cursor.execute('''
            INSERT OR REPLACE INTO snapshots (session_id, payload, updated_at)
            VALUES (?, ?, ?)
        ''', (session_id, dump_snapshot(snapshot), updated_at))
        conn.commit()
        conn.close()

    def get_payload(self, session_id):
        """Raw snapshot text for a session, or None"""
        conn = self.get_connection()
        cursor = conn.cursor()
        cursor.execute('SELECT payload FROM snapshots WHERE session_id = ?', (session_id,))
        row = cursor.fetchone()
        conn.close()
        return row[0] if row else None

    def load_snapshot(self, session_id):
        """Load a session snapshot as a LoadResult"""
        return load_snapshot(self.get_payload(session_id))

    def has_snapshot(self, session_id):
        return self.get_payload(session_id) is not None

    def delete_snapshot(self, session_id):
        conn = self.get_connection()
        cursor = conn.cursor()
        cursor.execute('DELETE FROM snapshots WHERE session_id = ?', (session_id,))
        conn.commit()
        conn.close()

    def get_session_ids(self):
        """Get stored session ids, most recently updated first"""
        conn = self.get_connection()
        cursor = conn.cursor()
        cursor.execute('SELECT session_id FROM snapshots ORDER BY updated_at DESC')
        session_ids = [row[0] for row in cursor.fetchall()]
        conn.close()
        return session_ids
