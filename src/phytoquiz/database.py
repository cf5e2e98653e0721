import sqlite3
import os
from .config import settings


def get_db_connection():
    """Opens the SQLite database holding the application log."""
    db_path = os.path.join(settings.DB_DIR, settings.DB_FILE)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def create_log_table():
    conn = get_db_connection()
    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
                level TEXT,
                logger TEXT,
                message TEXT
            );
        """
        )
    conn.close()


def init_db():
    """Creates the database directory and the log table."""
    if not os.path.exists(settings.DB_DIR):
        os.makedirs(settings.DB_DIR)
    create_log_table()
