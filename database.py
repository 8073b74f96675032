"""
PostgreSQL access for puzzles and their stored clues
"""

import os

import psycopg2

DATABASE_URL = os.environ.get('DATABASE_URL', 'postgresql://localhost/crosswords_dev')


def get_db():
    """Get database connection"""
    conn = psycopg2.connect(DATABASE_URL)
    return conn


def init_db():
    """Initialize database with schema"""
    conn = get_db()
    cursor = conn.cursor()

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS puzzles (
            id SERIAL PRIMARY KEY,
            title TEXT NOT NULL,
            description TEXT,
            filename TEXT NOT NULL,
            original_filename TEXT,
            file_path TEXT NOT NULL,
            puzzle_format TEXT DEFAULT 'custom',
            grid_width INTEGER,
            grid_height INTEGER,
            clues TEXT,
            is_active BOOLEAN DEFAULT TRUE,
            uploaded_by TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    cursor.execute('CREATE INDEX IF NOT EXISTS idx_puzzle_active ON puzzles(is_active)')

    conn.commit()
    cursor.close()
    conn.close()
    print("✓ PostgreSQL database initialized successfully!")


def update_puzzle_clues(cursor, puzzle_id, clues_json):
    """Store serialized clues for a puzzle (caller commits)"""
    cursor.execute('''
        UPDATE puzzles
        SET clues = %s,
            updated_at = CURRENT_TIMESTAMP
        WHERE id = %s
    ''', (clues_json, puzzle_id))
