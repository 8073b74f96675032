"""
Crossword Puzzle Backend - Production
=====================================

Flask application with:
- Admin authentication
- Puzzle HTML upload with clue extraction
- Clue serving with cache validation and re-extraction from file
- Cell <-> clue maps for highlighting

Run with: python production_app.py
"""

from flask import Flask, jsonify, request, session
from flask_cors import CORS
from werkzeug.security import generate_password_hash, check_password_hash
from psycopg2.extras import RealDictCursor
import os
import secrets
import traceback

from clue_extraction import (
    ACROSS, DOWN,
    extract_clues_from_html, format_clues_for_storage, parse_clues_from_storage,
    clues_have_cells,
)
from database import get_db, init_db, update_puzzle_clues
from grid_builder import (
    GridBuilder, build_cell_map, detect_grid_dimensions, detect_puzzle_format,
    normalize_clues, validate_cached_clues,
)
from puzzle_manager import PuzzleManager, DEFAULT_MAX_UPLOAD_BYTES

app = Flask(__name__)
app.secret_key = os.environ.get('SECRET_KEY') or secrets.token_hex(32)

# Session configuration
app.config['SESSION_COOKIE_HTTPONLY'] = True
app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'
app.config['PERMANENT_SESSION_LIFETIME'] = 3600  # 1 hour

# Puzzle file storage
app.config['PUZZLE_STORAGE_ROOT'] = os.environ.get('PUZZLE_STORAGE_ROOT', 'public')
app.config['MAX_UPLOAD_BYTES'] = int(os.environ.get('MAX_UPLOAD_BYTES', DEFAULT_MAX_UPLOAD_BYTES))
CORS(app)

ADMIN_USERNAME = os.environ.get('ADMIN_USERNAME', 'admin')
ADMIN_PASSWORD_HASH = os.environ.get('ADMIN_PASSWORD_HASH') or generate_password_hash('changeme123')


def login_required(f):
    """Decorator to require login for admin routes"""
    def decorated_function(*args, **kwargs):
        if 'logged_in' not in session:
            return jsonify({'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    decorated_function.__name__ = f.__name__
    return decorated_function


def get_puzzle_manager():
    return PuzzleManager(app.config['PUZZLE_STORAGE_ROOT'], app.config['MAX_UPLOAD_BYTES'])


def clue_counts(clues):
    return {
        'acrossCount': len(clues.get(ACROSS, [])),
        'downCount': len(clues.get(DOWN, [])),
    }


def fetch_puzzle(cursor, puzzle_id):
    cursor.execute('''
        SELECT id, title, description, file_path, puzzle_format,
               grid_width, grid_height, clues, created_at, updated_at
        FROM puzzles
        WHERE id = %s
    ''', (puzzle_id,))
    return cursor.fetchone()


def reextract_clues(conn, cursor, puzzle):
    """
    Re-read a puzzle's HTML file, extract clues and cache them on the row

    Returns:
        Stored-shape clues, or None if nothing could be extracted

    Raises:
        OSError / ValueError if the puzzle file can't be read
    """
    html_content = get_puzzle_manager().read_puzzle_html(puzzle['file_path'])
    extracted = extract_clues_from_html(html_content)

    if not extracted[ACROSS] and not extracted[DOWN]:
        print(f"[Clues] ⚠️  No clues extracted from file for puzzle {puzzle['id']}")
        return None

    clues_json = format_clues_for_storage(extracted)
    update_puzzle_clues(cursor, puzzle['id'], clues_json)
    conn.commit()

    print(f"[Clues] Re-extracted and cached clues for puzzle {puzzle['id']} "
          f"({len(extracted[ACROSS])} across, {len(extracted[DOWN])} down)")
    return parse_clues_from_storage(clues_json)


# ============================================================================
# ADMIN AUTHENTICATION
# ============================================================================

@app.route('/admin/login', methods=['POST'])
def admin_login():
    """Admin login"""
    data = request.get_json(silent=True) or {}
    username = data.get('username', '')
    password = data.get('password', '')

    if username == ADMIN_USERNAME and check_password_hash(ADMIN_PASSWORD_HASH, password):
        session['logged_in'] = True
        session['username'] = username
        return jsonify({'success': True, 'message': 'Login successful'})

    return jsonify({'success': False, 'message': 'Invalid credentials'}), 401


@app.route('/admin/logout')
def admin_logout():
    """Logout"""
    session.clear()
    return jsonify({'success': True, 'message': 'Logged out'})


# ============================================================================
# ADMIN ROUTES (Upload & Refresh)
# ============================================================================

@app.route('/admin/api/puzzles/upload', methods=['POST'])
@login_required
def upload_puzzle():
    """Upload a puzzle HTML file, extract its clues and store both"""
    upload = request.files.get('file')
    if not upload or not upload.filename:
        return jsonify({'error': 'No file provided'}), 400

    try:
        content = upload.read().decode('utf-8')
    except UnicodeDecodeError:
        return jsonify({'error': 'Puzzle file must be UTF-8 encoded HTML'}), 400

    manager = get_puzzle_manager()
    try:
        manager.validate_upload(upload.filename, content)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    filename = manager.generate_puzzle_filename(upload.filename)
    saved_path = manager.save_puzzle_file(filename, content)

    grid_width, grid_height = detect_grid_dimensions(content)
    puzzle_format = detect_puzzle_format(content)

    # Upload still succeeds when no clues come out
    extracted = extract_clues_from_html(content)
    clues_json = format_clues_for_storage(extracted)
    if not extracted[ACROSS] and not extracted[DOWN]:
        print(f"[Upload] ⚠️  No clues extracted from {upload.filename}")
    else:
        print(f"[Upload] Extracted clues: {len(extracted[ACROSS])} across, "
              f"{len(extracted[DOWN])} down")

    conn = None
    cursor = None

    try:
        conn = get_db()
        cursor = conn.cursor(cursor_factory=RealDictCursor)
        cursor.execute('''
            INSERT INTO puzzles (
                title, description, filename, original_filename, file_path,
                puzzle_format, grid_width, grid_height, clues, uploaded_by
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING id
        ''', (
            request.form.get('title') or 'Untitled Puzzle',
            request.form.get('description') or None,
            filename,
            upload.filename,
            saved_path,
            puzzle_format,
            grid_width,
            grid_height,
            clues_json,
            session.get('username'),
        ))
        puzzle_id = cursor.fetchone()['id']
        conn.commit()

    except Exception as e:
        if conn is not None:
            conn.rollback()
        manager.delete_puzzle_file(saved_path)
        print(f"[Upload] Error saving puzzle: {e}")
        print(traceback.format_exc())
        return jsonify({'error': 'Failed to save puzzle'}), 500

    finally:
        if cursor is not None:
            cursor.close()
        if conn is not None:
            conn.close()

    return jsonify({
        'success': True,
        'puzzle_id': puzzle_id,
        'file_path': saved_path,
        'puzzle_format': puzzle_format,
        'grid_width': grid_width,
        'grid_height': grid_height,
        'has_cells': clues_have_cells(extracted),
        'stats': clue_counts(extracted),
    })


@app.route('/admin/api/puzzles/<int:puzzle_id>/clues/refresh', methods=['POST'])
@login_required
def refresh_puzzle_clues(puzzle_id):
    """Force re-extraction of clues from the puzzle file (bypasses cache)"""
    conn = get_db()
    cursor = conn.cursor(cursor_factory=RealDictCursor)

    try:
        puzzle = fetch_puzzle(cursor, puzzle_id)
        if not puzzle:
            return jsonify({'error': 'Puzzle not found'}), 404

        try:
            clues = reextract_clues(conn, cursor, puzzle)
        except (OSError, ValueError) as e:
            print(f"[Refresh] Failed to read puzzle file for {puzzle_id}: {e}")
            return jsonify({'error': 'Puzzle file could not be read'}), 500

        if clues is None:
            return jsonify({'error': 'No clues found in puzzle file'}), 500

        return jsonify({
            'clues': clues,
            'stats': clue_counts(clues),
            'message': 'Clues refreshed successfully',
        })

    finally:
        cursor.close()
        conn.close()


# ============================================================================
# PUBLIC ROUTES
# ============================================================================

@app.route('/api/puzzles/<int:puzzle_id>')
def get_puzzle(puzzle_id):
    """Get a puzzle with its stored clues"""
    conn = get_db()
    cursor = conn.cursor(cursor_factory=RealDictCursor)
    try:
        puzzle = fetch_puzzle(cursor, puzzle_id)
    finally:
        cursor.close()
        conn.close()

    if not puzzle:
        return jsonify({'error': 'Puzzle not found'}), 404

    result = dict(puzzle)
    result['clues'] = parse_clues_from_storage(puzzle.get('clues'))
    return jsonify(result)


@app.route('/api/puzzles/<int:puzzle_id>/clues')
def get_puzzle_clues(puzzle_id):
    """
    Get clues for a puzzle

    Serves the stored clues when they carry usable cell data, otherwise
    re-extracts from the puzzle file and caches the result.
    """
    conn = get_db()
    cursor = conn.cursor(cursor_factory=RealDictCursor)

    try:
        puzzle = fetch_puzzle(cursor, puzzle_id)
        if not puzzle:
            return jsonify({'error': 'Puzzle not found'}), 404

        cached = parse_clues_from_storage(puzzle.get('clues'))
        has_cached = bool(cached[ACROSS] or cached[DOWN])
        if has_cached and validate_cached_clues(cached, puzzle.get('grid_width'),
                                                puzzle.get('grid_height')):
            return jsonify({
                'clues': cached,
                'sourceInfo': {'source': 'cache', 'cacheHit': True},
            })

        if has_cached:
            print(f"[Clues] Cached clues failed validation for puzzle {puzzle_id}, reparsing from file")

        try:
            clues = reextract_clues(conn, cursor, puzzle)
        except (OSError, ValueError) as e:
            print(f"[Clues] Failed to read puzzle file for {puzzle_id}: {e}")
            clues = None

        if clues is None:
            return jsonify({
                'error': 'Failed to load clues',
                'clues': {ACROSS: [], DOWN: []},
                'sourceInfo': {'source': 'error', 'cacheHit': False},
            }), 500

        return jsonify({
            'clues': clues,
            'sourceInfo': {'source': 'file', 'cacheHit': False},
        })

    finally:
        cursor.close()
        conn.close()


@app.route('/api/puzzles/<int:puzzle_id>/clues', methods=['POST'])
def save_puzzle_clues(puzzle_id):
    """Persist clues read by the puzzle page (used when the stored copy is missing)"""
    data = request.get_json(silent=True) or {}
    clues = data.get('clues')

    if not isinstance(clues, dict):
        return jsonify({'error': 'Invalid clues format'}), 400

    if not isinstance(clues.get(ACROSS), list) or not isinstance(clues.get(DOWN), list):
        return jsonify({'error': 'Clues must have across and down arrays'}), 400

    normalized = normalize_clues(clues[ACROSS], clues[DOWN])

    conn = get_db()
    cursor = conn.cursor(cursor_factory=RealDictCursor)

    try:
        if not fetch_puzzle(cursor, puzzle_id):
            return jsonify({'error': 'Puzzle not found'}), 404

        update_puzzle_clues(cursor, puzzle_id, format_clues_for_storage(normalized))
        conn.commit()

    finally:
        cursor.close()
        conn.close()

    print(f"[Clues] Persisted clues for puzzle {puzzle_id}: "
          f"{len(normalized[ACROSS])} across, {len(normalized[DOWN])} down")

    return jsonify({
        'success': True,
        'message': 'Clues persisted successfully',
        'stats': clue_counts(normalized),
    })


@app.route('/api/puzzles/<int:puzzle_id>/cell-map')
def get_puzzle_cell_map(puzzle_id):
    """Get the cell -> clue map and grid layout for highlighting"""
    conn = get_db()
    cursor = conn.cursor(cursor_factory=RealDictCursor)
    try:
        puzzle = fetch_puzzle(cursor, puzzle_id)
    finally:
        cursor.close()
        conn.close()

    if not puzzle:
        return jsonify({'error': 'Puzzle not found'}), 404

    clues = parse_clues_from_storage(puzzle.get('clues'))
    if not clues_have_cells(clues):
        return jsonify({'error': 'Puzzle has no cell data'}), 404

    try:
        grid = GridBuilder(clues, puzzle.get('grid_width'), puzzle.get('grid_height')).build()
    except ValueError as e:
        print(f"[CellMap] Stored clues don't fit grid for puzzle {puzzle_id}: {e}")
        return jsonify({'error': str(e)}), 422

    return jsonify({
        'cell_map': build_cell_map(clues),
        'grid': grid.to_dict(),
    })


# Initialize database when running with gunicorn (production)
# This runs on module import, before any requests
try:
    db_test = get_db()
    db_cursor = db_test.cursor()
    db_cursor.execute("SELECT 1 FROM puzzles LIMIT 1")
    db_cursor.close()
    db_test.close()
    print("✓ Database tables exist")
except Exception as e:
    print(f"Database tables don't exist ({e}), initializing...")
    init_db()


if __name__ == '__main__':
    print("\n" + "=" * 70)
    print("🧩 CROSSWORD PUZZLE BACKEND")
    print("=" * 70)
    print("\nServer starting...")
    print("API:         http://localhost:5000/api/puzzles/<id>")
    print("Admin login: POST http://localhost:5000/admin/login")
    print(f"Puzzle files: {os.path.abspath(app.config['PUZZLE_STORAGE_ROOT'])}")
    print("\nPress Ctrl+C to stop\n")

    app.run(debug=True, port=5000)
