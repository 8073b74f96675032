"""Shared test fixtures. Patches the DB before production_app is imported."""
from unittest.mock import patch, MagicMock

import pytest


# Patch psycopg2.connect at the module level BEFORE production_app is imported,
# since it runs a DB check on import.
_mock_conn = MagicMock()
_mock_cursor = MagicMock()
_mock_conn.cursor.return_value = _mock_cursor

_patcher = patch('psycopg2.connect', return_value=_mock_conn)
_patcher.start()

# Now it's safe to import
from production_app import app as _flask_app


@pytest.fixture
def app(tmp_path):
    _flask_app.config['TESTING'] = True
    _flask_app.config['SECRET_KEY'] = 'test-secret'
    _flask_app.config['PUZZLE_STORAGE_ROOT'] = str(tmp_path)
    yield _flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def logged_in_client(client):
    """Client with active admin session."""
    with client.session_transaction() as sess:
        sess['logged_in'] = True
        sess['username'] = 'admin'
    return client


@pytest.fixture
def mock_conn():
    return _mock_conn


@pytest.fixture(autouse=True)
def mock_db():
    """Provide a fresh mock cursor for each test."""
    _mock_cursor.reset_mock(return_value=True, side_effect=True)
    _mock_conn.reset_mock(return_value=True, side_effect=True)
    _mock_conn.cursor.return_value = _mock_cursor

    with patch('production_app.get_db', return_value=_mock_conn):
        yield _mock_cursor


@pytest.fixture
def eclipse_html():
    """Build an EclipseCrossword-style export from word/clue/position lists."""
    def build(words, clues, xs=None, ys=None, last_horizontal=None,
              width=None, height=None, extra_body=''):
        lines = []
        if width is not None:
            lines.append(f'CrosswordWidth = {width};')
        if height is not None:
            lines.append(f'CrosswordHeight = {height};')
        lines.append('Word = new Array(' + ', '.join(f'"{w}"' for w in words) + ');')
        lines.append('Clue = new Array(' + ',\n'.join(f'"{c}"' for c in clues) + ');')
        if xs is not None:
            lines.append('WordX = new Array(' + ', '.join(str(x) for x in xs) + ');')
        if ys is not None:
            lines.append('WordY = new Array(' + ', '.join(str(y) for y in ys) + ');')
        if last_horizontal is not None:
            lines.append(f'LastHorizontalWord = {last_horizontal};')

        script = '\n'.join(lines)
        return (
            '<html><head><title>EclipseCrossword puzzle</title>\n'
            f'<script language="JavaScript">\n{script}\n</script>\n'
            f'</head><body>{extra_body}</body></html>'
        )
    return build


@pytest.fixture
def crossing_puzzle(eclipse_html):
    """
    3x3 puzzle with shared starts:

        C A T
        U . A
        T E N

    CAT / TEN across, CUT / TAN down.
    """
    return eclipse_html(
        words=['CAT', 'TEN', 'CUT', 'TAN'],
        clues=['Feline pet', 'Number after nine', 'Slice', 'Sun-darkened skin'],
        xs=[0, 0, 0, 2],
        ys=[0, 2, 0, 0],
        last_horizontal=1,
        width=3,
        height=3,
    )
