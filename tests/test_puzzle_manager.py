"""Tests for puzzle file storage."""
import re
from datetime import datetime

import pytest

from puzzle_manager import PuzzleManager


@pytest.fixture
def manager(tmp_path):
    return PuzzleManager(tmp_path)


class TestFilenames:
    def test_generated_name(self, manager):
        name = manager.generate_puzzle_filename('My Puzzle #3.html')
        assert re.match(r'^puzzle-\d+-[0-9a-f]{6}-my-puzzle-3\.html$', name)

    def test_names_are_unique(self, manager):
        assert manager.generate_puzzle_filename('a.html') != manager.generate_puzzle_filename('a.html')

    def test_unusable_name(self, manager):
        assert manager.generate_puzzle_filename('???.html').endswith('-upload.html')


class TestValidateUpload:
    def test_valid(self, manager):
        manager.validate_upload('puzzle.html', '<html></html>')

    def test_rejects_non_html(self, manager):
        with pytest.raises(ValueError, match="Only HTML"):
            manager.validate_upload('puzzle.txt', '<html></html>')

    def test_rejects_empty(self, manager):
        with pytest.raises(ValueError, match="empty"):
            manager.validate_upload('puzzle.html', '   ')

    def test_rejects_non_markup(self, manager):
        with pytest.raises(ValueError, match="Invalid HTML"):
            manager.validate_upload('puzzle.html', 'just words')

    def test_rejects_large_file(self, tmp_path):
        manager = PuzzleManager(tmp_path, max_upload_bytes=1024 * 1024)
        with pytest.raises(ValueError, match="less than 1MB"):
            manager.validate_upload('puzzle.html', '<p>' + 'x' * (1024 * 1024) + '</p>')


class TestStorage:
    def test_save_and_read(self, manager, tmp_path):
        stored = manager.save_puzzle_file('p.html', '<html>hi</html>', now=datetime(2025, 1, 5))
        assert stored == 'puzzles/2025/01/p.html'
        assert (tmp_path / 'puzzles' / '2025' / '01' / 'p.html').is_file()
        assert manager.read_puzzle_html(stored) == '<html>hi</html>'

    @pytest.mark.parametrize('stored_path', [
        'puzzles/2025/01/p.html',
        '/puzzles/2025/01/p.html',
        'public/puzzles/2025/01/p.html',
        'public\\puzzles\\2025\\01\\p.html',
    ])
    def test_resolve_legacy_paths(self, manager, tmp_path, stored_path):
        assert manager.resolve_path(stored_path) == tmp_path / 'puzzles' / '2025' / '01' / 'p.html'

    def test_resolve_empty_path(self, manager):
        with pytest.raises(ValueError):
            manager.resolve_path('')

    def test_exists(self, manager):
        stored = manager.save_puzzle_file('p.html', '<p></p>')
        assert manager.puzzle_file_exists(stored) is True
        assert manager.puzzle_file_exists('puzzles/missing.html') is False
        assert manager.puzzle_file_exists(None) is False

    def test_read_missing(self, manager):
        with pytest.raises(FileNotFoundError):
            manager.read_puzzle_html('puzzles/missing.html')

    def test_delete(self, manager):
        stored = manager.save_puzzle_file('p.html', '<p></p>')
        manager.delete_puzzle_file(stored)
        assert manager.puzzle_file_exists(stored) is False

    def test_delete_missing_only_warns(self, manager, capsys):
        manager.delete_puzzle_file('puzzles/missing.html')
        assert 'Failed to delete' in capsys.readouterr().out
