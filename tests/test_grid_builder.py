"""Tests for grid building and cell <-> clue mapping."""
import pytest

from clue_extraction import extract_clues_from_html
from grid_builder import (
    CrosswordGrid,
    GridBuilder,
    build_cell_map,
    cell_key,
    detect_grid_dimensions,
    detect_puzzle_format,
    get_cells_for_clue,
    get_clue,
    get_clues_for_cell,
    get_next_clue,
    get_previous_clue,
    normalize_clues,
    parse_cell_key,
    sort_clues,
    validate_cached_clues,
)


def _clue(number, cells=None):
    clue = {'number': number, 'text': f'Clue {number}'}
    if cells is not None:
        clue['cells'] = cells
    return clue


class TestDetection:
    def test_grid_dimensions(self, crossing_puzzle):
        assert detect_grid_dimensions(crossing_puzzle) == (3, 3)

    def test_grid_dimensions_missing(self):
        assert detect_grid_dimensions('<html></html>') == (None, None)

    def test_puzzle_format(self, crossing_puzzle):
        assert detect_puzzle_format(crossing_puzzle) == 'eclipsecrossword'
        assert detect_puzzle_format('<div class="across"></div>') == 'custom'


class TestCrosswordGrid:
    def test_set_cell_out_of_bounds(self):
        grid = CrosswordGrid(3, 3)
        with pytest.raises(ValueError, match="out of bounds"):
            grid.set_cell(3, 0, '1-across')

    def test_first_number_wins(self):
        grid = CrosswordGrid(3)
        grid.set_cell(0, 0, '1-across', 1)
        grid.set_cell(0, 0, '1-down', 5)
        assert grid.numbers[0][0] == 1
        assert grid.cell_clues[(0, 0)] == ['1-across', '1-down']


class TestGridBuilder:
    def test_build_from_extracted_clues(self, crossing_puzzle):
        clues = extract_clues_from_html(crossing_puzzle)
        grid = GridBuilder(clues, 3, 3).build()

        assert grid.numbers[0][0] == 1
        assert grid.numbers[0][2] == 2
        assert grid.numbers[2][0] == 3
        assert grid.white[1][1] is False
        assert grid.clue_cells['1-down'] == [(0, 0), (1, 0), (2, 0)]
        assert sorted(grid.cell_clues[(2, 2)]) == ['2-down', '3-across']

    def test_detects_size_from_cells(self, crossing_puzzle):
        clues = extract_clues_from_html(crossing_puzzle)
        grid = GridBuilder(clues).build()
        assert (grid.width, grid.height) == (3, 3)

    def test_cells_outside_given_size(self, crossing_puzzle):
        clues = extract_clues_from_html(crossing_puzzle)
        with pytest.raises(ValueError):
            GridBuilder(clues, 2, 2).build()

    def test_export(self, crossing_puzzle):
        clues = extract_clues_from_html(crossing_puzzle)
        data = GridBuilder(clues).build_and_export()
        assert data['width'] == 3
        assert data['clue_cells']['3-across'][0] == {'row': 2, 'col': 0}
        assert '1-across' in data['cell_clues']['0,0']

    def test_display_string(self, crossing_puzzle):
        clues = extract_clues_from_html(crossing_puzzle)
        text = GridBuilder(clues).build().to_display_string()
        assert text.count('███') == 1
        assert text.startswith('+---+---+---+')


class TestCellMap:
    def test_cell_key_round_trip(self):
        assert cell_key(4, 7) == '4,7'
        assert parse_cell_key('4,7') == {'row': 4, 'col': 7}

    def test_shared_cells(self, crossing_puzzle):
        cell_map = build_cell_map(extract_clues_from_html(crossing_puzzle))
        assert cell_map['0,0'] == {'across': 1, 'down': 1}
        assert cell_map['2,2'] == {'across': 3, 'down': 2}
        assert cell_map['0,1'] == {'across': 1}
        assert '1,1' not in cell_map

    def test_lookups(self, crossing_puzzle):
        clues = extract_clues_from_html(crossing_puzzle)
        cell_map = build_cell_map(clues)

        assert get_clue(clues, 2, 'down')['text'] == 'Sun-darkened skin'
        assert get_clue(clues, 2, 'across') is None
        assert get_cells_for_clue(clues, 3, 'across')[-1] == {'row': 2, 'col': 2}
        assert get_cells_for_clue(clues, 9, 'down') == []
        assert get_clues_for_cell(cell_map, 1, 2) == {'down': 2}
        assert get_clues_for_cell(cell_map, 1, 1) == {}

    def test_clues_without_cells_ignored(self):
        assert build_cell_map({'across': [_clue(1)], 'down': []}) == {}


class TestNavigation:
    clues = [_clue(5), _clue(1), _clue(3)]

    def test_sort(self):
        assert [c['number'] for c in sort_clues(self.clues)] == [1, 3, 5]

    def test_next(self):
        assert get_next_clue(self.clues, 1)['number'] == 3
        assert get_next_clue(self.clues, 5) is None
        assert get_next_clue(self.clues, 5, wrap=True)['number'] == 1
        assert get_next_clue(self.clues, 42)['number'] == 1

    def test_previous(self):
        assert get_previous_clue(self.clues, 3)['number'] == 1
        assert get_previous_clue(self.clues, 1) is None
        assert get_previous_clue(self.clues, 1, wrap=True)['number'] == 5
        assert get_previous_clue(self.clues, 42)['number'] == 5

    def test_empty(self):
        assert get_next_clue([], 1) is None
        assert get_previous_clue([], 1) is None


class TestNormalize:
    def test_loose_clues(self):
        result = normalize_clues(
            across=[{'number': '4', 'clue': 'Feline', 'answer': 'CAT',
                     'cells': [{'row': '0', 'col': 1}]}],
            down=[{'number': 2, 'text': 'Canine', 'length': 3}],
        )
        assert result['across'] == [{
            'number': 4, 'text': 'Feline', 'direction': 'across', 'length': 3,
            'answer': 'CAT', 'cells': [{'row': 0, 'col': 1}],
        }]
        assert result['down'][0]['length'] == 3
        assert result['down'][0]['cells'] == []

    def test_bad_clue_dropped(self, capsys):
        result = normalize_clues(across=[{'text': 'no number'}, {'number': 'x'}])
        assert result == {'across': [], 'down': []}
        assert 'Failed to normalize' in capsys.readouterr().out


class TestValidateCachedClues:
    def test_valid(self, crossing_puzzle):
        assert validate_cached_clues(extract_clues_from_html(crossing_puzzle), 3, 3) is True

    def test_valid_without_dimensions(self, crossing_puzzle):
        assert validate_cached_clues(extract_clues_from_html(crossing_puzzle)) is True

    def test_out_of_bounds(self, crossing_puzzle):
        assert validate_cached_clues(extract_clues_from_html(crossing_puzzle), 2, 3) is False

    def test_missing_cells(self):
        assert validate_cached_clues({'across': [_clue(1)], 'down': []}) is False
        assert validate_cached_clues({'across': [_clue(1, [])], 'down': []}) is False

    def test_bad_shape(self):
        assert validate_cached_clues(None) is False
        assert validate_cached_clues({'across': []}) is False
        assert validate_cached_clues({'across': ['x'], 'down': []}) is False
        assert validate_cached_clues(
            {'across': [{'number': '1', 'cells': [{'row': 0, 'col': 0}]}], 'down': []}) is False
