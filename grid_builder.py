"""
Crossword Grid Builder

Builds grids and cell <-> clue maps from extracted clue data
"""

import re
from typing import Dict, List, Optional, Tuple

from clue_extraction import ACROSS, DOWN, DIRECTIONS, Cell, Clue, CluesByDirection


GRID_WIDTH_RE = re.compile(r'CrosswordWidth\s*=\s*(\d+)')
GRID_HEIGHT_RE = re.compile(r'CrosswordHeight\s*=\s*(\d+)')

ECLIPSE_MARKERS = [
    'CrosswordWidth',
    'CrosswordHeight',
    'Words =',
    'Word = new Array',
    'Clue = new Array',
    'EclipseCrossword',
]


def detect_grid_dimensions(html_content: str) -> Tuple[Optional[int], Optional[int]]:
    """Read CrosswordWidth / CrosswordHeight from an EclipseCrossword export"""
    width_match = GRID_WIDTH_RE.search(html_content)
    height_match = GRID_HEIGHT_RE.search(html_content)
    width = int(width_match.group(1)) if width_match else None
    height = int(height_match.group(1)) if height_match else None
    return width, height


def detect_puzzle_format(html_content: str) -> str:
    if any(marker in html_content for marker in ECLIPSE_MARKERS):
        return 'eclipsecrossword'
    return 'custom'


def clue_id(number, direction: str) -> str:
    return f"{number}-{direction}"


class CrosswordGrid:
    """
    Represents a crossword grid with numbers and clue/cell associations
    """

    def __init__(self, width: int = 15, height: Optional[int] = None):
        self.width = width
        self.height = height if height is not None else width
        self.white = [[False for _ in range(self.width)] for _ in range(self.height)]
        self.numbers = [[None for _ in range(self.width)] for _ in range(self.height)]
        self.clue_cells = {}  # clue_id -> list of (row, col) tuples
        self.cell_clues = {}  # (row, col) -> list of clue_ids

    def set_cell(self, row: int, col: int, clue_id: str, number: Optional[int] = None):
        """Mark a cell as part of a clue"""
        if row < 0 or row >= self.height or col < 0 or col >= self.width:
            raise ValueError(f"Position ({row}, {col}) out of bounds")

        self.white[row][col] = True

        # Set number (if starting cell)
        if number is not None and self.numbers[row][col] is None:
            self.numbers[row][col] = number

        if clue_id not in self.clue_cells:
            self.clue_cells[clue_id] = []
        self.clue_cells[clue_id].append((row, col))

        if (row, col) not in self.cell_clues:
            self.cell_clues[(row, col)] = []
        if clue_id not in self.cell_clues[(row, col)]:
            self.cell_clues[(row, col)].append(clue_id)

    def to_dict(self) -> Dict:
        """Export as dictionary"""
        return {
            'width': self.width,
            'height': self.height,
            'numbers': self.numbers,
            'clue_cells': {cid: [{'row': r, 'col': c} for r, c in cells]
                           for cid, cells in self.clue_cells.items()},
            'cell_clues': {cell_key(r, c): clues for (r, c), clues in self.cell_clues.items()}
        }

    def to_display_string(self) -> str:
        """Create ASCII representation of grid"""
        lines = ["+" + "---+" * self.width]

        for row in range(self.height):
            line = "|"
            for col in range(self.width):
                number = self.numbers[row][col]
                if not self.white[row][col]:
                    line += "███|"
                elif number:
                    line += f"{number:<3}|"
                else:
                    line += "   |"
            lines.append(line)
            lines.append("+" + "---+" * self.width)

        return "\n".join(lines)


class GridBuilder:
    """
    Builds crossword grids from extracted clues
    """

    def __init__(self, clues: CluesByDirection, width: Optional[int] = None,
                 height: Optional[int] = None):
        self.clues = clues
        self.width = width
        self.height = height

    def build(self) -> CrosswordGrid:
        """
        Build the complete grid

        Clues without cell data are left out.
        """
        width, height = self._detect_grid_size()
        grid = CrosswordGrid(width, height)

        for direction in DIRECTIONS:
            for clue in self.clues.get(direction, []):
                self._place_clue(grid, clue, direction)

        return grid

    def _detect_grid_size(self) -> Tuple[int, int]:
        if self.width and self.height:
            return self.width, self.height

        max_row = max_col = 0
        for direction in DIRECTIONS:
            for clue in self.clues.get(direction, []):
                for cell in clue.get('cells') or []:
                    max_row = max(max_row, cell['row'] + 1)
                    max_col = max(max_col, cell['col'] + 1)

        return self.width or max_col, self.height or max_row

    def _place_clue(self, grid: CrosswordGrid, clue: Clue, direction: str):
        cid = clue_id(clue['number'], direction)
        for i, cell in enumerate(clue.get('cells') or []):
            # First cell gets the clue number
            grid.set_cell(cell['row'], cell['col'], cid, clue['number'] if i == 0 else None)

    def build_and_export(self) -> Dict:
        return self.build().to_dict()


# ============================================================================
# Cell <-> clue lookups
# ============================================================================

def cell_key(row: int, col: int) -> str:
    return f"{row},{col}"


def parse_cell_key(key: str) -> Cell:
    row, col = key.split(',')
    return {'row': int(row), 'col': int(col)}


def build_cell_map(clues: CluesByDirection) -> Dict[str, Dict[str, int]]:
    """
    Map each cell to the clue number(s) it belongs to

    Returns:
        {"row,col": {"across": number, "down": number}} - a key is absent
        when no clue in that direction covers the cell
    """
    cell_map: Dict[str, Dict[str, int]] = {}

    for direction in DIRECTIONS:
        for clue in clues.get(direction, []):
            for cell in clue.get('cells') or []:
                entry = cell_map.setdefault(cell_key(cell['row'], cell['col']), {})
                entry[direction] = clue['number']

    return cell_map


def get_clue(clues: CluesByDirection, number: int, direction: str) -> Optional[Clue]:
    for clue in clues.get(direction, []):
        if clue.get('number') == number:
            return clue
    return None


def get_cells_for_clue(clues: CluesByDirection, number: int, direction: str) -> List[Cell]:
    clue = get_clue(clues, number, direction)
    return list(clue.get('cells') or []) if clue else []


def get_clues_for_cell(cell_map: Dict[str, Dict[str, int]], row: int, col: int) -> Dict[str, int]:
    return cell_map.get(cell_key(row, col), {})


def sort_clues(clues: List[Clue]) -> List[Clue]:
    return sorted(clues, key=lambda c: c['number'])


def get_next_clue(clues: List[Clue], current_number: int, wrap: bool = False) -> Optional[Clue]:
    """Next clue in numeric order; an unknown current number gives the first clue"""
    ordered = sort_clues(clues)
    if not ordered:
        return None

    numbers = [c['number'] for c in ordered]
    if current_number not in numbers:
        return ordered[0]

    next_index = numbers.index(current_number) + 1
    if next_index >= len(ordered):
        return ordered[0] if wrap else None
    return ordered[next_index]


def get_previous_clue(clues: List[Clue], current_number: int, wrap: bool = False) -> Optional[Clue]:
    """Previous clue in numeric order; an unknown current number gives the last clue"""
    ordered = sort_clues(clues)
    if not ordered:
        return None

    numbers = [c['number'] for c in ordered]
    if current_number not in numbers:
        return ordered[-1]

    prev_index = numbers.index(current_number) - 1
    if prev_index < 0:
        return ordered[-1] if wrap else None
    return ordered[prev_index]


def normalize_clue(raw_clue: Dict, direction: str) -> Optional[Clue]:
    """Coerce a loosely shaped clue dict (e.g. posted by the puzzle page) into a Clue"""
    try:
        text = raw_clue.get('text') or raw_clue.get('clue') or ''
        answer = raw_clue.get('answer') or ''
        clue = {
            'number': int(raw_clue['number']),
            'text': str(text),
            'direction': direction,
            'length': int(raw_clue.get('length') or len(answer)),
            'cells': [{'row': int(c['row']), 'col': int(c['col'])}
                      for c in raw_clue.get('cells') or []],
        }
        if answer:
            clue['answer'] = str(answer)
        return clue
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        print(f"[GridBuilder] Failed to normalize clue: {e}")
        return None


def normalize_clues(across: Optional[List[Dict]] = None,
                    down: Optional[List[Dict]] = None) -> CluesByDirection:
    result = {ACROSS: [], DOWN: []}
    for direction, raw_clues in ((ACROSS, across or []), (DOWN, down or [])):
        for raw_clue in raw_clues:
            clue = normalize_clue(raw_clue, direction)
            if clue is not None:
                result[direction].append(clue)
    return result


def validate_cached_clues(clues, grid_width: Optional[int] = None,
                          grid_height: Optional[int] = None) -> bool:
    """
    Check stored clues are usable for highlighting

    Every clue needs an integer number and at least one cell. When grid
    dimensions are known, every cell must fall inside the grid.
    """
    if not isinstance(clues, dict):
        return False
    if not isinstance(clues.get(ACROSS), list) or not isinstance(clues.get(DOWN), list):
        return False

    check_bounds = isinstance(grid_width, int) and isinstance(grid_height, int)

    for direction in DIRECTIONS:
        for clue in clues[direction]:
            if not isinstance(clue, dict):
                return False
            if not isinstance(clue.get('number'), int) or isinstance(clue.get('number'), bool):
                return False
            cells = clue.get('cells')
            if not isinstance(cells, list) or not cells:
                return False

            if check_bounds:
                for cell in cells:
                    if not isinstance(cell, dict):
                        return False
                    row, col = cell.get('row'), cell.get('col')
                    if not isinstance(row, int) or not isinstance(col, int):
                        return False
                    if row < 0 or col < 0 or row >= grid_height or col >= grid_width:
                        return False

    return True
