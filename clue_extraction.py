"""
Puzzle Clue Extraction

Extracts across/down clues from uploaded puzzle HTML.
Tries three strategies in order:
1. EclipseCrossword script arrays (Word / Clue / WordX / WordY)
2. Structured markup (sections with "across" / "down" class or id)
3. acrossClues / downClues JSON assignments in raw script text

Never raises - a document we can't read gives empty clue lists.
"""

import json
import re
import traceback
from typing import Dict, List, Optional

from bs4 import BeautifulSoup


ACROSS = 'across'
DOWN = 'down'
DIRECTIONS = (ACROSS, DOWN)

Cell = Dict[str, int]
Clue = Dict[str, object]
CluesByDirection = Dict[str, List[Clue]]

# EclipseCrossword array assignments
WORD_ARRAY_RE = re.compile(r'\bWord\s*=\s*new\s+Array\((.*?)\);', re.DOTALL)
CLUE_ARRAY_RE = re.compile(r'\bClue\s*=\s*new\s+Array\((.*?)\);', re.DOTALL)
WORD_X_ARRAY_RE = re.compile(r'\bWordX\s*=\s*new\s+Array\((.*?)\);', re.DOTALL)
WORD_Y_ARRAY_RE = re.compile(r'\bWordY\s*=\s*new\s+Array\((.*?)\);', re.DOTALL)
LAST_HORIZONTAL_RE = re.compile(r'LastHorizontalWord\s*=\s*(\d+)')

WORD_SPLIT_RE = re.compile(r',\s*(?=")')
CLUE_SPLIT_RE = re.compile(r'",\s*\n?\s*"')
EDGE_QUOTE_RE = re.compile(r'^["\']|["\']$')
LEADING_INT_RE = re.compile(r'^[+-]?\d+')

NUMBERED_CLUE_RE = re.compile(r'^(\d+)\.\s*(.+)')
JSON_CLUES_RE = re.compile(r'(?:var\s+)?(across|down)Clues\s*=\s*(\[.*?\]);',
                           re.IGNORECASE | re.DOTALL)


def empty_clues() -> CluesByDirection:
    return {ACROSS: [], DOWN: []}


def extract_clues_from_html(html_content: str) -> CluesByDirection:
    """
    Extract clues from puzzle HTML content

    Args:
        html_content: Raw HTML of the puzzle page (may be malformed)

    Returns:
        Dict with 'across' and 'down' clue lists (possibly empty)
    """
    try:
        soup = BeautifulSoup(html_content, 'html.parser')

        clues = (
            extract_from_eclipse_crossword(soup)
            or extract_from_structured_html(soup)
            or extract_from_javascript_arrays(html_content)
        )

        if not clues:
            print("[ClueExtraction] ⚠️  No clues found by any strategy")
            return empty_clues()

        return clues

    except Exception as e:
        print(f"[ClueExtraction] Failed to extract clues: {e}")
        print(traceback.format_exc())
        return empty_clues()


# ============================================================================
# Strategy 1: EclipseCrossword arrays
# ============================================================================

def extract_from_eclipse_crossword(soup: BeautifulSoup) -> Optional[CluesByDirection]:
    """Extract clues from the Word/Clue/WordX/WordY arrays of an EclipseCrossword export"""
    try:
        clues_data = empty_clues()

        for script in soup.find_all('script'):
            script_content = script.string or script.get_text() or ''
            _extract_script_block(script_content, clues_data)

        if clues_data[ACROSS] or clues_data[DOWN]:
            print(f"[ExtractFromEclipse] Extracted {len(clues_data[ACROSS])} across, "
                  f"{len(clues_data[DOWN])} down")
            return clues_data

    except Exception as e:
        print(f"[ExtractFromEclipse] Error: {e}")

    return None


def _extract_script_block(script_content: str, clues_data: CluesByDirection):
    """Parse one script block and append its clues to clues_data"""
    word_match = WORD_ARRAY_RE.search(script_content)
    clue_match = CLUE_ARRAY_RE.search(script_content)
    if not word_match or not clue_match:
        return

    words = parse_string_array(word_match.group(1), WORD_SPLIT_RE)
    clues = parse_string_array(clue_match.group(1), CLUE_SPLIT_RE)

    word_xs: List[int] = []
    word_ys: List[int] = []
    word_x_match = WORD_X_ARRAY_RE.search(script_content)
    word_y_match = WORD_Y_ARRAY_RE.search(script_content)
    if word_x_match and word_y_match:
        word_xs = parse_int_array(word_x_match.group(1))
        word_ys = parse_int_array(word_y_match.group(1))

    # LastHorizontalWord is the index of the last across word
    last_horizontal_match = LAST_HORIZONTAL_RE.search(script_content)
    if last_horizontal_match:
        last_horizontal = int(last_horizontal_match.group(1))
    else:
        last_horizontal = max(0, len(words) - 1)

    print(f"[ExtractFromEclipse] Found {len(words)} words, {len(clues)} clues, "
          f"split at {last_horizontal}")

    has_positions = len(word_xs) == len(words) and len(word_ys) == len(words)
    clue_numbers = number_word_starts(word_xs, word_ys) if has_positions else []

    for i, (word, clue_text) in enumerate(zip(words, clues)):
        if not word or not clue_text:
            continue

        is_across = i <= last_horizontal
        direction = ACROSS if is_across else DOWN

        if clue_numbers:
            number = clue_numbers[i]
        else:
            number = i + 1 if is_across else i - last_horizontal + 1

        clue = {
            'number': number,
            'text': clue_text,
            'direction': direction,
            'length': len(word),
        }
        if has_positions:
            clue['cells'] = generate_cells(word_xs[i], word_ys[i], len(word), is_across)

        clues_data[direction].append(clue)


def parse_string_array(array_body: str, separator: re.Pattern) -> List[str]:
    """Split a JavaScript array body of quoted strings (no escape handling)"""
    items = []
    for part in separator.split(array_body):
        item = EDGE_QUOTE_RE.sub('', part.strip())
        if item:
            items.append(item)
    return items


def parse_int_array(array_body: str) -> List[int]:
    """Split a JavaScript array body of integers, dropping anything non-numeric"""
    numbers = []
    for part in array_body.split(','):
        match = LEADING_INT_RE.match(part.strip())
        if match:
            numbers.append(int(match.group(0)))
    return numbers


def number_word_starts(word_xs: List[int], word_ys: List[int]) -> List[int]:
    """
    Assign clue numbers from word start positions

    Distinct (x, y) starts are numbered 1, 2, 3... scanning rows top to
    bottom, then columns left to right. Words sharing a start share a number.

    Returns:
        List of clue numbers, one per word index
    """
    starts = sorted(range(len(word_xs)), key=lambda i: (word_ys[i], word_xs[i]))

    numbers_by_start: Dict[tuple, int] = {}
    clue_numbers = [0] * len(word_xs)
    for word_index in starts:
        key = (word_xs[word_index], word_ys[word_index])
        if key not in numbers_by_start:
            numbers_by_start[key] = len(numbers_by_start) + 1
        clue_numbers[word_index] = numbers_by_start[key]

    return clue_numbers


def generate_cells(start_x: int, start_y: int, length: int, is_across: bool) -> List[Cell]:
    """Cells a word covers, in reading order"""
    return [
        {
            'row': start_y + (0 if is_across else offset),
            'col': start_x + (offset if is_across else 0),
        }
        for offset in range(length)
    ]


# ============================================================================
# Strategy 2: Structured HTML
# ============================================================================

def extract_from_structured_html(soup: BeautifulSoup) -> Optional[CluesByDirection]:
    """Extract clues from lists / clue-class elements inside across and down sections"""
    try:
        across_section = soup.select_one('[class*="across" i], [id*="across" i]')
        down_section = soup.select_one('[class*="down" i], [id*="down" i]')

        across = _parse_clue_section(across_section, ACROSS)
        down = _parse_clue_section(down_section, DOWN)

        if across or down:
            return {ACROSS: across, DOWN: down}

    except Exception as e:
        print(f"[ExtractFromStructured] Error: {e}")

    return None


def _parse_clue_section(section, direction: str) -> List[Clue]:
    if section is None:
        return []

    clues = []
    for item in section.select('li, div[class*="clue"], p[class*="clue"]'):
        text = item.get_text().strip()
        if not text:
            continue

        # e.g. "1. Capital of France"
        match = NUMBERED_CLUE_RE.match(text)
        if match:
            clues.append({
                'number': int(match.group(1)),
                'text': match.group(2),
                'direction': direction,
            })

    return clues


# ============================================================================
# Strategy 3: acrossClues / downClues JSON
# ============================================================================

def extract_from_javascript_arrays(html_content: str) -> Optional[CluesByDirection]:
    """Extract clues from acrossClues = [...] / downClues = [...] assignments"""
    try:
        across: List[Clue] = []
        down: List[Clue] = []

        for match in JSON_CLUES_RE.finditer(html_content):
            direction = ACROSS if match.group(1).lower() == ACROSS else DOWN
            target = across if direction == ACROSS else down

            # One unparseable array never costs the other matches
            try:
                clues_array = json.loads(match.group(2))
            except (ValueError, RecursionError) as e:
                print(f"[ExtractFromJS] Skipping {direction} array: {e}")
                continue
            if not isinstance(clues_array, list):
                continue

            for raw_clue in clues_array:
                if not isinstance(raw_clue, dict):
                    continue
                if not raw_clue.get('number') or not raw_clue.get('text'):
                    continue

                clue = {
                    'number': raw_clue['number'],
                    'text': raw_clue['text'],
                    'direction': direction,
                }
                for optional_key in ('answer', 'length'):
                    if raw_clue.get(optional_key) is not None:
                        clue[optional_key] = raw_clue[optional_key]
                target.append(clue)

        if across or down:
            return {ACROSS: across, DOWN: down}

    except Exception as e:
        print(f"[ExtractFromJS] Error: {e}")

    return None


# ============================================================================
# Storage
# ============================================================================

def format_clues_for_storage(clues: CluesByDirection) -> str:
    """
    Serialize clues for the puzzles.clues column

    Keeps number, text, length and cells. Direction is implied by the list
    a clue sits in, and answers are never stored.
    """
    def project(clue: Clue) -> Clue:
        stored = {}
        for key in ('number', 'text', 'length', 'cells'):
            if clue.get(key) is not None:
                stored[key] = clue[key]
        return stored

    return json.dumps({
        ACROSS: [project(c) for c in clues.get(ACROSS, [])],
        DOWN: [project(c) for c in clues.get(DOWN, [])],
    })


def parse_clues_from_storage(clues_json: Optional[str]) -> CluesByDirection:
    """Inverse of format_clues_for_storage; corrupt or missing data gives empty lists"""
    if not clues_json:
        return empty_clues()

    try:
        parsed = json.loads(clues_json)
    except (ValueError, TypeError) as e:
        print(f"[ParseClues] Failed to parse clues from storage: {e}")
        return empty_clues()

    if not isinstance(parsed, dict):
        print(f"[ParseClues] Stored clues are not an object: {type(parsed).__name__}")
        return empty_clues()

    return {
        ACROSS: parsed.get(ACROSS) or [],
        DOWN: parsed.get(DOWN) or [],
    }


def clues_have_cells(clues) -> bool:
    """True if any clue carries cell coordinates (puzzles from before cell extraction have none)"""
    if not isinstance(clues, dict):
        return False

    for direction in DIRECTIONS:
        entries = clues.get(direction)
        if not isinstance(entries, list):
            continue
        for clue in entries:
            if isinstance(clue, dict) and isinstance(clue.get('cells'), list) and clue['cells']:
                return True

    return False
