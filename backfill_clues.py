#!/usr/bin/env python3
"""
Backfill Clues for Stored Puzzles

Reads puzzles from the database, extracts clue data (with cell coordinates)
from each puzzle's HTML file and writes the result back to puzzles.clues.

Usage:
    python backfill_clues.py [--dry-run] [--limit N] [--missing-only]
"""

import argparse
import json
import os
import sys
import traceback
from typing import Dict, List, Optional

from psycopg2.extras import RealDictCursor

from clue_extraction import ACROSS, DOWN, extract_clues_from_html, format_clues_for_storage, clues_have_cells
from database import get_db, update_puzzle_clues
from puzzle_manager import PuzzleManager

UPDATED = 'updated'
SKIPPED = 'skipped'
ERROR = 'error'


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Extract and store clues for existing puzzles.")
    p.add_argument("--dry-run", action="store_true",
                   help="Extract but don't write to the database")
    p.add_argument("--limit", type=int, default=None,
                   help="Only process the first N puzzles (by id)")
    p.add_argument("--missing-only", action="store_true",
                   help="Only process puzzles with no stored clues")
    p.add_argument("--storage-root", default=os.environ.get('PUZZLE_STORAGE_ROOT', 'public'),
                   help="Directory puzzle file paths are relative to (default: public)")
    return p


def fetch_puzzles(cursor, limit: Optional[int] = None, missing_only: bool = False) -> List[Dict]:
    query = 'SELECT id, title, file_path, clues FROM puzzles'
    if missing_only:
        query += " WHERE clues IS NULL OR clues = ''"
    query += ' ORDER BY id ASC'

    params = ()
    if limit is not None:
        query += ' LIMIT %s'
        params = (limit,)

    cursor.execute(query, params)
    return cursor.fetchall()


def backfill_puzzle(puzzle: Dict, manager: PuzzleManager, cursor, dry_run: bool = False) -> str:
    """
    Backfill clues for a single puzzle

    Returns:
        'updated', 'skipped' or 'error'
    """
    puzzle_id = puzzle['id']
    try:
        print(f"\n[{puzzle_id}] Processing: {puzzle.get('title')}")

        if puzzle.get('clues'):
            try:
                if clues_have_cells(json.loads(puzzle['clues'])):
                    print(f"[{puzzle_id}] ✓ Already has cell coordinates, skipping")
                    return SKIPPED
            except ValueError:
                print(f"[{puzzle_id}] ⚠️  Invalid clues JSON, will re-extract")

        if not manager.puzzle_file_exists(puzzle.get('file_path')):
            print(f"[{puzzle_id}] ✗ File not found: {puzzle.get('file_path')}")
            return ERROR

        html_content = manager.read_puzzle_html(puzzle['file_path'])
        clues = extract_clues_from_html(html_content)

        if not clues[ACROSS] and not clues[DOWN]:
            print(f"[{puzzle_id}] ✗ No clues extracted")
            return ERROR

        print(f"[{puzzle_id}] Extracted {len(clues[ACROSS])} across, {len(clues[DOWN])} down clues")
        if not clues_have_cells(clues):
            print(f"[{puzzle_id}] ⚠️  Extracted clues don't have cell coordinates (old puzzle format?)")

        if dry_run:
            print(f"[{puzzle_id}] [DRY RUN] Would update clues in database")
            return UPDATED

        update_puzzle_clues(cursor, puzzle_id, format_clues_for_storage(clues))
        print(f"[{puzzle_id}] ✓ Updated in database")
        return UPDATED

    except Exception as e:
        print(f"[{puzzle_id}] ✗ Error: {e}")
        print(traceback.format_exc())
        return ERROR


def backfill_all(dry_run: bool = False, limit: Optional[int] = None,
                 missing_only: bool = False, storage_root: str = 'public') -> Dict[str, int]:
    """Backfill every matching puzzle; one bad file never stops the run"""
    stats = {'total': 0, 'processed': 0, UPDATED: 0, SKIPPED: 0, ERROR: 0}
    manager = PuzzleManager(storage_root)

    print("=" * 60)
    print("Backfill Puzzle Clues")
    print("=" * 60)
    print(f"Mode: {'DRY RUN' if dry_run else 'LIVE'}")
    if limit:
        print(f"Limit: {limit} puzzles")
    print("=" * 60)

    conn = get_db()
    cursor = conn.cursor(cursor_factory=RealDictCursor)

    try:
        puzzles = fetch_puzzles(cursor, limit=limit, missing_only=missing_only)
        stats['total'] = len(puzzles)
        print(f"\nFound {stats['total']} puzzles to process")

        for puzzle in puzzles:
            result = backfill_puzzle(puzzle, manager, cursor, dry_run=dry_run)
            stats['processed'] += 1
            stats[result] += 1

            # Commit per puzzle so one failure doesn't roll back the rest
            if not dry_run:
                if result == UPDATED:
                    conn.commit()
                elif result == ERROR:
                    conn.rollback()

    finally:
        cursor.close()
        conn.close()

    print("\n" + "=" * 60)
    print("Backfill Complete")
    print("=" * 60)
    print(f"Total puzzles:    {stats['total']}")
    print(f"Processed:        {stats['processed']}")
    print(f"Updated:          {stats[UPDATED]}")
    print(f"Skipped:          {stats[SKIPPED]}")
    print(f"Errors:           {stats[ERROR]}")
    print("=" * 60)

    if dry_run:
        print("\n⚠️  DRY RUN MODE - No changes were made to the database")

    return stats


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    try:
        backfill_all(
            dry_run=args.dry_run,
            limit=args.limit,
            missing_only=args.missing_only,
            storage_root=args.storage_root,
        )
    except Exception as e:
        print(f"\n✗ Fatal error during backfill: {e}", file=sys.stderr)
        return 1

    print("✓ Script completed successfully")
    return 0


if __name__ == '__main__':
    sys.exit(main())
