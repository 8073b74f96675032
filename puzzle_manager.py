"""
Puzzle File Storage

Handles:
- Validating uploaded puzzle HTML
- Naming and saving puzzle files
- Resolving stored paths (including legacy formats)
- Reading puzzle HTML back for clue extraction
"""

import re
import secrets
import time
from datetime import datetime
from pathlib import Path

DEFAULT_MAX_UPLOAD_BYTES = 2 * 1024 * 1024


class PuzzleManager:
    def __init__(self, storage_root='public', max_upload_bytes=DEFAULT_MAX_UPLOAD_BYTES):
        self.storage_root = Path(storage_root)
        self.max_upload_bytes = max_upload_bytes

    def generate_puzzle_filename(self, original_name):
        """
        Build a unique filename for an uploaded puzzle

        e.g. "My Puzzle.html" -> "puzzle-1735689600000-a1b2c3-my-puzzle.html"
        """
        timestamp = int(time.time() * 1000)
        random_part = secrets.token_hex(3)
        stem = Path(original_name).stem
        sanitized = re.sub(r'[^a-z0-9.-]', '-', stem, flags=re.IGNORECASE).lower()
        sanitized = re.sub(r'-+', '-', sanitized).strip('-') or 'upload'
        return f"puzzle-{timestamp}-{random_part}-{sanitized}.html"

    def validate_upload(self, filename, content):
        """
        Check an uploaded puzzle file

        Raises:
            ValueError: with a message suitable for the admin
        """
        if not filename or not filename.lower().endswith('.html'):
            raise ValueError("Only HTML files are allowed")

        if len(content.encode('utf-8')) > self.max_upload_bytes:
            limit_mb = self.max_upload_bytes // (1024 * 1024)
            raise ValueError(f"File size must be less than {limit_mb}MB")

        if not content or not content.strip():
            raise ValueError("HTML content is empty")

        if '<' not in content or '>' not in content:
            raise ValueError("Invalid HTML structure")

    def storage_dir(self, now=None):
        """Relative directory for new uploads: puzzles/YYYY/MM"""
        now = now or datetime.now()
        return Path('puzzles') / f"{now.year}" / f"{now.month:02d}"

    def save_puzzle_file(self, filename, content, now=None):
        """
        Save puzzle HTML under the storage root

        Returns:
            Stored path relative to the storage root (what goes in puzzles.file_path)
        """
        relative_path = self.storage_dir(now) / filename
        full_path = self.storage_root / relative_path
        full_path.parent.mkdir(parents=True, exist_ok=True)

        with open(full_path, 'w', encoding='utf-8') as f:
            f.write(content)

        print(f"✓ Saved puzzle file: {full_path}")
        return relative_path.as_posix()

    def resolve_path(self, stored_path):
        """
        Turn a stored file_path into a filesystem path

        Stored paths come in a few shapes: "puzzles/...", "/puzzles/...",
        "public/puzzles/..." and Windows-style "public\\puzzles\\...".
        """
        normalized = (stored_path or '').replace('\\', '/').lstrip('/')
        if normalized.startswith('public/'):
            normalized = normalized[len('public/'):]

        if not normalized:
            raise ValueError("Puzzle has no file path")

        return self.storage_root / normalized

    def read_puzzle_html(self, stored_path):
        """Read a stored puzzle file; raises FileNotFoundError if it's gone"""
        full_path = self.resolve_path(stored_path)
        with open(full_path, 'r', encoding='utf-8') as f:
            return f.read()

    def puzzle_file_exists(self, stored_path):
        try:
            return self.resolve_path(stored_path).is_file()
        except ValueError:
            return False

    def delete_puzzle_file(self, stored_path):
        """Delete a stored puzzle file; a missing file is only a warning"""
        try:
            self.resolve_path(stored_path).unlink()
            print(f"🗑️  Deleted puzzle file: {stored_path}")
        except (OSError, ValueError) as e:
            print(f"⚠️  Failed to delete puzzle file {stored_path}: {e}")
