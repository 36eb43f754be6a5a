"""Centralized path resolution for the season database."""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
OUTPUT_DIR = BASE_DIR / "output"
DB_PATH = Path(os.environ.get("FANTASY_DB_PATH") or OUTPUT_DIR / "fantasy.db")
