"""Static data resources for the J1939 toolkit."""

import json
from functools import lru_cache
from pathlib import Path

DATA_DIR = Path(__file__).parent


@lru_cache(maxsize=None)
def load_pgn_definitions() -> dict:
    """Load the bundled Digital Annex PGN/SPN definitions."""
    with open(DATA_DIR / "pgn_definitions.json", "r") as f:
        return json.load(f)


@lru_cache(maxsize=None)
def load_source_addresses() -> dict:
    """Load J1939 source address names keyed by address."""
    with open(DATA_DIR / "source_addresses.json", "r") as f:
        return {int(address): name for address, name in json.load(f).items()}
