"""Single entry point for everything the app persists: settings plus the setlist library."""
from pathlib import Path
from typing import Optional

import config_persistence
from config import Config
from setlist_store import SetlistStore, SongBank

SONG_BANK_FILE = 'songbank.json'


def load_config() -> Config:
    return config_persistence.load_config()


def save_config(config: Config) -> bool:
    return config_persistence.save_config(config)


def open_library(root_dir: Optional[Path] = None) -> tuple[SetlistStore, SongBank]:
    """Setlist store and song bank rooted next to the settings file unless told otherwise."""
    root = Path(root_dir) if root_dir is not None else config_persistence.get_library_dir()
    return SetlistStore(root), SongBank(root / SONG_BANK_FILE)
