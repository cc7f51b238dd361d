"""Setlist and song bank persistence (one JSON document per setlist).

Documents keep camelCase keys so setlists/ folders and songbank.json files
written by earlier releases load unchanged.
"""
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from logging_utils import log_event

_UNSAFE_NAME = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


@dataclass
class Song:
    id: float
    title: str
    bpm: int = 120
    beats_per_bar: int = 4
    note_value: int = 4

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'bpm': self.bpm,
            'beatsPerBar': self.beats_per_bar,
            'noteValue': self.note_value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Song":
        return cls(
            id=data.get('id', 0),
            title=str(data.get('title', '')),
            bpm=int(data.get('bpm', 120)),
            beats_per_bar=int(data.get('beatsPerBar', 4)),
            note_value=int(data.get('noteValue', 4)),
        )


@dataclass
class Setlist:
    name: str
    songs: list[Song] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {'name': self.name, 'songs': [s.to_dict() for s in self.songs]}

    @classmethod
    def from_dict(cls, data: dict) -> "Setlist":
        songs = []
        for raw in data.get('songs') or []:
            try:
                songs.append(Song.from_dict(raw))
            except (AttributeError, TypeError, ValueError) as e:
                log_event("WARN", "Setlists", "Skipping malformed song", error=e)
        return cls(name=str(data.get('name', '')), songs=songs)


def is_valid_name(name: str) -> bool:
    return bool(name) and bool(name.strip()) and not _UNSAFE_NAME.search(name) \
        and name not in ('.', '..')


class SetlistStore:
    """Key-value store of setlist documents under <root>/setlists/<name>.json."""

    def __init__(self, root_dir: Path):
        self.dir = Path(root_dir) / 'setlists'
        self.dir.mkdir(parents=True, exist_ok=True)

    def _path(self, name: str) -> Path:
        if not is_valid_name(name):
            raise ValueError(f"invalid setlist name: {name!r}")
        return self.dir / f"{name}.json"

    def save(self, name: str, document: dict) -> bool:
        try:
            path = self._path(name)
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2)
            return True
        except (OSError, TypeError, ValueError) as e:
            log_event("ERROR", "Setlists", "Failed to save", name=name, error=e)
            return False

    def load(self, name: str) -> Optional[dict]:
        try:
            path = self._path(name)
            if not path.exists():
                return None
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return data if isinstance(data, dict) else None
        except (OSError, ValueError) as e:
            log_event("ERROR", "Setlists", "Failed to load", name=name, error=e)
            return None

    def list(self) -> list[str]:
        try:
            return sorted(p.stem for p in self.dir.glob('*.json'))
        except OSError as e:
            log_event("ERROR", "Setlists", "Failed to list", error=e)
            return []

    def delete(self, name: str) -> bool:
        try:
            path = self._path(name)
            if not path.exists():
                return False
            path.unlink()
            return True
        except (OSError, ValueError) as e:
            log_event("ERROR", "Setlists", "Failed to delete", name=name, error=e)
            return False

    def save_setlist(self, setlist: Setlist) -> bool:
        return self.save(setlist.name, setlist.to_dict())

    def load_setlist(self, name: str) -> Optional[Setlist]:
        data = self.load(name)
        if data is None:
            return None
        setlist = Setlist.from_dict(data)
        setlist.name = setlist.name or name
        return setlist


class SongBank:
    """Flat list of reusable songs stored in songbank.json."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> list[Song]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            log_event("ERROR", "SongBank", "Failed to load", error=e)
            return []
        if not isinstance(data, list):
            return []
        songs = []
        for raw in data:
            try:
                songs.append(Song.from_dict(raw))
            except (AttributeError, TypeError, ValueError) as e:
                log_event("WARN", "SongBank", "Skipping malformed song", error=e)
        return songs

    def save(self, songs: list[Song]) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump([s.to_dict() for s in songs], f, indent=2)
            return True
        except (OSError, TypeError, ValueError) as e:
            log_event("ERROR", "SongBank", "Failed to save", error=e)
            return False
