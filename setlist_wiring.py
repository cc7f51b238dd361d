import time
from typing import Optional

from config import BEATS_PER_BAR_MAX, NOTE_VALUES, clamp_bpm
from setlist_store import Setlist, Song


def new_song_id(now: Optional[float] = None) -> int:
    """Millisecond timestamp id, the format existing setlist files use."""
    current = time.time() if now is None else now
    return int(current * 1000)


def new_song(title: str, bpm, beats_per_bar: int, note_value: int,
             *, now: Optional[float] = None) -> Optional[Song]:
    """Build a song from form values; returns None when the title is blank."""
    title = (title or "").strip()
    if not title:
        return None
    return Song(
        id=new_song_id(now),
        title=title,
        bpm=clamp_bpm(bpm),
        beats_per_bar=max(1, min(BEATS_PER_BAR_MAX, int(beats_per_bar))),
        note_value=note_value if note_value in NOTE_VALUES else 4,
    )


def remove_song(songs: list[Song], index: int) -> list[Song]:
    if not 0 <= index < len(songs):
        return list(songs)
    return songs[:index] + songs[index + 1:]


def move_song(songs: list[Song], index: int, direction: int) -> list[Song]:
    """Swap a song with its neighbour (direction -1 = up, +1 = down)."""
    target = index + direction
    result = list(songs)
    if not 0 <= index < len(result) or not 0 <= target < len(result):
        return result
    result[index], result[target] = result[target], result[index]
    return result


def import_from_bank(songs: list[Song], selected: list[Song],
                     *, now: Optional[float] = None) -> list[Song]:
    """Append copies of bank songs with fresh ids so setlist edits never touch the bank."""
    base = new_song_id(now)
    copies = [
        Song(id=base + i + 1, title=s.title, bpm=s.bpm,
             beats_per_bar=s.beats_per_bar, note_value=s.note_value)
        for i, s in enumerate(selected)
    ]
    return list(songs) + copies


def song_caption(song: Song) -> str:
    return f"{song.bpm} · {song.beats_per_bar}/{song.note_value}"


class SetlistCursor:
    """Current setlist + song position for prev/next/jump navigation."""

    def __init__(self, setlist: Optional[Setlist] = None, index: int = 0):
        self.setlist = setlist
        self.index = 0
        if setlist is not None:
            self.load(setlist, index)

    @property
    def current(self) -> Optional[Song]:
        if self.setlist is None or not 0 <= self.index < len(self.setlist.songs):
            return None
        return self.setlist.songs[self.index]

    def load(self, setlist: Setlist, index: int = 0) -> Optional[Song]:
        self.setlist = setlist
        self.index = index if 0 <= index < len(setlist.songs) else 0
        return self.current

    def clear(self) -> None:
        self.setlist = None
        self.index = 0

    def jump(self, index: int) -> Optional[Song]:
        if self.setlist is None or not 0 <= index < len(self.setlist.songs):
            return None
        self.index = index
        return self.current

    def next(self) -> Optional[Song]:
        return self.jump(self.index + 1)

    def prev(self) -> Optional[Song]:
        return self.jump(self.index - 1)
