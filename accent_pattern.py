"""
Clickonome - Accent Pattern
Per-beat emphasis levels for one bar, independent of which sound plays.
"""

from enum import IntEnum
from typing import Iterable, Iterator, List, Optional


class Level(IntEnum):
    """Accent level of a single beat slot"""
    MUTE = 0      # Visual tick only
    WEAK = 1
    MEDIUM = 2
    STRONG = 3    # Uses the accent sound when one is loaded


LEVEL_VOLUME = {
    Level.WEAK: 0.3,
    Level.MEDIUM: 0.6,
    Level.STRONG: 1.0,
}

DEFAULT_PATTERN = (Level.STRONG, Level.WEAK, Level.WEAK, Level.WEAK)


def volume_for(level: int) -> float:
    """Playback gain for a level; unmapped levels play at full volume."""
    return LEVEL_VOLUME.get(level, 1.0)


def coerce_level(value) -> Level:
    """Clamp an arbitrary int-like value into a Level."""
    try:
        return Level(max(0, min(3, int(value))))
    except (TypeError, ValueError):
        return Level.WEAK


class AccentPattern:
    """Ordered sequence of Levels, one per beat in the bar."""

    def __init__(self, levels: Optional[Iterable[int]] = None):
        source = DEFAULT_PATTERN if levels is None else levels
        self._levels: List[Level] = [coerce_level(v) for v in source]

    def __len__(self) -> int:
        return len(self._levels)

    def __iter__(self) -> Iterator[Level]:
        return iter(self._levels)

    def __repr__(self) -> str:
        return f"AccentPattern({[int(v) for v in self._levels]})"

    def set_size(self, size: int) -> None:
        """Grow with WEAK slots or truncate, keeping entries at matching indices."""
        size = max(0, int(size))
        if size <= len(self._levels):
            del self._levels[size:]
        else:
            self._levels.extend([Level.WEAK] * (size - len(self._levels)))

    def cycle(self, index: int) -> Level:
        """Step one slot Strong -> Medium -> Weak -> Mute -> Strong.
        Raises IndexError for a slot outside the pattern."""
        if not 0 <= index < len(self._levels):
            raise IndexError(f"accent index {index} out of range (size {len(self._levels)})")
        current = self._levels[index]
        new_level = Level.STRONG if current == Level.MUTE else Level(current - 1)
        self._levels[index] = new_level
        return new_level

    def set_level(self, index: int, level: int) -> None:
        if not 0 <= index < len(self._levels):
            raise IndexError(f"accent index {index} out of range (size {len(self._levels)})")
        self._levels[index] = coerce_level(level)

    def replace(self, levels: Iterable[int]) -> None:
        self._levels = [coerce_level(v) for v in levels]

    def level_at(self, index: int) -> Level:
        """Level for a beat; any index outside the pattern reads as WEAK."""
        if 0 <= index < len(self._levels):
            return self._levels[index]
        return Level.WEAK

    def to_list(self) -> List[int]:
        return [int(v) for v in self._levels]
