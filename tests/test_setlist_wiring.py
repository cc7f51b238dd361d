import unittest

from setlist_store import Setlist, Song
from setlist_wiring import (
    SetlistCursor,
    import_from_bank,
    move_song,
    new_song,
    new_song_id,
    remove_song,
    song_caption,
)


def _songs():
    return [Song(1, "One", 100), Song(2, "Two", 110), Song(3, "Three", 120)]


class TestSetlistWiring(unittest.TestCase):
    def test_new_song_clamps_and_requires_title(self):
        self.assertIsNone(new_song("   ", 120, 4, 4, now=1.0))

        song = new_song("  Fast One ", 400, 64, 5, now=1.5)
        self.assertEqual(song.id, 1500)
        self.assertEqual(song.title, "Fast One")
        self.assertEqual(song.bpm, 220)
        self.assertEqual(song.beats_per_bar, 32)
        self.assertEqual(song.note_value, 4)

    def test_new_song_id_is_milliseconds(self):
        self.assertEqual(new_song_id(12.5), 12500)

    def test_remove_song(self):
        songs = _songs()
        self.assertEqual([s.id for s in remove_song(songs, 1)], [1, 3])
        self.assertEqual([s.id for s in remove_song(songs, 9)], [1, 2, 3])
        self.assertEqual(len(songs), 3)

    def test_move_song(self):
        songs = _songs()
        self.assertEqual([s.id for s in move_song(songs, 0, 1)], [2, 1, 3])
        self.assertEqual([s.id for s in move_song(songs, 2, -1)], [1, 3, 2])
        self.assertEqual([s.id for s in move_song(songs, 0, -1)], [1, 2, 3])
        self.assertEqual([s.id for s in move_song(songs, 2, 1)], [1, 2, 3])

    def test_import_from_bank_copies_with_new_ids(self):
        bank = [Song(50, "Bank A", 90, 3, 4), Song(51, "Bank B", 150, 5, 8)]
        result = import_from_bank(_songs(), bank, now=2.0)

        self.assertEqual([s.id for s in result[3:]], [2001, 2002])
        self.assertEqual(result[4].title, "Bank B")
        self.assertEqual(result[4].note_value, 8)
        result[3].title = "Edited"
        self.assertEqual(bank[0].title, "Bank A")

    def test_song_caption(self):
        self.assertEqual(song_caption(Song(1, "x", 120, 6, 8)), "120 · 6/8")


class TestSetlistCursor(unittest.TestCase):
    def test_navigation(self):
        cursor = SetlistCursor(Setlist("Gig", _songs()))
        self.assertEqual(cursor.current.title, "One")
        self.assertIsNone(cursor.prev())
        self.assertEqual(cursor.index, 0)

        self.assertEqual(cursor.next().title, "Two")
        self.assertEqual(cursor.next().title, "Three")
        self.assertIsNone(cursor.next())
        self.assertEqual(cursor.index, 2)

        self.assertEqual(cursor.jump(0).title, "One")
        self.assertIsNone(cursor.jump(5))

    def test_load_out_of_range_index_starts_at_first(self):
        cursor = SetlistCursor()
        self.assertIsNone(cursor.current)
        self.assertEqual(cursor.load(Setlist("Gig", _songs()), 7).title, "One")

        cursor.clear()
        self.assertIsNone(cursor.setlist)
        self.assertIsNone(cursor.next())


if __name__ == "__main__":
    unittest.main()
