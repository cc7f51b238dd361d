import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import config_persistence
from config_facade import open_library
from setlist_store import Setlist, SetlistStore, Song, SongBank, is_valid_name


class TestSetlistStore(unittest.TestCase):
    def test_save_load_list_delete(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = SetlistStore(Path(tmpdir))
            setlist = Setlist("Friday Gig", [Song(1, "Opener", 128, 4, 4), Song(2, "Waltz", 90, 3, 4)])

            self.assertTrue(store.save_setlist(setlist))
            self.assertTrue(store.save("Rehearsal", {"name": "Rehearsal", "songs": []}))
            self.assertEqual(store.list(), ["Friday Gig", "Rehearsal"])

            loaded = store.load_setlist("Friday Gig")
            self.assertEqual(loaded, setlist)

            self.assertTrue(store.delete("Rehearsal"))
            self.assertFalse(store.delete("Rehearsal"))
            self.assertEqual(store.list(), ["Friday Gig"])

    def test_documents_keep_camel_case_keys(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = SetlistStore(Path(tmpdir))
            store.save_setlist(Setlist("Set", [Song(7, "Song", 100, 6, 8)]))

            with open(Path(tmpdir) / "setlists" / "Set.json", "r", encoding="utf-8") as f:
                raw = json.load(f)

            self.assertEqual(raw["songs"][0],
                             {"id": 7, "title": "Song", "bpm": 100, "beatsPerBar": 6, "noteValue": 8})

    def test_missing_and_corrupt_documents(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = SetlistStore(Path(tmpdir))
            self.assertIsNone(store.load("Nope"))

            with open(Path(tmpdir) / "setlists" / "Broken.json", "w", encoding="utf-8") as f:
                f.write("{not json")
            self.assertIsNone(store.load_setlist("Broken"))

    def test_malformed_songs_skipped(self):
        setlist = Setlist.from_dict({"name": "Mixed", "songs": [
            {"id": 1, "title": "Good", "bpm": 120, "beatsPerBar": 4, "noteValue": 4},
            {"id": 2, "title": "Bad", "bpm": "fast"},
            "not a song",
        ]})
        self.assertEqual([s.title for s in setlist.songs], ["Good"])

    def test_unsafe_names_rejected(self):
        self.assertTrue(is_valid_name("Sunday Service"))
        for name in ("", "   ", "..", "a/b", "a\\b", "what?"):
            self.assertFalse(is_valid_name(name), name)

        with tempfile.TemporaryDirectory() as tmpdir:
            store = SetlistStore(Path(tmpdir))
            self.assertFalse(store.save("../escape", {"name": "x"}))
            self.assertIsNone(store.load("../escape"))


class TestOpenLibrary(unittest.TestCase):
    def test_open_library_under_root(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store, bank = open_library(Path(tmpdir))
            self.assertEqual(store.dir, Path(tmpdir) / "setlists")
            self.assertTrue(store.dir.is_dir())
            self.assertEqual(bank.path, Path(tmpdir) / "songbank.json")

    def test_open_library_defaults_to_config_dir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with mock.patch.object(config_persistence, "get_library_dir", return_value=Path(tmpdir)):
                store, _ = open_library()
            self.assertEqual(store.dir, Path(tmpdir) / "setlists")


class TestSongBank(unittest.TestCase):
    def test_roundtrip(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            bank = SongBank(Path(tmpdir) / "songbank.json")
            self.assertEqual(bank.load(), [])

            songs = [Song(1, "A", 80, 4, 4), Song(2, "B", 160, 7, 8)]
            self.assertTrue(bank.save(songs))
            self.assertEqual(bank.load(), songs)

    def test_non_list_document_is_empty(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "songbank.json"
            with open(path, "w", encoding="utf-8") as f:
                json.dump({"songs": []}, f)
            self.assertEqual(SongBank(path).load(), [])


if __name__ == "__main__":
    unittest.main()
