import os
import tempfile
import unittest

from name_map import NameMap
from snd_extractor import SndExtractor, strip_event_name
from sound_metadata import SoundEvent, SoundMetadata
from tests import bank_builder as bb
from util import FormatError


def make_metadata():
    metadata = SoundMetadata()
    hello = SoundEvent(9001, "Play_VO_Hello_Ghost2")
    hello.sound_ids = [11, 12]
    door = SoundEvent(9002, "play_door")
    door.sound_ids = [13]
    metadata.sound_events = [hello, door]
    return metadata


class TestSndExtractor(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.snd_path = os.path.join(self.tmp.name, "music.snd")
        with open(self.snd_path, "wb") as f:
            f.write(bb.snd([
                (11, b"hello-0", 0),
                (12, b"hello-1", 2),
                (13, b"door", 0),
                (14, b"music", 0),
                (15, b"orphan", 0),
                (16, b"", 0),
            ]))
        self.output = os.path.join(self.tmp.name, "out")
        os.mkdir(self.output)

        self.name_map = NameMap()
        self.name_map.add("combat_0", 14)
        self.name_map.add("door_theme", 13)

    def tearDown(self):
        self.tmp.cleanup()

    def test_strip_event_name(self):
        self.assertEqual(strip_event_name("Play_VO_Hello_Ghost2"), "hello")
        self.assertEqual(strip_event_name("stop_ambience"), "ambience")
        self.assertEqual(strip_event_name("play_music_ghost_extra"), "music")
        self.assertEqual(strip_event_name("door"), "door")

    def test_extract_named(self):
        extractor = SndExtractor(make_metadata(), self.name_map)
        report = extractor.extract(self.snd_path, self.output)

        self.assertEqual(sorted(os.listdir(self.output)), sorted([
            "hello_0_id#11.wem",
            "hello_1_id#12.opus",
            "door_id#13.wem",
            "combat_0_id#14.wem",
        ]))
        with open(os.path.join(self.output, "combat_0_id#14.wem"), "rb") as f:
            self.assertEqual(f.read(), b"music")

        self.assertEqual(report.extracted, 4)
        self.assertEqual(report.unused, 2)
        self.assertEqual(report.unresolved_ids, [15])
        self.assertEqual(len(report.get_wems()), 3)
        self.assertIn("2 unused files were skipped", report.summary(False))

    def test_extract_unused(self):
        extractor = SndExtractor(make_metadata(), self.name_map, extract_unused=True)
        report = extractor.extract(self.snd_path, self.output)

        files = os.listdir(self.output)
        self.assertIn("15.wem", files)
        self.assertIn("16.wem", files)
        self.assertEqual(os.path.getsize(os.path.join(self.output, "16.wem")), 0)
        self.assertEqual(report.extracted, 6)
        self.assertEqual(report.unused, 2)

    def test_event_name_before_music_name(self):
        extractor = SndExtractor(make_metadata(), self.name_map)
        self.assertEqual(extractor.get_sound_name(13), "door")
        self.assertEqual(extractor.get_sound_name(14), "combat_0")
        self.assertIsNone(extractor.get_sound_name(15))

    def test_first_event_wins(self):
        metadata = make_metadata()
        alarm = SoundEvent(9003, "play_alarm")
        alarm.sound_ids = [13, 12]
        metadata.sound_events.append(alarm)

        extractor = SndExtractor(metadata, self.name_map)
        self.assertEqual(extractor.get_sound_name(12), "hello_1")
        self.assertEqual(extractor.get_sound_name(13), "door")

    def test_data_past_end(self):
        with open(self.snd_path, "rb") as f:
            data = f.read()
        with open(self.snd_path, "wb") as f:
            f.write(data[:-3])
        extractor = SndExtractor(make_metadata(), self.name_map)
        with self.assertRaises(FormatError):
            extractor.extract(self.snd_path, self.output)

    def test_truncated_table(self):
        with open(self.snd_path, "wb") as f:
            f.write(bb.snd([(11, b"x", 0)])[:40])
        extractor = SndExtractor(make_metadata(), self.name_map)
        with self.assertRaises(FormatError):
            extractor.extract(self.snd_path, self.output)


if __name__ == "__main__":
    unittest.main()
