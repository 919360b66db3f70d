import os
import tempfile
import unittest

from tests import bank_builder as bb
from util import FormatError, MemoryStream
from wwise_hierarchy import WwiseHierarchy
from wwise_package import WwisePackage, list_packages


class TestWwisePackage(unittest.TestCase):

    def test_soundbanks_in_entry_order(self):
        blobs = [
            bb.bank([bb.simple_track(100, [1])]),
            bb.bank([bb.segment(200, [100])]),
            bb.bank([]),
        ]
        package = WwisePackage("music.pck")
        package.load(MemoryStream(bb.package(blobs), "music.pck"))

        self.assertEqual(len(package.get_soundbank_entries()), 3)
        loaded = list(package.iter_soundbanks())
        self.assertEqual([data for _, data in loaded], blobs)
        self.assertEqual(loaded[0][0], "music.pck:4096")

        hierarchy = WwiseHierarchy.from_bytes(loaded[1][1], loaded[1][0])
        self.assertEqual(hierarchy.get_entry(200).track_ids, [100])

    def test_soundbank_past_end(self):
        blob = bb.bank([bb.simple_track(100, [1])])
        data = bb.package([blob])
        data = data[:-(len(blob) // 2 + 16)]
        with self.assertRaises(FormatError):
            WwisePackage("cut.pck").load(MemoryStream(data, "cut.pck"))

    def test_list_packages(self):
        with tempfile.TemporaryDirectory() as tmp:
            for name in ["b.pck", "a.PCK", "c.snd", "soundmetadata.bin"]:
                with open(os.path.join(tmp, name), "wb") as f:
                    f.write(bb.package([]))
            os.mkdir(os.path.join(tmp, "d.pck"))

            packages = list_packages(tmp)
            self.assertEqual(
                [os.path.basename(p) for p in packages], ["a.PCK", "b.pck"]
            )
            package = WwisePackage.from_file(packages[1])
            self.assertEqual(package.name, "b.pck")
            self.assertEqual(list(package.iter_soundbanks()), [])

    def test_missing_directory(self):
        with self.assertRaises(OSError):
            list_packages(os.path.join(tempfile.gettempdir(), "no_such_dir_eae"))


if __name__ == "__main__":
    unittest.main()
