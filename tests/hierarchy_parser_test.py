import unittest

from const import HircType
from path_tree import iter_endpoints
from tests import bank_builder as bb
from util import FormatError, MemoryStream
from wwise_hierarchy import BaseParam, WwiseHierarchy


class TestHierarchyParser(unittest.TestCase):

    def test_music_track_sources(self):
        data = bb.bank([
            bb.track(100, [
                (0, 0, 111), # inclusion extra
                (1, 3, 222), # source type extra
                (2, 1, 333), # both
                (3, 5, 444), # neither
            ])
        ])
        hierarchy = WwiseHierarchy.from_bytes(data, "track.bnk")

        self.assertEqual(len(hierarchy.get_music_tracks()), 1)
        track = hierarchy.get_entry(100)
        self.assertIsNotNone(track)
        self.assertEqual(track.hierarchy_type, HircType.MusicTrack)
        self.assertEqual(track.audio_file_ids, [111, 222, 333, 444])

    def test_segment_and_playlist(self):
        data = bb.bank([
            bb.segment(200, [100, 101, 102]),
            bb.playlist(300, [200, 201]),
        ])
        hierarchy = WwiseHierarchy.from_bytes(data)

        self.assertEqual(hierarchy.get_entry(200).track_ids, [100, 101, 102])
        self.assertEqual(hierarchy.get_entry(300).segment_ids, [200, 201])
        self.assertEqual(len(hierarchy.get_music_playlist_containers()), 1)
        self.assertEqual(len(hierarchy.get_music_segments()), 1)
        self.assertEqual(
            hierarchy.get_entry(300).hierarchy_type, HircType.MusicRandomSequence
        )

    def test_seek_by_declared_length(self):
        """
        Unknown trailing fields of every kind are skipped by the record size.
        """
        data = bb.bank([
            bb.simple_track(100, [1], trailing=bb.fill(13)),
            bb.segment(200, [100], trailing=bb.fill(7)),
            bb.playlist(300, [200], trailing=bb.fill(1)),
            bb.switch(400, [300], [(0, 300)], trailing=bb.fill(29)),
            bb.simple_track(101, [2]),
        ])
        hierarchy = WwiseHierarchy.from_bytes(data)

        self.assertEqual(
            [track.hierarchy_id for track in hierarchy.get_music_tracks()], [100, 101]
        )
        self.assertEqual(hierarchy.get_entry(101).audio_file_ids, [2])
        self.assertEqual(hierarchy.get_entry(400).children, [300])

    def test_base_param_gates(self):
        gates = {
            "none": {},
            "fx": {"num_fx": 3},
            "params": {"num_params": 2},
            "ranged_params": {"num_ranged_params": 4},
            "positioning_3d": {"positioning_bits": 0x03},
            "positioning_automation": {
                "positioning_bits": 0x21, "num_keys": 2, "num_paths": 3
            },
            "automation_bit_without_3d_threshold": {"positioning_bits": 0x01},
            "aux": {"aux_bits": 0x08},
            "aux_below_threshold": {"aux_bits": 0x07},
            "props": {"num_props": 5},
            "state_groups": {"state_groups": [0, 2, 1]},
            "rtpcs": {"rtpcs": [1, 0, 4]},
            "everything": {
                "num_fx": 1, "num_params": 1, "num_ranged_params": 1,
                "positioning_bits": 0x2F, "num_keys": 1, "num_paths": 1,
                "aux_bits": 0x0C, "num_props": 1, "state_groups": [3], "rtpcs": [2],
            },
        }
        for gate, kwargs in gates.items():
            with self.subTest(gate=gate):
                base = bb.base_params(**kwargs)
                self.assertEqual(BaseParam.skip(MemoryStream(base)), len(base))

                data = bb.bank([
                    bb.segment(200, [100, 101], base=base),
                    bb.playlist(300, [200], base=base),
                    bb.switch(400, [300], [(0, 300)], base=base),
                ])
                hierarchy = WwiseHierarchy.from_bytes(data, gate)
                self.assertEqual(hierarchy.get_entry(200).track_ids, [100, 101])
                self.assertEqual(hierarchy.get_entry(300).segment_ids, [200])
                self.assertEqual(hierarchy.get_entry(400).children, [300])

    def test_switch_container(self):
        children = [1000, 1001, 1002]
        paths = [
            (0, bb.pack_union(1, 2)),
            (501, 1000),
            (502, bb.pack_union(3, 2)),
            (601, 1001),
            (0, 1002),
        ]
        data = bb.bank([
            bb.switch(
                400, children, paths,
                groups=[(50, False), (60, True)],
                num_stingers=2,
                transitions=[(1, 2, 0), (0, 1, 1), (3, 0, 2)],
            )
        ])
        hierarchy = WwiseHierarchy.from_bytes(data)
        switch = hierarchy.get_entry(400)

        self.assertEqual(switch.children, children)
        self.assertEqual(switch.group_children, [(50, False), (60, True)])
        self.assertEqual(switch.get_governing_group(), (50, False))

        endpoints = list(iter_endpoints(switch.paths))
        self.assertEqual(
            [(e.from_state_or_switch_id, e.music_object_id) for e in endpoints],
            [(501, 1000), (601, 1001), (0, 1002)]
        )

    def test_path_leaves_are_children(self):
        data = bb.bank([
            bb.switch(400, [1000, 1001], [
                (0, bb.pack_union(1, 2)), (1, 1000), (2, 1001)
            ]),
            bb.switch(401, [400], [(0, bb.pack_union(1, 1)), (3, 400)]),
            bb.switch(402, [], []),
        ])
        hierarchy = WwiseHierarchy.from_bytes(data)
        hierarchy.validate_paths()
        for switch in hierarchy.get_music_switch_containers():
            for endpoint in iter_endpoints(switch.paths):
                self.assertIn(endpoint.music_object_id, switch.children)
        self.assertIsNone(hierarchy.get_entry(402).paths)

    def test_unknown_kind_and_section_skipped(self):
        stid = bb.section(b"STID", bb.fill(21))
        data = bb.bank([
            bb.record(0x02, 900, bb.fill(40)), # sound
            bb.simple_track(100, [1]),
            bb.record(0x03, 901, bb.fill(3)), # action
        ], extra_sections=[stid])
        hierarchy = WwiseHierarchy.from_bytes(data)

        self.assertEqual(len(hierarchy.entries), 1)
        self.assertEqual(hierarchy.skipped_entries, 2)
        self.assertFalse(hierarchy.has_entry(900))
        self.assertIsNone(hierarchy.get_entry(901))

    def test_record_past_section_end(self):
        record = bb.simple_track(100, [1])
        # Declare 64 bytes more than the record has
        record = record[:1] + bb.u32(len(record) - 5 + 64) + record[5:]
        data = bb.bank([record]) + bb.section(b"ENVS", bb.fill(128))

        with self.assertRaises(FormatError) as ctx:
            WwiseHierarchy.from_bytes(data, "broken.bnk")
        self.assertEqual(ctx.exception.source, "broken.bnk")
        self.assertIsNotNone(ctx.exception.offset)
        self.assertIn("broken.bnk", str(ctx.exception))

    def test_declared_length_below_id(self):
        record = bb.u8(HircType.MusicTrack) + bb.u32(2) + bb.fill(2)
        data = bb.bank([record])
        with self.assertRaises(FormatError):
            WwiseHierarchy.from_bytes(data)

    def test_payload_overrun(self):
        record = bb.segment(200, [100, 101])
        # Cut the last track id out of the declared length only
        record = record[:1] + bb.u32(len(record) - 5 - 4) + record[5:]
        data = bb.bank([record, bb.simple_track(100, [1])])
        with self.assertRaises(FormatError):
            WwiseHierarchy.from_bytes(data)

    def test_section_past_blob_end(self):
        data = bb.bank([bb.simple_track(100, [1])])
        with self.assertRaises(FormatError):
            WwiseHierarchy.from_bytes(data[:-3])

    def test_record_count_past_section_end(self):
        data = bb.section(b"HIRC", bb.u32(2) + bb.simple_track(100, [1]))
        with self.assertRaises(FormatError):
            WwiseHierarchy.from_bytes(data)

    def test_corrupt_path_index(self):
        data = bb.bank([
            bb.switch(400, [1000], [(0, bb.pack_union(5, 2)), (1, 1000)])
        ])
        with self.assertRaises(FormatError):
            WwiseHierarchy.from_bytes(data)

    def test_path_record_with_two_parents(self):
        paths = [(i, bb.pack_union(i + 1, 2)) for i in range(30)] + [(30, 1000), (31, 1000)]
        data = bb.bank([bb.switch(400, [1000], paths)])
        with self.assertRaises(FormatError) as ctx:
            WwiseHierarchy.from_bytes(data, "music.pck:7")
        self.assertEqual(ctx.exception.source, "music.pck:7")

    def test_path_table_past_record_end(self):
        data = bb.bank([
            bb.switch(400, [1000], [(0, bb.pack_union(1, 1)), (1, 1000)], path_length=36),
            bb.simple_track(100, [1]),
            bb.simple_track(101, [2]),
        ])
        with self.assertRaises(FormatError):
            WwiseHierarchy.from_bytes(data)

    def test_oversized_id_list(self):
        payload = bb.fill(1) + bb.base_params() + bb.u32(0x10000000)
        data = bb.bank([bb.record(HircType.MusicSegment, 200, payload)])
        with self.assertRaises(FormatError):
            WwiseHierarchy.from_bytes(data)

    def test_import_hierarchy(self):
        first = WwiseHierarchy.from_bytes(bb.bank([
            bb.simple_track(100, [1]),
            bb.segment(200, [100]),
        ]), "first.bnk")
        second = WwiseHierarchy.from_bytes(bb.bank([
            bb.simple_track(101, [2]),
            bb.simple_track(100, [99]), # duplicate id
        ]), "second.bnk")

        working_set = WwiseHierarchy("working set")
        working_set.import_hierarchy(first)
        with self.assertLogs("eternal_audio_extractor", level="WARNING"):
            working_set.import_hierarchy(second)

        self.assertEqual(
            [track.hierarchy_id for track in working_set.get_music_tracks()], [100, 101]
        )
        self.assertEqual(working_set.get_entry(100).audio_file_ids, [1])
        self.assertEqual(len(working_set.get_music_segments()), 1)


if __name__ == "__main__":
    unittest.main()
