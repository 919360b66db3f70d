"""
Music hierarchy (HIRC) decoding

Only the four music object types are materialised. Large parts of their
payload are only partially understood, so every record is left by seeking to
the end given by its header, never by trusting the field-by-field parse to land
on the boundary.
"""

from log import logger
from const import HIRC, HircType
from const import AUX_HAS_AUX, POSITIONING_HAS_3D, POSITIONING_HAS_AUTOMATION
from const import INCLUSION_TYPES_WITH_EXTRA, SOURCE_TYPES_WITH_EXTRA
from path_tree import PathEndpoint, PathNode, iter_endpoints, read_path_table
from util import FormatError, MemoryStream


class HircEntry:
    """
    Must Have:
    hierarchy_type - U8
    size - U32, counted from hierarchy_id onward
    hierarchy_id - tid
    """

    def __init__(self):
        self.size: int = 0
        self.hierarchy_type: int = 0
        self.hierarchy_id: int = 0
        self.bit_flags: int = 0

    @classmethod
    def from_memory_stream(cls, stream: MemoryStream):
        entry = cls()
        entry.hierarchy_type = stream.uint8_read()
        entry.size = stream.uint32_read()
        entry.hierarchy_id = stream.uint32_read()
        return entry

    def read_payload(self, stream: MemoryStream):
        """
        Read the fields this tool needs. The caller seeks past the rest.
        """
        pass


class BaseParam:
    """
    Shared parameter block of music segments, playlists and switches.

    Nothing in here is used for naming, it only has to be skipped correctly:
    every optional group is gated by its own count or flag byte, and a wrong
    gate shifts every field after it.
    """

    @staticmethod
    def skip(stream: MemoryStream) -> int:
        """
        @return
        - # of bytes consumed. Advisory only, the record header size is what
        the decoder seeks by.
        """
        head = stream.tell()

        # [Fx]
        stream.advance(1) # bIsOverrideParentFx
        num_fx = stream.uint8_read()
        if num_fx > 0:
            stream.advance(1) # bBypassAll
            stream.advance(7 * num_fx)

        stream.advance(10)

        # [Params]
        num_params = stream.uint8_read()
        stream.advance(num_params) # ids
        stream.advance(4 * num_params) # values

        # [Ranged Params]
        num_ranged_params = stream.uint8_read()
        stream.advance(num_ranged_params) # ids
        stream.advance(4 * num_ranged_params) # min
        stream.advance(4 * num_ranged_params) # max

        # [Positioning]
        positioning_bits = stream.uint8_read()
        if positioning_bits >= POSITIONING_HAS_3D:
            stream.advance(1) # uBits3d
            if positioning_bits >= POSITIONING_HAS_AUTOMATION:
                stream.advance(5) # ePathMode, TransitionTime
                stream.advance(16 * stream.uint32_read()) # vertices
                num_playlist_items = stream.uint32_read()
                stream.advance(8 * num_playlist_items) # playlist items
                stream.advance(12 * num_playlist_items) # 3D automation params

        # [Aux]
        aux_bits = stream.uint8_read()
        if aux_bits >= AUX_HAS_AUX:
            stream.advance(16) # auxIDs

        stream.advance(10)

        # [State]
        stream.advance(3 * stream.uint8_read()) # state props
        for _ in range(stream.uint8_read()): # state groups
            stream.advance(5)
            stream.advance(8 * stream.uint8_read())

        # [RTPC]
        for _ in range(stream.uint16_read()):
            stream.advance(12)
            stream.advance(12 * stream.uint16_read())

        return stream.tell() - head


def read_id_list(stream: MemoryStream) -> list[int]:
    """
    u32 count followed by count * tid
    """
    count = stream.uint32_read()
    if 4 * count > stream.remaining():
        raise FormatError(
            f"id list of {count} entries does not fit the remaining data",
            stream.tell() - 4, stream.name
        )
    return [stream.uint32_read() for _ in range(count)]


class MusicTrack(HircEntry):

    def __init__(self):
        super().__init__()
        self.hierarchy_type = HircType.MusicTrack
        self.audio_file_ids: list[int] = []

    def read_payload(self, stream: MemoryStream):
        self.bit_flags = stream.uint8_read() # MIDI flags
        for _ in range(stream.uint32_read()):
            source_type = stream.uint16_read()
            if source_type in SOURCE_TYPES_WITH_EXTRA:
                stream.advance(2)
            inclusion_type = stream.uint8_read()
            self.audio_file_ids.append(stream.uint32_read())
            if inclusion_type in INCLUSION_TYPES_WITH_EXTRA:
                stream.advance(4)
            stream.advance(1)


class MusicSegment(HircEntry):

    def __init__(self):
        super().__init__()
        self.hierarchy_type = HircType.MusicSegment
        self.track_ids: list[int] = []

    def read_payload(self, stream: MemoryStream):
        self.bit_flags = stream.uint8_read()
        BaseParam.skip(stream)
        self.track_ids = read_id_list(stream)


class MusicPlaylistContainer(HircEntry):
    """
    Music random / sequence container
    """

    def __init__(self):
        super().__init__()
        self.hierarchy_type = HircType.MusicRandomSequence
        self.segment_ids: list[int] = []

    def read_payload(self, stream: MemoryStream):
        self.bit_flags = stream.uint8_read()
        BaseParam.skip(stream)
        self.segment_ids = read_id_list(stream)


class MusicSwitchContainer(HircEntry):
    """
    children - canonical order, drives index suffixes
    group_children - (group id, is state group) of the governing groups
    paths - decision tree root, None for an empty path table
    """

    def __init__(self):
        super().__init__()
        self.hierarchy_type = HircType.MusicSwitch
        self.children: list[int] = []
        self.group_children: list[tuple[int, bool]] = []
        self.paths: PathNode | PathEndpoint | None = None

    def read_payload(self, stream: MemoryStream):
        self.bit_flags = stream.uint8_read()
        BaseParam.skip(stream)

        # [Children]
        self.children = read_id_list(stream)

        stream.advance(23) # meter info

        # [Stingers]
        stream.advance(24 * stream.uint32_read())

        # [Transition Rules]
        for _ in range(stream.uint32_read()):
            stream.advance(4 * stream.uint32_read()) # source ids
            stream.advance(4 * stream.uint32_read()) # destination ids
            stream.advance(47)
            if stream.uint8_read() == 0x01: # bIsTransObjectEnabled
                stream.advance(30)

        stream.advance(1)

        # [Switch / State Groups]
        # ids first, then a parallel array of is-state flags
        group_ids = read_id_list(stream)
        group_flags = [stream.uint8_read() for _ in group_ids]
        self.group_children = [
            (group_id, flag == 0x01) for group_id, flag in zip(group_ids, group_flags)
        ]

        # [Paths]
        path_section_length = stream.uint32_read()
        stream.advance(1)
        path_section_offset = stream.tell()
        self.paths = read_path_table(
            stream.read(path_section_length),
            self.children,
            path_section_offset,
            stream.name
        )

    def get_governing_group(self):
        if len(self.group_children) == 0:
            return None
        return self.group_children[0]


class HircEntryFactory:

    @classmethod
    def from_memory_stream(cls, stream: MemoryStream, section_end: int):
        """
        @return
        - The decoded music object, or None for a type this tool does not
        decode. Either way the stream is left at the end of the record.
        """
        record_head = stream.tell()
        hierarchy_type = stream.uint8_read()
        size = stream.uint32_read()
        start = stream.tell()
        end = start + size

        if size < 4:
            raise FormatError(
                f"hierarchy record declares {size} bytes, less than its own id",
                record_head, stream.name
            )
        if end > section_end:
            raise FormatError(
                f"hierarchy record of {size} bytes runs past the end of the HIRC section",
                record_head, stream.name
            )

        stream.seek(record_head)
        match hierarchy_type:
            case HircType.MusicSegment:
                entry = MusicSegment.from_memory_stream(stream)
            case HircType.MusicTrack:
                entry = MusicTrack.from_memory_stream(stream)
            case HircType.MusicSwitch:
                entry = MusicSwitchContainer.from_memory_stream(stream)
            case HircType.MusicRandomSequence:
                entry = MusicPlaylistContainer.from_memory_stream(stream)
            case _:
                stream.seek(end)
                return None

        entry.read_payload(stream)

        if stream.tell() > end:
            raise FormatError(
                f"hierarchy record {entry.hierarchy_id} (type {hierarchy_type:#04x}) "
                f"parsed {stream.tell() - start} bytes but declares {size}",
                record_head, stream.name
            )

        stream.seek(end)

        return entry


class BankParser:
    """
    Scans the 4-byte tagged sections of a soundbank.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self.sections: list[tuple[bytes, int, int]] = []

    def load(self, stream: MemoryStream):
        """
        @return
        - [(tag, payload offset, payload size)] in file order
        """
        self.sections.clear()
        while not stream.eof():
            head = stream.tell()
            if stream.remaining() < 8:
                raise FormatError(
                    f"{stream.remaining()} trailing bytes are too short for a section header",
                    head, self.name
                )
            tag = stream.read(4)
            size = stream.uint32_read()
            if size > stream.remaining():
                raise FormatError(
                    f"section {tag!r} declares {size} bytes but only "
                    f"{stream.remaining()} remain",
                    head, self.name
                )
            self.sections.append((tag, stream.tell(), size))
            stream.advance(size)
        return self.sections


class WwiseHierarchy:
    """
    Arena of music objects addressed by id.

    Used both for a single soundbank and, through `import_hierarchy`, for the
    working set aggregated over every loaded soundbank. The typed lists keep
    encounter order (bank, section, record) which the naming pass relies on.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self.entries: dict[int, HircEntry] = {}

        self.music_tracks: list[MusicTrack] = []
        self.music_segments: list[MusicSegment] = []
        self.music_playlist_containers: list[MusicPlaylistContainer] = []
        self.music_switch_containers: list[MusicSwitchContainer] = []

        self.skipped_entries: int = 0

    @classmethod
    def from_bytes(cls, data: bytes | bytearray, name: str = ""):
        hierarchy = cls(name)
        hierarchy.load(data)
        return hierarchy

    def load(self, bank_data: bytes | bytearray):
        """
        Decode every HIRC section of a soundbank blob.

        @exception
        - FormatError
        """
        stream = MemoryStream(bank_data, self.name)
        for tag, offset, size in BankParser(self.name).load(stream):
            if tag != HIRC:
                continue
            stream.seek(offset)
            self._load_hirc(stream, offset + size)

        logger.info(
            f"Decoded {self.name}: {len(self.music_tracks)} tracks, "
            f"{len(self.music_segments)} segments, "
            f"{len(self.music_playlist_containers)} playlists, "
            f"{len(self.music_switch_containers)} switches "
            f"({self.skipped_entries} other objects skipped)"
        )

    def _load_hirc(self, stream: MemoryStream, section_end: int):
        num_items = stream.uint32_read()
        for _ in range(num_items):
            if stream.tell() >= section_end:
                raise FormatError(
                    f"HIRC section declares {num_items} objects but ends early",
                    stream.tell(), self.name
                )
            entry = HircEntryFactory.from_memory_stream(stream, section_end)
            if entry == None:
                self.skipped_entries += 1
                continue
            self.add_entry(entry)

    def add_entry(self, entry: HircEntry):
        if entry.hierarchy_id in self.entries:
            logger.warning(
                f"Hierarchy entry {entry.hierarchy_id} is already loaded. "
                f"Keeping the first one and dropping the copy from {self.name}."
            )
            return
        self.entries[entry.hierarchy_id] = entry
        self._categorized_entry(entry)

    def import_hierarchy(self, other: "WwiseHierarchy"):
        """
        Append another hierarchy's objects after the ones already loaded.
        """
        for entry in other.get_entries():
            self.add_entry(entry)
        self.skipped_entries += other.skipped_entries

    def has_entry(self, entry_id: int):
        return entry_id in self.entries

    def get_entry(self, entry_id: int):
        """
        @return
        - None when the id is not part of the working set. Partial loading
        across soundbanks makes this routine.
        """
        return self.entries.get(entry_id)

    def get_entries(self):
        return self.entries.values()

    def get_music_tracks(self):
        return self.music_tracks

    def get_music_segments(self):
        return self.music_segments

    def get_music_playlist_containers(self):
        return self.music_playlist_containers

    def get_music_switch_containers(self):
        return self.music_switch_containers

    def validate_paths(self):
        """
        Every path endpoint must target one of its own container's children.
        """
        for container in self.music_switch_containers:
            children = set(container.children)
            for endpoint in iter_endpoints(container.paths):
                if endpoint.music_object_id not in children:
                    raise FormatError(
                        f"path of switch {container.hierarchy_id} targets "
                        f"{endpoint.music_object_id} which is not one of its children",
                        None, self.name
                    )

    def _categorized_entry(self, entry: HircEntry):
        match entry.hierarchy_type:
            case HircType.MusicTrack:
                self.music_tracks.append(entry)
            case HircType.MusicSegment:
                self.music_segments.append(entry)
            case HircType.MusicRandomSequence:
                self.music_playlist_containers.append(entry)
            case HircType.MusicSwitch:
                self.music_switch_containers.append(entry)
            case _:
                raise AssertionError(
                    f"Hierarchy entry {entry.hierarchy_id} has an unsupported "
                    f"type {entry.hierarchy_type}"
                )
