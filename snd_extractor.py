import os
import re

import numpy

from const import EVENT_NAME_STRIP_PATTERN, SND_ENTRY_SIZE, SND_FORMAT_OPUS, SOUND_ID_TAG
from log import logger
from name_map import NameMap
from sound_metadata import SoundMetadata
from util import FormatError, MemoryStream


SND_ENTRY_DTYPE = numpy.dtype([
    ("unknown", "V8"),
    ("sound_id", "<u4"),
    ("encoded_size", "<u4"),
    ("data_offset", "<u4"),
    ("decoded_size", "<u4"),
    ("format", "<u2"),
    ("padding", "V6"),
])

assert SND_ENTRY_DTYPE.itemsize == SND_ENTRY_SIZE


class ExtractionReport:

    def __init__(self):
        self.extracted: int = 0
        self.unused: int = 0
        self.converted: int = 0
        self.unresolved_ids: list[int] = []
        self.written_files: list[str] = []

    def get_wems(self):
        return [f for f in self.written_files if f.endswith(".wem")]

    def summary(self, extract_unused: bool):
        text = f"{self.extracted} sound files were extracted"
        if self.unused > 0:
            if extract_unused:
                text += f" ({self.unused} unused)"
            else:
                text += f" ({self.unused} unused files were skipped)"
        if self.converted > 0:
            text += f"\n{self.converted} extracted sound files were converted to .ogg"
        return text


def strip_event_name(event_name: str):
    return re.sub(EVENT_NAME_STRIP_PATTERN, "", event_name.lower())


class SndExtractor:
    """
    Names sounds by the first sound event that plays them, then by the music
    name map. Sounds with neither are unused.
    """

    def __init__(
        self,
        metadata: SoundMetadata,
        name_map: NameMap,
        extract_unused: bool = False
    ):
        self.metadata = metadata
        self.extract_unused = extract_unused
        self.music_names = name_map.reverse()

    def get_sound_name(self, sound_id: int) -> str | None:
        found = self.metadata.find_sound_event(sound_id)
        if found != None:
            event, index = found
            event_name = strip_event_name(event.name)
            if len(event.sound_ids) > 1:
                return f"{event_name}_{index}"
            return event_name
        return self.music_names.get(sound_id)

    @staticmethod
    def read_entries(f, source: str = ""):
        """
        @return
        - NumPy record array of the sound table
        """
        stream = MemoryStream(f.read(12), source)
        stream.advance(4)
        info_size = stream.uint32_read()
        header_size = stream.uint32_read()
        if header_size > info_size:
            raise FormatError(
                f"header size {header_size} exceeds info size {info_size}", 8, source
            )

        num_entries = (info_size - header_size) // SND_ENTRY_SIZE
        f.seek(12 + header_size)
        table = f.read(num_entries * SND_ENTRY_SIZE)
        if len(table) != num_entries * SND_ENTRY_SIZE:
            raise FormatError(
                f"sound table of {num_entries} entries is truncated", 12 + header_size, source
            )

        return numpy.frombuffer(table, dtype=SND_ENTRY_DTYPE, count=num_entries)

    def extract(self, snd_path: str, output_dir: str) -> ExtractionReport:
        """
        @exception
        - FormatError
        - OSError
        """
        source = os.path.basename(snd_path)
        report = ExtractionReport()

        with open(snd_path, "rb") as f:
            f.seek(0, os.SEEK_END)
            file_size = f.tell()
            f.seek(0)

            entries = self.read_entries(f, source)
            logger.info(f"{source}: {len(entries)} sounds")

            for entry in entries:
                sound_id = int(entry["sound_id"])
                encoded_size = int(entry["encoded_size"])
                data_offset = int(entry["data_offset"])

                if data_offset + encoded_size > file_size:
                    raise FormatError(
                        f"sound {sound_id} spans past the end of the file",
                        data_offset, source
                    )

                name = self.get_sound_name(sound_id)
                if encoded_size == 0 or name == None:
                    report.unused += 1
                    if name == None and encoded_size > 0:
                        report.unresolved_ids.append(sound_id)
                    if not self.extract_unused:
                        continue

                file_name = str(sound_id) if name == None else f"{name}{SOUND_ID_TAG}{sound_id}"
                ext = ".opus" if int(entry["format"]) == SND_FORMAT_OPUS else ".wem"
                output_path = os.path.join(output_dir, file_name + ext)

                f.seek(data_offset)
                with open(output_path, "wb") as out:
                    out.write(f.read(encoded_size))

                report.extracted += 1
                report.written_files.append(output_path)

        if len(report.unresolved_ids) > 0:
            logger.info(f"{source}: {len(report.unresolved_ids)} sounds have no name")

        return report
