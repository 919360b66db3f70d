import os

from typing_extensions import Self

import fileutil

from log import logger
from util import FormatError, MemoryStream


class SoundbankEntry:
    """
    id, block_size, data_length, start_block, path_index - U32
    """

    def __init__(self):
        self.id: int = 0
        self.block_size: int = 0
        self.data_length: int = 0
        self.start_block: int = 0
        self.path_index: int = 0

    @classmethod
    def from_memory_stream(cls, stream: MemoryStream):
        entry = cls()
        entry.id = stream.uint32_read()
        entry.block_size = stream.uint32_read()
        entry.data_length = stream.uint32_read()
        entry.start_block = stream.uint32_read()
        entry.path_index = stream.uint32_read()
        return entry

    def get_data_offset(self):
        return self.block_size * self.start_block


class WwisePackage:
    """
    .pck file. Only the soundbank section is unwrapped, streamed sounds live
    in the .snd containers.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self.path = ""
        self.soundbank_entries: list[SoundbankEntry] = []
        self.stream: MemoryStream | None = None

    @classmethod
    def from_file(cls, path: str) -> Self:
        package = cls(os.path.basename(path))
        package.path = path
        with open(path, "rb") as f:
            package.load(MemoryStream(f.read(), package.name))
        return package

    def load(self, stream: MemoryStream):
        """
        @exception
        - FormatError
        """
        self.stream = stream
        stream.seek(12)
        path_section_length = stream.uint32_read()
        stream.uint32_read() # soundbank section length
        stream.uint32_read() # stream entry section length
        stream.uint32_read() # external entry section length
        stream.advance(path_section_length)

        num_banks = stream.uint32_read()
        self.soundbank_entries = [
            SoundbankEntry.from_memory_stream(stream) for _ in range(num_banks)
        ]

        for entry in self.soundbank_entries:
            end = entry.get_data_offset() + entry.data_length
            if end > len(stream):
                raise FormatError(
                    f"soundbank {entry.id} spans [{entry.get_data_offset():#x}, {end:#x}) "
                    f"past the end of the package",
                    None, self.name
                )

        logger.info(f"Loaded {self.name}: {num_banks} soundbanks")

    def get_soundbank_entries(self):
        return self.soundbank_entries

    def iter_soundbanks(self):
        """
        @return
        - (blob name, blob data) in entry order
        """
        assert self.stream != None
        for entry in self.soundbank_entries:
            self.stream.seek(entry.get_data_offset())
            yield f"{self.name}:{entry.id}", self.stream.read(entry.data_length)


def list_packages(game_dir: str):
    """
    @return
    - .pck files directly inside `game_dir`, sorted by name
    """
    return fileutil.list_files(game_dir, ".pck")
