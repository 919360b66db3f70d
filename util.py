import struct


class FormatError(Exception):
    """
    Malformed, truncated or structurally inconsistent binary input.

    Fatal for the whole run: records after a desynced boundary are garbage, so
    nothing decoded from the offending blob can be trusted.
    """

    def __init__(self, message: str, offset: int | None = None, source: str = ""):
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.source = source

    def __str__(self):
        location = ""
        if self.source:
            location += f" in {self.source}"
        if self.offset != None:
            location += f" at offset {self.offset:#x}"
        return f"{self.message}{location}"


class MemoryStream:
    '''
    Modified from https://github.com/kboykboy2/io_scene_helldivers2 with permission from kboykboy

    Read-only. Reading or seeking past the end raises FormatError instead of
    growing the buffer.
    '''
    def __init__(self, data: bytes | bytearray = b"", name: str = ""):
        self.location = 0
        self.data = memoryview(bytes(data))
        self.name = name
        self.endian = "<"

    def __len__(self):
        return len(self.data)

    def seek(self, location: int): # Go To Position In Stream
        if location < 0 or location > len(self.data):
            raise FormatError(
                f"seek to {location:#x} is outside of a {len(self.data):#x} byte stream",
                self.location, self.name
            )
        self.location = location

    def tell(self) -> int: # Get Position In Stream
        return self.location

    def remaining(self) -> int:
        return len(self.data) - self.location

    def eof(self) -> bool:
        return self.location >= len(self.data)

    def read(self, length: int = -1) -> bytes: # read Bytes From Stream
        if length == -1:
            length = len(self.data) - self.location
        if length < 0 or self.location + length > len(self.data):
            raise FormatError(
                f"reading {length} bytes past end of stream", self.location, self.name
            )

        new_data = self.data[self.location:self.location+length]
        self.location += length
        return bytes(new_data)

    def advance(self, offset: int):
        self.seek(self.location + offset)

    def read_format(self, format: str, size: int):
        format = self.endian+format
        return struct.unpack(format, self.read(size))[0]

    def uint8_read(self) -> int:
        return self.read_format('B', 1)

    def uint16_read(self) -> int:
        return self.read_format('H', 2)

    def int32_read(self) -> int:
        return self.read_format('i', 4)

    def uint32_read(self) -> int:
        return self.read_format('I', 4)

    def float_read(self) -> float:
        return self.read_format('f', 4)

    def string_read(self, length: int) -> str:
        """
        Invalid UTF-8 bytes become U+FFFD.
        """
        return self.read(length).decode("utf-8", errors="replace")

    def sized_string_read(self) -> str:
        return self.string_read(self.uint32_read())


def is_integer(n: str):
    try:
        _ = int(n)
        return True
    except ValueError:
        return False

