import os

from typing_extensions import Self

from log import logger
from util import FormatError, MemoryStream


class Element:
    """
    A selectable value of a switch or state group
    """

    def __init__(self, element_id: int = 0, name: str = ""):
        self.id = element_id
        self.name = name

    def __repr__(self):
        return f"Element({self.id}, {self.name!r})"


class ElementGroup:

    def __init__(self, group_id: int = 0, name: str = "", is_state_group: bool = False):
        self.group_id = group_id
        self.name = name
        self.is_state_group = is_state_group
        self.children: list[Element] = []

    @classmethod
    def from_memory_stream(cls, stream: MemoryStream, is_state_group: bool):
        group = cls(is_state_group=is_state_group)
        group.group_id = stream.uint32_read()
        group.name = stream.sized_string_read()
        for _ in range(stream.uint32_read()):
            element_id = stream.uint32_read()
            group.children.append(Element(element_id, stream.sized_string_read()))
        return group


class SoundEvent:

    def __init__(self, event_id: int = 0, name: str = ""):
        self.id = event_id
        self.name = name
        self.sound_ids: list[int] = []

    @classmethod
    def from_memory_stream(cls, stream: MemoryStream):
        event = cls()
        event.id = stream.uint32_read()
        event.name = stream.sized_string_read()
        stream.float_read()
        stream.uint16_read()
        stream.uint32_read()
        stream.uint32_read()
        event.sound_ids = [stream.uint32_read() for _ in range(stream.uint32_read())]
        stream.advance(4 * stream.uint32_read()) # soundbank ids
        stream.advance(4 * stream.uint32_read()) # path node offsets
        return event


class Vocabulary:
    """
    Element id -> (element, owning group). When an id shows up in both, the
    switch group wins over the state group, and an earlier group wins over a
    later one.
    """

    def __init__(self, switch_groups: list[ElementGroup], state_groups: list[ElementGroup]):
        self.elements: dict[int, tuple[Element, ElementGroup]] = {}
        for group in [*switch_groups, *state_groups]:
            for element in group.children:
                if element.id not in self.elements:
                    self.elements[element.id] = (element, group)

    def get_element_name(self, element_id: int) -> str | None:
        found = self.elements.get(element_id)
        if found == None:
            return None
        return found[0].name


class SoundMetadata:
    """
    soundmetadata.bin

    Only the switch / state vocabulary and the sound events are kept. The
    package, sound, bank, effect and parameter sections are read through to
    reach them.
    """

    def __init__(self):
        self.version: int = 0
        self.switch_groups: list[ElementGroup] = []
        self.state_groups: list[ElementGroup] = []
        self.sound_events: list[SoundEvent] = []
        self.path = ""

    @classmethod
    def from_file(cls, path: str) -> Self:
        metadata = cls()
        metadata.path = path
        with open(path, "rb") as f:
            stream = MemoryStream(f.read(), os.path.basename(path))
        metadata.load(stream)
        return metadata

    def load(self, stream: MemoryStream):
        """
        @exception
        - FormatError
        """
        self.version = stream.uint32_read()

        # [Packages]
        for _ in range(self._count_read(stream, signed=True)):
            stream.advance(stream.uint32_read())
            stream.advance(4)

        # [Sounds]
        for _ in range(self._count_read(stream, signed=True)):
            stream.advance(stream.uint32_read())
            for _ in range(stream.uint32_read()):
                stream.advance(4)
                stream.advance(4 * stream.uint32_read())

        # [Banks]
        for _ in range(self._count_read(stream, signed=True)):
            stream.advance(stream.uint32_read())
            stream.advance(4)

        # [Effects] and [Parameters]
        for _ in range(2):
            for _ in range(stream.uint32_read()):
                stream.advance(4)
                stream.advance(stream.uint32_read())

        # [Switch Groups]
        self.switch_groups = [
            ElementGroup.from_memory_stream(stream, False)
            for _ in range(stream.uint32_read())
        ]

        # [State Groups]
        self.state_groups = [
            ElementGroup.from_memory_stream(stream, True)
            for _ in range(self._count_read(stream, signed=True))
        ]

        # [Event Path Nodes]
        stream.advance(stream.uint32_read())

        # [Events]
        self.sound_events = [
            SoundEvent.from_memory_stream(stream)
            for _ in range(self._count_read(stream, signed=True))
        ]

        logger.info(
            f"Loaded {stream.name}: {len(self.switch_groups)} switch groups, "
            f"{len(self.state_groups)} state groups, {len(self.sound_events)} events"
        )

    @staticmethod
    def _count_read(stream: MemoryStream, signed: bool = False):
        if not signed:
            return stream.uint32_read()
        count = stream.int32_read()
        if count < 0:
            raise FormatError(
                f"negative section count {count}", stream.tell() - 4, stream.name
            )
        return count

    def get_vocabulary(self):
        return Vocabulary(self.switch_groups, self.state_groups)

    def find_sound_event(self, sound_id: int):
        """
        @return
        - (event, index of the sound in the event) of the first event that
        plays the sound, or None
        """
        for event in self.sound_events:
            if sound_id in event.sound_ids:
                return event, event.sound_ids.index(sound_id)
        return None
