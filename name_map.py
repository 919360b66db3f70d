"""
Insertion ordered name -> audio source id mapping.

Collisions are renamed by looking at what was inserted before, so the numbering
depends on insertion order. Resolving the same banks in the same order always
gives the same map; a different bank order may number collisions differently.
"""

from log import logger
from util import is_integer


class NameMap:

    def __init__(self):
        self.names: dict[str, int] = {}

    def __contains__(self, name: str):
        return name in self.names

    def __len__(self):
        return len(self.names)

    def __getitem__(self, name: str):
        return self.names[name]

    def __iter__(self):
        return iter(self.names)

    def items(self):
        return self.names.items()

    def get(self, name: str, default: int | None = None):
        return self.names.get(name, default)

    def add(self, candidate: str, audio_id: int) -> str:
        """
        Insert `candidate`, renaming on collision.

        - Candidate is free: inserted as is.
        - Most recent key with the same underscore count and the same prefix
        up to the final segment ends in an integer i: the new entry is stored
        under that key with the trailing i replaced by i + 1. Stored keys are
        left alone.
        - Otherwise: the existing entry is renamed in place to `candidate_0`
        and the new one is inserted as `candidate_1`.

        @return
        - The key the new entry was stored under
        """
        if candidate not in self.names:
            self.names[candidate] = audio_id
            return candidate

        underscore_count = candidate.count("_")
        cut = candidate.rfind("_") + 1
        prefix = candidate[:cut]

        latest = self._latest_sibling(prefix, underscore_count)
        # The colliding key itself always qualifies
        assert latest != None

        last_segment = latest.split("_")[underscore_count]
        if is_integer(last_segment):
            last_index = int(last_segment)
            if str(last_index) != last_segment:
                logger.warning(
                    f"Name {latest} has a suffix that does not round trip as an "
                    f"integer. Numbering after it may be inconsistent."
                )
            name = latest[:cut] + latest[cut + len(str(abs(last_index))):] + str(last_index + 1)
            if name in self.names:
                name = self._next_free(prefix, last_index + 2)
            self.names[name] = audio_id
            return name

        first = f"{candidate}_0"
        if first not in self.names:
            self.rename(candidate, first)
        name = self._next_free(f"{candidate}_", 1)
        self.names[name] = audio_id
        return name

    def rename(self, old: str, new: str):
        """
        Rename a key without moving it in the insertion order.
        """
        if old not in self.names:
            raise KeyError(old)
        if new in self.names:
            raise KeyError(f"{new} already exists")
        self.names = {
            (new if name == old else name): audio_id
            for name, audio_id in self.names.items()
        }

    def reverse(self) -> dict[int, str]:
        """
        @return
        - audio id -> first name given to it in insertion order
        """
        names_by_id: dict[int, str] = {}
        for name, audio_id in self.names.items():
            if audio_id not in names_by_id:
                names_by_id[audio_id] = name
        return names_by_id

    def to_dict(self):
        return dict(self.names)

    def _latest_sibling(self, prefix: str, underscore_count: int):
        for name in reversed(self.names):
            if name.count("_") == underscore_count and name.startswith(prefix):
                return name
        return None

    def _next_free(self, prefix: str, start: int):
        index = start
        while f"{prefix}{index}" in self.names:
            index += 1
        return f"{prefix}{index}"
