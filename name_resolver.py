"""
Music naming

Walks every root music switch container, appends the name of the switch or
state element that selects each path, and gives every audio source reached
through a playlist or segment the accumulated name plus positional suffixes.
"""

from const import HircType
from log import logger
from name_map import NameMap
from sound_metadata import Vocabulary
from wwise_hierarchy import (
    MusicPlaylistContainer,
    MusicSegment,
    MusicSwitchContainer,
    WwiseHierarchy,
)


def join_name(name: str, segment: str):
    if name == "":
        return segment
    return f"{name}_{segment}"


class NameResolver:

    def __init__(
        self,
        hierarchy: WwiseHierarchy,
        vocabulary: Vocabulary,
        skip_state_group_roots: bool = False
    ):
        self.hierarchy = hierarchy
        self.vocabulary = vocabulary
        self.skip_state_group_roots = skip_state_group_roots
        self.name_map = NameMap()

    def find_roots(self) -> list[MusicSwitchContainer]:
        """
        A switch container is a root when no other switch container lists it
        as a child. Encounter order.
        """
        switches = self.hierarchy.get_music_switch_containers()
        referenced: set[int] = set()
        for switch in switches:
            referenced.update(
                child for child in switch.children if child != switch.hierarchy_id
            )
        return [switch for switch in switches if switch.hierarchy_id not in referenced]

    def find_unreachable(self, roots: list[MusicSwitchContainer]):
        """
        Switch containers no root leads to. Only possible when switch
        containers reference each other in a cycle.
        """
        reached: set[int] = set()
        stack = [root.hierarchy_id for root in reversed(roots)]
        while len(stack) > 0:
            top = stack.pop()
            if top in reached:
                continue
            reached.add(top)
            entry = self.hierarchy.get_entry(top)
            if entry == None or entry.hierarchy_type != HircType.MusicSwitch:
                continue
            stack.extend(entry.children)
        return [
            switch for switch in self.hierarchy.get_music_switch_containers()
            if switch.hierarchy_id not in reached
        ]

    def resolve(self) -> NameMap:
        roots = self.find_roots()
        logger.info(
            f"Resolving music names from {len(roots)} root switch containers "
            f"out of {len(self.hierarchy.get_music_switch_containers())}"
        )

        for root in roots:
            governing_group = root.get_governing_group()
            if self.skip_state_group_roots and governing_group != None and governing_group[1]:
                logger.debug(
                    f"Skipping switch container {root.hierarchy_id} governed by "
                    f"state group {governing_group[0]}"
                )
                continue
            self.traverse_switch("", root, set())

        for switch in self.find_unreachable(roots):
            logger.warning(
                f"Switch container {switch.hierarchy_id} is not reachable from "
                f"any root (mutually referencing switch containers?). Its "
                f"music is left unnamed."
            )

        logger.info(f"Resolved {len(self.name_map)} music names")

        return self.name_map

    def traverse_switch(self, name: str, switch: MusicSwitchContainer, active: set[int]):
        """
        @param active - switch containers on the current descent, never
        entered twice
        """
        active.add(switch.hierarchy_id)

        pathed: set[int] = set()

        if switch.paths != None and not switch.paths.is_endpoint():
            for path in switch.paths.children:
                if not path.is_endpoint():
                    continue
                element_name = self.vocabulary.get_element_name(path.from_state_or_switch_id)
                if element_name == None:
                    continue
                pathed.add(path.music_object_id)
                self.descend(join_name(name, element_name), path.music_object_id, active)

        for child_id in switch.children:
            if child_id not in pathed:
                self.descend(name, child_id, active)

        active.remove(switch.hierarchy_id)

    def descend(self, name: str, object_id: int, active: set[int]):
        entry = self.hierarchy.get_entry(object_id)
        if entry == None:
            return

        match entry.hierarchy_type:
            case HircType.MusicSwitch:
                if object_id in active:
                    logger.warning(
                        f"Switch container {object_id} is its own descendant. "
                        f"Not following the cycle."
                    )
                    return
                self.traverse_switch(name, entry, active)
            case HircType.MusicRandomSequence:
                self.name_playlist(name, entry)
            case HircType.MusicSegment:
                self.name_segment(name, entry)
            case _:
                pass

    def name_playlist(self, name: str, playlist: MusicPlaylistContainer):
        many_segments = len(playlist.segment_ids) > 1
        for i, segment_id in enumerate(playlist.segment_ids):
            segment = self.hierarchy.get_entry(segment_id)
            if segment == None or segment.hierarchy_type != HircType.MusicSegment:
                continue
            self.name_segment(f"{name}_{i}" if many_segments else name, segment)

    def name_segment(self, name: str, segment: MusicSegment):
        many_tracks = len(segment.track_ids) > 1
        for j, track_id in enumerate(segment.track_ids):
            track = self.hierarchy.get_entry(track_id)
            if track == None or track.hierarchy_type != HircType.MusicTrack:
                continue
            track_name = f"{name}_{j}" if many_tracks else name
            many_sources = len(track.audio_file_ids) > 1
            for k, audio_file_id in enumerate(track.audio_file_ids):
                self.name_map.add(
                    f"{track_name}_{k}" if many_sources else track_name, audio_file_id
                )


def resolve_names(
    hierarchy: WwiseHierarchy,
    vocabulary: Vocabulary,
    skip_state_group_roots: bool = False
) -> NameMap:
    return NameResolver(hierarchy, vocabulary, skip_state_group_roots).resolve()
