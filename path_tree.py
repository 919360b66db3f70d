"""
Decision tree of a music switch container.

The tree is stored flattened: a table of fixed 12-byte records where record 0
is the root. The second field of a record is either a child music object id
(the record is an endpoint) or a packed (start index, count) pair pointing at
the node's children further down the table. The format has no explicit tag for
this; membership in the container's child id list decides it.
"""

import numpy

from const import PATH_RECORD_SIZE
from util import FormatError


PATH_RECORD_DTYPE = numpy.dtype([
    ("from_state_or_switch_id", "<u4"),
    ("union", "<u4"),
    ("unused", "<u4"),
])

assert PATH_RECORD_DTYPE.itemsize == PATH_RECORD_SIZE


class PathEndpoint:
    """
    from_state_or_switch_id - switch / state element id, 0 for default
    music_object_id - always one of the owning container's children
    """

    def __init__(self, from_state_or_switch_id: int = 0, music_object_id: int = 0):
        self.from_state_or_switch_id = from_state_or_switch_id
        self.music_object_id = music_object_id

    def is_endpoint(self) -> bool:
        return True

    def __repr__(self):
        return f"PathEndpoint({self.from_state_or_switch_id}, {self.music_object_id})"


class PathNode:
    """
    from_state_or_switch_id - switch / state element id, 0 for default
    children_start_at U16
    child_count U16
    """

    def __init__(
        self,
        from_state_or_switch_id: int = 0,
        children_start_at: int = 0,
        child_count: int = 0,
    ):
        self.from_state_or_switch_id = from_state_or_switch_id
        self.children_start_at = children_start_at
        self.child_count = child_count
        self.children: list[PathNode | PathEndpoint] = []

    def is_endpoint(self) -> bool:
        return False

    def __repr__(self):
        return (
            f"PathNode({self.from_state_or_switch_id}, "
            f"{self.children_start_at}, {self.child_count})"
        )


def read_path_table(data: bytes, child_ids: list[int], offset: int = 0, source: str = ""):
    """
    Materialise the tree rooted at record 0. Every record has at most one
    parent, so at most `record_count` elements are built.

    @exception
    - FormatError: a node addresses records outside the table, or a record is
    reached a second time (shared child ranges and cycles)

    @return
    - None for an empty table
    """
    record_count = len(data) // PATH_RECORD_SIZE
    if record_count == 0:
        return None

    records = numpy.frombuffer(data, dtype=PATH_RECORD_DTYPE, count=record_count)
    child_id_set = set(child_ids)

    def read_path_element(index: int):
        record = records[index]
        from_id = int(record["from_state_or_switch_id"])
        union = int(record["union"])

        if union in child_id_set:
            return PathEndpoint(from_id, union)

        node = PathNode(from_id, union & 0xFFFF, union >> 16)
        if node.children_start_at + node.child_count > record_count:
            raise FormatError(
                f"path record {index} addresses children "
                f"[{node.children_start_at}, {node.children_start_at + node.child_count}) "
                f"outside of a {record_count} record table",
                offset + index * PATH_RECORD_SIZE, source
            )
        return node

    root = read_path_element(0)
    visited = {0}
    # Nodes whose child range is not read yet
    stack: list[tuple[PathNode, int]] = []
    if not root.is_endpoint():
        stack.append((root, 0))

    while len(stack) > 0:
        node, index = stack.pop()
        start = node.children_start_at
        for child_index in range(start, start + node.child_count):
            if child_index in visited:
                raise FormatError(
                    f"path record {child_index} is reached again from record {index}",
                    offset + index * PATH_RECORD_SIZE, source
                )
            visited.add(child_index)
            child = read_path_element(child_index)
            node.children.append(child)
            if not child.is_endpoint():
                stack.append((child, child_index))

    return root


def iter_endpoints(root: PathNode | PathEndpoint | None):
    """
    Depth-first, table order.
    """
    if root == None:
        return
    stack = [root]
    while len(stack) > 0:
        top = stack.pop()
        if top.is_endpoint():
            yield top
        else:
            stack.extend(reversed(top.children))


def count_nodes(root: PathNode | PathEndpoint | None) -> tuple[int, int]:
    """
    @return
    - (# of internal nodes, # of endpoints)
    """
    nodes = endpoints = 0
    if root == None:
        return nodes, endpoints
    stack = [root]
    while len(stack) > 0:
        top = stack.pop()
        if top.is_endpoint():
            endpoints += 1
        else:
            nodes += 1
            stack.extend(top.children)
    return nodes, endpoints
