"""
TASKTREE - Tree Navigator
=========================
Root-down lookups by segment path. Absence is an expected outcome here, so
lookups return None instead of raising.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .schema import TaskNode


@dataclass
class Container:
    """The node owning a sibling collection, and that collection"""
    owner: TaskNode
    siblings: List[TaskNode]


def find_node(root: TaskNode, path: Sequence[int]) -> Optional[TaskNode]:
    """Walk `path` through nested subtasks of `root`"""
    if not path:
        return None

    node: Optional[TaskNode] = None
    current = root.subtasks
    for segment in path:
        if current is None:
            return None
        node = next((child for child in current if child.id == segment), None)
        if node is None:
            return None
        current = node.subtasks
    return node


def find_container(root: TaskNode, path: Sequence[int]) -> Optional[Container]:
    """
    Locate the collection that holds (or would hold) the node at `path`.

    The owner gets an empty child collection if it had none.
    """
    if not path:
        return None

    if len(path) == 1:
        owner: Optional[TaskNode] = root
    else:
        owner = find_node(root, path[:-1])
    if owner is None:
        return None

    if owner.subtasks is None:
        owner.subtasks = []
    return Container(owner=owner, siblings=owner.subtasks)
