"""
TASKTREE - Mutation Engine
==========================
Insert, remove and update nodes addressed by path, and walk a subtree.

Sibling ids are "max existing + 1" and are never renumbered. Inserts append,
so sibling order is creation order.
"""

from typing import Any, Iterable, Iterator, List, Mapping, NamedTuple, Sequence, Tuple, Union

from .errors import ContainerNotFound, NodeNotFound
from .identifiers import format_path, generate_subtask_id
from .navigator import find_container, find_node
from .schema import (
    FlatSubtask,
    SubtaskDraft,
    SubtaskStatistics,
    TaskNode,
    TaskPatch,
)


class InsertResult(NamedTuple):
    node: TaskNode
    full_id: str


def next_subtask_id(siblings: Iterable[TaskNode]) -> int:
    return max((sibling.id for sibling in siblings), default=0) + 1


def insert_subtask(
    root: TaskNode,
    path: Sequence[int],
    payload: Union[SubtaskDraft, Mapping[str, Any]],
) -> InsertResult:
    """
    Append a new subtask into the collection addressed by `path`.

    `path` is the slot the new node will occupy: `path[:-1]` names the parent
    and the last segment is a placeholder replaced by the assigned id.
    """
    container = find_container(root, path)
    if container is None:
        raise ContainerNotFound(
            f"Cannot find parent container for path: {format_path(path)} in task {root.id}"
        )

    draft = payload if isinstance(payload, SubtaskDraft) else SubtaskDraft.model_validate(payload)
    node = TaskNode(
        id=next_subtask_id(container.siblings),
        subtasks=[],
        **draft.model_dump(),
    )
    container.siblings.append(node)

    full_id = generate_subtask_id(root.id, [*path[:-1], node.id])
    return InsertResult(node=node, full_id=full_id)


def remove_subtask(root: TaskNode, path: Sequence[int]) -> TaskNode:
    """Splice out the node at `path` together with its whole subtree"""
    container = find_container(root, path)
    if container is None:
        raise NodeNotFound(
            f"Cannot find parent container for path: {format_path(path)} in task {root.id}"
        )

    target_id = path[-1]
    for index, sibling in enumerate(container.siblings):
        if sibling.id == target_id:
            return container.siblings.pop(index)

    raise NodeNotFound(f"Subtask {generate_subtask_id(root.id, path)} not found")


def update_subtask(
    root: TaskNode,
    path: Sequence[int],
    patch: Union[TaskPatch, Mapping[str, Any]],
) -> TaskNode:
    """Apply the patch's mutable fields to the node at `path`, in place"""
    node = find_node(root, path)
    if node is None:
        raise NodeNotFound(f"Subtask not found at path: {format_path(path)} in task {root.id}")

    if not isinstance(patch, TaskPatch):
        patch = TaskPatch.model_validate(patch)
    for field_name, value in patch.changes().items():
        setattr(node, field_name, value)
    return node


def flatten_subtasks(root: TaskNode) -> Iterator[FlatSubtask]:
    """
    Yield every subtask under `root` in depth-first pre-order.

    A node comes right before its own children, and all of its descendants
    come before its next sibling. The root itself is not yielded.
    """
    stack: List[Tuple[Iterator[TaskNode], Tuple[int, ...]]] = [(iter(root.children), ())]
    while stack:
        siblings, prefix = stack[-1]
        node = next(siblings, None)
        if node is None:
            stack.pop()
            continue
        path = prefix + (node.id,)
        yield FlatSubtask(node=node, full_id=generate_subtask_id(root.id, path), path=path)
        if node.subtasks:
            stack.append((iter(node.subtasks), path))


def subtask_statistics(root: TaskNode) -> SubtaskStatistics:
    stats = SubtaskStatistics()
    for entry in flatten_subtasks(root):
        status = entry.node.status.value
        stats.total += 1
        stats.by_status[status] = stats.by_status.get(status, 0) + 1
        stats.by_depth[entry.depth] = stats.by_depth.get(entry.depth, 0) + 1
        stats.max_depth = max(stats.max_depth, entry.depth)
    stats.has_nested = stats.max_depth > 1
    return stats
