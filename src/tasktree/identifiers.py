"""
TASKTREE - Identifier Codec
===========================
Hierarchical ids: "1.2.3" is root task 1 -> its subtask 2 -> that subtask's
subtask 3. The first segment is global, the rest are sibling-local.
"""

from typing import NamedTuple, Sequence, Tuple, Union

from .errors import EmptyPath, MalformedIdentifier


class SubtaskAddress(NamedTuple):
    root_id: int
    path: Tuple[int, ...]

    def __str__(self) -> str:
        return generate_subtask_id(self.root_id, self.path)


def _positive_segment(part: str, raw: str) -> int:
    if not (part.isascii() and part.isdigit()):
        raise MalformedIdentifier(
            f"Invalid subtask ID format: {raw!r}. All parts must be positive integers"
        )
    value = int(part)
    if value <= 0:
        raise MalformedIdentifier(
            f"Invalid subtask ID format: {raw!r}. All parts must be positive integers"
        )
    return value


def parse_subtask_id(subtask_id: str) -> SubtaskAddress:
    """Parse "1.2.3" into SubtaskAddress(root_id=1, path=(2, 3))"""
    if not isinstance(subtask_id, str) or "." not in subtask_id:
        raise MalformedIdentifier(
            f"Invalid subtask ID format: {subtask_id!r}. "
            f'Must be in format "parentId.subtaskId" or "parentId.subtaskId.nestedId"'
        )
    parts = [_positive_segment(part, subtask_id) for part in subtask_id.split(".")]
    return SubtaskAddress(parts[0], tuple(parts[1:]))


def generate_subtask_id(root_id: int, path: Sequence[int]) -> str:
    """Join a root id and a non-empty path into "root.a.b" """
    if not path:
        raise EmptyPath("Path must be a non-empty sequence of subtask ids")
    return ".".join(str(part) for part in (root_id, *path))


def split_task_ref(ref: Union[int, str]) -> Tuple[int, Tuple[int, ...]]:
    """
    Accept either a root task id (5, "5") or a hierarchical id ("5.1.2").

    Returns (root_id, path); path is empty for a root task.
    """
    if isinstance(ref, bool):
        raise MalformedIdentifier(f"Invalid task ID: {ref!r}")
    if isinstance(ref, int):
        if ref <= 0:
            raise MalformedIdentifier(f"Invalid task ID: {ref!r}. Must be a positive integer")
        return ref, ()
    if isinstance(ref, str) and "." in ref:
        address = parse_subtask_id(ref)
        return address.root_id, address.path
    if isinstance(ref, str):
        return _positive_segment(ref.strip(), ref), ()
    raise MalformedIdentifier(f"Invalid task ID: {ref!r}")


def format_path(path: Sequence[int]) -> str:
    return ".".join(str(part) for part in path)
