"""
TASKTREE - Dependency Validator
===============================
Checks that dependency references resolve, and walks the dependency graph
(not the containment tree) to detect cycles before restructuring.
"""

from typing import List, Optional, Sequence, Set

from .errors import TaskTreeError
from .identifiers import parse_subtask_id
from .mutations import flatten_subtasks
from .navigator import find_node
from .schema import DependencyFinding, DependencyRef, TaskDocument, TaskNode


def validate_dependencies(root: TaskNode) -> List[DependencyFinding]:
    """
    Report every subtask dependency that does not name a node in this subtree.

    Valid targets are each node's full id ("1.2.3") and its bare id. References
    that point outside `root` are always reported.
    """
    entries = list(flatten_subtasks(root))
    valid: Set[DependencyRef] = set()
    for entry in entries:
        valid.add(entry.full_id)
        valid.add(entry.node.id)

    findings = []
    for entry in entries:
        for ref in entry.node.dependencies:
            if ref not in valid:
                findings.append(DependencyFinding(node_id=entry.full_id, invalid_ref=ref))
    return findings


def resolve_reference(tasks: Sequence[TaskNode], ref: DependencyRef) -> Optional[TaskNode]:
    """Find the root task or subtask a dependency reference names"""
    if isinstance(ref, int):
        return next((task for task in tasks if task.id == ref), None)
    try:
        address = parse_subtask_id(ref)
    except TaskTreeError:
        return None
    root = next((task for task in tasks if task.id == address.root_id), None)
    if root is None:
        return None
    return find_node(root, address.path)


def _ref_root_id(ref: DependencyRef) -> Optional[int]:
    if isinstance(ref, int):
        return ref
    try:
        return parse_subtask_id(ref).root_id
    except TaskTreeError:
        return None


def is_task_dependent_on(
    tasks: Sequence[TaskNode],
    start: TaskNode,
    target_id: int,
) -> bool:
    """
    True if any chain of dependency edges leads from `start` to root task
    `target_id` (or to one of its subtasks).
    """
    seen: Set[int] = set()
    pending = [start]
    while pending:
        node = pending.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))

        for ref in node.dependencies:
            if _ref_root_id(ref) == target_id:
                return True
            resolved = resolve_reference(tasks, ref)
            if resolved is not None:
                pending.append(resolved)
    return False


def validate_document_dependencies(document: TaskDocument) -> List[DependencyFinding]:
    """
    Validate references across every root of the document.

    Per-root findings are kept only if the reference also fails to resolve
    document-wide; root-level dependencies are checked against the roots.
    """
    findings: List[DependencyFinding] = []
    for task in document.tasks:
        for ref in task.dependencies:
            if resolve_reference(document.tasks, ref) is None:
                findings.append(DependencyFinding(node_id=str(task.id), invalid_ref=ref))
        for finding in validate_dependencies(task):
            if resolve_reference(document.tasks, finding.invalid_ref) is None:
                findings.append(finding)
    return findings
