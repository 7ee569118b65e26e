#!/usr/bin/env python3
"""
TASKTREE - CLI Interface
========================
Command-line tool for editing hierarchical task documents.

Usage:
    tasktree show
    tasktree show 1.2 --json
    tasktree add-subtask 1.2 --title "Write parser tests"
    tasktree add-subtask 3 --from-task 5
    tasktree update-subtask 1.2.1 --status done
    tasktree remove-subtask 1.2.1
    tasktree validate
    tasktree migrate --check
    tasktree migrate
    tasktree restore .taskmaster/backups/backup-2026-01-28T10-00-00-000000Z
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .config import TaskTreeSettings
from .errors import TaskTreeError
from .manager import TaskManager
from .mutations import flatten_subtasks
from .schema import TaskDocument, TaskPriority, TaskStatus

STATUS_ICONS = {
    TaskStatus.PENDING: "⏳",
    TaskStatus.IN_PROGRESS: "🔄",
    TaskStatus.DONE: "✅",
    TaskStatus.DEFERRED: "⏸️",
    TaskStatus.CANCELLED: "❌",
    TaskStatus.REVIEW: "👀",
}


def _dump(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def format_tree(document: TaskDocument) -> str:
    """Indented tree of every task and subtask with status icons"""
    lines = []
    for task in document.tasks:
        lines.append(f"{STATUS_ICONS.get(task.status, '📋')} {task.id}: {task.title}")
        for entry in flatten_subtasks(task):
            indent = "  " * entry.depth
            icon = STATUS_ICONS.get(entry.node.status, "📋")
            lines.append(f"{indent}{icon} {entry.full_id}: {entry.node.title}")
    return "\n".join(lines)


def _field_values(args: argparse.Namespace) -> Dict[str, Any]:
    values = {
        "title": args.title,
        "description": args.description,
        "details": args.details,
        "test_strategy": args.test_strategy,
        "status": args.status,
        "priority": args.priority,
        "dependencies": _parse_refs(args.depends_on),
    }
    return {key: value for key, value in values.items() if value is not None}


def _parse_refs(refs: Optional[List[str]]) -> Optional[List[Any]]:
    if refs is None:
        return None
    return [int(ref) if ref.isdigit() else ref for ref in refs]


def _add_field_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--title", help="Title")
    parser.add_argument("--description", help="Description")
    parser.add_argument("--details", help="Implementation notes")
    parser.add_argument("--test-strategy", help="Test strategy notes")
    parser.add_argument("--status", choices=[s.value for s in TaskStatus], help="Status")
    parser.add_argument("--priority", choices=[p.value for p in TaskPriority], help="Priority")
    parser.add_argument("--depends-on", nargs="*", metavar="ID", help="Dependency IDs (5 or 1.2.3)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tasktree",
        description="TASKTREE - Hierarchical task manager",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tasktree show                              Show the full task tree
  tasktree add-subtask 1.1 --title "Nested"  Add a subtask under subtask 1.1
  tasktree add-subtask 3 --from-task 5       Demote task 5 under task 3
  tasktree update-subtask 1.1.2 --status done
  tasktree validate --json                   Report broken dependencies
  tasktree migrate --check                   Show pending migrations
  tasktree backups                           List available backups
        """
    )
    parser.add_argument("--root", type=Path, help="Project root directory")
    parser.add_argument("--file", type=Path, help="Tasks file (relative to root)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    show_parser = subparsers.add_parser("show", help="Show the task tree or a single task")
    show_parser.add_argument("task_id", nargs="?", help="Task or subtask ID")
    show_parser.add_argument("--json", action="store_true", help="Output as JSON")

    add_parser = subparsers.add_parser("add-subtask", help="Add a subtask")
    add_parser.add_argument("parent_id", help="Parent task (5) or subtask (5.1) ID")
    add_parser.add_argument("--from-task", help="Convert this root task into the subtask")
    _add_field_arguments(add_parser)

    remove_parser = subparsers.add_parser("remove-subtask", help="Remove a subtask and its children")
    remove_parser.add_argument("subtask_id", help="Subtask ID (e.g. 1.2.3)")

    update_parser = subparsers.add_parser("update-subtask", help="Update subtask fields")
    update_parser.add_argument("subtask_id", help="Subtask ID (e.g. 1.2.3)")
    _add_field_arguments(update_parser)

    validate_parser = subparsers.add_parser("validate", help="Validate dependencies")
    validate_parser.add_argument("task_id", nargs="?", help="Limit to one root task")
    validate_parser.add_argument("--json", action="store_true", help="Output as JSON")

    stats_parser = subparsers.add_parser("stats", help="Subtask statistics for a task")
    stats_parser.add_argument("task_id", help="Root task ID")
    stats_parser.add_argument("--json", action="store_true", help="Output as JSON")

    migrate_parser = subparsers.add_parser("migrate", help="Upgrade a legacy tasks file")
    mode = migrate_parser.add_mutually_exclusive_group()
    mode.add_argument("--check", action="store_true", help="Only report what is needed")
    mode.add_argument("--status", action="store_true", help="Show migration status")
    migrate_parser.add_argument("--step", action="append", help="Run only this step (repeatable)")
    migrate_parser.add_argument("--json", action="store_true", help="Output as JSON")

    subparsers.add_parser("backup", help="Snapshot the tasks file and config")

    backups_parser = subparsers.add_parser("backups", help="List backups")
    backups_parser.add_argument("--json", action="store_true", help="Output as JSON")

    restore_parser = subparsers.add_parser("restore", help="Restore a backup over the live files")
    restore_parser.add_argument("backup_path", help="Backup directory")

    return parser


def _settings(args: argparse.Namespace) -> TaskTreeSettings:
    overrides: Dict[str, Any] = {}
    if args.root is not None:
        overrides["project_root"] = args.root
    if args.file is not None:
        overrides["tasks_file"] = args.file
    return TaskTreeSettings(**overrides)


def run(args: argparse.Namespace, manager: TaskManager) -> int:
    if args.command == "show":
        if args.task_id:
            node = manager.get(args.task_id)
            if args.json:
                _dump(node.model_dump(mode="json", by_alias=True))
            else:
                print(f"{STATUS_ICONS.get(node.status, '📋')} [{args.task_id}] {node.title}")
                print(f"   Status: {node.status.value} | Priority: {node.priority.value}")
                if node.description:
                    print(f"   {node.description}")
                if node.dependencies:
                    print(f"   Depends on: {', '.join(str(d) for d in node.dependencies)}")
                for child in node.children:
                    print(f"   - {args.task_id}.{child.id}: {child.title} ({child.status.value})")
        else:
            document = manager.load()
            if args.json:
                _dump(document.to_json_dict())
            elif not document.tasks:
                print("No tasks found")
            else:
                print(format_tree(document))

    elif args.command == "add-subtask":
        if args.from_task:
            added = manager.add_subtask(args.parent_id, existing_task_id=args.from_task)
            print(f"🔀 Converted task {args.from_task} to subtask {added.full_id}")
        else:
            if not args.title:
                print("❌ --title is required unless --from-task is given", file=sys.stderr)
                return 1
            added = manager.add_subtask(args.parent_id, data=_field_values(args))
            print(f"➕ Created subtask {added.full_id}: {added.node.title}")

    elif args.command == "remove-subtask":
        removed = manager.remove_subtask(args.subtask_id)
        print(f"🗑️ Removed {args.subtask_id}: {removed.title}")

    elif args.command == "update-subtask":
        node = manager.update_subtask(args.subtask_id, _field_values(args))
        print(f"✏️ Updated {args.subtask_id}: {node.title} ({node.status.value})")

    elif args.command == "validate":
        findings = manager.validate_dependencies(args.task_id)
        if args.json:
            _dump([finding.model_dump(mode="json") for finding in findings])
        elif findings:
            for finding in findings:
                print(f"⛔ {finding.message}")
        else:
            print("✅ All dependencies are valid")
        return 1 if findings else 0

    elif args.command == "stats":
        stats = manager.statistics(args.task_id)
        if args.json:
            _dump(stats.model_dump(mode="json"))
        else:
            print(f"📊 Task {args.task_id}: {stats.total} subtasks, max depth {stats.max_depth}")
            for status, count in sorted(stats.by_status.items()):
                print(f"   {status}: {count}")

    elif args.command == "migrate":
        if args.check:
            result = manager.migrations.check_migration_needed()
            if args.json:
                _dump(result.model_dump(mode="json"))
            else:
                print(result.reason)
        elif args.status:
            status = manager.migrations.get_status()
            _dump(status.model_dump(mode="json"))
        else:
            report = manager.migrations.run_migrations(args.step)
            if args.json:
                _dump(report.model_dump(mode="json"))
            else:
                print(report.message)
                for name, result in report.results.items():
                    icon = "✅" if result.success else "❌"
                    detail = result.error["message"] if result.error else result.details
                    print(f"  {icon} {name}: {detail}")
                if report.backup:
                    print(f"🗄️ Backup: {report.backup.path}")
            return 0 if report.success else 1

    elif args.command == "backup":
        handle = manager.backup()
        print(f"🗄️ Backup created: {handle.path}")

    elif args.command == "backups":
        handles = manager.backups.list_backups()
        if args.json:
            _dump([handle.model_dump(mode="json") for handle in handles])
        elif not handles:
            print("No backups found")
        else:
            for handle in handles:
                print(f"  {handle.name}  ({', '.join(handle.files)})")

    elif args.command == "restore":
        manager.restore(args.backup_path)
        print(f"♻️ Restored from {args.backup_path}")

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    settings = _settings(args)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level_value,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        return run(args, TaskManager(settings=settings))
    except TaskTreeError as e:
        if getattr(args, "json", False):
            _dump({"success": False, "error": e.to_dict()})
        else:
            print(f"❌ {e.kind.value}: {e.message}", file=sys.stderr)
        return 1
    except ValidationError as e:
        messages = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
        if getattr(args, "json", False):
            _dump({"success": False, "error": {"code": "InvalidInput", "message": messages}})
        else:
            print(f"❌ InvalidInput: {messages}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
