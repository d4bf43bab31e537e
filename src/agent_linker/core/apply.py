"""
Link plan applier.

Safe to re-run: correct links are left alone, stale links are replaced,
real files and directories are never overwritten.
"""

import os
from pathlib import Path
from typing import Optional

from .backup import BackupSession
from .errors import LinkConflictError, LinkIOError
from .types import (
    ApplyResult,
    ConflictTask,
    EnsureSourceTask,
    LinkPlan,
    LinkTask,
    NoopTask,
    SourceKind,
)


def create_link(source: Path, target: Path, kind: SourceKind) -> None:
    """
    Create target -> source.

    Directories fall back to an NTFS junction on Windows when the process
    lacks the symlink privilege.
    """
    is_dir = kind == SourceKind.DIR
    try:
        target.symlink_to(source, target_is_directory=is_dir)
    except OSError:
        if os.name != "nt" or not is_dir:
            raise
        import _winapi

        _winapi.CreateJunction(str(source), str(target))


def apply_link_task(task: LinkTask) -> str:
    """Apply a single link task. Returns "created", "updated" or "skipped"."""
    if not task.source.exists():
        return "skipped"

    task.target.parent.mkdir(parents=True, exist_ok=True)
    replaced = False
    if task.target.is_symlink():
        task.target.unlink()
        replaced = True
    create_link(task.source, task.target, task.kind)
    return "updated" if replaced or task.replace_symlink else "created"


def apply_link_plan(
    plan: LinkPlan,
    backup: Optional[BackupSession] = None,
    force: bool = False,
    dry_run: bool = False,
) -> ApplyResult:
    """
    Apply every change in the plan.

    Without `force`, conflicts abort before anything is touched. With
    `force`, conflicting targets are left as they are and the rest is
    applied. A dry run only counts.
    """
    if plan.conflicts and not force:
        raise LinkConflictError(plan.conflicts)

    result = ApplyResult(conflicts=len(plan.conflicts), dry_run=dry_run)

    for task in plan.tasks:
        if isinstance(task, LinkTask):
            if dry_run:
                result.applied += 1
                if task.replace_symlink:
                    result.updated += 1
                else:
                    result.created += 1
                continue

            try:
                if backup is not None:
                    backup.record(task.target)
                outcome = apply_link_task(task)
            except OSError as e:
                raise LinkIOError(task.source, task.target, str(e)) from e

            if outcome == "skipped":
                result.skipped += 1
            else:
                result.applied += 1
                if outcome == "updated":
                    result.updated += 1
                else:
                    result.created += 1
        elif isinstance(task, (NoopTask, EnsureSourceTask)):
            result.skipped += 1
        elif isinstance(task, ConflictTask):
            continue
        else:
            raise TypeError(f"Unknown link task: {task!r}")

    return result
