"""
Link plan builder.

Classifies every (source, target) pair without touching the filesystem:
missing source, fresh link, correct link, stale link, or conflict.
"""

import os
from pathlib import Path
from typing import List, Optional, Sequence

from .mappings import get_mappings, get_monorepo_mappings
from .types import (
    AnyLinkTask,
    Client,
    ConflictTask,
    EnsureSourceTask,
    InheritanceChain,
    LinkPlan,
    LinkTask,
    Mapping,
    NoopTask,
    Scope,
)


def read_link_target(target: Path) -> Optional[Path]:
    """Absolute destination of a symlink, or None if target is not one."""
    try:
        raw = os.readlink(target)
    except OSError:
        return None
    dest = Path(raw)
    if not dest.is_absolute():
        dest = Path(target).parent / dest
    return Path(os.path.abspath(dest))


def points_to(target: Path, source: Path) -> bool:
    dest = read_link_target(target)
    if dest is None:
        return False
    if dest == Path(os.path.abspath(source)):
        return True
    return os.path.realpath(dest) == os.path.realpath(source)


def classify_target(mapping: Mapping, target: Path) -> AnyLinkTask:
    if not mapping.source.exists():
        return EnsureSourceTask(path=mapping.source, target=target, kind=mapping.kind)

    if target.is_symlink():
        if points_to(target, mapping.source):
            return NoopTask(source=mapping.source, target=target)
        return LinkTask(source=mapping.source, target=target, kind=mapping.kind, replace_symlink=True)

    if target.exists():
        what = "directory" if target.is_dir() else "file"
        return ConflictTask(
            source=mapping.source,
            target=target,
            reason=f"existing {what} is not a symlink",
            kind=mapping.kind,
        )

    return LinkTask(source=mapping.source, target=target, kind=mapping.kind)


def build_link_plan(mappings: Sequence[Mapping]) -> LinkPlan:
    plan = LinkPlan()
    for mapping in mappings:
        for target in mapping.targets:
            task = classify_target(mapping, Path(target))
            plan.tasks.append(task)
            if isinstance(task, LinkTask):
                plan.changes.append(task)
            elif isinstance(task, ConflictTask):
                plan.conflicts.append(task)
    return plan


def build_scope_link_plan(
    scope: Scope,
    project_root: Optional[Path] = None,
    home_dir: Optional[Path] = None,
    clients: Optional[List[Client]] = None,
) -> LinkPlan:
    return build_link_plan(get_mappings(scope, project_root, home_dir, clients))


def build_monorepo_link_plan(
    chain: InheritanceChain,
    project_root: Optional[Path] = None,
    home_dir: Optional[Path] = None,
    clients: Optional[List[Client]] = None,
) -> LinkPlan:
    return build_link_plan(get_monorepo_mappings(chain, project_root, home_dir, clients))
