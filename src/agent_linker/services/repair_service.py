"""
Business logic for 'agent-linker repair'.

Fast, silent, idempotent relinking meant for unattended use (e.g. a
post-install hook). Conflicts never block; per-target failures are
collected instead of raised.
"""

from pathlib import Path
from typing import List, Optional, Tuple

from agent_linker.core.apply import create_link
from agent_linker.core.chain import detect_chain, has_parent
from agent_linker.core.detect import get_detected_clients
from agent_linker.core.errors import MergeError
from agent_linker.core.mappings import get_mappings, get_monorepo_mappings
from agent_linker.core.paths import CANONICAL_DIRNAME
from agent_linker.core.plan import points_to
from agent_linker.core.types import ALL_CLIENTS, Client, InheritanceChain, RepairResult, Scope, SourceKind

NO_TREE_MESSAGE = "No .agents folder found (local or global). Run 'agent-linker init' first."


def detect_scope(
    cwd: Optional[Path] = None, home_dir: Optional[Path] = None
) -> Optional[Tuple[Scope, Optional[InheritanceChain]]]:
    """Project .agents (chained or not) beats the global ~/.agents."""
    cwd = Path(cwd or Path.cwd()).resolve()
    home = Path(home_dir or Path.home()).resolve()

    if cwd != home and (cwd / CANONICAL_DIRNAME).is_dir():
        chain = detect_chain(cwd, home)
        if has_parent(chain):
            return Scope.MONOREPO, chain
        return Scope.PROJECT, None

    if (home / CANONICAL_DIRNAME).is_dir():
        return Scope.GLOBAL, None

    return None


def default_clients(home_dir: Optional[Path] = None) -> List[Client]:
    detected = get_detected_clients(home_dir)
    return detected if detected else list(ALL_CLIENTS)


def ensure_symlink(source: Path, target: Path, kind: SourceKind) -> str:
    """Returns "created", "updated" or "skipped". Raises OSError on failure."""
    if not source.exists():
        return "skipped"

    if target.is_symlink():
        if points_to(target, source):
            return "skipped"
        target.unlink()
        target.parent.mkdir(parents=True, exist_ok=True)
        create_link(source, target, kind)
        return "updated"

    if target.exists():
        return "skipped"

    target.parent.mkdir(parents=True, exist_ok=True)
    create_link(source, target, kind)
    return "created"


def run_repair(
    cwd: Optional[Path] = None,
    home_dir: Optional[Path] = None,
    clients: Optional[List[Client]] = None,
) -> RepairResult:
    detected = detect_scope(cwd, home_dir)
    if detected is None:
        return RepairResult(scope=Scope.PROJECT, errors=[NO_TREE_MESSAGE])

    scope, chain = detected
    selected = clients if clients is not None else default_clients(home_dir)

    result = RepairResult(scope=scope)
    if scope == Scope.MONOREPO and chain is not None:
        try:
            mappings = get_monorepo_mappings(chain, cwd, home_dir, selected)
        except MergeError as e:
            result.errors.append(str(e))
            return result
    else:
        mappings = get_mappings(scope, cwd, home_dir, selected)

    for mapping in mappings:
        for target in mapping.targets:
            try:
                outcome = ensure_symlink(mapping.source, Path(target), mapping.kind)
            except OSError as e:
                result.errors.append(f"Failed to link {target}: {e}")
                continue
            if outcome == "created":
                result.created += 1
            elif outcome == "updated":
                result.updated += 1
            else:
                result.skipped += 1
    return result
