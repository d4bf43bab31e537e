"""
Business logic for 'agent-linker apply'.

Steps: 1) Resolve the canonical tree for the scope
       2) Build the link plan (merging the chain if needed)
       3) Surface conflicts, ask for confirmation
       4) Apply inside a backup session, rolling back on failure
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from agent_linker.core.apply import apply_link_plan
from agent_linker.core.backup import create_backup_session
from agent_linker.core.chain import detect_chain, get_effective_chain
from agent_linker.core.errors import LinkConflictError, LinkIOError
from agent_linker.core.mappings import get_mappings, get_monorepo_mappings
from agent_linker.core.paths import resolve_monorepo_roots, resolve_roots
from agent_linker.core.plan import build_link_plan
from agent_linker.core.types import ApplyResult, Client, InheritanceChain, LinkPlan, Scope


@dataclass
class ApplyOutcome:
    scope: Scope
    plan: LinkPlan = field(default_factory=LinkPlan)
    result: Optional[ApplyResult] = None
    canonical_root: Optional[Path] = None
    chain: Optional[InheritanceChain] = None
    backup_path: Optional[Path] = None
    cancelled: bool = False
    error: Optional[str] = None
    rollback_errors: List[str] = field(default_factory=list)


def prepare_plan(
    scope: Scope,
    clients: Optional[List[Client]] = None,
    project_root: Optional[Path] = None,
    home_dir: Optional[Path] = None,
) -> ApplyOutcome:
    """Resolve the canonical tree and build its plan without mutating links."""
    if scope == Scope.MONOREPO:
        chain = detect_chain(project_root, home_dir)
        if not get_effective_chain(chain):
            return ApplyOutcome(scope=scope, chain=chain, error=_no_tree_message(project_root, home_dir))
        roots = resolve_monorepo_roots(chain, project_root, home_dir)
        plan = build_link_plan(get_monorepo_mappings(chain, project_root, home_dir, clients))
        return ApplyOutcome(scope=scope, plan=plan, canonical_root=roots.canonical_root, chain=chain)

    roots = resolve_roots(scope, project_root, home_dir)
    if not roots.canonical_root.is_dir():
        return ApplyOutcome(
            scope=scope,
            error=f"No .agents folder at {roots.canonical_root}. Run 'agent-linker init' first.",
        )
    plan = build_link_plan(get_mappings(scope, project_root, home_dir, clients))
    return ApplyOutcome(scope=scope, plan=plan, canonical_root=roots.canonical_root)


def _no_tree_message(project_root: Optional[Path], home_dir: Optional[Path]) -> str:
    start = Path(project_root or Path.cwd())
    home = Path(home_dir or Path.home())
    return f"No .agents folder found between {start} and {home}. Run 'agent-linker init' first."


def run_apply(
    scope: Scope,
    clients: Optional[List[Client]] = None,
    project_root: Optional[Path] = None,
    home_dir: Optional[Path] = None,
    dry_run: bool = False,
    force: bool = False,
    confirm: Optional[Callable[[LinkPlan], bool]] = None,
    operation: str = "apply",
) -> ApplyOutcome:
    """
    Main apply logic.

    Args:
        scope: global | project | monorepo
        clients: Clients to link for (None = all)
        dry_run: Compute counts only, touch nothing
        force: Skip conflicting targets instead of refusing
        confirm: Called with the plan before mutating; False cancels

    Raises:
        LinkConflictError: Conflicts exist and force is not set
        LinkIOError: A link failed; targets were rolled back first
    """
    outcome = prepare_plan(scope, clients, project_root, home_dir)
    if outcome.error:
        return outcome

    plan = outcome.plan
    if dry_run:
        outcome.result = apply_link_plan(plan, force=True, dry_run=True)
        return outcome

    if plan.conflicts and not force:
        raise LinkConflictError(plan.conflicts)

    if not plan.changes:
        outcome.result = apply_link_plan(plan, force=True)
        return outcome

    if confirm is not None and not confirm(plan):
        outcome.cancelled = True
        return outcome

    backup = create_backup_session(outcome.canonical_root, scope, operation)
    try:
        outcome.result = apply_link_plan(plan, backup=backup, force=force)
    except LinkIOError:
        outcome.rollback_errors = backup.rollback()
        raise
    outcome.backup_path = backup.finalize()
    return outcome
