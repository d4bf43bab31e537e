"""
Root resolution: where the canonical tree and each client's config live
for a given scope.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .types import InheritanceChain, Scope

CANONICAL_DIRNAME = ".agents"


@dataclass(frozen=True)
class ResolvedRoots:
    canonical_root: Path
    claude_root: Path
    factory_root: Path
    codex_root: Path
    cursor_root: Path
    opencode_root: Path
    opencode_config_root: Path
    project_root: Path
    home_dir: Path


@dataclass(frozen=True)
class MonorepoResolvedRoots(ResolvedRoots):
    chain: InheritanceChain = InheritanceChain()
    effective_root: Optional[Path] = None
    merged_dir: Optional[Path] = None


def _client_roots(base: Path, home_dir: Path) -> dict:
    return {
        "claude_root": base / ".claude",
        "factory_root": base / ".factory",
        "codex_root": base / ".codex",
        "cursor_root": base / ".cursor",
        "opencode_root": base / ".opencode",
        "opencode_config_root": home_dir / ".config" / "opencode",
    }


def resolve_roots(
    scope: Scope,
    project_root: Optional[Path] = None,
    home_dir: Optional[Path] = None,
) -> ResolvedRoots:
    home = Path(home_dir) if home_dir else Path.home()
    project = Path(project_root or Path.cwd()).resolve()

    base = home if scope == Scope.GLOBAL else project
    return ResolvedRoots(
        canonical_root=base / CANONICAL_DIRNAME,
        project_root=project,
        home_dir=home,
        **_client_roots(base, home),
    )


def resolve_monorepo_roots(
    chain: InheritanceChain,
    project_root: Optional[Path] = None,
    home_dir: Optional[Path] = None,
) -> MonorepoResolvedRoots:
    """
    Roots for a chained tree.

    Client targets always sit next to the nearest canonical root. The merge
    directory only exists when there is something to merge with.
    """
    home = Path(home_dir) if home_dir else Path.home()

    if chain.current:
        effective_root = chain.current
    elif chain.ancestors:
        effective_root = chain.ancestors[0]
    elif chain.global_root:
        effective_root = chain.global_root
    else:
        effective_root = home / CANONICAL_DIRNAME

    project = chain.current.parent if chain.current else Path(project_root or Path.cwd()).resolve()

    merged_dir = None
    if chain.current and (chain.ancestors or chain.global_root):
        merged_dir = chain.current / "merged"

    return MonorepoResolvedRoots(
        canonical_root=effective_root,
        project_root=project,
        home_dir=home,
        chain=chain,
        effective_root=effective_root,
        merged_dir=merged_dir,
        **_client_roots(project, home),
    )
