"""
Inheritance chain detection.

Walks from a starting directory up to (but never above) the home
directory collecting `.agents` roots. The result is a plain value; nothing
is cached between calls.
"""

from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .config import load_config
from .paths import CANONICAL_DIRNAME
from .types import InheritanceChain, NodeConfig


def detect_chain(start_dir: Optional[Path] = None, home_dir: Optional[Path] = None) -> InheritanceChain:
    home = Path(home_dir or Path.home()).resolve()
    current_dir = Path(start_dir or Path.cwd()).resolve()

    global_agents = home / CANONICAL_DIRNAME
    global_root = global_agents if global_agents.is_dir() else None

    found: List[Path] = []
    while True:
        candidate = current_dir / CANONICAL_DIRNAME
        if candidate.is_dir():
            found.append(candidate)

        parent = current_dir.parent
        if parent == current_dir or current_dir == home or parent == home:
            break
        current_dir = parent

    if not found:
        return InheritanceChain(global_root=global_root)

    return InheritanceChain(
        current=found[0],
        ancestors=tuple(found[1:]),
        global_root=global_root,
    )


def has_parent(chain: InheritanceChain) -> bool:
    return bool(chain.ancestors) or chain.global_root is not None


def get_effective_chain(chain: InheritanceChain) -> List[Path]:
    """Canonical precedence order: current, ancestors (nearest first), global."""
    effective: List[Path] = []
    if chain.current:
        effective.append(chain.current)
    effective.extend(chain.ancestors)
    if chain.global_root:
        effective.append(chain.global_root)
    return effective


def get_distinct_roots(chain: InheritanceChain) -> List[Path]:
    """
    Effective chain with repeated roots dropped.

    Starting at home makes ~/.agents both `current` and `global_root`; it
    must still be read, merged and watched only once.
    """
    distinct: List[Path] = []
    for root in get_effective_chain(chain):
        if root not in distinct:
            distinct.append(root)
    return distinct


def resolve_inheritance(
    start_dir: Optional[Path] = None, home_dir: Optional[Path] = None
) -> Tuple[InheritanceChain, Dict[Path, NodeConfig]]:
    """Detect the chain and load the config of every node in it."""
    chain = detect_chain(start_dir, home_dir)
    configs = {root: load_config(root) for root in get_effective_chain(chain)}
    return chain, configs


def format_inheritance_display(chain: InheritanceChain) -> List[str]:
    lines: List[str] = []

    if chain.current:
        lines.append(f"Current: {chain.current}")

    if chain.ancestors:
        lines.append("Inherits from:")
        for ancestor in chain.ancestors:
            lines.append(f"  └ {ancestor}")

    if chain.global_root:
        if not chain.ancestors:
            lines.append("Inherits from:")
        lines.append(f"  └ {chain.global_root} (global)")

    return lines
