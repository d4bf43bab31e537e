"""
Discovery of commands, skills and hooks visible through the chain.

Used for listing and for choosing what to `include` under compose; never
for linking.
"""

from pathlib import Path
from typing import Dict, List

from .chain import get_effective_chain
from .types import DiscoveredItem, InheritanceChain


def _discover_from_directory(agents_root: Path, resource: str, item_type: str, as_dirs: bool) -> List[DiscoveredItem]:
    resource_dir = agents_root / resource
    if not resource_dir.is_dir():
        return []

    items: List[DiscoveredItem] = []
    for entry in sorted(resource_dir.iterdir()):
        if as_dirs and entry.is_dir():
            items.append(DiscoveredItem(name=f"{entry.name}/", path=entry, source=agents_root, type=item_type))
        elif not as_dirs and entry.is_file():
            items.append(DiscoveredItem(name=entry.name, path=entry, source=agents_root, type=item_type))
    return items


def _discover(chain: InheritanceChain, resource: str, item_type: str, as_dirs: bool, exclude_current: bool) -> List[DiscoveredItem]:
    sources = get_effective_chain(chain)
    if exclude_current and chain.current:
        sources = [s for s in sources if s != chain.current]

    seen = set()
    found: List[DiscoveredItem] = []
    for agents_root in sources:
        for item in _discover_from_directory(agents_root, resource, item_type, as_dirs):
            # Nearer roots come first, so the first name seen wins.
            if item.name not in seen:
                seen.add(item.name)
                found.append(item)
    return found


def discover_commands(chain: InheritanceChain, exclude_current: bool = False) -> List[DiscoveredItem]:
    return _discover(chain, "commands", "command", False, exclude_current)


def discover_skills(chain: InheritanceChain, exclude_current: bool = False) -> List[DiscoveredItem]:
    return _discover(chain, "skills", "skill", True, exclude_current)


def discover_hooks(chain: InheritanceChain, exclude_current: bool = False) -> List[DiscoveredItem]:
    return _discover(chain, "hooks", "hook", True, exclude_current)


def discover_parent_resources(chain: InheritanceChain) -> Dict[str, List[DiscoveredItem]]:
    return {
        "commands": discover_commands(chain, exclude_current=True),
        "skills": discover_skills(chain, exclude_current=True),
        "hooks": discover_hooks(chain, exclude_current=True),
    }
