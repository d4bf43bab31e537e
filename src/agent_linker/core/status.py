"""Read-only link status: what each client target currently looks like."""

from pathlib import Path
from typing import List, Sequence

from .plan import points_to
from .types import LinkStatus, Mapping, TargetStatus


def target_status(source: Path, target: Path) -> str:
    if target.is_symlink():
        return "linked" if points_to(target, source) else "conflict"
    if target.exists():
        return "conflict"
    return "missing"


def get_link_status(mappings: Sequence[Mapping]) -> List[LinkStatus]:
    statuses: List[LinkStatus] = []
    for mapping in mappings:
        statuses.append(
            LinkStatus(
                name=mapping.name,
                source=mapping.source,
                targets=[TargetStatus(path=t, status=target_status(mapping.source, Path(t))) for t in mapping.targets],
            )
        )
    return statuses
