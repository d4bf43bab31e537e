"""
Mapping builder: one resolved source per resource, fanned out to the
targets of every requested client.
"""

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .chain import get_distinct_roots
from .config import get_extend_behavior, get_include_list, load_config
from .merge import AGENTS_MD, CLAUDE_MD, clean_merged_dir, merge_agents_md, merge_directory_chain
from .paths import ResolvedRoots, resolve_monorepo_roots, resolve_roots
from .types import (
    ALL_CLIENTS,
    DIRECTORY_RESOURCES,
    Client,
    ExtendBehavior,
    InheritanceChain,
    Mapping,
    ResourceName,
    Scope,
    SourceKind,
)

# (client, attribute of ResolvedRoots, path under that root)
TargetSpec = Tuple[Client, str, str]

CLIENT_TARGETS: Dict[str, List[TargetSpec]] = {
    "claude-md": [
        (Client.CLAUDE, "claude_root", CLAUDE_MD),
    ],
    "agents-md": [
        (Client.FACTORY, "factory_root", AGENTS_MD),
        (Client.CODEX, "codex_root", AGENTS_MD),
        (Client.OPENCODE, "opencode_config_root", AGENTS_MD),
    ],
    "commands": [
        (Client.CLAUDE, "claude_root", "commands"),
        (Client.FACTORY, "factory_root", "commands"),
        (Client.CODEX, "codex_root", "prompts"),
        (Client.OPENCODE, "opencode_root", "commands"),
        (Client.CURSOR, "cursor_root", "commands"),
    ],
    "hooks": [
        (Client.CLAUDE, "claude_root", "hooks"),
        (Client.FACTORY, "factory_root", "hooks"),
    ],
    "skills": [
        (Client.CLAUDE, "claude_root", "skills"),
        (Client.FACTORY, "factory_root", "skills"),
        (Client.CODEX, "codex_root", "skills"),
        (Client.OPENCODE, "opencode_root", "skills"),
        (Client.CURSOR, "cursor_root", "skills"),
    ],
}


def get_targets(name: str, roots: ResolvedRoots, clients: Iterable[Client]) -> Tuple[Path, ...]:
    wanted = set(clients)
    return tuple(
        getattr(roots, root_attr) / relative
        for client, root_attr, relative in CLIENT_TARGETS[name]
        if client in wanted
    )


def _append(
    mappings: List[Mapping],
    name: str,
    source: Optional[Path],
    roots: ResolvedRoots,
    clients: Sequence[Client],
    kind: SourceKind,
) -> None:
    if source is None:
        return
    targets = get_targets(name, roots, clients)
    if targets:
        mappings.append(Mapping(name=name, source=source, targets=targets, kind=kind))


def get_mappings(
    scope: Scope,
    project_root: Optional[Path] = None,
    home_dir: Optional[Path] = None,
    clients: Optional[Sequence[Client]] = None,
) -> List[Mapping]:
    """
    Single-root mappings for the global or project scope.

    Directory sources point at the canonical root even if they do not exist
    yet; the plan reports them as missing. Instruction files are only
    projected for the global scope.
    """
    roots = resolve_roots(scope, project_root, home_dir)
    selected = list(clients) if clients is not None else list(ALL_CLIENTS)
    canonical = roots.canonical_root

    mappings: List[Mapping] = []
    if scope == Scope.GLOBAL:
        claude_override = canonical / CLAUDE_MD
        agents_fallback = canonical / AGENTS_MD
        claude_source = claude_override if claude_override.exists() else agents_fallback
        _append(mappings, "claude-md", claude_source, roots, selected, SourceKind.FILE)
        _append(mappings, "agents-md", agents_fallback, roots, selected, SourceKind.FILE)

    for resource in DIRECTORY_RESOURCES:
        _append(mappings, resource.value, canonical / resource.value, roots, selected, SourceKind.DIR)

    return mappings


def get_monorepo_mappings(
    chain: InheritanceChain,
    project_root: Optional[Path] = None,
    home_dir: Optional[Path] = None,
    clients: Optional[Sequence[Client]] = None,
) -> List[Mapping]:
    """
    Chained mappings: every resource is resolved through the merge engine
    using the behaviors configured on the nearest root.
    """
    effective = get_distinct_roots(chain)
    if not effective:
        return []

    roots = resolve_monorepo_roots(chain, project_root, home_dir)
    selected = list(clients) if clients is not None else list(ALL_CLIENTS)
    current_root = chain.current or effective[0]
    config = load_config(current_root)
    clean_merged_dir(current_root)

    mappings: List[Mapping] = []

    agents_source = merge_agents_md(
        effective,
        current_root,
        get_extend_behavior(config, ResourceName.AGENTS_MD),
    )
    if agents_source is not None:
        _append(mappings, "claude-md", agents_source, roots, selected, SourceKind.FILE)
        # A CLAUDE.md is only for Claude; the other clients get nothing.
        if agents_source.name != CLAUDE_MD:
            _append(mappings, "agents-md", agents_source, roots, selected, SourceKind.FILE)

    for resource in DIRECTORY_RESOURCES:
        behavior = get_extend_behavior(config, resource)
        include = get_include_list(config, resource) if behavior == ExtendBehavior.COMPOSE else None
        source = merge_directory_chain(
            effective,
            current_root,
            resource.value,
            behavior,
            include_list=include,
            exclude=config.exclude,
        )
        _append(mappings, resource.value, source, roots, selected, SourceKind.DIR)

    return mappings
