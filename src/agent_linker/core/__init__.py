"""Core abstractions for Agent Linker."""

from .types import (
    ApplyResult,
    Client,
    ExtendBehavior,
    InheritanceChain,
    LinkPlan,
    Mapping,
    NodeConfig,
    RepairResult,
    ResourceName,
    Scope,
    SourceKind,
)
from .errors import (
    AgentLinkerError,
    InitError,
    LinkConflictError,
    LinkIOError,
    MergeError,
    WatchSetupError,
)
from .chain import detect_chain, format_inheritance_display, get_distinct_roots, get_effective_chain, has_parent
from .config import get_extend_behavior, get_include_list, is_excluded, load_config, save_config
from .mappings import get_mappings, get_monorepo_mappings
from .plan import build_link_plan, build_monorepo_link_plan, build_scope_link_plan
from .apply import apply_link_plan

__all__ = [
    "ApplyResult",
    "Client",
    "ExtendBehavior",
    "InheritanceChain",
    "LinkPlan",
    "Mapping",
    "NodeConfig",
    "RepairResult",
    "ResourceName",
    "Scope",
    "SourceKind",
    "AgentLinkerError",
    "InitError",
    "LinkConflictError",
    "LinkIOError",
    "MergeError",
    "WatchSetupError",
    "detect_chain",
    "format_inheritance_display",
    "get_distinct_roots",
    "get_effective_chain",
    "has_parent",
    "get_extend_behavior",
    "get_include_list",
    "is_excluded",
    "load_config",
    "save_config",
    "get_mappings",
    "get_monorepo_mappings",
    "build_link_plan",
    "build_monorepo_link_plan",
    "build_scope_link_plan",
    "apply_link_plan",
]
